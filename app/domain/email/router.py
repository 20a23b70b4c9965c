"""
Email router - Queue email jobs and manage the email queue

The send routes are meant for server-side callers, such as the auth backend,
acting as a facility owner or admin. End users never call them directly; a
player signing in gets their magic link or OTP because the auth backend queues
it on their behalf.
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse

from ...auth import require_capability
from ...models import User
from ...shared.errors import BadRequest, NotFound
from .health import STATUS_CODES, check_queue_health, perform_health_check
from .schemas import (
    BulkEmailRequest,
    BulkQueuedResponse,
    JobQueuedResponse,
    MagicLinkRequest,
    OTPRequest,
    PasswordResetRequest,
    QueueActionRequest,
    VerificationRequest,
    WelcomeRequest,
)
from .service import EmailService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/email", tags=["Email"])


def get_email_service(request: Request) -> EmailService:
    """Dependency injection for EmailService over the process-wide queue handle"""
    return EmailService(request.app.state.email_queue)


def queued(job_id: str, what: str) -> JobQueuedResponse:
    return JobQueuedResponse(jobId=job_id, message=f"{what} queued successfully")


# ============================================================================
# TEMPLATE EMAILS
# ============================================================================


@router.post("/magic-link", response_model=JobQueuedResponse)
async def send_magic_link(
    data: MagicLinkRequest,
    _user: User = Depends(require_capability("email:send")),
    service: EmailService = Depends(get_email_service),
):
    job_id = await service.send_magic_link(data.to, data.magicLink, data.name)
    return queued(job_id, "Magic link email")


@router.post("/otp", response_model=JobQueuedResponse)
async def send_otp(
    data: OTPRequest,
    _user: User = Depends(require_capability("email:send")),
    service: EmailService = Depends(get_email_service),
):
    job_id = await service.send_otp(data.to, data.otp, data.name)
    return queued(job_id, "OTP email")


@router.post("/password-reset", response_model=JobQueuedResponse)
async def send_password_reset(
    data: PasswordResetRequest,
    _user: User = Depends(require_capability("email:send")),
    service: EmailService = Depends(get_email_service),
):
    job_id = await service.send_password_reset(data.to, data.resetLink, data.name)
    return queued(job_id, "Password reset email")


@router.post("/verify", response_model=JobQueuedResponse)
async def send_email_verification(
    data: VerificationRequest,
    _user: User = Depends(require_capability("email:send")),
    service: EmailService = Depends(get_email_service),
):
    job_id = await service.send_email_verification(data.to, data.verificationLink, data.name)
    return queued(job_id, "Verification email")


@router.post("/welcome", response_model=JobQueuedResponse)
async def send_welcome(
    data: WelcomeRequest,
    _user: User = Depends(require_capability("email:send")),
    service: EmailService = Depends(get_email_service),
):
    job_id = await service.send_welcome(data.to, data.name, data.loginLink)
    return queued(job_id, "Welcome email")


# ============================================================================
# CUSTOM AND BULK EMAILS
# ============================================================================


@router.post("/send", response_model=JobQueuedResponse)
async def send_custom_email(
    payload: dict[str, Any] = Body(...),
    _user: User = Depends(require_capability("email:send")),
    service: EmailService = Depends(get_email_service),
):
    """Queue an email for any known template with caller-supplied variables"""
    job_id = await service.send_email(payload)
    return queued(job_id, "Email")


@router.put("/send", response_model=BulkQueuedResponse)
async def send_bulk_emails(
    data: BulkEmailRequest,
    _user: User = Depends(require_capability("email:send")),
    service: EmailService = Depends(get_email_service),
):
    result = await service.send_bulk_emails(data.emails)
    return BulkQueuedResponse(
        jobIds=result.job_ids,
        count=len(result.queued),
        errors=result.errors,
        message="Bulk emails queued successfully",
    )


# ============================================================================
# QUEUE MANAGEMENT
# ============================================================================


@router.get("/queue")
async def get_queue_metrics(
    _user: User = Depends(require_capability("email:queue:read")),
    service: EmailService = Depends(get_email_service),
):
    metrics = await service.get_queue_metrics()
    return {"success": True, "metrics": metrics.model_dump()}


@router.get("/queue/{job_id}")
async def get_job_status(
    job_id: str,
    _user: User = Depends(require_capability("email:queue:read")),
    service: EmailService = Depends(get_email_service),
):
    info = await service.get_job_status(job_id)
    if info is None:
        raise NotFound("Job not found")
    return {"success": True, "job": info.model_dump(mode="json")}


@router.post("/queue")
async def manage_queue(
    data: QueueActionRequest,
    user: User = Depends(require_capability("email:queue:manage")),
    service: EmailService = Depends(get_email_service),
):
    """Pause, resume, clean, retry or remove; see QueueActionRequest for parameters"""
    logger.info(f"🛠️ Queue action '{data.action}' requested by {user.id}")

    if data.action == "pause":
        await service.pause_queue()
        return {"success": True, "message": "Queue paused"}

    if data.action == "resume":
        await service.resume_queue()
        return {"success": True, "message": "Queue resumed"}

    if data.action == "clean":
        cleaned = await service.clean_queue(data.grace, data.limit, data.type)
        return {"success": True, "message": f"Cleaned {len(cleaned)} jobs", "cleanedJobs": cleaned}

    if data.action in ("retry", "remove"):
        if not data.jobId:
            raise BadRequest(f"jobId required for {data.action} action")
        if data.action == "retry":
            await service.retry_job(data.jobId)
            return {"success": True, "message": "Job retry requested"}
        await service.remove_job(data.jobId)
        return {"success": True, "message": "Job removed"}

    raise BadRequest("Invalid action. Supported: pause, resume, clean, retry, remove")


# ============================================================================
# HEALTH
# ============================================================================


@router.get("/health")
async def email_health(
    request: Request,
    _user: User = Depends(require_capability("email:health")),
):
    """Combined health of the email pipeline; 200 healthy, 206 degraded, 503 unhealthy"""
    queue = request.app.state.email_queue
    report = await perform_health_check(queue)
    report["queue"] = {**report["checks"]["queue"], "health": await check_queue_health(queue)}
    return JSONResponse(content=report, status_code=STATUS_CODES[report["status"]])
