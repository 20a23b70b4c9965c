"""Email service - Template-oriented façade over the email queue"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from pydantic import ValidationError

from ... import config
from ...shared.errors import BadRequest
from ...shared.validators import missing_fields
from .queue import EmailQueue
from .types import EmailData, EmailPriority, EmailTemplate, JobInfo, QueueMetrics

logger = logging.getLogger(__name__)

TEMPLATE_NAMES = {t.value for t in EmailTemplate}


@dataclass
class BulkResult:
    """One job id per input entry (None where the entry was rejected)"""

    job_ids: list[Optional[str]]
    errors: list[dict[str, Any]] = field(default_factory=list)

    @property
    def queued(self) -> list[str]:
        return [job_id for job_id in self.job_ids if job_id]


def _require(payload: dict[str, Any], *names: str) -> None:
    missing = missing_fields(payload, names)
    if missing:
        raise BadRequest(f"Missing required fields: {', '.join(missing)}")


def _is_recipients(value: Any) -> bool:
    if isinstance(value, str):
        return True
    return isinstance(value, list) and all(isinstance(item, str) and item.strip() for item in value)


def build_email(request: dict[str, Any]) -> EmailData:
    """Validate a custom email request and turn it into a job payload"""
    _require(request, "to", "template", "variables")

    template = request["template"]
    if not isinstance(template, str):
        raise BadRequest("template must be a string")
    if template not in TEMPLATE_NAMES:
        raise BadRequest(f"Unknown email template: {template}")
    if not _is_recipients(request["to"]):
        raise BadRequest("to must be an email address or a list of addresses")
    if not isinstance(request["variables"], dict):
        raise BadRequest("variables must be an object")

    attachments = request.get("attachments")
    if attachments is not None:
        if not isinstance(attachments, list) or not all(isinstance(a, dict) for a in attachments):
            raise BadRequest("attachments must be a list of objects")
        if any("path" in a for a in attachments):
            raise BadRequest("Attachments must carry inline content; file paths are not accepted")

    send_at = request.get("sendAt", request.get("send_at"))
    if isinstance(send_at, str):
        try:
            send_at = datetime.fromisoformat(send_at.replace("Z", "+00:00"))
        except ValueError as e:
            raise BadRequest("sendAt must be an ISO 8601 timestamp") from e

    try:
        return EmailData(
            to=request["to"],
            cc=request.get("cc"),
            bcc=request.get("bcc"),
            subject=request.get("subject"),
            template=template,
            variables=request["variables"],
            attachments=attachments,
            priority=EmailPriority.coerce(request.get("priority")),
            send_at=send_at,
            metadata=request.get("metadata"),
        )
    except ValidationError as e:
        raise BadRequest(f"Invalid email request: {e.errors()[0].get('msg', 'invalid value')}") from e


class EmailService:
    """
    Validates typed email requests and places them on the queue.

    Every send returns the queue's job id as soon as the job is accepted;
    delivery is the worker's business.
    """

    def __init__(self, queue: EmailQueue):
        self.queue = queue
        self.app_name = config.FROM_NAME

    async def _enqueue(
        self,
        to: str,
        template: EmailTemplate,
        subject: str,
        variables: dict[str, Any],
        priority: EmailPriority,
    ) -> str:
        email = EmailData(
            to=to,
            template=template.value,
            subject=subject,
            variables={**variables, "appName": self.app_name},
            priority=priority,
        )
        return await self.queue.add_email(email)

    # ------------------------------------------------------------------
    # Generic sends
    # ------------------------------------------------------------------

    async def send_email(self, request: dict[str, Any]) -> str:
        return await self.queue.add_email(build_email(request))

    async def send_bulk_emails(self, requests: list[dict[str, Any]]) -> BulkResult:
        """
        Validate each entry on its own; rejected entries are reported and skipped,
        valid ones are queued in input order.
        """
        if not isinstance(requests, list) or not requests:
            raise BadRequest("Missing or invalid emails array")

        emails: list[Optional[EmailData]] = []
        errors = []
        for index, request in enumerate(requests):
            try:
                if not isinstance(request, dict):
                    raise BadRequest("Email entry must be an object")
                emails.append(build_email(request))
            except BadRequest as e:
                emails.append(None)
                errors.append({"index": index, "error": e.detail})

        if all(email is None for email in emails):
            raise BadRequest(f"No valid emails in request: {errors[0]['error']}")
        if errors:
            logger.warning(f"⚠️ Bulk email request: {len(errors)} of {len(requests)} entries rejected")

        job_ids: list[Optional[str]] = []
        for email in emails:
            job_ids.append(await self.queue.add_email(email) if email is not None else None)

        logger.info(f"📨 Bulk email request queued {len([j for j in job_ids if j])} jobs")
        return BulkResult(job_ids=job_ids, errors=errors)

    # ------------------------------------------------------------------
    # Typed template sends
    # ------------------------------------------------------------------

    async def send_magic_link(self, to: str, magic_link: str, name: str) -> str:
        _require({"to": to, "magicLink": magic_link, "name": name}, "to", "magicLink", "name")
        return await self._enqueue(
            to,
            EmailTemplate.MAGIC_LINK,
            f"Sign in to {self.app_name}",
            {"name": name, "magicLink": magic_link, "expiresIn": "15 minutes"},
            EmailPriority.HIGH,
        )

    async def send_otp(self, to: str, otp: str, name: str) -> str:
        _require({"to": to, "otp": otp, "name": name}, "to", "otp", "name")
        return await self._enqueue(
            to,
            EmailTemplate.OTP,
            "Your OTP Code",
            {"name": name, "otp": otp, "expiresIn": "10 minutes"},
            EmailPriority.HIGH,
        )

    async def send_password_reset(self, to: str, reset_link: str, name: str) -> str:
        _require({"to": to, "resetLink": reset_link, "name": name}, "to", "resetLink", "name")
        return await self._enqueue(
            to,
            EmailTemplate.PASSWORD_RESET,
            "Reset Your Password",
            {"name": name, "resetLink": reset_link, "expiresIn": "1 hour"},
            EmailPriority.HIGH,
        )

    async def send_email_verification(self, to: str, verification_link: str, name: str) -> str:
        _require(
            {"to": to, "verificationLink": verification_link, "name": name},
            "to",
            "verificationLink",
            "name",
        )
        return await self._enqueue(
            to,
            EmailTemplate.EMAIL_VERIFICATION,
            "Verify Your Email",
            {"name": name, "verificationLink": verification_link, "expiresIn": "24 hours"},
            EmailPriority.HIGH,
        )

    async def send_welcome(self, to: str, name: str, login_link: Optional[str] = None) -> str:
        _require({"to": to, "name": name}, "to", "name")
        variables = {"name": name}
        if login_link:
            variables["loginLink"] = login_link
        return await self._enqueue(
            to, EmailTemplate.WELCOME, f"Welcome to {self.app_name}!", variables, EmailPriority.NORMAL
        )

    async def send_password_changed(self, to: str, name: str, timestamp: str) -> str:
        _require({"to": to, "name": name, "timestamp": timestamp}, "to", "name", "timestamp")
        return await self._enqueue(
            to,
            EmailTemplate.PASSWORD_CHANGED,
            "Password Changed Successfully",
            {"name": name, "timestamp": timestamp, "supportEmail": config.SUPPORT_EMAIL},
            EmailPriority.HIGH,
        )

    async def send_account_locked(self, to: str, name: str, unlock_link: str) -> str:
        _require({"to": to, "name": name, "unlockLink": unlock_link}, "to", "name", "unlockLink")
        return await self._enqueue(
            to,
            EmailTemplate.ACCOUNT_LOCKED,
            "Account Security Alert",
            {"name": name, "unlockLink": unlock_link, "supportEmail": config.SUPPORT_EMAIL},
            EmailPriority.CRITICAL,
        )

    async def send_login_alert(self, to: str, name: str, location: str, device: str, timestamp: str) -> str:
        payload = {"to": to, "name": name, "location": location, "device": device, "timestamp": timestamp}
        _require(payload, *payload.keys())
        return await self._enqueue(
            to,
            EmailTemplate.LOGIN_ALERT,
            "New Sign-in Alert",
            {"name": name, "location": location, "device": device, "timestamp": timestamp},
            EmailPriority.NORMAL,
        )

    async def send_newsletter(self, to: str, name: str, content: str, unsubscribe_link: str) -> str:
        payload = {"to": to, "name": name, "content": content, "unsubscribeLink": unsubscribe_link}
        _require(payload, *payload.keys())
        return await self._enqueue(
            to,
            EmailTemplate.NEWSLETTER,
            "Newsletter",
            {"name": name, "content": content, "unsubscribeLink": unsubscribe_link},
            EmailPriority.LOW,
        )

    async def send_invoice(
        self, to: str, name: str, invoice_number: str, amount: str, due_date: str, download_link: str
    ) -> str:
        variables = {
            "name": name,
            "invoiceNumber": invoice_number,
            "amount": amount,
            "dueDate": due_date,
            "downloadLink": download_link,
        }
        _require({"to": to, **variables}, "to", *variables.keys())
        return await self._enqueue(
            to, EmailTemplate.INVOICE, f"Invoice {invoice_number}", variables, EmailPriority.NORMAL
        )

    async def send_notification(
        self,
        to: str,
        name: str,
        title: str,
        message: str,
        action_link: Optional[str] = None,
        action_text: Optional[str] = None,
    ) -> str:
        _require({"to": to, "name": name, "title": title, "message": message}, "to", "name", "title", "message")
        variables = {"name": name, "title": title, "message": message}
        if action_link:
            variables["actionLink"] = action_link
            variables["actionText"] = action_text or "View details"
        return await self._enqueue(to, EmailTemplate.NOTIFICATION, title, variables, EmailPriority.NORMAL)

    # ------------------------------------------------------------------
    # Queue management
    # ------------------------------------------------------------------

    async def get_queue_metrics(self) -> QueueMetrics:
        return await self.queue.get_metrics()

    async def get_job_status(self, job_id: str) -> Optional[JobInfo]:
        return await self.queue.get_job_status(job_id)

    async def pause_queue(self) -> None:
        await self.queue.pause()

    async def resume_queue(self) -> None:
        await self.queue.resume()

    async def clean_queue(
        self, grace_ms: Optional[int] = None, limit: Optional[int] = None, state: Optional[str] = None
    ) -> list[str]:
        return await self.queue.clean(
            grace_ms=24 * 60 * 60 * 1000 if grace_ms is None else grace_ms,
            limit=100 if limit is None else limit,
            state=state or "completed",
        )

    async def retry_job(self, job_id: str) -> None:
        await self.queue.retry(job_id)

    async def remove_job(self, job_id: str) -> None:
        await self.queue.remove(job_id)
