"""
ARQ Background Worker for the email queue
Renders queued email jobs, delivers them and keeps the queue tidy

Run with: arq app.worker.WorkerSettings
"""

import asyncio
import logging
import os

from arq.cron import cron
from arq.worker import Retry

from . import config
from .domain.email.queue import EmailQueue, get_redis_settings
from .email_service import EmailDeliveryError, send_email
from .email_templates import render_template

logger = logging.getLogger(__name__)


def retry_delay(job_try: int) -> int:
    """Exponential backoff in seconds: base, 2x base, 4x base..."""
    return config.EMAIL_RETRY_DELAY * 2 ** (max(job_try, 1) - 1)


async def send_email_task(ctx, payload: dict):
    """
    Background task to render and deliver one queued email

    Args:
        ctx: ARQ context
        payload: EmailData job payload (to, template, variables, subject, ...)

    Returns:
        dict with the transport's message id
    """
    job_id = ctx.get("job_id")
    job_try = ctx.get("job_try", 1)
    template = payload.get("template")
    logger.info(f"📧 Processing email job {job_id} ({template}, attempt {job_try})")

    # Unknown templates fail permanently; there is nothing to retry
    subject, mjml_content = render_template(template, payload.get("variables") or {}, payload.get("subject"))

    try:
        response = await asyncio.to_thread(
            send_email,
            to=payload["to"],
            subject=subject,
            mjml_content=mjml_content,
            cc=payload.get("cc"),
            bcc=payload.get("bcc"),
            attachments=payload.get("attachments"),
            priority=payload.get("priority", 2),
        )
    except EmailDeliveryError as e:
        if job_try < config.EMAIL_MAX_TRIES:
            delay = retry_delay(job_try)
            logger.warning(f"⚠️ Email job {job_id} failed (attempt {job_try}), retrying in {delay}s: {e}")
            raise Retry(defer=delay) from e
        logger.error(f"❌ Email job {job_id} failed after {job_try} attempts: {e}")
        raise

    message_id = response.get("id") if isinstance(response, dict) else None
    logger.info(f"✅ Email job {job_id} delivered to {payload['to']}")
    return {"success": True, "message_id": message_id, "attempts": job_try}


async def clean_email_queue_task(ctx):
    """
    Hourly cron job: drop completed job results older than a day.
    Failed results are kept so they can still be retried.
    """
    queue = EmailQueue(pool=ctx["redis"])
    removed = await queue.clean(grace_ms=24 * 60 * 60 * 1000, limit=1000, state="completed")
    return {"status": "completed", "cleaned": len(removed)}


async def dispatch_recurring_emails_task(ctx):
    """Every-minute cron job: enqueue recurring emails that are due"""
    queue = EmailQueue(pool=ctx["redis"])
    job_ids = await queue.dispatch_due_recurring()
    if job_ids:
        logger.info(f"📅 Dispatched {len(job_ids)} recurring emails")
    return {"status": "completed", "queued": len(job_ids)}


async def startup(ctx):
    logger.info(f"🚀 Email worker started on queue {config.EMAIL_QUEUE_NAME}")


async def shutdown(ctx):
    logger.info("🛑 Email worker stopped")


class WorkerSettings:
    """ARQ Worker Settings for the email queue"""

    functions = [send_email_task]
    redis_settings = get_redis_settings()
    queue_name = config.EMAIL_QUEUE_NAME
    on_startup = startup
    on_shutdown = shutdown

    # Up to 5 emails are processed concurrently by default
    max_jobs = int(os.getenv("ARQ_MAX_JOBS", "5"))
    job_timeout = int(os.getenv("ARQ_JOB_TIMEOUT", "60"))
    # Results are kept a week so failed jobs can be inspected and retried
    keep_result = int(os.getenv("ARQ_KEEP_RESULT", str(7 * 24 * 3600)))

    health_check_interval = 60

    # Retry settings for failed jobs
    max_tries = config.EMAIL_MAX_TRIES

    cron_jobs = [
        cron(clean_email_queue_task, minute=0),  # hourly
        cron(dispatch_recurring_emails_task),  # every minute
    ]

    logger.info(f"🔧 ARQ Worker configured: max_jobs={max_jobs}, timeout={job_timeout}s")
