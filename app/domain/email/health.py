"""Email pipeline health: Redis connectivity, delivery transport, queue backlog"""

import logging
from datetime import datetime, timezone
from typing import Any

from ... import config
from .queue import EmailQueue

logger = logging.getLogger(__name__)

STATUS_CODES = {"healthy": 200, "degraded": 206, "unhealthy": 503}


def transport_configured() -> tuple[bool, str]:
    if config.SMTP_HOST:
        return True, f"SMTP configured ({config.SMTP_HOST}:{config.SMTP_PORT})"
    if config.RESEND_API_KEY:
        return True, "Resend configured"
    return False, "No email transport configured (set SMTP_HOST or RESEND_API_KEY)"


async def perform_health_check(queue: EmailQueue) -> dict[str, Any]:
    checks: dict[str, dict[str, Any]] = {
        "redis": {"status": "unknown"},
        "transport": {"status": "unknown"},
        "queue": {"status": "unknown"},
    }

    try:
        await queue.ping()
        checks["redis"] = {"status": "healthy", "message": "Redis connection successful"}
    except Exception as e:
        logger.warning(f"⚠️ Email health: Redis check failed: {e}")
        checks["redis"] = {"status": "unhealthy", "message": "Redis connection failed"}

    ok, message = transport_configured()
    checks["transport"] = {"status": "healthy" if ok else "unhealthy", "message": message}

    try:
        metrics = await queue.get_metrics()
        checks["queue"] = {
            "status": "healthy",
            "message": "Queue operational",
            "metrics": metrics.model_dump(),
        }
    except Exception as e:
        logger.warning(f"⚠️ Email health: queue metrics failed: {e}")
        checks["queue"] = {"status": "unhealthy", "message": "Queue check failed"}

    healthy_checks = len([c for c in checks.values() if c["status"] == "healthy"])
    if healthy_checks == len(checks):
        status = "healthy"
    elif healthy_checks > 0:
        status = "degraded"
    else:
        status = "unhealthy"

    return {
        "status": status,
        "checks": checks,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


async def check_queue_health(queue: EmailQueue) -> dict[str, Any]:
    """Flag backlog problems: too many failures, too many waiting, nobody working"""
    issues = []
    try:
        metrics = await queue.get_metrics()
    except Exception as e:
        return {"isHealthy": False, "metrics": None, "issues": [f"Failed to get queue metrics: {e.__class__.__name__}"]}

    if metrics.failed > config.EMAIL_QUEUE_MAX_FAILED:
        issues.append(f"High number of failed jobs: {metrics.failed}")
    if metrics.waiting > config.EMAIL_QUEUE_MAX_WAITING:
        issues.append(f"High number of waiting jobs: {metrics.waiting}")
    if metrics.active == 0 and metrics.waiting > 0 and not metrics.paused:
        issues.append("No active workers but jobs are waiting")

    return {"isHealthy": not issues, "metrics": metrics.model_dump(), "issues": issues}
