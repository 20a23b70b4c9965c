"""Email job types shared by the API process and the worker"""

import enum
from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, Field


class EmailTemplate(str, enum.Enum):
    OTP = "otp"
    PASSWORD_RESET = "password-reset"
    MAGIC_LINK = "magic-link"
    EMAIL_VERIFICATION = "email-verification"
    WELCOME = "welcome"
    PASSWORD_CHANGED = "password-changed"
    ACCOUNT_LOCKED = "account-locked"
    LOGIN_ALERT = "login-alert"
    NEWSLETTER = "newsletter"
    INVOICE = "invoice"
    NOTIFICATION = "notification"


class EmailPriority(int, enum.Enum):
    LOW = 1
    NORMAL = 2
    HIGH = 3
    CRITICAL = 4

    @classmethod
    def coerce(cls, value: Any) -> "EmailPriority":
        """Map caller input to a priority, falling back to NORMAL"""
        if isinstance(value, cls):
            return value
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return cls.NORMAL


class JobState(str, enum.Enum):
    WAITING = "waiting"
    DELAYED = "delayed"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"
    PAUSED = "paused"


class Attachment(BaseModel):
    """Inline attachment; files are never read from the server's disk"""

    filename: str
    content: str  # text or base64
    content_type: Optional[str] = Field(default=None, alias="contentType")

    model_config = {"populate_by_name": True, "extra": "forbid"}


class EmailData(BaseModel):
    """One outbound email as accepted onto the queue"""

    to: Union[str, list[str]]
    cc: Optional[Union[str, list[str]]] = None
    bcc: Optional[Union[str, list[str]]] = None
    subject: Optional[str] = None
    template: str
    variables: dict[str, Any] = Field(default_factory=dict)
    attachments: Optional[list[Attachment]] = None
    priority: EmailPriority = EmailPriority.NORMAL
    send_at: Optional[datetime] = None
    metadata: Optional[dict[str, Any]] = None

    def to_job_payload(self) -> dict[str, Any]:
        """Serializable job body; send_at is handled by deferring the job"""
        payload = self.model_dump(mode="json", exclude={"send_at"}, exclude_none=True, by_alias=False)
        payload["priority"] = int(self.priority)
        return payload


class QueueMetrics(BaseModel):
    waiting: int = 0
    active: int = 0
    completed: int = 0
    failed: int = 0
    delayed: int = 0
    paused: int = 0


class JobInfo(BaseModel):
    id: str
    status: JobState
    attempts: int = 0
    data: Optional[dict[str, Any]] = None
    enqueued_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    failed_reason: Optional[str] = None
