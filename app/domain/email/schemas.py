"""Email domain schemas - Request bodies for the email endpoints"""

from typing import Any, Optional

from pydantic import BaseModel

# Fields are optional; the service reports missing ones as a 400
# listing the field names.


class MagicLinkRequest(BaseModel):
    to: Optional[str] = None
    magicLink: Optional[str] = None
    name: Optional[str] = None


class OTPRequest(BaseModel):
    to: Optional[str] = None
    otp: Optional[str] = None
    name: Optional[str] = None


class PasswordResetRequest(BaseModel):
    to: Optional[str] = None
    resetLink: Optional[str] = None
    name: Optional[str] = None


class VerificationRequest(BaseModel):
    to: Optional[str] = None
    verificationLink: Optional[str] = None
    name: Optional[str] = None


class WelcomeRequest(BaseModel):
    to: Optional[str] = None
    name: Optional[str] = None
    loginLink: Optional[str] = None


class BulkEmailRequest(BaseModel):
    emails: Optional[list[Any]] = None


class QueueActionRequest(BaseModel):
    action: Optional[str] = None
    jobId: Optional[str] = None
    grace: Optional[int] = None
    limit: Optional[int] = None
    type: Optional[str] = None


class JobQueuedResponse(BaseModel):
    success: bool = True
    jobId: str
    message: str


class BulkQueuedResponse(BaseModel):
    success: bool = True
    jobIds: list[Optional[str]]
    count: int
    errors: list[dict[str, Any]] = []
    message: str
