"""
MJML Email Templates
One builder per queued template; the worker renders them and compiles to HTML
"""

from html import escape
from typing import Any, Callable, Optional

from .config import APP_NAME, FRONTEND_URL, SUPPORT_EMAIL

# App theme colors - Court green / slate
THEME = {
    "primary": "#16a34a",
    "primary_dark": "#15803d",
    "primary_light": "#dcfce7",
    "background": "#f8fafc",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
    "warning": "#f59e0b",
    "danger": "#ef4444",
}

# Default subjects; {placeholders} are filled from the job variables
SUBJECTS = {
    "otp": "Your OTP Code for {appName}",
    "password-reset": "Reset Your Password - {appName}",
    "magic-link": "Sign in to {appName}",
    "email-verification": "Verify Your Email - {appName}",
    "welcome": "Welcome to {appName}!",
    "password-changed": "Password Changed - {appName}",
    "account-locked": "Account Security Alert - {appName}",
    "login-alert": "New Sign-in Alert - {appName}",
    "newsletter": "Newsletter - {appName}",
    "invoice": "Invoice {invoiceNumber} - {appName}",
    "notification": "{title} - {appName}",
}


class _Vars(dict):
    """Template variables, HTML-escaped on read; missing keys render empty"""

    def __missing__(self, key):
        return ""

    def text(self, key: str, default: str = "") -> str:
        value = self.get(key)
        return escape(str(value)) if value not in (None, "") else default


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    app_name: str = APP_NAME,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section background-color="#ffffff" padding="0 40px 32px 40px">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="0"
              inner-padding="16px 36px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="#ffffff" padding="32px 40px 0 40px">
          <mj-column>
            <mj-text font-size="22px" font-weight="700" color="{THEME['primary_dark']}" padding="0">
              <a href="{FRONTEND_URL}" style="color: {THEME['primary_dark']}; text-decoration: none;">{app_name}</a>
            </mj-text>
            <mj-divider border-color="{THEME['border']}" border-width="1px" padding="24px 0 32px 0" />
          </mj-column>
        </mj-section>

        <!-- Main Content -->
        <mj-section background-color="#ffffff" padding="0 40px 24px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>
            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <!-- Footer -->
        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#94a3b8" padding="0">
              This email was sent automatically by {app_name}. Please do not reply to this email.
            </mj-text>
            <mj-text align="center" font-size="13px" color="#94a3b8" padding="12px 0 0 0">
              Questions? Contact <a href="mailto:{SUPPORT_EMAIL}" style="color: #64748b;">{SUPPORT_EMAIL}</a>
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _greeting(v: _Vars) -> str:
    return f"<mj-text>Hi {v.text('name', 'there')},</mj-text>"


def _code_block(label: str, code: str) -> str:
    return f"""
    <mj-text align="center" font-size="14px" color="{THEME['text_muted']}" text-transform="uppercase" letter-spacing="1px" font-weight="600" padding="16px 0 8px 0">
      {label}
    </mj-text>
    <mj-text align="center" font-size="36px" font-weight="700" color="{THEME['text_primary']}" letter-spacing="8px" font-family="'Courier New', monospace" container-background-color="{THEME['primary_light']}" padding="20px 0">
      {code}
    </mj-text>
    """


def _muted(text: str) -> str:
    return f'<mj-text color="{THEME["text_muted"]}" font-size="14px">{text}</mj-text>'


# ============================================
# Authentication
# ============================================


def otp_template(v: _Vars) -> str:
    content = f"""
    {_greeting(v)}
    <mj-text>Use the following code to continue signing in to {v.text('appName')}.</mj-text>
    {_code_block("Your code", v.text('otp'))}
    {_muted(f"This code expires in {v.text('expiresIn', '10 minutes')}. If you didn't request it, you can ignore this email.")}
    """
    return get_base_template(
        title="Your One-Time Code",
        preview_text=f"Your code is {v.text('otp')}",
        content_sections=content,
        app_name=v.text("appName", APP_NAME),
    )


def magic_link_template(v: _Vars) -> str:
    content = f"""
    {_greeting(v)}
    <mj-text>Click the button below to sign in to {v.text('appName')}. No password needed.</mj-text>
    {_muted(f"This link expires in {v.text('expiresIn', '15 minutes')} and can only be used once.")}
    """
    return get_base_template(
        title=f"Sign in to {v.text('appName', APP_NAME)}",
        preview_text="Your secure sign-in link",
        content_sections=content,
        app_name=v.text("appName", APP_NAME),
        cta_url=v.text("magicLink"),
        cta_label="Sign In",
    )


def password_reset_template(v: _Vars) -> str:
    content = f"""
    {_greeting(v)}
    <mj-text>We received a request to reset your password. Click the button below to choose a new one.</mj-text>
    {_muted(f"This link expires in {v.text('expiresIn', '1 hour')}. If you didn't request a reset, your password stays the same.")}
    """
    return get_base_template(
        title="Reset Your Password",
        preview_text="Reset your password",
        content_sections=content,
        app_name=v.text("appName", APP_NAME),
        cta_url=v.text("resetLink"),
        cta_label="Reset Password",
    )


def email_verification_template(v: _Vars) -> str:
    content = f"""
    {_greeting(v)}
    <mj-text>Please confirm your email address to finish setting up your account.</mj-text>
    {_muted(f"This link expires in {v.text('expiresIn', '24 hours')}.")}
    """
    return get_base_template(
        title="Verify Your Email Address",
        preview_text="Confirm your email address",
        content_sections=content,
        app_name=v.text("appName", APP_NAME),
        cta_url=v.text("verificationLink"),
        cta_label="Verify Email",
    )


def welcome_email_template(v: _Vars) -> str:
    content = f"""
    {_greeting(v)}
    <mj-text>Welcome to {v.text('appName')}! Your account is ready.</mj-text>
    <mj-text padding="0 0 0 20px">
      • Find courts near you<br/>
      • Book a slot in seconds<br/>
      • Move or cancel bookings from your dashboard
    </mj-text>
    """
    return get_base_template(
        title=f"Welcome to {v.text('appName', APP_NAME)}!",
        preview_text="Your account has been created successfully",
        content_sections=content,
        app_name=v.text("appName", APP_NAME),
        cta_url=v.text("loginLink", FRONTEND_URL),
        cta_label="Start Booking",
    )


# ============================================
# Account security
# ============================================


def password_changed_template(v: _Vars) -> str:
    content = f"""
    {_greeting(v)}
    <mj-text>Your password was changed on {v.text('timestamp')}.</mj-text>
    {_muted(f"If this wasn't you, contact {v.text('supportEmail', SUPPORT_EMAIL)} right away.")}
    """
    return get_base_template(
        title="Password Changed",
        preview_text="Your password was changed",
        content_sections=content,
        app_name=v.text("appName", APP_NAME),
    )


def account_locked_template(v: _Vars) -> str:
    content = f"""
    {_greeting(v)}
    <mj-text color="{THEME['danger']}" font-weight="600">
      Your account has been locked after several unsuccessful sign-in attempts.
    </mj-text>
    <mj-text>Use the button below to unlock it. Need help? Write to {v.text('supportEmail', SUPPORT_EMAIL)}.</mj-text>
    """
    return get_base_template(
        title="Account Security Alert",
        preview_text="Your account has been locked",
        content_sections=content,
        app_name=v.text("appName", APP_NAME),
        cta_url=v.text("unlockLink"),
        cta_label="Unlock Account",
    )


def login_alert_template(v: _Vars) -> str:
    content = f"""
    {_greeting(v)}
    <mj-text>We noticed a new sign-in to your account.</mj-text>
    <mj-text padding="0 0 0 20px">
      <strong>When:</strong> {v.text('timestamp')}<br/>
      <strong>Where:</strong> {v.text('location', 'Unknown location')}<br/>
      <strong>Device:</strong> {v.text('device', 'Unknown device')}
    </mj-text>
    {_muted("If this was you, no action is needed. Otherwise reset your password immediately.")}
    """
    return get_base_template(
        title="New Sign-in Alert",
        preview_text="New sign-in to your account",
        content_sections=content,
        app_name=v.text("appName", APP_NAME),
    )


# ============================================
# Marketing, billing and notifications
# ============================================


def newsletter_template(v: _Vars) -> str:
    # content is trusted HTML authored by staff
    content = f"""
    {_greeting(v)}
    <mj-text>{v.get('content') or ''}</mj-text>
    <mj-text align="center" font-size="12px" color="#94a3b8">
      <a href="{v.text('unsubscribeLink')}" style="color: #94a3b8;">Unsubscribe</a>
    </mj-text>
    """
    return get_base_template(
        title="Newsletter",
        preview_text=f"News from {v.text('appName', APP_NAME)}",
        content_sections=content,
        app_name=v.text("appName", APP_NAME),
    )


def invoice_template(v: _Vars) -> str:
    content = f"""
    {_greeting(v)}
    <mj-text>Your invoice is ready.</mj-text>
    <mj-table padding="0 0 16px 0">
      <tr><td style="padding: 4px 0;">Invoice</td><td style="text-align: right;">{v.text('invoiceNumber')}</td></tr>
      <tr><td style="padding: 4px 0;">Amount</td><td style="text-align: right; font-weight: 600;">{v.text('amount')}</td></tr>
      <tr><td style="padding: 4px 0;">Due</td><td style="text-align: right;">{v.text('dueDate')}</td></tr>
    </mj-table>
    """
    return get_base_template(
        title=f"Invoice {v.text('invoiceNumber')}",
        preview_text=f"Invoice {v.text('invoiceNumber')} for {v.text('amount')}",
        content_sections=content,
        app_name=v.text("appName", APP_NAME),
        cta_url=v.text("downloadLink"),
        cta_label="Download Invoice",
    )


def notification_template(v: _Vars) -> str:
    content = f"""
    {_greeting(v)}
    <mj-text>{v.text('message')}</mj-text>
    """
    return get_base_template(
        title=v.text("title", "Notification"),
        preview_text=v.text("title", "Notification"),
        content_sections=content,
        app_name=v.text("appName", APP_NAME),
        cta_url=v.text("actionLink") or None,
        cta_label=v.text("actionText", "View details"),
    )


TEMPLATE_BUILDERS: dict[str, Callable[[_Vars], str]] = {
    "otp": otp_template,
    "password-reset": password_reset_template,
    "magic-link": magic_link_template,
    "email-verification": email_verification_template,
    "welcome": welcome_email_template,
    "password-changed": password_changed_template,
    "account-locked": account_locked_template,
    "login-alert": login_alert_template,
    "newsletter": newsletter_template,
    "invoice": invoice_template,
    "notification": notification_template,
}


def render_template(
    template: str, variables: dict[str, Any], subject: Optional[str] = None
) -> tuple[str, str]:
    """
    Render a queued template to (subject, mjml).

    An explicit subject wins over the template default. Raises ValueError for
    an unknown template name.
    """
    builder = TEMPLATE_BUILDERS.get(template)
    if builder is None:
        raise ValueError(f"Unknown email template: {template}")

    v = _Vars({"appName": APP_NAME, **(variables or {})})
    if not subject:
        subject = SUBJECTS[template].format_map(_Vars({k: str(val) for k, val in v.items()}))
    return subject, builder(v)
