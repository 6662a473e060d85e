# numbers_erp/services/email_service.py - SMTP delivery and email templates
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional
from urllib.parse import urlencode
import logging
from jinja2 import Template

from numbers_erp.core.config import settings

logger = logging.getLogger(__name__)


class EmailService:
    """Email service using SMTP"""

    def __init__(self):
        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.smtp_user = settings.SMTP_USER
        self.smtp_password = settings.SMTP_PASSWORD
        self.from_email = settings.SMTP_FROM_EMAIL
        self.from_name = settings.SMTP_FROM_NAME
        self.use_tls = settings.SMTP_USE_TLS

    def send_email(
        self,
        to_email: str,
        subject: str,
        body_text: str,
        body_html: Optional[str] = None,
        reply_to: Optional[str] = None
    ) -> bool:
        """Send an email via SMTP. Returns False instead of raising on failure."""
        if not self.smtp_host:
            logger.warning(f"SMTP not configured, email to {to_email} not sent: {subject}")
            return False

        try:
            msg = MIMEMultipart('alternative')
            msg['Subject'] = subject
            msg['From'] = f"{self.from_name} <{self.from_email}>"
            msg['To'] = to_email

            if reply_to:
                msg['Reply-To'] = reply_to

            msg.attach(MIMEText(body_text, 'plain', 'utf-8'))
            if body_html:
                msg.attach(MIMEText(body_html, 'html', 'utf-8'))

            with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
                if self.use_tls:
                    server.starttls()
                if self.smtp_user:
                    server.login(self.smtp_user, self.smtp_password)
                server.send_message(msg)

            logger.info(f"Email sent successfully to {to_email}")
            return True

        except Exception as e:
            logger.error(f"Failed to send email to {to_email}: {e}", exc_info=True)
            return False


def password_link(token: str, email: str) -> str:
    """Front end page where invited and resetting users choose a password"""
    return f"{settings.SITE_URL.rstrip('/')}/reset-password?{urlencode({'token': token, 'email': email})}"


INVITATION_TEXT = Template("""\
Hello {{ name }},

You have been invited to join {{ workspace }} on Numbers ERP as a {{ role }}.

Set your password to get started:
{{ link }}

This link will expire in {{ hours }} hours.

Best regards,
The Numbers ERP Team
""")

INVITATION_HTML = Template("""\
<!DOCTYPE html>
<html>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
    <h2>You're invited to {{ workspace }}</h2>
    <p>Hello {{ name }},</p>
    <p>You have been invited to join <strong>{{ workspace }}</strong> on Numbers ERP as a <strong>{{ role }}</strong>.</p>
    <p><a href="{{ link }}" style="background: #3b82f6; color: #ffffff; padding: 10px 18px; text-decoration: none; border-radius: 4px;">Set your password</a></p>
    <p>This link will expire in {{ hours }} hours.</p>
    <p>Best regards,<br>The Numbers ERP Team</p>
</body>
</html>
""", autoescape=True)

RESET_TEXT = Template("""\
Hello {{ name }},

You requested to reset your Numbers ERP password. Use the link below:

{{ link }}

This link will expire in {{ hours }} hours.

If you didn't request this reset, please ignore this email.
""")

RESET_HTML = Template("""\
<!DOCTYPE html>
<html>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
    <h2>Password Reset Request</h2>
    <p>Hello {{ name }},</p>
    <p>You requested to reset your Numbers ERP password.</p>
    <p><a href="{{ link }}">Reset Password</a></p>
    <p>This link will expire in {{ hours }} hours.</p>
    <p>If you didn't request this reset, please ignore this email.</p>
</body>
</html>
""", autoescape=True)


class EmailTemplates:
    """Email templates for account notifications"""

    @staticmethod
    def invitation(name: str, workspace: str, role: str, link: str) -> tuple[str, str]:
        """Generate invitation email (text and HTML)"""
        context = {
            "name": name,
            "workspace": workspace,
            "role": role,
            "link": link,
            "hours": settings.INVITE_TOKEN_EXPIRE_HOURS,
        }
        return INVITATION_TEXT.render(**context), INVITATION_HTML.render(**context)

    @staticmethod
    def password_reset(name: str, link: str) -> tuple[str, str]:
        context = {"name": name, "link": link, "hours": settings.RESET_TOKEN_EXPIRE_HOURS}
        return RESET_TEXT.render(**context), RESET_HTML.render(**context)


# Global email service instance
email_service = EmailService()
