"""
Email Service using Resend
Provides email functionality using MJML templates for responsive design
"""

import logging
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import EMAIL_FROM_ADDRESS, FRONTEND_URL, RESEND_API_KEY
from .email_templates import (
    certification_reviewed_template,
    dispute_resolved_template,
    email_verification_template,
    payment_confirmed_template,
    welcome_email_template,
)

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        if isinstance(result, dict):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        # Newer releases return a result object with .html and .errors
        errors = getattr(result, "errors", None)
        if errors:
            logger.warning(f"MJML compilation warnings: {errors}")
        html = getattr(result, "html", None)
        return html if html is not None else str(result)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise Exception(f"Failed to compile MJML template: {str(e)}") from e


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
) -> dict:
    """
    Send an email using Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        from_address: Optional custom from address

    Returns:
        Send response dict
    """
    recipients = [to] if isinstance(to, str) else to
    sender = from_address or EMAIL_FROM_ADDRESS

    if not RESEND_API_KEY:
        logger.warning("⚠️ No email service configured - RESEND_API_KEY missing")
        raise Exception("Email service not configured")

    html_content = compile_mjml_to_html(mjml_content)

    try:
        logger.info(f"📧 Sending email via Resend to: {to}")
        response = resend.Emails.send(
            {
                "from": sender,
                "to": recipients,
                "subject": subject,
                "html": html_content,
            }
        )
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise Exception(f"Failed to send email: {str(e)}") from e


async def notify(send_coro) -> bool:
    """
    Await an email send without letting a failure escape.

    Core writes are already committed when notifications go out, so a failed
    email is logged and reported as False.
    """
    try:
        await send_coro
        return True
    except Exception as e:
        logger.warning(f"⚠️ Notification email not sent: {e}")
        return False


# ============================================
# Pre-built Email Templates for Common Events
# ============================================


def build_verification_link(token: str) -> str:
    return f"{FRONTEND_URL}/verify-email?token={token}"


async def send_verification_email(to: str, user_name: str, token: str) -> dict:
    """Send the email verification link"""
    mjml_content = email_verification_template(user_name or "there", build_verification_link(token))
    return await send_email(to=to, subject="Verify your FixerHub account", mjml_content=mjml_content)


async def send_welcome_email(to: str, user_name: str, role: str) -> dict:
    mjml_content = welcome_email_template(user_name or "there", role)
    return await send_email(to=to, subject="Welcome to FixerHub!", mjml_content=mjml_content)


async def send_certification_reviewed_email(
    to: str,
    provider_name: str,
    certification_title: str,
    approved: bool,
    points: int,
    level: str,
    rejection_reason: Optional[str] = None,
) -> dict:
    """Notify a provider that an admin approved or rejected a certification"""
    mjml_content = certification_reviewed_template(
        provider_name, certification_title, approved, points, level, rejection_reason
    )
    subject = "Certification approved" if approved else "Certification not approved"
    return await send_email(to=to, subject=f"{subject} - FixerHub", mjml_content=mjml_content)


async def send_payment_confirmed_email(
    to: str,
    recipient_name: str,
    amount: str,
    booking_id: int,
    payment_method: str,
    reference: Optional[str] = None,
) -> dict:
    mjml_content = payment_confirmed_template(recipient_name, amount, booking_id, payment_method, reference)
    return await send_email(to=to, subject="Payment confirmed - FixerHub", mjml_content=mjml_content)


async def send_dispute_resolved_email(
    to: str, recipient_name: str, dispute_title: str, resolution: str, outcome: Optional[str] = None
) -> dict:
    mjml_content = dispute_resolved_template(recipient_name, dispute_title, resolution, outcome)
    return await send_email(to=to, subject="Your dispute has been resolved - FixerHub", mjml_content=mjml_content)
