"""
Email Service using Resend

Transactional emails sent to applicants. Every send is best-effort: failures
are logged and reported as False, never raised.
"""

import asyncio
import logging
from html import escape

import resend

from app.core.config import settings

logger = logging.getLogger(__name__)

resend.api_key = settings.resend_api_key


async def send_email(
    to_email: str,
    subject: str,
    html_content: str,
) -> bool:
    """
    Send an email using Resend.

    Returns:
        True if the email was sent (or logged when no API key is configured)
    """
    if not resend.api_key:
        logger.warning("RESEND_API_KEY not set - logging email instead of sending")
        logger.info(f"EMAIL TO: {to_email} | SUBJECT: {subject}")
        return True

    try:
        params: resend.Emails.SendParams = {
            "from": settings.email_from,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }

        # Resend's client is synchronous
        email = await asyncio.to_thread(resend.Emails.send, params)
        logger.info(f"Email sent successfully to {to_email}, id: {email['id']}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False


async def send_application_confirmation(
    to_email: str,
    applicant_name: str,
    application_number: str,
    job_title: str,
) -> bool:
    """Confirm a successful submission to the applicant."""
    safe_name = escape(applicant_name)
    safe_number = escape(application_number)
    safe_title = escape(job_title)

    applications_url = f"{settings.frontend_url}/applications"
    html_content = f"""
    <!DOCTYPE html>
    <html>
    <head>
        <style>
            body {{ font-family: system-ui, -apple-system, sans-serif; line-height: 1.6; color: #1f2937; }}
            .container {{ max-width: 600px; margin: 0 auto; padding: 40px 20px; }}
            .header {{ color: #1a365d; margin-bottom: 24px; }}
            td {{ padding: 4px 12px 4px 0; }}
            .footer {{ margin-top: 40px; padding-top: 20px; border-top: 1px solid #e5e7eb; color: #6b7280; font-size: 14px; }}
        </style>
    </head>
    <body>
        <div class="container">
            <h1 class="header">Application Submitted</h1>

            <p>Dear {safe_name},</p>

            <p>Your application has been successfully submitted.</p>

            <table>
                <tr><td><strong>Application Number</strong></td><td>{safe_number}</td></tr>
                <tr><td><strong>Position</strong></td><td>{safe_title}</td></tr>
            </table>

            <p>You can follow the status of your application at
            <a href="{applications_url}">{applications_url}</a>.</p>

            <div class="footer">
                <p>Please retain this email for your records.</p>
            </div>
        </div>
    </body>
    </html>
    """
    return await send_email(
        to_email=to_email,
        subject=f"Application Submitted - {safe_number}",
        html_content=html_content,
    )
