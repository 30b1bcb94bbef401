import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from datetime import date

from app.core.config import settings

logger = logging.getLogger(__name__)


def _send_email_sync(to_email: str, subject: str, html_body: str) -> None:
    """Send email via SMTP (blocking). Use from background task."""
    if not settings.email_enabled:
        logger.debug("Email disabled (SMTP not configured), skipping send")
        return
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{settings.from_name} <{settings.from_email}>"
    msg["To"] = to_email
    msg.attach(MIMEText(html_body, "html", "utf-8"))
    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port) as server:
            server.starttls()
            server.login(settings.smtp_user, settings.smtp_password)
            server.sendmail(settings.from_email, [to_email], msg.as_string())
        logger.info("Email sent to %s", to_email)
    except Exception as e:
        logger.exception("Failed to send email to %s: %s", to_email, e)


def _html_escape(s: str) -> str:
    return (
        s.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def build_booking_confirmation_html(
    recipient_name: str,
    service_name: str,
    booking_date: date,
    time_label: str,
    duration_minutes: int,
    notes: str | None,
) -> str:
    """Build HTML body for a booking request confirmation."""
    date_str = booking_date.strftime("%A, %B %d, %Y")
    slot_display = f"{time_label} ({duration_minutes} minutes)"
    logo_html = ""
    if settings.email_logo_url:
        logo_html = f'<img src="{settings.email_logo_url}" alt="{settings.site_name}" width="120" style="display:block;margin-bottom:24px;" />'
    notes_section = ""
    if notes:
        safe_notes = _html_escape(notes)
        notes_section = f"""
        <p style="margin:0 0 16px 0;color:#374151;"><strong>Your notes:</strong></p>
        <p style="margin:0 0 24px 0;color:#6b7280;font-size:14px;">{safe_notes}</p>
        """
    return f"""
<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Booking Received</title>
</head>
<body style="margin:0;padding:0;font-family:-apple-system,BlinkMacSystemFont,'Segoe UI',Roboto,Oxygen,Ubuntu,sans-serif;background-color:#f3f4f6;">
  <table role="presentation" width="100%" cellspacing="0" cellpadding="0" style="background-color:#f3f4f6;">
    <tr>
      <td align="center" style="padding:40px 16px;">
        <table role="presentation" width="100%" cellspacing="0" cellpadding="0" style="max-width:560px;background:#ffffff;border-radius:12px;box-shadow:0 4px 6px rgba(0,0,0,0.05);overflow:hidden;">
          <tr>
            <td style="padding:32px 32px 24px 32px;">
              {logo_html}
              <h1 style="margin:0 0 8px 0;font-size:22px;font-weight:600;color:#111827;">Booking Received</h1>
              <p style="margin:0 0 24px 0;font-size:15px;color:#6b7280;">Hi {recipient_name or 'there'}, we have your request for {_html_escape(service_name)}.</p>
              <table role="presentation" width="100%" cellspacing="0" cellpadding="0" style="background:#f9fafb;border-radius:8px;margin-bottom:24px;">
                <tr>
                  <td style="padding:20px 24px;">
                    <p style="margin:0 0 8px 0;font-size:12px;text-transform:uppercase;letter-spacing:0.5px;color:#6b7280;">Date</p>
                    <p style="margin:0;font-size:16px;font-weight:600;color:#111827;">{date_str}</p>
                    <p style="margin:12px 0 0 0;font-size:12px;text-transform:uppercase;letter-spacing:0.5px;color:#6b7280;">Time</p>
                    <p style="margin:0;font-size:16px;font-weight:600;color:#111827;">{slot_display}</p>
                  </td>
                </tr>
              </table>
              {notes_section}
              <p style="margin:0 0 8px 0;font-size:14px;color:#374151;">We will confirm your appointment shortly. To change or cancel, reply to this email.</p>
            </td>
          </tr>
          <tr>
            <td style="padding:24px 32px 32px 32px;background:#f9fafb;border-top:1px solid #e5e7eb;">
              <p style="margin:0 0 4px 0;font-size:13px;font-weight:600;color:#111827;">{settings.site_name}</p>
              <p style="margin:0;font-size:13px;color:#6b7280;">
                {settings.contact_email} &nbsp;·&nbsp; {settings.contact_phone}<br>
                {settings.contact_address}
              </p>
            </td>
          </tr>
        </table>
      </td>
    </tr>
  </table>
</body>
</html>
"""


def send_booking_confirmation_email(
    to_email: str,
    recipient_name: str | None,
    service_name: str,
    booking_date: date,
    time_label: str,
    duration_minutes: int,
    notes: str | None = None,
) -> None:
    """Compose and send booking confirmation (call from background task)."""
    subject = f"{settings.site_name} – Booking Received"
    html = build_booking_confirmation_html(
        recipient_name=_html_escape(recipient_name or ""),
        service_name=service_name,
        booking_date=booking_date,
        time_label=time_label,
        duration_minutes=duration_minutes,
        notes=notes,
    )
    _send_email_sync(to_email, subject, html)
