"""
Email service for the parking reservation service
Handles SMTP configuration and sending of subscriber emails
"""

import smtplib
import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from parking.config import Settings, get_settings

logger = logging.getLogger(__name__)


class EmailService:
    """Service for sending emails via SMTP"""

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.smtp_host = settings.smtp_host
        self.smtp_port = settings.smtp_port
        self.smtp_user = settings.smtp_user
        self.smtp_pass = settings.smtp_pass
        self.smtp_use_tls = settings.smtp_use_tls
        self.from_addr = settings.mail_from

    def is_configured(self) -> bool:
        """Check if email service is properly configured"""
        return bool(self.smtp_host and self.smtp_user and self.smtp_pass)

    def send_reservation_cancelled(
        self, to_email: str, user_name: str, reservation_id: str
    ) -> bool:
        """
        Tell a subscriber their reservation was cancelled for arriving late

        Args:
            to_email: Subscriber email
            user_name: Subscriber full name
            reservation_id: Reservation code shown to the subscriber

        Returns:
            bool: True if the email was handed to the SMTP server
        """
        if not self.is_configured():
            logger.warning(
                f"Email service not configured, skipping cancellation email "
                f"for reservation {reservation_id}"
            )
            return False

        try:
            msg = MIMEMultipart("alternative")
            msg["From"] = self.from_addr
            msg["To"] = to_email
            msg["Subject"] = f"Reservation {reservation_id} cancelled"

            body = f"""
            <html>
            <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
                <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
                    <h2 style="color: #2c3e50;">Hello {user_name},</h2>

                    <p>Your parking reservation <strong>#{reservation_id}</strong>
                    has been cancelled automatically because you did not arrive
                    within the grace period after your estimated arrival time.</p>

                    <p>The spot has been released. You are welcome to book again
                    at any time.</p>

                    <hr style="border: none; border-top: 1px solid #eee; margin: 30px 0;">

                    <p style="color: #666; font-size: 14px;">
                        Parking Management
                    </p>
                </div>
            </body>
            </html>
            """
            msg.attach(MIMEText(body, "html", "utf-8"))

            server = smtplib.SMTP(self.smtp_host, self.smtp_port)
            try:
                if self.smtp_use_tls:
                    server.starttls()
                server.login(self.smtp_user, self.smtp_pass)
                server.send_message(msg)
            finally:
                server.quit()

            logger.info(
                f"Cancellation email for reservation {reservation_id} sent to {to_email}"
            )
            return True

        except (smtplib.SMTPException, OSError) as e:
            logger.error(
                f"Failed to send cancellation email for reservation "
                f"{reservation_id} to {to_email}: {e}"
            )
            return False
