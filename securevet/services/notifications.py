"""
Transactional email.

Everything here is fire-and-forget: routes hand these functions to
FastAPI ``BackgroundTasks`` after the response is decided, and any failure
is logged and dropped.
"""
import logging
import smtplib
import ssl
from email.mime.text import MIMEText
from typing import Optional

from securevet.core.config import settings
from securevet.core.store import PETS, USERS, DocumentStore

logger = logging.getLogger(__name__)


class EmailNotifier:
    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        sender: Optional[str] = None,
    ):
        self.host = host if host is not None else settings.SMTP_HOST
        self.port = port or settings.SMTP_PORT
        self.username = username if username is not None else settings.SMTP_USERNAME
        self.password = password if password is not None else settings.SMTP_PASSWORD
        self.sender = sender or settings.EMAIL_FROM

    def send(self, to_email: str, subject: str, body: str) -> bool:
        if not self.host:
            logger.info("SMTP not configured; skipping email '%s' to %s", subject, to_email)
            return False
        if not to_email:
            return False

        msg = MIMEText(body, "plain", "utf-8")
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = to_email

        try:
            with smtplib.SMTP(self.host, self.port, timeout=10) as server:
                server.starttls(context=ssl.create_default_context())
                if self.username:
                    server.login(self.username, self.password)
                server.sendmail(self.sender, [to_email], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email '%s' to %s: %s", subject, to_email, e)
            return False

        logger.info("Sent email '%s' to %s", subject, to_email)
        return True

    def password_reset_requested(self, email: str) -> bool:
        return self.send(
            email,
            "SecureVet password reset request",
            "We received a request to reset your SecureVet password.\n"
            "A clinic administrator will contact you shortly. If you did not "
            "ask for this, you can ignore this email.",
        )

    def appointment_confirmed(self, store: DocumentStore, appointment) -> bool:
        """Tell the owner their appointment is confirmed. Lookups happen here, off the request path."""
        try:
            owner = store.get(USERS, appointment.owner_id) or {}
            pet = store.get(PETS, appointment.pet_id) or {}
            staff = store.get(USERS, appointment.assigned_to) if appointment.assigned_to else None
        except Exception:
            logger.exception("Could not load details for appointment %s email", appointment.id)
            return False

        staff_line = f" with {staff.get('name')}" if staff and staff.get("name") else ""
        return self.send(
            owner.get("email"),
            "Your SecureVet appointment is confirmed",
            f"Hello {owner.get('name') or 'there'},\n\n"
            f"Your appointment for {pet.get('name') or 'your pet'} on "
            f"{appointment.date} at {appointment.time}{staff_line} is confirmed.\n\n"
            f"Reason: {appointment.reason}\n",
        )
