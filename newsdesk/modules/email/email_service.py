"""
Email Service Module
====================

Configurable email service supporting Resend and SMTP (e.g. Gmail).
Provider is selected via EMAIL_PROVIDER config ('resend' or 'smtp').
"""

import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from newsdesk.core.errors import TransportError
from newsdesk.core.validation import EMAIL_REGEX

logger = logging.getLogger(__name__)

# Try to import resend - it's optional
try:
    import resend
    RESEND_AVAILABLE = True
except ImportError:
    RESEND_AVAILABLE = False
    logger.info("resend package not installed.")


class EmailService:
    """
    Configurable email service supporting Resend and SMTP.

    Configuration (set in Flask app.config):
        EMAIL_PROVIDER: 'resend' (default) or 'smtp'
        RESEND_API_KEY: Your Resend API key (required if provider is 'resend')
        EMAIL_HOST: SMTP server host (default: 'smtp.gmail.com', only needed if provider is 'smtp')
        EMAIL_PORT: SMTP server port (default: 587, only needed if provider is 'smtp')
        EMAIL_PASSWORD: SMTP password/app password (required if provider is 'smtp')
        EMAIL_ADDRESS: Sender email address (default: onboarding@resend.dev)
        EMAIL_ADMIN_EMAIL: Admin notification email (default: None)

    send_email raises TransportError on any failure, every attempt is
    recorded in the email_logs table when a database is attached.
    """

    def __init__(self, app=None, database=None):
        self.provider = 'resend'
        self.api_key = None
        self.sender_email = None
        self.admin_email = None
        self.smtp_host = 'smtp.gmail.com'
        self.smtp_port = 587
        self.smtp_password = None
        self.database = database

        if app is not None:
            self.init_app(app, database)

    def init_app(self, app, database=None):
        """Initialize email service with Flask app configuration"""
        self.provider = (app.config.get('EMAIL_PROVIDER') or 'resend').lower()
        logger.info(f"=== INITIALIZING EMAIL SERVICE (provider: {self.provider}) ===")

        self.sender_email = app.config.get('EMAIL_ADDRESS', 'onboarding@resend.dev')
        self.admin_email = app.config.get('EMAIL_ADMIN_EMAIL')
        if database is not None:
            self.database = database

        logger.info(f"Sender email: {self.sender_email}")

        if self.provider == 'smtp':
            self._init_smtp(app)
        else:
            self._init_resend(app)

    def _init_resend(self, app):
        """Initialize Resend provider"""
        self.api_key = app.config.get('RESEND_API_KEY')

        if not self.api_key:
            logger.warning("RESEND_API_KEY not configured - email sending disabled")
            return

        if not RESEND_AVAILABLE:
            logger.error("resend package not installed")
            return

        resend.api_key = self.api_key
        logger.info("Resend API client initialized successfully")

    def _init_smtp(self, app):
        """Initialize SMTP provider (e.g. Gmail)"""
        self.smtp_host = app.config.get('EMAIL_HOST', 'smtp.gmail.com')
        self.smtp_port = int(app.config.get('EMAIL_PORT', 587))
        self.smtp_password = app.config.get('EMAIL_PASSWORD')

        if not self.smtp_password:
            logger.warning("EMAIL_PASSWORD not configured - SMTP email sending disabled")
            return

        logger.info(f"SMTP configured: {self.smtp_host}:{self.smtp_port}")

    def _log_email(self, recipient: str, subject: str, email_type: str,
                   status: str, error_message: str = None):
        """Log email attempt to database"""
        if self.database is None:
            return
        try:
            with self.database.cursor() as cursor:
                cursor.execute("""
                    CREATE TABLE IF NOT EXISTS email_logs (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        recipient TEXT NOT NULL,
                        subject TEXT NOT NULL,
                        email_type TEXT,
                        status TEXT NOT NULL,
                        error_message TEXT,
                        sent_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                """)
                cursor.execute("""
                    INSERT INTO email_logs (recipient, subject, email_type, status, error_message)
                    VALUES (?, ?, ?, ?, ?)
                """, (recipient, subject, email_type, status, error_message))
        except Exception as e:
            logger.error(f"Failed to log email to database: {e}")

    def send_email(self, recipient: str, subject: str, html_body: str,
                   text_body: Optional[str] = None, email_type: str = 'other') -> str:
        """
        Send one email via the configured provider.

        Args:
            recipient: Recipient email address
            subject: Email subject
            html_body: HTML content of the email
            text_body: Plain text content (optional)
            email_type: Label stored in email_logs

        Returns:
            str: Provider message id (empty for SMTP)

        Raises:
            TransportError: the address is invalid, the provider is not
                configured, or the provider rejected the message
        """
        if not recipient or not EMAIL_REGEX.match(recipient):
            raise TransportError(recipient, 'invalid email address')

        if not self.sender_email:
            raise TransportError(recipient, 'sender email not configured')

        logger.info(f"Sending email from: {self.sender_email} to: {recipient}")
        logger.info(f"Subject: {subject}")

        try:
            if self.provider == 'smtp':
                message_id = self._send_via_smtp(recipient, subject, html_body, text_body)
            else:
                message_id = self._send_via_resend(recipient, subject, html_body, text_body)
        except TransportError as e:
            self._log_email(recipient, subject, email_type, 'failed', e.reason)
            raise
        except Exception as e:
            logger.error(f"Error sending to {recipient}: {e}")
            self._log_email(recipient, subject, email_type, 'failed', str(e))
            raise TransportError(recipient, str(e)) from e

        self._log_email(recipient, subject, email_type, 'sent', None)
        return message_id

    async def send_email_async(self, recipient: str, subject: str, html_body: str,
                               text_body: Optional[str] = None, email_type: str = 'other') -> str:
        """Awaitable send_email, the blocking provider call runs in a worker thread"""
        return await asyncio.to_thread(
            self.send_email, recipient, subject, html_body, text_body, email_type
        )

    def _send_via_resend(self, recipient: str, subject: str, html_body: str,
                         text_body: Optional[str] = None) -> str:
        """Send a single email via Resend API"""
        if not RESEND_AVAILABLE:
            raise TransportError(recipient, 'resend package not installed')

        if not self.api_key:
            raise TransportError(recipient, 'Resend API key not configured')

        email_params = {
            "from": self.sender_email,
            "to": recipient,
            "subject": subject,
            "html": html_body
        }
        if text_body:
            email_params["text"] = text_body

        r = resend.Emails.send(email_params)
        logger.info(f"Resend response: {r}")

        if r and r.get('id'):
            logger.debug(f"Email sent successfully to: {recipient}, ID: {r['id']}")
            return r['id']
        logger.error(f"Resend error for {recipient}: {r}")
        raise TransportError(recipient, f'Resend returned {r}')

    def _send_via_smtp(self, recipient: str, subject: str, html_body: str,
                       text_body: Optional[str] = None) -> str:
        """Send a single email via SMTP (e.g. Gmail)"""
        if not self.smtp_password:
            raise TransportError(recipient, 'SMTP password not configured')

        msg = MIMEMultipart('alternative')
        msg['From'] = self.sender_email
        msg['To'] = recipient
        msg['Subject'] = subject

        if text_body:
            msg.attach(MIMEText(text_body, 'plain', 'utf-8'))
        msg.attach(MIMEText(html_body, 'html', 'utf-8'))

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
                server.starttls()
                server.login(self.sender_email, self.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP error for {recipient}: {e}")
            raise TransportError(recipient, str(e)) from e

        logger.info(f"SMTP email sent to {recipient}")
        return ''


# Global instance, configured by Newsdesk.init_app
email_service = EmailService()
