"""Transactional email for the contact form and newsletter signups."""

import os
import html
import smtplib
import logging
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional

from src.shared.contact.schemas import ContactRequest
from src.shared.newsletter.schemas import NewsletterRequest


class EmailDeliveryError(Exception):
    """Raised when a message could not be handed to the mail server."""


class EmailService:
    """
    Builds and delivers site emails.

    Configuration comes from environment variables unless passed explicitly:
    EMAIL_BACKEND ('smtp' or 'console'), SMTP_HOST, SMTP_PORT, SMTP_USER,
    SMTP_PASSWORD, SMTP_TIMEOUT_SECONDS, EMAIL_FROM, CONTACT_EMAIL, SITE_NAME.
    """

    def __init__(
        self,
        backend: Optional[str] = None,
        smtp_host: Optional[str] = None,
        smtp_port: Optional[int] = None,
        smtp_user: Optional[str] = None,
        smtp_password: Optional[str] = None,
        timeout: Optional[float] = None,
        sender: Optional[str] = None,
        contact_email: Optional[str] = None,
        site_name: Optional[str] = None,
    ):
        self.backend = backend or os.environ.get("EMAIL_BACKEND", "smtp")
        if self.backend not in ("smtp", "console"):
            raise ValueError(f"Unknown email backend: {self.backend}")
        self.smtp_host = smtp_host or os.environ.get("SMTP_HOST", "smtp.gmail.com")
        self.smtp_port = smtp_port or int(os.environ.get("SMTP_PORT", "587"))
        self.smtp_user = smtp_user or os.environ.get("SMTP_USER")
        self.smtp_password = smtp_password or os.environ.get("SMTP_PASSWORD")
        self.timeout = timeout or float(os.environ.get("SMTP_TIMEOUT_SECONDS", "10"))
        self.sender = sender or os.environ.get("EMAIL_FROM") or self.smtp_user or "donotreply@johnciresi.com"
        self.contact_email = contact_email or os.environ.get("CONTACT_EMAIL", "contact@johnciresi.com")
        self.site_name = site_name or os.environ.get("SITE_NAME", "John Ciresi")

    def send_contact_email(self, submission: ContactRequest) -> None:
        """Notify the site owner of a contact submission and confirm receipt to the sender."""
        # Submitted fields arrive HTML-escaped; plain text and headers use the original characters
        name = html.unescape(submission.name)
        message = html.unescape(submission.message)
        subject = html.unescape(submission.subject) if submission.subject else "New message"

        notification = self._build_message(
            to=self.contact_email,
            subject=f"Contact Form: {subject}",
            text_body=f"""
New contact form submission from {self.site_name} website:

Name: {name}
Email: {submission.email}
Subject: {subject}

Message:
{message}

---
Reply directly to this email to respond to {name} ({submission.email}).
""",
            html_body=f"""
<p><strong>Name:</strong> {submission.name}<br>
<strong>Email:</strong> {submission.email}<br>
<strong>Subject:</strong> {html.escape(subject)}</p>
<p style="white-space: pre-wrap;">{submission.message}</p>
""",
            reply_to=submission.email,
        )

        confirmation = self._build_message(
            to=submission.email,
            subject=f"Thanks for reaching out to {self.site_name}",
            text_body=f"""
Hi {name},

Thanks for your message. It has been received and you'll get a reply soon.

Your message:
{message}

Best regards,
{self.site_name}
""",
            html_body=f"""
<p>Hi {submission.name},</p>
<p>Thanks for your message. It has been received and you'll get a reply soon.</p>
<blockquote style="white-space: pre-wrap;">{submission.message}</blockquote>
<p>Best regards,<br>{self.site_name}</p>
""",
        )

        self._deliver(notification)
        self._deliver(confirmation)
        logging.info(f"Contact form email sent successfully from {submission.email}")

    def send_newsletter_welcome(self, subscription: NewsletterRequest) -> None:
        """Send the welcome message to a new subscriber."""
        name = html.unescape(subscription.name) if subscription.name else None
        greeting = f"Hi {name}," if name else "Hi there,"
        message = self._build_message(
            to=subscription.email,
            subject=f"Welcome to the {self.site_name} newsletter",
            text_body=f"""
{greeting}

Thanks for subscribing! You'll be the first to hear about new music, shows and updates.

If you didn't sign up, you can safely ignore this email.

Best regards,
{self.site_name}
""",
            html_body=f"""
<p>{html.escape(greeting)}</p>
<p>Thanks for subscribing! You'll be the first to hear about new music, shows and updates.</p>
<p style="font-size: 12px; color: #9ca3af;">If you didn't sign up, you can safely ignore this email.</p>
<p>Best regards,<br>{self.site_name}</p>
""",
        )
        self._deliver(message)
        logging.info(f"Newsletter welcome email sent successfully to {subscription.email}")

    def _build_message(self, to: str, subject: str, text_body: str, html_body: str,
                       reply_to: Optional[str] = None) -> MIMEMultipart:
        msg = MIMEMultipart('alternative')
        msg['From'] = self.sender
        msg['To'] = to
        msg['Subject'] = subject
        if reply_to:
            msg['Reply-To'] = reply_to
        msg.attach(MIMEText(text_body, 'plain'))
        msg.attach(MIMEText(html_body, 'html'))
        return msg

    def _deliver(self, msg: MIMEMultipart) -> None:
        if self.backend == "console":
            logging.info(f"Email (console backend) to {msg['To']}: {msg['Subject']}")
            return

        if not self.smtp_user or not self.smtp_password:
            raise EmailDeliveryError("SMTP credentials not configured")

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as server:
                server.starttls()  # Enable encryption
                server.login(self.smtp_user, self.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise EmailDeliveryError(f"Failed to send email to {msg['To']}: {str(e)}") from e
