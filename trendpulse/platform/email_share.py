"""
E-mail share target.

This module provides the EmailShareTarget class which shares a news item by
rendering it as a small HTML message and sending it via SMTP.
"""

import html
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from trendpulse.models import SharePayload
from trendpulse.platform.base import ShareError

logger = logging.getLogger(__name__)


class EmailShareTarget:
    """Shares news items by e-mail."""

    _EMAIL_STYLES = {
        "body": "font-family: 'Segoe UI', sans-serif; color: #333; line-height: 1.6;",
        "container": "max-width: 600px; margin: 0 auto; border: 1px solid #e0e0e0; border-radius: 8px;",
        "header": "background-color: #4f46e5; padding: 20px; text-align: center; color: white;",
        "header_h2": "margin:0;",
        "section": "padding: 20px;",
        "article_h3": "margin: 5px 0; font-size: 18px;",
        "link": "text-decoration: none; color: #0078D4;",
        "desc": "font-size: 14px; color: #444; margin-top: 5px;",
    }

    def __init__(
        self,
        smtp_server: str,
        smtp_port: int,
        sender_email: str,
        sender_password: str,
        recipient: str,
    ):
        self.smtp_server = smtp_server
        self.smtp_port = smtp_port
        self.sender_email = sender_email
        self.sender_password = sender_password
        self.recipient = recipient

    def generate_html(self, payload: SharePayload) -> str:
        """Generates the HTML body for a shared item."""
        title = html.escape(payload["title"])
        text = html.escape(payload["text"])
        url = html.escape(payload["url"], quote=True)
        return f"""
        <html>
        <body style="{self._EMAIL_STYLES['body']}">
            <div style="{self._EMAIL_STYLES['container']}">
                <div style="{self._EMAIL_STYLES['header']}">
                    <h2 style="{self._EMAIL_STYLES['header_h2']}">TrendPulse</h2>
                </div>
                <div style="{self._EMAIL_STYLES['section']}">
                    <h3 style="{self._EMAIL_STYLES['article_h3']}">
                        <a href="{url}" style="{self._EMAIL_STYLES['link']}">{title}</a>
                    </h3>
                    <p style="{self._EMAIL_STYLES['desc']}">{text}</p>
                </div>
            </div>
        </body>
        </html>
        """

    def share(self, payload: SharePayload) -> None:
        """Sends the item; raises ShareError so the caller can fall back."""
        msg = MIMEMultipart()
        msg["From"] = self.sender_email
        msg["To"] = self.recipient
        msg["Subject"] = payload["title"]
        msg.attach(MIMEText(self.generate_html(payload), "html"))

        try:
            with smtplib.SMTP(self.smtp_server, self.smtp_port) as server:
                server.starttls()
                server.login(self.sender_email, self.sender_password)
                server.send_message(msg)
            logger.info("Shared %r by e-mail.", payload["title"])
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Email share failed: %s", e)
            raise ShareError(str(e)) from e
