"""
Envío de correos (SMTP).
"""

from __future__ import annotations

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Protocol

from .config import get_settings

logger = logging.getLogger(__name__)

SENDER = '"Escalando Fronteras" <no-reply@climbingborders.org>'


class Mailer(Protocol):
    def send(self, to: str, subject: str, html: str) -> None:
        ...


class SmtpMailer:
    """
    Envía HTML por SMTP con STARTTLS opcional.

    Los errores de SMTP se propagan: quien llama decide si el flujo
    debe fallar o continuar.
    """

    def __init__(self, host: str, port: int = 587, user: str = "", password: str = ""):
        self.host = host
        self.port = port
        self.user = user
        self.password = password

    def send(self, to: str, subject: str, html: str) -> None:
        if not self.host:
            raise RuntimeError("SMTP_HOST no está configurado en el .env")

        msg = MIMEMultipart("alternative")
        msg["From"] = SENDER
        msg["To"] = to
        msg["Subject"] = subject
        msg.attach(MIMEText(html, "html", "utf-8"))

        with smtplib.SMTP(self.host, self.port, timeout=30) as server:
            server.ehlo()
            if server.has_extn("starttls"):
                server.starttls()
                server.ehlo()
            if self.user:
                server.login(self.user, self.password)
            server.sendmail(SENDER, [to], msg.as_string())
        logger.info(f"Email enviado a {to}: {subject}")


def get_mailer() -> Mailer:
    settings = get_settings()
    return SmtpMailer(
        host=settings.smtp_host,
        port=settings.smtp_port,
        user=settings.smtp_user,
        password=settings.smtp_pass,
    )
