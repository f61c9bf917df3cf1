"""
============================================================
TARJETA CRC — infrastructure/services/smtp_notifier.py
============================================================
Class: SmtpNotificationChannel

Responsibilities:
  - Implementar NotificationChannel enviando email por SMTP (STARTTLS).
  - Correr smtplib (bloqueante) en un thread.

Collaborators:
  - smtplib / email.mime
  - crosscutting.exceptions.NotificationError

Constraints:
  - Cualquier fallo de entrega -> NotificationError (el llamador decide).
  - Nunca loguea el cuerpo del mensaje (contiene códigos de un solo uso).
============================================================
"""

from __future__ import annotations

import asyncio
import smtplib
from email.mime.text import MIMEText

from ...crosscutting.exceptions import NotificationError
from ...crosscutting.logger import logger


class SmtpNotificationChannel:
    def __init__(
        self,
        *,
        host: str,
        port: int,
        username: str,
        password: str,
        sender: str,
        use_tls: bool = True,
        timeout_s: float = 10.0,
    ) -> None:
        if not host:
            raise ValueError("SMTP_HOST is required")
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._sender = sender
        self._use_tls = use_tls
        self._timeout_s = timeout_s

    def _send_sync(self, recipient: str, subject: str, body: str) -> None:
        msg = MIMEText(body, "plain", "utf-8")
        msg["Subject"] = subject
        msg["From"] = self._sender
        msg["To"] = recipient
        with smtplib.SMTP(self._host, self._port, timeout=self._timeout_s) as server:
            if self._use_tls:
                server.starttls()
            if self._username:
                server.login(self._username, self._password)
            server.sendmail(self._sender, [recipient], msg.as_string())

    async def send(self, recipient: str, subject: str, body: str) -> None:
        try:
            await asyncio.to_thread(self._send_sync, recipient, subject, body)
        except Exception as exc:
            logger.exception(
                "SMTP send failed",
                extra={"recipient": recipient, "subject": subject, "error": str(exc)},
            )
            raise NotificationError("email delivery failed", original_error=exc) from exc
        logger.info("Email enviado", extra={"recipient": recipient, "subject": subject})
