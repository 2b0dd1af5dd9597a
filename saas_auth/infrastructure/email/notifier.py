"""
Notificaciones de cuenta por correo (SMTP): por ahora solo el link de reseteo.

Sin SMTP configurado solo se deja registro del evento. Nunca se loguea el
token ni el link completo.
"""
import logging
import smtplib
from email.message import EmailMessage

from saas_auth.core.config import settings

_log = logging.getLogger("saas_auth.notifier")


def smtp_configured() -> bool:
    return bool(settings.smtp_host and settings.smtp_user and settings.smtp_pass)


def send_email(to_email: str, subject: str, html_body: str, text_body: str | None = None) -> None:
    if not smtp_configured():
        raise RuntimeError("SMTP no configurado. Define SMTP_HOST/SMTP_USER/SMTP_PASS en .env")

    msg = EmailMessage()
    msg["From"] = f"{settings.smtp_from_name} <{settings.smtp_from_email or settings.smtp_user}>"
    msg["To"] = to_email
    msg["Subject"] = subject
    if text_body:
        msg.set_content(text_body)
    msg.add_alternative(html_body, subtype="html")

    # STARTTLS (587) por defecto; SSL directo (465) si smtp_use_tls es False
    if settings.smtp_use_tls:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port) as server:
            server.starttls()
            server.login(settings.smtp_user, settings.smtp_pass)
            server.send_message(msg)
    else:
        with smtplib.SMTP_SSL(settings.smtp_host, settings.smtp_port) as server:
            server.login(settings.smtp_user, settings.smtp_pass)
            server.send_message(msg)


def send_password_reset(email: str, reset_url: str, expires_in_minutes: int) -> None:
    """Envía el link de reseteo. Bloqueante: llamar desde un threadpool."""
    if not smtp_configured():
        _log.info(
            "Reset de contraseña solicitado (SMTP no configurado) email=%s link_len=%s expira_en_min=%s",
            email,
            len(reset_url),
            expires_in_minutes,
        )
        return

    subject = "Restablece tu contraseña"
    text = (
        f"Recibimos una solicitud para restablecer tu contraseña.\n\n"
        f"Abre este enlace (expira en {expires_in_minutes} minutos):\n{reset_url}\n\n"
        "Si no fuiste tú, ignora este correo."
    )
    html = (
        "<p>Recibimos una solicitud para restablecer tu contraseña.</p>"
        f'<p><a href="{reset_url}">Restablecer contraseña</a></p>'
        f"<p>El enlace expira en {expires_in_minutes} minutos. Si no fuiste tú, ignora este correo.</p>"
    )
    send_email(email, subject, html, text)
    _log.info("Correo de reseteo enviado email=%s", email)
