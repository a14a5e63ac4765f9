import smtplib
from email.message import EmailMessage

import structlog
from flask import current_app

log = structlog.getLogger()


def send_email(to_email: str, subject: str, body: str):
    host = current_app.config.get("SMTP_HOST")
    port = current_app.config.get("SMTP_PORT", 587)
    username = current_app.config.get("SMTP_USERNAME")
    password = current_app.config.get("SMTP_PASSWORD")
    from_email = current_app.config.get("SMTP_FROM_EMAIL") or username
    use_tls = current_app.config.get("SMTP_USE_TLS", True)

    if not host or not from_email:
        log.warning("email_not_configured", to=to_email, subject=subject)
        return False, "Email not configured"

    msg = EmailMessage()
    msg["From"] = from_email
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(body)

    try:
        with smtplib.SMTP(host, port, timeout=10) as server:
            if use_tls:
                server.starttls()
            if username and password:
                server.login(username, password)
            server.send_message(msg)
        return True, None
    except (smtplib.SMTPException, OSError) as exc:
        log.error("email_send_failed", to=to_email, error=str(exc))
        return False, str(exc)


def send_otp_email(to_email: str, code: str, purpose: str = "login"):
    minutes = int(current_app.config.get("OTP_TTL_SECONDS", 300)) // 60
    subject = "Your password reset code" if purpose == "password_reset" else "Your login code"
    body = (
        f"Your one-time code is {code}.\n\n"
        f"It expires in {minutes} minutes. If you did not request it, ignore this email."
    )
    return send_email(to_email, subject, body)
