import smtplib
from email.message import EmailMessage
from typing import Optional
from exam_backend.config import settings
from exam_backend.errors import TransportError


def _send(to: str, subject: str, text: str, html: Optional[str] = None) -> None:
    msg = EmailMessage()
    msg["From"] = settings.EMAIL_FROM
    msg["To"] = to
    msg["Subject"] = subject
    msg.set_content(text)
    if html:
        msg.add_alternative(html, subtype="html")

    # Port 465 is implicit TLS, anything else upgrades with STARTTLS when credentials are set
    if settings.EMAIL_PORT == 465:
        smtp = smtplib.SMTP_SSL(settings.EMAIL_HOST, settings.EMAIL_PORT, timeout=30)
    else:
        smtp = smtplib.SMTP(settings.EMAIL_HOST, settings.EMAIL_PORT, timeout=30)

    with smtp:
        if settings.EMAIL_PORT != 465 and settings.EMAIL_USER:
            smtp.starttls()
        if settings.EMAIL_USER:
            smtp.login(settings.EMAIL_USER, settings.EMAIL_PASS)
        smtp.send_message(msg)


def send_otp_email(to: str, otp: str) -> None:
    try:
        _send(
            to,
            subject="Your registration verification code",
            text=f"Your OTP code is: {otp}. It is valid for 10 minutes.",
            html=f"<p>Your OTP code is: <strong>{otp}</strong>. It is valid for 10 minutes.</p>"
        )
    except (smtplib.SMTPException, OSError) as e:
        print(f"❌ Error sending OTP email to {to}: {e}")
        raise TransportError("Could not send the OTP email. Please try again later.")
    print(f"✅ OTP email sent to {to}")


def send_certificate_email(to: str, subject: str, html: str) -> None:
    try:
        _send(
            to,
            subject=subject or "Certificate of completion",
            text="You have completed the course. Please view your certificate in this email.",
            html=html
        )
    except (smtplib.SMTPException, OSError) as e:
        print(f"❌ Error sending certificate email to {to}: {e}")
        raise TransportError("Could not send the certificate email. Please try again later.")
    print(f"✅ Certificate email sent to {to}")
