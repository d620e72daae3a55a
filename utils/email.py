import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from utils.logger import get_logger
from settings.config import settings

logger = get_logger("Email_Service")

def _send(to_email: str, subject: str, body: str):
    if not settings.SMTP_HOST:
        logger.info(f"SMTP not configured, skipping mail '{subject}' to {to_email}")
        return False
    try:
        msg = MIMEMultipart()
        msg["From"] = settings.FROM_EMAIL
        msg["To"] = to_email
        msg["Subject"] = subject
        msg.attach(MIMEText(body, "plain"))

        server = smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT)
        server.starttls()
        if settings.SMTP_USER:
            server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
        server.sendmail(settings.FROM_EMAIL, to_email, msg.as_string())
        server.quit()

        logger.info("Mail sent", extra={"email": to_email, "subject": subject})
        return True
    except Exception as e:
        # mail failures never fail the request that triggered them
        logger.error("Failed to send mail", exc_info=e)
        return False

def send_verification_email(to_email: str, first_name: str, code: str):
    """
    Sends the e-mail verification code
    """
    body = f"""
    Hi {first_name},

    Welcome to aQRo! Your verification code is:

    {code}

    This code will expire in {settings.VERIFICATION_CODE_EXPIRE_MINUTES} minutes.

    If you did not sign up, ignore this email.
    """
    return _send(to_email, "Verify your aQRo account", body)

def send_password_reset_email(to_email: str, first_name: str, code: str):
    body = f"""
    Hi {first_name},

    Use the code below to reset your aQRo password:

    {code}

    This code will expire in {settings.VERIFICATION_CODE_EXPIRE_MINUTES} minutes.
    """
    return _send(to_email, "Reset your aQRo password", body)
