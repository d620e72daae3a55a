import secrets
import uuid
from datetime import datetime, timedelta
from settings.config import settings

def generate_code() -> str:
    """
    Six digit code for e-mail verification and password reset.
    """
    return f"{secrets.randbelow(900000) + 100000}"

def code_expiry() -> datetime:
    return datetime.utcnow() + timedelta(minutes=settings.VERIFICATION_CODE_EXPIRE_MINUTES)

def generate_qr_code() -> str:
    return f"AQRO-{uuid.uuid4().hex[:24].upper()}"
