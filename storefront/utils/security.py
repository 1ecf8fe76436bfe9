# storefront/utils/security.py
import hashlib
import hmac
import time
from typing import Optional
from ..config import Config

def _sign(message: str, secret: str) -> str:
    return hmac.new(
        secret.encode(),
        message.encode(),
        hashlib.sha256
    ).hexdigest()

def generate_download_token(purchase_id: str, timestamp: Optional[int] = None,
                            secret: Optional[str] = None) -> str:
    """Signed token granting download access for a purchase"""
    if timestamp is None:
        timestamp = int(time.time())
    message = f"{purchase_id}:{timestamp}"
    signature = _sign(message, secret or Config.SECRET_KEY)

    return f"{message}:{signature}"

def verify_download_token(token: str, max_age: Optional[int] = None,
                          secret: Optional[str] = None) -> Optional[str]:
    """Return the purchase id of a valid token, None otherwise"""
    try:
        message, signature = token.rsplit(':', 1)
        purchase_id, timestamp = message.rsplit(':', 1)
        issued_at = int(timestamp)
    except (AttributeError, ValueError):
        return None

    expected_signature = _sign(message, secret or Config.SECRET_KEY)
    if not hmac.compare_digest(signature, expected_signature):
        return None

    if max_age is None:
        max_age = Config.DOWNLOAD_TOKEN_TTL
    if int(time.time()) - issued_at > max_age:
        return None

    return purchase_id
