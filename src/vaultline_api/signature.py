from __future__ import annotations
import base64
import hashlib
import hmac


def sign_body(body: bytes, channel_secret: str) -> str:
    """Base64 HMAC-SHA256 of the raw body, as LINE sends in x-line-signature."""
    mac = hmac.new(channel_secret.encode("utf-8"), body, hashlib.sha256).digest()
    return base64.b64encode(mac).decode("ascii")


def verify_signature(body: bytes, signature: str, channel_secret: str) -> bool:
    if not channel_secret or not signature:
        return False
    return hmac.compare_digest(sign_body(body, channel_secret), signature)
