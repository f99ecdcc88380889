"""Security dependencies for FastAPI routes.

Provides:
- Upstash QStash request signing verification for the cron trigger
  (HMAC-SHA256 over the raw body, base64, constant-time compare)
"""

import base64
import hashlib
import hmac

import structlog
from fastapi import HTTPException, Request, status

from app.config import get_settings

logger = structlog.get_logger(__name__)

SIGNATURE_HEADER = "Upstash-Signature"


def compute_signature(signing_key: str, body: bytes) -> str:
    """base64(HMAC-SHA256(signing_key, body))."""
    digest = hmac.new(signing_key.encode(), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


def verify_signature(signature: str, body: bytes, signing_keys: list[str]) -> bool:
    """Check a signature against every configured key (current, next)."""
    if not signature:
        return False
    return any(
        hmac.compare_digest(signature.encode(), compute_signature(key, body).encode())
        for key in signing_keys
    )


async def require_qstash_signature(request: Request) -> bool:
    """
    Require a valid QStash signature on the trigger request.

    Security guarantees:
    - Uses hmac.compare_digest() for constant-time comparison
    - Accepts the current or next signing key (key rotation)
    - Unsigned calls only when no key is configured AND CRON_ALLOW_UNSIGNED=true

    Usage:
        @router.post("/cron/process-queue")
        async def process(..., _: bool = Depends(require_qstash_signature)):
            ...
    """
    settings = get_settings()
    keys = settings.signing_keys

    if not keys:
        if settings.cron_allow_unsigned:
            logger.warning("cron_unsigned_request_allowed", path=request.url.path)
            return True
        logger.warning("cron_signing_key_missing", path=request.url.path)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: signing key not configured",
        )

    body = await request.body()
    signature = request.headers.get(SIGNATURE_HEADER, "")
    if not verify_signature(signature, body, keys):
        logger.warning(
            "cron_invalid_signature",
            path=request.url.path,
            client=request.client.host if request.client else "unknown",
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: Invalid signature",
        )

    return True
