"""FastAPI dependencies for trigger authentication."""

from app.deps.security import compute_signature, require_qstash_signature

__all__ = ["compute_signature", "require_qstash_signature"]
