import hashlib
import hmac

from .exceptions import SignatureError

SIGNATURE_PREFIX = "sha256="


def compute_signature(secret: str, body: bytes) -> str:
    """Return the ``X-Hub-Signature-256`` value GitHub sends for ``body``."""
    mac = hmac.new(secret.encode("utf-8"), msg=body, digestmod=hashlib.sha256)
    return SIGNATURE_PREFIX + mac.hexdigest()


def verify_signature(secret: str, body: bytes, signature: str | None) -> None:
    """Raise SignatureError unless ``signature`` authenticates ``body``.

    Compared as bytes with ``hmac.compare_digest``; non-ASCII header values
    are rejected rather than raising TypeError.
    """
    if not signature:
        raise SignatureError("missing signature")
    expected = compute_signature(secret, body)
    if not hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8")):
        raise SignatureError("invalid signature")
