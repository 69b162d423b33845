import hashlib
import hmac

SIGNATURE_HEADER = "x-openphone-signature"
SIGNATURE_PREFIX = "sha256="


def _as_bytes(payload: bytes | str) -> bytes:
    if isinstance(payload, str):
        return payload.encode("utf-8")
    return payload


def sign(payload: bytes | str, secret: str) -> str:
    """Return the ``sha256=<hex>`` signature OpenPhone sends for *payload*."""
    digest = hmac.new(secret.encode("utf-8"), _as_bytes(payload), hashlib.sha256)
    return f"{SIGNATURE_PREFIX}{digest.hexdigest()}"


def verify(payload: bytes | str, provided_signature: str | None, secret: str | None) -> bool:
    """
    Check *provided_signature* against HMAC-SHA256(secret, payload).

    An empty secret disables verification. The comparison runs in constant
    time; malformed signatures are reported as a mismatch, never raised.
    """
    if not secret:
        return True
    if not provided_signature:
        return False

    expected = sign(payload, secret)[len(SIGNATURE_PREFIX):]

    provided = provided_signature.strip()
    if provided.startswith(SIGNATURE_PREFIX):
        provided = provided[len(SIGNATURE_PREFIX):]

    return hmac.compare_digest(
        expected.encode("ascii"),
        provided.encode("utf-8"),
    )
