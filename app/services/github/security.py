import hmac
import hashlib
from typing import Optional

SIGNATURE_PREFIX = "sha256="


def compute_signature(payload_body: bytes, secret_token: str) -> str:
    """Return the ``sha256=<hexdigest>`` signature GitHub would send for ``payload_body``."""
    digest = hmac.new(
        secret_token.encode("utf-8"), msg=payload_body, digestmod=hashlib.sha256
    ).hexdigest()
    return SIGNATURE_PREFIX + digest


def verify_signature(
    payload_body: bytes, secret_token: str, signature_header: Optional[str]
) -> bool:
    """
    Verify that the payload was sent from GitHub by validating the SHA256 signature.

    Args:
        payload_body: raw request body bytes
        secret_token: the webhook secret
        signature_header: the X-Hub-Signature-256 header value

    Returns:
        True if the signature is valid, False otherwise.
    """
    if not signature_header or not signature_header.startswith(SIGNATURE_PREFIX):
        return False

    expected_signature = compute_signature(payload_body, secret_token)
    return hmac.compare_digest(expected_signature, signature_header)
