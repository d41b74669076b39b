"""Ed25519 request signature checks for the interactions endpoint."""

from __future__ import annotations

import logging
from typing import Final

from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey

log: Final = logging.getLogger("gatebot")

SIGNATURE_HEADER: Final[str] = "X-Signature-Ed25519"
TIMESTAMP_HEADER: Final[str] = "X-Signature-Timestamp"


class SignatureVerifier:
    def __init__(self, public_key: str) -> None:
        try:
            self._key = VerifyKey(bytes.fromhex(public_key))
        except ValueError as exc:
            raise RuntimeError("PUBLIC_KEY must be a hex-encoded Ed25519 key") from exc

    def verify(self, signature: str | None, timestamp: str | None, body: bytes) -> bool:
        """Return True when ``signature`` signs ``timestamp + body``."""
        if not signature or not timestamp:
            return False
        try:
            self._key.verify(timestamp.encode() + body, bytes.fromhex(signature))
        except (BadSignatureError, ValueError) as exc:
            log.warning("Signature verification failed: %s", exc)
            return False
        return True
