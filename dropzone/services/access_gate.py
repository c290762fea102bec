import hmac
import re
from typing import Optional

_NON_DIGITS = re.compile(r'\D')


def parse_secret(raw: Optional[str], min_length: int = 4, max_length: int = 10) -> Optional[str]:
    """Return the digits of ``raw`` when their count is within bounds, else None.

    Anything outside the bounds disables the gate.
    """
    if not raw:
        return None
    digits = _NON_DIGITS.sub('', raw)
    if min_length <= len(digits) <= max_length:
        return digits
    return None


class AccessGate:
    """Optional shared-secret check protecting upload-mutating operations."""

    def __init__(self, secret: Optional[str] = None):
        self._secret = secret or None

    @classmethod
    def from_config(cls, app_config) -> 'AccessGate':
        return cls(parse_secret(
            app_config.get('UPLOAD_SECRET'),
            app_config.get('SECRET_MIN_LENGTH', 4),
            app_config.get('SECRET_MAX_LENGTH', 10),
        ))

    def challenge_required(self) -> bool:
        return self._secret is not None

    @property
    def secret_length(self) -> int:
        return len(self._secret) if self._secret else 0

    def verify(self, candidate: Optional[str]) -> bool:
        if self._secret is None:
            return True
        expected = self._secret.encode('utf-8')
        given = (candidate or '').encode('utf-8')
        # Pad short candidates so the digest comparison always spans the secret.
        padded = given.ljust(len(expected), b'\0')
        same_digest = hmac.compare_digest(padded[:len(expected)], expected)
        same_length = hmac.compare_digest(str(len(given)), str(len(expected)))
        return same_digest & same_length
