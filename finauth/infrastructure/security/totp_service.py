"""Two-factor code service (RFC 6238 TOTP + backup codes).

TOTP parameters are configurable (digits, time step, accepted drift) and
default to the values every mainstream authenticator app supports:
SHA-1, 6 digits, 30 second step, one step of drift either side.

Backup codes are 10 characters from an unambiguous alphabet, shown as
``xxxxx-xxxxx``. Only their SHA-256 digests are stored.
"""

import secrets
from dataclasses import dataclass
from datetime import datetime

import pyotp

from finauth.infrastructure.security.opaque_token import hash_opaque_token

BACKUP_CODE_ALPHABET = "abcdefghjkmnpqrstuvwxyz23456789"
BACKUP_CODE_LENGTH = 10


@dataclass(frozen=True, slots=True, kw_only=True)
class TotpEnrollment:
    """Secret and provisioning URI for a new authenticator."""

    secret: str
    provisioning_uri: str


class TotpService:
    """TOTP verification and backup code handling.

    Usage:
        totp = TotpService(issuer="Finance Manager")
        enrollment = totp.create_enrollment("casey@example.com")
        totp.verify_code(enrollment.secret, "492039")
    """

    def __init__(
        self,
        issuer: str,
        digits: int = 6,
        interval_seconds: int = 30,
        valid_window: int = 1,
    ) -> None:
        self._issuer = issuer
        self._digits = digits
        self._interval = interval_seconds
        self._valid_window = valid_window

    @property
    def digits(self) -> int:
        return self._digits

    def _totp(self, secret: str) -> pyotp.TOTP:
        return pyotp.TOTP(secret, digits=self._digits, interval=self._interval)

    def create_enrollment(self, account_name: str) -> TotpEnrollment:
        """Generate a fresh base32 secret and its otpauth:// URI."""
        secret = pyotp.random_base32()
        uri = self._totp(secret).provisioning_uri(name=account_name, issuer_name=self._issuer)
        return TotpEnrollment(secret=secret, provisioning_uri=uri)

    def is_well_formed(self, code: str) -> bool:
        """Digits only, configured length, and not the all-zero sentinel.

        An all-zero code is a placeholder some clients submit before the user
        types anything. It is refused even in the 1 in 10^digits case where
        it happens to match the current step.
        """
        if len(code) != self._digits or not code.isdigit():
            return False
        return code != "0" * self._digits

    def verify_code(self, secret: str, code: str, for_time: datetime | None = None) -> bool:
        """Check a TOTP code within the accepted drift window.

        Args:
            secret: Base32 secret stored for the user.
            code: Submitted code.
            for_time: Verification time (defaults to now).

        Returns:
            True if the code is well formed and matches a step in the window.
        """
        code = code.strip()
        if not self.is_well_formed(code):
            return False
        return self._totp(secret).verify(
            code,
            for_time=for_time,
            valid_window=self._valid_window,
        )

    def current_code(self, secret: str, for_time: datetime | None = None) -> str:
        """Code for the given time. Used by tests and enrollment previews."""
        totp = self._totp(secret)
        return totp.at(for_time) if for_time is not None else totp.now()

    @staticmethod
    def generate_backup_codes(count: int) -> list[str]:
        """Plaintext backup codes, shown to the user exactly once."""
        codes = []
        for _ in range(count):
            raw = "".join(secrets.choice(BACKUP_CODE_ALPHABET) for _ in range(BACKUP_CODE_LENGTH))
            codes.append(f"{raw[:5]}-{raw[5:]}")
        return codes

    @staticmethod
    def normalize_backup_code(code: str) -> str:
        """Lower-case and strip separators so ``K7Q2M X9PAB`` matches ``k7q2m-x9pab``."""
        return "".join(ch for ch in code.lower() if ch.isalnum())

    @classmethod
    def hash_backup_code(cls, code: str) -> str:
        return hash_opaque_token(cls.normalize_backup_code(code))
