"""Bcrypt password hashing service (adapter).

Implements PasswordHashingProtocol (structural typing, no inheritance).

Security:
    - Salted, adaptive cost (2^rounds iterations)
    - Verification uses bcrypt.checkpw (constant-time)
    - bcrypt only reads the first 72 bytes of input; longer passwords are
      truncated explicitly so hashing and verifying agree
"""

import bcrypt

BCRYPT_MAX_BYTES = 72


class BcryptPasswordService:
    """Bcrypt password hashing service.

    Usage:
        hasher = BcryptPasswordService(cost_factor=settings.bcrypt_rounds)
        password_hash = hasher.hash_password("Sup3rSecurePass!")
        hasher.verify_password("Sup3rSecurePass!", password_hash)  # True
    """

    def __init__(self, cost_factor: int = 12) -> None:
        """Initialize bcrypt password service.

        Args:
            cost_factor: Bcrypt cost factor (4-31). Each +1 doubles hashing time.
                12 is the production default; tests use 4.

        Raises:
            ValueError: If cost_factor is out of bcrypt's range.
        """
        if not 4 <= cost_factor <= 31:
            msg = "Cost factor must be between 4 and 31"
            raise ValueError(msg)
        self._cost_factor = cost_factor
        self._dummy_hash = bcrypt.hashpw(b"finauth-dummy", bcrypt.gensalt(rounds=cost_factor))

    @staticmethod
    def _encode(password: str) -> bytes:
        return password.encode("utf-8")[:BCRYPT_MAX_BYTES]

    def hash_password(self, password: str) -> str:
        """Hash a plaintext password using bcrypt.

        Args:
            password: Plaintext password to hash.

        Returns:
            Hashed password string (bcrypt format: $2b$<cost>$...), 60 characters.
        """
        salt = bcrypt.gensalt(rounds=self._cost_factor)
        password_hash = bcrypt.hashpw(self._encode(password), salt)
        return password_hash.decode("utf-8")

    def verify_password(self, password: str, password_hash: str) -> bool:
        """Verify a plaintext password against a bcrypt hash.

        Args:
            password: Plaintext password to verify.
            password_hash: Stored bcrypt hash.

        Returns:
            True if password matches, False on mismatch or malformed hash.
        """
        try:
            return bcrypt.checkpw(self._encode(password), password_hash.encode("utf-8"))
        except ValueError:
            # Invalid hash format
            return False

    def verify_dummy(self, password: str) -> bool:
        """Spend one verification on a throwaway hash.

        Called when the email is unknown so that response time does not reveal
        whether an account exists. Always returns False.
        """
        bcrypt.checkpw(self._encode(password), self._dummy_hash)
        return False
