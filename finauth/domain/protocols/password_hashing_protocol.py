"""Password hashing protocol for domain layer.

Architecture:
    - Domain defines protocol (port)
    - Infrastructure implements adapter (BcryptPasswordService)
"""

from typing import Protocol


class PasswordHashingProtocol(Protocol):
    """Password hashing and verification interface.

    Usage:
        password_hash = hasher.hash_password("Sup3rSecurePass!")
        hasher.verify_password("Sup3rSecurePass!", password_hash)  # True
    """

    def hash_password(self, password: str) -> str:
        """Hash a plaintext password.

        Args:
            password: Plaintext password to hash.

        Returns:
            Salted one-way hash.
        """
        ...

    def verify_password(self, password: str, password_hash: str) -> bool:
        """Verify a plaintext password against a hash.

        Args:
            password: Plaintext password to verify.
            password_hash: Stored hash.

        Returns:
            True if password matches hash. False on mismatch or malformed
            hash; never raises.
        """
        ...

    def verify_dummy(self, password: str) -> bool:
        """Run a verification against a throwaway hash and return False.

        Used for unknown accounts so that login timing matches a wrong password.
        """
        ...
