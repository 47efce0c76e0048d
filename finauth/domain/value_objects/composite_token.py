"""Composite opaque token value object.

Refresh tokens travel as ``{lookup_id}.{secret}``. The lookup id is the
repository key; only a hash of the secret is ever stored. All splitting and
joining of the wire value goes through this type.
"""

from dataclasses import dataclass, field

SEPARATOR = "."


@dataclass(frozen=True, slots=True, kw_only=True)
class CompositeToken:
    """Parsed ``{lookup_id}.{secret}`` token.

    Attributes:
        lookup_id: Repository lookup key (first segment).
        secret: Secret segment, verified against the stored hash.

    Example:
        >>> token = CompositeToken.parse("0190f1c2-7d3e-7c1a-9b7e-2f4d8e1a6c7a.c2VjcmV0")
        >>> token.lookup_id
        '0190f1c2-7d3e-7c1a-9b7e-2f4d8e1a6c7a'
        >>> token.format()
        '0190f1c2-7d3e-7c1a-9b7e-2f4d8e1a6c7a.c2VjcmV0'
    """

    lookup_id: str
    secret: str = field(repr=False)

    def __post_init__(self) -> None:
        if not self.lookup_id or not self.secret:
            raise ValueError("Composite token segments must be non-empty")
        if SEPARATOR in self.lookup_id or SEPARATOR in self.secret:
            raise ValueError("Composite token segments must not contain '.'")

    @classmethod
    def parse(cls, raw: str | None) -> "CompositeToken | None":
        """Parse a wire value.

        Args:
            raw: Token as presented by the client.

        Returns:
            CompositeToken, or None if the value is not exactly two non-empty
            segments.
        """
        if not raw:
            return None
        segments = raw.strip().split(SEPARATOR)
        if len(segments) != 2 or not segments[0] or not segments[1]:
            return None
        return cls(lookup_id=segments[0], secret=segments[1])

    def format(self) -> str:
        """Render the wire value."""
        return f"{self.lookup_id}{SEPARATOR}{self.secret}"

    def __str__(self) -> str:
        # Keep secrets out of logs and reprs that end up in tracebacks.
        return f"{self.lookup_id}{SEPARATOR}***"
