"""Application environment types.

Environments:
- DEVELOPMENT: Local development, console log renderer, debug tokens exposed
- TESTING: Automated test execution
- CI: Continuous integration
- PRODUCTION: HTTPS enforced, HSTS emitted, secure cookies, no debug tokens
"""

from enum import Enum


class Environment(str, Enum):
    """Application environment types."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    CI = "ci"
    PRODUCTION = "production"
