"""Finance Manager authentication and session security core."""

__version__ = "0.1.0"
