"""
Internal API key used by administrative callers (back office, other services).

Falls back to an insecure default with a loud warning so local development
works without a .env file, while production misconfiguration stays visible.
"""
import secrets
import warnings

from shared.config import settings

INTERNAL_API_KEY: str = settings.INTERNAL_API_KEY

if not INTERNAL_API_KEY:
    warnings.warn(
        "INTERNAL_API_KEY is not set. Using an insecure default. "
        "Set this env var in production!",
        stacklevel=2,
    )
    INTERNAL_API_KEY = "insecure-default-change-me"


def verify_api_key(provided_key: str) -> bool:
    """Verify an API key using constant-time comparison."""
    if not provided_key:
        return False
    return secrets.compare_digest(str(provided_key), str(INTERNAL_API_KEY))
