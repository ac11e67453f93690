"""
Boundary security for the order services.

Shoppers authenticate with a bearer token (get_current_user); back-office
callers present the internal API key (verify_internal_api_key).
"""
from .jwt_handler import verify_access_token
from .dependencies import get_current_user, verify_internal_api_key
from .rate_limiter import limiter, user_id_or_ip

__all__ = [
    "verify_access_token",
    "get_current_user",
    "verify_internal_api_key",
    "limiter",
    "user_id_or_ip",
]
