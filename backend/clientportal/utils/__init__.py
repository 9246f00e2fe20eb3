from clientportal.utils.email_validation import normalize_email
from clientportal.utils.security import (
    create_access_token,
    decode_token,
    generate_portal_token,
    sign_value,
    unsign_value,
)

__all__ = [
    "create_access_token",
    "decode_token",
    "generate_portal_token",
    "normalize_email",
    "sign_value",
    "unsign_value",
]
