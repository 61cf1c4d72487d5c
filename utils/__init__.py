# Utilities package

from .helpers import (
    generate_session_token,
    hash_password,
    normalize_website,
    extract_domain_from_url,
    display_name_from_email,
    format_count,
    truncate_text
)

__all__ = [
    "generate_session_token",
    "hash_password",
    "normalize_website",
    "extract_domain_from_url",
    "display_name_from_email",
    "format_count",
    "truncate_text"
]
