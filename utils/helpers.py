"""
Utility functions and helpers for the Market Insights Dashboard.

This module provides common utility functions used across different components
of the application, including identifier generation and text formatting.
"""

import hashlib
import uuid
from typing import Optional


def generate_session_token() -> str:
    """
    Generate a unique session token.
    
    Creates a UUID4-based identifier used as the opaque session token handed
    to the browser after login.
    
    Returns:
        str: Unique token as a string in UUID4 format
        
    Example:
        >>> token = generate_session_token()
        >>> print(token)
        '550e8400-e29b-41d4-a716-446655440000'
    """
    return str(uuid.uuid4())


def hash_password(password: str) -> str:
    """Return the sha256 hex digest used for configured account passwords."""
    return hashlib.sha256(password.encode()).hexdigest()


def normalize_website(website: Optional[str]) -> str:
    """
    Normalize a submitted website identifier.
    
    Strips surrounding whitespace and handles None values. An empty result
    means the submission is invalid.
    
    Example:
        >>> normalize_website("  https://example.com ")
        'https://example.com'
        >>> normalize_website(None)
        ''
    """
    if not website:
        return ""
    return website.strip()


def extract_domain_from_url(url: str) -> str:
    """
    Extract the domain name from a URL.
    
    Args:
        url: Full URL string
        
    Returns:
        str: Domain name without protocol and path
        
    Example:
        >>> extract_domain_from_url("https://www.example.com/about")
        'example.com'
        >>> extract_domain_from_url("http://example.com")
        'example.com'
    """
    domain = url.replace("https://", "").replace("http://", "")
    
    if domain.startswith("www."):
        domain = domain[4:]
    
    domain = domain.split("/")[0].split("?")[0]
    
    return domain


def display_name_from_email(email: str) -> str:
    """
    Derive a display name from an email address.
    
    Example:
        >>> display_name_from_email("jane.doe@example.com")
        'Jane Doe'
    """
    local_part = email.split("@")[0]
    words = local_part.replace(".", " ").replace("_", " ").replace("-", " ").split()
    return " ".join(word.capitalize() for word in words) or email


def format_count(value: int) -> str:
    """
    Format an integer with thousands separators.
    
    Example:
        >>> format_count(123456)
        '123,456'
    """
    return f"{value:,}"


def truncate_text(text: str, max_length: int = 100, suffix: str = "...") -> str:
    """
    Truncate text to a maximum length with optional suffix.
    
    Useful for creating preview text or limiting response lengths in logs.
    
    Example:
        >>> truncate_text("This is a very long text", max_length=10)
        'This is...'
        >>> truncate_text("Short", max_length=10)
        'Short'
    """
    if len(text) <= max_length:
        return text
    return text[:max_length - len(suffix)] + suffix
