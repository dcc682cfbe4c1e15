"""
Core library: reusable, transport-agnostic components for the sparkapi client.

Modules:
    auth        - Token providers (static bearer token, OAuth2 with refresh)
    oauth2      - OAuth2 grant providers and token models
    logging     - Structured JSON logging with call correlation IDs
    errors      - Error classification and exception hierarchy

Design Principles:
    - No dependency on the sparkapi request pipeline
    - All modules are independently testable
    - Async-first where applicable
"""

from .types import ErrorCategory, TokenProvider

__version__ = "0.1.0"

__all__ = [
    "ErrorCategory",
    "TokenProvider",
]
