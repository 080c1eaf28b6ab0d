# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Authorization metadata for Kannon calls."""

from __future__ import annotations

import base64

AUTHORIZATION_HEADER = "authorization"


def basic_auth_header(domain: str, key: str) -> str:
    """Build the HTTP Basic style header value for a domain and its key.

    Args:
        domain: Sending domain registered on Kannon.
        key: Secret key of the domain.

    Returns:
        ``"Basic " + base64("<domain>:<key>")`` using standard padded base64.

    Example:
        >>> basic_auth_header("example.com", "secret")
        'Basic ZXhhbXBsZS5jb206c2VjcmV0'
    """
    token = base64.b64encode(f"{domain}:{key}".encode()).decode("ascii")
    return f"Basic {token}"


def auth_metadata(domain: str, key: str) -> tuple[tuple[str, str], ...]:
    """Return call metadata carrying the authorization header."""
    return ((AUTHORIZATION_HEADER, basic_auth_header(domain, key)),)
