"""Fingerprints of stored passwords.

A session remembers the fingerprint of the password it was opened with so a
password change elsewhere can be detected without keeping the password.
"""

from __future__ import annotations

import hashlib


def password_fingerprint(password: str) -> str:
    """Return the SHA-256 hex digest of ``password``."""
    return hashlib.sha256(password.encode("utf-8")).hexdigest()
