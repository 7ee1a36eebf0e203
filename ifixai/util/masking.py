"""Credential masking for log output."""

from __future__ import annotations


def mask_secret(value: str | None) -> str:
    """Return *value* reduced to its last four characters, e.g. ``...a1b2``.

    Secrets of four characters or fewer are fully hidden so that short test
    keys never leak.
    """
    if not value:
        return ""
    stripped = value.strip()
    if len(stripped) <= 4:
        return "****"
    return f"...{stripped[-4:]}"
