"""
Dimension name normalization.

Names are stored trimmed and lower-cased; the policy index keys them
trimmed and upper-cased. Both forms compare case-insensitively.
"""


def normalize_name(name: str | None) -> str:
    """Storage / lookup form: " Admin " -> "admin"."""
    return (name or "").strip().lower()


def index_key(name: str | None) -> str:
    """Policy index form: " Admin " -> "ADMIN"."""
    return (name or "").strip().upper()
