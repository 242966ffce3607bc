"""Namespace prefix helpers for privilege names."""

from __future__ import annotations

from collections.abc import Iterable

from privilege_integrity.config import settings


def get_namespace_prefix(name: str) -> str:
    """Return the prefix of a qualified name (``jcr:read`` → ``jcr``), or ``""``."""
    prefix, sep, _ = name.partition(":")
    return prefix if sep else ""


def is_reserved(name: str, reserved_prefixes: Iterable[str] | None = None) -> bool:
    """True if the name's namespace prefix belongs to the reserved set."""
    reserved = settings.reserved_prefixes if reserved_prefixes is None else reserved_prefixes
    return get_namespace_prefix(name) in reserved
