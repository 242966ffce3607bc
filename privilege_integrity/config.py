"""Privilege Integrity — Configuration via environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class PrivilegeSettings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "PRIVILEGE_",
        "extra": "ignore",
    }

    # ── Privilege store ────────────────────────────────────────
    privileges_path: str = "/jcr:system/rep:privileges"

    # ── Namespaces ─────────────────────────────────────────────
    reserved_prefixes: frozenset[str] = frozenset(
        {"jcr", "nt", "mix", "xml", "sv", "rep", "oak"}
    )

    # ── Logging ────────────────────────────────────────────────
    log_level: str = "INFO"
    log_format: str = "json"


settings = PrivilegeSettings()
