"""
Kernel settings (``recon_config.settings``).

Runtime knobs for wiring the kernel: where the database lives, which
collection the audit log is, which fields hold record ids and statuses,
how long to wait for a record lock, and the log level.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from recon_config.loader import load_yaml_file


@dataclass(frozen=True)
class KernelSettings:
    """Immutable kernel settings.  Missing keys take these defaults."""

    database_url: str = "sqlite:///recon_kernel.db"
    audit_collection: str = "audit_log"
    id_field: str = "id"
    status_field: str = "status"
    lock_timeout_seconds: float = 30.0
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.lock_timeout_seconds <= 0:
            raise ValueError(
                f"lock_timeout_seconds must be positive, got {self.lock_timeout_seconds}"
            )
        for name in ("database_url", "audit_collection", "id_field", "status_field"):
            if not getattr(self, name):
                raise ValueError(f"{name} must not be empty")


def parse_settings(data: dict[str, Any]) -> KernelSettings:
    """
    Parse ``KernelSettings`` from a dict.

    Raises:
        ValueError: on unknown keys or invalid values.
    """
    known = {f.name for f in fields(KernelSettings)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown kernel settings: {', '.join(unknown)}")

    values = dict(data)
    if "lock_timeout_seconds" in values:
        values["lock_timeout_seconds"] = float(values["lock_timeout_seconds"])
    if "log_level" in values:
        values["log_level"] = str(values["log_level"]).upper()
    return KernelSettings(**values)


def load_settings(path: Path) -> KernelSettings:
    """Load and parse a settings file."""
    return parse_settings(load_yaml_file(path))
