"""
recon_config -- single public entrypoint for reconciliation configuration.

Responsibility:
    Provides the ONLY way to obtain the deployed transition registry
    (``get_active_registry()``) and the kernel settings (``get_settings()``)
    at runtime.  No other component reads the YAML assets directly.

Architecture position:
    Configuration -- sits above ``recon_kernel``.  The kernel MUST NEVER
    import from ``recon_config``; it receives the registry by injection.

Invariants enforced:
    - Build-time validation: the registry is fully validated before it is
      returned.  An invalid table never reaches a caller.
    - One registry per process per path: repeated calls return the same
      immutable object.

Failure modes:
    - ``FileNotFoundError`` -- asset file missing.
    - ``RegistryConfigurationError`` -- invalid transition table.
    - ``ValueError`` -- invalid settings.

Audit relevance:
    Every registry load emits a ``RECON_CONFIG_TRACE`` log entry with the
    config id, version, kind count, and checksums of both the source
    document and the parsed table.  This trace ties each audited
    transition to the table version that allowed it.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from recon_config.loader import compute_checksum, load_yaml_file, parse_registry
from recon_config.settings import KernelSettings, load_settings
from recon_kernel.domain.registry import TransitionRegistry

_logger = logging.getLogger("recon_kernel.config")

# Default asset locations
_DEFAULT_SETS_DIR = Path(__file__).parent / "sets"
DEFAULT_REGISTRY_PATH = _DEFAULT_SETS_DIR / "pipeline.yaml"
DEFAULT_SETTINGS_PATH = _DEFAULT_SETS_DIR / "kernel.yaml"

_cache_lock = threading.Lock()
_registry_cache: dict[Path, TransitionRegistry] = {}


def get_active_registry(path: Path | None = None) -> TransitionRegistry:
    """The ONLY public registry entrypoint.

    Guarantees:
        - The returned registry has passed catalog, totality,
          initial-status and reachability validation.
        - A ``RECON_CONFIG_TRACE`` log entry is emitted the first time a
          given path is loaded.

    Args:
        path: Override path to a pipeline YAML file.  Defaults to
            recon_config/sets/pipeline.yaml.

    Raises:
        FileNotFoundError: If the file does not exist.
        RegistryConfigurationError: If the table is invalid.
    """
    source = Path(path or DEFAULT_REGISTRY_PATH).resolve()

    with _cache_lock:
        cached = _registry_cache.get(source)
        if cached is not None:
            return cached

        document = load_yaml_file(source)
        registry = parse_registry(document)

        _logger.info(
            "RECON_CONFIG_TRACE",
            extra={
                "trace_type": "RECON_CONFIG_TRACE",
                "config_id": document.get("config_id"),
                "config_version": document.get("version"),
                "source": str(source),
                "source_checksum": compute_checksum(document),
                "checksum": registry.checksum,
                "kind_count": len(registry.kinds()),
            },
        )

        _registry_cache[source] = registry
        return registry


def get_settings(path: Path | None = None) -> KernelSettings:
    """
    Load the kernel settings.

    Args:
        path: Override path to a settings YAML file.  Defaults to
            recon_config/sets/kernel.yaml.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: On unknown keys or invalid values.
    """
    return load_settings(Path(path or DEFAULT_SETTINGS_PATH))


def clear_registry_cache() -> None:
    """Drop cached registries.  For tests."""
    with _cache_lock:
        _registry_cache.clear()


__all__ = [
    "DEFAULT_REGISTRY_PATH",
    "DEFAULT_SETTINGS_PATH",
    "KernelSettings",
    "clear_registry_cache",
    "get_active_registry",
    "get_settings",
]
