"""
Config → Kernel Bridges.

Functions that turn the loaded settings and registry into wired kernel
objects.  These live in recon_config (the producer) because the kernel
must NEVER import recon_config.

Usage:
    from recon_config.bridges import bootstrap_kernel, build_status_manager

    settings = bootstrap_kernel()
    with session_scope() as session:
        manager = build_status_manager(session, settings=settings)
        manager.transition(...)
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from recon_config import get_active_registry, get_settings
from recon_config.settings import KernelSettings
from recon_kernel.db.engine import create_tables, init_engine_from_url
from recon_kernel.domain.clock import Clock
from recon_kernel.domain.registry import TransitionRegistry
from recon_kernel.logging_config import configure_logging
from recon_kernel.services.status_manager import StatusManager


def bootstrap_kernel(settings: KernelSettings | None = None) -> KernelSettings:
    """
    Configure logging, initialize the engine and create the audit log table.

    Returns the settings used, so callers can pass them on to
    ``build_status_manager``.
    """
    settings = settings or get_settings()
    configure_logging(level=settings.log_level)
    init_engine_from_url(settings.database_url)
    create_tables()
    return settings


def build_status_manager(
    session: Session,
    *,
    settings: KernelSettings | None = None,
    registry: TransitionRegistry | None = None,
    clock: Clock | None = None,
) -> StatusManager:
    """Build a StatusManager bound to ``session`` from the active configuration."""
    settings = settings or get_settings()
    return StatusManager.for_session(
        session,
        registry or get_active_registry(),
        id_field=settings.id_field,
        status_field=settings.status_field,
        clock=clock,
        lock_timeout_seconds=settings.lock_timeout_seconds,
        audit_collection=settings.audit_collection,
    )
