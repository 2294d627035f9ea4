"""Utility modules for the reconciliation kernel."""

from recon_kernel.utils.hashing import canonicalize_json, hash_payload

__all__ = [
    "canonicalize_json",
    "hash_payload",
]
