"""
Configuration Loader (``recon_config.loader``).

Responsibility
--------------
Loads the YAML assets shipped in ``recon_config/sets/`` and parses them
into kernel objects.  This is **build/test tooling** -- no service should
call it directly.  The runtime entry points are
``recon_config.get_active_registry()`` and ``recon_config.get_settings()``.

Architecture position
---------------------
**Config layer** -- sits above ``recon_kernel`` and hands it fully built,
validated objects.  The kernel never imports this package.

Invariants enforced
-------------------
* No silent defaults for the transition table: a kind without ``initial``
  or ``transitions`` is reported, not filled in.
* All parse problems for a registry are collected and raised together as
  one ``RegistryConfigurationError``.
* ``compute_checksum`` is deterministic for identical documents.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Structurally invalid table  -> ``RegistryConfigurationError``.

Audit relevance
---------------
``compute_checksum`` lets an auditor confirm that the deployed table
matches a version-controlled baseline.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from recon_kernel.domain.registry import TransitionRegistry
from recon_kernel.exceptions import RegistryConfigurationError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Postconditions:
        - Returns a ``dict`` (empty if the YAML is empty).
    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top-level document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at top level, got {type(data).__name__}")
    return data


def parse_registry(data: dict[str, Any]) -> TransitionRegistry:
    """
    Parse a ``TransitionRegistry`` from a pipeline document.

    Expected shape::

        kinds:
          <KIND_NAME>:
            initial: [<code>, ...]
            transitions:
              <from_code>: [<to_code>, ...]

    Raises:
        RegistryConfigurationError: if the document shape is wrong, any
            kind name or status code is unknown, or the table fails
            structural validation.
    """
    kinds = data.get("kinds")
    if not isinstance(kinds, dict) or not kinds:
        raise RegistryConfigurationError(["document has no 'kinds' mapping"])

    problems: list[str] = []
    transitions: dict[str, dict[str, list[str]]] = {}
    initial: dict[str, list[str]] = {}

    for kind_name, body in kinds.items():
        if not isinstance(body, dict):
            problems.append(f"{kind_name}: expected a mapping with 'initial' and 'transitions'")
            continue

        edges = body.get("transitions")
        if edges is None:
            problems.append(f"{kind_name}: missing 'transitions'")
        elif not isinstance(edges, dict):
            problems.append(f"{kind_name}: 'transitions' must be a mapping")
        else:
            parsed_edges: dict[str, list[str]] = {}
            for from_code, targets in edges.items():
                if targets is None:
                    targets = []
                if not isinstance(targets, list):
                    problems.append(
                        f"{kind_name}: targets of {from_code!r} must be a list"
                    )
                    continue
                parsed_edges[str(from_code)] = [str(t) for t in targets]
            transitions[str(kind_name)] = parsed_edges

        starts = body.get("initial")
        if starts is None:
            problems.append(f"{kind_name}: missing 'initial'")
        elif not isinstance(starts, list):
            problems.append(f"{kind_name}: 'initial' must be a list")
        else:
            initial[str(kind_name)] = [str(s) for s in starts]

    if problems:
        raise RegistryConfigurationError(problems)

    return TransitionRegistry.build(transitions, initial)


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Postconditions:
        - Returns a hex-encoded SHA-256 hash string.
        - Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
