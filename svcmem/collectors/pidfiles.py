"""
svcmem.collectors.pidfiles
AUTHOR: carter-vin

Tracked unit resolver
- identifier "a/b" <-> <root>/a/b.pid
- discovery walks the root when nothing is configured
- a missing or unreadable pid file leaves the unit unresolved (pid=None),
  the unit itself is always returned
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from svcmem.config import PIDFILE_SUFFIX, Settings, UnitSpec
from svcmem.labels import clean_label, default_display_name, unique_tokens, unit_token
from svcmem.model import TrackedUnit


def discover_identifiers(root: Path) -> list[str]:
    """
    Every *.pid file under root as a sorted list of identifiers

    Unreadable subdirectories are skipped (os.walk ignores errors by default)
    """
    identifiers: list[str] = []
    for dirpath, _dirnames, filenames in os.walk(root):
        for filename in filenames:
            if not filename.endswith(PIDFILE_SUFFIX) or filename == PIDFILE_SUFFIX:
                continue
            path = Path(dirpath) / filename
            if not path.is_file():
                continue
            rel = path.relative_to(root).as_posix()
            identifiers.append(rel[: -len(PIDFILE_SUFFIX)])
    return sorted(identifiers)


def pidfile_path(root: Path, identifier: str) -> Path:
    return root / f"{identifier}{PIDFILE_SUFFIX}"


def read_pidfile(path: Path) -> Optional[int]:
    """
    First token of the file as a positive pid, else None
    """
    try:
        tokens = path.read_text(encoding="utf-8", errors="replace").split()
    except OSError:
        return None

    if not tokens:
        return None
    try:
        pid = int(tokens[0])
    except ValueError:
        return None
    return pid if pid > 0 else None


def resolve_units(settings: Settings) -> list[TrackedUnit]:
    """
    Configured (or discovered) units in report order, with pids resolved
    """
    if settings.discover:
        specs = [UnitSpec(identifier=i) for i in discover_identifiers(settings.pidfile_root)]
    else:
        specs = list(settings.units)

    tokens = unique_tokens(unit_token(spec.identifier) for spec in specs)

    units: list[TrackedUnit] = []
    for spec, token in zip(specs, tokens):
        label = spec.display_name or default_display_name(spec.identifier)
        units.append(
            TrackedUnit(
                identifier=spec.identifier,
                display_name=clean_label(label) or spec.identifier,
                token=token,
                pid=read_pidfile(pidfile_path(settings.pidfile_root, spec.identifier)),
            )
        )
    return units


def tracked_pids(units: list[TrackedUnit]) -> dict[int, str]:
    """
    pid -> identifier for resolved units; the first unit to claim a pid keeps it
    """
    mapping: dict[int, str] = {}
    for unit in units:
        if unit.pid is not None and unit.pid not in mapping:
            mapping[unit.pid] = unit.identifier
    return mapping
