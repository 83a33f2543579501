"""
svcmem.config
AUTHOR: carter-vin

Plugin settings from the environment

munin passes `env.<name>` plugin settings as environment variables:

    [svcmem_*]
    user root
    env.SVCMEM_UNITS mysqld/mysqld nginx=web php-fpm/php-fpm=php

Design goals:
- one frozen settings object built once per invocation
- malformed entries fail the invocation (ConfigError), never half-parse
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from svcmem.model import Mode

UNITS_ENV = "SVCMEM_UNITS"
PIDFILE_ROOT_ENV = "SVCMEM_PIDFILE_ROOT"
PROC_ROOT_ENV = "SVCMEM_PROC_ROOT"
SMAPS_ENV = "SVCMEM_SMAPS"

DEFAULT_PIDFILE_ROOT = Path("/run")
DEFAULT_PROC_ROOT = Path("/proc")
PIDFILE_SUFFIX = ".pid"
SMAPS_FILES = ("smaps", "smaps_rollup")


class ConfigError(ValueError):
    """Raised for configuration the plugin cannot act on"""


@dataclass(frozen=True)
class UnitSpec:
    """
    One configured unit before pid resolution
    - display_name: None means derive from identifier
    """

    identifier: str
    display_name: Optional[str] = None


@dataclass(frozen=True)
class Settings:
    mode: Mode
    units: tuple[UnitSpec, ...]
    pidfile_root: Path = DEFAULT_PIDFILE_ROOT
    proc_root: Path = DEFAULT_PROC_ROOT
    smaps_file: str = "smaps"

    @property
    def discover(self) -> bool:
        # No configured units -> report every pid file found
        return not self.units


def normalize_identifier(raw: str) -> str:
    identifier = raw.strip("/")
    if identifier.endswith(PIDFILE_SUFFIX):
        identifier = identifier[: -len(PIDFILE_SUFFIX)]
    return identifier


def parse_units(value: str) -> tuple[UnitSpec, ...]:
    """
    Parse 'id[=name] id[=name] ...' preserving order, first duplicate wins
    """
    specs: list[UnitSpec] = []
    seen: set[str] = set()

    for entry in value.split():
        raw_id, sep, name = entry.partition("=")
        identifier = normalize_identifier(raw_id)

        if not identifier:
            raise ConfigError(f"empty unit identifier in entry: {entry!r}")
        if sep and not name:
            raise ConfigError(f"empty display name in entry: {entry!r}")

        if identifier in seen:
            continue
        seen.add(identifier)
        specs.append(UnitSpec(identifier=identifier, display_name=name or None))

    return tuple(specs)


def load_settings(mode: Mode, environ: Mapping[str, str] | None = None) -> Settings:
    """
    Build Settings for this invocation

    Raises ConfigError on malformed values
    """
    if environ is None:
        environ = os.environ

    smaps_file = environ.get(SMAPS_ENV, "").strip() or "smaps"
    if smaps_file not in SMAPS_FILES:
        raise ConfigError(f"{SMAPS_ENV} must be one of: {', '.join(SMAPS_FILES)}")

    pidfile_root = environ.get(PIDFILE_ROOT_ENV, "").strip()
    proc_root = environ.get(PROC_ROOT_ENV, "").strip()

    return Settings(
        mode=mode,
        units=parse_units(environ.get(UNITS_ENV, "")),
        pidfile_root=Path(pidfile_root) if pidfile_root else DEFAULT_PIDFILE_ROOT,
        proc_root=Path(proc_root) if proc_root else DEFAULT_PROC_ROOT,
        smaps_file=smaps_file,
    )
