"""
svcmem.model
AUTHOR: carter-vin

Data model shared by collectors, attribution and reporting.

Design goals:
- Frozen dataclasses; one snapshot lives for one polling pass
- Mode is an explicit value passed through every component
- All memory figures in KiB until the reporting boundary
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Mode(str, Enum):
    """
    Which memory pool is being attributed
    """

    PHYSICAL = "phys"
    SWAP = "swap"

    @classmethod
    def from_program_name(cls, name: str) -> "Mode":
        # Symlink-name selection: anything not ending in "swap" is physical
        if name.endswith("swap"):
            return cls.SWAP
        return cls.PHYSICAL

    @property
    def pss_field(self) -> str:
        return "SwapPss" if self is Mode.SWAP else "Pss"

    @property
    def has_cache_buckets(self) -> bool:
        return self is Mode.PHYSICAL


@dataclass(frozen=True)
class ProcessRecord:
    pid: int
    parent_pid: int
    command_line: str


@dataclass(frozen=True)
class TrackedUnit:
    """
    Configured service, keyed by its pid-file identifier

    pid is None when the pid file could not be resolved; the unit still
    appears in the report schema with value 0.
    """

    identifier: str
    display_name: str
    token: str
    pid: Optional[int] = None

    @property
    def resolved(self) -> bool:
        return self.pid is not None


@dataclass(frozen=True)
class SystemMemorySnapshot:
    total_kib: int
    free_kib: int
    shared_kib: Optional[int] = None  # physical only


@dataclass(frozen=True)
class AggregationResult:
    """
    Attribution engine output

    - units: identifier -> summed PSS, one entry per configured unit
    - other_kib: subtrees closed by an untracked PID 1 child
    - consumed_kib: every PSS value summed during the walk
    - residual_kib: PSS that never reached a boundary
    - uncounted_kib: total minus consumed; may go negative on a racy read
    """

    units: dict[str, int]
    other_kib: int
    consumed_kib: int
    residual_kib: int
    uncounted_kib: int


@dataclass(frozen=True)
class Bucket:
    """
    One reported series: field token, label, info text, value in bytes
    """

    token: str
    label: str
    info: str
    value_bytes: int = 0
