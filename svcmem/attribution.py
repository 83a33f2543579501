"""
svcmem.attribution
AUTHOR: carter-vin

Attribution engine: per-process PSS -> per-service totals

The snapshot is turned into an explicit process tree (pid -> children) and
walked post-order. Each process adds its own PSS to whatever its children
carried up. A process is a subtree boundary when:
- its parent is PID 1 (top-level daemon), or
- its pid is a tracked unit's pid (a tracked service may sit anywhere)

At a boundary the carried total goes to the tracked unit, or to "other",
and nothing is carried further up. A boundary with zero PSS still closes
its subtree.

What reaches a tree root without crossing a boundary (PID 1 itself, kernel
thread roots) is the residual: counted as consumed, reported nowhere.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable, Mapping

from svcmem.model import AggregationResult, ProcessRecord

INIT_PID = 1


def build_tree(processes: Iterable[ProcessRecord]) -> tuple[dict[int, ProcessRecord], dict[int, list[int]], list[int]]:
    """
    Index the snapshot

    Returns (records by pid, children by pid, roots). A root is a record
    whose parent is not in the snapshot. Duplicate pids keep the first record.
    """
    by_pid: dict[int, ProcessRecord] = {}
    for record in processes:
        by_pid.setdefault(record.pid, record)

    children: dict[int, list[int]] = defaultdict(list)
    roots: list[int] = []
    for record in by_pid.values():
        if record.parent_pid in by_pid and record.parent_pid != record.pid:
            children[record.parent_pid].append(record.pid)
        else:
            roots.append(record.pid)

    return by_pid, dict(children), roots


def is_boundary(record: ProcessRecord, tracked: Mapping[int, str]) -> bool:
    return record.parent_pid == INIT_PID or record.pid in tracked


def attribute(
    processes: Iterable[ProcessRecord],
    pss: Mapping[int, int],
    tracked: Mapping[int, str],
    unit_ids: Iterable[str],
    total_kib: int,
) -> AggregationResult:
    """
    Aggregate PSS into tracked units and "other"

    processes: snapshot records (any order)
    pss: pid -> KiB; absent means 0
    tracked: pid -> unit identifier for resolved units
    unit_ids: every configured identifier, reported even when unresolved
    total_kib: pool total, for the uncounted figure
    """
    by_pid, children, roots = build_tree(processes)

    units: dict[str, int] = {identifier: 0 for identifier in unit_ids}
    other = 0
    consumed = 0
    residual = 0

    # Subtree totals waiting for their parent
    carried: dict[int, int] = {}
    visited: set[int] = set()

    for root in roots:
        stack: list[tuple[int, bool]] = [(root, False)]
        while stack:
            pid, expanded = stack.pop()
            kids = children.get(pid, ())

            if not expanded:
                visited.add(pid)
                stack.append((pid, True))
                stack.extend((child, False) for child in kids)
                continue

            own = pss.get(pid, 0)
            consumed += own
            subtotal = own + sum(carried.pop(child, 0) for child in kids)

            if not is_boundary(by_pid[pid], tracked):
                carried[pid] = subtotal
                continue

            unit = tracked.get(pid)
            if unit is not None:
                units[unit] = units.get(unit, 0) + subtotal
            else:
                other += subtotal

        residual += carried.pop(root, 0)

    # Only reachable when parent links form a cycle (pid reuse mid-snapshot)
    for pid in by_pid:
        if pid not in visited:
            own = pss.get(pid, 0)
            consumed += own
            residual += own

    return AggregationResult(
        units=units,
        other_kib=other,
        consumed_kib=consumed,
        residual_kib=residual,
        uncounted_kib=total_kib - consumed,
    )
