"""
svcmem.reconcile
AUTHOR: carter-vin

Reconciler: attribution output + system totals -> ordered buckets in bytes

Bucket order (shared by config and values output):
    other, <one per unit>, shared*, free, cache*      (* physical only)

cache is implied: uncounted - free. It is not read from the kernel
counters and is not clamped; a racy read can make it negative.
"""

from __future__ import annotations

from typing import Optional

from svcmem.model import AggregationResult, Bucket, Mode, SystemMemorySnapshot, TrackedUnit

KIB = 1024


def _info(mode: Mode) -> dict[str, str]:
    pool = "swap" if mode is Mode.SWAP else "memory"
    return {
        "other": f"Proportional {pool} of processes outside tracked services",
        "shared": "Shared memory (Shmem) as reported by the kernel",
        "free": f"Free {pool}",
        "cache": "Estimated cache: memory not attributed to any process, minus free",
    }


def unit_info(unit: TrackedUnit, mode: Mode) -> str:
    pool = "swap" if mode is Mode.SWAP else "memory"
    info = f"Proportional {pool} of {unit.identifier} and its descendants"
    if not unit.resolved:
        info += " (pid file not resolved)"
    return info


def build_buckets(
    mode: Mode,
    units: list[TrackedUnit],
    result: Optional[AggregationResult] = None,
    memory: Optional[SystemMemorySnapshot] = None,
) -> list[Bucket]:
    """
    Assemble the ordered bucket list

    With result/memory omitted every value is 0; config output uses that
    form so its schema is the same list the values output renders.
    """
    info = _info(mode)

    def value(kib: int) -> int:
        return kib * KIB

    other = result.other_kib if result else 0
    buckets = [Bucket(token="other", label="other", info=info["other"], value_bytes=value(other))]

    for unit in units:
        kib = result.units.get(unit.identifier, 0) if result else 0
        buckets.append(
            Bucket(
                token=unit.token,
                label=unit.display_name,
                info=unit_info(unit, mode),
                value_bytes=value(kib),
            )
        )

    free = memory.free_kib if memory else 0

    if mode.has_cache_buckets:
        shared = (memory.shared_kib or 0) if memory else 0
        buckets.append(Bucket(token="shared", label="shared", info=info["shared"], value_bytes=value(shared)))

    buckets.append(Bucket(token="free", label="free", info=info["free"], value_bytes=value(free)))

    if mode.has_cache_buckets:
        cache = result.uncounted_kib - free if result else 0
        buckets.append(Bucket(token="cache", label="cache", info=info["cache"], value_bytes=value(cache)))

    return buckets
