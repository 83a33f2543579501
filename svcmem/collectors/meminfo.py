"""
svcmem.collectors.meminfo
AUTHOR: carter-vin

System memory reader
- Linux via /proc/meminfo
- values stay in KiB, as the kernel reports them
- stdlib only
"""

from __future__ import annotations

from pathlib import Path

from svcmem.model import Mode, SystemMemorySnapshot


def _parse_meminfo(contents: str) -> dict[str, int]:
    """
    Parse /proc/meminfo into a dict of values in KiB
    """
    values: dict[str, int] = {}
    for line in contents.splitlines():
        parts = line.split()
        if len(parts) < 2:
            continue
        key = parts[0].rstrip(":")
        try:
            values[key] = int(parts[1])
        except ValueError:
            continue
    return values


def collect_meminfo(mode: Mode, proc_root: Path = Path("/proc")) -> SystemMemorySnapshot:
    """
    Read host-wide totals for the selected pool

    Physical: MemTotal / MemFree / Shmem
    Swap: SwapTotal / SwapFree, no shared figure
    """
    contents = (proc_root / "meminfo").read_text(encoding="utf-8")
    values = _parse_meminfo(contents)

    if mode is Mode.SWAP:
        keys = ("SwapTotal", "SwapFree")
    else:
        keys = ("MemTotal", "MemFree", "Shmem")

    missing = [key for key in keys if key not in values]
    if missing:
        raise RuntimeError(f"missing in meminfo: {', '.join(missing)}")

    if mode is Mode.SWAP:
        return SystemMemorySnapshot(
            total_kib=values["SwapTotal"],
            free_kib=values["SwapFree"],
        )

    return SystemMemorySnapshot(
        total_kib=values["MemTotal"],
        free_kib=values["MemFree"],
        shared_kib=values["Shmem"],
    )
