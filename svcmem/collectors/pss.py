"""
svcmem.collectors.pss
AUTHOR: carter-vin

PSS reader
- sums every occurrence of the mode's field (Pss / SwapPss) per pid
- smaps lists the field once per mapping; smaps_rollup once per process
- zero totals are dropped, vanished processes are skipped
"""

from __future__ import annotations

from pathlib import Path

from svcmem.collectors.processes import iter_pid_dirs
from svcmem.model import Mode


def sum_field(contents: str, field_name: str) -> int:
    """
    Sum all '<field_name>: N kB' lines in a smaps listing

    Matches the key exactly, so Pss_Anon / Pss_File do not count as Pss.
    """
    total = 0
    for line in contents.splitlines():
        parts = line.split()
        if len(parts) < 2 or parts[0] != f"{field_name}:":
            continue
        try:
            total += int(parts[1])
        except ValueError:
            continue
    return total


def collect_pss(
    mode: Mode,
    proc_root: Path = Path("/proc"),
    smaps_file: str = "smaps",
) -> dict[int, int]:
    """
    Scan every process map summary and return pid -> KiB (non-zero only)
    """
    field_name = mode.pss_field
    sample: dict[int, int] = {}

    for pid, pid_dir in iter_pid_dirs(proc_root):
        try:
            contents = (pid_dir / smaps_file).read_text(encoding="utf-8", errors="replace")
        except OSError:
            # Exited mid-scan or unreadable: counts as no data
            continue

        value = sum_field(contents, field_name)
        if value:
            sample[pid] = value

    return sample


def field_available(mode: Mode, proc_root: Path = Path("/proc"), smaps_file: str = "smaps") -> bool:
    """
    True when the kernel reports the mode's field for our own process
    """
    try:
        contents = (proc_root / "self" / smaps_file).read_text(encoding="utf-8", errors="replace")
    except OSError:
        return False

    prefix = f"{mode.pss_field}:"
    return any(line.startswith(prefix) for line in contents.splitlines())
