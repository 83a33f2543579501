"""
svcmem.collectors.processes
AUTHOR: carter-vin

Process snapshot reader
- one pass over /proc/<pid>: pid, parent pid, command line
- ascending pid order
- processes that exit mid-scan are skipped, not reported
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterator, Optional

from svcmem.model import ProcessRecord


def iter_pid_dirs(proc_root: Path) -> Iterator[tuple[int, Path]]:
    """
    Yield (pid, path) for every numeric entry under the proc root, ascending
    """
    pids = []
    for entry in proc_root.iterdir():
        if entry.name.isdigit():
            pids.append(int(entry.name))
    for pid in sorted(pids):
        yield pid, proc_root / str(pid)


def _parse_stat(contents: str) -> tuple[str, int]:
    """
    Return (comm, ppid) from a /proc/<pid>/stat line

    comm is wrapped in parens and may itself contain spaces or parens,
    so split on the last ')'.
    """
    open_idx = contents.index("(")
    close_idx = contents.rindex(")")
    comm = contents[open_idx + 1:close_idx]
    fields = contents[close_idx + 1:].split()
    # fields[0] is state, fields[1] is ppid
    return comm, int(fields[1])


def _read_record(pid: int, pid_dir: Path) -> Optional[ProcessRecord]:
    try:
        comm, ppid = _parse_stat((pid_dir / "stat").read_text(encoding="utf-8", errors="replace"))
        raw = (pid_dir / "cmdline").read_bytes()
    except (OSError, ValueError, IndexError):
        # Exited mid-scan, not ours to read, or a torn stat line
        return None

    command_line = raw.replace(b"\0", b" ").strip().decode("utf-8", errors="replace")
    if not command_line:
        # Kernel threads and zombies, shown the way ps shows them
        command_line = f"[{comm}]"

    return ProcessRecord(pid=pid, parent_pid=ppid, command_line=command_line)


def collect_processes(proc_root: Path = Path("/proc")) -> list[ProcessRecord]:
    """
    Capture every live process, ascending by pid
    """
    records: list[ProcessRecord] = []
    for pid, pid_dir in iter_pid_dirs(proc_root):
        record = _read_record(pid, pid_dir)
        if record is not None:
            records.append(record)
    return records
