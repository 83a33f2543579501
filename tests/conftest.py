"""
Shared fixtures: a fabricated /proc and pid-file root under tmp_path
"""

from __future__ import annotations

from pathlib import Path

import pytest


def _mapping_block(index: int, pss: int, swap_pss: int) -> str:
    start = 0x400000 + index * 0x10000
    return (
        f"{start:08x}-{start + 0x10000:08x} r-xp 00000000 08:01 {1000 + index}  /usr/bin/fake\n"
        f"Size:                 64 kB\n"
        f"Rss:                  {pss * 2} kB\n"
        f"Pss:                  {pss} kB\n"
        f"Pss_Anon:             {pss} kB\n"
        f"Shared_Clean:         0 kB\n"
        f"Swap:                 {swap_pss} kB\n"
        f"SwapPss:              {swap_pss} kB\n"
    )


class FakeHost:
    """
    Writes just enough procfs and pid files for the collectors
    """

    def __init__(self, root: Path) -> None:
        self.proc = root / "proc"
        self.run = root / "run"
        self.proc.mkdir()
        self.run.mkdir()
        self.write_meminfo()
        self.write_self_smaps()

    def write_meminfo(
        self,
        total: int = 1_000_000,
        free: int = 200_000,
        shmem: int = 50_000,
        swap_total: int = 500_000,
        swap_free: int = 400_000,
    ) -> None:
        (self.proc / "meminfo").write_text(
            f"MemTotal:       {total} kB\n"
            f"MemFree:        {free} kB\n"
            f"MemAvailable:   {free * 2} kB\n"
            f"Cached:         12345 kB\n"
            f"Shmem:          {shmem} kB\n"
            f"SwapTotal:      {swap_total} kB\n"
            f"SwapFree:       {swap_free} kB\n"
            f"HugePages_Total:       0\n",
            encoding="utf-8",
        )

    def write_self_smaps(self, with_pss: bool = True) -> None:
        self_dir = self.proc / "self"
        self_dir.mkdir(exist_ok=True)
        text = _mapping_block(0, 4, 0) if with_pss else "00400000-00410000 r-xp 00000000 08:01 1  /x\nRss: 4 kB\n"
        (self_dir / "smaps").write_text(text, encoding="utf-8")

    def add_process(
        self,
        pid: int,
        ppid: int,
        *,
        cmdline: str = "",
        comm: str = "fake",
        pss: list[int] | int = 0,
        swap_pss: list[int] | int = 0,
    ) -> None:
        pid_dir = self.proc / str(pid)
        pid_dir.mkdir()
        (pid_dir / "stat").write_text(
            f"{pid} ({comm}) S {ppid} {pid} {pid} 0 -1 4194560 0 0 0 0 0 0 0 0 20 0 1 0\n",
            encoding="utf-8",
        )
        (pid_dir / "cmdline").write_bytes(cmdline.replace(" ", "\0").encode() + (b"\0" if cmdline else b""))

        pss_values = list(pss) if isinstance(pss, list) else [pss]
        swap_values = list(swap_pss) if isinstance(swap_pss, list) else [swap_pss]
        width = max(len(pss_values), len(swap_values))
        pss_values += [0] * (width - len(pss_values))
        swap_values += [0] * (width - len(swap_values))

        blocks = [_mapping_block(i, p, s) for i, (p, s) in enumerate(zip(pss_values, swap_values))]
        (pid_dir / "smaps").write_text("".join(blocks), encoding="utf-8")
        (pid_dir / "smaps_rollup").write_text(
            "00400000-ff601000 ---p 00000000 00:00 0  [rollup]\n"
            f"Rss:                  {sum(pss_values) * 2} kB\n"
            f"Pss:                  {sum(pss_values)} kB\n"
            f"Pss_Anon:             {sum(pss_values)} kB\n"
            f"SwapPss:              {sum(swap_values)} kB\n",
            encoding="utf-8",
        )

    def add_pidfile(self, identifier: str, content: str) -> Path:
        path = self.run / f"{identifier}.pid"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    def env(self, units: str | None = None, **extra: str) -> dict[str, str]:
        env = {
            "SVCMEM_PROC_ROOT": str(self.proc),
            "SVCMEM_PIDFILE_ROOT": str(self.run),
            "SVCMEM_UNITS": units or "",
            "SVCMEM_SMAPS": "",
        }
        env.update(extra)
        return env


@pytest.fixture
def host(tmp_path: Path) -> FakeHost:
    return FakeHost(tmp_path)
