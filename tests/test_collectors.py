"""
Contract tests for the host readers (meminfo, process snapshot, PSS scan).

All readers run against a fabricated procfs tree; see conftest.FakeHost.
"""

import json

import pytest

from svcmem.collectors.base import run_collector
from svcmem.collectors.meminfo import _parse_meminfo, collect_meminfo
from svcmem.collectors.processes import _parse_stat, collect_processes
from svcmem.collectors.pss import collect_pss, field_available, sum_field
from svcmem.model import Mode, SystemMemorySnapshot


def test_meminfo_physical(host) -> None:
    """
    Physical mode reads MemTotal / MemFree / Shmem
    """
    snapshot = collect_meminfo(Mode.PHYSICAL, host.proc)

    assert snapshot == SystemMemorySnapshot(total_kib=1_000_000, free_kib=200_000, shared_kib=50_000)


def test_meminfo_swap_has_no_shared(host) -> None:
    """
    Swap mode reads SwapTotal / SwapFree only
    """
    snapshot = collect_meminfo(Mode.SWAP, host.proc)

    assert snapshot == SystemMemorySnapshot(total_kib=500_000, free_kib=400_000, shared_kib=None)


def test_meminfo_missing_key_raises(host) -> None:
    (host.proc / "meminfo").write_text("MemTotal: 10 kB\n", encoding="utf-8")

    with pytest.raises(RuntimeError, match="MemFree"):
        collect_meminfo(Mode.PHYSICAL, host.proc)


def test_parse_meminfo_skips_garbage() -> None:
    values = _parse_meminfo("MemTotal: 10 kB\nbogus\nHugePages_Total:       0\nOops: x kB\n")

    assert values == {"MemTotal": 10, "HugePages_Total": 0}


def test_parse_stat_handles_parens_in_comm() -> None:
    """
    comm may contain spaces and parens; ppid follows the last ')'
    """
    comm, ppid = _parse_stat("42 (weird ) name) S 7 42 42 0 -1\n")

    assert comm == "weird ) name"
    assert ppid == 7


def test_processes_ascending_with_cmdlines(host) -> None:
    """
    Snapshot is sorted by pid; kernel threads get a bracketed comm
    """
    host.add_process(300, 1, cmdline="/usr/sbin/nginx -g daemon")
    host.add_process(2, 0, comm="kthreadd")
    host.add_process(1, 0, cmdline="/sbin/init")

    records = collect_processes(host.proc)

    assert [r.pid for r in records] == [1, 2, 300]
    assert records[0].parent_pid == 0
    assert records[1].command_line == "[kthreadd]"
    assert records[2].command_line == "/usr/sbin/nginx -g daemon"
    assert records[2].parent_pid == 1


def test_processes_skip_vanished_pid(host) -> None:
    """
    A pid directory without readable stat is a process that exited mid-scan
    """
    host.add_process(10, 1)
    (host.proc / "11").mkdir()

    records = collect_processes(host.proc)

    assert [r.pid for r in records] == [10]


def test_pss_sums_every_mapping(host) -> None:
    """
    smaps lists Pss once per mapping; all of them count
    """
    host.add_process(10, 1, pss=[100, 20, 3])
    host.add_process(11, 1, pss=[0, 0])
    host.add_process(12, 1, pss=7, swap_pss=[5, 6])

    assert collect_pss(Mode.PHYSICAL, host.proc) == {10: 123, 12: 7}
    assert collect_pss(Mode.SWAP, host.proc) == {12: 11}


def test_pss_rollup_matches_smaps(host) -> None:
    host.add_process(10, 1, pss=[100, 20, 3])

    assert collect_pss(Mode.PHYSICAL, host.proc, smaps_file="smaps_rollup") == {10: 123}


def test_pss_skips_unreadable_process(host) -> None:
    host.add_process(10, 1, pss=5)
    (host.proc / "11").mkdir()

    assert collect_pss(Mode.PHYSICAL, host.proc) == {10: 5}


def test_sum_field_ignores_prefixed_keys() -> None:
    """
    Pss_Anon and Pss_File are breakdowns, not extra Pss
    """
    contents = "Pss: 10 kB\nPss_Anon: 10 kB\nPss_File: 0 kB\nSwapPss: 4 kB\nPss: 2 kB\n"

    assert sum_field(contents, "Pss") == 12
    assert sum_field(contents, "SwapPss") == 4


def test_field_available(host) -> None:
    assert field_available(Mode.PHYSICAL, host.proc) is True
    assert field_available(Mode.SWAP, host.proc) is True

    host.write_self_smaps(with_pss=False)
    assert field_available(Mode.PHYSICAL, host.proc) is False


def test_run_collector_turns_errors_into_data(tmp_path) -> None:
    """
    A missing procfs is a failed outcome, not an exception
    """
    outcome = run_collector("processes", collect_processes, tmp_path / "nope")

    assert outcome.ok is False
    assert outcome.error_type == "FileNotFoundError"
    assert outcome.value_or([]) == []


def test_failed_outcome_reports_one_event(tmp_path, capsys) -> None:
    """
    A failed read emits collector_failed on stderr; a good read emits nothing
    """
    failed = run_collector("meminfo", collect_meminfo, Mode.PHYSICAL, tmp_path)
    good = run_collector("noop", lambda: 1)

    assert good.report_failure(plugin_version="0.1.0", mode="phys") is False
    assert failed.report_failure(plugin_version="0.1.0", mode="phys") is True

    captured = capsys.readouterr()
    assert captured.out == ""
    lines = captured.err.strip().splitlines()
    assert len(lines) == 1

    payload = json.loads(lines[0])
    assert payload["event_type"] == "collector_failed"
    assert payload["collector"] == "meminfo"
    assert payload["error_type"] == "FileNotFoundError"
    assert payload["mode"] == "phys"
