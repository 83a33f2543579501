"""
svcmem.main
------------
AUTHOR: carter-vin

munin plugin entrypoint: memory (or swap) per service, by PSS

Install as symlinks; the link name picks the pool:
- svcmem_phys -> physical memory (Pss), with shared and cache buckets
- svcmem_swap -> swap (SwapPss)

Key contract:
- `svcmem_phys`            prints current values
- `svcmem_phys config`     prints the graph schema
- `svcmem_phys autoconf`   prints yes/no
- `svcmem_phys suggest`    prints the valid link suffixes
- anything else exits non-zero with nothing on stdout
"""

from __future__ import annotations

import typer

from svcmem.attribution import attribute
from svcmem.collectors.base import run_collector
from svcmem.collectors.meminfo import collect_meminfo
from svcmem.collectors.pidfiles import resolve_units, tracked_pids
from svcmem.collectors.processes import collect_processes
from svcmem.collectors.pss import collect_pss, field_available
from svcmem.config import ConfigError, Settings, load_settings
from svcmem.emit import render_config, render_values, write_lines
from svcmem.logging import emit_event
from svcmem.model import AggregationResult, Bucket, Mode, SystemMemorySnapshot
from svcmem.reconcile import KIB, build_buckets

app = typer.Typer(
    add_completion=False,
    help="svcmem: per-service PSS memory plugin for munin",
    # munin verbs only; --help would print usage on stdout and exit 0
    context_settings={"help_option_names": []},
)

PLUGIN_VERSION = "0.1.0"


def _empty_memory(mode: Mode) -> SystemMemorySnapshot:
    return SystemMemorySnapshot(
        total_kib=0,
        free_kib=0,
        shared_kib=0 if mode.has_cache_buckets else None,
    )


def poll_buckets(settings: Settings) -> tuple[list[Bucket], AggregationResult]:
    """
    One polling pass: read, attribute, reconcile

    Read order keeps the snapshot -> PSS scan window short:
    units, system totals, process snapshot, PSS scan, then attribution.
    A failed read degrades to an empty value; the report is still built.
    """
    mode = settings.mode
    units = resolve_units(settings)

    for unit in units:
        if not unit.resolved:
            emit_event(
                "unit_unresolved",
                plugin_version=PLUGIN_VERSION,
                mode=mode.value,
                unit=unit.identifier,
                pidfile_root=str(settings.pidfile_root),
            )

    mem_out = run_collector("meminfo", collect_meminfo, mode, settings.proc_root)
    proc_out = run_collector("processes", collect_processes, settings.proc_root)
    pss_out = run_collector("pss", collect_pss, mode, settings.proc_root, settings.smaps_file)

    for outcome in (mem_out, proc_out, pss_out):
        outcome.report_failure(plugin_version=PLUGIN_VERSION, mode=mode.value)

    memory = mem_out.value_or(_empty_memory(mode))

    result = attribute(
        proc_out.value_or([]),
        pss_out.value_or({}),
        tracked_pids(units),
        [unit.identifier for unit in units],
        memory.total_kib,
    )

    if result.residual_kib:
        emit_event(
            "attribution_residual",
            plugin_version=PLUGIN_VERSION,
            mode=mode.value,
            residual_kib=result.residual_kib,
            consumed_kib=result.consumed_kib,
        )

    return build_buckets(mode, units, result, memory), result


# -----------------------------
# ROOT COMMAND BEHAVIOR
# -----------------------------
@app.callback(invoke_without_command=True)
def main(ctx: typer.Context) -> None:
    """
    Select the mode from the program name, load settings, and with no
    subcommand print current values.
    """
    mode = Mode.from_program_name(ctx.find_root().info_name or "")

    try:
        settings = load_settings(mode)
    except ConfigError as e:
        emit_event(
            "config_invalid",
            plugin_version=PLUGIN_VERSION,
            mode=mode.value,
            error_type=type(e).__name__,
            message=str(e),
        )
        raise typer.Exit(code=1)

    ctx.obj = settings

    if ctx.invoked_subcommand is not None:
        return

    emit_event(
        "poll_start",
        plugin_version=PLUGIN_VERSION,
        mode=mode.value,
        units=len(settings.units),
        discover=settings.discover,
    )

    buckets, _ = poll_buckets(settings)
    count = write_lines(render_values(buckets))

    emit_event(
        "values_emitted",
        plugin_version=PLUGIN_VERSION,
        mode=mode.value,
        buckets=count,
    )


# -----------------------------
# CLI COMMANDS
# -----------------------------
@app.command("config")
def config(ctx: typer.Context) -> None:
    """
    Print the graph schema
    """
    settings: Settings = ctx.obj
    buckets = build_buckets(settings.mode, resolve_units(settings))

    mem_out = run_collector("meminfo", collect_meminfo, settings.mode, settings.proc_root)
    mem_out.report_failure(plugin_version=PLUGIN_VERSION, mode=settings.mode.value)
    total_bytes = mem_out.value_or(_empty_memory(settings.mode)).total_kib * KIB

    count = write_lines(render_config(settings.mode, buckets, total_bytes))

    emit_event(
        "config_emitted",
        plugin_version=PLUGIN_VERSION,
        mode=settings.mode.value,
        lines=count,
    )


@app.command("autoconf")
def autoconf(ctx: typer.Context) -> None:
    """
    Print yes if the kernel reports the proportional field, else no
    """
    settings: Settings = ctx.obj
    available = field_available(settings.mode, settings.proc_root, settings.smaps_file)
    typer.echo("yes" if available else "no")


@app.command("suggest")
def suggest() -> None:
    """
    Print the valid link-name suffixes
    """
    for mode in Mode:
        typer.echo(mode.value)


if __name__ == "__main__":
    app()
