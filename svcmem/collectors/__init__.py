"""svcmem.collectors package exports."""

from svcmem.collectors.meminfo import collect_meminfo
from svcmem.collectors.pidfiles import resolve_units
from svcmem.collectors.processes import collect_processes
from svcmem.collectors.pss import collect_pss

__all__ = [
    "collect_meminfo",
    "collect_processes",
    "collect_pss",
    "resolve_units",
]
