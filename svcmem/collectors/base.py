"""
svcmem.collectors.base
AUTHOR: carter-vin

Host reads as data
- a read that raises becomes CollectorOutcome(ok=False), the poll carries on
- the caller picks the fallback (empty snapshot, zero totals) via value_or
- failures are reported once, as a collector_failed event
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Optional

from svcmem.logging import emit_event


@dataclass(frozen=True)
class CollectorOutcome:
    """
    One host read
    - name: collector name used in events ("meminfo", "processes", "pss")
    - value: what the read returned, when ok
    - error_type / error_message: what it raised, when not ok
    """

    name: str
    ok: bool
    value: Optional[Any] = None
    error_type: Optional[str] = None
    error_message: Optional[str] = None

    def value_or(self, default: Any) -> Any:
        return self.value if self.ok else default

    def report_failure(self, *, plugin_version: str, mode: str) -> bool:
        """
        Emit collector_failed for a failed read; True if one was emitted
        """
        if self.ok:
            return False

        emit_event(
            "collector_failed",
            plugin_version=plugin_version,
            mode=mode,
            collector=self.name,
            error_type=self.error_type,
            message=self.error_message,
        )
        return True


def run_collector(name: str, fn, *args, **kwargs) -> CollectorOutcome:
    """
    Call fn(*args, **kwargs); an exception becomes a failed outcome
    """
    try:
        value = fn(*args, **kwargs)
    except Exception as e:
        return CollectorOutcome(
            name=name,
            ok=False,
            error_type=type(e).__name__,
            error_message=str(e),
        )
    return CollectorOutcome(name=name, ok=True, value=value)
