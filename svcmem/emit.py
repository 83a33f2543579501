"""
svcmem.emit

AUTHOR: carter-vin

OUTPUT:
- munin plugin protocol on stdout
- `config`: graph metadata, then label/draw/info per bucket
- values: one `<token>.value <bytes>` line per bucket

Design goals:
- config and values render the same bucket list, so the schema cannot drift
- rendering is pure (lines in, lines out); writing is a separate step
"""

from __future__ import annotations

from typing import Iterable, TextIO

import sys

from svcmem.model import Bucket, Mode


def graph_lines(mode: Mode, buckets: list[Bucket], total_bytes: int) -> list[str]:
    """
    Graph-level config lines
    """
    if mode is Mode.SWAP:
        title = "Swap usage by service (SwapPss)"
        info = "Proportional swap (SwapPss) per service process tree, plus other and free swap."
    else:
        title = "Memory usage by service (Pss)"
        info = (
            "Proportional memory (Pss) per service process tree, plus other processes, "
            "shared memory, free memory and an estimate of cache."
        )

    args = "--base 1024 -l 0"
    if total_bytes > 0:
        args += f" --upper-limit {total_bytes}"

    return [
        f"graph_title {title}",
        f"graph_args {args}",
        "graph_vlabel bytes",
        "graph_category system",
        f"graph_info {info}",
        "graph_order " + " ".join(bucket.token for bucket in buckets),
    ]


def render_config(mode: Mode, buckets: list[Bucket], total_bytes: int) -> list[str]:
    lines = graph_lines(mode, buckets, total_bytes)
    for index, bucket in enumerate(buckets):
        lines.append(f"{bucket.token}.label {bucket.label}")
        # First series is drawn as an area; the rest stack on it
        lines.append(f"{bucket.token}.draw {'AREA' if index == 0 else 'STACK'}")
        lines.append(f"{bucket.token}.info {bucket.info}")
    return lines


def render_values(buckets: list[Bucket]) -> list[str]:
    return [f"{bucket.token}.value {bucket.value_bytes}" for bucket in buckets]


def write_lines(lines: Iterable[str], stream: TextIO | None = None) -> int:
    """
    Write lines to stdout (or stream), returning the line count
    """
    if stream is None:
        stream = sys.stdout

    count = 0
    for line in lines:
        stream.write(line)
        stream.write("\n")
        count += 1
    stream.flush()
    return count
