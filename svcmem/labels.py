"""
svcmem.labels
AUTHOR: carter-vin

Field tokens and display labels for the munin schema

Contract:
- tokens match [A-Za-z_][A-Za-z0-9_]* and never clash with reserved buckets
- labels are single-line and free of munin comment/escape characters
"""

from __future__ import annotations

import re
from typing import Iterable

RESERVED_TOKENS = ("other", "shared", "free", "cache")
UNIT_TOKEN_PREFIX = "pid_"

_INVALID_TOKEN_CHARS = re.compile(r"[^A-Za-z0-9_]")
_UNDERSCORE_RUNS = re.compile(r"_+")
_INVALID_LABEL_CHARS = re.compile(r"[\x00-\x1f\x7f#\\]")


def unit_token(identifier: str) -> str:
    """
    Build a field token from a pid-file identifier

    e.g. "mysqld/mysqld" -> "pid_mysqld_mysqld", "php-fpm" -> "pid_phpfpm"
    """
    body = identifier.replace("/", "_")
    body = _INVALID_TOKEN_CHARS.sub("", body)
    body = _UNDERSCORE_RUNS.sub("_", body).strip("_")
    return UNIT_TOKEN_PREFIX + body


def unique_tokens(tokens: Iterable[str]) -> list[str]:
    """
    Suffix repeated tokens with _2, _3, ... keeping first-seen order

    Reserved bucket names count as already taken.
    """
    seen: dict[str, int] = {}
    taken: set[str] = set(RESERVED_TOKENS)
    result: list[str] = []
    for token in tokens:
        candidate = token
        count = seen.get(token, 1)
        while candidate in taken:
            count += 1
            candidate = f"{token}_{count}"
        seen[token] = count
        taken.add(candidate)
        result.append(candidate)
    return result


def default_display_name(identifier: str) -> str:
    """
    "foo/foo" -> "foo"; anything else keeps the full identifier
    """
    parts = identifier.split("/")
    if len(parts) >= 2 and parts[-1] == parts[-2]:
        return parts[-1]
    return identifier


def clean_label(label: str) -> str:
    return _INVALID_LABEL_CHARS.sub("", label).strip()
