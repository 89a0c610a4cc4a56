# src/tsumiage/versioning.py

from __future__ import annotations

from itertools import zip_longest


def parse_version(raw: str) -> list[int]:
    """'1.2.10' -> [1, 2, 10]. Non-numeric components are skipped."""
    return [int(p) for p in (raw or "").strip().split(".") if p.isdigit()]


def is_newer_version(remote: str, current: str) -> bool:
    """
    True iff `remote` is strictly greater than `current`.

    Components compare numerically left to right; missing trailing
    components count as 0, so "1.2" == "1.2.0".
    """
    for r, c in zip_longest(parse_version(remote), parse_version(current), fillvalue=0):
        if r != c:
            return r > c
    return False
