# tests/test_versioning.py

from __future__ import annotations

import pytest

from tsumiage.versioning import is_newer_version, parse_version


@pytest.mark.parametrize(
    ("remote", "current", "expected"),
    [
        ("1.2.10", "1.2.9", True),
        ("1.10", "1.9.9", True),
        ("1.2", "1.2.0", False),
        ("1.2.0", "1.2", False),
        ("1.2.1", "1.2", True),
        ("0.9", "1.0", False),
        ("1.0.0", "1.0.0", False),
    ],
)
def test_is_newer_version(remote: str, current: str, expected: bool) -> None:
    assert is_newer_version(remote, current) is expected


def test_parse_version_skips_non_numeric() -> None:
    assert parse_version("1.beta.3") == [1, 3]
    assert parse_version("") == []
