"""Tests for root normalization and path building."""

from __future__ import annotations

import pytest

from extradrop.root import build_rooted_path, normalize_root


@pytest.mark.parametrize(
    ("root", "expected"),
    [
        ("", "/"),
        ("/", "/"),
        ("//", "/"),
        ("data", "/data/"),
        ("/data", "/data/"),
        ("data/", "/data/"),
        ("/a//b/", "/a/b/"),
    ],
)
def test_normalize_root(root: str, expected: str) -> None:
    assert normalize_root(root) == expected


@pytest.mark.parametrize(
    ("root", "path", "expected"),
    [
        ("/", "", ""),
        ("/", "/", ""),
        ("/", "a/b.txt", "/a/b.txt"),
        ("/data/", "a/b.txt", "/data/a/b.txt"),
        ("/data/", "dir/", "/data/dir"),
        ("/data/", "", "/data"),
    ],
)
def test_build_rooted_path(root: str, path: str, expected: str) -> None:
    assert build_rooted_path(root, path) == expected
