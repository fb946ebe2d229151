"""Working directory root handling."""

from __future__ import annotations

from collections.abc import Callable

Normalizer = Callable[[str], str]


def normalize_root(root: str) -> str:
    """Normalize a configured root into "/" or "/a/b/" form.

    Empty segments are dropped, so "a//b", "/a/b" and "a/b/" all become "/a/b/".
    """
    parts = [part for part in root.split("/") if part]
    if not parts:
        return "/"
    return "/" + "/".join(parts) + "/"


def build_rooted_path(root: str, path: str) -> str:
    """Join a normalized root and a backend-relative path into an API path.

    The trailing slash is stripped; the root itself maps to "" which is how
    Dropbox addresses the top of the namespace.

    Examples:
        build_rooted_path("/", "a/b.txt") -> "/a/b.txt"
        build_rooted_path("/data/", "dir/") -> "/data/dir"
        build_rooted_path("/", "") -> ""
    """
    full = root + path.lstrip("/")
    return full.rstrip("/")
