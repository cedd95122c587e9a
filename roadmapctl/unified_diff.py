"""Minimal unified-diff style rendering for created and rewritten files."""

from __future__ import annotations

from typing import Iterator

__all__ = ["new_file", "update_file"]


def new_file(path: str, content: str) -> str:
    """Render a diff that creates ``path`` with ``content``."""
    return "".join(["--- /dev/null\n", f"+++ b/{path}\n", *_prefixed_lines("+", content)])


def update_file(path: str, previous: str, content: str) -> str:
    """Render a diff that replaces all of ``previous`` with ``content``."""
    return "".join(
        [
            f"--- a/{path}\n",
            f"+++ b/{path}\n",
            *_prefixed_lines("-", previous),
            *_prefixed_lines("+", content),
        ]
    )


def _prefixed_lines(prefix: str, content: str) -> Iterator[str]:
    *complete, tail = content.split("\n")
    for line in complete:
        yield f"{prefix}{line}\n"
    if tail:
        yield f"{prefix}{tail}\n"