"""Resolve relative paths while keeping them contained inside a root directory."""

from __future__ import annotations

import os
import re

__all__ = ["PathEscapeError", "AbsolutePathError", "resolve_inside"]


class PathEscapeError(ValueError):
    """A path resolves outside of its root directory."""


class AbsolutePathError(ValueError):
    """An absolute path was given where only a relative one is allowed."""


_WINDOWS_VOLUME = re.compile(r"^[A-Za-z]:/")


def _to_slash(path: str) -> str:
    return path if os.sep == "/" else path.replace(os.sep, "/")


def resolve_inside(root, candidate: str) -> tuple[str, str]:
    """Resolve ``candidate`` under ``root``.

    Returns the absolute target path and its slash-separated path relative
    to the root. Raises ``ValueError`` for an empty candidate,
    ``AbsolutePathError`` for drive or UNC paths and ``PathEscapeError`` when
    the result (after following symlinks) leaves the root.
    """
    stripped = candidate.strip()
    if not stripped:
        raise ValueError("path is empty")

    abs_root = os.path.normpath(os.path.abspath(os.fspath(root)))

    normalized = stripped.replace("\\", "/")
    if _WINDOWS_VOLUME.match(normalized) or normalized.startswith("//"):
        raise AbsolutePathError(f"absolute path is not allowed: {candidate}")
    if normalized.startswith("/"):
        raise PathEscapeError(f"path escapes root: {candidate}")

    target = os.path.normpath(os.path.join(abs_root, normalized.replace("/", os.sep)))
    rel = _contained_rel(abs_root, target)
    _verify_symlink_containment(abs_root, target)
    return target, _to_slash(rel)


def _contained_rel(root: str, target: str) -> str:
    try:
        rel = os.path.relpath(target, root)
    except ValueError as exc:
        raise PathEscapeError(f"path escapes root: {target}") from exc
    if rel == ".":
        return rel
    if rel == ".." or rel.startswith(".." + os.sep) or os.path.isabs(rel):
        raise PathEscapeError(f"path escapes root: {target}")
    return rel


def _verify_symlink_containment(root: str, target: str) -> None:
    try:
        eval_root = os.path.realpath(root, strict=True)
    except OSError:
        eval_root = root
    _contained_rel(os.path.normpath(eval_root), _eval_existing_prefix(target))


def _eval_existing_prefix(target: str) -> str:
    """Resolve symlinks in the longest existing prefix of ``target``."""
    clean = os.path.normpath(target)
    probe = clean
    missing: list[str] = []
    while True:
        try:
            os.lstat(probe)
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise OSError(f"inspect path: {exc}") from exc
        else:
            try:
                resolved = os.path.realpath(probe, strict=True)
            except OSError as exc:
                raise OSError(f"resolve symlink: {exc}") from exc
            return os.path.normpath(os.path.join(resolved, *reversed(missing)))

        parent = os.path.dirname(probe)
        if parent == probe:
            return clean
        missing.append(os.path.basename(probe))
        probe = parent