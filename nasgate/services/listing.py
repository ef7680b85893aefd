"""Directory enumeration: turns a resolved directory into client-facing entry metadata."""

import logging
import mimetypes
import os
import stat
from datetime import datetime, timezone
from typing import Any

from nasgate.gate.path_guard import PathGuard

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"
SIZE_UNITS = ("Bytes", "KB", "MB", "GB", "TB")


def guess_mime_type(path: str) -> str:
    mime_type, _ = mimetypes.guess_type(path)
    return mime_type or DEFAULT_MIME_TYPE


def format_file_size(size: int) -> str:
    """Human-readable size: 0 -> "0 Bytes", 1536 -> "1.5 KB"."""
    if size <= 0:
        return "0 Bytes"
    exponent = 0
    while exponent < len(SIZE_UNITS) - 1 and size >= 1024 ** (exponent + 1):
        exponent += 1
    value = round(size / (1024**exponent), 2)
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {SIZE_UNITS[exponent]}"


def describe_entry(guard: PathGuard, full_path: str, st: os.stat_result) -> dict[str, Any]:
    is_dir = stat.S_ISDIR(st.st_mode)
    entry: dict[str, Any] = {
        "name": os.path.basename(full_path),
        "isDirectory": is_dir,
        "size": None if is_dir else st.st_size,
        "modified": datetime.fromtimestamp(st.st_mtime, tz=timezone.utc).isoformat(),
        "type": "directory" if is_dir else guess_mime_type(full_path),
        "path": guard.relative(full_path),
    }
    if not is_dir:
        entry["formattedSize"] = format_file_size(st.st_size)
    return entry


def list_directory(guard: PathGuard, directory: str) -> list[dict[str, Any]]:
    """
    Entries of ``directory``: directories first, then files, each by name.

    Entries that disappear or cannot be stat'ed mid-listing are skipped, as is the
    excluded install directory when it sits inside the listed directory.
    """
    directories: list[dict[str, Any]] = []
    files: list[dict[str, Any]] = []
    with os.scandir(directory) as it:
        for dir_entry in it:
            full_path = os.path.join(directory, dir_entry.name)
            if guard.is_excluded(full_path):
                continue
            try:
                st = os.stat(full_path)
            except OSError as e:
                logger.debug("Skipping unreadable entry %s: %s", full_path, e)
                continue
            entry = describe_entry(guard, full_path, st)
            (directories if entry["isDirectory"] else files).append(entry)
    directories.sort(key=lambda e: e["name"].lower())
    files.sort(key=lambda e: e["name"].lower())
    return directories + files


def parent_path(current_path: str) -> str | None:
    """Parent of a root-relative client path, or None at the root."""
    stripped = current_path.strip("/")
    if not stripped:
        return None
    parent = os.path.dirname(stripped)
    return "/" + parent if parent else "/"
