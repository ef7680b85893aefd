"""Sandboxing of client-supplied paths against the share root and the excluded install directory."""

import os

from nasgate.gate.outcomes import Rejection, access_denied


def _normalize(path: str) -> str:
    return os.path.normpath(os.path.abspath(path))


def is_within(path: str, base: str) -> bool:
    """Textual containment on whole path components: /srv/share2 is not inside /srv/share."""
    if path == base:
        return True
    prefix = base if base.endswith(os.sep) else base + os.sep
    return path.startswith(prefix)


def resolve(root: str, excluded: str, requested: str | None) -> str | Rejection:
    """
    Resolve ``requested`` against ``root`` and return the absolute path, or an
    AccessDenied rejection.

    Leading separators are stripped so "/docs" means "<root>/docs". ``.`` and ``..``
    are collapsed textually; symbolic links are not followed here. The excluded
    subtree wins over the root: a path inside both is always rejected.
    """
    relative = (requested or "").lstrip("/\\")
    if "\x00" in relative:
        return access_denied()
    root = _normalize(root)
    excluded = _normalize(excluded)
    full_path = os.path.normpath(os.path.join(root, relative))
    if not is_within(full_path, root):
        return access_denied()
    if is_within(full_path, excluded):
        return access_denied()
    return full_path


def relative_to_root(root: str, full_path: str) -> str:
    """Client-facing form of a resolved path: "/"-prefixed, forward slashes, "/" for the root itself."""
    rel = os.path.relpath(full_path, _normalize(root))
    if rel == os.curdir:
        return "/"
    return "/" + rel.replace(os.sep, "/")


class PathGuard:
    """resolve() bound to the configured share root and install directory."""

    def __init__(self, root: str, excluded: str) -> None:
        self.root = _normalize(root)
        self.excluded = _normalize(excluded)

    def resolve(self, requested: str | None) -> str | Rejection:
        return resolve(self.root, self.excluded, requested)

    def is_excluded(self, full_path: str) -> bool:
        return is_within(_normalize(full_path), self.excluded)

    def relative(self, full_path: str) -> str:
        return relative_to_root(self.root, full_path)
