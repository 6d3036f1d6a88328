"""Local filesystem path resolution for uploads and downloads."""

from __future__ import annotations

import os


class LocalPathResolver:
    """Resolve caller paths against a base directory.

    Args:
        base_dir: Directory relative paths are resolved against (default: cwd
            at resolution time)
    """

    def __init__(self, base_dir: str | None = None) -> None:
        self.base_dir = base_dir

    def resolve(self, path: str) -> str:
        expanded = os.path.expandvars(os.path.expanduser(str(path)))
        if not os.path.isabs(expanded):
            expanded = os.path.join(self.base_dir or os.getcwd(), expanded)
        return os.path.abspath(expanded)

    def is_file(self, path: str) -> bool:
        return os.path.isfile(self.resolve(path))
