"""Version control collaborators consulted before overwriting a settings file."""
from __future__ import annotations

import logging
import os
import stat
from pathlib import Path
from typing import Protocol

logger = logging.getLogger("pkgsettings.vcs")


class VersionControl(Protocol):
    def is_open_for_edit(self, path: Path) -> bool:
        """Return True if *path* may be written right now."""

    def make_editable(self, path: Path) -> bool:
        """Try to make *path* writable; return True on success."""


class ReadOnlyCheckout:
    """Lock-based workflows where checked-in files stay read-only on disk.

    A file is open for edit once it is writable; checking it out adds the
    owner write bit.
    """

    def is_open_for_edit(self, path: Path) -> bool:
        return os.access(path, os.W_OK)

    def make_editable(self, path: Path) -> bool:
        try:
            mode = Path(path).stat().st_mode
            os.chmod(path, mode | stat.S_IWUSR)
        except OSError as exc:
            logger.warning("Could not make %s editable: %s", path, exc)
            return False
        return self.is_open_for_edit(path)


__all__ = ["VersionControl", "ReadOnlyCheckout"]
