from __future__ import annotations

import os
import stat
import sys
from pathlib import Path

import pytest

from pkgsettings.file_repository import FileSettingsRepository
from pkgsettings.vcs import ReadOnlyCheckout

pytestmark = pytest.mark.skipif(
    sys.platform.startswith("win") or (hasattr(os, "geteuid") and os.geteuid() == 0),
    reason="file mode checks are not enforced here",
)


def _make_read_only(path: Path) -> None:
    os.chmod(path, stat.S_IRUSR | stat.S_IRGRP | stat.S_IROTH)


def test_read_only_file_is_checked_out(tmp_path: Path):
    path = tmp_path / "Settings.json"
    path.write_text("{}", encoding="utf-8")
    _make_read_only(path)

    vcs = ReadOnlyCheckout()
    assert not vcs.is_open_for_edit(path)
    assert vcs.make_editable(path)
    assert vcs.is_open_for_edit(path)


def test_repository_saves_read_only_file(tmp_path: Path):
    path = tmp_path / "Settings.json"
    path.write_text("{}", encoding="utf-8")
    _make_read_only(path)

    repo = FileSettingsRepository(path, version_control=ReadOnlyCheckout())
    repo.set("x", 1)
    repo.save()
    assert FileSettingsRepository(path).get("x", int) == 1
