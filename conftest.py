import sys
from collections import defaultdict
from pathlib import Path

import pytest

# Ensure 'src' directory is on sys.path for tests
PROJECT_ROOT = Path(__file__).resolve().parent
SRC_DIR = PROJECT_ROOT / 'src'
if SRC_DIR.exists() and str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))


@pytest.fixture(autouse=True)
def _isolated_environment(tmp_path, monkeypatch):
    """Keep tests away from the real user config dir and host hooks."""
    from pkgsettings import hooks, preferences

    for var in ("PKGSETTINGS_ROOT", "PKGSETTINGS_APP_NAME", "PKGSETTINGS_PREFERENCES"):
        monkeypatch.delenv(var, raising=False)
    user_dir = tmp_path / "user-config"
    monkeypatch.setattr(preferences, "user_config_dir", lambda app_name="pkgsettings": user_dir)
    monkeypatch.setattr(hooks, "_handlers", defaultdict(list))
    yield
