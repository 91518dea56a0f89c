import os
import sys
from pathlib import Path

import pytest

# Allow `import treemarks` without installing the package.
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Tests must not pick up a developer's TREEMARKS_* settings."""
    for name in list(os.environ):
        if name.startswith("TREEMARKS_"):
            monkeypatch.delenv(name, raising=False)
