import json
import shlex
import sys

import pytest
import yaml

from config import Config


@pytest.fixture
def make_tree(tmp_path):
    """Build an extension root from a {relative path: content} mapping.

    Dict contents are serialized as YAML or JSON by file suffix; a path
    ending in "/" creates an empty directory.
    """

    def _make(name: str, files: dict) -> str:
        root = tmp_path / name
        root.mkdir(parents=True, exist_ok=True)
        for rel, content in files.items():
            path = root / rel
            if rel.endswith("/"):
                path.mkdir(parents=True, exist_ok=True)
                continue
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, dict):
                if rel.endswith(".json"):
                    content = json.dumps(content)
                else:
                    content = yaml.safe_dump(content)
            path.write_text(content or "")
        return str(root)

    return _make


@pytest.fixture
def py_runner() -> str:
    """Runner string for Python extensions that works in any virtualenv."""
    return shlex.quote(sys.executable)


@pytest.fixture
def rc_config(monkeypatch, tmp_path):
    """Point Config at temporary directories for one test."""

    def _set(extensions_dirs, wrappers_dir=None):
        monkeypatch.setattr(Config, "EXTENSIONS_DIRS", list(extensions_dirs))
        monkeypatch.setattr(Config, "WRAPPERS_DIR", str(wrappers_dir or tmp_path / "wrappers"))
        monkeypatch.setattr(Config, "ENABLE_LOGGING", False)
        monkeypatch.setattr(Config, "DEPRECATIONS", [])
        monkeypatch.setattr(Config, "THEME", "dark")

    return _set
