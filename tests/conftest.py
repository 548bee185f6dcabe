from pathlib import Path
from typing import Dict, Union

import pytest


def make_tree(root: Path, files: Dict[str, Union[str, bytes]]) -> Path:
    """Create *files* (relative path -> content) under *root*."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def tree(tmp_path):
    """Return a builder that populates ``tmp_path/project``."""
    root = tmp_path / "project"
    root.mkdir()

    def _build(files: Dict[str, Union[str, bytes]]) -> Path:
        return make_tree(root, files)

    return _build
