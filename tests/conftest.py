import logging

import pytest
from rich.logging import RichHandler


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Remove the handler installed by ``--verbose`` runs"""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in root.handlers[:]:
        if isinstance(handler, RichHandler):
            root.removeHandler(handler)
    root.setLevel(level)


@pytest.fixture
def sql_file(tmp_path):
    """Write a SQL script into a temporary directory and return its path"""

    def _write(content: str, name: str = "script.sql"):
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write
