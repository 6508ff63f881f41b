import pathlib

import pytest

ROOT = pathlib.Path(__file__).resolve().parent.parent


@pytest.fixture(autouse=True)
def repo_root(monkeypatch):
    # example programs are opened relative to the repository root
    monkeypatch.chdir(ROOT)
    return ROOT
