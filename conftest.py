"""pytest configuration — src/ on sys.path plus shared vault fixtures."""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent / "src"))

from passvault.crypto import derive_key  # noqa: E402
from passvault.store import VaultRepository  # noqa: E402


@pytest.fixture
def key() -> bytes:
    return derive_key("correct horse battery staple")


@pytest.fixture
def repo(tmp_path) -> VaultRepository:
    return VaultRepository(tmp_path / ".pass_vault")
