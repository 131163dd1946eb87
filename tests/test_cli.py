"""Tests for the interactive passvault CLI."""

import pytest
from typer.testing import CliRunner

from passvault import __version__, cli
from passvault.crypto import derive_key
from passvault.models import Record, RecordStore
from passvault.store import VaultRepository

runner = CliRunner()

MASTER = "m4ster"


@pytest.fixture
def vault(tmp_path, monkeypatch) -> VaultRepository:
    repo = VaultRepository(tmp_path / ".pass_vault")
    monkeypatch.setattr(cli, "_repository", lambda: repo)
    return repo


@pytest.fixture
def answers(monkeypatch):
    """Script the prompts: plain answers and password answers are separate queues.

    Running out of answers behaves like end of input on stdin.
    """
    plain: list = []
    secret: list = []

    def _pop(queue):
        if not queue:
            raise EOFError
        return queue.pop(0)

    monkeypatch.setattr(cli, "_ask", lambda prompt: _pop(plain))
    monkeypatch.setattr(cli, "_ask_password", lambda prompt="": _pop(secret))

    def script(*, ask=(), passwords=()):
        plain.extend(ask)
        secret.extend(passwords)

    return script


def _seed(repo: VaultRepository, *rows) -> None:
    store = RecordStore()
    for name, username, password in rows:
        store.add(Record(name=name, username=username, password=password))
    repo.save(store, derive_key(MASTER))


# ---------------------------------------------------------------------------
# Startup
# ---------------------------------------------------------------------------


def test_version():
    result = runner.invoke(cli.app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_first_run_creates_vault(vault, answers):
    answers(passwords=[MASTER, MASTER], ask=["4"])
    result = runner.invoke(cli.app, [])
    assert result.exit_code == 0, result.output
    assert "No vault found" in result.output
    assert "Vault created" in result.output
    assert vault.exists()
    assert vault.load(derive_key(MASTER), strict=True).is_empty()


def test_first_run_mismatched_passwords_exits_without_vault(vault, answers):
    answers(passwords=["one", "two"])
    result = runner.invoke(cli.app, [])
    assert result.exit_code == 0
    assert "do not match" in result.output
    assert not vault.exists()


def test_existing_vault_asks_password_once(vault, answers):
    _seed(vault)
    answers(passwords=[MASTER], ask=["4"])
    result = runner.invoke(cli.app, [])
    assert result.exit_code == 0, result.output
    assert "Password manager ready" in result.output
    assert "Goodbye" in result.output


def test_wrong_master_password_exits_and_keeps_vault(vault, answers):
    _seed(vault, ("GitHub", "alice", "s3cret"))
    before = vault.path.read_bytes()
    answers(passwords=["wrong"], ask=["4"])

    result = runner.invoke(cli.app, [])

    assert result.exit_code == 1
    assert "Wrong master password" in result.output
    assert vault.path.read_bytes() == before


def test_end_of_input_quits(vault, answers):
    _seed(vault)
    answers(passwords=[MASTER])
    result = runner.invoke(cli.app, [])
    assert result.exit_code == 0
    assert "Goodbye" in result.output


# ---------------------------------------------------------------------------
# Menu
# ---------------------------------------------------------------------------


def test_add_then_list(vault, answers):
    _seed(vault)
    answers(
        passwords=[MASTER, "s3cret-pw", "s3cret-pw"],
        ask=["1", "GitHub", "alice", "2", "4"],
    )
    result = runner.invoke(cli.app, [])

    assert result.exit_code == 0, result.output
    assert "Entry 'GitHub' added" in result.output
    assert "GitHub" in result.output
    assert "alice" in result.output
    assert "s3cret-pw" not in result.output

    entries = list(vault.load(derive_key(MASTER)).listing())
    assert [(e.index, e.name, e.username) for e in entries] == [(1, "GitHub", "alice")]


def test_add_retries_until_passwords_match(vault, answers):
    _seed(vault)
    answers(
        passwords=[MASTER, "first", "typo", "second", "second"],
        ask=["1", "site", "user", "4"],
    )
    result = runner.invoke(cli.app, [])

    assert result.exit_code == 0, result.output
    assert "did not match" in result.output
    assert vault.load(derive_key(MASTER)).entries == [
        Record(name="site", username="user", password="second")
    ]


def test_list_empty(vault, answers):
    _seed(vault)
    answers(passwords=[MASTER], ask=["2", "4"])
    result = runner.invoke(cli.app, [])
    assert "There is nothing!" in result.output


def test_search_shows_passwords_of_matches(vault, answers):
    _seed(vault, ("GitHub", "alice", "pw-one"), ("Gitlab", "bob", "pw-two"))
    answers(passwords=[MASTER], ask=["3", "alice", "4"])
    result = runner.invoke(cli.app, [])

    assert result.exit_code == 0, result.output
    assert "pw-one" in result.output
    assert "pw-two" not in result.output


def test_search_any_case_matches_both(vault, answers):
    _seed(vault, ("GitHub", "alice", "pw-one"), ("Gitlab", "bob", "pw-two"))
    answers(passwords=[MASTER], ask=["3", "GIT", "4"])
    result = runner.invoke(cli.app, [])
    assert "pw-one" in result.output
    assert "pw-two" in result.output


def test_search_no_match(vault, answers):
    _seed(vault, ("GitHub", "alice", "pw-one"))
    answers(passwords=[MASTER], ask=["3", "zzz", "4"])
    result = runner.invoke(cli.app, [])
    assert "No match!" in result.output


def test_invalid_choice_continues(vault, answers):
    _seed(vault)
    answers(passwords=[MASTER], ask=["9", "2", "4"])
    result = runner.invoke(cli.app, [])
    assert result.exit_code == 0
    assert "Invalid choice" in result.output
    assert "There is nothing!" in result.output


def test_filesystem_error_is_fatal(vault, answers, monkeypatch):
    _seed(vault)

    def broken_save(store, key):
        raise PermissionError("Permission denied")

    monkeypatch.setattr(vault, "save", broken_save)
    answers(
        passwords=[MASTER, "pw", "pw"],
        ask=["1", "name", "user", "4"],
    )
    result = runner.invoke(cli.app, [])

    assert result.exit_code == 1
    assert "I/O error" in result.output
    assert "Permission denied" in result.output


def test_random_source_failure_is_fatal(vault, answers, monkeypatch):
    _seed(vault)
    before = vault.path.read_bytes()

    def no_entropy(n):
        raise OSError("getrandom failed")

    monkeypatch.setattr("passvault.crypto.os.urandom", no_entropy)
    answers(
        passwords=[MASTER, "pw", "pw"],
        ask=["1", "name", "user", "4"],
    )
    result = runner.invoke(cli.app, [])

    assert result.exit_code == 1
    assert "I/O error" in result.output
    assert "getrandom failed" in result.output
    assert vault.path.read_bytes() == before
