"""
Tests for the command line dispatcher (recordstock.__main__).

Each test runs `main()` against a store file in a temporary directory, the way
a user would run consecutive commands.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from recordstock.__main__ import (
    EXIT_OK,
    EXIT_STORAGE,
    EXIT_USAGE,
    EXIT_VALIDATION,
    COMMANDS,
    main,
    parse_args,
)
from recordstock.core import UsageError

PIPE_FILE = (
    "2 | CD | 1975 | Queen | A Night at the Opera\n"
    "1 | Vinyl | 1975 | Queen | A Night at the Opera\n"
    "1 | CD | 1991 | Queen | Innuendo\n"
)


@pytest.fixture
def store(tmp_path: Path) -> Path:
    return tmp_path / "inventory.db"


@pytest.fixture
def loaded(tmp_path: Path, store: Path, capsys: pytest.CaptureFixture[str]) -> Path:
    source = tmp_path / "albums.pipe"
    source.write_text(PIPE_FILE, encoding="utf-8")
    assert main(["--db", str(store), "load", str(source)]) == EXIT_OK
    capsys.readouterr()
    return store


def run(store: Path, *args: str) -> int:
    return main(["--no-color", "--db", str(store), *args])


class TestArguments:
    def test_commands_registered(self) -> None:
        assert set(COMMANDS) == {"load", "search", "purchase", "list"}

    def test_parse_purchase(self) -> None:
        args = parse_args(["purchase", "3", "-q", "2"])

        assert args.command == "purchase"
        assert args.id == 3
        assert args.quantity == 2

    def test_wrong_arity_raises_usage_error(self) -> None:
        with pytest.raises(UsageError) as excinfo:
            parse_args(["search", "artist"])

        assert excinfo.value.usage is not None
        assert "search" in excinfo.value.usage

    def test_missing_command(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main([]) == EXIT_USAGE
        assert "Usage:" in capsys.readouterr().err

    def test_non_numeric_id(self, store: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert run(store, "purchase", "abc") == EXIT_USAGE
        assert "invalid int value" in capsys.readouterr().err


class TestLoad:
    def test_load_pipe_file(
        self, tmp_path: Path, store: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        source = tmp_path / "albums.pipe"
        source.write_text(PIPE_FILE, encoding="utf-8")

        assert run(store, "load", str(source)) == EXIT_OK

        out = capsys.readouterr().out
        assert "Loaded 4 unit(s) in 3 row(s)" in out
        assert "1 new artist(s), 2 new album(s)" in out
        assert store.is_file()

    def test_load_csv_file(
        self, tmp_path: Path, store: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        source = tmp_path / "albums.csv"
        source.write_text(
            "artist,title,format,release_year\nABBA,Arrival,Vinyl,1976\nABBA,Arrival,Vinyl,1976\n",
            encoding="utf-8",
        )

        assert run(store, "load", str(source)) == EXIT_OK
        capsys.readouterr()

        assert run(store, "search", "artist", "abba") == EXIT_OK
        assert "Vinyl(2): 1" in capsys.readouterr().out

    def test_load_missing_file(
        self, tmp_path: Path, store: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert run(store, "load", str(tmp_path / "missing.pipe")) == EXIT_VALIDATION
        assert "is not a file" in capsys.readouterr().err

    def test_load_unsupported_type(
        self, tmp_path: Path, store: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        source = tmp_path / "albums.txt"
        source.write_text("whatever\n", encoding="utf-8")

        assert run(store, "load", str(source)) == EXIT_VALIDATION
        assert "not supported" in capsys.readouterr().err

    def test_load_malformed_line(
        self, tmp_path: Path, store: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        source = tmp_path / "albums.pipe"
        source.write_text("1 | CD | 1975 | Queen\n", encoding="utf-8")

        assert run(store, "load", str(source)) == EXIT_VALIDATION
        assert "line 1" in capsys.readouterr().err


class TestSearch:
    def test_search_groups_by_album(self, loaded: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert run(loaded, "search", "title", "opera") == EXIT_OK

        out = capsys.readouterr().out
        assert "Artist: Queen" in out
        assert "Album: A Night at the Opera" in out
        assert "Released: 1975" in out
        assert "Cd(2): 1" in out
        assert "Vinyl(1): 2" in out
        assert "Innuendo" not in out

    def test_search_release_year_newest_first(
        self, loaded: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert run(loaded, "search", "release_year", "19") == EXIT_OK

        out = capsys.readouterr().out
        assert out.index("Innuendo") < out.index("A Night at the Opera")

    def test_search_no_results(self, loaded: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert run(loaded, "search", "artist", "Beatles") == EXIT_OK
        assert "No matches found for Beatles in artist." in capsys.readouterr().out

    def test_search_invalid_field(self, loaded: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert run(loaded, "search", "genre", "rock") == EXIT_VALIDATION
        assert "genre is not a valid field name" in capsys.readouterr().err


class TestPurchase:
    def test_purchase_then_search(self, loaded: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert run(loaded, "purchase", "1") == EXIT_OK
        out = capsys.readouterr().out
        assert "Removed 1 Cd of A Night at the Opera by Queen from the inventory." in out

        assert run(loaded, "search", "format", "cd") == EXIT_OK
        assert "Cd(1): 1" in capsys.readouterr().out

    def test_purchase_more_than_stock(
        self, loaded: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert run(loaded, "purchase", "1", "--quantity", "5") == EXIT_OK
        assert "There are not 5 Cd of A Night at the Opera by Queen" in capsys.readouterr().out

        assert run(loaded, "search", "id", "1") == EXIT_OK
        assert "Cd(2): 1" in capsys.readouterr().out

    def test_purchase_out_of_stock(self, loaded: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert run(loaded, "purchase", "3") == EXIT_OK
        capsys.readouterr()

        assert run(loaded, "purchase", "3") == EXIT_OK
        assert "Innuendo by Queen in Cd is out of stock." in capsys.readouterr().out

    def test_purchase_unknown_id(self, loaded: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert run(loaded, "purchase", "999") == EXIT_OK
        assert "999 is not a valid id." in capsys.readouterr().out

    def test_purchase_zero_quantity(self, loaded: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert run(loaded, "purchase", "1", "-q", "0") == EXIT_VALIDATION
        assert "at least 1" in capsys.readouterr().err


class TestList:
    def test_list_empty_store(self, store: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert run(store, "list") == EXIT_OK
        assert "The inventory is empty." in capsys.readouterr().out

    def test_list_all_includes_exhausted(
        self, loaded: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        run(loaded, "purchase", "3")
        capsys.readouterr()

        assert run(loaded, "list") == EXIT_OK
        assert "Innuendo" not in capsys.readouterr().out

        assert run(loaded, "list", "--all") == EXIT_OK
        assert "Cd(0): 3" in capsys.readouterr().out


def test_storage_failure_exit_code(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    # A directory cannot be opened as a SQLite file.
    assert run(tmp_path, "list") == EXIT_STORAGE
    assert "failed" in capsys.readouterr().err


def test_store_under_a_regular_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory\n", encoding="utf-8")

    assert run(blocker / "inventory.db", "list") == EXIT_STORAGE
    assert "failed" in capsys.readouterr().err


def test_load_non_utf8_file(
    tmp_path: Path, store: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    source = tmp_path / "albums.pipe"
    source.write_bytes(b"1 | CD | 1975 | Bj\xf6rk | Debut\n")

    assert run(store, "load", str(source)) == EXIT_VALIDATION
    assert "not valid UTF-8" in capsys.readouterr().err
