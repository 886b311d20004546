"""Tests for settingsrepo CLI commands."""

from unittest.mock import patch

import pytest

from settingsrepo.cli import (
    cat,
    exists,
    index,
    list_children,
    put,
    remove,
    reset,
    resolve,
)


@pytest.fixture
def repo_env(tmp_path, monkeypatch):
    """Point the configuration at a temporary repository."""
    root = tmp_path / "repository"
    monkeypatch.setenv("SETTINGS_REPOSITORY_PATH", str(root))
    monkeypatch.setenv("SETTINGS_REPOSITORY_INDEX", str(tmp_path / "index.json"))
    monkeypatch.delenv("SETTINGS_REPOSITORY_HEADLESS", raising=False)
    return root


@pytest.fixture
def source_file(tmp_path):
    path = tmp_path / "editor.xml"
    path.write_bytes(b"<editor/>")
    return path


def test_put_and_cat(repo_env, source_file, capsys):
    put("options/editor.xml", source_file)
    assert "Stored options/editor.xml" in capsys.readouterr().out

    cat("options/editor.xml")
    assert capsys.readouterr().out == "<editor/>"


def test_cat_missing_exits(repo_env, capsys):
    with pytest.raises(SystemExit) as exc_info:
        cat("missing.xml")

    assert exc_info.value.code == 1
    assert "Not found" in capsys.readouterr().out


def test_ls(repo_env, source_file, capsys):
    put("options/editor.xml", source_file)
    put("options/ui.xml", source_file)
    capsys.readouterr()

    list_children("options")

    out = capsys.readouterr().out
    assert "editor.xml" in out
    assert "ui.xml" in out


def test_ls_empty(repo_env, capsys):
    list_children()

    assert "No entries" in capsys.readouterr().out


def test_rm_prunes_directories(repo_env, source_file, capsys):
    put("a/b/editor.xml", source_file)

    remove("a/b/editor.xml")

    assert "Deleted a/b/editor.xml" in capsys.readouterr().out
    assert not (repo_env / "a").exists()


def test_exists(repo_env, source_file, capsys):
    put("options/editor.xml", source_file)

    with pytest.raises(SystemExit) as exc_info:
        exists("options/editor.xml")
    assert exc_info.value.code == 0

    with pytest.raises(SystemExit) as exc_info:
        exists("options/other.xml")
    assert exc_info.value.code == 1


def test_index_lists_entries(repo_env, source_file, capsys):
    put("options/editor.xml", source_file)
    capsys.readouterr()

    index()

    assert "options/editor.xml" in capsys.readouterr().out


def test_reset_with_confirmation_declined(repo_env, source_file, capsys):
    put("options/editor.xml", source_file)

    with patch("settingsrepo.cli.Confirm.ask", return_value=False):
        reset()

    assert "Cancelled" in capsys.readouterr().out
    assert repo_env.exists()


def test_reset_yes(repo_env, source_file):
    put("options/editor.xml", source_file)

    reset(yes=True)

    assert not repo_env.exists()


def test_resolve_sentinel(repo_env, tmp_path, capsys):
    incoming_dir = tmp_path / "incoming"
    (incoming_dir / "options").mkdir(parents=True)
    (incoming_dir / "options" / "a.xml").write_bytes(b"reset to my")

    local = tmp_path / "local.xml"
    local.write_bytes(b"local")
    put("options/a.xml", local)

    resolve("options/a.xml", incoming_dir=incoming_dir, strategy="sentinel")

    assert (repo_env / "options" / "a.xml").read_bytes() == b"reset to my"
    assert "✓ options/a.xml" in capsys.readouterr().out


def test_resolve_unresolved_exits_nonzero(repo_env, tmp_path, capsys):
    incoming_dir = tmp_path / "incoming"
    incoming_dir.mkdir()
    (incoming_dir / "a.xml").write_bytes(b"theirs")

    with pytest.raises(SystemExit) as exc_info:
        resolve("a.xml", incoming_dir=incoming_dir, strategy="sentinel")

    assert exc_info.value.code == 1
    assert "unresolved" in capsys.readouterr().out


def test_resolve_incoming_deletion(repo_env, tmp_path, source_file):
    put("options/editor.xml", source_file)
    incoming_dir = tmp_path / "incoming"
    incoming_dir.mkdir()

    resolve("options/editor.xml", incoming_dir=incoming_dir, strategy="incoming")

    assert not (repo_env / "options").exists()
