import json

import pytest

from cognitive_engine import context
from cognitive_engine.context import gather_context


@pytest.fixture
def no_git(monkeypatch):
    monkeypatch.setattr(context, "_git", lambda root, *args: None)


def test_node_project(tmp_path, no_git):
    (tmp_path / "package.json").write_text(json.dumps({"name": "web", "main": "server.js"}))
    (tmp_path / "Dockerfile").write_text("FROM node:20\n")
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "index.ts").write_text("export {}\n")

    env = gather_context(str(tmp_path))

    assert env.project_type == "node"
    assert env.project_name == "web"
    assert env.main_entry_point == "server.js"
    assert env.has_docker is True
    assert env.has_git is False
    assert "package.json" in env.key_files
    assert "src/index.ts" in env.key_files
    assert env.recently_modified == ["src/index.ts"]


def test_python_project(tmp_path, no_git):
    (tmp_path / "pyproject.toml").write_text("[project]\nname = 'x'\n")
    (tmp_path / "main.py").write_text("print('hi')\n")

    env = gather_context(str(tmp_path))

    assert env.project_type == "python"
    assert env.package_manager == "pip"
    assert env.key_files == ["pyproject.toml", "main.py"]


def test_broken_manifest_still_detects_node(tmp_path, no_git):
    (tmp_path / "package.json").write_text("{not json")

    env = gather_context(str(tmp_path))

    assert env.project_type == "node"
    assert env.project_name is None


def test_skipped_directories_are_not_scanned(tmp_path, no_git):
    (tmp_path / "node_modules").mkdir()
    (tmp_path / "node_modules" / "lib.js").write_text("")
    (tmp_path / "app.py").write_text("")

    assert gather_context(str(tmp_path)).recently_modified == ["app.py"]


def test_missing_directory_is_unknown(tmp_path):
    env = gather_context(str(tmp_path / "does-not-exist"))

    assert env.project_type == "unknown"
    assert env.key_files == []
    assert env.has_git is False


def test_git_branch_and_status(tmp_path, monkeypatch):
    answers = {"rev-parse": "main\n", "status": " M app.py\n"}
    monkeypatch.setattr(context, "_git", lambda root, *args: answers[args[0]])

    env = gather_context(str(tmp_path))

    assert env.has_git is True
    assert env.git_branch == "main"
    assert env.git_status == "dirty"


@pytest.mark.parametrize("manifest", [
    b"\xff\xfe{not utf8",
    b"[1, 2, 3]",
    b'{"name": 42, "main": ["index.js"]}',
])
def test_malformed_manifest_never_raises(tmp_path, no_git, manifest):
    (tmp_path / "package.json").write_bytes(manifest)

    env = gather_context(str(tmp_path))

    assert env.project_type == "node"
    assert env.project_name is None
    assert env.main_entry_point == "index.js"
