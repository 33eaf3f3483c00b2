# context.py
# Environment probe — inspects a working directory for project metadata.
# Must never raise: anything it cannot determine is reported as unknown.

import json
import os
import subprocess
from pathlib import Path

from cognitive_engine.models import EnvironmentContext

KEY_FILE_PATTERNS = [
    "package.json", "tsconfig.json", "pyproject.toml", "requirements.txt", "README.md",
    "src/index.ts", "src/index.js", "src/main.ts", "main.py",
    "Dockerfile", "docker-compose.yml", ".env.example", "config/*",
]
SOURCE_SUFFIXES = {".ts", ".js", ".py"}
SKIPPED_DIRS = {".git", "node_modules", ".venv", "venv", "__pycache__", "dist", "build"}
MAX_KEY_FILES = 20
MAX_RECENT_FILES = 10
MAX_SCANNED_FILES = 500


def _read_manifest(path: Path) -> dict:
    # UnicodeDecodeError and JSONDecodeError are both ValueErrors.
    try:
        manifest = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}
    return manifest if isinstance(manifest, dict) else {}


def _detect_project(root: Path) -> dict:
    package_json = root / "package.json"
    if package_json.is_file():
        manifest = _read_manifest(package_json)
        name, main = manifest.get("name"), manifest.get("main")
        return {
            "project_type": "node",
            "project_name": name if isinstance(name, str) else None,
            "package_manager": "npm",
            "main_entry_point": main if isinstance(main, str) and main else "index.js",
        }
    if (root / "pyproject.toml").is_file() or (root / "requirements.txt").is_file():
        return {"project_type": "python", "package_manager": "pip"}
    if (root / "go.mod").is_file():
        return {"project_type": "go", "package_manager": "go"}
    if (root / "Cargo.toml").is_file():
        return {"project_type": "rust", "package_manager": "cargo"}
    return {"project_type": "unknown"}


def _git(root: Path, *args: str) -> str | None:
    try:
        proc = subprocess.run(
            ["git", "--no-pager", *args],
            cwd=root,
            text=True,
            capture_output=True,
            timeout=5,
        )
    except (OSError, subprocess.SubprocessError):
        return None
    if proc.returncode != 0:
        return None
    return proc.stdout


def _git_info(root: Path) -> dict:
    branch = _git(root, "rev-parse", "--abbrev-ref", "HEAD")
    if branch is None:
        return {"has_git": False}
    status = _git(root, "status", "--porcelain")
    if status is None:
        git_status = "unknown"
    else:
        git_status = "clean" if not status.strip() else "dirty"
    return {"has_git": True, "git_branch": branch.strip(), "git_status": git_status}


def _key_files(root: Path) -> list[str]:
    found: list[str] = []
    for pattern in KEY_FILE_PATTERNS:
        for path in sorted(root.glob(pattern)):
            if path.is_file():
                found.append(path.relative_to(root).as_posix())
    return list(dict.fromkeys(found))[:MAX_KEY_FILES]


def _recently_modified(root: Path) -> list[str]:
    candidates: list[tuple[float, str]] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [name for name in dirnames if name not in SKIPPED_DIRS]
        for filename in filenames:
            path = Path(dirpath) / filename
            if path.suffix not in SOURCE_SUFFIXES:
                continue
            try:
                candidates.append((path.stat().st_mtime, path.relative_to(root).as_posix()))
            except OSError:
                continue
            if len(candidates) >= MAX_SCANNED_FILES:
                break
        if len(candidates) >= MAX_SCANNED_FILES:
            break
    candidates.sort(reverse=True)
    return [name for _, name in candidates[:MAX_RECENT_FILES]]


def gather_context(working_dir: str | None = None) -> EnvironmentContext:
    root = Path(working_dir or os.getcwd())
    if not root.is_dir():
        return EnvironmentContext(working_directory=str(root))

    try:
        key_files = _key_files(root)
        recent = _recently_modified(root)
    except OSError:
        key_files, recent = [], []

    return EnvironmentContext(
        working_directory=str(root),
        has_docker=(root / "Dockerfile").is_file() or (root / "docker-compose.yml").is_file(),
        key_files=key_files,
        recently_modified=recent,
        **_detect_project(root),
        **_git_info(root),
    )
