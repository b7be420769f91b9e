from __future__ import annotations

import os
import sys
from pathlib import Path
import subprocess
import pytest


@pytest.fixture(scope="session")
def repo_root() -> Path:
    # tests/workflow/ -> tests -> repo_root
    return Path(__file__).resolve().parents[2]


@pytest.fixture(scope="session")
def venv_python(repo_root: Path) -> str:
    # Prefer a project venv when present; otherwise the interpreter running pytest
    win_path = repo_root / ".venv" / "Scripts" / "python.exe"
    posix_path = repo_root / ".venv" / "bin" / "python"
    if win_path.exists():
        return str(win_path)
    if posix_path.exists():
        return str(posix_path)
    return sys.executable


@pytest.fixture(scope="session")
def tmp_dir(repo_root: Path) -> Path:
    d = repo_root / ".pytest-tmp"
    d.mkdir(parents=True, exist_ok=True)
    return d


@pytest.fixture(scope="function")
def tmp_db_url(tmp_dir: Path) -> str:
    db_file = tmp_dir / "namebank_e2e.db"
    # Clean slate for each test function
    if db_file.exists():
        db_file.unlink()
    # Relative to repo root so every script resolves the same file
    rel = Path(".pytest-tmp") / db_file.name
    return f"sqlite:///./{rel.as_posix()}"


def run_cli(args: list[str], cwd: Path, env: dict | None = None) -> subprocess.CompletedProcess:
    merged_env = dict(os.environ)
    py_path = merged_env.get("PYTHONPATH", "")
    sep = ";" if os.name == "nt" else ":"
    if str(cwd) not in (py_path.split(sep) if py_path else []):
        merged_env["PYTHONPATH"] = (py_path + (sep if py_path else "") + str(cwd))
    merged_env.setdefault("PYTHONIOENCODING", "utf-8")
    if env:
        merged_env.update(env)
    return subprocess.run(args, cwd=str(cwd), capture_output=True, text=True, encoding="utf-8", env=merged_env)


@pytest.fixture
def cli(repo_root: Path):
    def _runner(argv: list[str], env: dict | None = None):
        return run_cli(argv, repo_root, env=env)
    return _runner


def assert_ok(cp: subprocess.CompletedProcess, context: str = "") -> None:
    if cp.returncode != 0:
        raise AssertionError("\n".join([
            f"Command failed{': ' + context if context else ''}",
            f"RC={cp.returncode}",
            "STDOUT:",
            cp.stdout,
            "STDERR:",
            cp.stderr,
        ]))
