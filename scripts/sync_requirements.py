#!/usr/bin/env python3
"""pyproject.toml の依存関係から requirements.txt を生成する。

Usage:
    python scripts/sync_requirements.py          # 生成
    python scripts/sync_requirements.py --check  # 差分チェック (CI 用)
"""

from __future__ import annotations

import sys
import tomllib
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
PYPROJECT_PATH = PROJECT_ROOT / "pyproject.toml"
REQUIREMENTS_PATH = PROJECT_ROOT / "requirements.txt"

HEADER = """# Production dependencies for container deployment
# Generated from pyproject.toml [project.dependencies]
# Do not edit manually - run: python scripts/sync_requirements.py
"""


def load_dependencies(pyproject_path: Path = PYPROJECT_PATH) -> list[str]:
    """[project.dependencies] を順序を保ったまま返す。"""
    with pyproject_path.open("rb") as f:
        data = tomllib.load(f)
    deps = data.get("project", {}).get("dependencies", [])
    return list(deps) if isinstance(deps, list) else []


def render_requirements(deps: list[str]) -> str:
    """requirements.txt の内容を組み立てる。"""
    return "\n".join([HEADER, *deps, ""])


def main() -> int:
    generated = render_requirements(load_dependencies())

    if "--check" not in sys.argv:
        REQUIREMENTS_PATH.write_text(generated)
        print(f"Generated: {REQUIREMENTS_PATH}")
        return 0

    if not REQUIREMENTS_PATH.exists():
        print("ERROR: requirements.txt does not exist")
        print("Run: python scripts/sync_requirements.py")
        return 1

    if REQUIREMENTS_PATH.read_text() != generated:
        print("ERROR: requirements.txt is out of sync with pyproject.toml")
        print("Run: python scripts/sync_requirements.py")
        return 1

    print("OK: requirements.txt is in sync")
    return 0


if __name__ == "__main__":
    sys.exit(main())
