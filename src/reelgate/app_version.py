"""Application version (dist metadata, or pyproject.toml for source checkouts)."""

from __future__ import annotations

from functools import lru_cache
from importlib.metadata import PackageNotFoundError, version as _dist_version
from pathlib import Path

import tomllib


def _find_pyproject(start: Path) -> Path | None:
    for parent in (start, *start.parents):
        candidate = parent / "pyproject.toml"
        if candidate.is_file():
            return candidate
    return None


@lru_cache(maxsize=4)
def get_app_version(package_name: str = "reelgate") -> str:
    try:
        return _dist_version(package_name)
    except PackageNotFoundError:
        pyproject = _find_pyproject(Path(__file__).resolve().parent)
        if pyproject is None:
            return "0.0.0"
        try:
            with pyproject.open("rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError):
            return "0.0.0"
        return str(data.get("project", {}).get("version", "0.0.0"))
