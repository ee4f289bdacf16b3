"""Packaging regression tests."""

import re
from pathlib import Path
from typing import Set


def _read_setuptools_list(key: str) -> Set[str]:
    pyproject = Path("pyproject.toml").read_text(encoding="utf-8")
    match = re.search(rf"{key}\s*=\s*\[(.*?)\]", pyproject, flags=re.DOTALL)
    assert match is not None, f"{key} is missing from pyproject.toml"
    return set(re.findall(r'"([^"]+)"', match.group(1)))


def test_runtime_top_level_modules_are_packaged():
    modules = _read_setuptools_list("py-modules")
    missing = {"play_store"} - modules
    assert not missing, f"Missing py-modules in pyproject.toml: {sorted(missing)}"


def test_engine_package_is_packaged():
    packages = _read_setuptools_list("packages")
    assert "playdraw" in packages
