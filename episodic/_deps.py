"""Startup dependency checks for the episodic CLI, one group per pyproject extra."""

import importlib
import os
import subprocess
import sys

# Set to "0" or "false" to disable auto-install
AUTO_INSTALL_ENV = "EPISODIC_AUTO_INSTALL_DEPS"

# group -> [(import_name, pip_package_name)]; "core" is the base install,
# the others match [project.optional-dependencies] in pyproject.toml
GROUPS: dict[str, list[tuple[str, str]]] = {
    "core": [("httpx", "httpx"), ("bs4", "beautifulsoup4"), ("lxml", "lxml")],
    "progress": [("tqdm", "tqdm")],
    "serve": [("fastapi", "fastapi"), ("uvicorn", "uvicorn")],
}


def install_hint(group: str) -> str:
    """Command that installs group from a source checkout (the project is not on PyPI)."""
    if group == "core":
        return "pip install -e ."
    return f'pip install -e ".[{group}]"'


def _auto_install_enabled() -> bool:
    val = os.environ.get(AUTO_INSTALL_ENV, "1").lower()
    return val not in ("0", "false", "no")


def _importable(name: str) -> bool:
    try:
        importlib.import_module(name)
        return True
    except ImportError:
        return False


def missing(group: str) -> list[str]:
    """pip names of the group's packages that cannot be imported."""
    return [pip_name for mod_name, pip_name in GROUPS[group] if not _importable(mod_name)]


def _pip_install(packages: list[str]) -> bool:
    print(f"Auto-installing {', '.join(packages)}...", file=sys.stderr)
    try:
        subprocess.run([sys.executable, "-m", "pip", "install", "-q", *packages], check=True)
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        print(f"Auto-install failed: {e}", file=sys.stderr)
        return False
    importlib.invalidate_caches()
    return True


def require(group: str) -> None:
    """
    Exit unless every package of group imports. With auto-install enabled the
    packages are installed first and the user is asked to re-run.
    """
    pkgs = missing(group)
    if not pkgs:
        return
    if _auto_install_enabled() and _pip_install(pkgs):
        print("Dependencies installed. Run the command again.", file=sys.stderr)
        sys.exit(0)
    print(f"Missing: {', '.join(pkgs)}", file=sys.stderr)
    print(f"  Install with: {install_hint(group)}", file=sys.stderr)
    sys.exit(1)


def progress_available() -> bool:
    """True if tqdm can be used; tries to install it once, otherwise prints a hint and carries on."""
    pkgs = missing("progress")
    if not pkgs:
        return True
    if _auto_install_enabled() and _pip_install(pkgs) and not missing("progress"):
        return True
    print(f"Optional: {install_hint('progress')} for progress bars.", file=sys.stderr)
    return False
