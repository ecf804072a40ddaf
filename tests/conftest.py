"""
Shared fixtures for the Appdex test suite.
"""

import sys
import warnings
from pathlib import Path

import pytest

# Filter deprecation warnings from pytest-asyncio; we cannot fix the library.
warnings.filterwarnings(
    "ignore",
    category=DeprecationWarning,
    module="pytest_asyncio",
)

# Ensure the src/ directory is on the import path so that
# appdex.core.config / appdex.core.search / etc. can be imported.
SRC_ROOT = Path(__file__).resolve().parent.parent / "src"
sys.path.insert(0, str(SRC_ROOT))

from appdex.core.config import AppdexConfig  # noqa: E402


def write_desktop(root: Path, filename: str, **keys: str) -> Path:
    """Write a ``[Desktop Entry]`` file with *keys* into *root*."""
    root.mkdir(parents=True, exist_ok=True)
    body = "\n".join(f"{key}={value}" for key, value in keys.items())
    path = root / filename
    path.write_text(f"[Desktop Entry]\nType=Application\n{body}\n", encoding="utf-8")
    return path


def make_config(tmp_path: Path, *roots: Path, **overrides) -> AppdexConfig:
    """Config isolated from the host: only *roots*, heatmap and bin dir under tmp."""
    values = dict(
        desktop_paths=tuple(str(r) for r in roots),
        use_xdg_data_dirs=False,
        heatmap_path=str(tmp_path / "data" / "heatmap.json"),
        binary_dir=str(tmp_path / "bin"),
        max_workers=4,
    )
    values.update(overrides)
    return AppdexConfig(**values)


# =============================================================================
# Fixtures — desktop roots
# =============================================================================

@pytest.fixture
def apps_root(tmp_path: Path) -> Path:
    """A desktop root holding a handful of ordinary applications."""
    root = tmp_path / "applications"
    write_desktop(root, "org.gnome.Nautilus.desktop",
                  Name="Files", Comment="Access and organize files",
                  Exec="nautilus --new-window %U", Icon="org.gnome.Nautilus")
    write_desktop(root, "org.gnome.FileRoller.desktop",
                  Name="FileRoller", GenericName="Archive Manager",
                  Exec="file-roller %U", Icon="org.gnome.FileRoller")
    write_desktop(root, "firefox.desktop",
                  Name="Firefox", Comment="Browse the Web",
                  Exec="firefox %u", Icon="firefox")
    write_desktop(root, "htop.desktop",
                  Name="Htop", Exec="htop")
    write_desktop(root, "hidden.desktop",
                  Name="Hidden Helper", Exec="helper", NoDisplay="true")
    (root / "README.txt").write_text("not a desktop file", encoding="utf-8")
    return root


@pytest.fixture
def config(tmp_path: Path, apps_root: Path) -> AppdexConfig:
    return make_config(tmp_path, apps_root)


@pytest.fixture
def bin_dir(tmp_path: Path) -> Path:
    """Binary directory with one executable ``ls`` and one plain file."""
    path = tmp_path / "bin"
    path.mkdir(parents=True, exist_ok=True)
    exe = path / "ls"
    exe.write_text("#!/bin/sh\nexit 0\n", encoding="utf-8")
    exe.chmod(0o755)
    plain = path / "notes"
    plain.write_text("plain", encoding="utf-8")
    plain.chmod(0o644)
    return path


@pytest.fixture
def listing_dir(tmp_path: Path) -> Path:
    """Directory with mixed-case subdirectories and files for path mode."""
    base = tmp_path / "browse"
    (base / "beta").mkdir(parents=True)
    (base / "Alpha").mkdir()
    (base / "zeta.txt").write_text("z", encoding="utf-8")
    (base / "Apple.txt").write_text("a", encoding="utf-8")
    return base
