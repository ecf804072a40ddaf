"""
Appdex Configuration Module

Centralized configuration for the Appdex indexing and search system.

The core only ever consumes an immutable :class:`AppdexConfig` snapshot.
Loading, merging and hot-reloading configuration *files* belongs to the
embedding application; this module only knows defaults and environment
overrides.
"""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional, Tuple

# Fallback locations scanned for desktop entries after $XDG_DATA_DIRS.
DEFAULT_DESKTOP_PATHS: Tuple[str, ...] = (
    "/usr/share/applications",
    "/usr/local/share/applications",
    "/var/lib/flatpak/exports/share/applications",
    "~/.local/share/applications",
    "~/.local/share/flatpak/exports/share/applications",
)

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    return default


def _env_int(name: str, default: int) -> int:
    from appdex.exceptions import ConfigError

    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")


@dataclass(frozen=True)
class AppdexConfig:
    """
    Immutable configuration snapshot for Appdex.

    Each instance is self-contained and passed explicitly to the index
    builder, the search engine and the client, so several independent
    indexes can live in one process (tests do exactly that).

    Create from environment variables::

        config = AppdexConfig.from_env()

    Or with explicit values::

        config = AppdexConfig(max_results=20, binary_dir="/usr/local/bin")
    """

    # ── Results & presentation ────────────────────────────────────
    max_results: int = 100
    # The show_* flags only change what a caller displays; the core
    # always computes complete entries.
    show_search: bool = True
    show_icons: bool = True
    show_descriptions: bool = True
    show_paths: bool = False

    # ── Discovery ─────────────────────────────────────────────────
    desktop_paths: Tuple[str, ...] = DEFAULT_DESKTOP_PATHS
    use_xdg_data_dirs: bool = True
    desktop_extension: str = ".desktop"
    binary_dir: str = "/usr/bin"

    # ── Heatmap ───────────────────────────────────────────────────
    heatmap_path: Optional[str] = None
    """Explicit heatmap file. None means ``$XDG_DATA_HOME/appdex/heatmap.json``."""
    heatmap_queue_size: int = 256

    # ── Concurrency ───────────────────────────────────────────────
    max_workers: int = 8
    parallel_threshold: int = 512
    """Candidate count from which text-mode scoring is split across workers."""

    # ── Logging ───────────────────────────────────────────────────
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # ── Factory ───────────────────────────────────────────────────

    @classmethod
    def from_env(cls) -> "AppdexConfig":
        """Build a config snapshot from current environment variables.

        Recognised variables: ``APPDEX_MAX_RESULTS``, ``APPDEX_SHOW_SEARCH``,
        ``APPDEX_SHOW_ICONS``, ``APPDEX_SHOW_DESCRIPTIONS``,
        ``APPDEX_SHOW_PATHS``, ``APPDEX_DESKTOP_PATHS`` (colon separated),
        ``APPDEX_USE_XDG_DATA_DIRS``, ``APPDEX_HEATMAP_PATH``, ``APPDEX_BINARY_DIR``,
        ``APPDEX_MAX_WORKERS`` and ``APPDEX_LOG_LEVEL``.
        """
        defaults = cls()
        raw_paths = os.getenv("APPDEX_DESKTOP_PATHS", "")
        desktop_paths = tuple(p for p in raw_paths.split(":") if p.strip()) or defaults.desktop_paths
        return cls(
            max_results=_env_int("APPDEX_MAX_RESULTS", defaults.max_results),
            show_search=_env_bool("APPDEX_SHOW_SEARCH", defaults.show_search),
            show_icons=_env_bool("APPDEX_SHOW_ICONS", defaults.show_icons),
            show_descriptions=_env_bool("APPDEX_SHOW_DESCRIPTIONS", defaults.show_descriptions),
            show_paths=_env_bool("APPDEX_SHOW_PATHS", defaults.show_paths),
            desktop_paths=desktop_paths,
            use_xdg_data_dirs=_env_bool("APPDEX_USE_XDG_DATA_DIRS", defaults.use_xdg_data_dirs),
            heatmap_path=os.getenv("APPDEX_HEATMAP_PATH") or None,
            binary_dir=os.getenv("APPDEX_BINARY_DIR", defaults.binary_dir),
            max_workers=_env_int("APPDEX_MAX_WORKERS", defaults.max_workers),
            log_level=os.getenv("APPDEX_LOG_LEVEL", defaults.log_level).upper(),
        )

    @classmethod
    def field_names(cls) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    # ── Validation & Accessors ────────────────────────────────────

    def validate(self) -> bool:
        """
        Check value ranges.

        Raises :class:`~appdex.exceptions.ConfigError` on failure.
        """
        from appdex.exceptions import ConfigError

        for name in ("max_results", "max_workers", "heatmap_queue_size", "parallel_threshold"):
            value = getattr(self, name)
            if not isinstance(value, int) or value <= 0:
                raise ConfigError(f"{name} must be a positive integer, got {value!r}")

        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ConfigError(
                f"Unknown log level '{self.log_level}'.\n"
                "  Set via: export APPDEX_LOG_LEVEL=DEBUG"
            )

        if not self.desktop_extension.startswith("."):
            raise ConfigError(
                f"desktop_extension must start with '.', got {self.desktop_extension!r}"
            )
        return True

    def get_heatmap_path(self) -> Path:
        """Return the heatmap file path, resolving the per-user default."""
        if self.heatmap_path:
            return Path(os.path.expanduser(self.heatmap_path))
        data_home = os.getenv("XDG_DATA_HOME") or os.path.expanduser("~/.local/share")
        return Path(data_home) / "appdex" / "heatmap.json"
