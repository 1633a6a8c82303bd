"""
Centralized configuration for the JIRA design-tool plugin.

Configuration sources (priority order):
1. Environment variables (SKETCH_JIRA_*)
2. Default values

Environment variables:
- SKETCH_JIRA_URL: Base URL of the JIRA instance
- SKETCH_JIRA_USER: Account email/name for basic auth
- SKETCH_JIRA_TOKEN: API token (basic auth) or bearer token (no user set)
- SKETCH_JIRA_TIMEOUT: Network timeout in seconds (default: 30)
- SKETCH_JIRA_THUMBNAIL_CONCURRENCY: Parallel thumbnail fetches (default: 4)
- SKETCH_JIRA_LOG_LEVEL: Log level (default: INFO)
- SKETCH_JIRA_RUNTIME_DIR: Runtime directory (default: ~/.local/share/sketch-jira)
"""

import os
from dataclasses import dataclass
from pathlib import Path

__all__ = ["PluginConfig", "config", "DEFAULT_RUNTIME_DIR"]

DEFAULT_RUNTIME_DIR = Path.home() / ".local/share/sketch-jira"

# Atlaskit grid unit used to size the issues panel
GRID_SIZE = 8
TITLEBAR_HEIGHT = 22


def _get_env(key: str, default: str) -> str:
    """Get environment variable with SKETCH_JIRA_ prefix."""
    return os.environ.get(f"SKETCH_JIRA_{key}", default)


def _get_env_int(key: str, default: int) -> int:
    """Get integer environment variable."""
    return int(_get_env(key, str(default)))


def _get_env_float(key: str, default: float) -> float:
    """Get float environment variable."""
    return float(_get_env(key, str(default)))


def _get_env_path(key: str, default: Path) -> Path:
    """Get path environment variable."""
    val = os.environ.get(f"SKETCH_JIRA_{key}")
    return Path(val) if val else default


@dataclass(frozen=True)
class PluginConfig:
    """Immutable plugin configuration."""

    jira_url: str = _get_env("URL", "")
    jira_user: str = _get_env("USER", "")
    jira_token: str = _get_env("TOKEN", "")

    timeout: float = _get_env_float("TIMEOUT", 30.0)
    pool_size: int = 10
    log_level: str = _get_env("LOG_LEVEL", "INFO")

    runtime_dir: Path = _get_env_path("RUNTIME_DIR", DEFAULT_RUNTIME_DIR)

    # Thumbnail fan-out
    thumbnail_concurrency: int = _get_env_int("THUMBNAIL_CONCURRENCY", 4)

    # Circuit breaker defaults
    circuit_failure_threshold: int = 5
    circuit_reset_timeout: float = 30.0

    # Panel dimensions (width, height)
    issue_list_size: tuple[int, int] = (GRID_SIZE * 64, GRID_SIZE * 45 + TITLEBAR_HEIGHT)
    issue_view_size: tuple[int, int] = (GRID_SIZE * 64, GRID_SIZE * 50)

    @property
    def export_dir(self) -> Path:
        """Parent of the per-export temporary directories."""
        return self.runtime_dir / "exports"

    @property
    def download_dir(self) -> Path:
        """Where opened attachments are downloaded to."""
        return self.runtime_dir / "downloads"

    @property
    def configured(self) -> bool:
        """Whether enough settings exist to talk to JIRA."""
        return bool(self.jira_url and self.jira_token)

    def ensure_dirs(self) -> None:
        """Create runtime directories if they don't exist."""
        self.runtime_dir.mkdir(parents=True, exist_ok=True)
        self.export_dir.mkdir(exist_ok=True)
        self.download_dir.mkdir(exist_ok=True)


# Global singleton
config = PluginConfig()
