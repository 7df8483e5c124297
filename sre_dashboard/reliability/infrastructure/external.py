"""
Reliability External Integrations
=================================

YAML health configuration with hot reload:
- HealthConfigManager: loads health_config.yaml and serves the current copy
- ConfigFileHandler: watchdog handler that triggers a reload on change
"""

import threading
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from sre_dashboard.core import ConfigurationException
from sre_dashboard.reliability.application.services import IHealthConfigProvider
from sre_dashboard.reliability.domain import HealthConfig
from sre_dashboard.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class ConfigFileHandler(FileSystemEventHandler):
    """Watchdog event handler for health config file changes."""

    def __init__(self, config_manager: "HealthConfigManager", config_path: Path):
        self.config_manager = config_manager
        self.config_path = config_path
        super().__init__()

    def on_modified(self, event):
        if event.is_directory:
            return
        if Path(event.src_path).resolve() == self.config_path.resolve():
            logger.info("Health config file changed", extra={"path": str(event.src_path)})
            self.config_manager.reload()


class HealthConfigManager(IHealthConfigProvider):
    """
    Thread-safe health configuration manager with hot-reload support.

    A missing file means the built-in defaults. A file that fails to parse
    at startup raises ConfigurationException; the same failure during a
    reload keeps the previous configuration.
    """

    def __init__(self):
        self._config: Optional[HealthConfig] = None
        self._lock = threading.Lock()
        self._path: Optional[Path] = None
        self._observer = None

    def load(self, path: Path) -> HealthConfig:
        """Initial configuration load."""
        self._path = Path(path)
        config = self._load_from_file(self._path)
        with self._lock:
            self._config = config
        return config

    def _load_from_file(self, path: Path) -> HealthConfig:
        if not path.exists():
            logger.warning("Health config file not found, using defaults", extra={"path": str(path)})
            return HealthConfig()

        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
            return HealthConfig(**data)
        except (yaml.YAMLError, ValidationError, TypeError) as e:
            raise ConfigurationException(
                f"Invalid health config {path}: {e}",
                details={"path": str(path)}
            ) from e

    def reload(self) -> bool:
        """Reload configuration from file."""
        if self._path is None:
            return False

        try:
            new_config = self._load_from_file(self._path)
        except ConfigurationException as e:
            logger.error("Failed to reload health config", extra={"error": e.message})
            return False

        with self._lock:
            self._config = new_config
        logger.info("Health configuration reloaded", extra={"path": str(self._path)})
        return True

    def start_watching(self) -> None:
        """
        Start watching the configuration file for changes.

        Skipped when the file does not exist or the platform cannot watch
        files (some container runtimes).
        """
        if self._path is None:
            raise RuntimeError("Config not loaded. Call load() first.")

        if not self._path.exists():
            logger.info(
                "Health config file doesn't exist, skipping file watch",
                extra={"path": str(self._path)}
            )
            return

        try:
            self._observer = Observer()
            handler = ConfigFileHandler(self, self._path)
            self._observer.schedule(handler, str(self._path.parent), recursive=False)
            self._observer.start()
            logger.info("Started watching health config file", extra={"path": str(self._path)})
        except OSError as e:
            logger.warning("File watching not available, using static config", extra={"error": str(e)})
            self._observer = None

    def stop_watching(self) -> None:
        """Stop watching (safe to call even if not watching)."""
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None

    def get_config(self) -> HealthConfig:
        with self._lock:
            if self._config is None:
                return HealthConfig()
            return self._config

    @property
    def is_watching(self) -> bool:
        return self._observer is not None
