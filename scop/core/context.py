"""
context.py -- Provide application context for the SCOP tools
"""
import threading
import logging
from typing import Any, Optional

from scop.db.manager import DBManager
from scop.db.repositories.scop_repository import SCOPRepository
from scop.config import ConfigManager


class ApplicationContext:
    """Application context for the SCOP maintenance tools"""

    _instance = None
    _lock = threading.Lock()

    def __new__(cls, config_path: Optional[str] = None):
        """Singleton instance

        Args:
            config_path: Path to configuration file

        Returns:
            ApplicationContext instance
        """
        with cls._lock:
            if cls._instance is None:
                cls._instance = super(ApplicationContext, cls).__new__(cls)
                cls._instance._initialized = False
            return cls._instance

    def __init__(self, config_path: Optional[str] = None):
        """Initialize application context

        Args:
            config_path: Path to configuration file
        """
        if not hasattr(self, '_initialized') or not self._initialized:
            self.logger = logging.getLogger("scop.context")
            self._init_managers(config_path)
            self._initialized = True
        elif config_path is not None and config_path != self.config_manager.config_path:
            self.logger.info(f"Re-initializing context with new config: {config_path}")
            self._init_managers(config_path)

    def _init_managers(self, config_path: Optional[str]) -> None:
        self.config_manager = ConfigManager(config_path)
        self.logger.info("Configuration initialized")

        self.db_manager = DBManager(self.config_manager.get_db_config())
        self._store: Optional[SCOPRepository] = None
        self.logger.info("Database manager initialized")

    @property
    def store(self) -> SCOPRepository:
        """Classification store backed by the configured database"""
        if self._store is None:
            self._store = SCOPRepository(self.db_manager)
        return self._store

    def update_config(self, section: str, key: str, value: Any) -> None:
        """Update configuration value

        Args:
            section: Configuration section
            key: Configuration key
            value: New value
        """
        if section not in self.config_manager.config:
            self.config_manager.config[section] = {}

        self.config_manager.config[section][key] = value
        self.logger.debug(f"Updated config {section}.{key} = {value}")
