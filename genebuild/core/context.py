"""
context.py -- configuration and database handles shared by a job
"""
import logging
from typing import Any, Dict, Optional

from genebuild.config import ConfigManager
from genebuild.db.manager import DBManager


class ApplicationContext:
    """What a job needs from its environment

    Database managers are created on first use, so analyses that never touch
    a database (EST discrimination from files) need no connection settings.
    """

    def __init__(self, config_path: Optional[str] = None,
                 config_manager: Optional[ConfigManager] = None):
        self.logger = logging.getLogger("genebuild.context")
        self.config_manager = config_manager or ConfigManager(config_path)
        self._managers: Dict[str, DBManager] = {}

    @property
    def config(self) -> Dict[str, Any]:
        return self.config_manager.config

    def _manager(self, section: str) -> DBManager:
        if section not in self._managers:
            self._managers[section] = DBManager(self.config_manager.get_db_config(section))
            self.logger.info(f"Connected manager for '{section}' created")
        return self._managers[section]

    @property
    def db(self) -> DBManager:
        """Core database: seq regions, loci, stored pseudogenes"""
        return self._manager('database')

    @property
    def est_db(self) -> DBManager:
        """Database holding the mapped ESTs"""
        return self._manager('est_database')

    def update_config(self, section: str, key: str, value: Any) -> None:
        self.config.setdefault(section, {})[key] = value
        self.logger.debug(f"Config override {section}.{key} = {value!r}")
