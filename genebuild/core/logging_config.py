# genebuild/core/logging_config.py
import logging
import os
from datetime import datetime
from typing import Optional, Dict, Any, List


class LoggingManager:
    """Root logger setup shared by every genebuild job

    Messages always go to stderr. A file handler is added when a log file is
    given, or when a log directory is configured, in which case the file is
    named after the component and the start time.
    """

    LINE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

    @staticmethod
    def _level(verbose: bool, settings: Dict[str, Any]) -> int:
        if verbose:
            return logging.DEBUG
        level = logging.getLevelName(str(settings.get('level', 'INFO')).upper())
        return level if isinstance(level, int) else logging.INFO

    @staticmethod
    def _log_path(component: str, log_file: Optional[str], log_dir: Optional[str]) -> Optional[str]:
        if log_file or not log_dir:
            return log_file
        os.makedirs(log_dir, exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return os.path.join(log_dir, f"{component}_{stamp}.log")

    @classmethod
    def configure(
        cls,
        verbose: bool = False,
        log_file: Optional[str] = None,
        component: str = "genebuild",
        log_dir: Optional[str] = None,
        config: Optional[Dict[str, Any]] = None
    ) -> logging.Logger:
        """Install handlers on the root logger

        Args:
            verbose: DEBUG level regardless of configuration
            log_file: Explicit log file
            component: Analysis name, used for the logger and generated file names
            log_dir: Directory for generated log files, overriding logging.log_dir
            config: Full configuration; only its 'logging' section is read

        Returns:
            The component's logger
        """
        settings = (config or {}).get('logging') or {}
        level = cls._level(verbose, settings)
        line_format = settings.get('format', cls.LINE_FORMAT)
        path = cls._log_path(component, log_file, log_dir or settings.get('log_dir'))

        handlers: List[logging.Handler] = [logging.StreamHandler()]
        if path:
            handlers.append(logging.FileHandler(path))

        logging.basicConfig(level=level, format=line_format, datefmt=cls.DATE_FORMAT,
                            handlers=handlers, force=True)

        logger = logging.getLogger(component)
        logger.info(f"Logging initialized for {component} at level {logging.getLevelName(level)}")
        if path:
            logger.info(f"Writing log to {path}")
        return logger

    @staticmethod
    def get_logger(name: str) -> logging.Logger:
        return logging.getLogger(name)
