"""
Centralized logging configuration for Meishi Exchange.
Provides component-specific loggers with separate log files.
"""

import logging
import logging.handlers
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from ..config import get_config

DETAILED_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - "
    "%(funcName)s() - %(message)s"
)
SIMPLE_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


class ComponentLogger:
    """Manages component-specific logging with separate files."""

    _loggers: Dict[str, logging.Logger] = {}
    _initialized = False
    _log_dir: Optional[Path] = None
    _to_file = True
    _level = logging.INFO

    # Component definitions with their log levels
    COMPONENTS = {
        "repository": {"level": logging.INFO, "file": "repository.log"},
        "deeplink": {"level": logging.INFO, "file": "deeplink.log"},
        "storage": {"level": logging.INFO, "file": "storage.log"},
        "api": {"level": logging.INFO, "file": "api.log"},
        "main": {"level": logging.INFO, "file": "main.log"},
        "error": {"level": logging.ERROR, "file": "errors.log"},
    }

    # Module path segment -> component
    MODULE_COMPONENTS = {
        "repositories": "repository",
        "deeplink": "deeplink",
        "storage": "storage",
        "db": "storage",
        "api": "api",
    }

    @classmethod
    def initialize(cls, log_dir: Optional[str] = None, debug: bool = False) -> None:
        """
        Initialize the logging system with component-specific loggers.

        Args:
            log_dir: Directory for log files. Defaults to config.app.log_dir
            debug: Enable debug logging for all components
        """
        if cls._initialized:
            return

        config = get_config()
        debug = debug or config.server.debug
        cls._to_file = config.app.log_to_file
        cls._level = logging.DEBUG if debug else logging.getLevelName(
            config.app.log_level.upper()
        )
        if not isinstance(cls._level, int):
            cls._level = logging.INFO

        if cls._to_file:
            base_dir = Path(log_dir) if log_dir else config.resolve_path(config.app.log_dir)
            session_dir = datetime.now().strftime("%Y%m%d_%H%M%S")
            cls._log_dir = base_dir / session_dir
            cls._log_dir.mkdir(parents=True, exist_ok=True)

            with open(cls._log_dir / "session_info.txt", "w", encoding="utf-8") as f:
                f.write(f"Session started: {datetime.now().isoformat()}\n")
                f.write(f"Debug mode: {debug}\n")
                f.write(f"Storage: {config.storage.url}\n")
                f.write(f"Link base URL: {config.links.base_url}\n")

        for component_name, component_config in cls.COMPONENTS.items():
            level = logging.DEBUG if debug else component_config["level"]
            cls._loggers[component_name] = cls._build_logger(
                component_name, level, component_config["file"]
            )

        if cls._to_file:
            unified_logger = logging.getLogger("meishi.unified")
            unified_logger.handlers.clear()
            unified_logger.setLevel(cls._level)
            unified_logger.propagate = False
            unified_handler = logging.handlers.RotatingFileHandler(
                cls._log_dir / "unified.log",
                maxBytes=20 * 1024 * 1024,  # 20MB
                backupCount=3,
                encoding="utf-8",
            )
            unified_handler.setLevel(cls._level)
            unified_handler.setFormatter(logging.Formatter(DETAILED_FORMAT))
            unified_logger.addHandler(unified_handler)
            cls._loggers["unified"] = unified_logger

            for name, logger in cls._loggers.items():
                if name != "unified":
                    logger.addHandler(unified_handler)

        # Mark as initialized before logging to avoid recursion
        cls._initialized = True

        main_logger = cls._loggers["main"]
        main_logger.info("Meishi Exchange logging initialized")
        if cls._log_dir:
            main_logger.info(f"Log directory: {cls._log_dir}")

    @classmethod
    def _build_logger(cls, component: str, level: int, file_name: str) -> logging.Logger:
        logger = logging.getLogger(f"meishi.{component}")
        logger.handlers.clear()
        logger.propagate = False
        logger.setLevel(level)

        if cls._to_file:
            file_handler = logging.handlers.RotatingFileHandler(
                cls._log_dir / file_name,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
                encoding="utf-8",
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(logging.Formatter(DETAILED_FORMAT))
            logger.addHandler(file_handler)

        # Errors always reach the console; everything does when not writing files
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.ERROR if cls._to_file else level)
        console_handler.setFormatter(logging.Formatter(SIMPLE_FORMAT, datefmt="%H:%M:%S"))
        logger.addHandler(console_handler)

        return logger

    @classmethod
    def resolve_component(cls, component: str) -> str:
        """Map a module path like ``meishi_exchange.deeplink.codec`` to a component."""
        if not component.startswith("meishi_exchange"):
            return component
        parts = component.split(".")
        for part in parts[1:]:
            if part in cls.MODULE_COMPONENTS:
                return cls.MODULE_COMPONENTS[part]
        return "main"

    @classmethod
    def get_logger(cls, component: str) -> logging.Logger:
        """
        Get a logger for a specific component.

        Args:
            component: Component name (repository, deeplink, storage, api, ...)
                      or a module path such as ``__name__``

        Returns:
            Logger instance for the component
        """
        if not cls._initialized:
            cls.initialize()

        component = cls.resolve_component(component)
        if component not in cls._loggers:
            cls._loggers[component] = cls._build_logger(
                component, cls._level, f"{component}.log"
            )
            unified = cls._loggers.get("unified")
            if unified:
                for handler in unified.handlers:
                    cls._loggers[component].addHandler(handler)

        return cls._loggers[component]

    @classmethod
    def log_exception(
        cls, component: str, exc: Exception, context: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Log an exception with context to both component and error logs.

        Args:
            component: Component where the exception occurred
            exc: The exception to log
            context: Additional context information
        """
        component_logger = cls.get_logger(component)
        error_logger = cls.get_logger("error")

        context_str = ""
        if context:
            context_str = " | Context: " + ", ".join(f"{k}={v}" for k, v in context.items())

        exc_info = (type(exc), exc, exc.__traceback__)
        component_logger.error(
            f"Exception in {component}: {type(exc).__name__}: {exc}{context_str}",
            exc_info=exc_info,
        )
        error_logger.error(
            f"[{component}] {type(exc).__name__}: {exc}{context_str}", exc_info=exc_info
        )

    @classmethod
    def get_log_directory(cls) -> Optional[Path]:
        """Get the current log directory path."""
        return cls._log_dir

    @classmethod
    def reset(cls) -> None:
        """Close handlers and forget loggers so the next call reinitializes."""
        for logger in cls._loggers.values():
            for handler in list(logger.handlers):
                handler.close()
            logger.handlers.clear()
        cls._loggers = {}
        cls._initialized = False
        cls._log_dir = None


# Convenience functions
def get_logger(component: str) -> logging.Logger:
    """Get a logger for a specific component."""
    return ComponentLogger.get_logger(component)


def get_module_logger(module_name: str) -> logging.Logger:
    """
    Get a logger for a module using its __name__.

    Example:
        logger = get_module_logger(__name__)
    """
    return ComponentLogger.get_logger(module_name)


def initialize_logging(log_dir: Optional[str] = None, debug: bool = False) -> None:
    """Initialize the logging system."""
    ComponentLogger.initialize(log_dir=log_dir, debug=debug)


def log_exception(
    component: str, exc: Exception, context: Optional[Dict[str, Any]] = None
) -> None:
    """Log an exception with context."""
    ComponentLogger.log_exception(component, exc, context)


def get_log_directory() -> Optional[Path]:
    """Get the current log directory path."""
    return ComponentLogger.get_log_directory()
