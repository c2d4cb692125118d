"""
Configuration management for Meishi Exchange

Handles configuration loading with sensible defaults and environment
overrides. Values come from ``config.json`` in the data directory when it
exists, otherwise from defaults; ``MEISHI_*`` environment variables win over
both.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class StorageConfig:
    """Encrypted storage configuration."""

    url: str = "sqlite:///meishi_contacts.db"
    key_file: str = "meishi.key"  # Relative paths resolve against the data dir
    encryption_key: Optional[str] = None  # Fernet key; overrides key_file
    echo: bool = False


@dataclass
class LinkConfig:
    """Deep link configuration."""

    base_url: str = "https://airmeishi.app"
    app_clip_url: str = "https://airmeishi.app/clip"
    domain: str = "airmeishi.app"
    universal_base_path: str = "/share"
    scheme: str = "airmeishi"
    scheme_host: str = "share"
    default_expiration_hours: int = 24


@dataclass
class ServerConfig:
    """Server configuration."""

    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    max_request_bytes: int = 64 * 1024
    allowed_origins: List[str] = field(
        default_factory=lambda: ["http://127.0.0.1:8000", "http://localhost:8000"]
    )


@dataclass
class AppConfig:
    """Main application configuration."""

    app_name: str = "Meishi Exchange"
    version: str = "1.0.0"
    description: str = "Business card exchange over QR codes and deep links"

    data_dir: Optional[str] = None

    # Empty-query search returns storage order unless this is set
    sort_empty_search: bool = False

    # Logging
    log_level: str = "INFO"
    log_to_file: bool = True
    log_dir: str = "logs"


@dataclass
class MeishiConfig:
    """Complete configuration for Meishi Exchange."""

    app: AppConfig
    server: ServerConfig
    storage: StorageConfig
    links: LinkConfig

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "app": asdict(self.app),
            "server": asdict(self.server),
            "storage": asdict(self.storage),
            "links": asdict(self.links),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MeishiConfig":
        """Create from dictionary."""
        return cls(
            app=AppConfig(**data.get("app", {})),
            server=ServerConfig(**data.get("server", {})),
            storage=StorageConfig(**data.get("storage", {})),
            links=LinkConfig(**data.get("links", {})),
        )

    def resolve_path(self, path: str) -> Path:
        """Resolve a configured path against the data directory."""
        candidate = Path(path)
        if candidate.is_absolute() or not self.app.data_dir:
            return candidate
        return Path(self.app.data_dir) / candidate


class ConfigManager:
    """Manages configuration loading, saving, and environment overrides."""

    def __init__(self):
        self.config_file: Optional[Path] = None
        self.config: Optional[MeishiConfig] = None

    def get_config_file_path(self) -> Path:
        """Get the path for the config file."""
        data_dir = os.getenv("MEISHI_DATA_DIR")
        config_dir = Path(data_dir) if data_dir else Path.cwd() / "data"
        return config_dir / "config.json"

    def apply_environment(self, config: MeishiConfig) -> MeishiConfig:
        """Apply MEISHI_* environment overrides in place."""
        data_dir = os.getenv("MEISHI_DATA_DIR")
        if data_dir:
            config.app.data_dir = data_dir

        if os.getenv("MEISHI_DATABASE_URL"):
            config.storage.url = os.environ["MEISHI_DATABASE_URL"]
        if os.getenv("MEISHI_ENCRYPTION_KEY"):
            config.storage.encryption_key = os.environ["MEISHI_ENCRYPTION_KEY"]
        if os.getenv("MEISHI_BASE_URL"):
            config.links.base_url = os.environ["MEISHI_BASE_URL"].rstrip("/")
        if os.getenv("MEISHI_LOG_DIR"):
            config.app.log_dir = os.environ["MEISHI_LOG_DIR"]

        config.app.log_to_file = _env_flag("MEISHI_LOG_TO_FILE", config.app.log_to_file)
        config.app.sort_empty_search = _env_flag(
            "MEISHI_SORT_EMPTY_SEARCH", config.app.sort_empty_search
        )
        config.server.debug = _env_flag("MEISHI_DEBUG", config.server.debug)
        if config.server.debug:
            config.app.log_level = "DEBUG"

        return config

    def create_default_config(self) -> MeishiConfig:
        """Create default configuration."""
        config = MeishiConfig(
            app=AppConfig(),
            server=ServerConfig(),
            storage=StorageConfig(),
            links=LinkConfig(),
        )
        return self.apply_environment(config)

    def load_config(self) -> MeishiConfig:
        """Load configuration from file or create default."""
        self.config_file = self.get_config_file_path()

        if self.config_file.exists():
            try:
                with open(self.config_file, "r", encoding="utf-8") as f:
                    data = json.load(f)

                self.config = self.apply_environment(MeishiConfig.from_dict(data))
                logging.info(f"Loaded configuration from {self.config_file}")

            except (OSError, ValueError, TypeError) as e:
                logging.warning(f"Failed to load config from {self.config_file}: {e}")
                logging.info("Creating default configuration")
                self.config = self.create_default_config()
        else:
            logging.debug("No config file found, using default configuration")
            self.config = self.create_default_config()

        return self.config

    def get(self) -> MeishiConfig:
        """Return the loaded configuration, loading it on first use."""
        if self.config is None:
            self.load_config()
        return self.config

    def save_config(self, config: Optional[MeishiConfig] = None) -> bool:
        """Save configuration to file."""
        if config is None:
            config = self.config

        if config is None:
            logging.error("No configuration to save")
            return False

        try:
            if self.config_file is None:
                self.config_file = self.get_config_file_path()

            self.config_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, "w", encoding="utf-8") as f:
                json.dump(config.to_dict(), f, indent=2, ensure_ascii=False)

            logging.info(f"Saved configuration to {self.config_file}")
            return True

        except OSError as e:
            logging.error(f"Failed to save config to {self.config_file}: {e}")
            return False

    def update_config(self, updates: Dict[str, Any]) -> bool:
        """Update configuration with new values.

        Keys may be nested with a dot, e.g. ``{"server.port": 9000}``.
        """
        config_dict = self.get().to_dict()

        try:
            for key, value in updates.items():
                if "." in key:
                    section, name = key.split(".", 1)
                    if section in config_dict:
                        config_dict[section][name] = value
                elif key in config_dict and isinstance(value, dict):
                    config_dict[key].update(value)

            self.config = MeishiConfig.from_dict(config_dict)
        except TypeError as e:
            logging.error(f"Failed to update configuration: {e}")
            return False

        return self.save_config()

    def validate_config(self) -> List[str]:
        """Validate configuration and return list of warnings/errors."""
        config = self.get()
        issues = []

        if not config.links.base_url.startswith(("https://", "http://")):
            issues.append(f"Base URL must be http(s): {config.links.base_url}")

        if config.links.default_expiration_hours < 0:
            issues.append("Default link expiration must not be negative")

        db_url = config.storage.url
        if db_url.startswith("sqlite:///") and db_url != "sqlite:///:memory:":
            db_dir = Path(db_url.replace("sqlite:///", "")).parent
            if db_dir.exists() and not os.access(db_dir, os.W_OK):
                issues.append(f"Database directory is not writable: {db_dir}")

        if config.storage.encryption_key is None:
            key_path = config.resolve_path(config.storage.key_file)
            if key_path.exists() and not os.access(key_path, os.R_OK):
                issues.append(f"Encryption key file is not readable: {key_path}")

        return issues


# Global config manager instance
config_manager = ConfigManager()


def get_config() -> MeishiConfig:
    """Get the current configuration."""
    return config_manager.get()


def reset_config() -> None:
    """Forget the loaded configuration so the next call reloads it."""
    config_manager.config = None
    config_manager.config_file = None
