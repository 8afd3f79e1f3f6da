"""
Centralized Configuration Management

Manages all configuration sources:
- Default settings
- Project configs (config/*.json)
- User settings (~/.config/media-art-cache/)
- CLI overrides
"""

import json
import logging
import os
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass, asdict
import platform

from .constants import (
    ALBUMARTER_INTERFACE,
    ALBUMARTER_METHOD,
    ALBUMARTER_PATH,
    ALBUMARTER_SERVICE,
    CACHE_SUBDIRECTORY,
    DEFAULT_BACKGROUND_COLOR,
    DEFAULT_JPEG_QUALITY,
    DEFAULT_WORKER_THREADS,
    DOWNLOAD_REQUEST_TIMEOUT,
    LOCAL_SIDECAR_DIRECTORY,
    MAX_WORKER_THREADS,
)


@dataclass
class CacheConfig:
    """Cache location configuration"""
    cache_dir: str = ""  # Empty means the platform user cache directory
    subdirectory: str = CACHE_SUBDIRECTORY
    sidecar_directory: str = LOCAL_SIDECAR_DIRECTORY
    use_symlinks: bool = True

    def resolve_root(self) -> Path:
        """Absolute path of the art cache directory"""
        if self.cache_dir:
            base = Path(self.cache_dir).expanduser()
        else:
            base = _user_cache_dir()
        return base / self.subdirectory


@dataclass
class CodecConfig:
    """JPEG conversion configuration"""
    max_width: int = 0  # 0 keeps the original size
    jpeg_quality: int = DEFAULT_JPEG_QUALITY
    background_color: str = DEFAULT_BACKGROUND_COLOR


@dataclass
class ProcessingConfig:
    """Worker configuration"""
    max_workers: int = DEFAULT_WORKER_THREADS
    serialize_per_key: bool = True


@dataclass
class DownloadConfig:
    """Art download requester configuration"""
    enabled: bool = True
    service: str = ALBUMARTER_SERVICE
    object_path: str = ALBUMARTER_PATH
    interface: str = ALBUMARTER_INTERFACE
    method: str = ALBUMARTER_METHOD
    timeout: float = DOWNLOAD_REQUEST_TIMEOUT


@dataclass
class StorageConfig:
    """Removable media detection configuration"""
    detect_removable: bool = True
    copy_to_removable: bool = True


@dataclass
class UIConfig:
    """User interface configuration"""
    log_level: str = "INFO"
    color_output: bool = True
    verbose_errors: bool = False


@dataclass
class MediaArtConfig:
    """Complete configuration for the media art cache"""
    cache: CacheConfig = None
    codec: CodecConfig = None
    processing: ProcessingConfig = None
    download: DownloadConfig = None
    storage: StorageConfig = None
    ui: UIConfig = None

    def __post_init__(self):
        if self.cache is None:
            self.cache = CacheConfig()
        if self.codec is None:
            self.codec = CodecConfig()
        if self.processing is None:
            self.processing = ProcessingConfig()
        if self.download is None:
            self.download = DownloadConfig()
        if self.storage is None:
            self.storage = StorageConfig()
        if self.ui is None:
            self.ui = UIConfig()


_SECTIONS = {
    'cache': CacheConfig,
    'codec': CodecConfig,
    'processing': ProcessingConfig,
    'download': DownloadConfig,
    'storage': StorageConfig,
    'ui': UIConfig,
}


def _user_cache_dir() -> Path:
    """Get platform-appropriate user cache directory"""
    system = platform.system()

    if system == "Windows":
        base = Path(os.environ.get("LOCALAPPDATA", "~"))
    elif system == "Darwin":  # macOS
        base = Path("~/Library/Caches")
    else:  # Linux and others
        base = Path(os.environ.get("XDG_CACHE_HOME") or "~/.cache")

    return base.expanduser()


class ConfigManager:
    """
    Centralized configuration manager with hierarchical loading:
    1. Default settings
    2. Project configs (config/*.json)
    3. User settings (~/.config/media-art-cache/)
    4. CLI arguments
    """

    def __init__(self, project_root: Optional[Path] = None, user_config_dir: Optional[Path] = None):
        self.logger = logging.getLogger(__name__)

        # Determine project root
        if project_root is None:
            current = Path(__file__).parent
            while current != current.parent:
                if (current / "pyproject.toml").exists():
                    project_root = current
                    break
                current = current.parent
            else:
                project_root = Path(__file__).parent.parent.parent

        self.project_root = Path(project_root)
        self.config_dir = self.project_root / "config"
        self.user_config_dir = Path(user_config_dir) if user_config_dir else self._get_user_config_dir()

        self._config: Optional[MediaArtConfig] = None

        self.logger.debug(f"ConfigManager initialized")
        self.logger.debug(f"  Project root: {self.project_root}")
        self.logger.debug(f"  User config: {self.user_config_dir}")

    def _get_user_config_dir(self) -> Path:
        """Get platform-appropriate user config directory"""
        system = platform.system()

        if system == "Windows":
            base = Path(os.environ.get("APPDATA", "~"))
        elif system == "Darwin":  # macOS
            base = Path("~/Library/Application Support")
        else:  # Linux and others
            base = Path(os.environ.get("XDG_CONFIG_HOME") or "~/.config")

        return (base / "media-art-cache").expanduser()

    def load_config(self,
                    project_config: Optional[str] = None,
                    user_overrides: Optional[Dict] = None,
                    cli_overrides: Optional[Dict] = None) -> MediaArtConfig:
        """
        Load configuration from all sources with proper precedence.

        Args:
            project_config: Specific project config file name (e.g., "production.json")
            user_overrides: User-specific settings
            cli_overrides: Command-line argument overrides

        Returns:
            Complete configuration object
        """
        config_dict = asdict(MediaArtConfig())

        if project_config:
            project_config_path = self.config_dir / project_config
        else:
            project_config_path = self.config_dir / "default.json"

        if project_config_path.exists():
            config_dict = self._merge_configs(config_dict, self._load_json_config(project_config_path))
            self.logger.info(f"Loaded project config: {project_config_path}")

        user_config_path = self.user_config_dir / "settings.json"
        if user_config_path.exists():
            config_dict = self._merge_configs(config_dict, self._load_json_config(user_config_path))
            self.logger.info(f"Loaded user config: {user_config_path}")

        if user_overrides:
            config_dict = self._merge_configs(config_dict, user_overrides)
            self.logger.debug("Applied user overrides")

        if cli_overrides:
            config_dict = self._merge_configs(config_dict, cli_overrides)
            self.logger.debug("Applied CLI overrides")

        self._config = self._dict_to_config(config_dict)
        return self._config

    def _load_json_config(self, config_path: Path) -> Dict[str, Any]:
        """Load JSON configuration file"""
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            self.logger.error(f"Failed to load config {config_path}: {e}")
            return {}

    def _merge_configs(self, base: Dict, override: Dict) -> Dict:
        """Deep merge configuration dictionaries"""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def _dict_to_config(self, config_dict: Dict) -> MediaArtConfig:
        """Convert dictionary to config dataclass"""
        sections = {}
        for name, section_cls in _SECTIONS.items():
            values = config_dict.get(name) or {}
            known = {k: v for k, v in values.items() if k in section_cls.__dataclass_fields__}
            unknown = set(values) - set(known)
            if unknown:
                self.logger.warning(f"Ignoring unknown {name} settings: {', '.join(sorted(unknown))}")
            sections[name] = section_cls(**known)
        return MediaArtConfig(**sections)

    def save_user_settings(self, settings: Dict[str, Any]) -> bool:
        """Save user-specific settings"""
        try:
            self.user_config_dir.mkdir(parents=True, exist_ok=True)
            user_config_path = self.user_config_dir / "settings.json"

            existing = {}
            if user_config_path.exists():
                existing = self._load_json_config(user_config_path)

            merged = self._merge_configs(existing, settings)

            with open(user_config_path, 'w', encoding='utf-8') as f:
                json.dump(merged, f, indent=2, ensure_ascii=False)

            self.logger.info(f"User settings saved to {user_config_path}")
            return True

        except OSError as e:
            self.logger.error(f"Failed to save user settings: {e}")
            return False

    def get_config(self) -> MediaArtConfig:
        """Get current configuration (load if not already loaded)"""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    def validate_config(self, config: MediaArtConfig) -> list:
        """Validate configuration and return list of issues"""
        issues = []

        if config.codec.max_width < 0:
            issues.append("max_width must be 0 (unlimited) or positive")

        if not 1 <= config.codec.jpeg_quality <= 95:
            issues.append("jpeg_quality must be between 1 and 95")

        if config.processing.max_workers < 1 or config.processing.max_workers > MAX_WORKER_THREADS:
            issues.append(f"max_workers must be between 1 and {MAX_WORKER_THREADS}")

        if config.download.timeout <= 0:
            issues.append("download timeout must be positive")

        if not config.cache.subdirectory or os.sep in config.cache.subdirectory:
            issues.append("cache subdirectory must be a single directory name")

        if not config.cache.sidecar_directory or os.sep in config.cache.sidecar_directory:
            issues.append("sidecar directory must be a single directory name")

        return issues


# Global config manager instance
_config_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    """Get global config manager instance"""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager
