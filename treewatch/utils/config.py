# treewatch/utils/config.py

"""
Configuration management for treewatch
"""
import json
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional, Union
from dataclasses import dataclass, field, asdict
import logging

logger = logging.getLogger(__name__)


@dataclass
class RuleConfig:
    """Pattern rule configuration"""
    pattern: str = r".*"
    command: Optional[str] = None  # shell command run on each match


@dataclass
class WatchConfig:
    """Watcher configuration"""
    root: Path = Path(".")
    ignores: List[str] = field(default_factory=list)
    quiet_period: float = 0.5  # seconds
    health_interval: float = 1.0  # seconds
    use_polling: bool = False
    poll_interval: float = 1.0  # seconds
    rules: List[RuleConfig] = field(default_factory=list)

    def __post_init__(self):
        if isinstance(self.root, str):
            self.root = Path(self.root)
        self.rules = [
            RuleConfig(**rule) if isinstance(rule, dict) else rule
            for rule in self.rules
        ]


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = "INFO"
    file: Optional[str] = None
    format: str = "text"  # text, json, or color


@dataclass
class Config:
    """Main configuration class"""
    watch: WatchConfig = field(default_factory=WatchConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary"""
        def serialize(obj):
            if isinstance(obj, Path):
                return str(obj)
            elif isinstance(obj, dict):
                return {k: serialize(v) for k, v in obj.items()}
            elif isinstance(obj, list):
                return [serialize(v) for v in obj]
            else:
                return obj

        return serialize(asdict(self))

    def to_json(self, indent: int = 2) -> str:
        """Convert config to JSON string"""
        return json.dumps(self.to_dict(), indent=indent, default=str)

    def to_yaml(self) -> str:
        """Convert config to YAML string"""
        return yaml.dump(self.to_dict(), default_flow_style=False)

    def save(self, path: Union[str, Path]):
        """Save config to file"""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        if path.suffix.lower() in ['.yaml', '.yml']:
            with open(path, 'w', encoding='utf-8') as f:
                yaml.dump(self.to_dict(), f, default_flow_style=False)
        else:  # default to JSON
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(self.to_dict(), f, indent=2, default=str)

        logger.info(f"Configuration saved to {path}")

    def update_from_dict(self, data: Dict[str, Any]):
        """Update config from dictionary"""
        for key, value in (data or {}).items():
            if key == 'watch' and isinstance(value, dict):
                self.watch = WatchConfig(**{**asdict(self.watch), **value})
            elif key == 'logging' and isinstance(value, dict):
                self.logging = LoggingConfig(**{**asdict(self.logging), **value})
            elif hasattr(self.watch, key):
                setattr(self.watch, key, value)
                self.watch.__post_init__()
            elif hasattr(self.logging, key):
                setattr(self.logging, key, value)
            else:
                logger.warning(f"Unknown configuration key: {key}")


def get_default_config_paths() -> List[Path]:
    """Get configuration file locations in lookup order"""
    return [
        Path("treewatch.yaml"),
        Path("treewatch.json"),
        Path.home() / ".config" / "treewatch" / "config.yaml",
    ]


def load_config(path: Union[str, Path] = None) -> Config:
    """
    Load configuration from file or create default

    An explicit path must exist. Without one, the default locations are
    tried in order and defaults are used if none exists.

    Raises:
        FileNotFoundError: If an explicit path does not exist
    """
    if path is not None:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")
        config_paths = [path]
    else:
        config_paths = get_default_config_paths()

    for config_path in config_paths:
        if not config_path.exists():
            continue

        logger.info(f"Loading configuration from {config_path}")

        if config_path.suffix.lower() in ['.yaml', '.yml']:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        else:  # JSON
            with open(config_path, 'r', encoding='utf-8') as f:
                data = json.load(f)

        config = Config()
        config.update_from_dict(data)
        return config

    logger.info("No configuration file found, using defaults")
    return Config()
