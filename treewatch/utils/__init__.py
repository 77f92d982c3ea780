# treewatch/utils/__init__.py

"""
treewatch utilities
"""
from .config import Config, WatchConfig, RuleConfig, LoggingConfig, load_config
from .logger import setup_logging, get_logger
from .file_utils import abs_path, exists, is_dir, is_file, copy

__all__ = [
    'Config', 'WatchConfig', 'RuleConfig', 'LoggingConfig', 'load_config',
    'setup_logging', 'get_logger',
    'abs_path', 'exists', 'is_dir', 'is_file', 'copy',
]
