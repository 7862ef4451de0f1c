"""
scapwb configuration management.

Loading, validation and access to scanner, output and logging settings.
"""

from scapwb.config.manager import ConfigManager
from scapwb.config.models import ScannerConfig, ScapwbConfig

__all__ = ["ConfigManager", "ScannerConfig", "ScapwbConfig"]
