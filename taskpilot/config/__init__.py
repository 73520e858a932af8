"""
Configuration loading for taskpilot.
"""

from taskpilot.config.settings import DEFAULTS, Settings, load_settings, save_setting

__all__ = ["DEFAULTS", "Settings", "load_settings", "save_setting"]
