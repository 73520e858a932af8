"""
Services Layer
"""

from taskpilot.services.config_service import ConfigService, default_config_path

__all__ = ["ConfigService", "default_config_path"]
