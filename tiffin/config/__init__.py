"""
Configuration package for the tiffin subscription service.

This package contains environment settings, database connections
and logging setup.
"""

from tiffin.config.settings import settings, get_settings
from tiffin.config.database import get_db_session

__all__ = ['settings', 'get_settings', 'get_db_session']
