"""
Configuration package for the student onboarding service.

Environment settings are loaded once and shared across the application.
"""

from onboarding.config.settings import Settings, get_settings, settings

__all__ = ['Settings', 'get_settings', 'settings']
