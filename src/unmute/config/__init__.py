"""
UNMUTE Configuration Module

Provides centralized configuration management with:
- Environment-based settings loading
- Nested groups for classifier, alerts, escalation and notifications
- Secure handling of secrets
"""

from unmute.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
