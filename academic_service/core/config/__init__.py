# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration package for the academic service.

Example:
    >>> from academic_service.core.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.access_control.publish_attempts)
    5
"""

from academic_service.core.config.settings import (
    AccessControlSettings,
    AccessPointSettings,
    APISettings,
    CommunicationSettings,
    CORSSettings,
    DatabaseSettings,
    ImageHostSettings,
    InvitationSettings,
    RedisSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Subsettings
    "DatabaseSettings",
    "RedisSettings",
    "AccessControlSettings",
    "AccessPointSettings",
    "InvitationSettings",
    "CommunicationSettings",
    "ImageHostSettings",
    "CORSSettings",
    "APISettings",
]
