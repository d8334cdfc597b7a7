"""Assessment settings singleton."""

from skillgauge.domain.settings.repository import SettingsRepository

__all__ = ['SettingsRepository']
