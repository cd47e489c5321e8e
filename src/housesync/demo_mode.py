"""Demo-mode resolution.

Demo mode is on when there is no real backend to talk to: nothing is
configured, a demo login is active, or the last health probe failed.
The ConnectionManager evaluates this once and refuses all subscriptions
for the rest of the session.
"""

from typing import Optional

from housesync.config import Settings, settings as default_settings


def is_demo_mode_active(
    settings: Optional[Settings] = None,
    connection_healthy: Optional[bool] = None,
) -> bool:
    """True when live subscriptions must be disabled for this session."""
    settings = settings or default_settings
    return (
        not settings.backend_configured
        or bool(settings.demo_user.strip())
        or connection_healthy is False
    )
