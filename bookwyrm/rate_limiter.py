from slowapi import Limiter
from slowapi.util import get_remote_address

from bookwyrm.config import Settings, settings


limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

_login_rate_limit = settings.LOGIN_RATE_LIMIT


def login_rate_limit() -> str:
    # slowapi calls this on every request, so the last configured value wins
    return _login_rate_limit


def configure_limiter(app_settings: Settings) -> None:
    """Apply the rate limit settings of the app being built.

    The limiter and its counters are shared by every app in the process, so the
    most recently created app decides whether limits apply and what they are.
    """
    global _login_rate_limit
    limiter.enabled = app_settings.RATE_LIMIT_ENABLED
    _login_rate_limit = app_settings.LOGIN_RATE_LIMIT
