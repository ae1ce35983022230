import pytest
from pydantic import ValidationError

from app.core.config import Settings


def test_defaults_load_from_environment() -> None:
    settings = Settings()

    assert settings.GITHUB_WEBHOOK_SECRET == "test-secret"
    assert settings.STATUS_POLL_INTERVAL_SECONDS == 10.0
    assert settings.STATUS_POLL_BACKOFF_FACTOR == 2.0


@pytest.mark.parametrize(
    "overrides",
    [
        {"STATUS_POLL_INTERVAL_SECONDS": 0},
        {"STATUS_POLL_BACKOFF_FACTOR": 0.5},
        {"STATUS_POLL_MAX_INTERVAL_SECONDS": 0},
        {"STATUS_POLL_TIMEOUT_SECONDS": -1},
        {"STATUS_POLL_INITIAL_DELAY_SECONDS": -5},
    ],
)
def test_poll_settings_that_never_reach_the_timeout_are_rejected(overrides) -> None:
    with pytest.raises(ValidationError):
        Settings(**overrides)
