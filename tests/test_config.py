from __future__ import annotations

import pytest
from pydantic import ValidationError

from app.core.config import Settings, settings
from app.core.logging import add_service_context
from app.progression.points_engine import PointRules


def test_list_settings_accept_comma_separated_strings() -> None:
    configured = Settings(JWT_SECRET="x", PREMIUM_ROLES="premium, coach", CORS_ORIGINS='["http://localhost:3000"]')

    assert configured.PREMIUM_ROLES == ["premium", "coach"]
    assert configured.CORS_ORIGINS == ["http://localhost:3000"]


def test_environment_is_validated() -> None:
    with pytest.raises(ValidationError):
        Settings(JWT_SECRET="x", ENVIRONMENT="qa")


def test_default_point_rules_come_from_settings() -> None:
    assert PointRules.from_settings() == PointRules(figure=1, training=2, challenge=3)


def test_log_events_carry_service_context() -> None:
    event = add_service_context(None, "info", {"event": "Level achievements awarded"})

    assert event["service"] == settings.SERVICE_NAME
    assert event["environment"] == settings.ENVIRONMENT
