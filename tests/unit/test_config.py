import pytest
from pydantic import ValidationError

from fitschedule.core.config import Settings


class TestSettings:

    def test_defaults(self):
        settings = Settings()

        assert settings.UTILIZATION_BASELINE_HOURS == 40
        assert settings.EVENT_UNIT_PRICE == 1500
        assert settings.SLOT_SEARCH_HORIZON_DAYS == 7
        assert settings.SLOT_STEP_MINUTES == 60
        assert settings.ENFORCE_CONFLICT_FREE_COMMITS is True

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("GYM_TIMEZONE", "America/Mexico_City")
        monkeypatch.setenv("SLOT_SEARCH_HORIZON_DAYS", "14")

        settings = Settings()

        assert settings.GYM_TIMEZONE == "America/Mexico_City"
        assert settings.SLOT_SEARCH_HORIZON_DAYS == 14

    def test_unknown_timezone(self):
        with pytest.raises(ValidationError):
            Settings(GYM_TIMEZONE="Mars/Olympus")

    @pytest.mark.parametrize("field", ["SLOT_STEP_MINUTES", "UTILIZATION_BASELINE_HOURS", "SLOT_SEARCH_HORIZON_DAYS"])
    def test_non_positive_values(self, field):
        with pytest.raises(ValidationError):
            Settings(**{field: 0})

    def test_cors_origins_from_comma_separated_string(self):
        settings = Settings(BACKEND_CORS_ORIGINS="http://localhost:3000, https://app.gym.test")
        assert settings.BACKEND_CORS_ORIGINS == ["http://localhost:3000", "https://app.gym.test"]
