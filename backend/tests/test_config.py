import pytest

from flight_tracker.config import Settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("FLIGHT_SOURCE", raising=False)
        settings = Settings(_env_file=None)

        assert settings.flight_source == "sample"
        assert settings.recent_search_limit == 10
        assert settings.state_key == "FlightTrackerData"

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("NTFY_TOPIC", "my-flights")
        monkeypatch.setenv("RECENT_SEARCH_LIMIT", "5")

        settings = Settings(_env_file=None)

        assert settings.ntfy_topic == "my-flights"
        assert settings.recent_search_limit == 5

    def test_unknown_source_rejected(self):
        with pytest.raises(ValueError, match="FLIGHT_SOURCE"):
            Settings(_env_file=None, flight_source="skyscanner")

    def test_duffel_requires_key(self):
        with pytest.raises(ValueError, match="DUFFEL_API_KEY"):
            Settings(_env_file=None, flight_source="duffel", duffel_api_key="  ")

    def test_search_limit_must_be_positive(self):
        with pytest.raises(ValueError, match="RECENT_SEARCH_LIMIT"):
            Settings(_env_file=None, recent_search_limit=0)
