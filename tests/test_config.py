"""
Tests for configuration and the application shell.
"""

from app.config import Settings
from app.schemas.stats import ProfileStats


class TestSettings:
    def test_ingestion_defaults(self, monkeypatch):
        monkeypatch.delenv("INGEST_BATCH_SIZE", raising=False)
        monkeypatch.delenv("SYNC_DEFAULT_USERNAME", raising=False)

        settings = Settings(_env_file=None)

        assert settings.INGEST_BATCH_SIZE == 500
        assert settings.SYNC_DEFAULT_USERNAME == ""
        assert settings.DEFAULT_AVATAR == "goat"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("INGEST_BATCH_SIZE", "250")
        monkeypatch.setenv("BULK_SYNC_ON_STARTUP", "false")

        settings = Settings(_env_file=None)

        assert settings.INGEST_BATCH_SIZE == 250
        assert settings.BULK_SYNC_ON_STARTUP is False


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_camel_schema_accepts_both_spellings():
    by_alias = ProfileStats.model_validate({"totalMinutes": 3, "totalSongs": 1})
    by_name = ProfileStats(total_minutes=3, total_songs=1)

    assert by_alias == by_name
    assert by_name.model_dump(by_alias=True) == {"totalMinutes": 3, "totalSongs": 1}
