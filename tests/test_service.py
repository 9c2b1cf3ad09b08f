"""Tests for the per-conlang translation service and settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from alchemist.config import Settings
from alchemist.pipeline.schemas import TranslationRequest
from alchemist.pipeline.service import TranslationService
from alchemist.profile.loader import ProfileStore


@pytest.fixture
def service(tmp_path, store) -> TranslationService:
    return TranslationService(ProfileStore(tmp_path), Settings(), store)


class TestTranslationService:
    """Translator lookup and reuse."""

    def test_demo_without_file(self, service):
        assert service.profile_for("demo").id == "demo"

    def test_unknown_conlang(self, service):
        with pytest.raises(KeyError):
            service.translator_for("nope")

    def test_profile_file_wins_over_builtin(self, service, make_profile):
        service.profile_store.save(make_profile(syntax={"word_order": "VSO"}))
        assert service.profile_for("demo").syntax.word_order == "VSO"

    def test_translator_reused(self, service):
        first = service.translator_for("demo")
        assert service.translator_for("demo") is first
        assert service.cache_for("demo") is first.cache

    def test_reload(self, service):
        first = service.translator_for("demo")
        service.reload("demo")
        assert service.translator_for("demo") is not first

    def test_translate(self, service):
        result = service.translate(TranslationRequest("I see#v (a dog#n)", "demo"))
        assert result.conlang_id == "demo"
        assert len(service.cache_for("demo")) == 3

    def test_reservation_timeout_from_settings(self, tmp_path, store):
        service = TranslationService(
            ProfileStore(tmp_path), Settings(reservation_timeout=0.5), store
        )
        assert service.cache_for("demo").timeout == 0.5

    def test_from_settings(self, tmp_path):
        settings = Settings(
            db_path=tmp_path / "nested" / "alchemist.db",
            profile_dir=tmp_path / "profiles",
        )
        service = TranslationService.from_settings(settings)
        service.translate(TranslationRequest("dog#n", "demo"))

        assert settings.db_path.exists()
        assert service.store.count("demo") == 1


class TestSettings:
    """Environment-driven configuration."""

    def test_defaults_under_home(self, monkeypatch, tmp_path):
        monkeypatch.setenv("ALCHEMIST_HOME", str(tmp_path))
        monkeypatch.delenv("ALCHEMIST_DB_PATH", raising=False)
        monkeypatch.delenv("ALCHEMIST_PROFILE_DIR", raising=False)
        settings = Settings.from_env()
        assert settings.db_path == tmp_path / "alchemist.db"
        assert settings.profile_dir == tmp_path / "profiles"
        assert settings.max_syllable_retries == 64

    def test_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("ALCHEMIST_DB_PATH", str(tmp_path / "x.db"))
        monkeypatch.setenv("ALCHEMIST_PROFILE_DIR", str(tmp_path / "p"))
        monkeypatch.setenv("ALCHEMIST_LOG_LEVEL", "debug")
        settings = Settings.from_env()
        assert settings.db_path == Path(tmp_path / "x.db")
        assert settings.profile_dir == Path(tmp_path / "p")
        assert settings.log_level == "DEBUG"

    def test_numeric_overrides(self, monkeypatch):
        monkeypatch.setenv("ALCHEMIST_MAX_SYLLABLE_RETRIES", "8")
        monkeypatch.setenv("ALCHEMIST_RESERVATION_TIMEOUT", "2.5")
        settings = Settings.from_env()
        assert settings.max_syllable_retries == 8
        assert settings.reservation_timeout == 2.5
