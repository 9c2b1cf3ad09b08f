"""Translation service: one Translator and LexiconCache per conlang.

Shared by the CLI and the API. Translators are created lazily on first use
and reused, so concurrent requests for the same conlang share one cache.
"""

from __future__ import annotations

import logging
import threading

from alchemist.config import Settings
from alchemist.db.connection import get_connection, init_db
from alchemist.lexicon.cache import LexiconCache
from alchemist.lexicon.store import LexiconStore
from alchemist.pipeline.orchestrator import Translator
from alchemist.pipeline.schemas import TranslationRequest, TranslationResult
from alchemist.profile.loader import ProfileStore, load_demo_profile
from alchemist.profile.models import ConlangProfile

logger = logging.getLogger(__name__)


class TranslationService:
    """Routes requests to per-conlang translators.

    Usage:
        service = TranslationService(ProfileStore(settings.profile_dir), settings, store)
        result = service.translate(TranslationRequest("hello#n", "demo"))
    """

    def __init__(
        self,
        profile_store: ProfileStore,
        settings: Settings | None = None,
        store: LexiconStore | None = None,
    ):
        self.profile_store = profile_store
        self.settings = settings or Settings()
        self.store = store
        self._translators: dict[str, Translator] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "TranslationService":
        """Service backed by the configured database and profile directory."""
        settings.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = get_connection(settings.db_path, shared=True)
        init_db(conn)
        return cls(ProfileStore(settings.profile_dir), settings, LexiconStore(conn))

    def profile_for(self, conlang_id: str) -> ConlangProfile:
        """Load a profile; the built-in demo is available without a file.

        Raises:
            KeyError: If the conlang is unknown
        """
        try:
            return self.profile_store.get(conlang_id)
        except KeyError:
            if conlang_id == "demo":
                return load_demo_profile()
            raise

    def translator_for(self, conlang_id: str) -> Translator:
        with self._lock:
            translator = self._translators.get(conlang_id)
            if translator is None:
                profile = self.profile_for(conlang_id)
                cache = LexiconCache(
                    conlang_id,
                    store=self.store,
                    timeout=self.settings.reservation_timeout,
                )
                translator = Translator(profile, cache, settings=self.settings)
                self._translators[conlang_id] = translator
                logger.info(f"Created translator for conlang '{conlang_id}'")
            return translator

    def cache_for(self, conlang_id: str) -> LexiconCache:
        return self.translator_for(conlang_id).cache

    def translate(self, request: TranslationRequest) -> TranslationResult:
        return self.translator_for(request.conlang_id).translate(request)

    def reload(self, conlang_id: str) -> None:
        """Drop a cached translator so the next request reloads its profile."""
        with self._lock:
            self._translators.pop(conlang_id, None)
