"""Shared fixtures: demo profile, in-memory lexicon storage, translators."""

from __future__ import annotations

import copy

import pytest

from alchemist.db.connection import get_connection, init_db
from alchemist.lexicon.cache import LexiconCache
from alchemist.lexicon.store import LexiconStore
from alchemist.pipeline.orchestrator import Translator
from alchemist.profile.loader import DEMO_PROFILE, load_demo_profile
from alchemist.profile.models import ConlangProfile


def _merge(base: dict, overrides: dict) -> dict:
    result = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


@pytest.fixture
def demo_profile() -> ConlangProfile:
    return load_demo_profile()


@pytest.fixture
def make_profile():
    """Build a profile from the demo definition with nested overrides.

    Nested mappings merge; any other value (lists included) replaces.
    """

    def factory(**overrides) -> ConlangProfile:
        return ConlangProfile.from_dict(_merge(DEMO_PROFILE, overrides))

    return factory


@pytest.fixture
def conn():
    """In-memory database shared across threads."""
    connection = get_connection(":memory:", shared=True)
    init_db(connection)
    yield connection
    connection.close()


@pytest.fixture
def store(conn) -> LexiconStore:
    return LexiconStore(conn)


@pytest.fixture
def cache(store) -> LexiconCache:
    return LexiconCache("demo", store=store, timeout=2.0)


@pytest.fixture
def translator(demo_profile, cache) -> Translator:
    return Translator(demo_profile, cache)
