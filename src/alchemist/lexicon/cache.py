"""Lexicon cache: the single source of translation determinism.

Every (lemma, part of speech) key is generated at most once per conlang.
Callers use a two-phase protocol:

    lexeme, reserved = cache.lookup_or_reserve(lemma, pos)
    if reserved:
        try:
            word = generator.generate(pos, seed)
        except BaseException:
            cache.abandon(lemma, pos)
            raise
        lexeme = cache.commit(lemma, pos, word.written, word.phonemes)

Exactly one caller receives ``reserved == True`` for a key. Concurrent callers
for the same key wait (bounded by ``timeout``) until the reservation is
committed or abandoned. ``get_or_generate`` wraps the protocol.
"""

from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable, Iterable

from alchemist.annotation.models import WordType, normalize_lemma
from alchemist.lexicon.models import Lexeme

if TYPE_CHECKING:
    from alchemist.lexicon.store import LexiconStore

logger = logging.getLogger(__name__)

LexiconKey = tuple[str, WordType]


class ReservationTimeout(Exception):
    """Raised when a key stays reserved by another caller for too long."""

    def __init__(self, key: LexiconKey, timeout: float):
        self.key = key
        self.timeout = timeout
        super().__init__(
            f"Timed out after {timeout:.1f}s waiting for '{key[0]}' "
            f"({key[1].value}) to be generated"
        )


class ReservationError(Exception):
    """Raised when commit is called for a key that was never reserved."""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class LexiconCache:
    """Per-conlang lexicon with reserve/commit/abandon semantics.

    Usage:
        cache = LexiconCache("demo", store=LexiconStore(conn))
        lexeme, generated = cache.get_or_generate("dog", WordType.NOUN, factory)
    """

    def __init__(
        self,
        conlang_id: str,
        store: "LexiconStore | None" = None,
        timeout: float = 10.0,
    ):
        self.conlang_id = conlang_id
        self.timeout = timeout
        self._store = store
        self._entries: dict[LexiconKey, Lexeme] = {}
        self._reserved: set[LexiconKey] = set()
        self._cond = threading.Condition()

        if store is not None:
            for lexeme in store.load(conlang_id):
                self._entries[lexeme.key] = lexeme
            logger.info(
                f"Loaded {len(self._entries)} lexemes for conlang '{conlang_id}'"
            )

    @staticmethod
    def make_key(lemma: str, part_of_speech: WordType | str) -> LexiconKey:
        return (normalize_lemma(lemma), WordType(part_of_speech))

    def lookup_or_reserve(
        self,
        lemma: str,
        part_of_speech: WordType | str,
        timeout: float | None = None,
    ) -> tuple[Lexeme | None, bool]:
        """Return (lexeme, False) on hit, or (None, True) after reserving the key.

        Raises:
            ReservationTimeout: If another caller holds the reservation
                beyond the timeout
        """
        key = self.make_key(lemma, part_of_speech)
        wait_for = self.timeout if timeout is None else timeout
        deadline = time.monotonic() + wait_for

        with self._cond:
            while True:
                existing = self._entries.get(key)
                if existing is not None:
                    return existing, False
                if key not in self._reserved:
                    self._reserved.add(key)
                    logger.debug(f"Reserved '{key[0]}' ({key[1].value})")
                    return None, True
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise ReservationTimeout(key, wait_for)
                self._cond.wait(remaining)

    def commit(
        self,
        lemma: str,
        part_of_speech: WordType | str,
        base_form: str,
        phonemes: Iterable[str] = (),
    ) -> Lexeme:
        """Store the generated base form for a reserved key and release waiters.

        If an override landed while the key was reserved, the override wins and
        is returned.

        Raises:
            ReservationError: If the key is neither reserved nor present
        """
        key = self.make_key(lemma, part_of_speech)
        with self._cond:
            if key not in self._reserved:
                existing = self._entries.get(key)
                if existing is None:
                    raise ReservationError(
                        f"'{key[0]}' ({key[1].value}) was not reserved"
                    )
                return existing

            try:
                existing = self._entries.get(key)
                if existing is not None:
                    logger.info(
                        f"Discarding generated form for '{key[0]}': "
                        f"entry already present ({existing.source})"
                    )
                    return existing

                lexeme = Lexeme(
                    lemma=key[0],
                    part_of_speech=key[1],
                    base_form=base_form,
                    phonemes=tuple(phonemes),
                    source="generated",
                    created_at=_now(),
                )
                if self._store is not None:
                    lexeme = self._store.insert(self.conlang_id, lexeme)
                self._entries[key] = lexeme
                logger.info(
                    f"Committed '{key[0]}' ({key[1].value}) -> '{lexeme.base_form}'"
                )
                return lexeme
            finally:
                self._reserved.discard(key)
                self._cond.notify_all()

    def abandon(self, lemma: str, part_of_speech: WordType | str) -> None:
        """Release a reservation without storing anything."""
        key = self.make_key(lemma, part_of_speech)
        with self._cond:
            if key in self._reserved:
                self._reserved.discard(key)
                logger.warning(f"Abandoned reservation for '{key[0]}' ({key[1].value})")
            self._cond.notify_all()

    def get_or_generate(
        self,
        lemma: str,
        part_of_speech: WordType | str,
        factory: Callable[[], tuple[str, tuple[str, ...]]],
    ) -> tuple[Lexeme, bool]:
        """Return the cached lexeme, generating it with ``factory`` on a miss.

        ``factory`` returns (base_form, phonemes). Any exception raised while
        generating abandons the reservation before propagating.

        Returns:
            Tuple of (lexeme, newly_generated)
        """
        lexeme, reserved = self.lookup_or_reserve(lemma, part_of_speech)
        if not reserved:
            return lexeme, False

        try:
            base_form, phonemes = factory()
        except BaseException:
            self.abandon(lemma, part_of_speech)
            raise
        return self.commit(lemma, part_of_speech, base_form, phonemes), True

    def override(
        self, lemma: str, part_of_speech: WordType | str, base_form: str
    ) -> Lexeme:
        """Set a user-supplied base form; generation is bypassed for this key."""
        key = self.make_key(lemma, part_of_speech)
        with self._cond:
            previous = self._entries.get(key)
            lexeme = Lexeme(
                lemma=key[0],
                part_of_speech=key[1],
                base_form=base_form,
                phonemes=(),
                source="override",
                irregular=dict(previous.irregular) if previous else {},
                created_at=_now(),
            )
            if self._store is not None:
                self._store.save_override(self.conlang_id, lexeme)
            self._entries[key] = lexeme
            self._cond.notify_all()
        logger.info(f"Override '{key[0]}' ({key[1].value}) -> '{base_form}'")
        return lexeme

    def override_inflection(
        self,
        lemma: str,
        part_of_speech: WordType | str,
        attributes: Iterable[str],
        surface: str,
    ) -> Lexeme:
        """Record an irregular surface form for one attribute set.

        Raises:
            KeyError: If the lexeme does not exist yet
        """
        key = self.make_key(lemma, part_of_speech)
        attrs = frozenset(attributes)
        with self._cond:
            current = self._entries[key]
            irregular = dict(current.irregular)
            irregular[attrs] = surface
            lexeme = Lexeme(
                lemma=current.lemma,
                part_of_speech=current.part_of_speech,
                base_form=current.base_form,
                phonemes=current.phonemes,
                source=current.source,
                irregular=irregular,
                created_at=current.created_at,
            )
            if self._store is not None:
                self._store.save_irregular(self.conlang_id, key, attrs, surface)
            self._entries[key] = lexeme
        logger.info(f"Irregular form for '{key[0]}' {sorted(attrs)} -> '{surface}'")
        return lexeme

    def remove(self, lemma: str, part_of_speech: WordType | str) -> bool:
        """Delete an entry. Only for explicit user action on the conlang."""
        key = self.make_key(lemma, part_of_speech)
        with self._cond:
            removed = self._entries.pop(key, None) is not None
            if self._store is not None:
                self._store.delete(self.conlang_id, key)
        if removed:
            logger.info(f"Removed '{key[0]}' ({key[1].value}) from lexicon")
        return removed

    def get(self, lemma: str, part_of_speech: WordType | str) -> Lexeme | None:
        with self._cond:
            return self._entries.get(self.make_key(lemma, part_of_speech))

    def entries(self) -> list[Lexeme]:
        """All lexemes sorted by lemma then part of speech."""
        with self._cond:
            values = list(self._entries.values())
        return sorted(values, key=lambda lx: (lx.lemma, lx.part_of_speech.value))

    def search(self, text: str, field: str = "lemma") -> list[Lexeme]:
        """Substring search on the source lemma or the conlang form."""
        if field not in ("lemma", "form"):
            raise ValueError(f"Unknown search field: {field}")
        needle = normalize_lemma(text)
        if field == "lemma":
            return [lx for lx in self.entries() if needle in lx.lemma]
        return [lx for lx in self.entries() if needle in lx.base_form.lower()]

    def homonyms(self) -> dict[str, list[Lexeme]]:
        """Base forms shared by more than one key."""
        by_form: dict[str, list[Lexeme]] = {}
        for lexeme in self.entries():
            by_form.setdefault(lexeme.base_form, []).append(lexeme)
        return {form: group for form, group in by_form.items() if len(group) > 1}

    def __len__(self) -> int:
        with self._cond:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        with self._cond:
            return self.make_key(*key) in self._entries
