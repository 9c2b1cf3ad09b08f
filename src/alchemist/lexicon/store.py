"""SQLite persistence for conlang lexicons.

Generated lexemes are append-only: the UNIQUE key plus ON CONFLICT DO NOTHING
means a second insert for the same key keeps the first row. User overrides
and irregular forms live in separate tables and are layered on top at load.
"""

from __future__ import annotations

import json
import sqlite3

from alchemist.annotation.models import WordType
from alchemist.lexicon.models import Lexeme, attribute_key


LEXICON_SCHEMA_SQL = """
-- lexemes: generated base forms, one row per (conlang, lemma, pos)
CREATE TABLE IF NOT EXISTS lexemes (
    id INTEGER PRIMARY KEY,
    conlang_id TEXT NOT NULL,
    lemma TEXT NOT NULL,
    part_of_speech TEXT NOT NULL,
    base_form TEXT NOT NULL,
    phonemes TEXT NOT NULL DEFAULT '[]',
    created_at TEXT NOT NULL,
    UNIQUE(conlang_id, lemma, part_of_speech)
);

-- lexeme_overrides: user-supplied base forms, take precedence over lexemes
CREATE TABLE IF NOT EXISTS lexeme_overrides (
    id INTEGER PRIMARY KEY,
    conlang_id TEXT NOT NULL,
    lemma TEXT NOT NULL,
    part_of_speech TEXT NOT NULL,
    base_form TEXT NOT NULL,
    created_at TEXT NOT NULL,
    UNIQUE(conlang_id, lemma, part_of_speech)
);

-- irregular_forms: surface forms for specific attribute sets
CREATE TABLE IF NOT EXISTS irregular_forms (
    id INTEGER PRIMARY KEY,
    conlang_id TEXT NOT NULL,
    lemma TEXT NOT NULL,
    part_of_speech TEXT NOT NULL,
    attributes TEXT NOT NULL,
    surface TEXT NOT NULL,
    UNIQUE(conlang_id, lemma, part_of_speech, attributes)
);

CREATE INDEX IF NOT EXISTS idx_lexemes_conlang ON lexemes(conlang_id);
CREATE INDEX IF NOT EXISTS idx_overrides_conlang ON lexeme_overrides(conlang_id);
CREATE INDEX IF NOT EXISTS idx_irregular_conlang ON irregular_forms(conlang_id);
"""


class LexiconStore:
    """Database storage for lexicon entries.

    Usage:
        store = LexiconStore(conn)
        store.init_schema()
        cache = LexiconCache("demo", store=store)
    """

    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn

    def init_schema(self) -> None:
        """Initialize lexicon tables."""
        self._conn.executescript(LEXICON_SCHEMA_SQL)
        self._conn.commit()

    def load(self, conlang_id: str) -> list[Lexeme]:
        """Load every lexeme for a conlang, overrides and irregulars applied."""
        entries: dict[tuple[str, str], dict] = {}

        for row in self._conn.execute(
            """
            SELECT lemma, part_of_speech, base_form, phonemes, created_at
            FROM lexemes WHERE conlang_id = ?
            ORDER BY id
            """,
            (conlang_id,),
        ):
            entries[(row[0], row[1])] = {
                "base_form": row[2],
                "phonemes": tuple(json.loads(row[3])),
                "source": "generated",
                "created_at": row[4],
                "irregular": {},
            }

        for row in self._conn.execute(
            """
            SELECT lemma, part_of_speech, base_form, created_at
            FROM lexeme_overrides WHERE conlang_id = ?
            """,
            (conlang_id,),
        ):
            entries[(row[0], row[1])] = {
                "base_form": row[2],
                "phonemes": (),
                "source": "override",
                "created_at": row[3],
                "irregular": {},
            }

        for row in self._conn.execute(
            """
            SELECT lemma, part_of_speech, attributes, surface
            FROM irregular_forms WHERE conlang_id = ?
            """,
            (conlang_id,),
        ):
            entry = entries.get((row[0], row[1]))
            if entry is None:
                continue
            attrs = frozenset(a for a in row[2].split(".") if a)
            entry["irregular"][attrs] = row[3]

        return [
            Lexeme(
                lemma=lemma,
                part_of_speech=WordType(pos),
                base_form=entry["base_form"],
                phonemes=entry["phonemes"],
                source=entry["source"],
                irregular=entry["irregular"],
                created_at=entry["created_at"],
            )
            for (lemma, pos), entry in entries.items()
        ]

    def insert(self, conlang_id: str, lexeme: Lexeme) -> Lexeme:
        """Append a generated lexeme. If the key already exists, return the stored one."""
        cursor = self._conn.execute(
            """
            INSERT INTO lexemes (conlang_id, lemma, part_of_speech, base_form,
                                 phonemes, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(conlang_id, lemma, part_of_speech) DO NOTHING
            """,
            (
                conlang_id,
                lexeme.lemma,
                lexeme.part_of_speech.value,
                lexeme.base_form,
                json.dumps(list(lexeme.phonemes), ensure_ascii=False),
                lexeme.created_at,
            ),
        )
        self._conn.commit()
        if cursor.rowcount:
            return lexeme

        row = self._conn.execute(
            """
            SELECT base_form, phonemes, created_at FROM lexemes
            WHERE conlang_id = ? AND lemma = ? AND part_of_speech = ?
            """,
            (conlang_id, lexeme.lemma, lexeme.part_of_speech.value),
        ).fetchone()
        return Lexeme(
            lemma=lexeme.lemma,
            part_of_speech=lexeme.part_of_speech,
            base_form=row[0],
            phonemes=tuple(json.loads(row[1])),
            source="generated",
            created_at=row[2],
        )

    def save_override(self, conlang_id: str, lexeme: Lexeme) -> None:
        self._conn.execute(
            """
            INSERT INTO lexeme_overrides (conlang_id, lemma, part_of_speech,
                                          base_form, created_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(conlang_id, lemma, part_of_speech) DO UPDATE SET
                base_form = excluded.base_form,
                created_at = excluded.created_at
            """,
            (
                conlang_id,
                lexeme.lemma,
                lexeme.part_of_speech.value,
                lexeme.base_form,
                lexeme.created_at,
            ),
        )
        self._conn.commit()

    def save_irregular(
        self,
        conlang_id: str,
        key: tuple[str, WordType],
        attributes: frozenset[str],
        surface: str,
    ) -> None:
        self._conn.execute(
            """
            INSERT INTO irregular_forms (conlang_id, lemma, part_of_speech,
                                         attributes, surface)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(conlang_id, lemma, part_of_speech, attributes) DO UPDATE SET
                surface = excluded.surface
            """,
            (conlang_id, key[0], key[1].value, attribute_key(attributes), surface),
        )
        self._conn.commit()

    def delete(self, conlang_id: str, key: tuple[str, WordType]) -> None:
        """Remove every trace of a key (explicit user deletion)."""
        params = (conlang_id, key[0], key[1].value)
        for table in ("lexemes", "lexeme_overrides", "irregular_forms"):
            self._conn.execute(
                f"DELETE FROM {table} "
                "WHERE conlang_id = ? AND lemma = ? AND part_of_speech = ?",
                params,
            )
        self._conn.commit()

    def is_available(self) -> bool:
        try:
            self._conn.execute("SELECT 1")
            return True
        except sqlite3.Error:
            return False

    def count(self, conlang_id: str) -> int:
        row = self._conn.execute(
            "SELECT COUNT(*) FROM lexemes WHERE conlang_id = ?", (conlang_id,)
        ).fetchone()
        return row[0]
