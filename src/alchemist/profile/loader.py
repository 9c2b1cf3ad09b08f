"""Profile loading and the on-disk profile store.

Profiles live as ``<conlang_id>.yaml`` files under the profile directory
(``ALCHEMIST_PROFILE_DIR`` env override, see ``alchemist.config``).
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from alchemist.profile.models import CONLANG_ID_RE, ConlangProfile, ProfileValidationError

logger = logging.getLogger(__name__)


# Built-in profile used by `alchemist init` and the test suite
DEMO_PROFILE = {
    "id": "demo",
    "name": "Demo Language",
    "phonology": {
        "classes": {
            "C": ["p", "t", "k", "m", "n", "s", "r", "l", "sh"],
            "V": ["a", "e", "i", "o", "u"],
            "N": ["n", "m"],
        },
        "nucleus": "V",
        "syllable_shapes": ["CV", "CVN", "V"],
        "positional_shapes": {
            "initial": ["CV", "V"],
            "single": ["CV", "CVN"],
        },
        "forbidden": ["aa", "ee", "ii", "oo", "uu", "nm", "mn"],
        "syllable_weights": {"function": [70, 30], "content": [10, 60, 30]},
    },
    "orthography": {"sh": "x"},
    "morphology": {
        "noun": [
            {"attributes": ["PL"], "transform": {"suffix": "i"}},
        ],
        "verb": [
            {"attributes": ["FUT"], "transform": {"prefix": "ta"}},
            {"attributes": ["PST"], "transform": {"reduplicate": "initial"}},
            {"attributes": ["NEG"], "transform": {"suffix": "ne"}},
        ],
        "determiner": [
            {"attributes": ["PL"], "transform": {"suffix": "s"}},
        ],
    },
    "syntax": {
        "word_order": "SOV",
        "phrase_order": {
            "noun_phrase": {
                "determiner": "before",
                "modifier": "after",
                "adposition": "after",
            },
        },
        "agreement": [
            {"target": "determiner", "controller": "noun", "attributes": ["PL", "SG"]},
        ],
        "realize_determiners": True,
    },
    "policy": {
        "unmodeled_attributes": "ignore",
        "max_group_depth": 2,
        "allow_attribute_chains": True,
    },
}


def load_demo_profile() -> ConlangProfile:
    """Return the built-in demo profile."""
    return ConlangProfile.from_dict(DEMO_PROFILE)


def load_profile(path: Path) -> ConlangProfile:
    """Load a profile from a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist
        ProfileValidationError: If the content is not valid YAML or not a
            valid profile
    """
    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ProfileValidationError(
                f"Profile file {path} is not valid YAML: {e}"
            ) from e

    if not isinstance(data, dict):
        raise ProfileValidationError(f"Profile file {path} is not a mapping")

    profile = ConlangProfile.from_dict(data)
    logger.info(f"Loaded profile '{profile.id}' from {path}")
    return profile


class ProfileStore:
    """Directory of YAML profiles keyed by conlang id.

    Usage:
        store = ProfileStore(settings.profile_dir)
        profile = store.get("demo")
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def path_for(self, conlang_id: str) -> Path:
        """Return the file for a conlang id.

        Raises:
            KeyError: If the id could not name a profile file
        """
        if not CONLANG_ID_RE.fullmatch(conlang_id):
            logger.warning(f"Rejected conlang id {conlang_id!r}")
            raise KeyError(conlang_id)
        return self.directory / f"{conlang_id}.yaml"

    def exists(self, conlang_id: str) -> bool:
        if not CONLANG_ID_RE.fullmatch(conlang_id):
            return False
        return self.path_for(conlang_id).exists()

    def get(self, conlang_id: str) -> ConlangProfile:
        """Load a profile by id.

        Raises:
            KeyError: If no profile with that id exists or the id is malformed
        """
        path = self.path_for(conlang_id)
        if not path.exists():
            raise KeyError(conlang_id)
        profile = load_profile(path)
        if profile.id != conlang_id:
            raise ProfileValidationError(
                f"File declares id '{profile.id}' but is stored as '{conlang_id}'",
                "id",
            )
        return profile

    def list_ids(self) -> list[str]:
        if not self.directory.exists():
            return []
        return sorted(p.stem for p in self.directory.glob("*.yaml"))

    def save(self, profile: ConlangProfile) -> Path:
        """Write a profile to the store, replacing any existing file."""
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(profile.id)
        path.write_text(
            yaml.safe_dump(profile.to_dict(), sort_keys=False, allow_unicode=True),
            encoding="utf-8",
        )
        logger.info(f"Saved profile '{profile.id}' to {path}")
        return path
