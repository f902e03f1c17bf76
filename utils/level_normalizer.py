"""
Language level normalization - maps free-text levels onto the canonical scale
"""

import unicodedata
from typing import Dict, Optional, Tuple


class LevelNormalizer:
    """Normalize free-text language levels to one of the canonical levels"""

    CANONICAL_LEVELS: Tuple[str, ...] = ("Débutant", "Intermédiaire", "Avancé", "Natif")

    # Exact synonyms (accent-stripped, lowercase -> canonical)
    LEVEL_SYNONYMS: Dict[str, str] = {
        "courant": "Avancé",
        "fluent": "Avancé",
        "native": "Natif",
        "maternelle": "Natif",
        "natif": "Natif",
    }

    # Prefix rules, checked in order
    LEVEL_PREFIXES: Tuple[Tuple[str, str], ...] = (
        ("deb", "Débutant"),
        ("int", "Intermédiaire"),
        ("av", "Avancé"),
    )

    @staticmethod
    def strip_accents(value: str) -> str:
        """Remove combining diacritics (é -> e)"""
        decomposed = unicodedata.normalize("NFD", value)
        return "".join(ch for ch in decomposed if not unicodedata.combining(ch))

    @staticmethod
    def normalize(value: object) -> Optional[str]:
        """
        Normalize a language level

        Args:
            value: Raw level as submitted

        Returns:
            Canonical level, or None when the value cannot be mapped
        """
        if not isinstance(value, str):
            return None

        raw = value.strip()
        if not raw:
            return None

        bare = LevelNormalizer.strip_accents(raw).lower()

        if bare in LevelNormalizer.LEVEL_SYNONYMS:
            return LevelNormalizer.LEVEL_SYNONYMS[bare]

        for prefix, level in LevelNormalizer.LEVEL_PREFIXES:
            if bare.startswith(prefix):
                return level

        if raw in LevelNormalizer.CANONICAL_LEVELS:
            return raw

        return None
