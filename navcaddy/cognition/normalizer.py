from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Mapping

from navcaddy.cognition.golf_slang import (
    CLUB_ABBREVIATIONS,
    COMMON_TERMS,
    COMPOUND_NUMBERS,
    PROFANITY,
    SINGLE_NUMBERS,
)

logger = logging.getLogger(__name__)


class ModificationType(str, Enum):
    SLANG = "slang"
    NUMBER = "number"
    PROFANITY = "profanity"
    CLEANUP = "cleanup"


@dataclass(frozen=True)
class Modification:
    type: ModificationType
    original: str
    replacement: str


@dataclass(frozen=True)
class NormalizedUtterance:
    original: str
    text: str
    modifications: tuple[Modification, ...] = field(default_factory=tuple)

    @property
    def was_modified(self) -> bool:
        return bool(self.modifications)

    def modifications_of(self, kind: ModificationType) -> list[Modification]:
        return [item for item in self.modifications if item.type == kind]


_WHITESPACE = re.compile(r"\s+")
_REPEATED_PUNCTUATION = re.compile(r"([!?.,;:])\1+")
_SPACE_BEFORE_PUNCTUATION = re.compile(r"\s+([!?.,;:])")


def _whole_word_pattern(phrases: Mapping[str, str] | frozenset[str]) -> re.Pattern[str]:
    # Longest first so "one hundred fifty" wins over "one hundred".
    ordered = sorted(phrases, key=lambda item: (-len(item), item))
    alternation = "|".join(re.escape(item).replace(r"\ ", r"\s+") for item in ordered)
    return re.compile(rf"(?<![\w'])(?:{alternation})(?![\w'])", re.IGNORECASE)


def _lookup_key(matched: str) -> str:
    return " ".join(matched.lower().split())


class InputNormalizer:
    """Deterministic rewrite of raw golfer speech into classifier-friendly text.

    Stages run in a fixed order: cleanup, slang expansion, compound numbers,
    single number words, profanity masking, final cleanup. Every substitution
    is anchored on word boundaries (an apostrophe counts as part of a word, so
    the "d" in "I'd" is left alone), and the output is a fixed point:
    normalizing it again changes nothing.
    """

    def __init__(self) -> None:
        self._slang = {**COMMON_TERMS, **CLUB_ABBREVIATIONS}
        self._slang_pattern = _whole_word_pattern(self._slang)
        self._compound_pattern = _whole_word_pattern(COMPOUND_NUMBERS)
        self._single_pattern = _whole_word_pattern(SINGLE_NUMBERS)
        self._profanity_pattern = _whole_word_pattern(PROFANITY)

    def normalize(self, text: str) -> NormalizedUtterance:
        raw = text if isinstance(text, str) else str(text or "")
        if not raw.strip():
            return NormalizedUtterance(original=raw, text=raw)

        modifications: list[Modification] = []
        current = self._cleanup(raw, modifications)
        current = self._substitute(
            current, self._slang_pattern, self._slang.__getitem__, ModificationType.SLANG, modifications
        )
        current = self._substitute(
            current,
            self._compound_pattern,
            COMPOUND_NUMBERS.__getitem__,
            ModificationType.NUMBER,
            modifications,
        )
        current = self._substitute(
            current,
            self._single_pattern,
            SINGLE_NUMBERS.__getitem__,
            ModificationType.NUMBER,
            modifications,
        )
        current = self._substitute(
            current,
            self._profanity_pattern,
            lambda word: "*" * len(word),
            ModificationType.PROFANITY,
            modifications,
            mask=True,
        )
        current = self._cleanup(current, modifications)
        if modifications:
            logger.debug("normalized input modifications=%s", len(modifications))
        return NormalizedUtterance(original=raw, text=current, modifications=tuple(modifications))

    @staticmethod
    def _cleanup(text: str, modifications: list[Modification]) -> str:
        cleaned = _WHITESPACE.sub(" ", text).strip()
        cleaned = _SPACE_BEFORE_PUNCTUATION.sub(r"\1", cleaned)
        cleaned = _REPEATED_PUNCTUATION.sub(r"\1", cleaned)
        if cleaned != text:
            modifications.append(Modification(ModificationType.CLEANUP, text, cleaned))
        return cleaned

    @staticmethod
    def _substitute(
        text: str,
        pattern: re.Pattern[str],
        replacement_for: Callable[[str], str],
        kind: ModificationType,
        modifications: list[Modification],
        *,
        mask: bool = False,
    ) -> str:
        def _replace(match: re.Match[str]) -> str:
            matched = match.group(0)
            replacement = replacement_for(matched if mask else _lookup_key(matched))
            if replacement != matched:
                modifications.append(Modification(kind, matched, replacement))
            return replacement

        return pattern.sub(_replace, text)


_DEFAULT_NORMALIZER: InputNormalizer | None = None


def normalize(text: str) -> NormalizedUtterance:
    global _DEFAULT_NORMALIZER
    if _DEFAULT_NORMALIZER is None:
        _DEFAULT_NORMALIZER = InputNormalizer()
    return _DEFAULT_NORMALIZER.normalize(text)
