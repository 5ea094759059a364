"""Script-based language detection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ashaai.models import DEFAULT_LANGUAGE, Language


@dataclass(frozen=True)
class ScriptRange:
    language: Language
    first: int
    last: int

    def matches(self, char: str) -> bool:
        return self.first <= ord(char) <= self.last


# Blocks are disjoint; order only fixes which check runs first.
SCRIPT_RANGES: tuple[ScriptRange, ...] = (
    ScriptRange(Language.HINDI, 0x0900, 0x097F),  # Devanagari
    ScriptRange(Language.TAMIL, 0x0B80, 0x0BFF),
    ScriptRange(Language.TELUGU, 0x0C00, 0x0C7F),
    ScriptRange(Language.KANNADA, 0x0C80, 0x0CFF),
    ScriptRange(Language.BENGALI, 0x0980, 0x09FF),
)


class LanguageDetector:
    """Maps text to a supported language via Unicode script blocks."""

    def __init__(
        self,
        ranges: Sequence[ScriptRange] = SCRIPT_RANGES,
        default: Language = DEFAULT_LANGUAGE,
    ) -> None:
        self._ranges = tuple(ranges)
        self._default = default

    def detect(self, text: str) -> Language:
        for script in self._ranges:
            if any(script.matches(char) for char in text):
                return script.language
        return self._default


_DEFAULT_DETECTOR = LanguageDetector()


def detect_language(text: str) -> Language:
    return _DEFAULT_DETECTOR.detect(text)
