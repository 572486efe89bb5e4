"""Fallback keyword-based section parser used when no provider is available."""

import logging
import re
from typing import Any, Callable, Iterable, Sequence

from blockcanvas.llm.vocabulary import (
    COMPONENT_VOCABULARY,
    DEFAULT_BLOCKS,
    DEFAULT_DETAILS,
    DEFAULT_SOLUTION,
    SECTION_IDS,
    SECTION_NAMES,
    all_vocabulary_terms,
)

logger = logging.getLogger(__name__)

CAPITALIZED_PHRASE = re.compile(r"\b[A-Z][a-z]+(?:\s+[A-Z][a-z]+)*\b")
QUOTED_PHRASE = re.compile(r'"([^"]+)"')


def _term_pattern(term: str) -> re.Pattern:
    """Word-bounded pattern for a vocabulary term, tolerant of any whitespace run."""
    words = [re.escape(word) for word in term.split()]
    return re.compile(r"\b" + r"\s+".join(words) + r"\b", re.IGNORECASE)


def _overlaps_vocabulary(candidate: str, vocabulary: Iterable[str]) -> bool:
    return any(term in candidate or candidate in term for term in vocabulary)


def format_component_name(name: str) -> str:
    """Title-case a component name word by word."""
    return " ".join(word[:1].upper() + word[1:].lower() for word in name.split(" "))


class ComponentExtractor:
    """Pulls candidate component names out of free text.

    Three passes, in order: vocabulary matches, capitalized phrases,
    and double-quoted phrases. Results keep first-seen order.
    """

    MIN_PHRASE_LENGTH = 4

    def __init__(self, terms: Sequence[str] | None = None):
        self._terms = tuple(terms) if terms is not None else all_vocabulary_terms()
        self._patterns = [(term, _term_pattern(term)) for term in self._terms]

    def extract(self, text: str) -> list[str]:
        """Extract candidate names from text.

        Args:
            text: Product description. The generator passes it lower-cased.

        Returns:
            Deduplicated candidates in first-seen order.
        """
        if not text:
            return []

        found: list[str] = [term for term, pattern in self._patterns if pattern.search(text)]

        matched_lower = set(found)
        for phrase in CAPITALIZED_PHRASE.findall(text):
            if len(phrase) >= self.MIN_PHRASE_LENGTH and phrase.lower() not in matched_lower:
                found.append(phrase)

        found.extend(QUOTED_PHRASE.findall(text))

        return list(dict.fromkeys(found))


class CategoryClassifier:
    """Assigns candidates to the five fixed sections.

    Rules are evaluated in section order and the first match wins.
    Candidates no rule claims go through a stem heuristic.
    """

    # (stems, section) tried in order for unmatched candidates
    STEM_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
        (("sensor", "input", "detect"), "inputs"),
        (("display", "output", "show"), "outputs"),
        (("process", "control", "mcu"), "control"),
    )
    STEM_DEFAULT = "peripherals"

    def __init__(self):
        self.rules: tuple[tuple[str, tuple[str, ...], Callable[[str, Iterable[str]], bool]], ...] = tuple(
            (section_id, COMPONENT_VOCABULARY[section_id], _overlaps_vocabulary)
            for section_id in SECTION_IDS
        )

    def categorize(self, candidate: str) -> str:
        """Return the section id a single candidate belongs to."""
        lower = candidate.lower()
        for section_id, vocabulary, matches in self.rules:
            if matches(lower, vocabulary):
                return section_id

        for stems, section_id in self.STEM_RULES:
            if any(stem in lower for stem in stems):
                return section_id
        return self.STEM_DEFAULT

    def classify(self, candidates: Sequence[str]) -> dict[str, list[str]]:
        """Group candidates by section, filling empty sections with defaults.

        Args:
            candidates: Output of ComponentExtractor.extract.

        Returns:
            Mapping of section id to title-cased block names, in section order.
            Every section has at least one name.
        """
        categorized: dict[str, list[str]] = {section_id: [] for section_id in SECTION_IDS}

        for candidate in candidates:
            categorized[self.categorize(candidate)].append(format_component_name(candidate))

        for section_id, names in categorized.items():
            if not names:
                names.append(DEFAULT_BLOCKS[section_id])

        return categorized


class FallbackParser:
    """Keyword-based section parser.

    Uses pattern matching and heuristics to split a description into
    the five sections when the provider is not available.
    """

    def __init__(self):
        self.extractor = ComponentExtractor()
        self.classifier = CategoryClassifier()

    def parse(self, description: str) -> dict[str, Any]:
        """Parse a description into section drafts.

        Args:
            description: Product description.

        Returns:
            Dict with ``sections`` (five drafts in fixed order) and ``solution``.
        """
        candidates = self.extractor.extract(description.lower())
        categorized = self.classifier.classify(candidates)

        logger.debug(f"Pattern matching found {len(candidates)} candidate(s): {candidates}")

        return {
            "sections": [
                {
                    "id": section_id,
                    "name": SECTION_NAMES[section_id],
                    "blocks": categorized[section_id],
                    "blockSpecs": {},
                    "details": DEFAULT_DETAILS[section_id],
                }
                for section_id in SECTION_IDS
            ],
            "solution": DEFAULT_SOLUTION,
        }
