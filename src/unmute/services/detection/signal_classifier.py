"""
Signal Classifier

Rule-based classification of a single student message into a
crisis category and severity. Pure and side-effect free apart from
logging: the same text always yields the same CrisisSignal.

SAFETY-CRITICAL: A false negative here means a student in crisis
is never surfaced to staff. When in doubt the rules err towards
flagging; negation only downgrades, it never clears a high or
critical match.

CLINICAL_REVIEW_REQUIRED: The negation heuristic and lexicon.

Negation rule:
    A match is negated when one of NEGATION_CUES appears among the
    negation_window words immediately before it, inside the same
    clause. Clauses end at . ! ? ; , or the word "but". A negated
    match drops one severity level; a negated low match is
    discarded. Phrases are inspected only before the match, so a
    rule whose own phrase contains a negation still counts.
"""

import re
from typing import Iterable, Optional

from unmute.config.logging_config import get_logger
from unmute.domain.enums.risk_stage import CATEGORY_PRIORITY, CrisisCategory, Severity
from unmute.domain.exceptions import ClassificationError
from unmute.domain.models.crisis_signal import CrisisSignal
from unmute.services.detection.crisis_lexicon import (
    DEFAULT_RULES,
    NEGATION_CUES,
    LexiconRule,
)

logger = get_logger(__name__)


DEFAULT_MAX_SCAN_CHARS = 4000
DEFAULT_NEGATION_WINDOW = 3

_APOSTROPHES = str.maketrans({"’": "'", "‘": "'", "ʼ": "'"})
_CLAUSE_BREAK = re.compile(r"[.!?;,]|\bbut\b", re.IGNORECASE)
_WORD = re.compile(r"[a-z']+")
_WHITESPACE = re.compile(r"\s+")

# Characters before a match worth inspecting for negation cues
_NEGATION_LOOKBEHIND = 160


class SignalClassifier:
    """
    Classifies message text against the crisis lexicon.

    Every rule is evaluated; the result carries the maximum
    severity, the category of the winning match (ties broken by
    CATEGORY_PRIORITY) and every counted phrase.
    """

    def __init__(
        self,
        max_scan_chars: int = DEFAULT_MAX_SCAN_CHARS,
        negation_window: int = DEFAULT_NEGATION_WINDOW,
        rules: Iterable[LexiconRule] = DEFAULT_RULES,
    ) -> None:
        if max_scan_chars <= 0:
            raise ValueError("max_scan_chars must be positive")
        if negation_window < 0:
            raise ValueError("negation_window cannot be negative")
        self._max_scan_chars = max_scan_chars
        self._negation_window = negation_window
        self._rules = tuple(rules)

    @property
    def max_scan_chars(self) -> int:
        return self._max_scan_chars

    def classify(self, text: object) -> CrisisSignal:
        """
        Classify a message.

        Never raises: malformed input is logged and classified as
        an empty message.

        Args:
            text: Message text; anything but a str is malformed

        Returns:
            CrisisSignal for the scanned prefix of the text
        """
        try:
            scanned, truncated = self._prepare(text)
        except ClassificationError as e:
            logger.warning("Classifier input rejected", error=str(e))
            scanned, truncated = "", False

        if truncated:
            logger.info(
                "Classifier input truncated",
                limit=self._max_scan_chars,
            )

        if not scanned.strip():
            return CrisisSignal(text=scanned, truncated=truncated)

        matched: dict[str, Severity] = {}
        negated: set[str] = set()
        best: Optional[tuple[CrisisCategory, Severity]] = None

        for rule in self._rules:
            for match in rule.pattern.finditer(scanned):
                term = _WHITESPACE.sub(" ", match.group(0).lower())
                severity: Optional[Severity] = rule.severity

                if self._is_negated(scanned, match.start()):
                    negated.add(term)
                    severity = severity.downgraded()
                    if severity is None:
                        continue

                if term not in matched or matched[term] < severity:
                    matched[term] = severity
                if best is None or _outranks(rule.category, severity, *best):
                    best = (rule.category, severity)

        if best is None:
            return CrisisSignal(
                text=scanned,
                negated_terms=frozenset(negated),
                truncated=truncated,
            )

        category, severity = best
        return CrisisSignal(
            text=scanned,
            category=category,
            severity=severity,
            matched_terms=frozenset(matched),
            negated_terms=frozenset(negated),
            show_resources=_should_show_resources(category, severity),
            truncated=truncated,
        )

    def _prepare(self, text: object) -> tuple[str, bool]:
        if not isinstance(text, str):
            raise ClassificationError(
                f"Expected message text, got {type(text).__name__}"
            )
        normalized = text.translate(_APOSTROPHES)
        if len(normalized) > self._max_scan_chars:
            return normalized[: self._max_scan_chars], True
        return normalized, False

    def _is_negated(self, text: str, start: int) -> bool:
        if self._negation_window == 0:
            return False
        prefix = text[max(0, start - _NEGATION_LOOKBEHIND):start]
        clause = _CLAUSE_BREAK.split(prefix)[-1]
        words = _WORD.findall(clause.lower())[-self._negation_window:]
        return any(word in NEGATION_CUES for word in words)


def _outranks(
    category: CrisisCategory,
    severity: Severity,
    best_category: CrisisCategory,
    best_severity: Severity,
) -> bool:
    if severity != best_severity:
        return severity > best_severity
    return CATEGORY_PRIORITY.index(category) < CATEGORY_PRIORITY.index(best_category)


def _should_show_resources(category: CrisisCategory, severity: Severity) -> bool:
    """
    Whether helplines should be shown alongside the message.

    Any self-harm match, or any match of high severity or above.
    """
    return category == CrisisCategory.SELF_HARM or severity >= Severity.HIGH


# Shared instance with default settings
signal_classifier = SignalClassifier()


def classify(text: object) -> CrisisSignal:
    """Classify text with the default classifier."""
    return signal_classifier.classify(text)
