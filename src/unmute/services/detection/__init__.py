"""Detection services package."""

from unmute.services.detection.crisis_lexicon import LEXICON_VERSION, LexiconRule
from unmute.services.detection.signal_classifier import SignalClassifier, classify

__all__ = [
    "SignalClassifier",
    "classify",
    "LexiconRule",
    "LEXICON_VERSION",
]
