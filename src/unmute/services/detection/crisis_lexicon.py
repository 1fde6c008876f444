"""
Crisis Lexicon

Phrase rules used by the SignalClassifier, grouped by category and
ordered from most to least severe. This table is policy input: it
is versioned with the code and changed only after review with
counselling staff.

CLINICAL_REVIEW_REQUIRED: Every phrase and its severity.

Matching is case-insensitive and word-bounded. Rules whose phrase
already contains a negation ("don't want to live") are written that
way on purpose; the classifier only looks for negation cues before
a match, never inside it.
"""

import re
from dataclasses import dataclass

from unmute.domain.enums.risk_stage import CrisisCategory, Severity


LEXICON_VERSION = "2025.1"


@dataclass(frozen=True)
class LexiconRule:
    """A single phrase rule."""

    name: str
    category: CrisisCategory
    severity: Severity
    pattern: re.Pattern


def _rule(name: str, category: CrisisCategory, severity: Severity, regex: str) -> LexiconRule:
    return LexiconRule(name, category, severity, re.compile(regex, re.IGNORECASE))


_SH = CrisisCategory.SELF_HARM
_AB = CrisisCategory.ABUSE
_GD = CrisisCategory.GENERIC_DISTRESS


SELF_HARM_RULES: tuple[LexiconRule, ...] = (
    # Imminent action
    _rule("direct_intent", _SH, Severity.CRITICAL, r"\b(kill|end)\s+(myself|my\s+life)\b"),
    _rule("end_it_all", _SH, Severity.CRITICAL, r"\bend(ing)?\s+it\s+all\b"),
    _rule(
        "imminent_statement", _SH, Severity.CRITICAL,
        r"\bi'?m\s+(going\s+to|gonna|about\s+to)\s+(do\s+it|end\s+it|die|kill\s+myself)\b",
    ),
    _rule("attempt_in_progress", _SH, Severity.CRITICAL, r"\balready\s+(took|swallowed|cut)\b"),
    _rule("doing_it_now", _SH, Severity.CRITICAL, r"\bdoing\s+it\s+(now|tonight|today)\b"),
    _rule("final_goodbye", _SH, Severity.CRITICAL, r"\bthis\s+is\s+(goodbye|the\s+end)\b"),
    _rule("no_turning_back", _SH, Severity.CRITICAL, r"\bno\s+turning\s+back\b"),
    _rule("overdosing", _SH, Severity.CRITICAL, r"\boverdos(ed|ing)\b"),
    _rule("cannot_stop", _SH, Severity.CRITICAL, r"\bcan'?t\s+stop\s+myself\b"),
    _rule("at_the_edge", _SH, Severity.CRITICAL, r"\b(on\s+the\s+ledge|standing\s+on\s+the\s+(bridge|roof))\b"),
    # Planning and self-injury
    _rule(
        "method_research", _SH, Severity.HIGH,
        r"\bhow\s+to\s+(kill\s+myself|end\s+my\s+life|die|commit\s+suicide)\b",
    ),
    _rule("suicide_note", _SH, Severity.HIGH, r"\b(suicide|goodbye)\s+(notes?|letters?)\b"),
    _rule(
        "final_messages", _SH, Severity.HIGH,
        r"\bwriting\s+(my\s+)?(final|goodbye)\s+(notes?|letters?|messages?)\b",
    ),
    _rule(
        "giving_away", _SH, Severity.HIGH,
        r"\bgiving\s+away\s+(my\s+)?(stuff|things|belongings|possessions)\b",
    ),
    _rule("set_a_date", _SH, Severity.HIGH, r"\bset\s+a\s+date\b"),
    _rule("method_reference", _SH, Severity.HIGH, r"\b(overdose|noose)\b"),
    _rule(
        "stockpiling", _SH, Severity.HIGH,
        r"\b(stockpiling|saving\s+up|collecting)\s+(pills|meds|medication)\b",
    ),
    _rule(
        "decided", _SH, Severity.HIGH,
        r"\b(made\s+up\s+my\s+mind|decided)\s+to\s+(end\s+it|die|kill\s+myself)\b",
    ),
    _rule("self_harm", _SH, Severity.HIGH, r"\bself[\s-]?harm(ing)?\b"),
    _rule("self_injury", _SH, Severity.HIGH, r"\b(cut|cutting|hurt|hurting|burn|burning)\s+myself\b"),
    # Ideation
    _rule("want_to_die", _SH, Severity.MEDIUM, r"\bwant(ing)?\s+to\s+die\b"),
    _rule("suicidal", _SH, Severity.MEDIUM, r"\bsuicid(e|al)\b"),
    _rule("wish_dead", _SH, Severity.MEDIUM, r"\bwish\s+i\s+(was|were)\s+dead\b"),
    _rule(
        "wish_not_alive", _SH, Severity.MEDIUM,
        r"\bwish\s+i\s+(wasn'?t|weren'?t)\s+(alive|here|born)\b",
    ),
    _rule(
        "wish_never_born", _SH, Severity.MEDIUM,
        r"\bwish\s+i\s+(was|were|had)\s+never\s+(been\s+)?born\b",
    ),
    _rule(
        "no_reason_to_live", _SH, Severity.MEDIUM,
        r"\bno\s+(reason|point)\s+(to|in)\s+(live|living|go\s+on|going\s+on)\b",
    ),
    _rule("better_off_dead", _SH, Severity.MEDIUM, r"\bbetter\s+off\s+dead\b"),
    _rule(
        "dont_want_to_live", _SH, Severity.MEDIUM,
        r"\bdon'?t\s+want\s+to\s+(live|be\s+alive|exist|wake\s+up)\b",
    ),
    _rule("life_not_worth", _SH, Severity.MEDIUM, r"\blife\s+(is\s+)?not\s+worth\s+living\b"),
    _rule("thinking_of_death", _SH, Severity.MEDIUM, r"\bthinking\s+about\s+(death|dying|ending\s+it)\b"),
    _rule("better_off_without_me", _SH, Severity.MEDIUM, r"\bbetter\s+off\s+without\s+me\b"),
    _rule("nobody_would_miss_me", _SH, Severity.MEDIUM, r"\b(nobody|no\s*one)\s+would\s+miss\s+me\b"),
)


ABUSE_RULES: tuple[LexiconRule, ...] = (
    _rule("abuse", _AB, Severity.HIGH, r"\b(abuse[sd]?|abusing|abusive)\b"),
    _rule("physical_violence", _AB, Severity.HIGH, r"\b(hits?|hitting|beats?|beating)\s+me\b"),
    _rule("domestic_violence", _AB, Severity.HIGH, r"\bdomestic\s+violence\b"),
    _rule(
        "sexual_violence", _AB, Severity.HIGH,
        r"\bsexual(ly)?\s+(assault(ed)?|abuse[sd]?|harass(ed|ment))\b",
    ),
    _rule("rape", _AB, Severity.HIGH, r"\brap(e|ed)\b"),
    _rule(
        "inappropriate_touch", _AB, Severity.HIGH,
        r"\btouch(es|ed|ing)?\s+me\s+(inappropriately|where)\b",
    ),
    _rule("threatened", _AB, Severity.HIGH, r"\bthreaten(s|ed)?\s+to\s+(hurt|kill)\s+me\b"),
)


GENERIC_DISTRESS_RULES: tuple[LexiconRule, ...] = (
    # Emotional overload
    _rule("hopeless", _GD, Severity.HIGH, r"\b(hopeless(ness)?|no\s+hope)\b"),
    _rule(
        "cannot_go_on", _GD, Severity.HIGH,
        r"\bcan'?t\s+(go\s+on|take\s+(it|this)(\s+anymore)?|handle\s+(it|this)\s+anymore)\b",
    ),
    _rule("give_up", _GD, Severity.HIGH, r"\b(give|giving)\s+up\b"),
    _rule("worthless", _GD, Severity.HIGH, r"\bworthless\b"),
    _rule("self_hatred", _GD, Severity.HIGH, r"\b(hate|despise)\s+myself\b"),
    _rule("burden", _GD, Severity.HIGH, r"\bburden\s+(to|on)\b"),
    _rule("no_one_cares", _GD, Severity.HIGH, r"\b(nobody|no\s*one)\s+cares\b"),
    _rule("helpless", _GD, Severity.HIGH, r"\b(helpless|powerless|trapped)\b"),
    _rule("falling_apart", _GD, Severity.HIGH, r"\b(breaking|falling)\s+apart\b"),
    _rule("no_way_out", _GD, Severity.HIGH, r"\bno\s+way\s+out\b"),
    # Negative spiral
    _rule("depressed", _GD, Severity.MEDIUM, r"\bdepress(ed|ion)\b"),
    _rule("anxious", _GD, Severity.MEDIUM, r"\banxi(ety|ous)\b"),
    _rule("panic_attack", _GD, Severity.MEDIUM, r"\bpanic\s+attacks?\b"),
    _rule("breakdown", _GD, Severity.MEDIUM, r"\bbreakdown\b"),
    _rule("overwhelmed", _GD, Severity.MEDIUM, r"\boverwhelm(ed|ing)\b"),
    _rule("cannot_cope", _GD, Severity.MEDIUM, r"\bcan'?t\s+cope\b"),
    _rule(
        "feeling_empty", _GD, Severity.MEDIUM,
        r"\bfeel(ing)?\s+(so\s+)?(alone|isolated|empty|numb)\b",
    ),
    _rule("im_a_failure", _GD, Severity.MEDIUM, r"\bi'?m\s+a\s+failure\b"),
    _rule("nobody_understands", _GD, Severity.MEDIUM, r"\bnobody\s+(understands|loves)\s+me\b"),
    _rule("whats_the_point", _GD, Severity.MEDIUM, r"\bwhat'?s\s+the\s+point\b"),
    _rule("self_critical", _GD, Severity.MEDIUM, r"\bi'?m\s+(so\s+)?(stupid|useless|pathetic)\b"),
    _rule("catastrophising", _GD, Severity.MEDIUM, r"\beverything\s+is\s+(ruined|over)\b"),
    _rule("self_blame", _GD, Severity.MEDIUM, r"\b(all\s+)?my\s+fault\b"),
    _rule("ruined_life", _GD, Severity.MEDIUM, r"\bruined\s+my\s+(life|future)\b"),
    # Trigger events
    _rule("stressed", _GD, Severity.LOW, r"\bstress(ed|ful)?\b"),
    _rule("sad", _GD, Severity.LOW, r"\b(sad|crying)\b"),
    _rule("lonely", _GD, Severity.LOW, r"\blonely\b"),
    _rule("scared", _GD, Severity.LOW, r"\b(scared|worried)\b"),
    _rule("failure", _GD, Severity.LOW, r"\bfail(ed|ing|ure)?\b"),
    _rule("breakup", _GD, Severity.LOW, r"\b(broke\s+up|break\s*up)\b"),
    _rule("bullied", _GD, Severity.LOW, r"\bbull(y|ied|ying)\b"),
    _rule("shame", _GD, Severity.LOW, r"\b(ashamed|embarrassed|humiliated)\b"),
    _rule("rejected", _GD, Severity.LOW, r"\breject(ed|ion)\b"),
)


DEFAULT_RULES: tuple[LexiconRule, ...] = SELF_HARM_RULES + ABUSE_RULES + GENERIC_DISTRESS_RULES


# Words that negate a following phrase within the same clause
NEGATION_CUES: frozenset[str] = frozenset({
    "not",
    "no",
    "never",
    "nor",
    "don't",
    "dont",
    "doesn't",
    "didn't",
    "won't",
    "wouldn't",
    "isn't",
    "wasn't",
    "aren't",
})
