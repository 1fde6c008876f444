"""
Risk Stage, Level and Signal Enumerations

Closed, ordered enumerations for the crisis-progression model and
the fixed tables that relate them. Every stage/level/severity
comparison in the codebase goes through these enums and tables;
no module compares raw strings.

CLINICAL_REVIEW_REQUIRED: The stage model follows the eight-stage
suicide roadmap (trigger -> action). The mapping tables below are
policy and must be reviewed with counselling staff before changes.
"""

from enum import IntEnum, StrEnum


class _LabelledIntEnum(IntEnum):
    """IntEnum persisted and serialised by its lower-case name."""

    @property
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, value: "str | int | _LabelledIntEnum"):
        """
        Parse a label, integer value or member.

        Raises:
            ValueError: For unknown values
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, int):
            return cls(value)
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown {cls.__name__}: {value!r}") from None


class Stage(_LabelledIntEnum):
    """
    Crisis-progression stage.

    Ordered severity scale; a higher value is a more advanced
    stage. NONE is the initial value of every profile.
    """

    NONE = 0
    TRIGGER = 1
    """Failure, rejection, bullying or loss has occurred."""

    SPIRAL = 2
    """Negative thought loops are forming."""

    DISTORTIONS = 3
    """Catastrophising and all-or-nothing thinking."""

    OVERLOAD = 4
    """Fear turning into helplessness and hopelessness."""

    ISOLATION = 5
    """Withdrawal from peers and support systems."""

    IDEATION = 6
    """Suicide is seen as an escape."""

    PLANNING = 7
    """Method research, notes, giving belongings away."""

    ACTION = 8
    """
    Attempt imminent or in progress.

    SAFETY_NOTE: Staff must be alerted without delay.
    """

    @property
    def is_critical_band(self) -> bool:
        """Whether the stage is ideation, planning or action."""
        return self >= Stage.IDEATION


class RiskLevel(_LabelledIntEnum):
    """Coarse risk classification derived from the stage."""

    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4


class Severity(_LabelledIntEnum):
    """Severity of a single classified message."""

    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    def downgraded(self) -> "Severity | None":
        """One level lower, or None below LOW."""
        if self == Severity.LOW:
            return None
        return Severity(self - 1)


class CrisisCategory(StrEnum):
    """Category of a classified message."""

    SELF_HARM = "self-harm"
    ABUSE = "abuse"
    GENERIC_DISTRESS = "generic-distress"
    NONE = "none"


# Tie-break order when two categories match at the same severity
CATEGORY_PRIORITY: tuple[CrisisCategory, ...] = (
    CrisisCategory.SELF_HARM,
    CrisisCategory.ABUSE,
    CrisisCategory.GENERIC_DISTRESS,
)


RISK_LEVEL_FOR_STAGE: dict[Stage, RiskLevel] = {
    Stage.NONE: RiskLevel.LOW,
    Stage.TRIGGER: RiskLevel.MEDIUM,
    Stage.SPIRAL: RiskLevel.MEDIUM,
    Stage.DISTORTIONS: RiskLevel.MEDIUM,
    Stage.OVERLOAD: RiskLevel.HIGH,
    Stage.ISOLATION: RiskLevel.HIGH,
    Stage.IDEATION: RiskLevel.CRITICAL,
    Stage.PLANNING: RiskLevel.CRITICAL,
    Stage.ACTION: RiskLevel.CRITICAL,
}


# (category, severity) -> stage implied by a single message
IMPLIED_STAGE: dict[tuple[CrisisCategory, Severity], Stage] = {
    (CrisisCategory.SELF_HARM, Severity.LOW): Stage.TRIGGER,
    (CrisisCategory.SELF_HARM, Severity.MEDIUM): Stage.IDEATION,
    (CrisisCategory.SELF_HARM, Severity.HIGH): Stage.PLANNING,
    (CrisisCategory.SELF_HARM, Severity.CRITICAL): Stage.ACTION,
    # Abuse always implies at least isolation
    (CrisisCategory.ABUSE, Severity.LOW): Stage.ISOLATION,
    (CrisisCategory.ABUSE, Severity.MEDIUM): Stage.ISOLATION,
    (CrisisCategory.ABUSE, Severity.HIGH): Stage.ISOLATION,
    (CrisisCategory.ABUSE, Severity.CRITICAL): Stage.ISOLATION,
    (CrisisCategory.GENERIC_DISTRESS, Severity.LOW): Stage.TRIGGER,
    (CrisisCategory.GENERIC_DISTRESS, Severity.MEDIUM): Stage.SPIRAL,
    (CrisisCategory.GENERIC_DISTRESS, Severity.HIGH): Stage.OVERLOAD,
    (CrisisCategory.GENERIC_DISTRESS, Severity.CRITICAL): Stage.OVERLOAD,
}


def risk_level_for_stage(stage: Stage) -> RiskLevel:
    """Map a stage to its fixed risk level."""
    return RISK_LEVEL_FOR_STAGE[stage]


def implied_stage(category: CrisisCategory, severity: Severity) -> Stage:
    """
    Map a classified (category, severity) pair to a stage.

    Unflagged messages imply no stage at all.
    """
    if category == CrisisCategory.NONE:
        return Stage.NONE
    return IMPLIED_STAGE[(category, severity)]
