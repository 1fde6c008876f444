"""
Unit Tests for SQL Stores

Runs the SQLAlchemy stores against in-memory SQLite to check the
version-checked writes, the partial unique index and the
conditional status updates.
"""

import asyncio
from datetime import timezone
from uuid import uuid4

import pytest

from unmute.domain.enums.risk_stage import CrisisCategory, RiskLevel, Severity, Stage
from unmute.domain.enums.workflow import (
    AssignmentPriority,
    AssignmentStatus,
    NotificationChannel,
    ResponseActionType,
    ResponseOutcome,
)
from unmute.domain.exceptions import (
    ConcurrentUpdateConflict,
    DuplicateActiveAssignment,
    SignalRecordNotFound,
)
from unmute.domain.models.assignment import Assignment
from unmute.domain.models.crisis_signal import CrisisSignalRecord
from unmute.domain.models.response_log import ResponseLogEntry
from unmute.domain.models.risk_profile import RiskProfile, utc_now
from unmute.infrastructure.stores import (
    SqlAssignmentStore,
    SqlResponseLogStore,
    SqlRiskProfileStore,
    SqlSignalRecordStore,
)


class TestSqlRiskProfileStore:
    """Test suite for SqlRiskProfileStore."""

    @pytest.fixture
    def store(self, db) -> SqlRiskProfileStore:
        return SqlRiskProfileStore(db)

    async def test_round_trip(self, store: SqlRiskProfileStore, student_id, institution_id) -> None:
        """A stored profile reads back with its stage and UTC times."""
        now = utc_now()
        stored = await store.compare_and_set(
            RiskProfile(
                user_id=student_id,
                institution_id=institution_id,
                stage=Stage.PLANNING,
                crisis_count=2,
                last_crisis_at=now,
            ),
            0,
        )
        loaded = await store.get(student_id)

        assert stored.version == 1
        assert loaded.stage == Stage.PLANNING
        assert loaded.risk_level == RiskLevel.CRITICAL
        assert loaded.crisis_count == 2
        assert loaded.institution_id == institution_id
        assert loaded.last_crisis_at.tzinfo is not None
        assert loaded.last_crisis_at.astimezone(timezone.utc).replace(microsecond=0) == now.replace(microsecond=0)

    async def test_missing_profile(self, store: SqlRiskProfileStore) -> None:
        """Unknown students have no profile."""
        assert await store.get(uuid4()) is None

    async def test_version_checked_update(self, store: SqlRiskProfileStore, student_id) -> None:
        """Updates bump the version; stale versions conflict."""
        first = await store.compare_and_set(RiskProfile(user_id=student_id), 0)
        second = await store.compare_and_set(first.evolve(stage=Stage.SPIRAL), 1)

        assert second.version == 2
        with pytest.raises(ConcurrentUpdateConflict):
            await store.compare_and_set(first.evolve(stage=Stage.ACTION), 1)
        assert (await store.get(student_id)).stage == Stage.SPIRAL

    async def test_duplicate_first_write_conflicts(self, store: SqlRiskProfileStore, student_id) -> None:
        """A second create for the same student loses the race."""
        await store.compare_and_set(RiskProfile(user_id=student_id), 0)

        with pytest.raises(ConcurrentUpdateConflict):
            await store.compare_and_set(RiskProfile(user_id=student_id, stage=Stage.ACTION), 0)

    async def test_snapshot_and_risk_level(self, store: SqlRiskProfileStore, institution_id) -> None:
        """Profiles are filtered by institution and level."""
        await store.compare_and_set(
            RiskProfile(user_id=uuid4(), institution_id=institution_id, stage=Stage.ACTION), 0
        )
        await store.compare_and_set(
            RiskProfile(user_id=uuid4(), institution_id=institution_id, stage=Stage.TRIGGER), 0
        )
        await store.compare_and_set(RiskProfile(user_id=uuid4(), stage=Stage.ACTION), 0)

        assert len(await store.snapshot(institution_id)) == 2
        assert len(await store.snapshot()) == 3
        critical = await store.list_by_risk_level(RiskLevel.CRITICAL, institution_id)
        assert [p.stage for p in critical] == [Stage.ACTION]


class TestSqlAssignmentStore:
    """Test suite for SqlAssignmentStore."""

    @pytest.fixture
    def store(self, db) -> SqlAssignmentStore:
        return SqlAssignmentStore(db)

    @pytest.fixture
    def assignment(self, student_id) -> Assignment:
        return Assignment(
            student_user_id=student_id,
            reason="Automatic escalation",
            risk_level_at_creation=RiskLevel.CRITICAL,
            priority=AssignmentPriority.HIGH,
        )

    async def test_insert_and_get(self, store: SqlAssignmentStore, assignment: Assignment) -> None:
        """Assignments read back with their enums and UTC times."""
        await store.insert(assignment)
        loaded = await store.get(assignment.id)

        assert loaded.status == AssignmentStatus.PENDING
        assert loaded.priority == AssignmentPriority.HIGH
        assert loaded.risk_level_at_creation == RiskLevel.CRITICAL
        assert loaded.assigned_at.tzinfo is not None

    async def test_partial_unique_index(self, store: SqlAssignmentStore, assignment: Assignment, student_id) -> None:
        """Only one open assignment per student."""
        await store.insert(assignment)

        with pytest.raises(DuplicateActiveAssignment) as exc_info:
            await store.insert(
                Assignment(student_user_id=student_id, reason="Again", risk_level_at_creation=RiskLevel.HIGH)
            )
        assert exc_info.value.existing_id == assignment.id

    async def test_completed_frees_student(self, store: SqlAssignmentStore, assignment: Assignment, student_id) -> None:
        """Completed assignments do not count towards the index."""
        await store.insert(assignment.evolve(status=AssignmentStatus.COMPLETED))
        fresh = Assignment(student_user_id=student_id, reason="New", risk_level_at_creation=RiskLevel.HIGH)

        await store.insert(fresh)

        assert (await store.get_open_for_student(student_id)).id == fresh.id

    async def test_conditional_transition(self, store: SqlAssignmentStore, assignment: Assignment) -> None:
        """Transitions apply only from the expected status."""
        await store.insert(assignment)
        assignee = uuid4()

        accepted = await store.transition(
            assignment.id,
            AssignmentStatus.PENDING,
            {"status": AssignmentStatus.ACTIVE, "accepted_at": utc_now(), "assignee_user_id": assignee},
        )
        again = await store.transition(
            assignment.id, AssignmentStatus.PENDING, {"status": AssignmentStatus.ACTIVE}
        )

        assert accepted.status == AssignmentStatus.ACTIVE
        assert accepted.assignee_user_id == assignee
        assert again is None

    async def test_concurrent_transitions_single_winner(
        self, store: SqlAssignmentStore, assignment: Assignment
    ) -> None:
        """Of many simultaneous accepts exactly one updates the row."""
        await store.insert(assignment)
        assignees = [uuid4() for _ in range(8)]

        results = await asyncio.gather(*(
            store.transition(
                assignment.id,
                AssignmentStatus.PENDING,
                {"status": AssignmentStatus.ACTIVE, "accepted_at": utc_now(), "assignee_user_id": assignee},
            )
            for assignee in assignees
        ))

        winners = [r for r in results if r is not None]
        assert len(winners) == 1
        stored = await store.get(assignment.id)
        assert stored.status == AssignmentStatus.ACTIVE
        assert stored.assignee_user_id == winners[0].assignee_user_id
        assert stored.assignee_user_id in assignees

    async def test_raise_priority(self, store: SqlAssignmentStore, assignment: Assignment) -> None:
        """Priority goes up, never down."""
        await store.insert(assignment)

        lowered = await store.raise_priority(assignment.id, AssignmentPriority.NORMAL)
        raised = await store.raise_priority(assignment.id, AssignmentPriority.URGENT)

        assert lowered.priority == AssignmentPriority.HIGH
        assert raised.priority == AssignmentPriority.URGENT

    async def test_query_by_status(self, store: SqlAssignmentStore, assignment: Assignment) -> None:
        """Queries filter on status."""
        await store.insert(assignment)
        await store.insert(
            Assignment(
                student_user_id=uuid4(),
                reason="Other",
                risk_level_at_creation=RiskLevel.HIGH,
                status=AssignmentStatus.COMPLETED,
            )
        )

        pending = await store.query(status=AssignmentStatus.PENDING)

        assert [a.id for a in pending] == [assignment.id]


class TestSqlAuditStores:
    """Tests for the response log and signal record stores."""

    async def test_response_log_round_trip(self, db, student_id) -> None:
        """Entries keep their enums and notification fields."""
        store = SqlResponseLogStore(db)
        entry = ResponseLogEntry(
            student_user_id=student_id,
            responder_user_id=uuid4(),
            action_type=ResponseActionType.CONTACTED_STUDENT,
            outcome=ResponseOutcome.REQUIRES_FOLLOW_UP,
            details="Called, will check in tomorrow",
            follow_up_required=True,
            notification_sent=True,
            notification_channel=NotificationChannel.EMAIL,
        )

        await store.append(entry)
        (loaded,) = await store.query(student_user_id=student_id)

        assert loaded.id == entry.id
        assert loaded.action_type == ResponseActionType.CONTACTED_STUDENT
        assert loaded.outcome == ResponseOutcome.REQUIRES_FOLLOW_UP
        assert loaded.notification_channel == NotificationChannel.EMAIL
        assert loaded.follow_up_required

    async def test_signal_record_review(self, db, student_id) -> None:
        """Records can be listed and marked reviewed."""
        store = SqlSignalRecordStore(db)
        record = CrisisSignalRecord(
            user_id=student_id,
            source_type="message",
            source_id="m-7",
            category=CrisisCategory.SELF_HARM,
            severity=Severity.CRITICAL,
            matched_terms=("end my life", "tonight"),
            text_hash="a" * 64,
            stage_before=Stage.NONE,
            stage_after=Stage.ACTION,
        )
        await store.append(record)

        (unreviewed,) = await store.list_unreviewed()
        assert unreviewed.matched_terms == ("end my life", "tonight")
        assert unreviewed.severity == Severity.CRITICAL

        reviewer = uuid4()
        reviewed = await store.mark_reviewed(record.id, reviewer, utc_now())

        assert reviewed.is_reviewed
        assert reviewed.reviewed_by == reviewer
        assert await store.list_unreviewed() == []

    async def test_mark_unknown_record(self, db) -> None:
        """Unknown ids raise SignalRecordNotFound."""
        with pytest.raises(SignalRecordNotFound):
            await SqlSignalRecordStore(db).mark_reviewed(uuid4(), uuid4(), utc_now())
