"""
Store Interfaces

Abstract persistence interfaces consumed by the pipeline and the
escalation workflow. Implementations: in-memory (tests, single
process) and SQLAlchemy (production).

Every implementation must make the following atomic:
- RiskProfileStore.compare_and_set (version check and write)
- AssignmentStore.insert (open-assignment uniqueness per student)
- AssignmentStore.transition (status check and write)
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from unmute.domain.enums.risk_stage import RiskLevel
from unmute.domain.enums.workflow import AssignmentPriority, AssignmentStatus
from unmute.domain.models.assignment import Assignment
from unmute.domain.models.crisis_signal import CrisisSignalRecord
from unmute.domain.models.response_log import ResponseLogEntry
from unmute.domain.models.risk_profile import RiskProfile


class RiskProfileStore(ABC):
    """Durable per-student risk state."""

    @abstractmethod
    async def get(self, user_id: UUID) -> Optional[RiskProfile]:
        """Current profile, or None if the student was never flagged."""
        pass

    @abstractmethod
    async def compare_and_set(
        self,
        profile: RiskProfile,
        expected_version: int,
    ) -> RiskProfile:
        """
        Write a profile if the stored version still matches.

        expected_version 0 means "no profile stored yet".

        Args:
            profile: Next profile value
            expected_version: Version the caller read

        Returns:
            The stored profile with version expected_version + 1

        Raises:
            ConcurrentUpdateConflict: The stored version differs
        """
        pass

    @abstractmethod
    async def snapshot(self, institution_id: Optional[UUID] = None) -> list[RiskProfile]:
        """
        All profiles of an institution as of a single point in time.

        None returns profiles of every institution.
        """
        pass

    @abstractmethod
    async def list_by_risk_level(
        self,
        risk_level: RiskLevel,
        institution_id: Optional[UUID] = None,
    ) -> list[RiskProfile]:
        pass


class AssignmentStore(ABC):
    """Counsellor and listener assignments."""

    @abstractmethod
    async def insert(self, assignment: Assignment) -> Assignment:
        """
        Store a new assignment.

        Raises:
            DuplicateActiveAssignment: The student already has a
                pending or active assignment
        """
        pass

    @abstractmethod
    async def get(self, assignment_id: UUID) -> Optional[Assignment]:
        pass

    @abstractmethod
    async def get_open_for_student(self, student_user_id: UUID) -> Optional[Assignment]:
        pass

    @abstractmethod
    async def transition(
        self,
        assignment_id: UUID,
        expected_status: AssignmentStatus,
        changes: dict[str, Any],
    ) -> Optional[Assignment]:
        """
        Apply changes if the assignment is still in expected_status.

        Returns:
            The updated assignment, or None when the assignment is
            missing or its status differs
        """
        pass

    @abstractmethod
    async def raise_priority(
        self,
        assignment_id: UUID,
        priority: AssignmentPriority,
    ) -> Optional[Assignment]:
        """
        Raise the priority of an open assignment.

        Lower or equal priorities leave it unchanged.

        Returns:
            The current assignment, or None if it is no longer open
        """
        pass

    @abstractmethod
    async def query(
        self,
        *,
        assignee_user_id: Optional[UUID] = None,
        student_user_id: Optional[UUID] = None,
        status: Optional[AssignmentStatus] = None,
        institution_id: Optional[UUID] = None,
    ) -> list[Assignment]:
        """Assignments matching every given filter, newest first."""
        pass


class ResponseLogStore(ABC):
    """Append-only response audit log."""

    @abstractmethod
    async def append(self, entry: ResponseLogEntry) -> ResponseLogEntry:
        pass

    @abstractmethod
    async def query(
        self,
        *,
        student_user_id: Optional[UUID] = None,
        assignment_id: Optional[UUID] = None,
        institution_id: Optional[UUID] = None,
    ) -> list[ResponseLogEntry]:
        """Entries matching every given filter, oldest first."""
        pass


class SignalRecordStore(ABC):
    """Append-only audit of flagged messages."""

    @abstractmethod
    async def append(self, record: CrisisSignalRecord) -> CrisisSignalRecord:
        pass

    @abstractmethod
    async def list_unreviewed(
        self,
        institution_id: Optional[UUID] = None,
        limit: int = 100,
    ) -> list[CrisisSignalRecord]:
        """Unreviewed records, newest first."""
        pass

    @abstractmethod
    async def mark_reviewed(
        self,
        record_id: UUID,
        reviewer_id: UUID,
        reviewed_at: datetime,
    ) -> CrisisSignalRecord:
        """
        Raises:
            SignalRecordNotFound: Unknown record id
        """
        pass
