"""
In-Memory Stores

Single-process implementations of the store interfaces. Each store
serialises its mutations with an asyncio.Lock, which makes the
compare-and-set and uniqueness checks atomic within one event loop.

Used by the test suite and by deployments with
UNMUTE_STORE_BACKEND=memory. Nothing survives a restart.
"""

import asyncio
from dataclasses import replace
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from unmute.domain.enums.risk_stage import RiskLevel
from unmute.domain.enums.workflow import AssignmentPriority, AssignmentStatus
from unmute.domain.exceptions import (
    ConcurrentUpdateConflict,
    DuplicateActiveAssignment,
    SignalRecordNotFound,
)
from unmute.domain.models.assignment import Assignment
from unmute.domain.models.crisis_signal import CrisisSignalRecord
from unmute.domain.models.response_log import ResponseLogEntry
from unmute.domain.models.risk_profile import RiskProfile
from unmute.infrastructure.stores.base import (
    AssignmentStore,
    ResponseLogStore,
    RiskProfileStore,
    SignalRecordStore,
)


def _matches_institution(institution_id: Optional[UUID], candidate: Optional[UUID]) -> bool:
    return institution_id is None or candidate == institution_id


class InMemoryRiskProfileStore(RiskProfileStore):
    def __init__(self) -> None:
        self._profiles: dict[UUID, RiskProfile] = {}
        self._lock = asyncio.Lock()

    async def get(self, user_id: UUID) -> Optional[RiskProfile]:
        return self._profiles.get(user_id)

    async def compare_and_set(
        self,
        profile: RiskProfile,
        expected_version: int,
    ) -> RiskProfile:
        async with self._lock:
            current = self._profiles.get(profile.user_id)
            current_version = current.version if current else 0
            if current_version != expected_version:
                raise ConcurrentUpdateConflict(profile.user_id, expected_version)

            stored = replace(profile, version=expected_version + 1)
            if current is not None:
                stored = replace(stored, created_at=current.created_at)
            self._profiles[profile.user_id] = stored
            return stored

    async def snapshot(self, institution_id: Optional[UUID] = None) -> list[RiskProfile]:
        # Profiles are immutable; copying the dict is a consistent snapshot
        async with self._lock:
            profiles = list(self._profiles.values())
        return [p for p in profiles if _matches_institution(institution_id, p.institution_id)]

    async def list_by_risk_level(
        self,
        risk_level: RiskLevel,
        institution_id: Optional[UUID] = None,
    ) -> list[RiskProfile]:
        profiles = await self.snapshot(institution_id)
        return [p for p in profiles if p.risk_level == risk_level]


class InMemoryAssignmentStore(AssignmentStore):
    def __init__(self) -> None:
        self._assignments: dict[UUID, Assignment] = {}
        self._lock = asyncio.Lock()

    async def insert(self, assignment: Assignment) -> Assignment:
        async with self._lock:
            existing = self._find_open(assignment.student_user_id)
            if existing is not None:
                raise DuplicateActiveAssignment(assignment.student_user_id, existing.id)
            self._assignments[assignment.id] = assignment
            return assignment

    async def get(self, assignment_id: UUID) -> Optional[Assignment]:
        return self._assignments.get(assignment_id)

    async def get_open_for_student(self, student_user_id: UUID) -> Optional[Assignment]:
        return self._find_open(student_user_id)

    async def transition(
        self,
        assignment_id: UUID,
        expected_status: AssignmentStatus,
        changes: dict[str, Any],
    ) -> Optional[Assignment]:
        async with self._lock:
            current = self._assignments.get(assignment_id)
            if current is None or current.status != expected_status:
                return None
            updated = current.evolve(**changes)
            self._assignments[assignment_id] = updated
            return updated

    async def raise_priority(
        self,
        assignment_id: UUID,
        priority: AssignmentPriority,
    ) -> Optional[Assignment]:
        async with self._lock:
            current = self._assignments.get(assignment_id)
            if current is None or not current.is_open:
                return None
            if priority.rank <= current.priority.rank:
                return current
            updated = current.evolve(priority=priority)
            self._assignments[assignment_id] = updated
            return updated

    async def query(
        self,
        *,
        assignee_user_id: Optional[UUID] = None,
        student_user_id: Optional[UUID] = None,
        status: Optional[AssignmentStatus] = None,
        institution_id: Optional[UUID] = None,
    ) -> list[Assignment]:
        results = [
            a for a in self._assignments.values()
            if (assignee_user_id is None or a.assignee_user_id == assignee_user_id)
            and (student_user_id is None or a.student_user_id == student_user_id)
            and (status is None or a.status == status)
            and _matches_institution(institution_id, a.institution_id)
        ]
        return sorted(results, key=lambda a: a.assigned_at, reverse=True)

    def _find_open(self, student_user_id: UUID) -> Optional[Assignment]:
        for assignment in self._assignments.values():
            if assignment.student_user_id == student_user_id and assignment.is_open:
                return assignment
        return None


class InMemoryResponseLogStore(ResponseLogStore):
    def __init__(self) -> None:
        self._entries: list[ResponseLogEntry] = []

    async def append(self, entry: ResponseLogEntry) -> ResponseLogEntry:
        self._entries.append(entry)
        return entry

    async def query(
        self,
        *,
        student_user_id: Optional[UUID] = None,
        assignment_id: Optional[UUID] = None,
        institution_id: Optional[UUID] = None,
    ) -> list[ResponseLogEntry]:
        return [
            e for e in self._entries
            if (student_user_id is None or e.student_user_id == student_user_id)
            and (assignment_id is None or e.assignment_id == assignment_id)
            and _matches_institution(institution_id, e.institution_id)
        ]


class InMemorySignalRecordStore(SignalRecordStore):
    def __init__(self) -> None:
        self._records: dict[UUID, CrisisSignalRecord] = {}
        self._lock = asyncio.Lock()

    async def append(self, record: CrisisSignalRecord) -> CrisisSignalRecord:
        async with self._lock:
            self._records[record.id] = record
        return record

    async def list_unreviewed(
        self,
        institution_id: Optional[UUID] = None,
        limit: int = 100,
    ) -> list[CrisisSignalRecord]:
        records = [
            r for r in self._records.values()
            if not r.is_reviewed and _matches_institution(institution_id, r.institution_id)
        ]
        records.sort(key=lambda r: r.created_at, reverse=True)
        return records[:limit]

    async def mark_reviewed(
        self,
        record_id: UUID,
        reviewer_id: UUID,
        reviewed_at: datetime,
    ) -> CrisisSignalRecord:
        async with self._lock:
            record = self._records.get(record_id)
            if record is None:
                raise SignalRecordNotFound(record_id)
            updated = replace(
                record,
                is_reviewed=True,
                reviewed_by=reviewer_id,
                reviewed_at=reviewed_at,
            )
            self._records[record_id] = updated
            return updated
