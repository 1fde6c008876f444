"""
Record stores package.
"""

from unmute.infrastructure.stores.base import (
    AssignmentStore,
    ResponseLogStore,
    RiskProfileStore,
    SignalRecordStore,
)
from unmute.infrastructure.stores.memory import (
    InMemoryAssignmentStore,
    InMemoryResponseLogStore,
    InMemoryRiskProfileStore,
    InMemorySignalRecordStore,
)
from unmute.infrastructure.stores.sql import (
    SqlAssignmentStore,
    SqlResponseLogStore,
    SqlRiskProfileStore,
    SqlSignalRecordStore,
)

__all__ = [
    "RiskProfileStore",
    "AssignmentStore",
    "ResponseLogStore",
    "SignalRecordStore",
    "InMemoryRiskProfileStore",
    "InMemoryAssignmentStore",
    "InMemoryResponseLogStore",
    "InMemorySignalRecordStore",
    "SqlRiskProfileStore",
    "SqlAssignmentStore",
    "SqlResponseLogStore",
    "SqlSignalRecordStore",
]
