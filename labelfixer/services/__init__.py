"""
Service layer for labelfixer.

Contains logic that orchestrates domain objects and infrastructure:
- SnapshotService: Load or fetch the issue snapshot
- PlanService: Replay timelines and match rules into a plan
- MutationService: Apply a plan through a label sink

Services are the primary API for commands to use.
"""

from .snapshot_service import SnapshotService
from .plan_service import PlanService
from .mutation_service import MutationService, LabelSink

__all__ = [
    'SnapshotService',
    'PlanService',
    'MutationService',
    'LabelSink',
]
