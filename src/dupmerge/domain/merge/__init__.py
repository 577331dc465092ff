"""Duplicate detection and merge reconciliation.

Layered flow:
1) group records by normalised identity key and pick the oldest as destination
2) merge scalar, set and relation attributes per group
3) plan update/archive intents, skipping no-op updates
4) optionally sample a minimal subset of groups for test runs
5) execute intents with per-mutation failure isolation
6) report per group and export a backup of archived records
"""

from __future__ import annotations

from .engine import MergeEngine, MergeRun, SampleOptions, build_plan
from .execute import ExecutionResult, ExecutionStatus, execute_mutations
from .grouping import DuplicateGroup, GroupingResult, group_duplicates
from .plan import (
    ArchiveSource,
    MutationKind,
    MutationMeta,
    MutationPlan,
    SourceSnapshot,
    UpdateDestination,
    plan_mutations,
)
from .policy import FieldPolicy, MergePolicy, PolicyError
from .report import GroupReport, GroupStatus, MergeReport, ReportOutcome, build_report
from .resolve import MergeResult, merge_group
from .sample import SampleResult, sample_plan

__all__ = [
    "ArchiveSource",
    "DuplicateGroup",
    "ExecutionResult",
    "ExecutionStatus",
    "FieldPolicy",
    "GroupReport",
    "GroupStatus",
    "GroupingResult",
    "MergeEngine",
    "MergePolicy",
    "MergeReport",
    "MergeResult",
    "MergeRun",
    "MutationKind",
    "MutationMeta",
    "MutationPlan",
    "PolicyError",
    "ReportOutcome",
    "SampleOptions",
    "SampleResult",
    "SourceSnapshot",
    "UpdateDestination",
    "build_plan",
    "build_report",
    "execute_mutations",
    "group_duplicates",
    "merge_group",
    "plan_mutations",
    "sample_plan",
]
