"""Planning and execution of folder-lifting operations."""

from .executor import PlanExecutor, execute
from .models import (
    DeleteRange,
    DestinationMode,
    ExecutionReport,
    MoveOperation,
    OperationEvent,
    OperationFailure,
    OperationMode,
    PlanWarning,
    PreviewPlan,
)
from .planner import PlanBuilder, build_plan

__all__ = [
    "DeleteRange",
    "DestinationMode",
    "ExecutionReport",
    "MoveOperation",
    "OperationEvent",
    "OperationFailure",
    "OperationMode",
    "PlanBuilder",
    "PlanExecutor",
    "PlanWarning",
    "PreviewPlan",
    "build_plan",
    "execute",
]
