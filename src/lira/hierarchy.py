"""
Issue types, states and the rules that govern which type may parent which.

The hierarchy is strictly type based: Epic → Feature → Task. Depth is not
tracked, a Task may sit directly under an Epic.
"""

from enum import Enum
from typing import Callable, Dict, Optional, Tuple
from uuid import UUID

from .errors import InvalidHierarchyError


class IssueType(Enum):
    EPIC = "epic"
    FEATURE = "feature"
    TASK = "task"


class IssueState(Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"


ALLOWED_PARENTS: Dict[IssueType, Tuple[IssueType, ...]] = {
    IssueType.EPIC: (),
    IssueType.FEATURE: (IssueType.EPIC,),
    IssueType.TASK: (IssueType.EPIC, IssueType.FEATURE),
}

RULES: Dict[IssueType, str] = {
    IssueType.EPIC: "Epics cannot have a parent",
    IssueType.FEATURE: "Features can only have Epics as parents",
    IssueType.TASK: "Tasks can only have Epics or Features as parents",
}


def can_parent(child_type: IssueType, parent_type: IssueType) -> bool:
    """Whether an issue of ``parent_type`` may be the parent of one of ``child_type``."""
    return parent_type in ALLOWED_PARENTS[child_type]


def check_parent(child, parent) -> None:
    """
    Validate a parent/child pairing.

    Args:
        child: The issue whose parent is being set.
        parent: The candidate parent issue.

    Raises:
        InvalidHierarchyError: If the pairing breaks the type table, or the
            issue is named as its own parent.
    """
    if child.type == IssueType.EPIC:
        raise InvalidHierarchyError(RULES[IssueType.EPIC])
    if parent.id == child.id:
        raise InvalidHierarchyError("An issue cannot be its own parent")
    if not can_parent(child.type, parent.type):
        raise InvalidHierarchyError(RULES[child.type])


def check_no_cycle(child, parent, lookup: Callable[[UUID], Optional[object]]) -> None:
    """Reject a pairing that would make ``child`` an ancestor of itself."""
    seen = set()
    current = parent
    while current is not None and current.id not in seen:
        if current.id == child.id:
            raise InvalidHierarchyError("Parent links cannot form a cycle")
        seen.add(current.id)
        current = lookup(current.parent_id) if current.parent_id is not None else None
