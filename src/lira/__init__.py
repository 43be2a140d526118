"""
LIRA - an in-memory project board.

Users, issues organised in a type-based hierarchy (Epic → Feature → Task),
assignments of users to issues and filtered queries over issues.
"""

from .version import VERSION, SCRIPT_SCHEMA_VERSION
from .errors import (
    LiraError,
    NotFoundError,
    InvalidHierarchyError,
    HierarchyNotReadyError,
    InvalidRangeError,
    AssignmentNotFoundError,
    ScriptError,
)
from .hierarchy import IssueType, IssueState
from .models import User, Issue, Assignment, BoardSnapshot
from .board import Board
from .replay import run_script, load_script

__version__ = VERSION

__all__ = [
    "VERSION",
    "SCRIPT_SCHEMA_VERSION",
    "LiraError",
    "NotFoundError",
    "InvalidHierarchyError",
    "HierarchyNotReadyError",
    "InvalidRangeError",
    "AssignmentNotFoundError",
    "ScriptError",
    "IssueType",
    "IssueState",
    "User",
    "Issue",
    "Assignment",
    "BoardSnapshot",
    "Board",
    "run_script",
    "load_script",
]
