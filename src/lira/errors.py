from typing import Iterable, Optional
from uuid import UUID


class LiraError(Exception):
    """Base exception for all board errors."""
    pass


class NotFoundError(LiraError, KeyError):
    """Lookup of an unknown user or issue identifier."""

    def __init__(self, kind: str, identifier):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"No {kind} with id {identifier}")

    def __str__(self) -> str:
        # KeyError quotes its argument, keep the plain message
        return self.args[0]


class InvalidHierarchyError(LiraError, ValueError):
    """Parent/child type pairing violation. Nothing was changed."""

    def __init__(self, rule: str):
        self.rule = rule
        super().__init__(rule)


class HierarchyNotReadyError(LiraError):
    """An issue cannot be marked done while children or grandchildren are unfinished."""

    def __init__(self, issue_id: UUID, blocking_ids: Iterable[UUID] = ()):
        self.issue_id = issue_id
        self.blocking_ids = list(blocking_ids)
        super().__init__(
            f"Cannot set issue {issue_id} to done when children/grandchildren aren't done "
            f"({len(self.blocking_ids)} unfinished)"
        )


class InvalidRangeError(LiraError, ValueError):
    """A query time interval that is reversed or cannot be compared."""

    def __init__(self, start, end, reason: Optional[str] = None):
        self.start = start
        self.end = end
        self.reason = reason or f"{start} > {end}"
        super().__init__(f"Invalid time interval for issue filtering: {self.reason}")


class AssignmentNotFoundError(LiraError):
    """Trying to clear assignments from an issue that has none."""

    def __init__(self, issue_id: UUID):
        self.issue_id = issue_id
        super().__init__(f"Issue {issue_id} doesn't have any assignments to remove")


class ScriptError(LiraError):
    """A replay script is malformed or did not behave as it expected."""

    def __init__(self, message: str, step: Optional[int] = None):
        self.step = step
        if step is not None:
            message = f"step {step}: {message}"
        super().__init__(message)
