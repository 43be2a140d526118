"""
Board - aggregate root owning every user, issue and assignment.

All mutation and querying enters through a Board. It looks up issues and
users by id, hands single-issue rules to the Issue model, and applies the
effects that span several records: parent/child symmetry, assignment
bookkeeping and filtered queries.
"""

from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Union
from uuid import UUID, uuid4

from .errors import AssignmentNotFoundError, InvalidRangeError, LiraError, NotFoundError
from .hierarchy import IssueState, IssueType, can_parent, check_no_cycle, check_parent
from .logs import get_logger
from .models import Assignment, BoardSnapshot, Issue, User

log = get_logger("board")


def _is_aware(value: datetime) -> bool:
    return value.tzinfo is not None and value.utcoffset() is not None


class Board:
    """In-memory project board. Independent instances share no state."""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self.clock = clock or datetime.now
        self._users: Dict[UUID, User] = {}
        self._issues: Dict[UUID, Issue] = {}
        self._assignments: List[Assignment] = []

    def __len__(self) -> int:
        return len(self._issues)

    def __contains__(self, identifier) -> bool:
        return identifier in self._issues or identifier in self._users

    def __repr__(self) -> str:
        return (f"<Board issues={len(self._issues)} users={len(self._users)} "
                f"assignments={len(self._assignments)}>")

    # --- Issues ---

    def add_issue(self, title: str, type: Union[IssueType, str]) -> UUID:
        """Create a new TODO issue and return its id."""
        issue = Issue(id=uuid4(), title=title, type=IssueType(type), created_at=self.clock())
        self._issues[issue.id] = issue
        log.debug(f"Added {issue.type.value} {issue.id} '{title}'")
        return issue.id

    def get_issue(self, issue_id: UUID) -> Issue:
        try:
            return self._issues[issue_id]
        except KeyError:
            raise NotFoundError("issue", issue_id) from None

    def remove_issue(self, issue_id: UUID) -> None:
        """
        Remove an issue from the board forever.

        Its children take its parent as their parent. If the removed issue had
        no parent, or a child cannot legally sit under that parent, the child
        is left without a parent. Assignments on the issue are dropped too.

        With the type table in lira.hierarchy every child can move up, so the
        parentless fallback only applies if that table is changed.
        """
        issue = self.get_issue(issue_id)
        grandparent = self._issues.get(issue.parent_id) if issue.parent_id else None

        for child_id in list(issue.child_ids):
            child = self._issues[child_id]
            child.set_parent(None)
            if grandparent is None:
                continue
            if can_parent(child.type, grandparent.type):
                child.set_parent(grandparent)
            else:
                log.warning(f"Cannot move {child.type.value} {child.id} under "
                            f"{grandparent.type.value} {grandparent.id}; leaving it without a parent")

        if grandparent is not None:
            grandparent.remove_child(issue_id)

        before = len(self._assignments)
        self._assignments = [a for a in self._assignments if a.issue_id != issue_id]
        del self._issues[issue_id]
        log.debug(f"Removed issue {issue_id}, re-parented {len(issue.child_ids)} children, "
                  f"dropped {before - len(self._assignments)} assignments")

    def set_issue_state(self, issue_id: UUID, state: Union[IssueState, str]) -> None:
        """
        Set the state of an issue.

        Setting DONE fails with HierarchyNotReadyError if the issue has
        children or grandchildren that are not done.
        """
        issue = self.get_issue(issue_id)
        try:
            issue.set_state(IssueState(state), self._issues)
        except LiraError as e:
            log.info(f"Rejected state change of {issue_id}: {e}")
            raise
        log.debug(f"Issue {issue_id} is now {issue.state.value}")

    def set_parent_issue(self, issue_id: UUID, parent_issue_id: Optional[UUID]) -> None:
        """
        Set or clear the parent of an issue.

        - An Epic can have no parent.
        - A Feature can have an Epic as a parent.
        - A Task can have an Epic or a Feature as a parent.

        If a rule is broken InvalidHierarchyError is raised and nothing
        changes. A None parent detaches the issue from its current parent.
        """
        issue = self.get_issue(issue_id)
        parent = self.get_issue(parent_issue_id) if parent_issue_id is not None else None
        previous = self._issues.get(issue.parent_id) if issue.parent_id else None

        try:
            if parent is not None and parent.id != issue.parent_id:
                check_parent(issue, parent)
                check_no_cycle(issue, parent, self._issues.get)
            changed = issue.set_parent(parent)
        except LiraError as e:
            log.info(f"Rejected parent change of {issue_id}: {e}")
            raise

        if changed and previous is not None:
            previous.remove_child(issue_id)
            log.debug(f"Detached issue {issue_id} from {previous.id}")
        if changed and parent is not None:
            log.debug(f"Attached issue {issue_id} under {parent.id}")

    def get_parent(self, issue_id: UUID) -> Optional[Issue]:
        issue = self.get_issue(issue_id)
        return self._issues.get(issue.parent_id) if issue.parent_id else None

    def get_children(self, issue_id: UUID) -> List[Issue]:
        issue = self.get_issue(issue_id)
        return [self._issues[child_id] for child_id in issue.child_ids]

    def get_issues(self,
                   state: Optional[Union[IssueState, str]] = None,
                   user_id: Optional[UUID] = None,
                   issue_types: Optional[Iterable[Union[IssueType, str]]] = None,
                   start_date: Optional[datetime] = None,
                   end_date: Optional[datetime] = None) -> List[Issue]:
        """
        Retrieve issues, optionally filtered. Every given filter must match.

        Args:
            state: Only issues in this state.
            user_id: Only issues this user is assigned to.
            issue_types: Only issues of one of these types. A single type is
                accepted as well.
            start_date: Created at or after this time (inclusive).
            end_date: Created before this time (exclusive).

        Returns:
            Matching issues in creation order.

        Raises:
            InvalidRangeError: If start_date is after end_date, or the bounds
                mix timezone-aware and naive datetimes with each other or
                with the creation times on the board.
        """
        if start_date is not None or end_date is not None:
            self._check_comparable(start_date, end_date)
        if start_date is not None and end_date is not None and start_date > end_date:
            raise InvalidRangeError(start_date, end_date)

        if isinstance(issue_types, (str, IssueType)):
            issue_types = [issue_types]
        state = IssueState(state) if state is not None else None
        types = {IssueType(t) for t in issue_types} if issue_types is not None else None
        assigned = None
        if user_id is not None:
            assigned = {a.issue_id for a in self._assignments if a.user_id == user_id}

        return [
            issue for issue in self._issues.values()
            if (state is None or issue.state == state)
            and (assigned is None or issue.id in assigned)
            and (types is None or issue.type in types)
            and (start_date is None or issue.created_at >= start_date)
            and (end_date is None or issue.created_at < end_date)
        ]

    def _check_comparable(self, start_date, end_date) -> None:
        bounds = [d for d in (start_date, end_date) if d is not None]
        kinds = {_is_aware(d) for d in bounds}
        kinds.update(_is_aware(issue.created_at) for issue in self._issues.values())
        if len(kinds) > 1:
            raise InvalidRangeError(start_date, end_date,
                                    "cannot mix timezone-aware and naive datetimes")

    # --- Users ---

    def add_user(self, name: str) -> UUID:
        """Create a new user and return the id identifying them."""
        user = User(id=uuid4(), name=name)
        self._users[user.id] = user
        log.debug(f"Added user {user.id} '{name}'")
        return user.id

    def get_user(self, user_id: UUID) -> User:
        try:
            return self._users[user_id]
        except KeyError:
            raise NotFoundError("user", user_id) from None

    def get_users(self) -> List[User]:
        return list(self._users.values())

    def remove_user(self, user_id: UUID) -> None:
        """Remove a user and unassign them from every issue."""
        self.get_user(user_id)
        del self._users[user_id]
        self._assignments = [a for a in self._assignments if a.user_id != user_id]
        log.debug(f"Removed user {user_id}")

    # --- Assignments ---

    def assign_user(self, user_id: Optional[UUID], issue_id: UUID) -> None:
        """
        Assign a user to an issue.

        Assigning the same pair twice does nothing. A None user clears every
        assignment on the issue and fails with AssignmentNotFoundError if
        there were none.
        """
        self.get_issue(issue_id)

        if user_id is None:
            remaining = [a for a in self._assignments if a.issue_id != issue_id]
            if len(remaining) == len(self._assignments):
                log.info(f"No assignments to clear on issue {issue_id}")
                raise AssignmentNotFoundError(issue_id)
            log.debug(f"Cleared {len(self._assignments) - len(remaining)} assignments on {issue_id}")
            self._assignments = remaining
            return

        self.get_user(user_id)
        assignment = Assignment(user_id=user_id, issue_id=issue_id)
        if assignment in self._assignments:
            return
        self._assignments.append(assignment)
        log.debug(f"Assigned user {user_id} to issue {issue_id}")

    def get_assignments(self) -> List[Assignment]:
        return list(self._assignments)

    def get_assignees(self, issue_id: UUID) -> List[User]:
        self.get_issue(issue_id)
        return [self._users[a.user_id] for a in self._assignments if a.issue_id == issue_id]

    def snapshot(self) -> BoardSnapshot:
        """Deep copy of the board contents."""
        return BoardSnapshot(
            users=[u.model_copy(deep=True) for u in self._users.values()],
            issues=[i.model_copy(deep=True) for i in self._issues.values()],
            assignments=list(self._assignments),
        )
