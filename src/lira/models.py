from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Iterable, List, Mapping, Optional
from uuid import UUID, uuid4
import yaml

from .errors import HierarchyNotReadyError
from .hierarchy import IssueState, IssueType, check_parent
from .version import VERSION


class BaseYAMLModel(BaseModel):
    """Pydantic model that can be rendered to and read from YAML."""

    def to_yaml(self) -> str:
        return yaml.safe_dump(
            self.model_dump(mode="json"),
            default_flow_style=False,
            sort_keys=False,
            indent=2,
            allow_unicode=True,
        )

    @classmethod
    def from_yaml(cls, text: str):
        return cls.model_validate(yaml.safe_load(text) or {})


class User(BaseYAMLModel):
    """A named identity that issues can be assigned to."""

    id: UUID = Field(default_factory=uuid4, description="Unique identifier of the user")
    name: str = Field(description="Display name of the user")


class Assignment(BaseModel):
    """Pairing of a user with an issue they are assigned to."""

    model_config = ConfigDict(frozen=True)

    user_id: UUID = Field(description="The assigned user")
    issue_id: UUID = Field(description="The issue the user is assigned to")


class Issue(BaseYAMLModel):
    """
    A node in the Epic → Feature → Task hierarchy.

    Parent and children are stored as identifiers into the owning board's
    registry. An issue never owns its parent or its children.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: UUID = Field(default_factory=uuid4, description="Unique identifier of the issue")
    title: str = Field(description="Human readable title of the issue")
    type: IssueType = Field(frozen=True, description="Epic, feature or task; fixed at creation")
    state: IssueState = Field(
        default=IssueState.TODO, frozen=True,
        description="Current state of the issue; changed only through set_state"
    )
    created_at: datetime = Field(default_factory=datetime.now, description="When the issue was created")
    parent_id: Optional[UUID] = Field(
        default=None, frozen=True,
        description="The parent issue, if any; changed only through set_parent"
    )
    child_ids: List[UUID] = Field(
        default_factory=list,
        description="Issues that name this issue as their parent, in attach order"
    )

    def _write(self, name: str, value) -> None:
        # frozen fields reject attribute assignment, rules are checked by the callers
        self.__dict__[name] = value

    def _children(self, lookup: Mapping[UUID, "Issue"]) -> Iterable["Issue"]:
        return (lookup[child_id] for child_id in self.child_ids if child_id in lookup)

    def unfinished_descendants(self, lookup: Mapping[UUID, "Issue"]) -> List[UUID]:
        """Ids of children and grandchildren that are not done."""
        blocking = []
        for child in self._children(lookup):
            if child.state != IssueState.DONE:
                blocking.append(child.id)
            for grandchild in child._children(lookup):
                if grandchild.state != IssueState.DONE:
                    blocking.append(grandchild.id)
        return blocking

    def is_hierarchy_ready(self, lookup: Mapping[UUID, "Issue"]) -> bool:
        """True when every child and grandchild is done."""
        return not self.unfinished_descendants(lookup)

    def set_state(self, state: IssueState, lookup: Mapping[UUID, "Issue"]) -> None:
        """
        Transition to ``state``.

        Moving to DONE requires every child and grandchild to be done. Any
        other transition, including leaving DONE, always succeeds.

        Raises:
            HierarchyNotReadyError: If ``state`` is DONE and the hierarchy
                below this issue is not finished.
        """
        state = IssueState(state)
        if state == IssueState.DONE:
            blocking = self.unfinished_descendants(lookup)
            if blocking:
                raise HierarchyNotReadyError(self.id, blocking)
        self._write("state", state)

    def set_parent(self, parent: Optional["Issue"]) -> bool:
        """
        Attach this issue under ``parent``, or detach it when ``parent`` is None.

        Only the link between this issue and ``parent`` is recorded; removing
        this issue from a previous parent's children is up to the caller.

        Returns:
            False if ``parent`` already was the parent, True otherwise.

        Raises:
            InvalidHierarchyError: If the type pairing is not allowed. No
                field of either issue is touched in that case.
        """
        if parent is None:
            if self.parent_id is None:
                return False
            self._write("parent_id", None)
            return True

        if self.parent_id == parent.id:
            return False

        check_parent(self, parent)
        self._write("parent_id", parent.id)
        parent.add_child(self.id)
        return True

    def add_child(self, issue_id: UUID) -> None:
        if issue_id not in self.child_ids:
            self.child_ids.append(issue_id)

    def remove_child(self, issue_id: UUID) -> None:
        if issue_id in self.child_ids:
            self.child_ids.remove(issue_id)


class BoardSnapshot(BaseYAMLModel):
    """Read-only copy of everything a board holds, for inspection and display."""

    version: str = Field(default=VERSION, description="lira version that produced the snapshot")
    taken_at: datetime = Field(default_factory=datetime.now, description="When the snapshot was taken")
    users: List[User] = Field(default_factory=list, description="Registered users")
    issues: List[Issue] = Field(default_factory=list, description="Registered issues in creation order")
    assignments: List[Assignment] = Field(default_factory=list, description="User to issue assignments")
