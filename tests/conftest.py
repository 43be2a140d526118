import pytest
from datetime import datetime, timedelta

from lira import Board


class FakeClock:
    """Deterministic clock for issue creation times."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 1, 1, 9, 0, 0))


@pytest.fixture
def board(clock):
    return Board(clock=clock)


@pytest.fixture
def tree(board):
    """Epic → Feature → Task, plus a Task directly under the Epic."""
    epic = board.add_issue("Checkout", "epic")
    feature = board.add_issue("Payment form", "feature")
    task = board.add_issue("Validate card number", "task")
    loose_task = board.add_issue("Write release notes", "task")
    board.set_parent_issue(feature, epic)
    board.set_parent_issue(task, feature)
    board.set_parent_issue(loose_task, epic)
    return {"epic": epic, "feature": feature, "task": task, "loose_task": loose_task}
