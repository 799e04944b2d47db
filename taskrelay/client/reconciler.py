"""Reducer over every kind of change the client task list can receive.

The list is never mutated in place: ``reduce`` returns a new list. Every
update is keyed by task id, so replaying a server confirmation or a push
event yields the same list again.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

from taskrelay.client.models import ClientTask
from taskrelay.models.task import utcnow


@dataclass(frozen=True)
class OptimisticCreate:
    task: ClientTask


@dataclass(frozen=True)
class OptimisticUpdate:
    task_id: str
    changes: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class OptimisticDelete:
    task_id: str


@dataclass(frozen=True)
class ServerConfirmed:
    """Authoritative row for a local mutation; ``match_id`` is the temp id for creates."""

    match_id: str
    task: ClientTask


@dataclass(frozen=True)
class RollbackCreate:
    temp_id: str


@dataclass(frozen=True)
class RollbackUpdate:
    previous: ClientTask


@dataclass(frozen=True)
class RollbackDelete:
    previous: List[ClientTask]


@dataclass(frozen=True)
class PushEvent:
    event_type: str  # insert, update or delete
    task: ClientTask


@dataclass(frozen=True)
class Replace:
    """Wholesale replacement, e.g. an enhancement result."""

    task: ClientTask


TaskListUpdate = Union[
    OptimisticCreate,
    OptimisticUpdate,
    OptimisticDelete,
    ServerConfirmed,
    RollbackCreate,
    RollbackUpdate,
    RollbackDelete,
    PushEvent,
    Replace,
]


def _contains(tasks: List[ClientTask], task_id: str) -> bool:
    return any(t.id == task_id for t in tasks)


def _replace(tasks: List[ClientTask], task_id: str, new: ClientTask) -> List[ClientTask]:
    return [new if t.id == task_id else t for t in tasks]


def _without(tasks: List[ClientTask], task_id: str) -> List[ClientTask]:
    return [t for t in tasks if t.id != task_id]


def _confirm(tasks: List[ClientTask], match_id: str, confirmed: ClientTask) -> List[ClientTask]:
    if match_id != confirmed.id and _contains(tasks, match_id):
        # A push may already have inserted the real row; keep one copy, in the
        # placeholder's position.
        tasks = [t for t in tasks if t.id != confirmed.id]
        return _replace(tasks, match_id, confirmed)
    return _replace(tasks, confirmed.id, confirmed)


def reduce(tasks: List[ClientTask], update: TaskListUpdate) -> List[ClientTask]:
    """Apply one update and return the resulting list."""
    if isinstance(update, OptimisticCreate):
        return [update.task] + _without(tasks, update.task.id)

    if isinstance(update, OptimisticUpdate):
        changes = dict(update.changes, updated_at=utcnow())
        return [t.model_copy(update=changes) if t.id == update.task_id else t for t in tasks]

    if isinstance(update, OptimisticDelete):
        return _without(tasks, update.task_id)

    if isinstance(update, ServerConfirmed):
        return _confirm(tasks, update.match_id, update.task)

    if isinstance(update, RollbackCreate):
        return _without(tasks, update.temp_id)

    if isinstance(update, RollbackUpdate):
        return _replace(tasks, update.previous.id, update.previous)

    if isinstance(update, RollbackDelete):
        return list(update.previous)

    if isinstance(update, PushEvent):
        if update.event_type == "insert":
            if _contains(tasks, update.task.id):
                return tasks
            return [update.task] + tasks
        if update.event_type == "update":
            return _replace(tasks, update.task.id, update.task)
        if update.event_type == "delete":
            return _without(tasks, update.task.id)
        raise ValueError(f"Unknown change event type: {update.event_type}")

    if isinstance(update, Replace):
        return _replace(tasks, update.task.id, update.task)

    raise TypeError(f"Unsupported task list update: {type(update).__name__}")
