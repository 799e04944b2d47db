"""Client-side view of the task list: optimistic mutations reconciled with
server responses and change-feed pushes."""
from taskrelay.client.api import TaskApiClient, TaskApiError
from taskrelay.client.models import ClientTask
from taskrelay.client.reconciler import (
    OptimisticCreate,
    OptimisticDelete,
    OptimisticUpdate,
    PushEvent,
    Replace,
    RollbackCreate,
    RollbackDelete,
    RollbackUpdate,
    ServerConfirmed,
    reduce,
)
from taskrelay.client.store import TaskListStore

__all__ = [
    "ClientTask",
    "OptimisticCreate",
    "OptimisticDelete",
    "OptimisticUpdate",
    "PushEvent",
    "Replace",
    "RollbackCreate",
    "RollbackDelete",
    "RollbackUpdate",
    "ServerConfirmed",
    "TaskApiClient",
    "TaskApiError",
    "TaskListStore",
    "reduce",
]
