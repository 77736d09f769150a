from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Iterator

from studycal.services.records import field_of


@dataclass(frozen=True, order=True)
class BacklogTask:
    # Only (priority, sequence) take part in ordering
    priority: int
    sequence: int
    id: int = field(compare=False)
    subject_id: int = field(compare=False)
    title: str = field(compare=False)
    est_min: int = field(compare=False)
    tags: tuple[str, ...] = field(default=(), compare=False)


class TaskBacklog:
    """Immutable priority queue of pending tasks.

    Lower ``priority`` comes first; ties keep insertion order for the lifetime
    of the snapshot. ``reduce`` returns a new backlog instead of mutating, so a
    scheduling run never touches the caller's copy.
    """

    __slots__ = ("_tasks",)

    def __init__(self, tasks: Iterable[BacklogTask] = ()) -> None:
        self._tasks: tuple[BacklogTask, ...] = tuple(sorted(tasks))

    @classmethod
    def from_tasks(cls, tasks: Iterable[Any]) -> TaskBacklog:
        """Snapshot tasks (ORM rows, dicts or objects) in the given insertion order.

        Tasks without remaining minutes are left out.
        """
        items = []
        for sequence, task in enumerate(tasks):
            est_min = field_of(task, "est_min")
            if est_min is None or est_min <= 0:
                continue
            items.append(
                BacklogTask(
                    priority=field_of(task, "priority"),
                    sequence=sequence,
                    id=field_of(task, "id"),
                    subject_id=field_of(task, "subject_id"),
                    title=field_of(task, "title"),
                    est_min=est_min,
                    tags=tuple(field_of(task, "tags") or ()),
                )
            )
        return cls(items)

    def peek_highest_priority(self) -> BacklogTask | None:
        return self._tasks[0] if self._tasks else None

    def get(self, task_id: int) -> BacklogTask | None:
        return next((task for task in self._tasks if task.id == task_id), None)

    def reduce(self, task_id: int, minutes_consumed: int) -> TaskBacklog:
        """Return a backlog with ``minutes_consumed`` taken off the task.

        The task is dropped once nothing remains. Unknown ids leave the
        backlog unchanged.
        """
        remaining: list[BacklogTask] = []
        for task in self._tasks:
            if task.id == task_id:
                left = task.est_min - minutes_consumed
                if left > 0:
                    remaining.append(replace(task, est_min=left))
            else:
                remaining.append(task)
        return TaskBacklog(remaining)

    def is_empty(self) -> bool:
        return not self._tasks

    def __iter__(self) -> Iterator[BacklogTask]:
        return iter(self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    def __repr__(self) -> str:
        return f"TaskBacklog({list(self._tasks)!r})"
