# Recidiviz - a data platform for criminal justice reform
# Copyright (C) 2024 Recidiviz, Inc.
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.
# =============================================================================
"""Runs named tasks one at a time, in submission order, on a single background
thread."""

import logging
from queue import Empty, Queue
from threading import Condition, Lock, Thread
from typing import Any, Callable, List, Optional, Tuple


class TooManyTasksError(ValueError):
    pass


class SerialTaskQueue(Queue):
    """Queue whose tasks are all executed by one worker thread.

    Every task submitted through add_task() runs to completion before the next one
    starts, so state touched only from tasks is never observed half-updated by
    another task. If a task raises, the queue stops accepting work, drops anything
    still queued and re-raises the exception from join().

    If |max_tasks| is set, the queue terminates with a TooManyTasksError once more
    than that many tasks have run.
    """

    def __init__(self, name: str, max_tasks: Optional[int] = None):
        super().__init__()
        self.name = name
        self.max_tasks = max_tasks

        self.all_tasks_mutex = Lock()
        self.has_unfinished_tasks_condition = Condition(self.all_tasks_mutex)

        # Protected by all_tasks_mutex
        self.executed_task_count = 0
        self.running_task_name: Optional[str] = None
        self.terminating_exception: Optional[Exception] = None

        t = Thread(target=self.worker, name=f"{name}-worker")
        t.daemon = True
        t.start()

    def add_task(
        self, task_name: str, task: Callable, *args: Any, **kwargs: Any
    ) -> bool:
        """Enqueues |task|. Returns False if the queue has already terminated and
        the task was dropped."""
        with self.all_tasks_mutex:
            if self.terminating_exception:
                logging.warning(
                    "Queue [%s] has terminated, dropping task [%s]",
                    self.name,
                    task_name,
                )
                return False
            self.put_nowait((task_name, task, args, kwargs))
            self.has_unfinished_tasks_condition.notify()
            return True

    def get_queued_task_names(self) -> List[str]:
        """Returns the names of all queued tasks, oldest first. Does NOT include the
        task that is currently running."""
        with self.mutex:
            return [task_name for task_name, _task, _args, _kwargs in self.queue]

    def join(self) -> None:
        """Waits until all queued tasks are complete. Raises any exception that was
        raised on the worker thread."""
        super().join()
        with self.all_tasks_mutex:
            if self.terminating_exception:
                raise self.terminating_exception

    def worker(self) -> None:
        """Runs tasks until a task raises, waiting for new tasks when the queue is
        empty."""
        while True:
            task_name, task, args, kwargs = self._worker_pop_task()
            try:
                task(*args, **kwargs)
            except Exception as e:
                logging.exception(
                    "Task [%s] failed on queue [%s]", task_name, self.name
                )
                self._worker_handle_exception(e)
                self._worker_mark_task_done()
                return

            self._worker_mark_task_done()

            with self.all_tasks_mutex:
                too_many_tasks = (
                    self.max_tasks is not None
                    and self.executed_task_count > self.max_tasks
                )
            if too_many_tasks:
                self._worker_handle_exception(
                    TooManyTasksError(f"Ran too many tasks on queue [{self.name}]")
                )
                return

    def _worker_pop_task(self) -> Tuple:
        while True:
            with self.all_tasks_mutex:
                try:
                    task_name, task, args, kwargs = self.get_nowait()
                    self.running_task_name = task_name
                    return task_name, task, args, kwargs
                except Empty:
                    self.has_unfinished_tasks_condition.wait()

    def _worker_mark_task_done(self) -> None:
        with self.all_tasks_mutex:
            self.task_done()
            if not self.running_task_name:
                raise ValueError("Expected nonnull running_task_name, found None.")
            self.executed_task_count += 1
            self.running_task_name = None

    def _worker_handle_exception(self, e: Exception) -> None:
        """Clears the queue and records the terminating exception so that join()
        re-raises it."""
        with self.all_tasks_mutex:
            self.terminating_exception = e
            try:
                while True:
                    _ = self.get_nowait()
                    self.task_done()
            except Empty:
                pass
