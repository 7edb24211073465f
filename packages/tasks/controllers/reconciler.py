"""
Task reconciliation loop.

Watches every Task in the cluster and re-evaluates each one on a fixed
cadence. Reconciliation is requeue-only: Task status is never written and
Job state is not inspected.
"""

import asyncio
import heapq
import itertools
import threading
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from kubernetes.client.rest import ApiException

from common.core.constants import (
    ERROR_REQUEUE_SECONDS,
    RECONCILE_REQUEUE_SECONDS,
    WatchEventType,
)
from common.core.telemetry import get_logger
from packages.tasks.models.domain.task import Task
from packages.tasks.repositories.task_repository import TaskEvent, TaskRepository

logger = get_logger(__name__)

ObjectKey = Tuple[str, str]

HTTP_STATUS_GONE = 410
WATCH_RESTART_DELAY_SECONDS = 1.0
WATCH_RETRY_DELAY_SECONDS = 5.0


@dataclass(frozen=True)
class Action:
    """What to do with an object after reconciling it."""

    requeue_after: Optional[float] = None

    @classmethod
    def requeue(cls, seconds: float) -> "Action":
        return cls(requeue_after=seconds)

    @classmethod
    def await_change(cls) -> "Action":
        return cls(requeue_after=None)


Reconciler = Callable[[Task], Awaitable[Action]]
ErrorPolicy = Callable[[Task, Exception], Action]


async def reconcile_task(task: Task) -> Action:
    logger.info(f"Reconciling task: {task.name}")
    return Action.requeue(RECONCILE_REQUEUE_SECONDS)


def error_policy(task: Task, error: Exception) -> Action:
    logger.error(f"Reconciliation error for task {task.name}: {error!r}")
    return Action.requeue(ERROR_REQUEUE_SECONDS)


def object_key(task: Task) -> ObjectKey:
    return task.namespace, task.name


class DelayQueue:
    """Keyed delay queue holding at most one pending entry per key.

    Scheduling a key that is already pending replaces its due time.
    """

    def __init__(self):
        self._heap: List[Tuple[float, int, ObjectKey]] = []
        self._pending: Dict[ObjectKey, int] = {}
        self._counter = itertools.count()

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, key: ObjectKey) -> bool:
        return key in self._pending

    def schedule(self, key: ObjectKey, due: float) -> None:
        seq = next(self._counter)
        self._pending[key] = seq
        heapq.heappush(self._heap, (due, seq, key))

    def remove(self, key: ObjectKey) -> None:
        self._pending.pop(key, None)

    def _drop_stale(self) -> None:
        while self._heap:
            _, seq, key = self._heap[0]
            if self._pending.get(key) == seq:
                return
            heapq.heappop(self._heap)

    def next_due(self) -> Optional[float]:
        self._drop_stale()
        return self._heap[0][0] if self._heap else None

    def pop_due(self, now: float) -> List[ObjectKey]:
        """Remove and return every key due at or before ``now``, earliest first."""
        due = []
        while True:
            self._drop_stale()
            if not self._heap or self._heap[0][0] > now:
                return due
            _, _, key = heapq.heappop(self._heap)
            del self._pending[key]
            due.append(key)


class TaskController:
    """Watch-driven controller for Task objects.

    Watch events are consumed on a daemon thread (the Kubernetes client is
    blocking) and applied on the event loop. A worker coroutine reconciles
    keys as they become due.
    """

    def __init__(
        self,
        repository: TaskRepository,
        reconciler: Reconciler = reconcile_task,
        on_error: ErrorPolicy = error_policy,
        clock: Callable[[], float] = time.monotonic,
        watch_timeout_seconds: Optional[int] = None,
        watch_retry_seconds: float = WATCH_RETRY_DELAY_SECONDS,
    ):
        self.repository = repository
        self.reconciler = reconciler
        self.on_error = on_error
        self.clock = clock
        self.watch_timeout_seconds = watch_timeout_seconds
        self.watch_retry_seconds = watch_retry_seconds

        self.cache: Dict[ObjectKey, Task] = {}
        self.queue = DelayQueue()
        self.running = False
        self._wakeup: Optional[asyncio.Event] = None

    def _notify(self) -> None:
        if self._wakeup is not None:
            self._wakeup.set()

    def apply_event(self, event: TaskEvent) -> None:
        """Update the cache from a watch event and schedule the object."""
        key = object_key(event.task)
        if event.type == WatchEventType.DELETED:
            self.cache.pop(key, None)
            self.queue.remove(key)
            logger.debug(f"Task deleted: {key[0]}/{key[1]}")
        else:
            self.cache[key] = event.task
            self.queue.schedule(key, self.clock())
        self._notify()

    def replace_all(self, tasks: List[Task]) -> None:
        """Replace the cache with a fresh list and schedule every object."""
        listed = {object_key(task): task for task in tasks}
        for key in set(self.cache) - set(listed):
            self.queue.remove(key)
        self.cache = listed
        now = self.clock()
        for key in listed:
            self.queue.schedule(key, now)
        self._notify()

    async def reconcile_key(self, key: ObjectKey) -> Optional[Action]:
        """Reconcile one cached object and schedule its requeue."""
        task = self.cache.get(key)
        if task is None:
            return None

        try:
            action = await self.reconciler(task)
        except Exception as e:
            action = self.on_error(task, e)

        # A watch event during reconciliation already rescheduled the key sooner
        if (
            action.requeue_after is not None
            and key in self.cache
            and key not in self.queue
        ):
            self.queue.schedule(key, self.clock() + action.requeue_after)
        return action

    async def process_due(self) -> int:
        """Reconcile every due key concurrently; returns how many ran."""
        due = self.queue.pop_due(self.clock())
        if due:
            await asyncio.gather(*(self.reconcile_key(key) for key in due))
        return len(due)

    async def _relist(self) -> Optional[str]:
        tasks, resource_version = await asyncio.to_thread(
            self.repository.list_with_version
        )
        logger.info(f"Listed {len(tasks)} tasks at resourceVersion {resource_version}")
        self.replace_all(tasks)
        return resource_version

    def _consume_watch(
        self, loop: asyncio.AbstractEventLoop, resource_version: Optional[str]
    ) -> Optional[str]:
        """Blocking: forward watch events to the loop until the stream ends."""
        for event in self.repository.watch(
            resource_version=resource_version,
            timeout_seconds=self.watch_timeout_seconds,
        ):
            if not self.running:
                break
            resource_version = event.task.resource_version or resource_version
            loop.call_soon_threadsafe(self.apply_event, event)
        return resource_version

    def _watch_in_thread(self, resource_version: Optional[str]) -> asyncio.Future:
        loop = asyncio.get_running_loop()
        future = loop.create_future()

        def resolve(result=None, error=None):
            if future.done():
                return
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(result)

        def target():
            try:
                result = self._consume_watch(loop, resource_version)
            except Exception as e:
                loop.call_soon_threadsafe(resolve, None, e)
            else:
                loop.call_soon_threadsafe(resolve, result)

        threading.Thread(target=target, name="task-watch", daemon=True).start()
        return future

    async def _watch_loop(self) -> None:
        """List, then watch forever. Only the initial list failure is fatal."""
        resource_version = await self._relist()
        needs_relist = False
        while self.running:
            try:
                if needs_relist:
                    resource_version = await self._relist()
                    needs_relist = False
                resource_version = await self._watch_in_thread(resource_version)
                await asyncio.sleep(WATCH_RESTART_DELAY_SECONDS)
            except ApiException as e:
                needs_relist = True
                if e.status == HTTP_STATUS_GONE:
                    logger.info("Watch resourceVersion expired, relisting tasks")
                    continue
                logger.error(f"Task watch failed: {e.status} {e.reason}")
                await asyncio.sleep(self.watch_retry_seconds)
            except Exception as e:
                needs_relist = True
                logger.error(f"Task watch failed: {e!r}")
                await asyncio.sleep(self.watch_retry_seconds)

    async def _worker_loop(self) -> None:
        while self.running:
            self._wakeup.clear()
            await self.process_due()

            next_due = self.queue.next_due()
            timeout = None if next_due is None else max(0.0, next_due - self.clock())
            try:
                await asyncio.wait_for(self._wakeup.wait(), timeout=timeout)
            except asyncio.TimeoutError:
                pass

    async def run(self) -> None:
        """Run until stopped; only a failure of the initial list is fatal."""
        self.running = True
        self._wakeup = asyncio.Event()
        logger.info("Starting task controller")

        watcher = asyncio.create_task(self._watch_loop(), name="task-watch")
        worker = asyncio.create_task(self._worker_loop(), name="task-worker")
        try:
            done, _ = await asyncio.wait(
                {watcher, worker}, return_when=asyncio.FIRST_COMPLETED
            )
            for finished in done:
                finished.result()
        finally:
            self.running = False
            for pending in (watcher, worker):
                pending.cancel()
            await asyncio.gather(watcher, worker, return_exceptions=True)
            logger.warning("Task controller stopped")

    def stop(self) -> None:
        self.running = False
        self._notify()
