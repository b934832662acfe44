"""
Change notifications for mongo_data_service.

A DataService reports every successful create, update and delete to a single
injected sink. Sinks receive ``emit(event_name, payload, kind)`` inline, right
after the store operation completes.
"""

import asyncio
import inspect
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Union

from loguru import logger


class ChangeKind(Enum):
    """What happened to the record carried by a notification."""
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class ChangeNotification:
    """A single change event as delivered to a channel."""
    event_name: str
    payload: Any
    kind: ChangeKind


class NotificationSink(ABC):
    """Abstract base class for notification receivers."""
    
    @abstractmethod
    def emit(self, event_name: str, payload: Any, kind: ChangeKind) -> None:
        """Deliver one change notification."""
        pass


ChangeCallback = Callable[[Any, ChangeKind], Union[None, Awaitable[None]]]


class CallbackSink(NotificationSink):
    """
    Adapts a plain callable into a sink.
    
    The callback is invoked as ``callback(payload, kind)``. Coroutine results
    are scheduled on the running loop rather than awaited, so delivery stays
    inline with the write that triggered it.
    """
    
    def __init__(self, callback: ChangeCallback):
        if not callable(callback):
            raise TypeError("callback must be callable")
        self.callback = callback
        self._pending = set()
    
    def emit(self, event_name: str, payload: Any, kind: ChangeKind) -> None:
        result = self.callback(payload, kind)
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            # Hold a reference until the task finishes
            self._pending.add(task)
            task.add_done_callback(self._task_done)
    
    def _task_done(self, task: asyncio.Future) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Async notification callback failed: {error!r}")


class QueueSink(NotificationSink):
    """
    Message-passing channel backed by an asyncio.Queue.
    
    Consumers ``await sink.get()`` (or read ``sink.queue`` directly). When a
    bounded queue is full the notification is dropped with a warning.
    """
    
    def __init__(self, queue: Optional[asyncio.Queue] = None, maxsize: int = 0):
        self.queue = queue if queue is not None else asyncio.Queue(maxsize=maxsize)
    
    def emit(self, event_name: str, payload: Any, kind: ChangeKind) -> None:
        try:
            self.queue.put_nowait(ChangeNotification(event_name, payload, kind))
        except asyncio.QueueFull:
            logger.warning(f"Notification queue full, dropping {kind.value} event '{event_name}'")
    
    async def get(self) -> ChangeNotification:
        """Wait for the next notification."""
        return await self.queue.get()
    
    def empty(self) -> bool:
        return self.queue.empty()


class RecordingSink(NotificationSink):
    """Keeps every notification in memory, in delivery order."""
    
    def __init__(self):
        self.notifications: List[ChangeNotification] = []
    
    def emit(self, event_name: str, payload: Any, kind: ChangeKind) -> None:
        self.notifications.append(ChangeNotification(event_name, payload, kind))
    
    def kinds(self) -> List[ChangeKind]:
        return [n.kind for n in self.notifications]
    
    def clear(self) -> None:
        self.notifications.clear()
