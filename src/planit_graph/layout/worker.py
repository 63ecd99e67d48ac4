"""
Layout Worker - Background layout computation with generation tokens.
=====================================================================

Runs the layout engine on a single background thread and reports back
through a one-way message queue. Every request is stamped with a
generation number; submitting a new request cancels the one in flight,
and poll() drops messages from superseded generations so stale positions
are never applied.
"""

import queue
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from planit_graph.layout.engine import CancellationToken, LayoutEngine
from planit_graph.shared.logging import get_logger
from planit_graph.shared.schemas import CourseGraph, LayoutConfig, LayoutSnapshot

logger = get_logger(__name__)


class MessageType(str, Enum):
    """Kinds of worker-to-foreground messages."""

    PROGRESS = "progress"
    COMPLETE = "complete"
    CANCELLED = "cancelled"
    ERROR = "error"


@dataclass(frozen=True)
class LayoutMessage:
    """One message from the background worker."""

    type: MessageType
    generation: int
    snapshot: Optional[LayoutSnapshot] = None
    error: Optional[str] = None


class LayoutWorker:
    """
    Background layout runner.

    Example:
        >>> with LayoutWorker(LayoutEngine()) as worker:
        ...     worker.submit(graph, config)
        ...     worker.wait(timeout=10)
        ...     for message in worker.poll():
        ...         controller.apply_layout(message.snapshot)
    """

    def __init__(self, engine: Optional[LayoutEngine] = None):
        self.engine = engine or LayoutEngine()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="layout")
        self._messages: "queue.Queue[LayoutMessage]" = queue.Queue()
        self._lock = threading.Lock()
        self._generation = 0
        self._token: Optional[CancellationToken] = None
        self._future: Optional[Future] = None
        self._closed = False

    @property
    def generation(self) -> int:
        """Generation of the most recent request."""
        return self._generation

    def submit(self, graph: CourseGraph, config: LayoutConfig) -> int:
        """
        Start a layout in the background, superseding any earlier request.

        Args:
            graph: Graph to lay out (copied at dispatch)
            config: Layout config (copied at dispatch)

        Returns:
            Generation number of this request
        """
        graph_copy = graph.model_copy(deep=True)
        config_copy = config.model_copy(deep=True)

        with self._lock:
            if self._closed:
                raise RuntimeError("LayoutWorker has been shut down")
            if self._token is not None:
                self._token.cancel()
            self._generation += 1
            generation = self._generation
            token = CancellationToken()
            self._token = token
            self._future = self._executor.submit(self._run, graph_copy, config_copy, token, generation)

        logger.debug(f"Submitted layout gen={generation} ({config_copy.layout_kind.value})")
        return generation

    def cancel(self) -> None:
        """Cancel the in-flight request, if any."""
        with self._lock:
            if self._token is not None:
                self._token.cancel()

    def poll(self) -> list[LayoutMessage]:
        """
        Drain pending messages without blocking.

        Returns:
            Messages of the current generation, oldest first
        """
        current = self._generation
        messages: list[LayoutMessage] = []
        while True:
            try:
                message = self._messages.get_nowait()
            except queue.Empty:
                break
            if message.generation != current:
                logger.debug(f"Discarded stale {message.type.value} message gen={message.generation}")
                continue
            messages.append(message)
        return messages

    def latest_snapshot(self) -> Optional[LayoutSnapshot]:
        """Poll and return the newest current-generation snapshot, if any."""
        snapshots = [m.snapshot for m in self.poll() if m.snapshot is not None]
        return snapshots[-1] if snapshots else None

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the most recent request has finished.

        Returns:
            False if the timeout expired first
        """
        future = self._future
        if future is None:
            return True
        try:
            future.result(timeout=timeout)
        except FutureTimeoutError:
            return False
        return True

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            self._closed = True
            if self._token is not None:
                self._token.cancel()
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "LayoutWorker":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    def _run(
        self,
        graph: CourseGraph,
        config: LayoutConfig,
        token: CancellationToken,
        generation: int,
    ) -> None:
        try:
            completed = False
            for snapshot in self.engine.iter_layout(graph, config, token, generation):
                message_type = MessageType.COMPLETE if snapshot.complete else MessageType.PROGRESS
                self._messages.put(LayoutMessage(message_type, generation, snapshot))
                completed = snapshot.complete
            if not completed:
                self._messages.put(LayoutMessage(MessageType.CANCELLED, generation))
        except Exception as e:
            logger.error(f"Layout gen={generation} failed: {e}")
            self._messages.put(LayoutMessage(MessageType.ERROR, generation, error=str(e)))
