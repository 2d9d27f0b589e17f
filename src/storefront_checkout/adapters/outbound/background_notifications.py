from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field

import structlog

from storefront_checkout.core.domain.service.notification_service import NotificationService
from storefront_checkout.core.ports.outbound.notifications import NotificationQueue, OrderPaid

logger = structlog.get_logger(component="notification_queue")


@dataclass
class BackgroundNotificationQueue(NotificationQueue):
    """
    Runs notifications on a worker pool so delivery never shares a call stack
    with the ledger transition that triggered it.
    """

    notifier: NotificationService
    workers: int = 2
    _executor: ThreadPoolExecutor = field(init=False, repr=False)
    _pending: set[Future] = field(default_factory=set, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=self.workers, thread_name_prefix="notifier"
        )

    def enqueue(self, event: OrderPaid) -> None:
        try:
            fut = self._executor.submit(self._run, event)
        except RuntimeError as exc:
            # executor already shut down
            logger.error(
                "notification_dropped",
                order_id=str(event.order.order_id.value),
                error=str(exc),
            )
            return
        with self._lock:
            self._pending.add(fut)
        fut.add_done_callback(self._forget)

    def drain(self, timeout: float | None = None) -> None:
        with self._lock:
            pending = set(self._pending)
        wait(pending, timeout=timeout)

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def _run(self, event: OrderPaid) -> None:
        try:
            self.notifier.notify(event)
        except Exception:  # noqa: BLE001
            logger.exception("notification_crashed", order_id=str(event.order.order_id.value))

    def _forget(self, fut: Future) -> None:
        with self._lock:
            self._pending.discard(fut)
