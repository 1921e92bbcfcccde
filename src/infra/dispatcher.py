# src/infra/dispatcher.py
"""
Очередь побочных эффектов.

Push, e-mail, публикации в realtime-каналы и запись журнала API выполняются
в фоне: обработчик запроса ставит задачу в ограниченную очередь и сразу
возвращает ответ. Задача повторяется с линейной задержкой до max_attempts,
окончательная неудача только логируется.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from src.common.logger import get_logger, log_error, log_info, log_warning
from src.common.constants import TypeMsg

logger = get_logger("dispatcher")

JobFactory = Callable[[], Awaitable[Any]]


@dataclass
class Job:
    """Задача очереди. factory создаёт новую корутину на каждую попытку."""
    name: str
    factory: JobFactory
    attempts: int = 0
    extra: dict[str, Any] = field(default_factory=dict)


class SideEffectDispatcher:
    """
    Ограниченная asyncio-очередь с пулом воркеров.
    """

    def __init__(
        self,
        max_size: int = 1000,
        workers: int = 2,
        max_attempts: int = 3,
        retry_delay: float = 1.0,
    ) -> None:
        self.max_size = max_size
        self.workers = workers
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self._queue: asyncio.Queue[Job] | None = None
        self._tasks: list[asyncio.Task] = []
        self._running = False
        self.processed = 0
        self.failed = 0
        self.dropped = 0

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def queue(self) -> asyncio.Queue[Job]:
        # Очередь создаётся лениво внутри работающего event loop
        if self._queue is None:
            self._queue = asyncio.Queue(maxsize=self.max_size)
        return self._queue

    async def start(self) -> None:
        """Запускает воркеры."""
        if self._running:
            return
        self._running = True
        for index in range(self.workers):
            self._tasks.append(asyncio.create_task(self._worker(index), name=f"dispatcher-{index}"))
        await log_info(f"Диспетчер побочных эффектов запущен ({self.workers} воркеров)", type_msg=TypeMsg.INFO)

    async def stop(self, drain_timeout: float = 5.0) -> None:
        """
        Останавливает воркеры.
        Сначала ждёт опустошения очереди не дольше drain_timeout секунд.
        """
        if not self._running:
            return

        if self._queue is not None and not self._queue.empty():
            try:
                await asyncio.wait_for(self._queue.join(), timeout=drain_timeout)
            except asyncio.TimeoutError:
                await log_warning(f"Диспетчер остановлен с {self._queue.qsize()} задачами в очереди")

        self._running = False
        for task in self._tasks:
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        await log_info("Диспетчер побочных эффектов остановлен", type_msg=TypeMsg.INFO)

    def submit(self, name: str, factory: JobFactory, **extra: Any) -> bool:
        """
        Ставит задачу в очередь, не дожидаясь выполнения.

        Returns:
            False, если очередь переполнена и задача отброшена
        """
        try:
            self.queue.put_nowait(Job(name=name, factory=factory, extra=extra))
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning(
                f"Очередь побочных эффектов переполнена, задача {name} отброшена",
                extra={"extra_data": {"job": name, **extra}},
            )
            return False
        return True

    async def run_job(self, job: Job) -> bool:
        """Выполняет задачу с повторами. True при успехе."""
        while job.attempts < self.max_attempts:
            job.attempts += 1
            try:
                await job.factory()
                self.processed += 1
                return True
            except asyncio.CancelledError:
                raise
            except Exception as e:
                if job.attempts >= self.max_attempts:
                    self.failed += 1
                    await log_error(
                        f"Задача {job.name} не выполнена после {job.attempts} попыток: {e}",
                        extra={"job": job.name, **job.extra},
                        exc_info=True,
                    )
                    return False
                await log_warning(
                    f"Задача {job.name}: попытка {job.attempts}/{self.max_attempts} не удалась: {e}",
                )
                await asyncio.sleep(self.retry_delay * job.attempts)
        return False

    async def _worker(self, index: int) -> None:
        queue = self.queue
        while True:
            job = await queue.get()
            try:
                await self.run_job(job)
            finally:
                queue.task_done()

    def get_stats(self) -> dict[str, int]:
        return {
            "queued": self._queue.qsize() if self._queue is not None else 0,
            "processed": self.processed,
            "failed": self.failed,
            "dropped": self.dropped,
        }


_dispatcher: SideEffectDispatcher | None = None


def get_dispatcher() -> SideEffectDispatcher:
    """Возвращает глобальный диспетчер (создаётся по настройкам)."""
    global _dispatcher
    if _dispatcher is None:
        from src.config import settings

        _dispatcher = SideEffectDispatcher(
            max_size=settings.dispatcher.DISPATCHER_QUEUE_SIZE,
            workers=settings.dispatcher.DISPATCHER_WORKERS,
            max_attempts=settings.dispatcher.DISPATCHER_MAX_ATTEMPTS,
            retry_delay=settings.dispatcher.DISPATCHER_RETRY_DELAY,
        )
    return _dispatcher


async def init_dispatcher() -> SideEffectDispatcher:
    dispatcher = get_dispatcher()
    await dispatcher.start()
    return dispatcher


async def close_dispatcher() -> None:
    if _dispatcher is not None:
        await _dispatcher.stop()
