import asyncio
import logging

logger = logging.getLogger("session_controller")


class SessionController:
    """Owns every task spawned for one connection and the stop signal that ends it."""

    def __init__(self, session_id: str = ""):
        self.session_id = session_id
        self.stop_event = asyncio.Event()
        self.tasks: list[asyncio.Task] = []

    def create_task(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self.tasks.append(task)
        task.add_done_callback(self._forget)
        return task

    def _forget(self, task: asyncio.Task) -> None:
        if task in self.tasks:
            self.tasks.remove(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("session task failed | session_id=%s err=%s", self.session_id, exc)

    def request_stop(self, reason: str = "other") -> None:
        if not self.stop_event.is_set():
            logger.info("STOP requested | session_id=%s reason=%s", self.session_id, reason)
            self.stop_event.set()

    async def stop(self):
        if not self.stop_event.is_set():
            self.stop_event.set()

        pending = list(self.tasks)
        for task in pending:
            task.cancel()

        await asyncio.gather(*pending, return_exceptions=True)
        self.tasks.clear()
