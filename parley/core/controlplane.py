import asyncio
import logging

from parley.core.models.config import ServerConfig
from parley.core.ports.framer import Framer
from parley.core.transport.addr import format_addr
from parley.core.transport.server import Listener


class ControlPlane:
    """
    Drives one Listener from bind to shutdown.

    In single-shot mode it waits for the first peer, lets its session
    complete the exchange, then shuts the Listener down. In serve mode it
    keeps the Listener running until the stop event is set. A stop event
    received at any point interrupts the wait and triggers shutdown.
    """
    def __init__(
        self,
        config: ServerConfig,
        framer: Framer,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._config = config
        self._loop = loop or self._create_event_loop()
        self._listener = Listener(config=config, framer=framer, loop=self._loop)
        self._logger = logging.getLogger("parley.controlplane")

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    @property
    def listener(self) -> Listener:
        return self._listener

    async def start(self, stop_event: asyncio.Event) -> None:
        await self._listener.bind()

        try:
            if self._config.single_shot:
                await self._serve_once(stop_event)
            else:
                await stop_event.wait()
                self._logger.info("Stop signal received.")
        finally:
            await self._listener.shutdown()

    async def _serve_once(self, stop_event: asyncio.Event) -> None:
        self._logger.info("Waiting for client request...")
        accept = asyncio.ensure_future(self._listener.accept_one())
        if not await self._until_stopped(accept, stop_event):
            self._logger.info("Stop signal received before a client connected.")
            return

        session = accept.result()
        self._logger.info(f"Client connected from {format_addr(session.peer)}")

        closed = asyncio.ensure_future(session.wait_closed())
        if not await self._until_stopped(closed, stop_event):
            self._logger.info("Stop signal received during the exchange.")

    @staticmethod
    async def _until_stopped(task: asyncio.Future, stop_event: asyncio.Event) -> bool:
        """
        Wait for `task` unless stop_event fires first.

        Returns True when the task finished, False when it was cancelled
        because of the stop event. Exceptions of the task propagate.
        """
        stop_task = asyncio.ensure_future(stop_event.wait())
        try:
            await asyncio.wait([task, stop_task], return_when=asyncio.FIRST_COMPLETED)
        finally:
            stop_task.cancel()

        if not task.done():
            task.cancel()
            return False

        task.result()
        return True

    @staticmethod
    def _create_event_loop() -> asyncio.AbstractEventLoop:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        return loop
