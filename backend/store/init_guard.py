import asyncio
import enum
from typing import Awaitable, Callable

import structlog

logger = structlog.get_logger(__name__)


class InitState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


def _mark_retrieved(future: asyncio.Future) -> None:
    # the failure is also raised to waiters, but all of them may have been cancelled
    if not future.cancelled():
        future.exception()


class InitGuard:
    """
    Runs an async initializer once, on first use.

    Concurrent callers that arrive while initialization is in flight all wait
    on the same future. A failure moves the guard to FAILED and is raised to
    every waiter; the next ``ensure()`` call starts over from UNINITIALIZED.
    Once READY the initializer never runs again.

    The event loop is single threaded and state changes happen between awaits,
    so no lock is needed.
    """

    def __init__(self, initializer: Callable[[], Awaitable[None]], name: str = "init"):
        self._initializer = initializer
        self._name = name
        self._state = InitState.UNINITIALIZED
        self._future: asyncio.Future | None = None

    @property
    def state(self) -> InitState:
        return self._state

    async def ensure(self) -> None:
        if self._state is InitState.READY:
            return

        if self._state is InitState.FAILED:
            self._state = InitState.UNINITIALIZED

        if self._state is InitState.UNINITIALIZED:
            self._state = InitState.INITIALIZING
            self._future = asyncio.ensure_future(self._run())
            self._future.add_done_callback(_mark_retrieved)

        # shield: a cancelled caller must not cancel the shared initialization
        await asyncio.shield(self._future)

    async def _run(self) -> None:
        try:
            await self._initializer()
        except BaseException as e:
            self._state = InitState.FAILED
            self._future = None
            logger.warning("Initialization failed, will retry on next use", guard=self._name, error=repr(e))
            raise
        self._state = InitState.READY
        logger.info("Initialization complete", guard=self._name)
