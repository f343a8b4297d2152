# slothunter/hunter/cursor.py
from __future__ import annotations

import asyncio
from typing import AsyncIterator, Awaitable, Callable, Optional

from slothunter.chain.interface import ChainClient
from slothunter.config import LIVENESS_TIMEOUT_SECONDS, RECONNECT_DELAY_SECONDS
from slothunter.errors import ConfigurationError, FatalError, StreamError
from slothunter.hunter.logging import HunterPhase, LogLevel, hunter_logger, log_connection
from slothunter.primitives import BlockRef


class BlockCursor:
    """Pulls blocks one at a time, in stream order."""

    def __init__(self, blocks: AsyncIterator[BlockRef]):
        self._blocks = blocks

    async def next_block(self) -> BlockRef:
        try:
            return await anext(self._blocks)
        except StopAsyncIteration:
            raise StreamError("failed to get the next block") from None

    async def skip(self) -> BlockRef:
        """Consume one block without handing it to anybody."""
        block = await self.next_block()
        log_connection(LogLevel.LOW, "skip 1 block after tendering", "cursor", {"height": block.height})
        return block


Connect = Callable[[], Awaitable[ChainClient]]
# A session runs until it raises; it calls `progress()` after every processed block.
Session = Callable[[ChainClient, Callable[[], None]], Awaitable[None]]


class ConnectionSupervisor:
    """
    Keeps a session alive across connection loss.

    Any error out of the session is classified first by `connectivity_error`,
    then by asking the chain whether its socket is still up. A dead connection
    is rebuilt (immediately on the first attempt of an outage, after `delay`
    seconds on every later one) and the session is restarted from scratch;
    any other error on a live connection is fatal.
    """

    def __init__(
        self,
        connect: Connect,
        session: Session,
        delay: float = RECONNECT_DELAY_SECONDS,
        liveness_timeout: float = LIVENESS_TIMEOUT_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        connectivity_error: Callable[[BaseException], bool] = lambda e: False,
    ):
        self._connect = connect
        self._session = session
        self.delay = delay
        self.liveness_timeout = liveness_timeout
        self._sleep = sleep
        self.connectivity_error = connectivity_error
        self.attempts = 0
        self.reconnects = 0
        self.chain: Optional[ChainClient] = None

    def progress(self) -> None:
        self.attempts = 0

    async def alive(self, chain: ChainClient) -> bool:
        try:
            return bool(await asyncio.wait_for(chain.is_connected(), timeout=self.liveness_timeout))
        except (asyncio.TimeoutError, OSError) as e:
            log_connection(LogLevel.HIGH, "liveness check failed", "supervisor", {"error": repr(e)})
            return False

    async def reconnect(self) -> ChainClient:
        while True:
            delay = 0.0 if self.attempts == 0 else self.delay
            self.attempts += 1
            log_connection(LogLevel.HIGH, "reconnecting", "supervisor", {"attempt": self.attempts, "delay_s": delay})
            await self._sleep(delay)

            if self.chain is not None:
                try:
                    await self.chain.close()
                except Exception as e:  # the old transport is already broken
                    log_connection(LogLevel.LOW, "closing the dead connection failed", "supervisor", {"error": repr(e)})
                self.chain = None

            try:
                self.chain = await self._connect()
            except (OSError, asyncio.TimeoutError, StreamError) as e:
                hunter_logger.warning(HunterPhase.CONNECTION, "reconnect failed", "supervisor", {"error": repr(e)})
                continue

            self.reconnects += 1
            hunter_logger.success(HunterPhase.CONNECTION, "reconnected", "supervisor", {"attempt": self.attempts})
            return self.chain

    async def run(self) -> None:
        self.chain = await self._connect()
        try:
            while True:
                try:
                    await self._session(self.chain, self.progress)
                    raise StreamError("session returned without an error")
                except (ConfigurationError, FatalError):
                    raise
                except Exception as e:
                    if not self.connectivity_error(e) and await self.alive(self.chain):
                        raise FatalError(f"{type(e).__name__}: {e}") from e
                    hunter_logger.error(
                        HunterPhase.CONNECTION, "connection lost", "supervisor", {"error": repr(e)}
                    )
                    await self.reconnect()
        finally:
            if self.chain is not None:
                await self.chain.close()
