"""
Interactive confirmation prompts for orgsync.

Free-text answers are decoded once, at this boundary, into closed
enumerations; the rest of the code only sees the enums.
"""

import asyncio
import threading
from enum import Enum
from typing import Optional, Protocol

import click

from .exit_codes import PromptTimeoutError
from .infra.git_client import CloneProtocol

CLONE_PROMPT = "Clone repos? [h=using https, s=using ssh, other value to abort]"
MOVE_PROMPT = "Move repos? [y=yes, other value to abort]"


class CloneChoice(Enum):
    HTTPS = "h"
    SSH = "s"
    DECLINE = ""

    @classmethod
    def decode(cls, answer: str) -> 'CloneChoice':
        answer = answer.strip().lower()
        if answer == cls.HTTPS.value:
            return cls.HTTPS
        if answer == cls.SSH.value:
            return cls.SSH
        return cls.DECLINE

    @property
    def protocol(self) -> Optional[CloneProtocol]:
        return {
            CloneChoice.HTTPS: CloneProtocol.HTTPS,
            CloneChoice.SSH: CloneProtocol.SSH,
        }.get(self)


class MoveChoice(Enum):
    ACCEPT = "y"
    DECLINE = ""

    @classmethod
    def decode(cls, answer: str) -> 'MoveChoice':
        if answer.strip().lower() in ("y", "yes"):
            return cls.ACCEPT
        return cls.DECLINE


class LineReader(Protocol):
    async def read(self, prompt: str, timeout: Optional[float] = None) -> str:
        ...


def _set_result(future: asyncio.Future, value) -> None:
    if not future.done():
        future.set_result(value)


def _set_exception(future: asyncio.Future, exc: BaseException) -> None:
    if not future.done():
        future.set_exception(exc)


class ClickLineReader:
    """Reads one line from the terminal, optionally with a hard timeout."""

    def _prompt(self, prompt: str) -> str:
        return click.prompt(prompt, default="", show_default=False, prompt_suffix=": ")

    def _read_in_thread(self, prompt: str) -> asyncio.Future:
        # Daemon thread: an abandoned prompt must not keep the process alive.
        loop = asyncio.get_running_loop()
        future = loop.create_future()

        def deliver(callback, value):
            try:
                loop.call_soon_threadsafe(callback, future, value)
            except RuntimeError:
                # Loop already closed after the prompt timed out.
                pass

        def target():
            try:
                answer = self._prompt(prompt)
            except BaseException as e:
                deliver(_set_exception, e)
            else:
                deliver(_set_result, answer)

        threading.Thread(target=target, daemon=True).start()
        return future

    async def read(self, prompt: str, timeout: Optional[float] = None) -> str:
        pending = self._read_in_thread(prompt)
        if timeout is None:
            return await pending
        try:
            return await asyncio.wait_for(pending, timeout)
        except asyncio.TimeoutError:
            raise PromptTimeoutError(timeout) from None


async def ask_clone_choice(reader: LineReader, timeout: Optional[float]) -> CloneChoice:
    return CloneChoice.decode(await reader.read(CLONE_PROMPT, timeout))


async def ask_move_choice(reader: LineReader) -> MoveChoice:
    return MoveChoice.decode(await reader.read(MOVE_PROMPT))
