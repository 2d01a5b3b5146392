"""Unit test conftest: environment and in-memory transports."""

import asyncio
import os
from typing import Dict, List, Optional, Sequence, Union

import pytest

# Set environment before any tuplebatch module instantiates Settings
os.environ.setdefault("TUPLEBATCH_API_URL", "http://fga.test")
os.environ.setdefault("TUPLEBATCH_STORE_ID", "01HSTORE")
os.environ.setdefault("TUPLEBATCH_MODEL_ID", "01HMODEL")
os.environ.setdefault("TUPLEBATCH_LOG_LEVEL", "DEBUG")

from tuplebatch.batch.types import Chunk, OperationSet, WriteAck  # noqa: E402
from tuplebatch.core.result import Failure, Success  # noqa: E402

Scripted = Union[None, BaseException]


class FakeTransport:
    """Transport double driven by a per-chunk script.

    ``script[chunk_index]`` is a list of per-attempt answers: ``None`` means
    success, an exception instance means ``Failure(exception)``. Chunks not in
    the script, or attempts past the end of their list, succeed.
    """

    def __init__(
        self,
        script: Optional[Dict[int, Sequence[Scripted]]] = None,
        latency: float = 0.0,
        all_result: Scripted = None,
        raise_on: Optional[Dict[int, BaseException]] = None,
    ):
        self.script = {k: list(v) for k, v in (script or {}).items()}
        self.latency = latency
        self.all_result = all_result
        self.raise_on = raise_on or {}
        self.sent: List[int] = []
        self.attempts: Dict[int, int] = {}
        self.sent_all: List[OperationSet] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def send(self, chunk: Chunk):
        self.sent.append(chunk.index)
        self.attempts[chunk.index] = self.attempts.get(chunk.index, 0) + 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.latency)
        finally:
            self.in_flight -= 1

        if chunk.index in self.raise_on:
            raise self.raise_on[chunk.index]

        answers = self.script.get(chunk.index)
        answer = answers.pop(0) if answers else None
        if answer is None:
            return Success(WriteAck(operation_count=len(chunk)))
        return Failure(answer)

    async def send_all(self, operation_set: OperationSet):
        self.sent_all.append(operation_set)
        await asyncio.sleep(self.latency)
        if self.all_result is None:
            return Success(WriteAck(operation_count=len(operation_set)))
        return Failure(self.all_result)


@pytest.fixture
def fake_transport():
    """Factory for scripted in-memory transports."""

    def _make(**kwargs) -> FakeTransport:
        return FakeTransport(**kwargs)

    return _make


@pytest.fixture
def make_writes():
    """Build ``count`` unique write tuples."""

    def _make(count: int, relation: str = "viewer"):
        return [(f"user:user{i}", relation, f"document:doc{i}") for i in range(count)]

    return _make
