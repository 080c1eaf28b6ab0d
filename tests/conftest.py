# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Shared fixtures: a recording stand-in for ``grpc.aio.Channel``."""

from __future__ import annotations

import grpc
import pytest

from kannon import protos
from kannon.client import KannonClient
from kannon.models import Sender


class RecordingCall:
    """Unary call that records requests and replies with a fixed outcome."""

    def __init__(self, path: str, channel: FakeChannel):
        self.path = path
        self._channel = channel
        self.calls: list[tuple[object, tuple]] = []

    async def __call__(self, request, metadata=None):
        self.calls.append((request, metadata))
        if self._channel.error is not None:
            raise self._channel.error
        return self._channel.response


class FakeChannel:
    """Records ``unary_unary`` bindings and ``close`` calls."""

    def __init__(self, response=None, error: Exception | None = None):
        self.response = response if response is not None else protos.SendRes(message_id="msg-1")
        self.error = error
        self.methods: dict[str, RecordingCall] = {}
        self.close_count = 0

    def unary_unary(self, path, request_serializer=None, response_deserializer=None):
        call = RecordingCall(path, self)
        self.methods[path] = call
        return call

    async def close(self, grace=None):
        self.close_count += 1

    def calls(self, path: str):
        return self.methods[path].calls


@pytest.fixture
def rpc_error():
    """Factory for the error a failed ``grpc.aio`` call raises."""

    def make(code: grpc.StatusCode, details: str) -> grpc.aio.AioRpcError:
        return grpc.aio.AioRpcError(code, grpc.aio.Metadata(), grpc.aio.Metadata(), details=details)

    return make


@pytest.fixture
def sender():
    return Sender(email="a@example.com", alias="A")


@pytest.fixture
def channel():
    return FakeChannel()


@pytest.fixture
def client(sender, channel):
    return KannonClient("example.com", "secret", sender, channel)
