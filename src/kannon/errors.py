# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Exceptions raised by the Kannon client.

Two failure kinds exist: the channel could not be opened
(:class:`ClientConnectionError`), or a send call failed
(:class:`SendMailError`). Both derive from :class:`KannonError`.
"""

from __future__ import annotations

import grpc


class KannonError(RuntimeError):
    """Base class for Kannon client failures."""

    code = "kannon_error"


class ClientConnectionError(KannonError):
    """Raised when a channel to the Kannon host cannot be established.

    Covers unparseable host strings, TLS credential setup and connect
    failures. The original exception, if any, is chained as ``__cause__``.
    """

    code = "connection_failed"

    def __init__(self, host: str, reason: str):
        self.host = host
        self.reason = reason
        super().__init__(f"Cannot connect to {host!r}: {reason}")


class SendMailError(KannonError):
    """Raised when a send call fails for any reason.

    Attributes:
        status: gRPC status code reported by the call, or ``INTERNAL``
            when the request could not be built locally.
        details: Status details from the server, if any.
    """

    code = "send_failed"

    def __init__(self, status: grpc.StatusCode, details: str | None = None):
        self.status = status
        self.details = details
        message = f"Send failed with status {status.name}"
        if details:
            message = f"{message}: {details}"
        super().__init__(message)

    @classmethod
    def from_rpc_error(cls, error: grpc.aio.AioRpcError) -> SendMailError:
        """Wrap a failed call, keeping its exact status and details."""
        return cls(error.code(), error.details())
