# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Asynchronous client for the Kannon transactional email service.

The client owns one gRPC channel to a Kannon host and sends raw HTML or
server-side templates on behalf of a fixed sender. Every call carries a
Basic authorization header built from the sending domain and its key.

Usage:
    >>> from kannon import KannonClient, Recipient, Sender
    >>> sender = Sender(email="news@example.com", alias="Example News")
    >>> client = await KannonClient.connect(
    ...     "example.com", "secret", sender, "https://grpc.kannon.email:443"
    ... )
    >>> await client.send_email(
    ...     [Recipient(email="jane@example.org", fields={"name": "Jane"})],
    ...     "Hello",
    ...     "<p>Hello {{ name }}</p>",
    ... )
    >>> await client.close()

Example:
    Using the client as a context manager::

        async with await connect(domain, key, sender, host) as client:
            await client.send_template(recipients, "Welcome", "welcome-template")
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from urllib.parse import urlsplit

import grpc

from kannon import protos
from kannon.auth import auth_metadata, basic_auth_header
from kannon.errors import ClientConnectionError, SendMailError
from kannon.logger import get_logger
from kannon.models import Attachment, Recipient, Sender

logger = get_logger("client")

DEFAULT_PORTS = {"https": 443, "http": 80}

# Retries are left to the caller; a failed send is never replayed here.
CHANNEL_OPTIONS = (("grpc.enable_retries", 0),)


@dataclass(frozen=True)
class Endpoint:
    """A parsed Kannon host.

    Attributes:
        target: ``host:port`` string handed to gRPC.
        secure: Whether the channel uses TLS.
    """

    target: str
    secure: bool


def parse_host(host: str) -> Endpoint:
    """Parse a host URI such as ``https://grpc.kannon.email:443``.

    Only ``https`` (TLS) and ``http`` (plaintext) schemes are accepted.
    The port defaults to the scheme's standard port.

    Raises:
        ClientConnectionError: If the string is not a usable endpoint.
    """
    try:
        parts = urlsplit(host.strip())
        port = parts.port
    except (AttributeError, ValueError) as e:
        raise ClientConnectionError(str(host), f"invalid host: {e}") from e

    scheme = parts.scheme.lower()
    if scheme not in DEFAULT_PORTS:
        raise ClientConnectionError(host, "scheme must be https or http")
    if not parts.hostname:
        raise ClientConnectionError(host, "missing host name")
    if parts.path not in ("", "/") or parts.query or parts.fragment:
        raise ClientConnectionError(host, "endpoint must not carry a path or query")
    if parts.username is not None or parts.password is not None:
        redacted = f"{scheme}://***@{parts.hostname}"
        raise ClientConnectionError(redacted, "credentials belong in domain and key, not in the host")
    if port == 0:
        raise ClientConnectionError(host, "port must be between 1 and 65535")

    hostname = parts.hostname
    if ":" in hostname:
        hostname = f"[{hostname}]"
    if port is None:
        port = DEFAULT_PORTS[scheme]
    return Endpoint(
        target=f"{hostname}:{port}",
        secure=scheme == "https",
    )


def _open_channel(endpoint: Endpoint) -> grpc.aio.Channel:
    if not endpoint.secure:
        logger.warning("Using a plaintext channel to %s", endpoint.target)
        return grpc.aio.insecure_channel(endpoint.target, options=CHANNEL_OPTIONS)
    credentials = grpc.ssl_channel_credentials()
    return grpc.aio.secure_channel(endpoint.target, credentials, options=CHANNEL_OPTIONS)


async def _wait_until_ready(channel: grpc.aio.Channel) -> None:
    """Wait for the first connection attempt to settle.

    Raises:
        ConnectionError: When the attempt ends in TRANSIENT_FAILURE or the
            channel shuts down. gRPC would keep reconnecting in background,
            but a failed connect is reported to the caller instead.
    """
    state = channel.get_state(try_to_connect=True)
    while state != grpc.ChannelConnectivity.READY:
        if state in (
            grpc.ChannelConnectivity.TRANSIENT_FAILURE,
            grpc.ChannelConnectivity.SHUTDOWN,
        ):
            raise ConnectionError(f"channel state is {state.name}")
        await channel.wait_for_state_change(state)
        state = channel.get_state()


class KannonClient:
    """Client bound to one Kannon domain, sender and channel.

    Attributes:
        domain: Sending domain used for authentication.
        sender: Identity copied into every request.

    The channel is owned by the client: ``close()`` or leaving an
    ``async with`` block closes it. Concurrent sends on one client are
    multiplexed by the channel and need no extra locking.
    """

    def __init__(self, domain: str, key: str, sender: Sender, channel: grpc.aio.Channel):
        """Wrap an already opened channel.

        Prefer :meth:`connect`, which opens and checks the channel.

        Args:
            domain: Sending domain registered on Kannon.
            key: Secret key of the domain.
            sender: Identity used for every send.
            channel: Channel to the Kannon host.
        """
        self.domain = domain
        self._key = key
        self.sender = sender
        self._channel = channel
        self._stub = protos.MailerStub(channel)
        self._closed = False

    @classmethod
    async def connect(
        cls,
        domain: str,
        key: str,
        sender: Sender,
        host: str,
        *,
        connect_timeout: float | None = None,
    ) -> KannonClient:
        """Open a channel to ``host`` and return a ready client.

        Args:
            domain: Sending domain registered on Kannon.
            key: Secret key of the domain.
            sender: Identity used for every send.
            host: Endpoint URI, ``https://`` for TLS or ``http://`` for a
                local plaintext server.
            connect_timeout: Optional limit in seconds for the connection
                attempt. No limit by default.

        Returns:
            KannonClient: Client owning the connected channel.

        Raises:
            ClientConnectionError: If the host is invalid, TLS cannot be
                configured, or the connection attempt fails.
        """
        endpoint = parse_host(host)
        try:
            channel = _open_channel(endpoint)
        except Exception as e:
            raise ClientConnectionError(host, f"cannot set up channel: {e}") from e

        logger.info("Connecting to %s (tls=%s)", endpoint.target, endpoint.secure)
        try:
            await asyncio.wait_for(_wait_until_ready(channel), timeout=connect_timeout)
        except asyncio.TimeoutError as e:
            await channel.close()
            logger.error("Connection to %s timed out", endpoint.target)
            raise ClientConnectionError(host, f"timed out after {connect_timeout}s") from e
        except Exception as e:
            await channel.close()
            logger.error("Connection to %s failed: %s", endpoint.target, e)
            raise ClientConnectionError(host, str(e)) from e
        except asyncio.CancelledError:
            await channel.close()
            logger.info("Connection to %s cancelled", endpoint.target)
            raise
        return cls(domain, key, sender, channel)

    @property
    def authorization(self) -> str:
        """Authorization header value, rebuilt on every access."""
        return basic_auth_header(self.domain, self._key)

    def build_html_request(
        self,
        recipients: Sequence[Recipient],
        subject: str,
        body: str,
        attachments: Sequence[Attachment] | None = None,
    ) -> protos.SendHTMLReq:
        """Translate a raw HTML send into its wire request.

        ``scheduled_time`` is left unset (immediate send) and
        ``global_fields`` is always empty.
        """
        return protos.SendHTMLReq(
            sender=self.sender.to_proto(),
            subject=subject,
            html=body,
            recipients=[r.to_proto() for r in recipients],
            attachments=[a.to_proto() for a in attachments or ()],
            global_fields={},
        )

    def build_template_request(
        self,
        recipients: Sequence[Recipient],
        subject: str,
        template_id: str,
        attachments: Sequence[Attachment] | None = None,
    ) -> protos.SendTemplateReq:
        """Translate a template send into its wire request."""
        return protos.SendTemplateReq(
            sender=self.sender.to_proto(),
            subject=subject,
            template_id=template_id,
            recipients=[r.to_proto() for r in recipients],
            attachments=[a.to_proto() for a in attachments or ()],
            global_fields={},
        )

    async def send_email(
        self,
        recipients: Sequence[Recipient],
        subject: str,
        body: str,
        attachments: Sequence[Attachment] | None = None,
    ) -> None:
        """Send an HTML email to every recipient.

        Returning means Kannon accepted the request, not that the emails
        were delivered.

        Args:
            recipients: Addressees, possibly empty.
            subject: Subject line.
            body: HTML body, sent verbatim.
            attachments: Files to attach, none by default.

        Raises:
            SendMailError: If the call fails for any reason. The gRPC status
                is available as ``status``.
        """
        await self._send(
            "SendHTML",
            lambda: self.build_html_request(recipients, subject, body, attachments),
        )

    async def send_template(
        self,
        recipients: Sequence[Recipient],
        subject: str,
        template_id: str,
        attachments: Sequence[Attachment] | None = None,
    ) -> None:
        """Send a template stored on Kannon to every recipient.

        Recipient ``fields`` are applied to the template by the server.

        Raises:
            SendMailError: If the call fails for any reason.
        """
        await self._send(
            "SendTemplate",
            lambda: self.build_template_request(recipients, subject, template_id, attachments),
        )

    async def _send(self, method: str, build_request) -> None:
        try:
            request = build_request()
            metadata = auth_metadata(self.domain, self._key)
        except Exception as e:
            logger.warning("%s request could not be built: %s", method, e)
            raise SendMailError(grpc.StatusCode.INTERNAL, str(e)) from e

        logger.debug(
            "%s: %d recipient(s), %d attachment(s)",
            method,
            len(request.recipients),
            len(request.attachments),
        )
        try:
            response = await getattr(self._stub, method)(request, metadata=metadata)
        except grpc.aio.AioRpcError as e:
            logger.warning("%s failed: %s %s", method, e.code().name, e.details())
            raise SendMailError.from_rpc_error(e) from e
        except Exception as e:
            logger.warning("%s failed unexpectedly: %s", method, e)
            raise SendMailError(grpc.StatusCode.INTERNAL, str(e)) from e
        logger.debug("%s accepted, message id %s", method, response.message_id)

    async def close(self) -> None:
        """Close the channel. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        await self._channel.close()

    async def __aenter__(self) -> KannonClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"<KannonClient domain='{self.domain}' sender='{self.sender.email}'>"


async def connect(
    domain: str,
    key: str,
    sender: Sender,
    host: str,
    *,
    connect_timeout: float | None = None,
) -> KannonClient:
    """Connect to a Kannon host.

    Shortcut for :meth:`KannonClient.connect`.

    Example:
        >>> client = await connect("example.com", "secret", sender, "https://grpc.kannon.email")
    """
    return await KannonClient.connect(
        domain, key, sender, host, connect_timeout=connect_timeout
    )
