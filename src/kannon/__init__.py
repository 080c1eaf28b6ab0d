# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Python client for the Kannon transactional email service.

Features:
    - TLS gRPC channel authenticated with the sending domain and its key
    - Raw HTML sends and server-side template sends
    - Per-recipient template fields and binary attachments
    - Typed errors for connection and send failures
    - INI / environment configuration and a ``kannon`` command

Example::

    from kannon import Recipient, Sender, connect

    sender = Sender(email="news@example.com", alias="Example News")
    async with await connect("example.com", "secret", sender,
                             "https://grpc.kannon.email:443") as client:
        await client.send_template(
            [Recipient(email="jane@example.org", fields={"name": "Jane"})],
            "Welcome",
            "welcome-template",
        )
"""

from kannon.client import KannonClient, connect
from kannon.config_loader import KannonConfig, connect_from_config, load_config
from kannon.errors import ClientConnectionError, KannonError, SendMailError
from kannon.models import Attachment, Recipient, Sender

__all__ = [
    "Attachment",
    "ClientConnectionError",
    "KannonClient",
    "KannonConfig",
    "KannonError",
    "Recipient",
    "SendMailError",
    "Sender",
    "connect",
    "connect_from_config",
    "load_config",
]
