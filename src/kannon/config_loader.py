# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Configuration loader for Kannon client settings.

This module provides utilities for loading connection settings from
INI-style configuration files or environment variables.

Example:
    Configuration file format (kannon.ini)::

        [kannon]
        host = https://grpc.kannon.email:443
        domain = example.com
        key = secret
        sender_email = news@example.com
        sender_alias = Example News
        connect_timeout = 10

    Loading and connecting::

        config = load_config("/etc/kannon/kannon.ini")
        client = await connect_from_config(config)
"""

from __future__ import annotations

import configparser
import os
from dataclasses import dataclass, field
from pathlib import Path

from kannon.client import KannonClient, connect
from kannon.logger import get_logger
from kannon.models import Sender

DEFAULT_HOST = "https://grpc.kannon.email:443"
SECTION = "kannon"


@dataclass
class KannonConfig:
    """Connection settings for a Kannon client.

    Attributes:
        host: Endpoint URI of the Kannon API.
        domain: Sending domain.
        key: Secret key of the domain.
        sender_email: Address emails are sent from.
        sender_alias: Display name of the sender.
        connect_timeout: Seconds allowed for connecting, ``None`` for no limit.
    """

    host: str = DEFAULT_HOST
    domain: str | None = None
    key: str | None = field(default=None, repr=False)
    sender_email: str | None = None
    sender_alias: str = ""
    connect_timeout: float | None = None

    @property
    def sender(self) -> Sender:
        """Sender built from ``sender_email`` and ``sender_alias``."""
        self.require()
        return Sender(email=self.sender_email, alias=self.sender_alias)

    def require(self) -> KannonConfig:
        """Check that every setting needed to connect is present.

        Returns:
            KannonConfig: ``self``, for chaining.

        Raises:
            ValueError: Listing the missing settings.
        """
        missing = [
            name for name in ("domain", "key", "sender_email") if not getattr(self, name)
        ]
        if missing:
            raise ValueError(f"Missing Kannon settings: {', '.join(missing)}")
        return self


logger = get_logger("config_loader")


def _parse_timeout(value: str | None, source: str) -> float | None:
    if value is None or not value.strip():
        return None
    try:
        timeout = float(value)
    except ValueError:
        timeout = None
    # nan fails the comparison as well
    if timeout is None or not timeout > 0:
        logger.warning(f"Invalid value for {source}, using no connect timeout")
        return None
    return timeout


def load_config(config_path: str | None = None) -> KannonConfig:
    """Load Kannon settings from config file or environment.

    Priority: config file > environment variables > defaults.

    Environment variables:
        KANNON_HOST: Endpoint URI
        KANNON_DOMAIN: Sending domain
        KANNON_KEY: Secret key of the domain
        KANNON_SENDER_EMAIL: Sender address
        KANNON_SENDER_ALIAS: Sender display name
        KANNON_CONNECT_TIMEOUT: Connect timeout in seconds

    Args:
        config_path: Optional path to an INI file with a ``[kannon]`` section.

    Returns:
        KannonConfig with parsed settings, using defaults for missing values.
    """
    config_values: dict = {
        "host": os.environ.get("KANNON_HOST") or DEFAULT_HOST,
        "domain": os.environ.get("KANNON_DOMAIN"),
        "key": os.environ.get("KANNON_KEY"),
        "sender_email": os.environ.get("KANNON_SENDER_EMAIL"),
        "sender_alias": os.environ.get("KANNON_SENDER_ALIAS", ""),
        "connect_timeout": _parse_timeout(
            os.environ.get("KANNON_CONNECT_TIMEOUT"), "KANNON_CONNECT_TIMEOUT"
        ),
    }

    if config_path and Path(config_path).exists():
        config = configparser.ConfigParser(interpolation=None)
        config.read(config_path)

        if config.has_section(SECTION):
            def get_str(key: str, default: str | None = None) -> str | None:
                value = config.get(SECTION, key, fallback=None)
                return value.strip() if value else default

            for key in ("host", "domain", "key", "sender_email", "sender_alias"):
                config_values[key] = get_str(key, config_values[key])

            if config.has_option(SECTION, "connect_timeout"):
                config_values["connect_timeout"] = _parse_timeout(
                    config.get(SECTION, "connect_timeout"), f"[{SECTION}] connect_timeout"
                )
    elif config_path:
        logger.warning(f"Config file {config_path} not found, using environment")

    return KannonConfig(**config_values)


async def connect_from_config(config: KannonConfig) -> KannonClient:
    """Connect a client with the settings of ``config``.

    Raises:
        ValueError: If required settings are missing.
        ClientConnectionError: If the connection fails.
    """
    config.require()
    return await connect(
        config.domain,
        config.key,
        config.sender,
        config.host,
        connect_timeout=config.connect_timeout,
    )
