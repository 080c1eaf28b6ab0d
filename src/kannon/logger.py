# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Logging utilities for the Kannon client.

The library never configures handlers. Applications (and the ``kannon``
command) set level and format through ``logging.basicConfig()``.

Example:
    Typical usage in a module::

        from kannon.logger import get_logger

        logger = get_logger("client")
        logger.info("Connected")
"""

import logging

ROOT_LOGGER_NAME = "kannon"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger in the ``kannon`` hierarchy.

    Args:
        name: Child logger name. ``None`` returns the package root logger.

    Returns:
        A ``logging.Logger`` named ``kannon`` or ``kannon.<name>``.

    Example:
        >>> get_logger("client").name
        'kannon.client'
    """
    if not name:
        return logging.getLogger(ROOT_LOGGER_NAME)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
