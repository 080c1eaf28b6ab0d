# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Command-line interface for the Kannon client.

Connection settings come from an INI file (``--config`` or
``KANNON_CONFIG``) and ``KANNON_*`` environment variables, see
:mod:`kannon.config_loader`.

Usage:
    kannon send-html --subject "Hello" --html-file body.html --to jane@example.org
    kannon send-template --subject "Welcome" --template-id welcome \\
        --recipients-csv subscribers.csv --attach terms.pdf
    kannon auth-header

Example:
    $ export KANNON_DOMAIN=example.com KANNON_KEY=secret
    $ export KANNON_SENDER_EMAIL=news@example.com
    $ kannon send-html --subject "Hi" --html "<p>Hi {{ name }}</p>" \\
        --to jane@example.org --field name=Jane
"""

from __future__ import annotations

import asyncio
import csv
import logging
import sys
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console

from kannon.auth import basic_auth_header
from kannon.client import KannonClient
from kannon.config_loader import KannonConfig, connect_from_config, load_config
from kannon.errors import KannonError
from kannon.models import Attachment, Recipient

console = Console()
err_console = Console(stderr=True)


def run_async(coro):
    """Execute an async coroutine synchronously from CLI context.

    Args:
        coro: Async coroutine to execute.

    Returns:
        The coroutine's return value.
    """
    return asyncio.run(coro)


def print_error(message: str) -> None:
    """Print a formatted error message to stderr."""
    err_console.print(f"[red]Error:[/red] {message}")


def print_success(message: str) -> None:
    """Print a formatted success message with checkmark."""
    console.print(f"[green]✓[/green] {message}")


def parse_fields(pairs: tuple[str, ...]) -> dict[str, str]:
    """Turn ``KEY=VALUE`` options into a dict.

    Raises:
        click.BadParameter: If a pair has no ``=`` or an empty key.
    """
    fields: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"expected KEY=VALUE, got {pair!r}", param_hint="--field")
        fields[key.strip()] = value
    return fields


def load_recipients(
    to: tuple[str, ...],
    csv_path: str | None,
    fields: dict[str, str],
) -> list[Recipient]:
    """Collect recipients from ``--to`` addresses and a CSV file.

    CSV files need an ``email`` column; every other column becomes a
    template field. ``fields`` are added to every recipient.
    """
    recipients = [Recipient(email=address, fields=dict(fields)) for address in to]
    if csv_path:
        with open(csv_path, newline="", encoding="utf-8") as f:
            reader = csv.DictReader(f)
            if not reader.fieldnames or "email" not in reader.fieldnames:
                raise click.BadParameter(
                    "CSV file must have an 'email' column", param_hint="--recipients-csv"
                )
            for row in reader:
                email = (row.pop("email") or "").strip()
                if not email:
                    continue
                row_fields = {k: v or "" for k, v in row.items() if k}
                row_fields.update(fields)
                recipients.append(Recipient(email=email, fields=row_fields))
    return recipients


def _get_config(ctx: click.Context) -> KannonConfig:
    config: KannonConfig = ctx.obj["config"]
    try:
        return config.require()
    except ValueError as e:
        print_error(str(e))
        sys.exit(1)


def _send(config: KannonConfig, send) -> None:
    """Connect, run ``send(client)`` and report the outcome."""

    async def _run() -> None:
        client: KannonClient = await connect_from_config(config)
        async with client:
            await send(client)

    try:
        run_async(_run())
    except (KannonError, ValidationError) as e:
        print_error(str(e))
        sys.exit(1)


def recipient_options(func):
    """Options shared by the send commands."""
    func = click.option(
        "--attach", "attachments", multiple=True,
        type=click.Path(exists=True, dir_okay=False), help="File to attach (repeatable).",
    )(func)
    func = click.option(
        "--field", "fields", multiple=True, metavar="KEY=VALUE",
        help="Template field applied to every recipient (repeatable).",
    )(func)
    func = click.option(
        "--recipients-csv", type=click.Path(exists=True, dir_okay=False),
        help="CSV file with an 'email' column; other columns become fields.",
    )(func)
    func = click.option("--to", multiple=True, help="Recipient address (repeatable).")(func)
    func = click.option("--subject", "-s", required=True, help="Email subject.")(func)
    return func


def _read_html(path: str) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        print_error(f"Not valid UTF-8 in --html-file {path}: {e}")
        sys.exit(1)


def _prepare(
    to: tuple[str, ...],
    recipients_csv: str | None,
    fields: tuple[str, ...],
    attachments: tuple[str, ...],
) -> tuple[list[Recipient], list[Attachment]]:
    try:
        recipients = load_recipients(to, recipients_csv, parse_fields(fields))
    except UnicodeDecodeError as e:
        print_error(f"Not valid UTF-8 in --recipients-csv {recipients_csv}: {e}")
        sys.exit(1)
    if not recipients:
        raise click.UsageError("No recipients: use --to or --recipients-csv.")
    return recipients, [Attachment.from_path(path) for path in attachments]


@click.group()
@click.version_option(package_name="kannon-client")
@click.option(
    "--config", "config_path", envvar="KANNON_CONFIG",
    type=click.Path(dir_okay=False), help="INI file with a [kannon] section.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """kannon: send emails through a Kannon server."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["config"] = load_config(config_path)


@main.command("send-html")
@recipient_options
@click.option("--html", "html", help="HTML body.")
@click.option(
    "--html-file", type=click.Path(exists=True, dir_okay=False), help="File with the HTML body.",
)
@click.pass_context
def send_html_cmd(
    ctx: click.Context,
    subject: str,
    to: tuple[str, ...],
    recipients_csv: str | None,
    fields: tuple[str, ...],
    attachments: tuple[str, ...],
    html: str | None,
    html_file: str | None,
) -> None:
    """Send a raw HTML email.

    Example:

        kannon send-html -s "Hi" --html-file body.html --to jane@example.org
    """
    if (html is None) == (html_file is None):
        raise click.UsageError("Use exactly one of --html or --html-file.")
    body = html if html is not None else _read_html(html_file)
    recipients, files = _prepare(to, recipients_csv, fields, attachments)
    config = _get_config(ctx)

    _send(config, lambda client: client.send_email(recipients, subject, body, files))
    print_success(f"HTML email accepted for {len(recipients)} recipient(s)")


@main.command("send-template")
@recipient_options
@click.option("--template-id", "-t", required=True, help="Template stored on Kannon.")
@click.pass_context
def send_template_cmd(
    ctx: click.Context,
    subject: str,
    to: tuple[str, ...],
    recipients_csv: str | None,
    fields: tuple[str, ...],
    attachments: tuple[str, ...],
    template_id: str,
) -> None:
    """Send a template stored on Kannon.

    Example:

        kannon send-template -s "Welcome" -t welcome --recipients-csv users.csv
    """
    recipients, files = _prepare(to, recipients_csv, fields, attachments)
    config = _get_config(ctx)

    _send(config, lambda client: client.send_template(recipients, subject, template_id, files))
    print_success(f"Template '{template_id}' accepted for {len(recipients)} recipient(s)")


@main.command("auth-header")
@click.pass_context
def auth_header_cmd(ctx: click.Context) -> None:
    """Print the authorization header for the configured domain."""
    config: KannonConfig = ctx.obj["config"]
    if not config.domain or not config.key:
        print_error("Missing Kannon settings: domain and key are required")
        sys.exit(1)
    click.echo(basic_auth_header(config.domain, config.key))


if __name__ == "__main__":
    main()
