# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Pydantic models for the values handed to the Kannon client.

Models:
    - Sender: Identity emails are sent from
    - Recipient: One addressee with its template fields
    - Attachment: A file attached to the email

Each model is frozen and converts itself to the matching wire message
with ``to_proto()``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from kannon import protos


class Sender(BaseModel):
    """Identity emails are sent from.

    Attributes:
        email: Sender address, it must belong to the authenticated domain.
        alias: Display name shown next to the address.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    email: Annotated[str, Field(description="Sender email address")]
    alias: Annotated[str, Field(default="", description="Display name of the sender")]

    def to_proto(self) -> protos.Sender:
        return protos.Sender(email=self.email, alias=self.alias)


class Recipient(BaseModel):
    """One addressee of a send call.

    Attributes:
        email: Recipient address.
        fields: Placeholder values substituted by the server for this
            recipient. May be empty.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    email: Annotated[str, Field(description="Recipient email address")]
    fields: Annotated[
        dict[str, str],
        Field(default_factory=dict, description="Per-recipient template fields"),
    ]

    def to_proto(self) -> protos.Recipient:
        return protos.Recipient(email=self.email, fields=dict(self.fields))


class Attachment(BaseModel):
    """Binary file attached to an email.

    Content is passed through untouched; size and type checks belong to
    the Kannon server.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    filename: Annotated[str, Field(description="File name shown to the recipient")]
    content: Annotated[bytes, Field(description="Raw file content", repr=False)]

    @classmethod
    def from_path(cls, path: str | Path, filename: str | None = None) -> Attachment:
        """Read an attachment from disk.

        Args:
            path: File to read.
            filename: Name to use in the email, defaults to the file's name.

        Returns:
            Attachment: Populated instance.
        """
        path = Path(path)
        return cls(filename=filename or path.name, content=path.read_bytes())

    def to_proto(self) -> protos.Attachment:
        return protos.Attachment(filename=self.filename, content=self.content)

    def __repr__(self) -> str:
        return f"Attachment(filename='{self.filename}', size={len(self.content)})"
