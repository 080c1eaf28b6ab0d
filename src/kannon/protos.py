# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Wire-format messages and service stub for the Kannon mailer API.

The Kannon schema is made of three proto files:

- ``kannon/mailer/types/email.proto``: ``Sender`` and ``Recipient``
- ``kannon/mailer/types/send.proto``: ``EmailToSend``, the envelope handed
  to the sending workers
- ``kannon/mailer/apiv1/mailerapiv1.proto``: the ``Mailer`` service with
  ``SendHTML`` and ``SendTemplate``, their request messages, ``Attachment``
  and ``SendRes``

The file descriptors are declared here with ``descriptor_pb2`` and
registered in the default descriptor pool, so message classes behave
exactly like ``protoc`` generated ones without a code generation step.

Example:
    Building a request by hand::

        from kannon import protos

        request = protos.SendHTMLReq(
            sender=protos.Sender(email="a@example.com", alias="A"),
            subject="Hi",
            html="<p>Hi</p>",
        )
        stub = protos.MailerStub(channel)
        await stub.SendHTML(request, metadata=...)
"""

from __future__ import annotations

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory
from google.protobuf import timestamp_pb2  # noqa: F401  registers google/protobuf/timestamp.proto

_Field = descriptor_pb2.FieldDescriptorProto

TYPES_PACKAGE = "pkg.kannon.mailer.types"
APIV1_PACKAGE = "pkg.kannon.mailer.apiv1"
SERVICE_NAME = f"{APIV1_PACKAGE}.Mailer"
SEND_HTML_METHOD = f"/{SERVICE_NAME}/SendHTML"
SEND_TEMPLATE_METHOD = f"/{SERVICE_NAME}/SendTemplate"

_TIMESTAMP = ".google.protobuf.Timestamp"


def _scalar(name: str, number: int, kind: int) -> _Field:
    return _Field(name=name, number=number, type=kind, label=_Field.LABEL_OPTIONAL)


def _string(name: str, number: int) -> _Field:
    return _scalar(name, number, _Field.TYPE_STRING)


def _bytes(name: str, number: int) -> _Field:
    return _scalar(name, number, _Field.TYPE_BYTES)


def _message(name: str, number: int, type_name: str, repeated: bool = False) -> _Field:
    label = _Field.LABEL_REPEATED if repeated else _Field.LABEL_OPTIONAL
    return _Field(
        name=name,
        number=number,
        type=_Field.TYPE_MESSAGE,
        label=label,
        type_name=type_name,
    )


def _string_map(
    message: descriptor_pb2.DescriptorProto,
    full_name: str,
    name: str,
    number: int,
) -> None:
    """Add a ``map<string, string>`` field to ``message``.

    Maps are encoded as a repeated nested ``<Name>Entry`` message flagged
    with the ``map_entry`` option, the same layout protoc produces.
    """
    entry_name = "".join(part.capitalize() for part in name.split("_")) + "Entry"
    entry = message.nested_type.add(name=entry_name)
    entry.field.extend([_string("key", 1), _string("value", 2)])
    entry.options.map_entry = True
    message.field.append(_message(name, number, f".{full_name}.{entry_name}", repeated=True))


def _email_file() -> descriptor_pb2.FileDescriptorProto:
    proto = descriptor_pb2.FileDescriptorProto(
        name="kannon/mailer/types/email.proto",
        package=TYPES_PACKAGE,
        syntax="proto3",
    )
    sender = proto.message_type.add(name="Sender")
    sender.field.extend([_string("email", 1), _string("alias", 2)])

    recipient = proto.message_type.add(name="Recipient")
    recipient.field.append(_string("email", 1))
    _string_map(recipient, f"{TYPES_PACKAGE}.Recipient", "fields", 2)
    return proto


def _send_file() -> descriptor_pb2.FileDescriptorProto:
    proto = descriptor_pb2.FileDescriptorProto(
        name="kannon/mailer/types/send.proto",
        package=TYPES_PACKAGE,
        syntax="proto3",
    )
    email = proto.message_type.add(name="EmailToSend")
    email.field.extend([
        _string("email_id", 1),
        _string("from", 2),
        _string("to", 3),
        _string("return_path", 4),
        _string("subject", 5),
        _bytes("body", 6),
    ])
    _string_map(email, f"{TYPES_PACKAGE}.EmailToSend", "headers", 7)
    return proto


def _send_request(
    proto: descriptor_pb2.FileDescriptorProto,
    name: str,
    content_field: str,
) -> None:
    """Declare a send request: both requests share one envelope layout."""
    request = proto.message_type.add(name=name)
    request.field.extend([
        _message("sender", 1, f".{TYPES_PACKAGE}.Sender"),
        _string("subject", 2),
        _string(content_field, 3),
        _message("scheduled_time", 4, _TIMESTAMP),
        _message("recipients", 5, f".{TYPES_PACKAGE}.Recipient", repeated=True),
        _message("attachments", 6, f".{APIV1_PACKAGE}.Attachment", repeated=True),
    ])
    _string_map(request, f"{APIV1_PACKAGE}.{name}", "global_fields", 7)


def _mailer_file() -> descriptor_pb2.FileDescriptorProto:
    proto = descriptor_pb2.FileDescriptorProto(
        name="kannon/mailer/apiv1/mailerapiv1.proto",
        package=APIV1_PACKAGE,
        syntax="proto3",
        dependency=[
            "kannon/mailer/types/email.proto",
            "google/protobuf/timestamp.proto",
        ],
    )
    attachment = proto.message_type.add(name="Attachment")
    attachment.field.extend([_string("filename", 1), _bytes("content", 2)])

    _send_request(proto, "SendHTMLReq", "html")
    _send_request(proto, "SendTemplateReq", "template_id")

    response = proto.message_type.add(name="SendRes")
    response.field.extend([
        _string("message_id", 1),
        _string("template_id", 2),
        _message("scheduled_time", 3, _TIMESTAMP),
    ])

    service = proto.service.add(name="Mailer")
    service.method.add(
        name="SendHTML",
        input_type=f".{APIV1_PACKAGE}.SendHTMLReq",
        output_type=f".{APIV1_PACKAGE}.SendRes",
    )
    service.method.add(
        name="SendTemplate",
        input_type=f".{APIV1_PACKAGE}.SendTemplateReq",
        output_type=f".{APIV1_PACKAGE}.SendRes",
    )
    return proto


def _register(proto: descriptor_pb2.FileDescriptorProto):
    pool = descriptor_pool.Default()
    try:
        return pool.FindFileByName(proto.name)
    except KeyError:
        return pool.AddSerializedFile(proto.SerializeToString())


EMAIL_DESCRIPTOR = _register(_email_file())
SEND_DESCRIPTOR = _register(_send_file())
MAILER_DESCRIPTOR = _register(_mailer_file())

Sender = message_factory.GetMessageClass(EMAIL_DESCRIPTOR.message_types_by_name["Sender"])
Recipient = message_factory.GetMessageClass(EMAIL_DESCRIPTOR.message_types_by_name["Recipient"])
EmailToSend = message_factory.GetMessageClass(SEND_DESCRIPTOR.message_types_by_name["EmailToSend"])
Attachment = message_factory.GetMessageClass(MAILER_DESCRIPTOR.message_types_by_name["Attachment"])
SendHTMLReq = message_factory.GetMessageClass(MAILER_DESCRIPTOR.message_types_by_name["SendHTMLReq"])
SendTemplateReq = message_factory.GetMessageClass(
    MAILER_DESCRIPTOR.message_types_by_name["SendTemplateReq"]
)
SendRes = message_factory.GetMessageClass(MAILER_DESCRIPTOR.message_types_by_name["SendRes"])


class MailerStub:
    """Client stub for the ``Mailer`` service, in the shape grpc codegen emits."""

    def __init__(self, channel):
        """Bind the service methods to a channel.

        Args:
            channel: A ``grpc.aio.Channel`` (or any object exposing
                ``unary_unary``).
        """
        self.SendHTML = channel.unary_unary(
            SEND_HTML_METHOD,
            request_serializer=SendHTMLReq.SerializeToString,
            response_deserializer=SendRes.FromString,
        )
        self.SendTemplate = channel.unary_unary(
            SEND_TEMPLATE_METHOD,
            request_serializer=SendTemplateReq.SerializeToString,
            response_deserializer=SendRes.FromString,
        )


__all__ = [
    "Attachment",
    "EmailToSend",
    "MailerStub",
    "Recipient",
    "SEND_HTML_METHOD",
    "SEND_TEMPLATE_METHOD",
    "SERVICE_NAME",
    "SendHTMLReq",
    "SendRes",
    "SendTemplateReq",
    "Sender",
]
