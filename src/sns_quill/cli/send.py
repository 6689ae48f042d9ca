"""Submission of signed messages to the replica."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Sequence, TextIO

from sns_quill.candid import decode_args, decode_response
from sns_quill.cli.operator import Operator
from sns_quill.cli.reporting import EXIT_SUCCESS, report
from sns_quill.client import ReplicaClient
from sns_quill.errors import DecodingError, SnsQuillError, TransportError
from sns_quill.signing import Ingress, SignedMessage

LOGGER = logging.getLogger(__name__)

CONFIRM_PROMPT = "\nDo you want to send this message? [y/N]"


class SendDeclined(Exception):
    """The operator declined to send an update call."""


@dataclass(frozen=True)
class SendOptions:
    dry_run: bool = False
    yes: bool = False


def _require_client(client: ReplicaClient | None) -> ReplicaClient:
    if client is None:
        raise TransportError("no replica client to send the message with")
    return client


def _render_args(method_name: str, arg: bytes) -> str:
    try:
        return json.dumps(decode_args(method_name, arg), sort_keys=True)
    except DecodingError as exc:
        LOGGER.debug("could not decode arguments of %s: %s", method_name, exc)
        return arg.hex()


def print_response(stdout: TextIO, method_name: str, blob: bytes) -> None:
    decoded = decode_response(method_name, blob)
    value = decoded[0] if len(decoded) == 1 else decoded
    print(f"Response: {json.dumps(value, indent=2, sort_keys=True)}", file=stdout)


def send_ingress(
    client: ReplicaClient | None,
    message: Ingress,
    *,
    options: SendOptions,
    operator: Operator,
    stdout: TextIO,
) -> str | None:
    """Display and submit one message; return the method name once it was sent."""
    parsed = message.parse()
    print("Sending message with\n", file=stdout)
    print(f"  Call type:   {message.call_type}", file=stdout)
    print(f"  Sender:      {parsed.sender}", file=stdout)
    print(f"  Canister id: {parsed.canister_id}", file=stdout)
    print(f"  Method name: {parsed.method_name}", file=stdout)
    print(f"  Arguments:   {_render_args(parsed.method_name, parsed.arg)}", file=stdout)

    if options.dry_run:
        return None
    client = _require_client(client)

    if message.call_type == "query":
        reply = client.query(parsed.canister_id, message.content_bytes())
        print_response(stdout, parsed.method_name, reply)
        return parsed.method_name

    if not options.yes and not operator.confirm(CONFIRM_PROMPT):
        raise SendDeclined()
    if message.request_id is None:
        raise DecodingError("update message has no request_id")
    print(f"Request ID: 0x{message.request_id}", file=stdout)
    client.call(parsed.canister_id, message.content_bytes(), message.request_id)
    return parsed.method_name


def send_message(
    client: ReplicaClient | None,
    message: SignedMessage,
    *,
    options: SendOptions,
    operator: Operator,
    stdout: TextIO,
) -> None:
    if isinstance(message, Ingress):
        send_ingress(client, message, options=options, operator=operator, stdout=stdout)
        return
    method_name = send_ingress(
        client, message.ingress, options=options, operator=operator, stdout=stdout
    )
    if method_name is None:
        return
    reply = _require_client(client).wait_for_status(message.request_status)
    print_response(stdout, method_name, reply)


def send_all(
    client: ReplicaClient | None,
    messages: Sequence[SignedMessage],
    *,
    options: SendOptions,
    operator: Operator,
    stdout: TextIO,
    stderr: TextIO,
) -> int:
    """Send each message independently; the worst exit code wins."""
    exit_code = EXIT_SUCCESS
    for index, message in enumerate(messages):
        try:
            send_message(client, message, options=options, operator=operator, stdout=stdout)
        except SendDeclined:
            return exit_code
        except SnsQuillError as exc:
            LOGGER.debug("message %d of %d failed", index + 1, len(messages))
            code = report(stderr, exc)
            exit_code = max(exit_code, code)
    return exit_code


__all__ = [
    "SendDeclined",
    "SendOptions",
    "print_response",
    "send_all",
    "send_message",
]
