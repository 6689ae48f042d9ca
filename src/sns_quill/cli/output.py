"""JSON and QR printers for signed messages."""

from __future__ import annotations

import base64
import gzip
import json
from typing import Any, Sequence, TextIO

import qrcode
from pydantic import BaseModel

from sns_quill.cli.operator import Operator

SCANNER_URL = "https://p5deo-6aaaa-aaaab-aaaxq-cai.raw.ic0.app/"


def to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    return value


def print_json(stdout: TextIO, payload: Any) -> None:
    """Write compact JSON; a closed pipe on the reading side is not an error."""
    try:
        stdout.write(json.dumps(to_jsonable(payload), separators=(",", ":")))
        stdout.write("\n")
        stdout.flush()
    except BrokenPipeError:
        pass


def qr_payload(message: Any) -> str:
    raw = json.dumps(to_jsonable(message), separators=(",", ":")).encode("utf-8")
    return base64.b64encode(gzip.compress(raw)).decode("ascii")


def print_qr(stdout: TextIO, data: str) -> None:
    code = qrcode.QRCode(border=2)
    code.add_data(data)
    code.make(fit=True)
    code.print_ascii(out=stdout, invert=True)


def print_messages(
    stdout: TextIO,
    messages: Sequence[Any],
    *,
    qr: bool,
    operator: Operator,
) -> None:
    if not qr:
        print_json(stdout, list(messages))
        return
    for index, message in enumerate(messages):
        print_qr(stdout, qr_payload(message))
        if index != len(messages) - 1:
            operator.pause()
