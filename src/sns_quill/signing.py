"""Envelope construction, request ids and signed message schemas.

Request ids follow the representation-independent hash of the request
content: each field contributes ``sha256(key) || hash(value)``, the pairs are
sorted and the concatenation is hashed again. Values hash as:
- bytes / text: sha256 of the raw bytes
- int: sha256 of the unsigned LEB128 encoding
- list: sha256 of the concatenated element hashes
- dict: the same map hash, recursively

The signed message is ``b"\\x0aic-request" || request_id``.
"""

from __future__ import annotations

import hashlib
import logging
import os
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, List, Literal, Optional, Union

import cbor2
from ic.principal import Principal
from pydantic import BaseModel, ConfigDict, Field, field_validator

from sns_quill.candid.methods import CallType, call_type_for
from sns_quill.canisters import TargetCanister
from sns_quill.crypto.accounts import parse_principal
from sns_quill.crypto.identity import Identity
from sns_quill.errors import DecodingError, InputValidationError, SigningError

LOGGER = logging.getLogger(__name__)

DEFAULT_INGRESS_EXPIRY_SECONDS = 300
REQUEST_DOMAIN_SEPARATOR = b"\x0aic-request"
CBOR_SELF_DESCRIBE_TAG = 55799
NONCE_LEN = 8


def _leb128(value: int) -> bytes:
    if value < 0:
        raise ValueError("request id integers must be unsigned")
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def _hash_value(value: Any) -> bytes:
    if isinstance(value, bool):
        raise ValueError("booleans are not allowed in request content")
    if isinstance(value, (bytes, bytearray)):
        return hashlib.sha256(bytes(value)).digest()
    if isinstance(value, str):
        return hashlib.sha256(value.encode("utf-8")).digest()
    if isinstance(value, int):
        return hashlib.sha256(_leb128(value)).digest()
    if isinstance(value, (list, tuple)):
        return hashlib.sha256(b"".join(_hash_value(item) for item in value)).digest()
    if isinstance(value, Mapping):
        return request_id(value)
    raise ValueError(f"unsupported request content value: {type(value).__name__}")


def request_id(content: Mapping[str, Any]) -> bytes:
    pairs = sorted(
        hashlib.sha256(key.encode("utf-8")).digest() + _hash_value(value)
        for key, value in content.items()
    )
    return hashlib.sha256(b"".join(pairs)).digest()


def encode_envelope(envelope: dict[str, Any]) -> bytes:
    return cbor2.dumps(cbor2.CBORTag(CBOR_SELF_DESCRIBE_TAG, envelope))


def _thaw(value: Any) -> Any:
    # Tag contents may decode as immutable maps and tuples.
    if isinstance(value, Mapping):
        return {key: _thaw(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_thaw(item) for item in value]
    return value


def decode_envelope(data: bytes) -> dict[str, Any]:
    """Decode a CBOR envelope into plain dicts and lists."""
    try:
        decoded = cbor2.loads(data)
    except Exception as exc:
        raise DecodingError(f"invalid CBOR envelope: {exc}") from exc
    while isinstance(decoded, cbor2.CBORTag) and decoded.tag == CBOR_SELF_DESCRIBE_TAG:
        decoded = decoded.value
    if not isinstance(decoded, Mapping):
        raise DecodingError("CBOR envelope must be a map")
    return _thaw(decoded)


def _hex_bytes(value: str, *, field_name: str) -> str:
    try:
        bytes.fromhex(value)
    except ValueError as exc:
        raise ValueError(f"{field_name} must be hex") from exc
    return value


class Ingress(BaseModel):
    model_config = ConfigDict(extra="forbid")

    call_type: Literal["query", "update"]
    request_id: Optional[str] = None
    content: str

    @field_validator("content")
    @classmethod
    def _check_content(cls, value: str) -> str:
        return _hex_bytes(value, field_name="content")

    @field_validator("request_id")
    @classmethod
    def _check_request_id(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return _hex_bytes(value, field_name="request_id")

    def content_bytes(self) -> bytes:
        return bytes.fromhex(self.content)

    def parse(self) -> "ParsedIngress":
        envelope = decode_envelope(self.content_bytes())
        content = envelope.get("content")
        if not isinstance(content, Mapping):
            raise DecodingError("envelope has no content map")
        try:
            return ParsedIngress(
                sender=Principal(bytes=bytes(content["sender"])).to_str(),
                canister_id=Principal(bytes=bytes(content["canister_id"])).to_str(),
                method_name=str(content["method_name"]),
                arg=bytes(content["arg"]),
            )
        except KeyError as exc:
            raise DecodingError(f"envelope content is missing {exc.args[0]}") from exc


class RequestStatus(BaseModel):
    model_config = ConfigDict(extra="forbid")

    canister_id: str
    request_id: str
    content: str

    @field_validator("request_id", "content")
    @classmethod
    def _check_hex(cls, value: str) -> str:
        return _hex_bytes(value, field_name="request status field")

    def content_bytes(self) -> bytes:
        return bytes.fromhex(self.content)


class IngressWithRequestId(BaseModel):
    model_config = ConfigDict(extra="forbid")

    ingress: Ingress
    request_status: RequestStatus


SignedMessage = Union[Ingress, IngressWithRequestId]


@dataclass(frozen=True)
class ParsedIngress:
    sender: str
    canister_id: str
    method_name: str
    arg: bytes


class SignedMessageFile(BaseModel):
    """Any accepted shape of a signed message file."""

    model_config = ConfigDict(extra="forbid")

    messages: List[Union[IngressWithRequestId, Ingress]] = Field(default_factory=list)


def parse_signed_messages(payload: object) -> list[SignedMessage]:
    items = payload if isinstance(payload, list) else [payload]
    try:
        return list(SignedMessageFile.model_validate({"messages": items}).messages)
    except Exception as exc:
        raise InputValidationError(f"invalid signed message JSON: {exc}") from exc


def _random_nonce() -> bytes:
    return os.urandom(NONCE_LEN)


@dataclass(frozen=True)
class Signer:
    identity: Identity
    ingress_expiry_seconds: int = DEFAULT_INGRESS_EXPIRY_SECONDS
    clock_ns: Callable[[], int] = field(default=time.time_ns)
    nonce_source: Callable[[], bytes] = field(default=_random_nonce)

    def _expiry(self) -> int:
        return self.clock_ns() + self.ingress_expiry_seconds * 1_000_000_000

    def _sender_bytes(self) -> bytes:
        return self.identity.sender().bytes

    def _envelope(self, content: dict[str, Any]) -> tuple[bytes, bytes]:
        rid = request_id(content)
        envelope: dict[str, Any] = {"content": content}
        if not self.identity.is_anonymous:
            envelope["sender_pubkey"] = self.identity.public_key_der()
            envelope["sender_sig"] = self.identity.sign(REQUEST_DOMAIN_SEPARATOR + rid)
        return rid, encode_envelope(envelope)

    def sign_call(self, method_name: str, arg: bytes, target: TargetCanister) -> Ingress:
        """Sign a query or update call envelope."""
        call_type = call_type_for(method_name)
        canister = parse_principal(target.canister_id)
        content: dict[str, Any] = {
            "request_type": "query" if call_type is CallType.QUERY else "call",
            "sender": self._sender_bytes(),
            "canister_id": canister.bytes,
            "method_name": method_name,
            "arg": bytes(arg),
            "ingress_expiry": self._expiry(),
        }
        if call_type is CallType.UPDATE:
            content["nonce"] = self.nonce_source()
        rid, encoded = self._envelope(content)
        LOGGER.debug(
            "signed %s %s on %s request_id=%s",
            call_type.value,
            method_name,
            target.canister_id,
            rid.hex(),
        )
        return Ingress(
            call_type=call_type.value,
            request_id=rid.hex() if call_type is CallType.UPDATE else None,
            content=encoded.hex(),
        )

    def sign_request_status(self, canister_id: str, rid: bytes) -> RequestStatus:
        content = {
            "request_type": "read_state",
            "sender": self._sender_bytes(),
            "paths": [[b"request_status", rid]],
            "ingress_expiry": self._expiry(),
        }
        _, encoded = self._envelope(content)
        return RequestStatus(canister_id=canister_id, request_id=rid.hex(), content=encoded.hex())

    def sign_with_status(
        self, method_name: str, arg: bytes, target: TargetCanister
    ) -> IngressWithRequestId:
        ingress = self.sign_call(method_name, arg, target)
        if ingress.request_id is None:
            raise SigningError(f"{method_name} is a query and has no request status")
        status = self.sign_request_status(target.canister_id, bytes.fromhex(ingress.request_id))
        return IngressWithRequestId(ingress=ingress, request_status=status)

    def sign_message(self, method_name: str, arg: bytes, target: TargetCanister) -> SignedMessage:
        if call_type_for(method_name) is CallType.QUERY:
            return self.sign_call(method_name, arg, target)
        return self.sign_with_status(method_name, arg, target)
