"""HTTP client for the replica's v2 canister endpoints."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from sns_quill.crypto.accounts import parse_principal
from sns_quill.errors import (
    DecodingError,
    ReplicaRejectError,
    ReplicaRequestError,
    StatusTimeoutError,
    TransportError,
)
from sns_quill.signing import RequestStatus, decode_envelope

LOGGER = logging.getLogger(__name__)

DEFAULT_IC_URL = "https://ic0.app"
IC_URL_ENV_VAR = "IC_URL"
CBOR_CONTENT_TYPE = "application/cbor"

PENDING_STATUSES = frozenset({"received", "processing", "unknown"})


@dataclass(frozen=True)
class TransportConfig:
    ic_url: str = DEFAULT_IC_URL
    timeout: float = 300.0
    poll_interval: float = 1.0


def _flatten_forks(tree: Any) -> list[Any]:
    if not isinstance(tree, list) or not tree:
        return []
    if tree[0] == 0:
        return []
    if tree[0] == 1:
        return _flatten_forks(tree[1]) + _flatten_forks(tree[2])
    return [tree]


def lookup_path(tree: Any, path: list[bytes]) -> bytes | None:
    """Find the leaf at ``path`` in a certificate hash tree."""
    if not path:
        if isinstance(tree, list) and tree and tree[0] == 3:
            return bytes(tree[1])
        return None
    label = path[0]
    for node in _flatten_forks(tree):
        if node[0] == 2 and bytes(node[1]) == label:
            return lookup_path(node[2], path[1:])
    return None


def _read_leb128(data: bytes) -> int:
    value = 0
    shift = 0
    for byte in data:
        value |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return value
        shift += 7
    raise DecodingError("truncated LEB128 value")


@dataclass
class ReplicaClient:
    config: TransportConfig = field(default_factory=TransportConfig)
    sleep: Callable[[float], None] = time.sleep
    clock: Callable[[], float] = time.monotonic

    def __post_init__(self) -> None:
        try:
            import requests
        except Exception as exc:  # pragma: no cover
            raise TransportError(f"requests stack unavailable: {exc}") from exc

        self._session = requests.Session()

    def _url(self, canister_id: str, endpoint: str) -> str:
        return f"{self.config.ic_url.rstrip('/')}/api/v2/canister/{canister_id}/{endpoint}"

    def _post(self, canister_id: str, endpoint: str, body: bytes) -> tuple[int, bytes]:
        url = self._url(canister_id, endpoint)
        LOGGER.debug("POST %s (%d bytes)", url, len(body))
        try:
            response = self._session.post(
                url,
                data=body,
                headers={"Content-Type": CBOR_CONTENT_TYPE},
                timeout=self.config.timeout,
            )
        except Exception as exc:
            raise TransportError(f"replica request failed: {exc}") from exc

        if response.status_code >= 400:
            text = response.text
            raise ReplicaRequestError(
                f"replica request failed: {response.status_code} {text.strip()}",
                status_code=response.status_code,
                body=text,
            )
        return response.status_code, response.content

    def query(self, canister_id: str, content: bytes) -> bytes:
        """Submit a signed query envelope and return the reply argument bytes."""
        _, body = self._post(canister_id, "query", content)
        reply = decode_envelope(body)
        status = reply.get("status")
        if status == "replied":
            payload = reply.get("reply")
            if isinstance(payload, dict) and isinstance(payload.get("arg"), bytes):
                return payload["arg"]
            raise DecodingError("query reply has no arg")
        if status == "rejected" or "reject_code" in reply:
            raise ReplicaRejectError(
                f"Rejected (code {reply.get('reject_code')}): {reply.get('reject_message')}",
                reject_code=reply.get("reject_code"),
            )
        raise DecodingError(f"unexpected query reply status: {status}")

    def call(self, canister_id: str, content: bytes, request_id: str) -> None:
        status_code, body = self._post(canister_id, "call", content)
        LOGGER.debug("call accepted status=%s request_id=%s", status_code, request_id)
        if status_code == 200 and body:
            reply = decode_envelope(body)
            if reply.get("status") == "non_replicated_rejection":
                raise ReplicaRejectError(
                    f"Rejected (code {reply.get('reject_code')}): {reply.get('reject_message')}",
                    reject_code=reply.get("reject_code"),
                )

    def read_state(self, canister_id: str, content: bytes) -> Any:
        """Submit a signed read_state envelope and return the certificate tree."""
        _, body = self._post(canister_id, "read_state", content)
        response = decode_envelope(body)
        certificate = response.get("certificate")
        if not isinstance(certificate, bytes):
            raise DecodingError("read_state response has no certificate")
        tree = decode_envelope(certificate).get("tree")
        if tree is None:
            raise DecodingError("certificate has no tree")
        return tree

    def request_status(self, message: RequestStatus) -> tuple[str, Any]:
        """Read the current status of a request once.

        Returns ``(status, payload)`` where payload is the reply bytes for
        ``replied`` and ``None`` otherwise.
        """
        parse_principal(message.canister_id)
        rid = bytes.fromhex(message.request_id)
        tree = self.read_state(message.canister_id, message.content_bytes())
        base = [b"request_status", rid]
        raw_status = lookup_path(tree, base + [b"status"])
        status = raw_status.decode("utf-8") if raw_status is not None else "unknown"

        if status == "replied":
            reply = lookup_path(tree, base + [b"reply"])
            if reply is None:
                raise DecodingError("replied request has no reply in the certificate")
            return status, reply
        if status == "rejected":
            raw_code = lookup_path(tree, base + [b"reject_code"])
            raw_message = lookup_path(tree, base + [b"reject_message"])
            code = _read_leb128(raw_code) if raw_code is not None else None
            text = raw_message.decode("utf-8", errors="replace") if raw_message else ""
            raise ReplicaRejectError(f"Rejected (code {code}): {text}", reject_code=code)
        if status == "done":
            raise TransportError(
                "request was processed but its reply is no longer available"
            )
        if status not in PENDING_STATUSES:
            raise DecodingError(f"unknown request status: {status}")
        return status, None

    def wait_for_status(self, message: RequestStatus) -> bytes:
        """Re-read the request status at a fixed interval until it settles."""
        deadline = self.clock() + self.config.timeout
        while True:
            status, payload = self.request_status(message)
            if status not in PENDING_STATUSES:
                return payload
            if self.clock() >= deadline:
                raise StatusTimeoutError(
                    f"timed out waiting for request status: request_id={message.request_id}"
                )
            LOGGER.debug("request %s is %s", message.request_id, status)
            self.sleep(max(0.1, self.config.poll_interval))


__all__ = ["DEFAULT_IC_URL", "ReplicaClient", "TransportConfig", "lookup_path"]
