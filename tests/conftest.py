from __future__ import annotations

import json
import types
from pathlib import Path

import cbor2
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

CANISTER_IDS = {
    "governance_canister_id": "rrkah-fqaaa-aaaaa-aaaaq-cai",
    "ledger_canister_id": "ryjl3-tyaaa-aaaaa-aaaba-cai",
    "root_canister_id": "r7inp-6aaaa-aaaaa-aaabq-cai",
    "swap_canister_id": "qoctq-giaaa-aaaaa-aaaea-cai",
    "dapp_canister_id_list": ["rdmx6-jaaaa-aaaaa-aaadq-cai"],
}


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch, tmp_path) -> None:
    monkeypatch.delenv("IC_URL", raising=False)
    monkeypatch.setattr(
        "sns_quill.cli.config.DEFAULT_CONFIG_PATH", tmp_path / "no-such-config.toml"
    )


@pytest.fixture
def canister_ids_file(tmp_path) -> Path:
    path = tmp_path / "sns_canister_ids.json"
    path.write_text(json.dumps(CANISTER_IDS), encoding="utf-8")
    return path


@pytest.fixture
def secp256k1_key() -> ec.EllipticCurvePrivateKey:
    return ec.generate_private_key(ec.SECP256K1())


@pytest.fixture
def pem_file(tmp_path, secp256k1_key) -> Path:
    path = tmp_path / "identity.pem"
    path.write_bytes(
        secp256k1_key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )
    )
    return path


class ScriptedOperator:
    """Operator with canned answers; records every prompt."""

    def __init__(self, *, confirms=(), secrets=()) -> None:
        self.confirms = list(confirms)
        self.secrets = list(secrets)
        self.prompts: list[str] = []
        self.pauses = 0

    def confirm(self, prompt: str) -> bool:
        self.prompts.append(prompt)
        return self.confirms.pop(0) if self.confirms else False

    def read_secret(self, prompt: str) -> bytes:
        self.prompts.append(prompt)
        return self.secrets.pop(0)

    def pause(self) -> None:
        self.pauses += 1


@pytest.fixture
def operator() -> ScriptedOperator:
    return ScriptedOperator()


def _freeze(value):
    if isinstance(value, cbor2.CBORTag):
        return cbor2.CBORTag(value.tag, _freeze(value.value))
    if isinstance(value, dict):
        return types.MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, list):
        return tuple(_freeze(item) for item in value)
    return value


@pytest.fixture
def immutable_cbor(monkeypatch) -> None:
    """Make cbor2 decode maps and arrays as read-only mappings and tuples."""
    loads = cbor2.loads
    monkeypatch.setattr(cbor2, "loads", lambda data: _freeze(loads(data)))
