"""SNS canister ids and call targets."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from sns_quill.crypto.accounts import parse_principal
from sns_quill.errors import ConfigError, InputValidationError

ICP_LEDGER_CANISTER_ID = "ryjl3-tyaaa-aaaaa-aaaba-cai"
SNS_WASM_CANISTER_ID = "qaa6y-5yaaa-aaaaa-aaafa-cai"

REQUIRED_CANISTER_ID_KEYS = (
    "governance_canister_id",
    "ledger_canister_id",
    "root_canister_id",
    "swap_canister_id",
    "dapp_canister_id_list",
)


class TargetRole(str, Enum):
    GOVERNANCE = "governance"
    LEDGER = "ledger"
    ROOT = "root"
    SWAP = "swap"
    ICP_LEDGER = "icp_ledger"
    SNS_WASM = "sns_wasm"


@dataclass(frozen=True)
class TargetCanister:
    role: TargetRole
    canister_id: str

    @classmethod
    def icp_ledger(cls) -> "TargetCanister":
        return cls(role=TargetRole.ICP_LEDGER, canister_id=ICP_LEDGER_CANISTER_ID)

    @classmethod
    def sns_wasm(cls) -> "TargetCanister":
        return cls(role=TargetRole.SNS_WASM, canister_id=SNS_WASM_CANISTER_ID)


class SnsCanisterIds(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    governance_canister_id: str
    ledger_canister_id: str
    root_canister_id: str
    swap_canister_id: str
    dapp_canister_id_list: List[str]

    @field_validator(
        "governance_canister_id",
        "ledger_canister_id",
        "root_canister_id",
        "swap_canister_id",
    )
    @classmethod
    def _check_principal(cls, value: str) -> str:
        try:
            parse_principal(value)
        except InputValidationError as exc:
            raise ValueError(str(exc)) from exc
        return value

    @field_validator("dapp_canister_id_list")
    @classmethod
    def _check_principal_list(cls, value: List[str]) -> List[str]:
        for item in value:
            try:
                parse_principal(item)
            except InputValidationError as exc:
                raise ValueError(str(exc)) from exc
        return value

    def target(self, role: TargetRole) -> TargetCanister:
        if role is TargetRole.ICP_LEDGER:
            return TargetCanister.icp_ledger()
        if role is TargetRole.SNS_WASM:
            return TargetCanister.sns_wasm()
        canister_id = {
            TargetRole.GOVERNANCE: self.governance_canister_id,
            TargetRole.LEDGER: self.ledger_canister_id,
            TargetRole.ROOT: self.root_canister_id,
            TargetRole.SWAP: self.swap_canister_id,
        }[role]
        return TargetCanister(role=role, canister_id=canister_id)


def parse_canister_ids(payload: object, *, source: str = "canister ids") -> SnsCanisterIds:
    if not isinstance(payload, dict):
        raise ConfigError(f"{source} must contain a JSON object")
    for key in REQUIRED_CANISTER_ID_KEYS:
        if key not in payload:
            raise ConfigError(f"'{key}' is not present in --canister-ids-file {source}")
    try:
        return SnsCanisterIds.model_validate(payload)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        raise ConfigError(f"invalid {location} in {source}: {first.get('msg')}") from exc


def load_canister_ids(path: str | Path) -> SnsCanisterIds:
    ids_path = Path(path)
    try:
        raw = ids_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"could not read canister ids file {ids_path}: {exc}") from exc
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"canister ids file {ids_path} is not valid JSON: {exc}") from exc
    return parse_canister_ids(payload, source=str(ids_path))
