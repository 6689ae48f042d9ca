"""Typed request builders for each command."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, Optional, Sequence

from ic.principal import Principal
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from sns_quill.candid import Method, encode_args
from sns_quill.canisters import SnsCanisterIds, TargetCanister, TargetRole
from sns_quill.crypto.accounts import (
    neuron_staking_subaccount,
    parse_principal,
    principal_subaccount,
)
from sns_quill.errors import InputValidationError
from sns_quill.signing import SignedMessage, Signer
from sns_quill.tokens import U32_MAX, U64_MAX

DEFAULT_UPGRADE_TITLE = "Upgrade Canister"


@dataclass(frozen=True)
class CallRequest:
    method: Method
    arg: bytes
    target: TargetCanister

    @property
    def method_name(self) -> str:
        return self.method.method_name


class Vote(IntEnum):
    YES = 1
    NO = 2


class NeuronPermission(IntEnum):
    UNSPECIFIED = 0
    CONFIGURE_DISSOLVE_STATE = 1
    MANAGE_PRINCIPALS = 2
    SUBMIT_PROPOSAL = 3
    VOTE = 4
    DISBURSE = 5
    SPLIT = 6
    MERGE_MATURITY = 7
    DISBURSE_MATURITY = 8
    STAKE_MATURITY = 9
    MANAGE_VOTING_PERMISSION = 10


def _call(
    method: Method,
    values: Sequence[object],
    ids: SnsCanisterIds | None = None,
    *,
    role: TargetRole | None = None,
) -> CallRequest:
    """Encode ``values`` and address them to the canister serving ``role``.

    ``role`` defaults to the method's own role.
    """
    role = method.role if role is None else role
    if role is TargetRole.SNS_WASM:
        target = TargetCanister.sns_wasm()
    elif ids is None:
        raise InputValidationError(f"{method.method_name} needs the SNS canister ids")
    else:
        target = ids.target(role)
    return CallRequest(method=method, arg=encode_args(method, values), target=target)


def _opt(value: object | None) -> list:
    return [] if value is None else [value]


def _blob(value: bytes) -> list[int]:
    return list(value)


def _memo_bytes(memo: int | None) -> list:
    if memo is None:
        return []
    if memo < 0 or memo > U64_MAX:
        raise InputValidationError("memo must fit in an unsigned 64-bit integer")
    return [_blob(memo.to_bytes(8, "big"))]


def _account(owner: Principal, subaccount: bytes | None) -> dict:
    return {
        "owner": owner.to_str(),
        "subaccount": _opt(_blob(subaccount) if subaccount is not None else None),
    }


def _manage_neuron(ids: SnsCanisterIds, neuron_id: bytes, command: dict) -> CallRequest:
    arg = {"subaccount": _blob(neuron_id), "command": [command]}
    return _call(Method.MANAGE_NEURON, [arg], ids)


def parse_vote(value: str) -> Vote:
    lowered = value.strip().lower()
    if lowered in {"y", "yes"}:
        return Vote.YES
    if lowered in {"n", "no"}:
        return Vote.NO
    raise InputValidationError(f"vote must be 'y' or 'n', got {value!r}")


def parse_permissions(values: Iterable[str]) -> list[NeuronPermission]:
    permissions: list[NeuronPermission] = []
    for raw in values:
        for item in raw.split(","):
            name = item.strip().replace("-", "_").upper()
            if not name:
                continue
            try:
                permissions.append(NeuronPermission[name])
            except KeyError as exc:
                choices = ", ".join(p.name.lower().replace("_", "-") for p in NeuronPermission)
                raise InputValidationError(
                    f"unknown neuron permission {item.strip()!r}; expected one of: {choices}"
                ) from exc
    if not permissions:
        raise InputValidationError("at least one permission is required")
    return permissions


# Proposals

class MotionInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    motion_text: str


class ExecuteFunctionInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    function_id: int = Field(..., ge=0, le=U64_MAX)
    payload_hex: str = ""


class ProposalActionInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    Motion: Optional[MotionInput] = None
    ExecuteGenericNervousSystemFunction: Optional[ExecuteFunctionInput] = None

    @model_validator(mode="after")
    def _exactly_one(self) -> "ProposalActionInput":
        chosen = [
            name
            for name in ("Motion", "ExecuteGenericNervousSystemFunction")
            if getattr(self, name) is not None
        ]
        if len(chosen) != 1:
            raise ValueError(
                "action must set exactly one of Motion, ExecuteGenericNervousSystemFunction"
            )
        return self

    def to_candid(self) -> dict:
        if self.Motion is not None:
            return {"Motion": {"motion_text": self.Motion.motion_text}}
        execute = self.ExecuteGenericNervousSystemFunction
        if execute is None:
            raise InputValidationError("proposal action sets no function to execute")
        try:
            payload = bytes.fromhex(execute.payload_hex)
        except ValueError as exc:
            raise InputValidationError("payload_hex must be hex") from exc
        return {
            "ExecuteGenericNervousSystemFunction": {
                "function_id": execute.function_id,
                "payload": _blob(payload),
            }
        }


class ProposalInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str
    url: str = ""
    summary: str
    action: ProposalActionInput

    def to_candid(self) -> dict:
        return {
            "title": self.title,
            "url": self.url,
            "summary": self.summary,
            "action": [self.action.to_candid()],
        }


def parse_proposal(raw: str) -> ProposalInput:
    try:
        return ProposalInput.model_validate_json(raw)
    except ValidationError as exc:
        raise InputValidationError(f"invalid proposal: {exc}") from exc


def summarize_upgrade(target_canister_id: str, wasm: bytes) -> str:
    fingerprint = hashlib.sha256(wasm).hexdigest()
    return (
        "Upgrade canister:\n\n"
        f"  ID: {target_canister_id}\n\n"
        "  WASM:\n"
        f"    length: {len(wasm)}\n"
        f"    fingerprint: {fingerprint}"
    )


# Ledger

def build_transfer(
    ids: SnsCanisterIds,
    *,
    to: Principal,
    amount_e8s: int,
    to_subaccount: bytes | None = None,
    fee_e8s: int | None = None,
    memo: int | None = None,
    role: TargetRole = TargetRole.LEDGER,
) -> CallRequest:
    arg = {
        "to": _account(to, to_subaccount),
        "fee": _opt(fee_e8s),
        "memo": _memo_bytes(memo),
        "from_subaccount": [],
        "created_at_time": [],
        "amount": amount_e8s,
    }
    return _call(Method.ICRC1_TRANSFER, [arg], ids, role=role)


def build_account_balance(
    ids: SnsCanisterIds, *, owner: Principal, subaccount: bytes | None = None
) -> CallRequest:
    return _call(
        Method.ICRC1_BALANCE_OF,
        [_account(owner, subaccount)],
        ids,
    )


# Neurons

def build_stake_neuron(
    ids: SnsCanisterIds,
    *,
    controller: Principal,
    memo: int,
    amount_e8s: int | None = None,
    fee_e8s: int | None = None,
) -> list[CallRequest]:
    """Optionally fund the staking subaccount, then claim the neuron."""
    neuron_subaccount = neuron_staking_subaccount(controller, memo)
    calls: list[CallRequest] = []
    if amount_e8s is not None:
        calls.append(
            build_transfer(
                ids,
                to=parse_principal(ids.governance_canister_id),
                to_subaccount=neuron_subaccount,
                amount_e8s=amount_e8s,
                fee_e8s=fee_e8s,
                memo=memo,
            )
        )
    claim = {
        "ClaimOrRefresh": {
            "by": [
                {
                    "MemoAndController": {
                        "controller": [controller.to_str()],
                        "memo": memo,
                    }
                }
            ]
        }
    }
    calls.append(_manage_neuron(ids, neuron_subaccount, claim))
    return calls


def require_one_dissolve_option(
    *,
    start_dissolving: bool,
    stop_dissolving: bool,
    additional_dissolve_delay_seconds: int | None,
) -> None:
    chosen = [
        start_dissolving,
        stop_dissolving,
        additional_dissolve_delay_seconds is not None,
    ]
    if sum(chosen) != 1:
        raise InputValidationError(
            "--stop-dissolving, --start-dissolving, --additional-dissolve-delay-seconds "
            "are mutually exclusive arguments; exactly one must be given"
        )


def build_configure_dissolve_delay(
    ids: SnsCanisterIds,
    *,
    neuron_id: bytes,
    start_dissolving: bool = False,
    stop_dissolving: bool = False,
    additional_dissolve_delay_seconds: int | None = None,
) -> CallRequest:
    require_one_dissolve_option(
        start_dissolving=start_dissolving,
        stop_dissolving=stop_dissolving,
        additional_dissolve_delay_seconds=additional_dissolve_delay_seconds,
    )
    if start_dissolving:
        operation: dict = {"StartDissolving": {}}
    elif stop_dissolving:
        operation = {"StopDissolving": {}}
    else:
        if additional_dissolve_delay_seconds is None:
            raise InputValidationError("no dissolve delay given")
        if not 0 <= additional_dissolve_delay_seconds <= U32_MAX:
            raise InputValidationError("dissolve delay must fit in an unsigned 32-bit integer")
        operation = {
            "IncreaseDissolveDelay": {
                "additional_dissolve_delay_seconds": additional_dissolve_delay_seconds
            }
        }
    return _manage_neuron(ids, neuron_id, {"Configure": {"operation": [operation]}})


def build_make_proposal(
    ids: SnsCanisterIds, *, neuron_id: bytes, proposal: ProposalInput
) -> CallRequest:
    return _manage_neuron(ids, neuron_id, {"MakeProposal": proposal.to_candid()})


def build_upgrade_canister_proposal(
    ids: SnsCanisterIds,
    *,
    neuron_id: bytes,
    target_canister_id: Principal,
    wasm: bytes,
    canister_upgrade_arg: bytes | None = None,
    title: str = DEFAULT_UPGRADE_TITLE,
    url: str = "",
    summary: str = "",
) -> CallRequest:
    proposal = {
        "title": title,
        "url": url,
        "summary": summary or summarize_upgrade(target_canister_id.to_str(), wasm),
        "action": [
            {
                "UpgradeSnsControlledCanister": {
                    "new_canister_wasm": _blob(wasm),
                    "canister_id": [target_canister_id.to_str()],
                    "canister_upgrade_arg": _opt(
                        _blob(canister_upgrade_arg) if canister_upgrade_arg is not None else None
                    ),
                }
            }
        ],
    }
    return _manage_neuron(ids, neuron_id, {"MakeProposal": proposal})


def build_register_vote(
    ids: SnsCanisterIds, *, neuron_id: bytes, proposal_id: int, vote: Vote
) -> CallRequest:
    if not 0 <= proposal_id <= U64_MAX:
        raise InputValidationError("proposal id must fit in an unsigned 64-bit integer")
    command = {
        "RegisterVote": {
            "vote": int(vote),
            "proposal": [{"id": proposal_id}],
        }
    }
    return _manage_neuron(ids, neuron_id, command)


def build_stake_maturity(
    ids: SnsCanisterIds, *, neuron_id: bytes, percentage: int
) -> CallRequest:
    if not 1 <= percentage <= 100:
        raise InputValidationError("--percentage must be between 1 and 100")
    return _manage_neuron(
        ids, neuron_id, {"StakeMaturity": {"percentage_to_stake": [percentage]}}
    )


def build_neuron_permission(
    ids: SnsCanisterIds,
    *,
    neuron_id: bytes,
    add: bool,
    principal: Principal,
    permissions: Sequence[NeuronPermission],
) -> CallRequest:
    permission_list = {"permissions": [int(permission) for permission in permissions]}
    if add:
        command = {
            "AddNeuronPermissions": {
                "permissions_to_add": [permission_list],
                "principal_id": [principal.to_str()],
            }
        }
    else:
        command = {
            "RemoveNeuronPermissions": {
                "permissions_to_remove": [permission_list],
                "principal_id": [principal.to_str()],
            }
        }
    return _manage_neuron(ids, neuron_id, command)


# Governance queries

def build_list_neurons(
    ids: SnsCanisterIds,
    *,
    limit: int,
    start_page_at: bytes | None = None,
    of_principal: Principal | None = None,
) -> CallRequest:
    if not 0 <= limit <= U32_MAX:
        raise InputValidationError("--limit must fit in an unsigned 32-bit integer")
    arg = {
        "of_principal": _opt(of_principal.to_str() if of_principal is not None else None),
        "limit": limit,
        "start_page_at": _opt({"id": _blob(start_page_at)} if start_page_at is not None else None),
    }
    return _call(Method.LIST_NEURONS, [arg], ids)


def build_list_proposals(
    ids: SnsCanisterIds, *, limit: int, before_proposal: int | None = None
) -> CallRequest:
    if not 0 <= limit <= U32_MAX:
        raise InputValidationError("--limit must fit in an unsigned 32-bit integer")
    arg = {
        "include_reward_status": [],
        "before_proposal": _opt({"id": before_proposal} if before_proposal is not None else None),
        "limit": limit,
        "exclude_type": [],
        "include_status": [],
    }
    return _call(Method.LIST_PROPOSALS, [arg], ids)


def build_get_proposal(ids: SnsCanisterIds, *, proposal_id: int) -> CallRequest:
    arg = {"proposal_id": [{"id": proposal_id}]}
    return _call(Method.GET_PROPOSAL, [arg], ids)


def build_list_nervous_system_functions(ids: SnsCanisterIds) -> CallRequest:
    return _call(Method.LIST_NERVOUS_SYSTEM_FUNCTIONS, [], ids)


def build_get_nervous_system_parameters(ids: SnsCanisterIds) -> CallRequest:
    return _call(Method.GET_NERVOUS_SYSTEM_PARAMETERS, [None], ids)


def build_sns_canisters_summary(ids: SnsCanisterIds) -> CallRequest:
    arg = {"update_canister_list": []}
    return _call(Method.GET_SNS_CANISTERS_SUMMARY, [arg], ids)


def build_list_deployed_snses() -> CallRequest:
    return _call(Method.LIST_DEPLOYED_SNSES, [{}])


# Swap

def build_get_swap_refund(ids: SnsCanisterIds, *, principal: Principal) -> CallRequest:
    arg = {"source_principal_id": [principal.to_str()]}
    return _call(Method.ERROR_REFUND_ICP, [arg], ids)


def build_swap(
    ids: SnsCanisterIds,
    *,
    buyer: Principal,
    amount_e8s: int | None = None,
    memo: int | None = None,
    notify_only: bool = False,
) -> list[CallRequest]:
    """Optionally transfer ICP to the buyer's swap subaccount, then notify the swap."""
    calls: list[CallRequest] = []
    if not notify_only:
        if amount_e8s is None:
            raise InputValidationError("--amount is required unless --notify-only is given")
        calls.append(
            build_transfer(
                ids,
                to=parse_principal(ids.swap_canister_id),
                to_subaccount=principal_subaccount(buyer),
                amount_e8s=amount_e8s,
                memo=memo,
                role=TargetRole.ICP_LEDGER,
            )
        )
    calls.append(
        _call(
            Method.REFRESH_BUYER_TOKENS,
            [{"buyer": buyer.to_str()}],
            ids,
        )
    )
    return calls


def build_new_sale_ticket(
    ids: SnsCanisterIds, *, amount_icp_e8s: int, subaccount: bytes | None = None
) -> CallRequest:
    arg = {
        "amount_icp_e8s": amount_icp_e8s,
        "subaccount": _opt(_blob(subaccount) if subaccount is not None else None),
    }
    return _call(Method.NEW_SALE_TICKET, [arg], ids)


def build_get_open_ticket(ids: SnsCanisterIds) -> CallRequest:
    return _call(Method.GET_OPEN_TICKET, [{}], ids)


def sign_requests(signer: Signer, calls: Iterable[CallRequest]) -> list[SignedMessage]:
    return [signer.sign_message(call.method_name, call.arg, call.target) for call in calls]
