"""Encoding of call arguments and decoding of replies.

Replies are decoded without a type annotation and their record and variant
labels are restored from ``FIELD_NAMES`` via the candid label hash, so any
reply shape can be shown without carrying the full canister interfaces.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Sequence

from ic.candid import decode, encode
from ic.principal import Principal

from sns_quill.candid.methods import Method
from sns_quill.errors import DecodingError, EncodingError

LOGGER = logging.getLogger(__name__)

FIELD_NAMES = tuple(
    """
    Ok Err Error error error_type error_message
    id owner subaccount to from from_subaccount fee memo amount created_at_time
    BadFee expected_fee BadBurn min_burn_amount InsufficientFunds balance
    TooOld CreatedInFuture ledger_time Duplicate duplicate_of
    TemporarilyUnavailable GenericError error_code message
    command subaccount neuron_id refreshed_neuron_id created_neuron_id
    Configure ClaimOrRefresh RegisterVote MakeProposal StakeMaturity
    AddNeuronPermissions RemoveNeuronPermissions Disburse Split Follow
    MergeMaturity DisburseMaturity operation by MemoAndController NeuronId
    controller StopDissolving StartDissolving IncreaseDissolveDelay
    additional_dissolve_delay_seconds SetDissolveTimestamp dissolve_timestamp_seconds
    ChangeAutoStakeMaturity requested_setting_for_auto_stake_maturity
    vote proposal percentage_to_stake maturity_e8s staked_maturity_e8s
    permissions_to_add permissions_to_remove principal_id permissions
    title url summary action Motion motion_text UpgradeSnsControlledCanister
    new_canister_wasm canister_id canister_upgrade_arg mode
    ExecuteGenericNervousSystemFunction function_id payload
    Unspecified ManageNervousSystemParameters AddGenericNervousSystemFunction
    RemoveGenericNervousSystemFunction UpgradeSnsToNextVersion
    ManageSnsMetadata TransferSnsTreasuryFunds RegisterDappCanisters
    DeregisterDappCanisters
    neurons proposals proposal_id proposal_creation_timestamp_seconds
    neuron_fees_e8s cached_neuron_stake_e8s permissions aging_since_timestamp_seconds
    followees voting_power_percentage_multiplier dissolve_state
    DissolveDelaySeconds WhenDissolvedTimestampSeconds source_nns_neuron_id
    auto_stake_maturity vesting_period_seconds disburse_maturity_in_progress
    principal permission_type
    ballots latest_tally decided_timestamp_seconds proposer reject_cost_e8s
    executed_timestamp_seconds failed_timestamp_seconds failure_reason
    reward_event_round reward_event_end_timestamp_seconds wait_for_quiet_state
    current_deadline_timestamp_seconds payload_text_rendering is_eligible_for_rewards
    initial_voting_period_seconds wait_for_quiet_deadline_increase_seconds
    yes no total timestamp_seconds cast_timestamp_seconds voting_power
    include_ballots_by_caller include_reward_status include_status exclude_type
    before_proposal limit start_page_at of_principal
    functions reserved_ids name description function_type
    NativeNervousSystemFunction GenericNervousSystemFunction
    target_canister_id target_method_name validator_canister_id validator_method_name
    topic
    transaction_fee_e8s max_proposals_to_keep_per_action initial_voting_period
    default_followees max_number_of_neurons
    neuron_minimum_dissolve_delay_to_vote_seconds max_followees_per_action
    max_dissolve_delay_seconds max_neuron_age_for_age_bonus
    reward_distribution_period_seconds max_number_of_proposals_with_ballots
    neuron_claimer_permissions neuron_grantable_permissions
    max_number_of_principals_per_neuron voting_rewards_parameters
    max_dissolve_delay_bonus_percentage max_age_bonus_percentage
    maturity_modulation_disabled neuron_minimum_stake_e8s
    round_duration_seconds reward_rate_transition_duration_seconds
    initial_reward_rate_basis_points final_reward_rate_basis_points
    root governance ledger swap index archives dapps
    status canister_id settings controllers module_hash memory_size cycles
    freezing_threshold compute_allocation memory_allocation idle_cycles_burned_per_day
    running stopping stopped
    update_canister_list
    instances root_canister_id governance_canister_id ledger_canister_id
    swap_canister_id index_canister_id dapp_canister_id_list
    buyer icp_accepted_participation_e8s icp_ledger_account_balance_e8s
    source_principal_id
    ticket amount_icp_e8s creation_time account
    InvalidUserAmount min_amount_icp_e8s_included max_amount_icp_e8s_included
    TicketExists invalid_user_amount existing_ticket
    """.split()
)

# Fields whose vec nat8 payloads are rendered as hex.
BLOB_FIELDS = frozenset(
    {
        "id",
        "subaccount",
        "from_subaccount",
        "memo",
        "module_hash",
        "new_canister_wasm",
        "canister_upgrade_arg",
        "payload",
    }
)

_HASHED_LABEL = re.compile(r"^_(\d+)_?$")


def label_hash(name: str) -> int:
    value = 0
    for byte in name.encode("utf-8"):
        value = (value * 223 + byte) % 2**32
    return value


_LABELS = {label_hash(name): name for name in FIELD_NAMES}


def encode_args(method: Method, values: Sequence[Any]) -> bytes:
    """Encode ``values`` under the method's candid argument types."""
    if len(values) != len(method.arg_types):
        raise EncodingError(
            f"{method.method_name} takes {len(method.arg_types)} argument(s), got {len(values)}"
        )
    params = [
        {"type": arg_type, "value": value}
        for arg_type, value in zip(method.arg_types, values)
    ]
    try:
        return bytes(encode(params))
    except Exception as exc:
        raise EncodingError(f"cannot encode arguments for {method.method_name}: {exc}") from exc


def _decode_untyped(blob: bytes) -> list[Any]:
    try:
        decoded = decode(bytes(blob))
    except Exception as exc:
        raise DecodingError(f"malformed candid: {exc}") from exc
    return [
        restore_labels(item.get("value") if isinstance(item, dict) else item)
        for item in decoded
    ]


def _label(key: object) -> object:
    if isinstance(key, int):
        return _LABELS.get(key, key)
    if isinstance(key, str):
        match = _HASHED_LABEL.match(key)
        if match:
            hashed = int(match.group(1))
            return _LABELS.get(hashed, hashed)
    return key


def _is_byte_list(value: object) -> bool:
    return isinstance(value, list) and all(
        isinstance(item, int) and not isinstance(item, bool) and 0 <= item < 256
        for item in value
    )


def _as_blob(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).hex()
    if _is_byte_list(value) and value:
        return bytes(value).hex()
    if isinstance(value, list) and len(value) == 1:
        # opt blob
        inner = value[0]
        if isinstance(inner, (bytes, bytearray)) or (_is_byte_list(inner) and inner):
            return [bytes(inner).hex()]
    return restore_labels(value)


def restore_labels(value: Any) -> Any:
    """Turn an untyped decode into JSON-friendly values with field names."""
    if isinstance(value, Principal):
        return value.to_str()
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).hex()
    if isinstance(value, dict):
        restored: dict[object, Any] = {}
        for key, item in value.items():
            label = _label(key)
            if isinstance(label, str) and label in BLOB_FIELDS:
                restored[label] = _as_blob(item)
            else:
                restored[label] = restore_labels(item)
        keys = list(restored)
        if keys and keys == list(range(len(keys))):
            return [restored[index] for index in keys]
        return {str(key): item for key, item in restored.items()}
    if isinstance(value, (list, tuple)):
        return [restore_labels(item) for item in value]
    return value


def decode_args(method_name: str, blob: bytes) -> list[Any]:
    """Decode call arguments for display.

    Known methods decode under their own argument types, which keeps empty
    records as records. Anything else, including arguments that do not match
    the declared types, decodes untyped.
    """
    method = Method.lookup(method_name)
    if method is not None and method.arg_types:
        try:
            decoded = decode(bytes(blob), list(method.arg_types))
        except Exception as exc:
            LOGGER.debug("typed decode of %s arguments failed: %s", method_name, exc)
        else:
            return [restore_labels(item["value"]) for item in decoded]
    return _decode_untyped(blob)


def decode_response(method_name: str, blob: bytes) -> list[Any]:
    Method.for_response(method_name)
    return _decode_untyped(blob)
