from __future__ import annotations

import pytest
from conftest import CANISTER_IDS

from sns_quill.candid import Method, encode_args
from sns_quill.canisters import ICP_LEDGER_CANISTER_ID, TargetRole, parse_canister_ids
from sns_quill.crypto.accounts import neuron_staking_subaccount, parse_principal
from sns_quill.errors import InputValidationError
from sns_quill.requests import (
    NeuronPermission,
    Vote,
    ProposalActionInput,
    build_configure_dissolve_delay,
    build_get_open_ticket,
    build_get_swap_refund,
    build_list_deployed_snses,
    build_new_sale_ticket,
    build_neuron_permission,
    build_register_vote,
    build_stake_maturity,
    build_stake_neuron,
    build_swap,
    build_transfer,
    build_upgrade_canister_proposal,
    parse_permissions,
    parse_proposal,
    parse_vote,
    require_one_dissolve_option,
    summarize_upgrade,
)

IDS = parse_canister_ids(CANISTER_IDS)
CONTROLLER = parse_principal("2vxsx-fae")
NEURON_ID = b"\x11" * 32


def test_transfer_targets_ledger_with_e8s_amount() -> None:
    to = parse_principal(CANISTER_IDS["root_canister_id"])
    call = build_transfer(IDS, to=to, amount_e8s=150_000_000, memo=3)

    assert call.method is Method.ICRC1_TRANSFER
    assert call.target.role is TargetRole.LEDGER
    assert call.target.canister_id == CANISTER_IDS["ledger_canister_id"]
    expected = {
        "to": {"owner": to.to_str(), "subaccount": []},
        "fee": [],
        "memo": [list((3).to_bytes(8, "big"))],
        "from_subaccount": [],
        "created_at_time": [],
        "amount": 150_000_000,
    }
    assert call.arg == encode_args(Method.ICRC1_TRANSFER, [expected])


def test_stake_neuron_without_amount_only_claims() -> None:
    calls = build_stake_neuron(IDS, controller=CONTROLLER, memo=7)

    assert [call.method_name for call in calls] == ["manage_neuron"]
    assert calls[0].target.role is TargetRole.GOVERNANCE


def test_stake_neuron_with_amount_funds_staking_subaccount_first() -> None:
    calls = build_stake_neuron(IDS, controller=CONTROLLER, memo=7, amount_e8s=5)

    assert [call.method_name for call in calls] == ["icrc1_transfer", "manage_neuron"]
    transfer = build_transfer(
        IDS,
        to=parse_principal(CANISTER_IDS["governance_canister_id"]),
        to_subaccount=neuron_staking_subaccount(CONTROLLER, 7),
        amount_e8s=5,
        memo=7,
    )
    assert calls[0].arg == transfer.arg


@pytest.mark.parametrize(
    ("start", "stop", "delay"),
    [(True, True, None), (False, False, None), (True, False, 10), (True, True, 10)],
)
def test_dissolve_options_are_mutually_exclusive(start, stop, delay) -> None:
    with pytest.raises(InputValidationError, match="mutually exclusive"):
        require_one_dissolve_option(
            start_dissolving=start,
            stop_dissolving=stop,
            additional_dissolve_delay_seconds=delay,
        )


def test_configure_dissolve_delay_builds_single_operation() -> None:
    call = build_configure_dissolve_delay(
        IDS, neuron_id=NEURON_ID, additional_dissolve_delay_seconds=604_800
    )
    expected = {
        "subaccount": list(NEURON_ID),
        "command": [
            {
                "Configure": {
                    "operation": [
                        {"IncreaseDissolveDelay": {"additional_dissolve_delay_seconds": 604_800}}
                    ]
                }
            }
        ],
    }
    assert call.arg == encode_args(Method.MANAGE_NEURON, [expected])
    with pytest.raises(InputValidationError):
        build_configure_dissolve_delay(
            IDS, neuron_id=NEURON_ID, additional_dissolve_delay_seconds=2**32
        )


def test_vote_and_stake_maturity_validation() -> None:
    assert parse_vote("Y") is Vote.YES
    assert parse_vote("no") is Vote.NO
    with pytest.raises(InputValidationError):
        parse_vote("maybe")

    call = build_register_vote(IDS, neuron_id=NEURON_ID, proposal_id=12, vote=Vote.YES)
    assert call.method is Method.MANAGE_NEURON

    with pytest.raises(InputValidationError, match="between 1 and 100"):
        build_stake_maturity(IDS, neuron_id=NEURON_ID, percentage=0)
    assert build_stake_maturity(IDS, neuron_id=NEURON_ID, percentage=100).arg


def test_parse_permissions_accepts_dashed_names() -> None:
    permissions = parse_permissions(["vote,submit-proposal", "MANAGE_PRINCIPALS"])
    assert permissions == [
        NeuronPermission.VOTE,
        NeuronPermission.SUBMIT_PROPOSAL,
        NeuronPermission.MANAGE_PRINCIPALS,
    ]
    with pytest.raises(InputValidationError, match="unknown neuron permission"):
        parse_permissions(["fly"])
    with pytest.raises(InputValidationError):
        parse_permissions([" , "])


def test_neuron_permission_add_and_remove_differ() -> None:
    vote = [NeuronPermission.VOTE]
    added = build_neuron_permission(
        IDS, neuron_id=NEURON_ID, add=True, principal=CONTROLLER, permissions=vote
    )
    removed = build_neuron_permission(
        IDS, neuron_id=NEURON_ID, add=False, principal=CONTROLLER, permissions=vote
    )
    assert added.arg != removed.arg


def test_parse_proposal_requires_exactly_one_action() -> None:
    proposal = parse_proposal(
        '{"title": "t", "summary": "s", "action": {"Motion": {"motion_text": "hello"}}}'
    )
    assert proposal.to_candid()["action"] == [{"Motion": {"motion_text": "hello"}}]

    with pytest.raises(InputValidationError):
        parse_proposal('{"title": "t", "summary": "s", "action": {}}')
    with pytest.raises(InputValidationError):
        parse_proposal('{"title": "t", "summary": "s", "action": {"Motion": {}}, "x": 1}')


def test_upgrade_proposal_summary_defaults_to_fingerprint() -> None:
    target = parse_principal(CANISTER_IDS["dapp_canister_id_list"][0])
    summary = summarize_upgrade(target.to_str(), b"\x00asm")
    assert "length: 4" in summary
    assert target.to_str() in summary

    call = build_upgrade_canister_proposal(
        IDS, neuron_id=NEURON_ID, target_canister_id=target, wasm=b"\x00asm"
    )
    assert call.target.role is TargetRole.GOVERNANCE


def test_swap_transfers_icp_then_notifies() -> None:
    calls = build_swap(IDS, buyer=CONTROLLER, amount_e8s=100, memo=1)

    assert [call.method_name for call in calls] == ["icrc1_transfer", "refresh_buyer_tokens"]
    assert calls[0].target.canister_id == ICP_LEDGER_CANISTER_ID
    assert calls[1].target.canister_id == CANISTER_IDS["swap_canister_id"]

    notify = build_swap(IDS, buyer=CONTROLLER, notify_only=True)
    assert [call.method_name for call in notify] == ["refresh_buyer_tokens"]

    with pytest.raises(InputValidationError):
        build_swap(IDS, buyer=CONTROLLER)


def test_list_deployed_snses_needs_no_canister_ids() -> None:
    call = build_list_deployed_snses()
    assert call.target.role is TargetRole.SNS_WASM


def test_every_builder_targets_the_method_role() -> None:
    assert build_transfer(IDS, to=CONTROLLER, amount_e8s=1).target.role is TargetRole.LEDGER
    icp = build_transfer(IDS, to=CONTROLLER, amount_e8s=1, role=TargetRole.ICP_LEDGER)
    assert icp.target.canister_id == ICP_LEDGER_CANISTER_ID
    for call in (
        build_get_swap_refund(IDS, principal=CONTROLLER),
        build_new_sale_ticket(IDS, amount_icp_e8s=1),
        build_get_open_ticket(IDS),
    ):
        assert call.target.role is call.method.role is TargetRole.SWAP
        assert call.target.canister_id == CANISTER_IDS["swap_canister_id"]


def test_swap_refund_names_the_source_principal() -> None:
    call = build_get_swap_refund(IDS, principal=CONTROLLER)
    assert call.method is Method.ERROR_REFUND_ICP
    assert call.arg == encode_args(
        Method.ERROR_REFUND_ICP, [{"source_principal_id": ["2vxsx-fae"]}]
    )


def test_new_sale_ticket_encodes_subaccount() -> None:
    call = build_new_sale_ticket(IDS, amount_icp_e8s=250_000_000, subaccount=b"\x01" * 32)
    assert call.method is Method.NEW_SALE_TICKET
    assert call.arg == encode_args(
        Method.NEW_SALE_TICKET,
        [{"amount_icp_e8s": 250_000_000, "subaccount": [[1] * 32]}],
    )

    without = build_new_sale_ticket(IDS, amount_icp_e8s=250_000_000)
    assert without.arg == encode_args(
        Method.NEW_SALE_TICKET, [{"amount_icp_e8s": 250_000_000, "subaccount": []}]
    )


def test_get_open_ticket_sends_an_empty_record() -> None:
    call = build_get_open_ticket(IDS)
    assert call.method is Method.GET_OPEN_TICKET
    assert call.arg == encode_args(Method.GET_OPEN_TICKET, [{}])


def test_proposal_action_without_a_case_is_rejected() -> None:
    action = ProposalActionInput.model_construct(
        Motion=None, ExecuteGenericNervousSystemFunction=None
    )
    with pytest.raises(InputValidationError, match="no function to execute"):
        action.to_candid()
