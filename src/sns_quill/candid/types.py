"""Candid argument types for the SNS, ICRC-1 ledger and SNS-W interfaces.

Records only declare the fields this tool sends; variants only declare the
cases it can build. Both are valid subtypes of the canister interfaces.
"""

from __future__ import annotations

from ic.candid import Types

Blob = Types.Vec(Types.Nat8)
OptBlob = Types.Opt(Blob)
EmptyRecord = Types.Record({})

Account = Types.Record(
    {
        "owner": Types.Principal,
        "subaccount": OptBlob,
    }
)

TransferArg = Types.Record(
    {
        "to": Account,
        "fee": Types.Opt(Types.Nat),
        "memo": OptBlob,
        "from_subaccount": OptBlob,
        "created_at_time": Types.Opt(Types.Nat64),
        "amount": Types.Nat,
    }
)

NeuronId = Types.Record({"id": Blob})
ProposalId = Types.Record({"id": Types.Nat64})
NeuronPermissionList = Types.Record({"permissions": Types.Vec(Types.Int32)})

Motion = Types.Record({"motion_text": Types.Text})

UpgradeSnsControlledCanister = Types.Record(
    {
        "new_canister_wasm": Blob,
        "canister_id": Types.Opt(Types.Principal),
        "canister_upgrade_arg": OptBlob,
    }
)

ExecuteGenericNervousSystemFunction = Types.Record(
    {
        "function_id": Types.Nat64,
        "payload": Blob,
    }
)

ProposalAction = Types.Variant(
    {
        "Motion": Motion,
        "UpgradeSnsControlledCanister": UpgradeSnsControlledCanister,
        "ExecuteGenericNervousSystemFunction": ExecuteGenericNervousSystemFunction,
    }
)

Proposal = Types.Record(
    {
        "url": Types.Text,
        "title": Types.Text,
        "action": Types.Opt(ProposalAction),
        "summary": Types.Text,
    }
)

ConfigureOperation = Types.Variant(
    {
        "StopDissolving": EmptyRecord,
        "StartDissolving": EmptyRecord,
        "IncreaseDissolveDelay": Types.Record(
            {"additional_dissolve_delay_seconds": Types.Nat32}
        ),
    }
)

MemoAndController = Types.Record(
    {
        "controller": Types.Opt(Types.Principal),
        "memo": Types.Nat64,
    }
)

ClaimOrRefreshBy = Types.Variant(
    {
        "MemoAndController": MemoAndController,
        "NeuronId": EmptyRecord,
    }
)

ManageNeuronCommand = Types.Variant(
    {
        "Configure": Types.Record({"operation": Types.Opt(ConfigureOperation)}),
        "ClaimOrRefresh": Types.Record({"by": Types.Opt(ClaimOrRefreshBy)}),
        "RegisterVote": Types.Record(
            {
                "vote": Types.Int32,
                "proposal": Types.Opt(ProposalId),
            }
        ),
        "MakeProposal": Proposal,
        "StakeMaturity": Types.Record({"percentage_to_stake": Types.Opt(Types.Nat32)}),
        "AddNeuronPermissions": Types.Record(
            {
                "permissions_to_add": Types.Opt(NeuronPermissionList),
                "principal_id": Types.Opt(Types.Principal),
            }
        ),
        "RemoveNeuronPermissions": Types.Record(
            {
                "permissions_to_remove": Types.Opt(NeuronPermissionList),
                "principal_id": Types.Opt(Types.Principal),
            }
        ),
    }
)

ManageNeuron = Types.Record(
    {
        "subaccount": Blob,
        "command": Types.Opt(ManageNeuronCommand),
    }
)

ListNeurons = Types.Record(
    {
        "of_principal": Types.Opt(Types.Principal),
        "limit": Types.Nat32,
        "start_page_at": Types.Opt(NeuronId),
    }
)

ListProposals = Types.Record(
    {
        "include_reward_status": Types.Vec(Types.Int32),
        "before_proposal": Types.Opt(ProposalId),
        "limit": Types.Nat32,
        "exclude_type": Types.Vec(Types.Nat64),
        "include_status": Types.Vec(Types.Int32),
    }
)

GetProposal = Types.Record({"proposal_id": Types.Opt(ProposalId)})

GetSnsCanistersSummaryRequest = Types.Record(
    {"update_canister_list": Types.Opt(Types.Bool)}
)

RefreshBuyerTokensRequest = Types.Record({"buyer": Types.Text})

ErrorRefundIcpRequest = Types.Record(
    {"source_principal_id": Types.Opt(Types.Principal)}
)

NewSaleTicketRequest = Types.Record(
    {
        "amount_icp_e8s": Types.Nat64,
        "subaccount": OptBlob,
    }
)
