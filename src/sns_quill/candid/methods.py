"""Closed set of canister methods this tool can call."""

from __future__ import annotations

from enum import Enum
from typing import Tuple

from ic.candid import Types

from sns_quill.candid import types as t
from sns_quill.canisters import TargetRole
from sns_quill.errors import UnsupportedResponseError


class CallType(str, Enum):
    QUERY = "query"
    UPDATE = "update"


QUERY_METHODS = frozenset(
    {
        "icrc1_balance_of",
        "icrc1_fee",
        "list_neurons",
        "get_neuron",
        "list_proposals",
        "get_proposal",
        "list_nervous_system_functions",
        "get_nervous_system_parameters",
        "list_deployed_snses",
        "get_open_ticket",
    }
)


def call_type_for(method_name: str) -> CallType:
    return CallType.QUERY if method_name in QUERY_METHODS else CallType.UPDATE


class Method(Enum):
    """Supported methods with their default target and candid argument types."""

    ICRC1_TRANSFER = ("icrc1_transfer", TargetRole.LEDGER, (t.TransferArg,))
    ICRC1_BALANCE_OF = ("icrc1_balance_of", TargetRole.LEDGER, (t.Account,))
    MANAGE_NEURON = ("manage_neuron", TargetRole.GOVERNANCE, (t.ManageNeuron,))
    LIST_NEURONS = ("list_neurons", TargetRole.GOVERNANCE, (t.ListNeurons,))
    LIST_PROPOSALS = ("list_proposals", TargetRole.GOVERNANCE, (t.ListProposals,))
    GET_PROPOSAL = ("get_proposal", TargetRole.GOVERNANCE, (t.GetProposal,))
    LIST_NERVOUS_SYSTEM_FUNCTIONS = (
        "list_nervous_system_functions",
        TargetRole.GOVERNANCE,
        (),
    )
    GET_NERVOUS_SYSTEM_PARAMETERS = (
        "get_nervous_system_parameters",
        TargetRole.GOVERNANCE,
        (Types.Null,),
    )
    GET_SNS_CANISTERS_SUMMARY = (
        "get_sns_canisters_summary",
        TargetRole.ROOT,
        (t.GetSnsCanistersSummaryRequest,),
    )
    LIST_DEPLOYED_SNSES = ("list_deployed_snses", TargetRole.SNS_WASM, (t.EmptyRecord,))
    REFRESH_BUYER_TOKENS = (
        "refresh_buyer_tokens",
        TargetRole.SWAP,
        (t.RefreshBuyerTokensRequest,),
    )
    ERROR_REFUND_ICP = ("error_refund_icp", TargetRole.SWAP, (t.ErrorRefundIcpRequest,))
    NEW_SALE_TICKET = ("new_sale_ticket", TargetRole.SWAP, (t.NewSaleTicketRequest,))
    GET_OPEN_TICKET = ("get_open_ticket", TargetRole.SWAP, (t.EmptyRecord,))

    def __init__(self, method_name: str, role: TargetRole, arg_types: Tuple[object, ...]) -> None:
        self.method_name = method_name
        self.role = role
        self.arg_types = arg_types

    @property
    def call_type(self) -> CallType:
        return call_type_for(self.method_name)

    @classmethod
    def lookup(cls, method_name: str) -> "Method | None":
        for member in cls:
            if member.method_name == method_name:
                return member
        return None

    @classmethod
    def for_response(cls, method_name: str) -> "Method":
        member = cls.lookup(method_name)
        if member is None:
            raise UnsupportedResponseError(f"{method_name} is not a supported response")
        return member
