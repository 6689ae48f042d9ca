"""sns-quill public surface."""

from sns_quill.candid import CallType, Method, decode_response, encode_args
from sns_quill.canisters import (
    ICP_LEDGER_CANISTER_ID,
    SNS_WASM_CANISTER_ID,
    SnsCanisterIds,
    TargetCanister,
    TargetRole,
    load_canister_ids,
)
from sns_quill.client import ReplicaClient, TransportConfig
from sns_quill.crypto.accounts import (
    account_identifier_hex,
    neuron_staking_subaccount,
    parse_neuron_id,
    parse_principal,
)
from sns_quill.crypto.identity import (
    AnonymousIdentity,
    Ed25519Identity,
    Secp256k1Identity,
    load_identity,
)
from sns_quill.crypto.mnemonic import mnemonic_to_pem
from sns_quill.errors import (
    ConfigError,
    DecodingError,
    EncodingError,
    IdentityError,
    InputValidationError,
    SigningError,
    SnsQuillError,
    StatusTimeoutError,
    TransportError,
    UnsupportedResponseError,
)
from sns_quill.signing import (
    Ingress,
    IngressWithRequestId,
    RequestStatus,
    Signer,
    request_id,
)
from sns_quill.tokens import parse_delay_seconds, parse_tokens

__all__ = [
    "AnonymousIdentity",
    "CallType",
    "ConfigError",
    "DecodingError",
    "Ed25519Identity",
    "EncodingError",
    "ICP_LEDGER_CANISTER_ID",
    "IdentityError",
    "Ingress",
    "IngressWithRequestId",
    "InputValidationError",
    "Method",
    "ReplicaClient",
    "RequestStatus",
    "SNS_WASM_CANISTER_ID",
    "Secp256k1Identity",
    "SigningError",
    "Signer",
    "SnsCanisterIds",
    "SnsQuillError",
    "StatusTimeoutError",
    "TargetCanister",
    "TargetRole",
    "TransportConfig",
    "TransportError",
    "UnsupportedResponseError",
    "account_identifier_hex",
    "decode_response",
    "encode_args",
    "load_canister_ids",
    "load_identity",
    "mnemonic_to_pem",
    "neuron_staking_subaccount",
    "parse_delay_seconds",
    "parse_neuron_id",
    "parse_principal",
    "parse_tokens",
    "request_id",
]
