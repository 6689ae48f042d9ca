from sns_quill.candid.codec import (
    FIELD_NAMES,
    decode_args,
    decode_response,
    encode_args,
    label_hash,
    restore_labels,
)
from sns_quill.candid.methods import QUERY_METHODS, CallType, Method, call_type_for

__all__ = [
    "CallType",
    "FIELD_NAMES",
    "Method",
    "QUERY_METHODS",
    "call_type_for",
    "decode_args",
    "decode_response",
    "encode_args",
    "label_hash",
    "restore_labels",
]
