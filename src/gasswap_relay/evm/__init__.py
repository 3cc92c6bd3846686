from .relay import RelayClient, SignedPermit, SwapCall
from .chain import ChainAccessor, Web3ChainAccessor, decode_revert
from .submitter import RelaySubmitter, Web3RelaySubmitter
from .signers import TypedDataSigner, LocalAccountSigner
from .codec import (
    split_signature,
    join_signature,
    encode_swap_call_data,
    decode_swap_call_data,
    encode_function_call,
    encode_swap_call,
    decode_swap_call,
)
from .domains import DomainKind, build_domain, chain_id_to_salt, domain_separator
from .envelopes import build_meta_envelope, build_permit_message
from .schemas import (
    EVMECDSASignature,
    SwapCallData,
    NetworkInfo,
    TypedDataVerificationResult,
    RelayTransactionConfirmation,
)
from .signatures import (
    sign_permit,
    sign_meta_transaction,
    assemble_swap_payload,
)
from .verifies import (
    recover_typed_data_signer,
    verify_permit,
    verify_meta_transaction,
)

__all__ = [
    "RelayClient",
    "SignedPermit",
    "SwapCall",
    "ChainAccessor",
    "Web3ChainAccessor",
    "decode_revert",
    "RelaySubmitter",
    "Web3RelaySubmitter",
    "TypedDataSigner",
    "LocalAccountSigner",
    "split_signature",
    "join_signature",
    "encode_swap_call_data",
    "decode_swap_call_data",
    "encode_function_call",
    "encode_swap_call",
    "decode_swap_call",
    "DomainKind",
    "build_domain",
    "chain_id_to_salt",
    "domain_separator",
    "build_meta_envelope",
    "build_permit_message",
    "EVMECDSASignature",
    "SwapCallData",
    "NetworkInfo",
    "TypedDataVerificationResult",
    "RelayTransactionConfirmation",
    "sign_permit",
    "sign_meta_transaction",
    "assemble_swap_payload",
    "recover_typed_data_signer",
    "verify_permit",
    "verify_meta_transaction",
]
