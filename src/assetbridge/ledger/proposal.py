# src/assetbridge/ledger/proposal.py
from __future__ import annotations

import hashlib
import os
import time
from dataclasses import dataclass
from typing import Sequence

from google.protobuf.message import DecodeError

from assetbridge.errors import ResultDecodeError
from assetbridge.ledger import protos
from assetbridge.ledger.credentials import Identity, Signer

NONCE_BYTES = 24


def serialize_identity(identity: Identity) -> bytes:
    return identity.serialize()


def new_transaction_id(nonce: bytes, creator: bytes) -> str:
    return hashlib.sha256(nonce + creator).hexdigest()


@dataclass(frozen=True, slots=True)
class PreparedProposal:
    transaction_id: str
    channel_name: str
    signed: object  # protos.SignedProposal


def build_proposal(
    *,
    identity: Identity,
    signer: Signer,
    channel_name: str,
    contract_name: str,
    operation: str,
    args: Sequence[str],
    nonce: bytes | None = None,
) -> PreparedProposal:
    """Build and sign a chaincode invocation proposal.

    Chaincode input is [operation, *args], all UTF-8 encoded.
    """
    creator = serialize_identity(identity)
    nonce = os.urandom(NONCE_BYTES) if nonce is None else bytes(nonce)
    tx_id = new_transaction_id(nonce, creator)

    chaincode_id = protos.ChaincodeID(name=contract_name)

    now_ns = time.time_ns()
    channel_header = protos.ChannelHeader(
        type=protos.ENDORSER_TRANSACTION,
        channel_id=channel_name,
        tx_id=tx_id,
        epoch=0,
        extension=protos.ChaincodeHeaderExtension(chaincode_id=chaincode_id).SerializeToString(),
    )
    channel_header.timestamp.seconds = now_ns // 1_000_000_000
    channel_header.timestamp.nanos = now_ns % 1_000_000_000

    header = protos.Header(
        channel_header=channel_header.SerializeToString(),
        signature_header=protos.SignatureHeader(creator=creator, nonce=nonce).SerializeToString(),
    )

    invocation = protos.ChaincodeInvocationSpec(
        chaincode_spec=protos.ChaincodeSpec(
            chaincode_id=chaincode_id,
            input=protos.ChaincodeInput(args=[operation.encode("utf-8")] + [a.encode("utf-8") for a in args]),
        )
    )
    payload = protos.ChaincodeProposalPayload(input=invocation.SerializeToString())

    proposal_bytes = protos.Proposal(
        header=header.SerializeToString(),
        payload=payload.SerializeToString(),
    ).SerializeToString()

    signed = protos.SignedProposal(proposal_bytes=proposal_bytes, signature=signer(proposal_bytes))
    return PreparedProposal(transaction_id=tx_id, channel_name=channel_name, signed=signed)


def result_from_envelope(envelope) -> bytes:
    """Chaincode response payload carried inside an endorsed transaction envelope."""
    try:
        payload = protos.Payload.FromString(envelope.payload)
        tx = protos.Transaction.FromString(payload.data)
        if not tx.actions:
            raise ResultDecodeError(message="prepared transaction has no actions")
        action_payload = protos.ChaincodeActionPayload.FromString(tx.actions[0].payload)
        prp = protos.ProposalResponsePayload.FromString(action_payload.action.proposal_response_payload)
        action = protos.ChaincodeAction.FromString(prp.extension)
    except DecodeError as e:
        raise ResultDecodeError(message=f"cannot decode prepared transaction: {e}") from e
    return bytes(action.response.payload)


def sign_envelope(envelope, signer: Signer) -> None:
    envelope.signature = signer(envelope.payload)


def signed_commit_status_request(*, identity: Identity, signer: Signer, transaction_id: str, channel_name: str):
    request = protos.CommitStatusRequest(
        transaction_id=transaction_id,
        channel_id=channel_name,
        identity=serialize_identity(identity),
    ).SerializeToString()
    return protos.SignedCommitStatusRequest(request=request, signature=signer(request))
