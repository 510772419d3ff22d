# src/assetbridge/ledger/protos.py
"""Gateway wire schema.

Only the messages the bridge reads or writes are declared, with the field
numbers of the published fabric-protos definitions so the bytes are
interchangeable with the peer's. Fields the bridge never touches (endorsement
lists, transient maps, decorations) are left out; protobuf keeps them as
unknown fields when decoding.

Descriptors live in a private pool so importing this module never clashes
with a generated fabric-protos package loaded in the same process.
"""

from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory, timestamp_pb2

_F = descriptor_pb2.FieldDescriptorProto

_SCALARS = {
    "string": _F.TYPE_STRING,
    "bytes": _F.TYPE_BYTES,
    "int32": _F.TYPE_INT32,
    "uint64": _F.TYPE_UINT64,
    "bool": _F.TYPE_BOOL,
}

# (field name, number, type); "repeated " prefix marks list fields and dotted
# types refer to messages by full name.
FieldSpec = Tuple[str, int, str]

ENDORSER_TRANSACTION = 3
TX_VALIDATION_VALID = 0

_COMMON: Dict[str, List[FieldSpec]] = {
    "Envelope": [("payload", 1, "bytes"), ("signature", 2, "bytes")],
    "Payload": [("header", 1, "common.Header"), ("data", 2, "bytes")],
    "Header": [("channel_header", 1, "bytes"), ("signature_header", 2, "bytes")],
    "ChannelHeader": [
        ("type", 1, "int32"),
        ("version", 2, "int32"),
        ("timestamp", 3, "google.protobuf.Timestamp"),
        ("channel_id", 4, "string"),
        ("tx_id", 5, "string"),
        ("epoch", 6, "uint64"),
        ("extension", 7, "bytes"),
        ("tls_cert_hash", 8, "bytes"),
    ],
    "SignatureHeader": [("creator", 1, "bytes"), ("nonce", 2, "bytes")],
}

_MSP: Dict[str, List[FieldSpec]] = {
    "SerializedIdentity": [("mspid", 1, "string"), ("id_bytes", 2, "bytes")],
}

_PEER: Dict[str, List[FieldSpec]] = {
    "ChaincodeID": [("path", 1, "string"), ("name", 2, "string"), ("version", 3, "string")],
    "ChaincodeInput": [("args", 1, "repeated bytes"), ("is_init", 3, "bool")],
    "ChaincodeSpec": [
        ("type", 1, "int32"),
        ("chaincode_id", 2, "protos.ChaincodeID"),
        ("input", 3, "protos.ChaincodeInput"),
        ("timeout", 4, "int32"),
    ],
    "ChaincodeInvocationSpec": [("chaincode_spec", 1, "protos.ChaincodeSpec")],
    "ChaincodeHeaderExtension": [("chaincode_id", 2, "protos.ChaincodeID")],
    "ChaincodeProposalPayload": [("input", 1, "bytes")],
    "Proposal": [("header", 1, "bytes"), ("payload", 2, "bytes"), ("extension", 3, "bytes")],
    "SignedProposal": [("proposal_bytes", 1, "bytes"), ("signature", 2, "bytes")],
    "Response": [("status", 1, "int32"), ("message", 2, "string"), ("payload", 3, "bytes")],
    "ProposalResponsePayload": [("proposal_hash", 1, "bytes"), ("extension", 2, "bytes")],
    "ChaincodeAction": [
        ("results", 1, "bytes"),
        ("events", 2, "bytes"),
        ("response", 3, "protos.Response"),
        ("chaincode_id", 4, "protos.ChaincodeID"),
    ],
    "Transaction": [("actions", 1, "repeated protos.TransactionAction")],
    "TransactionAction": [("header", 1, "bytes"), ("payload", 2, "bytes")],
    "ChaincodeActionPayload": [
        ("chaincode_proposal_payload", 1, "bytes"),
        ("action", 2, "protos.ChaincodeEndorsedAction"),
    ],
    "ChaincodeEndorsedAction": [("proposal_response_payload", 1, "bytes")],
}

_GATEWAY: Dict[str, List[FieldSpec]] = {
    "EvaluateRequest": [
        ("transaction_id", 1, "string"),
        ("channel_id", 2, "string"),
        ("proposed_transaction", 3, "protos.SignedProposal"),
        ("target_organizations", 4, "repeated string"),
    ],
    "EvaluateResponse": [("result", 1, "protos.Response")],
    "EndorseRequest": [
        ("transaction_id", 1, "string"),
        ("channel_id", 2, "string"),
        ("proposed_transaction", 3, "protos.SignedProposal"),
        ("endorsing_organizations", 4, "repeated string"),
    ],
    "EndorseResponse": [("prepared_transaction", 1, "common.Envelope")],
    "SubmitRequest": [
        ("transaction_id", 1, "string"),
        ("channel_id", 2, "string"),
        ("prepared_transaction", 3, "common.Envelope"),
    ],
    "SubmitResponse": [],
    "CommitStatusRequest": [
        ("transaction_id", 1, "string"),
        ("channel_id", 2, "string"),
        ("identity", 3, "bytes"),
    ],
    "SignedCommitStatusRequest": [("request", 1, "bytes"), ("signature", 2, "bytes")],
    "CommitStatusResponse": [("result", 1, "int32"), ("block_number", 2, "uint64")],
}


def _file(name: str, package: str, messages: Dict[str, List[FieldSpec]], deps: Sequence[str] = ()):
    fd = descriptor_pb2.FileDescriptorProto(name=name, package=package, syntax="proto3")
    fd.dependency.extend(deps)
    for msg_name, fields in messages.items():
        msg = fd.message_type.add(name=msg_name)
        for field_name, number, kind in fields:
            repeated = kind.startswith("repeated ")
            if repeated:
                kind = kind[len("repeated ") :]
            f = msg.field.add(
                name=field_name,
                number=number,
                label=_F.LABEL_REPEATED if repeated else _F.LABEL_OPTIONAL,
            )
            if kind in _SCALARS:
                f.type = _SCALARS[kind]
            else:
                f.type = _F.TYPE_MESSAGE
                f.type_name = "." + kind
    return fd


_POOL = descriptor_pool.DescriptorPool()
_POOL.AddSerializedFile(timestamp_pb2.DESCRIPTOR.serialized_pb)
for _fd in (
    _file("assetbridge/common.proto", "common", _COMMON, ["google/protobuf/timestamp.proto"]),
    _file("assetbridge/msp.proto", "msp", _MSP),
    _file("assetbridge/peer.proto", "protos", _PEER),
    _file("assetbridge/gateway.proto", "gateway", _GATEWAY, ["assetbridge/common.proto", "assetbridge/peer.proto"]),
):
    _POOL.AddSerializedFile(_fd.SerializeToString())


def message_class(full_name: str):
    return message_factory.GetMessageClass(_POOL.FindMessageTypeByName(full_name))


Envelope = message_class("common.Envelope")
Payload = message_class("common.Payload")
Header = message_class("common.Header")
ChannelHeader = message_class("common.ChannelHeader")
SignatureHeader = message_class("common.SignatureHeader")

SerializedIdentity = message_class("msp.SerializedIdentity")

ChaincodeID = message_class("protos.ChaincodeID")
ChaincodeInput = message_class("protos.ChaincodeInput")
ChaincodeSpec = message_class("protos.ChaincodeSpec")
ChaincodeInvocationSpec = message_class("protos.ChaincodeInvocationSpec")
ChaincodeHeaderExtension = message_class("protos.ChaincodeHeaderExtension")
ChaincodeProposalPayload = message_class("protos.ChaincodeProposalPayload")
Proposal = message_class("protos.Proposal")
SignedProposal = message_class("protos.SignedProposal")
Response = message_class("protos.Response")
ProposalResponsePayload = message_class("protos.ProposalResponsePayload")
ChaincodeAction = message_class("protos.ChaincodeAction")
Transaction = message_class("protos.Transaction")
TransactionAction = message_class("protos.TransactionAction")
ChaincodeActionPayload = message_class("protos.ChaincodeActionPayload")
ChaincodeEndorsedAction = message_class("protos.ChaincodeEndorsedAction")

EvaluateRequest = message_class("gateway.EvaluateRequest")
EvaluateResponse = message_class("gateway.EvaluateResponse")
EndorseRequest = message_class("gateway.EndorseRequest")
EndorseResponse = message_class("gateway.EndorseResponse")
SubmitRequest = message_class("gateway.SubmitRequest")
SubmitResponse = message_class("gateway.SubmitResponse")
CommitStatusRequest = message_class("gateway.CommitStatusRequest")
SignedCommitStatusRequest = message_class("gateway.SignedCommitStatusRequest")
CommitStatusResponse = message_class("gateway.CommitStatusResponse")
