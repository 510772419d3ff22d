# src/assetbridge/ledger/gateway.py
"""Client side of the peer's gateway gRPC service.

  Gateway   identity + signer + one gRPC channel
  Network   a named ledger channel, resolved locally
  Contract  a named chaincode on that channel; every transaction goes here

Resolving a network or contract is a local step; nothing is sent to the peer
until the first evaluate/submit.

evaluate: Evaluate on one peer, result returned, nothing ordered.
submit:   Endorse -> sign envelope -> Submit -> CommitStatus; returns only
          after the transaction is committed (or raises CommitError).
"""

from __future__ import annotations

import logging
from typing import Optional

import grpc

from assetbridge.errors import CommitError
from assetbridge.ledger import protos
from assetbridge.ledger.credentials import Identity, Signer
from assetbridge.ledger.proposal import (
    build_proposal,
    result_from_envelope,
    sign_envelope,
    signed_commit_status_request,
)
from assetbridge.logs import log_event

log = logging.getLogger("assetbridge.gateway")

_SERVICE = "/gateway.Gateway/"


class GatewayStub:
    def __init__(self, channel) -> None:
        self.evaluate = channel.unary_unary(
            _SERVICE + "Evaluate",
            request_serializer=protos.EvaluateRequest.SerializeToString,
            response_deserializer=protos.EvaluateResponse.FromString,
        )
        self.endorse = channel.unary_unary(
            _SERVICE + "Endorse",
            request_serializer=protos.EndorseRequest.SerializeToString,
            response_deserializer=protos.EndorseResponse.FromString,
        )
        self.submit = channel.unary_unary(
            _SERVICE + "Submit",
            request_serializer=protos.SubmitRequest.SerializeToString,
            response_deserializer=protos.SubmitResponse.FromString,
        )
        self.commit_status = channel.unary_unary(
            _SERVICE + "CommitStatus",
            request_serializer=protos.SignedCommitStatusRequest.SerializeToString,
            response_deserializer=protos.CommitStatusResponse.FromString,
        )


class Gateway:
    def __init__(self, *, client: grpc.aio.Channel, identity: Identity, signer: Signer) -> None:
        self._channel = client
        self._identity = identity
        self._signer = signer
        self._stub = GatewayStub(client)
        self._closed = False

    @property
    def identity(self) -> Identity:
        return self._identity

    @property
    def closed(self) -> bool:
        return self._closed

    def get_network(self, channel_name: str) -> "Network":
        name = str(channel_name or "").strip()
        if not name:
            raise ValueError("channel name is empty")
        return Network(self, name)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._channel.close()


class Network:
    def __init__(self, gateway: Gateway, name: str) -> None:
        self.gateway = gateway
        self.name = name

    def get_contract(self, chaincode_name: str) -> "Contract":
        name = str(chaincode_name or "").strip()
        if not name:
            raise ValueError("contract name is empty")
        return Contract(self, name)


class Contract:
    def __init__(self, network: Network, chaincode_name: str) -> None:
        self.network = network
        self.chaincode_name = chaincode_name

    @property
    def channel_name(self) -> str:
        return self.network.name

    def _proposal(self, name: str, args):
        gw = self.network.gateway
        return build_proposal(
            identity=gw._identity,
            signer=gw._signer,
            channel_name=self.network.name,
            contract_name=self.chaincode_name,
            operation=name,
            args=args,
        )

    async def evaluate_transaction(self, name: str, *args: str, timeout: Optional[float] = None) -> bytes:
        prepared = self._proposal(name, args)
        request = protos.EvaluateRequest(
            transaction_id=prepared.transaction_id,
            channel_id=prepared.channel_name,
            proposed_transaction=prepared.signed,
        )
        response = await self.network.gateway._stub.evaluate(request, timeout=timeout)
        return bytes(response.result.payload)

    async def submit_transaction(self, name: str, *args: str, timeout: Optional[float] = None) -> bytes:
        gw = self.network.gateway
        prepared = self._proposal(name, args)

        endorsed = await gw._stub.endorse(
            protos.EndorseRequest(
                transaction_id=prepared.transaction_id,
                channel_id=prepared.channel_name,
                proposed_transaction=prepared.signed,
            ),
            timeout=timeout,
        )
        envelope = endorsed.prepared_transaction
        result = result_from_envelope(envelope)
        sign_envelope(envelope, gw._signer)

        await gw._stub.submit(
            protos.SubmitRequest(
                transaction_id=prepared.transaction_id,
                channel_id=prepared.channel_name,
                prepared_transaction=envelope,
            ),
            timeout=timeout,
        )

        status = await gw._stub.commit_status(
            signed_commit_status_request(
                identity=gw._identity,
                signer=gw._signer,
                transaction_id=prepared.transaction_id,
                channel_name=prepared.channel_name,
            ),
            timeout=timeout,
        )
        if int(status.result) != protos.TX_VALIDATION_VALID:
            raise CommitError(
                message=f"transaction {prepared.transaction_id} failed to commit with status {int(status.result)}",
                tx_id=prepared.transaction_id,
                validation_code=int(status.result),
            )

        log_event(
            log,
            "tx_committed",
            level=logging.DEBUG,
            operation=name,
            tx_id=prepared.transaction_id,
            block_number=int(status.block_number),
        )
        return result


def connect(*, client: grpc.aio.Channel, identity: Identity, signer: Signer) -> Gateway:
    return Gateway(client=client, identity=identity, signer=signer)
