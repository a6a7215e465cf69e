"""Sample ceremony values and in-memory toolchain doubles shared by the tests."""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from fido2 import cbor
from fido2.utils import websafe_encode

from zkwebauthn.backend import CompiledCircuit, ProofArtifact, Witness
from zkwebauthn.credentials import (
    AssertionResponse,
    AttestationResponse,
    AuthenticationCredential,
    CreationOptions,
    RegistrationCredential,
    RequestOptions,
)
from zkwebauthn.session import ProofSession

ZERO_CHALLENGE = bytes(32)
RAW_ID = bytes([1, 2, 3, 4])
# rpIdHash, flags (user present) and a zero signature counter.
AUTHENTICATOR_DATA = hashlib.sha256(b"localhost").digest() + b"\x01" + bytes(4)


def registration_credential(**overrides: Any) -> RegistrationCredential:
    values: Dict[str, Any] = {
        "id": "user-1",
        "raw_id": RAW_ID,
        "response": AttestationResponse(
            client_data_json=bytes(range(10)),
            attestation_object=bytes(range(20)),
        ),
        "type": "public-key",
    }
    values.update(overrides)
    return RegistrationCredential(**values)


def authentication_credential(**overrides: Any) -> AuthenticationCredential:
    values: Dict[str, Any] = {
        "id": "user-1",
        "raw_id": RAW_ID,
        "response": AssertionResponse(
            authenticator_data=bytes(37),
            client_data_json=b'{"type":"webauthn.get"}',
            signature=bytes(range(70)),
            user_handle=b"user-1",
        ),
        "type": "public-key",
    }
    values.update(overrides)
    return AuthenticationCredential(**values)


def creation_options(challenge: bytes = ZERO_CHALLENGE) -> CreationOptions:
    return CreationOptions(challenge=challenge, rp_id="localhost", user_id=b"alice", user_name="alice")


def request_options(challenge: bytes = ZERO_CHALLENGE) -> RequestOptions:
    return RequestOptions(challenge=challenge, rp_id="localhost")


def client_data(ceremony: str, challenge: bytes = ZERO_CHALLENGE) -> bytes:
    return json.dumps(
        {
            "type": f"webauthn.{ceremony}",
            "challenge": websafe_encode(challenge),
            "origin": "https://localhost",
            "crossOrigin": False,
        }
    ).encode("utf-8")


def registration_json(**response_overrides: Any) -> Dict[str, Any]:
    """A registration result as serialised by ``PublicKeyCredential.toJSON()``."""

    attestation_object = cbor.encode({"fmt": "none", "attStmt": {}, "authData": AUTHENTICATOR_DATA})
    response: Dict[str, Any] = {
        "clientDataJSON": websafe_encode(client_data("create")),
        "attestationObject": websafe_encode(attestation_object),
    }
    response.update(response_overrides)
    return {
        "id": websafe_encode(RAW_ID),
        "rawId": websafe_encode(RAW_ID),
        "type": "public-key",
        "response": response,
        "clientExtensionResults": {},
    }


def authentication_json(**response_overrides: Any) -> Dict[str, Any]:
    response: Dict[str, Any] = {
        "authenticatorData": websafe_encode(AUTHENTICATOR_DATA),
        "clientDataJSON": websafe_encode(client_data("get")),
        "signature": websafe_encode(bytes(range(70))),
        "userHandle": websafe_encode(b"user-1"),
    }
    response.update(response_overrides)
    return {
        "id": websafe_encode(RAW_ID),
        "rawId": websafe_encode(RAW_ID),
        "type": "public-key",
        "response": response,
        "clientExtensionResults": {},
    }


class FakeRuntime:
    def __init__(self, error: Optional[Exception] = None) -> None:
        self.error = error
        self.calls: List[Mapping[str, Any]] = []

    async def execute(self, inputs: Mapping[str, Any]) -> Witness:
        self.calls.append(inputs)
        if self.error is not None:
            raise self.error
        return Witness(data=b"witness")


class FakeBackend:
    def __init__(self, error: Optional[Exception] = None, load_error: Optional[Exception] = None) -> None:
        self.error = error
        self.load_error = load_error
        self.loads = 0
        self.witnesses: List[Witness] = []

    async def load(self) -> str:
        self.loads += 1
        if self.load_error is not None:
            raise self.load_error
        return "/usr/bin/bb"

    async def generate_proof(self, witness: Witness) -> ProofArtifact:
        self.witnesses.append(witness)
        if self.error is not None:
            raise self.error
        return ProofArtifact(witness=witness, proof=b"\xaa\xbb", public_inputs=[bytes(31) + b"\x01"])


def fake_session(
    kind: str,
    runtime: Optional[FakeRuntime] = None,
    backend: Optional[FakeBackend] = None,
) -> ProofSession:
    circuit = CompiledCircuit(name=f"noir_webauthn_{kind}", program_dir=Path("."))
    return ProofSession(kind, circuit, runtime or FakeRuntime(), backend or FakeBackend())
