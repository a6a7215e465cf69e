"""Map WebAuthn credentials onto the input schema of the Noir circuits."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple, Union

from fido2.utils import websafe_decode

from .bounded import BoundedVec, ByteSource, as_bytes, to_bounded_vec
from .constants import (
    ATTESTATION_OBJECT_MAX_LEN,
    AUTHENTICATOR_DATA_MAX_LEN,
    CHALLENGE_LEN,
    CLIENT_DATA_JSON_MAX_LEN,
    ID_MAX_LEN,
    PUBLIC_KEY_CREDENTIAL_TYPE,
    SIGNATURE_MAX_LEN,
)
from .credentials import (
    AuthenticationCredential,
    CreationOptions,
    RegistrationCredential,
    RequestOptions,
)
from .errors import InvalidChallengeError, UnsupportedCredentialTypeError


@dataclass(frozen=True)
class AttestationResponseInput:
    client_data_json: BoundedVec
    attestation_object: BoundedVec

    def to_dict(self) -> Dict[str, object]:
        return {
            "client_data_json": self.client_data_json.to_dict(),
            "attestation_object": self.attestation_object.to_dict(),
        }


@dataclass(frozen=True)
class AssertionResponseInput:
    authenticator_data: BoundedVec
    client_data_json: BoundedVec
    signature: BoundedVec
    user_handle: BoundedVec

    def to_dict(self) -> Dict[str, object]:
        return {
            "authenticator_data": self.authenticator_data.to_dict(),
            "client_data_json": self.client_data_json.to_dict(),
            "signature": self.signature.to_dict(),
            "user_handle": self.user_handle.to_dict(),
        }


@dataclass(frozen=True)
class RegistrationCredentialInput:
    id: BoundedVec
    raw_id: BoundedVec
    response: AttestationResponseInput
    credential_type: str

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id.to_dict(),
            "raw_id": self.raw_id.to_dict(),
            "response": self.response.to_dict(),
            "credential_type": self.credential_type,
        }


@dataclass(frozen=True)
class AuthenticationCredentialInput:
    id: BoundedVec
    raw_id: BoundedVec
    response: AssertionResponseInput
    credential_type: str

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id.to_dict(),
            "raw_id": self.raw_id.to_dict(),
            "response": self.response.to_dict(),
            "credential_type": self.credential_type,
        }


@dataclass(frozen=True)
class RegistrationInput:
    """Full input record of the registration circuit."""

    challenge: Tuple[int, ...]
    credential: RegistrationCredentialInput

    def to_dict(self) -> Dict[str, object]:
        return {"challenge": list(self.challenge), "credential": self.credential.to_dict()}


@dataclass(frozen=True)
class AuthenticationInput:
    """Full input record of the authentication circuit."""

    challenge: Tuple[int, ...]
    credential: AuthenticationCredentialInput

    def to_dict(self) -> Dict[str, object]:
        return {"challenge": list(self.challenge), "credential": self.credential.to_dict()}


CircuitInput = Union[RegistrationInput, AuthenticationInput]


def normalize_challenge(challenge: Union[ByteSource, str]) -> Tuple[int, ...]:
    """Return the challenge as exactly ``CHALLENGE_LEN`` byte values.

    Accepts raw bytes, a buffer view, a sequence of ints or base64url text.
    """

    if isinstance(challenge, str):
        try:
            raw = websafe_decode(challenge)
        except ValueError as exc:
            raise InvalidChallengeError(str(exc)) from exc
    else:
        try:
            raw = as_bytes(challenge)
        except (TypeError, ValueError) as exc:
            raise InvalidChallengeError(f"Challenge is not a byte sequence: {exc}") from exc
    if len(raw) != CHALLENGE_LEN:
        raise InvalidChallengeError(
            f"Challenge must be {CHALLENGE_LEN} bytes, got {len(raw)}"
        )
    return tuple(raw)


def _check_type(credential_type: str) -> None:
    if credential_type != PUBLIC_KEY_CREDENTIAL_TYPE:
        raise UnsupportedCredentialTypeError(credential_type)


def map_registration(options: CreationOptions, credential: RegistrationCredential) -> RegistrationInput:
    _check_type(credential.type)
    response = credential.response
    return RegistrationInput(
        challenge=normalize_challenge(options.challenge),
        credential=RegistrationCredentialInput(
            id=to_bounded_vec("id", credential.id.encode("utf-8"), ID_MAX_LEN),
            raw_id=to_bounded_vec("rawId", credential.raw_id, ID_MAX_LEN),
            response=AttestationResponseInput(
                client_data_json=to_bounded_vec(
                    "clientDataJSON", response.client_data_json, CLIENT_DATA_JSON_MAX_LEN
                ),
                attestation_object=to_bounded_vec(
                    "attestationObject", response.attestation_object, ATTESTATION_OBJECT_MAX_LEN
                ),
            ),
            credential_type=credential.type,
        ),
    )


def map_authentication(options: RequestOptions, credential: AuthenticationCredential) -> AuthenticationInput:
    _check_type(credential.type)
    response = credential.response
    return AuthenticationInput(
        challenge=normalize_challenge(options.challenge),
        credential=AuthenticationCredentialInput(
            id=to_bounded_vec("id", credential.id.encode("utf-8"), ID_MAX_LEN),
            raw_id=to_bounded_vec("rawId", credential.raw_id, ID_MAX_LEN),
            response=AssertionResponseInput(
                authenticator_data=to_bounded_vec(
                    "authenticatorData", response.authenticator_data, AUTHENTICATOR_DATA_MAX_LEN
                ),
                client_data_json=to_bounded_vec(
                    "clientDataJSON", response.client_data_json, CLIENT_DATA_JSON_MAX_LEN
                ),
                signature=to_bounded_vec("signature", response.signature, SIGNATURE_MAX_LEN),
                user_handle=to_bounded_vec("userHandle", response.user_handle, ID_MAX_LEN),
            ),
            credential_type=credential.type,
        ),
    )


__all__ = [
    "AssertionResponseInput",
    "AttestationResponseInput",
    "AuthenticationCredentialInput",
    "AuthenticationInput",
    "CircuitInput",
    "RegistrationCredentialInput",
    "RegistrationInput",
    "map_authentication",
    "map_registration",
    "normalize_challenge",
]
