"""Typed WebAuthn ceremony values and their JSON serialisation.

Parsing is delegated to :mod:`fido2.webauthn`; the dataclasses here only keep
the raw bytes the circuits consume.
"""

from __future__ import annotations

import base64
import struct
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, TypeVar

from fido2.utils import websafe_encode
from fido2.webauthn import (
    AuthenticationResponse,
    PublicKeyCredentialCreationOptions,
    PublicKeyCredentialRequestOptions,
    RegistrationResponse,
)

from .constants import DEFAULT_TIMEOUT_MS, PUBLIC_KEY_CREDENTIAL_TYPE
from .errors import UnsupportedCredentialTypeError

T = TypeVar("T")


def _require_mapping(value: object, what: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"{what} must be a JSON object")
    return value


def _check_nested(data: Mapping[str, Any], mappings: tuple = (), lists: tuple = ()) -> None:
    for key in mappings:
        if data.get(key) is not None:
            _require_mapping(data[key], f"'{key}'")
    for key in lists:
        entries = data.get(key)
        if entries is None:
            continue
        if not isinstance(entries, list):
            raise ValueError(f"'{key}' must be a JSON array")
        for entry in entries:
            _require_mapping(entry, f"Entries of '{key}'")


def _parse(parser: Callable[[Mapping[str, Any]], T], data: Mapping[str, Any], what: str) -> T:
    try:
        return parser(data)
    except (AttributeError, KeyError, TypeError, ValueError, IndexError, struct.error) as exc:
        raise ValueError(f"Malformed {what}: {exc}") from exc


def _enum_value(value: object, default: Optional[str]) -> Optional[str]:
    if value is None:
        return default
    return str(getattr(value, "value", value))


def _credential_json(data: object) -> Mapping[str, Any]:
    data = _require_mapping(data, "Credential")
    credential_type = data.get("type", PUBLIC_KEY_CREDENTIAL_TYPE)
    if credential_type != PUBLIC_KEY_CREDENTIAL_TYPE:
        raise UnsupportedCredentialTypeError(str(credential_type))
    if not isinstance(data.get("id"), str):
        raise ValueError("Missing field 'id'")
    _require_mapping(data.get("response"), "'response'")
    return data


def _render(value: bytes, raw: bool) -> object:
    return list(value) if raw else base64.b64encode(value).decode("ascii")


@dataclass(frozen=True)
class AttestationResponse:
    """Response of a registration ceremony (``navigator.credentials.create``)."""

    client_data_json: bytes
    attestation_object: bytes

    def to_dict(self) -> Dict[str, str]:
        return {
            "clientDataJSON": websafe_encode(self.client_data_json),
            "attestationObject": websafe_encode(self.attestation_object),
        }


@dataclass(frozen=True)
class AssertionResponse:
    """Response of an authentication ceremony (``navigator.credentials.get``)."""

    authenticator_data: bytes
    client_data_json: bytes
    signature: bytes
    user_handle: Optional[bytes] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "authenticatorData": websafe_encode(self.authenticator_data),
            "clientDataJSON": websafe_encode(self.client_data_json),
            "signature": websafe_encode(self.signature),
            "userHandle": None if self.user_handle is None else websafe_encode(self.user_handle),
        }


@dataclass(frozen=True)
class RegistrationCredential:
    id: str
    raw_id: bytes
    response: AttestationResponse
    type: str = PUBLIC_KEY_CREDENTIAL_TYPE

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "rawId": websafe_encode(self.raw_id),
            "type": self.type,
            "response": self.response.to_dict(),
            "clientExtensionResults": {},
        }

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "RegistrationCredential":
        data = _credential_json(data)
        parsed = _parse(RegistrationResponse.from_dict, data, "registration response")
        return RegistrationCredential(
            id=data["id"],
            raw_id=bytes(parsed.raw_id),
            response=AttestationResponse(
                client_data_json=bytes(parsed.response.client_data),
                attestation_object=bytes(parsed.response.attestation_object),
            ),
        )


@dataclass(frozen=True)
class AuthenticationCredential:
    id: str
    raw_id: bytes
    response: AssertionResponse
    type: str = PUBLIC_KEY_CREDENTIAL_TYPE

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "rawId": websafe_encode(self.raw_id),
            "type": self.type,
            "response": self.response.to_dict(),
            "clientExtensionResults": {},
        }

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "AuthenticationCredential":
        data = _credential_json(data)
        parsed = _parse(AuthenticationResponse.from_dict, data, "authentication response")
        response = parsed.response
        return AuthenticationCredential(
            id=data["id"],
            raw_id=bytes(parsed.raw_id),
            response=AssertionResponse(
                authenticator_data=bytes(response.authenticator_data),
                client_data_json=bytes(response.client_data),
                signature=bytes(response.signature),
                user_handle=None if response.user_handle is None else bytes(response.user_handle),
            ),
        )


@dataclass(frozen=True)
class CreationOptions:
    """Subset of ``PublicKeyCredentialCreationOptions`` used by the prover."""

    challenge: bytes
    rp_id: Optional[str] = None
    rp_name: str = "WebAuthn Demo"
    user_id: bytes = b""
    user_name: str = ""
    pub_key_cred_params: List[int] = field(default_factory=list)
    user_verification: str = "preferred"
    authenticator_attachment: Optional[str] = None
    resident_key: str = "preferred"
    attestation: str = "none"
    timeout: int = DEFAULT_TIMEOUT_MS

    def to_dict(self) -> Dict[str, object]:
        selection: Dict[str, object] = {
            "userVerification": self.user_verification,
            "residentKey": self.resident_key,
            "requireResidentKey": False,
        }
        if self.authenticator_attachment is not None:
            selection["authenticatorAttachment"] = self.authenticator_attachment
        rp: Dict[str, object] = {"name": self.rp_name}
        if self.rp_id is not None:
            rp["id"] = self.rp_id
        return {
            "challenge": websafe_encode(self.challenge),
            "rp": rp,
            "user": {
                "id": websafe_encode(self.user_id),
                "name": self.user_name,
                "displayName": self.user_name,
            },
            "pubKeyCredParams": [
                {"alg": alg, "type": PUBLIC_KEY_CREDENTIAL_TYPE} for alg in self.pub_key_cred_params
            ],
            "authenticatorSelection": selection,
            "timeout": self.timeout,
            "attestation": self.attestation,
        }

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "CreationOptions":
        data = _require_mapping(data, "Creation options")
        _check_nested(data, mappings=("rp", "user", "authenticatorSelection"), lists=("pubKeyCredParams",))
        parsed = _parse(PublicKeyCredentialCreationOptions.from_dict, data, "creation options")
        selection = parsed.authenticator_selection
        return CreationOptions(
            challenge=bytes(parsed.challenge),
            rp_id=parsed.rp.id,
            rp_name=parsed.rp.name,
            user_id=bytes(parsed.user.id),
            user_name=parsed.user.name or "",
            pub_key_cred_params=[int(param.alg) for param in parsed.pub_key_cred_params],
            user_verification=_enum_value(getattr(selection, "user_verification", None), "preferred"),
            authenticator_attachment=_enum_value(getattr(selection, "authenticator_attachment", None), None),
            resident_key=_enum_value(getattr(selection, "resident_key", None), "preferred"),
            attestation=_enum_value(parsed.attestation, "none"),
            timeout=DEFAULT_TIMEOUT_MS if parsed.timeout is None else int(parsed.timeout),
        )


@dataclass(frozen=True)
class RequestOptions:
    """Subset of ``PublicKeyCredentialRequestOptions`` used by the prover."""

    challenge: bytes
    rp_id: Optional[str] = None
    user_verification: str = "preferred"
    # Empty so that discoverable credentials can be selected.
    allow_credentials: List[bytes] = field(default_factory=list)
    timeout: int = DEFAULT_TIMEOUT_MS

    def to_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {
            "challenge": websafe_encode(self.challenge),
            "timeout": self.timeout,
            "userVerification": self.user_verification,
            "allowCredentials": [
                {"id": websafe_encode(cred_id), "type": PUBLIC_KEY_CREDENTIAL_TYPE}
                for cred_id in self.allow_credentials
            ],
        }
        if self.rp_id is not None:
            payload["rpId"] = self.rp_id
        return payload

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "RequestOptions":
        data = _require_mapping(data, "Request options")
        _check_nested(data, lists=("allowCredentials",))
        parsed = _parse(PublicKeyCredentialRequestOptions.from_dict, data, "request options")
        return RequestOptions(
            challenge=bytes(parsed.challenge),
            rp_id=parsed.rp_id,
            user_verification=_enum_value(parsed.user_verification, "preferred"),
            allow_credentials=[bytes(descriptor.id) for descriptor in parsed.allow_credentials or []],
            timeout=DEFAULT_TIMEOUT_MS if parsed.timeout is None else int(parsed.timeout),
        )


def describe_credential(credential: object, *, show_raw_bytes: bool = False) -> Dict[str, object]:
    """Render a credential for diagnostics, byte fields as base64 or arrays."""

    if isinstance(credential, RegistrationCredential):
        reg = credential.response
        response: Dict[str, object] = {
            "attestationObject": _render(reg.attestation_object, show_raw_bytes),
            "clientDataJSON": _render(reg.client_data_json, show_raw_bytes),
        }
    elif isinstance(credential, AuthenticationCredential):
        auth = credential.response
        response = {
            "authenticatorData": _render(auth.authenticator_data, show_raw_bytes),
            "clientDataJSON": _render(auth.client_data_json, show_raw_bytes),
            "signature": _render(auth.signature, show_raw_bytes),
            "userHandle": (
                None if auth.user_handle is None else _render(auth.user_handle, show_raw_bytes)
            ),
        }
    else:
        raise TypeError(f"Unsupported credential value: {type(credential).__name__}")
    return {
        "id": credential.id,
        "rawId": _render(credential.raw_id, show_raw_bytes),
        "response": response,
        "type": credential.type,
    }


def describe_options(options: object, *, show_raw_bytes: bool = False) -> Dict[str, object]:
    if not isinstance(options, (CreationOptions, RequestOptions)):
        raise TypeError(f"Unsupported options value: {type(options).__name__}")
    payload = options.to_dict()
    payload["challenge"] = _render(options.challenge, show_raw_bytes)
    return payload


__all__ = [
    "AssertionResponse",
    "AttestationResponse",
    "AuthenticationCredential",
    "CreationOptions",
    "RegistrationCredential",
    "RequestOptions",
    "describe_credential",
    "describe_options",
]
