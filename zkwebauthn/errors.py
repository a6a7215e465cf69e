"""Exceptions raised while turning a credential into a proof."""

from __future__ import annotations


class ZKWebAuthnError(Exception):
    """Base class for every failure signalled by the proving pipeline."""


class UnsupportedCredentialTypeError(ZKWebAuthnError, ValueError):
    def __init__(self, credential_type: str) -> None:
        super().__init__(
            f"Credential must have type 'public-key', got {credential_type!r}"
        )
        self.credential_type = credential_type


class OversizedFieldError(ZKWebAuthnError, ValueError):
    """A credential field does not fit the capacity declared by the circuit."""

    def __init__(self, field: str, length: int, max_len: int) -> None:
        super().__init__(f"{field} is too long ({length} > {max_len} bytes)")
        self.field = field
        self.length = length
        self.max_len = max_len


class InvalidChallengeError(ZKWebAuthnError, ValueError):
    """The ceremony challenge is not a 32-byte sequence."""


class WitnessGenerationError(ZKWebAuthnError, RuntimeError):
    """The circuit runtime rejected the input record."""


class ProvingBackendError(ZKWebAuthnError, RuntimeError):
    """The proving backend failed to produce a proof for a witness."""


__all__ = [
    "ZKWebAuthnError",
    "UnsupportedCredentialTypeError",
    "OversizedFieldError",
    "InvalidChallengeError",
    "WitnessGenerationError",
    "ProvingBackendError",
]
