"""Zero-knowledge proofs of WebAuthn registration and authentication."""

from .backend import CompiledCircuit, ProofArtifact, Witness
from .bounded import BoundedVec, to_bounded_vec
from .credentials import (
    AssertionResponse,
    AttestationResponse,
    AuthenticationCredential,
    CreationOptions,
    RegistrationCredential,
    RequestOptions,
)
from .errors import (
    InvalidChallengeError,
    OversizedFieldError,
    ProvingBackendError,
    UnsupportedCredentialTypeError,
    WitnessGenerationError,
    ZKWebAuthnError,
)
from .inputs import AuthenticationInput, RegistrationInput, map_authentication, map_registration
from .prove import ProveStage, prove_authentication, prove_registration
from .session import ProofSession, open_session

__all__ = [
    "AssertionResponse",
    "AttestationResponse",
    "AuthenticationCredential",
    "AuthenticationInput",
    "BoundedVec",
    "CompiledCircuit",
    "CreationOptions",
    "InvalidChallengeError",
    "OversizedFieldError",
    "ProofArtifact",
    "ProofSession",
    "ProveStage",
    "ProvingBackendError",
    "RegistrationCredential",
    "RegistrationInput",
    "RequestOptions",
    "UnsupportedCredentialTypeError",
    "Witness",
    "WitnessGenerationError",
    "ZKWebAuthnError",
    "map_authentication",
    "map_registration",
    "open_session",
    "prove_authentication",
    "prove_registration",
    "to_bounded_vec",
]
