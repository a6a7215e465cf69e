"""High level registration and authentication proving."""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Callable, Union

from .backend import ProofArtifact
from .constants import PUBLIC_KEY_CREDENTIAL_TYPE
from .credentials import (
    AuthenticationCredential,
    CreationOptions,
    RegistrationCredential,
    RequestOptions,
    describe_credential,
    describe_options,
)
from .errors import UnsupportedCredentialTypeError
from .inputs import CircuitInput, map_authentication, map_registration
from .session import AUTHENTICATION, REGISTRATION, ProofSession

logger = logging.getLogger(__name__)


class ProveStage(str, Enum):
    IDLE = "idle"
    TYPE_VALIDATED = "type-validated"
    MAPPED = "mapped"
    WITNESS_COMPUTED = "witness-computed"
    PROVED = "proved"
    DONE = "done"
    FAILED = "failed"


def _log_payload(title: str, render: Callable[[], object]) -> None:
    if not logger.isEnabledFor(logging.DEBUG):
        return
    try:
        logger.debug("%s\n%s", title, json.dumps(render(), indent=2))
    except (TypeError, ValueError) as exc:
        logger.debug("%s could not be rendered: %s", title, exc)


async def _prove(
    kind: str,
    session: ProofSession,
    options: Union[CreationOptions, RequestOptions],
    credential: Union[RegistrationCredential, AuthenticationCredential],
    mapper: Callable[[], CircuitInput],
    show_raw_bytes: bool,
) -> ProofArtifact:
    if session.kind != kind:
        raise ValueError(f"Cannot prove {kind} with a {session.kind} session")

    _log_payload(
        f"{kind.upper()} OPTIONS",
        lambda: describe_options(options, show_raw_bytes=show_raw_bytes),
    )
    _log_payload(
        f"{kind.upper()} RESPONSE",
        lambda: describe_credential(credential, show_raw_bytes=show_raw_bytes),
    )

    stage = ProveStage.IDLE
    try:
        # Checked here as well as in the mapper so no field is encoded first.
        if credential.type != PUBLIC_KEY_CREDENTIAL_TYPE:
            raise UnsupportedCredentialTypeError(credential.type)
        stage = ProveStage.TYPE_VALIDATED

        record = mapper()
        stage = ProveStage.MAPPED

        logger.info("Generating %s witness...", kind)
        witness = await session.execute(record)
        stage = ProveStage.WITNESS_COMPUTED
        logger.debug("%s witness: %d bytes", kind, len(witness.data))

        logger.info("Proving %s...", kind)
        artifact = await session.prove(witness)
        stage = ProveStage.PROVED
    except Exception as exc:
        logger.warning("%s proof %s after stage %s: %s", kind, ProveStage.FAILED.value, stage.value, exc)
        raise

    stage = ProveStage.DONE
    logger.info("%s proof %s: %d bytes", kind, stage.value, len(artifact.proof))
    _log_payload(f"{kind.upper()} PROOF", artifact.to_dict)
    return artifact


async def prove_registration(
    session: ProofSession,
    options: CreationOptions,
    credential: RegistrationCredential,
    *,
    show_raw_bytes: bool = False,
) -> ProofArtifact:
    return await _prove(
        REGISTRATION,
        session,
        options,
        credential,
        lambda: map_registration(options, credential),
        show_raw_bytes,
    )


async def prove_authentication(
    session: ProofSession,
    options: RequestOptions,
    credential: AuthenticationCredential,
    *,
    show_raw_bytes: bool = False,
) -> ProofArtifact:
    return await _prove(
        AUTHENTICATION,
        session,
        options,
        credential,
        lambda: map_authentication(options, credential),
        show_raw_bytes,
    )


__all__ = ["ProveStage", "prove_authentication", "prove_registration"]
