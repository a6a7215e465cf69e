"""FastAPI-powered WebAuthn proving service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel

from .config import settings
from .credentials import (
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
)
from .options import authentication_options, registration_options
from .prove import prove_authentication, prove_registration
from .session import AUTHENTICATION, REGISTRATION, ProofSession, open_session

logger = logging.getLogger(__name__)


class RegistrationOptionsRequest(BaseModel):
    username: str
    rp_id: str | None = None
    user_verification: str = "preferred"
    attachment: str = "all-supported"
    attestation: str = "none"
    es256: bool = True
    rs256: bool = True


class AuthenticationOptionsRequest(BaseModel):
    rp_id: str | None = None
    user_verification: str = "preferred"


class ProveRequest(BaseModel):
    options: Dict[str, Any]
    credential: Dict[str, Any]


class ProofResponse(BaseModel):
    witness: str
    proof: str
    public_inputs: List[str]


def _sessions(request: Request) -> Dict[str, ProofSession]:
    return request.app.state.sessions


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    if app.state.sessions is None:
        app.state.sessions = {
            REGISTRATION: open_session(REGISTRATION, settings),
            AUTHENTICATION: open_session(AUTHENTICATION, settings),
        }
    for session in app.state.sessions.values():
        session.warm_up()
    yield


def _bad_request(exc: Exception) -> HTTPException:
    return HTTPException(status_code=400, detail=str(exc))


def create_app(sessions: Optional[Dict[str, ProofSession]] = None) -> FastAPI:
    """Build the service; sessions are opened from settings at startup when omitted."""

    app = FastAPI(
        title="zkwebauthn",
        description="Zero-knowledge proofs of WebAuthn registration and authentication",
        lifespan=_lifespan,
    )
    app.state.sessions = sessions

    @app.post("/options/registration")
    async def options_registration(request: RegistrationOptionsRequest) -> Dict[str, Any]:
        try:
            options = registration_options(
                request.username,
                rp_id=request.rp_id,
                user_verification=request.user_verification,
                attachment=request.attachment,
                attestation=request.attestation,
                es256=request.es256,
                rs256=request.rs256,
            )
        except ValueError as exc:
            raise _bad_request(exc) from exc
        return options.to_dict()

    @app.post("/options/authentication")
    async def options_authentication(request: AuthenticationOptionsRequest) -> Dict[str, Any]:
        options = authentication_options(rp_id=request.rp_id, user_verification=request.user_verification)
        return options.to_dict()

    @app.post("/prove/registration", response_model=ProofResponse)
    async def registration(body: ProveRequest, request: Request) -> ProofResponse:
        try:
            options = CreationOptions.from_dict(body.options)
            credential = RegistrationCredential.from_dict(body.credential)
        except (KeyError, TypeError, ValueError) as exc:
            raise _bad_request(exc) from exc
        session = _sessions(request)[REGISTRATION]
        return await _respond(
            prove_registration(session, options, credential, show_raw_bytes=settings.show_raw_bytes)
        )

    @app.post("/prove/authentication", response_model=ProofResponse)
    async def authentication(body: ProveRequest, request: Request) -> ProofResponse:
        try:
            options = RequestOptions.from_dict(body.options)
            credential = AuthenticationCredential.from_dict(body.credential)
        except (KeyError, TypeError, ValueError) as exc:
            raise _bad_request(exc) from exc
        session = _sessions(request)[AUTHENTICATION]
        return await _respond(
            prove_authentication(session, options, credential, show_raw_bytes=settings.show_raw_bytes)
        )

    return app


async def _respond(pending: Any) -> ProofResponse:
    try:
        artifact = await pending
    except (UnsupportedCredentialTypeError, InvalidChallengeError, OversizedFieldError) as exc:
        raise _bad_request(exc) from exc
    except WitnessGenerationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except ProvingBackendError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return ProofResponse(**artifact.to_dict())


app = create_app()


__all__ = ["app", "create_app"]
