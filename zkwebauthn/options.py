"""Builders for the options handed to the browser credential ceremony."""

from __future__ import annotations

import secrets
from typing import List, Optional

from .constants import CHALLENGE_LEN, ES256, RS256
from .credentials import CreationOptions, RequestOptions


def issue_challenge() -> bytes:
    return secrets.token_bytes(CHALLENGE_LEN)


def registration_options(
    username: str,
    *,
    rp_id: Optional[str] = None,
    user_verification: str = "preferred",
    attachment: str = "all-supported",
    attestation: str = "none",
    es256: bool = True,
    rs256: bool = True,
) -> CreationOptions:
    """Creation options with a fresh challenge.

    ``attachment`` of ``"all-supported"`` leaves the authenticator attachment
    unconstrained; ``"platform"`` or ``"cross-platform"`` pin it.
    """

    algorithms: List[int] = []
    if es256:
        algorithms.append(ES256)
    if rs256:
        algorithms.append(RS256)
    if not algorithms:
        raise ValueError("At least one public key algorithm must be enabled")

    return CreationOptions(
        challenge=issue_challenge(),
        rp_id=rp_id,
        user_id=username.encode("utf-8"),
        user_name=username,
        pub_key_cred_params=algorithms,
        user_verification=user_verification,
        authenticator_attachment=None if attachment == "all-supported" else attachment,
        attestation=attestation,
    )


def authentication_options(
    *,
    rp_id: Optional[str] = None,
    user_verification: str = "preferred",
) -> RequestOptions:
    # allowCredentials stays empty so the browser offers discoverable credentials.
    return RequestOptions(
        challenge=issue_challenge(),
        rp_id=rp_id,
        user_verification=user_verification,
    )


__all__ = ["authentication_options", "issue_challenge", "registration_options"]
