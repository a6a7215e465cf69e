"""Command line interface for proving WebAuthn ceremonies in zero knowledge."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict

from zkwebauthn.config import settings
from zkwebauthn.credentials import (
    AuthenticationCredential,
    CreationOptions,
    RegistrationCredential,
    RequestOptions,
)
from zkwebauthn.errors import ZKWebAuthnError
from zkwebauthn.inputs import map_authentication, map_registration
from zkwebauthn.options import authentication_options, registration_options
from zkwebauthn.prove import prove_authentication, prove_registration
from zkwebauthn.session import REGISTRATION, open_session

KINDS = ("registration", "authentication")


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        help="Logging level (default: %(default)s)",
    )
    parser.add_argument(
        "--raw-bytes",
        action="store_true",
        default=settings.show_raw_bytes,
        help="Log byte fields as arrays instead of base64",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    options_parser = subparsers.add_parser("options", help="Issue ceremony options with a fresh challenge")
    options_parser.add_argument("kind", choices=KINDS)
    options_parser.add_argument("--username", default="", help="User name for registration")
    options_parser.add_argument("--rp-id", help="Relying party identifier")
    options_parser.add_argument(
        "--user-verification",
        default="preferred",
        choices=("preferred", "required", "discouraged"),
    )
    options_parser.add_argument(
        "--attachment",
        default="all-supported",
        choices=("all-supported", "platform", "cross-platform"),
    )
    options_parser.add_argument("--no-es256", dest="es256", action="store_false", help="Disable ES256")
    options_parser.add_argument("--no-rs256", dest="rs256", action="store_false", help="Disable RS256")

    for command, help_text in (
        ("inputs", "Print the circuit input record for a credential"),
        ("prove", "Generate a proof for a credential"),
    ):
        command_parser = subparsers.add_parser(command, help=help_text)
        command_parser.add_argument("kind", choices=KINDS)
        command_parser.add_argument("options", help="Path to the options JSON")
        command_parser.add_argument("credential", help="Path to the credential JSON")

    return parser.parse_args(argv)


def _load_json(path: str) -> Dict[str, Any]:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a JSON object")
    return data


def _load(kind: str, options_path: str, credential_path: str) -> tuple[Any, Any]:
    options_data = _load_json(options_path)
    credential_data = _load_json(credential_path)
    # Accept the {"publicKey": {...}} wrapper passed to navigator.credentials.
    options_data = options_data.get("publicKey", options_data)
    if kind == REGISTRATION:
        return CreationOptions.from_dict(options_data), RegistrationCredential.from_dict(credential_data)
    return RequestOptions.from_dict(options_data), AuthenticationCredential.from_dict(credential_data)


async def _prove(kind: str, options: Any, credential: Any, show_raw_bytes: bool) -> Dict[str, object]:
    session = open_session(kind, settings)
    if kind == REGISTRATION:
        artifact = await prove_registration(session, options, credential, show_raw_bytes=show_raw_bytes)
    else:
        artifact = await prove_authentication(session, options, credential, show_raw_bytes=show_raw_bytes)
    return artifact.to_dict()


def main(argv: list[str] | None = None) -> int:
    namespace = parse_args(argv if argv is not None else sys.argv[1:])
    logging.basicConfig(level=namespace.log_level.upper())

    if namespace.command == "options":
        if namespace.kind == REGISTRATION:
            if not namespace.username:
                print("--username is required for registration options", file=sys.stderr)
                return 1
            options = registration_options(
                namespace.username,
                rp_id=namespace.rp_id,
                user_verification=namespace.user_verification,
                attachment=namespace.attachment,
                es256=namespace.es256,
                rs256=namespace.rs256,
            )
        else:
            options = authentication_options(
                rp_id=namespace.rp_id,
                user_verification=namespace.user_verification,
            )
        print(json.dumps(options.to_dict(), indent=2))
        return 0

    try:
        options, credential = _load(namespace.kind, namespace.options, namespace.credential)
    except ZKWebAuthnError as exc:
        print(f"{type(exc).__name__}: {exc}", file=sys.stderr)
        return 1
    except (OSError, KeyError, TypeError, ValueError) as exc:
        print(f"Invalid input: {exc}", file=sys.stderr)
        return 1

    try:
        if namespace.command == "inputs":
            mapper = map_registration if namespace.kind == REGISTRATION else map_authentication
            payload = mapper(options, credential).to_dict()
        elif namespace.command == "prove":
            payload = asyncio.run(_prove(namespace.kind, options, credential, namespace.raw_bytes))
        else:
            raise RuntimeError("Unreachable")
    except (ZKWebAuthnError, OSError) as exc:
        print(f"{type(exc).__name__}: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
