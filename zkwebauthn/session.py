"""Per-circuit proving sessions."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional, Protocol, Type

from .backend import BarretenbergBackend, CompiledCircuit, NargoRuntime, ProofArtifact, Witness
from .config import Settings
from .config import settings as default_settings
from .inputs import AuthenticationInput, CircuitInput, RegistrationInput

logger = logging.getLogger(__name__)

REGISTRATION = "registration"
AUTHENTICATION = "authentication"

RECORD_TYPES: Dict[str, Type[Any]] = {
    REGISTRATION: RegistrationInput,
    AUTHENTICATION: AuthenticationInput,
}


class CircuitRuntime(Protocol):
    async def execute(self, inputs: Mapping[str, Any]) -> Witness:
        ...


class ProvingBackend(Protocol):
    async def load(self) -> object:
        ...

    async def generate_proof(self, witness: Witness) -> ProofArtifact:
        ...


class ProofSession:
    """Binds one compiled circuit to its execution runtime and proving backend.

    A session keeps no per-request state, so concurrent ``execute`` and
    ``prove`` calls are independent as long as the runtime and backend are.
    """

    def __init__(
        self,
        kind: str,
        circuit: CompiledCircuit,
        runtime: CircuitRuntime,
        backend: ProvingBackend,
    ) -> None:
        if kind not in RECORD_TYPES:
            raise ValueError(f"Unknown circuit kind: {kind!r}")
        self.kind = kind
        self.circuit = circuit
        self.runtime = runtime
        self.backend = backend
        self._warm_up_task: Optional["asyncio.Task[None]"] = None

    def __repr__(self) -> str:
        return f"ProofSession(kind={self.kind!r}, circuit={self.circuit.name!r})"

    async def execute(self, record: CircuitInput) -> Witness:
        expected = RECORD_TYPES[self.kind]
        if not isinstance(record, expected):
            raise TypeError(f"{self.kind} session expects {expected.__name__}, got {type(record).__name__}")
        return await self.runtime.execute(record.to_dict())

    async def prove(self, witness: Witness) -> ProofArtifact:
        return await self.backend.generate_proof(witness)

    def warm_up(self) -> "asyncio.Task[None]":
        """Schedule a best-effort warm-up; must be called from a running loop."""

        if self._warm_up_task is None:
            self._warm_up_task = asyncio.get_running_loop().create_task(self._warm_up())
        return self._warm_up_task

    async def _warm_up(self) -> None:
        try:
            await self.runtime.execute({})
        except Exception as exc:
            logger.debug("%s warm-up execution failed (%s); preloading proving backend", self.kind, exc)
            try:
                await self.backend.load()
            except Exception as load_exc:
                # Retried by the backend on the first real proof.
                logger.warning("%s proving backend preload failed: %s", self.kind, load_exc)
            else:
                logger.debug("%s proving backend preloaded", self.kind)
        else:
            logger.debug("%s warm-up execution completed", self.kind)


def open_session(kind: str, settings: Optional[Settings] = None) -> ProofSession:
    """Load the configured circuit for ``kind`` and build its session."""

    settings = settings or default_settings
    if kind == REGISTRATION:
        circuit = CompiledCircuit.load(settings.registration_program_dir, settings.registration_circuit)
    elif kind == AUTHENTICATION:
        circuit = CompiledCircuit.load(settings.authentication_program_dir, settings.authentication_circuit)
    else:
        raise ValueError(f"Unknown circuit kind: {kind!r}")

    logger.info("Loaded %s circuit %s from %s", kind, circuit.name, circuit.artifact_path)
    return ProofSession(
        kind,
        circuit,
        NargoRuntime(circuit, binary=settings.nargo_binary),
        BarretenbergBackend(circuit, binary=settings.bb_binary, threads=settings.threads),
    )


__all__ = [
    "AUTHENTICATION",
    "REGISTRATION",
    "CircuitRuntime",
    "ProofSession",
    "ProvingBackend",
    "open_session",
]
