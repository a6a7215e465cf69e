"""Noir toolchain drivers: ``nargo`` for witnesses, Barretenberg ``bb`` for proofs."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import shutil
import tempfile
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import tomli_w

from .errors import ProvingBackendError, WitnessGenerationError

logger = logging.getLogger(__name__)

FIELD_SIZE = 32


@dataclass(frozen=True, eq=False)
class CompiledCircuit:
    """A compiled Noir program and the package directory it was built from."""

    name: str
    program_dir: Path
    artifact: Dict[str, Any] = field(default_factory=dict)

    @property
    def artifact_path(self) -> Path:
        return self.program_dir / "target" / f"{self.name}.json"

    @property
    def abi(self) -> Dict[str, Any]:
        return self.artifact.get("abi", {})

    @staticmethod
    def load(program_dir: Path, name: str) -> "CompiledCircuit":
        program_dir = Path(program_dir)
        path = program_dir / "target" / f"{name}.json"
        with open(path, "r", encoding="utf-8") as handle:
            artifact = json.load(handle)
        return CompiledCircuit(name=name, program_dir=program_dir, artifact=artifact)


@dataclass(frozen=True)
class Witness:
    """Compressed witness as written by ``nargo execute``."""

    data: bytes


@dataclass(frozen=True)
class ProofArtifact:
    witness: Witness
    proof: bytes
    public_inputs: List[bytes] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "witness": self.witness.data.hex(),
            "proof": self.proof.hex(),
            "public_inputs": [value.hex() for value in self.public_inputs],
        }


@dataclass(frozen=True)
class ToolResult:
    returncode: int
    stdout: str
    stderr: str

    @property
    def output(self) -> str:
        return "\n".join(part for part in (self.stdout.strip(), self.stderr.strip()) if part)


async def run_tool(
    *args: str,
    cwd: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> ToolResult:
    process = await asyncio.create_subprocess_exec(
        *args,
        cwd=None if cwd is None else str(cwd),
        env=None if env is None else dict(env),
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, stderr = await process.communicate()
    return ToolResult(
        returncode=process.returncode if process.returncode is not None else -1,
        stdout=stdout.decode("utf-8", "replace"),
        stderr=stderr.decode("utf-8", "replace"),
    )


def split_fields(data: bytes) -> List[bytes]:
    return [data[offset : offset + FIELD_SIZE] for offset in range(0, len(data), FIELD_SIZE)]


class NargoRuntime:
    """Executes a circuit with ``nargo execute`` to obtain its witness.

    Every call writes its own prover file and witness name so that concurrent
    executions against the same program directory never collide.
    """

    def __init__(self, circuit: CompiledCircuit, binary: str = "nargo") -> None:
        self.circuit = circuit
        self.binary = binary

    async def execute(self, inputs: Mapping[str, Any]) -> Witness:
        token = uuid.uuid4().hex
        prover_name = f"Prover-{token}"
        witness_name = f"witness-{token}"
        prover_path = self.circuit.program_dir / f"{prover_name}.toml"
        witness_path = self.circuit.program_dir / "target" / f"{witness_name}.gz"

        prover_path.write_text(tomli_w.dumps(dict(inputs)), encoding="utf-8")
        try:
            try:
                result = await run_tool(
                    self.binary,
                    "execute",
                    witness_name,
                    "--program-dir",
                    str(self.circuit.program_dir),
                    "--prover-name",
                    prover_name,
                )
            except OSError as exc:
                raise WitnessGenerationError(f"Unable to run {self.binary}: {exc}") from exc
            if result.returncode != 0:
                raise WitnessGenerationError(result.output or f"{self.binary} exited with {result.returncode}")
            if not witness_path.exists():
                raise WitnessGenerationError(f"{self.binary} did not write {witness_path.name}")
            return Witness(data=witness_path.read_bytes())
        finally:
            prover_path.unlink(missing_ok=True)
            witness_path.unlink(missing_ok=True)


class BarretenbergBackend:
    """Generates proofs with the Barretenberg CLI.

    The binary is resolved lazily by :meth:`load`; a failed load is retried on
    the next call.
    """

    def __init__(self, circuit: CompiledCircuit, binary: str = "bb", threads: int = 4) -> None:
        self.circuit = circuit
        self.binary = binary
        self.threads = threads
        self._path: Optional[str] = None

    @property
    def loaded(self) -> bool:
        return self._path is not None

    async def load(self) -> str:
        if self._path is not None:
            return self._path
        path = shutil.which(self.binary)
        if path is None:
            raise ProvingBackendError(f"Barretenberg binary {self.binary!r} not found on PATH")
        try:
            result = await run_tool(path, "--version")
        except OSError as exc:
            raise ProvingBackendError(f"Unable to run {path}: {exc}") from exc
        if result.returncode != 0:
            raise ProvingBackendError(result.output or f"{path} --version exited with {result.returncode}")
        logger.info("Loaded Barretenberg %s from %s", result.stdout.strip(), path)
        self._path = path
        return path

    async def generate_proof(self, witness: Witness) -> ProofArtifact:
        binary = await self.load()
        env = dict(os.environ, HARDWARE_CONCURRENCY=str(self.threads))
        with tempfile.TemporaryDirectory(prefix="zkwebauthn-") as workdir:
            witness_path = Path(workdir) / "witness.gz"
            witness_path.write_bytes(witness.data)
            out_dir = Path(workdir) / "out"
            out_dir.mkdir()
            try:
                result = await run_tool(
                    binary,
                    "prove",
                    "-b",
                    str(self.circuit.artifact_path),
                    "-w",
                    str(witness_path),
                    "-o",
                    str(out_dir),
                    env=env,
                )
            except OSError as exc:
                raise ProvingBackendError(f"Unable to run {binary}: {exc}") from exc
            if result.returncode != 0:
                raise ProvingBackendError(result.output or f"{binary} prove exited with {result.returncode}")

            proof_path = out_dir / "proof"
            if not proof_path.exists():
                raise ProvingBackendError(f"{binary} prove did not write a proof")
            public_inputs_path = out_dir / "public_inputs"
            public_inputs = (
                split_fields(public_inputs_path.read_bytes()) if public_inputs_path.exists() else []
            )
            return ProofArtifact(witness=witness, proof=proof_path.read_bytes(), public_inputs=public_inputs)


__all__ = [
    "BarretenbergBackend",
    "CompiledCircuit",
    "NargoRuntime",
    "ProofArtifact",
    "ToolResult",
    "Witness",
    "run_tool",
    "split_fields",
]
