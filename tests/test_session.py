import asyncio
import json
import os
import stat
import tempfile
import textwrap
import unittest
from pathlib import Path

from credential_fixtures import (
    FakeBackend,
    FakeRuntime,
    authentication_credential,
    creation_options,
    fake_session,
    registration_credential,
    request_options,
)
from zkwebauthn.backend import BarretenbergBackend, CompiledCircuit, NargoRuntime, Witness
from zkwebauthn.config import Settings
from zkwebauthn.errors import ProvingBackendError, WitnessGenerationError
from zkwebauthn.inputs import map_authentication, map_registration
from zkwebauthn.session import AUTHENTICATION, REGISTRATION, ProofSession, open_session

FAKE_NARGO = """\
#!/bin/sh
# execute NAME --program-dir DIR --prover-name PROVER
if grep -q "^credential_type" "$4/$6.toml"; then
    mkdir -p "$4/target"
    cp "$4/$6.toml" "$4/target/$2.gz"
else
    echo "error: Argument 'challenge' is missing" >&2
    exit 1
fi
"""

FAKE_BB = """\
#!/bin/sh
# prove -b CIRCUIT -w WITNESS -o OUT
if [ "$1" = "--version" ]; then
    echo "0.63.1"
    exit 0
fi
cp "$5" "$7/proof"
head -c 64 /dev/zero > "$7/public_inputs"
"""

FAILING_BB = """\
#!/bin/sh
if [ "$1" = "--version" ]; then
    echo "0.63.1"
    exit 0
fi
echo "std::bad_alloc" >&2
exit 134
"""


def _script(directory: Path, name: str, body: str) -> str:
    path = directory / name
    path.write_text(textwrap.dedent(body), encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(path)


class TestProofSession(unittest.IsolatedAsyncioTestCase):
    async def test_execute_passes_circuit_schema(self) -> None:
        runtime = FakeRuntime()
        session = fake_session(REGISTRATION, runtime=runtime)
        record = map_registration(creation_options(), registration_credential())

        witness = await session.execute(record)

        self.assertEqual(witness, Witness(b"witness"))
        self.assertEqual(runtime.calls, [record.to_dict()])

    async def test_execute_rejects_other_record_kind(self) -> None:
        session = fake_session(REGISTRATION)
        record = map_authentication(request_options(), authentication_credential())
        with self.assertRaises(TypeError):
            await session.execute(record)

    async def test_prove_delegates_to_backend(self) -> None:
        backend = FakeBackend()
        session = fake_session(AUTHENTICATION, backend=backend)
        artifact = await session.prove(Witness(b"w"))
        self.assertEqual(artifact.proof, b"\xaa\xbb")
        self.assertEqual(backend.witnesses, [Witness(b"w")])

    async def test_failed_warm_up_preloads_backend(self) -> None:
        runtime = FakeRuntime(error=WitnessGenerationError("missing inputs"))
        backend = FakeBackend()
        session = fake_session(REGISTRATION, runtime=runtime, backend=backend)

        await session.warm_up()

        self.assertEqual(runtime.calls, [{}])
        self.assertEqual(backend.loads, 1)

    async def test_warm_up_never_raises(self) -> None:
        runtime = FakeRuntime(error=WitnessGenerationError("missing inputs"))
        backend = FakeBackend(load_error=ProvingBackendError("bb not found"))
        session = fake_session(AUTHENTICATION, runtime=runtime, backend=backend)

        with self.assertLogs("zkwebauthn.session", level="WARNING") as logs:
            await session.warm_up()

        self.assertIn("bb not found", logs.output[0])

    async def test_successful_warm_up_skips_preload(self) -> None:
        backend = FakeBackend()
        session = fake_session(REGISTRATION, backend=backend)
        await session.warm_up()
        self.assertEqual(backend.loads, 0)

    async def test_warm_up_is_scheduled_once(self) -> None:
        session = fake_session(REGISTRATION)
        self.assertIs(session.warm_up(), session.warm_up())
        await session.warm_up()

    def test_unknown_kind(self) -> None:
        with self.assertRaises(ValueError):
            ProofSession("signing", CompiledCircuit("c", Path(".")), FakeRuntime(), FakeBackend())


@unittest.skipIf(os.name == "nt", "toolchain doubles are POSIX shell scripts")
class TestToolchain(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.program_dir = self.root / "noir_webauthn_registration"
        (self.program_dir / "target").mkdir(parents=True)
        artifact = {"noir_version": "0.36.0", "abi": {"parameters": []}, "bytecode": ""}
        (self.program_dir / "target" / "noir_webauthn_registration.json").write_text(
            json.dumps(artifact), encoding="utf-8"
        )
        self.circuit = CompiledCircuit.load(self.program_dir, "noir_webauthn_registration")
        self.nargo = _script(self.root, "nargo", FAKE_NARGO)
        self.bb = _script(self.root, "bb", FAKE_BB)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_circuit_load(self) -> None:
        self.assertEqual(self.circuit.abi, {"parameters": []})
        self.assertEqual(
            self.circuit.artifact_path,
            self.program_dir / "target" / "noir_webauthn_registration.json",
        )

    async def test_execute_writes_prover_toml_and_cleans_up(self) -> None:
        runtime = NargoRuntime(self.circuit, binary=self.nargo)
        record = map_registration(creation_options(), registration_credential())

        witness = await runtime.execute(record.to_dict())

        text = witness.data.decode("utf-8")
        self.assertIn('credential_type = "public-key"', text)
        self.assertIn("[credential.raw_id]", text)
        self.assertEqual(sorted(p.name for p in self.program_dir.iterdir()), ["target"])
        self.assertEqual(
            [p.name for p in (self.program_dir / "target").iterdir()],
            ["noir_webauthn_registration.json"],
        )

    async def test_execute_failure_surfaces_tool_output(self) -> None:
        runtime = NargoRuntime(self.circuit, binary=self.nargo)
        with self.assertRaises(WitnessGenerationError) as ctx:
            await runtime.execute({})
        self.assertIn("Argument 'challenge' is missing", str(ctx.exception))

    async def test_missing_nargo(self) -> None:
        runtime = NargoRuntime(self.circuit, binary=str(self.root / "no-such-nargo"))
        with self.assertRaises(WitnessGenerationError):
            await runtime.execute({"challenge": [0] * 32})

    async def test_concurrent_executions_do_not_collide(self) -> None:
        runtime = NargoRuntime(self.circuit, binary=self.nargo)
        first = map_registration(creation_options(), registration_credential(id="first"))
        second = map_registration(creation_options(), registration_credential(id="second"))

        witnesses = await asyncio.gather(runtime.execute(first.to_dict()), runtime.execute(second.to_dict()))

        self.assertNotEqual(witnesses[0], witnesses[1])

    async def test_prove(self) -> None:
        backend = BarretenbergBackend(self.circuit, binary=self.bb, threads=2)
        artifact = await backend.generate_proof(Witness(b"compressed-witness"))
        self.assertTrue(backend.loaded)
        self.assertEqual(artifact.proof, b"compressed-witness")
        self.assertEqual(artifact.public_inputs, [bytes(32), bytes(32)])

    async def test_prove_failure(self) -> None:
        backend = BarretenbergBackend(self.circuit, binary=_script(self.root, "bb-broken", FAILING_BB))
        with self.assertRaises(ProvingBackendError) as ctx:
            await backend.generate_proof(Witness(b"w"))
        self.assertIn("bad_alloc", str(ctx.exception))

    async def test_missing_bb_is_retried(self) -> None:
        backend = BarretenbergBackend(self.circuit, binary=str(self.root / "bb-later"))
        with self.assertRaises(ProvingBackendError):
            await backend.load()
        self.assertFalse(backend.loaded)
        _script(self.root, "bb-later", FAKE_BB)
        await backend.load()
        self.assertTrue(backend.loaded)

    def test_open_session_from_settings(self) -> None:
        settings = Settings(
            registration_program_dir=self.program_dir,
            nargo_binary=self.nargo,
            bb_binary=self.bb,
        )
        session = open_session(REGISTRATION, settings)
        self.assertEqual(session.kind, REGISTRATION)
        self.assertEqual(session.circuit.name, "noir_webauthn_registration")
        with self.assertRaises(FileNotFoundError):
            open_session(AUTHENTICATION, settings.model_copy(update={
                "authentication_program_dir": self.root / "missing",
            }))
        with self.assertRaises(ValueError):
            open_session("signing", settings)


if __name__ == "__main__":
    unittest.main()
