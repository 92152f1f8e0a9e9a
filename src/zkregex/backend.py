from dataclasses import dataclass

from . import groth16
from .errors import BackendError, UnsatisfiedError
from .r1cs import R1CS, Witness
from .system import Assignment, Shape
from .types import Fld


class Backend:
    # A proving backend takes a finalized shape, turns it into whatever it needs to prove and verify
    # (the handle), and then proves cell assignments of that shape.

    def finalize(self, shape: Shape) -> object:
        raise NotImplementedError

    def prove(self, handle, assignment: Assignment) -> object:
        raise NotImplementedError

    def verify(self, handle, proof, public_inputs: dict[str, Fld] | None = None) -> bool:
        raise NotImplementedError

    def attach(self, shape: Shape, assignment: Assignment) -> None:
        if assignment.shape != shape:
            raise BackendError("the assignment was created for a different shape")


@dataclass(frozen=True)
class MockProof:
    shape: Shape


class MockBackend(Backend):
    # Evaluates every gate on every row it is enabled on instead of producing a real proof, which tells
    # precisely which gate failed on which row.

    def finalize(self, shape: Shape) -> Shape:
        return shape

    def prove(self, handle: Shape, assignment: Assignment) -> MockProof:
        self.attach(handle, assignment)
        failures = handle.check(assignment)
        if failures:
            raise UnsatisfiedError(failures)
        return MockProof(handle)

    def verify(self, handle: Shape, proof: MockProof, public_inputs: dict[str, Fld] | None = None) -> bool:
        return isinstance(proof, MockProof) and proof.shape == handle and not public_inputs


@dataclass
class Groth16Handle:
    shape: Shape
    r1cs: R1CS
    pk: groth16.PKey | None = None
    vk: groth16.VKey | None = None


class Groth16Backend(Backend):
    # Lowers the gates to a rank-1 constraint system and proves it with Groth16 over BLS12-381, the only
    # public entry is the constant ONE, the cells stay private.

    def lower(self, shape: Shape) -> Groth16Handle:
        r1cs = R1CS()
        r1cs.LOWER(shape)
        return Groth16Handle(shape, r1cs)

    def finalize(self, shape: Shape) -> Groth16Handle:
        handle = self.lower(shape)
        handle.pk, handle.vk = groth16.setup(handle.r1cs)
        return handle

    def prove(self, handle: Groth16Handle, assignment: Assignment) -> groth16.Proof:
        self.attach(handle.shape, assignment)
        if handle.pk is None:
            raise BackendError("the handle carries no proving key")
        witness = Witness(handle.r1cs.funcs, handle.r1cs.arguments(handle.shape, assignment.cells))
        return groth16.prove(handle.r1cs, handle.pk, witness)

    def verify(self, handle: Groth16Handle, proof: groth16.Proof, public_inputs: dict[str, Fld] | None = None) -> bool:
        if handle.vk is None:
            raise BackendError("the handle carries no verifying key")
        result = groth16.verify(handle.r1cs.stmts.values(), handle.vk, proof)
        return result.passed and dict(result.values) == {"ONE": 0x01, **(public_inputs or {})}
