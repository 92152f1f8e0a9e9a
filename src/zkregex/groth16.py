import multiprocessing
import random
from dataclasses import dataclass
from typing import TypeVar, Iterable, BinaryIO

from pymcl import Fr, G1, G2, pairing, g1, g2, r as ρ

from . import fft
from .errors import UnsatisfiedError
from .r1cs import R1CS, Witness, untag
from .system import Failure
from .types import Fld


Gn = TypeVar("Gn", G1, G2)
Fv = Fr | Fld


# scalar multiplication and dot product optimized for parallel execution


THREADS = None  # automatically set to the number of CPU cores


def worker(Group: type[Gn], p: str, z: str) -> str:
    return str(Group(p) * Fr(z))


def scalar_mult_parallel(P: Gn, Zs: Iterable[Fv]) -> list[Gn]:
    Group = type(P)
    with multiprocessing.Pool(THREADS) as pool:
        return [Group(q) for q in pool.starmap(worker, ((Group, str(P), str(Z)) for Z in Zs))]


def dot_prod_parallel(O: Gn, Ps: Iterable[Gn], Zs: Iterable[Fv]) -> Gn:
    Group = type(O)
    with multiprocessing.Pool(THREADS) as pool:
        return sum((Group(q) for q in pool.starmap(worker, ((Group, str(P), str(Z)) for P, Z in zip(Ps, Zs, strict=True)))), O)


# binary encoding of keys and proofs


L0 = ((ρ - 1).bit_length() + 7) // 8
L1 = len(g1.serialize())
L2 = len(g2.serialize())


def write_points(file: BinaryIO, *points: G1 | G2) -> None:
    for P in points:
        file.write(P.serialize())


def read_g1(file: BinaryIO, n: int) -> list[G1]:
    return [G1.deserialize(file.read(L1)) for _ in range(n)]


def read_g2(file: BinaryIO, n: int) -> list[G2]:
    return [G2.deserialize(file.read(L2)) for _ in range(n)]


def domain(gate_count: int) -> int:
    return 1 << (gate_count - 1).bit_length()  # the smallest power of 2 that is not less than N


@dataclass
class PKey:
    α1: G1
    β1: G1
    δ1: G1
    β2: G2
    δ2: G2
    v1V: list[G1]
    x1I: list[G1]
    x2I: list[G2]
    y1I: list[G1]

    def dumps(self, file: BinaryIO) -> None:
        write_points(file, self.α1, self.β1, self.δ1, self.β2, self.δ2, *self.v1V, *self.x1I, *self.x2I, *self.y1I)

    @staticmethod
    def loads(file: BinaryIO, r1cs: R1CS) -> "PKey":
        V = r1cs.wire_count - len(r1cs.stmts)
        I = domain(len(r1cs.gates))
        α1, β1, δ1 = read_g1(file, 3)
        β2, δ2 = read_g2(file, 2)
        return PKey(α1, β1, δ1, β2, δ2, read_g1(file, V), read_g1(file, I), read_g2(file, I), read_g1(file, I))


@dataclass
class VKey:
    α1: G1
    β2: G2
    γ2: G2
    δ2: G2
    u1U: list[G1]

    def dumps(self, file: BinaryIO) -> None:
        write_points(file, self.α1, self.β2, self.γ2, self.δ2, *self.u1U)

    @staticmethod
    def loads(file: BinaryIO, r1cs: R1CS) -> "VKey":
        [α1] = read_g1(file, 1)
        β2, γ2, δ2 = read_g2(file, 3)
        return VKey(α1, β2, γ2, δ2, read_g1(file, len(r1cs.stmts)))


@dataclass
class Proof:
    A1: G1
    B2: G2
    C1: G1
    uU: list[Fld]

    def dumps(self, file: BinaryIO) -> None:
        write_points(file, self.A1, self.B2, self.C1)
        for u in self.uU:
            file.write(u.to_bytes(L0, "big"))

    @staticmethod
    def loads(file: BinaryIO, r1cs: R1CS) -> "Proof":
        [A1] = read_g1(file, 1)
        [B2] = read_g2(file, 1)
        [C1] = read_g1(file, 1)
        return Proof(A1, B2, C1, [int.from_bytes(file.read(L0), "big") for _ in range(len(r1cs.stmts))])


@dataclass
class Result:
    passed: bool
    values: list[tuple[str, Fld]]


# Groth16 zk-SNARK setup, prove, and verify methods


def evaluate_qap(r1cs: R1CS, τ: int) -> list[tuple[int, int, int]]:
    # Aₘ(τ), Bₘ(τ), Cₘ(τ) for every wire m, where Aₘ interpolates the m-th column of the left matrix
    # over the I-th roots of unity (and likewise Bₘ, Cₘ). The matrices are sparse, so instead of
    # interpolating column by column the DFT identity
    #     Σᵢ₌₀ᴵ⁻¹ Xᵢyᵢ = Σᵢ₌₀ᴵ⁻¹ xᵢYᵢ
    # turns each of them into Σᵢ₌₀ᴵ⁻¹ Xᵢtᵢₘ, with X the inverse DFT of [τ⁰, τ¹, ..., τᴵ⁻¹]. One iFFT
    # plus a single pass over the non-zero entries.
    I = domain(len(r1cs.gates))
    XI = fft.ifft(list(fft.pows(τ, I, ρ)), fft.pru(I, ρ), ρ)
    τMs = [[0x00] * r1cs.wire_count for _ in range(3)]
    for X, (*tMs, _) in zip(XI, r1cs.gates):
        for τM, tM in zip(τMs, tMs, strict=True):
            for m, t in [(r1cs.one, tM)] if isinstance(tM, Fld) else tM.data.items():
                τM[m] = (τM[m] + X * t) % ρ
    return list(zip(*τMs, strict=True))


def quotient(awN: list[Fld], bwN: list[Fld], cwN: list[Fld]) -> tuple[list[Fld], list[Fld], list[Fld], list[Fld]]:
    # Interpolate A, B, C from their values on the roots of unity pⁱ and return their coefficients
    # together with those of H = (A·B - C) / Z. Z vanishes on the pⁱ, so H is evaluated on the coset
    # q·pⁱ instead, where Z(q·pⁱ) = qᴵ - 1 = -2, and brought back with a coset iFFT.
    N = len(awN)
    I = domain(N)
    p = fft.pru(I, ρ)
    q = fft.pru(I << 1, ρ)
    AwI, BwI, CwI = (fft.ifft(wN + [0x00] * (I - N), p, ρ) for wN in (awN, bwN, cwN))
    awI, bwI, cwI = (fft.fft([W * k % ρ for k, W in zip(fft.pows(q, I, ρ), WI, strict=True)], p, ρ) for WI in (AwI, BwI, CwI))
    hI = [(ρ - 1) // 2 * (aw * bw - cw) % ρ for aw, bw, cw in zip(awI, bwI, cwI, strict=True)]
    HI = [H * k % ρ for k, H in zip(fft.pows(pow(q, -1, ρ), I, ρ), fft.ifft(hI, p, ρ), strict=True)]
    return AwI, BwI, CwI, HI


def setup(r1cs: R1CS) -> tuple[PKey, VKey]:
    α, β, γ, δ, τ = (random.randrange(1, ρ) for _ in range(5))
    skeys = r1cs.stmts.keys()
    I = domain(len(r1cs.gates))
    Zτ = pow(τ, I, ρ) - 0x01  # Z(τ), where Z(X) = Πᵢ₌₀ᴵ⁻¹ (X - pⁱ)
    Γ = pow(γ, -1, ρ)
    Δ = pow(δ, -1, ρ)
    # the combined value βAₘ(τ) + αBₘ(τ) + Cₘ(τ) of every wire, public ones go to the verifier
    ΣM = [β * Aτ + α * Bτ + Cτ for Aτ, Bτ, Cτ in evaluate_qap(r1cs, τ)]
    pk = PKey(
        α1=g1 * Fr(str(α)),
        β1=g1 * Fr(str(β)),
        δ1=g1 * Fr(str(δ)),
        β2=g2 * Fr(str(β)),
        δ2=g2 * Fr(str(δ)),
        v1V=scalar_mult_parallel(g1, (Σ * Δ % ρ for m, Σ in enumerate(ΣM) if m not in skeys)),
        x1I=scalar_mult_parallel(g1, fft.pows(τ, I, ρ)),
        x2I=scalar_mult_parallel(g2, fft.pows(τ, I, ρ)),
        y1I=scalar_mult_parallel(g1, (x * Δ * Zτ % ρ for x in fft.pows(τ, I, ρ))),
    )
    vk = VKey(
        α1=pk.α1,
        β2=pk.β2,
        γ2=g2 * Fr(str(γ)),
        δ2=pk.δ2,
        u1U=scalar_mult_parallel(g1, (ΣM[m] * Γ % ρ for m in skeys)),
    )
    return pk, vk


def prove(r1cs: R1CS, pk: PKey, witness: Witness) -> Proof:
    r = random.randrange(1, ρ)
    s = random.randrange(1, ρ)
    skeys = r1cs.stmts.keys()
    wM = witness.vec
    awN, bwN, cwN = [], [], []
    failures: list[Failure] = []
    for aM, bM, cM, msg in r1cs.gates:
        aw, bw, cw = witness.apply(aM), witness.apply(bM), witness.apply(cM)
        # every constraint is named after the gate and row it was lowered from
        if aw * bw % ρ != cw and (failure := Failure(*untag(msg))) not in failures:
            failures.append(failure)
        awN.append(aw)
        bwN.append(bw)
        cwN.append(cw)
    if failures:
        raise UnsatisfiedError(failures)
    AwI, BwI, CwI, HI = quotient(awN, bwN, cwN)
    A1 = dot_prod_parallel(pk.α1 + pk.δ1 * Fr(str(r)), pk.x1I, AwI)
    B1 = dot_prod_parallel(pk.β1 + pk.δ1 * Fr(str(s)), pk.x1I, BwI)
    B2 = dot_prod_parallel(pk.β2 + pk.δ2 * Fr(str(s)), pk.x2I, BwI)
    C1 = A1 * Fr(str(s)) + B1 * Fr(str(r)) - pk.δ1 * Fr(str(r * s % ρ))
    C1 = dot_prod_parallel(C1, pk.y1I, HI)
    C1 = dot_prod_parallel(C1, pk.v1V, (w for m, w in enumerate(wM) if m not in skeys))
    return Proof(A1=A1, B2=B2, C1=C1, uU=[wM[m] for m in skeys])


def verify(names: Iterable[str], vk: VKey, proof: Proof) -> Result:
    D1 = dot_prod_parallel(G1(), vk.u1U, proof.uU)
    return Result(
        passed=pairing(proof.A1, proof.B2) == pairing(vk.α1, vk.β2) * pairing(D1, vk.γ2) * pairing(proof.C1, vk.δ2),
        values=list(zip(names, proof.uU, strict=True)),
    )
