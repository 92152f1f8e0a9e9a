import argparse
import time

import dill

from .backend import Groth16Backend, MockBackend
from .compiler import CompiledLayout, assign_witness, compile, witness_cells
from .errors import MatchError, UnsatisfiedError
from .groth16 import PKey, VKey, Proof
from .pattern import Config
from .reference import reference_match
from .types import degree


class Timer:
    # This is used to measure the time of a block of code.
    def __init__(self, text):
        self.text = text

    def __enter__(self):
        print(self.text, end=" ", flush=True)
        self.beg = time.time()

    def __exit__(self, *info):
        self.end = time.time()
        print("{:.3f} sec".format(self.end - self.beg))


class StoreBounds(argparse.Action):
    def __call__(self, parser, namespace, values, option_string=None):
        result = {}
        for value in values:
            k, _, v = value.partition("=")
            lo, _, hi = v.partition(",")
            try:
                result[k] = (int(lo, 0), int(hi, 0))
            except ValueError:
                parser.error("argument {}: invalid bounds {!r}, expected KEY=MIN,MAX".format(option_string, value))
        setattr(namespace, self.dest, result)


def load_layout(path: str) -> CompiledLayout:
    with open(path, "rb") as layout_file:
        print("Loading compiled layout from:", path)
        return dill.loads(layout_file.read())


def match(compiled: CompiledLayout, text: str):
    try:
        return assign_witness(compiled, text)
    except MatchError as e:
        print("Input rejected:", e)
        raise SystemExit(1)


def main():
    parser = argparse.ArgumentParser(description="zkregex Pattern Compiler and Groth16 Prover/Verifier")

    subparsers = parser.add_subparsers(dest="command", required=True, help="sub-command")

    parser_compile = subparsers.add_parser("compile", help="compile a pattern", description="Compile a pattern to a circuit layout and its gates, and write them to a file.")
    parser_compile.add_argument("pattern", type=str, help="the pattern to compile")
    parser_compile.add_argument("-L", "--length", type=int, required=True, help="the row budget, i.e. the maximum input length")
    parser_compile.add_argument("-b", "--bounds", action=StoreBounds, nargs="*", default={}, help="bounds of the quantifiers ?, +, * and {m,} as key=min,max pairs")
    parser_compile.add_argument("-t", "--threshold", type=int, default=16, help="accepted set size above which range checks are used (default: 16)")
    parser_compile.add_argument("--pad", action="store_true", help="accept inputs shorter than the row budget")
    parser_compile.add_argument("-l", "--layout", type=str, default="a.layout", help="path to write the compiled layout to (default: a.layout)")

    parser_witness = subparsers.add_parser("witness", help="show the witness of an input", description="Assign the witness of an input and print it row by row.")
    parser_witness.add_argument("input", type=str, help="the input string")
    parser_witness.add_argument("-l", "--layout", type=str, default="a.layout", help="path to read the compiled layout from (default: a.layout)")

    parser_check = subparsers.add_parser("check", help="check an input with the mock prover", description="Assign the witness of an input and evaluate every gate on it.")
    parser_check.add_argument("input", type=str, help="the input string")
    parser_check.add_argument("-l", "--layout", type=str, default="a.layout", help="path to read the compiled layout from (default: a.layout)")

    parser_setup = subparsers.add_parser("setup", help="set up the parameters", description="Set up the parameters for proving and verifying and write them to files.")
    parser_setup.add_argument("-l", "--layout", type=str, default="a.layout", help="path to read the compiled layout from (default: a.layout)")
    parser_setup.add_argument("-p", "--pk", type=str, default="a.pk", help="path to write the parameters for proving to (default: a.pk)")
    parser_setup.add_argument("-v", "--vk", type=str, default="a.vk", help="path to write the parameters for verifying to (default: a.vk)")

    parser_prove = subparsers.add_parser("prove", help="generate a proof", description="Generate a proof that the input matches the pattern and write it to a file.")
    parser_prove.add_argument("input", type=str, help="the input string")
    parser_prove.add_argument("-l", "--layout", type=str, default="a.layout", help="path to read the compiled layout from (default: a.layout)")
    parser_prove.add_argument("-p", "--pk", type=str, default="a.pk", help="path to read the parameters for proving from (default: a.pk)")
    parser_prove.add_argument("-P", "--proof", type=str, default="a.proof", help="path to write the proof to (default: a.proof)")

    parser_verify = subparsers.add_parser("verify", help="verify a proof", description="Verify a proof")
    parser_verify.add_argument("-l", "--layout", type=str, default="a.layout", help="path to read the compiled layout from (default: a.layout)")
    parser_verify.add_argument("-v", "--vk", type=str, default="a.vk", help="path to read the parameters for verifying from (default: a.vk)")
    parser_verify.add_argument("-P", "--proof", type=str, default="a.proof", help="path to read the proof from (default: a.proof)")

    args = parser.parse_args()

    if args.command == "compile":
        try:
            config = Config(args.length, args.bounds, args.threshold, args.pad)
        except ValueError as e:
            parser.error(str(e))
        with Timer("Compiling pattern..."):
            compiled = compile(args.pattern, config)
        shape = compiled.shape

        print("Number of sections:", len(compiled.sections))
        print("Number of rows:", shape.rows)
        print("Number of columns:", len(shape.columns))
        print("Number of gates:", len(shape.gates))
        print("Maximum gate degree:", max(degree(gate.poly) for gate in shape.gates))

        with open(args.layout, "wb") as layout_file:
            print("Saving compiled layout to:", args.layout)
            layout_file.write(dill.dumps(compiled))

    elif args.command == "witness":
        compiled = load_layout(args.layout)
        assigned = match(compiled, args.input)

        print("{:>5} {:>8} {:>5} {:>5} {:>8}".format("row", "section", "acc", "done", "value"))
        for r, (row, acc, done) in enumerate(zip(assigned.rows, assigned.accumulator, assigned.done)):
            value = repr(chr(row.value)) if row.section is not None else "-"
            print("{:>5} {:>8} {:>5} {:>5} {:>8}".format(r, "-" if row.section is None else row.section, acc, done, value))

    elif args.command == "check":
        compiled = load_layout(args.layout)
        length = None if compiled.config.allow_padding else compiled.config.max_input_length
        print("Reference matcher:", "accepted" if reference_match(compiled.sections, args.input, length) else "rejected")
        assigned = match(compiled, args.input)

        backend = MockBackend()
        handle = backend.finalize(compiled.shape)
        try:
            backend.prove(handle, witness_cells(compiled, assigned))
        except UnsatisfiedError as e:
            print("Constraints not satisfied:")
            for failure in e.failures:
                print("  {} at row {}".format(failure.gate, failure.row))
            raise SystemExit(1)
        print("All constraints satisfied!")

    elif args.command == "setup":
        compiled = load_layout(args.layout)
        backend = Groth16Backend()

        with Timer("Setting up parameters for proving and verifying..."):
            handle = backend.finalize(compiled.shape)

        print("Dimension of the witness vector:", handle.r1cs.wire_count)
        print("Number of constraints:", len(handle.r1cs.gates))

        with open(args.pk, "wb") as pk_file:
            print("Saving parameters for proving to:", args.pk)
            handle.pk.dumps(pk_file)

        with open(args.vk, "wb") as vk_file:
            print("Saving parameters for verifying to:", args.vk)
            handle.vk.dumps(vk_file)

    elif args.command == "prove":
        compiled = load_layout(args.layout)
        backend = Groth16Backend()
        handle = backend.lower(compiled.shape)

        with open(args.pk, "rb") as pk_file:
            print("Loading parameters for proving from:", args.pk)
            handle.pk = PKey.loads(pk_file, handle.r1cs)

        with Timer("Generating witness..."):
            cells = witness_cells(compiled, match(compiled, args.input))

        with Timer("Generating proof..."):
            proof = backend.prove(handle, cells)

        with open(args.proof, "wb") as proof_file:
            print("Saving proof to:", args.proof)
            proof.dumps(proof_file)

    elif args.command == "verify":
        compiled = load_layout(args.layout)
        backend = Groth16Backend()
        handle = backend.lower(compiled.shape)

        with open(args.vk, "rb") as vk_file:
            print("Loading parameters for verifying from:", args.vk)
            handle.vk = VKey.loads(vk_file, handle.r1cs)

        with open(args.proof, "rb") as proof_file:
            print("Loading proof from:", args.proof)
            proof = Proof.loads(proof_file, handle.r1cs)

        with Timer("Verifying proof..."):
            passed = backend.verify(handle, proof)

        if passed:
            print("Verification passed!")
            print("Pattern:", compiled.pattern)
        else:
            print("Verification failed!")
            raise SystemExit(1)


if __name__ == "__main__":
    main()
