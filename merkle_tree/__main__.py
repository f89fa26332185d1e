"""CLI entrypoint for the Merkle tree library.

Elements are taken as UTF-8 strings from the command line.

Usage:
    merkle-tree root 1 2 3 4                 # Print the root hash
    merkle-tree prove 2 1 2 3 4 > proof.json # Print the proof for element "3"
    merkle-tree verify 3 ROOT_HEX proof.json # Check a proof (- reads stdin)
"""

from __future__ import annotations

import argparse
import logging
import sys

from pydantic import ValidationError

from merkle_tree.config import settings
from merkle_tree.digest import Digest, UnsupportedDigestError
from merkle_tree.proof import ExistenceProof
from merkle_tree.tree import MerkleTree

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="merkle-tree", description="Merkle tree roots and existence proofs"
    )
    parser.add_argument(
        "--algorithm",
        default=settings.digest_algorithm,
        help=f"hashlib digest algorithm (default: {settings.digest_algorithm})",
    )
    parser.add_argument(
        "--domain-separation",
        action=argparse.BooleanOptionalAction,
        default=settings.domain_separation,
        help="Prefix leaf hashes with 0x00 and node hashes with 0x01",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    root = sub.add_parser("root", help="Print the root hash of the elements")
    root.add_argument("elements", nargs="*")

    prove = sub.add_parser("prove", help="Print the existence proof for one element as JSON")
    prove.add_argument("index", type=int)
    prove.add_argument("elements", nargs="*")

    verify = sub.add_parser("verify", help="Check an existence proof against a root hash")
    verify.add_argument("element")
    verify.add_argument("root", help="Hex-encoded root hash")
    verify.add_argument("proof", help="Path to proof JSON, or - for stdin")

    return parser


def _read_proof(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    with open(source, encoding="utf-8") as fh:
        return fh.read()


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    args = _build_parser().parse_args(argv)

    try:
        digest = Digest(args.algorithm, args.domain_separation)
    except UnsupportedDigestError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    if args.command == "root":
        tree = MerkleTree.build(args.elements, digest=digest)
        if tree.root_hash is None:
            print("ERROR: no elements given, tree has no root", file=sys.stderr)
            return 1
        print(tree.root_hash.hex())
        return 0

    if args.command == "prove":
        tree = MerkleTree.build(args.elements, digest=digest)
        proof = tree.prove_existence(args.index)
        if proof is None:
            print(f"ERROR: index {args.index} out of range for {tree.size} elements", file=sys.stderr)
            return 1
        print(proof.to_json())
        return 0

    # verify: the proof names its own digest, --algorithm does not apply.
    try:
        claimed_root = bytes.fromhex(args.root)
        proof = ExistenceProof.from_json(_read_proof(args.proof))
    except (ValueError, OSError) as exc:
        # ValidationError is a ValueError.
        logger.debug("Unreadable proof input", exc_info=True)
        kind = "invalid proof" if isinstance(exc, ValidationError) else "bad input"
        print(f"ERROR: {kind}: {exc}", file=sys.stderr)
        return 2

    if proof.is_valid(args.element, claimed_root):
        print("valid")
        return 0
    print("invalid")
    return 1


if __name__ == "__main__":
    sys.exit(main())
