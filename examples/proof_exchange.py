"""Example: publish a root, hand out a proof, verify it elsewhere.

The producer builds a tree over a batch of records and publishes only the
root hash.  A consumer that later receives one record and its proof (as
JSON) can check membership without seeing the rest of the batch.

Usage:
    python examples/proof_exchange.py [INDEX]
"""

from __future__ import annotations

import sys

from pydantic import BaseModel

from merkle_tree import Digest, ExistenceProof, MerkleTree


class Payment(BaseModel):
    payer: str
    payee: str
    amount_cents: int


def main() -> None:
    index = int(sys.argv[1]) if len(sys.argv) > 1 else 2

    batch = [
        Payment(payer="alice", payee="bob", amount_cents=1250),
        Payment(payer="bob", payee="carol", amount_cents=400),
        Payment(payer="carol", payee="dave", amount_cents=99),
        Payment(payer="dave", payee="alice", amount_cents=5000),
        Payment(payer="erin", payee="bob", amount_cents=75),
    ]

    # Producer side
    tree = MerkleTree.build(batch, digest=Digest("sha256"))
    print(f"Published root: {tree.root_hash.hex()}  ({tree.size} records, {tree.depth} layers)")

    proof = tree.prove_existence(index)
    if proof is None:
        print(f"No record at index {index}")
        sys.exit(1)
    wire = proof.to_json()
    print(f"Proof for record {index}: {len(proof.path)} sibling hashes, {len(wire)} bytes JSON")

    # Consumer side: only the record, the JSON proof and the published root
    received = ExistenceProof.from_json(wire)
    record = batch[index]
    print(f"  {record.payer} -> {record.payee}: valid={received.is_valid(record, tree.root_hash)}")

    forged = record.model_copy(update={"amount_cents": record.amount_cents + 1})
    print(f"  forged amount:      valid={received.is_valid(forged, tree.root_hash)}")


if __name__ == "__main__":
    main()
