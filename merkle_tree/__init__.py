"""Merkle tree construction with existence proofs over arbitrary elements."""

from merkle_tree.config import MerkleSettings, settings
from merkle_tree.digest import Digest, UnsupportedDigestError, default_digest
from merkle_tree.proof import AnchoredHash, ExistenceProof, Side
from merkle_tree.serialization import (
    SerializationError,
    Serializer,
    as_bytes,
    canonical_json,
)
from merkle_tree.tree import MerkleTree

__all__ = [
    "settings",
    "MerkleSettings",
    # Hashing
    "Digest",
    "UnsupportedDigestError",
    "default_digest",
    # Serialization
    "Serializer",
    "SerializationError",
    "as_bytes",
    "canonical_json",
    # Tree and proofs
    "MerkleTree",
    "ExistenceProof",
    "AnchoredHash",
    "Side",
]

__version__ = "0.1.0"
