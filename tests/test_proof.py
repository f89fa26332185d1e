"""Tests for existence-proof values: verification edge cases and JSON transport."""

from __future__ import annotations

import hashlib
import json
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from merkle_tree.config import settings
from merkle_tree.digest import Digest
from merkle_tree.proof import AnchoredHash, ExistenceProof, Side
from merkle_tree.tree import MerkleTree

SHA256 = Digest("sha256")


@pytest.fixture
def tree():
    return MerkleTree.build(["alpha", "bravo", "charlie", "delta", "echo"], digest=SHA256)


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------


class TestIsValid:
    def test_compute_root_matches_tree(self, tree):
        proof = tree.prove_existence(2)
        assert proof.compute_root("charlie") == tree.root_hash

    def test_accepts_bytearray_root(self, tree):
        proof = tree.prove_existence(0)
        assert proof.is_valid("alpha", bytearray(tree.root_hash))

    def test_hex_root_is_not_a_root(self, tree):
        proof = tree.prove_existence(0)
        assert not proof.is_valid("alpha", tree.root_hash.hex())

    def test_none_root_is_invalid(self, tree):
        assert not tree.prove_existence(0).is_valid("alpha", None)

    def test_truncated_root_is_invalid(self, tree):
        assert not tree.prove_existence(0).is_valid("alpha", tree.root_hash[:-1])

    def test_custom_serializer(self):
        def serialize(value: int) -> bytes:
            return value.to_bytes(8, "big")

        numbers = [3, 1, 4, 1, 5, 9, 2]
        tree = MerkleTree.build(numbers, digest=SHA256, serializer=serialize)
        proof = tree.prove_existence(5)
        assert proof.is_valid(9, tree.root_hash, serializer=serialize)
        assert not proof.is_valid(8, tree.root_hash, serializer=serialize)

    def test_digest_mismatch_fails(self):
        elements = [b"1", b"2", b"3"]
        plain = MerkleTree.build(elements, digest=SHA256)
        separated = MerkleTree.build(elements, digest=Digest("sha256", domain_separated=True))
        assert plain.root_hash != separated.root_hash
        assert not separated.prove_existence(1).is_valid(b"2", plain.root_hash)
        assert separated.prove_existence(1).is_valid(b"2", separated.root_hash)


# ---------------------------------------------------------------------------
# Model validation
# ---------------------------------------------------------------------------


class TestProofModel:
    def test_anchored_hash_accepts_hex(self):
        digest = hashlib.sha256(b"x").digest()
        anchored = AnchoredHash(hash=digest.hex(), side="left")
        assert anchored.hash == digest
        assert anchored.side is Side.LEFT

    def test_anchored_hash_rejects_bad_hex(self):
        with pytest.raises(ValidationError, match="not valid hex"):
            AnchoredHash(hash="zz", side="left")

    def test_anchored_hash_rejects_unknown_side(self):
        with pytest.raises(ValidationError):
            AnchoredHash(hash=b"\x00" * 32, side="up")

    def test_proof_is_frozen(self, tree):
        proof = tree.prove_existence(1)
        with pytest.raises(ValidationError):
            proof.hash_algorithm = "md5"

    def test_rejects_unknown_algorithm(self):
        with pytest.raises(ValidationError, match="unknown digest algorithm"):
            ExistenceProof(path=(), hash_algorithm="not-a-hash")

    def test_rejects_wrong_hash_size(self):
        with pytest.raises(ValidationError, match=r"path\[0\] is 20 bytes"):
            ExistenceProof(path=(AnchoredHash(hash=b"\x00" * 20, side=Side.RIGHT),))

    def test_rejects_overlong_path(self, tree):
        proof = tree.prove_existence(0)
        with patch.object(settings, "max_proof_length", 1):
            with pytest.raises(ValidationError, match="limit is 1"):
                ExistenceProof.from_json(proof.to_json())

    def test_length_limit_does_not_bound_extraction(self):
        tree = MerkleTree.build([f"leaf-{i}" for i in range(16)], digest=SHA256)
        with patch.object(settings, "max_proof_length", 2):
            proof = tree.prove_existence(3)
            assert proof is not None
            assert len(proof.path) == 4
            assert proof.is_valid("leaf-3", tree.root_hash)
            with pytest.raises(ValidationError, match="limit is 2"):
                ExistenceProof.from_json(proof.to_json())

    def test_length_limit_does_not_bound_direct_construction(self, tree):
        proof = tree.prove_existence(0)
        with patch.object(settings, "max_proof_length", 1):
            rebuilt = ExistenceProof(path=proof.path)
        assert rebuilt == proof


# ---------------------------------------------------------------------------
# JSON transport
# ---------------------------------------------------------------------------


class TestProofJSON:
    def test_hashes_serialize_as_hex(self, tree):
        proof = tree.prove_existence(3)
        data = json.loads(proof.to_json())
        assert data["hash_algorithm"] == "sha256"
        assert data["domain_separated"] is False
        assert data["path"][0] == {"hash": tree.layers[0][2].hex(), "side": "left"}

    def test_parsed_proof_still_verifies(self, tree):
        proof = tree.prove_existence(4)
        parsed = ExistenceProof.from_json(proof.to_json())
        assert parsed == proof
        assert parsed.is_valid("echo", tree.root_hash)

    def test_parsed_proof_keeps_digest(self):
        digest = Digest("sha3_256", domain_separated=True)
        tree = MerkleTree.build(["a", "b", "c"], digest=digest)
        parsed = ExistenceProof.from_json(tree.prove_existence(2).to_json())
        assert parsed.digest == digest
        assert parsed.is_valid("c", tree.root_hash)

    def test_tampered_json_fails_verification(self, tree):
        data = json.loads(tree.prove_existence(0).to_json())
        data["path"][1]["hash"] = hashlib.sha256(b"forged").hexdigest()
        parsed = ExistenceProof.from_json(json.dumps(data))
        assert not parsed.is_valid("alpha", tree.root_hash)

    def test_malformed_json_raises(self):
        with pytest.raises(ValidationError):
            ExistenceProof.from_json('{"path": "nope"}')
