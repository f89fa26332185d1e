"""Tests for the leaf/node hash primitives."""

from __future__ import annotations

import hashlib
from unittest.mock import patch

import pytest

from merkle_tree.config import settings
from merkle_tree.digest import Digest, UnsupportedDigestError, default_digest


class TestDigest:
    def test_hash_leaf_is_plain_sha256(self):
        assert Digest().hash_leaf(b"1") == hashlib.sha256(b"1").digest()

    def test_combine_concatenates(self):
        a, b = hashlib.sha256(b"a").digest(), hashlib.sha256(b"b").digest()
        assert Digest().combine(a, b) == hashlib.sha256(a + b).digest()

    def test_combine_is_order_sensitive(self):
        a, b = hashlib.sha256(b"a").digest(), hashlib.sha256(b"b").digest()
        digest = Digest()
        assert digest.combine(a, b) != digest.combine(b, a)

    def test_digest_size(self):
        assert Digest("sha256").digest_size == 32
        assert Digest("sha512").digest_size == 64
        assert len(Digest("sha512").hash_leaf(b"x")) == 64

    def test_algorithm_name_normalized(self):
        assert Digest("SHA256") == Digest("sha256")
        assert Digest("SHA256").name == "sha256"

    def test_equality_and_hash(self):
        assert Digest("sha256") == Digest("sha256", domain_separated=False)
        assert Digest("sha256") != Digest("sha256", domain_separated=True)
        assert Digest("sha256") != Digest("sha3_256")
        assert len({Digest("sha256"), Digest("sha256"), Digest("blake2s")}) == 2

    def test_unknown_algorithm_raises(self):
        with pytest.raises(UnsupportedDigestError, match="unknown digest algorithm"):
            Digest("sha257")

    def test_variable_length_algorithm_raises(self):
        with pytest.raises(UnsupportedDigestError, match="no fixed output length"):
            Digest("shake_128")

    def test_unsupported_is_value_error(self):
        with pytest.raises(ValueError):
            Digest("nope")


class TestDomainSeparation:
    def test_leaf_prefix(self):
        digest = Digest("sha256", domain_separated=True)
        assert digest.hash_leaf(b"data") == hashlib.sha256(b"\x00data").digest()
        assert digest.name == "sha256+ds"

    def test_node_prefix(self):
        digest = Digest("sha256", domain_separated=True)
        left, right = b"\x11" * 32, b"\x22" * 32
        assert digest.combine(left, right) == hashlib.sha256(b"\x01" + left + right).digest()

    def test_leaf_and_node_never_collide(self):
        # Without prefixes an internal node's children form a valid leaf preimage.
        left, right = b"\x11" * 32, b"\x22" * 32
        plain = Digest("sha256")
        assert plain.hash_leaf(left + right) == plain.combine(left, right)

        separated = Digest("sha256", domain_separated=True)
        assert separated.hash_leaf(left + right) != separated.combine(left, right)


class TestDefaultDigest:
    def test_follows_settings(self):
        with patch.object(settings, "digest_algorithm", "sha3_256"), patch.object(
            settings, "domain_separation", True
        ):
            digest = default_digest()
        assert digest == Digest("sha3_256", domain_separated=True)
