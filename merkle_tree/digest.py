"""Hash primitives for leaves and internal nodes.

**Leaf hash:**   H(data)
**Node hash:**   H(left || right)

Concatenation is left bytes then right bytes with no separator, so node
hashing is order-sensitive.  With ``domain_separated=True`` the two roles
get distinct one-byte prefixes, as in Certificate Transparency
(RFC 6962 §2.1):

- Leaf nodes:     H(0x00 || data)
- Internal nodes: H(0x01 || left || right)

Without the prefixes an internal node's two children, concatenated, form
a valid leaf preimage for that node's hash.  The unprefixed mode is the
default because it is what the published reference roots use.
"""

from __future__ import annotations

import hashlib

from merkle_tree.config import settings


class UnsupportedDigestError(ValueError):
    """Raised when an algorithm is unknown to hashlib or has no fixed length."""


class Digest:
    """Leaf and node hashing over a single ``hashlib`` algorithm.

    Instances are immutable and compare equal when they would produce
    identical hashes.
    """

    _LEAF_PREFIX = b"\x00"
    _NODE_PREFIX = b"\x01"

    def __init__(self, algorithm: str = "sha256", domain_separated: bool = False) -> None:
        algorithm = algorithm.lower()
        try:
            probe = hashlib.new(algorithm)
        except (ValueError, TypeError) as exc:
            raise UnsupportedDigestError(f"unknown digest algorithm: {algorithm!r}") from exc
        # shake_* report digest_size 0: output length is chosen per call.
        if not probe.digest_size:
            raise UnsupportedDigestError(
                f"digest algorithm {algorithm!r} has no fixed output length"
            )
        self._algorithm = algorithm
        self._domain_separated = bool(domain_separated)
        self._digest_size = probe.digest_size

    @property
    def algorithm(self) -> str:
        return self._algorithm

    @property
    def domain_separated(self) -> bool:
        return self._domain_separated

    @property
    def digest_size(self) -> int:
        return self._digest_size

    @property
    def name(self) -> str:
        if self._domain_separated:
            return f"{self._algorithm}+ds"
        return self._algorithm

    def hash_leaf(self, data: bytes) -> bytes:
        h = hashlib.new(self._algorithm)
        if self._domain_separated:
            h.update(self._LEAF_PREFIX)
        h.update(data)
        return h.digest()

    def combine(self, left: bytes, right: bytes) -> bytes:
        h = hashlib.new(self._algorithm)
        if self._domain_separated:
            h.update(self._NODE_PREFIX)
        h.update(left)
        h.update(right)
        return h.digest()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Digest):
            return NotImplemented
        return (self._algorithm, self._domain_separated) == (
            other._algorithm,
            other._domain_separated,
        )

    def __hash__(self) -> int:
        return hash((self._algorithm, self._domain_separated))

    def __repr__(self) -> str:
        return f"Digest({self._algorithm!r}, domain_separated={self._domain_separated})"


def default_digest() -> Digest:
    """Return the digest selected by ``MERKLE_DIGEST_ALGORITHM`` / ``MERKLE_DOMAIN_SEPARATION``."""
    return Digest(settings.digest_algorithm, settings.domain_separation)
