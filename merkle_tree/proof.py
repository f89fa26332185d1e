"""Existence proofs and their verification.

A proof is the ordered list of sibling hashes met on the way from one
leaf up to the root, each tagged with the side it occupies when combined.
Verification needs only the element, the proof and the claimed root:

    current = hash_leaf(serialize(element))
    for sibling in path:
        current = combine(sibling, current)   # sibling on the LEFT
        current = combine(current, sibling)   # sibling on the RIGHT
    valid = current == claimed_root

Proofs are plain values, independent of the tree that produced them.
They carry the name of the digest they were cut with so that a proof
read back from JSON can be checked without any out-of-band agreement
beyond the root hash itself.
"""

from __future__ import annotations

import hmac
import logging
from enum import Enum
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_serializer,
    field_validator,
    model_validator,
)

from merkle_tree.config import settings
from merkle_tree.digest import Digest
from merkle_tree.serialization import Serializer, as_bytes

logger = logging.getLogger(__name__)


class Side(str, Enum):
    """Operand position of a sibling hash in ``Digest.combine``."""

    LEFT = "left"
    RIGHT = "right"


class AnchoredHash(BaseModel):
    """A sibling hash plus the side it is combined on."""

    model_config = ConfigDict(frozen=True)

    hash: bytes = Field(..., description="Sibling hash, hex-encoded in JSON")
    side: Side

    @field_validator("hash", mode="before")
    @classmethod
    def _decode_hex(cls, value: Any) -> Any:
        if isinstance(value, str):
            try:
                return bytes.fromhex(value)
            except ValueError as exc:
                raise ValueError(f"sibling hash is not valid hex: {value!r}") from exc
        return value

    @field_serializer("hash")
    def _encode_hex(self, value: bytes) -> str:
        return value.hex()


class ExistenceProof(BaseModel):
    """Inclusion proof for one element of a Merkle tree.

    ``path`` runs from the leaf layer upward and stops one layer below
    the root.  A single-element tree yields an empty path: the leaf hash
    is the root.
    """

    model_config = ConfigDict(frozen=True)

    path: tuple[AnchoredHash, ...] = ()
    hash_algorithm: str = Field(default="sha256", description="hashlib algorithm name")
    domain_separated: bool = Field(
        default=False, description="Whether leaf/node hashes carry 0x00/0x01 prefixes"
    )

    @field_validator("hash_algorithm")
    @classmethod
    def _check_algorithm(cls, value: str) -> str:
        # Raises UnsupportedDigestError (a ValueError) for unknown names.
        return Digest(value).algorithm

    @field_validator("path")
    @classmethod
    def _check_length(
        cls, value: tuple[AnchoredHash, ...], info: ValidationInfo
    ) -> tuple[AnchoredHash, ...]:
        # Only untrusted input is bounded; proofs cut from a tree never are.
        if not (info.context or {}).get("enforce_length_limit"):
            return value
        if len(value) > settings.max_proof_length:
            raise ValueError(
                f"proof path has {len(value)} entries, limit is {settings.max_proof_length}"
            )
        return value

    @model_validator(mode="after")
    def _check_hash_sizes(self) -> ExistenceProof:
        size = self.digest.digest_size
        for position, anchored in enumerate(self.path):
            if len(anchored.hash) != size:
                raise ValueError(
                    f"path[{position}] is {len(anchored.hash)} bytes, "
                    f"{self.hash_algorithm} hashes are {size} bytes"
                )
        return self

    @classmethod
    def from_path(cls, path: list[AnchoredHash], digest: Digest) -> ExistenceProof:
        return cls(
            path=tuple(path),
            hash_algorithm=digest.algorithm,
            domain_separated=digest.domain_separated,
        )

    @property
    def digest(self) -> Digest:
        return Digest(self.hash_algorithm, self.domain_separated)

    def compute_root(self, element: Any, *, serializer: Serializer | None = None) -> bytes:
        """Fold the path over the element's leaf hash and return the result."""
        digest = self.digest
        serialize = serializer or as_bytes

        current = digest.hash_leaf(serialize(element))
        for anchored in self.path:
            if anchored.side is Side.LEFT:
                current = digest.combine(anchored.hash, current)
            else:
                current = digest.combine(current, anchored.hash)
        return current

    def is_valid(
        self,
        element: Any,
        claimed_root: bytes,
        *,
        serializer: Serializer | None = None,
    ) -> bool:
        """Return True only if the path reconstructs *claimed_root* from *element*.

        A wrong element, a tampered sibling and a mismatched root are
        indistinguishable: all of them yield False.
        """
        if not isinstance(claimed_root, (bytes, bytearray, memoryview)):
            return False
        computed = self.compute_root(element, serializer=serializer)
        valid = hmac.compare_digest(computed, bytes(claimed_root))
        if not valid:
            logger.debug("Existence proof rejected: path_length=%d", len(self.path))
        return valid

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, text: str | bytes) -> ExistenceProof:
        """Parse a proof produced by ``to_json``.

        Paths longer than ``MERKLE_MAX_PROOF_LENGTH`` are rejected here only.
        Raises pydantic.ValidationError on malformed input.
        """
        return cls.model_validate_json(text, context={"enforce_length_limit": True})
