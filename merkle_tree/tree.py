"""Immutable layered Merkle tree.

**Layout:** the tree is a stack of layers, bottom to top.  Layer 0 holds
one hash per input element in input order; every following layer holds
``ceil(len(previous) / 2)`` hashes; the top layer holds only the root.
An empty input produces no layers and no root.

**Odd layers:** when a layer has an odd number of hashes, its last hash
is combined with itself, ``combine(a, a)``.  It is *not* promoted to the
next layer unchanged.  Five elements therefore give::

          r
         / \\
        .   :
       / \\   \\
      .   .   :
     / \\ / \\ /
     1 2 3 4 5

**Addressing:** a node is identified by ``(layer, position)``; its parent
is ``(layer + 1, position // 2)``.  Even positions are left children and
odd positions right children.  No node links are stored.

**Immutability:** layers are tuples and nothing rebinds them after
``build``, so one tree can serve root queries and proofs from any number
of threads without locking.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from merkle_tree.config import settings
from merkle_tree.digest import Digest, default_digest
from merkle_tree.proof import AnchoredHash, ExistenceProof, Side
from merkle_tree.serialization import Serializer, as_bytes

logger = logging.getLogger(__name__)

Layer = tuple[bytes, ...]


class MerkleTree:
    """Batch-built Merkle tree with existence-proof extraction.

    Build with ``MerkleTree.build(elements)``; the elements themselves are
    not retained, only their hashes.
    """

    def __init__(self, layers: Iterable[Layer], digest: Digest) -> None:
        """Wrap precomputed layers.

        Prefer ``build``, ``empty`` or ``from_leaf_hashes``; this only checks
        the layer shape, not that the hashes are consistent.

        Raises:
            ValueError: If a layer is not half its predecessor (rounded up)
                or the top layer does not hold exactly one hash.
        """
        self._layers: tuple[Layer, ...] = tuple(tuple(layer) for layer in layers)
        self._digest = digest
        self._check_shape()

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def empty(cls, digest: Digest | None = None) -> MerkleTree:
        return cls((), digest or default_digest())

    @classmethod
    def build(
        cls,
        elements: Iterable[Any],
        *,
        digest: Digest | None = None,
        serializer: Serializer | None = None,
    ) -> MerkleTree:
        """Hash every element and build the full tree over them.

        Args:
            elements: Finite iterable, consumed once, order preserved.
            digest: Hash primitive (default: from settings).
            serializer: Element-to-bytes conversion (default: ``as_bytes``).

        Raises:
            SerializationError: If an element has no byte form.
        """
        digest = digest or default_digest()
        serialize = serializer or as_bytes
        bottom = tuple(digest.hash_leaf(serialize(e)) for e in elements)
        return cls._from_bottom_layer(bottom, digest)

    @classmethod
    def from_leaf_hashes(
        cls,
        hashes: Iterable[bytes],
        *,
        digest: Digest | None = None,
    ) -> MerkleTree:
        """Build a tree over leaves that were hashed elsewhere.

        Raises:
            ValueError: If a hash does not have the digest's length.
        """
        digest = digest or default_digest()
        bottom = tuple(bytes(h) for h in hashes)
        for index, leaf in enumerate(bottom):
            if len(leaf) != digest.digest_size:
                raise ValueError(
                    f"leaf hash {index} is {len(leaf)} bytes, "
                    f"{digest.name} produces {digest.digest_size}"
                )
        return cls._from_bottom_layer(bottom, digest)

    @classmethod
    def _from_bottom_layer(cls, bottom: Layer, digest: Digest) -> MerkleTree:
        if not bottom:
            logger.debug("Built empty Merkle tree")
            return cls((), digest)

        layers = [bottom]
        while len(layers[-1]) > 1:
            layers.append(cls._next_layer(layers[-1], digest))

        tree = cls(layers, digest)
        logger.debug(
            "Built Merkle tree: leaves=%d layers=%d digest=%s",
            len(bottom),
            len(layers),
            digest.name,
        )
        if settings.audit_log_enabled:
            logger.info("Merkle root %s over %d leaves", layers[-1][0].hex(), len(bottom))
        return tree

    @staticmethod
    def _next_layer(layer: Layer, digest: Digest) -> Layer:
        next_layer: list[bytes] = []
        for i in range(0, len(layer), 2):
            if i + 1 < len(layer):
                next_layer.append(digest.combine(layer[i], layer[i + 1]))
            else:
                # Odd layer: duplicate the last hash.
                next_layer.append(digest.combine(layer[i], layer[i]))
        return tuple(next_layer)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def root_hash(self) -> bytes | None:
        if not self._layers:
            return None
        return self._layers[-1][0]

    @property
    def digest(self) -> Digest:
        return self._digest

    @property
    def layers(self) -> tuple[Layer, ...]:
        return self._layers

    @property
    def size(self) -> int:
        if not self._layers:
            return 0
        return len(self._layers[0])

    @property
    def depth(self) -> int:
        return len(self._layers)

    def __len__(self) -> int:
        return self.size

    def leaf_hash(self, index: int) -> bytes | None:
        if not self._valid_coords(0, index):
            return None
        return self._layers[0][index]

    def prove_existence(self, index: int) -> ExistenceProof | None:
        """Extract the existence proof for the element at *index*.

        Returns None for an empty tree or an index outside ``[0, size)``.
        """
        path: list[AnchoredHash] = []
        layer, position = 0, index

        # Walk bottom-up, collecting the sibling of every node on the path.
        while self._valid_coords(layer, position):
            sibling = self._sibling_index(layer, position)
            path.append(self._anchored_hash(layer, sibling))
            layer += 1
            position //= 2

        if not path:
            logger.debug("No existence proof: index %r outside tree of size %d", index, self.size)
            return None

        # The last entry is the root pairing with itself; verification
        # stops one layer below it.
        path.pop()

        proof = ExistenceProof.from_path(path, self._digest)
        if settings.audit_log_enabled:
            logger.info(
                "Existence proof: index=%d path_length=%d root=%s",
                index,
                len(path),
                self.root_hash.hex(),
            )
        return proof

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _valid_coords(self, layer: int, position: int) -> bool:
        return (
            isinstance(position, int)
            and not isinstance(position, bool)
            and 0 <= layer < len(self._layers)
            and 0 <= position < len(self._layers[layer])
        )

    def _check_shape(self) -> None:
        if not self._layers:
            return
        for i in range(1, len(self._layers)):
            expected = (len(self._layers[i - 1]) + 1) // 2
            if len(self._layers[i]) != expected:
                raise ValueError(
                    f"layer {i} has {len(self._layers[i])} hashes, expected {expected}"
                )
        if len(self._layers[-1]) != 1:
            raise ValueError(f"top layer has {len(self._layers[-1])} hashes, expected 1")

    def _sibling_index(self, layer: int, position: int) -> int:
        layer_len = len(self._layers[layer])
        # The last node of an odd layer was combined with itself.
        if layer_len % 2 != 0 and position == layer_len - 1:
            return position
        if position % 2 == 0:
            return position + 1
        return position - 1

    def _anchored_hash(self, layer: int, position: int) -> AnchoredHash:
        side = Side.LEFT if position % 2 == 0 else Side.RIGHT
        return AnchoredHash(hash=self._layers[layer][position], side=side)

    def __repr__(self) -> str:
        root = self.root_hash.hex() if self.root_hash is not None else None
        return f"MerkleTree(size={self.size}, digest={self._digest.name}, root={root})"
