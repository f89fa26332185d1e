"""Configuration for the Merkle tree library.

All settings are driven by environment variables with sensible defaults.
The defaults reproduce the plain SHA-256 tree (no leaf/node prefixes), so
roots computed with them match any other implementation of that scheme.
"""

from __future__ import annotations

import os


def _get_int(name: str, default: int, minimum: int | None = None) -> int:
    val = os.getenv(name)
    if val is None or val.strip() == "":
        return default
    parsed = int(val)
    if minimum is not None and parsed < minimum:
        raise ValueError(f"{name} must be at least {minimum}, got {parsed}")
    return parsed


def _get_bool(name: str, default: bool) -> bool:
    val = os.getenv(name)
    if val is None or val == "":
        return default
    return val.strip().lower() in {"1", "true", "yes", "y", "on"}


class MerkleSettings:
    # --- Digest ---
    # Any fixed-length hashlib algorithm name (sha256, sha3_256, blake2b, ...).
    digest_algorithm: str = os.getenv("MERKLE_DIGEST_ALGORITHM", "sha256")
    # Prefix leaves with 0x00 and internal nodes with 0x01.
    # Changes every root hash; both sides of a proof exchange must agree.
    domain_separation: bool = _get_bool("MERKLE_DOMAIN_SEPARATION", False)

    # --- Logging ---
    # If True, log root hashes and proof extraction at INFO.
    audit_log_enabled: bool = _get_bool("MERKLE_AUDIT_LOG", False)
    # Level used by the CLI when it configures logging.
    log_level: str = os.getenv("MERKLE_LOG_LEVEL", "WARNING")
    # Proof paths longer than this are rejected when parsed from JSON.
    max_proof_length: int = _get_int("MERKLE_MAX_PROOF_LENGTH", 256, minimum=1)


settings = MerkleSettings()
