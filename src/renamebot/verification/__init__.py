"""Checksum files and verification."""

from .hashing import (
    HashType,
    VerificationError,
    VerificationReport,
    VerificationResult,
    check,
    compute,
    compute_hash,
    parse_checksum_file,
    verify,
)

__all__ = [
    "HashType",
    "VerificationError",
    "VerificationReport",
    "VerificationResult",
    "check",
    "compute",
    "compute_hash",
    "parse_checksum_file",
    "verify",
]
