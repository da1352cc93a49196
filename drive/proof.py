"""Rapid-upload proof code and content hash computation."""

import base64
import hashlib
from dataclasses import dataclass
from typing import BinaryIO

from common.constants import HASH_READ_BLOCK_BYTES, PROOF_SAMPLE_BYTES
from common.logging_config import get_logger
from drive.digest import hexdigest
from drive.exceptions import DriveError, ZeroSizeProofUndefinedError

logger = get_logger(__name__)


@dataclass(frozen=True)
class ProofArtifact:
    """
    Proof that the caller can read the declared file.

    Attributes:
        offset: Byte offset the sample was taken from
        sample_b64: Standard base64 of up to 8 bytes read at offset
    """
    offset: int
    sample_b64: str


def calc_proof_offset(credential: str, file_size: int) -> int:
    """
    Derive the sampling offset from the bearer credential.

    Args:
        credential: Access token the backend also holds
        file_size: Declared file size in bytes

    Returns:
        Offset in [0, file_size)

    Raises:
        ZeroSizeProofUndefinedError: If file_size is 0
    """
    if file_size <= 0:
        raise ZeroSizeProofUndefinedError(f"proof offset is undefined for file size {file_size}")
    value = int(hexdigest(credential)[:16], 16)
    return value % file_size


def derive_proof(credential: str, file_size: int, stream: BinaryIO) -> ProofArtifact:
    """
    Sample the file at the credential-derived offset.

    The stream is rewound to position 0 on every exit path.

    Args:
        credential: Access token the backend also holds
        file_size: Declared file size in bytes
        stream: Seekable binary stream of exactly file_size bytes

    Returns:
        ProofArtifact for the stream

    Raises:
        ZeroSizeProofUndefinedError: If file_size is 0
        DriveError: If the stream cannot be positioned at the offset
    """
    try:
        offset = calc_proof_offset(credential, file_size)
        position = stream.seek(offset)
        if position != offset:
            raise DriveError(f"failed to seek file to {offset} (landed at {position})")
        sample = stream.read(PROOF_SAMPLE_BYTES)
    finally:
        stream.seek(0)

    logger.debug(f"Derived proof sample [offset={offset}, sample_len={len(sample)}]")
    return ProofArtifact(offset=offset, sample_b64=base64.b64encode(sample).decode('ascii'))


def calc_sha1(stream: BinaryIO) -> str:
    """
    Compute the full-content SHA-1 used as the backend's content hash.

    Args:
        stream: Seekable binary stream, read from position 0

    Returns:
        Uppercase hex SHA-1 digest
    """
    hasher = hashlib.sha1()
    try:
        stream.seek(0)
        while True:
            block = stream.read(HASH_READ_BLOCK_BYTES)
            if not block:
                break
            hasher.update(block)
    except OSError as e:
        raise DriveError(f"failed to calculate sha1: {e}") from e
    finally:
        stream.seek(0)
    return hasher.hexdigest().upper()
