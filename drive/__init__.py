"""Drive client with rapid (proof-based) upload."""

from drive.client import DriveClient, Pager
from drive.config import Config
from drive.credentials import CredentialHolder
from drive.digest import digest, hexdigest
from drive.exceptions import (
    AlreadyExistsError,
    AuthExpiredError,
    DriveError,
    HTTPStatusError,
    NotFoundError,
    OperationCancelledError,
    ProtocolError,
    RateLimitedError,
    TransportError,
    ZeroSizeProofUndefinedError,
)
from drive.models import Node
from drive.proof import ProofArtifact, calc_proof_offset, calc_sha1, derive_proof
from drive.uploader import UploadOrchestrator, UploadState, make_part_info_list

__all__ = [
    "DriveClient",
    "Pager",
    "Config",
    "CredentialHolder",
    "digest",
    "hexdigest",
    "AlreadyExistsError",
    "AuthExpiredError",
    "DriveError",
    "HTTPStatusError",
    "NotFoundError",
    "OperationCancelledError",
    "ProtocolError",
    "RateLimitedError",
    "TransportError",
    "ZeroSizeProofUndefinedError",
    "Node",
    "ProofArtifact",
    "calc_proof_offset",
    "calc_sha1",
    "derive_proof",
    "UploadOrchestrator",
    "UploadState",
    "make_part_info_list",
]
