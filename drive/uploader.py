"""
Rapid-upload orchestration.

One UploadOrchestrator drives one upload through the create_with_proof
handshake, the sequential part transfer and the final complete call:

    START -> HANDSHAKE_SENT -> RAPID_MATCHED
                            -> CONFLICT
                            -> PARTS_UPLOADING -> COMPLETED

FAILED is entered from any state when an exception escapes. Nothing is
retried here; a failed upload restarts from START when the caller retries.
"""

import threading
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, BinaryIO, Callable, Iterator, List, Optional, Tuple, Union

from common.constants import API_COMPLETE_UPLOAD, API_CREATE_WITH_PROOF, UPLOAD_STREAM_PIECE_BYTES
from common.logging_config import get_logger
from drive.exceptions import (
    AlreadyExistsError,
    LivpUploadError,
    MissingFieldsError,
    ProtocolError,
    TransportError,
    check_cancelled,
)
from drive.models import CreateWithProofRequest, Node, PartInfo, ProofResult

if TYPE_CHECKING:
    from drive.client import DriveClient

logger = get_logger(__name__)


class UploadState(Enum):
    START = "start"
    HANDSHAKE_SENT = "handshake_sent"
    RAPID_MATCHED = "rapid_matched"
    CONFLICT = "conflict"
    PARTS_UPLOADING = "parts_uploading"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class RapidMatch:
    """The backend already holds the content; the file exists now."""
    file_id: str


@dataclass(frozen=True)
class AlreadyExists:
    """The target name is taken and no rapid match happened."""


@dataclass(frozen=True)
class PartsPending:
    """The content must be transferred part by part."""
    file_id: str
    upload_id: str
    parts: Tuple[PartInfo, ...]


UploadOutcome = Union[RapidMatch, AlreadyExists, PartsPending]


def make_part_info_list(size: int, max_part_size: int) -> List[PartInfo]:
    """
    Plan the parts of an upload.

    Args:
        size: File size in bytes
        max_part_size: Upper bound of a single part in bytes

    Returns:
        Part descriptors numbered from 1; an empty file still gets one part

    Raises:
        ValueError: If max_part_size is not positive
    """
    if max_part_size <= 0:
        raise ValueError(f"max part size must be positive, got {max_part_size}")
    count = size // max_part_size
    if size % max_part_size > 0 or count == 0:
        count += 1
    return [PartInfo(part_number=i + 1) for i in range(count)]


def interpret_handshake(result: ProofResult, planned_parts: int) -> UploadOutcome:
    """
    Decide the upload outcome from a create_with_proof response.

    Raises:
        ProtocolError: If parts are required but the response has none, a
            different number than planned, or numbers other than 1..planned
    """
    if result.rapid_upload:
        return RapidMatch(file_id=result.file_id)
    if result.exist:
        return AlreadyExists()
    if not result.part_info_list:
        raise ProtocolError("failed to extract upload url: handshake returned no parts")
    if len(result.part_info_list) != planned_parts:
        raise ProtocolError(
            f"handshake returned {len(result.part_info_list)} parts, {planned_parts} were planned"
        )
    if not result.upload_id:
        raise ProtocolError("handshake returned parts without an upload id")
    parts = tuple(sorted(result.part_info_list, key=lambda part: part.part_number))
    numbers = [part.part_number for part in parts]
    if numbers != list(range(1, planned_parts + 1)):
        raise ProtocolError(f"handshake returned part numbers {numbers}, expected 1..{planned_parts}")
    return PartsPending(file_id=result.file_id, upload_id=result.upload_id, parts=parts)


def iter_span(
    stream: BinaryIO,
    length: int,
    piece_size: int = UPLOAD_STREAM_PIECE_BYTES,
    on_read: Optional[Callable[[int], None]] = None,
    cancel: Optional[threading.Event] = None,
) -> Iterator[bytes]:
    """
    Yield exactly ``length`` bytes from the stream's current position.

    Raises:
        TransportError: If the stream ends before the span does
        OperationCancelledError: If cancel is set between pieces
    """
    remaining = length
    while remaining > 0:
        check_cancelled(cancel, "next piece of the part")
        piece = stream.read(min(piece_size, remaining))
        if not piece:
            raise TransportError(f"file ended {remaining} bytes before the end of the part")
        remaining -= len(piece)
        if on_read is not None:
            on_read(len(piece))
        yield piece


class UploadOrchestrator:
    """Drives one file upload through handshake, parts and completion."""

    def __init__(
        self,
        client: 'DriveClient',
        parent_id: str,
        name: str,
        stream: BinaryIO,
        size: int,
        content_hash: str = '',
        proof_code: str = '',
        proof_source: Optional[Callable[[str], str]] = None,
    ):
        self.client = client
        self.parent_id = parent_id
        self.name = name
        self.stream = stream
        self.size = size
        self.content_hash = content_hash
        self.proof_code = proof_code
        self.proof_source = proof_source
        self.max_part_size = client.config.get_max_part_size()
        self.state = UploadState.START
        self.node: Optional[Node] = None

    def _transition(self, state: UploadState) -> None:
        logger.debug(f"Upload state {self.state.value} -> {state.value} [name={self.name}]")
        self.state = state

    def _validate(self) -> None:
        if not self.parent_id or not self.name:
            raise MissingFieldsError()
        if self.name.lower().endswith('.livp'):
            raise LivpUploadError()
        if self.size < 0:
            raise ValueError(f"size must be >= 0, got {self.size}")

    def handshake(self, cancel: Optional[threading.Event] = None) -> UploadOutcome:
        """Send create_with_proof and interpret the answer."""
        plan = make_part_info_list(self.size, self.max_part_size)
        request = CreateWithProofRequest(
            drive_id=self.client.drive_id,
            parent_file_id=self.parent_id,
            name=self.name,
            size=self.size,
            part_info_list=plan,
            content_hash=self.content_hash,
            proof_code=self.proof_code,
        )
        base = request.model_dump(exclude={'part_info_list'})
        base['part_info_list'] = [{'part_number': part.part_number} for part in plan]

        def build_payload(token: str) -> dict:
            payload = dict(base)
            if self.proof_source is not None:
                payload['proof_code'] = self.proof_source(token)
            return payload

        self._transition(UploadState.HANDSHAKE_SENT)
        logger.info(f"Sending upload handshake [name={self.name}, size={self.size}, parts={len(plan)}]")
        result = self.client._json_request(API_CREATE_WITH_PROOF, build_payload, ProofResult, cancel=cancel)
        return interpret_handshake(result, len(plan))

    def upload_parts(
        self,
        pending: PartsPending,
        cancel: Optional[threading.Event] = None,
        on_progress: Optional[Callable[[int, int], None]] = None,
    ) -> None:
        """Upload every part in plan order, one at a time."""
        use_internal = self.client.config.use_internal_url()
        uploaded = 0

        def report(count: int) -> None:
            nonlocal uploaded
            uploaded += count
            if on_progress is not None:
                on_progress(uploaded, self.size)

        for part in pending.parts:
            check_cancelled(cancel, f"part {part.part_number}")
            offset = (part.part_number - 1) * self.max_part_size
            length = min(self.max_part_size, self.size - offset)
            url = part.internal_upload_url if use_internal else part.upload_url
            if not url:
                raise ProtocolError(f"part {part.part_number} has no upload url")

            self.stream.seek(offset)
            logger.debug(f"Uploading part [name={self.name}, part={part.part_number}, offset={offset}, length={length}]")
            self.client.upload_part(url, iter_span(self.stream, length, on_read=report, cancel=cancel), length, cancel=cancel)

    def complete(self, pending: PartsPending, cancel: Optional[threading.Event] = None) -> Node:
        body = {
            'drive_id': self.client.drive_id,
            'file_id': pending.file_id,
            'upload_id': pending.upload_id,
        }
        return self.client._json_request(API_COMPLETE_UPLOAD, body, Node, cancel=cancel)

    def run(
        self,
        cancel: Optional[threading.Event] = None,
        on_progress: Optional[Callable[[int, int], None]] = None,
    ) -> str:
        """
        Run the upload to a terminal state.

        The stream is rewound to position 0 on every exit path.

        Args:
            cancel: Optional cancel event checked before each remote call
            on_progress: Called with (bytes_uploaded, total_bytes)

        Returns:
            Id of the created file

        Raises:
            AlreadyExistsError: If the name is taken and no rapid match happened
            DriveError: On any other failure
        """
        try:
            self._validate()
            outcome = self.handshake(cancel=cancel)

            if isinstance(outcome, RapidMatch):
                self._transition(UploadState.RAPID_MATCHED)
                logger.info(f"Rapid upload matched, no content sent [name={self.name}, file_id={outcome.file_id}]")
                return outcome.file_id

            if isinstance(outcome, AlreadyExists):
                self._transition(UploadState.CONFLICT)
                raise AlreadyExistsError(f'"{self.name}" already exists under "{self.parent_id}"')

            self._transition(UploadState.PARTS_UPLOADING)
            self.upload_parts(outcome, cancel=cancel, on_progress=on_progress)

            self.node = self.complete(outcome, cancel=cancel)
            self._transition(UploadState.COMPLETED)
            logger.info(f"Upload completed [name={self.name}, file_id={self.node.file_id}, size={self.size}]")
            return self.node.file_id
        except Exception:
            if self.state != UploadState.CONFLICT:
                self._transition(UploadState.FAILED)
            raise
        finally:
            self.stream.seek(0)
