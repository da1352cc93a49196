"""Pydantic models for drive API requests and responses."""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel

from common.constants import CONTENT_HASH_NAME, FILE_KIND, FOLDER_KIND, PROOF_VERSION


class Node(BaseModel):
    """A file or folder on the drive."""
    file_id: str
    name: str = ""
    type: str = FILE_KIND
    parent_file_id: Optional[str] = None
    size: Optional[int] = None
    content_hash: Optional[str] = None
    updated_at: Optional[str] = None
    download_url: Optional[str] = None

    @property
    def is_directory(self) -> bool:
        return self.type == FOLDER_KIND

    def updated_time(self) -> Optional[datetime]:
        """Parse updated_at (e.g. ``2021-07-04T10:02:51.000Z``)."""
        if not self.updated_at:
            return None
        return datetime.strptime(self.updated_at, "%Y-%m-%dT%H:%M:%S.%fZ")

    def __str__(self) -> str:
        return f"Node{{name: {self.name}, file_id: {self.file_id}}}"


class NodeId(BaseModel):
    """Response carrying only the affected node id."""
    file_id: str = ""


class ListNodes(BaseModel):
    """One page of a folder listing."""
    items: List[Node] = []
    next_marker: str = ""


class UserInfo(BaseModel):
    """Response model for the user endpoint."""
    default_drive_id: str


class AlbumData(BaseModel):
    drive_id: str


class AlbumInfo(BaseModel):
    """Response model for the album info endpoint."""
    data: AlbumData


class TokenResponse(BaseModel):
    """Response model for the token refresh endpoint."""
    access_token: str
    refresh_token: str
    expires_in: int = 7200


class PersonalSpaceInfo(BaseModel):
    used_size: int = 0
    total_size: int = 0


class PersonalInfo(BaseModel):
    """Response model for the personal info endpoint."""
    personal_space_info: PersonalSpaceInfo = PersonalSpaceInfo()


class DownloadUrl(BaseModel):
    """Response model for the download url endpoint."""
    url: str = ""
    internal_url: str = ""
    size: int = 0
    streams_url: Optional[Dict[str, str]] = None


class PartInfo(BaseModel):
    """One part of a multi-part upload."""
    part_number: int
    upload_url: str = ""
    internal_upload_url: str = ""


class CreateWithProofRequest(BaseModel):
    """Request model for the create_with_proof handshake."""
    drive_id: str
    parent_file_id: str
    name: str
    type: str = FILE_KIND
    check_name_mode: str = "refuse"
    size: int
    part_info_list: List[PartInfo]
    content_hash: str = ""
    content_hash_name: str = CONTENT_HASH_NAME
    proof_code: str = ""
    proof_version: str = PROOF_VERSION


class ProofResult(BaseModel):
    """Response model for the create_with_proof handshake."""
    file_id: str = ""
    upload_id: str = ""
    file_name: str = ""
    rapid_upload: bool = False
    exist: bool = False
    part_info_list: List[PartInfo] = []


class SharedFile(BaseModel):
    """A share link."""
    share_id: str = ""
    share_pwd: str = ""
    share_name: str = ""
    expiration: str = ""
    creator: str = ""
    file_id_list: List[str] = []


class ListSharedFiles(BaseModel):
    """One page of share links."""
    items: List[SharedFile] = []
    next_marker: str = ""


class ShareToken(BaseModel):
    """Response model for the share token endpoint."""
    share_token: str
    expires_in: int = 0
