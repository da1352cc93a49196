"""Project-wide constants (endpoints, node kinds, upload limits)."""

MAX_PART_SIZE_BYTES: int = 1024 * 1024 * 1024  # 1 GiB per upload part
HASH_READ_BLOCK_BYTES: int = 1024 * 1024
UPLOAD_STREAM_PIECE_BYTES: int = 1024 * 1024
PROOF_SAMPLE_BYTES: int = 8
PROOF_VERSION: str = "v1"
CONTENT_HASH_NAME: str = "sha1"

FOLDER_KIND: str = "folder"
FILE_KIND: str = "file"
ANY_KIND: str = "any"

ROOT_ID: str = "root"
LIST_PAGE_LIMIT: int = 200
DEFAULT_FOLDER_CACHE_SIZE: int = 1024

API_REFRESH_TOKEN = "https://auth.aliyundrive.com/v2/account/token"
API_USER_INFO = "https://api.aliyundrive.com/v2/user/get"
API_ALBUMS_INFO = "https://api.aliyundrive.com/adrive/v1/user/albums_info"
API_PERSONAL_INFO = "https://api.aliyundrive.com/v2/databox/get_personal_info"
API_LIST = "https://api.aliyundrive.com/v2/file/list"
API_CREATE = "https://api.aliyundrive.com/v2/file/create"
API_UPDATE = "https://api.aliyundrive.com/v2/file/update"
API_MOVE = "https://api.aliyundrive.com/v2/file/move"
API_COPY = "https://api.aliyundrive.com/v2/file/copy"
API_CREATE_WITH_PROOF = "https://api.aliyundrive.com/v2/file/create_with_proof"
API_COMPLETE_UPLOAD = "https://api.aliyundrive.com/v2/file/complete"
API_GET = "https://api.aliyundrive.com/v2/file/get"
API_GET_BY_PATH = "https://api.aliyundrive.com/v2/file/get_by_path"
API_GET_DOWNLOAD_URL = "https://api.aliyundrive.com/v2/file/get_download_url"
API_TRASH = "https://api.aliyundrive.com/v2/recyclebin/trash"

API_CREATE_SHARE_LINK = "https://api.aliyundrive.com/v2/share_link/create"
API_GET_SHARE_LINK = "https://api.aliyundrive.com/v2/share_link/get"
API_LIST_SHARE_LINKS = "https://api.aliyundrive.com/v2/share_link/list"
API_GET_SHARE_TOKEN = "https://api.aliyundrive.com/v2/share_link/get_share_token"
API_CANCEL_SHARE_LINK = "https://api.aliyundrive.com/v2/share_link/cancel"
API_GET_SHARE_LINK_BY_ANONYMOUS = "https://api.aliyundrive.com/v2/share_link/get_by_anonymous"

REFERER = "https://www.aliyundrive.com/"
USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.77 Safari/537.36"
)
