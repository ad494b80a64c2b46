"""Constants used throughout SnapVCS."""

# Directory names
SNAPVCS_DIR = ".snapvcs"
OBJECTS_DIR = "objects"
BRANCHES_DIR = "branches"
REMOTE_DIR = "remote"

# File names
HEAD_FILE = "HEAD"
STAGE_FILE = "stage"
METADATA_DB = "metadata.db"
IGNORE_FILE = ".snapvcsignore"

# Branches
DEFAULT_BRANCH = "master"
REMOTE_BRANCH_SEPARATOR = "/"

# Initial commit
INITIAL_COMMIT_MESSAGE = "initial commit"
INITIAL_COMMIT_TIMESTAMP = "1970-01-01T00:00:00+00:00"

# Hash algorithm
HASH_ALGORITHM = "sha256"
HASH_LENGTH = 64  # SHA-256 produces 64 hex characters
SHORT_HASH_LENGTH = 7
HEX_DIGITS = "0123456789abcdef"

# Stage format
STAGE_VERSION = 1

# Merge conflict markers
CONFLICT_HEAD_MARKER = b"<<<<<<<\n"
CONFLICT_SEPARATOR = b"=======\n"
CONFLICT_END_MARKER = b">>>>>>>\n"

# Exit codes
EXIT_USER_ERROR = 1

# Database schema version
DB_SCHEMA_VERSION = 1
