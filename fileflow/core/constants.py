"""Core constants: collection names, cache key prefixes, fixed literals."""

# Record collections (shared by every storage backend)
COLLECTION_USERS = "users"
COLLECTION_FILES = "files"
COLLECTION_VERSIONS = "versions"
COLLECTIONS = (COLLECTION_USERS, COLLECTION_FILES, COLLECTION_VERSIONS)

# Change note recorded on the version created with a file
INITIAL_VERSION_NOTE = "Initial upload"

# Sortable file fields and their comparison kind
FILE_SORT_FIELDS = {
    "name": "string",
    "type": "string",
    "size": "number",
    "created_at": "timestamp",
    "updated_at": "timestamp",
}
DEFAULT_SORT_FIELD = "updated_at"

# Cache key prefixes
CACHE_PREFIX_USER = "fileflow:user"
CACHE_KEY_SEP = ":"

# Field combinations that must be unique per collection (besides id).
# The SQL schema declares the same constraints; the local store checks them on insert.
UNIQUE_FIELDS = {
    COLLECTION_USERS: (("email",),),
    COLLECTION_VERSIONS: (("file_id", "version_number"),),
}
