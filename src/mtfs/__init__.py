"""MTFS - Merkle Tree File System for directory integrity verification."""

__version__ = "1.0.0"

# Directory and file constants
MTFS_DIR = ".mtfs"
CONFIG_FILE = "config.json"

# Chunk size bounds (bytes)
DEFAULT_CHUNK_SIZE = 1024 * 1024
MIN_CHUNK_SIZE = 1024
MAX_CHUNK_SIZE = 100 * 1024 * 1024
