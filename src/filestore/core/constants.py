"""Core constants for the file-storage engine.

This module defines constants used throughout the application:
- Defaults for size limits and durability
- Naming of staging artifacts produced by the atomic mutator
- Environment variable names read by the settings layer
"""

# ============================================================================
# Limits
# ============================================================================

#: Default maximum size of a single file, in bytes (10 MiB)
DEFAULT_MAX_FILE_SIZE: int = 10 * 1024 * 1024

#: Number of leading bytes inspected when guessing text vs. binary
BINARY_SNIFF_BYTES: int = 8192

# ============================================================================
# Encoding
# ============================================================================

#: Encoding used for all text content
TEXT_ENCODING: str = "utf-8"

#: Line terminators recognised when inserting lines, longest first
NEWLINES: tuple[str, ...] = ("\r\n", "\n", "\r")

# ============================================================================
# Staging
# ============================================================================

#: Suffix of every staging artifact written next to a target
STAGING_SUFFIX: str = ".fstmp"

#: Prefix of every staging artifact (hidden on POSIX)
STAGING_PREFIX: str = "."

# ============================================================================
# Environment
# ============================================================================

ENV_ROOT: str = "FILESTORE_ROOT"
ENV_MAX_FILE_SIZE: str = "FILESTORE_MAX_FILE_SIZE"
ENV_DURABLE: str = "FILESTORE_DURABLE"
ENV_DEBUG: str = "FILESTORE_DEBUG"

#: Values treated as "true" for boolean environment variables
TRUTHY_VALUES: tuple[str, ...] = ("1", "true", "yes", "on")
