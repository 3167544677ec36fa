"""Debug utility for the file-storage engine.

Provides a single debug() function that can be toggled via the
FILESTORE_DEBUG environment variable. Low-level filesystem steps (staging,
commit, cross-device fallback) report through it; operation-level events go
through structlog in ``filestore.core.store``.

Usage:
    from filestore.utils.debug import debug

    debug(f"Staged {size} bytes at {staging}")

Environment:
    FILESTORE_DEBUG: Set to '1', 'true', 'yes', 'on' (case-insensitive) to
                     enable debug output. Any other value or unset disables it.

Example:
    $ FILESTORE_DEBUG=1 filestore view notes/    # Debug enabled
    $ filestore view notes/                      # Debug disabled (default)
"""

import os
import sys
from typing import Any

from filestore.core.constants import ENV_DEBUG, TRUTHY_VALUES

# Determine if debug mode is enabled at module import time
_DEBUG_ENABLED = os.environ.get(ENV_DEBUG, "").lower() in TRUTHY_VALUES


def debug(msg: Any) -> None:
    """Print debug message to stderr if FILESTORE_DEBUG is enabled.

    Args:
        msg: Message to print. Will be converted to string.

    Note:
        The environment variable is read at module import time. Changing it
        after import has no effect unless the module is reloaded.
    """
    if _DEBUG_ENABLED:
        print(f"[DEBUG] {msg}", file=sys.stderr)
