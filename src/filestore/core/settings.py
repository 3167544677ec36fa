"""Settings for constructing a FileStore.

Settings come from explicit arguments or from ``FILESTORE_*`` environment
variables; explicit values always win.
"""

import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from filestore.core.constants import (
    DEFAULT_MAX_FILE_SIZE,
    ENV_DURABLE,
    ENV_MAX_FILE_SIZE,
    ENV_ROOT,
    TRUTHY_VALUES,
)

__all__ = ["StoreSettings"]


class StoreSettings(BaseModel):
    """Configuration for a FileStore instance.

    Attributes:
        root: Sandbox root directory
        max_file_size: Maximum size of a single file in bytes
        durable: fsync staged files and directories on every commit
    """

    model_config = ConfigDict(frozen=True)

    root: Path
    max_file_size: int = Field(default=DEFAULT_MAX_FILE_SIZE, gt=0)
    durable: bool = True

    @field_validator("root")
    @classmethod
    def expand_root(cls, value: Path) -> Path:
        return value.expanduser()

    @classmethod
    def from_env(
        cls,
        root: str | Path | None = None,
        max_file_size: int | None = None,
        durable: bool | None = None,
    ) -> "StoreSettings":
        """Build settings from arguments, falling back to the environment.

        Args:
            root: Explicit root (else ``FILESTORE_ROOT``)
            max_file_size: Explicit size limit (else ``FILESTORE_MAX_FILE_SIZE``)
            durable: Explicit durability flag (else ``FILESTORE_DURABLE``)

        Returns:
            Validated settings

        Raises:
            ValueError: If no root is given and ``FILESTORE_ROOT`` is unset
            pydantic.ValidationError: If a value fails validation
        """
        chosen_root = root if root is not None else os.getenv(ENV_ROOT)
        if not chosen_root:
            raise ValueError(f"No storage root given and {ENV_ROOT} is not set")

        values: dict[str, object] = {"root": Path(chosen_root)}

        env_size = os.getenv(ENV_MAX_FILE_SIZE)
        if max_file_size is not None:
            values["max_file_size"] = max_file_size
        elif env_size:
            values["max_file_size"] = env_size

        env_durable = os.getenv(ENV_DURABLE)
        if durable is not None:
            values["durable"] = durable
        elif env_durable:
            values["durable"] = env_durable.strip().lower() in TRUTHY_VALUES

        return cls.model_validate(values)
