from ..core.store import KeyValueStore
from ..types import StorageConfig
from .filesystem import FilesystemStore
from .memory import MemoryStore


def open_store(config: StorageConfig | None = None) -> KeyValueStore:
    """Build the storage backend named by the config."""
    config = config or StorageConfig()
    if config.backend == "filesystem":
        return FilesystemStore(root=config.root)
    if config.backend == "memory":
        return MemoryStore()
    raise ValueError(f"Unknown storage backend: {config.backend}")


__all__ = ["FilesystemStore", "MemoryStore", "open_store"]
