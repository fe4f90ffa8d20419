# magpie/assets/importers/base.py
from abc import ABC, abstractmethod
from typing import Any


class AssetImporter(ABC):
    @abstractmethod
    def import_bytes(self, data: bytes, name: str) -> Any:
        """
        Decode fetched bytes into a CPU-friendly data object.
        `name` is only used for error reporting. Must be thread-safe.
        """
        pass
