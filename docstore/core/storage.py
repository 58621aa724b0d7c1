"""
Document persistence - one whole document per identifier.

Reads and writes are whole-document; concurrent writers to the same identifier are
not coordinated and the last writer wins.
"""

import copy
import json
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Union


def storage_key(doc_id: Any) -> str:
    """
    Return the key a document is stored under.

    Raises:
        ValueError: the identifier is empty, a dot segment, or contains a path
            separator or NUL, so it could not name a single file in the collection.
    """
    key = str(doc_id)
    separators = {"/", "\\", os.sep, os.altsep} - {None}
    if key in ("", ".", "..") or "\0" in key or any(sep in key for sep in separators):
        raise ValueError(f"Invalid document identifier: {key!r}")
    return key


class DocumentStorage(ABC):
    """Abstract interface for a collection of documents addressed by identifier."""

    @abstractmethod
    def list_ids(self) -> List[str]:
        """List the identifiers of all stored documents."""
        pass

    @abstractmethod
    def load(self, doc_id: Any) -> Dict[str, Any]:
        """Load one document. Raises KeyError if it does not exist."""
        pass

    @abstractmethod
    def save(self, doc_id: Any, document: Dict[str, Any]) -> None:
        """Persist one document, overwriting any previous version."""
        pass

    @abstractmethod
    def remove(self, doc_id: Any) -> None:
        """Remove one document. Raises KeyError if it does not exist."""
        pass

    def exists(self, doc_id: Any) -> bool:
        """Check if a document is stored under this identifier."""
        return storage_key(doc_id) in self.list_ids()

    def load_all(self) -> List[Dict[str, Any]]:
        """Load every stored document."""
        return [self.load(doc_id) for doc_id in self.list_ids()]


class JsonFileStorage(DocumentStorage):
    """Stores each document as ``<id>.json`` inside one directory."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.path.mkdir(parents=True, exist_ok=True)

    def _file_for(self, doc_id: Any) -> Path:
        return self.path / f"{storage_key(doc_id)}.json"

    def list_ids(self) -> List[str]:
        return sorted(f.stem for f in self.path.glob("*.json") if f.is_file())

    def exists(self, doc_id: Any) -> bool:
        return self._file_for(doc_id).is_file()

    def load(self, doc_id: Any) -> Dict[str, Any]:
        file_path = self._file_for(doc_id)
        if not file_path.is_file():
            raise KeyError(doc_id)
        with open(file_path, "r", encoding="utf-8") as f:
            return json.load(f)

    def save(self, doc_id: Any, document: Dict[str, Any]) -> None:
        with open(self._file_for(doc_id), "w", encoding="utf-8") as f:
            json.dump(document, f, indent="\t", ensure_ascii=False)

    def remove(self, doc_id: Any) -> None:
        file_path = self._file_for(doc_id)
        if not file_path.is_file():
            raise KeyError(doc_id)
        file_path.unlink()


class MemoryStorage(DocumentStorage):
    """Dict-backed storage, mainly for tests."""

    def __init__(self, documents: Dict[str, Dict[str, Any]] = None):
        self._documents = {}
        for doc_id, document in (documents or {}).items():
            self.save(doc_id, document)

    def list_ids(self) -> List[str]:
        return list(self._documents.keys())

    def load(self, doc_id: Any) -> Dict[str, Any]:
        return copy.deepcopy(self._documents[storage_key(doc_id)])

    def save(self, doc_id: Any, document: Dict[str, Any]) -> None:
        self._documents[storage_key(doc_id)] = copy.deepcopy(document)

    def remove(self, doc_id: Any) -> None:
        del self._documents[storage_key(doc_id)]
