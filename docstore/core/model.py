"""
Collection model - the CRUD facade over reconciliation, the locked-field guard,
the diff engine and document storage.

Every document handed back to the caller has been reconciled against the schema,
so the schema is a live invariant rather than a one-time validation.
"""

import copy
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import BaseModel

from .canonical import same_structure
from .config import SYNC_ON_LOAD, get_log_settings, is_strict_mode
from .diff import ChangeRecord, diff
from .locked import guard
from .reconcile import reconcile
from .schema import parse_schema
from .storage import DocumentStorage, JsonFileStorage, storage_key
from ..util.logging import logger, sanitize_payload

Predicate = Callable[[Dict[str, Any]], bool]
Mutator = Callable[[Dict[str, Any]], Optional[Dict[str, Any]]]
ChangeSink = Callable[[Any, List[ChangeRecord]], None]


class DocumentStoreError(Exception):
    """Base exception for document store operations."""
    pass


class NotFoundError(DocumentStoreError):
    """No document matched the lookup."""
    pass


class ImmutabilityViolationError(DocumentStoreError):
    """An update tried to change one or more locked fields."""

    def __init__(self, doc_id: Any, paths: List[str]):
        self.doc_id = doc_id
        self.paths = paths
        super().__init__(f"Update of document {doc_id!r} changes locked field(s): {', '.join(paths)}")


class SchemaMismatchError(DocumentStoreError, TypeError):
    """Strict mode: the supplied document is not already in its reconciled form."""

    def __init__(self, received: Any, expected: Dict[str, Any]):
        self.received = received
        self.expected = expected
        super().__init__("Type of received object is not assignable to type of database.")


class LogSettings(BaseModel):
    create_file: bool = False
    delete_file: bool = False
    change_file: bool = False

    @classmethod
    def resolve(cls, value: Union[bool, Dict[str, bool], "LogSettings", None]) -> "LogSettings":
        """Build settings from a bool (all switches), a partial mapping or nothing."""
        if isinstance(value, LogSettings):
            return value
        if isinstance(value, bool):
            return cls(create_file=value, delete_file=value, change_file=value)
        settings = get_log_settings()
        if value:
            settings.update(value)
        return cls(**settings)


class Model:
    """
    A schema-governed collection of documents.

    Args:
        path: Collection directory, or any DocumentStorage implementation.
        schema: Mapping of field name to descriptor (or raw descriptor data).
            Must declare ``_id``.
        log: True/False for all lifecycle logging, or a partial mapping of
            ``create_file``/``delete_file``/``change_file``.
        strict: Reject documents that differ from their reconciled form.
            Defaults to SCHEMA_VALIDATION_STRICT.
        change_sink: Receives ``(doc_id, records)`` after every successful update.
        sync_on_init: Reconcile and rewrite every stored document on construction.
            Defaults to SYNC_ON_LOAD.
        name: Collection name used in log lines.
    """

    def __init__(
        self,
        path: Union[str, Path, DocumentStorage],
        schema: Dict[str, Any],
        log: Union[bool, Dict[str, bool], LogSettings, None] = None,
        strict: Optional[bool] = None,
        change_sink: Optional[ChangeSink] = None,
        sync_on_init: Optional[bool] = None,
        name: Optional[str] = None,
    ):
        self.schema = parse_schema(schema)
        if "_id" not in self.schema:
            raise ValueError("schema must declare an '_id' field")

        if isinstance(path, DocumentStorage):
            self.storage = path
            self.name = name or type(path).__name__
        else:
            self.storage = JsonFileStorage(path)
            self.name = name or Path(path).name

        self.strict = is_strict_mode() if strict is None else strict
        self.log = LogSettings.resolve(log)
        self.change_sink = change_sink or self._log_changes

        if SYNC_ON_LOAD if sync_on_init is None else sync_on_init:
            self.sync_all()

    # Reads

    def find(self, predicate: Optional[Predicate] = None) -> List[Dict[str, Any]]:
        """Return every document matching the predicate (all documents if none given)."""
        documents = [reconcile(document, self.schema) for document in self.storage.load_all()]
        if predicate is None:
            return documents
        return [document for document in documents if predicate(document)]

    def find_one(self, predicate: Predicate) -> Dict[str, Any]:
        """Return the first document matching the predicate."""
        for document in self.find(predicate):
            return document
        raise NotFoundError("Could not find a document with the given filter.")

    def get(self, doc_id: Any) -> Dict[str, Any]:
        """Return the document stored under an identifier."""
        try:
            return reconcile(self.storage.load(doc_id), self.schema)
        except KeyError:
            raise NotFoundError(f"Could not find a document with _id {doc_id!r}.")

    def count(self) -> int:
        return len(self.storage.list_ids())

    # Writes

    def save(self, document: Dict[str, Any]) -> None:
        """
        Overwrite a document in the collection.

        **Caution:** this skips the locked-field guard and may make unexpected
        changes to the stored document.
        """
        reconciled = self._conform(document, "save")
        self.storage.save(self._require_id(reconciled), reconciled)

    def create(self, document: Dict[str, Any]) -> Dict[str, Any]:
        """Create a new document. An existing document with the same _id is overwritten."""
        reconciled = self._conform(document, "create")
        doc_id = self._require_id(reconciled)

        if self.storage.exists(doc_id):
            logger.warning(f"Document {doc_id} already exists in {self.name} and will be overwritten")

        self.storage.save(doc_id, reconciled)

        if self.log.create_file:
            logger.log_document_created(self.name, doc_id)
        return copy.deepcopy(reconciled)

    def update(self, document: Dict[str, Any], mutator: Mutator) -> Dict[str, Any]:
        """
        Apply ``mutator`` to a copy of the stored document and persist the result.

        The pre-update document is the stored version with the same ``_id``. The
        mutator may change its argument in place or return a replacement.

        Raises:
            NotFoundError: no stored document has this _id.
            SchemaMismatchError: strict mode and the mutated document is off-schema.
            ImmutabilityViolationError: a locked field (or _id) was changed.
        """
        doc_id = self._require_id(document)
        original = self.get(doc_id)

        candidate = copy.deepcopy(original)
        replacement = mutator(candidate)
        if replacement is not None:
            candidate = replacement

        reconciled = self._conform(candidate, "update")

        guarded, violations = guard(original, reconciled, self.schema)
        if reconciled.get("_id") != original.get("_id") and "._id" not in violations:
            violations.append("._id")
        if violations or not same_structure(guarded, reconciled):
            logger.log_immutability_violation(self.name, doc_id, violations)
            raise ImmutabilityViolationError(doc_id, violations)

        changes = diff(original, reconciled)
        if changes:
            self.change_sink(doc_id, changes)

        self.storage.save(doc_id, reconciled)
        return copy.deepcopy(reconciled)

    def find_one_and_update(self, predicate: Predicate, mutator: Mutator) -> Dict[str, Any]:
        """Update the first document matching the predicate."""
        return self.update(self.find_one(predicate), mutator)

    def delete(self, document: Dict[str, Any]) -> None:
        """Remove a document from the collection."""
        doc_id = self._require_id(document)
        try:
            self.storage.remove(doc_id)
        except KeyError:
            raise NotFoundError(f"Could not find a document with _id {doc_id!r}.")

        if self.log.delete_file:
            logger.log_document_deleted(self.name, doc_id)

    def find_one_and_delete(self, predicate: Predicate) -> None:
        """Delete the first document matching the predicate."""
        self.delete(self.find_one(predicate))

    # Maintenance

    def sync(self, doc_id: Any, dry_run: bool = False) -> Optional[List[ChangeRecord]]:
        """
        Bring one stored document up to date with the schema.

        Returns:
            None if the stored document already conforms, otherwise the change
            records between the stored and the reconciled version (which may be
            empty when only removed keys differ).
        """
        try:
            stored = self.storage.load(doc_id)
        except KeyError:
            raise NotFoundError(f"Could not find a document with _id {doc_id!r}.")

        reconciled = reconcile(stored, self.schema)
        if same_structure(stored, reconciled):
            return None

        changes = diff(stored, reconciled)
        if not dry_run:
            self.storage.save(doc_id, reconciled)
            logger.log_schema_reconciled(self.name, doc_id, len(changes))
        return changes

    def sync_all(self, dry_run: bool = False) -> Dict[str, List[ChangeRecord]]:
        """Sync every stored document; returns changes keyed by id for documents that did not conform."""
        results = {}
        for doc_id in self.storage.list_ids():
            changes = self.sync(doc_id, dry_run=dry_run)
            if changes is not None:
                results[doc_id] = changes
        return results

    # Helpers

    def _conform(self, document: Any, operation: str) -> Dict[str, Any]:
        reconciled = reconcile(document, self.schema)
        if same_structure(document, reconciled):
            return reconciled

        if self.strict:
            errors = [record.to_dict() for record in diff(document, reconciled)]
            logger.log_schema_validation_error(operation, errors, document if isinstance(document, dict) else None)
            logger.debug(
                f"Object inconsistency, received: {sanitize_payload(document)} "
                f"but needed: {sanitize_payload(reconciled)}"
            )
            raise SchemaMismatchError(document, reconciled)

        return reconciled

    def _require_id(self, document: Dict[str, Any]) -> Any:
        doc_id = document.get("_id") if isinstance(document, dict) else None
        if isinstance(doc_id, bool) or not isinstance(doc_id, (str, int, float)) or doc_id == "":
            raise ValueError("document requires a non-empty string or number '_id'")
        storage_key(doc_id)
        return doc_id

    def _log_changes(self, doc_id: Any, records: List[ChangeRecord]) -> None:
        if not self.log.change_file:
            return
        for record in records:
            logger.log_document_change(self.name, doc_id, record.path, record.old_value, record.new_value)
