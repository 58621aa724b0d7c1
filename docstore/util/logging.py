"""
Structured audit logging for document lifecycle, reconciliation and change records.
"""

import logging
from typing import Any, Dict, List

from ..core.config import LOG_LEVEL


class StructuredLogger:
    """Structured logger for document store operations."""

    def __init__(self, name: str = "docstore"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        self.logger.info(message)

    def log_document_created(self, collection: str, doc_id: Any):
        """Log document creation."""
        self.log_operation("document.created", "success", {"collection": collection, "doc_id": doc_id})

    def log_document_deleted(self, collection: str, doc_id: Any):
        """Log document deletion."""
        self.log_operation("document.deleted", "success", {"collection": collection, "doc_id": doc_id})

    def log_document_change(self, collection: str, doc_id: Any, path: str, old_value: str, new_value: str):
        """Log a single field change produced by the diff engine."""
        log_details = {
            "collection": collection,
            "doc_id": doc_id,
            "path": path,
            "old_value": old_value[:100] + "..." if len(old_value) > 100 else old_value,
            "new_value": new_value[:100] + "..." if len(new_value) > 100 else new_value,
        }
        self.log_operation("document.changed", "success", log_details)

    def log_schema_reconciled(self, collection: str, doc_id: Any, changes_count: int):
        """Log a stored document rewritten to match its schema."""
        log_details = {
            "collection": collection,
            "doc_id": doc_id,
            "changes_count": changes_count
        }
        self.log_operation("schema.reconciled", "corrected", log_details)

    def log_schema_validation_error(self, operation: str, errors: List[Any], source_record: Dict[str, Any] = None):
        """Log schema validation errors with sanitized details."""
        sanitized_errors = []
        for error in errors:
            if isinstance(error, dict):
                sanitized_error = error.copy()
                # Field values may hold user data
                for field in ['old_value', 'new_value', 'value']:
                    if field in sanitized_error:
                        sanitized_error[field] = "[REDACTED]"
                sanitized_errors.append(sanitized_error)
            else:
                sanitized_errors.append(str(error)[:100])

        log_details = {
            "operation": operation,
            "errors": sanitized_errors,
            "error_count": len(sanitized_errors)
        }

        if source_record and isinstance(source_record, dict) and "_id" in source_record:
            log_details["target_identifier"] = source_record["_id"]

        self.log_operation("schema_validation.error", "rejected", log_details)

    def log_immutability_violation(self, collection: str, doc_id: Any, paths: List[str]):
        """Log an update rejected for touching locked fields."""
        log_details = {
            "collection": collection,
            "doc_id": doc_id,
            "paths": paths
        }
        self.log_operation("locked_field.violation", "rejected", log_details)

    # Standard logging methods for compatibility
    def info(self, message: str) -> None:
        """Log an info message."""
        self.logger.info(message)

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self.logger.warning(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        self.logger.error(message)

    def debug(self, message: str) -> None:
        """Log a debug message."""
        self.logger.debug(message)


# Global logger instance
logger = StructuredLogger()


def log_document_change(collection: str, doc_id: Any, path: str, old_value: str, new_value: str):
    """Log a single field change produced by the diff engine."""
    logger.log_document_change(collection, doc_id, path, old_value, new_value)


def log_schema_validation_error(operation: str, errors: List[Any], source_record: Dict[str, Any] = None):
    """Log schema validation errors with sanitized details."""
    logger.log_schema_validation_error(operation, errors, source_record)


def sanitize_payload(payload: Any, reveal_sensitive: bool = False, sensitive_fields: List[str] = None) -> Any:
    """Sanitize document payloads for audit logging."""
    if sensitive_fields is None:
        sensitive_fields = ['password', 'secret', 'token', 'api_key']

    if isinstance(payload, dict):
        sanitized = {}
        for k, v in payload.items():
            if reveal_sensitive or k not in sensitive_fields:
                sanitized[k] = sanitize_payload(v, reveal_sensitive, sensitive_fields)
            else:
                sanitized[k] = "[REDACTED]"
        return sanitized
    elif isinstance(payload, str):
        return payload[:100] + "..." if len(payload) > 100 else payload
    elif isinstance(payload, list):
        return [sanitize_payload(item, reveal_sensitive, sensitive_fields) for item in payload]
    else:
        return payload
