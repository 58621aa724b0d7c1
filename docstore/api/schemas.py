"""
Request/response models for the collection HTTP API.
"""

from pydantic import BaseModel, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime


class ChangeRecordResponse(BaseModel):
    path: str
    old_value: str
    new_value: str


class DocumentResponse(BaseModel):
    collection: str
    document: Dict[str, Any]


class DocumentListResponse(BaseModel):
    collection: str
    count: int
    documents: List[Dict[str, Any]]


class DocumentPatchRequest(BaseModel):
    """Top-level fields to overwrite on a stored document."""
    fields: Dict[str, Any]

    @field_validator('fields')
    @classmethod
    def fields_must_not_be_empty(cls, v):
        if not v:
            raise ValueError('fields cannot be empty')
        return v


class DocumentUpdateResponse(BaseModel):
    collection: str
    document: Dict[str, Any]
    changes: List[ChangeRecordResponse]


class CollectionInfo(BaseModel):
    name: str
    count: int
    strict: bool
    schema_definition: Dict[str, Any]


class CollectionListResponse(BaseModel):
    collections: List[CollectionInfo]


class HealthResponse(BaseModel):
    status: str
    version: str
    collections: int
    config_issues: List[str]


class ErrorResponse(BaseModel):
    error_type: str
    message: str
    timestamp: datetime = None
    details: Optional[Dict[str, Any]] = None

    def __init__(self, **data):
        super().__init__(timestamp=datetime.now(), **data)
