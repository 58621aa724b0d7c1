"""
HTTP API tests - collection routes and error mapping over registered models.
"""

import pytest
from fastapi.testclient import TestClient

from docstore.api.main import app, get_registered_models, register_model, unregister_model
from docstore.core.config import VERSION
from docstore.core.model import Model
from docstore.core.schema import ArrayOf, OptionalNumberField, StringField
from docstore.core.storage import MemoryStorage


USER_SCHEMA = {
    "_id": StringField(locked=True),
    "name": StringField(default="anonymous"),
    "age": OptionalNumberField(default=None),
    "tags": ArrayOf(of=StringField()),
}

ADA = {"_id": "u1", "name": "Ada", "age": 36, "tags": ["admin"]}


@pytest.fixture
def storage():
    return MemoryStorage({"u1": dict(ADA, tags=list(ADA["tags"]))})


@pytest.fixture
def client(storage):
    """Register a strict and a lenient collection for the duration of a test."""
    register_model("users", Model(storage, USER_SCHEMA, strict=True, log=False, sync_on_init=False))
    register_model("loose", Model(MemoryStorage(), USER_SCHEMA, strict=False, log=False, sync_on_init=False))
    with TestClient(app) as test_client:
        yield test_client
    unregister_model("users")
    unregister_model("loose")


class TestHealthAndCollections:
    """Test service-level endpoints."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["version"] == VERSION
        assert data["collections"] == 2
        assert data["status"] in ("healthy", "degraded")

    def test_list_collections(self, client):
        response = client.get("/collections")
        assert response.status_code == 200
        collections = {c["name"]: c for c in response.json()["collections"]}

        assert set(collections) == {"users", "loose"}
        assert collections["users"]["count"] == 1
        assert collections["users"]["strict"] is True
        assert collections["users"]["schema_definition"]["_id"]["locked"] is True

    def test_unknown_collection(self, client):
        response = client.get("/collections/nope/documents")
        assert response.status_code == 404

    def test_registered_models_listed(self, client):
        assert "users" in get_registered_models()


class TestDocumentReads:
    """Test listing and fetching documents."""

    def test_list_documents(self, client):
        response = client.get("/collections/users/documents")
        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        assert data["documents"] == [ADA]

    def test_get_document(self, client):
        response = client.get("/collections/users/documents/u1")
        assert response.status_code == 200
        assert response.json()["document"] == ADA

    def test_get_reconciles_stored_document(self, client, storage):
        storage.save("u2", {"_id": "u2", "age": "old", "junk": 1})

        response = client.get("/collections/users/documents/u2")

        assert response.json()["document"] == {"_id": "u2", "age": None, "name": "anonymous", "tags": []}

    def test_get_missing_document(self, client):
        response = client.get("/collections/users/documents/missing")
        assert response.status_code == 404
        assert response.json()["error_type"] == "NOT_FOUND"


class TestDocumentCreate:
    """Test document creation."""

    def test_create(self, client, storage):
        document = {"_id": "u2", "name": "Grace", "age": None, "tags": []}

        response = client.post("/collections/users/documents", json=document)

        assert response.status_code == 201
        assert response.json()["document"] == document
        assert storage.load("u2") == document

    def test_strict_create_rejects_incomplete_document(self, client):
        response = client.post("/collections/users/documents", json={"_id": "u2", "name": "Grace"})

        assert response.status_code == 422
        data = response.json()
        assert data["error_type"] == "SCHEMA_MISMATCH"
        assert data["details"]["expected"]["tags"] == []

    def test_lenient_create_fills_defaults(self, client):
        response = client.post("/collections/loose/documents", json={"_id": "u2", "name": "Grace"})

        assert response.status_code == 201
        assert response.json()["document"] == {"_id": "u2", "name": "Grace", "age": None, "tags": []}

    def test_create_without_id(self, client):
        response = client.post("/collections/loose/documents", json={"name": "Nobody"})
        assert response.status_code == 400

    @pytest.mark.parametrize("doc_id", ["a/b", "../x", ".."])
    def test_create_rejects_path_like_id(self, client, storage, doc_id):
        document = {"_id": doc_id, "name": "Eve", "age": None, "tags": []}

        response = client.post("/collections/users/documents", json=document)

        assert response.status_code == 400
        assert response.json()["error_type"] == "INVALID_REQUEST"
        assert storage.list_ids() == ["u1"]

    def test_file_collection_rejects_path_like_id(self, client, tmp_path):
        register_model("files", Model(tmp_path / "data" / "files", USER_SCHEMA, strict=True, log=False, sync_on_init=False))
        try:
            response = client.post(
                "/collections/files/documents",
                json={"_id": "../../escaped", "name": "Eve", "age": None, "tags": []}
            )
        finally:
            unregister_model("files")

        assert response.status_code == 400
        assert [p for p in tmp_path.rglob("*") if p.is_file()] == []


class TestDocumentUpdate:
    """Test the PATCH route through the guarded update path."""

    def test_patch_returns_changes(self, client, storage):
        response = client.patch(
            "/collections/users/documents/u1",
            json={"fields": {"tags": ["admin", "ops"]}}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["document"]["tags"] == ["admin", "ops"]
        assert data["changes"] == [{"path": ".tags", "old_value": "[admin]", "new_value": "[admin, ops]"}]
        assert storage.load("u1")["tags"] == ["admin", "ops"]

    def test_patch_locked_field(self, client, storage):
        response = client.patch("/collections/users/documents/u1", json={"fields": {"_id": "u9"}})

        assert response.status_code == 409
        data = response.json()
        assert data["error_type"] == "IMMUTABILITY_VIOLATION"
        assert "._id" in data["details"]["paths"]
        assert storage.list_ids() == ["u1"]

    def test_patch_wrong_type_in_strict_collection(self, client):
        response = client.patch("/collections/users/documents/u1", json={"fields": {"age": "old"}})

        assert response.status_code == 422
        assert response.json()["error_type"] == "SCHEMA_MISMATCH"

    def test_patch_empty_fields(self, client):
        response = client.patch("/collections/users/documents/u1", json={"fields": {}})
        assert response.status_code == 422

    def test_patch_missing_document(self, client):
        response = client.patch("/collections/users/documents/missing", json={"fields": {"name": "x"}})
        assert response.status_code == 404


class TestDocumentDelete:
    """Test document removal."""

    def test_delete(self, client, storage):
        response = client.delete("/collections/users/documents/u1")

        assert response.status_code == 204
        assert storage.list_ids() == []

    def test_delete_missing(self, client):
        response = client.delete("/collections/users/documents/missing")
        assert response.status_code == 404
