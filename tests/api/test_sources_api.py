import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock

from knowbase.api.deps import get_source_service
from knowbase.api.main import create_app
from knowbase.application.services import SourceReplacement
from knowbase.core.ingestion.models import FileDetails, Source, TextDetails

RUN_ID = "123e4567-e89b-12d3-a456-426614174000"


@pytest.fixture
def client():
    app = create_app()
    return TestClient(app)


@pytest.fixture
def mock_source_service(client):
    service = AsyncMock()
    client.app.dependency_overrides[get_source_service] = lambda: service
    return service


def _sources() -> list[Source]:
    return [
        Source(
            id=11,
            knowledge_base_id=7,
            name="handbook.pdf",
            details=FileDetails(file_url="https://s/files/7/handbook.pdf", mime_type="application/pdf"),
        ),
        Source(id=12, knowledge_base_id=7, name="Text", details=TextDetails(content="Refunds take 5 days.")),
    ]


def test_replace_sources(client, mock_source_service):
    mock_source_service.replace_sources.return_value = SourceReplacement(run_id=RUN_ID, sources=_sources())
    body = {
        "text": {"content": "Refunds take 5 days."},
        "files": [
            {"name": "handbook.pdf", "fileUrl": "https://s/files/7/handbook.pdf", "mimeType": "application/pdf"}
        ],
    }

    response = client.post("/api/v1/knowledge-bases/7/sources", json=body)

    assert response.status_code == 202
    data = response.json()
    assert data["run_id"] == RUN_ID
    assert [(s["id"], s["kind"]) for s in data["sources"]] == [(11, "file"), (12, "text")]
    kb_id, request = mock_source_service.replace_sources.await_args.args
    assert kb_id == 7
    assert request.files[0].mime_type == "application/pdf"


def test_replace_sources_empty_qa_rejected(client, mock_source_service):
    response = client.post("/api/v1/knowledge-bases/7/sources", json={"qa": {"pairs": []}})

    assert response.status_code == 422
    mock_source_service.replace_sources.assert_not_awaited()


def test_list_sources(client, mock_source_service):
    mock_source_service.list_sources.return_value = _sources()

    response = client.get("/api/v1/knowledge-bases/7/sources")

    assert response.status_code == 200
    assert response.json()["total"] == 2
    mock_source_service.list_sources.assert_awaited_once_with(7)


def test_delete_source(client, mock_source_service):
    mock_source_service.delete_source.return_value = True

    response = client.delete("/api/v1/knowledge-bases/7/sources/11")

    assert response.status_code == 204
    mock_source_service.delete_source.assert_awaited_once_with(7, 11)


def test_delete_source_not_found(client, mock_source_service):
    mock_source_service.delete_source.return_value = False

    response = client.delete("/api/v1/knowledge-bases/7/sources/99")

    assert response.status_code == 404
    assert response.json()["detail"] == "Source 99 not found"
