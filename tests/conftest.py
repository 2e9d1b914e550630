# tests/conftest.py
import io

import pytest
from docx import Document
from fastapi.testclient import TestClient

from database.connection import CsvDatabase, get_db
from main import app


@pytest.fixture
def db(tmp_path):
    storage = CsvDatabase(str(tmp_path / "storage"))
    storage.init_storage()
    return storage


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    # no "with" block: startup hooks (scheduler) stay off in tests
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_employee(client):
    def _make(**fields):
        payload = {"first_name": "Іван", "last_name": "Петренко"}
        payload.update(fields)
        response = client.post("/api/employees", json=payload)
        assert response.status_code == 201, response.text
        return response.json()["employee"]
    return _make


def docx_bytes(*paragraphs, split_runs=False) -> bytes:
    """Small DOCX document; with split_runs every character goes to its own run."""
    document = Document()
    for text in paragraphs:
        paragraph = document.add_paragraph()
        if split_runs:
            for char in text:
                paragraph.add_run(char)
        else:
            paragraph.add_run(text)
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def docx_factory():
    return docx_bytes
