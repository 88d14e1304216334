import pytest

from app.domain.chat.attachments import normalize_attachments, payload_size
from app.domain.common.errors import ValidationError
from app.settings import settings


def test_defaults_applied_to_sparse_attachment():
    [meta] = normalize_attachments([{"fileData": "aGVsbG8="}])

    assert meta.file_name == "file"
    assert meta.file_type == "application/octet-stream"
    assert meta.file_size == 0
    assert meta.mime_type == "application/octet-stream"


def test_snake_case_keys_accepted():
    [meta] = normalize_attachments(
        [{"file_name": "id.png", "file_type": "image/png", "file_size": "512", "file_data": "aGk="}]
    )

    assert meta.file_name == "id.png"
    assert meta.file_size == 512
    assert meta.mime_type == "image/png"


def test_payload_size_handles_data_url_and_padding():
    assert payload_size("aGVsbG8=") == 5
    assert payload_size("data:text/plain;base64,aGVsbG8=") == 5
    assert payload_size("aGk=") == 2


def test_missing_payload_rejected():
    with pytest.raises(ValidationError) as excinfo:
        normalize_attachments([{"fileName": "empty.txt"}])

    assert excinfo.value.kind == "invalid_attachment"


def test_count_and_size_limits(monkeypatch):
    monkeypatch.setattr(settings, "chat_attachment_max_count", 1)
    with pytest.raises(ValidationError) as excinfo:
        normalize_attachments([{"fileData": "aGk="}, {"fileData": "aGk="}])
    assert excinfo.value.kind == "too_many_attachments"

    monkeypatch.setattr(settings, "chat_attachment_max_bytes", 4)
    with pytest.raises(ValidationError) as excinfo:
        normalize_attachments([{"fileData": "aGVsbG8="}])
    assert excinfo.value.kind == "attachment_too_large"
