from __future__ import annotations

import json
import re

import pytest

import persistence.disk_store as disk_store
import persistence.permissions as permissions
from persistence.document_service import NO_DATA_MESSAGE
from persistence.errors import (
    DocumentReadError,
    EmptyPayload,
    InvalidJson,
    MalformedStoredData,
    PermissionDenied,
    ReadFailed,
    UnexpectedWriteFailure,
    WriteFailed,
)


def _write(service, doc) -> None:
    service.write(json.dumps(doc).encode("utf-8"))


def _backup_docs(service) -> list:
    return [json.loads(e.path.read_text(encoding="utf-8")) for e in service.list_backups()]


def test_read_without_document_returns_no_data_hint(make_service, data_file):
    snapshot = make_service().read()

    assert snapshot.found is False
    assert snapshot.message == NO_DATA_MESSAGE
    assert not data_file.exists()


def test_round_trip_preserves_semantics(make_service):
    service = make_service()
    doc = {"title": "嘉禾", "links": ["https://example.com/a"], "nested": {"n": 1.5, "ok": True, "x": None}}

    _write(service, doc)
    snapshot = service.read()

    assert snapshot.found is True
    assert json.loads(snapshot.raw) == doc


@pytest.mark.parametrize("doc", [[1, 2, 3], "text", 42, None, False])
def test_non_object_documents_are_accepted(make_service, doc):
    service = make_service()
    _write(service, doc)
    assert json.loads(service.read().raw) == doc


def test_write_stores_canonical_form(make_service, data_file):
    service = make_service()

    result = service.write(b'{"url":"https:\\/\\/example.com\\/x","name":"\\u5609"}')

    text = data_file.read_text(encoding="utf-8")
    assert text == '{\n    "url": "https://example.com/x",\n    "name": "嘉"\n}'
    assert result.size == len(text.encode("utf-8"))


def test_read_passes_stored_bytes_through_unmodified(make_service, data_file):
    data_file.write_bytes(b'{"compact":true}')

    assert make_service().read().raw == b'{"compact":true}'


def test_write_result_fields(make_service, data_file):
    service = make_service()

    first = service.write(b'{"a": 1}')
    second = service.write(b'{"a": 2}')

    assert first.success is True
    assert first.file == "site_data.json"
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}", first.timestamp)
    assert first.backup_created is False
    assert second.backup_created is True
    assert second.size == data_file.stat().st_size


def test_three_writes_with_retention_of_two(make_service):
    service = make_service(max_backups=2)

    for v in (1, 2, 3):
        _write(service, {"a": v})

    assert json.loads(service.read().raw) == {"a": 3}
    assert _backup_docs(service) == [{"a": 1}, {"a": 2}]


def test_retention_bound_holds_after_every_write(make_service):
    service = make_service(max_backups=2)

    for v in range(1, 8):
        _write(service, {"v": v})
        assert len(service.list_backups()) <= 2

    assert _backup_docs(service) == [{"v": 5}, {"v": 6}]


def test_empty_payload_is_rejected_without_creating_file(make_service, data_file):
    service = make_service()

    with pytest.raises(EmptyPayload) as exc:
        service.write(b"")

    assert exc.value.to_body() == {"success": False, "error": "empty_data", "message": "No data received"}
    assert exc.value.status_code == 400
    assert not data_file.exists()


def test_whitespace_payload_counts_as_empty(make_service):
    with pytest.raises(EmptyPayload):
        make_service().write(b"  \n\t")


def test_invalid_json_is_rejected_with_parser_message(make_service, data_file):
    with pytest.raises(InvalidJson) as exc:
        make_service().write(b"{not json")

    body = exc.value.to_body()
    assert body["error"] == "invalid_json"
    assert body["message"].startswith("JSON format error: ")
    assert "line 1" in body["message"]
    assert not data_file.exists()


@pytest.mark.parametrize("payload", [b"", b"{not json", b"[1, 2", b"NaN", b"\xff\xfe"])
def test_rejected_write_does_not_mutate_state(make_service, data_file, payload):
    service = make_service(max_backups=5)
    _write(service, {"keep": "me"})
    _write(service, {"keep": "me too"})
    before = data_file.read_bytes()
    backups_before = [e.name for e in service.list_backups()]

    with pytest.raises((EmptyPayload, InvalidJson)):
        service.write(payload)

    assert data_file.read_bytes() == before
    assert [e.name for e in service.list_backups()] == backups_before


def test_permission_denied_happens_before_any_mutation(make_service, data_file, monkeypatch):
    service = make_service()
    _write(service, {"a": 1})
    before = data_file.read_bytes()
    monkeypatch.setattr(permissions, "_is_writable", lambda p: False)

    with pytest.raises(PermissionDenied) as exc:
        _write(service, {"a": 2})

    body = exc.value.to_body()
    assert exc.value.status_code == 403
    assert body["error"] == "permission_denied"
    assert len(body["details"]) == 2
    assert len(body["suggestions"]) == 4
    assert data_file.read_bytes() == before
    assert service.list_backups() == []


def test_permission_check_runs_before_payload_validation(make_service, monkeypatch):
    monkeypatch.setattr(permissions, "_is_writable", lambda p: False)

    with pytest.raises(PermissionDenied):
        make_service().write(b"")


def test_write_failure_is_reported(make_service, data_file, monkeypatch):
    service = make_service()
    _write(service, {"a": 1})

    def _fail(path, data):
        raise OSError("disk full")

    monkeypatch.setattr(disk_store, "atomic_write_bytes", _fail)

    with pytest.raises(WriteFailed) as exc:
        _write(service, {"a": 2})

    assert exc.value.to_body()["error"] == "write_failed"
    assert json.loads(data_file.read_text(encoding="utf-8")) == {"a": 1}


def test_unexpected_write_error_maps_to_exception_kind(make_service, monkeypatch):
    import persistence.document_service as document_service

    def _explode(value):
        raise RuntimeError("serializer exploded")

    monkeypatch.setattr(document_service, "canonical_json", _explode)

    with pytest.raises(UnexpectedWriteFailure) as exc:
        make_service().write(b"{}")

    assert exc.value.to_body() == {
        "success": False,
        "error": "exception",
        "message": "Save failed: serializer exploded",
    }


def test_corrupted_store_is_detected_on_read(make_service, data_file):
    service = make_service()
    _write(service, {"a": 1})
    data_file.write_text("<html>definitely not json", encoding="utf-8")

    with pytest.raises(MalformedStoredData) as exc:
        service.read()

    assert exc.value.status_code == 500
    body = exc.value.to_body()
    assert body["error"] is True
    assert body["message"].startswith("JSON file format error: ")


def test_empty_stored_file_is_malformed(make_service, data_file):
    data_file.write_bytes(b"")

    with pytest.raises(MalformedStoredData):
        make_service().read()


def test_read_io_error_maps_to_read_failed(make_service, monkeypatch):
    service = make_service()
    _write(service, {"a": 1})

    def _unreadable():
        raise DocumentReadError("permission denied")

    monkeypatch.setattr(service.store, "read_raw", _unreadable)

    with pytest.raises(ReadFailed, match="permission denied"):
        service.read()


def test_operation_log_records_outcomes(make_service, data_file):
    service = make_service()
    service.read()
    _write(service, {"a": 1})
    with pytest.raises(InvalidJson):
        service.write(b"{oops")

    lines = (data_file.parent / "api_log.txt").read_text(encoding="utf-8").splitlines()
    assert len(lines) == 3
    assert re.fullmatch(r"\[\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\] \[SUCCESS\] READ - .+", lines[0])
    assert lines[1].endswith("[SUCCESS] WRITE - wrote 14 bytes")
    assert "[ERROR] WRITE - invalid JSON" in lines[2]


def test_operation_log_failure_never_blocks_writes(make_service, data_file):
    (data_file.parent / "api_log.txt").mkdir()
    service = make_service()

    result = service.write(b'{"a": 1}')

    assert result.success is True
    assert json.loads(service.read().raw) == {"a": 1}


def test_describe_backups_lists_newest_first(make_service):
    service = make_service(max_backups=3)
    for v in range(4):
        _write(service, {"v": v})

    described = service.describe_backups()

    assert described["max_backups"] == 3
    names = [b["name"] for b in described["backups"]]
    assert names == sorted(names, reverse=True)
    assert len(names) == 3
