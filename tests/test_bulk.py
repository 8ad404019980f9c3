import json
from datetime import date

import pytest

from geoseed.bulk import BatchAccumulator, BatchState, build_payload, PendingOperation
from geoseed.errors import BulkOperationError
from geoseed.schemas import SearchDocument

OK_BODY = json.dumps({"took": 3, "errors": False, "items": []})
ERROR_BODY = json.dumps(
    {
        "took": 3,
        "errors": True,
        "items": [
            {"index": {"_id": "3", "status": 201, "result": "created"}},
            {"index": {"_id": "4", "status": 400, "error": {"type": "mapper_parsing_exception", "reason": "bad geo"}}},
        ],
    }
)


class FakeBulkClient:
    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.calls = []

    def bulk(self, index_name, payload):
        lines = payload.decode("utf-8").splitlines()
        ids = [json.loads(line)["index"]["_id"] for line in lines[0::2]]
        self.calls.append({"index": index_name, "ids": ids, "payload": payload})
        if self.responses:
            return self.responses.pop(0)
        return 200, OK_BODY


def _document(name="Place"):
    return SearchDocument(
        name=name,
        ascii_name=name,
        alternate_names="",
        location=[1.0, 2.0],
        country_code="US",
        feature_class="P",
        feature_code="PPL",
        timezone="UTC",
        modification_date=date(2020, 1, 1),
    )


def _feed(batch, count):
    for doc_id in range(1, count + 1):
        batch.add(str(doc_id), _document(f"Place {doc_id}"))


def test_batches_split_by_capacity_in_file_order(tmp_path):
    client = FakeBulkClient()
    batch = BatchAccumulator(client, "geolocations", capacity=2, error_log_path=tmp_path / "error.log")

    _feed(batch, 5)
    inserted = batch.close()

    assert [call["ids"] for call in client.calls] == [["1", "2"], ["3", "4"], ["5"]]
    assert inserted == 5
    assert batch.requests == 3
    assert batch.state is BatchState.DONE
    assert not (tmp_path / "error.log").exists()


def test_error_in_second_batch_aborts_and_writes_diagnostic(tmp_path):
    error_log = tmp_path / "error.log"
    client = FakeBulkClient([(200, OK_BODY), (200, ERROR_BODY)])
    batch = BatchAccumulator(client, "geolocations", capacity=2, error_log_path=error_log)

    with pytest.raises(BulkOperationError) as excinfo:
        _feed(batch, 5)

    assert len(client.calls) == 2
    assert batch.inserted == 2
    assert batch.state is BatchState.DONE
    assert error_log.read_text(encoding="utf-8") == ERROR_BODY
    assert excinfo.value.diagnostic_path == str(error_log)
    assert excinfo.value.detail == {"_id": "4", "status": 400, "reason": "bad geo"}
    with pytest.raises(RuntimeError):
        batch.add("6", _document())


def test_trailing_batch_failure_writes_diagnostic(tmp_path):
    error_log = tmp_path / "error.log"
    client = FakeBulkClient([(200, OK_BODY), (200, ERROR_BODY)])
    batch = BatchAccumulator(client, "geolocations", capacity=2, error_log_path=error_log)
    _feed(batch, 3)

    with pytest.raises(BulkOperationError):
        batch.close()

    assert error_log.read_text(encoding="utf-8") == ERROR_BODY


def test_http_error_status_fails_batch(tmp_path):
    error_log = tmp_path / "error.log"
    body = json.dumps({"error": {"type": "index_not_found_exception"}, "status": 404})
    batch = BatchAccumulator(FakeBulkClient([(404, body)]), "missing", capacity=1, error_log_path=error_log)

    with pytest.raises(BulkOperationError):
        batch.add("1", _document())

    assert error_log.read_text(encoding="utf-8") == body


def test_non_json_response_fails_batch(tmp_path):
    batch = BatchAccumulator(FakeBulkClient([(200, "<html>proxy</html>")]), "geo", capacity=1, error_log_path=tmp_path / "e.log")

    with pytest.raises(BulkOperationError):
        batch.add("1", _document())


def test_close_without_documents_sends_nothing(tmp_path):
    client = FakeBulkClient()
    batch = BatchAccumulator(client, "geolocations", capacity=10, error_log_path=tmp_path / "e.log")

    assert batch.close() == 0
    assert client.calls == []


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        BatchAccumulator(FakeBulkClient(), "geolocations", capacity=0)


def test_payload_is_ndjson_index_actions():
    payload = build_payload([PendingOperation("7", _document("Zürich"))]).decode("utf-8")
    lines = payload.split("\n")

    assert payload.endswith("\n")
    assert json.loads(lines[0]) == {"index": {"_id": "7"}}
    assert json.loads(lines[1])["name"] == "Zürich"
    assert json.loads(lines[1])["modification_date"] == "2020-01-01"
