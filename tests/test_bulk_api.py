import csv
import io

from mailbulk.services.flatten import CSV_HEADER


def _docs(n):
    return [{"input": f"user{i}@example.com", "is_reachable": "safe"} for i in range(1, n + 1)]


def _csv_rows(response):
    return list(csv.reader(io.StringIO(response.text)))


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


# ---------------------------------------------------
# Status
# ---------------------------------------------------
def test_status_running_with_summary(client, seed_job):
    seed_job(1, 6, [
        {"is_reachable": "safe"},
        {"is_reachable": "safe"},
        {"is_reachable": "risky"},
        {"is_reachable": "invalid"},
        {"is_reachable": "unknown"},
    ])

    response = client.get("/bulk/1")

    assert response.status_code == 200
    data = response.json()
    assert data["job_id"] == 1
    assert data["created_at"].startswith("2024-01-02T03:04:05")
    assert data["total_records"] == 6
    assert data["total_processed"] == 5
    assert data["summary"] == {
        "total_safe": 2,
        "total_risky": 1,
        "total_invalid": 1,
        "total_unknown": 1,
    }
    assert data["job_status"] == "running"


def test_status_completed_at_boundary(client, seed_job):
    seed_job(2, 2, [{"is_reachable": "safe"}, {"is_reachable": "risky"}])

    assert client.get("/bulk/2").json()["job_status"] == "completed"


def test_status_more_processed_than_expected_is_completed(client, seed_job):
    seed_job(3, 1, [{"is_reachable": "safe"}, {"is_reachable": "safe"}])

    data = client.get("/bulk/3").json()
    assert data["total_processed"] == 2
    assert data["job_status"] == "completed"


def test_status_unclassified_rows_count_only_in_total(client, seed_job):
    seed_job(4, 5, [
        {"is_reachable": "safe"},
        {"is_reachable": "SAFE"},
        {"input": "no-verdict@example.com"},
        ["not", "an", "object"],
    ])

    data = client.get("/bulk/4").json()
    summary = data["summary"]
    assert data["total_processed"] == 4
    assert summary["total_safe"] == 1
    assert sum(summary.values()) < data["total_processed"]


def test_status_without_results(client, seed_job):
    seed_job(5, 3)

    data = client.get("/bulk/5").json()
    assert data["total_processed"] == 0
    assert data["summary"] == {
        "total_safe": 0,
        "total_risky": 0,
        "total_invalid": 0,
        "total_unknown": 0,
    }
    assert data["job_status"] == "running"


def test_status_unknown_job(client):
    response = client.get("/bulk/404")
    assert response.status_code == 404
    assert response.json()["detail"] == "job not found"


# ---------------------------------------------------
# Download
# ---------------------------------------------------
def test_download_defaults_to_json(client, seed_job):
    docs = _docs(3)
    seed_job(1, 3, docs)

    response = client.get("/bulk/1/download")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/json"
    assert response.json() == {"results": docs}


def test_download_json_pagination(client, seed_job):
    docs = _docs(5)
    seed_job(1, 5, docs)

    response = client.get("/bulk/1/download", params={"limit": 2, "offset": 1})

    assert response.json()["results"] == docs[1:3]


def test_download_json_default_limit_is_50(client, seed_job):
    seed_job(1, 60, _docs(60))

    results = client.get("/bulk/1/download").json()["results"]
    assert len(results) == 50
    assert results[0]["input"] == "user1@example.com"


def test_download_csv(client, seed_job):
    seed_job(1, 2, [
        {
            "input": "a,b@example.com",
            "is_reachable": "safe",
            "mx": {"accepts_email": True, "error": "dns timeout"},
            "smtp": {"is_deliverable": True, "error": "connection refused"},
            "syntax": {"domain": "example.com", "username": "a,b", "is_valid_syntax": True},
        },
        {"is_reachable": "unknown"},
    ])

    response = client.get("/bulk/1/download", params={"format": "csv"})

    assert response.status_code == 200
    assert response.headers["content-type"] == "text/csv"
    assert 'filename="bulk_1_results.csv"' in response.headers["content-disposition"]
    rows = _csv_rows(response)
    assert rows[0] == CSV_HEADER
    first = dict(zip(CSV_HEADER, rows[1]))
    assert first["input"] == "a,b@example.com"
    assert first["mx.accepts_mail"] == "true"
    assert first["smtp.is_deliverable"] == "true"
    assert first["syntax.username"] == "a,b"
    assert first["error"] == "connection refused"
    second = dict(zip(CSV_HEADER, rows[2]))
    assert second["is_reachable"] == "unknown"
    assert second["error"] == ""
    assert len(rows) == 3


def test_download_csv_pagination(client, seed_job):
    seed_job(1, 5, _docs(5))

    rows = _csv_rows(client.get("/bulk/1/download", params={"format": "csv", "limit": 2, "offset": 1}))

    assert [row[0] for row in rows[1:]] == ["user2@example.com", "user3@example.com"]


def test_download_csv_without_results_has_header_only(client, seed_job):
    seed_job(1, 4)

    rows = _csv_rows(client.get("/bulk/1/download", params={"format": "csv"}))
    assert rows == [CSV_HEADER]


def test_download_malformed_document_fails_csv_but_not_json(client, seed_job):
    seed_job(1, 2, [{"is_reachable": "safe"}, ["a@b.c", "safe"]])

    csv_response = client.get("/bulk/1/download", params={"format": "csv"})
    assert csv_response.status_code == 500
    assert csv_response.json()["detail"] == "export failed"

    json_response = client.get("/bulk/1/download", params={"format": "json"})
    assert json_response.status_code == 200
    assert json_response.json()["results"][1] == ["a@b.c", "safe"]


def test_download_unknown_job(client):
    for fmt in ("json", "csv"):
        response = client.get("/bulk/404/download", params={"format": fmt})
        assert response.status_code == 404


def test_download_rejects_bad_parameters(client, seed_job):
    seed_job(1, 1, _docs(1))

    assert client.get("/bulk/1/download", params={"format": "xml"}).status_code == 422
    assert client.get("/bulk/1/download", params={"limit": -1}).status_code == 422
    assert client.get("/bulk/1/download", params={"offset": -5}).status_code == 422


def test_download_json_keeps_non_ascii_as_utf8(client, seed_job):
    seed_job(1, 1, [{"input": "jörg@müller.de", "is_reachable": "safe"}])

    response = client.get("/bulk/1/download")

    assert "jörg@müller.de".encode("utf-8") in response.content
    assert b"\\u00f6" not in response.content


def test_download_rejects_pagination_beyond_bigint(client, seed_job):
    seed_job(1, 1, _docs(1))

    too_big = 2**64
    assert client.get("/bulk/1/download", params={"limit": too_big}).status_code == 422
    assert client.get("/bulk/1/download", params={"offset": too_big}).status_code == 422
    assert client.get("/bulk/1/download", params={"limit": 2**63 - 1}).status_code == 200
