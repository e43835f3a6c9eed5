"""Upload flow tests: prepare, batch, complete."""

from urllib.parse import urlparse

from assethub.celery_app import PROCESS_ASSET_TASK
from assethub.models.activity import Activity
from assethub.models.asset import Asset


def _prepare(client, user, headers, name="photo.png", size=2048, file_type="image/png"):
    response = client.post(
        "/v1/assets/upload/prepare",
        json={"fileName": name, "fileSize": size, "fileType": file_type},
        headers=headers(user),
    )
    assert response.status_code == 200, response.text
    return response.json()


def _complete_body(prepared, title="Launch hero", mime_type="image/png", size=2048, name="photo.png"):
    return {
        "uploadId": prepared["uploadId"],
        "fileKey": prepared["fileKey"],
        "metadata": {"title": title, "tags": ["launch"], "category": "campaign"},
        "fileSize": size,
        "mimeType": mime_type,
        "originalFilename": name,
    }


def test_prepare_issues_url_without_creating_asset(client, creative, headers, test_db):
    prepared = _prepare(client, creative, headers)

    assert prepared["fileKey"].startswith(f"assets/{creative.id}/image/")
    assert urlparse(prepared["uploadUrl"]).path.startswith("/v1/storage/local/")
    assert prepared["uploadId"]
    assert prepared["expiresAt"]
    assert test_db.query(Asset).count() == 0


def test_prepare_rejects_oversized_file(client, creative, headers):
    response = client.post(
        "/v1/assets/upload/prepare",
        json={"fileName": "big.png", "fileSize": 60 * 1024 * 1024, "fileType": "image/png"},
        headers=headers(creative),
    )
    assert response.status_code == 400
    assert response.json()["error"] == {
        "code": "VALIDATION_ERROR",
        "message": "File size exceeds 50MB limit",
        "details": None,
    }


def test_prepare_requires_user(client, tenant):
    response = client.post(
        "/v1/assets/upload/prepare",
        json={"fileName": "a.png", "fileSize": 10},
        headers={"X-Tenant-ID": str(tenant.id)},
    )
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


def test_prepare_requires_tenant(client, creative):
    response = client.post(
        "/v1/assets/upload/prepare",
        json={"fileName": "a.png", "fileSize": 10},
        headers={"X-User-ID": str(creative.id)},
    )
    assert response.status_code == 400


def test_prepare_requires_create_permission(client, viewer, headers):
    response = client.post(
        "/v1/assets/upload/prepare",
        json={"fileName": "a.png", "fileSize": 10, "fileType": "image/png"},
        headers=headers(viewer),
    )
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "FORBIDDEN"


def test_complete_image_creates_pending_asset_and_enqueues_once(
    client, creative, headers, storage_dir, celery_client, job_store, test_db
):
    prepared = _prepare(client, creative, headers)
    target = storage_dir / prepared["fileKey"]
    target.parent.mkdir(parents=True)
    target.write_bytes(b"x" * 2048)

    response = client.post(
        "/v1/assets/upload/complete", json=_complete_body(prepared), headers=headers(creative)
    )

    assert response.status_code == 201, response.text
    data = response.json()
    assert data["processingStatus"] == "PENDING"
    assert data["type"] == "IMAGE"
    assert data["fileSize"] == "2048"
    assert data["uploadedById"] == creative.id
    assert data["metadata"]["tags"] == ["launch"]

    assert len(celery_client.sent) == 1
    message = celery_client.sent[0]
    assert message["name"] == PROCESS_ASSET_TASK
    assert message["args"][0]["asset_id"] == data["id"]
    assert message["queue"] == "asset-processing"
    assert job_store.get_slot(data["id"]) == message["task_id"]
    assert job_store.get_job_status(message["task_id"]).status == "queued"

    activities = test_db.query(Activity).filter(Activity.asset_id == data["id"]).all()
    assert [a.type for a in activities] == ["ASSET_UPLOADED"]


def test_complete_document_is_queued_for_a_thumbnail(client, creative, headers, storage_dir, celery_client):
    prepared = _prepare(client, creative, headers, name="brief.pdf", file_type="application/pdf")
    target = storage_dir / prepared["fileKey"]
    target.parent.mkdir(parents=True)
    target.write_bytes(b"%PDF-1.4")

    response = client.post(
        "/v1/assets/upload/complete",
        json=_complete_body(prepared, mime_type="application/pdf", name="brief.pdf"),
        headers=headers(creative),
    )

    assert response.status_code == 201
    assert response.json()["processingStatus"] == "PENDING"
    assert len(celery_client.sent) == 1


def test_complete_requires_object_in_storage(client, creative, headers, test_db):
    prepared = _prepare(client, creative, headers)

    response = client.post(
        "/v1/assets/upload/complete", json=_complete_body(prepared), headers=headers(creative)
    )

    assert response.status_code == 400
    assert "not found in storage" in response.json()["error"]["message"]
    assert test_db.query(Asset).count() == 0


def test_complete_rejects_foreign_file_key(client, creative, manager, headers, storage_dir):
    prepared = _prepare(client, manager, headers)
    target = storage_dir / prepared["fileKey"]
    target.parent.mkdir(parents=True)
    target.write_bytes(b"x")

    response = client.post(
        "/v1/assets/upload/complete", json=_complete_body(prepared), headers=headers(creative)
    )
    assert response.status_code == 403


def test_complete_twice_conflicts(client, creative, headers, storage_dir):
    prepared = _prepare(client, creative, headers)
    target = storage_dir / prepared["fileKey"]
    target.parent.mkdir(parents=True)
    target.write_bytes(b"x" * 2048)

    first = client.post("/v1/assets/upload/complete", json=_complete_body(prepared), headers=headers(creative))
    second = client.post("/v1/assets/upload/complete", json=_complete_body(prepared), headers=headers(creative))

    assert first.status_code == 201
    assert second.status_code == 409


def test_complete_survives_queue_outage(client, creative, headers, storage_dir, celery_client, test_db):
    celery_client.fail = True
    prepared = _prepare(client, creative, headers)
    target = storage_dir / prepared["fileKey"]
    target.parent.mkdir(parents=True)
    target.write_bytes(b"x" * 2048)

    response = client.post(
        "/v1/assets/upload/complete", json=_complete_body(prepared), headers=headers(creative)
    )

    assert response.status_code == 201
    assert response.json()["processingStatus"] == "PENDING"


def test_signed_local_put_then_complete(client, creative, headers, local_storage_config):
    prepared = _prepare(client, creative, headers)
    url = urlparse(prepared["uploadUrl"])

    put = client.put(f"{url.path}?{url.query}", content=b"\x89PNG" + b"0" * 2044)
    assert put.status_code == 204

    response = client.post(
        "/v1/assets/upload/complete", json=_complete_body(prepared), headers=headers(creative)
    )
    assert response.status_code == 201


def test_signed_local_put_rejects_tampered_signature(client, creative, headers, local_storage_config):
    prepared = _prepare(client, creative, headers)
    url = urlparse(prepared["uploadUrl"])
    query = url.query.replace("signature=", "signature=0")

    response = client.put(f"{url.path}?{query}", content=b"data")
    assert response.status_code == 403


def test_batch_over_limit_rejected_before_any_url(client, creative, headers, test_db):
    files = [{"fileName": f"f{i}.png", "fileSize": 1000, "fileType": "image/png"} for i in range(101)]

    response = client.post("/v1/assets/upload/batch", json={"files": files}, headers=headers(creative))

    assert response.status_code == 400
    body = response.json()
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert body["error"]["message"] == "Maximum 100 files allowed per batch"
    assert "uploads" not in body
    assert test_db.query(Asset).count() == 0


def test_batch_with_invalid_file_lists_errors(client, creative, headers):
    files = [
        {"fileName": "ok.png", "fileSize": 1000, "fileType": "image/png"},
        {"fileName": "bad.exe", "fileSize": 1000, "fileType": "application/x-msdownload"},
    ]

    response = client.post("/v1/assets/upload/batch", json={"files": files}, headers=headers(creative))

    assert response.status_code == 400
    assert response.json()["error"]["details"] == [
        {"index": 1, "fileName": "bad.exe", "error": "Unsupported file type"}
    ]


def test_batch_issues_one_url_per_file(client, creative, headers):
    files = [{"fileName": f"f{i}.png", "fileSize": 1000, "fileType": "image/png"} for i in range(3)]

    response = client.post("/v1/assets/upload/batch", json={"files": files}, headers=headers(creative))

    assert response.status_code == 200
    data = response.json()
    assert data["totalFiles"] == 3
    assert data["batchId"]
    assert len({u["fileKey"] for u in data["uploads"]}) == 3
