"""Review workflow tests."""

import pytest

from assethub.errors import ConflictError
from assethub.models.activity import Notification
from assethub.models.asset import Asset
from assethub.services import review_service


def _submit(client, asset, user, headers):
    return client.post(f"/v1/assets/{asset.id}/submit-review", headers=headers(user))


def test_submit_then_approve(client, make_asset, creative, reviewer, headers, test_db):
    asset = make_asset(creative)

    response = _submit(client, asset, creative, headers)
    assert response.status_code == 201, response.text
    review = response.json()
    assert review["status"] == "PENDING"
    assert review["reviewerId"] == reviewer.id

    assigned = test_db.query(Notification).filter_by(user_id=reviewer.id).one()
    assert assigned.type == "REVIEW_ASSIGNED"

    pending = client.get("/v1/reviews/pending", headers=headers(reviewer)).json()
    assert [item["id"] for item in pending] == [review["id"]]
    assert pending[0]["assetTitle"] == asset.title

    response = client.post(
        f"/v1/reviews/{review['id']}/approve",
        json={"comments": "Looks great"},
        headers=headers(reviewer),
    )
    assert response.status_code == 200
    assert response.json()["status"] == "APPROVED"
    assert response.json()["decidedAt"]

    test_db.expire_all()
    assert test_db.get(Asset, asset.id).ready_for_publishing is True
    completed = test_db.query(Notification).filter_by(user_id=creative.id).one()
    assert completed.type == "REVIEW_COMPLETED"
    assert completed.title == "Asset approved"


def test_approve_without_body(client, make_asset, creative, reviewer, headers):
    review = _submit(client, make_asset(creative), creative, headers).json()

    response = client.post(f"/v1/reviews/{review['id']}/approve", headers=headers(reviewer))
    assert response.status_code == 200


def test_second_decision_conflicts(client, make_asset, creative, reviewer, headers):
    review = _submit(client, make_asset(creative), creative, headers).json()
    client.post(f"/v1/reviews/{review['id']}/approve", json={}, headers=headers(reviewer))

    response = client.post(
        f"/v1/reviews/{review['id']}/reject",
        json={"comments": "Too late", "reasons": ["quality"]},
        headers=headers(reviewer),
    )
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "CONFLICT"


def test_only_one_pending_review_per_asset(client, make_asset, creative, reviewer, headers):
    asset = make_asset(creative)
    assert _submit(client, asset, creative, headers).status_code == 201

    response = _submit(client, asset, creative, headers)
    assert response.status_code == 409


def test_unprocessed_asset_cannot_be_submitted(client, make_asset, creative, reviewer, headers):
    asset = make_asset(creative, status="PROCESSING")
    assert _submit(client, asset, creative, headers).status_code == 409


def test_submit_without_reviewers(client, make_asset, creative, headers):
    response = _submit(client, make_asset(creative), creative, headers)
    assert response.status_code == 409
    assert response.json()["error"]["message"] == "No reviewers are available"


def test_uploader_is_never_own_reviewer(client, make_asset, manager, reviewer, headers):
    review = _submit(client, make_asset(manager), manager, headers).json()
    assert review["reviewerId"] == reviewer.id


def test_reviewer_with_fewest_pending_is_picked(client, make_asset, creative, reviewer, manager, headers):
    first = _submit(client, make_asset(creative), creative, headers).json()
    second = _submit(client, make_asset(creative), creative, headers).json()

    assert {first["reviewerId"], second["reviewerId"]} == {reviewer.id, manager.id}


def test_reject_requires_comments_and_reasons(client, make_asset, creative, reviewer, headers):
    review = _submit(client, make_asset(creative), creative, headers).json()

    response = client.post(
        f"/v1/reviews/{review['id']}/reject",
        json={"comments": "No", "reasons": []},
        headers=headers(reviewer),
    )
    assert response.status_code == 400


def test_reject_stores_reasons(client, make_asset, creative, reviewer, headers, test_db):
    asset = make_asset(creative)
    review = _submit(client, asset, creative, headers).json()

    response = client.post(
        f"/v1/reviews/{review['id']}/reject",
        json={"comments": "Off brand", "reasons": ["colors", "logo"]},
        headers=headers(reviewer),
    )

    assert response.status_code == 200
    assert response.json()["comments"] == "Off brand\n\nReasons: colors, logo"
    test_db.expire_all()
    assert test_db.get(Asset, asset.id).ready_for_publishing is False


def test_request_changes_returns_asset_for_revision(client, make_asset, creative, reviewer, headers, test_db):
    asset = make_asset(creative)
    review = _submit(client, asset, creative, headers).json()

    response = client.post(
        f"/v1/reviews/{review['id']}/request-changes",
        json={"comments": "Almost", "requiredChanges": ["Crop tighter", "Brighter"]},
        headers=headers(reviewer),
    )

    assert response.status_code == 200
    assert response.json()["status"] == "NEEDS_REVISION"
    test_db.expire_all()
    assert test_db.get(Asset, asset.id).processing_status == "NEEDS_REVISION"
    notification = test_db.query(Notification).filter_by(user_id=creative.id).one()
    assert notification.type == "REVIEW_CHANGES_REQUESTED"


def test_revision_upload_archives_previous_asset(
    client, make_asset, creative, reviewer, headers, storage_dir, test_db
):
    previous = make_asset(creative, status="NEEDS_REVISION")
    prepared = client.post(
        "/v1/assets/upload/prepare",
        json={"fileName": "v2.pdf", "fileSize": 100, "fileType": "application/pdf"},
        headers=headers(creative),
    ).json()
    target = storage_dir / prepared["fileKey"]
    target.parent.mkdir(parents=True)
    target.write_bytes(b"%PDF")

    response = client.post(
        "/v1/assets/upload/complete",
        json={
            "uploadId": prepared["uploadId"],
            "fileKey": prepared["fileKey"],
            "metadata": {"title": "Brief v2"},
            "fileSize": 100,
            "mimeType": "application/pdf",
            "originalFilename": "v2.pdf",
            "revisionOf": previous.id,
        },
        headers=headers(creative),
    )

    assert response.status_code == 201, response.text
    test_db.expire_all()
    assert test_db.get(Asset, previous.id).is_archived is True


def test_other_user_cannot_decide(client, make_asset, creative, reviewer, headers):
    review = _submit(client, make_asset(creative), creative, headers).json()

    response = client.post(f"/v1/reviews/{review['id']}/approve", json={}, headers=headers(creative))
    assert response.status_code == 403


def test_review_hidden_from_unrelated_users(client, make_asset, creative, reviewer, viewer, headers):
    review = _submit(client, make_asset(creative), creative, headers).json()

    assert client.get(f"/v1/reviews/{review['id']}", headers=headers(reviewer)).status_code == 200
    assert client.get(f"/v1/reviews/{review['id']}", headers=headers(viewer)).status_code == 404


def test_archiving_cancels_pending_review(client, make_asset, creative, reviewer, headers, test_db):
    asset = make_asset(creative)
    review = _submit(client, asset, creative, headers).json()

    assert client.delete(f"/v1/assets/{asset.id}", headers=headers(creative)).status_code == 200

    cancelled = client.get(f"/v1/reviews/{review['id']}", headers=headers(reviewer)).json()
    assert cancelled["status"] == "CANCELLED"
    assert client.get("/v1/reviews/pending", headers=headers(reviewer)).json() == []

    response = client.post(f"/v1/reviews/{review['id']}/approve", json={}, headers=headers(reviewer))
    assert response.status_code == 409
    test_db.expire_all()
    assert test_db.get(Asset, asset.id).ready_for_publishing is False


def test_review_of_archived_asset_cannot_be_decided(client, make_asset, creative, reviewer, headers, test_db):
    asset = make_asset(creative)
    review_id = _submit(client, asset, creative, headers).json()["id"]
    asset.is_archived = True
    test_db.commit()

    review = review_service.get_review(test_db, review_id, asset.tenant_id)
    with pytest.raises(ConflictError):
        review_service.approve(test_db, review, reviewer)

    test_db.expire_all()
    assert test_db.get(Asset, asset.id).ready_for_publishing is False
    assert review_service.get_review(test_db, review_id, asset.tenant_id).status == "PENDING"
