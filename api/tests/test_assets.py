"""Asset listing, detail and archive tests."""

from assethub.models.activity import Activity
from assethub.models.asset import AssetVariant


def test_list_excludes_archived(client, make_asset, creative, headers):
    kept = make_asset(creative, title="Kept")
    make_asset(creative, title="Gone", is_archived=True)

    data = client.get("/v1/assets", headers=headers(creative)).json()

    assert data["total"] == 1
    assert [item["id"] for item in data["items"]] == [kept.id]
    assert data["pageSize"] == 20


def test_list_filters(client, make_asset, creative, headers):
    make_asset(creative, title="Summer banner", category="campaign")
    make_asset(creative, title="Logo", category="brand")
    make_asset(creative, title="Clip", asset_type="VIDEO", status="PROCESSING", mime_type="video/mp4")

    by_search = client.get("/v1/assets?search=banner", headers=headers(creative)).json()
    by_type = client.get("/v1/assets?type=VIDEO", headers=headers(creative)).json()
    by_status = client.get("/v1/assets?status=PROCESSING", headers=headers(creative)).json()
    by_category = client.get("/v1/assets?category=brand", headers=headers(creative)).json()

    assert [i["title"] for i in by_search["items"]] == ["Summer banner"]
    assert [i["title"] for i in by_type["items"]] == ["Clip"]
    assert [i["title"] for i in by_status["items"]] == ["Clip"]
    assert [i["title"] for i in by_category["items"]] == ["Logo"]


def test_list_paginates(client, make_asset, creative, headers):
    for _ in range(5):
        make_asset(creative)

    data = client.get("/v1/assets?page=2&pageSize=2", headers=headers(creative)).json()

    assert data["total"] == 5
    assert data["page"] == 2
    assert len(data["items"]) == 2


def test_detail_includes_variants(client, make_asset, creative, headers, test_db):
    asset = make_asset(creative, file_size=5_000_000_000)
    test_db.add(
        AssetVariant(
            asset_id=asset.id,
            variant_type="THUMBNAIL",
            file_key="assets/x/thumbnails/a.jpg",
            mime_type="image/jpeg",
            file_size=1234,
            width=400,
            height=225,
        )
    )
    test_db.commit()

    data = client.get(f"/v1/assets/{asset.id}", headers=headers(creative)).json()

    assert data["fileSize"] == "5000000000"
    assert data["variants"][0]["variantType"] == "THUMBNAIL"
    assert data["variants"][0]["fileSize"] == "1234"


def test_missing_asset_returns_error_body(client, creative, headers):
    response = client.get("/v1/assets/999", headers=headers(creative))

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


def test_owner_can_archive(client, make_asset, creative, headers, test_db):
    asset = make_asset(creative)

    response = client.delete(f"/v1/assets/{asset.id}", headers=headers(creative))

    assert response.status_code == 200
    assert response.json()["isArchived"] is True
    assert client.get(f"/v1/assets/{asset.id}", headers=headers(creative)).status_code == 404
    assert test_db.query(Activity).filter_by(asset_id=asset.id, type="ASSET_ARCHIVED").count() == 1


def test_others_cannot_archive(client, make_asset, creative, viewer, headers):
    asset = make_asset(creative)

    response = client.delete(f"/v1/assets/{asset.id}", headers=headers(viewer))
    assert response.status_code == 403


def test_manager_can_archive(client, make_asset, creative, manager, headers):
    asset = make_asset(creative)
    assert client.delete(f"/v1/assets/{asset.id}", headers=headers(manager)).status_code == 200


def test_invalid_body_is_validation_error(client, creative, headers):
    response = client.post("/v1/assets/upload/prepare", json={"fileSize": "lots"}, headers=headers(creative))

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert {d["field"] for d in error["details"]} >= {"fileName", "fileSize"}
