"""Service configuration tests."""

from assethub.encryption import decrypt_credentials
from assethub.models.activity import Activity
from assethub.models.service_config import ServiceConfig

S3_CONFIG = {
    "provider": "s3",
    "base_path": "tenant-1/",
    "options": {"bucket_name": "acme-assets", "region": "eu-west-1"},
    "credentials": {"aws_access_key_id": "AKIAEXAMPLE", "aws_secret_access_key": "super-secret"},
}


def test_put_storage_config_encrypts_credentials(client, admin, headers, test_db):
    response = client.put("/v1/configs/storage", json=S3_CONFIG, headers=headers(admin))

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["provider"] == "s3"
    assert data["has_credentials"] is True
    assert data["credential_fields"] == ["aws_access_key_id", "aws_secret_access_key"]
    assert "super-secret" not in response.text

    stored = test_db.query(ServiceConfig).filter_by(tenant_id=admin.tenant_id, kind="storage").one()
    assert "super-secret" not in stored.credentials_encrypted
    assert decrypt_credentials(stored.credentials_encrypted)["aws_secret_access_key"] == "super-secret"


def test_get_config_never_returns_secrets(client, admin, headers):
    client.put("/v1/configs/storage", json=S3_CONFIG, headers=headers(admin))

    response = client.get("/v1/configs/storage", headers=headers(admin))

    assert response.status_code == 200
    assert "credentials" not in response.json()
    assert "AKIAEXAMPLE" not in response.text


def test_update_without_credentials_keeps_them(client, admin, headers, test_db):
    client.put("/v1/configs/storage", json=S3_CONFIG, headers=headers(admin))
    update = {key: value for key, value in S3_CONFIG.items() if key != "credentials"}
    update["base_path"] = "tenant-1/v2/"

    response = client.put("/v1/configs/storage", json=update, headers=headers(admin))

    assert response.status_code == 200
    assert response.json()["has_credentials"] is True


def test_changes_are_audited(client, admin, headers, test_db):
    client.put("/v1/configs/storage", json=S3_CONFIG, headers=headers(admin))
    client.put(
        "/v1/configs/storage",
        json={**S3_CONFIG, "options": {"bucket_name": "acme-archive"}},
        headers=headers(admin),
    )

    audit = client.get("/v1/configs/audit", headers=headers(admin)).json()

    assert [entry["action"] for entry in audit] == ["update", "create"]
    assert audit[0]["actor_id"] == admin.id
    assert "options" in audit[0]["changed_fields"]
    assert "credentials" in audit[0]["changed_fields"]
    assert test_db.query(Activity).filter_by(type="CONFIG_UPDATED").count() == 2


def test_s3_config_missing_bucket_rejected(client, admin, headers):
    config = {**S3_CONFIG, "options": {}}

    response = client.put("/v1/configs/storage", json=config, headers=headers(admin))

    assert response.status_code == 400
    assert "bucket_name" in response.json()["error"]["message"]


def test_unknown_provider_rejected(client, admin, headers):
    response = client.put("/v1/configs/storage", json={"provider": "ftp"}, headers=headers(admin))
    assert response.status_code == 400


def test_unknown_kind_not_found(client, admin, headers):
    response = client.get("/v1/configs/payments", headers=headers(admin))
    assert response.status_code == 404


def test_requires_config_permission(client, manager, headers):
    response = client.put("/v1/configs/storage", json=S3_CONFIG, headers=headers(manager))
    assert response.status_code == 403


def test_delete_config(client, admin, headers):
    client.put("/v1/configs/storage", json=S3_CONFIG, headers=headers(admin))

    assert client.delete("/v1/configs/storage", headers=headers(admin)).status_code == 204
    assert client.get("/v1/configs/storage", headers=headers(admin)).status_code == 404


def test_storage_connection_test(client, admin, headers, local_storage_config):
    response = client.post("/v1/storage/test", headers=headers(admin))

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["provider"] == "local"
