"""Notification inbox tests."""

from assethub.models.activity import Notification


def _notify(db, user, title="Hello", is_read=False):
    notification = Notification(
        tenant_id=user.tenant_id,
        user_id=user.id,
        type="SYSTEM_UPDATE",
        title=title,
        message=f"{title} message",
        is_read=is_read,
    )
    db.add(notification)
    db.commit()
    db.refresh(notification)
    return notification


def test_list_returns_own_notifications_with_unread_count(client, creative, viewer, headers, test_db):
    _notify(test_db, creative, "One")
    _notify(test_db, creative, "Two", is_read=True)
    _notify(test_db, viewer, "Not mine")

    data = client.get("/v1/notifications", headers=headers(creative)).json()

    assert data["unreadCount"] == 1
    assert [n["title"] for n in data["items"]] == ["Two", "One"]


def test_unread_only_filter(client, creative, headers, test_db):
    _notify(test_db, creative, "One")
    _notify(test_db, creative, "Two", is_read=True)

    data = client.get("/v1/notifications?unreadOnly=true", headers=headers(creative)).json()
    assert [n["title"] for n in data["items"]] == ["One"]


def test_mark_read(client, creative, headers, test_db):
    notification = _notify(test_db, creative)

    response = client.post(f"/v1/notifications/{notification.id}/read", headers=headers(creative))

    assert response.status_code == 200
    assert response.json()["isRead"] is True
    assert response.json()["readAt"]


def test_cannot_mark_someone_elses_notification(client, creative, viewer, headers, test_db):
    notification = _notify(test_db, viewer)

    response = client.post(f"/v1/notifications/{notification.id}/read", headers=headers(creative))
    assert response.status_code == 404


def test_mark_all_read(client, creative, viewer, headers, test_db):
    _notify(test_db, creative, "One")
    _notify(test_db, creative, "Two")
    _notify(test_db, viewer, "Other")

    response = client.post("/v1/notifications/mark-all-read", headers=headers(creative))

    assert response.json() == {"updated": 2}
    assert client.get("/v1/notifications", headers=headers(viewer)).json()["unreadCount"] == 1
