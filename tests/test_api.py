##pytest tests/test_api.py -q

from app.models.complaint import ComplaintCategory, ComplaintStatus
from app.models.notification import Notification, NotificationKind
from app.models.push import PushSubscription
from app.models.user import UserRole
from app.services import notifications


def _form(**overrides):
    data = {
        "title": "Overflowing drain",
        "description": "Sewage on the road after rain",
        "category": "sewage",
        "latitude": "12.9",
        "longitude": "77.6",
        "address": "Addr",
    }
    data.update(overrides)
    return data


def _images(n=2):
    return [("files", (f"img{i}.jpg", b"\xff\xd8\xff fake jpeg", "image/jpeg")) for i in range(n)]


# ========== Complaints ==========


def test_health(client_as):
    r = client_as(None).get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


def test_submit_complaint(client_as, citizen, officer):
    r = client_as(citizen).post("/complaints", data=_form(), files=_images(2))

    assert r.status_code == 201
    body = r.json()
    assert body["status"] == "pending"
    assert body["category"] == "sewage"
    assert body["location"] == {"latitude": 12.9, "longitude": 77.6, "address": "Addr"}
    assert len(body["image_urls"]) == 2
    assert body["comments"] == []
    assert body["citizen_id"] == citizen.id


def test_submit_missing_title_is_400(client_as, citizen):
    r = client_as(citizen).post("/complaints", data=_form(title=""))
    assert r.status_code == 400
    assert r.json()["detail"] == "Title is required"


def test_submit_requires_authentication(client_as):
    r = client_as(None).post("/complaints", data=_form())
    assert r.status_code == 401


def test_citizen_cannot_list_all_complaints(client_as, citizen):
    r = client_as(citizen).get("/complaints")
    assert r.status_code == 403


def test_staff_lists_and_filters(client_as, admin, citizen, make_complaint):
    make_complaint(citizen, title="a")
    make_complaint(citizen, title="b", status=ComplaintStatus.resolved)
    client = client_as(admin)

    assert [c["title"] for c in client.get("/complaints").json()] == ["b", "a"]
    assert [c["title"] for c in client.get("/complaints", params={"status": "resolved"}).json()] == ["b"]
    assert len(client.get("/complaints", params={"limit": 1}).json()) == 1


def test_list_filters_apply_together(client_as, admin, citizen, officer, make_complaint):
    make_complaint(citizen, title="road", category=ComplaintCategory.road)
    make_complaint(citizen, title="water", category=ComplaintCategory.water)
    make_complaint(
        citizen,
        title="taken",
        category=ComplaintCategory.water,
        status=ComplaintStatus.in_progress,
        assigned_to=officer,
    )
    client = client_as(admin)

    r = client.get("/complaints", params={"status": "pending", "category": "water"})
    assert [c["title"] for c in r.json()] == ["water"]
    r = client.get("/complaints", params={"assigned_to": officer.id})
    assert [c["title"] for c in r.json()] == ["taken"]
    r = client.get("/complaints", params={"assigned_to": admin.id})
    assert r.json() == []


def test_mine_only_returns_own(client_as, make_user, make_complaint):
    alice = make_user(UserRole.citizen)
    bob = make_user(UserRole.citizen)
    make_complaint(alice, title="alice's")
    make_complaint(bob, title="bob's")

    r = client_as(alice).get("/complaints/mine")

    assert [c["title"] for c in r.json()] == ["alice's"]


def test_citizen_cannot_view_someone_elses_complaint(client_as, make_user, make_complaint):
    alice = make_user(UserRole.citizen)
    bob = make_user(UserRole.citizen)
    c = make_complaint(alice)

    assert client_as(bob).get(f"/complaints/{c.id}").status_code == 403
    assert client_as(alice).get(f"/complaints/{c.id}").status_code == 200


def test_get_unknown_complaint_is_404(client_as, admin):
    r = client_as(admin).get("/complaints/12345")
    assert r.status_code == 404
    assert r.json()["detail"] == "Complaint not found"


def test_officer_takes_complaint_in_progress(client_as, db, citizen, officer, make_complaint):
    c = make_complaint(citizen)

    r = client_as(officer).patch(f"/complaints/{c.id}/status", json={"status": "in_progress"})

    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "in_progress"
    assert body["assigned_to_id"] == officer.id
    assert body["assigned_officer_name"] == officer.name
    assert db.query(Notification).count() == 2


def test_admin_assigns_another_officer(client_as, db, citizen, officer, admin, make_complaint):
    c = make_complaint(citizen)

    r = client_as(admin).patch(
        f"/complaints/{c.id}/status", json={"status": "in_progress", "officer_id": officer.id}
    )

    assert r.status_code == 200
    assert r.json()["assigned_to_id"] == officer.id
    kinds = {n.user_id: n.kind for n in db.query(Notification).all()}
    assert kinds == {
        citizen.id: NotificationKind.complaint_update,
        officer.id: NotificationKind.complaint_assigned,
    }


def test_admin_cannot_assign_deactivated_officer(client_as, db, citizen, admin, make_user, make_complaint):
    dormant = make_user(UserRole.municipal_officer, is_active=False)
    c = make_complaint(citizen)

    r = client_as(admin).patch(
        f"/complaints/{c.id}/status", json={"status": "in_progress", "officer_id": dormant.id}
    )

    assert r.status_code == 400
    db.refresh(c)
    assert c.status == ComplaintStatus.pending
    assert c.assigned_to_id is None


def test_backward_status_change_is_400(client_as, citizen, officer, make_complaint):
    c = make_complaint(citizen, status=ComplaintStatus.resolved, assigned_to=officer)
    r = client_as(officer).patch(f"/complaints/{c.id}/status", json={"status": "pending"})
    assert r.status_code == 400


def test_citizen_cannot_change_status(client_as, citizen, make_complaint):
    c = make_complaint(citizen)
    r = client_as(citizen).patch(f"/complaints/{c.id}/status", json={"status": "resolved"})
    assert r.status_code == 403


def test_comment_endpoint(client_as, db, citizen, officer, make_complaint):
    c = make_complaint(citizen, status=ComplaintStatus.in_progress, assigned_to=officer)

    r = client_as(citizen).post(f"/complaints/{c.id}/comments", json={"text": "Any news?"})

    assert r.status_code == 201
    body = r.json()
    assert body["text"] == "Any news?"
    assert body["user_role"] == "citizen"
    assert [n.user_id for n in db.query(Notification).all()] == [officer.id]

    detail = client_as(citizen).get(f"/complaints/{c.id}").json()
    assert [x["text"] for x in detail["comments"]] == ["Any news?"]


def test_stats_endpoint(client_as, admin):
    r = client_as(admin).get("/complaints/stats")
    assert r.status_code == 200
    assert r.json()["total"] == 0
    assert r.json()["average_resolution_time"] == 0


def test_delete_requires_admin(client_as, db, citizen, officer, admin, make_complaint):
    c = make_complaint(citizen)

    assert client_as(officer).delete(f"/complaints/{c.id}").status_code == 403
    assert client_as(admin).delete(f"/complaints/{c.id}").status_code == 204
    assert client_as(admin).get(f"/complaints/{c.id}").status_code == 404


# ========== Notifications ==========


def test_notification_endpoints(client_as, db, citizen, officer):
    for i in range(2):
        notifications.create_notification(db, citizen.id, f"n{i}", "m", NotificationKind.complaint_update)
    theirs = notifications.create_notification(db, officer.id, "x", "m", NotificationKind.complaint_new)
    client = client_as(citizen)

    listed = client.get("/notifications").json()
    assert [n["title"] for n in listed] == ["n1", "n0"]
    assert client.get("/notifications/unread-count").json() == {"unread": 2}

    r = client.post(f"/notifications/{listed[0]['id']}/read")
    assert r.status_code == 200
    assert r.json()["read"] is True
    assert client.get("/notifications/unread-count").json() == {"unread": 1}

    assert client.post("/notifications/read-all").json()["updated"] == 1
    assert client.get("/notifications/unread-count").json() == {"unread": 0}
    assert notifications.unread_count(db, officer.id) == 1

    # other users' notifications are invisible
    assert client.post(f"/notifications/{theirs.id}/read").status_code == 404
    assert client.delete(f"/notifications/{theirs.id}").status_code == 404

    assert client.delete(f"/notifications/{listed[1]['id']}").status_code == 200
    assert len(client.get("/notifications").json()) == 1


# ========== Feedback ==========


def test_feedback_flow(client_as, citizen, officer, make_complaint):
    c = make_complaint(citizen, status=ComplaintStatus.resolved)

    r = client_as(citizen).post("/feedback", json={"complaint_id": c.id, "rating": 5, "comment": "Thanks"})
    assert r.status_code == 201
    fid = r.json()["id"]

    assert client_as(officer).post("/feedback", json={"rating": 3, "comment": "x"}).status_code == 403
    assert client_as(citizen).post("/feedback", json={"rating": 9, "comment": "x"}).status_code == 422

    assert [f["id"] for f in client_as(officer).get("/feedback").json()] == [fid]
    assert client_as(citizen).get(f"/feedback/{fid}").json()["rating"] == 5
    assert [f["id"] for f in client_as(citizen).get(f"/complaints/{c.id}/feedback").json()] == [fid]
    assert client_as(citizen).get(f"/complaints/{c.id}").json()["feedback_rating"] == 5


def test_feedback_on_foreign_complaint_forbidden(client_as, make_user, make_complaint):
    alice = make_user(UserRole.citizen)
    bob = make_user(UserRole.citizen)
    c = make_complaint(alice)
    r = client_as(bob).post("/feedback", json={"complaint_id": c.id, "rating": 1, "comment": "meh"})
    assert r.status_code == 403


# ========== Auth ==========


def test_register_login_and_me(client_as):
    client = client_as(None)
    r = client.post(
        "/auth/register",
        json={"name": "Meera", "email": "meera@example.com", "password": "s3cret-pass"},
    )
    assert r.status_code == 200

    r = client.post("/auth/login", json={"email": "meera@example.com", "password": "s3cret-pass"})
    assert r.status_code == 200
    token = r.json()["access_token"]

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["role"] == "citizen"
    assert me.json()["name"] == "Meera"

    bad = client.post("/auth/login", json={"email": "meera@example.com", "password": "wrong-pass"})
    assert bad.status_code == 401


def test_refresh_token_cannot_be_used_as_access(client_as):
    client = client_as(None)
    tokens = client.post(
        "/auth/register",
        json={"name": "Ravi", "email": "ravi@example.com", "password": "another-pass"},
    ).json()

    r = client.get("/auth/me", headers={"Authorization": f"Bearer {tokens['refresh_token']}"})
    assert r.status_code == 401
    r = client.post("/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert r.status_code == 200


def test_admin_changes_role(client_as, admin, citizen):
    r = client_as(admin).put(f"/admin/users/{citizen.id}", json={"role": "municipal_officer"})
    assert r.status_code == 200
    assert r.json()["role"] == "municipal_officer"
    assert client_as(citizen).get("/admin/users").status_code == 403


def _register(client, name, email, password):
    r = client.post("/auth/register", json={"name": name, "email": email, "password": password})
    assert r.status_code == 200
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


def test_change_password_checks_current(client_as):
    client = client_as(None)
    headers = _register(client, "Kiran", "kiran@example.com", "first-pass")

    r = client.put(
        "/auth/password",
        json={"current_password": "wrong-pass", "new_password": "second-pass"},
        headers=headers,
    )
    assert r.status_code == 401

    r = client.put(
        "/auth/password",
        json={"current_password": "first-pass", "new_password": "second-pass"},
        headers=headers,
    )
    assert r.status_code == 200

    old = client.post("/auth/login", json={"email": "kiran@example.com", "password": "first-pass"})
    assert old.status_code == 401
    new = client.post("/auth/login", json={"email": "kiran@example.com", "password": "second-pass"})
    assert new.status_code == 200


def test_change_email(client_as):
    client = client_as(None)
    headers = _register(client, "Leela", "leela@example.com", "leela-pass")
    _register(client, "Mohan", "mohan@example.com", "mohan-pass")

    taken = client.put(
        "/auth/email",
        json={"current_password": "leela-pass", "new_email": "mohan@example.com"},
        headers=headers,
    )
    assert taken.status_code == 400

    wrong = client.put(
        "/auth/email",
        json={"current_password": "nope-nope", "new_email": "leela.k@example.com"},
        headers=headers,
    )
    assert wrong.status_code == 401

    r = client.put(
        "/auth/email",
        json={"current_password": "leela-pass", "new_email": "Leela.K@example.com"},
        headers=headers,
    )
    assert r.status_code == 200
    assert r.json()["email"] == "leela.k@example.com"

    login = client.post("/auth/login", json={"email": "leela.k@example.com", "password": "leela-pass"})
    assert login.status_code == 200


# ========== Profile ==========


def test_update_profile(client_as, citizen):
    r = client_as(citizen).put(
        "/auth/profile", json={"name": " Asha Devi ", "phone": "98450 00000", "address": "  "}
    )

    assert r.status_code == 200
    body = r.json()
    assert body["name"] == "Asha Devi"
    assert body["phone"] == "98450 00000"
    assert body["address"] is None


def test_upload_profile_image(client_as, citizen):
    client = client_as(citizen)

    r = client.post("/auth/profile/image", files={"file": ("me.png", b"\x89PNG avatar", "image/png")})

    assert r.status_code == 200
    assert r.json()["profile_image_url"].startswith("data:image/png;base64,")

    bad = client.post("/auth/profile/image", files={"file": ("me.txt", b"hello", "text/plain")})
    assert bad.status_code == 400


# ========== Push subscriptions ==========


def _subscription(endpoint="https://push.example.com/abc", p256dh="key-1", auth="auth-1"):
    return {"endpoint": endpoint, "keys": {"p256dh": p256dh, "auth": auth}}


def test_push_public_key(client_as):
    r = client_as(None).get("/push/public-key")
    assert r.status_code == 200
    assert "public_key" in r.json()


def test_subscribe_upserts_by_endpoint(client_as, db, citizen):
    client = client_as(citizen)

    assert client.post("/push/subscribe", json=_subscription()).json() == {"ok": True}
    assert client.post("/push/subscribe", json=_subscription(p256dh="key-2", auth="auth-2")).status_code == 200

    subs = db.query(PushSubscription).all()
    assert len(subs) == 1
    assert subs[0].user_id == citizen.id
    assert (subs[0].p256dh, subs[0].auth) == ("key-2", "auth-2")


def test_subscribe_rejects_incomplete_payload(client_as, citizen):
    r = client_as(citizen).post("/push/subscribe", json={"endpoint": "https://push.example.com/x"})
    assert r.status_code == 400


def test_unsubscribe_only_removes_own(client_as, db, citizen, officer):
    client_as(citizen).post("/push/subscribe", json=_subscription())

    assert client_as(officer).post("/push/unsubscribe", json=_subscription()).status_code == 200
    assert db.query(PushSubscription).count() == 1

    assert client_as(citizen).post("/push/unsubscribe", json=_subscription()).status_code == 200
    assert db.query(PushSubscription).count() == 0
