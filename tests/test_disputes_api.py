import pytest


def dispute_payload(booking_id, **overrides):
    payload = {
        "bookingId": booking_id,
        "title": "Work left unfinished",
        "description": "The provider left before fixing the second tap.",
        "category": "service_quality",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def open_dispute(client, auth_headers, seeker, booking):
    response = client.post("/disputes", json=dispute_payload(booking.id), headers=auth_headers(seeker))
    assert response.status_code == 201
    return response.json()


def test_party_opens_dispute(open_dispute, seeker, provider):
    assert open_dispute["status"] == "open"
    assert open_dispute["priority"] == "medium"
    assert open_dispute["reportedById"] == seeker.id
    assert open_dispute["serviceProviderId"] == provider.id


def test_outsider_cannot_open_dispute(client, auth_headers, make_user, booking):
    outsider = make_user()
    response = client.post("/disputes", json=dispute_payload(booking.id), headers=auth_headers(outsider))
    assert response.status_code == 403


def test_one_active_dispute_per_booking(client, auth_headers, provider, booking, open_dispute):
    response = client.post("/disputes", json=dispute_payload(booking.id), headers=auth_headers(provider))
    assert response.status_code == 400


def test_unknown_category_rejected(client, auth_headers, seeker, booking):
    response = client.post(
        "/disputes", json=dispute_payload(booking.id, category="weather"), headers=auth_headers(seeker)
    )
    assert response.status_code == 422


def test_parties_exchange_messages_and_admin_notes_stay_internal(
    client, auth_headers, admin, seeker, provider, open_dispute
):
    url = f"/disputes/{open_dispute['id']}"
    client.post(f"{url}/messages", json={"message": "I can come back tomorrow"}, headers=auth_headers(provider))
    client.patch(
        f"{url}/status",
        json={"status": "under_review", "adminNote": "Asked both parties for photos"},
        headers=auth_headers(admin),
    )
    client.post(f"{url}/messages", json={"message": "Please send photos"}, headers=auth_headers(admin))

    seen_by_seeker = client.get(url, headers=auth_headers(seeker)).json()
    assert [m["message"] for m in seen_by_seeker["messages"]] == ["I can come back tomorrow", "Please send photos"]
    assert [m["isAdmin"] for m in seen_by_seeker["messages"]] == [False, True]
    assert seen_by_seeker["adminNotes"] == []

    seen_by_admin = client.get(url, headers=auth_headers(admin)).json()
    assert seen_by_admin["status"] == "under_review"
    assert seen_by_admin["assignedAdminId"] == admin.id
    assert [n["note"] for n in seen_by_admin["adminNotes"]] == ["Asked both parties for photos"]


def test_outsider_cannot_view_dispute(client, auth_headers, make_user, open_dispute):
    outsider = make_user()
    response = client.get(f"/disputes/{open_dispute['id']}", headers=auth_headers(outsider))
    assert response.status_code == 403
    assert response.json()["detail"] == "Access denied"


def test_admin_resolves_with_outcome(client, auth_headers, admin, open_dispute):
    response = client.patch(
        f"/disputes/{open_dispute['id']}/resolve",
        json={"resolution": "Provider refunds half", "outcome": "partial_refund", "outcomeAmount": 2500},
        headers=auth_headers(admin),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "resolved"
    assert body["outcome"] == "partial_refund"
    assert body["outcomeAmount"] == 2500
    assert body["outcomeCurrency"] == "LKR"
    assert body["resolvedById"] == admin.id


def test_resolving_twice_fails(client, auth_headers, admin, open_dispute):
    url = f"/disputes/{open_dispute['id']}/resolve"
    client.patch(url, json={"resolution": "Done"}, headers=auth_headers(admin))

    response = client.patch(url, json={"resolution": "Done again"}, headers=auth_headers(admin))
    assert response.status_code == 400


def test_status_endpoint_cannot_resolve(client, auth_headers, admin, open_dispute):
    response = client.patch(
        f"/disputes/{open_dispute['id']}/status", json={"status": "resolved"}, headers=auth_headers(admin)
    )
    assert response.status_code == 400


def test_closed_dispute_takes_no_messages(client, auth_headers, admin, seeker, open_dispute):
    client.patch(f"/disputes/{open_dispute['id']}/status", json={"status": "closed"}, headers=auth_headers(admin))

    response = client.post(
        f"/disputes/{open_dispute['id']}/messages", json={"message": "Hello?"}, headers=auth_headers(seeker)
    )
    assert response.status_code == 400


def test_party_uploads_evidence(client, auth_headers, seeker, open_dispute):
    files = {"evidence": ("tap.jpg", b"\xff\xd8\xff\xe0fake-jpeg", "image/jpeg")}
    response = client.post(f"/disputes/{open_dispute['id']}/evidence", files=files, headers=auth_headers(seeker))

    assert response.status_code == 200
    assert response.json()["fileName"] == "tap.jpg"

    dispute = client.get(f"/disputes/{open_dispute['id']}", headers=auth_headers(seeker)).json()
    assert len(dispute["evidence"]) == 1


def test_admin_queue_orders_by_priority(client, auth_headers, admin, seeker, provider, make_booking):
    for priority in ("low", "urgent", "medium"):
        booking = make_booking(seeker, provider)
        client.post(
            "/disputes", json=dispute_payload(booking.id, priority=priority), headers=auth_headers(seeker)
        )

    response = client.get("/disputes/admin", headers=auth_headers(admin))

    assert response.status_code == 200
    body = response.json()
    assert [d["priority"] for d in body["disputes"]] == ["urgent", "medium", "low"]
    assert body["pagination"]["total"] == 3

    stats = client.get("/disputes/admin/stats", headers=auth_headers(admin)).json()
    assert stats["total"] == 3
    assert stats["open"] == 3


def test_user_lists_own_disputes(client, auth_headers, provider, open_dispute):
    response = client.get("/disputes/user", headers=auth_headers(provider))
    assert [d["id"] for d in response.json()] == [open_dispute["id"]]
