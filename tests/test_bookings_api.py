from datetime import datetime, timedelta


def booking_payload(provider_id, **overrides):
    payload = {
        "serviceProviderId": provider_id,
        "date": (datetime.utcnow() + timedelta(days=2)).isoformat(),
        "time": "14:30",
        "description": "Replace bathroom fan wiring",
        "price": 4000,
    }
    payload.update(overrides)
    return payload


def test_seeker_creates_booking(client, auth_headers, seeker, provider):
    response = client.post("/bookings", json=booking_payload(provider.id), headers=auth_headers(seeker))

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "pending"
    assert body["paymentStatus"] == "unpaid"
    assert body["serviceProviderName"] == provider.name
    assert body["paymentHistory"] == []


def test_provider_cannot_create_booking(client, auth_headers, provider, make_user):
    other = make_user("service_provider")
    response = client.post("/bookings", json=booking_payload(other.id), headers=auth_headers(provider))
    assert response.status_code == 403


def test_booking_requires_existing_provider(client, auth_headers, seeker, make_user):
    not_a_provider = make_user()
    response = client.post("/bookings", json=booking_payload(not_a_provider.id), headers=auth_headers(seeker))
    assert response.status_code == 404


def test_quotation_flow_keeps_original_price(client, auth_headers, seeker, provider, booking):
    url = f"/bookings/{booking.id}"

    requested = client.post(f"{url}/request-quote", headers=auth_headers(seeker))
    assert requested.json()["status"] == "quote_requested"

    quoted = client.post(
        f"{url}/quotation", json={"quoteAmount": 6500, "terms": "Parts included"}, headers=auth_headers(provider)
    )
    assert quoted.status_code == 200
    assert quoted.json()["status"] == "quote_sent"
    assert quoted.json()["price"] == 6500
    assert quoted.json()["originalPrice"] == 5000

    accepted = client.post(f"{url}/accept-quote", headers=auth_headers(seeker))
    assert accepted.json()["status"] == "quote_accepted"


def test_quotation_on_wrong_status_leaves_price(client, auth_headers, db, provider, make_booking, seeker):
    booking = make_booking(seeker, provider, status="completed")

    response = client.post(
        f"/bookings/{booking.id}/quotation", json={"quoteAmount": 9000}, headers=auth_headers(provider)
    )

    assert response.status_code == 400
    db.refresh(booking)
    assert booking.price == 5000


def test_status_update_follows_transitions(client, auth_headers, provider, booking):
    url = f"/bookings/{booking.id}/status"
    assert client.patch(url, json={"status": "accepted"}, headers=auth_headers(provider)).status_code == 200

    response = client.patch(url, json={"status": "pending"}, headers=auth_headers(provider))
    assert response.status_code == 400


def test_unknown_status_rejected(client, auth_headers, provider, booking):
    response = client.patch(f"/bookings/{booking.id}/status", json={"status": "done"}, headers=auth_headers(provider))
    assert response.status_code == 422


def test_outsider_cannot_view_booking(client, auth_headers, make_user, booking):
    outsider = make_user()
    response = client.get(f"/bookings/{booking.id}", headers=auth_headers(outsider))
    assert response.status_code == 403


def test_listings_filter_by_status(client, auth_headers, seeker, provider, make_booking):
    make_booking(seeker, provider)
    make_booking(seeker, provider, status="completed")

    all_bookings = client.get(f"/bookings/provider/{provider.id}", headers=auth_headers(provider))
    completed = client.get(
        f"/bookings/seeker/{seeker.id}", params={"status": "completed"}, headers=auth_headers(seeker)
    )

    assert len(all_bookings.json()) == 2
    assert [b["status"] for b in completed.json()] == ["completed"]


def test_rating_only_after_completion(client, auth_headers, seeker, provider, make_booking, booking):
    early = client.post(f"/bookings/{booking.id}/rating", json={"rating": 5}, headers=auth_headers(seeker))
    assert early.status_code == 400

    done = make_booking(seeker, provider, status="completed")
    response = client.post(
        f"/bookings/{done.id}/rating", json={"rating": 5, "review": "Great"}, headers=auth_headers(seeker)
    )
    assert response.status_code == 200


def test_payment_status_summary(client, auth_headers, seeker, booking):
    response = client.get(f"/bookings/{booking.id}/payment-status", headers=auth_headers(seeker))

    assert response.status_code == 200
    assert response.json()["paymentStatus"] == "unpaid"
    assert response.json()["historyCount"] == 0
