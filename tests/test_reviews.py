import pytest

from fixerhub.domain.reviews.repository import ReviewRepository
from fixerhub.errors import ConstraintViolation

RATINGS = {
    "overall": 4,
    "quality": 5,
    "timeliness": 4,
    "communication": 4,
    "valueForMoney": 3,
    "cleanliness": 5,
}


def review_payload(booking_id, overall=4):
    return {
        "bookingId": booking_id,
        "ratings": {**RATINGS, "overall": overall},
        "comment": "Quick and tidy work, would hire again.",
        "wouldRecommend": True,
    }


@pytest.fixture
def completed_booking(make_booking, seeker, provider):
    return make_booking(seeker, provider, status="completed")


def test_seeker_reviews_completed_booking(client, auth_headers, db, seeker, provider, completed_booking):
    response = client.post("/reviews", json=review_payload(completed_booking.id), headers=auth_headers(seeker))

    assert response.status_code == 201
    body = response.json()
    assert body["bookingId"] == completed_booking.id
    assert body["ratings"]["overall"] == 4
    assert body["isVerified"] is True

    db.refresh(provider)
    assert provider.rating == 4.0
    assert provider.total_ratings == 1


def test_second_review_for_booking_conflicts(client, auth_headers, seeker, completed_booking):
    first = client.post("/reviews", json=review_payload(completed_booking.id), headers=auth_headers(seeker))
    assert first.status_code == 201

    second = client.post("/reviews", json=review_payload(completed_booking.id, 2), headers=auth_headers(seeker))
    assert second.status_code == 409


def test_unique_index_rejects_duplicate_insert(db, seeker, provider, completed_booking):
    data = {
        "booking_id": completed_booking.id,
        "service_provider_id": provider.id,
        "service_seeker_id": seeker.id,
        "rating_overall": 5,
        "rating_quality": 5,
        "rating_timeliness": 5,
        "rating_communication": 5,
        "rating_value_for_money": 5,
        "rating_cleanliness": 5,
        "comment": "Excellent job all round.",
        "would_recommend": True,
    }
    ReviewRepository.add_review(db, **data)

    with pytest.raises(ConstraintViolation):
        ReviewRepository.add_review(db, **data)


def test_review_requires_completed_booking(client, auth_headers, seeker, booking):
    response = client.post("/reviews", json=review_payload(booking.id), headers=auth_headers(seeker))
    assert response.status_code == 400
    assert response.json()["detail"] == "Booking not completed yet"


def test_only_seeker_can_review(client, auth_headers, provider, completed_booking):
    response = client.post("/reviews", json=review_payload(completed_booking.id), headers=auth_headers(provider))
    assert response.status_code == 403


def test_out_of_range_rating_rejected(client, auth_headers, seeker, completed_booking):
    response = client.post("/reviews", json=review_payload(completed_booking.id, 6), headers=auth_headers(seeker))
    assert response.status_code == 422


def test_provider_rating_is_average_of_reviews(
    client, auth_headers, db, make_booking, seeker, provider
):
    for overall in (5, 3, 4):
        booking = make_booking(seeker, provider, status="completed")
        response = client.post("/reviews", json=review_payload(booking.id, overall), headers=auth_headers(seeker))
        assert response.status_code == 201

    db.refresh(provider)
    assert provider.rating == 4.0
    assert provider.total_ratings == 3

    listing = client.get(f"/reviews/provider/{provider.id}")
    assert listing.status_code == 200
    assert len(listing.json()) == 3


def test_mark_helpful_is_idempotent(client, auth_headers, seeker, make_user, completed_booking):
    review_id = client.post(
        "/reviews", json=review_payload(completed_booking.id), headers=auth_headers(seeker)
    ).json()["id"]
    reader = make_user()

    client.post(f"/reviews/{review_id}/helpful", headers=auth_headers(reader))
    response = client.post(f"/reviews/{review_id}/helpful", headers=auth_headers(reader))

    assert response.status_code == 200
    assert response.json()["helpfulCount"] == 1


def test_provider_responds_to_review(client, auth_headers, seeker, provider, completed_booking):
    review_id = client.post(
        "/reviews", json=review_payload(completed_booking.id), headers=auth_headers(seeker)
    ).json()["id"]

    denied = client.post(
        f"/reviews/{review_id}/response", json={"response": "Thanks!"}, headers=auth_headers(seeker)
    )
    assert denied.status_code == 403

    response = client.post(
        f"/reviews/{review_id}/response", json={"response": "Thanks for the kind words!"}, headers=auth_headers(provider)
    )
    assert response.status_code == 200
    assert response.json()["providerResponse"] == "Thanks for the kind words!"
