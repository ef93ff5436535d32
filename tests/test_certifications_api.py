import os

from fixerhub.config import UPLOAD_DIR


def upload_form(**overrides):
    form = {
        "title": "Electrical Wiring Certificate",
        "issuingOrganization": "Sri Lanka Electricity Board",
        "certificateNumber": "EW-2023-118",
        "issueDate": "2023-02-01T00:00:00",
        "category": "technical",
        "points": "30",
    }
    form.update(overrides)
    return form


def pdf_file(name="certificate.pdf"):
    return {"document": (name, b"%PDF-1.4 test document", "application/pdf")}


def test_provider_uploads_certification(client, auth_headers, db, provider):
    response = client.post(
        "/certifications/upload", data=upload_form(), files=pdf_file(), headers=auth_headers(provider)
    )

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "pending"
    assert body["points"] == 30
    assert body["documentFile"].startswith("certifications/cert-")
    assert os.path.exists(os.path.join(UPLOAD_DIR, body["documentFile"]))

    db.refresh(provider)
    assert provider.total_certifications == 1
    assert provider.certification_points == 0


def test_points_default_when_not_given(client, auth_headers, provider):
    form = upload_form()
    del form["points"]
    response = client.post("/certifications/upload", data=form, files=pdf_file(), headers=auth_headers(provider))

    assert response.status_code == 201
    assert response.json()["points"] == 10


def test_seeker_cannot_upload(client, auth_headers, seeker):
    response = client.post(
        "/certifications/upload", data=upload_form(), files=pdf_file(), headers=auth_headers(seeker)
    )
    assert response.status_code == 403


def test_upload_rejects_unknown_file_type(client, auth_headers, provider):
    files = {"document": ("notes.txt", b"plain text", "text/plain")}
    response = client.post("/certifications/upload", data=upload_form(), files=files, headers=auth_headers(provider))
    assert response.status_code == 400


def test_upload_rejects_expiry_before_issue(client, auth_headers, db, provider):
    form = upload_form(expiryDate="2022-01-01T00:00:00")
    response = client.post("/certifications/upload", data=form, files=pdf_file(), headers=auth_headers(provider))

    assert response.status_code == 400
    db.refresh(provider)
    assert provider.total_certifications == 0


def test_approve_awards_points_and_level(client, auth_headers, db, admin, provider, make_certification):
    certification = make_certification(provider, points=60)

    response = client.patch(
        f"/certifications/admin/{certification.id}/approve",
        json={"adminNotes": "Verified with issuer"},
        headers=auth_headers(admin),
    )

    assert response.status_code == 200
    assert response.json()["status"] == "approved"
    assert response.json()["reviewedById"] == admin.id

    db.refresh(provider)
    assert provider.certification_points == 60
    assert provider.certification_level == "silver"
    assert provider.verified_certifications == 1


def test_approve_twice_is_rejected(client, auth_headers, db, admin, provider, make_certification):
    certification = make_certification(provider, points=60)
    url = f"/certifications/admin/{certification.id}/approve"
    client.patch(url, json={}, headers=auth_headers(admin))

    response = client.patch(url, json={}, headers=auth_headers(admin))

    assert response.status_code == 400
    db.refresh(provider)
    assert provider.certification_points == 60


def test_non_admin_cannot_approve(client, auth_headers, provider, make_certification):
    certification = make_certification(provider)
    response = client.patch(
        f"/certifications/admin/{certification.id}/approve", json={}, headers=auth_headers(provider)
    )
    assert response.status_code == 403


def test_rejecting_approved_certification_revokes_points(
    client, auth_headers, db, admin, provider, make_certification
):
    kept = make_certification(provider, points=40, certificate_number="PL-002")
    revoked = make_certification(provider, points=100, certificate_number="PL-003")
    extra = make_certification(provider, points=20, certificate_number="PL-004")
    for certification in (kept, revoked, extra):
        client.patch(f"/certifications/admin/{certification.id}/approve", json={}, headers=auth_headers(admin))

    db.refresh(provider)
    assert provider.certification_level == "gold"

    response = client.patch(
        f"/certifications/admin/{revoked.id}/reject",
        json={"rejectionReason": "Certificate number not on issuer register"},
        headers=auth_headers(admin),
    )

    assert response.status_code == 200
    assert response.json()["rejectionReason"] == "Certificate number not on issuer register"
    db.refresh(provider)
    assert provider.certification_points == 60
    assert provider.certification_level == "silver"
    assert provider.verified_certifications == 2


def test_reject_requires_reason(client, auth_headers, admin, provider, make_certification):
    certification = make_certification(provider)
    response = client.patch(
        f"/certifications/admin/{certification.id}/reject", json={}, headers=auth_headers(admin)
    )
    assert response.status_code == 422


def test_delete_approved_certification_takes_points_back(client, auth_headers, db, admin, provider):
    created = client.post(
        "/certifications/upload", data=upload_form(points="55"), files=pdf_file(), headers=auth_headers(provider)
    ).json()
    client.patch(f"/certifications/admin/{created['id']}/approve", json={}, headers=auth_headers(admin))

    response = client.delete(f"/certifications/{created['id']}", headers=auth_headers(provider))

    assert response.status_code == 200
    assert not os.path.exists(os.path.join(UPLOAD_DIR, created["documentFile"]))
    db.refresh(provider)
    assert provider.certification_points == 0
    assert provider.total_certifications == 0
    assert provider.certification_level == "bronze"


def test_other_provider_cannot_delete(client, auth_headers, make_user, provider, make_certification):
    certification = make_certification(provider)
    other = make_user("service_provider")

    response = client.delete(f"/certifications/{certification.id}", headers=auth_headers(other))
    assert response.status_code == 403


def test_admin_stats(client, auth_headers, admin, provider, make_certification):
    make_certification(provider, points=20)
    approved = make_certification(provider, points=30, certificate_number="PL-009")
    client.patch(f"/certifications/admin/{approved.id}/approve", json={}, headers=auth_headers(admin))

    response = client.get("/certifications/admin/stats", headers=auth_headers(admin))

    assert response.status_code == 200
    stats = response.json()
    assert stats["totalCertifications"] == 2
    assert stats["pendingCertifications"] == 1
    assert stats["approvedCertifications"] == 1
    assert stats["topProviders"][0]["id"] == provider.id
