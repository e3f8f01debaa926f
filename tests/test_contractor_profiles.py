from reparaya.models import ContractorProfile

PROFILE = {
    "businessName": "Electricidad Ramírez",
    "description": "Instalaciones eléctricas residenciales y comerciales",
    "specialties": ["electricidad", " iluminación "],
}


def test_contractor_creates_unverified_profile(client, auth_headers, contractor):
    resp = client.post("/contractors/profile", json=PROFILE, headers=auth_headers(contractor))

    assert resp.status_code == 201
    body = resp.json()
    assert body["userId"] == contractor.id
    assert body["verified"] is False
    assert body["specialties"] == ["electricidad", "iluminación"]


def test_client_cannot_create_profile(client, auth_headers, client_user):
    resp = client.post("/contractors/profile", json=PROFILE, headers=auth_headers(client_user))
    assert resp.status_code == 403


def test_one_profile_per_contractor(client, auth_headers, contractor, make_profile):
    make_profile(contractor)

    resp = client.post("/contractors/profile", json=PROFILE, headers=auth_headers(contractor))

    assert resp.status_code == 409
    assert resp.json()["error"] == "ContractorProfileAlreadyExistsError"


def test_business_name_is_stored_raw_and_escaped_on_output(db, client, auth_headers, contractor):
    name = "Pérez & Hijos 'Plomería'" + "x" * 76
    payload = {**PROFILE, "businessName": name}

    resp = client.post("/contractors/profile", json=payload, headers=auth_headers(contractor))

    assert resp.status_code == 201
    assert resp.json()["businessName"] == "Pérez &amp; Hijos &#x27;Plomería&#x27;" + "x" * 76
    stored = db.query(ContractorProfile).filter(ContractorProfile.user_id == contractor.id).one()
    assert stored.business_name == name
    assert len(stored.business_name) == 100


def test_profile_rejects_too_many_specialties(client, auth_headers, contractor):
    payload = {**PROFILE, "specialties": [f"oficio-{i}" for i in range(11)]}

    resp = client.post("/contractors/profile", json=payload, headers=auth_headers(contractor))

    assert resp.status_code == 422


def test_my_profile(client, auth_headers, contractor, make_profile):
    profile = make_profile(contractor)

    resp = client.get("/contractors/profile/me", headers=auth_headers(contractor))

    assert resp.status_code == 200
    assert resp.json()["id"] == profile.id


def test_my_profile_missing(client, auth_headers, contractor):
    assert client.get("/contractors/profile/me", headers=auth_headers(contractor)).status_code == 404


def test_unverified_profile_can_be_edited(client, auth_headers, contractor, make_profile):
    make_profile(contractor)

    resp = client.patch(
        "/contractors/profile/me",
        json={"businessName": "Plomería & Gas"},
        headers=auth_headers(contractor),
    )

    assert resp.status_code == 200
    assert resp.json()["businessName"] == "Plomería &amp; Gas"


def test_verified_profile_is_locked(client, auth_headers, contractor, make_profile):
    make_profile(contractor, verified=True)

    resp = client.patch(
        "/contractors/profile/me", json={"businessName": "Otro nombre"}, headers=auth_headers(contractor)
    )

    assert resp.status_code == 409


def test_public_profile_hides_owner_fields(client, contractor, make_profile):
    profile = make_profile(contractor, verified=True)

    resp = client.get(f"/contractors/{profile.id}")

    assert resp.status_code == 200
    body = resp.json()
    assert body["verified"] is True
    assert "userId" not in body
    assert "verificationDocuments" not in body


# ============================================================================
# ADMIN VERIFICATION
# ============================================================================


def test_admin_verifies_profile(client, auth_headers, admin, contractor, make_profile):
    profile = make_profile(contractor)

    resp = client.patch(
        f"/admin/contractors/{profile.id}/verify", json={"verified": True}, headers=auth_headers(admin)
    )

    assert resp.status_code == 200
    assert resp.json()["verified"] is True


def test_only_admins_verify(client, auth_headers, contractor, make_profile):
    profile = make_profile(contractor)

    resp = client.patch(
        f"/admin/contractors/{profile.id}/verify", json={"verified": True}, headers=auth_headers(contractor)
    )

    assert resp.status_code == 403
    assert resp.json()["requiredRole"] == "ADMIN"


def test_admin_lists_profiles_by_verification(client, auth_headers, admin, contractor, other_contractor, make_profile):
    verified = make_profile(contractor, verified=True)
    make_profile(other_contractor, verified=False)

    resp = client.get("/admin/contractors?verified=true", headers=auth_headers(admin))

    assert resp.status_code == 200
    assert [p["id"] for p in resp.json()] == [verified.id]
