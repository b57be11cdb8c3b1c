"""Profile Routes — base profile edits, role profiles, directory browsing and slugs."""


async def test_update_my_profile(client, make_user, auth):
    _, token = await make_user("mentor")
    res = await client.patch(
        "/api/v1/profiles/me", json={"bio": "Ex-founder", "location": "Lisbon"}, headers=auth(token),
    )
    assert res.status_code == 200
    assert res.json()["data"]["bio"] == "Ex-founder"


async def test_startup_role_profile_requires_company_name(client, make_user, auth):
    _, token = await make_user("startup")
    res = await client.put("/api/v1/profiles/me/role-profile", json={"industry": "fintech"}, headers=auth(token))
    assert res.status_code == 400
    assert res.json()["error"] == "company_name is required"


async def test_startup_slug_is_unique(client, make_user, auth):
    _, first = await make_user("startup")
    _, second = await make_user("startup")
    a = await client.put(
        "/api/v1/profiles/me/role-profile", json={"company_name": "Acme Labs"}, headers=auth(first),
    )
    b = await client.put(
        "/api/v1/profiles/me/role-profile", json={"company_name": "Acme Labs"}, headers=auth(second),
    )
    slug_a = a.json()["data"]["slug"]
    slug_b = b.json()["data"]["slug"]
    assert slug_a == "acme-labs"
    assert slug_b != slug_a

    found = await client.get(f"/api/v1/profiles/startups/{slug_a}", headers=auth(second))
    assert found.json()["data"]["role_profile"]["company_name"] == "Acme Labs"


async def test_invalid_role_profile_payload(client, make_user, auth):
    _, token = await make_user("investor")
    res = await client.put(
        "/api/v1/profiles/me/role-profile",
        json={"ticket_size_min": 500, "ticket_size_max": 100}, headers=auth(token),
    )
    assert res.status_code == 400


async def test_directory_filters_by_industry(client, make_user, auth):
    _, viewer = await make_user("startup")
    _, fin = await make_user("mentor")
    _, health = await make_user("mentor")
    await client.put("/api/v1/profiles/me/role-profile", json={"industry_focus": "fintech"}, headers=auth(fin))
    await client.put("/api/v1/profiles/me/role-profile", json={"industry_focus": "health"}, headers=auth(health))

    res = await client.get(
        "/api/v1/profiles/directory/mentors", params={"industry": "fintech"}, headers=auth(viewer),
    )
    data = res.json()["data"]
    assert data["pagination"]["total"] == 1
    assert data["items"][0]["role_profile"]["industry_focus"] == "fintech"
    assert "email" not in data["items"][0]["profile"]


async def test_unknown_directory(client, make_user, auth):
    _, token = await make_user("startup")
    res = await client.get("/api/v1/profiles/directory/wizards", headers=auth(token))
    assert res.status_code == 400


async def test_get_public_profile(client, make_user, auth):
    mentor, _ = await make_user("mentor", full_name="Grace Mentor")
    _, token = await make_user("startup")
    res = await client.get(f"/api/v1/profiles/{mentor.id}", headers=auth(token))
    assert res.json()["data"]["profile"]["full_name"] == "Grace Mentor"
