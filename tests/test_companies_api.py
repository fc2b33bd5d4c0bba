# tests/test_companies_api.py
import pytest

ACME = {
    "name": "Acme",
    "industry": "technology",
    "size": "11-50",
    "location": "Berlin",
    "phone": "+49 30 1234 5678",
    "website": "https://acme.io",
    "email": "Jobs@Acme.io",
}


@pytest.mark.asyncio
async def test_one_company_per_employer(client, register):
    employer = await register("employer")
    r = await client.post("/companies", json=ACME, headers=employer["headers"])
    assert r.status_code == 201, r.text
    company = r.json()["data"]["company"]
    assert company["employer"] == employer["id"]
    assert company["email"] == "jobs@acme.io"
    assert company["isVerified"] is False

    r = await client.post("/companies", json=ACME, headers=employer["headers"])
    assert r.status_code == 409
    assert r.json()["code"] == "CONFLICT"


@pytest.mark.asyncio
async def test_my_company_roundtrip(client, register):
    employer = await register("employer")
    r = await client.get("/companies/my", headers=employer["headers"])
    assert r.status_code == 404

    await client.post("/companies", json=ACME, headers=employer["headers"])
    r = await client.put("/companies/my", json={"culture": "Remote first"}, headers=employer["headers"])
    assert r.status_code == 200
    assert r.json()["data"]["company"]["culture"] == "Remote first"
    r = await client.get("/companies/my", headers=employer["headers"])
    assert r.json()["data"]["company"]["name"] == "Acme"


@pytest.mark.asyncio
async def test_company_write_is_owner_only(client, register, admin):
    owner = await register("employer")
    stranger = await register("employer")
    candidate = await register("candidate")
    company_id = (await client.post("/companies", json=ACME, headers=owner["headers"])).json()["data"]["company"]["id"]

    r = await client.put(f"/companies/{company_id}", json={"name": "Mine"}, headers=stranger["headers"])
    assert r.status_code == 403
    r = await client.post("/companies", json=ACME, headers=candidate["headers"])
    assert r.status_code == 403

    root = await admin()
    r = await client.put(f"/companies/{company_id}", json={"name": "Acme GmbH"}, headers=root["headers"])
    assert r.status_code == 200
    r = await client.delete(f"/companies/{company_id}", headers=owner["headers"])
    assert r.status_code == 200
    r = await client.get(f"/companies/{company_id}")
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_public_company_listing(client, register):
    for name in ("Zeta", "Alpha"):
        employer = await register("employer")
        await client.post("/companies", json={**ACME, "name": name}, headers=employer["headers"])
    r = await client.get("/companies")
    assert r.status_code == 200
    body = r.json()["data"]
    assert [c["name"] for c in body["companies"]] == ["Alpha", "Zeta"]
    assert body["pagination"]["totalItems"] == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("field,value", [
    ("website", "not a url"),
    ("phone", "123"),
    ("size", "huge"),
])
async def test_company_validation(client, register, field, value):
    employer = await register("employer")
    r = await client.post("/companies", json={**ACME, field: value}, headers=employer["headers"])
    assert r.status_code == 400
