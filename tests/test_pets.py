import pytest


@pytest.mark.parametrize("payload", [
    {"category": "dog"},
    {"name": "Rex"},
    {"name": "", "category": "dog"},
    {},
])
def test_create_pet_missing_required_fields_400(client, db, payload):
    resp = client.post("/pets", json=payload)
    assert resp.status_code == 400, f"Expected 400, got {resp.status_code}. Body: {resp.text}"
    assert resp.json() == {"error": "Missing required fields: name, category"}
    assert db.pets.count_documents({}) == 0


def test_create_pet_then_fetch(client):
    payload = {"name": "Milo", "category": "cat", "owner_email": "ann@example.com",
               "price": 75.5, "color": "ginger"}
    resp = client.post("/pets", json=payload)
    assert resp.status_code == 200
    body = resp.json()
    assert body["acknowledged"] is True
    pet_id = body["insertedId"]

    fetched = client.get(f"/pets/{pet_id}").json()
    assert fetched["id"] == pet_id
    for key, value in payload.items():
        assert fetched[key] == value
    assert fetched["date"]


def test_create_pet_ignores_client_date_and_id(client, db):
    resp = client.post("/pets", json={"name": "Rex", "category": "dog",
                                      "date": "1999-01-01", "_id": "abc"})
    assert resp.status_code == 200

    stored = db.pets.find_one({})
    assert str(stored["_id"]) == resp.json()["insertedId"]
    assert stored["date"].year == 2024


def test_create_pet_non_object_body_400(client):
    resp = client.post("/pets", json=["Rex", "dog"])
    assert resp.status_code == 400
    assert "error" in resp.json()


def test_create_pet_bad_price_400(client, db):
    resp = client.post("/pets", json={"name": "Rex", "category": "dog", "price": "lots"})
    assert resp.status_code == 400
    assert "price" in resp.json()["error"]
    assert db.pets.count_documents({}) == 0


def test_list_pets_filters(client, make_pet):
    make_pet(name="Rex", category="dog", owner_email="ann@example.com")
    make_pet(name="Fido", category="dog", owner_email="bob@example.com")
    make_pet(name="Tom", category="cat", owner_email="ann@example.com")

    everything = client.get("/pets").json()
    assert len(everything) == 3

    dogs = client.get("/pets", params={"category": "dog"}).json()
    assert sorted(p["name"] for p in dogs) == ["Fido", "Rex"]

    anns = client.get("/pets", params={"email": "ann@example.com"}).json()
    assert sorted(p["name"] for p in anns) == ["Rex", "Tom"]

    both = client.get("/pets", params={"email": "ann@example.com", "category": "dog"}).json()
    assert [p["name"] for p in both] == ["Rex"]

    none = client.get("/pets", params={"email": "bob@example.com", "category": "cat"}).json()
    assert none == []


def test_list_pets_empty_filter_is_ignored(client, make_pet):
    make_pet()
    assert len(client.get("/pets", params={"email": "", "category": ""}).json()) == 1


def test_recent_pets_newest_first_and_capped(client, make_pet):
    for i in range(8):
        make_pet(name=f"pet-{i}")

    recent = client.get("/pets/recent").json()
    assert [p["name"] for p in recent] == [f"pet-{i}" for i in range(7, 1, -1)]


def test_recent_pets_fewer_than_limit(client, make_pet):
    make_pet(name="only")
    assert [p["name"] for p in client.get("/pets/recent").json()] == ["only"]


@pytest.mark.parametrize("pet_id", ["65a0c0ffee0000000000beef", "not-an-object-id"])
def test_get_pet_not_found_404(client, pet_id):
    resp = client.get(f"/pets/{pet_id}")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Pet not found"}


def test_patch_pet_changes_only_supplied_fields(client, make_pet):
    pet_id = make_pet(name="Rex", category="dog", price=120, owner_email="ann@example.com")
    before = client.get(f"/pets/{pet_id}").json()

    resp = client.patch(f"/pets/{pet_id}", json={"price": 50})
    assert resp.status_code == 200
    assert resp.json() == {"acknowledged": True, "matchedCount": 1, "modifiedCount": 1}

    after = client.get(f"/pets/{pet_id}").json()
    assert after["price"] == 50
    assert {k: v for k, v in after.items() if k != "price"} == \
        {k: v for k, v in before.items() if k != "price"}


def test_patch_pet_unknown_id_reports_zero_matches(client):
    resp = client.patch("/pets/65a0c0ffee0000000000beef", json={"price": 50})
    assert resp.status_code == 200
    assert resp.json()["matchedCount"] == 0
    assert resp.json()["modifiedCount"] == 0


def test_patch_pet_empty_body(client, make_pet):
    pet_id = make_pet()
    resp = client.patch(f"/pets/{pet_id}", json={})
    assert resp.status_code == 200
    assert resp.json() == {"acknowledged": True, "matchedCount": 1, "modifiedCount": 0}


def test_patch_pet_cannot_null_name(client, make_pet):
    pet_id = make_pet()
    resp = client.patch(f"/pets/{pet_id}", json={"name": None})
    assert resp.status_code == 400
    assert client.get(f"/pets/{pet_id}").json()["name"] == "Rex"


def test_delete_pet(client, make_pet):
    pet_id = make_pet()

    resp = client.delete(f"/pets/{pet_id}")
    assert resp.status_code == 200
    assert resp.json() == {"acknowledged": True, "deletedCount": 1}
    assert client.get(f"/pets/{pet_id}").status_code == 404

    again = client.delete(f"/pets/{pet_id}")
    assert again.status_code == 200
    assert again.json()["deletedCount"] == 0


def test_delete_pet_malformed_id(client):
    resp = client.delete("/pets/nope")
    assert resp.status_code == 200
    assert resp.json()["deletedCount"] == 0


def test_patch_pet_ignores_date(client, make_pet):
    pet_id = make_pet(name="Rex")
    before = client.get(f"/pets/{pet_id}").json()

    resp = client.patch(f"/pets/{pet_id}", json={"date": "yesterday", "price": 5})
    assert resp.status_code == 200

    after = client.get(f"/pets/{pet_id}").json()
    assert after["date"] == before["date"]
    assert after["price"] == 5
    assert [p["name"] for p in client.get("/pets/recent").json()] == ["Rex"]
