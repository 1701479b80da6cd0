import pytest


@pytest.fixture
def make_category(client, auth_headers):
    def _make(name, **extra):
        res = client.post("/api/v1/categories", json={"name": name, "description": f"All things {name}", **extra},
                          headers=auth_headers)
        assert res.status_code == 201, res.text
        return res.json()["data"]
    return _make


def test_create_derives_slug(client, make_category):
    category = make_category("Home & Kitchen")

    assert category["slug"] == "home-kitchen"
    assert category["id"].startswith("cat_")
    assert category["image_url"] == ""

    res = client.get(f"/api/v1/categories/{category['id']}")
    assert res.json()["data"] == category


def test_duplicate_slug_conflicts(client, auth_headers, make_category):
    make_category("Electronics")

    res = client.post("/api/v1/categories", json={"name": "  electronics ", "description": "again"},
                      headers=auth_headers)

    assert res.status_code == 409
    assert res.json()["message"] == "Category with this name already exists"


def test_create_requires_description(client, auth_headers):
    res = client.post("/api/v1/categories", json={"name": "Beauty"}, headers=auth_headers)
    assert res.status_code == 400


def test_create_with_image_form(client, auth_headers):
    res = client.post("/api/v1/categories", data={"name": "Beauty", "description": "Skin care"},
                      files={"image": ("b.webp", b"RIFF", "image/webp")}, headers=auth_headers)
    assert res.status_code == 201
    assert res.json()["data"]["image_url"].startswith("https://")


def test_get_by_slug(client, make_category):
    category = make_category("Garden Tools")

    res = client.get("/api/v1/categories/slug/garden-tools")
    assert res.status_code == 200
    assert res.json()["data"]["id"] == category["id"]

    assert client.get("/api/v1/categories/slug/nope").status_code == 404


def test_rename_moves_slug(client, auth_headers, make_category):
    category = make_category("Toys")

    res = client.put(f"/api/v1/categories/{category['id']}", json={"name": "Toys and Games"}, headers=auth_headers)

    assert res.status_code == 200
    assert res.json()["data"]["slug"] == "toys-and-games"


def test_rename_onto_existing_slug_conflicts(client, auth_headers, make_category):
    make_category("Books")
    other = make_category("Music")

    res = client.put(f"/api/v1/categories/{other['id']}", json={"name": "Books"}, headers=auth_headers)
    assert res.status_code == 409


def test_update_same_name_keeps_slug(client, auth_headers, make_category):
    category = make_category("Sports")

    res = client.put(f"/api/v1/categories/{category['id']}", json={"name": "Sports", "is_active": False},
                     headers=auth_headers)

    assert res.status_code == 200
    assert res.json()["data"]["slug"] == "sports"
    assert res.json()["data"]["is_active"] is False


def test_active_and_search(client, make_category):
    make_category("Shoes")
    make_category("Shirts", is_active=False)
    make_category("Hats")

    active = client.get("/api/v1/categories/active").json()["data"]
    assert sorted(c["name"] for c in active) == ["Hats", "Shoes"]

    found = client.get("/api/v1/categories", params={"search": "sh"}).json()
    assert sorted(c["name"] for c in found["data"]) == ["Shirts", "Shoes"]
    assert found["meta"]["total"] == 2


def test_delete_then_read_404s(client, auth_headers, make_category):
    category = make_category("Temporary")

    assert client.delete(f"/api/v1/categories/{category['id']}", headers=auth_headers).status_code == 200
    assert client.get(f"/api/v1/categories/{category['id']}").status_code == 404
    assert client.delete(f"/api/v1/categories/{category['id']}", headers=auth_headers).status_code == 404
