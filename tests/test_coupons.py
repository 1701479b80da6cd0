from datetime import datetime, timedelta, timezone

import pytest


def iso_in(**delta) -> str:
    return (datetime.now(timezone.utc) + timedelta(**delta)).isoformat()


@pytest.fixture
def make_coupon(client, auth_headers):
    def _make(code="save10", valid_from=None, valid_to=None, **extra):
        payload = {
            "code": code,
            "discount_amount": 10,
            "valid_from": valid_from or iso_in(days=-1),
            "valid_to": valid_to or iso_in(days=7),
            **extra,
        }
        res = client.post("/api/v1/coupons", json=payload, headers=auth_headers)
        assert res.status_code == 201, res.text
        return res.json()["data"]
    return _make


def test_create_upper_cases_code(client, auth_headers, make_coupon):
    coupon = make_coupon(code=" save10 ")

    assert coupon["code"] == "SAVE10"
    assert coupon["valid_from"].endswith("Z")

    res = client.get("/api/v1/coupons/save10", headers=auth_headers)
    assert res.status_code == 200
    assert res.json()["data"] == coupon


def test_duplicate_code_conflicts(client, auth_headers, make_coupon):
    make_coupon(code="WELCOME")
    res = client.post("/api/v1/coupons", json={
        "code": "welcome", "discount_amount": 5, "valid_from": iso_in(days=-1), "valid_to": iso_in(days=1),
    }, headers=auth_headers)
    assert res.status_code == 409
    assert res.json()["message"] == "Coupon code already exists"


def test_window_must_be_ordered(client, auth_headers):
    res = client.post("/api/v1/coupons", json={
        "code": "BACKWARDS", "discount_amount": 5, "valid_from": iso_in(days=2), "valid_to": iso_in(days=1),
    }, headers=auth_headers)
    assert res.status_code == 400
    assert res.json()["message"] == "Valid to date must be after valid from date"


def test_validate_current_coupon(client, make_coupon):
    make_coupon(code="SAVE10")

    res = client.post("/api/v1/coupons/validate", json={"code": "save10"})

    assert res.status_code == 200
    assert res.json()["data"] == {"valid": True, "discount_amount": 10, "code": "SAVE10"}


@pytest.mark.parametrize("extra,message", [
    ({"valid_from": iso_in(days=-10), "valid_to": iso_in(days=-1)}, "Coupon has expired"),
    ({"valid_from": iso_in(days=1), "valid_to": iso_in(days=5)}, "Coupon is not yet valid"),
    ({"is_active": False}, "Coupon is not active"),
])
def test_validate_rejects_unusable_coupon(client, make_coupon, extra, message):
    make_coupon(code="NOPE", **extra)

    res = client.post("/api/v1/coupons/validate", json={"code": "NOPE"})

    assert res.status_code == 400
    assert res.json()["message"] == message


def test_validate_unknown_coupon(client):
    res = client.post("/api/v1/coupons/validate", json={"code": "GHOST"})
    assert res.status_code == 404
    assert res.json()["message"] == "Coupon not found"


def test_active_coupons_only_in_window(client, make_coupon):
    make_coupon(code="LIVE")
    make_coupon(code="OLD", valid_from=iso_in(days=-10), valid_to=iso_in(days=-2))
    make_coupon(code="OFF", is_active=False)

    active = client.get("/api/v1/coupons/active").json()["data"]
    assert [c["code"] for c in active] == ["LIVE"]


def test_admin_listing_requires_token(client, auth_headers, make_coupon):
    make_coupon(code="ONE")
    make_coupon(code="TWO")

    assert client.get("/api/v1/coupons").status_code == 401
    res = client.get("/api/v1/coupons", headers=auth_headers)
    assert res.json()["meta"]["total"] == 2


def test_update_renames_code(client, auth_headers, make_coupon):
    make_coupon(code="SPRING")

    res = client.put("/api/v1/coupons/spring", json={"code": "summer", "discount_amount": 15},
                     headers=auth_headers)

    assert res.status_code == 200
    assert res.json()["data"]["code"] == "SUMMER"
    assert res.json()["data"]["discount_amount"] == 15
    assert client.get("/api/v1/coupons/SPRING", headers=auth_headers).status_code == 404


def test_update_rename_conflict(client, auth_headers, make_coupon):
    make_coupon(code="FIRST")
    make_coupon(code="SECOND")

    res = client.put("/api/v1/coupons/FIRST", json={"code": "second"}, headers=auth_headers)
    assert res.status_code == 409


def test_update_checks_merged_window(client, auth_headers, make_coupon):
    coupon = make_coupon(code="WINDOW")

    res = client.put("/api/v1/coupons/WINDOW", json={"valid_to": iso_in(days=-5)}, headers=auth_headers)

    assert res.status_code == 400
    assert client.get("/api/v1/coupons/WINDOW", headers=auth_headers).json()["data"] == coupon


def test_delete_then_read_404s(client, auth_headers, make_coupon):
    make_coupon(code="BYE")
    assert client.delete("/api/v1/coupons/bye", headers=auth_headers).status_code == 200
    assert client.get("/api/v1/coupons/BYE", headers=auth_headers).status_code == 404


def test_create_accepts_mixed_timezone_formats(client, auth_headers):
    res = client.post("/api/v1/coupons", json={
        "code": "NEWYEAR", "discount_amount": 5,
        "valid_from": "2026-01-01T00:00:00", "valid_to": "2027-01-01T00:00:00Z",
    }, headers=auth_headers)

    assert res.status_code == 201
    assert res.json()["data"]["valid_from"] == "2026-01-01T00:00:00.000Z"
    assert res.json()["data"]["valid_to"] == "2027-01-01T00:00:00.000Z"
