import pytest

from auth import check_password
from setup_admin import create_admin, main


def test_create_admin_stores_hash(db):
    admin = create_admin(" ADMIN002 ", "Owner@Example.com", "hunter22", "Shop Owner", role="admin")

    assert admin["admin_id"] == "admin002"
    assert admin["email"] == "owner@example.com"
    assert "password" not in admin

    stored = db["admin"].find_one({"admin_id": "admin002"})
    assert stored["password"] != "hunter22"
    assert check_password("hunter22", stored["password"])
    assert stored["is_active"] is True
    assert stored["last_login"] is None


def test_existing_admin_is_skipped(db):
    create_admin("ADMIN001", "admin@example.com", "secret123", "Admin")

    assert create_admin("ADMIN009", "ADMIN@example.com", "another1", "Someone") is None
    assert db["admin"].count_documents({}) == 1


@pytest.mark.parametrize("password,role", [("short", "super_admin"), ("longenough", "owner")])
def test_invalid_admin_rejected(db, password, role):
    with pytest.raises(ValueError):
        create_admin("ADMIN003", "x@example.com", password, "X", role=role)


def test_main_exit_codes(db):
    argv = ["--email", "cli@example.com", "--password", "secret123", "--name", "CLI Admin"]

    assert main(argv) == 0
    assert main(argv) == 1
    assert db["admin"].find_one({"email": "cli@example.com"})["admin_id"] == "admin001"
