import io
import sqlite3
from dataclasses import dataclass

import pytest
from flask import g
from PIL import Image as PILImage

from eatery.errors import (
    CURRENT_USER,
    DB_TYPE_RESTAURANT,
    DB_TYPE_USER,
    AppError,
    err_db,
    new_unauthorized,
)
from eatery.image import Image
from eatery.restaurant.models import RestaurantCreate, RestaurantUpdate
from eatery.restaurant.storage import SQLStore, create_schema
from eatery.uid import UID, from_base58
from eatery.web import AppContext, create_app, handle_app_error, required_roles


@dataclass
class FakeUser:
    user_id: int
    email: str
    role: str


OWNER = FakeUser(7, "owner@example.com", "user")


class RecordingProvider:
    domain = "https://cdn.example.com"

    def __init__(self):
        self.saved = []

    def save_file_uploaded(self, data, dst):
        self.saved.append(dst)
        return Image(url=dst, cloud_name="s3")


@pytest.fixture
def connection():
    conn = sqlite3.connect(":memory:", check_same_thread=False)
    create_schema(conn)
    conn.execute(
        "INSERT INTO users (id, email, first_name, last_name, role) "
        "VALUES (7, 'owner@example.com', 'Ann', 'Lee', 'user')"
    )
    conn.commit()
    yield conn
    conn.close()


def make_client(connection, user=OWNER, provider=None):
    ctx = AppContext(
        db=connection,
        upload_provider=provider,
        secret="secret",
        authenticate=lambda req: user,
    )
    return create_app(ctx).test_client()


def add_restaurant(connection, name, owner_id=7):
    data = RestaurantCreate(name=name, address="Somewhere", owner_id=owner_id)
    SQLStore(connection).create(data)
    return data.id


def public_id(restaurant_id):
    return str(UID(restaurant_id, DB_TYPE_RESTAURANT, 1))


def test_create_returns_masked_id(connection):
    response = make_client(connection).post(
        "/restaurants", json={"name": "  Pho  ", "address": " Main St "}
    )
    assert response.status_code == 200
    stored = SQLStore(connection).find_data_with_condition({})
    assert stored.name == "Pho"
    assert stored.address == "Main St"
    data = response.get_json()["data"]
    assert data == public_id(stored.id)
    assert from_base58(data).local_id == stored.id


def test_create_blank_name_is_invalid(connection):
    response = make_client(connection).post(
        "/restaurants", json={"name": "   ", "address": "Main St"}
    )
    assert response.status_code == 400
    body = response.get_json()
    assert body["error_key"] == "ErrInvalidRequest"
    assert body["message"] == "invalid request"
    assert body["log"] == "name cannot be blank"


def test_create_rejects_non_string_name(connection):
    response = make_client(connection).post(
        "/restaurants", json={"name": 5, "address": "Main St"}
    )
    assert response.status_code == 400
    assert response.get_json()["error_key"] == "ErrInvalidRequest"


def test_get_restaurant_includes_owner(connection):
    rid = add_restaurant(connection, "Noodle Bar")
    response = make_client(connection).get(f"/restaurants/{public_id(rid)}")
    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["name"] == "Noodle Bar"
    assert data["id"] == public_id(rid)
    assert data["user"]["first_name"] == "Ann"
    assert data["user"]["id"] == str(UID(7, DB_TYPE_USER, 1))


def test_get_with_malformed_id(connection):
    response = make_client(connection).get("/restaurants/0OIl")
    assert response.status_code == 400
    assert response.get_json()["error_key"] == "ErrInvalidRequest"


def test_get_missing_restaurant(connection):
    response = make_client(connection).get(f"/restaurants/{public_id(42)}")
    assert response.status_code == 400
    assert response.get_json()["log"] == "data not found"


def test_list_skips_deleted_and_orders_newest_first(connection):
    first = add_restaurant(connection, "First")
    second = add_restaurant(connection, "Second")
    third = add_restaurant(connection, "Third")
    SQLStore(connection).update({"id": second}, RestaurantUpdate(status=0))

    response = make_client(connection).get("/restaurants?limit=10")
    assert response.status_code == 200
    body = response.get_json()
    assert [item["id"] for item in body["data"]] == [public_id(third), public_id(first)]
    assert body["paging"] == {"page": 1, "limit": 10, "total": 2}
    assert body["filter"] == {"_": 0}


def test_list_replaces_out_of_range_paging(connection):
    add_restaurant(connection, "Only")
    body = make_client(connection).get("/restaurants?page=0&limit=500").get_json()
    assert body["paging"]["page"] == 1
    assert body["paging"]["limit"] == 10


def test_list_filters_by_owner(connection):
    add_restaurant(connection, "Mine", owner_id=7)
    other = add_restaurant(connection, "Theirs", owner_id=8)
    body = make_client(connection).get("/restaurants?user_id=8").get_json()
    assert [item["id"] for item in body["data"]] == [public_id(other)]
    assert body["filter"] == {"_": 8}


def test_list_with_bad_page(connection):
    response = make_client(connection).get("/restaurants?page=abc")
    assert response.status_code == 400
    assert set(response.get_json()) == {"error"}


def test_list_with_bad_user_id(connection):
    response = make_client(connection).get("/restaurants?user_id=abc")
    assert response.status_code == 400
    assert response.get_json()["error_key"] == "ErrInvalidRequest"


def test_owner_can_update(connection):
    rid = add_restaurant(connection, "Old")
    response = make_client(connection).put(
        f"/restaurants/{public_id(rid)}", json={"name": "  New  "}
    )
    assert response.status_code == 200
    assert response.get_json() == {"data": True}
    assert SQLStore(connection).find_data_with_condition({"id": rid}).name == "New"


def test_stranger_cannot_update(connection):
    rid = add_restaurant(connection, "Old")
    stranger = FakeUser(99, "stranger@example.com", "user")
    response = make_client(connection, user=stranger).put(
        f"/restaurants/{public_id(rid)}", json={"name": "Hijacked"}
    )
    assert response.status_code == 400
    assert response.get_json()["error_key"] == "ErrNoPermission"
    assert SQLStore(connection).find_data_with_condition({"id": rid}).name == "Old"


def test_admin_can_update(connection):
    rid = add_restaurant(connection, "Old")
    admin = FakeUser(99, "admin@example.com", "admin")
    response = make_client(connection, user=admin).put(
        f"/restaurants/{public_id(rid)}", json={"address": "New Street"}
    )
    assert response.status_code == 200
    assert SQLStore(connection).find_data_with_condition({"id": rid}).address == "New Street"


def test_update_blank_name_is_internal_error(connection):
    rid = add_restaurant(connection, "Old")
    response = make_client(connection).put(
        f"/restaurants/{public_id(rid)}", json={"name": "  "}
    )
    assert response.status_code == 500
    body = response.get_json()
    assert body["error_key"] == "ErrInternal"
    assert body["log"] == "name cannot be blank"


def test_delete_then_delete_again(connection):
    rid = add_restaurant(connection, "Doomed")
    client = make_client(connection)
    response = client.delete(f"/restaurants/{public_id(rid)}")
    assert response.status_code == 200
    assert response.get_json() == {"data": True}
    assert SQLStore(connection).find_data_with_condition({"id": rid}).status == 0

    again = client.delete(f"/restaurants/{public_id(rid)}")
    assert again.status_code == 500
    assert again.get_json()["log"] == "data has been deleted"


def test_authentication_failure_is_reported(connection):
    def reject(req):
        raise new_unauthorized(None, "missing token", "ErrUnauthorized")

    ctx = AppContext(db=connection, authenticate=reject)
    response = create_app(ctx).test_client().get("/restaurants")
    assert response.status_code == 401
    assert response.get_json()["error_key"] == "ErrUnauthorized"


def test_missing_authenticator_is_internal_error(connection):
    response = create_app(AppContext(db=connection)).test_client().get("/restaurants")
    assert response.status_code == 500
    assert response.get_json()["error_key"] == "ErrInternal"


def test_required_roles_allows_listed_role(connection):
    app = create_app(AppContext(db=connection))
    guarded = required_roles("admin", "owner")(lambda: "ok")
    with app.test_request_context():
        setattr(g, CURRENT_USER, FakeUser(1, "admin@example.com", "owner"))
        assert guarded() == "ok"


def test_required_roles_rejects_other_role(connection):
    app = create_app(AppContext(db=connection))
    guarded = required_roles("admin")(lambda: "ok")
    with app.test_request_context():
        setattr(g, CURRENT_USER, OWNER)
        with pytest.raises(AppError) as caught:
            guarded()
    assert caught.value.key == "ErrNoPermission"


def test_handle_app_error_keeps_app_errors(connection):
    app = create_app(AppContext(db=connection))
    with app.app_context():
        response, status = handle_app_error(err_db(ValueError("boom")))
    assert status == 500
    assert response.get_json()["error_key"] == "DB_ERROR"
    assert response.get_json()["log"] == "boom"


def test_handle_app_error_wraps_other_errors(connection):
    app = create_app(AppContext(db=connection))
    with app.app_context():
        response, status = handle_app_error(KeyError("missing"))
    assert status == 500
    assert response.get_json()["message"] == "something went wrong with server"


def _png(width, height):
    buffer = io.BytesIO()
    PILImage.new("RGB", (width, height)).save(buffer, format="PNG")
    return buffer.getvalue()


def test_upload_image(connection):
    provider = RecordingProvider()
    client = make_client(connection, provider=provider)
    response = client.post(
        "/upload",
        data={"file": (io.BytesIO(_png(4, 3)), "photo.png"), "folder": "menus"},
        content_type="multipart/form-data",
    )
    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["url"] == f"{provider.domain}/{provider.saved[0]}"
    assert provider.saved[0].startswith("menus/")
    assert (data["width"], data["height"]) == (4, 3)
    assert data["extension"] == ".png"
    assert data["cloud_name"] == "s3"


def test_upload_without_file(connection):
    client = make_client(connection, provider=RecordingProvider())
    response = client.post(
        "/upload", data={"folder": "menus"}, content_type="multipart/form-data"
    )
    assert response.status_code == 400
    assert response.get_json()["error_key"] == "ErrInvalidRequest"


def test_upload_rejects_non_image(connection):
    provider = RecordingProvider()
    client = make_client(connection, provider=provider)
    response = client.post(
        "/upload",
        data={"file": (io.BytesIO(b"plain text"), "notes.txt")},
        content_type="multipart/form-data",
    )
    assert response.status_code == 500
    assert response.get_json()["log"] == "file is not image"
    assert provider.saved == []


def test_profile_returns_current_user(connection):
    response = make_client(connection).get("/profile")
    assert response.status_code == 200
    assert response.get_json()["data"] == {
        "user_id": OWNER.user_id,
        "email": OWNER.email,
        "role": OWNER.role,
    }