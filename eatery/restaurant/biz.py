"""Restaurant use cases: create, read, list, update and soft delete."""

from __future__ import annotations

from eatery.errors import (
    DataNotFoundError,
    Requester,
    err_cannot_create_entity,
    err_cannot_list_entity,
    err_invalid_request,
    err_no_permission,
)
from eatery.response import Paging
from eatery.restaurant.models import (
    ENTITY_NAME,
    Filter,
    Restaurant,
    RestaurantCreate,
    RestaurantUpdate,
)

_ADMIN_ROLE = "admin"


def _find_live(store, restaurant_id: int) -> Restaurant:
    try:
        old = store.find_data_with_condition({"id": restaurant_id})
    except DataNotFoundError as exc:
        raise DataNotFoundError() from exc
    if old.status == 0:
        raise LookupError("data has been deleted")
    return old


class CreateRestaurantBiz:
    """Validates and stores a new restaurant."""

    def __init__(self, store, requester: Requester | None) -> None:
        self.store = store
        self.requester = requester

    def create_new_restaurant(self, data: RestaurantCreate) -> None:
        try:
            data.validate()
        except ValueError as exc:
            raise err_invalid_request(exc) from exc
        try:
            self.store.create(data)
        except Exception as exc:
            raise err_cannot_create_entity(ENTITY_NAME, exc) from exc


class DeleteRestaurantBiz:
    """Marks a restaurant as deleted."""

    def __init__(self, store, requester: Requester | None) -> None:
        self.store = store
        self.requester = requester

    def delete_restaurant(self, restaurant_id: int) -> None:
        _find_live(self.store, restaurant_id)
        self.store.update({"id": restaurant_id}, RestaurantUpdate(status=0))


class GetRestaurantBiz:
    """Fetches one restaurant together with its owner."""

    def __init__(self, store, requester: Requester | None) -> None:
        self.store = store
        self.requester = requester

    def get_restaurant(self, restaurant_id: int) -> Restaurant:
        return self.store.find_data_with_condition({"id": restaurant_id}, "User")


class ListRestaurantBiz:
    """Lists restaurants page by page with their owners."""

    def __init__(self, store, requester: Requester | None) -> None:
        self.store = store
        self.requester = requester

    def list_restaurant(self, filter: Filter, paging: Paging) -> list[Restaurant]:
        try:
            return self.store.list_data_with_condition(filter, paging, "User")
        except Exception as exc:
            raise err_cannot_list_entity(ENTITY_NAME, exc) from exc


class UpdateRestaurantBiz:
    """Applies changes to a restaurant owned by the requester, or by anyone for admins."""

    def __init__(self, store, requester: Requester) -> None:
        self.store = store
        self.requester = requester

    def update_restaurant(self, restaurant_id: int, data: RestaurantUpdate) -> None:
        data.validate()
        old = _find_live(self.store, restaurant_id)
        if self.requester.role != _ADMIN_ROLE and old.owner_id != self.requester.user_id:
            raise err_no_permission(None)
        self.store.update({"id": restaurant_id}, data)