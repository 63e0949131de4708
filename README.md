# eatery

A small backend for a restaurant catalogue. It serves a JSON API built with
Flask for creating, reading, listing, updating and soft-deleting restaurants
stored in SQLite, and for uploading images through a storage provider you
supply.

## Modules

- `eatery.errors`: `AppError` carries an HTTP status code, a client-facing
  message, a log line and an error key; `to_dict()` gives the JSON body
  (`status_code`, `message`, `log`, `error_key`). Helpers build the common
  cases: `err_invalid_request` (400), `err_db` and `err_internal` (500),
  `err_no_permission`, `err_cannot_create_entity`, `err_cannot_list_entity`,
  `err_entity_not_found` and others. It also defines the exceptions
  `DataNotFoundError`, `RecordNotFoundError`, `NameCannotBeBlankError` and
  `AddressCannotBeBlankError`, and the `Requester` protocol (`user_id`,
  `email`, `role`).
- `eatery.response`: `SuccessResponse`, `simple_success_response(data)` and
  `success_response(data, paging, filter)` build
  `{"data": ..., "paging": ..., "filter": ...}`, leaving out `paging` and
  `filter` when they are `None`. `Paging.process()` sets a page below 1 to 1,
  and a limit below 1 or above 100 to 10.
- `eatery.uid`: a `UID` packs a 32-bit local id, a 10-bit object type and an
  18-bit shard id into one number; `str(uid)` is the base58 encoding of that
  number's decimal digits. `from_base58` and `decompose_uid` go the other way
  and raise `ValueError` on bad input. `b58encode`/`b58decode` use the bitcoin
  alphabet.
- `eatery.image`: the `Image` record, stored as compact JSON
  (`image_from_json`, `images_to_json`, `images_from_json`);
  `Image.fulfill(domain)` prefixes the stored path with a domain.
- `eatery.sqlmodel`: `SQLModel` (id, status, timestamps; `mask(db_type)` sets
  the public `fake_id`) and `SimpleUser`.
- `eatery.security`: `gen_salt(length)` returns random ASCII letters (50 when
  the length is negative); `Md5Hasher().hash(text)` returns a hex MD5 digest.
- `eatery.restaurant.models`: `Restaurant`, `RestaurantCreate` and
  `RestaurantUpdate` (whose `validate()` trims name and address and raises if
  either is blank), and `Filter`.
- `eatery.restaurant.storage`: `create_schema(connection)` creates the
  `restaurants` and `users` tables; `SQLStore` creates, finds, lists and
  updates restaurants on a `sqlite3` connection and can load each
  restaurant's owner (`"User"`).
- `eatery.restaurant.biz`: one class per use case: `CreateRestaurantBiz`,
  `GetRestaurantBiz`, `ListRestaurantBiz`, `UpdateRestaurantBiz`,
  `DeleteRestaurantBiz`.
- `eatery.upload`: the `UploadProvider` protocol (a `domain` attribute and
  `save_file_uploaded(data, dst)` returning an `Image`),
  `get_image_dimension(data)` for PNG and JPEG, and `UploadBiz`, which checks
  that the bytes are an image, names the file `<folder>/<nanoseconds><ext>`
  (folder `img` when blank) and hands it to the provider.
- `eatery.web`: `AppContext`, `create_app`, the restaurant and upload
  blueprints, `handle_app_error` and the `required_roles(*roles)` decorator.

## Restaurants in a few lines

```python
import sqlite3

from eatery.response import Paging
from eatery.restaurant.biz import CreateRestaurantBiz, ListRestaurantBiz
from eatery.restaurant.models import Filter, RestaurantCreate
from eatery.restaurant.storage import SQLStore, create_schema

connection = sqlite3.connect(":memory:")
create_schema(connection)
store = SQLStore(connection)

data = RestaurantCreate(name="  Corner Bistro ", address="1 Main Street", owner_id=1)
CreateRestaurantBiz(store, None).create_new_restaurant(data)

paging = Paging()
paging.process()
restaurants = ListRestaurantBiz(store, None).list_restaurant(Filter(), paging)
```

Listings hold only restaurants whose status is not 0, newest first, and set
`paging.total`. Updating is allowed to the restaurant's owner and to requesters
with the `admin` role. Deleting sets the status to 0; a restaurant with status
0 can be neither updated nor deleted again.

## Serving the API

```python
import sqlite3
from dataclasses import dataclass

from eatery.restaurant.storage import create_schema
from eatery.web import AppContext, create_app


@dataclass
class User:
    user_id: int
    email: str
    role: str


def authenticate(request):
    return User(user_id=1, email="someone@example.com", role="user")


connection = sqlite3.connect("eatery.db", check_same_thread=False)
create_schema(connection)
app = create_app(AppContext(db=connection, authenticate=authenticate))
```

Serve `app` with any WSGI server. Routes:

- `POST /restaurants`, `GET /restaurants`, `GET /restaurants/<id>`,
  `PUT /restaurants/<id>`, `DELETE /restaurants/<id>`; ids are the base58
  identifiers. Listing reads `page`, `limit` and `user_id` from the query
  string.
- `POST /upload` with the image in the `file` form field and an optional
  `folder` field (default `img`); it needs an `upload_provider` in the
  context.
- `GET /profile` returns the current user.

Every `AppError` becomes a JSON body with its status code; any other error
becomes a 500 response with the key `ErrInternal`.

## What it does not do

The package has no user accounts: no registration, no login, and no issuing
or checking of tokens. Who the current user is comes entirely from the
`authenticate` callable in `AppContext`; without one, routes that need a user
answer with an internal error. It ships no upload provider that stores files
anywhere, and no command to start a server.

## Tests

The test suite uses pytest, installed with the `test` extra.