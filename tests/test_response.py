from eatery.image import Image
from eatery.response import (
    Paging,
    SuccessResponse,
    simple_success_response,
    success_response,
)
from eatery.uid import UID, from_base58


def test_process_fills_defaults():
    paging = Paging()
    paging.process()
    assert (paging.page, paging.limit) == (1, 10)


def test_process_keeps_valid_values():
    paging = Paging(page=3, limit=100)
    paging.process()
    assert (paging.page, paging.limit) == (3, 100)


def test_process_resets_oversized_limit():
    paging = Paging(page=-2, limit=101)
    paging.process()
    assert paging.page == 1
    assert paging.limit == 10


def test_paging_to_dict():
    assert Paging(2, 20, 55).to_dict() == {"page": 2, "limit": 20, "total": 55}


def test_simple_response_omits_paging_and_filter():
    assert simple_success_response(True).to_dict() == {"data": True}


def test_full_response_includes_paging_and_filter():
    body = success_response([1, 2], Paging(1, 10, 2), {"user_id": 4}).to_dict()
    assert body == {
        "data": [1, 2],
        "paging": {"page": 1, "limit": 10, "total": 2},
        "filter": {"user_id": 4},
    }


def test_uid_data_serialises_as_string():
    uid = UID(9, 1, 1)
    body = simple_success_response(uid).to_dict()
    assert from_base58(body["data"]) == uid


def test_nested_objects_use_to_dict():
    img = Image(id=1, url="a.png", width=2, height=3)
    body = SuccessResponse([img]).to_dict()
    assert body["data"] == [img.to_dict()]