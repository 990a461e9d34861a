import logging
from unittest.mock import Mock

import pytest
import requests

from adapters.catalog_api import CatalogApiError
from adapters.session import AuthSession
from catalog_cache import EntityCache
from constants import ErrorText
from models.catalog_item import Camera


def raw_camera(item_id, brand="Canon", model="R5", rate=100):
    return {"id": item_id, "brand": brand, "model": model, "baseDailyRate": rate}


def ids(cache):
    return [item.id for item in cache.items]


@pytest.fixture
def session():
    return AuthSession("test-token")


@pytest.fixture
def fetch():
    return Mock(return_value=[raw_camera("a"), raw_camera("b"), raw_camera("c")])


@pytest.fixture
def cache(fetch, session):
    return EntityCache("camera", Camera, fetch, session)


def test_initial_state(cache):
    assert cache.items == ()
    assert not cache.has_fetched
    assert not cache.loading
    assert cache.error is None


def test_ensure_loaded_fetches_and_populates(cache, fetch):
    assert cache.ensure_loaded() is True

    fetch.assert_called_once_with()
    assert ids(cache) == ["a", "b", "c"]
    assert all(isinstance(item, Camera) for item in cache.items)
    assert cache.has_fetched
    assert not cache.loading
    assert cache.error is None


def test_second_ensure_loaded_is_a_cache_hit(cache, fetch):
    """
    After a successful load with items, ensure_loaded() makes no network call.
    """
    cache.ensure_loaded()
    assert cache.ensure_loaded() is False

    assert fetch.call_count == 1
    assert ids(cache) == ["a", "b", "c"]


def test_single_item_cache_hit(session):
    fetch = Mock(return_value=[raw_camera("x")])
    cache = EntityCache("camera", Camera, fetch, session)
    cache.ensure_loaded()

    cache.ensure_loaded()

    assert ids(cache) == ["x"]
    assert fetch.call_count == 1


def test_empty_result_is_fetched_again(session):
    fetch = Mock(return_value=[])
    cache = EntityCache("camera", Camera, fetch, session)

    cache.ensure_loaded()
    cache.ensure_loaded()

    assert cache.has_fetched
    assert fetch.call_count == 2


def test_force_refresh_always_fetches(cache, fetch):
    cache.ensure_loaded()
    cache.ensure_loaded()
    fetch.return_value = [raw_camera("z")]

    cache.force_refresh()

    assert fetch.call_count == 2
    assert ids(cache) == ["z"]


@pytest.mark.parametrize(
    "payload",
    [
        [raw_camera("a")],
        {"items": [raw_camera("a")]},
        {"data": [raw_camera("a")]},
        {"cameras": [raw_camera("a")], "total": 1},
        {"page": 1, "pageSize": 10, "total": 1, "items": [raw_camera("a")]},
    ],
)
def test_accepts_known_response_shapes(session, payload):
    cache = EntityCache("camera", Camera, Mock(return_value=payload), session)

    cache.ensure_loaded()

    assert ids(cache) == ["a"]
    assert cache.error is None


def test_unknown_shape_gives_empty_list_with_warning(session, caplog):
    cache = EntityCache("camera", Camera, Mock(return_value={"unexpected": True}), session)

    with caplog.at_level(logging.WARNING):
        cache.ensure_loaded()

    assert cache.items == ()
    assert cache.error is None
    assert cache.has_fetched
    assert "Unexpected camera list response" in caplog.text


def test_invalid_entries_are_skipped(session):
    payload = [raw_camera("a"), {"brand": "NoId"}, raw_camera("b")]
    cache = EntityCache("camera", Camera, Mock(return_value=payload), session)

    cache.ensure_loaded()

    assert ids(cache) == ["a", "b"]


@pytest.mark.parametrize(
    "failure",
    [
        CatalogApiError("Loading camera list failed with status 500", 500),
        requests.exceptions.ConnectionError("connection refused"),
    ],
)
def test_failure_sets_error_without_raising(session, failure):
    fetch = Mock(side_effect=failure)
    cache = EntityCache("camera", Camera, fetch, session)

    cache.ensure_loaded()

    assert cache.error == str(failure)
    assert not cache.has_fetched
    assert not cache.loading
    assert cache.items == ()


def test_failure_keeps_previous_items(cache, fetch):
    cache.ensure_loaded()
    fetch.side_effect = CatalogApiError("Service unavailable", 503)

    cache.force_refresh()

    assert ids(cache) == ["a", "b", "c"]
    assert cache.error == "Service unavailable"


def test_failed_first_fetch_is_retried(cache, fetch):
    fetch.side_effect = [CatalogApiError("timeout"), [raw_camera("a")]]

    cache.ensure_loaded()
    assert cache.error == "timeout"

    cache.ensure_loaded()
    assert fetch.call_count == 2
    assert ids(cache) == ["a"]
    assert cache.error is None


def test_not_authenticated_short_circuits(fetch):
    cache = EntityCache("camera", Camera, fetch, AuthSession())

    cache.ensure_loaded()

    fetch.assert_not_called()
    assert cache.error == ErrorText.NOT_AUTHENTICATED.value
    assert cache.items == ()
    assert not cache.loading


class TestFetchOrdering:
    """Responses that arrive after a newer request was issued are dropped."""

    def test_stale_response_is_discarded(self, cache):
        first_seq = cache.begin_fetch()
        second_seq = cache.begin_fetch()

        cache.complete_fetch(second_seq, [raw_camera("new")])
        cache.complete_fetch(first_seq, [raw_camera("old")])

        assert ids(cache) == ["new"]
        assert not cache.loading

    def test_loading_until_latest_request_resolves(self, cache):
        first_seq = cache.begin_fetch()
        second_seq = cache.begin_fetch()

        cache.complete_fetch(first_seq, [raw_camera("old")])
        assert cache.loading
        assert cache.items == ()

        cache.complete_fetch(second_seq, [raw_camera("new")])
        assert not cache.loading
        assert ids(cache) == ["new"]

    def test_stale_failure_is_discarded(self, cache):
        first_seq = cache.begin_fetch()
        second_seq = cache.begin_fetch()

        cache.complete_fetch(second_seq, [raw_camera("new")])
        cache.fail_fetch(first_seq, "boom")

        assert cache.error is None
        assert ids(cache) == ["new"]

    def test_reset_makes_pending_fetch_stale(self, cache):
        seq = cache.begin_fetch()

        cache.reset()
        cache.complete_fetch(seq, [raw_camera("a")])

        assert cache.items == ()
        assert not cache.has_fetched


class TestLocalMutation:
    def test_update_preserves_position(self, cache):
        cache.ensure_loaded()
        replacement = Camera(id="b", brand="Sony", model="A7 IV", base_daily_rate=250)

        assert cache.apply_local_update("b", replacement) is True

        assert ids(cache) == ["a", "b", "c"]
        assert cache.items[1] is replacement

    def test_update_of_unknown_id_is_noop(self, cache):
        cache.ensure_loaded()
        before = cache.items

        assert cache.apply_local_update("zzz", Camera(id="zzz")) is False
        assert cache.items == before

    def test_update_cannot_change_identifier(self, cache):
        cache.ensure_loaded()

        with pytest.raises(ValueError):
            cache.apply_local_update("b", Camera(id="other"))

    def test_update_leaves_error_and_loading_alone(self, cache, fetch):
        cache.ensure_loaded()
        fetch.side_effect = CatalogApiError("down")
        cache.force_refresh()

        cache.apply_local_update("a", Camera(id="a", model="R6"))

        assert cache.error == "down"
        assert not cache.loading

    def test_removal(self, cache):
        cache.ensure_loaded()

        assert cache.apply_local_removal("b") is True
        assert ids(cache) == ["a", "c"]

        assert cache.apply_local_removal("b") is False
        assert ids(cache) == ["a", "c"]

    def test_get(self, cache):
        cache.ensure_loaded()

        assert cache.get("c").id == "c"
        assert cache.get("missing") is None


@pytest.mark.ui
def test_signals_on_load(qtbot, cache):
    with qtbot.wait_signal(cache.items_changed, raising=True) as blocker:
        cache.ensure_loaded()

    assert [item.id for item in blocker.args[0]] == ["a", "b", "c"]


@pytest.mark.ui
def test_error_signal_on_failure(qtbot, cache, fetch):
    fetch.side_effect = CatalogApiError("Service unavailable", 503)

    with qtbot.wait_signal(cache.error_changed, raising=True) as blocker:
        cache.ensure_loaded()

    assert blocker.args == ["Service unavailable"]
