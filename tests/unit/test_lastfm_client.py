"""
Tests for the Last.fm library client.
"""
from unittest.mock import Mock

import pytest
import requests

from artist_sync.core.exceptions import FetchError
from artist_sync.integrations.lastfm.client import LASTFM_API_URL, LastFmClient


def _envelope(artists=None, page="1", total_pages="3"):
    body = {"@attr": {"page": page, "totalPages": total_pages, "user": "test_user"}}
    if artists is not None:
        body["artist"] = artists
    return {"artists": body}


@pytest.fixture
def session():
    return Mock(spec=requests.Session)


@pytest.fixture
def client(config, session):
    return LastFmClient(config, session=session)


def test_get_total_pages_probe_request(client, session, config, make_response):
    session.get.return_value = make_response(payload=_envelope(total_pages="7"))

    assert client.get_total_pages() == 7

    call = session.get.call_args
    assert call.args[0] == LASTFM_API_URL
    assert call.kwargs["params"] == {
        "method": "library.getartists",
        "api_key": config.lastfm_api_key,
        "user": config.lastfm_username,
        "limit": config.page_limit,
        "format": "json",
    }
    assert call.kwargs["timeout"] == config.request_timeout


def test_get_total_pages_zero(client, session, make_response):
    session.get.return_value = make_response(payload=_envelope(total_pages="0"))

    assert client.get_total_pages() == 0


@pytest.mark.parametrize(
    "payload",
    [
        {"artists": {"artist": []}},
        {"artists": {"@attr": {"page": "1"}}},
        _envelope(total_pages="many"),
        _envelope(total_pages=None),
        _envelope(total_pages="-1"),
        {},
    ],
)
def test_get_total_pages_invalid_envelope(client, session, make_response, payload):
    session.get.return_value = make_response(payload=payload)

    with pytest.raises(FetchError):
        client.get_total_pages()


def test_api_error_payload(client, session, make_response):
    session.get.return_value = make_response(payload={"error": 6, "message": "User not found"})

    with pytest.raises(FetchError) as exc_info:
        client.get_total_pages()
    assert "User not found" in str(exc_info.value)


def test_http_error(client, session, make_response):
    session.get.return_value = make_response(500, text="oops")

    with pytest.raises(FetchError):
        client.get_total_pages()


def test_transport_error(client, session):
    session.get.side_effect = requests.ConnectionError("down")

    with pytest.raises(FetchError):
        client.fetch_page(1)


def test_invalid_json(client, session, make_response):
    session.get.return_value = make_response(text="<html>")

    with pytest.raises(FetchError):
        client.fetch_page(1)


def test_fetch_page_returns_records(client, session, make_response):
    records = [{"name": "A", "playcount": "10"}, {"name": "B", "playcount": "5"}]
    session.get.return_value = make_response(payload=_envelope(records, page="2"))

    assert client.fetch_page(2) == records
    assert session.get.call_args.kwargs["params"]["page"] == 2


def test_fetch_page_without_artist_list(client, session, make_response):
    session.get.return_value = make_response(payload=_envelope())

    assert client.fetch_page(4) == []


def test_fetch_page_without_envelope(client, session, make_response):
    session.get.return_value = make_response(payload={"something": "else"})

    assert client.fetch_page(1) == []


def test_fetch_page_single_artist_object(client, session, make_response):
    session.get.return_value = make_response(payload=_envelope({"name": "Solo", "playcount": "1"}))

    assert client.fetch_page(1) == [{"name": "Solo", "playcount": "1"}]


def test_fetch_page_unexpected_artist_field(client, session, make_response):
    session.get.return_value = make_response(payload=_envelope("weird"))

    assert client.fetch_page(1) == []
