"""Tests for the metadata store client."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from winzzers.core.errors import MetadataSyncFailure
from winzzers.services.metadata import MarketMetadata, MetadataClient


def _client():
    session = MagicMock(spec=requests.Session)
    return MetadataClient(base_url="http://meta.local/", session=session, timeout=2.0), session


def test_payload_uses_camel_case():
    payload = MarketMetadata(4, "Title", "Desc", ["a"], created_at=1700000000000).to_payload()
    assert payload == {
        "marketId": 4,
        "title": "Title",
        "description": "Desc",
        "tags": ["a"],
        "createdAt": 1700000000000,
    }


def test_payload_defaults_created_at_to_now():
    with patch("winzzers.services.metadata.time.time", return_value=1700000000.5):
        payload = MarketMetadata(1).to_payload()
    assert payload["createdAt"] == 1700000000500


def test_push_posts_json():
    client, session = _client()
    client.push(MarketMetadata(7, "T", "D"))

    session.post.assert_called_once()
    args, kwargs = session.post.call_args
    assert args[0] == "http://meta.local/api/markets"
    assert kwargs["json"]["marketId"] == 7
    assert kwargs["timeout"] == 2.0
    session.post.return_value.raise_for_status.assert_called_once()


def test_push_raises_on_http_error():
    client, session = _client()
    session.post.return_value.raise_for_status.side_effect = requests.exceptions.HTTPError("500")
    with pytest.raises(MetadataSyncFailure):
        client.push(MarketMetadata(7))


def test_best_effort_swallows_connection_error():
    client, session = _client()
    session.post.side_effect = requests.exceptions.ConnectionError("refused")
    assert client.push_best_effort(MarketMetadata(7)) is False


def test_best_effort_reports_success():
    client, _ = _client()
    assert client.push_best_effort(MarketMetadata(7)) is True
