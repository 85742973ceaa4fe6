# Tests for the gateway_binding module.
#
# The HTTP session is replaced by mocks, so no gateway needs to be running.

import unittest
from unittest.mock import MagicMock, patch
from urllib.parse import quote

import requests

from dynnft.core import GatewayBinding, GatewayClient, GatewayPathError, fetch_metadata, NotModified

STATEMENT = "select json_object('name','Friendship Seed #'||T.id) from tokens_31337_2 as T where T.id=1"
METADATA = {"name": "Friendship Seed #1"}


def _response(status_code=200, payload=None, headers=None, url="http://localhost:8080/"):
    r = MagicMock()
    r.status_code = status_code
    r.reason = "Not Found" if status_code == 404 else "OK"
    r.url = url
    r.content = b""
    r.headers = headers or {}
    r.json.return_value = payload
    return r


class GatewayBindingTests(unittest.TestCase):

    def setUp(self):
        self.binding = GatewayBinding("http", "localhost:8080")
        self.binding._session = MagicMock()

    def test_server_uri(self):
        self.assertEqual(self.binding.get_server_uri(), "http://localhost:8080")

    def test_check_path(self):
        for path in [None, ""]:
            with self.assertRaises(GatewayPathError):
                self.binding.check_path(path)
        with self.assertRaises(GatewayPathError):
            self.binding.get("api/v1/query")
        self.binding._session.get.assert_not_called()

    def test_get_error_status(self):
        self.binding._session.get.return_value = _response(500)
        with self.assertRaises(requests.HTTPError):
            self.binding.get("/api/v1/query")

    def test_etag_cache(self):
        first = _response(payload=METADATA, headers={"etag": "abc"})
        self.binding._session.get.return_value = first
        self.assertIs(self.binding.get("/x"), first)

        self.binding._session.get.return_value = _response(304)
        self.assertIs(self.binding.get("/x"), first)
        _, kwargs = self.binding._session.get.call_args
        self.assertEqual(kwargs["headers"], {"if-none-match": "abc"})

        with self.assertRaises(NotModified):
            self.binding.get("/x", raise_not_modified=True)

    def test_for_uri(self):
        binding, path = GatewayBinding.for_uri("https://tableland.network/api/v1/query?statement=select%201")
        self.assertEqual(binding.get_server_uri(), "https://tableland.network")
        self.assertEqual(path, "/api/v1/query?statement=select%201")
        with self.assertRaises(ValueError):
            GatewayBinding.for_uri("/relative/path")


class GatewayClientTests(unittest.TestCase):

    def setUp(self):
        self.client = GatewayClient("http", "localhost:8080")
        self.client._session = MagicMock()

    def test_query_path(self):
        self.assertEqual(self.client.query_path("select 1", extract=False, unwrap=True),
                         "/api/v1/query?extract=false&unwrap=true&statement=select%201")

    def test_read(self):
        self.client._session.get.return_value = _response(payload=METADATA)
        self.assertEqual(self.client.read(STATEMENT), METADATA)
        (url,), _ = self.client._session.get.call_args
        self.assertEqual(url, "http://localhost:8080/api/v1/query?extract=true&unwrap=true&statement=" +
                         quote(STATEMENT, safe=''))

    def test_read_no_rows(self):
        self.client._session.get.return_value = _response(404)
        self.assertIsNone(self.client.read(STATEMENT))


class FetchMetadataTests(unittest.TestCase):

    uri = "http://localhost:8080/api/v1/query?extract=true&unwrap=true&statement=" + quote(STATEMENT, safe='')

    @patch("dynnft.core.gateway_binding.get_new_requests_session")
    def test_fetch(self, new_session):
        session = new_session.return_value
        session.get.return_value = _response(payload=METADATA)
        self.assertEqual(fetch_metadata(self.uri), METADATA)
        (url,), _ = session.get.call_args
        self.assertEqual(url, self.uri)
        session.close.assert_called()

    @patch("dynnft.core.gateway_binding.get_new_requests_session")
    def test_fetch_unavailable(self, new_session):
        new_session.return_value.get.return_value = _response(404)
        self.assertIsNone(fetch_metadata(self.uri))

    @patch("dynnft.core.gateway_binding.get_new_requests_session")
    def test_fetch_server_error(self, new_session):
        new_session.return_value.get.return_value = _response(503)
        with self.assertRaises(requests.HTTPError):
            fetch_metadata(self.uri)


if __name__ == '__main__':
    unittest.main()
