# Tests for the uri_builder module.

import unittest
from urllib.parse import quote

from dynnft.core import build_uri, statement_from_uri, gateway_base_uri, base_uris_for_hosts, NetworkMode, \
    StatementEncodingError, DEFAULT_GATEWAY_URIS, TableRegistry, synthesize

LOCAL_BASE = "http://localhost:8080/api/v1/query?extract=true&unwrap=true&statement="


class BaseUriTests(unittest.TestCase):

    def test_default_bases(self):
        self.assertEqual(DEFAULT_GATEWAY_URIS[NetworkMode.LOCAL_DEVELOPMENT], LOCAL_BASE)
        self.assertEqual(DEFAULT_GATEWAY_URIS[NetworkMode.PUBLIC_TESTNET],
                         "https://testnets.tableland.network/api/v1/query?extract=true&unwrap=true&statement=")
        self.assertEqual(DEFAULT_GATEWAY_URIS[NetworkMode.PRODUCTION_MAINNET],
                         "https://tableland.network/api/v1/query?extract=true&unwrap=true&statement=")

    def test_gateway_base_uri_flags(self):
        self.assertEqual(gateway_base_uri("http://h:1/", extract=False, unwrap=True),
                         "http://h:1/api/v1/query?extract=false&unwrap=true&statement=")

    def test_hosts_mapping(self):
        uris = base_uris_for_hosts({"localhost": "http://127.0.0.1:8080"})
        self.assertEqual(uris, {NetworkMode.LOCAL_DEVELOPMENT:
                                "http://127.0.0.1:8080/api/v1/query?extract=true&unwrap=true&statement="})
        with self.assertRaises(ValueError):
            base_uris_for_hosts({"nowhere": "http://x"})


class BuildUriTests(unittest.TestCase):

    statement = "select json_object('a',1) from t_1_2 where t_1_2.id=3 group by t_1_2.id"

    def test_local(self):
        uri = build_uri(self.statement, NetworkMode.LOCAL_DEVELOPMENT)
        self.assertEqual(uri, LOCAL_BASE + quote(self.statement, safe=''))

    def test_mode_by_value(self):
        self.assertEqual(build_uri(self.statement, "testnets"),
                         build_uri(self.statement, NetworkMode.PUBLIC_TESTNET))
        with self.assertRaises(ValueError):
            build_uri(self.statement, "devnet")

    def test_missing_mode_in_config(self):
        with self.assertRaises(ValueError):
            build_uri(self.statement, NetworkMode.PRODUCTION_MAINNET,
                      {NetworkMode.LOCAL_DEVELOPMENT: LOCAL_BASE})

    def test_reserved_characters_escaped(self):
        encoded = build_uri(",;/?:@&=+$#'\" ", NetworkMode.LOCAL_DEVELOPMENT)[len(LOCAL_BASE):]
        self.assertEqual(encoded, "%2C%3B%2F%3F%3A%40%26%3D%2B%24%23%27%22%20")

    def test_round_trip(self):
        registry = TableRegistry()
        registry.bind("flowers", 31337, 1)
        registry.bind("tokens", 31337, 2)
        for token_id in [0, 1, 42, 123456789]:
            stmt = synthesize(registry, token_id)
            for mode in NetworkMode:
                self.assertEqual(statement_from_uri(build_uri(stmt, mode)), stmt)

    def test_round_trip_unicode(self):
        stmt = "select 'fleur ✿ #' || id from t_1_1"
        self.assertEqual(statement_from_uri(build_uri(stmt, "mainnet")), stmt)

    def test_statement_param_missing(self):
        with self.assertRaises(ValueError):
            statement_from_uri("http://localhost:8080/api/v1/query?extract=true")

    def test_alternate_statement_param(self):
        uri = "http://localhost:8080/query?extract=true&unwrap=true&s=" + quote("select 1", safe='')
        self.assertEqual(statement_from_uri(uri, statement_param="s"), "select 1")

    def test_encoding_failure(self):
        with self.assertRaises(StatementEncodingError):
            build_uri("select '\ud800'", NetworkMode.LOCAL_DEVELOPMENT)
        with self.assertRaises(StatementEncodingError):
            build_uri(None, NetworkMode.LOCAL_DEVELOPMENT)


if __name__ == '__main__':
    unittest.main()
