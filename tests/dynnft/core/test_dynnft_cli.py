# Tests for the dynnft_cli module.
#
# The CLI is run in-process against a configuration file that does not exist,
# so the built-in defaults apply.

import io
import json
import os
import tempfile
import unittest
from contextlib import redirect_stdout, redirect_stderr
from unittest.mock import patch
from urllib.parse import quote

from dynnft.core.dynnft_cli import main

LOCAL_BASE = "http://localhost:8080/api/v1/query?extract=true&unwrap=true&statement="
TESTNET_BASE = "https://testnets.tableland.network/api/v1/query?extract=true&unwrap=true&statement="
EXPECTED_42 = (
    "select json_object('name','Friendship Seed #'||tokens_31337_2.id,"
    "'image','ipfs://'||cid||'/'||stage||'.jpg',"
    "'attributes',json_array("
    "json_object('display_type','string','trait_type','Flower Stage','value',stage),"
    "json_object('display_type','string','trait_type','Flower Color','value',color))) "
    "from tokens_31337_2 join flowers_31337_1 on tokens_31337_2.stage_id = flowers_31337_1.id "
    "where tokens_31337_2.id=42 group by tokens_31337_2.id"
)
BINDING_ARGS = ["--catalog-table-id", "1", "--instance-table-id", "2"]


class DynNFTCLITests(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.config_file = os.path.join(self.tmp.name, "config.json")

    def tearDown(self):
        self.tmp.cleanup()

    def run_cli(self, *argv):
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            rc = main(["--quiet", "--config-file", self.config_file] + list(argv))
        return rc, out.getvalue(), err.getvalue()

    def test_no_subcommand(self):
        rc, _, _ = self.run_cli()
        self.assertEqual(rc, 1)

    def test_statement(self):
        rc, out, _ = self.run_cli("statement", "42", *BINDING_ARGS)
        self.assertEqual(rc, 0)
        self.assertEqual(out.strip(), EXPECTED_42)

    def test_uri(self):
        rc, out, _ = self.run_cli("uri", "42", *BINDING_ARGS)
        self.assertEqual(rc, 0)
        self.assertEqual(out.strip(), LOCAL_BASE + quote(EXPECTED_42, safe=''))

    def test_uri_testnet(self):
        rc, out, _ = self.run_cli("-n", "testnets", "--chain-id", "80001", "uri", "3", *BINDING_ARGS)
        self.assertEqual(rc, 0)
        self.assertTrue(out.startswith(TESTNET_BASE))
        self.assertIn(quote("tokens_80001_2", safe=''), out)

    def test_negative_token_id(self):
        rc, _, err = self.run_cli("statement", "-1", *BINDING_ARGS)
        self.assertEqual(rc, 1)
        self.assertIn("ValueError", err)

    def test_config_file_settings(self):
        with open(self.config_file, "w", encoding="utf-8") as f:
            json.dump({"network": {"mode": "mainnet", "chain_id": 1},
                       "gateway": {"mainnet": "https://tableland.network"},
                       "metadata": {"name_prefix": "Plant #"}}, f)
        rc, out, _ = self.run_cli("uri", "7", *BINDING_ARGS)
        self.assertEqual(rc, 0)
        self.assertTrue(out.startswith("https://tableland.network/api/v1/query?"))
        self.assertIn(quote("'Plant #'||tokens_1_2.id", safe=''), out)

    @patch("dynnft.core.dynnft_cli.fetch_metadata")
    def test_metadata(self, fetch):
        fetch.return_value = {"name": "Friendship Seed #42"}
        rc, out, _ = self.run_cli("metadata", "42", *BINDING_ARGS)
        self.assertEqual(rc, 0)
        self.assertEqual(json.loads(out), {"name": "Friendship Seed #42"})
        (uri,), _ = fetch.call_args
        self.assertEqual(uri, LOCAL_BASE + quote(EXPECTED_42, safe=''))

    @patch("dynnft.core.dynnft_cli.fetch_metadata")
    def test_metadata_unavailable(self, fetch):
        fetch.return_value = None
        rc, _, err = self.run_cli("metadata", "42", *BINDING_ARGS)
        self.assertEqual(rc, 1)
        self.assertIn("No metadata available for token 42", err)

    def test_demo(self):
        rc, out, _ = self.run_cli("demo", "--grow", "1")
        self.assertEqual(rc, 0)
        lines = out.splitlines()
        self.assertEqual(lines[:2], ["flowers: flowers_31337_1", "tokens: tokens_31337_2"])
        self.assertTrue(lines[2].startswith(LOCAL_BASE))
        metadata = json.loads("\n".join(lines[3:]))
        self.assertEqual(metadata["name"], "Friendship Seed #1")
        self.assertEqual(metadata["image"], "ipfs://bafy-purple-stage/purple.jpg")

    def test_demo_bad_seeds(self):
        path = os.path.join(self.tmp.name, "seeds.json")
        with open(path, "w", encoding="utf-8") as f:
            json.dump({"catalog": []}, f)
        rc, _, err = self.run_cli("demo", "--seeds-file", path)
        self.assertEqual(rc, 1)
        self.assertIn("Invalid seed document", err)

    def test_demo_missing_seeds(self):
        rc, _, _ = self.run_cli("demo", "--seeds-file", os.path.join(self.tmp.name, "missing.json"))
        self.assertEqual(rc, 1)


if __name__ == '__main__':
    unittest.main()
