import unittest
from unittest.mock import MagicMock

import requests

from sector_pulse.integrations.eastmoney_rest import EastMoneyRestClient


def _response(payload):
    response = MagicMock()
    response.raise_for_status.return_value = None
    response.json.return_value = payload
    return response


class TestEastMoneyRestClient(unittest.TestCase):
    def test_fetch_quotes_uses_clist_contract(self):
        session = MagicMock()
        session.get.return_value = _response({"data": {"total": 1, "diff": [{"f12": "BK0477", "f14": "酿酒行业", "f3": 2.1}]}})
        client = EastMoneyRestClient(session=session, base_url="https://example.test/")

        rows = client.fetch_quotes("m:90 t:2", ["f12", "f14", "f3"], limit=3, sort_field="f3")

        self.assertEqual(rows, [{"f12": "BK0477", "f14": "酿酒行业", "f3": 2.1}])
        session.get.assert_called_once_with(
            "https://example.test/api/qt/clist/get",
            params={
                "pn": "1",
                "pz": "3",
                "po": "1",
                "np": "1",
                "fltt": "2",
                "invt": "2",
                "fid": "f3",
                "fs": "m:90 t:2",
                "fields": "f12,f14,f3",
            },
            timeout=5,
        )

    def test_transport_error_returns_empty(self):
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("down")
        client = EastMoneyRestClient(session=session)

        self.assertEqual(client.fetch_quotes("b:MK0354", ["f12"]), [])
        self.assertEqual(client.failures, 1)

    def test_http_error_returns_empty(self):
        session = MagicMock()
        response = MagicMock()
        response.raise_for_status.side_effect = requests.HTTPError("502")
        session.get.return_value = response
        client = EastMoneyRestClient(session=session)

        self.assertEqual(client.fetch_quotes("b:MK0354", ["f12"]), [])

    def test_invalid_json_returns_empty(self):
        session = MagicMock()
        response = MagicMock()
        response.raise_for_status.return_value = None
        response.json.side_effect = ValueError("not json")
        session.get.return_value = response
        client = EastMoneyRestClient(session=session)

        self.assertEqual(client.fetch_quotes("b:MK0354", ["f12"]), [])

    def test_null_data_returns_empty(self):
        session = MagicMock()
        session.get.return_value = _response({"rc": 0, "data": None})
        client = EastMoneyRestClient(session=session)

        self.assertEqual(client.fetch_quotes("b:BK9999", ["f14"]), [])
        self.assertEqual(client.failures, 0)

    def test_positional_diff_object_is_flattened(self):
        session = MagicMock()
        session.get.return_value = _response({"data": {"diff": {"0": {"f14": "A"}, "1": {"f14": "B"}, "2": "junk"}}})
        client = EastMoneyRestClient(session=session)

        self.assertEqual(client.fetch_quotes("b:BK0001", ["f14"]), [{"f14": "A"}, {"f14": "B"}])


if __name__ == "__main__":
    unittest.main()
