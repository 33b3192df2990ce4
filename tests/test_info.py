"""Tests for pulse.info -- connection metadata lookup."""

import unittest

from aiohttp import web
from aiohttp.test_utils import AioHTTPTestCase

from pulse.info import ConnectionInfo, ConnectionInfoProvider

IPAPI_SAMPLE = {
    "ip": "203.0.113.7",
    "city": "Berlin",
    "country_name": "Germany",
    "org": "Example Net GmbH",
    "asn": "AS64500",
}


class TestConnectionInfo(unittest.TestCase):
    def test_from_dict(self):
        ci = ConnectionInfo.from_dict(IPAPI_SAMPLE)
        self.assertEqual(ci.ip, "203.0.113.7")
        self.assertEqual(ci.isp, "Example Net GmbH")
        self.assertEqual(ci.location, "Berlin, Germany")
        self.assertEqual(ci.connection_type, "Unknown")

    def test_isp_falls_back_to_asn(self):
        ci = ConnectionInfo.from_dict({"ip": "1.2.3.4", "asn": "AS64500"})
        self.assertEqual(ci.isp, "AS64500")

    def test_location_skips_missing_parts(self):
        self.assertEqual(ConnectionInfo(country="Germany").location, "Germany")
        self.assertEqual(ConnectionInfo().location, "")

    def test_from_dict_defaults(self):
        ci = ConnectionInfo.from_dict({})
        self.assertEqual((ci.ip, ci.isp, ci.location), ("", "", ""))

    def test_to_dict(self):
        d = ConnectionInfo.from_dict(IPAPI_SAMPLE).to_dict()
        self.assertEqual(d["location"], "Berlin, Germany")
        self.assertEqual(d["isp"], "Example Net GmbH")


class TestConnectionInfoProvider(AioHTTPTestCase):
    async def get_application(self):
        async def ok(request):
            return web.json_response(IPAPI_SAMPLE)

        async def broken(request):
            return web.Response(status=429, text="rate limited")

        async def garbage(request):
            return web.Response(text="<html>not json</html>", content_type="text/html")

        async def listing(request):
            return web.json_response([1, 2, 3])

        app = web.Application()
        app.router.add_get("/json/", ok)
        app.router.add_get("/broken", broken)
        app.router.add_get("/garbage", garbage)
        app.router.add_get("/list", listing)
        return app

    def _provider(self, path):
        return ConnectionInfoProvider(str(self.server.make_url(path)), timeout=2.0)

    async def test_lookup(self):
        info = await self._provider("/json/").lookup()
        self.assertEqual(info.ip, "203.0.113.7")
        self.assertEqual(info.location, "Berlin, Germany")

    async def test_error_status_returns_none(self):
        with self.assertLogs("pulse.info", level="WARNING"):
            self.assertIsNone(await self._provider("/broken").lookup())

    async def test_invalid_json_returns_none(self):
        with self.assertLogs("pulse.info", level="WARNING"):
            self.assertIsNone(await self._provider("/garbage").lookup())

    async def test_non_object_returns_none(self):
        with self.assertLogs("pulse.info", level="WARNING"):
            self.assertIsNone(await self._provider("/list").lookup())

    async def test_unreachable_returns_none(self):
        provider = ConnectionInfoProvider("http://127.0.0.1:1/json/", timeout=2.0)
        with self.assertLogs("pulse.info", level="WARNING"):
            self.assertIsNone(await provider.lookup())


if __name__ == "__main__":
    unittest.main()
