import os
import tempfile
import unittest
from unittest import mock

from db.token_store import TokenStore
from fake_backend import USER, FakeBackend, cart_item_json
from utils.config import DEFAULT_API_URL, Settings
from utils.state import AppState


class SettingsTestCase(unittest.TestCase):
    def test_defaults(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            settings = Settings.from_env()
        self.assertEqual(settings.api_url, DEFAULT_API_URL)

    def test_overrides(self):
        env = {
            "STOREFRONT_API_URL": "http://localhost:4000/",
            "STOREFRONT_DB_PATH": "/tmp/x.sqlite",
            "STOREFRONT_TIMEOUT": "2.5",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            settings = Settings.from_env()
        self.assertEqual(settings.api_url, "http://localhost:4000")
        self.assertEqual(settings.db_path, "/tmp/x.sqlite")
        self.assertEqual(settings.timeout, 2.5)

    def test_bad_timeout_falls_back(self):
        with mock.patch.dict(os.environ, {"STOREFRONT_TIMEOUT": "soon"}, clear=True):
            self.assertEqual(Settings.from_env().timeout, 10.0)


class AppStateTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.settings = Settings(
            api_url="http://backend.test",
            db_path=os.path.join(self.temp_dir.name, "state.sqlite"),
        )
        self.backend = FakeBackend()
        self.notices = []
        self.state = AppState(
            self.settings, notify=self.notices.append, transport=self.backend.transport
        )

    async def asyncTearDown(self):
        await self.state.close()

    def tearDown(self):
        self.temp_dir.cleanup()

    async def test_start_restores_session_and_cart(self):
        await TokenStore().save("tok")
        self.backend.on("GET", "/auth/me", (200, {"user": USER}))
        self.backend.on("GET", "/cart", (200, {"cartItems": [cart_item_json(quantity=2)]}))

        self.assertTrue(await self.state.start())
        self.assertEqual(self.state.session.user.email, USER["email"])
        self.assertEqual(self.state.cart.total_items(), 2)

    async def test_start_without_token(self):
        self.assertFalse(await self.state.start())
        self.assertIsNone(self.state.session.user)
        self.assertEqual(self.state.cart.items, [])


if __name__ == "__main__":
    unittest.main()
