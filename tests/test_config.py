import os
import tempfile
import unittest

from unittest import mock

from config.config import AppConfig
from config.config import parse_asset_types


ENV_KEYS = [
    "STORYBLOK_OAUTH_TOKEN",
    "STORYBLOK_CDN_TOKEN",
    "STORYBLOK_PREVIEW_TOKEN",
    "STORYBLOK_DELIVERY_TOKEN",
    "STORYBLOK_SPACE_ID",
    "STORYBLOK_REGION",
    "MAX_SIZE_KB",
    "INCLUDE_DRAFTS",
    "ASSET_TYPES",
    "DEBUG",
    "HUMAN_REPORT"
]


class TestConfig(unittest.TestCase):
    """Tests for config loading behavior."""

    def test_load_from_dotenv(self) -> None:
        """Should read env values from local .env file.

        Args:
            self: Test case instance.
        """

        original_cwd = os.getcwd()
        original_env = dict(os.environ)

        try:
            with tempfile.TemporaryDirectory() as tmp:
                os.chdir(tmp)
                with open(".env", "w", encoding = "utf-8") as fp:
                    fp.write("STORYBLOK_OAUTH_TOKEN=oauth_1\n")
                    fp.write("STORYBLOK_PREVIEW_TOKEN=preview_1\n")
                    fp.write("STORYBLOK_SPACE_ID=12345\n")
                    fp.write("STORYBLOK_REGION=us\n")
                    fp.write("MAX_SIZE_KB=500\n")
                    fp.write("INCLUDE_DRAFTS=false\n")
                    fp.write("DEBUG=1\n")

                for key in ENV_KEYS:
                    os.environ.pop(key, None)

                config = AppConfig.from_env()
                self.assertEqual(config.storyblok_oauth_token, "oauth_1")
                self.assertEqual(config.storyblok_cdn_token, "preview_1")
                self.assertEqual(config.storyblok_space_id, "12345")
                self.assertEqual(config.threshold_bytes, 500 * 1024)
                self.assertFalse(config.include_drafts)
                self.assertTrue(config.debug)
                self.assertFalse(config.human_report)
                self.assertEqual(config.management_base_url, "https://us.api.storyblok.com/v1")
                self.assertEqual(config.cdn_base_url, "https://api-us.storyblok.com/v2")
        finally:
            os.chdir(original_cwd)
            os.environ.clear()
            os.environ.update(original_env)

    def test_defaults_and_existing_env_wins(self) -> None:
        """Process env should not be overridden and defaults should apply.

        Args:
            self: Test case instance.
        """

        env = {"STORYBLOK_OAUTH_TOKEN": "from_env", "STORYBLOK_CDN_TOKEN": "cdn"}
        with mock.patch.dict(os.environ, env, clear = True), \
                mock.patch("config.config.load_dotenv") as load_dotenv:
            config = AppConfig.from_env()

        load_dotenv.assert_called_once()
        self.assertFalse(load_dotenv.call_args.kwargs["override"])
        self.assertEqual(config.storyblok_oauth_token, "from_env")
        self.assertEqual(config.storyblok_region, "eu")
        self.assertEqual(config.threshold_bytes, 307200)
        self.assertTrue(config.include_drafts)
        self.assertEqual(config.max_retries, 4)
        self.assertEqual(config.allowed_asset_types, frozenset({"image", "doc", "video"}))
        self.assertEqual(config.management_base_url, "https://api.storyblok.com/v1")
        self.assertEqual(config.cdn_base_url, "https://api.storyblok.com/v2")

    def test_parse_asset_types(self) -> None:
        """Should normalize case, spaces and blanks.

        Args:
            self: Test case instance.
        """

        self.assertEqual(parse_asset_types(" Image, ,DOC "), frozenset({"image", "doc"}))
        self.assertEqual(parse_asset_types(""), frozenset())


if __name__ == "__main__":
    unittest.main()
