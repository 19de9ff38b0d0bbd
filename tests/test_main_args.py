import unittest

from unittest import mock

from config.config import AppConfig
from core.exceptions import ValidationError
from main import apply_overrides
from main import parse_args
from main import validate_config


def _config(**overrides) -> AppConfig:
    values = {
        "storyblok_oauth_token": "oauth",
        "storyblok_cdn_token": "cdn",
        "storyblok_space_id": "12345"
    }
    values.update(overrides)
    return AppConfig(**values)


class TestMainArgs(unittest.TestCase):
    """Tests for CLI argument parser and overrides."""

    def test_parse_defaults(self) -> None:
        """Unset options should stay None so env config applies.

        Args:
            self: Test case instance.
        """

        with mock.patch("sys.argv", ["prog"]):
            args = parse_args()

        self.assertIsNone(args.space_id)
        self.assertIsNone(args.max_size_kb)
        self.assertIsNone(args.include_drafts)
        self.assertIsNone(args.human_report)
        self.assertEqual(args.top, 30)
        self.assertFalse(args.debug)

    def test_overrides_replace_env_values(self) -> None:
        """CLI values should win over environment configuration.

        Args:
            self: Test case instance.
        """

        args = parse_args(
            [
                "--space-id",
                "999",
                "--max-size-kb",
                "150",
                "--asset-types",
                "all",
                "--no-include-drafts",
                "--human-report",
                "--debug"
            ]
        )

        config = apply_overrides(config = _config(), args = args)

        self.assertEqual(config.storyblok_space_id, "999")
        self.assertEqual(config.threshold_bytes, 150 * 1024)
        self.assertEqual(config.allowed_asset_types, frozenset({"all"}))
        self.assertFalse(config.include_drafts)
        self.assertTrue(config.human_report)
        self.assertTrue(config.debug)
        self.assertEqual(config.storyblok_oauth_token, "oauth")

    def test_validate_requires_tokens(self) -> None:
        """Missing CDN token should fail validation.

        Args:
            self: Test case instance.
        """

        args = parse_args([])

        with self.assertRaises(ValidationError):
            validate_config(config = _config(storyblok_cdn_token = ""), args = args)
        with self.assertRaises(ValidationError):
            validate_config(config = _config(storyblok_space_id = "abc"), args = args)
        self.assertEqual(validate_config(config = _config(), args = args), 12345)

    def test_validate_rejects_non_finite_threshold(self) -> None:
        """NaN or infinite size limits should fail validation.

        Args:
            self: Test case instance.
        """

        for raw in ["nan", "inf"]:
            with self.subTest(raw = raw):
                args = parse_args(["--max-size-kb", raw])
                config = apply_overrides(config = _config(), args = args)

                with self.assertRaises(ValidationError):
                    validate_config(config = config, args = args)


if __name__ == "__main__":
    unittest.main()
