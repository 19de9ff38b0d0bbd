import os
import io
import time
import logging
import tempfile
import unittest

from utils.logging_setup import _cleanup_old_log_files
from utils.logging_setup import _new_run_log_path
from utils.logging_setup import configure_runtime_logging


class TestLoggingSetup(unittest.TestCase):
    """Tests for runtime log file utilities."""

    def test_new_run_log_path_contains_prefix_and_pid(self) -> None:
        """Generated log path should include prefix and process id.

        Args:
            self: Test case instance.
        """

        with tempfile.TemporaryDirectory() as temp_dir:
            first = _new_run_log_path(
                log_dir = temp_dir,
                log_prefix = "assets_audit"
            )
            time.sleep(0.001)
            second = _new_run_log_path(
                log_dir = temp_dir,
                log_prefix = "assets_audit"
            )

            self.assertTrue(
                os.path.basename(first).startswith("assets_audit_")
            )
            self.assertTrue(
                os.path.basename(first).endswith(f"_{os.getpid()}.log")
            )
            self.assertNotEqual(first, second)

    def test_cleanup_keeps_latest_files_of_prefix(self) -> None:
        """Cleanup should keep only the latest files under same prefix.

        Args:
            self: Test case instance.
        """

        with tempfile.TemporaryDirectory() as temp_dir:
            for index in range(6):
                path = os.path.join(temp_dir, f"assets_audit_20260219_120000_{index}.log")
                with open(path, "w", encoding = "utf-8") as file_obj:
                    file_obj.write("x")
                os.utime(path, (1000 + index, 1000 + index))

            other_path = os.path.join(temp_dir, "unused_components_1.log")
            with open(other_path, "w", encoding = "utf-8") as file_obj:
                file_obj.write("y")

            _cleanup_old_log_files(
                log_dir = temp_dir,
                log_prefix = "assets_audit",
                max_files = 4
            )

            remaining = sorted(
                filename for filename in os.listdir(temp_dir)
                if filename.startswith("assets_audit_")
            )
            self.assertEqual(
                [int(name.rsplit("_", 1)[-1].replace(".log", "")) for name in remaining],
                [2, 3, 4, 5]
            )
            self.assertTrue(os.path.exists(other_path))

    def test_configure_runtime_logging_uses_given_stream(self) -> None:
        """Console handler should write to the provided stream.

        Args:
            self: Test case instance.
        """

        root_logger = logging.getLogger()
        original_handlers = list(root_logger.handlers)
        original_level = root_logger.level
        stream = io.StringIO()
        try:
            with tempfile.TemporaryDirectory() as temp_dir:
                log_path = configure_runtime_logging(
                    log_dir = temp_dir,
                    log_prefix = "unused_components",
                    stream = stream
                )
                logging.getLogger("tests").info("hello stream")
                for handler in list(root_logger.handlers):
                    handler.flush()
                    if isinstance(handler, logging.FileHandler):
                        handler.close()
                    root_logger.removeHandler(handler)

                self.assertTrue(os.path.basename(log_path).startswith("unused_components_"))
            self.assertIn("hello stream", stream.getvalue())
        finally:
            for handler in original_handlers:
                root_logger.addHandler(handler)
            root_logger.setLevel(original_level)


if __name__ == "__main__":
    unittest.main()
