import io
import tempfile
import unittest
from unittest.mock import patch

from sdkprovisioner.cli_logger import Logger


class TestProgress(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.logger = Logger(log_dir=self.temp_dir.name)

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_bar_is_redrawn_while_downloading(self):
        with patch('sys.stdout', new_callable=io.StringIO) as mock_stdout:
            chunks = list(self.logger.progress(iter([b"abc", b"def"]), total=6, redraw_interval=0))

        output = mock_stdout.getvalue()
        self.assertEqual(chunks, [b"abc", b"def"])
        self.assertTrue(output.startswith("Downloading...\n"))
        self.assertEqual(output.count("\r"), 2)
        self.assertIn(" 50%", output)
        self.assertIn("100%", output)
        self.assertTrue(output.endswith("\n"))

    def test_redraws_are_throttled(self):
        with patch('sys.stdout', new_callable=io.StringIO) as mock_stdout:
            list(self.logger.progress(iter([b"a"] * 4), total=4, redraw_interval=3600))

        # first chunk and completion only
        self.assertEqual(mock_stdout.getvalue().count("\r"), 2)

    def test_unknown_size_passes_chunks_through(self):
        with patch('sys.stdout', new_callable=io.StringIO) as mock_stdout:
            chunks = list(self.logger.progress(iter([b"abc"]), total=0))

        self.assertEqual(chunks, [b"abc"])
        self.assertEqual(mock_stdout.getvalue(), "")


if __name__ == '__main__':
    unittest.main()
