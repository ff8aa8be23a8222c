import io
import os
import tarfile
import tempfile
import unittest
from unittest.mock import patch, MagicMock

import requests

from sdkprovisioner.config import OsFlavor, Settings
from sdkprovisioner.errors import InstallError
from sdkprovisioner.installer import SdkInstaller, archive_name

BASE_URL = "https://sdks.example.com"


def make_tarball(files):
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        for name, content in files.items():
            data = content.encode()
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o755
            tar.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


def _stream_response(data):
    response = MagicMock()
    response.headers = {}
    response.iter_content.return_value = [data]
    return response


class TestArchiveName(unittest.TestCase):

    def test_names_per_flavor(self):
        self.assertEqual(archive_name("dotnet", "2.1.509", OsFlavor.STRETCH), "dotnet-2.1.509.tar.gz")
        self.assertEqual(archive_name("python", "3.9.7", OsFlavor.BUSTER), "python-buster-3.9.7.tar.gz")


class TestSdkInstaller(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.install_root = os.path.join(self.temp_dir.name, "platforms")
        self.settings = Settings(base_url=BASE_URL, install_root=self.install_root, retries=0)
        self.installer = SdkInstaller(self.settings)
        self.install_dir = os.path.join(self.install_root, "dotnet", "2.1.509")
        self.sentinel = os.path.join(self.install_dir, ".sdk-download-sentinel")
        self.tarball = make_tarball({"dotnet": "#!/bin/sh\n", "sdk/2.1.509/README": "sdk\n"})

    def tearDown(self):
        self.temp_dir.cleanup()

    @patch('requests.get')
    def test_install_is_idempotent(self, mock_requests_get):
        mock_requests_get.return_value = _stream_response(self.tarball)

        first = self.installer.ensure_installed("dotnet", "2.1.509")

        mock_requests_get.assert_called_once_with(
            f"{BASE_URL}/dotnet/dotnet-2.1.509.tar.gz", timeout=self.settings.timeout, stream=True
        )
        self.assertFalse(first.already_installed)
        self.assertEqual(first.install_dir, self.install_dir)
        self.assertTrue(os.path.isfile(self.sentinel))
        with open(os.path.join(self.install_dir, "sdk", "2.1.509", "README")) as f:
            self.assertEqual(f.read(), "sdk\n")
        self.assertTrue(os.access(os.path.join(self.install_dir, "dotnet"), os.X_OK))

        mock_requests_get.reset_mock()
        second = self.installer.ensure_installed("dotnet", "2.1.509")

        mock_requests_get.assert_not_called()
        self.assertTrue(second.already_installed)

    @patch('requests.get')
    def test_failed_install_leaves_no_sentinel_and_is_retried(self, mock_requests_get):
        mock_requests_get.side_effect = [
            _stream_response(b"this is not a tarball"),
            _stream_response(self.tarball),
        ]

        with self.assertRaises(InstallError) as ctx:
            self.installer.ensure_installed("dotnet", "2.1.509")
        self.assertEqual(ctx.exception.version, "2.1.509")
        self.assertFalse(self.installer.is_installed("dotnet", "2.1.509"))
        self.assertFalse(os.path.exists(self.install_dir))
        # staging directories are cleaned up
        self.assertEqual(os.listdir(os.path.join(self.install_root, "dotnet")), [])

        report = self.installer.ensure_installed("dotnet", "2.1.509")

        self.assertFalse(report.already_installed)
        self.assertTrue(os.path.isfile(self.sentinel))

    @patch('requests.get')
    def test_partial_directory_is_replaced(self, mock_requests_get):
        mock_requests_get.return_value = _stream_response(self.tarball)
        os.makedirs(self.install_dir)
        with open(os.path.join(self.install_dir, "half-written"), "w") as f:
            f.write("junk")

        self.installer.ensure_installed("dotnet", "2.1.509")

        self.assertFalse(os.path.exists(os.path.join(self.install_dir, "half-written")))
        self.assertTrue(os.path.isfile(os.path.join(self.install_dir, "dotnet")))
        self.assertTrue(os.path.isfile(self.sentinel))
        self.assertEqual(os.listdir(os.path.join(self.install_root, "dotnet")), ["2.1.509"])

    @patch('requests.get')
    def test_download_failure_is_an_install_error(self, mock_requests_get):
        response = MagicMock()
        response.raise_for_status.side_effect = requests.exceptions.ConnectionError("reset")
        mock_requests_get.return_value = response

        with self.assertRaises(InstallError):
            self.installer.ensure_installed("dotnet", "2.1.509")
        self.assertFalse(os.path.exists(self.install_dir))

    @patch('requests.get')
    def test_archive_escaping_the_install_dir_is_rejected(self, mock_requests_get):
        mock_requests_get.return_value = _stream_response(make_tarball({"../../escaped": "x"}))

        with self.assertRaises(InstallError):
            self.installer.ensure_installed("dotnet", "2.1.509")
        self.assertFalse(os.path.exists(os.path.join(self.install_root, "dotnet", "escaped")))
        self.assertFalse(self.installer.is_installed("dotnet", "2.1.509"))

    def test_concurrent_winner_is_kept(self):
        os.makedirs(self.install_dir)
        with open(os.path.join(self.install_dir, "winner"), "w") as f:
            f.write("")
        open(self.sentinel, "w").close()
        tree = os.path.join(self.temp_dir.name, "tree")
        os.makedirs(tree)
        open(os.path.join(tree, "loser"), "w").close()

        self.installer._publish_tree(tree, self.install_dir, "dotnet", "2.1.509", self.install_root)

        self.assertTrue(os.path.exists(os.path.join(self.install_dir, "winner")))
        self.assertFalse(os.path.exists(os.path.join(self.install_dir, "loser")))

    def _assert_single_complete_tree(self):
        self.assertEqual(os.listdir(os.path.join(self.install_root, "dotnet")), ["2.1.509"])
        self.assertEqual(sorted(os.listdir(self.install_dir)), [".sdk-download-sentinel", "dotnet", "sdk"])

    @patch('requests.get')
    def test_rival_publishing_first_is_success(self, mock_requests_get):
        mock_requests_get.side_effect = lambda *args, **kwargs: _stream_response(self.tarball)
        rival = SdkInstaller(self.settings)
        real_publish = rival._publish_tree

        def publish_after_other_installer(*args):
            self.installer.ensure_installed("dotnet", "2.1.509")
            return real_publish(*args)

        with patch.object(rival, "_publish_tree", side_effect=publish_after_other_installer):
            report = rival.ensure_installed("dotnet", "2.1.509")

        self.assertTrue(report.already_installed)
        self.assertTrue(self.installer.is_installed("dotnet", "2.1.509"))
        self._assert_single_complete_tree()

    @patch('requests.get')
    def test_rival_publishing_while_crashed_tree_is_replaced(self, mock_requests_get):
        mock_requests_get.side_effect = lambda *args, **kwargs: _stream_response(self.tarball)
        os.makedirs(self.install_dir)
        with open(os.path.join(self.install_dir, "half-written"), "w") as f:
            f.write("junk")
        rival = SdkInstaller(self.settings)
        rival_reports = []
        real_remove = self.installer._remove_incomplete

        def rival_publishes_first(*args):
            if not rival_reports:
                rival_reports.append(rival.ensure_installed("dotnet", "2.1.509"))
            return real_remove(*args)

        with patch.object(self.installer, "_remove_incomplete", side_effect=rival_publishes_first):
            report = self.installer.ensure_installed("dotnet", "2.1.509")

        self.assertFalse(rival_reports[0].already_installed)
        self.assertTrue(report.already_installed)
        self.assertTrue(self.installer.is_installed("dotnet", "2.1.509"))
        self._assert_single_complete_tree()

    def _fake_install(self, platform, version, complete=True):
        install_dir = os.path.join(self.install_root, platform, version)
        os.makedirs(install_dir)
        if complete:
            open(os.path.join(install_dir, ".sdk-download-sentinel"), "w").close()

    def test_list_installed_only_counts_sentinels(self):
        self._fake_install("dotnet", "3.1.201")
        self._fake_install("dotnet", "2.1.509")
        self._fake_install("dotnet", "5.0.100", complete=False)
        self._fake_install("python", "3.9.7")

        self.assertEqual(
            self.installer.list_installed(),
            {"dotnet": ["2.1.509", "3.1.201"], "python": ["3.9.7"]},
        )
        self.assertEqual(self.installer.list_installed("python"), {"python": ["3.9.7"]})
        self.assertEqual(self.installer.list_installed("nodejs"), {})

    def test_list_installed_without_install_root(self):
        self.assertEqual(self.installer.list_installed(), {})

    def test_uninstall(self):
        self._fake_install("python", "3.9.7")

        self.assertTrue(self.installer.uninstall("python", "3.9.7"))
        self.assertFalse(os.path.exists(os.path.join(self.install_root, "python", "3.9.7")))
        self.assertFalse(self.installer.uninstall("python", "3.9.7"))


if __name__ == '__main__':
    unittest.main()
