import os
import tempfile
import unittest
from unittest.mock import patch

import toml

from sdkprovisioner.config import OsFlavor
from sdkprovisioner.errors import ManifestError
from sdkprovisioner.manifest import ManifestWriter, entries_for, format_entry, read_manifest
from sdkprovisioner.selector import ResolvedVersion, VersionSource


class TestManifestEntries(unittest.TestCase):

    def test_dotnet_records_runtime_and_sdk(self):
        resolved = ResolvedVersion("dotnet", "2.1.509", VersionSource.EXPLICIT, runtime_version="2.1")

        self.assertEqual(entries_for(resolved, OsFlavor.STRETCH), [
            ("DotnetRuntimeVersion", "2.1"),
            ("DotnetSdkVersion", "2.1.509"),
            ("OsType", "stretch"),
        ])

    def test_other_platforms_record_their_version(self):
        resolved = ResolvedVersion("python", "3.9.7", VersionSource.DEFAULT)

        self.assertEqual(entries_for(resolved, OsFlavor.BUSTER), [
            ("PythonRuntimeVersion", "3.9.7"),
            ("OsType", "buster"),
        ])

    def test_format_entry(self):
        self.assertEqual(format_entry("DotnetSdkVersion", "2.1.509"), 'DotnetSdkVersion="2.1.509"\n')
        for bad in ('2.1"', "2\\1", "2.1\nOsType=x"):
            with self.assertRaises(ValueError):
                format_entry("DotnetSdkVersion", bad)


class TestManifestWriter(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.writer = ManifestWriter()
        self.path = self.writer.manifest_path(os.path.join(self.temp_dir.name, "out"))

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_writes_key_value_lines(self):
        self.writer.write(self.path, [("DotnetRuntimeVersion", "2.1"), ("OsType", "stretch")])

        with open(self.path) as f:
            content = f.read()
        self.assertEqual(content, 'DotnetRuntimeVersion="2.1"\nOsType="stretch"\n')
        self.assertEqual(toml.loads(content), {"DotnetRuntimeVersion": "2.1", "OsType": "stretch"})
        self.assertEqual(os.path.basename(self.path), "build-manifest.toml")

    def test_existing_keys_are_never_rewritten(self):
        self.writer.write(self.path, [("DotnetSdkVersion", "2.1.509")])

        with patch('sdkprovisioner.manifest.logger') as mock_logger:
            self.writer.write(self.path, [("DotnetSdkVersion", "2.1.509"), ("OsType", "stretch")])
            mock_logger.warning.assert_not_called()
            self.writer.write(self.path, [("DotnetSdkVersion", "3.1.201")])
            mock_logger.warning.assert_called_once()

        with open(self.path) as f:
            self.assertEqual(f.read(), 'DotnetSdkVersion="2.1.509"\nOsType="stretch"\n')
        self.assertEqual(read_manifest(self.path), {"DotnetSdkVersion": "2.1.509", "OsType": "stretch"})

    def test_read_missing_manifest(self):
        self.assertEqual(read_manifest(self.path), {})

    def test_unparsable_manifest_is_a_manifest_error(self):
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, "w") as f:
            f.write("PythonVersion = = 3.9\n")

        with self.assertRaises(ManifestError) as ctx:
            self.writer.write(self.path, [("OsType", "stretch")])

        self.assertEqual(ctx.exception.manifest_path, self.path)
        self.assertIn(self.path, str(ctx.exception))


if __name__ == '__main__':
    unittest.main()
