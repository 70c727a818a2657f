import subprocess
import unittest
from unittest import mock

from fastapi.testclient import TestClient

from zfs_api import __version__
from zfs_api.main import app


class HealthEndpointTests(unittest.TestCase):
    def setUp(self):
        self.client = TestClient(app)

    @mock.patch("zfs_api.services.zfs_cli.subprocess.run")
    def test_reports_zfs_version(self, run):
        run.return_value = subprocess.CompletedProcess(
            args=[], returncode=0, stdout="zfs-2.2.2-1\nzfs-kmod-2.2.2-1\n", stderr=""
        )

        body = self.client.get("/v1/health").json()

        self.assertEqual(body["status"], "healthy")
        self.assertEqual(body["zfs_version"], "zfs-2.2.2-1")
        self.assertEqual(body["version"], __version__)
        self.assertGreaterEqual(body["uptime_seconds"], 0)

    @mock.patch("zfs_api.services.zfs_cli.subprocess.run", side_effect=FileNotFoundError("zfs"))
    def test_missing_zfs_binary(self, run):
        body = self.client.get("/v1/health").json()

        self.assertEqual(body["status"], "no_zfs")
        self.assertEqual(body["zfs_version"], "unknown")


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
