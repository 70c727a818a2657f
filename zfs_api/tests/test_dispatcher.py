import os
import tempfile
import unittest

from zfs_api.dispatcher import OPERATIONS, Dispatcher
from zfs_api.models.response import (
    EntitiesData,
    FieldsData,
    ResponseStatus,
    ValueData,
)
from zfs_api.tests.fake_backend import FakeBackend


class DispatcherTests(unittest.TestCase):
    def setUp(self):
        self.backend = FakeBackend()
        self.backend.add_dataset("tank")
        self.backend.add_dataset("tank/src")
        self.backend.add_snapshot("tank/src", "s1", 10)
        self.backend.add_snapshot("tank/src", "s2", 20)
        self.tmp = tempfile.TemporaryDirectory()
        self.dispatcher = Dispatcher(self.backend, zvol_root=self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def test_every_operation_is_routable(self):
        for action in OPERATIONS:
            self.assertTrue(callable(getattr(self.dispatcher, f"_do_{action}")), action)

    def test_listall(self):
        envelope = self.dispatcher.dispatch("listall", {})

        self.assertEqual(envelope.action, "listall")
        self.assertEqual(envelope.status, ResponseStatus.SUCCESS)
        self.assertIsInstance(envelope.data, EntitiesData)
        self.assertEqual(
            [e.name for e in envelope.entities()],
            ["tank", "tank/src", "tank/src@s1", "tank/src@s2"],
        )

    def test_listall_failure_has_no_data(self):
        self.backend.fail_open_all = True

        envelope = self.dispatcher.dispatch("listall", {})

        self.assertEqual(envelope.action, "listall")
        self.assertEqual(envelope.status, ResponseStatus.ERROR)
        self.assertIn("pool I/O error", envelope.error_message)
        self.assertIsNone(envelope.data)

    def test_snapshot(self):
        envelope = self.dispatcher.dispatch("snapshot", {"snapsource": "tank/src", "snapname": "s3"})

        self.assertEqual(envelope.status, ResponseStatus.SUCCESS)
        self.assertEqual(envelope.error_message, "")
        self.assertIsNone(envelope.data)
        self.assertEqual(self.backend.snaps["tank/src"][-1][0], "tank/src@s3")

    def test_lastsnapshot(self):
        envelope = self.dispatcher.dispatch("lastsnapshot", {"dataset": "tank/src"})

        self.assertEqual(envelope.data, ValueData(key="lastsnapshot", value="tank/src@s2"))

    def test_lastsnapshot_without_snapshots_is_empty_success(self):
        envelope = self.dispatcher.dispatch("lastsnapshot", {"dataset": "tank"})

        self.assertEqual(envelope.status, ResponseStatus.SUCCESS)
        self.assertEqual(envelope.data.value, "")

    def test_lastsnapshot_missing_dataset(self):
        envelope = self.dispatcher.dispatch("lastsnapshot", {"dataset": "tank/nope"})

        self.assertEqual(envelope.action, "lastsnapshot")
        self.assertEqual(envelope.status, ResponseStatus.ERROR)
        self.assertEqual(envelope.error_message, "dataset does not exist: tank/nope")
        self.assertIsNone(envelope.data)

    def test_clonelast_then_cloneinfo(self):
        envelope = self.dispatcher.dispatch("clonelast", {"origin": "tank/src", "dataset": "tank/dst"})
        self.assertEqual(envelope.status, ResponseStatus.SUCCESS)

        info = self.dispatcher.dispatch("cloneinfo", {"dataset": "tank/dst"})

        self.assertIsInstance(info.data, FieldsData)
        self.assertEqual(info.data.fields, {"origin": "tank/src@s2", "written": "0"})

    def test_clonelast_without_snapshot(self):
        envelope = self.dispatcher.dispatch("clonelast", {"origin": "tank", "dataset": "tank/dst"})

        self.assertEqual(envelope.status, ResponseStatus.ERROR)
        self.assertEqual(envelope.error_message, "no snapshots found for tank")
        self.assertFalse(self.backend.called("clone"))

    def test_clone_conflict(self):
        envelope = self.dispatcher.dispatch("clone", {"origin": "tank/src@s1", "dataset": "tank/src"})

        self.assertEqual(envelope.status, ResponseStatus.ERROR)
        self.assertIn("already exists", envelope.error_message)

    def test_destroy(self):
        envelope = self.dispatcher.dispatch("destroy", {"dataset": "tank/src"})

        self.assertEqual(envelope.status, ResponseStatus.SUCCESS)
        self.assertNotIn("tank/src", self.backend.datasets)

    def test_rollback(self):
        envelope = self.dispatcher.dispatch("rollback", {"snapshot": "tank/src@s1"})

        self.assertEqual(envelope.status, ResponseStatus.SUCCESS)
        self.assertEqual([p for p, _ in self.backend.snaps["tank/src"]], ["tank/src@s1"])

    def test_checkzvol_never_touches_backend(self):
        os.makedirs(os.path.join(self.tmp.name, "tank"))
        open(os.path.join(self.tmp.name, "tank", "vol1"), "w").close()

        present = self.dispatcher.dispatch("checkzvol", {"dataset": "tank/vol1"})
        missing = self.dispatcher.dispatch("checkzvol", {"dataset": "tank/vol2"})

        self.assertEqual(present.status, ResponseStatus.SUCCESS)
        self.assertEqual(missing.status, ResponseStatus.ERROR)
        self.assertEqual(missing.action, "checkzvol")
        self.assertEqual(missing.error_message, f"tank/vol2 not found in {self.tmp.name}")
        self.assertEqual(self.backend.calls, [])

    def test_unknown_action(self):
        envelope = self.dispatcher.dispatch("format", {})

        self.assertEqual(envelope.action, "format")
        self.assertEqual(envelope.status, ResponseStatus.ERROR)
        self.assertEqual(envelope.error_message, "unknown action: format")

    def test_missing_parameter(self):
        envelope = self.dispatcher.dispatch("clone", {"origin": "tank/src@s1"})

        self.assertEqual(envelope.status, ResponseStatus.ERROR)
        self.assertEqual(envelope.error_message, "action 'clone' requires parameter 'dataset'")
        self.assertEqual(self.backend.calls, [])

    def test_unexpected_exception_becomes_error_envelope(self):
        self.backend.broken_properties[("tank/src", "origin")] = RuntimeError("boom")

        envelope = self.dispatcher.dispatch("cloneinfo", {"dataset": "tank/src"})

        self.assertEqual(envelope.status, ResponseStatus.ERROR)
        self.assertEqual(envelope.error_message, "boom")
        self.assertEqual(self.backend.open_handles(), [])


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
