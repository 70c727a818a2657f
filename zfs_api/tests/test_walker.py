import unittest
from unittest import mock

from zfs_api.errors import BackendError
from zfs_api.models.dataset import UNDEFINED, DatasetEntity, DatasetNode
from zfs_api.services import walker
from zfs_api.tests.fake_backend import UNSET, FakeBackend


class WalkerTests(unittest.TestCase):
    def setUp(self):
        self.backend = FakeBackend()
        # Deliberately not alphabetical
        self.backend.add_dataset("tank")
        self.backend.add_dataset("tank/zeta")
        self.backend.add_dataset("tank/zeta/inner")
        self.backend.add_dataset("tank/alpha")
        self.backend.add_dataset("backup")
        self.backend.add_dataset("backup/vol1", mountpoint=UNSET, available=UNSET)

    def test_pre_order_one_entity_per_node(self):
        names = [e.name for e in walker.list_all(self.backend)]

        self.assertEqual(
            names,
            ["tank", "tank/zeta", "tank/zeta/inner", "tank/alpha", "backup", "backup/vol1"],
        )

    def test_parent_precedes_descendants(self):
        names = [e.name for e in walker.list_all(self.backend)]
        for index, name in enumerate(names):
            for later in names[:index]:
                self.assertFalse(later.startswith(name + "/"), f"{later} listed before {name}")

    def test_undefined_properties_become_dash(self):
        entities = {e.name: e for e in walker.list_all(self.backend)}

        vol = entities["backup/vol1"]
        self.assertEqual(vol.available, UNDEFINED)
        self.assertEqual(vol.mountpoint, UNDEFINED)
        self.assertEqual(vol.used, "96K")

        fs = entities["tank/alpha"]
        self.assertEqual(fs.available, "9.5G")
        self.assertEqual(fs.mountpoint, "/tank/alpha")

    def test_snapshots_follow_their_dataset_subtree(self):
        self.backend.add_snapshot("tank", "daily", 100)
        self.backend.add_snapshot("tank/zeta", "s1", 50)

        entities = walker.list_all(self.backend)
        names = [e.name for e in entities]

        self.assertEqual(
            names,
            [
                "tank", "tank/zeta", "tank/zeta/inner", "tank/zeta@s1",
                "tank/alpha", "tank@daily", "backup", "backup/vol1",
            ],
        )
        snap = entities[names.index("tank@daily")]
        self.assertEqual(snap.available, UNDEFINED)
        self.assertEqual(snap.mountpoint, UNDEFINED)
        self.assertEqual(self.backend.open_handles(), [])

    def test_property_failure_does_not_abort_walk(self):
        self.backend.broken_properties[("tank/zeta", "used")] = BackendError("I/O error")

        entities = walker.list_all(self.backend)

        self.assertEqual(len(entities), 6)
        zeta = [e for e in entities if e.name == "tank/zeta"][0]
        self.assertEqual(zeta.used, UNDEFINED)
        self.assertEqual(zeta.referenced, "24K")

    def test_unreadable_dataset_lists_as_dashes(self):
        with mock.patch.object(
            self.backend, "get_properties", side_effect=BackendError("I/O error")
        ):
            entities = walker.list_all(self.backend)

        self.assertEqual(len(entities), 6)
        self.assertEqual(entities[0].name, "tank")
        self.assertEqual(entities[0].used, UNDEFINED)
        self.assertEqual(entities[0].mountpoint, UNDEFINED)

    def test_name_falls_back_to_handle_path(self):
        self.backend.datasets["tank/alpha"]["name"] = UNSET

        names = [e.name for e in walker.list_all(self.backend)]

        self.assertIn("tank/alpha", names)

    def test_all_handles_closed_after_listing(self):
        walker.list_all(self.backend)

        self.assertEqual(self.backend.open_handles(), [])
        self.assertEqual(len(self.backend.released), 6)

    def test_open_failure_aborts_listing(self):
        self.backend.fail_open_all = True

        with self.assertRaises(BackendError):
            walker.list_all(self.backend)

    def test_empty_forest(self):
        self.assertEqual(walker.list_all(FakeBackend()), [])

    def test_flatten_tree_without_backend(self):
        leaf = DatasetNode(entity=DatasetEntity(name="p/a/b"))
        tree = [
            DatasetNode(entity=DatasetEntity(name="p"), children=[
                DatasetNode(entity=DatasetEntity(name="p/a"), children=[leaf]),
                DatasetNode(entity=DatasetEntity(name="p/c")),
            ])
        ]

        names = [e.name for e in walker.flatten_tree(tree)]

        self.assertEqual(names, ["p", "p/a", "p/a/b", "p/c"])


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
