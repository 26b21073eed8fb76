import unittest
from dataclasses import FrozenInstanceError, replace

from rcmdx_loader.errors import AddressCollisionError
from rcmdx_loader.models.options import FailurePolicy, LoaderOptions, NamingScheme
from rcmdx_loader.models.tree import Group, Leaf


class TestLoaderOptions(unittest.TestCase):
    def test_defaults(self):
        o = LoaderOptions()
        self.assertIs(o.naming_scheme, NamingScheme.SHORT_ABST)
        self.assertTrue(o.merge_regions)
        self.assertTrue(o.warn)
        self.assertTrue(o.extract_content)
        self.assertIs(o.failure_policy, FailurePolicy.ABORT)

    def test_frozen(self):
        with self.assertRaises(FrozenInstanceError):
            LoaderOptions().warn = False  # type: ignore[misc]

    def test_dict_round_trip(self):
        o = replace(LoaderOptions(), naming_scheme=NamingScheme.LONG_REAL, failure_policy=FailurePolicy.CONTINUE)
        d = o.to_dict()
        self.assertEqual(d["naming_scheme"], "longreal")
        self.assertEqual(d["failure_policy"], "continue")
        self.assertEqual(LoaderOptions.from_dict(d), o)

    def test_from_dict_accepts_on_off(self):
        o = LoaderOptions.from_dict({"naming_scheme": "ShortReal", "merge_regions": "off", "warn": "on"})
        self.assertIs(o.naming_scheme, NamingScheme.SHORT_REAL)
        self.assertFalse(o.merge_regions)
        self.assertTrue(o.warn)

    def test_invalid_values(self):
        with self.assertRaises(ValueError):
            NamingScheme.parse("short")
        with self.assertRaises(ValueError):
            FailurePolicy.parse("retry")
        with self.assertRaises(ValueError):
            LoaderOptions.from_dict({"warn": "maybe"})


class TestOutputTree(unittest.TestCase):
    def test_insert_creates_groups(self):
        t = Group()
        t.insert(["a", "b", "c"], 1)
        self.assertIsInstance(t.get(["a", "b"]), Group)
        self.assertEqual(t.to_dict(), {"a": {"b": {"c": 1}}})

    def test_leaf_in_the_way_is_a_collision(self):
        t = Group()
        t.insert(["a"], 1)
        with self.assertRaises(AddressCollisionError) as cm:
            t.insert(["a", "b", "c"], 2)
        self.assertEqual(cm.exception.path, "a")
        self.assertEqual(t.to_dict(), {"a": 1})

    def test_overwrite_same_address(self):
        t = Group()
        t.insert(["a", "b"], 1)
        t.insert(["a"], 2)
        self.assertEqual(t.to_dict(), {"a": 2})

    def test_get_and_find(self):
        t = Group()
        t.insert(["a"], Leaf(3))
        self.assertEqual(t.get(["a"]).value, 3)
        self.assertIsNone(t.find(["a", "b"]))
        with self.assertRaises(KeyError):
            t.get(["missing"])
        with self.assertRaises(ValueError):
            t.set_node([], Leaf(0))


if __name__ == "__main__":
    unittest.main()
