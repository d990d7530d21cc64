"""Tests for cache module."""

import unittest

from exdrf_sparse.cache import SlotList
from exdrf_sparse.slot import Loaded, Unloaded


class TestSlotListGetItem(unittest.TestCase):
    """Tests for __getitem__ method."""

    def setUp(self) -> None:
        """Set up test fixtures."""
        self.slots = SlotList[int]()

    def test_getitem_missing_is_unloaded(self) -> None:
        """Test getting a missing item returns an unloaded slot."""
        self.slots.set_size(5)
        slot = self.slots[2]
        self.assertEqual(slot, Unloaded(2))
        self.assertFalse(slot.is_loaded)
        self.assertEqual(self.slots.true_size, 0)

    def test_getitem_returns_loaded(self) -> None:
        """Test getting an existing item returns the loaded slot."""
        self.slots.set_size(5)
        self.slots[2] = 100
        slot = self.slots[2]
        self.assertEqual(slot, Loaded(100))
        self.assertTrue(slot.is_loaded)

    def test_getitem_out_of_range_raises(self) -> None:
        """Test getting item out of range raises IndexError."""
        self.slots.set_size(3)
        with self.assertRaises(IndexError) as context:
            _ = self.slots[5]
        self.assertIn("out of range", str(context.exception))

    def test_getitem_negative_index_raises(self) -> None:
        """Test getting negative index raises IndexError."""
        self.slots.set_size(3)
        with self.assertRaises(IndexError):
            _ = self.slots[-1]

    def test_loaded_none_is_a_value(self) -> None:
        """Test None can be stored as a loaded value."""
        self.slots[0] = None  # type: ignore
        self.assertEqual(self.slots[0], Loaded(None))
        self.assertTrue(self.slots.is_loaded(0))


class TestSlotListSetItem(unittest.TestCase):
    """Tests for __setitem__ method."""

    def setUp(self) -> None:
        """Set up test fixtures."""
        self.slots = SlotList[int]()

    def test_setitem_within_size(self) -> None:
        """Test setting item within current size."""
        self.slots.set_size(5)
        self.slots[2] = 100
        self.assertEqual(len(self.slots), 5)
        self.assertEqual(self.slots.true_size, 1)

    def test_setitem_expands_size(self) -> None:
        """Test setting item beyond size expands the list."""
        self.slots.set_size(3)
        self.slots[5] = 200
        self.assertEqual(len(self.slots), 6)
        self.assertFalse(self.slots[4].is_loaded)

    def test_setitem_overwrites_existing(self) -> None:
        """Test setting item overwrites existing value."""
        self.slots[2] = 100
        self.slots[2] = 200
        self.assertEqual(self.slots[2], Loaded(200))
        self.assertEqual(self.slots.true_size, 1)


class TestSlotListContains(unittest.TestCase):
    """Tests for __contains__ method."""

    def test_contains(self) -> None:
        """Test contains checks the logical range."""
        slots = SlotList[int]()
        self.assertFalse(0 in slots)
        slots.set_size(5)
        self.assertTrue(0 in slots)
        self.assertTrue(4 in slots)
        self.assertFalse(5 in slots)
        self.assertFalse(-1 in slots)
        self.assertFalse("a" in slots)


class TestSlotListSetSize(unittest.TestCase):
    """Tests for set_size method."""

    def setUp(self) -> None:
        """Set up test fixtures."""
        self.slots = SlotList[int]()

    def test_set_size_increase(self) -> None:
        """Test increasing size keeps loaded slots."""
        self.slots[1] = 10
        self.slots.set_size(10)
        self.assertEqual(len(self.slots), 10)
        self.assertEqual(list(self.slots.keys()), [1])

    def test_set_size_decrease(self) -> None:
        """Test decreasing size removes items."""
        self.slots.set_size(10)
        self.slots[5] = 100
        self.slots[8] = 200
        self.slots.set_size(6)
        self.assertEqual(len(self.slots), 6)
        self.assertEqual(list(self.slots.keys()), [5])

    def test_set_size_boundary_items(self) -> None:
        """Test set_size removes items exactly at boundary."""
        self.slots.set_size(10)
        self.slots[4] = 100
        self.slots[5] = 200
        self.slots.set_size(5)
        self.assertEqual(list(self.slots.keys()), [4])

    def test_set_size_negative_raises(self) -> None:
        """Test setting negative size raises AssertionError."""
        with self.assertRaises(AssertionError):
            self.slots.set_size(-1)


class TestSlotListIntegration(unittest.TestCase):
    """Integration tests for SlotList."""

    def test_full_workflow(self) -> None:
        """Test a complete workflow of operations."""
        slots = SlotList[str]()
        slots.set_size(10)
        self.assertEqual(slots.true_size, 0)

        slots[5] = "five"
        slots[0] = "zero"
        self.assertEqual(
            list(slots.loaded_items()), [(0, "zero"), (5, "five")]
        )

        slots.set_size(3)
        self.assertEqual(len(slots), 3)
        self.assertEqual(list(slots.loaded_items()), [(0, "zero")])

        slots.clear()
        self.assertEqual(len(slots), 0)
        self.assertEqual(slots.true_size, 0)
