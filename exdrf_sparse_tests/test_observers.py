"""Tests for the observer dispatch in exdrf_sparse.observers."""

import unittest

from exdrf_sparse.observers import ArrayObserver, ChangeRecorder, ObserverList


class TestObserverList(unittest.TestCase):
    def setUp(self) -> None:
        self.observers = ObserverList()
        self.recorder = ChangeRecorder()

    def test_add_is_idempotent(self) -> None:
        self.observers.add(self.recorder)
        self.observers.add(self.recorder)
        self.assertEqual(len(self.observers), 1)

    def test_remove(self) -> None:
        self.observers.add(self.recorder)
        self.observers.remove(self.recorder)
        self.observers.remove(self.recorder)
        self.assertEqual(len(self.observers), 0)

    def test_changing_brackets_the_body(self) -> None:
        """will_change is sent before the body and did_change after it."""
        events = []

        class Observer(ArrayObserver):
            def will_change(self, array, start, removed, added):
                events.append(("will", start, removed, added))

            def did_change(self, array, start, removed, added):
                events.append(("did", start, removed, added))

        self.observers.add(Observer())
        with self.observers.changing(None, 5, 1, 2):  # type: ignore
            events.append("body")

        self.assertEqual(
            events, [("will", 5, 1, 2), "body", ("did", 5, 1, 2)]
        )

    def test_changing_skips_did_change_on_error(self) -> None:
        self.observers.add(self.recorder)
        with self.assertRaises(ValueError):
            with self.observers.changing(None, 0, 0, 1):  # type: ignore
                raise ValueError("failed")
        self.assertEqual(self.recorder.will, [(0, 0, 1)])
        self.assertEqual(self.recorder.did, [])

    def test_plain_objects_and_missing_methods(self) -> None:
        """Observers only need the methods they care about."""
        calls = []

        class OnlyDid:
            def did_change(self, array, start, removed, added):
                calls.append((start, removed, added))

        self.observers.add(OnlyDid())
        self.observers.emit("will_change", None, 0, 0, 3)
        self.observers.emit("did_change", None, 0, 0, 3)
        self.observers.emit("request_issued", None, None)
        self.assertEqual(calls, [(0, 0, 3)])

    def test_errors_are_logged(self) -> None:
        class Broken(ArrayObserver):
            def did_change(self, array, start, removed, added):
                raise RuntimeError("broken")

        self.observers.add(Broken())
        self.observers.add(self.recorder)
        with self.assertLogs("exdrf_sparse.observers", level="ERROR") as logs:
            self.observers.emit("did_change", None, 1, 2, 3)
        self.assertIn("broken", logs.output[0])
        self.assertEqual(self.recorder.did, [(1, 2, 3)])

    def test_observer_may_unsubscribe_while_notified(self) -> None:
        observers = self.observers

        class OneShot(ArrayObserver):
            def did_change(self, array, start, removed, added):
                observers.remove(self)

        self.observers.add(OneShot())
        self.observers.add(self.recorder)
        self.observers.emit("did_change", None, 0, 1, 1)
        self.assertEqual(len(self.observers), 1)
        self.assertEqual(self.recorder.did, [(0, 1, 1)])


class TestChangeRecorder(unittest.TestCase):
    def test_clear(self) -> None:
        recorder = ChangeRecorder()
        recorder.will_change(None, 0, 0, 1)
        recorder.did_change(None, 0, 0, 1)
        recorder.clear()
        self.assertEqual(recorder.will, [])
        self.assertEqual(recorder.did, [])
