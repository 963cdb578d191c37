from django.test import TestCase

from discipline.activity import ActivityLogger
from discipline.models import ActivityLog
from discipline.persistence import LocalState
from discipline.store import EntityStore

Action = ActivityLog.Action
Entity = ActivityLog.Entity


class ActivityLoggerTests(TestCase):
    def setUp(self) -> None:
        self.store = EntityStore()
        self.state = LocalState({})
        self.activity = ActivityLogger(self.store, self.state)

    def test_nothing_is_recorded_without_an_actor(self) -> None:
        entry = self.activity.record(Action.TAMBAH, Entity.SANKSI, "Menambahkan sanksi baru")

        self.assertIsNone(entry)
        self.assertEqual(self.store.logs.count(), 0)

    def test_current_user_is_the_actor(self) -> None:
        self.activity.current_username = "admin"

        with self.assertLogs("discipline.activity", level="INFO") as captured:
            entry = self.activity.record(Action.HAPUS, Entity.KELAS, "Menghapus kelas: X IPA 1")

        self.assertEqual(entry.username, "admin")
        self.assertEqual(entry.id, 1)
        self.assertIn("Menghapus kelas: X IPA 1", captured.output[0])

    def test_explicit_actor_wins(self) -> None:
        self.activity.current_username = "admin"

        entry = self.activity.record(Action.LOGOUT, Entity.AUTH, "keluar", actor="tds")

        self.assertEqual(entry.username, "tds")

    def test_falls_back_to_persisted_user(self) -> None:
        self.state.save_user({"username": "guru1", "nama": "Guru"})

        entry = self.activity.record(Action.LOGOUT, Entity.AUTH, "Pengguna Guru berhasil logout.")

        self.assertEqual(entry.username, "guru1")

    def test_ids_follow_count_and_listing_is_newest_first(self) -> None:
        self.activity.current_username = "admin"
        for number in range(3):
            self.activity.record(Action.TAMBAH, Entity.SISWA, f"entri {number}")

        entries = self.activity.entries()

        self.assertEqual([entry.id for entry in entries], [3, 2, 1])
        self.assertEqual(entries[0].details, "entri 2")
