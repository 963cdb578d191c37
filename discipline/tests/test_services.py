import json
from datetime import date

from django.conf import settings
from django.test import TestCase

from discipline.aggregation import Period
from discipline.models import ActivityLog, SchoolClass, User
from discipline.persistence import SETTINGS_KEY, USER_KEY, AppSettings, PointThresholds
from discipline.services import DisciplineService, DomainError, ImportResult
from discipline.errors import DuplicateKey, InvalidCredentials, InvalidInput, RecordNotFound

Action = ActivityLog.Action
Entity = ActivityLog.Entity


class DisciplineServiceTests(TestCase):
    def setUp(self) -> None:
        self.session = {}
        self.service = DisciplineService(state=self.session, delay=0)
        self.service.add_user("admin", "Admin Utama", User.Gender.FEMALE, User.Role.ADMIN)
        self.service.add_user("guru1", "Siti Aminah", User.Gender.FEMALE, User.Role.GURU)
        self.service.add_user("0012345678", "Jane Smith", User.Gender.FEMALE, User.Role.SISWA)
        self.service.add_user("0023456789", "Ahmad Faisal", User.Gender.MALE, User.Role.SISWA)
        self.kelas = self.service.add_class("X IPA 1", SchoolClass.Tingkat.X, "guru1")
        self.other_kelas = self.service.add_class("XI IPS 1", SchoolClass.Tingkat.XI)
        self.sanction = self.service.add_sanction("Terlambat masuk sekolah", "Ringan", 10)
        self.remediation = self.service.add_remediation("Mengikuti lomba antar sekolah", "Sulit", 40)
        self.service.login("admin", settings.DISCIPLINE_PASSWORD)

    def latest_log(self) -> ActivityLog:
        return self.service.list_logs()[0]

    def test_setup_without_actor_is_not_logged(self) -> None:
        logs = self.service.list_logs()
        self.assertEqual(len(logs), 1)
        self.assertEqual(logs[0].action, Action.LOGIN)
        self.assertEqual(logs[0].details, "Pengguna Admin Utama berhasil login.")

    def test_login_persists_current_user(self) -> None:
        self.assertEqual(self.service.current_user.username, "admin")
        self.assertEqual(json.loads(self.session[USER_KEY])["username"], "admin")

        restored = DisciplineService(state=self.session)
        self.assertEqual(restored.current_user.username, "admin")

    def test_login_rejects_wrong_password(self) -> None:
        with self.assertRaises(InvalidCredentials):
            self.service.login("guru1", "salah")
        with self.assertRaises(InvalidCredentials):
            self.service.login("tidak-ada", settings.DISCIPLINE_PASSWORD)

    def test_login_rejects_unknown_role(self) -> None:
        self.service.store.users.insert(username="tamu", nama="Tamu", jenis_kelamin=User.Gender.MALE, role="tamu")

        with self.assertRaises(InvalidCredentials):
            self.service.login("tamu", settings.DISCIPLINE_PASSWORD)

    def test_logout_records_entry_and_clears_session(self) -> None:
        self.service.logout()

        self.assertIsNone(self.service.current_user)
        self.assertNotIn(USER_KEY, self.session)
        entry = self.latest_log()
        self.assertEqual((entry.username, entry.action, entry.entity), ("admin", Action.LOGOUT, Entity.AUTH))

    def test_mutations_log_display_names(self) -> None:
        self.service.add_violation("0012345678", self.sanction.id, "2024-05-01")
        self.assertEqual(self.latest_log().details, "Menambahkan pelanggaran untuk: Jane Smith")

        self.service.delete_sanction(self.sanction.id)
        entry = self.latest_log()
        self.assertEqual(entry.action, Action.HAPUS)
        self.assertEqual(entry.details, 'Menghapus sanksi: "Terlambat masuk sekolah"')
        self.assertEqual(self.service.list_violations(), [])

    def test_add_user_rejects_duplicates_and_bad_choices(self) -> None:
        with self.assertRaises(DuplicateKey):
            self.service.add_user("guru1", "Lain", User.Gender.MALE, User.Role.GURU)
        with self.assertRaises(InvalidInput):
            self.service.add_user("baru", "Baru", "pria", User.Role.GURU)
        with self.assertRaises(InvalidInput):
            self.service.add_user("baru", "", User.Gender.MALE, User.Role.GURU)

    def test_bulk_import_reports_incomplete_rows(self) -> None:
        result = self.service.add_users_bulk(
            [
                {"nama": "Citra Kirana", "username": "0034567890", "jenis_kelamin": "Perempuan", "role": "SISWA"},
                {"nama": "Doni Saputra", "username": "", "jenis_kelamin": "laki-laki", "role": "siswa"},
                {"nama": "Eka Putri", "username": "0056789012", "jenis_kelamin": "perempuan", "role": "siswa"},
            ]
        )

        self.assertEqual(result.success_count, 2)
        self.assertEqual(result.errors, ["Data tidak lengkap untuk: Doni Saputra (Username: Tanpa Username)"])
        self.assertEqual(self.service.store.users.require("0034567890").role, User.Role.SISWA)
        self.assertEqual(self.latest_log().details, "Mengimpor 2 pengguna baru.")

    def test_bulk_import_keeps_first_of_duplicate_usernames(self) -> None:
        result = self.service.add_users_bulk(
            [
                {"nama": "Pertama", "username": "kembar", "jenis_kelamin": "laki-laki", "role": "guru"},
                {"nama": "Kedua", "username": "kembar", "jenis_kelamin": "laki-laki", "role": "guru"},
                {"nama": "Lama", "username": "guru1", "jenis_kelamin": "laki-laki", "role": "guru"},
                {"nama": "Aneh", "username": "aneh", "jenis_kelamin": "laki-laki", "role": "kepala"},
            ]
        )

        self.assertEqual(result.success_count, 1)
        self.assertEqual(
            result.errors,
            [
                "Username sudah ada: kembar",
                "Username sudah ada: guru1",
                "Data tidak valid untuk: Aneh (Username: aneh)",
            ],
        )
        self.assertEqual(self.service.store.users.require("kembar").nama, "Pertama")

    def test_import_summary_caps_error_lines(self) -> None:
        result = ImportResult(3, [f"galat {number}" for number in range(1, 8)])

        summary = result.summary("pengguna")

        self.assertTrue(summary.startswith("Berhasil mengimpor 3 pengguna."))
        self.assertIn("Gagal memproses 7 baris:", summary)
        self.assertIn("- galat 5", summary)
        self.assertNotIn("galat 6", summary)
        self.assertTrue(summary.endswith("...dan 2 lainnya."))

    def test_update_of_current_user_refreshes_session(self) -> None:
        self.service.update_user("admin", "Admin Baru", User.Gender.FEMALE, User.Role.ADMIN)

        self.assertEqual(self.service.current_user.nama, "Admin Baru")
        self.assertEqual(json.loads(self.session[USER_KEY])["nama"], "Admin Baru")

    def test_update_user_photo(self) -> None:
        self.service.update_user_photo("admin", "data:image/png;base64,AAAA")

        self.assertEqual(json.loads(self.session[USER_KEY])["photo"], "data:image/png;base64,AAAA")
        self.assertEqual(self.latest_log().entity, Entity.PROFIL)
        self.assertEqual(self.service.current_user.initials, "AU")

    def test_delete_user_clears_homeroom_and_signatory(self) -> None:
        self.service.update_settings(AppSettings(sp_signatory_username="guru1"))
        self.assertEqual(self.service.signatory().username, "guru1")

        self.service.delete_user("guru1")

        self.assertIsNone(self.service.store.classes.require(self.kelas.id).wali_kelas_id)
        self.assertIsNone(self.service.get_settings().sp_signatory_username)
        self.assertIsNone(json.loads(self.session[SETTINGS_KEY])["spSignatoryUsername"])
        self.assertEqual(self.latest_log().details, "Menghapus pengguna: Siti Aminah (guru1)")

    def test_delete_student_removes_records(self) -> None:
        self.service.add_assignment("0012345678", self.kelas.id)
        self.service.add_violation("0012345678", self.sanction.id, date(2024, 5, 1))
        self.service.add_guidance("0012345678", self.remediation.id, date(2024, 5, 2))

        self.service.delete_user("0012345678")

        self.assertEqual(self.service.list_assignments(), [])
        self.assertEqual(self.service.list_violations(), [])
        self.assertEqual(self.service.list_guidance(), [])

    def test_class_homeroom_must_be_a_teacher(self) -> None:
        with self.assertRaises(InvalidInput):
            self.service.add_class("XII IPA 1", SchoolClass.Tingkat.XII, "0012345678")
        with self.assertRaises(RecordNotFound):
            self.service.add_class("XII IPA 1", SchoolClass.Tingkat.XII, "hilang")

    def test_catalog_points_must_be_non_negative(self) -> None:
        with self.assertRaises(InvalidInput):
            self.service.add_sanction("Berkelahi", "Berat", -5)
        with self.assertRaises(InvalidInput):
            self.service.add_remediation("Piket", "Mudah", "lima")
        with self.assertRaises(InvalidInput):
            self.service.add_sanction("Berkelahi", "Parah", 5)

    def test_assignment_is_unique_per_student(self) -> None:
        self.service.add_assignment("0012345678", self.kelas.id)

        with self.assertRaises(DuplicateKey) as ctx:
            self.service.add_assignment("0012345678", self.other_kelas.id)
        self.assertEqual(ctx.exception.message, "Siswa ini sudah terdaftar di sebuah kelas.")

    def test_assignment_requires_a_student(self) -> None:
        with self.assertRaises(RecordNotFound):
            self.service.add_assignment("guru1", self.kelas.id)
        with self.assertRaises(RecordNotFound):
            self.service.add_assignment("0012345678", 99)

    def test_bulk_assignment_upserts_valid_rows(self) -> None:
        self.service.add_assignment("0012345678", self.kelas.id)

        result = self.service.assign_students_bulk(
            [
                {"nipd": "0012345678", "id_kelas": self.other_kelas.id},
                {"nipd": "0023456789", "id_kelas": str(self.kelas.id)},
                {"nipd": "guru1", "id_kelas": self.kelas.id},
                {"nipd": "0023456789", "id_kelas": self.other_kelas.id},
                {"nipd": "0023456789", "id_kelas": 99},
                {"nipd": "", "id_kelas": self.kelas.id},
            ]
        )

        self.assertEqual(result.success_count, 2)
        self.assertEqual(len(result.errors), 4)
        self.assertEqual(
            self.service.store.class_of(),
            {"0012345678": self.other_kelas.id, "0023456789": self.kelas.id},
        )
        self.assertEqual(self.latest_log().action, Action.IMPORT)

    def test_records_require_iso_dates_and_known_references(self) -> None:
        with self.assertRaises(InvalidInput):
            self.service.add_violation("0012345678", self.sanction.id, "01-05-2024")
        with self.assertRaises(RecordNotFound):
            self.service.add_violation("0012345678", 99, "2024-05-01")
        with self.assertRaises(RecordNotFound):
            self.service.add_guidance("admin", self.remediation.id, "2024-05-01")

    def test_update_and_delete_records(self) -> None:
        violation = self.service.add_violation("0012345678", self.sanction.id, "2024-05-01")

        updated = self.service.update_violation(violation.id, "0023456789", self.sanction.id, "2024-05-03")
        self.assertEqual((updated.siswa_id, updated.tanggal), ("0023456789", date(2024, 5, 3)))

        self.service.delete_violation(violation.id)
        self.assertEqual(self.latest_log().details, "Menghapus pelanggaran untuk: Ahmad Faisal")
        with self.assertRaises(RecordNotFound):
            self.service.delete_violation(violation.id)

    def test_update_settings_validates_thresholds(self) -> None:
        with self.assertRaises(InvalidInput):
            self.service.update_settings(AppSettings(point_thresholds=PointThresholds(aman=40, perhatian=40)))
        with self.assertRaises(InvalidInput):
            self.service.update_settings(AppSettings(sp_signatory_username="0012345678"))

        saved = self.service.update_settings(
            AppSettings(app_name="SMA 1", point_thresholds=PointThresholds(aman=30, perhatian=60))
        )

        self.assertEqual(saved.point_thresholds.aman, 30)
        self.assertEqual(json.loads(self.session[SETTINGS_KEY])["appName"], "SMA 1")
        self.assertEqual(self.latest_log().entity, Entity.PENGATURAN)

    def test_thresholds_drive_student_tiers(self) -> None:
        self.service.add_violation("0012345678", self.sanction.id, "2024-05-01")
        self.service.add_violation("0012345678", self.sanction.id, "2024-05-02")
        self.service.add_violation("0012345678", self.sanction.id, "2024-05-03")
        self.service.update_settings(AppSettings(point_thresholds=PointThresholds(aman=30, perhatian=60)))

        summary = self.service.student_summary("0012345678")

        self.assertEqual(summary.net_score, 30)
        self.assertEqual(summary.tier, "Perlu Pengawasan")

    def test_password_flows(self) -> None:
        with self.assertRaises(InvalidCredentials) as ctx:
            self.service.change_password("salah", "baru")
        self.assertEqual(ctx.exception.message, "Kata sandi saat ini salah.")

        self.service.change_password(settings.DISCIPLINE_PASSWORD, "baru")
        self.assertEqual(self.latest_log().details, "Pengguna admin mengubah kata sandi.")

        self.service.admin_reset_password("guru1")
        self.assertEqual(self.latest_log().details, "Mereset kata sandi untuk pengguna: Siti Aminah (guru1)")
        with self.assertRaises(RecordNotFound):
            self.service.admin_reset_password("hilang")

        self.service.reset_password_request("guru1")
        with self.assertRaises(InvalidInput):
            self.service.reset_password_request(" ")

    def test_export_and_backup_are_logged(self) -> None:
        self.service.record_export(Entity.PENGGUNA, 4, "pengguna")
        self.assertEqual(self.latest_log().details, "Mengekspor 4 data pengguna.")

        self.assertEqual(self.service.backup(), "Pencadangan data berhasil diproses.")
        self.assertEqual(self.latest_log().entity, Entity.LAPORAN)

    def test_dashboard_summarises_the_month(self) -> None:
        self.service.add_assignment("0012345678", self.kelas.id)
        self.service.add_violation("0012345678", self.sanction.id, "2024-05-10")
        self.service.add_violation("0023456789", self.sanction.id, "2024-04-30")
        self.service.add_guidance("0012345678", self.remediation.id, "2024-05-09")

        data = self.service.dashboard("2024-05", today=date(2024, 5, 10))

        self.assertEqual(data["totalPelanggaran"], 2)
        self.assertEqual(data["pelanggaranHariIni"], 1)
        self.assertEqual(data["bimbinganHariIni"], 0)
        self.assertEqual(data["siswaPerTingkat"], {"X": 1, "XI": 0, "XII": 0})
        self.assertEqual(data["pelanggaranPerKelas"], [{"kelas": "X IPA 1", "tingkat": "X", "jumlah": 1}])
        self.assertEqual([row["nipd"] for row in data["siswaTeratas"]], ["0012345678"])
        self.assertEqual(data["sanksiTerbanyak"]["count"], 1)
        self.assertEqual(data["bimbinganTerbanyak"]["desk_perbaikan"], "Mengikuti lomba antar sekolah")
        self.assertEqual(len(data["tujuhHari"]), 7)

    def test_dashboard_rejects_bad_month(self) -> None:
        with self.assertRaises(DomainError):
            self.service.dashboard("Mei")

    def assert_single_log(self, before: int, action: Action, entity: Entity, details: str) -> None:
        self.assertEqual(len(self.service.list_logs()), before + 1)
        entry = self.latest_log()
        self.assertEqual((entry.action, entry.entity, entry.details), (action, entity, details))

    def test_update_and_delete_class(self) -> None:
        self.service.add_assignment("0023456789", self.other_kelas.id)
        before = len(self.service.list_logs())

        updated = self.service.update_class(self.other_kelas.id, "XI IPS 2", SchoolClass.Tingkat.XI, "guru1")

        self.assertEqual((updated.kelas, updated.wali_kelas_id), ("XI IPS 2", "guru1"))
        self.assert_single_log(before, Action.UBAH, Entity.KELAS, "Memperbarui kelas: XI IPS 2")
        with self.assertRaises(RecordNotFound):
            self.service.update_class(99, "XII IPA 1", SchoolClass.Tingkat.XII)

        before = len(self.service.list_logs())
        self.service.delete_class(self.other_kelas.id)

        self.assert_single_log(before, Action.HAPUS, Entity.KELAS, "Menghapus kelas: XI IPS 2")
        self.assertEqual(self.service.store.class_of(), {"0023456789": None})
        with self.assertRaises(RecordNotFound):
            self.service.delete_class(self.other_kelas.id)

    def test_update_remediation(self) -> None:
        before = len(self.service.list_logs())

        updated = self.service.update_remediation(self.remediation.id, "Juara lomba", "Sulit", "50")

        self.assertEqual(updated.point_perbaikan, 50)
        self.assert_single_log(before, Action.UBAH, Entity.INTROSPEKSI, 'Memperbarui introspeksi: "Juara lomba"')
        with self.assertRaises(InvalidInput):
            self.service.update_remediation(self.remediation.id, "Juara lomba", "Mustahil", 50)
        with self.assertRaises(RecordNotFound):
            self.service.update_remediation(99, "Juara lomba", "Sulit", 50)

    def test_update_and_delete_assignment(self) -> None:
        self.service.add_assignment("0012345678", self.kelas.id)
        before = len(self.service.list_logs())

        self.service.update_assignment("0012345678", self.other_kelas.id)

        self.assertEqual(self.service.store.class_of(), {"0012345678": self.other_kelas.id})
        self.assert_single_log(before, Action.UBAH, Entity.SISWA, "Memperbarui relasi siswa-kelas untuk: Jane Smith")
        with self.assertRaises(RecordNotFound):
            self.service.update_assignment("0023456789", self.kelas.id)

        before = len(self.service.list_logs())
        self.service.delete_assignment("0012345678")

        self.assertEqual(self.service.list_assignments(), [])
        self.assert_single_log(before, Action.HAPUS, Entity.SISWA, "Menghapus relasi siswa-kelas untuk: Jane Smith")
        with self.assertRaises(RecordNotFound):
            self.service.delete_assignment("0012345678")

    def test_update_and_delete_guidance(self) -> None:
        record = self.service.add_guidance("0012345678", self.remediation.id, "2024-05-01")
        before = len(self.service.list_logs())

        updated = self.service.update_guidance(record.id, "0023456789", self.remediation.id, "2024-05-04")

        self.assertEqual((updated.siswa_id, updated.tanggal), ("0023456789", date(2024, 5, 4)))
        self.assert_single_log(before, Action.UBAH, Entity.BIMBINGAN, "Memperbarui bimbingan untuk: Ahmad Faisal")
        with self.assertRaises(RecordNotFound):
            self.service.update_guidance(99, "0023456789", self.remediation.id, "2024-05-04")

        before = len(self.service.list_logs())
        self.service.delete_guidance(record.id)

        self.assertEqual(self.service.list_guidance(), [])
        self.assert_single_log(before, Action.HAPUS, Entity.BIMBINGAN, "Menghapus bimbingan untuk: Ahmad Faisal")
        with self.assertRaises(RecordNotFound):
            self.service.delete_guidance(record.id)

    def test_rejected_settings_are_left_untouched(self) -> None:
        rejected = AppSettings(
            point_thresholds=PointThresholds(aman="5", perhatian="50"),
            sp_signatory_username="0012345678",
        )

        with self.assertRaises(InvalidInput):
            self.service.update_settings(rejected)

        self.assertEqual((rejected.point_thresholds.aman, rejected.point_thresholds.perhatian), ("5", "50"))
        self.assertEqual(self.service.get_settings().point_thresholds.aman, 10)

    def test_record_lists_filter_by_class(self) -> None:
        self.service.add_assignment("0012345678", self.kelas.id)
        self.service.add_violation("0012345678", self.sanction.id, "2024-05-01")
        self.service.add_violation("0023456789", self.sanction.id, "2024-05-02")

        self.assertEqual([row.siswa_id for row in self.service.list_violations(kelas=self.kelas.id)], ["0012345678"])
        self.assertEqual(self.service.list_violations(kelas=self.other_kelas.id), [])

    def test_logs_filter_by_user_action_entity_and_date(self) -> None:
        self.service.add_violation("0012345678", self.sanction.id, "2024-05-01")
        self.service.login("guru1", settings.DISCIPLINE_PASSWORD)
        self.service.add_guidance("0012345678", self.remediation.id, "2024-05-01")

        by_admin = self.service.list_logs(username="admin")
        logins = self.service.list_logs(action=Action.LOGIN)
        guidance = self.service.list_logs(entity=Entity.BIMBINGAN)

        self.assertEqual([entry.action for entry in by_admin], [Action.TAMBAH, Action.LOGIN])
        self.assertEqual([entry.username for entry in logins], ["guru1", "admin"])
        self.assertEqual([entry.username for entry in guidance], ["guru1"])
        self.assertEqual(self.service.list_logs(Period(date(2000, 1, 1), date(2000, 1, 31))), [])
