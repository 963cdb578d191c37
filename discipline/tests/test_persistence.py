import json

from django.test import SimpleTestCase

from discipline.persistence import (
    SETTINGS_KEY,
    USER_KEY,
    AppSettings,
    KopSurat,
    LocalState,
    PointThresholds,
)


class LocalStateTests(SimpleTestCase):
    def setUp(self) -> None:
        self.backend = {}
        self.state = LocalState(self.backend)

    def test_settings_round_trip(self) -> None:
        original = AppSettings(
            app_name="SMA Negeri 1",
            app_logo="data:image/png;base64,AAAA",
            point_thresholds=PointThresholds(aman=15, perhatian=55),
            kop_surat=KopSurat(line1="PEMERINTAH PROVINSI", line8="Telp. 021"),
            sp_signatory_username="198505102015032002",
        )

        self.state.save_settings(original)

        self.assertEqual(json.loads(self.backend[SETTINGS_KEY])["pointThresholds"], {"aman": 15, "perhatian": 55})
        self.assertEqual(LocalState(self.backend).load_settings(), original)

    def test_user_round_trip(self) -> None:
        user = {"nama": "Jane Smith", "username": "0012345678", "jenis_kelamin": "perempuan", "role": "siswa"}

        self.state.save_user(user)

        self.assertEqual(self.state.load_user(), user)
        self.state.clear_user()
        self.assertIsNone(self.state.load_user())

    def test_missing_settings_fall_back_to_defaults(self) -> None:
        loaded = self.state.load_settings()

        self.assertEqual(loaded, AppSettings())
        self.assertEqual(loaded.app_name, "DisciplineApp")
        self.assertEqual(loaded.point_thresholds, PointThresholds(aman=10, perhatian=40))
        self.assertEqual(loaded.kop_surat.lines(), [""] * 8)

    def test_partial_document_merges_over_defaults(self) -> None:
        self.backend[SETTINGS_KEY] = json.dumps({"appName": "Sekolah", "pointThresholds": {"aman": 20}})

        loaded = self.state.load_settings()

        self.assertEqual(loaded.app_name, "Sekolah")
        self.assertEqual(loaded.point_thresholds, PointThresholds(aman=20, perhatian=40))
        self.assertIsNone(loaded.sp_signatory_username)

    def test_malformed_settings_are_discarded(self) -> None:
        self.backend[SETTINGS_KEY] = "{not json"

        with self.assertLogs("discipline.persistence", level="WARNING"):
            loaded = self.state.load_settings()

        self.assertEqual(loaded, AppSettings())
        self.assertNotIn(SETTINGS_KEY, self.backend)

    def test_settings_with_wrong_shape_are_discarded(self) -> None:
        self.backend[SETTINGS_KEY] = json.dumps({"pointThresholds": {"aman": "banyak"}})

        with self.assertLogs("discipline.persistence", level="WARNING"):
            loaded = self.state.load_settings()

        self.assertEqual(loaded, AppSettings())
        self.assertNotIn(SETTINGS_KEY, self.backend)

    def test_malformed_user_is_discarded(self) -> None:
        self.backend[USER_KEY] = "[1, 2"

        with self.assertLogs("discipline.persistence", level="WARNING"):
            self.assertIsNone(self.state.load_user())
        self.assertNotIn(USER_KEY, self.backend)

    def test_user_without_username_is_discarded(self) -> None:
        self.backend[USER_KEY] = json.dumps({"nama": "Tanpa Username"})

        with self.assertLogs("discipline.persistence", level="WARNING"):
            self.assertIsNone(self.state.load_user())
        self.assertNotIn(USER_KEY, self.backend)
