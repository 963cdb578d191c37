"""Demo data for local development and tests."""
import random
from datetime import date, timedelta

from django.db import transaction
from django.utils import timezone

from .models import RemediationAction, Sanction, SchoolClass, User
from .services import DisciplineService

Role = User.Role
Gender = User.Gender

DEMO_USERS = [
    ("Super Admin", "superadmin", Gender.MALE, Role.SUPER_ADMIN),
    ("Admin Utama", "admin", Gender.FEMALE, Role.ADMIN),
    ("Admin Cadangan", "admin02", Gender.MALE, Role.ADMIN),
    ("Admin Sistem", "admin03", Gender.FEMALE, Role.ADMIN),
    ("Tim Disiplin Siswa", "tds", Gender.MALE, Role.TDS),
    ("Dr. John Doe", "199001012020121001", Gender.MALE, Role.GURU),
    ("Siti Aminah, S.Pd.", "198505102015032002", Gender.FEMALE, Role.GURU),
    ("Budi Hartono, M.Kom.", "199208152018011003", Gender.MALE, Role.GURU),
    ("Dewi Lestari, S.S.", "198811202017062004", Gender.FEMALE, Role.GURU),
    ("Agus Santoso, S.T.", "199503252019021005", Gender.MALE, Role.GURU),
    ("Rina Marlina, M.Pd.", "198007122010102006", Gender.FEMALE, Role.GURU),
    ("Eko Prasetyo, S.Kom.", "199309012021011007", Gender.MALE, Role.GURU),
    ("Fitri Handayani, S.Psi.", "198704182016052008", Gender.FEMALE, Role.GURU),
    ("Jane Smith", "0012345678", Gender.FEMALE, Role.SISWA),
    ("Ahmad Faisal", "0023456789", Gender.MALE, Role.SISWA),
    ("Citra Kirana", "0034567890", Gender.FEMALE, Role.SISWA),
    ("Doni Saputra", "0045678901", Gender.MALE, Role.SISWA),
    ("Eka Putri", "0056789012", Gender.FEMALE, Role.SISWA),
    ("Fajar Nugraha", "0067890123", Gender.MALE, Role.SISWA),
    ("Gita Amelia", "0078901234", Gender.FEMALE, Role.SISWA),
    ("Hendra Wijaya", "0089012345", Gender.MALE, Role.SISWA),
    ("Indah Permata", "0090123456", Gender.FEMALE, Role.SISWA),
    ("Joko Susilo", "0090123457", Gender.MALE, Role.SISWA),
    ("Kartika Sari", "0090123458", Gender.FEMALE, Role.SISWA),
    ("Leo Wijaya", "0090123459", Gender.MALE, Role.SISWA),
    ("Maya Dewi", "0090123460", Gender.FEMALE, Role.SISWA),
    ("Naufal Zaki", "0090123461", Gender.MALE, Role.SISWA),
    ("Olivia Putri", "0090123462", Gender.FEMALE, Role.SISWA),
    ("Putra Perkasa", "0090123463", Gender.MALE, Role.SISWA),
    ("Qonita Aulia", "0090123464", Gender.FEMALE, Role.SISWA),
    ("Rizky Ananda", "0090123465", Gender.MALE, Role.SISWA),
    ("Siska Amelia", "0090123466", Gender.FEMALE, Role.SISWA),
    ("Taufik Hidayat", "0090123467", Gender.MALE, Role.SISWA),
]

DEMO_CLASSES = [
    ("X IPA 1", SchoolClass.Tingkat.X, "199001012020121001"),
    ("X IPA 2", SchoolClass.Tingkat.X, "198505102015032002"),
    ("X IPS 1", SchoolClass.Tingkat.X, None),
    ("XI IPA 1", SchoolClass.Tingkat.XI, "199208152018011003"),
    ("XI IPS 1", SchoolClass.Tingkat.XI, "198811202017062004"),
    ("XII IPA 1", SchoolClass.Tingkat.XII, "199503252019021005"),
    ("XII IPA 2", SchoolClass.Tingkat.XII, None),
    ("XII IPS 1", SchoolClass.Tingkat.XII, "198007122010102006"),
]

DEMO_SANCTIONS = [
    ("Terlambat masuk sekolah", Sanction.Severity.RINGAN, 5),
    ("Tidak mengerjakan PR", Sanction.Severity.RINGAN, 10),
    ("Memakai seragam tidak lengkap", Sanction.Severity.RINGAN, 5),
    ("Membolos saat jam pelajaran", Sanction.Severity.SEDANG, 25),
    ("Merokok di area sekolah", Sanction.Severity.BERAT, 75),
    ("Tidak mengikuti upacara bendera", Sanction.Severity.SEDANG, 15),
    ("Berkelahi dengan siswa lain", Sanction.Severity.BERAT, 100),
    ("Mencoret-coret fasilitas sekolah", Sanction.Severity.SEDANG, 30),
]

DEMO_REMEDIATIONS = [
    ("Membersihkan papan tulis setelah digunakan", RemediationAction.Difficulty.MUDAH, 5),
    ("Membantu guru membawa buku ke ruang guru", RemediationAction.Difficulty.MUDAH, 10),
    ("Menjadi petugas upacara", RemediationAction.Difficulty.CUKUP, 20),
    ("Mengikuti lomba antar sekolah", RemediationAction.Difficulty.SULIT, 50),
    ("Membuat rangkuman materi pelajaran", RemediationAction.Difficulty.CUKUP, 15),
    ("Menjuarai kompetisi tingkat nasional", RemediationAction.Difficulty.SULIT, 100),
    ("Merawat tanaman di taman sekolah", RemediationAction.Difficulty.MUDAH, 5),
]

ASSIGNED_STUDENTS = 15


def seed_demo(
    service: DisciplineService,
    violations: int = 40,
    guidance: int = 25,
    today: date | None = None,
    seed: int | None = None,
) -> dict[str, int]:
    """Load the demo catalog plus random records from the last six months.

    Students past the first fifteen stay without a class.
    """
    store = service.store
    today = today or timezone.localdate()
    rng = random.Random(seed)

    with transaction.atomic(using=store.using):
        store.users.bulk_insert(
            {"nama": nama, "username": username, "jenis_kelamin": gender, "role": role}
            for nama, username, gender, role in DEMO_USERS
        )
        classes = [
            store.classes.insert(kelas=kelas, tingkat=tingkat, wali_kelas_id=teacher)
            for kelas, tingkat, teacher in DEMO_CLASSES
        ]
        sanctions = [
            store.sanctions.insert(desk_kesalahan=desk, jenis_sanksi=severity, point_pelanggar=points)
            for desk, severity, points in DEMO_SANCTIONS
        ]
        remediations = [
            store.remediations.insert(desk_perbaikan=desk, jenis_perbaikan=difficulty, point_perbaikan=points)
            for desk, difficulty, points in DEMO_REMEDIATIONS
        ]

        students = [username for _, username, _, role in DEMO_USERS if role == Role.SISWA][:ASSIGNED_STUDENTS]
        store.assignments.upsert(
            {"siswa_id": nipd, "kelas_id": classes[index % len(classes)].id} for index, nipd in enumerate(students)
        )

        for _ in range(violations):
            store.violations.insert(
                siswa_id=rng.choice(students),
                sanksi_id=rng.choice(sanctions).id,
                tanggal=today - timedelta(days=rng.randrange(180)),
            )
        for _ in range(guidance):
            store.guidance.insert(
                siswa_id=rng.choice(students),
                perbaikan_id=rng.choice(remediations).id,
                tanggal=today - timedelta(days=rng.randrange(180)),
            )

    return {
        "users": len(DEMO_USERS),
        "classes": len(classes),
        "sanctions": len(sanctions),
        "remediations": len(remediations),
        "assignments": len(students),
        "violations": violations,
        "guidance": guidance,
    }
