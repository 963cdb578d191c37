from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone


class User(AbstractUser):
    class Role(models.TextChoices):
        SUPER_ADMIN = "superadmin", "Super Admin"
        ADMIN = "admin", "Admin"
        TDS = "tds", "Tim Disiplin Siswa"
        GURU = "guru", "Guru"
        SISWA = "siswa", "Siswa"

    class Gender(models.TextChoices):
        MALE = "laki-laki", "Laki-laki"
        FEMALE = "perempuan", "Perempuan"

    nama = models.CharField(max_length=150)
    jenis_kelamin = models.CharField(max_length=10, choices=Gender.choices)
    role = models.CharField(max_length=20, choices=Role.choices)
    photo = models.TextField(blank=True)

    class Meta:
        ordering = ["id"]

    def __str__(self) -> str:
        return self.nama or self.username

    @property
    def initials(self) -> str:
        words = (self.nama or "").split()
        if not words:
            return "?"
        return "".join(word[0] for word in words)[:2].upper()

    def as_session_dict(self) -> dict:
        data = {
            "nama": self.nama,
            "username": self.username,
            "jenis_kelamin": self.jenis_kelamin,
            "role": self.role,
        }
        if self.photo:
            data["photo"] = self.photo
        return data


class SchoolClass(models.Model):
    class Tingkat(models.TextChoices):
        X = "X", "X"
        XI = "XI", "XI"
        XII = "XII", "XII"

    id = models.PositiveIntegerField(primary_key=True)
    kelas = models.CharField(max_length=50)
    tingkat = models.CharField(max_length=3, choices=Tingkat.choices)
    wali_kelas = models.ForeignKey(
        User,
        to_field="username",
        db_column="id_guru",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="homeroom_classes",
    )

    class Meta:
        ordering = ["id"]

    def __str__(self) -> str:
        return self.kelas

    def as_dict(self) -> dict:
        return {"id": self.id, "kelas": self.kelas, "tingkat": self.tingkat, "id_guru": self.wali_kelas_id}


class Sanction(models.Model):
    class Severity(models.TextChoices):
        RINGAN = "Ringan", "Ringan"
        SEDANG = "Sedang", "Sedang"
        BERAT = "Berat", "Berat"

    id = models.PositiveIntegerField(primary_key=True)
    desk_kesalahan = models.TextField()
    jenis_sanksi = models.CharField(max_length=10, choices=Severity.choices)
    point_pelanggar = models.PositiveIntegerField()

    class Meta:
        ordering = ["id"]

    def __str__(self) -> str:
        return self.desk_kesalahan

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "desk_kesalahan": self.desk_kesalahan,
            "jenis_sanksi": self.jenis_sanksi,
            "point_pelanggar": self.point_pelanggar,
        }


class RemediationAction(models.Model):
    class Difficulty(models.TextChoices):
        MUDAH = "Mudah", "Mudah"
        CUKUP = "Cukup", "Cukup"
        SULIT = "Sulit", "Sulit"

    id = models.PositiveIntegerField(primary_key=True)
    desk_perbaikan = models.TextField()
    jenis_perbaikan = models.CharField(max_length=10, choices=Difficulty.choices)
    point_perbaikan = models.PositiveIntegerField()

    class Meta:
        ordering = ["id"]

    def __str__(self) -> str:
        return self.desk_perbaikan

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "desk_perbaikan": self.desk_perbaikan,
            "jenis_perbaikan": self.jenis_perbaikan,
            "point_perbaikan": self.point_perbaikan,
        }


class StudentAssignment(models.Model):
    siswa = models.OneToOneField(
        User,
        to_field="username",
        db_column="nipd",
        primary_key=True,
        on_delete=models.CASCADE,
        related_name="class_assignment",
    )
    kelas = models.ForeignKey(
        SchoolClass,
        db_column="id_kelas",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="assignments",
    )

    class Meta:
        ordering = ["siswa_id"]

    def __str__(self) -> str:
        return f"{self.siswa_id} -> {self.kelas_id}"

    @property
    def nipd(self) -> str:
        return self.siswa_id

    def as_dict(self) -> dict:
        return {"nipd": self.siswa_id, "id_kelas": self.kelas_id}


class Violation(models.Model):
    id = models.PositiveIntegerField(primary_key=True)
    siswa = models.ForeignKey(
        User,
        to_field="username",
        db_column="nipd",
        on_delete=models.CASCADE,
        related_name="violations",
    )
    sanksi = models.ForeignKey(Sanction, db_column="id_sanksi", on_delete=models.CASCADE, related_name="violations")
    tanggal = models.DateField()

    class Meta:
        ordering = ["id"]
        indexes = [
            models.Index(fields=["siswa", "tanggal"], name="discipline_viol_siswa_tgl"),
        ]

    def __str__(self) -> str:
        return f"{self.siswa_id} {self.sanksi_id} {self.tanggal}"

    @property
    def nipd(self) -> str:
        return self.siswa_id

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "nipd": self.siswa_id,
            "id_sanksi": self.sanksi_id,
            "tanggal": self.tanggal.isoformat(),
        }


class Guidance(models.Model):
    id = models.PositiveIntegerField(primary_key=True)
    siswa = models.ForeignKey(
        User,
        to_field="username",
        db_column="nipd",
        on_delete=models.CASCADE,
        related_name="guidance_records",
    )
    perbaikan = models.ForeignKey(
        RemediationAction,
        db_column="id_perbaikan",
        on_delete=models.CASCADE,
        related_name="guidance_records",
    )
    tanggal = models.DateField()

    class Meta:
        ordering = ["id"]
        indexes = [
            models.Index(fields=["siswa", "tanggal"], name="discipline_guid_siswa_tgl"),
        ]

    def __str__(self) -> str:
        return f"{self.siswa_id} {self.perbaikan_id} {self.tanggal}"

    @property
    def nipd(self) -> str:
        return self.siswa_id

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "nipd": self.siswa_id,
            "id_perbaikan": self.perbaikan_id,
            "tanggal": self.tanggal.isoformat(),
        }


class ActivityLog(models.Model):
    class Action(models.TextChoices):
        TAMBAH = "Tambah", "Tambah"
        UBAH = "Ubah", "Ubah"
        HAPUS = "Hapus", "Hapus"
        LOGIN = "Login", "Login"
        LOGOUT = "Logout", "Logout"
        IMPORT = "Import", "Import"
        EXPORT = "Export", "Export"

    class Entity(models.TextChoices):
        PENGGUNA = "Pengguna", "Pengguna"
        SISWA = "Siswa", "Siswa"
        KELAS = "Kelas", "Kelas"
        SANKSI = "Sanksi", "Sanksi"
        INTROSPEKSI = "Introspeksi", "Introspeksi"
        BIMBINGAN = "Bimbingan", "Bimbingan"
        PELANGGARAN = "Pelanggaran", "Pelanggaran"
        PROFIL = "Profil", "Profil"
        PENGATURAN = "Pengaturan", "Pengaturan"
        AUTH = "Autentikasi", "Autentikasi"
        LAPORAN = "Laporan", "Laporan"

    id = models.PositiveIntegerField(primary_key=True)
    timestamp = models.DateTimeField(default=timezone.now)
    username = models.CharField(max_length=150)
    action = models.CharField(max_length=10, choices=Action.choices)
    entity = models.CharField(max_length=20, choices=Entity.choices)
    details = models.TextField()

    class Meta:
        ordering = ["-id"]

    def __str__(self) -> str:
        return f"{self.username} {self.action} {self.entity}"

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "username": self.username,
            "action": self.action,
            "entity": self.entity,
            "details": self.details,
        }
