import logging
import time
from collections.abc import Iterable, Mapping, MutableMapping
from dataclasses import dataclass, field
from datetime import date, datetime

from django.conf import settings
from django.utils import timezone

from . import aggregation
from .activity import ActivityLogger
from .aggregation import ALL_TIME, Period, StudentSummary
from .errors import DomainError, DuplicateKey, InvalidCredentials, InvalidInput, RecordNotFound
from .models import (
    ActivityLog,
    Guidance,
    RemediationAction,
    Sanction,
    SchoolClass,
    StudentAssignment,
    User,
    Violation,
)
from .persistence import AppSettings, LocalState
from .store import EntityStore

__all__ = ["DisciplineService", "DomainError", "ImportResult"]

logger = logging.getLogger(__name__)

Action = ActivityLog.Action
Entity = ActivityLog.Entity

MAX_ERROR_LINES = 5


@dataclass
class ImportResult:
    success_count: int = 0
    errors: list[str] = field(default_factory=list)

    def merge(self, other: "ImportResult") -> "ImportResult":
        return ImportResult(self.success_count + other.success_count, [*self.errors, *other.errors])

    def summary(self, noun: str = "data") -> str:
        parts = [f"Berhasil mengimpor {self.success_count} {noun}."]
        if self.errors:
            shown = "\n- ".join(self.errors[:MAX_ERROR_LINES])
            message = f"Gagal memproses {len(self.errors)} baris:\n- {shown}"
            if len(self.errors) > MAX_ERROR_LINES:
                message += f"\n...dan {len(self.errors) - MAX_ERROR_LINES} lainnya."
            parts.append(message)
        return "\n\n".join(parts)

    def as_dict(self) -> dict:
        return {"successCount": self.success_count, "errors": list(self.errors)}


def _clean(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _require_text(value: object, label: str) -> str:
    text = _clean(value)
    if not text:
        raise InvalidInput(f"{label} wajib diisi.")
    return text


def _require_choice(value: object, choices: type, label: str) -> str:
    text = _clean(value)
    if text not in choices.values:
        raise InvalidInput(f"{label} tidak valid: {text or '-'}.")
    return text


def _require_points(value: object, label: str) -> int:
    try:
        points = int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidInput(f"{label} harus berupa angka.") from exc
    if points < 0:
        raise InvalidInput(f"{label} tidak boleh negatif.")
    return points


def _parse_date(value: object) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(_clean(value))
    except ValueError as exc:
        raise InvalidInput("Tanggal harus berformat YYYY-MM-DD.") from exc


def _parse_id(value: object) -> int | None:
    text = _clean(value)
    if not text:
        return None
    try:
        return int(float(text))
    except ValueError:
        return None


def _class_lookup(class_id: int | None) -> dict:
    """Records of students currently placed in ``class_id``."""
    if class_id is None:
        return {}
    return {"siswa__class_assignment__kelas_id": class_id}


class DisciplineService:
    """Single entry point for the UI: validates, mutates the store, logs the action.

    Reads go straight to the current rows; aggregates are recomputed on each call.
    """

    def __init__(
        self,
        store: EntityStore | None = None,
        state: LocalState | MutableMapping | None = None,
        delay: float | None = None,
    ) -> None:
        self.store = store or EntityStore()
        self.state = state if isinstance(state, LocalState) else LocalState(state)
        self.delay = getattr(settings, "DISCIPLINE_SIMULATED_DELAY", 0) if delay is None else delay
        self.activity = ActivityLogger(self.store, self.state)
        self.settings = self.state.load_settings()
        self.current_user: User | None = None
        self._restore_session()

    # --- session -------------------------------------------------------

    def _restore_session(self) -> None:
        persisted = self.state.load_user()
        if not persisted:
            return
        user = self.store.users.get(persisted["username"])
        if user is None:
            self.state.clear_user()
            return
        self._set_current(user)

    def _set_current(self, user: User | None) -> None:
        self.current_user = user
        self.activity.current_username = user.username if user else None
        if user is None:
            self.state.clear_user()
        else:
            self.state.save_user(user.as_session_dict())

    def resume(self, user: User) -> None:
        """Adopt a user authenticated elsewhere (Django auth) without logging a login."""
        self._set_current(user)

    def _refresh_current(self, user: User) -> None:
        if self.current_user and self.current_user.username == user.username:
            self._set_current(user)

    def _wait(self) -> None:
        if self.delay:
            time.sleep(self.delay)

    def _log(self, action: Action, entity: Entity, details: str, actor: str | None = None) -> None:
        self.activity.record(action, entity, details, actor=actor)

    def _display_name(self, username: str) -> str:
        user = self.store.users.get(username)
        return user.nama if user else username

    def _require_student(self, nipd: object) -> User:
        nipd = _clean(nipd)
        user = self.store.users.get(nipd)
        if user is None or user.role != User.Role.SISWA:
            raise RecordNotFound(f'Siswa dengan NIPD "{nipd}" tidak ditemukan.')
        return user

    def _resolve_teacher(self, username: object) -> str | None:
        username = _clean(username)
        if not username:
            return None
        teacher = self.store.users.get(username)
        if teacher is None:
            raise RecordNotFound(f"Guru tidak ditemukan: {username}")
        if teacher.role != User.Role.GURU:
            raise InvalidInput(f"{teacher.nama} bukan guru.")
        return teacher.username

    def _resolve_class(self, class_id: object) -> int | None:
        if class_id is None or class_id == "":
            return None
        return self.store.classes.require(_parse_id(class_id)).id

    # --- queries -------------------------------------------------------

    def list_users(self) -> list[User]:
        return self.store.users.list()

    def list_classes(self) -> list[SchoolClass]:
        return self.store.classes.list()

    def list_sanctions(self) -> list[Sanction]:
        return self.store.sanctions.list()

    def list_remediations(self) -> list[RemediationAction]:
        return self.store.remediations.list()

    def list_assignments(self) -> list[StudentAssignment]:
        return self.store.assignments.list()

    def list_violations(self, period: Period = ALL_TIME, kelas: int | None = None) -> list[Violation]:
        return list(self.store.violations.filter(**period.lookups(), **_class_lookup(kelas)))

    def list_guidance(self, period: Period = ALL_TIME, kelas: int | None = None) -> list[Guidance]:
        return list(self.store.guidance.filter(**period.lookups(), **_class_lookup(kelas)))

    def list_logs(
        self,
        period: Period = ALL_TIME,
        username: str | None = None,
        action: str | None = None,
        entity: str | None = None,
    ) -> list[ActivityLog]:
        return self.activity.entries(period, username=username, action=action, entity=entity)

    def get_settings(self) -> AppSettings:
        return self.settings

    def unassigned_students(self) -> list[User]:
        assigned = self.store.assignments.filter(kelas__isnull=False).values_list("siswa_id", flat=True)
        return list(self.store.users.filter(role=User.Role.SISWA).exclude(username__in=assigned))

    # --- aggregates ----------------------------------------------------

    def student_summaries(self, period: Period = ALL_TIME) -> list[StudentSummary]:
        return aggregation.student_summaries(self.store, self.settings.point_thresholds, period)

    def student_summary(self, nipd: str, period: Period = ALL_TIME) -> StudentSummary:
        student = self._require_student(nipd)
        assignment = self.store.assignments.get(student.username)
        violations = aggregation.violation_points(self.store, student.username, period)
        remediations = aggregation.remediation_points(self.store, student.username, period)
        score = max(0, violations - remediations)
        return StudentSummary(
            user=student,
            kelas=assignment.kelas if assignment else None,
            violation_points=violations,
            remediation_points=remediations,
            net_score=score,
            tier=aggregation.classify(score, self.settings.point_thresholds),
        )

    def top_offenders(self, period: Period = ALL_TIME) -> list[StudentSummary]:
        limit = getattr(settings, "DISCIPLINE_TOP_LIMIT", 5)
        return aggregation.top_offenders(self.store, period, limit, self.settings.point_thresholds)

    def dashboard(self, month: str | None = None, today: date | None = None) -> dict:
        today = today or timezone.localdate()
        period = Period.month(month) if month else Period.month(today.strftime("%Y-%m"))
        todays = Period.day(today)
        sanction = aggregation.most_common_sanction(self.store, period)
        remediation = aggregation.most_common_remediation(self.store, period)
        return {
            "siswaPerTingkat": aggregation.students_per_grade(self.store),
            "totalPelanggaran": self.store.violations.count(),
            "pelanggaranHariIni": self.store.violations.filter(**todays.lookups()).count(),
            "bimbinganHariIni": self.store.guidance.filter(**todays.lookups()).count(),
            "jenisSanksiHariIni": aggregation.severity_breakdown(self.store, todays),
            "jenisPerbaikanHariIni": aggregation.difficulty_breakdown(self.store, todays),
            "tujuhHari": aggregation.daily_activity(self.store, today),
            "pelanggaranPerKelas": [
                {"kelas": row.kelas.kelas, "tingkat": row.kelas.tingkat, "jumlah": row.count}
                for row in aggregation.class_violation_counts(self.store, period)
            ],
            "siswaTeratas": [summary.as_dict() for summary in self.top_offenders(period)],
            "sanksiTerbanyak": (
                {**sanction.item.as_dict(), "count": sanction.count, "siswaCount": sanction.student_count}
                if sanction
                else None
            ),
            "bimbinganTerbanyak": (
                {**remediation.item.as_dict(), "count": remediation.count, "siswaCount": remediation.student_count}
                if remediation
                else None
            ),
        }

    # --- users ---------------------------------------------------------

    def add_user(self, username: str, nama: str, jenis_kelamin: str, role: str, photo: str = "") -> User:
        username = _require_text(username, "Username")
        nama = _require_text(nama, "Nama")
        jenis_kelamin = _require_choice(jenis_kelamin, User.Gender, "Jenis kelamin")
        role = _require_choice(role, User.Role, "Role")
        if self.store.users.exists(username):
            raise DuplicateKey("Username sudah ada.")
        user = self.store.users.insert(
            username=username,
            nama=nama,
            jenis_kelamin=jenis_kelamin,
            role=role,
            photo=photo or "",
        )
        self._log(Action.TAMBAH, Entity.PENGGUNA, f"Menambahkan pengguna baru: {nama} ({username})")
        return user

    def add_users_bulk(self, rows: Iterable[Mapping]) -> ImportResult:
        """Insert every valid row; invalid rows are skipped and reported in input order."""
        errors: list[str] = []
        accepted: list[dict] = []
        existing = set(self.store.users.objects.values_list("username", flat=True))
        seen: set[str] = set()

        for row in rows:
            username = _clean(row.get("username"))
            nama = _clean(row.get("nama"))
            jenis_kelamin = _clean(row.get("jenis_kelamin")).lower()
            role = _clean(row.get("role")).lower()

            if not (username and nama and jenis_kelamin and role):
                errors.append(
                    f"Data tidak lengkap untuk: {nama or 'Tanpa Nama'} (Username: {username or 'Tanpa Username'})"
                )
                continue
            if role not in User.Role.values or jenis_kelamin not in User.Gender.values:
                errors.append(f"Data tidak valid untuk: {nama} (Username: {username})")
                continue
            if username in existing or username in seen:
                errors.append(f"Username sudah ada: {username}")
                continue

            seen.add(username)
            accepted.append({"username": username, "nama": nama, "jenis_kelamin": jenis_kelamin, "role": role})

        if accepted:
            self.store.users.bulk_insert(accepted)
            self._log(Action.IMPORT, Entity.PENGGUNA, f"Mengimpor {len(accepted)} pengguna baru.")
        return ImportResult(len(accepted), errors)

    def update_user(
        self,
        username: str,
        nama: str,
        jenis_kelamin: str,
        role: str,
        photo: str | None = None,
    ) -> User:
        nama = _require_text(nama, "Nama")
        fields = {
            "nama": nama,
            "jenis_kelamin": _require_choice(jenis_kelamin, User.Gender, "Jenis kelamin"),
            "role": _require_choice(role, User.Role, "Role"),
        }
        if photo is not None:
            fields["photo"] = photo
        user = self.store.users.update(username, **fields)
        self._log(Action.UBAH, Entity.PENGGUNA, f"Memperbarui pengguna: {nama} ({username})")
        self._refresh_current(user)
        return user

    def delete_user(self, username: str) -> dict[str, int]:
        user = self.store.users.require(username)
        nama = user.nama
        removed = self.store.users.delete(username)
        if self.settings.sp_signatory_username == username:
            self.settings.sp_signatory_username = None
            self.state.save_settings(self.settings)
        self._log(Action.HAPUS, Entity.PENGGUNA, f"Menghapus pengguna: {nama} ({username})")
        return removed

    def update_user_photo(self, username: str, photo: str) -> User:
        photo = _require_text(photo, "Foto")
        user = self.store.users.update(username, photo=photo)
        self._log(Action.UBAH, Entity.PROFIL, f"Memperbarui foto profil untuk {username}.")
        self._refresh_current(user)
        return user

    # --- classes -------------------------------------------------------

    def add_class(self, kelas: str, tingkat: str, id_guru: str | None = None) -> SchoolClass:
        kelas = _require_text(kelas, "Nama kelas")
        row = self.store.classes.insert(
            kelas=kelas,
            tingkat=_require_choice(tingkat, SchoolClass.Tingkat, "Tingkat"),
            wali_kelas_id=self._resolve_teacher(id_guru),
        )
        self._log(Action.TAMBAH, Entity.KELAS, f"Menambahkan kelas baru: {kelas}")
        return row

    def update_class(self, class_id: int, kelas: str, tingkat: str, id_guru: str | None = None) -> SchoolClass:
        kelas = _require_text(kelas, "Nama kelas")
        row = self.store.classes.update(
            class_id,
            kelas=kelas,
            tingkat=_require_choice(tingkat, SchoolClass.Tingkat, "Tingkat"),
            wali_kelas_id=self._resolve_teacher(id_guru),
        )
        self._log(Action.UBAH, Entity.KELAS, f"Memperbarui kelas: {kelas}")
        return row

    def delete_class(self, class_id: int) -> dict[str, int]:
        name = self.store.classes.require(class_id).kelas
        removed = self.store.classes.delete(class_id)
        self._log(Action.HAPUS, Entity.KELAS, f"Menghapus kelas: {name}")
        return removed

    # --- sanction catalog ---------------------------------------------

    def add_sanction(self, desk_kesalahan: str, jenis_sanksi: str, point_pelanggar: int) -> Sanction:
        desk_kesalahan = _require_text(desk_kesalahan, "Deskripsi kesalahan")
        row = self.store.sanctions.insert(
            desk_kesalahan=desk_kesalahan,
            jenis_sanksi=_require_choice(jenis_sanksi, Sanction.Severity, "Jenis sanksi"),
            point_pelanggar=_require_points(point_pelanggar, "Poin pelanggar"),
        )
        self._log(Action.TAMBAH, Entity.SANKSI, f'Menambahkan sanksi baru: "{desk_kesalahan}"')
        return row

    def update_sanction(
        self, sanction_id: int, desk_kesalahan: str, jenis_sanksi: str, point_pelanggar: int
    ) -> Sanction:
        desk_kesalahan = _require_text(desk_kesalahan, "Deskripsi kesalahan")
        row = self.store.sanctions.update(
            sanction_id,
            desk_kesalahan=desk_kesalahan,
            jenis_sanksi=_require_choice(jenis_sanksi, Sanction.Severity, "Jenis sanksi"),
            point_pelanggar=_require_points(point_pelanggar, "Poin pelanggar"),
        )
        self._log(Action.UBAH, Entity.SANKSI, f'Memperbarui sanksi: "{desk_kesalahan}"')
        return row

    def delete_sanction(self, sanction_id: int) -> dict[str, int]:
        description = self.store.sanctions.require(sanction_id).desk_kesalahan
        removed = self.store.sanctions.delete(sanction_id)
        self._log(Action.HAPUS, Entity.SANKSI, f'Menghapus sanksi: "{description}"')
        return removed

    # --- remediation catalog ------------------------------------------

    def add_remediation(self, desk_perbaikan: str, jenis_perbaikan: str, point_perbaikan: int) -> RemediationAction:
        desk_perbaikan = _require_text(desk_perbaikan, "Deskripsi perbaikan")
        row = self.store.remediations.insert(
            desk_perbaikan=desk_perbaikan,
            jenis_perbaikan=_require_choice(jenis_perbaikan, RemediationAction.Difficulty, "Jenis perbaikan"),
            point_perbaikan=_require_points(point_perbaikan, "Poin perbaikan"),
        )
        self._log(Action.TAMBAH, Entity.INTROSPEKSI, f'Menambahkan introspeksi baru: "{desk_perbaikan}"')
        return row

    def update_remediation(
        self, remediation_id: int, desk_perbaikan: str, jenis_perbaikan: str, point_perbaikan: int
    ) -> RemediationAction:
        desk_perbaikan = _require_text(desk_perbaikan, "Deskripsi perbaikan")
        row = self.store.remediations.update(
            remediation_id,
            desk_perbaikan=desk_perbaikan,
            jenis_perbaikan=_require_choice(jenis_perbaikan, RemediationAction.Difficulty, "Jenis perbaikan"),
            point_perbaikan=_require_points(point_perbaikan, "Poin perbaikan"),
        )
        self._log(Action.UBAH, Entity.INTROSPEKSI, f'Memperbarui introspeksi: "{desk_perbaikan}"')
        return row

    def delete_remediation(self, remediation_id: int) -> dict[str, int]:
        description = self.store.remediations.require(remediation_id).desk_perbaikan
        removed = self.store.remediations.delete(remediation_id)
        self._log(Action.HAPUS, Entity.INTROSPEKSI, f'Menghapus introspeksi: "{description}"')
        return removed

    # --- student/class assignments ------------------------------------

    def add_assignment(self, nipd: str, id_kelas: int | None) -> StudentAssignment:
        student = self._require_student(nipd)
        if self.store.assignments.exists(student.username):
            raise DuplicateKey("Siswa ini sudah terdaftar di sebuah kelas.")
        row = self.store.assignments.insert(siswa_id=student.username, kelas_id=self._resolve_class(id_kelas))
        self._log(Action.TAMBAH, Entity.SISWA, f"Menambahkan relasi siswa-kelas untuk: {student.nama}")
        return row

    def update_assignment(self, nipd: str, id_kelas: int | None) -> StudentAssignment:
        student = self._require_student(nipd)
        row = self.store.assignments.update(student.username, kelas_id=self._resolve_class(id_kelas))
        self._log(Action.UBAH, Entity.SISWA, f"Memperbarui relasi siswa-kelas untuk: {student.nama}")
        return row

    def delete_assignment(self, nipd: str) -> dict[str, int]:
        removed = self.store.assignments.delete(nipd)
        self._log(Action.HAPUS, Entity.SISWA, f"Menghapus relasi siswa-kelas untuk: {self._display_name(nipd)}")
        return removed

    def assign_students_bulk(self, rows: Iterable[Mapping]) -> ImportResult:
        """Upsert ``{nipd, id_kelas}`` rows; a student already placed in a class is moved."""
        errors: list[str] = []
        accepted: list[dict] = []
        students = set(self.store.users.filter(role=User.Role.SISWA).values_list("username", flat=True))
        class_ids = set(self.store.classes.objects.values_list("id", flat=True))
        seen: set[str] = set()

        for row in rows:
            nipd = _clean(row.get("nipd"))
            class_id = _parse_id(row.get("id_kelas"))
            if not nipd or class_id is None:
                errors.append(f"Data tidak lengkap untuk: NIPD {nipd or 'Tanpa NIPD'}")
                continue
            if nipd not in students:
                errors.append(f'NIPD "{nipd}" tidak ditemukan atau bukan siswa.')
                continue
            if class_id not in class_ids:
                errors.append(f'Kelas dengan id {class_id} tidak ditemukan (NIPD "{nipd}").')
                continue
            if nipd in seen:
                errors.append(f"NIPD ganda dalam satu impor: {nipd}")
                continue
            seen.add(nipd)
            accepted.append({"siswa_id": nipd, "kelas_id": class_id})

        if accepted:
            self.store.assignments.upsert(accepted)
            self._log(Action.IMPORT, Entity.SISWA, f"Mengimpor {len(accepted)} penugasan kelas siswa.")
        return ImportResult(len(accepted), errors)

    # --- violation records ---------------------------------------------

    def add_violation(self, nipd: str, id_sanksi: int, tanggal: date | str) -> Violation:
        student = self._require_student(nipd)
        sanction = self.store.sanctions.require(_parse_id(id_sanksi))
        row = self.store.violations.insert(siswa_id=student.username, sanksi_id=sanction.id, tanggal=_parse_date(tanggal))
        self._log(Action.TAMBAH, Entity.PELANGGARAN, f"Menambahkan pelanggaran untuk: {student.nama}")
        return row

    def update_violation(self, violation_id: int, nipd: str, id_sanksi: int, tanggal: date | str) -> Violation:
        student = self._require_student(nipd)
        sanction = self.store.sanctions.require(_parse_id(id_sanksi))
        row = self.store.violations.update(
            violation_id,
            siswa_id=student.username,
            sanksi_id=sanction.id,
            tanggal=_parse_date(tanggal),
        )
        self._log(Action.UBAH, Entity.PELANGGARAN, f"Memperbarui pelanggaran untuk: {student.nama}")
        return row

    def delete_violation(self, violation_id: int) -> dict[str, int]:
        nipd = self.store.violations.require(violation_id).siswa_id
        removed = self.store.violations.delete(violation_id)
        self._log(Action.HAPUS, Entity.PELANGGARAN, f"Menghapus pelanggaran untuk: {self._display_name(nipd)}")
        return removed

    # --- guidance records ----------------------------------------------

    def add_guidance(self, nipd: str, id_perbaikan: int, tanggal: date | str) -> Guidance:
        student = self._require_student(nipd)
        remediation = self.store.remediations.require(_parse_id(id_perbaikan))
        row = self.store.guidance.insert(
            siswa_id=student.username,
            perbaikan_id=remediation.id,
            tanggal=_parse_date(tanggal),
        )
        self._log(Action.TAMBAH, Entity.BIMBINGAN, f"Menambahkan bimbingan untuk: {student.nama}")
        return row

    def update_guidance(self, guidance_id: int, nipd: str, id_perbaikan: int, tanggal: date | str) -> Guidance:
        student = self._require_student(nipd)
        remediation = self.store.remediations.require(_parse_id(id_perbaikan))
        row = self.store.guidance.update(
            guidance_id,
            siswa_id=student.username,
            perbaikan_id=remediation.id,
            tanggal=_parse_date(tanggal),
        )
        self._log(Action.UBAH, Entity.BIMBINGAN, f"Memperbarui bimbingan untuk: {student.nama}")
        return row

    def delete_guidance(self, guidance_id: int) -> dict[str, int]:
        nipd = self.store.guidance.require(guidance_id).siswa_id
        removed = self.store.guidance.delete(guidance_id)
        self._log(Action.HAPUS, Entity.BIMBINGAN, f"Menghapus bimbingan untuk: {self._display_name(nipd)}")
        return removed

    # --- authentication & profile -------------------------------------

    def login(self, username: str, password: str) -> User:
        self._wait()
        user = self.store.users.get(_clean(username))
        if user is None or password != settings.DISCIPLINE_PASSWORD:
            raise InvalidCredentials("Username atau kata sandi salah.")
        if user.role not in User.Role.values:
            raise InvalidCredentials("Anda tidak memiliki hak akses untuk masuk ke dashboard.")
        self._set_current(user)
        self._log(Action.LOGIN, Entity.AUTH, f"Pengguna {user.nama} berhasil login.")
        return user

    def logout(self) -> None:
        self._wait()
        user = self.current_user
        if user is not None:
            self._log(Action.LOGOUT, Entity.AUTH, f"Pengguna {user.nama} berhasil logout.", actor=user.username)
        self._set_current(None)

    def reset_password_request(self, identifier: str) -> None:
        identifier = _require_text(identifier, "Email atau username")
        self._wait()
        logger.info("Password reset requested for %s", identifier)

    def change_password(self, current_password: str, new_password: str, username: str | None = None) -> None:
        self._wait()
        username = username or (self.current_user.username if self.current_user else None)
        if not username:
            raise InvalidCredentials("Anda belum login.")
        if current_password != settings.DISCIPLINE_PASSWORD:
            raise InvalidCredentials("Kata sandi saat ini salah.")
        _require_text(new_password, "Kata sandi baru")
        self._log(Action.UBAH, Entity.PROFIL, f"Pengguna {username} mengubah kata sandi.")

    def admin_reset_password(self, username: str) -> None:
        self._wait()
        user = self.store.users.require(username)
        self._log(Action.UBAH, Entity.PENGGUNA, f"Mereset kata sandi untuk pengguna: {user.nama} ({username})")

    # --- settings & reports --------------------------------------------

    def update_settings(self, new_settings: AppSettings) -> AppSettings:
        _require_text(new_settings.app_name, "Nama aplikasi")
        aman = _require_points(new_settings.point_thresholds.aman, "Batas poin aman")
        perhatian = _require_points(new_settings.point_thresholds.perhatian, "Batas poin perhatian")
        if aman >= perhatian:
            raise InvalidInput("Batas poin aman harus lebih kecil dari batas poin perhatian.")
        signatory = self._resolve_teacher(new_settings.sp_signatory_username)

        new_settings.point_thresholds.aman = aman
        new_settings.point_thresholds.perhatian = perhatian
        new_settings.sp_signatory_username = signatory

        self.settings = new_settings
        self.state.save_settings(new_settings)
        self._log(Action.UBAH, Entity.PENGATURAN, "Memperbarui pengaturan aplikasi.")
        return new_settings

    def signatory(self) -> User | None:
        return self.store.users.get(self.settings.sp_signatory_username)

    def record_export(self, entity: Entity, count: int, label: str) -> None:
        self._log(Action.EXPORT, entity, f"Mengekspor {count} data {label}.")

    def backup(self) -> str:
        self._wait()
        self._log(Action.EXPORT, Entity.LAPORAN, "Mencadangkan seluruh data aplikasi.")
        return "Pencadangan data berhasil diproses."
