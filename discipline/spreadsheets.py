"""Excel/CSV import and export for the back office pages."""
import io
import zipfile
from collections.abc import Iterable
from datetime import datetime

import pandas as pd
from django.utils import timezone
from openpyxl.utils import get_column_letter

from .aggregation import ALL_TIME, Period
from .errors import InvalidInput
from .models import ActivityLog, User
from .services import DisciplineService, ImportResult

USER_COLUMNS = ("nama", "username", "jenis_kelamin", "role")
ASSIGNMENT_COLUMNS = ("nipd", "kelas")


def read_rows(upload) -> list[dict[str, str]]:
    """Every cell as text with blanks as empty strings; header names are lower-cased."""
    name = (getattr(upload, "name", "") or "").lower()
    try:
        if name.endswith(".csv"):
            frame = pd.read_csv(upload, dtype=str, keep_default_na=False)
        else:
            frame = pd.read_excel(upload, dtype=str, keep_default_na=False, engine="openpyxl")
    except (ValueError, OSError, zipfile.BadZipFile) as exc:
        raise InvalidInput("Terjadi kesalahan saat memproses file.") from exc

    frame = frame.fillna("")
    frame.columns = [str(column).strip().lower() for column in frame.columns]
    rows = []
    for record in frame.to_dict(orient="records"):
        cleaned = {key: str(value).strip() for key, value in record.items()}
        if any(cleaned.values()):
            rows.append(cleaned)
    return rows


def _require_columns(rows: list[dict], columns: tuple[str, ...], message: str) -> None:
    if not rows or not set(columns) <= set(rows[0]):
        raise InvalidInput(message)


def import_users(service: DisciplineService, upload) -> ImportResult:
    rows = read_rows(upload)
    _require_columns(
        rows,
        USER_COLUMNS,
        "Tidak ada data pengguna yang valid ditemukan. "
        "Pastikan header kolom adalah: nama, username, jenis_kelamin, role.",
    )
    return service.add_users_bulk(rows)


def import_assignments(service: DisciplineService, upload) -> ImportResult:
    rows = read_rows(upload)
    _require_columns(
        rows,
        ASSIGNMENT_COLUMNS,
        "Tidak ada data yang valid ditemukan. Pastikan header kolom adalah: nipd, kelas.",
    )
    class_ids = {kelas.kelas.strip().lower(): kelas.id for kelas in service.list_classes()}
    students = {user.username for user in service.list_users() if user.role == User.Role.SISWA}

    errors = []
    accepted = []
    seen: set[str] = set()
    # Row 1 of the sheet is the header.
    for number, row in enumerate(rows, start=2):
        nipd = row.get("nipd", "")
        class_name = row.get("kelas", "")
        if not nipd or not class_name:
            errors.append(f"Baris {number}: NIPD atau nama kelas kosong.")
            continue
        if nipd not in students:
            errors.append(f'Baris {number}: NIPD "{nipd}" tidak ditemukan atau bukan siswa.')
            continue
        class_id = class_ids.get(class_name.lower())
        if class_id is None:
            errors.append(f'Baris {number}: Kelas "{class_name}" tidak ditemukan.')
            continue
        if nipd in seen:
            errors.append(f"Baris {number}: NIPD ganda dalam satu impor: {nipd}")
            continue
        seen.add(nipd)
        accepted.append({"nipd": nipd, "id_kelas": class_id})

    return ImportResult(0, errors).merge(service.assign_students_bulk(accepted))


def export_workbook(records: Iterable[dict], sheet_name: str) -> bytes:
    frame = pd.DataFrame.from_records(list(records))
    sheet_name = sheet_name[:31]
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        frame.to_excel(writer, index=False, sheet_name=sheet_name)
        sheet = writer.sheets[sheet_name]
        for position, column in enumerate(frame.columns, start=1):
            width = max([len(str(column)), *(len(str(value)) for value in frame[column])]) + 2
            sheet.column_dimensions[get_column_letter(position)].width = width
    return output.getvalue()


def export_filename(prefix: str, now: datetime | None = None) -> str:
    now = timezone.localtime(now) if now else timezone.localtime()
    return f"{prefix}_{now:%Y-%m-%d_%H-%M}.xlsx"


def _class_names(service: DisciplineService) -> dict[str, str]:
    names = {kelas.id: kelas.kelas for kelas in service.list_classes()}
    return {nipd: names.get(class_id, "-") for nipd, class_id in service.store.class_of().items()}


def user_rows(users: Iterable[User]) -> list[dict]:
    return [
        {
            "No.": number,
            "Nama": user.nama,
            "Username": user.username,
            "Jenis Kelamin": user.jenis_kelamin,
            "Role": user.role,
        }
        for number, user in enumerate(users, start=1)
    ]


def violation_rows(service: DisciplineService, period: Period = ALL_TIME, kelas: int | None = None) -> list[dict]:
    users = service.store.users_by_username()
    sanctions = {sanction.id: sanction for sanction in service.list_sanctions()}
    class_names = _class_names(service)
    rows = []
    for number, violation in enumerate(service.list_violations(period, kelas), start=1):
        student = users.get(violation.siswa_id)
        sanction = sanctions.get(violation.sanksi_id)
        rows.append(
            {
                "No.": number,
                "Tanggal": violation.tanggal.isoformat(),
                "NIPD": violation.siswa_id,
                "Nama Siswa": student.nama if student else "N/A",
                "Kelas": class_names.get(violation.siswa_id, "-"),
                "Pelanggaran": sanction.desk_kesalahan if sanction else "N/A",
                "Jenis": sanction.jenis_sanksi if sanction else "N/A",
                "Poin": sanction.point_pelanggar if sanction else 0,
            }
        )
    return rows


def guidance_rows(service: DisciplineService, period: Period = ALL_TIME, kelas: int | None = None) -> list[dict]:
    users = service.store.users_by_username()
    remediations = {item.id: item for item in service.list_remediations()}
    class_names = _class_names(service)
    rows = []
    for number, record in enumerate(service.list_guidance(period, kelas), start=1):
        student = users.get(record.siswa_id)
        remediation = remediations.get(record.perbaikan_id)
        rows.append(
            {
                "No.": number,
                "Tanggal": record.tanggal.isoformat(),
                "NIPD": record.siswa_id,
                "Nama Siswa": student.nama if student else "N/A",
                "Kelas": class_names.get(record.siswa_id, "-"),
                "Perbaikan": remediation.desk_perbaikan if remediation else "N/A",
                "Jenis": remediation.jenis_perbaikan if remediation else "N/A",
                "Poin": remediation.point_perbaikan if remediation else 0,
            }
        )
    return rows


def summary_rows(service: DisciplineService, period: Period = ALL_TIME) -> list[dict]:
    """Point summary for students with at least one record in ``period``."""
    active = {row.siswa_id for row in service.list_violations(period)}
    active.update(row.siswa_id for row in service.list_guidance(period))
    summaries = [summary for summary in service.student_summaries(period) if summary.user.username in active]
    return [
        {
            "No.": number,
            "NIPD": summary.user.username,
            "Nama Siswa": summary.user.nama,
            "Kelas": summary.kelas.kelas if summary.kelas else "-",
            "Total Poin Pelanggaran": summary.violation_points,
            "Total Poin Perbaikan": summary.remediation_points,
            "Poin Akhir": summary.net_score,
            "Kondisi": summary.tier.value if summary.tier else "",
        }
        for number, summary in enumerate(summaries, start=1)
    ]


def unassigned_rows(service: DisciplineService) -> list[dict]:
    return [
        {"No.": number, "NIPD": user.username, "Nama Siswa": user.nama, "Jenis Kelamin": user.jenis_kelamin}
        for number, user in enumerate(service.unassigned_students(), start=1)
    ]


def log_rows(service: DisciplineService, entries: Iterable[ActivityLog] | None = None) -> list[dict]:
    users = service.store.users_by_username()
    entries = service.list_logs() if entries is None else entries
    rows = []
    for entry in entries:
        user = users.get(entry.username)
        rows.append(
            {
                "Timestamp": timezone.localtime(entry.timestamp).strftime("%d/%m/%Y %H.%M.%S"),
                "Pengguna": user.nama if user else entry.username,
                "Username": entry.username,
                "Aksi": entry.action,
                "Entitas": entry.entity,
                "Rincian": entry.details,
            }
        )
    return rows
