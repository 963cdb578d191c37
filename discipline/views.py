import logging

from django.contrib.auth import login as auth_login
from django.contrib.auth import logout as auth_logout
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.shortcuts import redirect
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from . import spreadsheets
from .decorators import ADMIN_ROLES, STAFF_ROLES, require_role
from .errors import DomainError, DuplicateKey, InvalidCredentials, RecordNotFound
from .forms import DateRangeForm, ImportForm, LogFilterForm, LoginForm, PeriodForm
from .models import ActivityLog, User
from .services import DisciplineService, ImportResult

logger = logging.getLogger(__name__)

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

ERROR_STATUS = (
    (RecordNotFound, 404),
    (InvalidCredentials, 401),
    (DuplicateKey, 409),
)

# kind -> (log entity, label for the log entry, file prefix, sheet name)
EXPORTS = {
    "users": (ActivityLog.Entity.PENGGUNA, "pengguna", "Daftar_Pengguna", "Pengguna"),
    "violations": (ActivityLog.Entity.PELANGGARAN, "pelanggaran", "Laporan_Pelanggaran", "Pelanggaran"),
    "guidance": (ActivityLog.Entity.BIMBINGAN, "bimbingan", "Laporan_Bimbingan", "Bimbingan"),
    "summary": (ActivityLog.Entity.LAPORAN, "ringkasan poin siswa", "Ringkasan_Poin_Siswa", "Ringkasan Poin"),
    "unassigned": (ActivityLog.Entity.SISWA, "siswa tanpa kelas", "Daftar_Siswa_Tanpa_Kelas", "Siswa Tanpa Kelas"),
    "logs": (ActivityLog.Entity.LAPORAN, "log aktivitas", "Log_Aktivitas", "Log Aktivitas"),
}


def get_service(request: HttpRequest) -> DisciplineService:
    service = DisciplineService(state=request.session)
    if request.user.is_authenticated and service.current_user != request.user:
        service.resume(request.user)
    return service


def error_response(exc: DomainError) -> JsonResponse:
    status = next((code for error_type, code in ERROR_STATUS if isinstance(exc, error_type)), 400)
    return JsonResponse({"error": exc.message}, status=status)


def form_error_response(form) -> JsonResponse:
    return JsonResponse({"error": "Data tidak valid.", "fields": form.errors.get_json_data()}, status=400)


@require_http_methods(["GET", "POST"])
def login_view(request: HttpRequest) -> HttpResponse:
    service = get_service(request)
    if request.method == "GET":
        app_settings = service.get_settings()
        return JsonResponse({"appName": app_settings.app_name, "appLogo": app_settings.app_logo})

    form = LoginForm(request.POST)
    if not form.is_valid():
        return form_error_response(form)
    try:
        user = service.login(form.cleaned_data["username"], form.cleaned_data["password"])
    except DomainError as exc:
        return error_response(exc)
    auth_login(request, user, backend="django.contrib.auth.backends.ModelBackend")
    # login() flushes the session when another account was signed in.
    service.resume(user)
    service.state.save_settings(service.get_settings())
    return JsonResponse({"user": user.as_session_dict()})


@require_POST
def logout_view(request: HttpRequest) -> HttpResponse:
    service = get_service(request)
    service.logout()
    app_settings = service.get_settings()
    auth_logout(request)
    # The settings document belongs to the client, not to the signed-in account.
    service.state.save_settings(app_settings)
    return JsonResponse({"ok": True})


def home(request: HttpRequest) -> HttpResponse:
    if not request.user.is_authenticated:
        return redirect("login")
    if request.user.is_superuser or request.user.role in STAFF_ROLES:
        return redirect("dashboard")
    if request.user.role == User.Role.SISWA:
        return redirect("student_me")
    logger.warning("Signing out %s: no usable role", request.user.username)
    auth_logout(request)
    return redirect("login")


@require_GET
@require_role(STAFF_ROLES)
def dashboard(request: HttpRequest) -> HttpResponse:
    service = get_service(request)
    try:
        data = service.dashboard(request.GET.get("month") or None)
    except DomainError as exc:
        return error_response(exc)
    return JsonResponse(data)


@require_GET
@require_role([User.Role.SISWA])
def student_me(request: HttpRequest) -> HttpResponse:
    service = get_service(request)
    form = PeriodForm(request.GET)
    if not form.is_valid():
        return form_error_response(form)
    period = form.period()
    try:
        summary = service.student_summary(request.user.username, period)
    except DomainError as exc:
        return error_response(exc)
    violations = service.store.violations.filter(siswa_id=request.user.username, **period.lookups())
    guidance = service.store.guidance.filter(siswa_id=request.user.username, **period.lookups())
    return JsonResponse(
        {
            "summary": summary.as_dict(),
            "pelanggaran": [
                {**row.as_dict(), "desk_kesalahan": row.sanksi.desk_kesalahan, "point": row.sanksi.point_pelanggar}
                for row in violations.select_related("sanksi")
            ],
            "bimbingan": [
                {**row.as_dict(), "desk_perbaikan": row.perbaikan.desk_perbaikan, "point": row.perbaikan.point_perbaikan}
                for row in guidance.select_related("perbaikan")
            ],
        }
    )


@require_GET
@require_role(STAFF_ROLES)
def student_list(request: HttpRequest) -> HttpResponse:
    service = get_service(request)
    form = PeriodForm(request.GET)
    if not form.is_valid():
        return form_error_response(form)
    summaries = service.student_summaries(form.period())
    tier = form.cleaned_data.get("tier")
    if tier:
        summaries = [summary for summary in summaries if summary.tier == tier]
    return JsonResponse({"students": [summary.as_dict() for summary in summaries]})


@require_GET
@require_role(ADMIN_ROLES)
def activity_logs(request: HttpRequest) -> HttpResponse:
    form = LogFilterForm(request.GET)
    if not form.is_valid():
        return form_error_response(form)
    service = get_service(request)
    entries = service.list_logs(form.period(), **form.filters())
    return JsonResponse({"logs": [entry.as_dict() for entry in entries]})


def _import(request: HttpRequest, importer, noun: str) -> HttpResponse:
    form = ImportForm(request.POST, request.FILES)
    if not form.is_valid():
        return form_error_response(form)
    service = get_service(request)
    try:
        result: ImportResult = importer(service, form.cleaned_data["file"])
    except DomainError as exc:
        return error_response(exc)
    return JsonResponse({**result.as_dict(), "message": result.summary(noun)})


@require_POST
@require_role(ADMIN_ROLES)
def import_users(request: HttpRequest) -> HttpResponse:
    return _import(request, spreadsheets.import_users, "pengguna")


@require_POST
@require_role([*ADMIN_ROLES, User.Role.TDS])
def import_assignments(request: HttpRequest) -> HttpResponse:
    return _import(request, spreadsheets.import_assignments, "penugasan kelas")


def _export_rows(service: DisciplineService, kind: str, form: DateRangeForm) -> list[dict]:
    period = form.period()
    if kind == "logs":
        return spreadsheets.log_rows(service, service.list_logs(period, **form.filters()))
    kelas = form.cleaned_data.get("kelas")
    if kind == "users":
        return spreadsheets.user_rows(service.list_users())
    if kind == "violations":
        return spreadsheets.violation_rows(service, period, kelas)
    if kind == "guidance":
        return spreadsheets.guidance_rows(service, period, kelas)
    if kind == "summary":
        return spreadsheets.summary_rows(service, period)
    return spreadsheets.unassigned_rows(service)


@require_GET
@require_role(STAFF_ROLES)
def export(request: HttpRequest, kind: str) -> HttpResponse:
    if kind not in EXPORTS:
        return JsonResponse({"error": f"Jenis ekspor tidak dikenal: {kind}"}, status=404)
    if kind == "logs" and not (request.user.is_superuser or request.user.role in ADMIN_ROLES):
        return redirect("home")
    form = LogFilterForm(request.GET) if kind == "logs" else PeriodForm(request.GET)
    if not form.is_valid():
        return form_error_response(form)

    service = get_service(request)
    entity, label, prefix, sheet_name = EXPORTS[kind]
    rows = _export_rows(service, kind, form)
    content = spreadsheets.export_workbook(rows, sheet_name)
    service.record_export(entity, len(rows), label)

    response = HttpResponse(content, content_type=XLSX_CONTENT_TYPE)
    response["Content-Disposition"] = f'attachment; filename="{spreadsheets.export_filename(prefix)}"'
    return response
