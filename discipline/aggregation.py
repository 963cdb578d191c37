"""Read-only aggregates over an ``EntityStore``.

Nothing here caches or writes; every function recomputes from the current
rows so callers decide when (and whether) to memoize.
"""
import calendar
from dataclasses import dataclass
from datetime import date, timedelta

from django.db import models
from django.db.models import Sum
from django.db.models.functions import Coalesce

from .errors import InvalidInput
from .models import RemediationAction, Sanction, SchoolClass, User
from .persistence import PointThresholds
from .store import EntityStore

NORMAL_CUTOFF = 29

GRADE_ORDER = {
    SchoolClass.Tingkat.X: 1,
    SchoolClass.Tingkat.XI: 2,
    SchoolClass.Tingkat.XII: 3,
}


class Tier(models.TextChoices):
    NORMAL = "Normal", "Normal"
    PERLU_PENGAWASAN = "Perlu Pengawasan", "Perlu Pengawasan"
    PERLAKUAN_KHUSUS = "Perlakuan Khusus", "Perlakuan Khusus"
    KONDISI_KRITIS = "Kondisi Kritis", "Kondisi Kritis"


@dataclass(frozen=True)
class Period:
    """Inclusive date window over ``tanggal``; a missing bound is open."""

    start: date | None = None
    end: date | None = None

    @classmethod
    def month(cls, value: str) -> "Period":
        try:
            year, month = (int(part) for part in value.split("-"))
            last_day = calendar.monthrange(year, month)[1]
        except (AttributeError, TypeError, ValueError, calendar.IllegalMonthError) as exc:
            raise InvalidInput("Format bulan harus YYYY-MM.") from exc
        return cls(date(year, month, 1), date(year, month, last_day))

    @classmethod
    def day(cls, value: date) -> "Period":
        return cls(value, value)

    @property
    def is_unbounded(self) -> bool:
        return self.start is None and self.end is None

    def lookups(self, field: str = "tanggal") -> dict:
        bounds = {}
        if self.start is not None:
            bounds[f"{field}__gte"] = self.start
        if self.end is not None:
            bounds[f"{field}__lte"] = self.end
        return bounds

    def contains(self, value: date) -> bool:
        if self.start is not None and value < self.start:
            return False
        if self.end is not None and value > self.end:
            return False
        return True


ALL_TIME = Period()


@dataclass
class StudentSummary:
    user: User
    kelas: SchoolClass | None
    violation_points: int
    remediation_points: int
    net_score: int
    tier: Tier | None = None

    def as_dict(self) -> dict:
        return {
            "nipd": self.user.username,
            "nama": self.user.nama,
            "kelas": self.kelas.kelas if self.kelas else None,
            "id_kelas": self.kelas.id if self.kelas else None,
            "point_pelanggaran": self.violation_points,
            "point_perbaikan": self.remediation_points,
            "total_point": self.net_score,
            "kondisi": self.tier.value if self.tier else None,
        }


@dataclass
class ClassCount:
    kelas: SchoolClass
    count: int


@dataclass
class MostCommon:
    item: Sanction | RemediationAction
    count: int
    student_count: int


def violation_points(store: EntityStore, nipd: str, period: Period = ALL_TIME) -> int:
    total = (
        store.violations.filter(siswa_id=nipd, **period.lookups())
        .aggregate(total=Coalesce(Sum("sanksi__point_pelanggar"), 0))
        .get("total")
    )
    return int(total or 0)


def remediation_points(store: EntityStore, nipd: str, period: Period = ALL_TIME) -> int:
    total = (
        store.guidance.filter(siswa_id=nipd, **period.lookups())
        .aggregate(total=Coalesce(Sum("perbaikan__point_perbaikan"), 0))
        .get("total")
    )
    return int(total or 0)


def net_score(store: EntityStore, nipd: str, period: Period = ALL_TIME) -> int:
    return max(0, violation_points(store, nipd, period) - remediation_points(store, nipd, period))


def classify(score: int, thresholds: PointThresholds) -> Tier:
    # The 29 cutoff is fixed; only the upper tiers follow the configured thresholds.
    if score <= NORMAL_CUTOFF:
        return Tier.NORMAL
    if score <= thresholds.aman:
        return Tier.PERLU_PENGAWASAN
    if score <= thresholds.perhatian:
        return Tier.PERLAKUAN_KHUSUS
    return Tier.KONDISI_KRITIS


def _point_totals(store: EntityStore, period: Period) -> tuple[dict[str, int], dict[str, int]]:
    violations = (
        store.violations.filter(**period.lookups())
        .order_by()
        .values("siswa_id")
        .annotate(total=Sum("sanksi__point_pelanggar"))
    )
    remediations = (
        store.guidance.filter(**period.lookups())
        .order_by()
        .values("siswa_id")
        .annotate(total=Sum("perbaikan__point_perbaikan"))
    )
    return (
        {row["siswa_id"]: int(row["total"] or 0) for row in violations},
        {row["siswa_id"]: int(row["total"] or 0) for row in remediations},
    )


def student_summaries(
    store: EntityStore,
    thresholds: PointThresholds,
    period: Period = ALL_TIME,
) -> list[StudentSummary]:
    classes = {kelas.id: kelas for kelas in store.classes.objects}
    class_of = store.class_of()
    violation_totals, remediation_totals = _point_totals(store, period)

    summaries = []
    for user in store.users.filter(role=User.Role.SISWA):
        violations = violation_totals.get(user.username, 0)
        remediations = remediation_totals.get(user.username, 0)
        score = max(0, violations - remediations)
        summaries.append(
            StudentSummary(
                user=user,
                kelas=classes.get(class_of.get(user.username)),
                violation_points=violations,
                remediation_points=remediations,
                net_score=score,
                tier=classify(score, thresholds),
            )
        )
    summaries.sort(key=lambda summary: summary.user.nama.casefold())
    return summaries


def class_violation_counts(store: EntityStore, period: Period = ALL_TIME) -> list[ClassCount]:
    classes = {kelas.id: kelas for kelas in store.classes.objects}
    class_of = store.class_of()

    counts: dict[int, int] = {}
    for nipd in store.violations.filter(**period.lookups()).values_list("siswa_id", flat=True):
        class_id = class_of.get(nipd)
        if class_id:
            counts[class_id] = counts.get(class_id, 0) + 1

    occupied = {class_id for class_id in class_of.values() if class_id is not None}
    rows = [ClassCount(classes[class_id], counts.get(class_id, 0)) for class_id in occupied if class_id in classes]
    rows.sort(key=lambda row: (GRADE_ORDER.get(row.kelas.tingkat, 99), row.kelas.kelas))
    return rows


def top_offenders(
    store: EntityStore,
    period: Period = ALL_TIME,
    limit: int = 5,
    thresholds: PointThresholds | None = None,
) -> list[StudentSummary]:
    """Students with activity in ``period``, highest net score first.

    Ties keep first-seen order: violations by id, then guidance records.
    """
    sanction_points = dict(store.sanctions.objects.values_list("id", "point_pelanggar"))
    remediation_catalog = dict(store.remediations.objects.values_list("id", "point_perbaikan"))
    users = store.users_by_username()
    classes = {kelas.id: kelas for kelas in store.classes.objects}
    class_of = store.class_of()

    totals: dict[str, list[int]] = {}
    for nipd, sanction_id in store.violations.filter(**period.lookups()).values_list("siswa_id", "sanksi_id"):
        if sanction_id in sanction_points:
            totals.setdefault(nipd, [0, 0])[0] += sanction_points[sanction_id]
    for nipd, remediation_id in store.guidance.filter(**period.lookups()).values_list("siswa_id", "perbaikan_id"):
        if remediation_id in remediation_catalog:
            totals.setdefault(nipd, [0, 0])[1] += remediation_catalog[remediation_id]

    rows = []
    for nipd, (violations, remediations) in totals.items():
        user = users.get(nipd)
        if user is None or user.role != User.Role.SISWA:
            continue
        score = max(0, violations - remediations)
        rows.append(
            StudentSummary(
                user=user,
                kelas=classes.get(class_of.get(nipd)),
                violation_points=violations,
                remediation_points=remediations,
                net_score=score,
                tier=classify(score, thresholds) if thresholds else None,
            )
        )
    rows.sort(key=lambda row: row.net_score, reverse=True)
    return rows[:limit]


def _most_common(pairs: list[tuple[str, int]], catalog: dict) -> MostCommon | None:
    counts: dict[int, int] = {}
    for _, item_id in pairs:
        counts[item_id] = counts.get(item_id, 0) + 1
    if not counts:
        return None
    # max() keeps the first maximal entry in insertion order.
    item_id, count = max(counts.items(), key=lambda entry: entry[1])
    item = catalog.get(item_id)
    if item is None:
        return None
    students = {nipd for nipd, ref in pairs if ref == item_id}
    return MostCommon(item=item, count=count, student_count=len(students))


def most_common_sanction(store: EntityStore, period: Period = ALL_TIME) -> MostCommon | None:
    pairs = list(store.violations.filter(**period.lookups()).values_list("siswa_id", "sanksi_id"))
    return _most_common(pairs, {sanction.id: sanction for sanction in store.sanctions.objects})


def most_common_remediation(store: EntityStore, period: Period = ALL_TIME) -> MostCommon | None:
    pairs = list(store.guidance.filter(**period.lookups()).values_list("siswa_id", "perbaikan_id"))
    return _most_common(pairs, {item.id: item for item in store.remediations.objects})


def students_per_grade(store: EntityStore) -> dict[str, int]:
    grades = {tingkat: 0 for tingkat in SchoolClass.Tingkat.values}
    for tingkat in store.assignments.filter(kelas__isnull=False).values_list("kelas__tingkat", flat=True):
        if tingkat in grades:
            grades[tingkat] += 1
    return grades


def severity_breakdown(store: EntityStore, period: Period = ALL_TIME) -> dict[str, int]:
    breakdown = {severity: 0 for severity in Sanction.Severity.values}
    for severity in store.violations.filter(**period.lookups()).values_list("sanksi__jenis_sanksi", flat=True):
        breakdown[severity] = breakdown.get(severity, 0) + 1
    return breakdown


def difficulty_breakdown(store: EntityStore, period: Period = ALL_TIME) -> dict[str, int]:
    breakdown = {difficulty: 0 for difficulty in RemediationAction.Difficulty.values}
    for difficulty in store.guidance.filter(**period.lookups()).values_list(
        "perbaikan__jenis_perbaikan", flat=True
    ):
        breakdown[difficulty] = breakdown.get(difficulty, 0) + 1
    return breakdown


def daily_activity(store: EntityStore, today: date, days: int = 7) -> list[dict]:
    """Violation and guidance counts per day, oldest first, ending at ``today``."""
    window = Period(today - timedelta(days=days - 1), today)
    violations: dict[date, int] = {}
    for tanggal in store.violations.filter(**window.lookups()).values_list("tanggal", flat=True):
        violations[tanggal] = violations.get(tanggal, 0) + 1
    guidance: dict[date, int] = {}
    for tanggal in store.guidance.filter(**window.lookups()).values_list("tanggal", flat=True):
        guidance[tanggal] = guidance.get(tanggal, 0) + 1

    series = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        series.append({"tanggal": day.isoformat(), "pelanggaran": violations.get(day, 0), "bimbingan": guidance.get(day, 0)})
    return series
