"""Entity store: one ``Collection`` per table, all writes funnelled through here.

Referential integrity is declared on the model relations (``on_delete``) and
enforced by Django's deletion collector inside ``Collection.delete``; callers
never clean up related rows themselves.
"""
import logging
from typing import Any, Iterable

from django.db import DEFAULT_DB_ALIAS, transaction
from django.db.models import Max, Model, QuerySet

from .errors import DuplicateKey, RecordNotFound
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

logger = logging.getLogger(__name__)


def cascade_rules(model: type[Model]) -> list[tuple[str, str, str]]:
    """(related model, field, on_delete) for every relation pointing at ``model``."""
    rules = []
    for relation in model._meta.related_objects:
        related = relation.related_model
        if related._meta.app_label != model._meta.app_label:
            continue
        rules.append((related.__name__, relation.field.name, relation.on_delete.__name__))
    return rules


class Collection:
    def __init__(
        self,
        model: type[Model],
        label: str,
        key_field: str = "pk",
        assigns_id: bool = True,
        using: str = DEFAULT_DB_ALIAS,
    ) -> None:
        self.model = model
        self.label = label
        self.key_field = key_field
        self.assigns_id = assigns_id
        self.using = using

    @property
    def objects(self) -> QuerySet:
        return self.model._default_manager.using(self.using).all()

    def list(self) -> list:
        return list(self.objects)

    def count(self) -> int:
        return self.objects.count()

    def filter(self, **lookups: Any) -> QuerySet:
        return self.objects.filter(**lookups)

    def exists(self, key: Any) -> bool:
        return self.objects.filter(**{self.key_field: key}).exists()

    def get(self, key: Any) -> Model | None:
        if key is None:
            return None
        return self.objects.filter(**{self.key_field: key}).first()

    def require(self, key: Any) -> Model:
        row = self.get(key)
        if row is None:
            raise RecordNotFound(f"{self.label} tidak ditemukan: {key}")
        return row

    def next_id(self) -> int:
        current = self.objects.aggregate(top=Max("id")).get("top")
        return int(current or 0) + 1

    def _create(self, fields: dict) -> Model:
        return self.model._default_manager.db_manager(self.using).create(**fields)

    def insert(self, **fields: Any) -> Model:
        with transaction.atomic(using=self.using):
            if self.assigns_id:
                fields["id"] = self.next_id()
            else:
                key = fields.get(self.key_field)
                if self.exists(key):
                    raise DuplicateKey(f"{self.label} sudah ada: {key}")
            row = self._create(fields)
        logger.debug("insert %s %s", self.label, row.pk)
        return row

    def update(self, key: Any, **fields: Any) -> Model:
        with transaction.atomic(using=self.using):
            row = self.require(key)
            for name, value in fields.items():
                setattr(row, name, value)
            row.save(using=self.using)
        return row

    def delete(self, key: Any) -> dict[str, int]:
        """Delete one row; returns removed-row counts per model, cascades included."""
        with transaction.atomic(using=self.using):
            row = self.require(key)
            _, removed = row.delete(using=self.using)
        logger.debug("delete %s %s: %s", self.label, key, removed)
        return removed


class UserCollection(Collection):
    def _create(self, fields: dict) -> Model:
        # Accounts authenticate against the shared literal, never a stored hash.
        return self.model._default_manager.db_manager(self.using).create_user(password=None, **fields)

    def bulk_insert(self, rows: Iterable[dict]) -> list[Model]:
        with transaction.atomic(using=self.using):
            return [self._create(dict(row)) for row in rows]


class AssignmentCollection(Collection):
    def upsert(self, rows: Iterable[dict]) -> list[Model]:
        saved = []
        with transaction.atomic(using=self.using):
            for row in rows:
                assignment, _ = self.model._default_manager.db_manager(self.using).update_or_create(
                    siswa_id=row["siswa_id"],
                    defaults={"kelas_id": row["kelas_id"]},
                )
                saved.append(assignment)
        return saved


class EntityStore:
    """All collections of the discipline back office, bound to one database alias."""

    def __init__(self, using: str = DEFAULT_DB_ALIAS) -> None:
        self.using = using
        self.users = UserCollection(User, "Pengguna", key_field="username", assigns_id=False, using=using)
        self.classes = Collection(SchoolClass, "Kelas", using=using)
        self.sanctions = Collection(Sanction, "Sanksi", using=using)
        self.remediations = Collection(RemediationAction, "Introspeksi", using=using)
        self.assignments = AssignmentCollection(
            StudentAssignment, "Siswa", key_field="siswa_id", assigns_id=False, using=using
        )
        self.violations = Collection(Violation, "Pelanggaran", using=using)
        self.guidance = Collection(Guidance, "Bimbingan", using=using)
        self.logs = Collection(ActivityLog, "Log", key_field="id", assigns_id=False, using=using)

    def users_by_username(self) -> dict[str, User]:
        return {user.username: user for user in self.users.objects}

    def class_of(self) -> dict[str, int | None]:
        """Current class id keyed by student username."""
        return dict(self.assignments.objects.values_list("siswa_id", "kelas_id"))
