from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin

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


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    fieldsets = DjangoUserAdmin.fieldsets + (("Profil", {"fields": ("nama", "jenis_kelamin", "role", "photo")}),)
    add_fieldsets = DjangoUserAdmin.add_fieldsets + ((None, {"fields": ("nama", "jenis_kelamin", "role")}),)
    list_display = ("username", "nama", "role", "jenis_kelamin")
    list_filter = ("role", "jenis_kelamin")
    search_fields = ("username", "nama")


@admin.register(SchoolClass)
class SchoolClassAdmin(admin.ModelAdmin):
    list_display = ("id", "kelas", "tingkat", "wali_kelas")
    list_filter = ("tingkat",)
    search_fields = ("kelas",)


@admin.register(Sanction)
class SanctionAdmin(admin.ModelAdmin):
    list_display = ("id", "desk_kesalahan", "jenis_sanksi", "point_pelanggar")
    list_filter = ("jenis_sanksi",)


@admin.register(RemediationAction)
class RemediationActionAdmin(admin.ModelAdmin):
    list_display = ("id", "desk_perbaikan", "jenis_perbaikan", "point_perbaikan")
    list_filter = ("jenis_perbaikan",)


@admin.register(StudentAssignment)
class StudentAssignmentAdmin(admin.ModelAdmin):
    list_display = ("siswa", "kelas")
    list_filter = ("kelas",)
    search_fields = ("siswa__username", "siswa__nama")


@admin.register(Violation)
class ViolationAdmin(admin.ModelAdmin):
    list_display = ("id", "tanggal", "siswa", "sanksi")
    list_filter = ("sanksi__jenis_sanksi",)
    search_fields = ("siswa__username", "siswa__nama")
    date_hierarchy = "tanggal"


@admin.register(Guidance)
class GuidanceAdmin(admin.ModelAdmin):
    list_display = ("id", "tanggal", "siswa", "perbaikan")
    list_filter = ("perbaikan__jenis_perbaikan",)
    search_fields = ("siswa__username", "siswa__nama")
    date_hierarchy = "tanggal"


@admin.register(ActivityLog)
class ActivityLogAdmin(admin.ModelAdmin):
    list_display = ("id", "timestamp", "username", "action", "entity", "details")
    list_filter = ("action", "entity")
    search_fields = ("username", "details")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
