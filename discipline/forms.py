from django import forms

from .aggregation import ALL_TIME, Period, Tier
from .models import ActivityLog

ISO_DATE = ["%Y-%m-%d"]


class LoginForm(forms.Form):
    username = forms.CharField(label="Username", max_length=150)
    password = forms.CharField(label="Kata sandi", widget=forms.PasswordInput)


class DateRangeForm(forms.Form):
    start = forms.DateField(label="Dari tanggal", required=False, input_formats=ISO_DATE)
    end = forms.DateField(label="Sampai tanggal", required=False, input_formats=ISO_DATE)

    def clean(self):
        cleaned = super().clean()
        start, end = cleaned.get("start"), cleaned.get("end")
        if start and end and start > end:
            raise forms.ValidationError("Tanggal mulai tidak boleh setelah tanggal akhir.")
        return cleaned

    def period(self) -> Period:
        if not self.is_valid():
            return ALL_TIME
        return Period(self.cleaned_data.get("start"), self.cleaned_data.get("end"))


class PeriodForm(DateRangeForm):
    tier = forms.ChoiceField(label="Kondisi", required=False, choices=[("", "Semua"), *Tier.choices])
    kelas = forms.IntegerField(label="Kelas", required=False, min_value=1)


class LogFilterForm(DateRangeForm):
    username = forms.CharField(label="Pengguna", required=False, max_length=150)
    action = forms.ChoiceField(label="Aksi", required=False, choices=[("", "Semua"), *ActivityLog.Action.choices])
    entity = forms.ChoiceField(
        label="Entitas", required=False, choices=[("", "Semua"), *ActivityLog.Entity.choices]
    )

    def filters(self) -> dict:
        return {
            "username": self.cleaned_data.get("username") or None,
            "action": self.cleaned_data.get("action") or None,
            "entity": self.cleaned_data.get("entity") or None,
        }


class ImportForm(forms.Form):
    file = forms.FileField(label="File Excel atau CSV")
