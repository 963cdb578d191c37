"""Per-client persisted state: the signed-in user and the settings document.

Both live as JSON strings in a small key/value backend (``request.session`` in
the web layer, a plain dict in tests). Nothing here is versioned; anything
that fails to decode is dropped and the defaults are used instead.
"""
import json
import logging
from collections.abc import MutableMapping
from dataclasses import asdict, dataclass, field

from .errors import MalformedState

logger = logging.getLogger(__name__)

USER_KEY = "user"
SETTINGS_KEY = "appSettings"

KOP_SURAT_LINES = 8


@dataclass
class PointThresholds:
    aman: int = 10
    perhatian: int = 40


@dataclass
class KopSurat:
    logo: str | None = None
    line1: str = ""
    line2: str = ""
    line3: str = ""
    line4: str = ""
    line5: str = ""
    line6: str = ""
    line7: str = ""
    line8: str = ""

    def lines(self) -> list[str]:
        return [getattr(self, f"line{number}") for number in range(1, KOP_SURAT_LINES + 1)]


@dataclass
class AppSettings:
    app_name: str = "DisciplineApp"
    app_logo: str | None = None
    point_thresholds: PointThresholds = field(default_factory=PointThresholds)
    kop_surat: KopSurat = field(default_factory=KopSurat)
    sp_signatory_username: str | None = None

    def to_dict(self) -> dict:
        return {
            "appName": self.app_name,
            "appLogo": self.app_logo,
            "pointThresholds": asdict(self.point_thresholds),
            "kopSurat": asdict(self.kop_surat),
            "spSignatoryUsername": self.sp_signatory_username,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AppSettings":
        """Merge a stored document over the defaults, nested sections included."""
        if not isinstance(data, dict):
            raise MalformedState("Pengaturan tersimpan tidak valid.")
        defaults = cls()
        try:
            thresholds = {**asdict(defaults.point_thresholds), **(data.get("pointThresholds") or {})}
            kop_surat = {**asdict(defaults.kop_surat), **(data.get("kopSurat") or {})}
            return cls(
                app_name=data.get("appName", defaults.app_name),
                app_logo=data.get("appLogo", defaults.app_logo),
                point_thresholds=PointThresholds(
                    aman=int(thresholds["aman"]),
                    perhatian=int(thresholds["perhatian"]),
                ),
                kop_surat=KopSurat(**{key: kop_surat[key] for key in asdict(defaults.kop_surat)}),
                sp_signatory_username=data.get("spSignatoryUsername", defaults.sp_signatory_username),
            )
        except (TypeError, ValueError) as exc:
            raise MalformedState("Pengaturan tersimpan tidak valid.") from exc


def decode(raw: str) -> object:
    try:
        return json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise MalformedState("Data tersimpan rusak.") from exc


class LocalState:
    def __init__(self, backend: MutableMapping | None = None) -> None:
        self.backend = backend if backend is not None else {}

    def _load(self, key: str) -> object | None:
        raw = self.backend.get(key)
        if raw is None:
            return None
        try:
            return decode(raw)
        except MalformedState:
            logger.warning("Discarding malformed persisted value under %r", key)
            self.backend.pop(key, None)
            return None

    def load_user(self) -> dict | None:
        data = self._load(USER_KEY)
        if data is None:
            return None
        if not isinstance(data, dict) or not data.get("username"):
            logger.warning("Discarding persisted user without a username")
            self.clear_user()
            return None
        return data

    def save_user(self, data: dict) -> None:
        self.backend[USER_KEY] = json.dumps(data)

    def clear_user(self) -> None:
        self.backend.pop(USER_KEY, None)

    def load_settings(self) -> AppSettings:
        data = self._load(SETTINGS_KEY)
        if data is None:
            return AppSettings()
        try:
            return AppSettings.from_dict(data)
        except MalformedState:
            logger.warning("Discarding persisted settings with an unexpected shape")
            self.backend.pop(SETTINGS_KEY, None)
            return AppSettings()

    def save_settings(self, app_settings: AppSettings) -> None:
        self.backend[SETTINGS_KEY] = json.dumps(app_settings.to_dict())
