from dataclasses import dataclass
from dataclasses import field
import math
from typing import Any, Optional

from loguru import logger

from fazuh.akademik.api.client import ApiClient
from fazuh.akademik.api.path import Endpoint


def _num(data: Optional[dict[str, Any]], key: str) -> float:
    """Missing, null and non-numeric values all count as zero."""
    if not data:
        return 0
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return 0 if math.isnan(value) else value


@dataclass
class AttendanceStats:
    overall_rate: float = 0
    pbl_rate: float = 0
    journal_rate: float = 0
    csr_rate: float = 0
    total_students: int = 0
    low_attendance_students: int = 0

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]], has_csr: bool = True) -> "AttendanceStats":
        return cls(
            overall_rate=_num(data, "overall_rate"),
            pbl_rate=_num(data, "pbl_rate"),
            journal_rate=_num(data, "journal_rate"),
            csr_rate=_num(data, "csr_rate") if has_csr else 0,
            total_students=int(_num(data, "total_students")),
            low_attendance_students=int(_num(data, "low_attendance_students")),
        )


@dataclass
class AssessmentStats:
    total_pbl_assessments: int = 0
    total_journal_assessments: int = 0
    pending_pbl: int = 0
    pending_journal: int = 0
    completion_rate: float = 0
    average_score: float = 0

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "AssessmentStats":
        return cls(
            total_pbl_assessments=int(_num(data, "total_pbl_assessments")),
            total_journal_assessments=int(_num(data, "total_journal_assessments")),
            pending_pbl=int(_num(data, "pending_pbl")),
            pending_journal=int(_num(data, "pending_journal")),
            completion_rate=min(_num(data, "completion_rate"), 100),
            average_score=_num(data, "average_score"),
        )


@dataclass
class SystemHealth:
    database: str = "healthy"
    storage: str = "healthy"
    server: str = "healthy"
    last_backup: str = ""

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "SystemHealth":
        data = data or {}
        return cls(
            database=data.get("database") or "healthy",
            storage=data.get("storage") or "healthy",
            server=data.get("server") or "healthy",
            last_backup=data.get("lastBackup") or "",
        )


@dataclass
class AcademicOverview:
    current_semester: str = ""
    current_tahun_ajaran: str = ""
    semester_progress: float = 0
    active_blocks: list[str] = field(default_factory=list)
    upcoming_deadlines: list[dict[str, str]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "AcademicOverview":
        data = data or {}
        return cls(
            current_semester=str(data.get("current_semester") or ""),
            current_tahun_ajaran=str(data.get("current_tahun_ajaran") or ""),
            semester_progress=_num(data, "semester_progress"),
            active_blocks=[str(b) for b in data.get("active_blocks") or []],
            upcoming_deadlines=list(data.get("upcoming_deadlines") or []),
        )


@dataclass
class DashboardStats:
    """Super-admin dashboard aggregates.

    Built from whatever the backend returns with every missing value coalesced
    to a zero/empty default. Semester antara never has a CSR rate, and the
    assessment completion rate never exceeds 100.
    """

    total_users: int = 0
    total_mahasiswa: int = 0
    total_dosen: int = 0
    total_tim_akademik: int = 0
    total_mata_kuliah: int = 0
    total_kelas: int = 0
    total_ruangan: int = 0
    total_jadwal_aktif: int = 0
    attendance_regular: AttendanceStats = field(default_factory=AttendanceStats)
    attendance_antara: AttendanceStats = field(default_factory=AttendanceStats)
    assessment: AssessmentStats = field(default_factory=AssessmentStats)
    system_health: SystemHealth = field(default_factory=SystemHealth)
    academic_overview: AcademicOverview = field(default_factory=AcademicOverview)
    recent_activities: list[dict[str, Any]] = field(default_factory=list)
    today_schedule: list[dict[str, Any]] = field(default_factory=list)
    notifications: list[dict[str, Any]] = field(default_factory=list)
    users_growth: Optional[float] = None
    mahasiswa_growth: Optional[float] = None
    dosen_growth: Optional[float] = None
    mata_kuliah_growth: Optional[float] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DashboardStats":
        def growth(key: str) -> Optional[float]:
            value = data.get(key)
            return value if isinstance(value, (int, float)) and not isinstance(value, bool) else None

        return cls(
            total_users=int(_num(data, "totalUsers")),
            total_mahasiswa=int(_num(data, "totalMahasiswa")),
            total_dosen=int(_num(data, "totalDosen")),
            total_tim_akademik=int(_num(data, "totalTimAkademik")),
            total_mata_kuliah=int(_num(data, "totalMataKuliah")),
            total_kelas=int(_num(data, "totalKelas")),
            total_ruangan=int(_num(data, "totalRuangan")),
            total_jadwal_aktif=int(_num(data, "totalJadwalAktif")),
            attendance_regular=AttendanceStats.from_dict(data.get("attendanceStats")),
            attendance_antara=AttendanceStats.from_dict(
                data.get("attendanceStatsAntara"), has_csr=False
            ),
            assessment=AssessmentStats.from_dict(data.get("assessmentStats")),
            system_health=SystemHealth.from_dict(data.get("systemHealth")),
            academic_overview=AcademicOverview.from_dict(data.get("academicOverview")),
            recent_activities=list(data.get("recentActivities") or []),
            today_schedule=list(data.get("todaySchedule") or []),
            notifications=list(data.get("systemNotifications") or []),
            users_growth=growth("usersGrowth"),
            mahasiswa_growth=growth("mahasiswaGrowth"),
            dosen_growth=growth("dosenGrowth"),
            mata_kuliah_growth=growth("mataKuliahGrowth"),
        )


def format_growth(growth: Optional[float]) -> str:
    """`+12.5%`, `-3.0%`, or `0%` when the backend did not report a value."""
    if growth is None or math.isnan(growth):
        return "0%"
    sign = "+" if growth >= 0 else ""
    return f"{sign}{growth:.1f}%"


def summarize(stats: DashboardStats) -> list[str]:
    """Plain-text lines for the dashboard overview."""
    regular = stats.attendance_regular
    antara = stats.attendance_antara
    lines = [
        f"Users        : {stats.total_users} ({format_growth(stats.users_growth)})",
        f"Mahasiswa    : {stats.total_mahasiswa} ({format_growth(stats.mahasiswa_growth)})",
        f"Dosen        : {stats.total_dosen} ({format_growth(stats.dosen_growth)})",
        f"Mata Kuliah  : {stats.total_mata_kuliah} ({format_growth(stats.mata_kuliah_growth)})",
        f"Ruangan      : {stats.total_ruangan}",
        f"Jadwal aktif : {stats.total_jadwal_aktif}",
        f"Kehadiran reguler : {regular.overall_rate:.1f}% "
        f"(PBL {regular.pbl_rate:.1f}%, Jurnal {regular.journal_rate:.1f}%, CSR {regular.csr_rate:.1f}%)",
        f"Kehadiran antara  : {antara.overall_rate:.1f}% "
        f"(PBL {antara.pbl_rate:.1f}%, Jurnal {antara.journal_rate:.1f}%)",
        f"Penilaian selesai : {stats.assessment.completion_rate:.1f}% "
        f"(pending PBL {stats.assessment.pending_pbl}, jurnal {stats.assessment.pending_journal})",
        f"Sistem : database {stats.system_health.database}, "
        f"storage {stats.system_health.storage}, server {stats.system_health.server}",
    ]
    overview = stats.academic_overview
    if overview.current_semester:
        lines.append(
            f"Semester {overview.current_semester} {overview.current_tahun_ajaran} "
            f"({overview.semester_progress:.0f}%)"
        )
    return lines


class DashboardService:
    def __init__(self, client: ApiClient) -> None:
        self.client = client

    async def fetch(self) -> DashboardStats:
        data = await self.client.get(Endpoint.DASHBOARD_SUPER_ADMIN)
        if not isinstance(data, dict):
            logger.warning("Dashboard response was empty.")
            data = {}
        return DashboardStats.from_dict(data)
