"""Report export to Excel and PDF.

The backend only serves the raw rows (`format: json`); titles, columns and
summaries are built here and written with openpyxl and reportlab.
"""

from dataclasses import dataclass
from dataclasses import field
from datetime import date
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from loguru import logger
from openpyxl import Workbook
from openpyxl.styles import Alignment
from openpyxl.styles import Border
from openpyxl.styles import Font
from openpyxl.styles import PatternFill
from openpyxl.styles import Side
from openpyxl.utils import get_column_letter
from reportlab.lib.pagesizes import A4
from reportlab.lib.pagesizes import landscape
from reportlab.lib.units import inch
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from fazuh.akademik.api.client import ApiClient
from fazuh.akademik.api.path import Endpoint
from fazuh.akademik.error import AkademikError
from fazuh.akademik.error import ExportError
from fazuh.akademik.error import SessionExpiredError

REPORT_TYPES = ("attendance", "assessment", "academic")
EXPORT_FORMATS = ("excel", "pdf", "both")
INSTITUTION = "UNIVERSITAS MUHAMMADIYAH JAKARTA"


@dataclass
class Summary:
    total: int
    average: Optional[float] = None
    percentage: Optional[float] = None

    def lines(self) -> list[tuple[str, str]]:
        lines = [("Total Records:", str(self.total))]
        if self.average is not None:
            lines.append(("Average:", f"{self.average:.2f}"))
        if self.percentage is not None:
            lines.append(("Percentage:", f"{self.percentage:.2f}%"))
        return lines


@dataclass
class ExportData:
    title: str
    headers: list[str]
    rows: list[list[Any]] = field(default_factory=list)
    summary: Optional[Summary] = None


def _number(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def _mean(total: float, count: int) -> float:
    return total / count if count else 0.0


def attendance_report(data: list[dict[str, Any]]) -> ExportData:
    rows = []
    total_hadir = 0.0
    total_pertemuan = 0.0
    for item in data:
        hadir = _number(item.get("total_hadir"))
        pertemuan = _number(item.get("total_pertemuan"))
        total_hadir += hadir
        total_pertemuan += pertemuan
        rows.append(
            [
                item.get("nim") or "",
                item.get("nama") or "",
                item.get("angkatan") or "",
                item.get("semester") or "",
                item.get("total_hadir") or 0,
                item.get("total_pertemuan") or 0,
                f"{hadir / (pertemuan or 1) * 100:.1f}%",
            ]
        )

    return ExportData(
        title="Laporan Kehadiran Mahasiswa",
        headers=["NIM", "Nama", "Angkatan", "Semester", "Total Hadir", "Total Pertemuan", "Persentase"],
        rows=rows,
        summary=Summary(
            total=len(data),
            average=_mean(total_hadir, len(data)),
            percentage=total_hadir / total_pertemuan * 100 if total_pertemuan > 0 else 0.0,
        ),
    )


def assessment_report(data: list[dict[str, Any]]) -> ExportData:
    rows = [
        [
            item.get("nim") or "",
            item.get("nama") or "",
            item.get("angkatan") or "",
            item.get("semester") or "",
            item.get("ipk") or 0,
        ]
        for item in data
    ]
    total_ipk = sum(_number(item.get("ipk")) for item in data)
    return ExportData(
        title="Laporan Penilaian Mahasiswa",
        headers=["NIM", "Nama", "Angkatan", "Semester", "IPK"],
        rows=rows,
        summary=Summary(total=len(data), average=_mean(total_ipk, len(data))),
    )


def academic_report(data: list[dict[str, Any]]) -> ExportData:
    rows = [
        [
            item.get("nim") or "",
            item.get("nama") or "",
            item.get("angkatan") or "",
            item.get("semester") or "",
            item.get("ipk") or 0,
            item.get("status") or "Aktif",
            item.get("semester_masuk") or "",
            item.get("tahun_ajaran_masuk_id") or "",
        ]
        for item in data
    ]
    total_ipk = sum(_number(item.get("ipk")) for item in data)
    return ExportData(
        title="Laporan Akademik Lengkap",
        headers=[
            "NIM",
            "Nama",
            "Angkatan",
            "Semester",
            "IPK",
            "Status",
            "Semester Masuk",
            "Tahun Ajaran Masuk ID",
        ],
        rows=rows,
        summary=Summary(total=len(data), average=_mean(total_ipk, len(data))),
    )


REPORT_BUILDERS = {
    "attendance": attendance_report,
    "assessment": assessment_report,
    "academic": academic_report,
}


def write_excel(report: ExportData, path: Path, sheet_name: str = "Report") -> Path:
    """Title row, header row, data rows, then the summary block, all with thin borders."""
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name[:31]

    width = len(report.headers)
    ws.append([report.title])
    ws["A1"].font = Font(bold=True, size=16, color="FF2E75B6")
    ws["A1"].alignment = Alignment(horizontal="center")
    if width > 1:
        ws.merge_cells(f"A1:{get_column_letter(width)}1")

    ws.append(report.headers)
    for cell in ws[2]:
        cell.font = Font(bold=True, size=12, color="FFFFFFFF")
        cell.fill = PatternFill(fill_type="solid", fgColor="FF4472C4")
        cell.alignment = Alignment(horizontal="center")

    for row in report.rows:
        ws.append(row)

    # Column widths follow the longest value, clamped to [10, 50]
    for index in range(1, width + 1):
        letter = get_column_letter(index)
        longest = max(
            (len(str(cell.value)) for cell in ws[letter][1:] if cell.value is not None), default=0
        )
        ws.column_dimensions[letter].width = min(max(longest + 2, 10), 50)

    if report.summary is not None:
        ws.append([])
        ws.append(["Summary"])
        ws.cell(row=ws.max_row, column=1).font = Font(bold=True, size=14, color="FF2E75B6")
        for label, value in report.summary.lines():
            ws.append([label, value])

    thin = Side(style="thin")
    border = Border(top=thin, left=thin, bottom=thin, right=thin)
    for row in ws.iter_rows():
        for cell in row:
            if cell.value is not None:
                cell.border = border

    path = Path(path)
    if not path.parent.exists():
        path.parent.mkdir(parents=True)
    wb.save(path)
    return path


_PDF_FONT = "Helvetica"
_PDF_FONT_BOLD = "Helvetica-Bold"
_PDF_ROW = 0.26 * inch
_PDF_MARGIN = 0.6 * inch


def _fit(text: str, width: float, font: str, size: float) -> str:
    if stringWidth(text, font, size) <= width:
        return text
    while text and stringWidth(text + "...", font, size) > width:
        text = text[:-1]
    return text + "..."


def write_pdf(report: ExportData, path: Path, generated_at: Optional[datetime] = None) -> Path:
    """Landscape A4 report: institution header, title, timestamp, table, summary and page footer."""
    generated_at = generated_at or datetime.now()
    page_width, page_height = landscape(A4)
    usable = page_width - 2 * _PDF_MARGIN
    col_width = usable / max(len(report.headers), 1)

    # Lines are (kind, payload) so pagination is known before drawing the footers
    lines: list[tuple[str, Any]] = [("row", row) for row in report.rows]
    if report.summary is not None:
        lines.append(("blank", None))
        lines.append(("summary_title", "Summary"))
        lines.extend(("summary", f"{label} {value}") for label, value in report.summary.lines())

    first_top = page_height - 1.55 * inch
    other_top = page_height - _PDF_MARGIN
    bottom = _PDF_MARGIN + 0.3 * inch
    first_capacity = max(int((first_top - bottom) / _PDF_ROW) - 1, 1)
    other_capacity = max(int((other_top - bottom) / _PDF_ROW) - 1, 1)

    pages: list[list[tuple[str, Any]]] = [lines[:first_capacity]]
    rest = lines[first_capacity:]
    while rest:
        pages.append(rest[:other_capacity])
        rest = rest[other_capacity:]

    path = Path(path)
    if not path.parent.exists():
        path.parent.mkdir(parents=True)

    c = canvas.Canvas(str(path), pagesize=(page_width, page_height))
    c.setTitle(report.title)
    c.setSubject("Academic Report")
    c.setAuthor("UMJ Academic System")
    c.setCreator("UMJ Academic System")

    for number, page in enumerate(pages, start=1):
        if number == 1:
            c.setFont(_PDF_FONT_BOLD, 20)
            c.drawCentredString(page_width / 2, page_height - 0.7 * inch, INSTITUTION)
            c.setFont(_PDF_FONT_BOLD, 16)
            c.drawCentredString(page_width / 2, page_height - 1.0 * inch, report.title)
            c.setFont(_PDF_FONT, 10)
            c.drawString(
                _PDF_MARGIN,
                page_height - 1.3 * inch,
                f"Generated on: {generated_at:%d/%m/%Y %H.%M.%S}",
            )
            y = first_top
        else:
            y = other_top

        if any(kind == "row" for kind, _ in page):
            c.setFillColorRGB(68 / 255, 114 / 255, 196 / 255)
            c.rect(_PDF_MARGIN, y - 0.07 * inch, usable, _PDF_ROW, stroke=0, fill=1)
            c.setFillColorRGB(1, 1, 1)
            c.setFont(_PDF_FONT_BOLD, 10)
            for index, header in enumerate(report.headers):
                x = _PDF_MARGIN + index * col_width + 3
                c.drawString(x, y, _fit(header, col_width - 6, _PDF_FONT_BOLD, 10))
            c.setFillColorRGB(0, 0, 0)
            y -= _PDF_ROW

        for kind, payload in page:
            if kind == "row":
                c.setFont(_PDF_FONT, 10)
                for index, value in enumerate(payload):
                    x = _PDF_MARGIN + index * col_width + 3
                    c.drawString(x, y, _fit(str(value), col_width - 6, _PDF_FONT, 10))
            elif kind == "summary_title":
                c.setFont(_PDF_FONT_BOLD, 12)
                c.drawString(_PDF_MARGIN, y, payload)
            elif kind == "summary":
                c.setFont(_PDF_FONT, 12)
                c.drawString(_PDF_MARGIN, y, payload)
            y -= _PDF_ROW

        c.setFont(_PDF_FONT, 8)
        c.drawCentredString(page_width / 2, 0.4 * inch, f"Page {number} of {len(pages)}")
        c.showPage()

    c.save()
    return path


class ReportExporter:
    """Fetches report data and writes it to files, one report kind at a time.

    The first failing step aborts the whole run with a single generic error;
    files already written by earlier steps are left in place.
    """

    def __init__(self, client: ApiClient, export_dir: Path, semester: str = "2023/2024") -> None:
        self.client = client
        self.export_dir = Path(export_dir)
        self.semester = semester

    async def fetch(self, report_type: str) -> list[dict[str, Any]]:
        result = await self.client.post(
            Endpoint.report_export(report_type),
            json={"format": "json", "semester": self.semester},
        )
        result = result or {}
        if not result.get("success"):
            raise ExportError(result.get("message") or f"Export {report_type} failed")
        return list(result.get("data") or [])

    async def export(
        self, report_types: list[str], export_format: str = "excel", today: Optional[date] = None
    ) -> list[Path]:
        """Exports each report kind in `report_types` as Excel, PDF, or both.

        Returns:
            list[Path]: Every file written.
        """
        if not report_types:
            raise ExportError("Pilih minimal satu jenis laporan.")
        unknown = [t for t in report_types if t not in REPORT_BUILDERS]
        if unknown or export_format not in EXPORT_FORMATS:
            raise ExportError(f"Jenis laporan atau format tidak dikenal: {unknown or export_format}")

        today = today or date.today()
        written: list[Path] = []
        try:
            for report_type in report_types:
                report = REPORT_BUILDERS[report_type](await self.fetch(report_type))
                stem = self.export_dir.joinpath(f"{report_type}_report_{today.isoformat()}")
                if export_format in ("excel", "both"):
                    sheet = f"{report_type.capitalize()} Report"
                    written.append(write_excel(report, stem.with_suffix(".xlsx"), sheet))
                if export_format in ("pdf", "both"):
                    written.append(write_pdf(report, stem.with_suffix(".pdf")))
        except SessionExpiredError:
            raise
        except (AkademikError, OSError) as e:
            logger.error(f"Export step failed: {e}")
            raise ExportError("Export failed. Please try again.") from e

        logger.success(
            f"Successfully exported {', '.join(report_types)} reports in {export_format} format!"
        )
        return written
