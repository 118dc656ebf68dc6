"""Main entry point for the Akademik client.

Handles command-line argument parsing and dispatches execution to the
requested command (session, schedule, dashboard, monitor, or maintenance).
"""

import argparse
import asyncio
from dataclasses import asdict
import getpass
from pathlib import Path
from typing import Any

from loguru import logger

from fazuh.akademik.api.client import ApiClient
from fazuh.akademik.config import Config
from fazuh.akademik.error import AkademikError
from fazuh.akademik.error import ValidationError
from fazuh.akademik.schedule.time import truncate_file_name
from fazuh.akademik.session import AppContext


def _parse_fields(pairs: list[str]) -> dict[str, Any]:
    """`key=value` pairs from the command line into form fields."""
    fields: dict[str, Any] = {}
    for pair in pairs or []:
        if "=" not in pair:
            raise ValidationError(f"Expected key=value, got {pair!r}.")
        key, value = pair.split("=", 1)
        key = key.strip()
        if key == "dosen_ids":
            try:
                fields[key] = [int(v) for v in value.split(",") if v.strip()]
            except ValueError:
                raise ValidationError(f"dosen_ids must be comma-separated ids, got {value!r}.")
        elif key == "use_ruangan":
            fields[key] = value.strip().lower() in ("1", "true", "yes", "ya")
        else:
            fields[key] = value
    return fields


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Akademik client")
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="Sign in and store the session token.")
    login.add_argument("--login", help="Username, NIP, NID, NIM or email (default: LOGIN).")
    login.add_argument("--password", help="Password (default: PASSWORD, else prompt).")
    sub.add_parser("logout", help="Revoke the token and forget the session.")
    sub.add_parser("whoami", help="Show the signed-in user.")

    jadwal = sub.add_parser("jadwal", help="Manage a course's schedule.")
    jadwal_sub = jadwal.add_subparsers(dest="action", required=True)

    show = jadwal_sub.add_parser("show", help="List schedule entries.")
    show.add_argument("kode", help="Course code.")
    show.add_argument("--jenis", help="Only this kind (kuliah-besar, agenda, praktikum, pbl, jurnal).")

    add = jadwal_sub.add_parser("add", help="Add a schedule entry.")
    add.add_argument("kode")
    add.add_argument("jenis")
    add.add_argument("--set", dest="fields", action="append", metavar="KEY=VALUE", default=[])
    add.add_argument("--file", type=Path, help="Journal attachment (jurnal reading only).")

    edit = jadwal_sub.add_parser("edit", help="Edit a schedule entry.")
    edit.add_argument("kode")
    edit.add_argument("jenis")
    edit.add_argument("id", type=int)
    edit.add_argument("--set", dest="fields", action="append", metavar="KEY=VALUE", default=[])
    attachment = edit.add_mutually_exclusive_group()
    attachment.add_argument("--file", type=Path, help="Replace the journal attachment.")
    attachment.add_argument("--clear-file", action="store_true", help="Remove the journal attachment.")

    delete = jadwal_sub.add_parser("delete", help="Delete a schedule entry.")
    delete.add_argument("kode")
    delete.add_argument("jenis")
    delete.add_argument("id", type=int)

    rooms = jadwal_sub.add_parser("ruangan", help="List rooms that fit a group size.")
    rooms.add_argument("kode")
    rooms.add_argument("--capacity", type=int, default=0, help="Minimum capacity.")

    bulk = jadwal_sub.add_parser("import", help="Submit entries from a YAML or JSON file.")
    bulk.add_argument("kode")
    bulk.add_argument("file", type=Path)

    sub.add_parser("dashboard", help="Show super-admin dashboard aggregates.")

    monitor = sub.add_parser("monitor", help="Watch the simulated system metrics.")
    monitor.add_argument("--duration", type=float, help="Stop after this many seconds.")

    backup = sub.add_parser("backup", help="Download a system backup.")
    backup.add_argument("--type", default="full", choices=["full", "data_only", "structure_only"])
    backup.add_argument("--output", type=Path, help="Directory (default: BACKUP_DIR).")

    restore = sub.add_parser("restore", help="Import a backup file.")
    restore.add_argument("file", type=Path)
    restore.add_argument("--type", default="full", choices=["full", "data_only", "structure_only"])

    reset = sub.add_parser("reset", help="Delete all data except super-admin accounts.")
    reset.add_argument("--confirm", help='Type "reset" to confirm (prompted if omitted).')

    export = sub.add_parser("export", help="Export reports to Excel and/or PDF.")
    export.add_argument("types", nargs="+", choices=["attendance", "assessment", "academic"])
    export.add_argument("--format", default="excel", choices=["excel", "pdf", "both"])
    export.add_argument("--output", type=Path, help="Directory (default: EXPORT_DIR).")
    export.add_argument("--semester", help="Semester (default: EXPORT_SEMESTER).")

    return parser


async def _login(client: ApiClient, conf: Config, args: argparse.Namespace):
    from fazuh.akademik.service.auth_service import AuthService

    login = args.login or conf.login or input("Login: ")
    password = args.password or conf.password or getpass.getpass("Password: ")
    await AuthService(client).login(login, password)


async def _whoami(client: ApiClient):
    from fazuh.akademik.service.auth_service import AuthService

    if not client.context.is_authenticated:
        logger.info("Not logged in.")
        return
    user = await AuthService(client).me()
    logger.info(f"{user.get('name', '?')} ({user.get('role', '?')}) <{user.get('email', '-')}>")


def _describe_row(row: Any, batch: Any) -> str:
    """Kind-specific details of a schedule row: subject, group, lecturers and attachment."""
    parts = []
    for attr in ("materi", "agenda", "topik", "kelas_praktikum", "pbl_tipe"):
        value = getattr(row, attr, "")
        if value:
            parts.append(str(value))
    if getattr(row, "kelompok", ""):
        parts.append(f"Kelompok {row.kelompok}")
    dosen_ids = list(getattr(row, "dosen_ids", []))
    if getattr(row, "dosen_id", None) is not None:
        dosen_ids.append(row.dosen_id)
    if dosen_ids:
        parts.append(", ".join(batch.dosen_name(d) for d in dosen_ids))
    file_name = getattr(row, "file_name", None)
    if file_name:
        parts.append(f"[{truncate_file_name(file_name)}]")
    return " | ".join(parts)


async def _jadwal(client: ApiClient, args: argparse.Namespace):
    from fazuh.akademik.schedule.form import Clear
    from fazuh.akademik.schedule.form import ScheduleKind
    from fazuh.akademik.schedule.form import build_form
    from fazuh.akademik.schedule.service import JadwalService
    from fazuh.akademik.schedule.time import format_jam
    from fazuh.akademik.schedule.time import format_tanggal

    service = JadwalService(client, args.kode)

    if args.action == "import":
        await service.import_entries(args.file)
        return

    if args.action == "ruangan":
        for ruangan in await service.ruangan_by_capacity(args.capacity):
            logger.info(f"  [{ruangan.id}] {ruangan.label}")
        return

    if args.action == "show":
        batch = await service.load()
        mk = batch.mata_kuliah
        logger.info(f"{mk.kode} {mk.nama} ({mk.tanggal_mulai} s/d {mk.tanggal_akhir})")
        kinds = [ScheduleKind.parse(args.jenis)] if args.jenis else list(ScheduleKind)
        for kind in kinds:
            rows = service.rows(kind)
            logger.info(f"{kind.label}: {len(rows)} jadwal")
            for row in rows:
                logger.info(
                    f"  [{row.id}] {format_tanggal(row.tanggal)} "
                    f"{format_jam(row.jam_mulai)}-{format_jam(row.jam_selesai)} "
                    f"({row.jumlah_sesi} x 50 menit) {batch.ruangan_name(row.ruangan_id)}"
                    f" {_describe_row(row, batch)}"
                )
        return

    kind = ScheduleKind.parse(args.jenis)
    if args.action == "delete":
        await service.delete(kind, args.id)
        return

    fields = _parse_fields(args.fields)
    if args.action == "add":
        if args.file:
            fields["file_jurnal"] = args.file
        form = build_form(kind, fields)
        await service.submit(form)
    else:
        await service.load()
        existing = next((r for r in service.rows(kind) if r.id == args.id), None)
        if existing is None:
            raise AkademikError(f"Jadwal {kind.label} {args.id} tidak ditemukan.")
        current = asdict(existing)
        current.pop("file_jurnal", None)
        current.update(fields)
        if args.file:
            current["file_jurnal"] = args.file
        elif args.clear_file:
            current["attachment"] = Clear()
        form = build_form(kind, current)
        await service.submit(form, editing_id=args.id)

    logger.info(f"{kind.label}: {len(service.rows(kind))} jadwal")


async def _dashboard(client: ApiClient):
    from fazuh.akademik.dashboard.stats import DashboardService
    from fazuh.akademik.dashboard.stats import summarize

    stats = await DashboardService(client).fetch()
    for line in summarize(stats):
        logger.info(line)


async def _monitor(conf: Config, args: argparse.Namespace):
    from fazuh.akademik.dashboard.metrics import CHANNELS
    from fazuh.akademik.dashboard.metrics import MetricsMonitor
    from fazuh.akademik.dashboard.metrics import SystemMetricsSample
    from fazuh.akademik.dashboard.metrics import generate_sample
    from fazuh.akademik.dashboard.metrics import sparkline

    def report(sample: SystemMetricsSample):
        logger.info(
            f"CPU {sample.cpu.usage:5.1f}% | MEM {sample.memory.usage:5.1f}% | "
            f"DISK {sample.storage.usage:5.1f}% | NET {sample.network.upload + sample.network.download:5.1f} MB/s | "
            f"DB {sample.database.response_time:5.0f} ms | API {sample.application.api_response_time:5.0f} ms"
        )

    monitor = MetricsMonitor(interval=conf.monitor_interval, on_sample=report)
    monitor.chart.seed(generate_sample())
    async with monitor:
        if args.duration:
            await asyncio.sleep(args.duration)
        else:
            await asyncio.Event().wait()

    for channel in CHANNELS:
        logger.info(f"{channel:<12} {sparkline(monitor.chart[channel])}")


async def _backup(client: ApiClient, conf: Config, args: argparse.Namespace):
    from fazuh.akademik.system.backup import SystemService

    await SystemService(client).backup(args.type, args.output or conf.backup_dir)


async def _restore(client: ApiClient, args: argparse.Namespace):
    from fazuh.akademik.system.backup import SystemService
    from fazuh.akademik.system.backup import format_import_result

    result = await SystemService(client).import_backup(args.file, args.type)
    for line in format_import_result(result).splitlines():
        if line:
            logger.success(line)


async def _reset(client: ApiClient, args: argparse.Namespace):
    from fazuh.akademik.system.backup import SystemService

    confirmation = args.confirm
    if confirmation is None:
        confirmation = input("Ketik 'reset' untuk melanjutkan: ")
    await SystemService(client).reset(confirmation)


async def _export(client: ApiClient, conf: Config, args: argparse.Namespace):
    from fazuh.akademik.report.export import ReportExporter

    exporter = ReportExporter(
        client, args.output or conf.export_dir, args.semester or conf.export_semester
    )
    for path in await exporter.export(args.types, args.format):
        logger.info(f"Written {path}")


def _log_session_change(context: AppContext):
    if context.is_authenticated:
        logger.debug(f"Session stored for {context.display_name}.")
    else:
        logger.debug("Stored session cleared.")


async def main():
    """Async entry point.

    Parses arguments, initializes configuration and logging, and runs the
    selected command.
    """
    args = _build_parser().parse_args()

    conf = Config()
    logger.add("log/{time}.log", rotation="1 day")

    context = AppContext(conf.session_file)
    context.subscribe(_log_session_change)
    client = ApiClient(conf, context)

    try:
        if args.command == "login":
            await _login(client, conf, args)

        elif args.command == "logout":
            from fazuh.akademik.service.auth_service import AuthService

            await AuthService(client).logout()

        elif args.command == "whoami":
            await _whoami(client)

        elif args.command == "jadwal":
            await _jadwal(client, args)

        elif args.command == "dashboard":
            await _dashboard(client)

        elif args.command == "monitor":
            await _monitor(conf, args)

        elif args.command == "backup":
            await _backup(client, conf, args)

        elif args.command == "restore":
            await _restore(client, args)

        elif args.command == "reset":
            await _reset(client, args)

        elif args.command == "export":
            await _export(client, conf, args)
    except AkademikError as e:
        logger.error(e.message or e)
    except FileNotFoundError as e:
        logger.error(e)


def main_sync():
    """Synchronous wrapper for the async main function."""
    asyncio.run(main())


if __name__ == "__main__":
    main_sync()
