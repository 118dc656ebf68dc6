class Endpoint:
    """Endpoint paths of the academic backend, relative to the `/api` base URL.

    Paths that depend on a course code or record id are exposed as static
    builders.
    """

    LOGIN = "/login"
    LOGOUT = "/logout"
    ME = "/me"

    RUANGAN = "/ruangan"
    RUANGAN_OPTIONS = "/ruangan/options"
    PBL_ASSIGNED_DOSEN = "/pbls/assigned-dosen-batch"

    DASHBOARD_SUPER_ADMIN = "/dashboard/super-admin"

    SYSTEM_BACKUP = "/system/backup"
    SYSTEM_IMPORT = "/system/import"
    SYSTEM_RESET = "/system/reset"

    @staticmethod
    def batch_data(kode: str) -> str:
        return f"/mata-kuliah/{kode}/batch-data"

    @staticmethod
    def report_export(report_type: str) -> str:
        return f"/reports/export/{report_type}"

    @staticmethod
    def jadwal(kind_path: str, kode: str, jadwal_id: int | None = None) -> str:
        """Schedule collection or item path for one activity kind.

        PBL lives under the course resource, the other kinds are keyed by
        course code under their own prefix.
        """
        if kind_path == "jadwal-pbl":
            base = f"/mata-kuliah/{kode}/jadwal-pbl"
        else:
            base = f"/{kind_path}/jadwal/{kode}"
        if jadwal_id is None:
            return base
        return f"{base}/{jadwal_id}"
