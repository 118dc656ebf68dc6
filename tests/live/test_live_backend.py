"""Smoke tests against a running backend.

Run with `pytest --run-live` after filling LOGIN, PASSWORD and API_URL in `.env`.
"""

import pytest

from fazuh.akademik.api.client import ApiClient
from fazuh.akademik.config import Config
from fazuh.akademik.dashboard.stats import DashboardService
from fazuh.akademik.service.auth_service import AuthService
from fazuh.akademik.session import AppContext


@pytest.fixture
def live_client(tmp_path):
    conf = Config()
    if not conf.login or not conf.password:
        pytest.skip("LOGIN and PASSWORD are not set")
    return ApiClient(conf, AppContext(tmp_path / "session.json"))


@pytest.mark.live
@pytest.mark.asyncio
async def test_login_dashboard_logout(live_client):
    conf = Config()
    auth = AuthService(live_client)

    user = await auth.login(conf.login, conf.password)
    assert live_client.context.is_authenticated
    assert user

    if live_client.context.role == "super_admin":
        stats = await DashboardService(live_client).fetch()
        assert stats.total_users >= 0

    await auth.logout()
    assert not live_client.context.is_authenticated
