from unittest.mock import AsyncMock, MagicMock, patch

from redis.exceptions import ConnectionError
from sqlalchemy.exc import OperationalError

from app.routers.ready import check_db


def test_ready_reports_dependencies(client):
    response = client.get("/api/ready")
    assert response.status_code == 200
    assert response.json() == {"ok": True, "redis_ok": True, "db_ok": True}


def test_ready_survives_redis_outage(client):
    broken = AsyncMock()
    broken.ping.side_effect = ConnectionError("down")
    with patch("app.routers.ready.get_redis", AsyncMock(return_value=broken)):
        response = client.get("/api/ready")
    assert response.status_code == 200
    assert response.json()["redis_ok"] is False


def test_ready_checks_db_off_the_event_loop(client):
    with patch("app.routers.ready.asyncio.to_thread", AsyncMock(return_value=False)) as to_thread:
        response = client.get("/api/ready")
    assert response.json()["db_ok"] is False
    assert to_thread.await_args.args[0] is check_db


def test_check_db_reports_failure():
    broken = MagicMock()
    broken.execute.side_effect = OperationalError("SELECT 1", {}, Exception("db down"))
    assert check_db(broken) is False
