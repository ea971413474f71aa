# tests/test_scheduler.py

"""
Tests for the background change-feed refresh and app configuration.
"""

from unittest.mock import Mock, patch

from core.config import build_cors_origins
from core.scheduler import run_store_refresh, start_scheduler


def test_refresh_disabled():
    assert start_scheduler(Mock(), 0) is None


def test_refresh_job_registered():
    with patch("core.scheduler.BackgroundScheduler") as mock_scheduler_cls:
        scheduler = start_scheduler(Mock(), 30)

    assert scheduler is mock_scheduler_cls.return_value
    kwargs = scheduler.add_job.call_args[1]
    assert kwargs["id"] == "store_refresh_job"
    assert kwargs["max_instances"] == 1
    scheduler.start.assert_called_once()


def test_refresh_failure_does_not_raise():
    store = Mock()
    store.refresh.side_effect = RuntimeError("offline")

    run_store_refresh(store)

    store.refresh.assert_called_once()


def test_build_cors_origins():
    assert build_cors_origins(["hotel.com", "https://hotel.com/", "", "http://localhost:3000"]) == [
        "http://localhost:3000",
        "https://hotel.com",
    ]
