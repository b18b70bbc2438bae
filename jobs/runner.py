# APScheduler orchestrator for the periodic channel refresh
from __future__ import annotations
import logging
import sys

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from pydantic_settings import BaseSettings, SettingsConfigDict

sys.path.insert(0, ".")

from analysis.channel_groups import reconcile_channel_groups
from collection.jobs.collector_channels import ChannelCollector
from core.db import SessionLocal
from core.logging import setup_json_logging
from core.store import VideoRecordStore

log = logging.getLogger("runner")


class RunnerSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    refresh_interval_hours: int = 12


def safe(fn):
    def _wrap():
        try:
            fn()
        except Exception:
            log.exception("Job failed: %s", getattr(fn, "__name__", "unknown"))
    _wrap.__name__ = getattr(fn, "__name__", "job")
    return _wrap


def refresh_all_channels():
    with ChannelCollector() as collector:
        results = collector.refresh_channels()
    failed = [result.id for result in results if not result.success]
    if failed:
        log.warning("Refresh finished with %d failed channels: %s", len(failed), ", ".join(failed))


def reconcile_groups():
    with SessionLocal() as session:
        repairs = reconcile_channel_groups(VideoRecordStore(session))
    log.info("Group reconciliation applied %d repairs", len(repairs))


def build_scheduler(settings: RunnerSettings | None = None) -> BlockingScheduler:
    settings = settings or RunnerSettings()
    sched = BlockingScheduler(timezone="UTC")
    sched.add_job(safe(refresh_all_channels), IntervalTrigger(hours=settings.refresh_interval_hours),
                  id="refresh_channels")
    # daily at 03:15, away from the refresh boundaries
    sched.add_job(safe(reconcile_groups), CronTrigger(hour="3", minute="15"), id="reconcile_groups")
    return sched


if __name__ == "__main__":
    setup_json_logging()
    sched = build_scheduler()
    log.info("Scheduler starting (UTC)...")
    try:
        sched.start()
    except (KeyboardInterrupt, SystemExit):
        log.info("Scheduler stopped.")
