"""Dependency injection container for the application."""
from dependency_injector import containers, providers
import requests

from sitemonitor.db.engine import make_engine
from sitemonitor.repository.crawl_runs import CrawlRunRepository
from sitemonitor.services.access_policy import AccessPolicy
from sitemonitor.services.baseline_diff import BaselineDiffEngine
from sitemonitor.services.crawl_run_recovery import CrawlRunRecovery
from sitemonitor.services.http_service import HttpService
from sitemonitor.services.notifier import SmtpNotifier
from sitemonitor.services.page_fetcher import PageFetcher
from sitemonitor.services.report import ReportRenderer
from sitemonitor.services.resumable_crawl_service import ResumableCrawlService
from sitemonitor.services.settings_file_store import SettingsFileStore
from sitemonitor.services.task_queue import TickDispatcher
from sitemonitor import config as env
from sqlalchemy.orm import sessionmaker


# Environment variables used by the container (read via `sitemonitor.config` helpers).
#
# DATABASE_URL (str, default: "sqlite:///sitemonitor.db")
#   Store for resumable run state and the per-run URL queue.
#
# USER_AGENT (str, default: desktop Chrome UA)
#   User-Agent header for outbound HTTP requests.
#
# HTTP_TIMEOUT (int seconds, default: 10), HTTP_MAX_REDIRECTS (int, default: 5)
#
# MONITOR_SETTINGS_FILE (str, default: "monitor.json")
#   Run settings used when the caller passes none.
#
# MONITOR_BASELINE_FILE (str, default: "output/base-links.txt")
#   Sorted link list of the first run; later runs diff against it.
#
# MONITOR_CONTENT_DIR (str, default: "output/content")
#   Where page HTML is written when `save_content` is enabled.
#
# MONITOR_MAIL_FROM (str), SMTP_HOST (str | optional), SMTP_PORT (int, default: 25)
#   Report delivery. Without SMTP_HOST reports are only logged.
#
# MONITOR_DISPATCH_TOKEN (str | optional)
#   Shared secret for the internal tick endpoint. Unset disables the endpoint.
#
# MONITOR_TICK_INTERVAL (float seconds, default: 1.0)
#
# MONITOR_RECOVERY_WITHIN_SECONDS (int seconds | optional)
#   If set, only runs updated within this window are resumed on startup.
ENV = {
    "DATABASE_URL": env.DATABASE_URL,
    "USER_AGENT": env.USER_AGENT,
    "HTTP_TIMEOUT": env.HTTP_TIMEOUT,
    "HTTP_MAX_REDIRECTS": env.HTTP_MAX_REDIRECTS,
    "MONITOR_SETTINGS_FILE": env.settings_file(),
    "MONITOR_BASELINE_FILE": env.baseline_file(),
    "MONITOR_CONTENT_DIR": env.content_dir(),
    "MONITOR_MAIL_FROM": env.mail_from(),
    "SMTP_HOST": env.smtp_host(),
    "SMTP_PORT": env.smtp_port(),
    "MONITOR_DISPATCH_TOKEN": env.dispatch_token(),
    "MONITOR_TICK_INTERVAL": env.tick_interval(),
    "MONITOR_RECOVERY_WITHIN_SECONDS": env.recovery_within_seconds(),
}


class Container(containers.DeclarativeContainer):
    """Dependency injection container for the site monitor."""

    config = providers.Configuration(default=ENV)

    # Database engine - Singleton to reuse connection pool
    db_engine = providers.Singleton(
        make_engine,
        database_url=config.DATABASE_URL
    )
    session_factory = providers.Factory(
        sessionmaker,
        bind=db_engine,
        future=True
    )

    crawl_run_repository = providers.Singleton(
        CrawlRunRepository,
        session_factory=session_factory
    )

    http_service = providers.Singleton(
        HttpService,
        user_agent=config.USER_AGENT.as_(str),
        http_client=providers.Object(requests.get),
        timeout=config.HTTP_TIMEOUT.as_(int),
        max_redirects=config.HTTP_MAX_REDIRECTS.as_(int),
    )

    page_fetcher = providers.Singleton(
        PageFetcher,
        http_service=http_service,
    )

    baseline_engine = providers.Factory(
        BaselineDiffEngine,
        baseline_path=config.MONITOR_BASELINE_FILE.as_(str),
    )

    report_renderer = providers.Singleton(ReportRenderer)

    notifier = providers.Singleton(
        SmtpNotifier,
        host=config.SMTP_HOST,
        port=config.SMTP_PORT.as_(int),
        renderer=report_renderer,
    )

    settings_store = providers.Factory(
        SettingsFileStore,
        settings_path=config.MONITOR_SETTINGS_FILE.as_(str),
    )

    access_policy = providers.Singleton(AccessPolicy)

    tick_dispatcher = providers.Singleton(
        TickDispatcher,
        interval_seconds=config.MONITOR_TICK_INTERVAL.as_(float),
    )

    resumable_crawl_service = providers.Singleton(
        ResumableCrawlService,
        repo=crawl_run_repository,
        fetcher=page_fetcher,
        dispatcher=tick_dispatcher,
        baseline_factory=baseline_engine.provider,
        notifier=notifier,
        content_dir=config.MONITOR_CONTENT_DIR,
    )

    crawl_run_recovery = providers.Singleton(
        CrawlRunRecovery,
        repo=crawl_run_repository,
        dispatcher=tick_dispatcher,
        within_seconds=config.MONITOR_RECOVERY_WITHIN_SECONDS,
    )
