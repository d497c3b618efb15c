"""Command line entry point.

Commands:
  crawl     Run a synchronous crawl and print the log as it happens
  serve     Start the web trigger surface (resumable mode)
"""
import logging
import sys
from pathlib import Path

import click

from sitemonitor import __version__
from sitemonitor import config
from sitemonitor.exceptions import ConfigMissing
from sitemonitor.domain.log import RunLog, report_logger
from sitemonitor.domain.settings import MonitorSettings
from sitemonitor.services.baseline_diff import BaselineDiffEngine, significant, to_string
from sitemonitor.services.content_saver import ContentSaver
from sitemonitor.services.crawl_driver import CrawlDriver, Mode
from sitemonitor.services.settings_file_store import SettingsFileStore, new_log_id

CONTEXT_SETTINGS = dict(help_option_names=["--help"])
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def print_error(message: str):
    click.secho(message, fg="red", err=True)
    sys.exit(1)


def init_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # Run log lines go to stdout unformatted, whatever the level of the rest.
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    report_logger.handlers = [handler]
    report_logger.setLevel(logging.DEBUG)
    report_logger.propagate = False


def build_fetcher():
    import requests

    from sitemonitor.services.http_service import HttpService
    from sitemonitor.services.page_fetcher import PageFetcher

    http_service = HttpService(
        user_agent=config.USER_AGENT,
        http_client=requests.get,
        timeout=config.HTTP_TIMEOUT,
        max_redirects=config.HTTP_MAX_REDIRECTS,
    )
    return PageFetcher(http_service)


def build_notifier():
    from sitemonitor.services.notifier import SmtpNotifier

    return SmtpNotifier(host=config.smtp_host(), port=config.smtp_port())


log_level_option = click.option(
    "--log-level", "log_level",
    default="WARNING", show_default=True,
    type=click.Choice(LOG_LEVELS),
    help="Level for application logs (the run log is always printed).",
)


def load_settings(settings_path: str, site_url: str = None) -> MonitorSettings:
    store = SettingsFileStore(settings_path=settings_path)
    try:
        data = store.load_dict()
    except ConfigMissing:
        # A bare --site-url run needs no settings file.
        if site_url is None:
            raise
        data = {}
    if site_url is not None:
        data["site_url"] = site_url
    return MonitorSettings.from_mapping(data, {"log_id": new_log_id(), "from": config.mail_from()})


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, "--version", "-v", message="sitemonitor, version %(version)s")
@click.pass_context
def cli(ctx):
    """Site health monitor."""
    ctx.ensure_object(dict)


@cli.command("crawl", context_settings=CONTEXT_SETTINGS)
@click.option(
    "--settings", "settings_path",
    default=None,
    type=click.Path(dir_okay=False),
    help="YAML or JSON run settings (default: $MONITOR_SETTINGS_FILE).",
)
@click.option("--site-url", "site_url", default=None, help="Override the site URL from the settings file.")
@click.option(
    "--baseline", "baseline_path",
    default=None,
    type=click.Path(dir_okay=False),
    help="Base links file (default: $MONITOR_BASELINE_FILE).",
)
@click.option(
    "--html", "html_output",
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help="Also save the HTML report to this file.",
)
@log_level_option
def crawl(settings_path, site_url, baseline_path, html_output, log_level):
    """Crawl the site synchronously and compare its links with the base links file."""
    init_logging(log_level)
    try:
        settings = load_settings(settings_path or config.settings_file(), site_url)
    except ConfigMissing as e:
        print_error(str(e))

    run_log = RunLog()
    hooks = []
    if settings.save_content:
        hooks.append(ContentSaver(config.content_dir(), run_log))

    driver = CrawlDriver(
        settings,
        build_fetcher(),
        mode=Mode.SYNC,
        run_log=run_log,
        baseline=BaselineDiffEngine(baseline_path or config.baseline_file()),
        notifier=build_notifier(),
        url_hooks=hooks,
    )
    report = driver.run()

    diffs = significant(report.diffs)
    if diffs:
        click.echo("Differences with base links file:")
        click.echo(to_string(diffs))

    if html_output:
        from sitemonitor.services.report import ReportRenderer

        html_output.write_text(ReportRenderer().render_html(report), encoding="utf-8")
        click.echo(f"HTML report saved to {html_output}")


@cli.command("serve", context_settings=CONTEXT_SETTINGS)
@click.option("--host", default="0.0.0.0", show_default=True)
@click.option("--port", default=8000, show_default=True, type=int)
@log_level_option
def serve(host, port, log_level):
    """Start the API; web-triggered runs are ticked in the background."""
    init_logging(log_level)
    import uvicorn

    from sitemonitor.api.server import create_app

    uvicorn.run(create_app(), host=host, port=port)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
