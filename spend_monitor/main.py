"""
Spend Monitor - Command Line Entry Point
========================================

Daily customer revenue pace monitor.

Run once:
    spend-monitor [--dry-run] [--customer NAME] [--output FILE]

Run on a schedule (cron from SCHEDULE_CRON):
    spend-monitor --schedule

Startup:
1. Setup structured logging
2. Load and validate the monitor configuration (fatal on error)
3. Build sources, trackers and notifiers
4. Run the pipeline, print and save the report, then deliver it
"""

import argparse
import asyncio
import sys
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from spend_monitor.config import Settings, get_settings
from spend_monitor.core import ConfigurationException
from spend_monitor.monitor.application import (
    INotifier,
    ReportFormatter,
    SpendMonitorPipeline,
    deliver,
)
from spend_monitor.monitor.domain import MonitorConfig, Report
from spend_monitor.monitor.infrastructure import (
    MonitorConfigManager,
    MonitorScheduler,
    SlackNotifier,
    TelegramNotifier,
)
from spend_monitor.revenue.infrastructure import BillingAgentClient, TableauClient
from spend_monitor.shared.infrastructure.http import RetryingHttpClient
from spend_monitor.shared.infrastructure.logging import get_logger, setup_logging
from spend_monitor.watchlist.infrastructure import (
    JSONEscalationRepository,
    JSONTicketRepository,
)

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spend-monitor",
        description="Compare month-to-date customer revenue against the prorated prior month.",
    )
    parser.add_argument("--output", metavar="FILE", help="also save the report to FILE")
    parser.add_argument("--dry-run", action="store_true", help="no revenue queries, no delivery")
    parser.add_argument("--customer", metavar="NAME", help="only run for this customer")
    parser.add_argument("--config", metavar="PATH", help="config file (default: CONFIG_PATH)")
    parser.add_argument("--schedule", action="store_true", help="run on SCHEDULE_CRON until stopped")
    delivery = parser.add_mutually_exclusive_group()
    delivery.add_argument("--slack-only", action="store_true", help="deliver to Slack only")
    delivery.add_argument("--telegram-only", action="store_true", help="deliver to Telegram only")
    return parser


def resolve_timezone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigurationException(f"Unknown report timezone: {name}", {"timezone": name}) from e


def build_pipeline(
    config: MonitorConfig,
    settings: Settings,
    http: RetryingHttpClient
) -> SpendMonitorPipeline:
    """Wire concrete sources and trackers into the pipeline."""
    views = config.tableau.views
    primary = TableauClient(
        http,
        server=config.tableau.server,
        pat_name=config.tableau.pat_name,
        pat_secret=settings.tableau_pat_secret,
        monthly_revenue_view=views.monthly_revenue,
        service_breakdown_view=views.service_breakdown,
        site=config.tableau.site,
        api_version=config.tableau.api_version,
        filter_field=config.tableau.filter_field,
    )

    fallback = BillingAgentClient(http, config.a2a.billing_url)

    return SpendMonitorPipeline(
        config,
        primary,
        fallback,
        JSONEscalationRepository(config.escalation_tracker_path),
        JSONTicketRepository(config.engdesk_tracker_glob),
        request_budget_seconds=http.worst_case_seconds(),
    )


def build_notifiers(
    config: MonitorConfig,
    settings: Settings,
    http: RetryingHttpClient,
    slack_only: bool = False,
    telegram_only: bool = False
) -> List[INotifier]:
    """Notifiers that are configured and not excluded by the CLI flags."""
    notifiers: List[INotifier] = []

    if not telegram_only:
        if settings.slack_bot_token:
            notifiers.append(SlackNotifier(
                http,
                settings.slack_bot_token,
                config.slack.dm_channel,
                api_url=settings.slack_api_url,
            ))
        else:
            logger.info("Slack token not set, skipping Slack delivery")

    if not slack_only:
        if settings.telegram_bot_token and config.telegram.chat_id:
            notifiers.append(TelegramNotifier(
                http,
                settings.telegram_bot_token,
                config.telegram.chat_id,
                api_base=settings.telegram_api_base,
            ))
        else:
            logger.info("Telegram token or chat id not set, skipping Telegram delivery")

    return notifiers


def write_report(text: str, output: Optional[str]) -> None:
    """Print the report and save it to ``output`` when given."""
    print(text)
    if not output:
        return
    path = Path(output).expanduser()
    try:
        path.write_text(text + "\n", encoding="utf-8")
    except OSError as e:
        logger.error("Could not save report", extra={"output": str(path), "error": str(e)})
        return
    logger.info("Report saved", extra={"output": str(path)})


async def run_once(
    args: argparse.Namespace,
    settings: Settings,
    config: MonitorConfig,
    today: Optional[date] = None,
    http: Optional[RetryingHttpClient] = None
) -> Report:
    """One full monitor run: collect, print, save, deliver."""
    owns_http = http is None
    if http is None:
        http = RetryingHttpClient.from_settings(settings)

    try:
        if today is None:
            today = datetime.now(resolve_timezone(settings.report_timezone)).date()

        pipeline = build_pipeline(config, settings, http)
        report = await pipeline.run(today, customer_filter=args.customer, dry_run=args.dry_run)

        text = ReportFormatter().render(report)
        write_report(text, args.output)

        notifiers = build_notifiers(
            config, settings, http,
            slack_only=args.slack_only,
            telegram_only=args.telegram_only,
        )
        if args.dry_run:
            logger.info(
                "[DRY RUN] Skipping delivery",
                extra={"notifiers": [n.name for n in notifiers]},
            )
        else:
            await deliver(text, notifiers)

        return report
    finally:
        if owns_http:
            await http.close()


async def run_scheduled(
    args: argparse.Namespace,
    settings: Settings,
    manager: MonitorConfigManager
) -> None:
    """Run on the configured cron schedule until cancelled."""
    scheduler = MonitorScheduler(settings.schedule_cron, settings.report_timezone)

    async def monitor_job():
        """Scheduled monitor run with the config as of now."""
        await run_once(args, settings, manager.config)

    manager.start_watching()
    try:
        await scheduler.start(monitor_job)
        await asyncio.Event().wait()
    finally:
        await scheduler.stop()
        manager.stop_watching()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(settings.log_level, settings.environment)

    logger.info("Starting Spend Monitor", extra={
        "version": settings.app_version,
        "environment": settings.environment
    })

    config_path = Path(args.config) if args.config else settings.config_path
    manager = MonitorConfigManager()

    try:
        manager.load(config_path)
        resolve_timezone(settings.report_timezone)
        if args.schedule:
            asyncio.run(run_scheduled(args, settings, manager))
        else:
            asyncio.run(run_once(args, settings, manager.config))
    except ConfigurationException as e:
        logger.error("Configuration error", extra={"error": e.message, "details": e.details})
        print(f"ERROR: {e.message}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.info("Spend Monitor stopped")

    return 0


if __name__ == "__main__":
    sys.exit(main())
