"""
Monitor External Service Integrations
=====================================

External services for the monitor:
- Slack and Telegram report delivery
- Config file loading with watchdog hot-reload
- APScheduler cron scheduling for ``--schedule``
"""

import html
import json
import threading
from abc import abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from pydantic import ValidationError
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from spend_monitor.core import (
    ConfigurationException,
    ExternalServiceException,
    NotifierException,
    TransportException,
)
from spend_monitor.monitor.application import INotifier
from spend_monitor.monitor.domain import MonitorConfig
from spend_monitor.shared.infrastructure.http import HttpRequest, HttpResult, RetryingHttpClient
from spend_monitor.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


# ========== Config loading ==========

def load_monitor_config(path: Path) -> MonitorConfig:
    """
    Read and validate the monitor config file.

    ``.json`` files are parsed as JSON, anything else as YAML.

    Raises:
        ConfigurationException: file missing, unparsable, or invalid
    """
    path = Path(path).expanduser()
    if not path.exists():
        raise ConfigurationException(f"Config file not found: {path}", {"path": str(path)})

    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except (ValueError, yaml.YAMLError) as e:
        raise ConfigurationException(
            f"Config file is not valid: {path}", {"path": str(path), "error": str(e)}
        ) from e

    if not isinstance(data, dict):
        raise ConfigurationException(
            f"Config file must contain a mapping: {path}", {"path": str(path)}
        )

    try:
        return MonitorConfig(**data)
    except ValidationError as e:
        fields = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
        raise ConfigurationException(
            f"Config file has missing or invalid fields: {', '.join(fields)}",
            {"path": str(path), "fields": fields},
        ) from e


class ConfigFileHandler(FileSystemEventHandler):
    """Watchdog event handler for monitor config file changes."""

    def __init__(self, config_manager: "MonitorConfigManager", config_path: Path):
        self.config_manager = config_manager
        self.config_path = config_path
        super().__init__()

    def _is_config(self, path: str) -> bool:
        return Path(path).resolve() == self.config_path.resolve()

    def on_modified(self, event):
        """Handle file modification event."""
        if event.is_directory:
            return
        if self._is_config(event.src_path):
            logger.info("Config file changed", extra={"path": event.src_path})
            self.config_manager.reload()

    def on_moved(self, event):
        """Editors that save by rename land here."""
        if event.is_directory:
            return
        if self._is_config(event.dest_path):
            logger.info("Config file replaced", extra={"path": event.dest_path})
            self.config_manager.reload()


class MonitorConfigManager:
    """
    Thread-safe monitor configuration holder with hot-reload support.

    The watchdog observer runs in its own thread; each scheduled run
    reads ``config`` once at start and keeps that snapshot.
    """

    def __init__(self):
        self._config: Optional[MonitorConfig] = None
        self._lock = threading.Lock()
        self._path: Optional[Path] = None
        self._observer = None

    def load(self, path: Path) -> MonitorConfig:
        """Initial configuration load. Raises ConfigurationException."""
        self._path = Path(path).expanduser()
        config = load_monitor_config(self._path)
        with self._lock:
            self._config = config
        logger.info(
            "Monitor configuration loaded",
            extra={"path": str(self._path), "customer_count": len(config.customers)},
        )
        return config

    def reload(self) -> bool:
        """Reload configuration from file, keeping the old one on failure."""
        if self._path is None:
            return False

        try:
            new_config = load_monitor_config(self._path)
        except ConfigurationException as e:
            logger.error(
                "Failed to reload monitor config, keeping previous",
                extra={"error": e.message},
            )
            return False

        with self._lock:
            self._config = new_config
        logger.info("Monitor configuration reloaded successfully")
        return True

    def start_watching(self) -> None:
        """Start watching the config file for changes."""
        if self._path is None:
            raise RuntimeError("Config not loaded. Call load() first.")

        try:
            self._observer = Observer()
            handler = ConfigFileHandler(self, self._path)
            self._observer.schedule(
                handler,
                str(self._path.parent),
                recursive=False
            )
            self._observer.start()
            logger.info("Started watching config file", extra={"path": str(self._path)})
        except OSError as e:
            # inotify is unavailable in some containers
            logger.warning(
                "File watching not available, using static config",
                extra={"error": str(e)},
            )
            self._observer = None

    def stop_watching(self) -> None:
        """Stop watching configuration file (safe to call even if not watching)."""
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None

    @property
    def config(self) -> MonitorConfig:
        """Get current configuration."""
        with self._lock:
            if self._config is None:
                raise RuntimeError("Monitor configuration not loaded")
            return self._config


# ========== Notifiers ==========

def _raise_for_result(service: str, result: HttpResult) -> None:
    """Turn a failed HttpResult into the matching exception."""
    if result.success:
        return
    if result.status_code is None:
        raise TransportException(
            service, "no response after retries", {"attempts": result.attempts}
        )
    raise NotifierException(
        service, f"HTTP {result.status_code}", {"status_code": result.status_code}
    )


class _ChatNotifier(INotifier):
    """Shared send/log flow; subclasses build and check the API call."""

    service_name = ""

    def __init__(self, http: RetryingHttpClient):
        self._http = http

    @property
    def name(self) -> str:
        return self.service_name.lower()

    async def send(self, text: str) -> bool:
        try:
            await self._post(text)
        except ExternalServiceException as e:
            logger.error(
                "Report delivery failed",
                extra={"notifier": self.name, "error": e.message},
            )
            return False

        logger.info("Report delivered", extra={"notifier": self.name})
        return True

    @abstractmethod
    async def _post(self, text: str) -> None:
        """Send ``text``; raise an ExternalServiceException on failure."""

    def _check_api_response(self, result: HttpResult, error_key: str) -> Dict[str, Any]:
        _raise_for_result(self.service_name, result)
        data = result.json()
        if not isinstance(data, dict) or data.get("ok") is not True:
            error = data.get(error_key) if isinstance(data, dict) else None
            raise NotifierException(
                self.service_name, f"API error: {error or 'unexpected response'}"
            )
        return data


class SlackNotifier(_ChatNotifier):
    """
    Slack ``chat.postMessage`` client.

    Slack answers HTTP 200 even for rejected messages, so success also
    requires ``"ok": true`` in the body.
    """

    service_name = "Slack"

    def __init__(
        self,
        http: RetryingHttpClient,
        token: str,
        channel: str,
        api_url: str = "https://slack.com/api/chat.postMessage",
    ):
        super().__init__(http)
        self._token = token
        self._channel = channel
        self._api_url = api_url

    def _build_message(self, text: str) -> Dict[str, Any]:
        return {
            "channel": self._channel,
            "text": text,
            "unfurl_links": False,
        }

    async def _post(self, text: str) -> None:
        result = await self._http.execute(HttpRequest(
            method="POST",
            url=self._api_url,
            headers={
                "Authorization": f"Bearer {self._token}",
                "Content-Type": "application/json; charset=utf-8",
            },
            json=self._build_message(text),
            label="slack.chat.postMessage",
        ))
        self._check_api_response(result, "error")


class TelegramNotifier(_ChatNotifier):
    """
    Telegram Bot API ``sendMessage`` client.

    The message goes out with HTML parse mode, so report text is escaped
    first. The bot token is part of the URL and never logged.
    """

    service_name = "Telegram"

    def __init__(
        self,
        http: RetryingHttpClient,
        token: str,
        chat_id: str,
        api_base: str = "https://api.telegram.org",
    ):
        super().__init__(http)
        self._token = token
        self._chat_id = chat_id
        self._api_base = api_base.rstrip("/")

    def _build_message(self, text: str) -> Dict[str, Any]:
        return {
            "chat_id": self._chat_id,
            "text": html.escape(text, quote=False),
            "parse_mode": "HTML",
        }

    async def _post(self, text: str) -> None:
        result = await self._http.execute(HttpRequest(
            method="POST",
            url=f"{self._api_base}/bot{self._token}/sendMessage",
            json=self._build_message(text),
            label="telegram.sendMessage",
        ))
        self._check_api_response(result, "description")


# ========== Scheduler ==========

class MonitorScheduler:
    """
    Wrapper for APScheduler running the monitor on a cron schedule.

    Manages the lifecycle of the scheduler and its single job; a run that
    is still going when the next one fires is not overlapped.
    """

    JOB_ID = "spend_monitor_run"

    def __init__(self, cron: str = "0 9 * * 1-5", timezone: str = "UTC"):
        self.cron = cron
        self.timezone = timezone
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._running = False

    def build_trigger(self) -> CronTrigger:
        """Parse the crontab expression. Raises ConfigurationException."""
        try:
            return CronTrigger.from_crontab(self.cron, timezone=self.timezone)
        except (ValueError, LookupError) as e:
            raise ConfigurationException(
                f"Invalid schedule: {self.cron}", {"cron": self.cron, "error": str(e)}
            ) from e

    async def start(self, job_func) -> None:
        """Start the scheduler with the given job function."""
        if self._running:
            logger.warning("Monitor scheduler already running")
            return

        trigger = self.build_trigger()
        self._scheduler = AsyncIOScheduler(timezone=self.timezone)

        self._scheduler.add_job(
            job_func,
            trigger,
            id=self.JOB_ID,
            name="Spend Monitor Run",
            misfire_grace_time=300,
            coalesce=True,
            max_instances=1,
            replace_existing=True
        )

        self._scheduler.start()
        self._running = True

        job = self._scheduler.get_job(self.JOB_ID)
        logger.info(
            "Monitor scheduler started",
            extra={
                "cron": self.cron,
                "timezone": self.timezone,
                "next_run": str(job.next_run_time) if job else None,
            }
        )

    async def stop(self) -> None:
        """Stop the scheduler gracefully."""
        if not self._running:
            return

        if self._scheduler:
            self._scheduler.shutdown(wait=True)

        self._running = False
        logger.info("Monitor scheduler stopped")

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running."""
        return self._running
