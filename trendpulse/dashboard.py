"""
TrendPulse Dashboard
This script asks Google Gemini for the latest search-grounded news on a topic,
shows the brief and sourced items in the terminal, and lets the user translate,
share, open and bookmark them.
"""

import concurrent.futures
import json
import logging
import os
import sys
from typing import Any, Callable, Dict, Optional, cast

from rich.console import Console
from rich.markup import escape

from trendpulse.handlers import DashboardController
from trendpulse.platform.base import ShareTarget
from trendpulse.platform.email_share import EmailShareTarget
from trendpulse.platform.terminal import BrowserOpener, TerminalClipboard
from trendpulse.presentation import DashboardRenderer
from trendpulse.services.db import create_topic_storage
from trendpulse.services.gemini import DEFAULT_MODEL, GeminiGateway
from trendpulse.store import ViewStateStore

logger = logging.getLogger(__name__)


def load_config(config_filename: str = "config.json") -> Dict[str, Any]:
    """Loads configuration from a JSON file."""
    # Build absolute path relative to this script
    base_dir = os.path.dirname(os.path.abspath(__file__))
    config_path = os.path.join(base_dir, config_filename)

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        logger.warning("Config file not found at %s. Using defaults.", config_path)
        return {}


def configure_logging(log_file: str) -> None:
    """Sends logs to a file so they do not interleave with the console view."""
    path = os.path.expanduser(log_file)
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    logging.basicConfig(
        filename=path,
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


CONFIG: Dict[str, Any] = load_config()
MODEL: str = cast(str, CONFIG.get("model", DEFAULT_MODEL))
TARGET_LANGUAGE: str = cast(str, CONFIG.get("target_language", "Thai"))
DEFAULT_TOPIC: str = cast(str, CONFIG.get("default_topic", "Artificial Intelligence"))
TOPICS_FILE: str = cast(str, CONFIG.get("topics_file", "~/.trendpulse/topics.json"))
LOG_FILE: str = cast(str, CONFIG.get("log_file", "~/.trendpulse/trendpulse.log"))
SMTP_SERVER: str = cast(str, CONFIG.get("smtp_server", "smtp.gmail.com"))
SMTP_PORT: int = cast(int, CONFIG.get("smtp_port", 587))

# Env Vars
GEMINI_API_KEY: Optional[str] = os.environ.get("GEMINI_KEY")
GCP_PROJECT_ID: Optional[str] = os.environ.get("GCP_PROJECT_ID")
EMAIL_SENDER: Optional[str] = os.environ.get("EMAIL_USER")
EMAIL_PASSWORD: Optional[str] = os.environ.get("EMAIL_PASS")
EMAIL_RECIPIENT: str = os.environ.get("EMAIL_RECIPIENT", EMAIL_SENDER or "")

HELP_TEXT = """\
Commands:
  <topic> / search <topic>   fetch the latest news for a topic
  r                          refresh the current topic
  tab <all|x|youtube|news>   filter the stream
  t <n>                      translate item n (again to toggle)
  tb                         translate the daily synthesis (again to toggle)
  s <n>                      share item n (copies the link as fallback)
  o <n>                      open item n in the browser
  f <n>                      find news similar to item n
  save                       bookmark the current topic
  go <n>                     load saved topic n
  rm <n|topic>               remove a saved topic
  help                       show this help
  q                          quit"""


def build_share_target() -> Optional[ShareTarget]:
    """E-mail sharing is available only when SMTP credentials are set."""
    if not EMAIL_SENDER or not EMAIL_PASSWORD or not EMAIL_RECIPIENT:
        logger.info("EMAIL_USER/EMAIL_PASS not set. Sharing falls back to clipboard.")
        return None
    return EmailShareTarget(
        SMTP_SERVER, SMTP_PORT, EMAIL_SENDER, EMAIL_PASSWORD, EMAIL_RECIPIENT
    )


def build_controller(api_key: str) -> DashboardController:
    """Wires the gateway, store and collaborators together."""
    storage = create_topic_storage(
        GCP_PROJECT_ID, TOPICS_FILE, CONFIG.get("seed_topics")
    )
    store = ViewStateStore(storage, initial_topic=DEFAULT_TOPIC)
    gateway = GeminiGateway(
        api_key,
        model=MODEL,
        target_language=TARGET_LANGUAGE,
        timeout_ms=CONFIG.get("request_timeout_ms"),
    )
    return DashboardController(
        store,
        gateway,
        clipboard=TerminalClipboard(),
        opener=BrowserOpener(),
        share_target=build_share_target(),
        copied_reset_seconds=float(CONFIG.get("copied_reset_seconds", 2.0)),
        similar_words=int(CONFIG.get("similar_words", 5)),
    )


class Dashboard:
    """Interactive console session around a DashboardController."""

    def __init__(
        self,
        controller: DashboardController,
        console: Optional[Console] = None,
        renderer: Optional[DashboardRenderer] = None,
        executor: Optional[concurrent.futures.Executor] = None,
    ):
        self.controller = controller
        self.console = console or Console()
        self.renderer = renderer or DashboardRenderer()
        self.executor = executor or concurrent.futures.ThreadPoolExecutor(max_workers=4)
        controller.on_change = self.render

    def render(self) -> None:
        """Redraws the whole view; also called from timer threads via on_change."""
        self.console.clear()
        self.console.print(self.renderer.render(self.controller.store.snapshot()))

    def run_in_background(self, job: Callable[..., Any], *args: Any) -> None:
        """
        Runs job on the worker pool and waits for it with a spinner.

        Ctrl+C stops waiting but lets the job finish; a refresh that is
        superseded later is discarded by the store.
        """
        future = self.executor.submit(job, *args)
        try:
            with self.console.status("Working..."):
                future.result()
        except KeyboardInterrupt:
            self.console.print("[grey50]Still running in the background.[/]")
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logger.error(
                "Background job %s failed: %s", getattr(job, "__name__", job), exc
            )

    def _item(self, arg: str) -> str:
        return self.controller.item_id_at(int(arg))

    def _saved_topic(self, arg: str) -> str:
        saved = self.controller.store.saved_topics
        if arg.isdigit() and 1 <= int(arg) <= len(saved):
            return saved[int(arg) - 1]
        return arg

    def handle(self, line: str) -> bool:
        """Executes one command. Returns False when the session should end."""
        command, _, arg = line.strip().partition(" ")
        command = command.lower()
        arg = arg.strip()
        controller = self.controller

        if not command:
            return True
        if command in ("q", "quit", "exit"):
            return False
        if command == "help":
            self.console.print(HELP_TEXT)
            return True

        try:
            if command == "r":
                self.run_in_background(controller.refresh)
            elif command == "search":
                self.run_in_background(controller.submit_query, arg)
            elif command == "tab":
                if not controller.set_tab(arg):
                    self.console.print(f"[red]Unknown tab:[/] {escape(arg)}")
                    return True
            elif command == "t":
                self.run_in_background(controller.translate_item, self._item(arg))
            elif command == "tb":
                self.run_in_background(controller.translate_synthesis)
            elif command == "s":
                self.run_in_background(controller.share_item, self._item(arg))
            elif command == "o":
                controller.open_item(self._item(arg))
            elif command == "f":
                self.run_in_background(controller.find_similar, self._item(arg))
            elif command == "save":
                controller.save_current_topic()
            elif command == "go":
                self.run_in_background(controller.select_topic, self._saved_topic(arg))
            elif command == "rm":
                controller.remove_topic(self._saved_topic(arg))
            else:
                self.run_in_background(controller.submit_query, line)
        except (KeyError, ValueError):
            self.console.print(f"[red]No item {escape(repr(arg))} in the current view.[/]")
            return True

        self.render()
        return True

    def run(self) -> None:
        self.run_in_background(self.controller.refresh)
        self.render()
        self.console.print("[grey50]Type 'help' for commands.[/]")
        try:
            while True:
                try:
                    line = self.console.input("[bold]> [/]")
                except EOFError:
                    break
                if not self.handle(line):
                    break
        except KeyboardInterrupt:
            pass
        finally:
            self.executor.shutdown(wait=False)


def main():
    """Main execution entry point."""
    configure_logging(LOG_FILE)

    if not GEMINI_API_KEY:
        logger.error("Error: GEMINI_KEY not set.")
        print("GEMINI_KEY is not set.", file=sys.stderr)
        sys.exit(1)

    Dashboard(build_controller(GEMINI_API_KEY)).run()


if __name__ == "__main__":
    main()
