"""Command-line interface for running and exercising the Smart Apply Bot."""

import asyncio
import sys
from pathlib import Path
from typing import List, Optional

import typer
from dotenv import load_dotenv
from loguru import logger

from smart_apply.cli.ui import TerminalUI, mask_secret
from smart_apply.config.config_loader import BotConfig, load_config, missing_secrets
from smart_apply.core.errors import SmartApplyError
from smart_apply.core.model.job_listing import DatePosted, JobListing, JobSearchQuery
from smart_apply.core.model.user_profile import location_filter
from smart_apply.core.tools.document_extractor import DocumentExtractor, resolve_mime_type
from smart_apply.core.utils.logging_config import configure_logging


class SmartApplyCLI:
    """Command-line interface for the Smart Apply Bot."""

    def __init__(self):
        load_dotenv()
        configure_logging("WARNING")

        self.app = typer.Typer(
            name="smart-apply",
            help="Smart Apply Bot - CV-driven job suggestions and search over Telegram",
            no_args_is_help=True,
            rich_markup_mode=None,
        )
        self.ui = TerminalUI()

        self._register_commands()

    def _register_commands(self):
        """Register all CLI commands."""

        @self.app.command("run")
        def run_bot(
            mode: str = typer.Option(
                "", "--mode", "-m", help="polling or webhook (default from config)"
            ),
            config_file: str = typer.Option(
                "", "--config", "-c", help="Path to bot config YAML"
            ),
            log_level: str = typer.Option("", "--log-level", help="Override LOG_LEVEL"),
        ):
            """Start the Telegram bot."""
            self._run_command(config_file or None, mode or None, log_level or None)

        @self.app.command("check-config")
        def check_config(
            config_file: str = typer.Option(
                "", "--config", "-c", help="Path to bot config YAML"
            ),
        ):
            """Show the effective configuration and check required secrets."""
            self._check_config_command(config_file or None)

        @self.app.command("extract")
        def extract(file: Path = typer.Argument(..., help="CV file (PDF or DOCX)")):
            """Extract the text of a local CV file."""
            self._extract_command(file)

        @self.app.command("suggest")
        def suggest(
            file: Path = typer.Argument(..., help="CV file (PDF or DOCX)"),
            config_file: str = typer.Option(
                "", "--config", "-c", help="Path to bot config YAML"
            ),
        ):
            """Suggest job titles for a local CV file."""
            self._suggest_command(file, config_file or None)

        @self.app.command("search")
        def search(
            query: str = typer.Argument(..., help="Job title or free-text query"),
            location: str = typer.Option("", "--location", "-l", help="Job location"),
            date_posted: str = typer.Option(
                "", "--date-posted", help="today, 3days, week, month or year"
            ),
            job_type: str = typer.Option("", "--job-type", help="e.g. FULLTIME"),
            config_file: str = typer.Option(
                "", "--config", "-c", help="Path to bot config YAML"
            ),
        ):
            """Run a single job search and print the results."""
            self._search_command(
                query, location, date_posted, job_type, config_file or None
            )

    def _load(self, config_file: Optional[str]) -> BotConfig:
        try:
            return load_config(config_file)
        except SmartApplyError as e:
            self.ui.print_error(str(e))
            sys.exit(1)

    def _run_command(
        self, config_file: Optional[str], mode: Optional[str], log_level: Optional[str]
    ):
        from smart_apply.main import main

        sys.exit(main(config_path=config_file, mode=mode, log_level=log_level))

    def _check_config_command(self, config_file: Optional[str]):
        config = self._load(config_file)
        self.ui.print_header()

        rows = [
            ("Telegram token", mask_secret(config.telegram.token) or "(not set)"),
            ("Telegram mode", config.telegram.mode),
            ("Webhook URL", config.telegram.webhook_url or "-"),
            ("Webhook secret", mask_secret(config.telegram.webhook_secret) or "-"),
            ("Gemini API key", mask_secret(config.llm.api_key) or "(not set)"),
            ("Gemini model", config.llm.model),
            ("RapidAPI key", mask_secret(config.job_search.api_key) or "(not set)"),
            ("JSearch host", config.job_search.api_host),
            ("Titles searched", str(config.job_search.max_titles)),
            ("Listings per title", str(config.job_search.max_listings)),
            ("Date posted", config.job_search.date_posted),
            ("Download dir", config.documents.download_dir or "(temporary)"),
            ("Word uploads", "enabled" if config.documents.word_uploads_enabled else "disabled"),
            ("API", f"{config.api.host}:{config.api.port}"),
            ("Log level", config.observability.log_level),
        ]
        missing = missing_secrets(config)
        self.ui.print_config(rows, missing)
        if missing:
            sys.exit(1)

    def _extract_text(self, file: Path) -> str:
        mime_type = resolve_mime_type(None, file.name)
        if mime_type is None:
            self.ui.print_error("Please provide a PDF or DOCX file.")
            sys.exit(1)

        try:
            return DocumentExtractor().parse(file.read_bytes(), mime_type)
        except OSError as e:
            self.ui.print_error(f"Could not read {file}: {e}")
            sys.exit(1)
        except SmartApplyError as e:
            self.ui.print_error(str(e))
            sys.exit(1)

    def _extract_command(self, file: Path):
        text = self._extract_text(file)
        self.ui.print_text_preview(text)

    def _suggest_command(self, file: Path, config_file: Optional[str]):
        from smart_apply.main import build_title_suggester

        config = self._load(config_file)
        text = self._extract_text(file)

        try:
            suggester = build_title_suggester(config)
            with self.ui.console.status("🤖 Analyzing CV..."):
                titles = asyncio.run(suggester.suggest(text))
        except (ValueError, SmartApplyError) as e:
            self.ui.print_error(str(e))
            sys.exit(1)

        self.ui.print_titles(titles)

    def _search_command(
        self,
        query: str,
        location: str,
        date_posted: str,
        job_type: str,
        config_file: Optional[str],
    ):
        from smart_apply.main import build_job_search_client

        config = self._load(config_file)

        try:
            search_query = JobSearchQuery(
                query=query,
                num_pages=config.job_search.num_pages,
                date_posted=DatePosted(date_posted or config.job_search.date_posted),
                job_type=job_type or config.job_search.job_type,
                location=location_filter(location),
            )
            client = build_job_search_client(config)
        except ValueError as e:
            self.ui.print_error(str(e))
            sys.exit(1)

        async def _search() -> List[JobListing]:
            try:
                return await client.search(search_query)
            finally:
                await client.aclose()

        with self.ui.console.status(f"🔍 Searching for {query}..."):
            jobs = asyncio.run(_search())

        logger.debug("CLI search finished", query=query, results=len(jobs))
        self.ui.print_job_results(jobs[: config.job_search.max_listings])

    def run(self):
        """Run the CLI application."""
        self.app()


def main():
    SmartApplyCLI().run()


if __name__ == "__main__":
    main()
