"""Rich terminal UI components for the CLI client."""

from typing import List, Sequence, Tuple

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from smart_apply.core.model.job_listing import JobListing


def mask_secret(value: str) -> str:
    """Show only the last four characters of a secret."""
    if not value:
        return ""
    if len(value) <= 4:
        return "****"
    return f"****{value[-4:]}"


class TerminalUI:
    """Rich terminal output for the Smart Apply CLI."""

    def __init__(self):
        self.console = Console()

    def print_header(self):
        header_text = Text("Smart Apply Bot", style="bold blue")
        header_text.append(" 🤖", style="bold yellow")

        panel = Panel(
            header_text,
            subtitle="CV-driven job title suggestions and job search",
            border_style="blue",
        )
        self.console.print(panel)
        self.console.print()

    def print_config(self, rows: Sequence[Tuple[str, str]], missing: List[str]):
        """Print the effective configuration and any missing secrets."""
        table = Table(
            title="Configuration Summary", show_header=True, header_style="bold magenta"
        )
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="green")

        for name, value in rows:
            table.add_row(name, value)

        self.console.print(table)
        self.console.print()

        if missing:
            self.console.print(
                f"Missing required configuration: {', '.join(missing)}", style="red"
            )
        else:
            self.console.print("✅ All required secrets are set", style="green")

    def print_text_preview(self, text: str, limit: int = 1500):
        preview = text if len(text) <= limit else text[:limit] + "..."
        self.console.print(
            Panel(preview, title=f"Extracted text ({len(text):,} chars)", border_style="cyan")
        )

    def print_titles(self, titles: List[str]):
        table = Table(title="Suggested Job Titles", show_header=True, header_style="bold magenta")
        table.add_column("#", style="cyan", width=3)
        table.add_column("Job Title", style="green")

        for i, title in enumerate(titles, 1):
            table.add_row(str(i), title)

        self.console.print(table)

    def print_job_results(self, jobs: List[JobListing]):
        """Print job search results."""
        if not jobs:
            self.console.print("❌ No jobs found", style="red")
            return

        table = Table(
            title=f"Found {len(jobs)} Jobs",
            show_header=True,
            header_style="bold magenta",
        )
        table.add_column("Title", style="cyan")
        table.add_column("Company", style="green")
        table.add_column("Location", style="yellow")
        table.add_column("Apply Link", style="blue", overflow="fold")

        for job in jobs:
            location = ", ".join(p for p in (job.job_city, job.job_country) if p)
            table.add_row(
                job.job_title or "Untitled Position",
                job.employer_name or "Unknown Company",
                location or "-",
                job.job_apply_link or "-",
            )

        self.console.print(table)

    def print_error(self, message: str):
        self.console.print(f"❌ {message}", style="red")
