import logging
from typing import Any, Dict, List, Optional

from rich.box import HEAVY, ROUNDED, SIMPLE
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from feedcache.domain.interfaces.user_interface import UserInterface, describe_post
from feedcache.domain.models.feed import Post

logger = logging.getLogger(__name__)

ORIGIN_STYLES = {"memory": "green", "disk": "yellow", "remote": "cyan"}


def format_cache_size(total_bytes: int) -> str:
    """Human readable size: whole KB below 1 MB, one decimal MB above."""
    size_mb = total_bytes / 1024.0 / 1024.0
    if size_mb < 1.0:
        return f"{total_bytes / 1024.0:.0f} KB"
    return f"{size_mb:.1f} MB"


class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output."""

    def __init__(self, console: Optional[Console] = None):
        """Initializes the rich Console."""
        self._console = console or Console()

    @property
    def console(self) -> Console:
        """Get the Rich console instance for direct operations."""
        return self._console

    def display_output(self, output: str, **kwargs: Any) -> None:
        """Displays output text; JSON is syntax highlighted when as_json is set.

        Args:
            output: The text to display.
            **kwargs: title (panel title), as_json (highlight as JSON).
        """
        title = kwargs.get("title")
        body = Syntax(output, "json", word_wrap=True) if kwargs.get("as_json") else Text(output)
        if title:
            self.console.print(Panel(body, title=f"[bold]{title}[/bold]", title_align="left", box=ROUNDED))
        else:
            self.console.print(body)

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message in a distinct style."""
        panel = Panel(
            Text(error_message, style="white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1),
        )
        self.console.print(panel)

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message."""
        panel = Panel(
            Text(info_message, style="white"),
            title="[bold blue]Info[/bold blue]",
            border_style="blue",
            box=SIMPLE,
            padding=(0, 1),
        )
        self.console.print(panel)

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message."""
        logger.warning(f"Display warning: {warning_message}")
        panel = Panel(
            Text(warning_message, style="white"),
            title="[bold yellow]Warning[/bold yellow]",
            border_style="yellow",
            box=HEAVY,
            padding=(0, 1),
        )
        self.console.print(panel)

    def display_posts(self, posts: List[Post], origin: str, **kwargs: Any) -> None:
        """Renders posts as a table, titled with the tier or source they came from."""
        style = ORIGIN_STYLES.get(origin, "white")
        table = Table(
            title=f"Feed: {len(posts)} posts [{style}](from {origin})[/{style}]",
            box=ROUNDED,
            show_lines=False,
        )
        table.add_column("Created", style="dim", no_wrap=True)
        table.add_column("Profile", style="cyan")
        table.add_column("Post")
        table.add_column("Category", style="magenta")

        for post in posts:
            profile = post.profile.profile_name if post.profile else post.profile_id
            table.add_row(
                post.created_at.strftime("%Y-%m-%d %H:%M"),
                Text(str(profile)),
                Text(describe_post(post)),
                post.category,
            )
        self.console.print(table)

    def display_stats(self, report: Dict[str, Any], **kwargs: Any) -> None:
        """Renders cache diagnostics as a two-column table."""
        table = Table(show_header=False, box=SIMPLE, title="Cache statistics", title_style="bold cyan")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", justify="right")
        for label, value in report.items():
            table.add_row(label, str(value))
        self.console.print(table)
