"""CLI tool for running multi-page audits with live progress."""
import asyncio
from typing import List, Optional

import httpx
import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from ..config import settings
from .poller import (
    ProgressPoller,
    SessionNotFoundError,
    Snapshot,
    http_snapshot_fetcher,
    start_session,
)

app = typer.Typer()
console = Console()


def describe_progress(snapshot: Snapshot) -> str:
    """One-line progress description for the spinner."""
    state = snapshot.get("state", "unknown")
    total = snapshot.get("total_pages", 0)
    done = snapshot.get("completed_page_count", 0)

    if state == "completed":
        return f"[green]Completed! {done}/{total} pages analyzed"
    if state == "failed":
        return f"[red]Failed: {snapshot.get('error', 'Unknown error')}"

    step = snapshot.get("current_step") or "Analyzing"
    details = snapshot.get("current_step_details") or ""
    return f"[cyan]{done}/{total} pages - {step}[/cyan] [dim]{details}[/dim]"


def create_results_table(snapshot: Snapshot) -> Table:
    """Create a rich table with one row per analyzed page."""
    table = Table(show_header=True, box=None, padding=(0, 2))
    table.add_column("Page", style="cyan bold", no_wrap=True)
    table.add_column("Score", justify="right")
    table.add_column("Result", style="white")

    for result in snapshot.get("page_results", []):
        if result.get("error"):
            table.add_row(result["path"], "0", f"[red]{result['error']}[/red]")
        else:
            table.add_row(result["path"], str(result["score"]), f"{result.get('load_time_ms', 0)} ms")

    insights = snapshot.get("domain_insights")
    if insights:
        table.add_row("", "", "")
        table.add_row("Average", str(insights["average_score"]), "")
        table.add_row("Best page", str(insights["best_page"]["score"]), insights["best_page"]["path"])
        table.add_row("Worst page", str(insights["worst_page"]["score"]), insights["worst_page"]["path"])
        table.add_row("Success rate", f"{insights['success_rate']}%", "")

    return table


async def track_session(session_id: str, api_url: str, poll_interval: float) -> Optional[Snapshot]:
    """Poll a session with a live spinner until it finishes."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=False,
    ) as progress:
        task = progress.add_task("[cyan]Waiting for first update...", total=None)

        poller = ProgressPoller(
            http_snapshot_fetcher(api_url),
            interval=poll_interval,
            on_update=lambda snapshot: progress.update(
                task, description=describe_progress(snapshot)
            ),
        )
        return await poller.poll(session_id)


def show_summary(session_id: str, snapshot: Snapshot) -> bool:
    """Print the final panel; return True if the session completed."""
    completed = snapshot.get("state") == "completed"
    console.print("\n")
    console.print(Panel(
        create_results_table(snapshot),
        title="[green]Audit Complete" if completed else "[red]Audit Failed",
        border_style="green" if completed else "red",
    ))
    if not completed:
        console.print(f"[red]{snapshot.get('error', 'Unknown error')}[/red]")
    console.print(f"\n[cyan]Session ID:[/cyan] {session_id}")
    return completed


def follow(session_id: str, api_url: str, poll_interval: float) -> None:
    """Follow a session to its end; Ctrl-C only detaches."""
    try:
        snapshot = asyncio.run(track_session(session_id, api_url, poll_interval))
    except KeyboardInterrupt:
        console.print(
            "\n[yellow]Stopped polling. The analysis keeps running on the server; "
            f"resume with:[/yellow] visibility-audit status {session_id}"
        )
        raise typer.Exit(130)
    except SessionNotFoundError:
        console.print(f"[red]Session {session_id} not found or expired[/red]")
        raise typer.Exit(1)

    if snapshot is None or not show_summary(session_id, snapshot):
        raise typer.Exit(1)


@app.command()
def audit(
    domain: str = typer.Argument(..., help="Root URL of the site, e.g. https://example.com"),
    paths: List[str] = typer.Argument(..., help="Page paths to analyze, e.g. / /about"),
    api_url: str = typer.Option("http://localhost:8000", help="API base URL"),
    poll_interval: float = typer.Option(settings.poll_interval, help="Polling interval in seconds"),
):
    """
    Run a multi-page AI visibility audit with live progress.

    Examples:

        visibility-audit audit https://example.com / /about /pricing
    """
    console.print(f"\n[bold cyan]Starting audit of:[/bold cyan] {domain}\n")

    try:
        started = asyncio.run(start_session(domain, paths, api_url))
    except httpx.HTTPStatusError as e:
        console.print(f"[red]Error starting audit: {e.response.text}[/red]")
        raise typer.Exit(1)
    except httpx.HTTPError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    session_id = started["session_id"]
    console.print(f"[green]Session created:[/green] {session_id} ({started['total_pages']} pages)\n")
    follow(session_id, api_url, poll_interval)


@app.command()
def status(
    session_id: str = typer.Argument(..., help="Session ID returned when the audit started"),
    api_url: str = typer.Option("http://localhost:8000", help="API base URL"),
    poll_interval: float = typer.Option(settings.poll_interval, help="Polling interval in seconds"),
):
    """Resume following a running (or finished) audit."""
    follow(session_id, api_url, poll_interval)


if __name__ == "__main__":
    app()
