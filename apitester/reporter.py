"""
Console output for responses and saved requests
"""

import json
from typing import Dict, Any, List, Optional
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.syntax import Syntax
from rich.markup import escape
from rich.text import Text

from apitester.classifier import ResponseView, QuestionSet
from apitester.client import HTTPResponse
from apitester.coordinator import Outcome, OutcomeStatus, SyncReport
from apitester.models import SavedRequest
from apitester.seed import SeedReport
from apitester.utils import format_duration, truncate

METHOD_COLORS = {
    'GET': 'blue',
    'POST': 'green',
    'PUT': 'yellow',
    'DELETE': 'red',
}


class Reporter:
    """Render API Tester output with Rich"""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def _status_color(self, status_code: int) -> str:
        if 200 <= status_code < 300:
            return "green"
        elif status_code >= 400:
            return "red"
        return "yellow"

    def _method_text(self, method: str) -> str:
        color = METHOD_COLORS.get(method, 'purple')
        return f"[bold {color}]{method}[/bold {color}]"

    def print_response(self, response: HTTPResponse, view: ResponseView, verbose: bool = False):
        """
        Print status line, optional headers and the response body

        Args:
            response: Raw response
            view: Classified response
            verbose: Whether to show response headers
        """
        color = self._status_color(response.status_code)
        self.console.print()
        self.console.print(
            f"[{color}]Status: {response.status_code}[/{color}]  "
            f"[dim]⏱  {format_duration(response.response_time_ms / 1000)}  "
            f"{response.size_bytes} bytes[/dim]"
        )

        if verbose and response.headers:
            table = Table(show_header=False, box=None)
            table.add_column("Header", style="cyan")
            table.add_column("Value")
            for key, value in response.headers.items():
                table.add_row(key, value)
            self.console.print(table)

        if view.is_structured:
            body = Syntax(view.display_text, "json", word_wrap=True)
        else:
            body = Text(view.display_text)
        self.console.print(Panel(body, title="Raw Response", border_style=color))

        if view.question_set:
            self.print_question_set(view.question_set)

    def print_question_set(self, question_set: QuestionSet):
        """Print verification questions with numbered answers"""
        self.console.print()
        self.console.print("[bold]Verification Questions[/bold]")
        if question_set.provider:
            self.console.print(f"[dim]Provider: {escape(question_set.provider)}[/dim]")
        if question_set.auth_token:
            self.console.print(f"[dim]authToken: {escape(question_set.auth_token)}[/dim]")

        for index, question in enumerate(question_set.questions, start=1):
            self.console.print(f"{index}. {escape(question.text)} [dim]({escape(question.id)})[/dim]")
            for answer_index, answer in enumerate(question.answers, start=1):
                self.console.print(f"    [cyan]{answer_index})[/cyan] {escape(answer.text)} [dim]({escape(answer.id)})[/dim]")

    def print_answer_payload(self, payload: Dict[str, Any]):
        self.console.print()
        self.console.print("[bold]Selected Answers (for next API call):[/bold]")
        self.console.print(Syntax(json.dumps(payload, indent=2), "json"))

    def print_saved_requests(self, requests: List[SavedRequest], use_database: bool,
                             active_id: Optional[str] = None):
        """
        Print the saved request list

        Args:
            requests: Working set
            use_database: Current storage mode
            active_id: Id of the request loaded into the draft, if any
        """
        mode = "[cyan]database[/cyan]" if use_database else "[yellow]local[/yellow]"
        self.console.print(f"[white]Saved Requests[/white] [dim]({len(requests)}, storage: [/dim]{mode}[dim])[/dim]")

        if not requests:
            self.console.print("[dim]No saved requests[/dim]")
            return

        table = Table(show_header=True, header_style="bold white", box=None)
        table.add_column("ID", style="dim", no_wrap=True)
        table.add_column("Method")
        table.add_column("Name", max_width=35)
        table.add_column("URL")

        for request in requests:
            marker = "→ " if request.id == active_id else ""
            table.add_row(
                request.id,
                self._method_text(request.method),
                marker + escape(truncate(request.name, 35)),
                escape(truncate(request.url, 60))
            )
        self.console.print(table)

    def print_saved_request(self, request: SavedRequest):
        """Print one preset in full"""
        lines = [
            f"{self._method_text(request.method)} {escape(request.url)}",
            f"[dim]id: {request.id}[/dim]",
        ]
        if request.created_at:
            lines.append(f"[dim]created: {request.created_at.isoformat(sep=' ', timespec='seconds')}[/dim]")
        if request.headers:
            lines.append("")
            lines.append(escape(request.headers))
        if request.body:
            lines.append("")
            lines.append(escape(request.body))
        self.console.print(Panel("\n".join(lines), title=escape(request.name), border_style="cyan"))

    def print_outcome(self, outcome: Outcome):
        """Print a one-line outcome message"""
        if outcome.status == OutcomeStatus.FAILED:
            self.console.print(f"[red]✗ {escape(outcome.message)}[/red]")
        elif outcome.degraded:
            self.console.print(f"[yellow]⚠ {escape(outcome.message)}[/yellow]")
        else:
            self.console.print(f"[green]✓ {escape(outcome.message)}[/green]")

    def print_sync_report(self, report: SyncReport):
        if report.error:
            self.console.print(f"[red]✗ {escape(report.error)}[/red]")
            return
        color = "green" if report.failed_count == 0 else "yellow" if report.synced_count else "red"
        self.console.print(Panel(
            f"[bold]{report.synced_count} synced[/bold], {report.failed_count} failed",
            border_style=color,
            title="Sync to Database"
        ))

    def print_seed_report(self, report: SeedReport):
        for name in report.created:
            self.console.print(f"[green]✓[/green] Created \"{escape(name)}\"")
        for name in report.skipped:
            self.console.print(f"[yellow]⏭[/yellow] [dim]Skipping \"{escape(name)}\" (already exists)[/dim]")
        self.console.print(f"\n[bold]Seeding complete![/bold] Created: {len(report.created)} | Skipped: {len(report.skipped)}")

    def print_mode(self, use_database: bool, storage_info: Dict[str, Any]):
        if use_database:
            self.console.print("[cyan]Storage: database[/cyan]")
        else:
            self.console.print("[yellow]Storage: local[/yellow]")
        if storage_info.get('configured'):
            self.console.print(f"[dim]Database: {storage_info['path']}[/dim]")
        else:
            self.console.print("[dim]Database: not configured[/dim]")
