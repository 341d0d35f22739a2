"""
Command-line interface for API Tester
"""

import click
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from rich.console import Console
from rich.logging import RichHandler

from apitester import __version__
from apitester.composer import RequestComposer, RequestDraft
from apitester.config import ConfigManager, AppConfig
from apitester.coordinator import PersistenceCoordinator, OutcomeStatus
from apitester.models import HTTP_METHODS
from apitester.reporter import Reporter
from apitester.seed import load_seed_file, seed_requests
from apitester.errors import StoreUnavailable, StoreError
from apitester.storage import Storage, LocalStore


@dataclass
class CLIState:
    """Objects shared by all commands of one invocation"""
    config: AppConfig
    verbose: bool = False
    _coordinator: Optional[PersistenceCoordinator] = None

    def coordinator(self) -> PersistenceCoordinator:
        """Build the coordinator and run its initial load (once per invocation)"""
        if self._coordinator is None:
            storage = Storage(self.config.database_location())
            click.get_current_context().call_on_close(storage.close)
            self._coordinator = PersistenceCoordinator(storage, LocalStore(self.config.local_dir))
            self._coordinator.load()
        return self._coordinator


def _configure_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.ERROR,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True
    )


def _fail(message: str):
    click.echo(click.style(f"✗ Error: {message}", fg="red"), err=True)
    sys.exit(1)


def _read_body(data: Optional[str]) -> Optional[str]:
    """Body option value; '@path' reads the body from a file"""
    if data is None or not data.startswith('@'):
        return data
    path = Path(data[1:])
    try:
        return path.read_text(encoding='utf-8')
    except OSError as e:
        _fail(f"Could not read body file {path}: {e}")


def _apply_request_options(draft: RequestDraft, url: Optional[str], method: Optional[str],
                           headers: Tuple[str, ...], data: Optional[str]):
    if url:
        draft.url = url
    if method:
        draft.method = method.upper()
    if headers:
        draft.headers = "\n".join(headers)
    body = _read_body(data)
    if body is not None:
        draft.body = body


def _request_options(func):
    """Options shared by commands that compose a request"""
    func = click.option('--data', '-d', help="Request body. Use @FILE to read it from a file.")(func)
    func = click.option('--header', '-H', 'headers', multiple=True,
                        help='Header as "Key: Value" (repeatable). Replaces the default headers.')(func)
    func = click.option('--method', '-X', type=click.Choice(HTTP_METHODS, case_sensitive=False),
                        help='HTTP method')(func)
    return func


@click.group()
@click.option('--config', '-c', type=click.Path(dir_okay=False), help='Path to config file')
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
@click.version_option(version=__version__)
@click.pass_context
def main(ctx: click.Context, config: Optional[str], verbose: bool):
    """
    API Tester - compose, send and save HTTP requests

    Saved requests go to the database when it is available and to local
    storage otherwise.

    Example:

        apitester send https://api.example.com/users -X GET

    Save a request for later:

        apitester save https://api.example.com/users -X POST -d '{"name": "Ada"}'
    """
    _configure_logging(verbose)
    try:
        manager = ConfigManager(Path(config) if config else None)
    except ValueError as e:
        _fail(str(e))
    ctx.obj = CLIState(config=manager.config, verbose=verbose)


@main.command()
@click.argument('url', required=False)
@_request_options
@click.option('--preset', '-p', help='Start from a saved request (by id)')
@click.option('--save', 'save_after', is_flag=True, help='Save the request after sending it')
@click.option('--name', '-n', help='Name used with --save')
@click.option('--answer', '-a', 'answers', multiple=True,
              help='Answer a verification question as QUESTION_ID=ANSWER_ID (repeatable)')
@click.option('--timeout', '-t', type=int, help='Request timeout in seconds')
@click.pass_obj
def send(state: CLIState, url: Optional[str], method: Optional[str], headers: Tuple[str, ...],
         data: Optional[str], preset: Optional[str], save_after: bool, name: Optional[str],
         answers: Tuple[str, ...], timeout: Optional[int]):
    """Send a request and show the raw response"""
    config = state.config
    reporter = Reporter()

    needs_store = bool(preset or save_after)
    coordinator = state.coordinator() if needs_store else None
    composer = RequestComposer(
        coordinator=coordinator,
        draft=RequestDraft(method=config.default_method, headers=config.default_headers),
        timeout=timeout or config.timeout
    )

    if preset and not composer.load_request(preset):
        _fail(f"No saved request with id '{preset}'")

    _apply_request_options(composer.draft, url, method, headers, data)
    if not composer.draft.url:
        _fail("URL required")

    view = composer.send()
    if view is None:
        _fail(composer.error or "Request failed")

    reporter.print_response(composer.response, view, verbose=state.verbose)

    if answers:
        if not view.question_set:
            click.echo(click.style("⚠ --answer given but the response has no questions", fg="yellow"))
        for answer in answers:
            question_id, sep, answer_id = answer.partition('=')
            if not sep or not question_id.strip():
                _fail(f"Invalid --answer '{answer}', expected QUESTION_ID=ANSWER_ID")
            composer.select_answer(question_id.strip(), answer_id.strip())
        payload = composer.answer_payload()
        if payload:
            reporter.print_answer_payload(payload)

    if save_after:
        composer.draft.name = name or ""
        outcome = composer.save()
        reporter.print_outcome(outcome)
        if outcome.status == OutcomeStatus.FAILED:
            sys.exit(1)


@main.command()
@click.argument('url')
@_request_options
@click.option('--name', '-n', help='Preset name (default: "<METHOD> <path>")')
@click.pass_obj
def save(state: CLIState, url: str, method: Optional[str], headers: Tuple[str, ...],
         data: Optional[str], name: Optional[str]):
    """Save a request preset without sending it"""
    config = state.config
    composer = RequestComposer(
        coordinator=state.coordinator(),
        draft=RequestDraft(method=config.default_method, headers=config.default_headers,
                           name=name or "")
    )
    _apply_request_options(composer.draft, url, method, headers, data)

    outcome = composer.save()
    Reporter().print_outcome(outcome)
    if outcome.status == OutcomeStatus.FAILED:
        sys.exit(1)


@main.command(name='list')
@click.pass_obj
def list_requests(state: CLIState):
    """List saved requests"""
    coordinator = state.coordinator()
    Reporter().print_saved_requests(coordinator.saved_requests, coordinator.use_database)


@main.command()
@click.argument('request_id')
@click.pass_obj
def show(state: CLIState, request_id: str):
    """Show a saved request"""
    request = state.coordinator().find(request_id)
    if request is None:
        _fail(f"No saved request with id '{request_id}'")
    Reporter().print_saved_request(request)


@main.command()
@click.argument('request_id')
@click.pass_obj
def delete(state: CLIState, request_id: str):
    """Delete a saved request"""
    outcome = state.coordinator().delete_request(request_id)
    Reporter().print_outcome(outcome)
    if outcome.status == OutcomeStatus.FAILED:
        sys.exit(1)


@main.command()
@click.option('--toggle', is_flag=True, help='Switch between database and local storage')
@click.pass_obj
def mode(state: CLIState, toggle: bool):
    """Show or toggle the storage mode"""
    coordinator = state.coordinator()
    if toggle:
        coordinator.toggle_storage()
    Reporter().print_mode(coordinator.use_database, coordinator.remote.describe())


@main.command()
@click.pass_obj
def sync(state: CLIState):
    """Copy locally saved requests into the database"""
    report = state.coordinator().sync_to_database()
    Reporter().print_sync_report(report)
    if report.status == OutcomeStatus.FAILED:
        sys.exit(1)


@main.command()
@click.option('--yes', '-y', is_flag=True, help='Do not ask for confirmation')
@click.pass_obj
def clear(state: CLIState, yes: bool):
    """Clear all locally saved requests"""
    if not yes and not click.confirm("Clear all saved requests?"):
        return
    outcome = state.coordinator().clear_all()
    Reporter().print_outcome(outcome)
    if outcome.status == OutcomeStatus.FAILED:
        sys.exit(1)


@main.command()
@click.argument('seed_file', type=click.Path(exists=True, dir_okay=False, readable=True))
@click.pass_obj
def seed(state: CLIState, seed_file: str):
    """Seed saved requests into the database from a YAML file"""
    try:
        presets = load_seed_file(Path(seed_file))
    except ValueError as e:
        _fail(str(e))

    storage = Storage(state.config.database_location())
    try:
        report = seed_requests(storage, presets)
    except (StoreUnavailable, StoreError) as e:
        _fail(str(e))
    finally:
        storage.close()
    Reporter().print_seed_report(report)


@main.command()
@click.pass_obj
def init(state: CLIState):
    """Create a default config file"""
    config_file = ConfigManager.default_config_file()
    if config_file.exists():
        click.echo(click.style(f"Config file already exists: {config_file}", fg="yellow"))
        return
    created = ConfigManager(config_file).create_default_config()
    click.echo(click.style(f"✓ Config file created: {created}", fg="green"))


if __name__ == '__main__':
    main()
