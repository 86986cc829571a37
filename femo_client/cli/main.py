"""
Command-line interface for the Femo client.

Wraps the session owner and the authenticated HTTP client so accounts can be
signed in, inspected and exercised from a terminal.
"""

import json as jsonlib
from typing import Any, NoReturn, Optional

import typer
from rich.console import Console
from rich.table import Table
from typer import Argument, Option
from typing_extensions import Annotated

from femo_client.application.auth_manager import AuthManager
from femo_client.application.exceptions import FemoApiError, describe_error
from femo_client.application.profile_service import ProfileService
from femo_client.application.registration_service import RegistrationService
from femo_client.application.shell import AppShell
from femo_client.cli.status import DEFAULT_TIMEOUT_SECONDS, render_results, run_status_checks
from femo_client.domain.entities import AuthEvent, User
from femo_client.domain.identifier import detect_identifier_type, identifier_type_label
from femo_client.domain.password import password_strength_label, validate_password
from femo_client.infrastructure import log_utils
from femo_client.infrastructure.di_container import Container, get_container
from femo_client.infrastructure.http_client import AuthenticatedHttpClient

app = typer.Typer(
    name="femo",
    help="Femo Space API client: sign in, inspect the session and call the API.",
    no_args_is_help=True,
)

console = Console()


def _container() -> Container:
    return get_container()


def _notify_expired(event: AuthEvent) -> None:
    typer.echo("Session expired. Sign in again with `femo login`.", err=True)


def _auth() -> AuthManager:
    container = _container()
    shell: AppShell = container.resolve(AppShell)
    if shell.on_session_expired is None:
        shell.on_session_expired = _notify_expired
    return container.resolve(AuthManager)


def _fail(exc: BaseException) -> NoReturn:
    info = describe_error(exc)
    parts = [f"Error: {info.message}"]
    if info.code:
        parts.append(f"[{info.code}]")
    if info.status is not None:
        parts.append(f"(HTTP {info.status})")
    typer.echo(" ".join(parts), err=True)
    problems = getattr(exc, "problems", None)
    for problem in problems or []:
        typer.echo(f"  - {problem}", err=True)
    raise typer.Exit(code=1)


def _user_table(user: User) -> Table:
    table = Table(title="Signed-in account", show_header=False)
    table.add_column("Field")
    table.add_column("Value")
    table.add_row("Name", user.display_name)
    table.add_row("Femo ID", str(user.femo_id) if user.femo_id is not None else "-")
    table.add_row("Femo Mail", user.femo_mail or "-")
    table.add_row("Email", user.email or "-")
    table.add_row("MFA", "enabled" if user.mfa_enabled else "disabled")
    return table


@app.command()
def login(
    identifier: Annotated[str, Argument(help="Femo ID or Femo Mail.")],
    password: Annotated[
        str, Option("--password", "-p", prompt=True, hide_input=True, help="Account password.")
    ],
    mfa_code: Annotated[
        Optional[str], Option("--mfa-code", help="Verification code, if MFA is enabled.")
    ] = None,
) -> None:
    """Sign in and store the session locally."""
    auth = _auth()
    try:
        result = auth.login_with_identifier(identifier, password)
        if result.mfa_required:
            code = mfa_code or typer.prompt("Verification code")
            result = auth.verify_mfa(result.user_id or "", code)
    except FemoApiError as exc:
        log_utils.log_message(f"Login failed: {exc.message}", "WARN")
        _fail(exc)

    who = result.user.display_name if result.user else identifier
    typer.echo(f"Signed in as {who}.")


@app.command()
def logout() -> None:
    """Sign out (best effort on the server) and wipe the local session."""
    _auth().logout()
    typer.echo("Signed out.")


@app.command()
def whoami() -> None:
    """Fetch the current account from the API."""
    _auth()
    profile: ProfileService = _container().resolve(ProfileService)
    try:
        user = profile.refresh_user()
    except FemoApiError as exc:
        _fail(exc)
    console.print(_user_table(user))


@app.command()
def refresh() -> None:
    """Exchange the stored refresh token for a new access token."""
    auth = _auth()
    try:
        auth.refresh_access_token()
    except FemoApiError as exc:
        _fail(exc)
    typer.echo("Access token refreshed.")


@app.command("request")
def request_command(
    method: Annotated[str, Argument(help="HTTP method, e.g. GET or POST.")],
    path: Annotated[str, Argument(help="API path such as /posts/feed.")],
    body: Annotated[Optional[str], Option("--json", help="JSON request body.")] = None,
) -> None:
    """Call any API endpoint with the stored credentials."""
    payload: Any = None
    if body is not None:
        try:
            payload = jsonlib.loads(body)
        except ValueError as exc:
            typer.echo(f"Error: --json is not valid JSON ({exc}).", err=True)
            raise typer.Exit(code=2)

    _auth()
    client: AuthenticatedHttpClient = _container().resolve(AuthenticatedHttpClient)
    try:
        response = client.request(method, path, json=payload)
    except FemoApiError as exc:
        _fail(exc)

    decoded = client.decode(response)
    if decoded is None:
        typer.echo(f"HTTP {response.status_code} (no content)")
    elif isinstance(decoded, str):
        typer.echo(decoded)
    else:
        typer.echo(jsonlib.dumps(decoded, indent=2, ensure_ascii=False))


@app.command()
def classify(identifier: Annotated[str, Argument(help="Value to classify.")]) -> None:
    """Show whether a login identifier is a Femo ID, a Femo Mail, or invalid."""
    identifier_type = detect_identifier_type(identifier)
    typer.echo(f"{identifier_type.value} ({identifier_type_label(identifier_type)})")


@app.command("password-strength")
def password_strength(password: Annotated[str, Argument(help="Password to score.")]) -> None:
    """Score a password against the registration rules."""
    result = validate_password(password)
    typer.echo(f"{password_strength_label(result.score)} ({result.score}/4)")
    for item in result.feedback:
        typer.echo(f"  - {item}")
    raise typer.Exit(code=0 if result.is_valid else 1)


@app.command("mail-suggestions")
def mail_suggestions(
    username: Annotated[str, Argument(help="Base name, usually the part of the email before '@'.")],
) -> None:
    """List available Femo Mail names offered during registration."""
    registration: RegistrationService = _container().resolve(RegistrationService)
    try:
        suggestions = registration.femo_mail_suggestions(username)
    except FemoApiError as exc:
        _fail(exc)
    if not suggestions:
        typer.echo("No suggestions.")
        raise typer.Exit(code=1)
    for suggestion in suggestions:
        typer.echo(suggestion)


@app.command()
def status(

    timeout: Annotated[float, Option("--timeout", help="Override the API reachability timeout in seconds.")] = DEFAULT_TIMEOUT_SECONDS,
) -> None:
    """Quick health check for the API and the stored session."""
    results = run_status_checks(_auth(), timeout=timeout)
    typer.echo(render_results(results))
    exit_code = 0 if all(result.ok for result in results) else 1
    raise typer.Exit(code=exit_code)


if __name__ == "__main__":  # pragma: no cover
    app()
