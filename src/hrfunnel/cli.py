"""Typer CLI entrypoint for the screening funnel."""

from __future__ import annotations

import json
import mimetypes
from pathlib import Path
from typing import Any, Callable, Optional

import pendulum
import typer
import yaml
from pydantic import ValidationError

from . import __version__
from .container import FunnelContainer, create_container
from .core import (
    ApplicationForm,
    KnockedOut,
    NotFound,
    ResumeFile,
    ScreeningSession,
    Submitted,
    load_job_draft,
    sweep_orphaned_resumes,
)
from .errors import (
    JobDraftError,
    NotAuthenticatedError,
    PersistenceError,
    ScreeningValidationError,
)
from .logging import configure_logging
from .schemas.config import load_config

app = typer.Typer(help="Quiz-gated job application funnel.")

RECRUITER_ENVVAR = "HRFUNNEL_RECRUITER_ID"
RECRUITER_HELP = "Signed-in recruiter id (supplied by the identity provider)."


@app.callback()
def main_options(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    log_level: str = typer.Option("WARNING", help="Log level for structured logging."),
    database: Optional[Path] = typer.Option(None, dir_okay=False, help="SQLite database path."),
    resume_dir: Optional[Path] = typer.Option(None, file_okay=False, help="Resume storage directory."),
) -> None:
    """Load configuration shared by every command."""
    settings: dict[str, Any] = {}
    if config:
        with config.open("r", encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle) or {}
            if not isinstance(loaded, dict):
                raise typer.BadParameter("Config file must be a YAML object", param_hint="config")
            settings = loaded
    try:
        app_config = load_config(settings)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        raise typer.BadParameter(f"Invalid config: {problems}", param_hint="config") from exc
    if database:
        app_config.database.path = str(database)
    if resume_dir:
        app_config.storage.resume_dir = str(resume_dir)

    configure_logging(log_level)
    ctx.obj = app_config.to_settings()


def _container(ctx: typer.Context, recruiter_id: str | None = None) -> FunnelContainer:
    return create_container(settings=ctx.obj or {}, recruiter_id=recruiter_id)


def _fail(message: str) -> typer.Exit:
    typer.echo(message, err=True)
    return typer.Exit(code=1)


@app.command("create-job")
def create_job(
    ctx: typer.Context,
    file: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Job definition (YAML or JSON)."),
    recruiter_id: Optional[str] = typer.Option(None, envvar=RECRUITER_ENVVAR, help=RECRUITER_HELP),
) -> None:
    """Publish a job and print its shareable apply link."""
    container = _container(ctx, recruiter_id)
    publisher = container.job_publisher()
    try:
        draft = load_job_draft(file)
        job = publisher.publish(container.identity_provider().current(), draft)
    except JobDraftError as exc:
        raise _fail(f"{exc.title}: {exc.detail}")
    except NotAuthenticatedError as exc:
        raise _fail(str(exc))
    except PersistenceError as exc:
        raise _fail(f"Error creating job: {exc}")

    typer.echo(f"Job created: {job.role}")
    typer.echo(f"Apply link: {publisher.apply_link(job)}")


@app.command()
def stats(
    ctx: typer.Context,
    recruiter_id: Optional[str] = typer.Option(None, envvar=RECRUITER_ENVVAR, help=RECRUITER_HELP),
    as_json: bool = typer.Option(False, "--json", help="Print the dashboard as JSON."),
) -> None:
    """Show candidate counts and jobs for the signed-in recruiter."""
    container = _container(ctx, recruiter_id)
    try:
        overview = container.dashboard().overview(container.identity_provider().current())
    except NotAuthenticatedError as exc:
        raise _fail(str(exc))
    except PersistenceError as exc:
        raise _fail(f"Could not load dashboard: {exc}")

    if as_json:
        payload = {
            "metadata": {
                "timestamp": pendulum.now().to_iso8601_string(),
                "app_version": __version__,
            },
            "dashboard": overview.model_dump(mode="json"),
        }
        typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))
        return

    counts = overview.stats
    typer.echo(f"Total Candidates: {counts.total_candidates}")
    typer.echo(f"Shortlisted: {counts.shortlisted}")
    typer.echo(f"Knocked Out: {counts.knocked_out}")
    typer.echo("")
    if not overview.jobs:
        typer.echo("No jobs yet. Create your first one!")
        return
    typer.echo("Your Jobs")
    for job in overview.jobs:
        created = job.created_at.date().isoformat() if job.created_at else "-"
        typer.echo(f"  {job.role} (created {created})  {job.apply_link}")


@app.command("jobs")
def list_jobs(
    ctx: typer.Context,
    recruiter_id: Optional[str] = typer.Option(None, envvar=RECRUITER_ENVVAR, help=RECRUITER_HELP),
) -> None:
    """List the signed-in recruiter's jobs, newest first, with apply links."""
    container = _container(ctx, recruiter_id)
    publisher = container.job_publisher()
    try:
        owner = container.identity_provider().current().require()
        owned = container.job_directory().list_for_recruiter(owner)
    except NotAuthenticatedError as exc:
        raise _fail(str(exc))
    except PersistenceError as exc:
        raise _fail(f"Could not load jobs: {exc}")

    if not owned:
        typer.echo("No jobs yet. Create your first one!")
        return
    for job in owned:
        created = job.created_at.date().isoformat() if job.created_at else "-"
        typer.echo(f"{job.role}\t{created}\t{publisher.apply_link(job)}")


@app.command()
def apply(
    ctx: typer.Context,
    slug: str = typer.Argument(..., help="Job slug from the apply link."),
) -> None:
    """Take a job's screening quiz and, on success, submit a resume."""
    session = _container(ctx).sessions().open(slug)
    if isinstance(session.stage, NotFound):
        raise _fail("Job not found. This link may be invalid or expired.")

    job = session.job
    typer.echo(job.role)
    typer.echo(job.description)
    typer.echo("")
    typer.echo(
        f"You'll answer {len(job.quiz)} screening questions. All must be correct to proceed."
    )
    if not typer.confirm("Start screening?", default=True):
        raise typer.Exit()

    session.start()
    _run_quiz(session)
    _retry(session.submit_answers)

    if isinstance(session.stage, KnockedOut):
        typer.echo("You are Knocked Out")
        typer.echo("Unfortunately, one or more of your answers were incorrect.")
        return

    typer.echo("All answers correct! Complete your application below.")
    _run_application(session)
    if isinstance(session.stage, Submitted):
        typer.echo("Application Submitted!")
        typer.echo("Thank you for applying. The recruiter will review your application.")


@app.command("sweep-resumes")
def sweep_resumes(
    ctx: typer.Context,
    delete: bool = typer.Option(False, "--delete", help="Remove orphaned resumes."),
    grace_minutes: int = typer.Option(
        60, min=0, help="Skip resumes uploaded more recently than this."
    ),
) -> None:
    """List (or delete) stored resumes that no candidate record references."""
    container = _container(ctx)
    try:
        orphans = sweep_orphaned_resumes(
            container.store(),
            container.resume_storage(),
            delete=delete,
            grace=pendulum.duration(minutes=grace_minutes),
        )
    except PersistenceError as exc:
        raise _fail(f"Sweep failed: {exc}")
    for path in orphans:
        typer.echo(path)
    verb = "Deleted" if delete else "Found"
    typer.echo(f"{verb} {len(orphans)} orphaned resume(s).")


def _run_quiz(session: ScreeningSession) -> None:
    for index, question in enumerate(session.job.quiz):
        typer.echo("")
        typer.echo(f"{index + 1}. {question.text}")
        for number, option in enumerate(question.options, start=1):
            typer.echo(f"   {number}) {option}")
        while True:
            choice = typer.prompt("Your answer", type=int)
            try:
                session.select(index, choice - 1)
            except ScreeningValidationError as exc:
                typer.echo(exc.detail, err=True)
                continue
            break


def _run_application(session: ScreeningSession) -> None:
    while True:
        name = typer.prompt("Full name")
        email = typer.prompt("Email")
        resume_path = Path(typer.prompt("Resume (PDF) path")).expanduser()
        if not resume_path.is_file():
            typer.echo(f"File not found: {resume_path}", err=True)
            continue
        content_type, _ = mimetypes.guess_type(resume_path.name)
        form = ApplicationForm(
            name=name,
            email=email,
            resume=ResumeFile(
                filename=resume_path.name,
                content_type=content_type or "application/octet-stream",
                content=resume_path.read_bytes(),
            ),
        )
        try:
            _retry(lambda: session.submit_application(form))
        except ScreeningValidationError as exc:
            typer.echo(f"{exc.title}: {exc.detail}", err=True)
            continue
        return


def _retry(action: Callable[[], object]) -> None:
    while True:
        try:
            action()
        except PersistenceError:
            typer.echo("Something went wrong while saving. Please try again.", err=True)
            if typer.confirm("Retry?", default=True):
                continue
            raise typer.Exit(code=1)
        return


def main() -> None:
    app()


if __name__ == "__main__":
    main()
