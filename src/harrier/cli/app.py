from __future__ import annotations

import json
import signal
import threading
from pathlib import Path

import typer

from harrier.config import get_settings
from harrier.core.pipeline import ApplicationPipeline
from harrier.core.retry import RetryProcessor, run_worker
from harrier.core.service import ApplicationService, serialize_attempt
from harrier.db.init import init_database
from harrier.db.repositories import Repository
from harrier.db.session import SessionLocal
from harrier.logging_config import configure_logging
from harrier.proxy.manager import get_proxy_manager
from harrier.types import ApplicantProfile, ApplicationTarget

app = typer.Typer(help="Harrier CLI")
attempts_app = typer.Typer(help="Inspect and cancel application attempts")
mappings_app = typer.Typer(help="Cached form mappings")

app.add_typer(attempts_app, name="attempts")
app.add_typer(mappings_app, name="mappings")

_INITIALIZED = False


def ensure_initialized() -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return
    init_database()
    _INITIALIZED = True


def load_profile(path: Path) -> ApplicantProfile:
    return ApplicantProfile.model_validate_json(path.read_text(encoding="utf-8"))


@app.command("init")
def init_cmd() -> None:
    """Initialize database and artifact directories."""
    configure_logging()
    result = init_database()
    typer.echo(json.dumps({"ok": True, **result}, indent=2))


@app.command("apply")
def apply_cmd(
    url: str = typer.Option(..., "--url"),
    job_id: int = typer.Option(..., "--job-id"),
    user_id: int = typer.Option(..., "--user-id"),
    profile_file: Path = typer.Option(..., "--profile-file", exists=True, readable=True),
) -> None:
    """Apply to a single job now."""
    configure_logging()
    ensure_initialized()
    profile = load_profile(profile_file)
    with SessionLocal() as db:
        service = ApplicationService(db)
        result = service.apply_now(user_id, ApplicationTarget(url=url, job_id=job_id), profile)
        typer.echo(json.dumps(result.model_dump(), indent=2))


@app.command("batch")
def batch_cmd(
    file: Path = typer.Option(..., "--file", exists=True, readable=True),
    user_id: int = typer.Option(..., "--user-id"),
    profile_file: Path = typer.Option(..., "--profile-file", exists=True, readable=True),
) -> None:
    """Apply to every ``{"url": ..., "job_id": ...}`` entry in a JSON list."""
    configure_logging()
    ensure_initialized()
    profile = load_profile(profile_file)
    payload = json.loads(file.read_text(encoding="utf-8"))
    if not isinstance(payload, list):
        raise typer.BadParameter("batch file must contain a JSON list of targets")
    targets = [ApplicationTarget.model_validate(item) for item in payload]

    with SessionLocal() as db:
        summary = ApplicationService(db).apply_batch(user_id, targets, profile)
        typer.echo(json.dumps({"title": summary.title, **summary.model_dump()}, indent=2))


@app.command("pre-analyze")
def pre_analyze_cmd(url: str = typer.Option(..., "--url")) -> None:
    """Warm the form mapping cache for a URL without filling or submitting."""
    configure_logging()
    ensure_initialized()
    resolution = ApplicationPipeline().pre_analyze(url)
    typer.echo(
        json.dumps(
            {
                "form_hash": resolution.form_hash,
                "used_cache": resolution.used_cache,
                "vision_invoked": resolution.vision_invoked,
                "fields": resolution.names(),
            },
            indent=2,
        )
    )


@app.command("sweep")
def sweep_cmd() -> None:
    """Run one pass over attempts whose retry time has come."""
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        processor = RetryProcessor(db, ApplicationService(db))
        result = processor.sweep()
        typer.echo(json.dumps(result.model_dump(), indent=2))


@app.command("worker")
def worker_cmd(interval: int | None = typer.Option(None, "--interval", help="Seconds between sweeps")) -> None:
    """Run retry sweeps periodically until interrupted."""
    configure_logging()
    ensure_initialized()
    settings = get_settings()
    stop_event = threading.Event()

    def handle_signal(signum: int, frame: object) -> None:
        stop_event.set()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    def sweep():
        with SessionLocal() as db:
            return RetryProcessor(db, ApplicationService(db)).sweep()

    run_worker(sweep, interval or settings.retry_sweep_interval_sec, stop_event)


@attempts_app.command("list")
def attempts_list(
    status: str | None = typer.Option(None, "--status"),
    limit: int = typer.Option(20, "--limit"),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        repo = Repository(db)
        attempts = repo.list_attempts(status=status, limit=limit)
        typer.echo(
            json.dumps(
                {
                    "counts": repo.count_attempts_by_status(),
                    "attempts": [serialize_attempt(attempt) for attempt in attempts],
                },
                indent=2,
            )
        )


@attempts_app.command("status")
def attempts_status(attempt_id: int = typer.Option(..., "--attempt-id")) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        attempt = Repository(db).get_attempt(attempt_id)
        if attempt is None:
            raise typer.BadParameter(f"attempt {attempt_id} not found")
        typer.echo(json.dumps(serialize_attempt(attempt), indent=2))


@attempts_app.command("cancel")
def attempts_cancel(
    attempt_id: int = typer.Option(..., "--attempt-id"),
    reason: str = typer.Option("cancelled by user", "--reason"),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        cancelled = ApplicationService(db).cancel(attempt_id, reason)
        typer.echo(json.dumps({"attempt_id": attempt_id, "cancelled": cancelled}, indent=2))


@app.command("proxies")
def proxies_cmd(
    refresh: bool = typer.Option(False, "--refresh", help="Request a new IP for the current proxy"),
) -> None:
    """Show proxy pool statistics."""
    configure_logging()
    manager = get_proxy_manager()
    manager.initialize()
    payload: dict = {}
    if refresh:
        payload["refreshed"] = manager.refresh_current()
    payload.update(manager.stats().model_dump())
    typer.echo(json.dumps(payload, indent=2))


@mappings_app.command("list")
def mappings_list(
    platform: str | None = typer.Option(None, "--platform"),
    limit: int = typer.Option(20, "--limit"),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        mappings = Repository(db).list_mappings(platform=platform, limit=limit)
        typer.echo(
            json.dumps(
                [
                    {
                        "id": mapping.id,
                        "platform": mapping.ats_platform,
                        "form_hash": mapping.form_hash,
                        "company_domain": mapping.company_domain,
                        "fields": len(mapping.fields_json or []),
                        "usage_count": mapping.usage_count,
                        "success_rate": mapping.success_rate,
                        "last_used_at": mapping.last_used_at.isoformat() if mapping.last_used_at else None,
                    }
                    for mapping in mappings
                ],
                indent=2,
            )
        )
