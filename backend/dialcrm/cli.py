from typing import Optional

import typer
from sqlalchemy.orm import Session

from dialcrm.core.database import SessionLocal
from dialcrm.core.logging import configure_logging
from dialcrm.core.security import hash_password
from dialcrm.models import User
from dialcrm.services.dialpad_client import DialpadClient
from dialcrm.services.enrichment import pending_task_ids, release_stale_tasks, run_enrichment_task
from dialcrm.services.sync import sync_calls

app = typer.Typer()


def _create_user(username: str, password: str, role: str, email: Optional[str] = None) -> None:
    db: Session = SessionLocal()
    try:
        existing = db.query(User).filter(User.username == username).first()
        if existing:
            typer.echo(f"User {username} already exists")
            return
        db.add(User(username=username, hashed_password=hash_password(password), role=role, email=email))
        db.commit()
        typer.echo(f"{role.title()} {username} created")
    finally:
        db.close()


@app.command()
def create_admin(username: str = "admin", password: str = "admin", email: Optional[str] = None):
    _create_user(username, password, "ADMIN", email)


@app.command()
def create_user(username: str, password: str, email: Optional[str] = None):
    _create_user(username, password, "REP", email)


@app.command("sync-calls")
def sync_calls_command(
    start_time: Optional[str] = None,
    end_time: Optional[str] = None,
    limit: int = typer.Option(100, min=1, max=1000),
):
    configure_logging()
    db: Session = SessionLocal()
    try:
        result = sync_calls(db, DialpadClient(), start_time=start_time, end_time=end_time, limit=limit)
    finally:
        db.close()
    typer.echo(f"Synced {result['synced']} of {result['total']} calls")


@app.command()
def drain_enrichment(limit: int = 100):
    """Run pending enrichment tasks in-process instead of through Celery."""
    configure_logging()
    db: Session = SessionLocal()
    try:
        release_stale_tasks(db)
        task_ids = pending_task_ids(db, limit=limit)
        for task_id in task_ids:
            task = run_enrichment_task(db, task_id)
            typer.echo(f"Task {task_id}: {task.status}")
    finally:
        db.close()
    typer.echo(f"Processed {len(task_ids)} enrichment tasks")


if __name__ == "__main__":
    app()
