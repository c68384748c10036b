from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.orm import Session

from dialcrm.core.database import get_db
from dialcrm.schemas import WebhookResponse
from dialcrm.services.enrichment import dispatch_enrichment
from dialcrm.services.webhooks import ingest_webhook, parse_webhook_body

router = APIRouter(prefix="/dialpad", tags=["dialpad-webhook"])


@router.post("/webhook", response_model=WebhookResponse)
async def receive_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    payload = parse_webhook_body(await request.body())
    event, task_ids = ingest_webhook(db, payload)
    if task_ids:
        background_tasks.add_task(dispatch_enrichment, task_ids)
    return WebhookResponse(webhook_id=event.id)
