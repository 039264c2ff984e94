# storefront/tasks/sweep.py
from datetime import datetime

from storefront.celery_worker import celery_app
from storefront.data.backend import make_gateway
from storefront.data.database import SessionLocal
from storefront.data.gateway import Gateway
from storefront.domain.errors import RemoteOperationError
from storefront.domain.models import utcnow
from storefront.repos.shared_order_repo import SharedOrderRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def sweep_orphaned_shared_orders(gateway: Gateway, now: datetime | None = None) -> int:
    """
    Delete shared orders that expired without a single item, the remains of
    a fan-out that failed and whose cleanup failed too. Returns how many
    orders were removed.
    """
    repo = SharedOrderRepo(gateway)
    now = now or utcnow()

    candidates = repo.expired_before(now)
    orphans = [row for row in candidates if not row.get("shared_order_items")]
    logger.info(f"Found {len(orphans)} orphaned shared orders out of {len(candidates)} expired")

    removed = 0
    for row in orphans:
        try:
            repo.delete_order(row["id"])
            removed += 1
        except RemoteOperationError as e:
            logger.warning(f"Failed to delete orphaned shared order {row['id']}: {e}")
    return removed


@celery_app.task(name="storefront.tasks.sweep.sweep_orphaned_shared_orders_task")
def sweep_orphaned_shared_orders_task():
    logger.info("Shared order sweep started")

    db = SessionLocal()
    try:
        removed = sweep_orphaned_shared_orders(make_gateway(db))
        logger.info(f"Shared order sweep removed {removed} orders")
        return removed
    finally:
        db.close()
