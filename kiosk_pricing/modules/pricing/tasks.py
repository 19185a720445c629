"""
Background tasks for usage counters
"""
import logging

from kiosk_pricing.core.celery import celery_app
from kiosk_pricing.database.database import SessionLocal
from kiosk_pricing.modules.pricing.ledger import UsageLedger

logger = logging.getLogger(__name__)


@celery_app.task(bind=True)
def reconcile_usage_counters(self):
    """
    Periodic task: recompute current_uses of promotions and coupons
    from the promotion_usage history
    """
    db = SessionLocal()
    try:
        logger.info("Reconciling promotion and coupon usage counters")
        fixed = UsageLedger(db).reconcile_counters()
        db.commit()
        logger.info(
            f"Usage counters reconciled: {fixed['promotions']} promotions, {fixed['coupons']} coupons fixed"
        )
        return fixed

    except Exception as e:
        db.rollback()
        logger.error(f"Usage counter reconciliation failed: {str(e)}")
        raise self.retry(exc=e, countdown=300, max_retries=3)

    finally:
        db.close()
