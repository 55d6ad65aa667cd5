"""Moves product images stored inline as base64 data URIs to object storage.

Each call handles at most ``batch_size`` products that still hold a data URI.
Rows that fail stay inline and are reported; callers page past them with
``after_id`` so the rows behind them still get migrated.
"""
import logging
from dataclasses import dataclass, field
from typing import Collection, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from core.errors import ValidationError
from models.product import Product
from services.storage import ImageStorage, parse_data_uri

logger = logging.getLogger(__name__)


@dataclass
class MigrationReport:
    migrated: int = 0
    processed: int = 0
    remaining: int = 0
    last_id: Optional[int] = None
    errors: List[Dict] = field(default_factory=list)


def _inline_images():
    return Product.image.like("data:%")


def count_pending(db: Session) -> int:
    return db.query(Product).filter(_inline_images()).count()


def migrate_batch(
    db: Session,
    storage: ImageStorage,
    batch_size: int,
    after_id: int = 0,
    skip_ids: Collection[int] = (),
) -> MigrationReport:
    """
    Migrate up to ``batch_size`` inline images with ids above ``after_id``.

    Rows that fail stay inline; pass ``last_id`` back as ``after_id`` (or
    their ids as ``skip_ids``) to move past them on the next call.
    """
    if not storage.configured:
        raise ValidationError("Object storage is not configured")

    report = MigrationReport()
    query = db.query(Product.id).filter(_inline_images(), Product.id > after_id)
    if skip_ids:
        query = query.filter(Product.id.notin_(list(skip_ids)))
    ids = [row[0] for row in query.order_by(Product.id).limit(batch_size).all()]
    report.processed = len(ids)
    report.last_id = ids[-1] if ids else None

    for product_id in ids:
        product = db.get(Product, product_id)
        if not product or not product.image:
            continue
        try:
            content_type, file_data = parse_data_uri(product.image)
        except ValueError as e:
            report.errors.append({"id": product_id, "error": str(e)})
            continue

        ok, url, error = storage.store(file_data, content_type, f"products/{product_id}")
        if not ok:
            report.errors.append({"id": product_id, "error": error or "Upload failed"})
            continue

        product.image = url
        db.commit()
        report.migrated += 1

    report.remaining = count_pending(db)
    logger.info(
        "Image migration batch: migrated=%s processed=%s remaining=%s errors=%s",
        report.migrated, report.processed, report.remaining, len(report.errors),
    )
    return report


def drain_pending(db: Session, storage: ImageStorage, batch_size: int) -> MigrationReport:
    """Run batches until every inline image has been migrated or has failed once."""
    total = MigrationReport()
    failed: set = set()
    while True:
        report = migrate_batch(db, storage, batch_size, skip_ids=failed)
        failed.update(error["id"] for error in report.errors)
        total.migrated += report.migrated
        total.processed += report.processed
        total.errors.extend(report.errors)
        total.remaining = report.remaining
        if report.remaining == 0 or report.processed == 0:
            return total


def migration_status(db: Session) -> Dict:
    pending_ids = [row[0] for row in db.query(Product.id).filter(_inline_images()).order_by(Product.id).all()]
    return {
        "total": db.query(Product).count(),
        "with_base64": len(pending_ids),
        "with_external_url": db.query(Product).filter(Product.image.like("http%")).count(),
        "without_image": db.query(Product).filter(or_(Product.image.is_(None), Product.image == "")).count(),
        "product_ids_with_base64": pending_ids,
    }
