"""
Item & Batch Catalog Service
Item master data and batch status policy
"""
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from gudang.core.config import settings
from gudang.core.database import unit_of_work
from gudang.core.exceptions import NotFoundError, ValidationError
from gudang.models.item import Item, ItemBatch, BatchStatus
from gudang.schemas.activity import BatchStatusChanged
from gudang.services.activity import log_activity


def _decimal_or_none(value) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    return Decimal(str(value))


class CatalogService:
    """Item master and batch records"""

    def __init__(self, db: Session, acting_user: Optional[str] = None):
        self.db = db
        self.acting_user = acting_user or settings.DEFAULT_ACTOR

    def create_item(self, item_data: Dict) -> Item:
        sku = (item_data.get("sku") or "").strip()
        name = (item_data.get("name") or "").strip()
        if not sku or not name:
            raise ValidationError("Item SKU and name are required")

        if self.db.query(Item).filter(Item.sku == sku).first():
            raise ValidationError(f"Item SKU {sku} already exists")

        for field in ("actual_weight_kg", "volume_m3"):
            value = _decimal_or_none(item_data.get(field))
            if value is not None and value < 0:
                raise ValidationError(f"{field} cannot be negative")

        with unit_of_work(self.db):
            item = Item(
                sku=sku,
                name=name,
                unit=item_data.get("unit") or "pcs",
                length_cm=_decimal_or_none(item_data.get("length_cm")),
                width_cm=_decimal_or_none(item_data.get("width_cm")),
                height_cm=_decimal_or_none(item_data.get("height_cm")),
                actual_weight_kg=_decimal_or_none(item_data.get("actual_weight_kg")),
                volume_m3=_decimal_or_none(item_data.get("volume_m3")),
            )
            self.db.add(item)
        return item

    def get_item(self, item_id: int) -> Item:
        item = self.db.get(Item, item_id)
        if not item:
            raise NotFoundError(f"Item {item_id} not found")
        return item

    def get_item_by_sku(self, sku: str) -> Item:
        item = self.db.query(Item).filter(Item.sku == sku).first()
        if not item:
            raise NotFoundError(f"Item {sku} not found")
        return item

    def list_items(self, skip: int = 0, limit: int = 100) -> List[Item]:
        return self.db.query(Item).order_by(Item.name).offset(skip).limit(limit).all()

    def get_batch(self, batch_id: int) -> ItemBatch:
        batch = self.db.get(ItemBatch, batch_id)
        if not batch:
            raise NotFoundError(f"Batch {batch_id} not found")
        return batch

    def list_batches(
        self,
        item_id: Optional[int] = None,
        lot_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> List[ItemBatch]:
        query = self.db.query(ItemBatch)
        if item_id is not None:
            query = query.filter(ItemBatch.item_id == item_id)
        if lot_id is not None:
            query = query.filter(ItemBatch.lot_id == lot_id)
        if status:
            query = query.filter(ItemBatch.status == status)
        return query.order_by(ItemBatch.expiry_date, ItemBatch.id).all()

    def set_batch_status(self, batch_id: int, status: str) -> ItemBatch:
        """Manual quarantine / release"""
        batch = self.get_batch(batch_id)
        if status not in BatchStatus.ALL:
            raise ValidationError(f"Invalid batch status: {status}")
        if status == BatchStatus.ACTIVE and batch.quantity == 0:
            raise ValidationError(f"Batch {batch.batch_code} is empty and cannot be activated")

        old_status = batch.status
        with unit_of_work(self.db):
            batch.status = status
            log_activity(
                self.db,
                entity_table="item_batches",
                record_id=batch.id,
                payload=BatchStatusChanged(
                    old_status=old_status,
                    new_status=status,
                    message=f"Batch {batch.batch_code}: {old_status} -> {status}",
                ),
                changed_by=self.acting_user,
            )
        return batch

    def expire_batches(self, as_of: date) -> List[int]:
        """Mark active batches past their expiry date as expired"""
        batches = self.db.query(ItemBatch).filter(
            ItemBatch.status == BatchStatus.ACTIVE,
            ItemBatch.expiry_date.isnot(None),
            ItemBatch.expiry_date < as_of,
        ).all()

        with unit_of_work(self.db):
            for batch in batches:
                batch.status = BatchStatus.EXPIRED
                log_activity(
                    self.db,
                    entity_table="item_batches",
                    record_id=batch.id,
                    payload=BatchStatusChanged(
                        old_status=BatchStatus.ACTIVE,
                        new_status=BatchStatus.EXPIRED,
                        message=f"Batch {batch.batch_code} expired on {batch.expiry_date.isoformat()}",
                    ),
                    changed_by=self.acting_user,
                )
        return [batch.id for batch in batches]
