"""Customer store."""
import uuid
from typing import Iterable, List, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from agende.api.database_models import Base, CustomerRow
from agende.database import NotFoundError, store_operation
from agende.logging_config import get_logger
from agende.models import Customer, Tag
from agende.tags import dedupe_tags, make_tag, unique_tags

logger = get_logger(__name__)


def _to_model(row: CustomerRow) -> Customer:
    return Customer(
        id=row.id,
        name=row.name,
        phone=row.phone,
        notes=row.notes,
        tags=[Tag(**tag) for tag in (row.tags or [])],
    )


def normalize_tags(tag_names: Iterable[str]) -> List[Tag]:
    """Turn free-typed tag names into deduplicated Tags, skipping blanks."""
    return dedupe_tags(make_tag(name) for name in tag_names if name and name.strip())


class CustomerStore:
    """CRUD for customers. Tags live inside each customer record."""

    def __init__(self, engine: Engine):
        self.engine = engine
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine)

    def list_customers(self) -> List[Customer]:
        with store_operation("fetching customers"), self.SessionLocal() as db:
            rows = db.query(CustomerRow).order_by(CustomerRow.name).all()
            return [_to_model(row) for row in rows]

    def get_customer(self, customer_id: str) -> Customer:
        with store_operation("fetching customer"), self.SessionLocal() as db:
            row = db.get(CustomerRow, customer_id)
            if row is None:
                raise NotFoundError("Customer", customer_id)
            return _to_model(row)

    def add_customer(
        self,
        name: str,
        phone: Optional[str] = None,
        notes: Optional[str] = None,
        tag_names: Iterable[str] = ()
    ) -> Customer:
        customer = Customer(
            id=uuid.uuid4().hex,
            name=name,
            phone=phone,
            notes=notes,
            tags=normalize_tags(tag_names),
        )
        with store_operation("adding customer"), self.SessionLocal() as db:
            db.add(CustomerRow(**customer.model_dump()))
            db.commit()

        logger.info("customer_added", customer_id=customer.id, tags=len(customer.tags))
        return customer

    def update_customer(
        self,
        customer_id: str,
        tag_names: Optional[Iterable[str]] = None,
        **changes
    ) -> Customer:
        """
        Update a customer. Passing tag_names replaces the whole tag list.

        Raises:
            NotFoundError: If the customer does not exist
        """
        with store_operation("updating customer"), self.SessionLocal() as db:
            row = db.get(CustomerRow, customer_id)
            if row is None:
                raise NotFoundError("Customer", customer_id)

            data = _to_model(row).model_dump()
            data.update({k: v for k, v in changes.items() if k not in ("id", "tags")})
            if tag_names is not None:
                data["tags"] = [tag.model_dump() for tag in normalize_tags(tag_names)]
            customer = Customer(**data)

            for field, value in customer.model_dump().items():
                setattr(row, field, value)
            db.commit()

        return customer

    def delete_customer(self, customer_id: str) -> bool:
        with store_operation("deleting customer"), self.SessionLocal() as db:
            deleted = db.query(CustomerRow).filter(CustomerRow.id == customer_id).delete()
            db.commit()
        return deleted > 0

    def all_unique_tags(self) -> List[Tag]:
        """Every tag in use, for the tag picker."""
        return unique_tags(self.list_customers())
