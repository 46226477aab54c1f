"""Procedure catalog store."""
import uuid
from typing import Iterable, List, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from agende.api.database_models import Base, ProcedureRow
from agende.database import NotFoundError, store_operation
from agende.logging_config import get_logger
from agende.models import Procedure

logger = get_logger(__name__)

# Starter catalog for a fresh install
DEFAULT_PROCEDURES = [
    {
        "name": "Design de Sobrancelhas sem Henna",
        "duration": 30,
        "price": 25.00,
        "description": "Modelagem das sobrancelhas de acordo com o formato do rosto, sem aplicação de henna.",
    },
    {
        "name": "Maquiagem Social",
        "duration": 60,
        "price": 90.00,
        "description": "Maquiagem profissional para eventos, festas e ocasiões especiais.",
    },
    {
        "name": "Epilação de Buço",
        "duration": 10,
        "price": 10.00,
        "description": "Remoção de pelos da região do buço (cera ou linha).",
    },
    {
        "name": "Micropigmentação",
        "duration": 90,
        "price": 200.00,
        "description": "Implantação de pigmento para corrigir falhas ou realçar sobrancelhas, lábios ou olhos.",
    },
]


def _to_model(row: ProcedureRow) -> Procedure:
    return Procedure(
        id=row.id,
        name=row.name,
        duration=row.duration,
        price=row.price,
        description=row.description or "",
        is_promo=bool(row.is_promo),
        promo_price=row.promo_price if row.is_promo else None,
    )


class ProcedureStore:
    """
    CRUD for the procedure catalog.

    Listing is always sorted by name. Deleting a procedure never touches
    existing appointments, which keep their own snapshots.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine)

    def list_procedures(self) -> List[Procedure]:
        with store_operation("fetching procedures"), self.SessionLocal() as db:
            rows = db.query(ProcedureRow).order_by(ProcedureRow.name).all()
            return [_to_model(row) for row in rows]

    def get_procedure(self, procedure_id: str) -> Procedure:
        """
        Get one procedure.

        Raises:
            NotFoundError: If the procedure does not exist
        """
        with store_operation("fetching procedure"), self.SessionLocal() as db:
            row = db.get(ProcedureRow, procedure_id)
            if row is None:
                raise NotFoundError("Procedure", procedure_id)
            return _to_model(row)

    def get_many(self, procedure_ids: Iterable[str]) -> List[Procedure]:
        """
        Get several procedures in the requested order.

        Raises:
            NotFoundError: If any id is unknown
        """
        procedure_ids = list(procedure_ids)
        with store_operation("fetching procedures"), self.SessionLocal() as db:
            rows = db.query(ProcedureRow).filter(ProcedureRow.id.in_(procedure_ids)).all()
            by_id = {row.id: _to_model(row) for row in rows}

        missing = [pid for pid in procedure_ids if pid not in by_id]
        if missing:
            raise NotFoundError("Procedure", missing[0])
        return [by_id[pid] for pid in procedure_ids]

    def add_procedure(
        self,
        name: str,
        duration: int,
        price: float,
        description: str = "",
        is_promo: bool = False,
        promo_price: Optional[float] = None
    ) -> Procedure:
        procedure = Procedure(
            id=uuid.uuid4().hex,
            name=name,
            duration=duration,
            price=price,
            description=description,
            is_promo=is_promo,
            promo_price=promo_price,
        )
        with store_operation("adding procedure"), self.SessionLocal() as db:
            db.add(ProcedureRow(**procedure.model_dump()))
            db.commit()

        logger.info("procedure_added", procedure_id=procedure.id, name=procedure.name)
        return procedure

    def update_procedure(self, procedure_id: str, **changes) -> Procedure:
        """
        Update fields of a procedure.

        Raises:
            NotFoundError: If the procedure does not exist
        """
        with store_operation("updating procedure"), self.SessionLocal() as db:
            row = db.get(ProcedureRow, procedure_id)
            if row is None:
                raise NotFoundError("Procedure", procedure_id)

            merged = _to_model(row).model_dump()
            merged.update({k: v for k, v in changes.items() if k != "id"})
            procedure = Procedure(**merged)

            for field, value in procedure.model_dump().items():
                setattr(row, field, value)
            db.commit()

        return procedure

    def delete_procedure(self, procedure_id: str) -> bool:
        """Delete a procedure. Returns False if it did not exist."""
        with store_operation("deleting procedure"), self.SessionLocal() as db:
            deleted = db.query(ProcedureRow).filter(ProcedureRow.id == procedure_id).delete()
            db.commit()
        return deleted > 0

    def seed_defaults(self) -> int:
        """Insert the starter catalog when the table is empty. Returns rows added."""
        with store_operation("checking procedure catalog"), self.SessionLocal() as db:
            if db.query(ProcedureRow).first() is not None:
                return 0

        for data in DEFAULT_PROCEDURES:
            self.add_procedure(**data)
        return len(DEFAULT_PROCEDURES)
