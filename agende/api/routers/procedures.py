"""Procedure catalog endpoints."""
from typing import List

from fastapi import APIRouter, Depends, status

from agende.api.dependencies import get_procedure_store, require_admin
from agende.api.models import ProcedureCreate, ProcedureUpdate
from agende.database import NotFoundError
from agende.models import Procedure
from agende.procedures import ProcedureStore

router = APIRouter(
    prefix="/api/v1/procedures",
    tags=["Procedures"],
    dependencies=[Depends(require_admin)]
)


@router.get("", response_model=List[Procedure])
def list_procedures(store: ProcedureStore = Depends(get_procedure_store)):
    return store.list_procedures()


@router.get("/{procedure_id}", response_model=Procedure)
def get_procedure(procedure_id: str, store: ProcedureStore = Depends(get_procedure_store)):
    return store.get_procedure(procedure_id)


@router.post("", response_model=Procedure, status_code=status.HTTP_201_CREATED)
def create_procedure(request: ProcedureCreate, store: ProcedureStore = Depends(get_procedure_store)):
    return store.add_procedure(**request.model_dump())


@router.put("/{procedure_id}", response_model=Procedure)
def update_procedure(
    procedure_id: str,
    request: ProcedureUpdate,
    store: ProcedureStore = Depends(get_procedure_store)
):
    """Partial update; existing appointments keep their booking-time snapshot."""
    return store.update_procedure(procedure_id, **request.model_dump(exclude_unset=True))


@router.delete("/{procedure_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_procedure(procedure_id: str, store: ProcedureStore = Depends(get_procedure_store)):
    if not store.delete_procedure(procedure_id):
        raise NotFoundError("Procedure", procedure_id)
