"""Customer endpoints."""
from typing import List

from fastapi import APIRouter, Depends, status

from agende.api.dependencies import get_customer_store, require_admin
from agende.api.models import CustomerCreate, CustomerUpdate
from agende.customers import CustomerStore
from agende.database import NotFoundError
from agende.models import Customer, Tag

router = APIRouter(
    prefix="/api/v1/customers",
    tags=["Customers"],
    dependencies=[Depends(require_admin)]
)


@router.get("", response_model=List[Customer])
def list_customers(store: CustomerStore = Depends(get_customer_store)):
    return store.list_customers()


# Declared before /{customer_id} so "tags" is not taken for an id
@router.get("/tags", response_model=List[Tag])
def list_tags(store: CustomerStore = Depends(get_customer_store)):
    return store.all_unique_tags()


@router.get("/{customer_id}", response_model=Customer)
def get_customer(customer_id: str, store: CustomerStore = Depends(get_customer_store)):
    return store.get_customer(customer_id)


@router.post("", response_model=Customer, status_code=status.HTTP_201_CREATED)
def create_customer(request: CustomerCreate, store: CustomerStore = Depends(get_customer_store)):
    return store.add_customer(
        name=request.name,
        phone=request.phone,
        notes=request.notes,
        tag_names=request.tags,
    )


@router.put("/{customer_id}", response_model=Customer)
def update_customer(
    customer_id: str,
    request: CustomerUpdate,
    store: CustomerStore = Depends(get_customer_store)
):
    changes = request.model_dump(exclude_unset=True)
    tag_names = changes.pop("tags", None)
    return store.update_customer(customer_id, tag_names=tag_names, **changes)


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_customer(customer_id: str, store: CustomerStore = Depends(get_customer_store)):
    if not store.delete_customer(customer_id):
        raise NotFoundError("Customer", customer_id)
