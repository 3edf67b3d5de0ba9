"""Child account, transaction & lookup code API endpoints."""

from fastapi import APIRouter, Depends, status

from fbop.api.deps import get_current_principal, http_error, require_child_reader, require_parent
from fbop.database import get_store
from fbop.errors import FbopError
from fbop.models.child import Child, Transaction
from fbop.schemas.child import (
    ChildCreateRequest,
    ChildResponse,
    ChildUpdateRequest,
    LookupCodeResponse,
    LookupResolveResponse,
    TransactionRequest,
    TransactionResponse,
)
from fbop.services import child_service, lookup_service
from fbop.services.auth_service import Principal
from fbop.store import DocumentStore
from fbop.utils.money import format_currency
from fbop.utils.qr import encode_qr_base64

router = APIRouter(tags=["children"])


def _child_response(child: Child, balance: int) -> ChildResponse:
    return ChildResponse(
        id=child.id,
        name=child.name,
        created_at=child.created_at,
        balance=balance,
        formatted_balance=format_currency(balance),
    )


def _transaction_response(tx: Transaction) -> TransactionResponse:
    return TransactionResponse(
        id=tx.id,
        amount=tx.amount,
        description=tx.description,
        date=tx.date,
        is_deposit=tx.is_deposit,
        created_at=tx.created_at,
        modified_at=tx.modified_at,
    )


@router.get("/families/{family_id}/children", response_model=list[ChildResponse])
def list_children(
    family_id: str,
    principal: Principal = Depends(require_parent),
    store: DocumentStore = Depends(get_store),
):
    """All children with their current balances."""
    try:
        return [
            _child_response(
                child,
                child_service.compute_balance(child_service.list_transactions(store, family_id, child.id)),
            )
            for child in child_service.list_children(store, family_id)
        ]
    except FbopError as e:
        raise http_error(e)


@router.post(
    "/families/{family_id}/children",
    response_model=ChildResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_child(
    family_id: str,
    request: ChildCreateRequest,
    principal: Principal = Depends(require_parent),
    store: DocumentStore = Depends(get_store),
):
    try:
        child = child_service.create_child(store, family_id, request.name)
    except FbopError as e:
        raise http_error(e)
    return _child_response(child, 0)


@router.get("/families/{family_id}/children/{child_id}", response_model=ChildResponse)
def get_child(
    family_id: str,
    child_id: str,
    principal: Principal = Depends(require_child_reader),
    store: DocumentStore = Depends(get_store),
):
    try:
        result = child_service.get_child_with_balance(store, family_id, child_id)
    except FbopError as e:
        raise http_error(e)
    return _child_response(result.child, result.balance)


@router.patch("/families/{family_id}/children/{child_id}", response_model=ChildResponse)
def rename_child(
    family_id: str,
    child_id: str,
    request: ChildUpdateRequest,
    principal: Principal = Depends(require_parent),
    store: DocumentStore = Depends(get_store),
):
    try:
        child_service.update_child(store, family_id, child_id, request.name)
        result = child_service.get_child_with_balance(store, family_id, child_id)
    except FbopError as e:
        raise http_error(e)
    return _child_response(result.child, result.balance)


@router.delete("/families/{family_id}/children/{child_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_child(
    family_id: str,
    child_id: str,
    principal: Principal = Depends(require_parent),
    store: DocumentStore = Depends(get_store),
):
    try:
        child_service.delete_child(store, family_id, child_id)
    except FbopError as e:
        raise http_error(e)


# --- Transactions ---

@router.get(
    "/families/{family_id}/children/{child_id}/transactions",
    response_model=list[TransactionResponse],
)
def list_transactions(
    family_id: str,
    child_id: str,
    principal: Principal = Depends(require_child_reader),
    store: DocumentStore = Depends(get_store),
):
    try:
        transactions = child_service.list_transactions(store, family_id, child_id)
    except FbopError as e:
        raise http_error(e)
    return [_transaction_response(tx) for tx in transactions]


@router.post(
    "/families/{family_id}/children/{child_id}/transactions",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_transaction(
    family_id: str,
    child_id: str,
    request: TransactionRequest,
    principal: Principal = Depends(require_parent),
    store: DocumentStore = Depends(get_store),
):
    try:
        tx = child_service.create_transaction(
            store, family_id, child_id, request.amount, request.description, request.date
        )
    except FbopError as e:
        raise http_error(e)
    return _transaction_response(tx)


@router.put(
    "/families/{family_id}/children/{child_id}/transactions/{transaction_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def update_transaction(
    family_id: str,
    child_id: str,
    transaction_id: str,
    request: TransactionRequest,
    principal: Principal = Depends(require_parent),
    store: DocumentStore = Depends(get_store),
):
    try:
        child_service.update_transaction(
            store, family_id, child_id, transaction_id, request.amount, request.description, request.date
        )
    except FbopError as e:
        raise http_error(e)


@router.delete(
    "/families/{family_id}/children/{child_id}/transactions/{transaction_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_transaction(
    family_id: str,
    child_id: str,
    transaction_id: str,
    principal: Principal = Depends(require_parent),
    store: DocumentStore = Depends(get_store),
):
    try:
        child_service.delete_transaction(store, family_id, child_id, transaction_id)
    except FbopError as e:
        raise http_error(e)


# --- Lookup codes ---

@router.post(
    "/families/{family_id}/children/{child_id}/lookup-codes",
    response_model=LookupCodeResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_lookup_code(
    family_id: str,
    child_id: str,
    principal: Principal = Depends(require_parent),
    store: DocumentStore = Depends(get_store),
):
    """Mint a 1h code (and its QR image) for pairing a kid device."""
    try:
        child_service.get_child(store, family_id, child_id)
        lookup = lookup_service.create_child_lookup(store, family_id, child_id)
    except FbopError as e:
        raise http_error(e)

    return LookupCodeResponse(
        lookup_code=lookup.lookup_code,
        family_id=lookup.family_id,
        child_id=lookup.child_id,
        expires_at=lookup.expires_at,
        qr_png_base64=encode_qr_base64(lookup.lookup_code),
    )


@router.get("/lookup/{code}", response_model=LookupResolveResponse)
def resolve_lookup_code(
    code: str,
    principal: Principal = Depends(get_current_principal),
    store: DocumentStore = Depends(get_store),
):
    try:
        lookup = lookup_service.lookup_child(store, code)
    except FbopError as e:
        raise http_error(e, code_lookup=True)
    return LookupResolveResponse(family_id=lookup.family_id, child_id=lookup.child_id)
