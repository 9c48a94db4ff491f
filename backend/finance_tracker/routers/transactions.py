from datetime import date

from fastapi import APIRouter, Depends, Query

from finance_tracker.core.config import settings
from finance_tracker.core.errors import NotFound
from finance_tracker.core.logging import get_logger
from finance_tracker.db.store import storage_errors
from finance_tracker.models.api import (
    MessageResponse,
    TransactionListResponse,
    TransactionPayload,
    TransactionResponse,
)
from finance_tracker.routers.deps import (
    get_store,
    get_today,
    parse_record_id,
    require_account,
    require_writer,
)
from finance_tracker.services.transactions import (
    build_pagination,
    build_transaction_query,
    serialize_transaction,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/transactions", tags=["transactions"])

NOT_FOUND_MESSAGE = "Transaction not found"


def _payload_fields(payload: TransactionPayload) -> dict:
    return {
        "amount": payload.amount,
        "type": payload.type,
        "category": payload.category,
        "description": payload.description or "",
        "date": payload.date,
    }


@router.get("", response_model=TransactionListResponse)
def list_transactions(
    page: int = Query(1),
    limit: int = Query(settings.default_page_limit),
    search: str = "",
    tx_type: str | None = Query(None, alias="type"),
    category: str | None = None,
    time_range: str | None = Query(None, alias="timeRange"),
    account: dict = Depends(require_account),
    store=Depends(get_store),
    today: date = Depends(get_today),
):
    query = build_transaction_query(
        account["account_id"],
        page=page,
        limit=limit,
        search=search,
        tx_type=tx_type,
        category=category,
        time_range=time_range,
        today=today,
    )
    with storage_errors("fetching transactions"):
        rows, total = store.list_transactions(query)
    return {
        "success": True,
        "transactions": [serialize_transaction(row) for row in rows],
        "pagination": build_pagination(total, query.page, query.limit),
    }


@router.post("", status_code=201, response_model=TransactionResponse)
def create_transaction(
    payload: TransactionPayload,
    account: dict = Depends(require_writer),
    store=Depends(get_store),
):
    with storage_errors("creating transaction"):
        row = store.create_transaction(account["account_id"], _payload_fields(payload))
    logger.info("Created transaction %s for account %s", row["transaction_id"], account["account_id"])
    return {
        "success": True,
        "message": "Transaction created successfully",
        "transaction": serialize_transaction(row),
    }


@router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: str,
    account: dict = Depends(require_account),
    store=Depends(get_store),
):
    record_id = parse_record_id(transaction_id)
    if record_id is None:
        raise NotFound(NOT_FOUND_MESSAGE)
    with storage_errors("fetching transaction"):
        row = store.get_transaction(account["account_id"], record_id)
    if not row:
        raise NotFound(NOT_FOUND_MESSAGE)
    return {"success": True, "transaction": serialize_transaction(row)}


@router.put("/{transaction_id}", response_model=TransactionResponse)
def update_transaction(
    transaction_id: str,
    payload: TransactionPayload,
    account: dict = Depends(require_writer),
    store=Depends(get_store),
):
    record_id = parse_record_id(transaction_id)
    if record_id is None:
        raise NotFound(NOT_FOUND_MESSAGE)
    with storage_errors("updating transaction"):
        row = store.update_transaction(account["account_id"], record_id, _payload_fields(payload))
    if not row:
        raise NotFound(NOT_FOUND_MESSAGE)
    logger.info("Updated transaction %s for account %s", record_id, account["account_id"])
    return {
        "success": True,
        "message": "Transaction updated successfully",
        "transaction": serialize_transaction(row),
    }


@router.delete("/{transaction_id}", response_model=MessageResponse)
def delete_transaction(
    transaction_id: str,
    account: dict = Depends(require_writer),
    store=Depends(get_store),
):
    record_id = parse_record_id(transaction_id)
    if record_id is None:
        raise NotFound(NOT_FOUND_MESSAGE)
    with storage_errors("deleting transaction"):
        deleted = store.delete_transaction(account["account_id"], record_id)
    if not deleted:
        raise NotFound(NOT_FOUND_MESSAGE)
    logger.info("Deleted transaction %s for account %s", record_id, account["account_id"])
    return {"success": True, "message": "Transaction deleted successfully"}
