"""API routes for bank accounts and credit products."""
from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import Response

from app.core.dependencies import get_account_manager
from app.domain.accounts.models import Account
from app.domain.accounts.schemas import AccountCreate, AccountOut, BalanceUpdate, TransactionStatusOut
from app.domain.accounts.services import AccountLifecycleManager
from app.domain.snapshots.schemas import DailyBalanceOut

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=AccountOut, status_code=status.HTTP_201_CREATED)
async def create_account(
    payload: AccountCreate,
    request: Request,
    response: Response,
    manager: AccountLifecycleManager = Depends(get_account_manager),
) -> Account:
    """Open a deposit account or credit product for an existing customer."""
    account = await manager.create(payload)
    response.headers["Location"] = str(request.url_for("get_account", account_id=account.id))
    return account


@router.get("", response_model=list[AccountOut])
async def list_accounts(
    customer_id: str = Query(..., alias="customerId"),
    manager: AccountLifecycleManager = Depends(get_account_manager),
) -> list[Account]:
    """Return every account held by a customer, oldest first."""
    return await manager.list_by_customer(customer_id)


@router.get("/daily-balances", response_model=list[DailyBalanceOut])
async def daily_balances(
    customer_id: str = Query(..., alias="customerId"),
    start_date: date = Query(..., alias="startDate"),
    end_date: date = Query(..., alias="endDate"),
    manager: AccountLifecycleManager = Depends(get_account_manager),
) -> list[DailyBalanceOut]:
    """End-of-day balances of all the customer's accounts within the date range."""
    return await manager.get_daily_balances(customer_id, start_date, end_date)


@router.get("/by-number/{account_number}", response_model=AccountOut)
async def get_account_by_number(
    account_number: str,
    manager: AccountLifecycleManager = Depends(get_account_manager),
) -> Account:
    return await manager.get_by_number(account_number)


@router.get("/{account_id}", response_model=AccountOut, name="get_account")
async def get_account(
    account_id: str,
    manager: AccountLifecycleManager = Depends(get_account_manager),
) -> Account:
    return await manager.get_by_id(account_id)


@router.delete("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
async def close_account(
    account_id: str,
    manager: AccountLifecycleManager = Depends(get_account_manager),
) -> Response:
    """Logically close the account; it stays queryable with status INACTIVE."""
    await manager.close(account_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{account_id}/update-balance", response_model=AccountOut)
async def update_balance(
    account_id: str,
    payload: BalanceUpdate,
    manager: AccountLifecycleManager = Depends(get_account_manager),
) -> Account:
    """Overwrite balance and amount used with the values computed by the caller."""
    return await manager.update_balance(account_id, payload.balance, payload.amount_used)


@router.get("/{account_id}/transaction-status", response_model=TransactionStatusOut)
async def transaction_status(
    account_id: str,
    manager: AccountLifecycleManager = Depends(get_account_manager),
) -> TransactionStatusOut:
    return await manager.get_transaction_status(account_id)


@router.patch("/{account_id}/increment-transactions")
async def increment_transactions(
    account_id: str,
    manager: AccountLifecycleManager = Depends(get_account_manager),
) -> Response:
    """Record one more movement on the account's monthly counter."""
    await manager.increment_transaction_counter(account_id)
    return Response(status_code=status.HTTP_200_OK)
