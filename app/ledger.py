"""
Bottle transaction ledger.

A transaction is OPEN while ``delivered < bottles`` and becomes CLOSED
(``locked``) as soon as the delivered quantity reaches the owed quantity.
CLOSED is final: closed transactions can be read but never edited or
deleted.
"""

import time
from datetime import datetime, timezone
from typing import Any, Optional

import structlog

from app.errors import ConflictError, NotFoundError, ValidationError
from app.models import Transaction, TransactionView, to_count, to_number
from app.store import JsonStore

log = structlog.get_logger(__name__)

UNKNOWN_CLIENT = "Cliente desconocido"


def _next_id(existing: list[Transaction]) -> str:
    candidate = int(time.time() * 1000)
    numeric = [int(t.id) for t in existing if t.id.isdigit()]
    if numeric and candidate <= max(numeric):
        candidate = max(numeric) + 1
    return str(candidate)


def _find(transactions: list[Transaction], txn_id: str) -> int:
    for idx, txn in enumerate(transactions):
        if txn.id == txn_id:
            return idx
    raise NotFoundError("Transacción no encontrada")


# ── reads ─────────────────────────────────────────────────────────────────────

def list_transactions(store: JsonStore, client_id: Optional[str] = None) -> list[TransactionView]:
    dataset = store.load()
    txns = dataset.transactions
    if client_id:
        txns = [t for t in txns if t.client_id == client_id]

    names = {c.id: c.name for c in dataset.clients}
    return [
        TransactionView(**t.model_dump(), client_name=names.get(t.client_id) or UNKNOWN_CLIENT)
        for t in txns
    ]


# ── writes ────────────────────────────────────────────────────────────────────

def create_transaction(
    store: JsonStore,
    client_id: Optional[str],
    bottles: Any,
    delivered: Any = 0,
    currency: Optional[str] = None,
    amount: Any = 0,
    paid: Any = False,
) -> Transaction:
    bottle_count = to_count(bottles)
    if not client_id or not bottle_count or not currency:
        raise ValidationError("Datos incompletos")

    dataset = store.load()
    delivered_count = to_count(delivered)
    txn = Transaction(
        id=_next_id(dataset.transactions),
        client_id=client_id,
        bottles=bottle_count,
        delivered=delivered_count,
        currency=currency,
        amount=to_number(amount),
        paid=bool(paid),
        date=datetime.now(timezone.utc),
        locked=delivered_count >= bottle_count,
    )
    dataset.transactions.append(txn)
    store.save(dataset)

    log.info(
        "transaction.created",
        transaction_id=txn.id,
        client_id=txn.client_id,
        bottles=txn.bottles,
        delivered=txn.delivered,
        locked=txn.locked,
    )
    return txn


def update_transaction(
    store: JsonStore,
    txn_id: str,
    delivered: Any = None,
    currency: Optional[str] = None,
    amount: Any = None,
    paid: Any = None,
) -> Transaction:
    dataset = store.load()
    idx = _find(dataset.transactions, txn_id)
    current = dataset.transactions[idx]
    if current.locked:
        log.warning("transaction.update_rejected", transaction_id=txn_id)
        raise ConflictError("Transacción cerrada. No editable")

    updated = current.model_copy(update={
        "delivered": to_count(delivered) if delivered is not None else current.delivered,
        "currency": currency or current.currency,
        "amount": to_number(amount) if amount is not None else current.amount,
        "paid": bool(paid) if paid is not None else current.paid,
    })
    updated.locked = updated.closed

    dataset.transactions[idx] = updated
    store.save(dataset)

    log.info(
        "transaction.updated",
        transaction_id=txn_id,
        delivered=updated.delivered,
        locked=updated.locked,
    )
    return updated


def delete_transaction(store: JsonStore, txn_id: str) -> None:
    dataset = store.load()
    idx = _find(dataset.transactions, txn_id)
    txn = dataset.transactions[idx]
    # both checks: a file edited by hand may carry a stale lock flag
    if txn.locked or txn.closed:
        log.warning("transaction.delete_rejected", transaction_id=txn_id)
        raise ConflictError("No se puede eliminar una transacción cerrada")

    del dataset.transactions[idx]
    store.save(dataset)
    log.info("transaction.deleted", transaction_id=txn_id)
