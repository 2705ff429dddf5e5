from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime
from typing import Any, Optional
import math


# ── coercion ──────────────────────────────────────────────────────────────────

def to_number(value: Any) -> float:
    """Best-effort numeric conversion; anything non-numeric becomes 0."""
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def to_count(value: Any) -> int:
    # bottle quantities are whole and never negative
    return max(0, int(to_number(value)))


class _Record(BaseModel):
    # stored JSON uses camelCase keys, attributes stay snake_case
    model_config = ConfigDict(populate_by_name=True)


class Admin(_Record):
    username: str
    password: str  # plaintext, as stored in the data file
    name: str = ""


class AdminView(_Record):
    username: str
    name: str = ""


class Client(_Record):
    id: str
    name: str
    phone: str = ""
    address: str = ""


class Transaction(_Record):
    id: str
    client_id: str = Field(alias="clientId")
    bottles: int = Field(ge=0)
    delivered: int = Field(default=0, ge=0)
    currency: str
    amount: float = 0
    paid: bool = False
    date: datetime
    locked: bool = False

    # older data files may hold null or negative quantities
    @field_validator("bottles", "delivered", mode="before")
    @classmethod
    def _coerce_count(cls, value: Any) -> int:
        return to_count(value)

    @field_validator("amount", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> float:
        return to_number(value)

    @property
    def closed(self) -> bool:
        return self.delivered >= self.bottles


class TransactionView(Transaction):
    client_name: str = Field(alias="clientName")


class Dataset(_Record):
    admins: list[Admin] = Field(default_factory=list)
    clients: list[Client] = Field(default_factory=list)
    transactions: list[Transaction] = Field(default_factory=list)


# ── Request bodies ───────────────────────────────────────────────────────────
# Loosely typed on purpose: numeric fields are coerced by the ledger and
# missing required values are reported as incomplete data, not schema errors.

class AdminLogin(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class ClientLogin(BaseModel):
    id: Optional[str] = None


class ClientPayload(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None


class TransactionCreate(_Record):
    client_id: Optional[str] = Field(default=None, alias="clientId")
    bottles: Any = None
    delivered: Any = 0
    currency: Optional[str] = None
    amount: Any = 0
    paid: Any = False


class TransactionUpdate(BaseModel):
    delivered: Any = None
    currency: Optional[str] = None
    amount: Any = None
    paid: Any = None


# ── Response models ──────────────────────────────────────────────────────────

class AuthResult(BaseModel):
    user: dict[str, Any]
    role: str


class OkResult(BaseModel):
    ok: bool = True
