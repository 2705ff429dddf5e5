from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from app import auth, clients, ledger
from app.config import Settings, get_settings
from app.errors import LedgerError, StoreIOError, StoreParseError
from app.logs import configure_logging
from app.middleware import SECURITY_HEADERS, BodySizeLimitMiddleware
from app.models import (
    AdminLogin,
    AuthResult,
    Client,
    ClientLogin,
    ClientPayload,
    OkResult,
    Transaction,
    TransactionCreate,
    TransactionUpdate,
    TransactionView,
)
from app.static import router as static_router
from app.store import JsonStore

log = structlog.get_logger(__name__)


def get_store(request: Request) -> JsonStore:
    return request.app.state.store


# ── Error envelopes ──────────────────────────────────────────────────────────

async def ledger_error_handler(request: Request, exc: LedgerError):
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if any(err.get("type") == "json_invalid" for err in errors):
        message = "Invalid JSON body"
    elif errors:
        first = errors[0]
        where = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{where}: {first.get('msg')}" if where else str(first.get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse({"error": message}, status_code=400)


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    # every unmatched path/method combination answers 404
    if exc.status_code == 405:
        return JSONResponse({"error": "Not Found"}, status_code=404)
    return JSONResponse(
        {"error": exc.detail},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def server_error_handler(request: Request, exc: Exception):
    log.error(
        "request.failed",
        method=request.method,
        path=request.url.path,
        error=str(exc),
        exc_info=exc,
    )
    return JSONResponse({"error": "Server error", "detail": str(exc)}, status_code=500)


# ── Application ──────────────────────────────────────────────────────────────

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # the data file must exist before the first request is served
        from scripts.seed_data import seed
        configure_logging(settings.log_level, settings.log_json)
        seed(app.state.store)
        log.info("server.started", url=f"http://localhost:{settings.port}")
        yield

    app = FastAPI(
        title="Bottle Delivery Ledger",
        version="1.0.0",
        description="Clients, bottle deliveries and payments for a water delivery round",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = JsonStore(settings.db_path)

    # ── Auth ─────────────────────────────────────────────────────────────────

    @app.post("/api/auth/admin", response_model=AuthResult, summary="Admin login")
    def admin_login(payload: Optional[AdminLogin] = None, store: JsonStore = Depends(get_store)):
        payload = payload or AdminLogin()
        admin = auth.authenticate_admin(payload.username, payload.password, store)
        return AuthResult(user=admin.model_dump(), role="admin")

    @app.post("/api/auth/client", response_model=AuthResult, summary="Client login by id")
    def client_login(payload: Optional[ClientLogin] = None, store: JsonStore = Depends(get_store)):
        payload = payload or ClientLogin()
        client = auth.authenticate_client(payload.id, store)
        return AuthResult(user=client.model_dump(), role="client")

    # ── Clients ──────────────────────────────────────────────────────────────

    @app.get("/api/clients", response_model=list[Client], summary="List clients")
    def list_clients(store: JsonStore = Depends(get_store)):
        return clients.list_clients(store)

    @app.post("/api/clients", response_model=OkResult, summary="Create or replace a client")
    def save_client(payload: Optional[ClientPayload] = None, store: JsonStore = Depends(get_store)):
        payload = payload or ClientPayload()
        client = Client(
            id=payload.id or "",
            name=payload.name or "",
            phone=payload.phone or "",
            address=payload.address or "",
        )
        clients.upsert_client(client, store)
        return OkResult()

    @app.delete("/api/clients/{client_id}", response_model=OkResult, summary="Delete a client")
    def delete_client(client_id: str, store: JsonStore = Depends(get_store)):
        clients.delete_client(client_id, store)
        return OkResult()

    # ── Transactions ─────────────────────────────────────────────────────────

    @app.get("/api/transactions", response_model=list[TransactionView], summary="List transactions")
    def list_transactions(
        client_id: Optional[str] = Query(default=None, alias="clientId"),
        store: JsonStore = Depends(get_store),
    ):
        return ledger.list_transactions(store, client_id)

    @app.post("/api/transactions", response_model=Transaction, summary="Record a transaction")
    def create_transaction(
        payload: Optional[TransactionCreate] = None,
        store: JsonStore = Depends(get_store),
    ):
        payload = payload or TransactionCreate()
        return ledger.create_transaction(
            store,
            client_id=payload.client_id,
            bottles=payload.bottles,
            delivered=payload.delivered,
            currency=payload.currency,
            amount=payload.amount,
            paid=payload.paid,
        )

    @app.put("/api/transactions/{txn_id}", response_model=Transaction, summary="Edit an open transaction")
    def update_transaction(
        txn_id: str,
        payload: Optional[TransactionUpdate] = None,
        store: JsonStore = Depends(get_store),
    ):
        payload = payload or TransactionUpdate()
        return ledger.update_transaction(
            store,
            txn_id,
            delivered=payload.delivered,
            currency=payload.currency,
            amount=payload.amount,
            paid=payload.paid,
        )

    @app.delete("/api/transactions/{txn_id}", response_model=OkResult, summary="Delete an open transaction")
    def delete_transaction(txn_id: str, store: JsonStore = Depends(get_store)):
        ledger.delete_transaction(store, txn_id)
        return OkResult()

    # SPA and public/ assets (catch-all, must stay last)
    app.include_router(static_router)

    app.add_exception_handler(LedgerError, ledger_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(StoreIOError, server_error_handler)
    app.add_exception_handler(StoreParseError, server_error_handler)

    @app.middleware("http")
    async def api_headers(request: Request, call_next):
        if request.method == "OPTIONS":
            return Response(status_code=204)
        try:
            response = await call_next(request)
        except Exception as exc:
            # answered here so CORS and security headers still apply
            response = await server_error_handler(request, exc)
        if request.url.path.startswith("/api/"):
            response.headers.update(SECURITY_HEADERS)
        return response

    app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.max_body_bytes)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    return app


app = create_app()


def run() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run("app.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
