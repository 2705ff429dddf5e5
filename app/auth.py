import structlog

from app.errors import InvalidCredentials, NotFoundError
from app.models import AdminView, Client
from app.store import JsonStore

log = structlog.get_logger(__name__)


def authenticate_admin(username: str, password: str, store: JsonStore) -> AdminView:
    # plaintext comparison against the stored credentials
    for admin in store.load().admins:
        if admin.username == username and admin.password == password:
            return AdminView(**admin.model_dump(exclude={"password"}))
    log.warning("auth.admin_rejected", username=username)
    raise InvalidCredentials("Credenciales inválidas")


def authenticate_client(client_id: str, store: JsonStore) -> Client:
    for client in store.load().clients:
        if client.id == client_id:
            return client
    raise NotFoundError("Cliente no encontrado")
