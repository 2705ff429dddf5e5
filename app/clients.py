import structlog

from app.errors import ValidationError
from app.models import Client
from app.store import JsonStore

log = structlog.get_logger(__name__)


def list_clients(store: JsonStore) -> list[Client]:
    return store.load().clients


def upsert_client(client: Client, store: JsonStore) -> None:
    """Insert ``client``, or replace the stored client with the same id in place."""
    if not client.id or not client.name:
        raise ValidationError("Cédula y nombre son obligatorios")

    dataset = store.load()
    for idx, existing in enumerate(dataset.clients):
        if existing.id == client.id:
            dataset.clients[idx] = client
            action = "replaced"
            break
    else:
        dataset.clients.append(client)
        action = "created"

    store.save(dataset)
    log.info("client.upserted", client_id=client.id, action=action)


def delete_client(client_id: str, store: JsonStore) -> None:
    # idempotent: deleting an unknown id is not an error
    dataset = store.load()
    before = len(dataset.clients)
    dataset.clients = [c for c in dataset.clients if c.id != client_id]
    store.save(dataset)
    log.info("client.deleted", client_id=client_id, removed=before - len(dataset.clients))
