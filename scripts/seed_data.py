"""
Default data set written on first run.

Produces:
  - 1 admin   (admin / admin123)
  - 2 sample clients
  - no transactions
"""

from app.models import Admin, Client, Dataset


def default_dataset() -> Dataset:
    return Dataset(
        admins=[
            Admin(username="admin", password="admin123", name="Administrador Principal"),
        ],
        clients=[
            Client(id="12345678", name="Juan Pérez", phone="0412-1234567", address=""),
            Client(id="87654321", name="María García", phone="0414-7654321", address=""),
        ],
        transactions=[],
    )


def seed(store) -> bool:
    """Seed ``store`` unless its data file already exists. Returns True if seeded."""
    return store.ensure_initialized(default_dataset())


if __name__ == "__main__":
    from app.config import get_settings
    from app.logs import configure_logging
    from app.store import JsonStore

    settings = get_settings()
    configure_logging(settings.log_level, settings.log_json)
    seed(JsonStore(settings.db_path))
