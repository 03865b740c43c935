# progress_hub/adapters/factory.py
import logging

from progress_hub.adapters.base import PersistenceAdapter
from progress_hub.adapters.database import DatabaseAdapter
from progress_hub.adapters.json_file import JsonFileAdapter
from progress_hub.adapters.remote_api import RemoteApiAdapter
from progress_hub.core.config import Settings
from progress_hub.db.session import build_engine

logger = logging.getLogger(__name__)


def build_adapter(settings: Settings) -> PersistenceAdapter:
    """
    Construct the persistence adapter selected by `STORAGE_BACKEND`.

    This is the only place that knows about concrete backends.
    """
    backend = settings.STORAGE_BACKEND

    if backend == "json_file":
        adapter: PersistenceAdapter = JsonFileAdapter(
            data_dir=settings.DATA_DIR,
            max_bytes=settings.STORAGE_MAX_BYTES,
        )
    elif backend == "remote_api":
        if not settings.REMOTE_API_URL:
            raise ValueError("REMOTE_API_URL must be configured to use the remote_api backend.")
        adapter = RemoteApiAdapter(
            base_url=str(settings.REMOTE_API_URL),
            api_key=settings.REMOTE_API_KEY,
            timeout_seconds=settings.REMOTE_TIMEOUT_SECONDS,
        )
    elif backend == "database":
        adapter = DatabaseAdapter(
            engine=build_engine(settings.DB_URL),
            poll_interval=settings.SUBSCRIPTION_POLL_SECONDS,
        )
    else:
        raise ValueError(f"Unknown STORAGE_BACKEND '{backend}'")

    logger.info("Using %s persistence adapter", adapter.name)
    return adapter
