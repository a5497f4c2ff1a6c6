import logging
from postgrest.exceptions import APIError
from supabase import create_client, Client
from app.config import settings
from app.core.exceptions import StorageError

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


class SupabaseClient:
    _client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        if cls._client is None:
            cls._client = create_client(settings.supabase_url, settings.supabase_key)
        return cls._client


def get_supabase() -> Client:
    return SupabaseClient.get_client()


def run_query(query, action: str):
    """Execute a PostgREST builder and return its rows, converting client errors into StorageError."""
    try:
        result = query.execute()
    except APIError as e:
        logger.error(f"Storage call failed ({action}): {e.message}")
        raise StorageError(f"Failed to {action}: {e.message}", code=e.code)
    except Exception as e:
        logger.error(f"Storage call failed ({action}): {str(e)}")
        raise StorageError(f"Failed to {action}: {str(e)}")
    return (result.data if result is not None else None) or []


def is_unique_violation(error: StorageError) -> bool:
    return error.code == UNIQUE_VIOLATION
