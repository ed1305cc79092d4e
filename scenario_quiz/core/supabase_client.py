# scenario_quiz/core/supabase_client.py
from supabase import create_client, Client, ClientOptions
from .config import Settings, settings as default_settings

_supabase: Client | None = None


def get_supabase(settings: Settings | None = None) -> Client:
    global _supabase
    settings = settings or default_settings
    if _supabase is None:
        if not settings.supabase_enabled:
            raise RuntimeError("Supabase is not configured (SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY)")
        # the URL is an AnyUrl and must be cast to str
        _supabase = create_client(
            str(settings.SUPABASE_URL),
            str(settings.SUPABASE_SERVICE_ROLE_KEY),
            options=ClientOptions(schema=settings.SUPABASE_SCHEMA),
        )
    return _supabase
