# core/supabase_client.py

from supabase import create_client, Client
from core.config import settings
from core.logging_config import logger


# ============================================================
# Supabase Client Factory (service role)
# ============================================================

def get_supabase_client() -> Client:
    """
    Creates a Supabase client using the SERVICE ROLE KEY.
    REQUIRED for:
        - auth.admin.update_user_by_id (display name, password reset)
        - auth.admin.delete_user (credential revocation)
        - full read/write on the documents table
    """
    try:
        supabase_url = settings.SUPABASE_URL
        supabase_key = settings.SUPABASE_SERVICE_ROLE_KEY

        if not supabase_url or not supabase_key:
            logger.error("Missing Supabase credentials")
            logger.error(f"   URL: {supabase_url}")
            logger.error(f"   SERVICE ROLE KEY: {'SET' if supabase_key else 'MISSING'}")
            return None

        return create_client(supabase_url, supabase_key)

    except Exception as e:
        logger.error(f"Supabase Init Error: {e}", exc_info=True)
        return None


# ============================================================
# Session client (anon key, one per client session)
# ============================================================

def get_session_client() -> Client:
    """
    Sign-in / sign-up mutate the client's auth state, so every client
    session gets its own anon-key client.
    """
    try:
        if not settings.SUPABASE_URL or not settings.SUPABASE_ANON_KEY:
            logger.error("Missing Supabase anon credentials")
            return None

        return create_client(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY)

    except Exception as e:
        logger.error(f"Supabase Init Error: {e}", exc_info=True)
        return None
