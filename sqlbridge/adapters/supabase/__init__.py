from sqlbridge.adapters.supabase.config import (
    SUPABASE_KEY_ENV,
    SUPABASE_URL_ENV,
    SupabaseClientOptions,
    SupabaseConfig,
)

__all__ = ("SUPABASE_KEY_ENV", "SUPABASE_URL_ENV", "SupabaseClientOptions", "SupabaseConfig")
