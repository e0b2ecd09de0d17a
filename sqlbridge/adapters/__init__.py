"""Store capability adapters.

- ``memory``: dict-backed store for tests and local development
- ``supabase``: builds the async Supabase client from configuration
"""
