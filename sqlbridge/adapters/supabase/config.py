"""Supabase store configuration."""

import os
from typing import TYPE_CHECKING, Any, Final, Optional, TypedDict, Union

from typing_extensions import NotRequired

from sqlbridge.exceptions import ImproperConfigurationError, MissingDependencyError
from sqlbridge.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping

    from supabase import AsyncClient

    from sqlbridge.config import BridgeConfig
    from sqlbridge.facade import CompatDatabase

__all__ = ("SUPABASE_KEY_ENV", "SUPABASE_URL_ENV", "SupabaseClientOptions", "SupabaseConfig")

logger = get_logger("adapters.supabase")

SUPABASE_URL_ENV: Final[str] = "SUPABASE_URL"
SUPABASE_KEY_ENV: Final[str] = "SUPABASE_SERVICE_ROLE_KEY"


class SupabaseClientOptions(TypedDict, total=False):
    """TypedDict for the subset of ``AsyncClientOptions`` sqlbridge passes through."""

    schema: NotRequired[str]
    headers: NotRequired["dict[str, str]"]
    auto_refresh_token: NotRequired[bool]
    persist_session: NotRequired[bool]
    postgrest_client_timeout: NotRequired[Union[int, float]]
    extra: NotRequired["dict[str, Any]"]


class SupabaseConfig:
    """Connection settings for a Supabase project.

    Args:
        url: Project URL, e.g. ``https://xyz.supabase.co``.
        key: Service role key.
        client_options: Options forwarded to ``AsyncClientOptions``.
    """

    __slots__ = ("client_options", "key", "url")

    def __init__(
        self, url: str, key: str, client_options: "Optional[Union[SupabaseClientOptions, dict[str, Any]]]" = None
    ) -> None:
        self.url = (url or "").strip().rstrip("/")
        self.key = (key or "").strip()
        self.client_options: dict[str, Any] = dict(client_options) if client_options else {}
        if not self.url or not self.key:
            msg = f"Supabase settings are required; set {SUPABASE_URL_ENV} and {SUPABASE_KEY_ENV}"
            raise ImproperConfigurationError(msg)

    def __repr__(self) -> str:
        return f"SupabaseConfig(url={self.url!r}, key='***')"

    @classmethod
    def from_env(
        cls,
        environ: "Optional[Mapping[str, str]]" = None,
        client_options: "Optional[Union[SupabaseClientOptions, dict[str, Any]]]" = None,
    ) -> "SupabaseConfig":
        """Read ``SUPABASE_URL`` and ``SUPABASE_SERVICE_ROLE_KEY``.

        Raises:
            ImproperConfigurationError: If either variable is missing or empty.
        """
        environ = os.environ if environ is None else environ
        url = environ.get(SUPABASE_URL_ENV, "")
        key = environ.get(SUPABASE_KEY_ENV, "")
        logger.debug(
            "Supabase settings: url %s, key %s",
            "configured" if url.strip() else "missing",
            "configured" if key.strip() else "missing",
        )
        return cls(url=url, key=key, client_options=client_options)

    def _get_client_options(self) -> Any:
        if not self.client_options:
            return None
        from supabase.lib.client_options import AsyncClientOptions

        options = dict(self.client_options)
        options.update(options.pop("extra", {}))
        return AsyncClientOptions(**{key: value for key, value in options.items() if value is not None})

    async def create_store(self) -> "AsyncClient":
        """Create the async Supabase client used as the store capability.

        Raises:
            MissingDependencyError: If the ``supabase`` package is not installed.
        """
        try:
            from supabase import acreate_client
        except ImportError as exc:
            raise MissingDependencyError(package="supabase", install_package="supabase") from exc

        options = self._get_client_options()
        if options is None:
            return await acreate_client(self.url, self.key)
        return await acreate_client(self.url, self.key, options=options)

    async def create_database(self, config: "Optional[BridgeConfig]" = None) -> "CompatDatabase":
        """Create a ``CompatDatabase`` over a new Supabase client."""
        from sqlbridge.facade import CompatDatabase

        return CompatDatabase(await self.create_store(), config)
