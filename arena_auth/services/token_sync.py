"""Token synchronizer: pushes game tokens to the external token store."""

import httpx
import structlog

from arena_auth.core.exceptions import StoreRejectedError, TokenStoreTransportError
from arena_auth.core.security import mask_token
from arena_auth.schemas.tokens import SyncIntent, TokenSyncPayload

logger = structlog.get_logger(__name__)


class TokenSynchronizer:
    """
    Executes create/update calls against the token store.

    The store is keyed by user ID. ``CREATE`` is the first write for a user,
    ``UPDATE`` overwrites the existing record. Choosing the right intent is
    the caller's job; nothing here retries.
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        *,
        create_method: str = "POST",
        update_method: str = "PUT",
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url
        self.api_key = api_key
        self.methods = {
            SyncIntent.CREATE: create_method.upper(),
            SyncIntent.UPDATE: update_method.upper(),
        }
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    async def sync(self, intent: SyncIntent, token: str, user_id: str) -> None:
        """
        Write ``token`` for ``user_id`` to the store.

        Args:
            intent: CREATE for the first write in a session, UPDATE otherwise
            token: Opaque token value
            user_id: Owning user ID

        Raises:
            StoreRejectedError: If the store answers with a non-2xx status
            TokenStoreTransportError: If the store cannot be reached
        """
        method = self.methods[intent]
        payload = TokenSyncPayload(token=token, user_id=user_id)

        try:
            async with self._client() as client:
                response = await client.request(
                    method,
                    self.url,
                    json=payload.model_dump(),
                    headers={"Content-Type": "application/json", "X-Api-Key": self.api_key},
                )
        except httpx.HTTPError as e:
            logger.warning(
                "token_sync_transport_failed",
                intent=intent.value,
                user_id=user_id,
                error=str(e),
            )
            raise TokenStoreTransportError()

        if not response.is_success:
            logger.warning(
                "token_sync_rejected",
                intent=intent.value,
                user_id=user_id,
                status_code=response.status_code,
            )
            if response.text:
                raise StoreRejectedError(response.text)
            raise StoreRejectedError()

        logger.info(
            "token_synced",
            intent=intent.value,
            method=method,
            user_id=user_id,
            token=mask_token(token),
        )
