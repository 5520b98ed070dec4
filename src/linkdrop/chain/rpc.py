"""
Sui JSON-RPC adapter for chain access.

Provides ledger access via a fullnode's JSON-RPC endpoint.
"""

import base64
import itertools
from typing import Any, List, Optional

import httpx
import structlog

from linkdrop.config import LinkdropConfig, get_config
from linkdrop.chain.interface import (
    SUI_COIN_TYPE,
    ChainClient,
    ChainConnectionError,
    ChainRequestError,
    Coin,
    CoinsPage,
    ExecutionOptions,
    ExecutionResult,
    ObjectChange,
    OwnedObject,
    OwnedObjectsPage,
)
from linkdrop.tx.signer import TransactionSigner
from linkdrop.tx.transaction import ObjectRef, TransactionBlock

logger = structlog.get_logger(__name__)


def _optional_int(value: Any) -> Optional[int]:
    return int(value) if value is not None else None


class SuiRpcClient(ChainClient):
    """
    Fullnode JSON-RPC client.

    Implements the ChainClient using the suix_/sui_ JSON-RPC methods.
    """

    def __init__(
        self,
        config: Optional[LinkdropConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the RPC client.

        Args:
            config: Link generator configuration. Uses global config if not provided.
            transport: Custom httpx transport (tests)
        """
        self.config = config or get_config()
        self.url = self.config.fullnode_url
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._ids = itertools.count(1)

    async def connect(self) -> None:
        """Establish connection (create HTTP client)."""
        if self._client is not None:
            return

        self._client = httpx.AsyncClient(
            headers={"Content-Type": "application/json"},
            timeout=self.config.request_timeout_seconds,
            transport=self._transport,
        )
        logger.info("rpc_client_connected", url=self.url)

    async def disconnect(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("rpc_client_disconnected")

    async def _call(self, method: str, params: List[Any]) -> Any:
        """Make a JSON-RPC call and return its result."""
        if not self._client:
            await self.connect()

        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }

        try:
            response = await self._client.post(self.url, json=payload)
        except httpx.RequestError as e:
            logger.error("rpc_request_error", method=method, error=str(e))
            raise ChainConnectionError(f"RPC request failed: {e}")

        if response.status_code != 200:
            logger.error(
                "rpc_request_failed",
                method=method,
                status=response.status_code,
                error=response.text,
            )
            raise ChainConnectionError(f"RPC HTTP error {response.status_code}: {response.text}")

        body = response.json()
        if body.get("error"):
            error = body["error"]
            logger.error("rpc_error_response", method=method, error=error)
            raise ChainRequestError(
                f"{method} failed: {error.get('message', error)}",
                error_code=error.get("code"),
            )

        return body.get("result")

    async def list_owned_objects(
        self,
        owner: str,
        type_filter: str,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> OwnedObjectsPage:
        """List a page of owned objects of a struct type."""
        query = {
            "filter": {"StructType": type_filter},
            "options": {"showType": True},
        }
        data = await self._call("suix_getOwnedObjects", [owner, query, cursor, limit])

        items = [self._parse_owned_object(entry) for entry in data.get("data", [])]

        logger.debug("owned_objects_fetched", owner=owner[:10] + "...", count=len(items))
        return OwnedObjectsPage(
            items=items,
            has_next_page=bool(data.get("hasNextPage")),
            next_cursor=data.get("nextCursor"),
        )

    def _parse_owned_object(self, entry: dict) -> OwnedObject:
        """Parse a SuiObjectResponse."""
        obj = entry.get("data")
        if not obj:
            return OwnedObject(object_id=None, error=entry.get("error"))

        return OwnedObject(
            object_id=obj["objectId"],
            version=_optional_int(obj.get("version")),
            digest=obj.get("digest"),
            object_type=obj.get("type"),
        )

    async def get_object_ref(self, object_id: str) -> ObjectRef:
        """Get an object's current ref."""
        data = await self._call("sui_getObject", [object_id, {}])

        obj = (data or {}).get("data")
        if not obj:
            raise ChainRequestError(f"Object {object_id} not found: {(data or {}).get('error')}")
        return ObjectRef(obj["objectId"], int(obj["version"]), obj["digest"])

    async def get_coins(
        self,
        owner: str,
        coin_type: str = SUI_COIN_TYPE,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> CoinsPage:
        """List a page of coins."""
        data = await self._call("suix_getCoins", [owner, coin_type, cursor, limit])

        items = [
            Coin(
                object_id=c["coinObjectId"],
                version=int(c["version"]),
                digest=c["digest"],
                balance=int(c["balance"]),
                coin_type=c.get("coinType", coin_type),
            )
            for c in data.get("data", [])
        ]
        return CoinsPage(
            items=items,
            has_next_page=bool(data.get("hasNextPage")),
            next_cursor=data.get("nextCursor"),
        )

    async def get_balance(self, owner: str, coin_type: str = SUI_COIN_TYPE) -> int:
        """Get total balance."""
        data = await self._call("suix_getBalance", [owner, coin_type])
        return int(data["totalBalance"])

    async def get_reference_gas_price(self) -> int:
        """Get the reference gas price."""
        return int(await self._call("suix_getReferenceGasPrice", []))

    async def sign_and_execute(
        self,
        tx: TransactionBlock,
        signer: TransactionSigner,
        options: Optional[ExecutionOptions] = None,
    ) -> ExecutionResult:
        """Sign and execute a transaction block."""
        options = options or ExecutionOptions()

        await self.prepare_transaction(tx)
        tx_bytes = tx.build()
        signature = signer.sign_transaction(tx_bytes)

        data = await self._call(
            "sui_executeTransactionBlock",
            [
                base64.b64encode(tx_bytes).decode("ascii"),
                [signature],
                {
                    "showEffects": options.show_effects,
                    "showObjectChanges": options.show_object_changes,
                },
                "WaitForLocalExecution",
            ],
        )

        status = (data.get("effects") or {}).get("status") or {}
        result = ExecutionResult(
            digest=data.get("digest", ""),
            status=status.get("status", "unknown"),
            error=status.get("error"),
            object_changes=[
                ObjectChange(
                    change_type=change.get("type", ""),
                    object_id=change.get("objectId"),
                    version=_optional_int(change.get("version")),
                    digest=change.get("digest"),
                    object_type=change.get("objectType"),
                )
                for change in data.get("objectChanges") or []
            ],
        )

        logger.info("tx_executed", digest=result.digest, status=result.status)
        return result
