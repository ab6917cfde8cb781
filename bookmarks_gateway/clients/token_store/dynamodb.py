"""
DynamoDB backend for deployments that keep tokens in a managed key-value service.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from bookmarks_gateway.models.tokens import StoredTokenRecord

from .base import TokenStorageError, TokenStore

PARTITION_KEY = "oauth#twitter"


class DynamoDBTokenStore(TokenStore):
    """Stores each token as an item under a fixed partition key."""

    backend_name = "dynamodb"

    def __init__(
        self,
        *,
        table_name: str,
        region_name: str = "us-east-1",
        table: Any = None,
    ) -> None:
        super().__init__()
        if table is None:
            resource = boto3.resource("dynamodb", region_name=region_name)
            table = resource.Table(table_name)
        self._table = table

    def _get_item(self, key: str) -> Optional[str]:
        try:
            response = self._table.get_item(
                Key={"pk": PARTITION_KEY, "sk": key},
                ConsistentRead=True,
            )
        except (BotoCoreError, ClientError) as exc:
            raise TokenStorageError(str(exc)) from exc
        item = response.get("Item")
        if not item:
            return None
        return item.get("value")

    def _put_item(self, key: str, value: str) -> None:
        # put_item replaces any existing item with the same key.
        record = StoredTokenRecord(key=key, value=value)
        item = {
            "pk": PARTITION_KEY,
            "sk": record.key,
            "value": record.value,
            "updated_at": record.updated_at.isoformat(),
        }
        try:
            self._table.put_item(Item=item)
        except (BotoCoreError, ClientError) as exc:
            raise TokenStorageError(str(exc)) from exc

    async def _read(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self._get_item, key)

    async def _write(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._put_item, key, value)


__all__ = ["DynamoDBTokenStore", "PARTITION_KEY"]
