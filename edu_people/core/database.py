"""DynamoDB connectivity layer for the directory."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import boto3
from botocore.exceptions import ClientError

from edu_people.core.config import settings

logger = logging.getLogger(__name__)

KEY_ATTRIBUTE = "ucinetid"


class DatabaseManager:
    """Lazily establishes the DynamoDB resource and people table handle."""

    def __init__(self) -> None:
        self.dynamodb: Optional[Any] = None
        self.people_table: Optional[Any] = None

    async def initialize(self) -> None:
        """Create the boto3 resource and bind the configured table."""

        logger.info("Initializing DynamoDB resource for table %s", settings.PEOPLE_TABLE)

        def connect() -> Any:
            return boto3.resource(
                "dynamodb",
                region_name=settings.AWS_REGION,
                endpoint_url=str(settings.DYNAMODB_ENDPOINT_URL) if settings.DYNAMODB_ENDPOINT_URL else None,
            )

        self.dynamodb = await asyncio.to_thread(connect)
        self.people_table = self.dynamodb.Table(settings.PEOPLE_TABLE)

        logger.info("Database manager initialized")

    async def ensure_table(self) -> bool:
        """Create the people table when missing. Returns True if it was created."""

        if self.dynamodb is None:
            await self.initialize()

        def create() -> bool:
            try:
                table = self.dynamodb.create_table(
                    TableName=settings.PEOPLE_TABLE,
                    BillingMode="PAY_PER_REQUEST",
                    AttributeDefinitions=[{"AttributeName": KEY_ATTRIBUTE, "AttributeType": "S"}],
                    KeySchema=[{"AttributeName": KEY_ATTRIBUTE, "KeyType": "HASH"}],
                )
            except ClientError as exc:
                if exc.response.get("Error", {}).get("Code") == "ResourceInUseException":
                    return False
                raise
            table.wait_until_exists()
            return True

        created = await asyncio.to_thread(create)
        if created:
            logger.info("Created DynamoDB table %s", settings.PEOPLE_TABLE)
        else:
            logger.info("DynamoDB table %s already exists", settings.PEOPLE_TABLE)
        return created

    async def close(self) -> None:
        """Drop the cached handles; boto3 resources hold no open sockets to close."""

        logger.info("Closing database handles")
        self.people_table = None
        self.dynamodb = None


# Singleton instance shared by the API dependencies and the CLI
database_manager = DatabaseManager()
