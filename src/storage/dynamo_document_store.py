"""DynamoDB-backed storage for proposal documents."""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from src.compositor.errors import DocumentNotFoundError, PersistenceError

from .base import DocumentStore

logger = logging.getLogger(__name__)


def to_dynamo(value: Any) -> Any:
    """Convert a value into types the DynamoDB resource API accepts."""
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, float):
        # str() avoids binary float expansion, e.g. 0.1 -> Decimal("0.1")
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: to_dynamo(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_dynamo(v) for v in value]
    return value


def from_dynamo(value: Any) -> Any:
    """Convert a DynamoDB item back to plain Python types."""
    if isinstance(value, Decimal):
        if value % 1 == 0:
            return int(value)
        return value
    if isinstance(value, dict):
        return {k: from_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [from_dynamo(v) for v in value]
    if isinstance(value, set):
        return [from_dynamo(v) for v in value]
    return value


class DynamoDocumentStore(DocumentStore):
    """Manages proposal documents in DynamoDB."""

    def __init__(self, table_name: str = "proposals", region: Optional[str] = None, table=None):
        """Initialize with DynamoDB table.

        Args:
            table_name: Name of the DynamoDB table
            region: Optional AWS region
            table: Optional table resource (for testing)
        """
        self.table_name = table_name
        if table is not None:
            self.table = table
        else:
            self.dynamodb = boto3.resource("dynamodb", region_name=region) if region else boto3.resource("dynamodb")
            self.table = self.dynamodb.Table(table_name)

    def fetch_document(self, document_id: str) -> Dict[str, Any]:
        try:
            response = self.table.get_item(Key={"id": document_id}, ConsistentRead=True)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Error fetching proposal {document_id}: {str(e)}")
            raise PersistenceError(
                f"Failed to fetch proposal {document_id}", document_id=document_id, original_error=e
            ) from e

        if "Item" not in response:
            logger.warning(f"Proposal {document_id} not found in {self.table_name}")
            raise DocumentNotFoundError(f"Proposal {document_id} not found", document_id=document_id)

        return from_dynamo(response["Item"])

    def update_document(
        self, document_id: str, fields: Dict[str, Any], actor_id: str, actor_name: str
    ) -> None:
        fields = {k: v for k, v in fields.items() if k != "id"}
        if not fields:
            return

        names: Dict[str, str] = {}
        values: Dict[str, Any] = {}
        assignments = []
        for i, (key, value) in enumerate(sorted(fields.items())):
            names[f"#f{i}"] = key
            values[f":v{i}"] = to_dynamo(value)
            assignments.append(f"#f{i} = :v{i}")

        names.update(
            {"#updated_at": "updated_at", "#updated_by": "updated_by", "#updated_by_name": "updated_by_name"}
        )
        values.update(
            {
                ":updated_at": datetime.now(timezone.utc).isoformat(),
                ":updated_by": actor_id,
                ":updated_by_name": actor_name,
            }
        )
        assignments.extend(
            [
                "#updated_at = :updated_at",
                "#updated_by = :updated_by",
                "#updated_by_name = :updated_by_name",
            ]
        )

        try:
            self.table.update_item(
                Key={"id": document_id},
                UpdateExpression="SET " + ", ".join(assignments),
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
                ConditionExpression="attribute_exists(id)",
            )
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                logger.warning(f"Update rejected, proposal {document_id} does not exist")
                raise DocumentNotFoundError(
                    f"Proposal {document_id} not found", document_id=document_id, original_error=e
                ) from e
            logger.error(f"Error updating proposal {document_id}: {str(e)}")
            raise PersistenceError(
                f"Failed to update proposal {document_id}", document_id=document_id, original_error=e
            ) from e
        except BotoCoreError as e:
            logger.error(f"Error updating proposal {document_id}: {str(e)}")
            raise PersistenceError(
                f"Failed to update proposal {document_id}", document_id=document_id, original_error=e
            ) from e

        logger.info(
            f"Updated proposal {document_id} fields {sorted(fields)} by {actor_name} ({actor_id})"
        )
