from typing import Any, Dict, Iterable, List, Optional, Tuple

import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError

from app.config import (
    AWS_ACCESS_KEY_ID,
    AWS_DEFAULT_REGION,
    AWS_SECRET_ACCESS_KEY,
    DYNAMODB_ENDPOINT_URL,
    TABLE_NAME,
)

# BatchGetItem accepts at most 100 keys per request
BATCH_GET_LIMIT = 100

ItemKey = Tuple[str, str]


def get_db_connection():
    return boto3.resource(
        "dynamodb",
        endpoint_url=DYNAMODB_ENDPOINT_URL or None,
        region_name=AWS_DEFAULT_REGION,
        aws_access_key_id=AWS_ACCESS_KEY_ID,
        aws_secret_access_key=AWS_SECRET_ACCESS_KEY,
    )


def is_transaction_cancelled(error: ClientError) -> bool:
    return error.response["Error"]["Code"] == "TransactionCanceledException"


class EntityStore:
    """
    Narrow key/value + query interface over the single-table layout.
    Items are addressed by their (PK, SK) pair.
    """

    def __init__(self, dynamodb_resource, table_name: str = TABLE_NAME):
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table = dynamodb_resource.Table(table_name)
        # The resource-level client serializes plain Python values
        self.client = dynamodb_resource.meta.client

    def get(self, key: ItemKey) -> Optional[Dict[str, Any]]:
        pk, sk = key
        response = self.table.get_item(Key={"PK": pk, "SK": sk}, ConsistentRead=True)
        return response.get("Item")

    def get_many(self, keys: Iterable[ItemKey]) -> Dict[ItemKey, Dict[str, Any]]:
        """Batch fetch; missing items are simply absent from the result"""
        unique_keys = list(dict.fromkeys(keys))
        found: Dict[ItemKey, Dict[str, Any]] = {}

        for start in range(0, len(unique_keys), BATCH_GET_LIMIT):
            chunk = unique_keys[start : start + BATCH_GET_LIMIT]
            request = {
                self.table_name: {
                    "Keys": [{"PK": pk, "SK": sk} for pk, sk in chunk],
                    "ConsistentRead": True,
                }
            }
            while request:
                response = self.dynamodb.batch_get_item(RequestItems=request)
                for item in response.get("Responses", {}).get(self.table_name, []):
                    found[(item["PK"], item["SK"])] = item
                request = response.get("UnprocessedKeys") or None

        return found

    def put(self, item: Dict[str, Any], **conditions: Any) -> None:
        """Single-item put; `conditions` are passed through to PutItem"""
        self.table.put_item(Item=item, **conditions)

    def transact_get(self, keys: List[ItemKey]) -> List[Optional[Dict[str, Any]]]:
        """Read several items as one consistent snapshot, in request order"""
        response = self.client.transact_get_items(
            TransactItems=[
                {"Get": {"TableName": self.table_name, "Key": {"PK": pk, "SK": sk}}}
                for pk, sk in keys
            ]
        )
        return [entry.get("Item") for entry in response.get("Responses", [])]

    def transact_put(self, puts: List[Dict[str, Any]]) -> None:
        """
        Write several items atomically. Each entry holds "Item" and optionally
        "ConditionExpression", "ExpressionAttributeNames" and
        "ExpressionAttributeValues". Raises ClientError with code
        TransactionCanceledException when any condition fails.
        """
        transact_items = [
            {"Put": {"TableName": self.table_name, **put}} for put in puts
        ]
        self.client.transact_write_items(TransactItems=transact_items)

    def query(
        self,
        partition_attr: str,
        partition_value: str,
        index_name: Optional[str] = None,
        sort_attr: Optional[str] = None,
        sort_prefix: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Return every item of one partition (table or index), following pagination"""
        condition = Key(partition_attr).eq(partition_value)
        if sort_attr and sort_prefix:
            condition = condition & Key(sort_attr).begins_with(sort_prefix)

        query_params: Dict[str, Any] = {"KeyConditionExpression": condition}
        if index_name:
            query_params["IndexName"] = index_name

        items: List[Dict[str, Any]] = []
        while True:
            response = self.table.query(**query_params)
            items.extend(response.get("Items", []))
            last_evaluated_key = response.get("LastEvaluatedKey")
            if not last_evaluated_key:
                break
            query_params["ExclusiveStartKey"] = last_evaluated_key

        return items

    def allocate_id(self, counter_name: str) -> int:
        """Atomically allocate the next numeric id for a kind"""
        response = self.table.update_item(
            Key={"PK": "COUNTER", "SK": counter_name},
            UpdateExpression="ADD lastId :inc",
            ExpressionAttributeValues={":inc": 1},
            ReturnValues="UPDATED_NEW",
        )
        return int(response["Attributes"]["lastId"])
