import time

import structlog
from botocore.exceptions import ClientError

from app.config import TABLE_NAME
from app.database.dynamodb import get_db_connection
from app.logging_config import setup_logging

logger = structlog.get_logger()


def create_table_if_not_exists(table_name=TABLE_NAME, dynamodb=None):
    """Create DynamoDB table with GSIs if it doesn't exist"""

    dynamodb = dynamodb or get_db_connection()

    try:
        # Check if table exists
        table = dynamodb.Table(table_name)
        table.table_status
        logger.info("table_exists", table_name=table_name)
        return table
    except ClientError as e:
        if e.response["Error"]["Code"] != "ResourceNotFoundException":
            raise

    # Create table with GSIs
    table = dynamodb.create_table(
        TableName=table_name,
        KeySchema=[
            {"AttributeName": "PK", "KeyType": "HASH"},
            {"AttributeName": "SK", "KeyType": "RANGE"},
        ],
        AttributeDefinitions=[
            {"AttributeName": "PK", "AttributeType": "S"},
            {"AttributeName": "SK", "AttributeType": "S"},
            {"AttributeName": "GSI_Conferences_PK", "AttributeType": "S"},
            {"AttributeName": "GSI_Conferences_SK", "AttributeType": "S"},
            {"AttributeName": "GSI_ByCity_PK", "AttributeType": "S"},
            {"AttributeName": "GSI_ByCity_SK", "AttributeType": "S"},
        ],
        BillingMode="PAY_PER_REQUEST",
        GlobalSecondaryIndexes=[
            {
                "IndexName": "GSI_Conferences",
                "KeySchema": [
                    {"AttributeName": "GSI_Conferences_PK", "KeyType": "HASH"},
                    {"AttributeName": "GSI_Conferences_SK", "KeyType": "RANGE"},
                ],
                "Projection": {"ProjectionType": "ALL"},
            },
            {
                "IndexName": "GSI_ByCity",
                "KeySchema": [
                    {"AttributeName": "GSI_ByCity_PK", "KeyType": "HASH"},
                    {"AttributeName": "GSI_ByCity_SK", "KeyType": "RANGE"},
                ],
                "Projection": {"ProjectionType": "ALL"},
            },
        ],
    )

    # Wait for table to be ready
    logger.info("table_creating", table_name=table_name)
    table.wait_until_exists()

    # Wait for GSIs to be active
    while True:
        table.reload()
        gsi_statuses = [gsi["IndexStatus"] for gsi in table.global_secondary_indexes]
        if all(status == "ACTIVE" for status in gsi_statuses):
            break
        time.sleep(1)

    logger.info("table_created", table_name=table_name)
    return table


def delete_table(table_name=TABLE_NAME, dynamodb=None):
    """Delete DynamoDB table"""
    dynamodb = dynamodb or get_db_connection()

    try:
        table = dynamodb.Table(table_name)
        table.delete()
        table.wait_until_not_exists()
        logger.info("table_deleted", table_name=table_name)
    except ClientError as e:
        if e.response["Error"]["Code"] != "ResourceNotFoundException":
            raise
        logger.info("table_missing", table_name=table_name)


if __name__ == "__main__":
    setup_logging()
    create_table_if_not_exists()
