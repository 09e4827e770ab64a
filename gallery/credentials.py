import json
from dataclasses import dataclass

import boto3
import structlog
from botocore.exceptions import ClientError

from gallery.config import Settings

logger = structlog.get_logger()


@dataclass(frozen=True)
class DatabaseCredentials:
    username: str
    password: str
    database: str


def fetch_database_credentials(settings: Settings, client=None) -> DatabaseCredentials:
    """Read the database login from the Secrets Manager secret named by DB_SECRET_ARN.

    The secret is a JSON document with ``username``, ``password`` and ``dbname``.
    """
    if client is None:
        client = boto3.client("secretsmanager", region_name=settings.AWS_REGION)
    try:
        res = client.get_secret_value(SecretId=settings.DB_SECRET_ARN)
    except ClientError:
        logger.error("db_credentials_unavailable", secret_id=settings.DB_SECRET_ARN)
        raise
    secret = json.loads(res["SecretString"])
    return DatabaseCredentials(
        username=secret["username"],
        password=secret["password"],
        database=secret["dbname"],
    )
