from __future__ import annotations

import boto3

from .settings import S, Settings


def aws_session(settings: Settings = S) -> boto3.session.Session:
    return boto3.session.Session(region_name=settings.aws_region or "us-east-1")


def dynamodb_table(settings: Settings = S):
    kwargs = {}
    if settings.ddb_endpoint_url:
        kwargs["endpoint_url"] = settings.ddb_endpoint_url
    ddb = aws_session(settings).resource("dynamodb", **kwargs)
    return ddb.Table(settings.store_table)
