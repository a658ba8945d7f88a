"""DynamoDBStreamLabel - look up the latest stream label of a table.

Create and Update fail when the table has no stream.
"""
from __future__ import annotations

from typing import Optional

from ..errors import DependencyError
from ..resource import ResourceRequest, ResourceResult, require


class DynamoDBStreamLabel:
    def __init__(self, request: ResourceRequest) -> None:
        props = request.properties
        self.table_name = require(props, "TableName")
        self.table_region = require(props, "TableRegion")
        self.dynamodb = request.clients("dynamodb", self.table_region)

    def create(self) -> Optional[ResourceResult]:
        table = self.dynamodb.describe_table(TableName=self.table_name).get("Table") or {}
        label = table.get("LatestStreamLabel")
        if not label:
            raise DependencyError("Table is not stream enabled")
        return ResourceResult(label)

    def modify(self) -> Optional[ResourceResult]:
        return self.create()

    def remove(self) -> Optional[ResourceResult]:
        return None
