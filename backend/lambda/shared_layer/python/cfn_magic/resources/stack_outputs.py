"""StackOutputs - expose another stack's outputs through Fn::GetAtt."""
from __future__ import annotations

from typing import Optional

from ..errors import DependencyError
from ..resource import ResourceRequest, ResourceResult, require


class StackOutputs:
    def __init__(self, request: ResourceRequest) -> None:
        props = request.properties
        self.stack_name = require(props, "StackName")
        self.region = require(props, "Region")
        self.cfn = request.clients("cloudformation", self.region)

    def create(self) -> Optional[ResourceResult]:
        stacks = self.cfn.describe_stacks(StackName=self.stack_name).get("Stacks") or []
        if not stacks:
            raise DependencyError(f"No stack named {self.stack_name} was found in {self.region}")
        outputs = {
            output["OutputKey"]: output.get("OutputValue")
            for output in stacks[0].get("Outputs") or []
        }
        return ResourceResult(None, outputs)

    def modify(self) -> Optional[ResourceResult]:
        return self.create()

    def remove(self) -> Optional[ResourceResult]:
        return None
