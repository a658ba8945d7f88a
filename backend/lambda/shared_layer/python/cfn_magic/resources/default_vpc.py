"""DefaultVpc - report facts about the account's default VPC.

Subnets that map a public IP on launch are treated as public. Lookups run
one after another; each depends on the VPC id from the first.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from ..errors import DependencyError
from ..resource import ResourceRequest, ResourceResult, region_from_stack_id

logger = logging.getLogger(__name__)


class DefaultVpc:
    def __init__(self, request: ResourceRequest) -> None:
        self.region = request.properties.get("Region") or region_from_stack_id(request.stack_id)
        self.ec2 = request.clients("ec2", self.region)

    def _vpc_filter(self, vpc_id: str) -> Dict[str, Any]:
        return {"Filters": [{"Name": "vpc-id", "Values": [vpc_id]}]}

    def create(self) -> Optional[ResourceResult]:
        vpcs = self.ec2.describe_vpcs(Filters=[{"Name": "isDefault", "Values": ["true"]}]).get("Vpcs") or []
        if not vpcs:
            raise DependencyError(f"No default VPC found in {self.region or 'the current region'}")
        vpc_id = vpcs[0]["VpcId"]

        subnets = self.ec2.describe_subnets(**self._vpc_filter(vpc_id)).get("Subnets") or []
        route_tables = self.ec2.describe_route_tables(**self._vpc_filter(vpc_id)).get("RouteTables") or []

        public = [s for s in subnets if s.get("MapPublicIpOnLaunch")]
        private = [s for s in subnets if not s.get("MapPublicIpOnLaunch")]

        info = {
            "VpcId": vpc_id,
            "AvailabilityZones": [s["AvailabilityZone"] for s in public],
            "AvailabilityZoneCount": len(public),
            "PrivateSubnetAvailabilityZones": [s["AvailabilityZone"] for s in private],
            "PrivateSubnetAvailabilityZoneCount": len(private),
            "PublicSubnets": [s["SubnetId"] for s in public],
            "PrivateSubnets": [s["SubnetId"] for s in private],
            "RouteTable": route_tables[0]["RouteTableId"] if route_tables else None,
        }
        logger.info("[INFO] Default VPC %s: %d public / %d private subnets", vpc_id, len(public), len(private))
        return ResourceResult(vpc_id, info)

    def modify(self) -> Optional[ResourceResult]:
        return self.create()

    def remove(self) -> Optional[ResourceResult]:
        return None
