"""Availability zone discovery for the VPC layout."""

import logging
from typing import List, Optional

import boto3

logger = logging.getLogger(__name__)


def discover_zones(region: str, client: Optional[object] = None) -> List[str]:
    """
    List the availability zone names usable for subnets in a region.

    Local and Wavelength zones and zones that are not in the `available`
    state are left out.

    Args:
        region: AWS region name, i.e. `us-east-1`
        client: Optional EC2 client, one is created for `region` if omitted

    Returns:
        Sorted list of zone names
    """
    if client is None:
        client = boto3.client("ec2", region_name=region)

    response = client.describe_availability_zones(
        Filters=[
            {"Name": "state", "Values": ["available"]},
            {"Name": "zone-type", "Values": ["availability-zone"]},
        ]
    )
    zones = sorted(az["ZoneName"] for az in response.get("AvailabilityZones", []))

    logger.info("Discovered %d availability zones in %s: %s", len(zones), region, zones)
    return zones
