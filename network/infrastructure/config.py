"""Configuration options for the VPC."""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings

from .layout import SizingPreference


# https://medium.com/aws-activate-startup-blog/practical-vpc-design-8412e1a18dcc#.bmeh8m3si
class VpcSettings(BaseSettings):
    """VPC settings"""

    name: str = Field(
        "vpc-layout",
        description="Name used for the VPC and as a prefix for subnet names",
    )

    cidr: str = Field(
        "10.0.0.0/16",
        description="CIDR block of the VPC, subnets are carved out of it",
    )

    high_availability: bool = Field(
        False,
        description=(
            "Favour redundancy over cost: three availability zones and one "
            "NAT gateway per zone unless set explicitly"
        ),
    )

    az_count: int = Field(
        0,
        ge=0,
        description="Number of availability zones to span, 0 derives it from high_availability",
    )

    azs: List[str] = Field(
        [],
        description="Availability zone names, overrides zone discovery when set",
    )

    enable_nat_gateway: bool = Field(
        True,
        description="Boolean if NAT gateways should be provisioned for the private subnets",
    )

    single_nat_gateway: Optional[bool] = Field(
        None,
        description="Use one shared NAT gateway, derived from high_availability when unset",
    )

    one_nat_gateway_per_az: Optional[bool] = Field(
        None,
        description="Use one NAT gateway per availability zone, derived from high_availability when unset",
    )

    public_subnets: List[str] = Field(
        [],
        description="Explicit public subnet CIDRs, derived from cidr when empty",
    )

    private_subnets: List[str] = Field(
        [],
        description="Explicit private subnet CIDRs, derived from cidr when empty",
    )

    enable_dns_hostnames: bool = True
    enable_dns_support: bool = True

    def sizing_preference(self) -> SizingPreference:
        """Sizing inputs for the layout derivation"""
        return SizingPreference(
            explicit_zone_count=self.az_count,
            high_availability=self.high_availability,
            explicit_zones=self.azs,
            single_nat_gateway=self.single_nat_gateway,
            one_nat_gateway_per_az=self.one_nat_gateway_per_az,
            enable_nat_gateway=self.enable_nat_gateway,
            explicit_public_subnets=self.public_subnets,
            explicit_private_subnets=self.private_subnets,
        )

    class Config:
        """model config."""

        env_file = ".env"
        env_prefix = "VPC_"
        extra = "allow"
