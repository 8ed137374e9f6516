"""
CDK construct for the vpc-layout VPC.

Renders a derived SubnetPlan as CloudFormation resources, one public and one
private subnet per availability zone.
"""

from typing import List, Optional

from aws_cdk import (
    CfnOutput,
    Stack,
    Tags,
    aws_ec2,
)
from constructs import Construct

from .config import VpcSettings
from .layout import InvalidCidrError, SubnetPlan, derive_layout


class VpcConstruct(Construct):
    """CDK construct for the vpc-layout VPC."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        vpc_id: str | None = None,
        available_zones: Optional[List[str]] = None,
        settings: Optional[VpcSettings] = None,
    ) -> None:
        """Initialized construct."""
        super().__init__(scope, construct_id)

        if settings is None:
            env_file = self.node.try_get_context("env_file")
            if env_file:
                settings = VpcSettings(_env_file=f"envs/{env_file}.env")
            else:
                settings = VpcSettings()

        self.plan: SubnetPlan | None = None

        if vpc_id:
            self.vpc = aws_ec2.Vpc.from_lookup(
                self,
                "VPC",
                vpc_id=vpc_id,
            )
            self.vpc_id = self.vpc.vpc_id
            return

        zones = available_zones or Stack.of(self).availability_zones
        self.plan = derive_layout(settings.cidr, settings.sizing_preference(), zones)
        if self.plan.block.version != 4:
            raise InvalidCidrError(
                f"VPC CIDR block must be IPv4, got {self.plan.block}"
            )

        self.vpc = aws_ec2.CfnVPC(
            self,
            "VPC",
            cidr_block=str(self.plan.block),
            enable_dns_hostnames=settings.enable_dns_hostnames,
            enable_dns_support=settings.enable_dns_support,
        )
        Tags.of(self.vpc).add("Name", settings.name)
        self.vpc_id = self.vpc.ref

        self.public_subnets = self._create_public_subnets(settings.name)
        self.nat_gateways = self._create_nat_gateways()
        self.private_subnets = self._create_private_subnets(settings.name)

        CfnOutput(self, "VpcId", value=self.vpc_id)
        CfnOutput(self, "AvailabilityZones", value=",".join(self.plan.zones))
        CfnOutput(self, "NatStrategy", value=self.plan.nat_strategy.value)
        CfnOutput(
            self,
            "PublicSubnetIds",
            value=",".join(subnet.ref for subnet in self.public_subnets),
        )
        CfnOutput(
            self,
            "PrivateSubnetIds",
            value=",".join(subnet.ref for subnet in self.private_subnets),
        )

    def _create_public_subnets(self, name: str) -> List[aws_ec2.CfnSubnet]:
        """Public subnets routed through an internet gateway"""
        internet_gateway = aws_ec2.CfnInternetGateway(self, "InternetGateway")
        attachment = aws_ec2.CfnVPCGatewayAttachment(
            self,
            "InternetGatewayAttachment",
            vpc_id=self.vpc_id,
            internet_gateway_id=internet_gateway.ref,
        )

        route_table = aws_ec2.CfnRouteTable(self, "PublicRouteTable", vpc_id=self.vpc_id)
        route = aws_ec2.CfnRoute(
            self,
            "PublicDefaultRoute",
            route_table_id=route_table.ref,
            destination_cidr_block="0.0.0.0/0",
            gateway_id=internet_gateway.ref,
        )
        route.add_dependency(attachment)

        subnets = []
        for i, cidr in enumerate(self.plan.public_subnets):
            subnet = aws_ec2.CfnSubnet(
                self,
                f"PublicSubnet{i + 1}",
                vpc_id=self.vpc_id,
                cidr_block=str(cidr),
                availability_zone=self.plan.zone_for(i),
                map_public_ip_on_launch=True,
            )
            Tags.of(subnet).add("Name", f"{name}-public-{i + 1}")
            aws_ec2.CfnSubnetRouteTableAssociation(
                self,
                f"PublicSubnet{i + 1}RouteTableAssociation",
                route_table_id=route_table.ref,
                subnet_id=subnet.ref,
            )
            subnets.append(subnet)
        return subnets

    def _create_nat_gateways(self) -> List[aws_ec2.CfnNatGateway]:
        """NAT gateways placed in the leading public subnets"""
        nat_gateways = []
        for i, subnet in enumerate(self.public_subnets[: self.plan.nat_gateway_count]):
            eip = aws_ec2.CfnEIP(self, f"NatGateway{i + 1}EIP", domain="vpc")
            nat_gateways.append(
                aws_ec2.CfnNatGateway(
                    self,
                    f"NatGateway{i + 1}",
                    subnet_id=subnet.ref,
                    allocation_id=eip.attr_allocation_id,
                )
            )
        return nat_gateways

    def _create_private_subnets(self, name: str) -> List[aws_ec2.CfnSubnet]:
        """Private subnets, each with its own route table"""
        subnets = []
        for i, cidr in enumerate(self.plan.private_subnets):
            subnet = aws_ec2.CfnSubnet(
                self,
                f"PrivateSubnet{i + 1}",
                vpc_id=self.vpc_id,
                cidr_block=str(cidr),
                availability_zone=self.plan.zone_for(i),
            )
            Tags.of(subnet).add("Name", f"{name}-private-{i + 1}")

            route_table = aws_ec2.CfnRouteTable(
                self, f"PrivateRouteTable{i + 1}", vpc_id=self.vpc_id
            )
            aws_ec2.CfnSubnetRouteTableAssociation(
                self,
                f"PrivateSubnet{i + 1}RouteTableAssociation",
                route_table_id=route_table.ref,
                subnet_id=subnet.ref,
            )

            if self.nat_gateways:
                # gateway in the same zone, or the shared one
                nat_gateway = self.nat_gateways[i % len(self.nat_gateways)]
                aws_ec2.CfnRoute(
                    self,
                    f"PrivateSubnet{i + 1}DefaultRoute",
                    route_table_id=route_table.ref,
                    destination_cidr_block="0.0.0.0/0",
                    nat_gateway_id=nat_gateway.ref,
                )
            subnets.append(subnet)
        return subnets
