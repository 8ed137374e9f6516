import logging

from aws_cdk import (
    App,
    Stack,
    Tags,
)
from constructs import Construct

from config import vpcLayoutAppSettings
from network.infrastructure.construct import VpcConstruct
from network.infrastructure.zones import discover_zones

logging.basicConfig(level=logging.INFO)

app = App()
env_file = app.node.try_get_context("env_file")
if env_file:
    settings = vpcLayoutAppSettings(_env_file=f"envs/{env_file}.env")
else:
    settings = vpcLayoutAppSettings()


class VPCStack(Stack):
    """CDK stack for the vpc-layout vpc stack."""

    def __init__(self, scope: Construct, construct_id: str, **kwargs) -> None:
        """."""
        super().__init__(scope, construct_id, **kwargs)


vpc_stack = VPCStack(
    app,
    f"{settings.app_name}-{settings.stage}",
    env=settings.cdk_env(),
)

available_zones = None
if settings.lookup_zones and not settings.vpc_id:
    if not settings.cdk_default_region:
        raise ValueError("cdk_default_region is required to look up availability zones")
    available_zones = discover_zones(settings.cdk_default_region)

vpc = VpcConstruct(
    vpc_stack,
    "network",
    vpc_id=settings.vpc_id,
    available_zones=available_zones,
)

for key, value in {
    "Project": settings.app_name,
    "Stack": settings.stage_name(),
}.items():
    if value:
        Tags.of(app).add(key=key, value=value)

app.synth()
