from typing import Optional

from pydantic import Field, StringConstraints
from pydantic_settings import BaseSettings
from typing_extensions import Annotated

AwsVpcId = Annotated[str, StringConstraints(pattern=r"^vpc-([a-z0-9]{8}|[a-z0-9]{17})$")]


class vpcLayoutAppSettings(BaseSettings):
    """Application settings."""

    # App name and deployment stage
    app_name: Optional[str] = Field(
        "vpc-layout",
        description="Optional app name used to name stack and resources",
    )

    stage: str = Field(
        ...,
        description=(
            "Deployment stage used to name stack and resources, "
            "i.e. `dev`, `staging`, `prod`"
        ),
    )

    cdk_default_account: Optional[str] = Field(
        None,
        description="When deploying from a local machine the AWS account id is required to look up an existing VPC or zones",
    )
    cdk_default_region: Optional[str] = Field(
        None,
        description="When deploying from a local machine the AWS region id is required to look up an existing VPC or zones",
    )

    vpc_id: Optional[AwsVpcId] = Field(  # type: ignore
        None,
        description=(
            "Resource identifier of an existing VPC, if none a new VPC with public and private "
            "subnets will be provisioned."
        ),
    )

    lookup_zones: bool = Field(
        False,
        description="Discover the availability zones of cdk_default_region with boto3 at synth time",
    )

    def cdk_env(self) -> dict:
        """Load a cdk environment dict for stack"""

        if self.vpc_id or self.lookup_zones:
            return {
                "account": self.cdk_default_account,
                "region": self.cdk_default_region,
            }
        else:
            return {}

    def stage_name(self) -> str:
        """Force lowercase stage name"""
        return self.stage.lower()

    class Config:
        """model config."""

        env_file = ".env"
        extra = "allow"
