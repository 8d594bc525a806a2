"""
WebTier — private bucket holding the static site, deployed from a local build.
"""
from dataclasses import dataclass

import aws_cdk as cdk
from aws_cdk import aws_s3 as s3
from aws_cdk import aws_s3_deployment as s3deploy
from constructs import Construct

from .logging_tools import LoggingTools

S3_LOGGING_PREFIX = "s3web"


@dataclass(frozen=True)
class WebTierProps:
    prefix: str
    static_site_build_path: str
    logging_tools: LoggingTools


@dataclass(frozen=True)
class WebTierOutputs:
    bucket: s3.Bucket
    logging_prefix: str = S3_LOGGING_PREFIX


class WebTier(Construct):
    def __init__(self, scope: Construct, construct_id: str, props: WebTierProps) -> None:
        super().__init__(scope, construct_id)

        self.bucket = s3.Bucket(
            self,
            f"{props.prefix}-web-bucket",
            encryption=s3.BucketEncryption.S3_MANAGED,
            removal_policy=cdk.RemovalPolicy.DESTROY,
            auto_delete_objects=True,
            server_access_logs_bucket=props.logging_tools.bucket,
            server_access_logs_prefix=props.logging_tools.mark_delivery(S3_LOGGING_PREFIX),
            block_public_access=s3.BlockPublicAccess.BLOCK_ALL,
            enforce_ssl=True,
        )

        s3deploy.BucketDeployment(
            self,
            f"{props.prefix}-deployment",
            sources=[s3deploy.Source.asset(props.static_site_build_path)],
            destination_bucket=self.bucket,
            retain_on_delete=False,
        )

    @property
    def outputs(self) -> WebTierOutputs:
        return WebTierOutputs(bucket=self.bucket)
