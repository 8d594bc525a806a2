"""
Edge distribution — CloudFront in front of the static site and the API.

  /*      → WebTier bucket (origin access control, cached)
  /api/*  → API Gateway stage (not cached), X-Origin-Identity: <trust secret>
"""
from dataclasses import dataclass

import aws_cdk as cdk
from aws_cdk import aws_cloudfront as cf
from aws_cdk import aws_cloudfront_origins as origins
from aws_cdk import aws_s3 as s3
from constructs import Construct

from .api_tier import ApiTierOutputs
from .logging_tools import LoggingTools
from .origin_trust import ORIGIN_HEADER_NAME

CLOUDFRONT_LOGGING_PREFIX = "cloudfront"
API_PATH_PATTERN = "api/*"


@dataclass(frozen=True)
class EdgeOutputs:
    distribution: cf.Distribution
    logging_prefix: str = CLOUDFRONT_LOGGING_PREFIX


def api_domain_name(api_url: str) -> str:
    """https://abc.execute-api.region.amazonaws.com/prod/ → abc.execute-api.region.amazonaws.com"""
    without_protocol = cdk.Fn.select(1, cdk.Fn.split("://", api_url))
    return cdk.Fn.select(0, cdk.Fn.split("/", without_protocol))


def build_api_origin(api: ApiTierOutputs) -> origins.HttpOrigin:
    return origins.HttpOrigin(
        api_domain_name(api.api.url),
        protocol_policy=cf.OriginProtocolPolicy.HTTPS_ONLY,
        origin_ssl_protocols=[cf.OriginSslPolicy.TLS_V1_2],
        origin_path=f"/{api.stage_name}",
        custom_headers={ORIGIN_HEADER_NAME: api.trust_secret.header_value()},
    )


def build_distribution(
    scope: Construct,
    prefix: str,
    site_bucket: s3.IBucket,
    api: ApiTierOutputs,
    logging_tools: LoggingTools,
) -> EdgeOutputs:
    origin_api_policy = cf.OriginRequestPolicy(
        scope,
        f"{prefix}api-origin-policy",
        comment="API origin policy",
        query_string_behavior=cf.OriginRequestQueryStringBehavior.all(),
    )

    distribution = cf.Distribution(
        scope,
        f"{prefix}-distribution",
        default_behavior=cf.BehaviorOptions(
            origin=origins.S3BucketOrigin.with_origin_access_control(site_bucket),
            cache_policy=cf.CachePolicy.CACHING_OPTIMIZED,
            viewer_protocol_policy=cf.ViewerProtocolPolicy.HTTPS_ONLY,
        ),
        additional_behaviors={
            API_PATH_PATTERN: cf.BehaviorOptions(
                origin=build_api_origin(api),
                cache_policy=cf.CachePolicy.CACHING_DISABLED,
                origin_request_policy=origin_api_policy,
                allowed_methods=cf.AllowedMethods.ALLOW_ALL,
                viewer_protocol_policy=cf.ViewerProtocolPolicy.HTTPS_ONLY,
            ),
        },
        default_root_object="index.html",
        price_class=cf.PriceClass.PRICE_CLASS_100,
        enable_logging=True,
        log_bucket=logging_tools.bucket,
        log_file_prefix=logging_tools.mark_delivery(CLOUDFRONT_LOGGING_PREFIX),
        minimum_protocol_version=cf.SecurityPolicyProtocol.TLS_V1_2_2021,
        http_version=cf.HttpVersion.HTTP2,
    )
    return EdgeOutputs(distribution=distribution)
