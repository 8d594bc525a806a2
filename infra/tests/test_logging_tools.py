"""
Tests for the access-log bucket and Glue catalog.
"""
import pytest
from aws_cdk.assertions import Match, Template

from topology.errors import OrderingViolation
from topology.log_schemas import (
    CLOUDFRONT_ACCESS_LOG,
    LAZY_SIMPLE_SERDE,
    NLB_ACCESS_LOG,
    REGEX_SERDE,
    S3_ACCESS_LOG,
)
from topology.logging_tools import LoggingTools
from topology.web_tier import S3_LOGGING_PREFIX, WebTier, WebTierProps
from topology_fixtures import TEST_ACCOUNT, TEST_REGION


def test_log_bucket_expires_after_ninety_days(stack):
    LoggingTools(stack, "LoggingTools", prefix="sea")

    Template.from_stack(stack).has_resource_properties(
        "AWS::S3::Bucket",
        {
            "LifecycleConfiguration": {
                "Rules": [
                    {"Id": "three_months_delete", "Status": "Enabled", "ExpirationInDays": 90}
                ]
            },
            "OwnershipControls": {"Rules": [{"ObjectOwnership": "ObjectWriter"}]},
            "PublicAccessBlockConfiguration": {
                "BlockPublicAcls": True,
                "BlockPublicPolicy": True,
                "IgnorePublicAcls": True,
                "RestrictPublicBuckets": True,
            },
        },
    )


def test_glue_database_is_named_from_prefix(stack):
    tools = LoggingTools(stack, "LoggingTools", prefix="SEA")

    assert tools.database_name == "sea-db"
    Template.from_stack(stack).has_resource_properties(
        "AWS::Glue::Database",
        {"CatalogId": TEST_ACCOUNT, "DatabaseInput": {"Name": "sea-db"}},
    )


def test_no_tables_until_registered(stack):
    LoggingTools(stack, "LoggingTools", prefix="sea")
    Template.from_stack(stack).resource_count_is("AWS::Glue::Table", 0)


def test_cloudfront_table(stack):
    tools = LoggingTools(stack, "LoggingTools", prefix="sea")
    tools.mark_delivery("cloudfront")
    tools.configure_cloudfront_logging("cloudfront", "cloudfront")

    template = Template.from_stack(stack)
    template.has_resource_properties(
        "AWS::Glue::Table",
        {
            "DatabaseName": "sea-db",
            "TableInput": {
                "Name": "cloudfront",
                "TableType": "EXTERNAL_TABLE",
                "StorageDescriptor": {
                    "Location": {
                        "Fn::Join": ["", ["s3://", {"Ref": Match.any_value()}, "/cloudfront"]]
                    },
                    "SerdeInfo": {
                        "SerializationLibrary": LAZY_SIMPLE_SERDE,
                        "Parameters": {"field.delim": "\t"},
                    },
                },
            },
        },
    )
    (table,) = template.find_resources("AWS::Glue::Table").values()
    columns = table["Properties"]["TableInput"]["StorageDescriptor"]["Columns"]
    assert len(columns) == len(CLOUDFRONT_ACCESS_LOG.columns)
    assert columns[0] == {"Name": "date", "Type": "date"}


def test_s3_and_nlb_tables_use_regex_serde(stack):
    tools = LoggingTools(stack, "LoggingTools", prefix="sea")
    tools.mark_delivery("s3web")
    tools.mark_delivery("nlb")
    tools.configure_s3_logging("s3web", "s3web")
    tools.configure_nlb_logging("nlb", "nlb")

    tables = {
        t["Properties"]["TableInput"]["Name"]: t["Properties"]["TableInput"]["StorageDescriptor"]
        for t in Template.from_stack(stack).find_resources("AWS::Glue::Table").values()
    }
    assert set(tables) == {"s3web", "nlb"}
    for descriptor in tables.values():
        assert descriptor["SerdeInfo"]["SerializationLibrary"] == REGEX_SERDE
        assert "input.regex" in descriptor["SerdeInfo"]["Parameters"]

    assert len(tables["s3web"]["Columns"]) == len(S3_ACCESS_LOG.columns)
    assert len(tables["nlb"]["Columns"]) == len(NLB_ACCESS_LOG.columns)

    nlb_location = str(tables["nlb"]["Location"])
    assert f"/nlb/AWSLogs/{TEST_ACCOUNT}/elasticloadbalancing/{TEST_REGION}" in nlb_location


def test_nlb_columns_use_corrected_names():
    names = [name for name, _ in NLB_ACCESS_LOG.columns]
    assert "tls_protocol_version" in names
    assert "tls_named_group" in names


def test_tables_depend_on_database(stack):
    tools = LoggingTools(stack, "LoggingTools", prefix="sea")
    tools.mark_delivery("s3web")
    tools.configure_s3_logging("s3web", "s3web")

    template = Template.from_stack(stack)
    (database_id,) = template.find_resources("AWS::Glue::Database").keys()
    template.has_resource(
        "AWS::Glue::Table",
        {"DependsOn": Match.array_with([database_id])},
    )


@pytest.mark.parametrize(
    "register",
    [
        lambda tools: tools.configure_nlb_logging("nlb", "nlb"),
        lambda tools: tools.configure_s3_logging("s3web", "s3web"),
        lambda tools: tools.configure_cloudfront_logging("cloudfront", "cloudfront"),
    ],
)
def test_table_without_delivery_is_ordering_violation(stack, register):
    tools = LoggingTools(stack, "LoggingTools", prefix="sea")

    with pytest.raises(OrderingViolation):
        register(tools)
    Template.from_stack(stack).resource_count_is("AWS::Glue::Table", 0)


def test_delivery_to_another_prefix_does_not_count(stack):
    tools = LoggingTools(stack, "LoggingTools", prefix="sea")
    tools.mark_delivery("s3web")

    with pytest.raises(OrderingViolation, match="nlb"):
        tools.configure_nlb_logging("nlb", "nlb")


def test_web_tier_marks_its_delivery(stack, tmp_path):
    (tmp_path / "index.html").write_text("<html></html>")
    tools = LoggingTools(stack, "LoggingTools", prefix="sea")
    web = WebTier(
        stack,
        "WebTier",
        WebTierProps(prefix="sea", static_site_build_path=str(tmp_path), logging_tools=tools),
    ).outputs

    assert tools.delivered_prefixes == {S3_LOGGING_PREFIX}
    tools.configure_s3_logging(web.logging_prefix, "s3web")

    template = Template.from_stack(stack)
    template.resource_count_is("AWS::Glue::Table", 1)
    template.has_resource_properties(
        "AWS::S3::Bucket",
        {"LoggingConfiguration": {"DestinationBucketName": Match.any_value(), "LogFilePrefix": "s3web"}},
    )
