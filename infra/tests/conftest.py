"""
Shared fixtures for the topology tests.

Stacks are synthesized in-process with aws_cdk.assertions; nothing talks to AWS.
"""
import dataclasses

import aws_cdk as cdk
import pytest
from aws_cdk import aws_ec2 as ec2

from topology.props import SampleAppProps
from topology_fixtures import (
    APP_SUBNET_IDS,
    CONTEXT_DOCUMENT,
    DATA_SUBNET_IDS,
    TEST_ENV,
    VPC_ID,
    ImportedVpcSampleAppStack,
    import_test_vpc,
)


@pytest.fixture
def stack() -> cdk.Stack:
    app = cdk.App()
    return cdk.Stack(app, "TestStack", env=TEST_ENV)


@pytest.fixture
def vpc(stack) -> ec2.IVpc:
    return import_test_vpc(stack)


@pytest.fixture
def sample_props(tmp_path) -> SampleAppProps:
    site = tmp_path / "web"
    site.mkdir()
    (site / "index.html").write_text("<html><body>hello</body></html>")

    api = tmp_path / "api"
    api.mkdir()
    (api / "Dockerfile").write_text("FROM python:3.12-slim\n")

    return SampleAppProps(
        vpc_id=VPC_ID,
        app_subnet_ids=APP_SUBNET_IDS,
        app_security_group="sg-0app",
        data_subnet_ids=DATA_SUBNET_IDS,
        data_security_group="sg-0data",
        db_name="sampledb",
        prefix="sea",
        static_site_build_path=str(site),
        api_container_path=str(api),
    )


@pytest.fixture
def build_sample_stack(sample_props):
    """Factory: build_sample_stack(context_document=..., **prop overrides)."""

    def _build(context_document=CONTEXT_DOCUMENT, **overrides) -> ImportedVpcSampleAppStack:
        props = dataclasses.replace(sample_props, **overrides)
        app = cdk.App()
        return ImportedVpcSampleAppStack(
            app,
            "TestSampleApp",
            props=props,
            context_document=context_document,
            env=TEST_ENV,
        )

    return _build
