#!/usr/bin/env python3
"""
Sample edge application — CDK App Entry Point

Usage:
  1. Copy .env.example to .env at the repo root and fill in all values.
  2. From the infra/ directory:
       pip install -e "..[test]"
       cdk bootstrap aws://ACCOUNT_ID/REGION
       cdk deploy
"""
import logging
import os
import sys

import aws_cdk as cdk
from dotenv import load_dotenv

from topology.context import load_context_document
from topology.errors import TopologyConfigError
from topology.props import SampleAppProps
from topology.sample_app_stack import SampleAppStack

# Load .env from repo root (one level up from infra/)
load_dotenv(dotenv_path=os.path.join(os.path.dirname(__file__), "..", ".env"))

logging.basicConfig(
    level=logging.DEBUG if os.environ.get("TOPOLOGY_DEBUG") else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s — %(message)s",
)

# ---------------------------------------------------------------------------
# Resolve required configuration
# ---------------------------------------------------------------------------

def _require(*keys: str) -> str:
    for key in keys:
        val = os.environ.get(key, "")
        if val:
            return val
    print(f"ERROR: Required environment variable '{keys[0]}' is not set.", file=sys.stderr)
    print("       Copy .env.example → .env and fill in all values.", file=sys.stderr)
    sys.exit(1)


AWS_ACCOUNT_ID = _require("AWS_ACCOUNT_ID", "CDK_DEFAULT_ACCOUNT")
AWS_REGION = _require("AWS_REGION", "CDK_DEFAULT_REGION")

try:
    props = SampleAppProps.from_env(os.environ)
except TopologyConfigError as exc:
    print(f"ERROR: {exc}", file=sys.stderr)
    print("       Copy .env.example → .env and fill in all values.", file=sys.stderr)
    sys.exit(1)

# The CDK CLI passes cached lookups (VPC subnets and their CIDRs) here.
context_document = load_context_document(os.environ.get("CDK_CONTEXT_JSON"))

env = cdk.Environment(account=AWS_ACCOUNT_ID, region=AWS_REGION)

app = cdk.App()

SampleAppStack(
    app,
    f"{props.prefix.capitalize()}SampleAppStack",
    props=props,
    context_document=context_document,
    env=env,
)

cdk.Tags.of(app).add("Project", "sea-sample-app")
cdk.Tags.of(app).add("Environment", os.environ.get("ENVIRONMENT", "development"))

app.synth()
