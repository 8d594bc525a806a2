"""
Context Subnet Resolver.

The CDK CLI hands the app its cached lookup results as a JSON document
(CDK_CONTEXT_JSON). VPC lookups in that document carry `subnetGroups`, each
with a list of `{subnetId, cidr, ...}` records. We only ever read it.

    {
      "vpc-provider:account=...": {
        "vpcId": "vpc-0abc",
        "subnetGroups": [
          {"name": "App", "type": "Private",
           "subnets": [{"subnetId": "subnet-1", "cidr": "10.0.1.0/24"}]}
        ]
      }
    }
"""
import json
import logging
from collections.abc import Mapping
from typing import Any

logger = logging.getLogger(__name__)


def load_context_document(raw: str | None) -> dict[str, Any]:
    """
    Parse the serialized context document.

    A missing or malformed document is not an error here: every subnet simply
    resolves to None and the caller decides whether that is fatal.
    """
    if not raw:
        return {}
    try:
        document = json.loads(raw)
    except ValueError as exc:
        logger.warning("Ignoring malformed context document: %s", exc)
        return {}
    if not isinstance(document, dict):
        logger.warning("Ignoring context document of type %s", type(document).__name__)
        return {}
    return document


def resolve_subnet_cidr(context: Mapping[str, Any], subnet_id: str) -> str | None:
    """
    Return the CIDR of the first subnet record whose id equals `subnet_id`.

    Entries are walked in the document's key order, then groups, then subnets
    within a group, so a duplicated id resolves to its first occurrence.
    Groups and subnets that are not lists, and records whose cidr is not a
    string, are skipped. Returns None when nothing matches.
    """
    for entry in context.values():
        if not isinstance(entry, Mapping):
            continue
        groups = entry.get("subnetGroups")
        if not isinstance(groups, list):
            continue
        for group in groups:
            if not isinstance(group, Mapping):
                continue
            subnets = group.get("subnets")
            if not isinstance(subnets, list):
                continue
            for subnet in subnets:
                if not isinstance(subnet, Mapping) or subnet.get("subnetId") != subnet_id:
                    continue
                cidr = subnet.get("cidr")
                if isinstance(cidr, str) and cidr:
                    return cidr
    return None


def has_vpc_lookup(context: Mapping[str, Any], vpc_id: str) -> bool:
    """True once the CLI has cached the lookup for `vpc_id` in the document."""
    marker = f"filter.vpc-id={vpc_id}"
    return any(
        marker in key.split(":") and isinstance(entry, Mapping)
        for key, entry in context.items()
    )
