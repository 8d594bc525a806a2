"""
Network Perimeter Builder.

Scopes the API service's security group to the CIDRs of the application
subnets, one TCP ingress rule per subnet on the service port. The NLB in front
of the tasks preserves client addresses, so the ranges come from the subnets
the load balancer lives in.
"""
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from aws_cdk import aws_ec2 as ec2

from .context import resolve_subnet_cidr
from .errors import SubnetLookupError

logger = logging.getLogger(__name__)


def resolve_subnet_cidrs(context: Mapping[str, Any], subnet_ids: Iterable[str]) -> dict[str, str]:
    """Resolve every id or raise SubnetLookupError listing all the misses."""
    resolved: dict[str, str] = {}
    missing: list[str] = []
    for subnet_id in subnet_ids:
        cidr = resolve_subnet_cidr(context, subnet_id)
        if cidr is None:
            missing.append(subnet_id)
        else:
            resolved[subnet_id] = cidr

    if missing:
        logger.warning("Subnet lookup miss for %s", ", ".join(missing))
        raise SubnetLookupError(missing)
    return resolved


def build_service_perimeter(
    security_group: ec2.SecurityGroup,
    port: int,
    context: Mapping[str, Any],
    subnet_ids: Iterable[str],
    description: str,
) -> dict[str, str]:
    """
    Add one ingress rule per subnet and return the subnet → CIDR map used.

    All ids are resolved before the first rule is added, so a miss leaves the
    security group untouched.
    """
    cidrs = resolve_subnet_cidrs(context, subnet_ids)
    for subnet_id, cidr in cidrs.items():
        security_group.add_ingress_rule(
            peer=ec2.Peer.ipv4(cidr),
            connection=ec2.Port.tcp(port),
            description=description,
        )
        logger.debug("Ingress %s/tcp from %s (%s)", port, cidr, subnet_id)
    return cidrs
