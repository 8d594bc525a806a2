"""
SampleAppStack — edge cache, API compute and relational storage in an existing VPC.

Build phases (see orchestrator.py):
  1. logging-setup         log bucket + Glue database
  2. storage-provision     DbTier (Aurora + credentials secret)
  3. compute-provision     ApiTier (Fargate + NLB + API Gateway + trust secret),
                           held back until the database cluster exists
  4. network-scoping       app-subnet ingress on the service SG, origin-check WAF
  5. edge-provision        WebTier bucket + CloudFront distribution
  6. logging-registration  Glue tables for the nlb / s3web / cloudfront prefixes

The topology context document is passed in; nothing below reads the process
environment.
"""
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import aws_cdk as cdk
from aws_cdk import aws_ec2 as ec2
from constructs import Construct

from .api_tier import ApiTier, ApiTierOutputs, ApiTierProps
from .context import has_vpc_lookup
from .db_tier import DbTier, DbTierOutputs, DbTierProps
from .edge import EdgeOutputs, build_distribution
from .logging_tools import LoggingTools
from .orchestrator import Phase, TopologyOrchestrator
from .origin_trust import OriginFirewall, build_origin_firewall
from .perimeter import build_service_perimeter
from .props import SampleAppProps
from .web_tier import WebTier, WebTierOutputs, WebTierProps

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EdgePhaseOutputs:
    web: WebTierOutputs
    edge: EdgeOutputs


class SampleAppStack(cdk.Stack):
    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        props: SampleAppProps,
        context_document: Mapping[str, Any],
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)
        self.props = props
        self.context_document = context_document
        self.orchestrator = TopologyOrchestrator()
        self.vpc = self.lookup_vpc()

        run = self.orchestrator.run
        self.logging_tools = run(Phase.LOGGING_SETUP, self._setup_logging)
        self.db_tier = run(Phase.STORAGE_PROVISION, self._provision_storage)
        self.api_tier = run(Phase.COMPUTE_PROVISION, self._provision_compute)
        self.firewall = run(Phase.NETWORK_SCOPING, self._scope_network)
        self.edge_phase = run(Phase.EDGE_PROVISION, self._provision_edge)
        run(Phase.LOGGING_REGISTRATION, self._register_logging)

        # ------------------------------------------------------------------ #
        # Outputs                                                              #
        # ------------------------------------------------------------------ #
        cdk.CfnOutput(self, "DistributionDomainName", value=self.edge_phase.edge.distribution.distribution_domain_name)
        cdk.CfnOutput(self, "ApiUrl", value=self.api_tier.api.url)
        cdk.CfnOutput(self, "OriginSecretArn", value=self.api_tier.trust_secret.secret_arn)
        cdk.CfnOutput(self, "DbSecretArn", value=self.db_tier.secret.secret_arn)

    def lookup_vpc(self) -> ec2.IVpc:
        return ec2.Vpc.from_lookup(self, "vpc-lookup", vpc_id=self.props.vpc_id)

    # ---------------------------------------------------------------------- #
    # Phases                                                                   #
    # ---------------------------------------------------------------------- #

    def _setup_logging(self) -> LoggingTools:
        """The collaborator itself is the output: tiers mark their log deliveries on it."""
        return LoggingTools(self, "LoggingTools", prefix=self.props.prefix)

    def _provision_storage(self) -> DbTierOutputs:
        tier = DbTier(
            self,
            "DbTier",
            DbTierProps(
                vpc=self.vpc,
                data_subnet_ids=self.props.data_subnet_ids,
                data_security_group=self.props.data_security_group,
                db_name=self.props.db_name,
                prefix=self.props.prefix,
            ),
        )
        return tier.outputs

    def _provision_compute(self) -> ApiTierOutputs:
        db: DbTierOutputs = self.orchestrator.outputs(Phase.STORAGE_PROVISION)
        logging_tools: LoggingTools = self.orchestrator.outputs(Phase.LOGGING_SETUP)

        tier = ApiTier(
            self,
            "ApiTier",
            ApiTierProps(
                vpc=self.vpc,
                app_subnet_ids=self.props.app_subnet_ids,
                app_security_group=self.props.app_security_group,
                db_secret=db.secret,
                prefix=self.props.prefix,
                api_container_path=self.props.api_container_path,
                logging_tools=logging_tools,
            ),
        )
        # The task only sees a secret reference; it needs the cluster itself up.
        tier.add_dependency(db.cluster, self.orchestrator, reason="service reads database at startup")
        return tier.outputs

    def _scope_network(self) -> OriginFirewall:
        api: ApiTierOutputs = self.orchestrator.outputs(Phase.COMPUTE_PROVISION)

        if has_vpc_lookup(self.context_document, self.props.vpc_id):
            build_service_perimeter(
                api.service_security_group,
                api.service_port,
                self.context_document,
                self.props.app_subnet_ids,
                description=f"{self.props.prefix} API Listener",
            )
        else:
            # The CLI resolves the lookup after this pass and synthesizes again;
            # a template from this pass is never deployed.
            logger.warning("VPC %s not in context yet, ingress deferred", self.props.vpc_id)
            cdk.Annotations.of(self).add_warning(
                f"VPC lookup for {self.props.vpc_id} pending; API ingress rules not added"
            )

        firewall = build_origin_firewall(
            self, self.props.prefix, api.trust_secret, api.api, api.stage_name
        )
        self.orchestrator.add_dependency(
            firewall.association, firewall.web_acl, reason="associate an existing web ACL"
        )
        self.orchestrator.add_dependency(
            firewall.association, api.api.deployment_stage, reason="associate a deployed stage"
        )
        return firewall

    def _provision_edge(self) -> EdgePhaseOutputs:
        logging_tools: LoggingTools = self.orchestrator.outputs(Phase.LOGGING_SETUP)
        api: ApiTierOutputs = self.orchestrator.outputs(Phase.COMPUTE_PROVISION)
        firewall: OriginFirewall = self.orchestrator.outputs(Phase.NETWORK_SCOPING)

        web = WebTier(
            self,
            "WebTier",
            WebTierProps(
                prefix=self.props.prefix,
                static_site_build_path=self.props.static_site_build_path,
                logging_tools=logging_tools,
            ),
        ).outputs

        edge = build_distribution(
            self, self.props.prefix, web.bucket, api, logging_tools
        )
        # Do not publish the API route before the origin check guards the stage.
        self.orchestrator.add_dependency(
            edge.distribution, firewall.association, reason="origin check in place before edge"
        )
        return EdgePhaseOutputs(web=web, edge=edge)

    def _register_logging(self) -> list:
        logging_tools: LoggingTools = self.orchestrator.outputs(Phase.LOGGING_SETUP)
        api: ApiTierOutputs = self.orchestrator.outputs(Phase.COMPUTE_PROVISION)
        edge_phase: EdgePhaseOutputs = self.orchestrator.outputs(Phase.EDGE_PROVISION)

        tables = [
            logging_tools.configure_nlb_logging(api.logging_prefix, "nlb"),
            logging_tools.configure_s3_logging(edge_phase.web.logging_prefix, "s3web"),
            logging_tools.configure_cloudfront_logging(edge_phase.edge.logging_prefix, "cloudfront"),
        ]
        logger.info(
            "Topology %s built: %d explicit dependency edges",
            self.stack_name,
            len(self.orchestrator.dependencies.edges),
        )
        return tables
