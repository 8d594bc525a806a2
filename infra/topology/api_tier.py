"""
ApiTier — containerised API behind an internal NLB, published through API Gateway.

  API Gateway (REGIONAL, stage "prod")
      └─ VPC link → internal NLB :5000 → Fargate service (2 tasks, app subnets)

The container reads its database connection from the DbTier secret. The tier
also creates the origin trust secret that the edge attaches to API requests.
The service security group is created empty; ingress is added once the app
subnet ranges are scoped.
"""
from dataclasses import dataclass

import aws_cdk as cdk
from aws_cdk import aws_apigateway as apigateway
from aws_cdk import aws_ec2 as ec2
from aws_cdk import aws_ecr_assets as ecr_assets
from aws_cdk import aws_ecs as ecs
from aws_cdk import aws_elasticloadbalancingv2 as elbv2
from aws_cdk import aws_iam as iam
from aws_cdk import aws_secretsmanager as sm
from constructs import Construct

from .logging_tools import LoggingTools
from .orchestrator import DependencyEdge, TopologyOrchestrator
from .origin_trust import TrustSecret, create_trust_secret

SERVICE_PORT = 5000
API_STAGE_NAME = "prod"
NLB_LOGGING_PREFIX = "nlb"

# container env var → key in the database secret
DB_SECRET_ENV = {
    "POSTGRESQL_PASSWORD": "password",
    "POSTGRESQL_SERVER": "host",
    "POSTGRESQL_SERVER_PORT": "port",
    "POSTGRESQL_DATABASE": "dbname",
    "POSTGRESQL_USER": "username",
}


@dataclass(frozen=True)
class ApiTierProps:
    vpc: ec2.IVpc
    app_subnet_ids: tuple[str, ...]
    app_security_group: str
    db_secret: sm.ISecret
    prefix: str
    api_container_path: str
    logging_tools: LoggingTools


@dataclass(frozen=True)
class ApiTierOutputs:
    api: apigateway.RestApi
    service: ecs.FargateService
    service_security_group: ec2.SecurityGroup
    load_balancer: elbv2.NetworkLoadBalancer
    trust_secret: TrustSecret
    service_port: int = SERVICE_PORT
    stage_name: str = API_STAGE_NAME
    logging_prefix: str = NLB_LOGGING_PREFIX


class ApiTier(Construct):
    def __init__(self, scope: Construct, construct_id: str, props: ApiTierProps) -> None:
        super().__init__(scope, construct_id)
        prefix = props.prefix
        app_subnets = ec2.SubnetSelection(
            subnet_filters=[ec2.SubnetFilter.by_ids(list(props.app_subnet_ids))]
        )

        # ------------------------------------------------------------------ #
        # ECS cluster + task                                                  #
        # ------------------------------------------------------------------ #
        cluster = ecs.Cluster(self, f"{prefix}Cluster", vpc=props.vpc, container_insights=True)

        asset = ecr_assets.DockerImageAsset(
            self, f"{prefix}APIBuildImage", directory=props.api_container_path
        )

        task_role = iam.Role(
            self,
            f"{prefix}APITaskExecutionRole",
            assumed_by=iam.ServicePrincipal("ecs-tasks.amazonaws.com"),
        )

        task_definition = ecs.FargateTaskDefinition(
            self,
            "ApiTaskDef",
            cpu=2048,
            memory_limit_mib=4096,
            task_role=task_role,
        )
        task_definition.add_container(
            f"{prefix}API",
            image=ecs.ContainerImage.from_docker_image_asset(asset),
            logging=ecs.AwsLogDriver(stream_prefix=prefix),
            environment={"SERVICE_PORT": str(SERVICE_PORT)},
            secrets={
                env_name: ecs.Secret.from_secrets_manager(props.db_secret, field)
                for env_name, field in DB_SECRET_ENV.items()
            },
            port_mappings=[
                ecs.PortMapping(container_port=SERVICE_PORT, protocol=ecs.Protocol.TCP)
            ],
        )

        # ------------------------------------------------------------------ #
        # Service                                                             #
        # ------------------------------------------------------------------ #
        self.service_security_group = ec2.SecurityGroup(
            self, f"{prefix}TaskSecurityGroup", vpc=props.vpc
        )

        self.service = ecs.FargateService(
            self,
            f"{prefix}APIService",
            cluster=cluster,
            task_definition=task_definition,
            vpc_subnets=app_subnets,
            desired_count=2,
            propagate_tags=ecs.PropagatedTagSource.SERVICE,
            enable_ecs_managed_tags=True,
            platform_version=ecs.FargatePlatformVersion.VERSION1_4,
            security_groups=[
                ec2.SecurityGroup.from_security_group_id(
                    self, "AppSecurityGroup", props.app_security_group
                ),
                self.service_security_group,
            ],
        )

        # ------------------------------------------------------------------ #
        # Internal NLB                                                        #
        # ------------------------------------------------------------------ #
        self.load_balancer = elbv2.NetworkLoadBalancer(
            self,
            f"{prefix}NLB",
            vpc=props.vpc,
            vpc_subnets=app_subnets,
            internet_facing=False,
            cross_zone_enabled=True,
        )
        self.load_balancer.log_access_logs(
            props.logging_tools.bucket, props.logging_tools.mark_delivery(NLB_LOGGING_PREFIX)
        )

        listener = self.load_balancer.add_listener(f"{prefix}NLBListener", port=SERVICE_PORT)
        listener.add_targets(
            f"{prefix}APIServiceTarget",
            port=SERVICE_PORT,
            protocol=elbv2.Protocol.TCP,
            deregistration_delay=cdk.Duration.seconds(20),
            targets=[self.service],
        )

        # ------------------------------------------------------------------ #
        # API Gateway → VPC link → NLB                                        #
        # ------------------------------------------------------------------ #
        link = apigateway.VpcLink(self, f"{prefix}Link", targets=[self.load_balancer])

        self.api = apigateway.RestApi(
            self,
            "ApiGateway",
            rest_api_name=f"{prefix}-api",
            endpoint_configuration=apigateway.EndpointConfiguration(
                types=[apigateway.EndpointType.REGIONAL]
            ),
            cloud_watch_role=True,
            deploy_options=apigateway.StageOptions(
                logging_level=apigateway.MethodLoggingLevel.INFO,
                data_trace_enabled=True,
                tracing_enabled=True,
                stage_name=API_STAGE_NAME,
            ),
        )
        self.api.root.add_proxy(
            default_integration=apigateway.Integration(
                type=apigateway.IntegrationType.HTTP_PROXY,
                integration_http_method="ANY",
                uri=(
                    f"http://{self.load_balancer.load_balancer_dns_name}"
                    f":{SERVICE_PORT}/{{proxy}}"
                ),
                options=apigateway.IntegrationOptions(
                    connection_type=apigateway.ConnectionType.VPC_LINK,
                    vpc_link=link,
                    request_parameters={
                        "integration.request.path.proxy": "method.request.path.proxy"
                    },
                ),
            ),
            any_method=True,
            default_method_options=apigateway.MethodOptions(
                request_parameters={"method.request.path.proxy": True}
            ),
        )

        # ------------------------------------------------------------------ #
        # Origin trust secret                                                 #
        # ------------------------------------------------------------------ #
        self.trust_secret = create_trust_secret(self, prefix)

    @property
    def outputs(self) -> ApiTierOutputs:
        return ApiTierOutputs(
            api=self.api,
            service=self.service,
            service_security_group=self.service_security_group,
            load_balancer=self.load_balancer,
            trust_secret=self.trust_secret,
        )

    def add_dependency(
        self, prerequisite: Construct, orchestrator: TopologyOrchestrator, reason: str = ""
    ) -> DependencyEdge:
        """Hold the service back until `prerequisite` is fully created."""
        return orchestrator.add_dependency(self.service, prerequisite, reason)
