"""
DbTier — Aurora PostgreSQL cluster in the data subnets.

Credentials are generated into Secrets Manager; attaching the secret to the
cluster adds host/port/dbname so the API tier can read every connection
parameter from the one secret.
"""
import json
from dataclasses import dataclass

from aws_cdk import aws_ec2 as ec2
from aws_cdk import aws_rds as rds
from aws_cdk import aws_secretsmanager as sm
from constructs import Construct

DB_USER_NAME = "clusteradmin"


@dataclass(frozen=True)
class DbTierProps:
    vpc: ec2.IVpc
    data_subnet_ids: tuple[str, ...]
    data_security_group: str
    db_name: str
    prefix: str


@dataclass(frozen=True)
class DbTierOutputs:
    secret: sm.Secret
    cluster: rds.DatabaseCluster


class DbTier(Construct):
    def __init__(self, scope: Construct, construct_id: str, props: DbTierProps) -> None:
        super().__init__(scope, construct_id)

        self.secret = sm.Secret(
            self,
            "DatabasePassword",
            generate_secret_string=sm.SecretStringGenerator(
                exclude_punctuation=True,
                secret_string_template=json.dumps({"username": DB_USER_NAME}),
                generate_string_key="password",
            ),
        )

        subnet_group = rds.SubnetGroup(
            self,
            f"{props.prefix}-data-sbnt-grp",
            vpc=props.vpc,
            vpc_subnets=ec2.SubnetSelection(
                subnet_filters=[ec2.SubnetFilter.by_ids(list(props.data_subnet_ids))]
            ),
            description="Data Subnet Group",
        )

        self.cluster = rds.DatabaseCluster(
            self,
            f"{props.prefix}-db",
            engine=rds.DatabaseClusterEngine.aurora_postgres(
                version=rds.AuroraPostgresEngineVersion.VER_15_4
            ),
            credentials=rds.Credentials.from_secret(self.secret),
            writer=rds.ClusterInstance.provisioned(
                "Writer",
                instance_type=ec2.InstanceType.of(
                    ec2.InstanceClass.BURSTABLE3, ec2.InstanceSize.LARGE
                ),
                enable_performance_insights=True,
                publicly_accessible=False,
            ),
            readers=[],
            vpc=props.vpc,
            security_groups=[
                ec2.SecurityGroup.from_security_group_id(
                    self, "DbSecurityGroup", props.data_security_group
                )
            ],
            subnet_group=subnet_group,
            default_database_name=props.db_name,
            storage_encrypted=True,
        )

    @property
    def outputs(self) -> DbTierOutputs:
        return DbTierOutputs(secret=self.secret, cluster=self.cluster)
