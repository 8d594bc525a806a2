"""
Access-log storage and the Glue catalog over it.

One bucket receives every access log, each source under its own prefix.
Producers claim their prefix with `mark_delivery` when they are wired to the
bucket; a table can only be registered against a claimed prefix.

LoggingTools is the logging collaborator shared by the tiers, not a tier
itself: it is handed to them as a construct and records deliveries as they
are wired.
"""
import logging

import aws_cdk as cdk
from aws_cdk import aws_glue as glue
from aws_cdk import aws_s3 as s3
from constructs import Construct

from .errors import OrderingViolation
from .log_schemas import (
    CLOUDFRONT_ACCESS_LOG,
    HIVE_IGNORE_KEY_OUTPUT_FORMAT,
    NLB_ACCESS_LOG,
    S3_ACCESS_LOG,
    TEXT_INPUT_FORMAT,
    LogSchema,
)

logger = logging.getLogger(__name__)

LOG_RETENTION = cdk.Duration.days(90)


class LoggingTools(Construct):
    def __init__(self, scope: Construct, construct_id: str, prefix: str) -> None:
        super().__init__(scope, construct_id)
        self._delivered: set[str] = set()

        # ------------------------------------------------------------------ #
        # Log bucket                                                          #
        # ------------------------------------------------------------------ #
        # CloudFront standard logging writes with ACLs, hence OBJECT_WRITER.
        self.bucket = s3.Bucket(
            self,
            "LoggingBucket",
            removal_policy=cdk.RemovalPolicy.DESTROY,
            auto_delete_objects=True,
            lifecycle_rules=[
                s3.LifecycleRule(
                    id="three_months_delete",
                    enabled=True,
                    expiration=LOG_RETENTION,
                )
            ],
            encryption=s3.BucketEncryption.S3_MANAGED,
            block_public_access=s3.BlockPublicAccess.BLOCK_ALL,
            object_ownership=s3.ObjectOwnership.OBJECT_WRITER,
        )

        cfn_bucket: s3.CfnBucket = self.bucket.node.default_child
        cfn_bucket.add_metadata(
            "cfn_nag",
            {"rules_to_suppress": [{"id": "W35", "reason": "This is the access log bucket"}]},
        )

        # ------------------------------------------------------------------ #
        # Glue catalog database                                              #
        # ------------------------------------------------------------------ #
        self.database_name = f"{prefix}-db".lower()
        self.database = glue.CfnDatabase(
            self,
            "GlueDatabase",
            catalog_id=cdk.Stack.of(self).account,
            database_input=glue.CfnDatabase.DatabaseInputProperty(name=self.database_name),
        )

    # ------------------------------------------------------------------ #
    # Delivery                                                            #
    # ------------------------------------------------------------------ #

    def mark_delivery(self, prefix: str) -> str:
        """Record that a producer writes to the log bucket under `prefix`; returns the prefix."""
        self._delivered.add(prefix)
        logger.debug("Log delivery to prefix %s", prefix)
        return prefix

    @property
    def delivered_prefixes(self) -> frozenset[str]:
        return frozenset(self._delivered)

    # ------------------------------------------------------------------ #
    # Table registration                                                  #
    # ------------------------------------------------------------------ #

    def configure_s3_logging(self, prefix: str, table_name: str) -> glue.CfnTable:
        return self._register_table(prefix, table_name, S3_ACCESS_LOG, self._location(prefix))

    def configure_nlb_logging(self, prefix: str, table_name: str) -> glue.CfnTable:
        stack = cdk.Stack.of(self)
        location = (
            f"{self._location(prefix)}/AWSLogs/{stack.account}"
            f"/elasticloadbalancing/{stack.region}"
        )
        return self._register_table(prefix, table_name, NLB_ACCESS_LOG, location)

    def configure_cloudfront_logging(self, prefix: str, table_name: str) -> glue.CfnTable:
        return self._register_table(
            prefix, table_name, CLOUDFRONT_ACCESS_LOG, self._location(prefix)
        )

    def _location(self, prefix: str) -> str:
        return f"s3://{self.bucket.bucket_name}/{prefix}"

    def _register_table(
        self, prefix: str, table_name: str, schema: LogSchema, location: str
    ) -> glue.CfnTable:
        if prefix not in self._delivered:
            raise OrderingViolation(
                f"Cannot register table {table_name}: nothing delivers logs to prefix {prefix!r} yet"
            )

        table = glue.CfnTable(
            self,
            f"{table_name}Table",
            catalog_id=cdk.Stack.of(self).account,
            database_name=self.database_name,
            table_input=glue.CfnTable.TableInputProperty(
                name=table_name,
                table_type="EXTERNAL_TABLE",
                parameters={"EXTERNAL": "TRUE"},
                storage_descriptor=glue.CfnTable.StorageDescriptorProperty(
                    location=location,
                    compressed=False,
                    columns=[
                        glue.CfnTable.ColumnProperty(name=name, type=type_)
                        for name, type_ in schema.columns
                    ],
                    input_format=TEXT_INPUT_FORMAT,
                    output_format=HIVE_IGNORE_KEY_OUTPUT_FORMAT,
                    serde_info=glue.CfnTable.SerdeInfoProperty(
                        serialization_library=schema.serialization_library,
                        parameters=dict(schema.serde_parameters),
                    ),
                ),
            ),
        )
        # database_name is a plain string, so the catalog edge must be explicit.
        table.add_dependency(self.database)
        logger.info("Registered log table %s at prefix %s", table_name, prefix)
        return table
