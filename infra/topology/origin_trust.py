"""
Origin trust: the shared secret and the firewall rule that checks it.

CloudFront is the only client configured to send X-Origin-Identity with the
secret's value. The regional web ACL in front of the API stage blocks by
default and allows a request only when that header carries exactly the secret,
so callers that go straight to the API endpoint are rejected.

The secret's plaintext never exists in this process: it is generated by
Secrets Manager and referenced through a dynamic reference that CloudFormation
resolves at deploy time.
"""
import hmac
import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import aws_cdk as cdk
from aws_cdk import aws_apigateway as apigateway
from aws_cdk import aws_secretsmanager as sm
from aws_cdk import aws_wafv2 as waf
from constructs import Construct

ORIGIN_HEADER_NAME = "X-Origin-Identity"
HEADER_FIELD_KEY = "HEADERVALUE"

ALLOW = "ALLOW"
BLOCK = "BLOCK"


@dataclass(frozen=True)
class TrustSecret:
    """Handle on the stored secret. Holds a reference, never the value."""

    secret: sm.Secret
    field_key: str = HEADER_FIELD_KEY

    def header_value(self) -> str:
        """Deploy-time reference to the plaintext, for CFN properties that need a string."""
        return self.secret.secret_value_from_json(self.field_key).unsafe_unwrap()

    @property
    def secret_arn(self) -> str:
        return self.secret.secret_arn


def create_trust_secret(
    scope: Construct,
    prefix: str,
    seed_template: Mapping[str, Any] | None = None,
    field_key: str = HEADER_FIELD_KEY,
) -> TrustSecret:
    """
    Create a new random secret under `field_key` (no punctuation).

    Every call creates a distinct secret; create one per deployment.
    """
    template = dict(seed_template or {field_key: "RandomPassword"})
    secret = sm.Secret(
        scope,
        f"{prefix}WAFSecret",
        description=f"{prefix} origin identity header value",
        generate_secret_string=sm.SecretStringGenerator(
            secret_string_template=json.dumps(template),
            generate_string_key=field_key,
            exclude_punctuation=True,
        ),
    )
    return TrustSecret(secret=secret, field_key=field_key)


# --------------------------------------------------------------------------- #
# Rule model                                                                  #
# --------------------------------------------------------------------------- #


@dataclass(frozen=True)
class HeaderExactMatch:
    """Single-header byte match, EXACTLY, no text transformation."""

    header_name: str

    def matches(self, headers: Mapping[str, str], secret_value: str) -> bool:
        if not secret_value:
            return False
        # Header names are case-insensitive; the value is compared byte for byte.
        wanted = self.header_name.lower()
        for name, value in headers.items():
            if name.lower() == wanted:
                return hmac.compare_digest(value.encode(), secret_value.encode())
        return False

    def to_statement(self, search_string: str) -> waf.CfnWebACL.StatementProperty:
        return waf.CfnWebACL.StatementProperty(
            byte_match_statement=waf.CfnWebACL.ByteMatchStatementProperty(
                field_to_match=waf.CfnWebACL.FieldToMatchProperty(
                    single_header={"Name": self.header_name},
                ),
                positional_constraint="EXACTLY",
                search_string=search_string,
                text_transformations=[
                    waf.CfnWebACL.TextTransformationProperty(priority=0, type="NONE")
                ],
            )
        )


@dataclass(frozen=True)
class OriginCheckRule:
    """
    Allow rule over a default-block web ACL.

    Clauses are OR-ed. One clause is all the origin check needs; a duplicated
    clause evaluates identically and is only accepted so that equivalence can
    be checked.
    """

    clauses: tuple[HeaderExactMatch, ...]
    name: str = "OriginCheck"

    def __post_init__(self) -> None:
        if not self.clauses:
            raise ValueError("OriginCheckRule needs at least one clause")

    def allows(self, headers: Mapping[str, str], secret_value: str) -> bool:
        return any(clause.matches(headers, secret_value) for clause in self.clauses)

    def evaluate(self, headers: Mapping[str, str], secret_value: str) -> str:
        """Action the web ACL takes for a request carrying `headers`."""
        return ALLOW if self.allows(headers, secret_value) else BLOCK

    def to_statement(self, search_string: str) -> waf.CfnWebACL.StatementProperty:
        statements = [clause.to_statement(search_string) for clause in self.clauses]
        if len(statements) == 1:
            return statements[0]
        return waf.CfnWebACL.StatementProperty(
            or_statement=waf.CfnWebACL.OrStatementProperty(statements=statements)
        )

    def to_rule_property(self, search_string: str, metric_name: str) -> waf.CfnWebACL.RuleProperty:
        return waf.CfnWebACL.RuleProperty(
            name=self.name,
            priority=0,
            action=waf.CfnWebACL.RuleActionProperty(allow={}),
            visibility_config=waf.CfnWebACL.VisibilityConfigProperty(
                cloud_watch_metrics_enabled=True,
                sampled_requests_enabled=True,
                metric_name=metric_name,
            ),
            statement=self.to_statement(search_string),
        )


def build_origin_check_rule(header_name: str = ORIGIN_HEADER_NAME) -> OriginCheckRule:
    return OriginCheckRule(clauses=(HeaderExactMatch(header_name),))


# --------------------------------------------------------------------------- #
# Web ACL                                                                     #
# --------------------------------------------------------------------------- #


@dataclass(frozen=True)
class OriginFirewall:
    rule: OriginCheckRule
    web_acl: waf.CfnWebACL
    association: waf.CfnWebACLAssociation


def build_origin_firewall(
    scope: Construct,
    prefix: str,
    trust_secret: TrustSecret,
    api: apigateway.RestApi,
    stage_name: str,
    rule: OriginCheckRule | None = None,
) -> OriginFirewall:
    """
    Regional web ACL (default block + origin check) attached to the API stage.

    The caller owns the ordering edges between the association, the ACL and
    the API.
    """
    rule = rule or build_origin_check_rule()

    web_acl = waf.CfnWebACL(
        scope,
        f"{prefix}WAF",
        default_action=waf.CfnWebACL.DefaultActionProperty(block={}),
        scope="REGIONAL",
        visibility_config=waf.CfnWebACL.VisibilityConfigProperty(
            cloud_watch_metrics_enabled=True,
            sampled_requests_enabled=True,
            metric_name=f"{prefix}WAF-Block",
        ),
        rules=[
            rule.to_rule_property(
                search_string=trust_secret.header_value(),
                metric_name=f"{prefix}WAF-Allow",
            )
        ],
    )

    association = waf.CfnWebACLAssociation(
        scope,
        f"{prefix}WAFAssociation",
        web_acl_arn=web_acl.attr_arn,
        resource_arn=(
            f"arn:{cdk.Aws.PARTITION}:apigateway:{cdk.Stack.of(scope).region}"
            f"::/restapis/{api.rest_api_id}/stages/{stage_name}"
        ),
    )

    return OriginFirewall(rule=rule, web_acl=web_acl, association=association)
