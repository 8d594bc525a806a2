"""
Tests for SampleAppProps.from_env.
"""
import pytest

from topology.errors import TopologyConfigError
from topology.props import SampleAppProps

BASE_ENV = {
    "VPC_ID": "vpc-0abc",
    "APP_SUBNET_IDS": "subnet-1, subnet-2,",
    "APP_SECURITY_GROUP": "sg-app",
    "DATA_SUBNET_IDS": "subnet-3,subnet-4",
    "DATA_SECURITY_GROUP": "sg-data",
}


def test_from_env_splits_subnet_lists():
    props = SampleAppProps.from_env(BASE_ENV)
    assert props.app_subnet_ids == ("subnet-1", "subnet-2")
    assert props.data_subnet_ids == ("subnet-3", "subnet-4")
    assert props.vpc_id == "vpc-0abc"


def test_from_env_defaults():
    props = SampleAppProps.from_env(BASE_ENV)
    assert props.db_name == "sampledb"
    assert props.prefix == "sea"
    assert props.static_site_build_path.endswith("web")
    assert props.api_container_path.endswith("backend")


def test_from_env_overrides():
    props = SampleAppProps.from_env({**BASE_ENV, "DB_NAME": "orders", "PREFIX": "demo"})
    assert props.db_name == "orders"
    assert props.prefix == "demo"


def test_from_env_reports_every_missing_key():
    env = {k: v for k, v in BASE_ENV.items() if k not in ("VPC_ID", "DATA_SECURITY_GROUP")}
    with pytest.raises(TopologyConfigError) as exc_info:
        SampleAppProps.from_env(env)
    assert "VPC_ID" in str(exc_info.value)
    assert "DATA_SECURITY_GROUP" in str(exc_info.value)


def test_from_env_rejects_empty_subnet_list():
    with pytest.raises(TopologyConfigError):
        SampleAppProps.from_env({**BASE_ENV, "APP_SUBNET_IDS": " , "})


def test_props_are_immutable():
    props = SampleAppProps.from_env(BASE_ENV)
    with pytest.raises(AttributeError):
        props.prefix = "other"
