"""
Deployment configuration for the sample application topology.

Values come from the process environment (app.py loads the repo-root .env
first). Subnet id lists are comma separated:

    VPC_ID=vpc-0abc
    APP_SUBNET_IDS=subnet-1,subnet-2
    APP_SECURITY_GROUP=sg-0app
    DATA_SUBNET_IDS=subnet-3,subnet-4
    DATA_SECURITY_GROUP=sg-0data
"""
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from .errors import TopologyConfigError

_repo_root = Path(__file__).resolve().parents[2]  # infra/topology → repo root

REQUIRED_KEYS = (
    "VPC_ID",
    "APP_SUBNET_IDS",
    "APP_SECURITY_GROUP",
    "DATA_SUBNET_IDS",
    "DATA_SECURITY_GROUP",
)


def _split_ids(value: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


@dataclass(frozen=True)
class SampleAppProps:
    vpc_id: str
    app_subnet_ids: tuple[str, ...]
    app_security_group: str
    data_subnet_ids: tuple[str, ...]
    data_security_group: str
    db_name: str = "sampledb"
    prefix: str = "sea"
    static_site_build_path: str = str(_repo_root / "web")
    api_container_path: str = str(_repo_root / "backend")

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> "SampleAppProps":
        missing = [key for key in REQUIRED_KEYS if not environ.get(key, "").strip()]
        if missing:
            raise TopologyConfigError(
                "Required environment variable(s) not set: " + ", ".join(missing)
            )

        app_subnet_ids = _split_ids(environ["APP_SUBNET_IDS"])
        data_subnet_ids = _split_ids(environ["DATA_SUBNET_IDS"])
        if not app_subnet_ids or not data_subnet_ids:
            raise TopologyConfigError("APP_SUBNET_IDS and DATA_SUBNET_IDS must list at least one subnet")

        defaults = cls.__dataclass_fields__
        return cls(
            vpc_id=environ["VPC_ID"].strip(),
            app_subnet_ids=app_subnet_ids,
            app_security_group=environ["APP_SECURITY_GROUP"].strip(),
            data_subnet_ids=data_subnet_ids,
            data_security_group=environ["DATA_SECURITY_GROUP"].strip(),
            db_name=environ.get("DB_NAME") or defaults["db_name"].default,
            prefix=environ.get("PREFIX") or defaults["prefix"].default,
            static_site_build_path=(
                environ.get("STATIC_SITE_BUILD_PATH") or defaults["static_site_build_path"].default
            ),
            api_container_path=(
                environ.get("API_CONTAINER_PATH") or defaults["api_container_path"].default
            ),
        )
