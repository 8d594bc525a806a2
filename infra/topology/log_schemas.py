"""
Glue table layouts for the access logs the topology delivers.

Types are Hive type names. Regexes follow the AWS documented Athena layouts
for each log format.
"""
from dataclasses import dataclass
from typing import Final

TEXT_INPUT_FORMAT: Final[str] = "org.apache.hadoop.mapred.TextInputFormat"
HIVE_IGNORE_KEY_OUTPUT_FORMAT: Final[str] = (
    "org.apache.hadoop.hive.ql.io.HiveIgnoreKeyTextOutputFormat"
)
REGEX_SERDE: Final[str] = "org.apache.hadoop.hive.serde2.RegexSerDe"
LAZY_SIMPLE_SERDE: Final[str] = "org.apache.hadoop.hive.serde2.lazy.LazySimpleSerDe"


@dataclass(frozen=True)
class LogSchema:
    columns: tuple[tuple[str, str], ...]
    serialization_library: str
    serde_parameters: dict[str, str]


S3_ACCESS_LOG: Final[LogSchema] = LogSchema(
    columns=(
        ("bucketowner", "string"),
        ("bucket_name", "string"),
        ("requestdatetime", "string"),
        ("remoteip", "string"),
        ("requester", "string"),
        ("requestid", "string"),
        ("operation", "string"),
        ("key", "string"),
        ("request_uri", "string"),
        ("httpstatus", "string"),
        ("errorcode", "string"),
        ("bytessent", "bigint"),
        ("objectsize", "bigint"),
        ("totaltime", "string"),
        ("turnaroundtime", "string"),
        ("referrer", "string"),
        ("useragent", "string"),
        ("versionid", "string"),
        ("hostid", "string"),
        ("sigv", "string"),
        ("ciphersuite", "string"),
        ("authtype", "string"),
        ("endpoint", "string"),
        ("tlsversion", "string"),
    ),
    serialization_library=REGEX_SERDE,
    serde_parameters={
        "input.regex": (
            '([^ ]*) ([^ ]*) \\[(.*?)\\] ([^ ]*) ([^ ]*) ([^ ]*) ([^ ]*) ([^ ]*) '
            '(\"[^\"]*\"|-) (-|[0-9]*) ([^ ]*) ([^ ]*) ([^ ]*) ([^ ]*) ([^ ]*) ([^ ]*) '
            '(\"[^\"]*\"|-) ([^ ]*)(?: ([^ ]*) ([^ ]*) ([^ ]*) ([^ ]*) ([^ ]*) ([^ ]*))?.*$'
        ),
    },
)

NLB_ACCESS_LOG: Final[LogSchema] = LogSchema(
    columns=(
        ("type", "string"),
        ("version", "string"),
        ("time", "string"),
        ("elb", "string"),
        ("listener_id", "string"),
        ("client_ip", "string"),
        ("client_port", "int"),
        ("target_ip", "string"),
        ("target_port", "int"),
        ("tcp_connection_time_ms", "double"),
        ("tls_handshake_time_ms", "double"),
        ("received_bytes", "bigint"),
        ("sent_bytes", "bigint"),
        ("incoming_tls_alert", "int"),
        ("cert_arn", "string"),
        ("certificate_serial", "string"),
        ("tls_cipher_suite", "string"),
        ("tls_protocol_version", "string"),
        ("tls_named_group", "string"),
        ("domain_name", "string"),
        ("alpn_fe_protocol", "string"),
        ("alpn_be_protocol", "string"),
        ("alpn_client_preference_list", "string"),
    ),
    serialization_library=REGEX_SERDE,
    serde_parameters={
        "serialization.format": "1",
        "input.regex": (
            "([^ ]*) ([^ ]*) ([^ ]*) ([^ ]*) ([^ ]*) ([^ ]*):([0-9]*) ([^ ]*):([0-9]*) "
            "([-.0-9]*) ([-.0-9]*) ([-0-9]*) ([-0-9]*) ([-0-9]*) ([^ ]*) ([^ ]*) "
            "([^ ]*) ([^ ]*) ([^ ]*) ([^ ]*) ([^ ]*) ([^ ]*) ([^ ]*)$"
        ),
    },
)

CLOUDFRONT_ACCESS_LOG: Final[LogSchema] = LogSchema(
    columns=(
        ("date", "date"),
        ("time", "string"),
        ("location", "string"),
        ("bytes", "bigint"),
        ("request_ip", "string"),
        ("method", "string"),
        ("host", "string"),
        ("uri", "string"),
        ("status", "int"),
        ("referrer", "string"),
        ("user_agent", "string"),
        ("query_string", "string"),
        ("cookie", "string"),
        ("result_type", "string"),
        ("request_id", "string"),
        ("host_header", "string"),
        ("request_protocol", "string"),
        ("request_bytes", "bigint"),
        ("time_taken", "float"),
        ("xforwarded_for", "string"),
        ("ssl_protocol", "string"),
        ("ssl_cipher", "string"),
        ("response_result_type", "string"),
        ("http_version", "string"),
        ("fle_status", "string"),
        ("fle_encrypted_fields", "int"),
        ("c_port", "int"),
        ("time_to_first_byte", "float"),
        ("x_edge_detailed_result_type", "string"),
        ("sc_content_type", "string"),
        ("sc_content_len", "bigint"),
        ("sc_range_start", "bigint"),
        ("sc_range_end", "bigint"),
    ),
    serialization_library=LAZY_SIMPLE_SERDE,
    serde_parameters={
        "serialization.format": "\t",
        "field.delim": "\t",
    },
)
