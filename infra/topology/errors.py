"""
Build-time configuration errors.

Everything here is fatal: the topology is defined once, at synth time, and a
failure aborts the whole pass. Nothing is retried.
"""


class TopologyConfigError(Exception):
    """Base class for fatal topology-definition errors."""


class SubnetLookupError(TopologyConfigError):
    def __init__(self, missing_ids: list[str]) -> None:
        self.missing_ids = list(missing_ids)
        super().__init__(
            "No CIDR found in the context document for subnet(s): "
            + ", ".join(self.missing_ids)
        )


class OrderingViolation(TopologyConfigError):
    """A phase ran out of order or asked for outputs that do not exist yet."""


class DependencyCycleError(TopologyConfigError):
    def __init__(self, dependent: str, prerequisite: str) -> None:
        self.dependent = dependent
        self.prerequisite = prerequisite
        super().__init__(
            f"Dependency {dependent} -> {prerequisite} would create a cycle"
        )
