from .compose import compose_environment, configure_payload, dump_compose, render_compose, write_compose
from .health import CheckResult, run_status
from .runner import ComposeError, ComposeRunner, ServiceState
from .topology import DeploymentSettings

__all__ = [
    "CheckResult",
    "ComposeError",
    "ComposeRunner",
    "DeploymentSettings",
    "ServiceState",
    "compose_environment",
    "configure_payload",
    "dump_compose",
    "render_compose",
    "run_status",
    "write_compose",
]
