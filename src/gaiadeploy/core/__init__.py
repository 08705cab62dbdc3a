"""
Core provisioning functionality for gaiadeploy.
"""

from .config import CudaStatus, HostClass
from .config_models import ProvisionConfigModel
from .environment import EnvironmentReport, detect_environment
from .exceptions import ProvisionError
from .provisioner import InstanceResult, Provisioner, parse_instance_count

__all__ = [
    "CudaStatus",
    "HostClass",
    "ProvisionConfigModel",
    "EnvironmentReport",
    "detect_environment",
    "ProvisionError",
    "InstanceResult",
    "Provisioner",
    "parse_instance_count",
]
