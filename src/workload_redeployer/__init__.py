"""Rolling restarts for database workloads running on Kubernetes."""

from workload_redeployer.__version__ import __version__

__all__ = ["__version__"]
