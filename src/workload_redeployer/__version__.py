"""Version information for workload_redeployer."""

__version__ = "0.1.0"
