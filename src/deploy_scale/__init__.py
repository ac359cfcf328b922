"""Adjust the instance-scaling rules of deployed workloads."""

__version__ = "0.1.0"
