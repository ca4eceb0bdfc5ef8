"""
Queue-depth autoscaler for orchestrated workloads.

This package watches the backlog of a work queue and adjusts the replica
count of a Kubernetes Deployment or ECS service within configured bounds,
using per-direction cooldowns to avoid oscillation.
"""

__version__ = "0.1.0"
