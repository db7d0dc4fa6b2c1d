"""
ecrpush - Push container images to ECR and provision Kubernetes pull secrets
"""

__version__ = "0.1.0"

from .core import EcrPusher, PusherError

__all__ = ["EcrPusher", "PusherError"]
