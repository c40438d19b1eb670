"""
Remote stores -- where tracked files actually live.

shipment: env vars on a shipment container (HTTP).
aws-s3: whole files as S3 objects.
aws-parameter: env vars as SSM SecureString parameters.
"""

from .base import ENV_FEATURE, JSON_FEATURE, VERSION_FEATURE, Attributes, Store
from .registry import StoreRegistry, default_registry

__all__ = [
    "Attributes",
    "ENV_FEATURE",
    "JSON_FEATURE",
    "Store",
    "StoreRegistry",
    "VERSION_FEATURE",
    "default_registry",
]
