"""Vulnerability database clients."""

from .base import StaticLookup, VulnerabilityLookup
from .osv import OsvLookup, severity_from_osv

__all__ = [
    "OsvLookup",
    "StaticLookup",
    "VulnerabilityLookup",
    "severity_from_osv",
]
