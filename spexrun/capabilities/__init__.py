"""Subject-control capabilities."""

from spexrun.capabilities.base import CapabilityResult, SubjectCapabilities
from spexrun.capabilities.default import DefaultCapabilities

__all__ = ["CapabilityResult", "DefaultCapabilities", "SubjectCapabilities"]
