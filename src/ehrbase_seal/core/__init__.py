"""Core infrastructure subpackage.

This package contains the kubeseal adapter, kube context selection and
the Provisioner that drives both pipelines.
"""

from ehrbase_seal.core.cluster import resolve_context
from ehrbase_seal.core.kubeseal import Kubeseal
from ehrbase_seal.core.provisioner import Provisioner

__all__ = [
    "Kubeseal",
    "Provisioner",
    "resolve_context",
]
