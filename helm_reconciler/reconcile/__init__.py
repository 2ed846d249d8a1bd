"""Reconcile package.

This package contains the reconcilers running a single Helm action for a
HelmRelease, and the summary of the resulting conditions into the Ready
condition.
"""

from .install import Install
from .observation import ObservedReleases
from .reconciler import ActionReconciler, ReconcilerType, Request
from .summarize import summarize

__all__ = [
    "ActionReconciler",
    "ReconcilerType",
    "Request",
    "Install",
    "ObservedReleases",
    "summarize",
]
