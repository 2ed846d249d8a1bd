"""Reconciliation of Helm releases for a HelmRelease.

An `ActionReconciler` runs a single Helm action, observes the writes it makes
to the Helm storage and records the outcome in the status of the HelmRelease:

```python
from helm_reconciler.action import ConfigFactory
from helm_reconciler.events import LoggingEventRecorder
from helm_reconciler.reconcile import Install, Request
from helm_reconciler.storage import InMemoryDriver

factory = ConfigFactory(InMemoryDriver("default"), "default")
install = Install(engine, factory, LoggingEventRecorder())
await install.reconcile(Request(obj=helm_release, chart=chart, values=values))
print(helm_release.status.conditions)
```
"""

__all__ = [
    "action",
    "config",
    "digest",
    "events",
    "release",
    "conditions",
    "manifest",
    "reconcile",
    "storage",
    "exceptions",
]
