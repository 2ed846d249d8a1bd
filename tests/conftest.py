"""Test fixtures for helm-reconciler."""

from typing import Any

import pytest
import yaml

from helm_reconciler.action import ConfigFactory
from helm_reconciler.manifest import HelmRelease
from helm_reconciler.release import Chart, ChartMetadata
from helm_reconciler.storage import InMemoryDriver

HELM_RELEASE_YAML = """
apiVersion: helm.toolkit.fluxcd.io/v2
kind: HelmRelease
metadata:
  name: podinfo
  namespace: test-ns
  generation: 1
spec:
  chart:
    spec:
      chart: podinfo
      version: 6.5.4
      sourceRef:
        kind: HelmRepository
        name: podinfo
        namespace: flux-system
  values:
    replicaCount: 2
"""


@pytest.fixture(name="helm_release_doc")
def helm_release_doc_fixture() -> dict[str, Any]:
    """Create the document of a test HelmRelease."""
    return yaml.safe_load(HELM_RELEASE_YAML)


@pytest.fixture(name="helm_release")
def helm_release_fixture(helm_release_doc: dict[str, Any]) -> HelmRelease:
    """Create a test HelmRelease."""
    return HelmRelease.parse_doc(helm_release_doc)


@pytest.fixture(name="chart")
def chart_fixture() -> Chart:
    """Create a test chart."""
    return Chart(metadata=ChartMetadata(name="podinfo", version="6.5.4"))


@pytest.fixture(name="driver")
def driver_fixture() -> InMemoryDriver:
    """Create an in-memory release storage."""
    return InMemoryDriver("test-ns")


@pytest.fixture(name="config_factory")
def config_factory_fixture(driver: InMemoryDriver) -> ConfigFactory:
    """Create a factory for action configurations."""
    return ConfigFactory(driver, "test-ns")
