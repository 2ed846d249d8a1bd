"""Representation of a HelmRelease and its recorded status.

A HelmRelease may be parsed directly from a kubernetes resource document, and
its status may be serialized and stored so that it survives between
reconciliations. All serialized field names use the camelCase names of the
kubernetes API.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import StrEnum
import hashlib
import logging
from pathlib import Path
from typing import Any, ClassVar

import aiofiles
from mashumaro import DataClassDictMixin, field_options
from mashumaro.config import BaseConfig
import yaml

from .exceptions import InputException

__all__ = [
    "read_helm_release",
    "write_helm_release",
    "ReleaseAction",
    "ConditionStatus",
    "Condition",
    "TestHookStatus",
    "Snapshot",
    "RemediationStrategy",
    "Remediation",
    "InstallRemediation",
    "UpgradeRemediation",
    "Install",
    "Upgrade",
    "Test",
    "HelmChart",
    "HelmReleaseStatus",
    "HelmRelease",
]

_LOGGER = logging.getLogger(__name__)


# Match a prefix of apiVersion to ensure we have the right type of object.
# We don't check specific versions for forward compatibility on upgrade.
HELM_RELEASE_DOMAIN = "helm.toolkit.fluxcd.io"
HELM_RELEASE = "HelmRelease"
HELM_REPO_KIND = "HelmRepository"
HELM_CHART = "HelmChart"

# Helm limits release names to 53 characters.
MAX_RELEASE_NAME_LENGTH = 53
SHORT_RELEASE_NAME_PREFIX = 40
SHORT_RELEASE_NAME_HASH = 12


def _check_version(doc: dict[str, Any], version: str) -> None:
    """Assert that the resource has the specified version."""
    if not (api_version := doc.get("apiVersion")):
        raise InputException(f"Invalid object missing apiVersion: {doc}")
    if not api_version.startswith(version):
        raise InputException(f"Invalid object expected '{version}': {doc}")


@dataclass
class BaseManifest(DataClassDictMixin):
    """Base class for all manifest objects."""

    @classmethod
    def parse_yaml(cls, content: str) -> "BaseManifest":
        """Parse a serialized manifest."""
        return cls.from_dict(yaml.safe_load(content))

    def yaml(self) -> str:
        """Return a YAML string representation of the object."""
        return yaml.dump(self.to_dict(), sort_keys=False)

    class Config(BaseConfig):
        omit_none = True
        serialize_by_alias = True


class ReleaseAction(StrEnum):
    """The Helm action last attempted for a HelmRelease."""

    INSTALL = "install"
    UPGRADE = "upgrade"
    TEST = "test"
    ROLLBACK = "rollback"
    UNINSTALL = "uninstall"


class ConditionStatus(StrEnum):
    """Status of a condition."""

    TRUE = "True"
    FALSE = "False"
    UNKNOWN = "Unknown"


@dataclass
class Condition(BaseManifest):
    """An observation of one aspect of the state of a HelmRelease."""

    type: str
    """The type of the condition e.g. Released."""

    status: ConditionStatus
    """Whether the condition holds."""

    reason: str
    """A programmatic identifier for the last transition."""

    message: str = ""
    """A human readable message with details about the transition."""

    observed_generation: int = field(
        metadata=field_options(alias="observedGeneration"), default=0
    )
    """The generation of the HelmRelease the condition was computed against."""

    last_transition_time: str | None = field(
        metadata=field_options(alias="lastTransitionTime"), default=None
    )
    """The last time the condition changed status."""


@dataclass
class TestHookStatus(BaseManifest):
    """The result of running a single Helm test hook."""

    # Not a pytest test class.
    __test__ = False

    last_started: str | None = field(
        metadata=field_options(alias="lastStarted"), default=None
    )
    """The time the test hook was last started."""

    last_completed: str | None = field(
        metadata=field_options(alias="lastCompleted"), default=None
    )
    """The time the test hook last completed."""

    phase: str | None = None
    """The phase of the last test hook run e.g. Succeeded or Failed."""


@dataclass
class Snapshot(BaseManifest):
    """A snapshot of a Helm release as observed in the release storage."""

    name: str
    """The name of the release."""

    namespace: str
    """The namespace the release is installed to."""

    version: int
    """The storage revision of the release."""

    status: str
    """The status of the release e.g. deployed or failed."""

    chart_name: str = field(metadata=field_options(alias="chartName"))
    """The name of the chart the release was made with."""

    chart_version: str = field(metadata=field_options(alias="chartVersion"))
    """The version of the chart the release was made with."""

    config_digest: str = field(metadata=field_options(alias="configDigest"))
    """The digest of the values the release was made with."""

    digest: str
    """The digest of the observed release content."""

    first_deployed: str | None = field(
        metadata=field_options(alias="firstDeployed"), default=None
    )
    """The time the release was first deployed."""

    last_deployed: str | None = field(
        metadata=field_options(alias="lastDeployed"), default=None
    )
    """The time the release was last deployed."""

    deleted: str | None = None
    """The time the release was deleted."""

    test_hooks: dict[str, TestHookStatus] | None = field(
        metadata=field_options(alias="testHooks"), default=None
    )
    """The test hooks that have run for the release, unset when untested."""

    @property
    def full_release_name(self) -> str:
        """Return the namespace, name and version of the release as an id."""
        return f"{self.namespace}/{self.name}.v{self.version}"

    @property
    def versioned_chart_name(self) -> str:
        """Return the chart name and version concatenated as an id."""
        return f"{self.chart_name}@{self.chart_version}"

    def has_been_tested(self) -> bool:
        """Return True if the test hooks of the release have been run."""
        return self.test_hooks is not None

    def targets(self, name: str, namespace: str, version: int) -> bool:
        """Return True if the snapshot refers to the given release revision."""
        return (
            self.name == name
            and self.namespace == namespace
            and self.version == version
        )


class RemediationStrategy(StrEnum):
    """The action used to remediate a failed release."""

    ROLLBACK = "rollback"
    UNINSTALL = "uninstall"


class Remediation(ABC):
    """Policy deciding whether and how a failed Helm action is remediated."""

    @abstractmethod
    def get_retries(self) -> int:
        """Return the number of retries, a negative value retries forever."""

    @abstractmethod
    def must_ignore_test_failures(self, default: bool) -> bool:
        """Return whether test failures should be ignored."""

    @abstractmethod
    def must_remediate_last_failure(self) -> bool:
        """Return whether the last failure is remediated once retries run out."""

    @abstractmethod
    def get_strategy(self) -> RemediationStrategy:
        """Return the strategy used to remediate a failure."""

    @abstractmethod
    def get_failure_count(self, obj: "HelmRelease") -> int:
        """Return the number of failures counted on the object."""

    @abstractmethod
    def increment_failure_count(self, obj: "HelmRelease") -> None:
        """Count a failure of the action on the object."""

    def retries_exhausted(self, obj: "HelmRelease") -> bool:
        """Return True if the failures on the object exceed the retries."""
        retries = self.get_retries()
        return retries >= 0 and self.get_failure_count(obj) > retries


@dataclass
class InstallRemediation(BaseManifest, Remediation):
    """Remediation policy for a failed install, always an uninstall."""

    retries: int = 0
    """The number of retries before giving up, a negative value retries forever."""

    ignore_test_failures: bool | None = field(
        metadata=field_options(alias="ignoreTestFailures"), default=None
    )
    """Whether test failures are ignored when deciding to remediate."""

    remediate_last_failure: bool | None = field(
        metadata=field_options(alias="remediateLastFailure"), default=None
    )
    """Whether the last failure is remediated once retries run out."""

    def get_retries(self) -> int:
        return self.retries

    def must_ignore_test_failures(self, default: bool) -> bool:
        if self.ignore_test_failures is None:
            return default
        return self.ignore_test_failures

    def must_remediate_last_failure(self) -> bool:
        if self.retries == 0:
            return False
        return bool(self.remediate_last_failure)

    def get_strategy(self) -> RemediationStrategy:
        return RemediationStrategy.UNINSTALL

    def get_failure_count(self, obj: "HelmRelease") -> int:
        return obj.status.install_failures

    def increment_failure_count(self, obj: "HelmRelease") -> None:
        obj.status.install_failures += 1


@dataclass
class UpgradeRemediation(BaseManifest, Remediation):
    """Remediation policy for a failed upgrade."""

    retries: int = 0
    """The number of retries before giving up, a negative value retries forever."""

    ignore_test_failures: bool | None = field(
        metadata=field_options(alias="ignoreTestFailures"), default=None
    )
    """Whether test failures are ignored when deciding to remediate."""

    remediate_last_failure: bool | None = field(
        metadata=field_options(alias="remediateLastFailure"), default=None
    )
    """Whether the last failure is remediated once retries run out."""

    strategy: RemediationStrategy | None = None
    """The remediation strategy, defaults to a rollback."""

    def get_retries(self) -> int:
        return self.retries

    def must_ignore_test_failures(self, default: bool) -> bool:
        if self.ignore_test_failures is None:
            return default
        return self.ignore_test_failures

    def must_remediate_last_failure(self) -> bool:
        if self.retries == 0:
            return False
        return bool(self.remediate_last_failure)

    def get_strategy(self) -> RemediationStrategy:
        return self.strategy or RemediationStrategy.ROLLBACK

    def get_failure_count(self, obj: "HelmRelease") -> int:
        return obj.status.upgrade_failures

    def increment_failure_count(self, obj: "HelmRelease") -> None:
        obj.status.upgrade_failures += 1


@dataclass
class Install(BaseManifest):
    """Configuration of the Helm install action."""

    remediation: InstallRemediation | None = None
    """Remediation policy for a failed install."""

    def get_remediation(self) -> Remediation:
        """Return the configured remediation, or the default policy."""
        return self.remediation or InstallRemediation()


@dataclass
class Upgrade(BaseManifest):
    """Configuration of the Helm upgrade action."""

    remediation: UpgradeRemediation | None = None
    """Remediation policy for a failed upgrade."""

    def get_remediation(self) -> Remediation:
        """Return the configured remediation, or the default policy."""
        return self.remediation or UpgradeRemediation()


@dataclass
class Test(BaseManifest):
    """Configuration of the Helm test action."""

    # Not a pytest test class.
    __test__ = False

    enable: bool = False
    """Whether the test hooks of the chart are run after an install or upgrade."""

    ignore_failures: bool = field(
        metadata=field_options(alias="ignoreFailures"), default=False
    )
    """Whether test failures are ignored for readiness."""


@dataclass
class HelmChart(BaseManifest):
    """A reference to the chart used by a HelmRelease."""

    kind: ClassVar[str] = HELM_CHART
    """The kind of the object."""

    name: str
    """The name of the chart within the source."""

    repo_name: str = field(metadata=field_options(alias="repoName"))
    """The short name of the source."""

    repo_namespace: str = field(metadata=field_options(alias="repoNamespace"))
    """The namespace of the source."""

    version: str | None = None
    """The version constraint of the chart."""

    repo_kind: str = field(
        metadata=field_options(alias="repoKind"), default=HELM_REPO_KIND
    )
    """The kind of the sourceRef of the chart (e.g. HelmRepository, GitRepository)."""

    @classmethod
    def parse_doc(cls, doc: dict[str, Any], default_namespace: str) -> "HelmChart":
        """Parse a HelmChart from a HelmRelease resource object."""
        _check_version(doc, HELM_RELEASE_DOMAIN)
        if not (spec := doc.get("spec")):
            raise InputException(f"Invalid {cls} missing spec: {doc}")
        if chart_ref := spec.get("chartRef"):
            if not (kind := chart_ref.get("kind")):
                raise InputException(f"Invalid {cls} missing spec.chartRef.kind: {doc}")
            if not (name := chart_ref.get("name")):
                raise InputException(f"Invalid {cls} missing spec.chartRef.name: {doc}")
            return cls(
                name=name,
                repo_name=name,
                repo_namespace=chart_ref.get("namespace", default_namespace),
                repo_kind=kind,
            )
        if not (chart := spec.get("chart")):
            raise InputException(
                f"Invalid {cls} missing spec.chart or spec.chartRef: {doc}"
            )
        if not (chart_spec := chart.get("spec")):
            raise InputException(f"Invalid {cls} missing spec.chart.spec: {doc}")
        if not (chart_name := chart_spec.get("chart")):
            raise InputException(f"Invalid {cls} missing spec.chart.spec.chart: {doc}")
        if not (source_ref := chart_spec.get("sourceRef")):
            raise InputException(
                f"Invalid {cls} missing spec.chart.spec.sourceRef: {doc}"
            )
        if "name" not in source_ref:
            raise InputException(f"Invalid {cls} missing sourceRef fields: {doc}")
        return cls(
            name=chart_name,
            version=chart_spec.get("version"),
            repo_name=source_ref["name"],
            repo_namespace=source_ref.get("namespace", default_namespace),
            repo_kind=source_ref.get("kind", HELM_REPO_KIND),
        )


@dataclass
class HelmReleaseStatus(BaseManifest):
    """The observed state of a HelmRelease."""

    observed_generation: int = field(
        metadata=field_options(alias="observedGeneration"), default=0
    )
    """The last generation of the HelmRelease that was reconciled."""

    last_attempted_release_action: ReleaseAction | None = field(
        metadata=field_options(alias="lastAttemptedReleaseAction"), default=None
    )
    """The last Helm action attempted for the HelmRelease."""

    failures: int = 0
    """The number of reconciliation failures since the last success."""

    install_failures: int = field(
        metadata=field_options(alias="installFailures"), default=0
    )
    """The number of install failures counted for remediation."""

    upgrade_failures: int = field(
        metadata=field_options(alias="upgradeFailures"), default=0
    )
    """The number of upgrade failures counted for remediation."""

    history: list[Snapshot] = field(default_factory=list)
    """The releases made for the HelmRelease, most recent last."""

    conditions: list[Condition] = field(default_factory=list)
    """The conditions of the HelmRelease."""

    def clear_history(self) -> None:
        """Forget all releases recorded for the HelmRelease."""
        self.history = []

    def latest_snapshot(self) -> Snapshot | None:
        """Return the most recent release in the history."""
        if not self.history:
            return None
        return self.history[-1]


@dataclass
class HelmRelease(BaseManifest):
    """A representation of a Flux HelmRelease."""

    kind: ClassVar[str] = HELM_RELEASE
    """The kind of the object."""

    name: str
    """The name of the HelmRelease."""

    namespace: str
    """The namespace that owns the HelmRelease."""

    chart: HelmChart
    """A mapping to a specific helm chart for this HelmRelease."""

    generation: int = 0
    """The generation of the HelmRelease spec."""

    release_name: str | None = field(
        metadata=field_options(alias="releaseName"), default=None
    )
    """The Helm release name set in the spec."""

    target_namespace: str | None = field(
        metadata=field_options(alias="targetNamespace"), default=None
    )
    """The namespace to target when performing the operation."""

    storage_namespace: str | None = field(
        metadata=field_options(alias="storageNamespace"), default=None
    )
    """The namespace holding the Helm release storage."""

    values: dict[str, Any] | None = None
    """The values to install in the chart."""

    install: Install | None = None
    """Configuration of the Helm install action."""

    upgrade: Upgrade | None = None
    """Configuration of the Helm upgrade action."""

    test: Test | None = None
    """Configuration of the Helm test action."""

    status: HelmReleaseStatus = field(default_factory=HelmReleaseStatus)
    """The observed state of the HelmRelease."""

    @classmethod
    def parse_doc(cls, doc: dict[str, Any]) -> "HelmRelease":
        """Parse a HelmRelease from a kubernetes resource object."""
        _check_version(doc, HELM_RELEASE_DOMAIN)
        if not (metadata := doc.get("metadata")):
            raise InputException(f"Invalid {cls} missing metadata: {doc}")
        if not (name := metadata.get("name")):
            raise InputException(f"Invalid {cls} missing metadata.name: {doc}")
        if not (namespace := metadata.get("namespace")):
            raise InputException(f"Invalid {cls} missing metadata.namespace: {doc}")
        chart = HelmChart.parse_doc(doc, namespace)
        spec = doc["spec"]
        install: Install | None = None
        if (install_dict := spec.get("install")) is not None:
            install = Install.from_dict(install_dict)
        upgrade: Upgrade | None = None
        if (upgrade_dict := spec.get("upgrade")) is not None:
            upgrade = Upgrade.from_dict(upgrade_dict)
        test: Test | None = None
        if (test_dict := spec.get("test")) is not None:
            test = Test.from_dict(test_dict)
        status = HelmReleaseStatus()
        if status_dict := doc.get("status"):
            status = HelmReleaseStatus.from_dict(status_dict)
        return HelmRelease(
            name=name,
            namespace=namespace,
            chart=chart,
            generation=metadata.get("generation", 0),
            release_name=spec.get("releaseName"),
            target_namespace=spec.get("targetNamespace"),
            storage_namespace=spec.get("storageNamespace"),
            values=spec.get("values"),
            install=install,
            upgrade=upgrade,
            test=test,
            status=status,
        )

    @property
    def namespaced_name(self) -> str:
        """Return the namespace and name concatenated as an id."""
        return f"{self.namespace}/{self.name}"

    @property
    def release_namespace(self) -> str:
        """Actual namespace where the HelmRelease will be installed to."""
        if self.target_namespace:
            return self.target_namespace
        return self.namespace

    def get_release_name(self) -> str:
        """Return the name of the Helm release made for this HelmRelease.

        Names exceeding the Helm limit are shortened and suffixed with a
        hash of the full name to keep them unique.
        """
        release_name = self.release_name
        if not release_name:
            release_name = self.name
            if self.target_namespace:
                release_name = f"{self.target_namespace}-{self.name}"
        if len(release_name) > MAX_RELEASE_NAME_LENGTH:
            name_hash = hashlib.sha256(release_name.encode("utf-8")).hexdigest()
            release_name = (
                f"{release_name[:SHORT_RELEASE_NAME_PREFIX]}"
                f"-{name_hash[:SHORT_RELEASE_NAME_HASH]}"
            )
        return release_name

    def get_storage_namespace(self) -> str:
        """Return the namespace holding the Helm release storage."""
        if self.storage_namespace:
            return self.storage_namespace
        return self.namespace

    def get_install(self) -> Install:
        """Return the install configuration, or the defaults."""
        return self.install or Install()

    def get_upgrade(self) -> Upgrade:
        """Return the upgrade configuration, or the defaults."""
        return self.upgrade or Upgrade()

    def get_test(self) -> Test:
        """Return the test configuration, or the defaults."""
        return self.test or Test()


async def read_helm_release(path: Path) -> HelmRelease:
    """Return a HelmRelease parsed from a serialized YAML file."""
    _LOGGER.debug("Reading HelmRelease from %s", path)
    async with aiofiles.open(str(path)) as helm_release_file:
        content = await helm_release_file.read()
    if not content:
        raise InputException(f"HelmRelease file {path} is empty")
    return HelmRelease.parse_yaml(content)  # type: ignore[return-value]


async def write_helm_release(path: Path, helm_release: HelmRelease) -> None:
    """Write the HelmRelease including its status to a YAML file."""
    _LOGGER.debug("Writing HelmRelease %s to %s", helm_release.namespaced_name, path)
    async with aiofiles.open(str(path), mode="w") as helm_release_file:
        await helm_release_file.write(helm_release.yaml())
