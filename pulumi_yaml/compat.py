# Copyright 2025, Pulumi Corporation.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Resource types the YAML front-end refuses, either outright or depending on
the version of the package that provides them.
"""

from typing import Dict, Optional

from semver import VersionInfo

from .errors import (
    IncompatibleVersionError,
    SupersededResourceError,
    UnsupportedResourceError,
)
from .packages import Package

_K8S_COMPONENTS_ISSUE = "https://github.com/pulumi/pulumi-kubernetes/issues/1971"

# Resource types that are not supported in YAML, mapped to their tracking issue.
UNSUPPORTED_RESOURCES: Dict[str, str] = {
    "kubernetes:kustomize:Directory": _K8S_COMPONENTS_ISSUE,
    "kubernetes:yaml:ConfigFile": _K8S_COMPONENTS_ISSUE,
    "kubernetes:yaml:ConfigGroup": _K8S_COMPONENTS_ISSUE,
}

_HELM_RELEASE_DOCS = (
    "https://www.pulumi.com/registry/packages/kubernetes/api-docs/helm/v3/release/"
)

# Resource types superseded by another resource, mapped to the replacement's docs.
SUPERSEDED_RESOURCES: Dict[str, str] = {
    "kubernetes:helm.sh/v2:Chart": _HELM_RELEASE_DOCS,
    "kubernetes:helm.sh/v3:Chart": _HELM_RELEASE_DOCS,
}

_DOCKER_IMAGE_ISSUE = "https://github.com/pulumi/pulumi-yaml/issues/421"

# Resource types that need at least the given major version of their package.
MINIMUM_MAJOR_VERSIONS: Dict[str, int] = {
    "docker:image:Image": 4,
    "docker:Image": 4,
}


def check_resource_type(type_string: str) -> None:
    """
    Raise a CompatibilityError if `type_string` can never be used from YAML.
    Consulted before the resource's package is loaded.
    """
    link = UNSUPPORTED_RESOURCES.get(type_string)
    if link is not None:
        raise UnsupportedResourceError(type_string, link)

    link = SUPERSEDED_RESOURCES.get(type_string)
    if link is not None:
        raise SupersededResourceError(
            type_string,
            "Helm Chart resources are not supported in YAML, consider using the "
            + f"Helm Release resource instead: {link}",
            link,
        )


def check_package_version(
    type_string: str, pkg: Package, version: Optional[VersionInfo] = None
) -> None:
    """
    Raise an IncompatibleVersionError if the loaded package is too old to
    provide `type_string` in YAML. `version` is the version the caller asked
    for, if any.
    """
    minimum = MINIMUM_MAJOR_VERSIONS.get(type_string)
    if minimum is None:
        return

    # Check the *resolved* version, so users need not pin one explicitly.
    resolved = pkg.version()
    if resolved is not None and resolved.major >= minimum:
        return

    assert (
        version is None or version.major < minimum
    ), f"requested {pkg.name()}@{version} but loaded {pkg.name()}@{resolved}"
    raise IncompatibleVersionError(
        type_string,
        "Docker Image resources are not supported in YAML without major version "
        + f">= {minimum}, see: {_DOCKER_IMAGE_ISSUE}",
        _DOCKER_IMAGE_ISSUE,
        minimum,
    )
