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

import logging
import threading
from typing import Any, Dict, List, Optional

from semver import VersionInfo

from pulumi_yaml.errors import UnknownResourceError
from pulumi_yaml.packages import Package
from pulumi_yaml.schema import (
    Function,
    PackageDescriptor,
    PackageReference,
    ReferenceLoader,
    ResourceType,
    SchemaPackageReference,
)
from pulumi_yaml.tokens import FunctionTypeToken, ResourceTypeToken


def supress_unobserved_task_logging():
    """Suppresses logs about faulted unobserved tasks left behind by
    cancellation tests."""
    logging.getLogger("asyncio").setLevel(logging.CRITICAL)


supress_unobserved_task_logging()


def schema(
    name: str,
    version: Optional[str] = None,
    resources: Optional[Dict[str, Any]] = None,
    functions: Optional[Dict[str, Any]] = None,
    provider: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Builds a minimal package schema document."""
    spec: Dict[str, Any] = {
        "name": name,
        "resources": resources or {},
        "functions": functions or {},
    }
    if version is not None:
        spec["version"] = version
    if provider is not None:
        spec["provider"] = provider
    return spec


def aws_schema(version: str = "6.0.0") -> Dict[str, Any]:
    return schema(
        "aws",
        version,
        resources={
            "aws:s3/bucket:Bucket": {
                "inputProperties": {
                    "bucket": {"type": "string"},
                    "password": {"type": "string", "secret": True},
                },
                "properties": {
                    "arn": {"type": "string"},
                    "kind": {"type": "string", "const": "s3"},
                },
            },
            "aws:index:Tag": {"inputProperties": {"key": {"type": "string"}}},
            "aws:ec2/instance:Instance": {},
            "aws:ec2/vpc:Vpc": {"isComponent": True},
        },
        functions={
            "aws:s3/getBucket:getBucket": {
                "inputs": {"properties": {"bucket": {"type": "string"}}},
                "outputs": {"properties": {"arn": {"type": "string"}}},
            },
            "aws:index:getRegion": {},
        },
        provider={
            "inputProperties": {"region": {"type": "string"}},
            "properties": {"version": {"type": "string", "const": "6"}},
        },
    )


def docker_schema(version: str) -> Dict[str, Any]:
    return schema(
        "docker",
        version,
        resources={
            "docker:index/image:Image": {},
            "docker:image:Image": {},
        },
    )


class MockPackage(Package):
    """
    A Package over plain dictionaries, for tests that do not need a schema.
    Resolution only accepts tokens exactly as they are listed.
    """

    def __init__(
        self,
        name: str,
        version: Optional[str] = None,
        resources: Optional[Dict[str, Dict[str, bool]]] = None,
        functions: Optional[List[str]] = None,
    ):
        self._name = name
        self._version = VersionInfo.parse(version) if version else None
        self.resources = resources or {}
        self.functions = functions or []

    def name(self) -> str:
        return self._name

    def version(self) -> Optional[VersionInfo]:
        return self._version

    def resolve_resource(self, type_name: str) -> ResourceTypeToken:
        if type_name not in self.resources:
            raise UnknownResourceError(type_name, self._name)
        return ResourceTypeToken(type_name)

    def resolve_function(self, type_name: str) -> FunctionTypeToken:
        if type_name not in self.functions:
            raise LookupError(type_name)
        return FunctionTypeToken(type_name)

    def is_component(self, type_name: ResourceTypeToken) -> bool:
        return False

    def is_resource_property_secret(
        self, type_name: ResourceTypeToken, property_name: str
    ) -> bool:
        return self.resources.get(type_name, {}).get(property_name, False)

    def resource_type_hint(self, type_name: ResourceTypeToken) -> Optional[ResourceType]:
        return ResourceType(token=type_name)

    def function_type_hint(self, type_name: FunctionTypeToken) -> Optional[Function]:
        return Function(token=type_name)

    def resource_constants(self, type_name: ResourceTypeToken) -> Dict[str, Any]:
        return {}


class CountingReferenceLoader(ReferenceLoader):
    """
    Serves fixed schemas by package name and records every descriptor it is
    asked to load.
    """

    def __init__(self, *specs: Dict[str, Any], error: Optional[Exception] = None):
        self.specs = {spec["name"]: spec for spec in specs}
        self.error = error
        self.requests: List[PackageDescriptor] = []
        self._lock = threading.Lock()

    def load_package_reference(self, descriptor: PackageDescriptor) -> PackageReference:
        with self._lock:
            self.requests.append(descriptor)
        if self.error is not None:
            raise self.error
        return SchemaPackageReference(self.specs[descriptor.package_name])


class BlockingReferenceLoader(ReferenceLoader):
    """A ReferenceLoader whose loads wait until `release` is set."""

    def __init__(self, spec: Dict[str, Any]):
        self.spec = spec
        self.started = threading.Event()
        self.release = threading.Event()

    def load_package_reference(self, descriptor: PackageDescriptor) -> PackageReference:
        self.started.set()
        self.release.wait(timeout=10)
        return SchemaPackageReference(self.spec)
