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
The parts of a Pulumi package schema the resolution core reads, and the
loaders that produce them.

See https://www.pulumi.com/docs/iac/using-pulumi/pulumi-packages/schema/
"""

import json
import os
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Iterable,
    List,
    Mapping,
    Optional,
    TypeVar,
    Union,
)

import yaml
from semver import VersionInfo

from . import log


@dataclass(frozen=True)
class ParameterizationDescriptor:
    name: str
    version: VersionInfo
    value: bytes = b""


@dataclass(frozen=True)
class PackageDescriptor:
    """
    The identity under which a package is loaded. Two descriptors are
    equivalent iff all of their fields match.
    """

    name: str
    version: Optional[VersionInfo] = None
    download_url: Optional[str] = None
    parameterization: Optional[ParameterizationDescriptor] = None

    @property
    def package_name(self) -> str:
        """The name of the logical package this descriptor loads."""
        if self.parameterization is not None:
            return self.parameterization.name
        return self.name

    def __str__(self) -> str:
        s = self.name
        if self.version is not None:
            s += f"@{self.version}"
        if self.parameterization is not None:
            s += f" ({self.parameterization.name}@{self.parameterization.version})"
        return s


@dataclass
class Property:
    """https://www.pulumi.com/docs/iac/using-pulumi/pulumi-packages/schema/#property"""

    name: str
    type: Optional[str] = None
    ref: Optional[str] = None
    description: Optional[str] = None
    secret: bool = False
    const_value: Any = None
    will_replace_on_changes: bool = False

    @staticmethod
    def from_spec(name: str, spec: Mapping[str, Any]) -> "Property":
        return Property(
            name=name,
            type=spec.get("type"),
            ref=spec.get("$ref"),
            description=spec.get("description"),
            secret=bool(spec.get("secret", False)),
            const_value=spec.get("const"),
            will_replace_on_changes=bool(spec.get("willReplaceOnChanges", False)),
        )


def _properties(specs: Optional[Mapping[str, Any]]) -> List[Property]:
    return [Property.from_spec(k, v) for k, v in (specs or {}).items()]


@dataclass
class Resource:
    """https://www.pulumi.com/docs/iac/using-pulumi/pulumi-packages/schema/#resource"""

    token: str
    is_component: bool = False
    input_properties: List[Property] = field(default_factory=list)
    properties: List[Property] = field(default_factory=list)
    required_inputs: List[str] = field(default_factory=list)
    required: List[str] = field(default_factory=list)
    aliases: List[str] = field(default_factory=list)
    is_provider: bool = False
    description: Optional[str] = None
    deprecation_message: Optional[str] = None

    @staticmethod
    def from_spec(
        token: str, spec: Mapping[str, Any], is_provider: bool = False
    ) -> "Resource":
        return Resource(
            token=token,
            is_component=bool(spec.get("isComponent", False)),
            input_properties=_properties(spec.get("inputProperties")),
            properties=_properties(spec.get("properties")),
            required_inputs=list(spec.get("requiredInputs", [])),
            required=list(spec.get("required", [])),
            aliases=_alias_types(spec),
            is_provider=is_provider,
            description=spec.get("description"),
            deprecation_message=spec.get("deprecationMessage"),
        )


@dataclass
class Function:
    """https://www.pulumi.com/docs/iac/using-pulumi/pulumi-packages/schema/#function"""

    token: str
    inputs: List[Property] = field(default_factory=list)
    outputs: List[Property] = field(default_factory=list)
    description: Optional[str] = None
    deprecation_message: Optional[str] = None

    @staticmethod
    def from_spec(token: str, spec: Mapping[str, Any]) -> "Function":
        return Function(
            token=token,
            inputs=_properties((spec.get("inputs") or {}).get("properties")),
            outputs=_properties((spec.get("outputs") or {}).get("properties")),
            description=spec.get("description"),
            deprecation_message=spec.get("deprecationMessage"),
        )


@dataclass
class ResourceType:
    """A reference to a resource, as used for type hints."""

    token: str
    resource: Optional[Resource] = None


def _alias_types(spec: Mapping[str, Any]) -> List[str]:
    aliases = []
    for alias in spec.get("aliases") or []:
        if isinstance(alias, str):
            aliases.append(alias)
        elif isinstance(alias, Mapping) and alias.get("type"):
            aliases.append(alias["type"])
    return aliases


T = TypeVar("T")


class Table(Generic[T]):
    """
    A read-only table of schema entries keyed by token. Entries are decoded on
    first access; aliases resolve to the entry of the canonical token.
    """

    def __init__(
        self,
        specs: Mapping[str, Any],
        decode: Callable[[str, Mapping[str, Any]], T],
        aliases: Optional[Mapping[str, str]] = None,
    ):
        self._specs = specs
        self._decode = decode
        self._aliases = dict(aliases or {})
        self._decoded: Dict[str, T] = {}
        self._lock = threading.Lock()

    def get(self, token: str) -> Optional[T]:
        """Returns the entry for `token`, or None if the table has no such entry."""
        canonical = token if token in self._specs else self._aliases.get(token)
        if canonical is None:
            return None
        with self._lock:
            entry = self._decoded.get(canonical)
            if entry is None:
                entry = self._decode(canonical, self._specs[canonical])
                self._decoded[canonical] = entry
            return entry

    def __contains__(self, token: object) -> bool:
        return token in self._specs or token in self._aliases

    def __len__(self) -> int:
        return len(self._specs)


class PackageReference(ABC):
    """
    A loaded package schema. Implementations must be safe to read from
    multiple threads.
    """

    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def version(self) -> Optional[VersionInfo]:
        pass

    @abstractmethod
    def resources(self) -> Table[Resource]:
        pass

    @abstractmethod
    def functions(self) -> Table[Function]:
        pass

    @abstractmethod
    def provider(self) -> Resource:
        """The definition of the package's provider resource."""


class SchemaPackageReference(PackageReference):
    """
    A PackageReference over a schema document as returned by a provider's
    GetSchema RPC.
    """

    def __init__(self, spec: Mapping[str, Any]):
        if not spec.get("name"):
            raise ValueError("package schema is missing a name")
        self._spec = spec
        self._name: str = spec["name"]
        self._version = _parse_version(self._name, spec.get("version"))

        resource_specs = spec.get("resources") or {}
        aliases = {
            alias: token
            for token, res in resource_specs.items()
            for alias in _alias_types(res)
        }
        self._resources: Table[Resource] = Table(
            resource_specs, Resource.from_spec, aliases
        )
        self._functions: Table[Function] = Table(
            spec.get("functions") or {}, Function.from_spec
        )
        self._provider: Optional[Resource] = None

    @staticmethod
    def from_json(text: Union[str, bytes]) -> "SchemaPackageReference":
        return SchemaPackageReference(json.loads(text))

    def name(self) -> str:
        return self._name

    def version(self) -> Optional[VersionInfo]:
        return self._version

    def resources(self) -> Table[Resource]:
        return self._resources

    def functions(self) -> Table[Function]:
        return self._functions

    def provider(self) -> Resource:
        if self._provider is None:
            self._provider = Resource.from_spec(
                f"pulumi:providers:{self._name}",
                self._spec.get("provider") or {},
                is_provider=True,
            )
        return self._provider

    def __repr__(self) -> str:
        return f"SchemaPackageReference(name={self._name!r}, version={self._version!r})"


def _parse_version(name: str, version: Optional[str]) -> Optional[VersionInfo]:
    if not version:
        return None
    try:
        return VersionInfo.parse(version.lstrip("v"))
    except ValueError as ex:
        log.debug(f"Failed to parse version {version} of package {name} as semver: {ex}")
        return None


class ReferenceLoader(ABC):
    """
    Materializes the schema of the package a descriptor identifies.
    """

    @abstractmethod
    def load_package_reference(self, descriptor: PackageDescriptor) -> PackageReference:
        """
        Load the package identified by `descriptor`. May block, e.g. to start
        a plugin. Raises SchemaNotImplementedError when the provider cannot
        report a schema.
        """


class InMemoryReferenceLoader(ReferenceLoader):
    """
    A ReferenceLoader over pre-built package references. Useful for tests and
    for hosts that have already retrieved the schemas they need.
    """

    def __init__(
        self, references: Iterable[Union[PackageReference, Mapping[str, Any]]] = ()
    ):
        self._references: Dict[str, List[PackageReference]] = {}
        for ref in references:
            self.add(ref)

    def add(self, ref: Union[PackageReference, Mapping[str, Any]]) -> PackageReference:
        if not isinstance(ref, PackageReference):
            ref = SchemaPackageReference(ref)
        self._references.setdefault(ref.name(), []).append(ref)
        return ref

    @staticmethod
    def from_files(paths: Iterable[str]) -> "InMemoryReferenceLoader":
        """Build a loader from schema documents stored as JSON or YAML files."""
        loader = InMemoryReferenceLoader()
        for path in paths:
            with open(path, "r", encoding="utf-8") as f:
                _, ext = os.path.splitext(path)
                spec = json.load(f) if ext == ".json" else yaml.safe_load(f)
            loader.add(spec)
        return loader

    def load_package_reference(self, descriptor: PackageDescriptor) -> PackageReference:
        candidates = self._references.get(descriptor.package_name, [])
        want = descriptor.version
        if descriptor.parameterization is not None:
            want = descriptor.parameterization.version

        best: Optional[PackageReference] = None
        for ref in candidates:
            have = ref.version()
            if want is not None and have is not None and have != want:
                continue
            if best is None or (
                have is not None
                and (best.version() is None or have > best.version())  # type: ignore
            ):
                best = ref
        if best is None:
            raise LookupError(f"no schema available for package {descriptor}")
        return best

