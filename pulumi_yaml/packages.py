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

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from semver import VersionInfo

from . import log
from .errors import UnknownFunctionError, UnknownPropertyError, UnknownResourceError
from .schema import Function, PackageReference, Property, ResourceType
from .tokens import (
    FunctionTypeToken,
    ResourceTypeToken,
    is_provider_token,
    resolve_token,
    split_token,
)


class Package(ABC):
    """
    Package is our external facing term, e.g.: a provider package in the
    registry. Packages are delivered via plugins, and this class provides
    enough surface area to get information about resources in a package.
    """

    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def version(self) -> Optional[VersionInfo]:
        pass

    @abstractmethod
    def resolve_resource(self, type_name: str) -> ResourceTypeToken:
        """
        Given a type name, look up that type in the package's resources and
        return the canonical type name, trying alternate names as needed.

        e.g.: given "aws:s3:Bucket", it will return "aws:s3/bucket:Bucket".
        """

    @abstractmethod
    def resolve_function(self, type_name: str) -> FunctionTypeToken:
        """
        Given a type name, look up that type in the package's functions and
        return the canonical type name, trying alternate names as needed.
        """

    @abstractmethod
    def is_component(self, type_name: ResourceTypeToken) -> bool:
        pass

    @abstractmethod
    def is_resource_property_secret(
        self, type_name: ResourceTypeToken, property_name: str
    ) -> bool:
        pass

    @abstractmethod
    def resource_type_hint(self, type_name: ResourceTypeToken) -> Optional[ResourceType]:
        """
        Information on the properties of a resource. Every token returned by
        resolve_resource must produce a hint.
        """

    @abstractmethod
    def function_type_hint(self, type_name: FunctionTypeToken) -> Optional[Function]:
        pass

    @abstractmethod
    def resource_constants(self, type_name: ResourceTypeToken) -> Dict[str, Any]:
        """
        Properties with constant values that must be added to every
        registration of the resource.
        """


class ResourcePackage(Package):
    """
    A Package backed by a loaded PackageReference.
    """

    def __init__(self, reference: PackageReference):
        self.reference = reference

    def name(self) -> str:
        return self.reference.name()

    def version(self) -> Optional[VersionInfo]:
        return self.reference.version()

    def _resolve_provider(self, type_name: str) -> Optional[ResourceTypeToken]:
        if is_provider_token(type_name, self.name()):
            return ResourceTypeToken(type_name)
        return None

    def _resource_token(self, token: str) -> Optional[str]:
        res = self.reference.resources().get(token)
        return res.token if res is not None else None

    def _function_token(self, token: str) -> Optional[str]:
        fn = self.reference.functions().get(token)
        return fn.token if fn is not None else None

    def resolve_resource(self, type_name: str) -> ResourceTypeToken:
        provider = self._resolve_provider(type_name)
        if provider is not None:
            return provider

        token = resolve_token(type_name, self._resource_token)
        if token is None:
            raise UnknownResourceError(type_name, self.name())
        return ResourceTypeToken(token)

    def resolve_function(self, type_name: str) -> FunctionTypeToken:
        split_token(type_name)

        token = resolve_token(type_name, self._function_token)
        if token is None:
            raise UnknownFunctionError(type_name, self.name())
        return FunctionTypeToken(token)

    def is_component(self, type_name: ResourceTypeToken) -> bool:
        res = self.reference.resources().get(type_name)
        if res is None:
            raise UnknownResourceError(type_name, self.name())
        return res.is_component

    def is_resource_property_secret(
        self, type_name: ResourceTypeToken, property_name: str
    ) -> bool:
        res = self.reference.resources().get(type_name)
        if res is None:
            raise UnknownResourceError(type_name, self.name())
        for prop in res.input_properties:
            if prop.name == property_name:
                return prop.secret
        raise UnknownPropertyError(type_name, property_name, self.name())

    def resource_type_hint(self, type_name: ResourceTypeToken) -> Optional[ResourceType]:
        try:
            if self._resolve_provider(type_name) is not None:
                return ResourceType(token=type_name, resource=self.reference.provider())
            res = self.reference.resources().get(type_name)
        except Exception as ex:  # noqa: BLE001 catch blind exception
            log.debug(f"No type hint for resource {type_name}: {ex}")
            return None
        if res is None:
            return None
        return ResourceType(token=type_name, resource=res)

    def function_type_hint(self, type_name: FunctionTypeToken) -> Optional[Function]:
        try:
            return self.reference.functions().get(type_name)
        except Exception as ex:  # noqa: BLE001 catch blind exception
            log.debug(f"No type hint for function {type_name}: {ex}")
            return None

    def resource_constants(self, type_name: ResourceTypeToken) -> Dict[str, Any]:
        try:
            if self._resolve_provider(type_name) is not None:
                return _constants(self.reference.provider().properties)
            res = self.reference.resources().get(type_name)
        except Exception as ex:  # noqa: BLE001 catch blind exception
            log.debug(f"No constants for resource {type_name}: {ex}")
            return {}
        if res is None:
            return {}
        return _constants(res.properties)

    def __repr__(self) -> str:
        return f"ResourcePackage(name={self.name()!r}, version={self.version()!r})"


def _constants(props: List[Property]) -> Dict[str, Any]:
    return {p.name: p.const_value for p in props if p.const_value is not None}


def new_resource_package(reference: PackageReference) -> Package:
    return ResourcePackage(reference)
