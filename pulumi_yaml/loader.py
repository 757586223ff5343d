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

import asyncio
import dataclasses
from typing import Mapping, Optional, Tuple

from semver import VersionInfo

from . import log
from .compat import check_package_version, check_resource_type
from .errors import (
    LoaderClosedError,
    PackageLoadError,
    SchemaNotImplementedError,
    SchemaUnavailableError,
)
from .host import PluginHost, PluginReferenceLoader
from .packages import Package, ResourcePackage
from .schema import PackageDescriptor, ReferenceLoader
from .tokens import (
    FunctionTypeToken,
    ResourceTypeToken,
    resolve_pkg_name,
    split_token,
)
from .workspace import PluginsConfig

Descriptors = Mapping[str, PackageDescriptor]
"""Package descriptors keyed by package name."""


class PackageLoader:
    """
    PackageLoader loads packages through a ReferenceLoader. A loader created
    by `new_package_loader` owns a plugin host, which `close` shuts down
    together with every plugin it started.
    """

    def __init__(
        self, reference_loader: ReferenceLoader, host: Optional[PluginHost] = None
    ):
        self.reference_loader = reference_loader
        self.host = host
        self._closed = False

    async def load_package(self, descriptor: PackageDescriptor) -> Package:
        """
        Load the package identified by `descriptor`. The load runs in the
        event loop's default executor; cancelling the awaiting task abandons it.
        """
        if self._closed:
            raise LoaderClosedError()
        log.debug(f"Loading package {descriptor}")
        loop = asyncio.get_running_loop()
        ref = await loop.run_in_executor(
            None, self.reference_loader.load_package_reference, descriptor
        )
        return ResourcePackage(ref)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self.host is not None:
            self.host.close()

    def __enter__(self) -> "PackageLoader":
        return self

    def __exit__(self, *args) -> None:
        self.close()


def new_package_loader(
    plugins: Optional[PluginsConfig] = None, home: Optional[str] = None
) -> PackageLoader:
    """
    Create a PackageLoader that loads schemas from provider plugins.

    :param plugins: Plugins configured in the project file, which take
        precedence over installed plugins.
    :param home: Overrides the Pulumi home directory plugins are found in.
    """
    host = PluginHost(plugins, home)
    return PackageLoader(PluginReferenceLoader(host), host)


def new_package_loader_from_schema_loader(loader: ReferenceLoader) -> PackageLoader:
    """
    Create a PackageLoader over an existing ReferenceLoader. The loader owns no
    plugin host, so closing it is a no-op. Useful for tests.
    """
    return PackageLoader(loader)


async def load_package(
    loader: PackageLoader,
    descriptors: Descriptors,
    type_string: str,
    version: Optional[VersionInfo] = None,
) -> Package:
    """
    Load the package that provides `type_string`, using its entry in
    `descriptors` if there is one. An explicit `version` overrides the
    descriptor's version.
    """
    split_token(type_string)

    package_name = resolve_pkg_name(type_string)
    descriptor = descriptors.get(package_name)
    if descriptor is None:
        descriptor = PackageDescriptor(name=package_name, version=version)
    elif version is not None:
        descriptor = dataclasses.replace(descriptor, version=version)

    try:
        return await loader.load_package(descriptor)
    except LoaderClosedError:
        raise
    except SchemaNotImplementedError as err:
        raise SchemaUnavailableError(package_name) from err
    except Exception as err:
        raise PackageLoadError(package_name) from err


async def resolve_resource(
    loader: PackageLoader,
    descriptors: Descriptors,
    type_string: str,
    version: Optional[VersionInfo] = None,
) -> Tuple[Package, ResourceTypeToken]:
    """
    Determine the package of a resource, load it, and resolve the canonical
    name of the resource, returning both the package and the canonical name.
    """
    check_resource_type(type_string)

    pkg = await load_package(loader, descriptors, type_string, version)
    check_package_version(type_string, pkg, version)

    return pkg, pkg.resolve_resource(type_string)


async def resolve_function(
    loader: PackageLoader,
    descriptors: Descriptors,
    type_string: str,
    version: Optional[VersionInfo] = None,
) -> Tuple[Package, FunctionTypeToken]:
    """
    Determine the package of a function, load it, and resolve the canonical
    name of the function, returning both the package and the canonical name.
    """
    pkg = await load_package(loader, descriptors, type_string, version)
    return pkg, pkg.resolve_function(type_string)
