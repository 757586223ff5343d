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

from typing import Optional


class PulumiYAMLError(Exception):
    """
    Base class for errors raised while resolving packages and type tokens.
    """


class InvalidTypeTokenError(PulumiYAMLError):
    def __init__(self, token: str):
        self.token = token
        super().__init__(f"invalid type token '{token}'")


class UnknownResourceError(PulumiYAMLError):
    def __init__(self, token: str, package: str):
        self.token = token
        self.package = package
        super().__init__(
            f"unable to find resource type '{token}' in resource provider '{package}'"
        )


class UnknownFunctionError(PulumiYAMLError):
    def __init__(self, token: str, package: str):
        self.token = token
        self.package = package
        super().__init__(
            f"unable to find function '{token}' in resource provider '{package}'"
        )


class UnknownPropertyError(PulumiYAMLError):
    def __init__(self, token: str, property_name: str, package: str):
        self.token = token
        self.property_name = property_name
        self.package = package
        super().__init__(
            f"unable to find property '{property_name}' on resource '{token}' "
            + f"in resource provider '{package}'"
        )


class SchemaNotImplementedError(PulumiYAMLError):
    """
    Raised by a reference loader when the provider plugin does not implement
    the GetSchema RPC.
    """

    def __init__(self, package: str):
        self.package = package
        super().__init__(f"the provider for '{package}' does not implement GetSchema")


class PackageLoadError(PulumiYAMLError):
    def __init__(self, package: str, message: Optional[str] = None):
        self.package = package
        super().__init__(message or f"internal error loading package '{package}'")


class SchemaUnavailableError(PackageLoadError):
    def __init__(self, package: str):
        super().__init__(package, f"error loading schema for '{package}'")


class LoaderClosedError(PulumiYAMLError):
    def __init__(self):
        super().__init__("cannot load packages after the package loader was closed")


class CompatibilityError(PulumiYAMLError):
    """
    The type token is refused by the compatibility policy of the YAML front-end.
    """

    def __init__(self, token: str, message: str, link: str):
        self.token = token
        self.link = link
        super().__init__(message)


class UnsupportedResourceError(CompatibilityError):
    def __init__(self, token: str, link: str):
        super().__init__(
            token,
            f"The resource type [{token}] is not supported in YAML at this time, see: {link}",
            link,
        )


class SupersededResourceError(CompatibilityError):
    pass


class IncompatibleVersionError(CompatibilityError):
    def __init__(self, token: str, message: str, link: str, minimum_major: int):
        self.minimum_major = minimum_major
        super().__init__(token, message, link)


class InvalidVersionError(PulumiYAMLError):
    def __init__(self, package: str, version: str):
        self.package = package
        self.version = version
        super().__init__(f"invalid version '{version}' for package '{package}'")


class PluginNotFoundError(PulumiYAMLError):
    def __init__(self, name: str, version: Optional[str] = None):
        self.name = name
        self.version = version
        what = f"{name}@{version}" if version else name
        super().__init__(
            f"no resource plugin 'pulumi-resource-{name}' found for '{what}'; "
            + "install it with `pulumi plugin install resource "
            + f"{name}{' ' + version if version else ''}`"
        )


class PluginError(PulumiYAMLError):
    """
    A provider plugin failed to start or an RPC to it failed.
    """

    def __init__(self, name: str, message: str):
        self.name = name
        super().__init__(f"provider plugin '{name}': {message}")
