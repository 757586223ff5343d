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
Package and type token resolution for Pulumi YAML templates. This package
finds the provider packages a template references, loads their schemas
through provider plugins, and maps the type tokens users write to the
canonical tokens the engine accepts.
"""

# Make all module members inside of this package available as package members.
from .ast import (
    PackageDecl,
    ParameterizationDecl,
    TemplateDecl,
    load_template,
    parse_template,
)

from .compat import (
    check_package_version,
    check_resource_type,
)

from .errors import (
    CompatibilityError,
    IncompatibleVersionError,
    InvalidTypeTokenError,
    InvalidVersionError,
    LoaderClosedError,
    PackageLoadError,
    PluginError,
    PluginNotFoundError,
    PulumiYAMLError,
    SchemaNotImplementedError,
    SchemaUnavailableError,
    SupersededResourceError,
    UnknownFunctionError,
    UnknownPropertyError,
    UnknownResourceError,
    UnsupportedResourceError,
)

from .loader import (
    PackageLoader,
    load_package,
    new_package_loader,
    new_package_loader_from_schema_loader,
    resolve_function,
    resolve_resource,
)

from .packages import (
    Package,
    ResourcePackage,
    new_resource_package,
)

from .references import (
    get_referenced_packages,
    package_descriptors,
)

from .schema import (
    InMemoryReferenceLoader,
    PackageDescriptor,
    PackageReference,
    ParameterizationDescriptor,
    ReferenceLoader,
    SchemaPackageReference,
)

from .syntax import (
    Diagnostic,
    Diagnostics,
)

from .tokens import (
    FunctionTypeToken,
    ResourceTypeToken,
    resolve_pkg_name,
    resolve_token,
)

from .workspace import (
    PluginsConfig,
    PluginSpec,
    load_project_plugins,
)
