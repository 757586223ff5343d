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
Finds the packages a template references, explicitly in its `packages`
section or implicitly through the type tokens of its resources and
invocations.
"""

import base64
import dataclasses
from typing import Dict, List, Optional, Tuple

from semver import VersionInfo

from . import log
from . import syntax
from .ast import (
    Expr,
    InvokeExpr,
    PackageDecl,
    ParameterizationDecl,
    ResourceEntry,
    StringExpr,
    TemplateDecl,
    expr_error,
    expr_warning,
    get_value,
)
from .errors import InvalidVersionError
from .schema import PackageDescriptor, ParameterizationDescriptor
from .syntax import Diagnostics
from .tokens import resolve_pkg_name
from .walker import Walker, walk

__all__ = [
    "PackageDecl",
    "ParameterizationDecl",
    "get_referenced_packages",
    "package_descriptors",
]

# The built-in package; it is always available and never loaded.
_BUILTIN_PACKAGE = "pulumi"


def get_referenced_packages(
    template: TemplateDecl,
) -> Tuple[List[PackageDecl], Diagnostics]:
    """
    Returns the packages, with their versions and download URLs where given,
    referenced by the template, sorted by name. When a package is declared
    with conflicting versions or download URLs the first one wins and a
    diagnostic is reported for each later one. "First" follows document order:
    the `packages` section, then resources, then variables, then outputs,
    rather than the order the template would be evaluated in. Returns an
    empty list when any error is reported.
    """
    package_map: Dict[str, PackageDecl] = {}

    for pkg in template.packages:
        name, version = pkg.name, pkg.version
        if pkg.parameterization is not None:
            name, version = pkg.parameterization.name, pkg.parameterization.version

        entry = package_map.get(name)
        if entry is not None:
            if entry.version == "":
                entry.version = version
            if entry.download_url == "":
                entry.download_url = pkg.download_url
        else:
            package_map[name] = dataclasses.replace(pkg)

    def accept_type(
        diags: Diagnostics,
        type_name: str,
        version: Optional[StringExpr],
        plugin_download_url: Optional[StringExpr],
    ) -> None:
        pkg = resolve_pkg_name(type_name)
        entry = package_map.get(pkg)
        if entry is None:
            package_map[pkg] = PackageDecl(
                name=pkg,
                version=get_value(version),
                download_url=get_value(plugin_download_url),
            )
            return

        v = get_value(version)
        if v != "" and entry.version != v:
            if entry.version == "":
                entry.version = v
            else:
                diags.append(
                    expr_warning(
                        version,
                        f"Package {pkg} already declared with a conflicting version: {entry.version}",
                    )
                )
        url = get_value(plugin_download_url)
        if url != "" and entry.download_url != url:
            if entry.download_url == "":
                entry.download_url = url
            else:
                diags.append(
                    expr_warning(
                        plugin_download_url,
                        f"Package {pkg} already declared with a conflicting plugin download URL: {entry.download_url}",
                    )
                )

    def visit_resource(node: ResourceEntry, diags: Diagnostics) -> bool:
        res = node.value
        if res.type is None or not res.type.value:
            diags.append(
                syntax.error(
                    res.range or node.key.range,
                    f"Resource declared without a 'type': \"{node.key.value}\"",
                )
            )
            return True
        accept_type(
            diags, res.type.value, res.options.version, res.options.plugin_download_url
        )
        return True

    def visit_expr(expr: Expr, diags: Diagnostics) -> bool:
        if isinstance(expr, InvokeExpr):
            if expr.token is None or not expr.token.value:
                diags.append(expr_error(expr, "Invoke declared without a 'function' type"))
                return True
            accept_type(
                diags,
                expr.token.value,
                expr.call_opts.version,
                expr.call_opts.plugin_download_url,
            )
        return True

    diags = walk(template, Walker(visit_resource=visit_resource, visit_expr=visit_expr))
    if diags.has_errors():
        return [], diags

    packages = [pkg for pkg in package_map.values() if pkg.name != _BUILTIN_PACKAGE]
    packages.sort(key=_sort_key)
    log.debug(f"Template {template.filename} references {len(packages)} package(s)")
    return packages, diags


def _sort_key(pkg: PackageDecl) -> Tuple[str, str, bool, str, str, str]:
    # Versions sort as strings, so unparsable versions still sort stably. The
    # download URL only breaks ties between unparameterized packages, and
    # unparameterized packages sort first.
    param = pkg.parameterization
    return (
        pkg.name,
        pkg.version,
        param is not None,
        pkg.download_url if param is None else "",
        param.name if param is not None else "",
        param.version if param is not None else "",
    )


def package_descriptors(packages: List[PackageDecl]) -> Dict[str, PackageDescriptor]:
    """
    Convert package declarations into the descriptors the package loader
    expects, keyed by the name of the package each one provides.
    """
    descriptors: Dict[str, PackageDescriptor] = {}
    for pkg in packages:
        parameterization = None
        if pkg.parameterization is not None:
            param = pkg.parameterization
            parameterization = ParameterizationDescriptor(
                name=param.name,
                version=_parse_version(param.name, param.version, required=True),  # type: ignore
                value=base64.b64decode(param.value),
            )
        descriptor = PackageDescriptor(
            name=pkg.name,
            version=_parse_version(pkg.name, pkg.version),
            download_url=pkg.download_url or None,
            parameterization=parameterization,
        )
        descriptors[descriptor.package_name] = descriptor
    return descriptors


def _parse_version(
    name: str, version: str, required: bool = False
) -> Optional[VersionInfo]:
    if version == "" and not required:
        return None
    try:
        return VersionInfo.parse(version.lstrip("v"))
    except ValueError as ex:
        raise InvalidVersionError(name, version) from ex
