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
Walks a template, handing resources and expressions to visitor callbacks.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from .ast import Expr, ResourceEntry, TemplateDecl
from .syntax import Diagnostics

VisitResource = Callable[[ResourceEntry, Diagnostics], bool]
"""Visits a resource; returning False skips the resource's expressions."""

VisitExpr = Callable[[Expr, Diagnostics], bool]
"""Visits an expression; returning False skips its nested expressions."""


@dataclass
class Walker:
    visit_resource: Optional[VisitResource] = None
    visit_expr: Optional[VisitExpr] = None


def walk(
    template: TemplateDecl, walker: Walker, diags: Optional[Diagnostics] = None
) -> Diagnostics:
    """
    Visit every resource of `template`, followed by its properties, options
    and `get` expressions, in declaration order; then every variable and
    every output. Visitors report problems by appending to `diags`, which is
    returned.
    """
    if diags is None:
        diags = Diagnostics()

    for entry in template.resources:
        if walker.visit_resource is not None and not walker.visit_resource(entry, diags):
            continue
        for expr in entry.value.expressions():
            walk_expr(expr, walker, diags)

    for variable in template.variables:
        walk_expr(variable.value, walker, diags)
    for output in template.outputs:
        walk_expr(output.value, walker, diags)

    return diags


def walk_expr(expr: Expr, walker: Walker, diags: Diagnostics) -> None:
    if walker.visit_expr is not None and not walker.visit_expr(expr, diags):
        return
    for child in expr.children():
        walk_expr(child, walker, diags)
