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

import textwrap

from pulumi_yaml.ast import InvokeExpr, StringExpr, parse_template
from pulumi_yaml.syntax import Diagnostics, error
from pulumi_yaml.walker import Walker, walk

TEMPLATE = textwrap.dedent(
    """
    resources:
      first:
        type: test:index:First
        properties:
          value: a
        options:
          protect: b
        get:
          id: c
      second:
        type: test:index:Second
        properties:
          nested:
            - fn::invoke:
                function: test:index:fn
                arguments:
                  arg: d
    variables:
      v: e
    outputs:
      o: f
    """
)


def strings(expr_log):
    return [e.value for e in expr_log if isinstance(e, StringExpr)]


def test_walk_order():
    template, _ = parse_template(TEMPLATE)
    visited = []

    def visit_resource(node, diags):
        visited.append(node.key.value)
        return True

    def visit_expr(expr, diags):
        visited.append(expr)
        return True

    walk(template, Walker(visit_resource=visit_resource, visit_expr=visit_expr))

    names = [v if isinstance(v, str) else getattr(v, "value", None) for v in visited]
    order = [n for n in names if n in ("first", "second", "a", "b", "c", "d", "e", "f")]
    assert order == ["first", "a", "b", "c", "second", "d", "e", "f"]
    assert any(isinstance(v, InvokeExpr) for v in visited)


def test_skip_resource_expressions():
    template, _ = parse_template(TEMPLATE)
    seen = []

    walk(
        template,
        Walker(
            visit_resource=lambda node, diags: node.key.value != "first",
            visit_expr=lambda expr, diags: seen.append(expr) or True,
        ),
    )
    assert strings(seen) == ["d", "e", "f"]


def test_skip_nested_expressions():
    template, _ = parse_template(TEMPLATE)
    seen = []

    def visit_expr(expr, diags):
        seen.append(expr)
        return not isinstance(expr, InvokeExpr)

    walk(template, Walker(visit_expr=visit_expr))
    assert "d" not in strings(seen)
    assert strings(seen) == ["a", "b", "c", "e", "f"]


def test_diagnostics_are_collected():
    template, _ = parse_template(TEMPLATE)

    def visit_resource(node, diags):
        diags.append(error(node.key.range, f"saw {node.key.value}"))
        return False

    existing = Diagnostics()
    diags = walk(template, Walker(visit_resource=visit_resource), existing)
    assert diags is existing
    assert [d.summary for d in diags] == ["saw first", "saw second"]
    assert diags.has_errors()
