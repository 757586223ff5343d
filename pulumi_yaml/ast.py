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
The parts of the template syntax tree the resolution core reads: package
declarations, resources with their options, and the expressions that may
contain function invocations.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Tuple, Union

import yaml
from yaml.constructor import SafeConstructor

from . import syntax
from .syntax import Diagnostics, Pos, Range

_CONSTRUCTOR = SafeConstructor()


class Expr:
    range: Optional[Range] = None

    def children(self) -> List["Expr"]:
        return []


@dataclass
class NullExpr(Expr):
    range: Optional[Range] = None


@dataclass
class BooleanExpr(Expr):
    value: bool
    range: Optional[Range] = None


@dataclass
class NumberExpr(Expr):
    value: Union[int, float]
    range: Optional[Range] = None


@dataclass
class StringExpr(Expr):
    value: str
    range: Optional[Range] = None


@dataclass
class ListExpr(Expr):
    elements: List[Expr] = field(default_factory=list)
    range: Optional[Range] = None

    def children(self) -> List[Expr]:
        return list(self.elements)


@dataclass
class ObjectProperty:
    key: StringExpr
    value: Expr


@dataclass
class ObjectExpr(Expr):
    entries: List[ObjectProperty] = field(default_factory=list)
    range: Optional[Range] = None

    def children(self) -> List[Expr]:
        return [e.value for e in self.entries]


@dataclass
class BuiltinExpr(Expr):
    """A builtin function such as `fn::join` or `fn::secret`."""

    name: str
    args: Expr
    range: Optional[Range] = None

    def children(self) -> List[Expr]:
        return [self.args]


@dataclass
class OptionsDecl:
    """The options of a resource or of a function invocation."""

    version: Optional[StringExpr] = None
    plugin_download_url: Optional[StringExpr] = None
    entries: Optional[ObjectExpr] = None


@dataclass
class InvokeExpr(Expr):
    """`fn::invoke`, or the `fn::<token>` shorthand."""

    token: Optional[StringExpr]
    call_args: Optional[Expr] = None
    call_opts: OptionsDecl = field(default_factory=OptionsDecl)
    return_: Optional[StringExpr] = None
    range: Optional[Range] = None

    def children(self) -> List[Expr]:
        return [e for e in (self.call_args, self.call_opts.entries) if e is not None]


@dataclass
class ResourceDecl:
    type: Optional[StringExpr] = None
    properties: Optional[Expr] = None
    options: OptionsDecl = field(default_factory=OptionsDecl)
    get: Optional[Expr] = None
    range: Optional[Range] = None

    def expressions(self) -> List[Expr]:
        return [
            e for e in (self.properties, self.options.entries, self.get) if e is not None
        ]


@dataclass
class ResourceEntry:
    key: StringExpr
    value: ResourceDecl


@dataclass
class ExprEntry:
    key: StringExpr
    value: Expr


@dataclass
class ParameterizationDecl:
    name: str
    version: str
    value: str = ""
    """The parameter value, base64 encoded."""


@dataclass
class PackageDecl:
    name: str
    version: str = ""
    download_url: str = ""
    parameterization: Optional[ParameterizationDecl] = None


@dataclass
class TemplateDecl:
    filename: str = ""
    name: Optional[StringExpr] = None
    description: Optional[StringExpr] = None
    packages: List[PackageDecl] = field(default_factory=list)
    resources: List[ResourceEntry] = field(default_factory=list)
    variables: List[ExprEntry] = field(default_factory=list)
    outputs: List[ExprEntry] = field(default_factory=list)


def get_value(expr: Optional[StringExpr]) -> str:
    """The value of a string expression, or "" if it is absent."""
    return expr.value if expr is not None else ""


def expr_error(expr: Optional[Expr], summary: str, detail: str = "") -> syntax.Diagnostic:
    return syntax.error(expr.range if expr is not None else None, summary, detail)


def expr_warning(
    expr: Optional[Expr], summary: str, detail: str = ""
) -> syntax.Diagnostic:
    return syntax.warning(expr.range if expr is not None else None, summary, detail)


def parse_template(
    text: str, filename: str = "Pulumi.yaml"
) -> Tuple[Optional[TemplateDecl], Diagnostics]:
    """
    Parse a YAML template. Returns None along with error diagnostics when the
    document cannot be read as a template.
    """
    diags = Diagnostics()
    try:
        root = yaml.compose(text, Loader=yaml.SafeLoader)
    except yaml.YAMLError as ex:
        mark = getattr(ex, "problem_mark", None)
        subject = None
        if mark is not None:
            pos = Pos(mark.line + 1, mark.column + 1)
            subject = Range(filename, pos, pos)
        diags.append(syntax.error(subject, f"invalid YAML: {getattr(ex, 'problem', ex)}"))
        return None, diags

    if root is None:
        return TemplateDecl(filename=filename), diags
    if not isinstance(root, yaml.MappingNode):
        diags.append(syntax.error(Range.of(root, filename), "the template must be an object"))
        return None, diags

    return _Parser(filename, diags).template(root), diags


def load_template(path: str) -> Tuple[Optional[TemplateDecl], Diagnostics]:
    with open(path, "r", encoding="utf-8") as f:
        return parse_template(f.read(), path)


class _Parser:
    def __init__(self, filename: str, diags: Diagnostics):
        self.filename = filename
        self.diags = diags

    def _range(self, node: yaml.Node) -> Range:
        return Range.of(node, self.filename)

    def _error(self, node: yaml.Node, summary: str) -> None:
        self.diags.append(syntax.error(self._range(node), summary))

    def _fields(
        self, node: yaml.Node, what: str
    ) -> Optional[List[Tuple[yaml.ScalarNode, yaml.Node]]]:
        if not isinstance(node, yaml.MappingNode):
            self._error(node, f"{what} must be an object")
            return None
        fields = []
        for key, value in node.value:
            if not isinstance(key, yaml.ScalarNode):
                self._error(key, f"keys of {what} must be strings")
                continue
            fields.append((key, value))
        return fields

    def _string(self, node: yaml.Node, what: str) -> Optional[StringExpr]:
        # Scalars such as `version: 6` are read as their source text.
        if not isinstance(node, yaml.ScalarNode):
            self._error(node, f"{what} must be a string")
            return None
        if node.tag == "tag:yaml.org,2002:null":
            return None
        return StringExpr(node.value, self._range(node))

    def _plain_string(self, node: yaml.Node, what: str) -> str:
        return get_value(self._string(node, what))

    def template(self, root: yaml.MappingNode) -> TemplateDecl:
        tmpl = TemplateDecl(filename=self.filename)
        for key, value in self._fields(root, "the template") or []:
            if key.value == "name":
                tmpl.name = self._string(value, "name")
            elif key.value == "description":
                tmpl.description = self._string(value, "description")
            elif key.value == "packages":
                tmpl.packages = self._packages(value)
            elif key.value == "resources":
                tmpl.resources = [
                    ResourceEntry(k, self._resource(k, v))
                    for k, v in self._entries(value, "resources")
                ]
            elif key.value == "variables":
                tmpl.variables = [
                    ExprEntry(k, self.expr(v)) for k, v in self._entries(value, "variables")
                ]
            elif key.value == "outputs":
                tmpl.outputs = [
                    ExprEntry(k, self.expr(v)) for k, v in self._entries(value, "outputs")
                ]
        return tmpl

    def _entries(self, node: yaml.Node, what: str) -> List[Tuple[StringExpr, yaml.Node]]:
        return [
            (StringExpr(k.value, self._range(k)), v)
            for k, v in self._fields(node, what) or []
        ]

    def _packages(self, node: yaml.Node) -> List[PackageDecl]:
        if not isinstance(node, yaml.SequenceNode):
            self._error(node, "packages must be a list")
            return []
        packages = []
        for item in node.value:
            fields = dict((k.value, v) for k, v in self._fields(item, "a package") or [])
            if "name" not in fields:
                self._error(item, "packages must have a 'name'")
                continue
            decl = PackageDecl(name=self._plain_string(fields["name"], "name"))
            if "version" in fields:
                decl.version = self._plain_string(fields["version"], "version")
            if "downloadURL" in fields:
                decl.download_url = self._plain_string(fields["downloadURL"], "downloadURL")
            if "parameterization" in fields:
                decl.parameterization = self._parameterization(fields["parameterization"])
            packages.append(decl)
        return packages

    def _parameterization(self, node: yaml.Node) -> Optional[ParameterizationDecl]:
        fields = dict((k.value, v) for k, v in self._fields(node, "parameterization") or [])
        if "name" not in fields or "version" not in fields:
            self._error(node, "parameterization must have a 'name' and a 'version'")
            return None
        return ParameterizationDecl(
            name=self._plain_string(fields["name"], "name"),
            version=self._plain_string(fields["version"], "version"),
            value=self._plain_string(fields["value"], "value") if "value" in fields else "",
        )

    def _resource(self, key: StringExpr, node: yaml.Node) -> ResourceDecl:
        decl = ResourceDecl(range=self._range(node))
        fields = self._fields(node, f"resource '{key.value}'")
        for k, v in fields or []:
            if k.value == "type":
                decl.type = self._string(v, "type")
            elif k.value == "properties":
                decl.properties = self.expr(v)
            elif k.value == "options":
                decl.options = self._options(v, "options")
            elif k.value == "get":
                decl.get = self.expr(v)
        return decl

    def _options(self, node: yaml.Node, what: str) -> OptionsDecl:
        opts = OptionsDecl()
        fields = self._fields(node, what)
        if fields is None:
            return opts
        opts.entries = ObjectExpr(
            [
                ObjectProperty(StringExpr(k.value, self._range(k)), self.expr(v))
                for k, v in fields
            ],
            self._range(node),
        )
        for k, v in fields:
            if k.value == "version":
                opts.version = self._string(v, "version")
            elif k.value == "pluginDownloadURL":
                opts.plugin_download_url = self._string(v, "pluginDownloadURL")
        return opts

    def expr(self, node: yaml.Node) -> Expr:
        rng = self._range(node)
        if isinstance(node, yaml.ScalarNode):
            return self._scalar(node, rng)
        if isinstance(node, yaml.SequenceNode):
            return ListExpr([self.expr(n) for n in node.value], rng)

        fields = self._fields(node, "an object") or []
        if len(fields) == 1 and fields[0][0].value.startswith("fn::"):
            key, value = fields[0]
            return self._function(key, value, rng)
        return ObjectExpr(
            [
                ObjectProperty(StringExpr(k.value, self._range(k)), self.expr(v))
                for k, v in fields
            ],
            rng,
        )

    def _scalar(self, node: yaml.ScalarNode, rng: Range) -> Expr:
        constructors: List[Tuple[str, Callable[[yaml.ScalarNode], Any]]] = [
            ("tag:yaml.org,2002:bool", _CONSTRUCTOR.construct_yaml_bool),
            ("tag:yaml.org,2002:int", _CONSTRUCTOR.construct_yaml_int),
            ("tag:yaml.org,2002:float", _CONSTRUCTOR.construct_yaml_float),
        ]
        if node.tag == "tag:yaml.org,2002:null":
            return NullExpr(rng)
        for tag, construct in constructors:
            if node.tag == tag:
                value = construct(node)
                if isinstance(value, bool):
                    return BooleanExpr(value, rng)
                return NumberExpr(value, rng)
        return StringExpr(node.value, rng)

    def _function(self, key: yaml.ScalarNode, value: yaml.Node, rng: Range) -> Expr:
        name = key.value[len("fn::") :]
        if name == "invoke":
            return self._invoke(value, rng)
        if ":" in name:
            return InvokeExpr(
                token=StringExpr(name, self._range(key)),
                call_args=self.expr(value),
                range=rng,
            )
        return BuiltinExpr(name, self.expr(value), rng)

    def _invoke(self, node: yaml.Node, rng: Range) -> Expr:
        invoke = InvokeExpr(token=None, range=rng)
        for k, v in self._fields(node, "fn::invoke") or []:
            if k.value == "function":
                invoke.token = self._string(v, "function")
            elif k.value == "arguments":
                invoke.call_args = self.expr(v)
            elif k.value == "options":
                invoke.call_opts = self._options(v, "invoke options")
            elif k.value == "return":
                invoke.return_ = self._string(v, "return")
        return invoke
