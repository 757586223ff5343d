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
Workspace configuration: the `plugins` section of a project file and the
location of the Pulumi home directory.
"""

import json
import os
from typing import Any, Dict, List, Optional

import yaml

_PROJECT_FILE_NAMES = ["Pulumi.yaml", "Pulumi.yml", "Pulumi.json"]


class PluginSpec:
    """A plugin the project uses from a local path rather than the plugin cache."""

    name: str
    path: str
    version: Optional[str]

    def __init__(self, name: str, path: str, version: Optional[str] = None):
        self.name = name
        self.path = path
        self.version = version

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "PluginSpec":
        """Deserialize a PluginSpec from a dictionary."""
        if not data.get("name"):
            raise ValueError("plugin entries must have a 'name'")
        if not data.get("path"):
            raise ValueError(f"plugin '{data['name']}' must have a 'path'")
        return PluginSpec(
            name=data["name"],
            path=data["path"],
            version=data.get("version"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize a PluginSpec to a dictionary."""
        return _to_dict(
            [
                ("name", self.name),
                ("path", self.path),
                ("version", self.version),
            ]
        )

    def __repr__(self):
        return f"PluginSpec(name={self.name!r}, path={self.path!r}, version={self.version!r})"


class PluginsConfig:
    """The `plugins` section of a project file."""

    providers: List[PluginSpec]
    analyzers: List[PluginSpec]
    languages: List[PluginSpec]

    def __init__(
        self,
        providers: Optional[List[PluginSpec]] = None,
        analyzers: Optional[List[PluginSpec]] = None,
        languages: Optional[List[PluginSpec]] = None,
    ):
        self.providers = providers or []
        self.analyzers = analyzers or []
        self.languages = languages or []

    def provider(self, name: str, version: Optional[str] = None) -> Optional[PluginSpec]:
        """
        Returns the provider plugin configured for `name`. When `version` is
        given, a plugin pinned to another version does not match.
        """
        for spec in self.providers:
            if spec.name != name:
                continue
            if version and spec.version and spec.version.lstrip("v") != version.lstrip("v"):
                continue
            return spec
        return None

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "PluginsConfig":
        """Deserialize a PluginsConfig from a dictionary."""
        return PluginsConfig(
            providers=[PluginSpec.from_dict(p) for p in data.get("providers") or []],
            analyzers=[PluginSpec.from_dict(p) for p in data.get("analyzers") or []],
            languages=[PluginSpec.from_dict(p) for p in data.get("languages") or []],
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize a PluginsConfig to a dictionary."""
        return _to_dict(
            [
                ("providers", [p.to_dict() for p in self.providers]),
                ("analyzers", [p.to_dict() for p in self.analyzers]),
                ("languages", [p.to_dict() for p in self.languages]),
            ]
        )


def find_project_file(directory: str) -> Optional[str]:
    for name in _PROJECT_FILE_NAMES:
        path = os.path.join(directory, name)
        if os.path.isfile(path):
            return path
    return None


def load_project_plugins(path: str) -> Optional[PluginsConfig]:
    """
    Read the `plugins` section of the project file at `path`, which may also
    be the directory containing the project file. Relative plugin paths are
    resolved against the project directory.
    """
    if os.path.isdir(path):
        project_file = find_project_file(path)
        if project_file is None:
            return None
        path = project_file

    _, ext = os.path.splitext(path)
    with open(path, "r", encoding="utf-8") as file:
        settings = json.load(file) if ext == ".json" else yaml.safe_load(file)

    plugins = (settings or {}).get("plugins")
    if not plugins:
        return None

    config = PluginsConfig.from_dict(plugins)
    root = os.path.dirname(os.path.abspath(path))
    for spec in config.providers + config.analyzers + config.languages:
        if not os.path.isabs(spec.path):
            spec.path = os.path.join(root, spec.path)
    return config


def pulumi_home() -> str:
    """The Pulumi home directory, `$PULUMI_HOME` or `~/.pulumi`."""
    home = os.getenv("PULUMI_HOME")
    if home:
        return home
    return os.path.join(os.path.expanduser("~"), ".pulumi")


def plugin_dir(home: Optional[str] = None) -> str:
    """The directory installed plugins live in."""
    return os.path.join(home or pulumi_home(), "plugins")


def _to_dict(items: List[Any]) -> Dict[str, Any]:
    return {k: v for k, v in items if v is not None and v != []}
