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

import os
import sys

import pytest

# Make the shared test helpers importable as `helpers`.
sys.path.insert(0, os.path.dirname(__file__))

from helpers import aws_schema  # noqa: E402
from pulumi_yaml.schema import SchemaPackageReference  # noqa: E402


@pytest.fixture
def aws_reference():
    return SchemaPackageReference(aws_schema())


@pytest.fixture
def pulumi_home(tmp_path, monkeypatch):
    """An empty Pulumi home directory, exported as $PULUMI_HOME."""
    home = tmp_path / "pulumi-home"
    (home / "plugins").mkdir(parents=True)
    monkeypatch.setenv("PULUMI_HOME", str(home))
    return home
