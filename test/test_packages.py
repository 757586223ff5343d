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

import pytest
from semver import VersionInfo

from pulumi_yaml.errors import (
    InvalidTypeTokenError,
    UnknownFunctionError,
    UnknownPropertyError,
    UnknownResourceError,
)
from pulumi_yaml.packages import ResourcePackage, new_resource_package
from pulumi_yaml.schema import SchemaPackageReference

from helpers import aws_schema, schema


@pytest.fixture
def aws(aws_reference):
    return new_resource_package(aws_reference)


def test_name_and_version(aws):
    assert aws.name() == "aws"
    assert aws.version() == VersionInfo(6, 0, 0)


@pytest.mark.parametrize(
    "token",
    [
        "aws:s3/bucket:Bucket",
        "aws:index:Tag",
        "aws:ec2/instance:Instance",
        "aws:ec2/vpc:Vpc",
    ],
)
def test_resolve_resource_is_idempotent(aws, token):
    assert aws.resolve_resource(token) == token
    assert aws.resolve_resource(aws.resolve_resource(token)) == token


@pytest.mark.parametrize(
    "token",
    ["aws:s3/getBucket:getBucket", "aws:index:getRegion"],
)
def test_resolve_function_is_idempotent(aws, token):
    assert aws.resolve_function(token) == token


def test_resolve_resource_legacy_module(aws):
    assert aws.resolve_resource("aws:s3:Bucket") == "aws:s3/bucket:Bucket"
    assert aws.resolve_resource("aws:ec2:Instance") == "aws:ec2/instance:Instance"


def test_resolve_resource_index_module(aws):
    assert aws.resolve_resource("aws:Tag") == "aws:index:Tag"


def test_resolve_function_aliases(aws):
    assert aws.resolve_function("aws:s3:getBucket") == "aws:s3/getBucket:getBucket"
    assert aws.resolve_function("aws:getRegion") == "aws:index:getRegion"


def test_resolved_tokens_are_in_the_tables(aws, aws_reference):
    for token in ["aws:s3:Bucket", "aws:Tag", "aws:ec2:Vpc"]:
        resolved = aws.resolve_resource(token)
        assert resolved in aws_reference.resources()
        assert aws.resource_type_hint(resolved) is not None
    resolved = aws.resolve_function("aws:s3:getBucket")
    assert resolved in aws_reference.functions()
    assert aws.function_type_hint(resolved) is not None


def test_index_literal_has_priority():
    pkg = ResourcePackage(
        SchemaPackageReference(
            schema("p", resources={"p:A": {}, "p:index:A": {}})
        )
    )
    assert pkg.resolve_resource("p:A") == "p:A"
    assert pkg.resolve_resource("p:index:A") == "p:index:A"


def test_provider_shortcut():
    class NoTables(SchemaPackageReference):
        def resources(self):
            raise AssertionError("the resource table must not be consulted")

    pkg = ResourcePackage(NoTables(schema("aws")))
    assert pkg.resolve_resource("pulumi:providers:aws") == "pulumi:providers:aws"


def test_provider_of_another_package(aws):
    with pytest.raises(UnknownResourceError):
        aws.resolve_resource("pulumi:providers:gcp")


def test_resolve_resource_unknown(aws):
    with pytest.raises(UnknownResourceError) as exc:
        aws.resolve_resource("aws:s3:Nope")
    assert exc.value.token == "aws:s3:Nope"
    assert "in resource provider 'aws'" in str(exc.value)


def test_resolve_function_unknown(aws):
    with pytest.raises(UnknownFunctionError):
        aws.resolve_function("aws:s3:getNope")


@pytest.mark.parametrize("token", ["aws", "a:b:c:d"])
def test_invalid_tokens(aws, token):
    with pytest.raises(InvalidTypeTokenError):
        aws.resolve_resource(token)
    with pytest.raises(InvalidTypeTokenError):
        aws.resolve_function(token)


def test_is_component(aws):
    assert aws.is_component("aws:ec2/vpc:Vpc")
    assert not aws.is_component("aws:s3/bucket:Bucket")
    with pytest.raises(UnknownResourceError):
        aws.is_component("aws:s3/nope:Nope")


def test_is_resource_property_secret(aws):
    assert aws.is_resource_property_secret("aws:s3/bucket:Bucket", "password")
    assert not aws.is_resource_property_secret("aws:s3/bucket:Bucket", "bucket")


def test_is_resource_property_secret_unknown_property():
    pkg = ResourcePackage(
        SchemaPackageReference(
            schema("aws", resources={"aws:s3/bucket:Bucket": {"inputProperties": {}}})
        )
    )
    with pytest.raises(UnknownPropertyError) as exc:
        pkg.is_resource_property_secret("aws:s3/bucket:Bucket", "password")
    assert exc.value.property_name == "password"


def test_is_resource_property_secret_only_reads_inputs(aws):
    # `arn` is an output property only.
    with pytest.raises(UnknownPropertyError):
        aws.is_resource_property_secret("aws:s3/bucket:Bucket", "arn")


def test_is_resource_property_secret_unknown_resource(aws):
    with pytest.raises(UnknownResourceError):
        aws.is_resource_property_secret("aws:s3/nope:Nope", "password")


def test_resource_type_hint(aws):
    hint = aws.resource_type_hint("aws:s3/bucket:Bucket")
    assert hint.token == "aws:s3/bucket:Bucket"
    assert [p.name for p in hint.resource.input_properties] == ["bucket", "password"]
    assert aws.resource_type_hint("aws:s3/nope:Nope") is None


def test_provider_type_hint(aws):
    hint = aws.resource_type_hint("pulumi:providers:aws")
    assert hint.token == "pulumi:providers:aws"
    assert hint.resource.is_provider
    assert [p.name for p in hint.resource.input_properties] == ["region"]


def test_function_type_hint(aws):
    fn = aws.function_type_hint("aws:s3/getBucket:getBucket")
    assert [p.name for p in fn.inputs] == ["bucket"]
    assert [p.name for p in fn.outputs] == ["arn"]
    assert aws.function_type_hint("aws:s3/getNope:getNope") is None


def test_resource_constants(aws):
    assert aws.resource_constants("aws:s3/bucket:Bucket") == {"kind": "s3"}
    assert aws.resource_constants("aws:index:Tag") == {}
    assert aws.resource_constants("aws:s3/nope:Nope") == {}
    assert aws.resource_constants("pulumi:providers:aws") == {"version": "6"}


def test_hints_tolerate_broken_schemas():
    pkg = ResourcePackage(
        SchemaPackageReference(
            schema("bad", resources={"bad:index:Res": {"inputProperties": ["oops"]}})
        )
    )
    assert pkg.resource_type_hint("bad:index:Res") is None
    assert pkg.resource_constants("bad:index:Res") == {}


def test_unversioned_schema():
    spec = aws_schema()
    del spec["version"]
    assert ResourcePackage(SchemaPackageReference(spec)).version() is None
