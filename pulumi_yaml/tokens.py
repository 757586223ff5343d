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
Type tokens and the algorithm that maps the tokens users write to the
canonical tokens a package's schema defines.
"""

from typing import Callable, List, NewType, Optional

from .errors import InvalidTypeTokenError
from .util import lower_camel

ResourceTypeToken = NewType("ResourceTypeToken", str)
"""The canonical token of a resource, e.g. "aws:s3/bucket:Bucket"."""

FunctionTypeToken = NewType("FunctionTypeToken", str)
"""The canonical token of a function, e.g. "aws:s3/getBucket:getBucket"."""

Lookup = Callable[[str], Optional[str]]
"""
Looks a candidate token up in a package, returning the canonical token when
the package defines it and None otherwise. Errors raised by the lookup abort
the resolution.
"""


def split_token(token: str) -> List[str]:
    """
    Split a type token into its two or three sections, raising
    InvalidTypeTokenError for any other shape.
    """
    parts = token.split(":")
    if len(parts) < 2 or len(parts) > 3:
        raise InvalidTypeTokenError(token)
    return parts


def is_provider_token(token: str, package: Optional[str] = None) -> bool:
    """
    Whether `token` names a provider resource, `pulumi:providers:<package>`.
    When `package` is given the provider must belong to that package.
    """
    parts = token.split(":")
    return (
        len(parts) == 3
        and parts[0] == "pulumi"
        and parts[1] == "providers"
        and (package is None or parts[2] == package)
    )


def resolve_pkg_name(token: str) -> str:
    """
    The name of the package that defines `token`. Provider resources belong to
    the package they configure, so "pulumi:providers:aws" resolves to "aws".
    """
    if is_provider_token(token):
        return token.split(":")[2]
    return token.split(":")[0]


def resolve_token(token: str, lookup: Lookup) -> Optional[str]:
    """
    Resolve a user supplied type token to its canonical form by trying, in
    order, the token as written, `pkg:index:Type` for a two section
    `pkg:Type`, and the legacy `pkg:mod/type:Type` spelling of a three
    section `pkg:mod:Type`. Returns the first token `lookup` finds, or None.
    """
    parts = split_token(token)

    found = lookup(token)
    if found is not None:
        return found

    # `$pkg:type` is shorthand for `$pkg:index:type`.
    if len(parts) == 2:
        found = lookup(f"{parts[0]}:index:{parts[1]}")
        if found is not None:
            return found
        parts = [parts[0], "index", parts[1]]

    # Classic providers name resources like `aws:s3/bucket:Bucket`; accept
    # `aws:s3:Bucket` and interpolate the lower camel cased type name.
    repeated = lower_camel(parts[2])
    return lookup(f"{parts[0]}:{parts[1]}/{repeated}:{parts[2]}")
