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


def lower_camel(name: str) -> str:
    """
    Convert `name` to lower camel case the way token sections are spelled by
    classic providers, e.g. "Bucket" -> "bucket", "BucketObject" ->
    "bucketObject".

    Runs of capitals are folded ("ACL" -> "acl"), digits are kept and
    capitalize the following letter, and the separators `_`, `-`, `.` and
    space are dropped in favour of capitalizing the next letter. Any other
    character is dropped.
    """
    name = name.strip()
    if not name:
        return name

    result = ""
    cap_next = False
    prev_is_cap = False
    for i, c in enumerate(name):
        is_cap = "A" <= c <= "Z"
        is_low = "a" <= c <= "z"
        if cap_next:
            if is_low:
                c = c.upper()
        elif i == 0:
            if is_cap:
                c = c.lower()
        elif prev_is_cap and is_cap:
            c = c.lower()
        prev_is_cap = is_cap

        if is_cap or is_low:
            result += c
            cap_next = False
        elif "0" <= c <= "9":
            result += c
            cap_next = True
        else:
            cap_next = c in ("_", "-", ".", " ")
    return result
