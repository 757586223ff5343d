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
Utility functions for logging messages. When running under the Pulumi engine,
messages are sent to the engine's diagnostic stream; otherwise they go to the
`pulumi_yaml` logger.
"""
import logging
from typing import Optional

from pulumi.runtime.proto import engine_pb2
from pulumi.runtime.settings import get_engine

_LOGGER = logging.getLogger("pulumi_yaml")


def debug(
    msg: str, stream_id: Optional[int] = None, ephemeral: Optional[bool] = None
) -> None:
    """
    Logs a message to the debug channel.

    :param str msg: The message to log.
    :param Optional[int] stream_id: If provided, associate this message with a stream of other messages.
    """
    engine = get_engine()
    if engine is not None:
        _log(engine, engine_pb2.DEBUG, msg, stream_id, ephemeral)
    else:
        _LOGGER.debug(msg)


def info(
    msg: str, stream_id: Optional[int] = None, ephemeral: Optional[bool] = None
) -> None:
    """
    Logs a message to the info channel.

    :param str msg: The message to log.
    :param Optional[int] stream_id: If provided, associate this message with a stream of other messages.
    """
    engine = get_engine()
    if engine is not None:
        _log(engine, engine_pb2.INFO, msg, stream_id, ephemeral)
    else:
        _LOGGER.info(msg)


def warn(
    msg: str, stream_id: Optional[int] = None, ephemeral: Optional[bool] = None
) -> None:
    """
    Logs a message to the warning channel.

    :param str msg: The message to log.
    :param Optional[int] stream_id: If provided, associate this message with a stream of other messages.
    """
    engine = get_engine()
    if engine is not None:
        _log(engine, engine_pb2.WARNING, msg, stream_id, ephemeral)
    else:
        _LOGGER.warning(msg)


def error(
    msg: str, stream_id: Optional[int] = None, ephemeral: Optional[bool] = None
) -> None:
    """
    Logs a message to the error channel.

    :param str msg: The message to log.
    :param Optional[int] stream_id: If provided, associate this message with a stream of other messages.
    """
    engine = get_engine()
    if engine is not None:
        _log(engine, engine_pb2.ERROR, msg, stream_id, ephemeral)
    else:
        _LOGGER.error(msg)


def _log(engine, severity, message, stream_id, ephemeral):
    if stream_id is None:
        stream_id = 0

    req = engine_pb2.LogRequest(
        severity=severity,
        message=message,
        urn="",
        streamId=stream_id,
        ephemeral=ephemeral,
    )
    engine.Log(req)
