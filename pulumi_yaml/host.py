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
A minimal plugin host: locates provider plugins, starts them, and asks them
for their schemas over gRPC.
"""

from __future__ import annotations

import os
import shutil
import subprocess
import threading
from concurrent import futures
from typing import Dict, List, Optional, Tuple

import grpc
from google.protobuf import empty_pb2
from pulumi.runtime.proto import (
    engine_pb2,
    engine_pb2_grpc,
    provider_pb2,
    provider_pb2_grpc,
)
from semver import VersionInfo

from . import log
from .errors import PluginError, PluginNotFoundError, SchemaNotImplementedError
from .schema import (
    PackageDescriptor,
    PackageReference,
    ReferenceLoader,
    SchemaPackageReference,
)
from .workspace import PluginsConfig, plugin_dir

# _MAX_RPC_MESSAGE_SIZE raises the gRPC Max Message size from `4194304` (4mb) to `419430400` (400mb)
_MAX_RPC_MESSAGE_SIZE = 1024 * 1024 * 400
_GRPC_CHANNEL_OPTIONS = [("grpc.max_receive_message_length", _MAX_RPC_MESSAGE_SIZE)]

# How long a plugin gets to exit after being asked to terminate.
_SHUTDOWN_GRACE_SECONDS = 5


def provider_binary_name(name: str) -> str:
    binary = f"pulumi-resource-{name}"
    if os.name == "nt":
        binary += ".exe"
    return binary


def installed_provider_versions(
    name: str, home: Optional[str] = None
) -> List[Tuple[VersionInfo, str]]:
    """
    The versions of provider `name` in the plugin cache, with the directory
    each lives in, newest first.
    """
    cache = plugin_dir(home)
    if not os.path.isdir(cache):
        return []

    prefix = f"resource-{name}-v"
    found = []
    for entry in os.listdir(cache):
        if not entry.startswith(prefix):
            continue
        path = os.path.join(cache, entry)
        if not os.path.isdir(path):
            continue
        try:
            version = VersionInfo.parse(entry[len(prefix) :])
        except ValueError:
            log.debug(f"Ignoring plugin directory {path}: not a semver version")
            continue
        found.append((version, path))
    found.sort(key=lambda item: item[0], reverse=True)
    return found


def find_provider_binary(
    name: str,
    version: Optional[VersionInfo] = None,
    plugins: Optional[PluginsConfig] = None,
    home: Optional[str] = None,
) -> str:
    """
    Locate the binary of provider `name`. Plugins configured in the project
    win, then the plugin cache (the newest version when `version` is None),
    then $PATH.
    """
    binary = provider_binary_name(name)
    wanted = str(version) if version is not None else None

    if plugins is not None:
        spec = plugins.provider(name, wanted)
        if spec is not None:
            path = os.path.join(spec.path, binary) if os.path.isdir(spec.path) else spec.path
            if not os.path.isfile(path):
                raise PluginError(name, f"configured plugin path {path} does not exist")
            return path

    for installed, directory in installed_provider_versions(name, home):
        if version is not None and installed != version:
            continue
        path = os.path.join(directory, binary)
        if os.path.isfile(path):
            return path

    path = shutil.which(binary)
    if path is not None:
        return path

    raise PluginNotFoundError(name, wanted)


class _EngineServicer(engine_pb2_grpc.EngineServicer):
    """
    Serves the engine endpoints providers call back into, forwarding their log
    messages to our own log.
    """

    def __init__(self):
        self._root_urn = ""

    def Log(self, request, context):
        if request.severity == engine_pb2.ERROR:
            log.error(request.message, request.streamId)
        elif request.severity == engine_pb2.WARNING:
            log.warn(request.message, request.streamId)
        elif request.severity == engine_pb2.INFO:
            log.info(request.message, request.streamId)
        else:
            log.debug(request.message, request.streamId)
        return empty_pb2.Empty()

    def GetRootResource(self, request, context):
        return engine_pb2.GetRootResourceResponse(urn=self._root_urn)

    def SetRootResource(self, request, context):
        self._root_urn = request.urn
        return engine_pb2.SetRootResourceResponse()


class ProviderPlugin:
    """
    A provider plugin process and, once `connect` has read the port it
    listens on, a client connected to it.
    """

    name: str
    path: str

    def __init__(self, name: str, path: str, engine_address: str):
        self.name = name
        self.path = path
        self.target: Optional[str] = None
        self._channel: Optional[grpc.Channel] = None
        self._stub: Optional[provider_pb2_grpc.ResourceProviderStub] = None
        self._closed = False
        self._lock = threading.Lock()

        log.debug(f"Starting provider plugin {name} from {path}")
        try:
            self._process = subprocess.Popen(
                [path, engine_address],
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as ex:
            raise PluginError(name, f"could not start {path}: {ex}") from ex
        assert self._process.stdout is not None
        assert self._process.stderr is not None

    def connect(self) -> None:
        """
        Wait for the plugin to report its port and connect to it. Closing the
        plugin meanwhile makes this raise PluginError.
        """
        # The first line a plugin writes is the port it listens on.
        line = self._process.stdout.readline().strip()  # type: ignore
        try:
            port = int(line)
        except ValueError:
            code = self._process.poll()
            stopped = self._closed
            self.close()
            if stopped:
                raise PluginError(
                    self.name, "stopped before it reported its port"
                ) from None
            raise PluginError(
                self.name, f"expected a port on stdout, got {line!r} (exit code {code})"
            ) from None

        consumers = [
            threading.Thread(target=self._consume, args=(stream,), daemon=True)
            for stream in (self._process.stdout, self._process.stderr)
        ]
        for consumer in consumers:
            consumer.start()

        with self._lock:
            if self._closed:
                raise PluginError(self.name, "stopped before it reported its port")
            self.target = f"127.0.0.1:{port}"
            self._channel = grpc.insecure_channel(
                self.target, options=_GRPC_CHANNEL_OPTIONS
            )
            self._stub = provider_pb2_grpc.ResourceProviderStub(self._channel)
        log.debug(f"Provider plugin {self.name} listening on {self.target}")

    def _consume(self, stream):
        for line in iter(stream.readline, ""):
            log.debug(f"{self.name}: {line.rstrip()}")
        stream.close()

    def _client(self) -> provider_pb2_grpc.ResourceProviderStub:
        if self._stub is None:
            raise PluginError(self.name, "not connected")
        return self._stub

    def get_schema(
        self, subpackage_name: str = "", subpackage_version: str = ""
    ) -> str:
        """Returns the provider's schema as a JSON document."""
        req = provider_pb2.GetSchemaRequest(
            version=0,
            subpackage_name=subpackage_name,
            subpackage_version=subpackage_version,
        )
        try:
            resp = self._client().GetSchema(req)
        except grpc.RpcError as exn:
            # pylint: disable=no-member
            if exn.code() == grpc.StatusCode.UNIMPLEMENTED:
                raise SchemaNotImplementedError(subpackage_name or self.name) from exn
            raise PluginError(self.name, f"GetSchema failed: {exn.details()}") from exn
        return resp.schema

    def parameterize(self, name: str, version: str, value: bytes) -> None:
        """Parameterize the provider with a value from a package descriptor."""
        req = provider_pb2.ParameterizeRequest(
            value=provider_pb2.ParameterizeRequest.ParametersValue(
                name=name, version=version, value=value
            )
        )
        try:
            self._client().Parameterize(req)
        except grpc.RpcError as exn:
            # pylint: disable=no-member
            raise PluginError(self.name, f"Parameterize failed: {exn.details()}") from exn

    def close(self) -> None:
        """Stop the plugin. Safe to call from any thread, and more than once."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            channel, self._channel = self._channel, None
        log.debug(f"Stopping provider plugin {self.name}")
        if channel is not None:
            channel.close()
        self._kill()

    def _kill(self) -> None:
        self._process.terminate()
        try:
            self._process.wait(timeout=_SHUTDOWN_GRACE_SECONDS)
        except subprocess.TimeoutExpired:
            self._process.kill()
            self._process.wait()


class PluginHost:
    """
    PluginHost starts provider plugins on demand and keeps them running until
    it is closed. A plugin is started at most once per name, version and
    parameterization. Plugins start in the calling thread without holding
    the host's lock, so a slow plugin delays only the loads that need it, and
    `close` stops plugins that are still starting.
    """

    def __init__(
        self, plugins: Optional[PluginsConfig] = None, home: Optional[str] = None
    ):
        self.plugins = plugins
        self.home = home
        self._providers: Dict[PackageDescriptor, futures.Future] = {}
        self._starting: List[ProviderPlugin] = []
        self._lock = threading.Lock()
        self._server: Optional[grpc.Server] = None
        self._engine_address = ""
        self._closed = False

    def _serve_engine(self, name: str) -> str:
        with self._lock:
            if self._closed:
                raise PluginError(name, "the plugin host is closed")
            if self._server is None:
                self._server = grpc.server(
                    futures.ThreadPoolExecutor(max_workers=4),
                    options=_GRPC_CHANNEL_OPTIONS,
                )
                engine_pb2_grpc.add_EngineServicer_to_server(
                    _EngineServicer(), self._server
                )
                port = self._server.add_insecure_port("127.0.0.1:0")
                self._server.start()
                self._engine_address = f"127.0.0.1:{port}"
                log.debug(f"Plugin host engine listening on {self._engine_address}")
            return self._engine_address

    def provider(self, descriptor: PackageDescriptor) -> ProviderPlugin:
        """
        Returns the running plugin for `descriptor`, starting (and, for
        parameterized packages, parameterizing) it if needed. Concurrent
        calls for the same plugin wait for the first one to start it.
        """
        # Plugins are not installed on demand; the download URL only
        # identifies the plugin.
        key = PackageDescriptor(
            name=descriptor.name,
            version=descriptor.version,
            parameterization=descriptor.parameterization,
        )
        with self._lock:
            if self._closed:
                raise PluginError(descriptor.name, "the plugin host is closed")
            pending = self._providers.get(key)
            owner = pending is None
            if pending is None:
                pending = futures.Future()
                self._providers[key] = pending

        if not owner:
            return pending.result()

        try:
            return self._start(descriptor, pending)
        except BaseException as ex:
            with self._lock:
                if self._providers.get(key) is pending:
                    del self._providers[key]
            pending.set_exception(ex)
            raise

    def _start(
        self, descriptor: PackageDescriptor, started: futures.Future
    ) -> ProviderPlugin:
        path = find_provider_binary(
            descriptor.name, descriptor.version, self.plugins, self.home
        )
        engine_address = self._serve_engine(descriptor.name)
        plugin = ProviderPlugin(descriptor.name, path, engine_address)
        with self._lock:
            if self._closed:
                plugin.close()
                raise PluginError(descriptor.name, "the plugin host is closed")
            self._starting.append(plugin)

        try:
            plugin.connect()
            param = descriptor.parameterization
            if param is not None:
                plugin.parameterize(param.name, str(param.version), param.value)
        except BaseException:
            plugin.close()
            raise
        finally:
            with self._lock:
                self._starting.remove(plugin)

        # Publish under the lock so `close` either sees the plugin or has
        # already closed the host.
        with self._lock:
            if not self._closed:
                started.set_result(plugin)
                return plugin
        plugin.close()
        raise PluginError(descriptor.name, "the plugin host is closed")

    def close(self) -> None:
        """
        Stop every plugin, including those still starting, and the engine
        server. Idempotent.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            starting = list(self._starting)
            pending = list(self._providers.values())
            self._providers.clear()
            server, self._server = self._server, None

        for plugin in starting:
            plugin.close()
        for started in pending:
            if started.done() and started.exception() is None:
                started.result().close()
        if server is not None:
            server.stop(grace=None)


class PluginReferenceLoader(ReferenceLoader):
    """
    A ReferenceLoader that asks provider plugins for their schemas. References
    are cached, so each descriptor is loaded once.
    """

    def __init__(self, host: PluginHost):
        self.host = host
        self._references: Dict[PackageDescriptor, PackageReference] = {}
        self._lock = threading.Lock()

    def load_package_reference(self, descriptor: PackageDescriptor) -> PackageReference:
        with self._lock:
            ref = self._references.get(descriptor)
        if ref is not None:
            return ref

        plugin = self.host.provider(descriptor)
        param = descriptor.parameterization
        if param is not None:
            schema = plugin.get_schema(param.name, str(param.version))
        else:
            schema = plugin.get_schema()
        log.debug(f"Loaded schema for {descriptor} ({len(schema)} bytes)")

        loaded = SchemaPackageReference.from_json(schema)
        with self._lock:
            return self._references.setdefault(descriptor, loaded)
