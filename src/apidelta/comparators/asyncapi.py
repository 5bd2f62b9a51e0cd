"""
AsyncAPI section comparators.

``AsyncApiComparator`` walks two ``AsyncApiSpec`` trees section by section
(info, version, servers, channels, operations, component messages and
schemas, tags), matching every keyed collection by its key.  Message
payloads, message headers and channel parameter schemas are handed to the
``SchemaDiffEngine``.

Paths are prefixed by section: ``server:``, ``channel:``, ``operation:``,
``message:`` and ``schema:``.

Usage::

    from apidelta.comparators.asyncapi import AsyncApiComparator

    changes = AsyncApiComparator().compare(old_spec, new_spec)
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from apidelta.canonical.asyncapi import (
    AsyncApiSpec,
    AsyncChannel,
    AsyncMessage,
    AsyncOperation,
    AsyncServer,
    ChannelParameter,
    ServerVariable,
)
from apidelta.engines.keyed import match_by_key
from apidelta.engines.schema_diff import SchemaDiffEngine
from apidelta.models.changes import ChangeRecord, make_change
from apidelta.types import ChangeCategory, ChangeType, Severity

logger = logging.getLogger(__name__)


def compare_bindings(
    context: str,
    old: Optional[Mapping[str, Any]],
    new: Optional[Mapping[str, Any]],
) -> list[ChangeRecord]:
    """Protocol bindings: removed DANGEROUS, added INFO, modified WARNING."""
    changes: list[ChangeRecord] = []
    match = match_by_key(old, new)
    for name, _ in match.removed:
        changes.append(make_change(
            ChangeType.REMOVED, ChangeCategory.BINDING, Severity.DANGEROUS,
            context, f"Binding '{name}' removed", old_value=name,
        ))
    for name, _ in match.added:
        changes.append(make_change(
            ChangeType.ADDED, ChangeCategory.BINDING, Severity.INFO,
            context, f"Binding '{name}' added", new_value=name,
        ))
    for name, old_binding, new_binding in match.matched:
        if old_binding != new_binding:
            changes.append(make_change(
                ChangeType.MODIFIED, ChangeCategory.BINDING, Severity.WARNING,
                context, f"Binding '{name}' modified",
            ))
    return changes


def compare_tags(
    context: str, old: Sequence[str], new: Sequence[str]
) -> list[ChangeRecord]:
    changes: list[ChangeRecord] = []
    for tag in sorted(set(old) - set(new)):
        changes.append(make_change(
            ChangeType.MODIFIED, ChangeCategory.METADATA, Severity.INFO,
            context, f"Tag '{tag}' removed", old_value=tag,
        ))
    for tag in sorted(set(new) - set(old)):
        changes.append(make_change(
            ChangeType.MODIFIED, ChangeCategory.METADATA, Severity.INFO,
            context, f"Tag '{tag}' added", new_value=tag,
        ))
    return changes


def _major(version: Optional[str]) -> Optional[str]:
    if not version:
        return None
    return version.split(".", 1)[0]


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


class MessageComparator:
    """Compares message definitions and their payload/header schemas."""

    def __init__(self, schema_engine: Optional[SchemaDiffEngine] = None) -> None:
        self._schemas = schema_engine or SchemaDiffEngine()

    def compare_all(
        self,
        old: Optional[Mapping[str, AsyncMessage]],
        new: Optional[Mapping[str, AsyncMessage]],
        context: str = "",
    ) -> list[ChangeRecord]:
        changes: list[ChangeRecord] = []
        match = match_by_key(old, new)
        for name, message in match.removed:
            changes.extend(self.compare(name, message, None, context))
        for name, message in match.added:
            changes.extend(self.compare(name, None, message, context))
        for name, old_message, new_message in match.matched:
            changes.extend(self.compare(name, old_message, new_message, context))
        return changes

    def compare(
        self,
        name: str,
        old: Optional[AsyncMessage],
        new: Optional[AsyncMessage],
        context: str = "",
    ) -> list[ChangeRecord]:
        path = f"{context}.message:{name}" if context else f"message:{name}"
        if old is None and new is None:
            return []
        if old is None:
            return [make_change(
                ChangeType.ADDED, ChangeCategory.MESSAGE, Severity.INFO,
                path, f"Message '{name}' added", new_value=name,
            )]
        if new is None:
            return [make_change(
                ChangeType.REMOVED, ChangeCategory.MESSAGE, Severity.BREAKING,
                path, f"Message '{name}' removed", old_value=name,
            )]

        changes: list[ChangeRecord] = []
        if old.content_type != new.content_type:
            changes.append(make_change(
                ChangeType.MODIFIED, ChangeCategory.MESSAGE, Severity.BREAKING, path,
                f"Content type changed from '{old.content_type}' to '{new.content_type}'",
                old.content_type, new.content_type,
            ))
        if old.schema_format != new.schema_format:
            changes.append(make_change(
                ChangeType.MODIFIED, ChangeCategory.MESSAGE, Severity.BREAKING, path,
                f"Schema format changed from '{old.schema_format}' to '{new.schema_format}'",
                old.schema_format, new.schema_format,
            ))
        if not old.deprecated and new.deprecated:
            changes.append(make_change(
                ChangeType.DEPRECATED, ChangeCategory.MESSAGE, Severity.WARNING,
                path, f"Message '{name}' deprecated", False, True,
            ))
        if old.correlation_id != new.correlation_id:
            changes.append(make_change(
                ChangeType.MODIFIED, ChangeCategory.MESSAGE, Severity.DANGEROUS, path,
                "Correlation ID changed", old.correlation_id, new.correlation_id,
            ))
        if old.title != new.title:
            changes.append(make_change(
                ChangeType.MODIFIED, ChangeCategory.MESSAGE, Severity.INFO, path,
                "Message title changed", old.title, new.title,
            ))
        if old.summary != new.summary:
            changes.append(make_change(
                ChangeType.MODIFIED, ChangeCategory.MESSAGE, Severity.INFO, path,
                "Message summary changed", old.summary, new.summary,
            ))

        changes.extend(self._compare_payload(path, old, new))
        changes.extend(self._compare_headers(path, old, new))
        changes.extend(compare_bindings(path, old.bindings, new.bindings))
        changes.extend(compare_tags(path, old.tags, new.tags))
        return changes

    # -- internal: payload and headers -------------------------------------

    def _compare_payload(
        self, path: str, old: AsyncMessage, new: AsyncMessage
    ) -> list[ChangeRecord]:
        payload_path = f"{path}.payload"
        if old.payload is None and new.payload is None:
            return []
        if old.payload is None:
            return [make_change(
                ChangeType.ADDED, ChangeCategory.MESSAGE_PAYLOAD, Severity.INFO,
                payload_path, "Message payload added",
            )]
        if new.payload is None:
            return [make_change(
                ChangeType.REMOVED, ChangeCategory.MESSAGE_PAYLOAD, Severity.BREAKING,
                payload_path, "Message payload removed",
            )]
        return self._schemas.compare(payload_path, old.payload, new.payload)

    def _compare_headers(
        self, path: str, old: AsyncMessage, new: AsyncMessage
    ) -> list[ChangeRecord]:
        headers_path = f"{path}.headers"
        if old.headers is None and new.headers is None:
            return []
        if old.headers is None:
            return [make_change(
                ChangeType.ADDED, ChangeCategory.MESSAGE_HEADERS, Severity.INFO,
                headers_path, "Message headers added",
            )]
        if new.headers is None:
            return [make_change(
                ChangeType.REMOVED, ChangeCategory.MESSAGE_HEADERS, Severity.DANGEROUS,
                headers_path, "Message headers removed",
            )]
        return self._schemas.compare(headers_path, old.headers, new.headers)


# ---------------------------------------------------------------------------
# Channels
# ---------------------------------------------------------------------------


class ChannelComparator:
    """Compares channels, their 2.x operations, parameters and bindings."""

    def __init__(
        self,
        message_comparator: Optional[MessageComparator] = None,
        schema_engine: Optional[SchemaDiffEngine] = None,
    ) -> None:
        self._schemas = schema_engine or SchemaDiffEngine()
        self._messages = message_comparator or MessageComparator(self._schemas)

    def compare_all(
        self,
        old: Optional[Mapping[str, AsyncChannel]],
        new: Optional[Mapping[str, AsyncChannel]],
    ) -> list[ChangeRecord]:
        changes: list[ChangeRecord] = []
        match = match_by_key(old, new)
        for name, _ in match.removed:
            changes.append(make_change(
                ChangeType.REMOVED, ChangeCategory.CHANNEL, Severity.BREAKING,
                f"channel:{name}", f"Channel '{name}' removed", old_value=name,
            ))
        for name, _ in match.added:
            changes.append(make_change(
                ChangeType.ADDED, ChangeCategory.CHANNEL, Severity.INFO,
                f"channel:{name}", f"Channel '{name}' added", new_value=name,
            ))
        for name, old_channel, new_channel in match.matched:
            changes.extend(self.compare(name, old_channel, new_channel))
        return changes

    def compare(
        self, name: str, old: AsyncChannel, new: AsyncChannel
    ) -> list[ChangeRecord]:
        context = f"channel:{name}"
        changes: list[ChangeRecord] = []

        if old.address != new.address:
            changes.append(make_change(
                ChangeType.MODIFIED, ChangeCategory.CHANNEL, Severity.BREAKING, context,
                f"Channel address changed from '{old.address}' to '{new.address}'",
                old.address, new.address,
            ))
        if not old.deprecated and new.deprecated:
            changes.append(make_change(
                ChangeType.DEPRECATED, ChangeCategory.CHANNEL, Severity.WARNING,
                context, f"Channel '{name}' deprecated", False, True,
            ))
        if old.description != new.description:
            changes.append(make_change(
                ChangeType.MODIFIED, ChangeCategory.CHANNEL, Severity.INFO,
                context, "Channel description changed",
            ))

        changes.extend(self.compare_operation(context, "publish", old.publish, new.publish))
        changes.extend(self.compare_operation(context, "subscribe", old.subscribe, new.subscribe))
        changes.extend(self.compare_parameters(context, old.parameters, new.parameters))
        changes.extend(self._messages.compare_all(old.messages, new.messages, context))
        changes.extend(compare_bindings(context, old.bindings, new.bindings))
        changes.extend(self.compare_servers(context, old.servers, new.servers))
        return changes

    def compare_operation(
        self,
        context: str,
        op_type: str,
        old: Optional[AsyncOperation],
        new: Optional[AsyncOperation],
    ) -> list[ChangeRecord]:
        """Compare a 2.x ``publish`` or ``subscribe`` operation."""
        path = f"{context}.{op_type}"
        if old is None and new is None:
            return []
        if old is None:
            return [make_change(
                ChangeType.ADDED, ChangeCategory.OPERATION, Severity.INFO,
                path, f"'{op_type}' operation added",
            )]
        if new is None:
            return [make_change(
                ChangeType.REMOVED, ChangeCategory.OPERATION, Severity.BREAKING,
                path, f"'{op_type}' operation removed",
            )]

        changes: list[ChangeRecord] = []
        if old.operation_id != new.operation_id:
            changes.append(make_change(
                ChangeType.MODIFIED, ChangeCategory.OPERATION, Severity.WARNING, path,
                f"Operation ID changed from '{old.operation_id}' to '{new.operation_id}'",
                old.operation_id, new.operation_id,
            ))
        if not old.deprecated and new.deprecated:
            changes.append(make_change(
                ChangeType.DEPRECATED, ChangeCategory.OPERATION, Severity.WARNING,
                path, "Operation deprecated", False, True,
            ))
        changes.extend(self._messages.compare_all(old.messages, new.messages, path))
        changes.extend(compare_bindings(path, old.bindings, new.bindings))
        return changes

    def compare_parameters(
        self,
        context: str,
        old: Mapping[str, ChannelParameter],
        new: Mapping[str, ChannelParameter],
    ) -> list[ChangeRecord]:
        """Channel parameters are part of the address, so any add/remove breaks."""
        changes: list[ChangeRecord] = []
        match = match_by_key(old, new)
        for name, _ in match.removed:
            changes.append(make_change(
                ChangeType.REMOVED, ChangeCategory.PARAMETER, Severity.BREAKING,
                f"{context}.parameters.{name}",
                f"Channel parameter '{name}' removed", old_value=name,
            ))
        for name, _ in match.added:
            changes.append(make_change(
                ChangeType.ADDED, ChangeCategory.PARAMETER, Severity.BREAKING,
                f"{context}.parameters.{name}",
                f"Channel parameter '{name}' added", new_value=name,
            ))
        for name, old_param, new_param in match.matched:
            if old_param.schema_node is not None or new_param.schema_node is not None:
                changes.extend(self._schemas.compare(
                    f"{context}.parameters.{name}",
                    old_param.schema_node,
                    new_param.schema_node,
                ))
        return changes

    @staticmethod
    def compare_servers(
        context: str, old: Sequence[str], new: Sequence[str]
    ) -> list[ChangeRecord]:
        changes: list[ChangeRecord] = []
        for server in sorted(set(old) - set(new)):
            changes.append(make_change(
                ChangeType.REMOVED, ChangeCategory.SERVER, Severity.WARNING,
                context, f"Server '{server}' removed from channel", old_value=server,
            ))
        for server in sorted(set(new) - set(old)):
            changes.append(make_change(
                ChangeType.ADDED, ChangeCategory.SERVER, Severity.INFO,
                context, f"Server '{server}' added to channel", new_value=server,
            ))
        return changes


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------


class AsyncApiComparator:
    """Compares two AsyncAPI documents."""

    def __init__(self, schema_engine: Optional[SchemaDiffEngine] = None) -> None:
        self._schemas = schema_engine or SchemaDiffEngine()
        self._messages = MessageComparator(self._schemas)
        self._channels = ChannelComparator(self._messages, self._schemas)

    def compare(self, old: AsyncApiSpec, new: AsyncApiSpec) -> list[ChangeRecord]:
        changes: list[ChangeRecord] = []
        changes.extend(self.compare_info(old, new))
        changes.extend(self.compare_version(old.asyncapi_version, new.asyncapi_version))
        changes.extend(self.compare_servers(old.servers, new.servers))
        changes.extend(self._channels.compare_all(old.channels, new.channels))
        changes.extend(self.compare_operations(old.operations, new.operations))
        changes.extend(self._messages.compare_all(old.messages, new.messages))
        changes.extend(self.compare_schemas(old.schemas, new.schemas))
        changes.extend(compare_tags("tags", old.tags, new.tags))
        logger.debug(
            "AsyncAPI comparison: %d change(s) across %d channel(s)",
            len(changes),
            len(set(old.channels) | set(new.channels)),
        )
        return changes

    @staticmethod
    def compare_info(old: AsyncApiSpec, new: AsyncApiSpec) -> list[ChangeRecord]:
        changes: list[ChangeRecord] = []
        for attr, label in (
            ("title", "Title"),
            ("api_version", "API version"),
            ("description", "Description"),
            ("contact", "Contact"),
            ("license", "License"),
        ):
            old_value = getattr(old, attr)
            new_value = getattr(new, attr)
            if old_value != new_value:
                changes.append(make_change(
                    ChangeType.MODIFIED, ChangeCategory.METADATA, Severity.INFO,
                    "info", f"{label} changed", old_value, new_value,
                ))
        return changes

    @staticmethod
    def compare_version(old: Optional[str], new: Optional[str]) -> list[ChangeRecord]:
        if old == new:
            return []
        old_major, new_major = _major(old), _major(new)
        if old_major and new_major and old_major != new_major:
            return [make_change(
                ChangeType.MODIFIED, ChangeCategory.METADATA, Severity.BREAKING,
                "asyncapi",
                f"AsyncAPI major version changed from {old} to {new}",
                old, new,
            )]
        return [make_change(
            ChangeType.MODIFIED, ChangeCategory.METADATA, Severity.INFO,
            "asyncapi", f"AsyncAPI version changed from {old} to {new}", old, new,
        )]

    def compare_servers(
        self,
        old: Mapping[str, AsyncServer],
        new: Mapping[str, AsyncServer],
    ) -> list[ChangeRecord]:
        changes: list[ChangeRecord] = []
        match = match_by_key(old, new)
        for name, _ in match.removed:
            changes.append(make_change(
                ChangeType.REMOVED, ChangeCategory.SERVER, Severity.BREAKING,
                f"server:{name}", f"Server '{name}' removed", old_value=name,
            ))
        for name, _ in match.added:
            changes.append(make_change(
                ChangeType.ADDED, ChangeCategory.SERVER, Severity.INFO,
                f"server:{name}", f"Server '{name}' added", new_value=name,
            ))
        for name, old_server, new_server in match.matched:
            changes.extend(self._compare_server(f"server:{name}", old_server, new_server))
        return changes

    def compare_operations(
        self,
        old: Mapping[str, AsyncOperation],
        new: Mapping[str, AsyncOperation],
    ) -> list[ChangeRecord]:
        """Compare 3.x top-level operations."""
        changes: list[ChangeRecord] = []
        match = match_by_key(old, new)
        for op_id, _ in match.removed:
            changes.append(make_change(
                ChangeType.REMOVED, ChangeCategory.OPERATION, Severity.BREAKING,
                f"operation:{op_id}", f"Operation '{op_id}' removed", old_value=op_id,
            ))
        for op_id, _ in match.added:
            changes.append(make_change(
                ChangeType.ADDED, ChangeCategory.OPERATION, Severity.INFO,
                f"operation:{op_id}", f"Operation '{op_id}' added", new_value=op_id,
            ))
        for op_id, old_op, new_op in match.matched:
            path = f"operation:{op_id}"
            if old_op.action != new_op.action:
                changes.append(make_change(
                    ChangeType.MODIFIED, ChangeCategory.OPERATION, Severity.BREAKING, path,
                    f"Operation action changed from '{old_op.action}' to '{new_op.action}'",
                    old_op.action, new_op.action,
                ))
            if old_op.channel_ref != new_op.channel_ref:
                changes.append(make_change(
                    ChangeType.MODIFIED, ChangeCategory.OPERATION, Severity.BREAKING, path,
                    f"Operation channel changed from '{old_op.channel_ref}' "
                    f"to '{new_op.channel_ref}'",
                    old_op.channel_ref, new_op.channel_ref,
                ))
            if not old_op.deprecated and new_op.deprecated:
                changes.append(make_change(
                    ChangeType.DEPRECATED, ChangeCategory.OPERATION, Severity.WARNING,
                    path, f"Operation '{op_id}' deprecated", False, True,
                ))
            changes.extend(self._messages.compare_all(old_op.messages, new_op.messages, path))
            changes.extend(compare_bindings(path, old_op.bindings, new_op.bindings))
        return changes

    def compare_schemas(self, old: Mapping, new: Mapping) -> list[ChangeRecord]:
        """Component schemas, each diffed at ``schema:<name>``."""
        changes: list[ChangeRecord] = []
        match = match_by_key(old, new)
        for name, schema in match.removed:
            changes.extend(self._schemas.compare(f"schema:{name}", schema, None))
        for name, schema in match.added:
            changes.extend(self._schemas.compare(f"schema:{name}", None, schema))
        for name, old_schema, new_schema in match.matched:
            changes.extend(self._schemas.compare(f"schema:{name}", old_schema, new_schema))
        return changes

    # -- internal: servers ----------------------------------------------------

    def _compare_server(
        self, path: str, old: AsyncServer, new: AsyncServer
    ) -> list[ChangeRecord]:
        changes: list[ChangeRecord] = []
        if old.url != new.url:
            changes.append(make_change(
                ChangeType.MODIFIED, ChangeCategory.SERVER, Severity.WARNING, path,
                f"Server URL changed from '{old.url}' to '{new.url}'", old.url, new.url,
            ))
        if old.protocol != new.protocol:
            changes.append(make_change(
                ChangeType.MODIFIED, ChangeCategory.PROTOCOL, Severity.BREAKING, path,
                f"Protocol changed from '{old.protocol}' to '{new.protocol}'",
                old.protocol, new.protocol,
            ))
        if old.protocol_version != new.protocol_version:
            changes.append(make_change(
                ChangeType.MODIFIED, ChangeCategory.PROTOCOL, Severity.WARNING, path,
                f"Protocol version changed from '{old.protocol_version}' "
                f"to '{new.protocol_version}'",
                old.protocol_version, new.protocol_version,
            ))
        if not old.deprecated and new.deprecated:
            changes.append(make_change(
                ChangeType.DEPRECATED, ChangeCategory.SERVER, Severity.WARNING,
                path, "Server deprecated", False, True,
            ))
        changes.extend(self._compare_variables(path, old.variables, new.variables))
        return changes

    @staticmethod
    def _compare_variables(
        path: str,
        old: Mapping[str, ServerVariable],
        new: Mapping[str, ServerVariable],
    ) -> list[ChangeRecord]:
        changes: list[ChangeRecord] = []
        match = match_by_key(old, new)
        for name, _ in match.removed:
            changes.append(make_change(
                ChangeType.REMOVED, ChangeCategory.PARAMETER, Severity.DANGEROUS,
                f"{path}.variables.{name}", f"Server variable '{name}' removed",
                old_value=name,
            ))
        for name, _ in match.added:
            changes.append(make_change(
                ChangeType.ADDED, ChangeCategory.PARAMETER, Severity.INFO,
                f"{path}.variables.{name}", f"Server variable '{name}' added",
                new_value=name,
            ))
        for name, old_var, new_var in match.matched:
            var_path = f"{path}.variables.{name}"
            if old_var.default_value != new_var.default_value:
                changes.append(make_change(
                    ChangeType.MODIFIED, ChangeCategory.PARAMETER, Severity.WARNING,
                    var_path, f"Default of server variable '{name}' changed",
                    old_var.default_value, new_var.default_value,
                ))
            for value in sorted(set(old_var.allowed_values) - set(new_var.allowed_values)):
                changes.append(make_change(
                    ChangeType.REMOVED, ChangeCategory.ENUM_VALUE, Severity.BREAKING,
                    var_path, f"Allowed value '{value}' removed from '{name}'",
                    old_value=value,
                ))
        return changes
