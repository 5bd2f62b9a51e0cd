"""
Protobuf / gRPC file comparator.

Compares file-level attributes (package, syntax), services and RPC methods,
and delegates messages and enums to ``ProtoCompatibilityEngine``.  BREAKING
message-level records are annotated with the RPC methods that consume the
affected message.

Service paths are ``/<package>.<Service>``; method paths append
``/<Method>``.
"""

from __future__ import annotations

import logging
from typing import Optional

from apidelta.canonical.proto import ProtoFile, ProtoRpcMethod, ProtoService
from apidelta.engines.keyed import match_list, qualify
from apidelta.engines.proto_compat import ProtoCompatibilityEngine
from apidelta.models.changes import ChangeRecord, ImpactedChangeRecord, make_impacted
from apidelta.types import ChangeCategory, ChangeType, Severity

logger = logging.getLogger(__name__)

IMPACT_PACKAGE_CHANGED = 95
IMPACT_SYNTAX_DOWNGRADE = 80
IMPACT_SYNTAX_CHANGE = 40
IMPACT_SERVICE_REMOVED = 100
IMPACT_SERVICE_ADDED = 5
IMPACT_SERVICE_DEPRECATED = 30
IMPACT_METHOD_REMOVED = 95
IMPACT_METHOD_ADDED = 5
IMPACT_METHOD_SIGNATURE = 90
IMPACT_STREAMING_CHANGED = 85
IMPACT_METHOD_DEPRECATED = 25


def _full_type_name(type_name: str, package: str) -> str:
    """Resolve an RPC input/output type to a fully qualified message name."""
    name = type_name.lstrip(".")
    if package and not name.startswith(f"{package}."):
        return qualify(package, name)
    return name


class GrpcComparator:
    """Compares two canonical ``ProtoFile`` trees."""

    def __init__(self, engine: Optional[ProtoCompatibilityEngine] = None) -> None:
        self._engine = engine or ProtoCompatibilityEngine()

    def compare(self, old: ProtoFile, new: ProtoFile) -> list[ChangeRecord]:
        changes: list[ChangeRecord] = []
        changes.extend(self.compare_file(old, new))
        changes.extend(self.compare_services(old, new))

        message_changes: list[ImpactedChangeRecord] = []
        message_changes.extend(
            self._engine.compare_messages(
                old.messages, new.messages, old.package, new.package
            )
        )
        message_changes.extend(
            self._engine.compare_enums(old.enums, new.enums, old.package, new.package)
        )
        changes.extend(self._attach_consumers(message_changes, old))

        logger.debug(
            "Proto comparison %s: %d change(s)", old.name or old.package, len(changes)
        )
        return changes

    # ------------------------------------------------------------------
    # File attributes
    # ------------------------------------------------------------------

    @staticmethod
    def compare_file(old: ProtoFile, new: ProtoFile) -> list[ImpactedChangeRecord]:
        changes: list[ImpactedChangeRecord] = []
        if old.package != new.package:
            changes.append(make_impacted(
                ChangeType.MODIFIED, ChangeCategory.PACKAGE, Severity.BREAKING,
                "package",
                f"Package changed from '{old.package}' to '{new.package}'",
                IMPACT_PACKAGE_CHANGED, old.package, new.package,
                migration_suggestion=(
                    "Fully qualified names change with the package; regenerate "
                    "every client stub"
                ),
            ))
        if old.syntax != new.syntax:
            downgrade = old.syntax == "proto3" and new.syntax == "proto2"
            changes.append(make_impacted(
                ChangeType.MODIFIED,
                ChangeCategory.SCHEMA,
                Severity.BREAKING if downgrade else Severity.WARNING,
                "syntax",
                f"Syntax changed from {old.syntax} to {new.syntax}",
                IMPACT_SYNTAX_DOWNGRADE if downgrade else IMPACT_SYNTAX_CHANGE,
                old.syntax, new.syntax,
                migration_suggestion=(
                    "Field presence and default semantics differ between "
                    "syntaxes; review generated code"
                ),
            ))
        return changes

    # ------------------------------------------------------------------
    # Services and methods
    # ------------------------------------------------------------------

    def compare_services(
        self, old: ProtoFile, new: ProtoFile
    ) -> list[ImpactedChangeRecord]:
        changes: list[ImpactedChangeRecord] = []
        match = match_list(old.services, new.services, key=lambda s: s.name)

        for name, service in match.removed:
            path = f"/{qualify(old.package, name)}"
            changes.append(make_impacted(
                ChangeType.REMOVED, ChangeCategory.SERVICE, Severity.BREAKING,
                path,
                f"Service '{name}' removed with {len(service.methods)} method(s)",
                IMPACT_SERVICE_REMOVED, old_value=name,
                migration_suggestion=(
                    f"Clients calling '{name}' fail with UNIMPLEMENTED; "
                    "migrate them first"
                ),
            ))
        for name, service in match.added:
            path = f"/{qualify(new.package, name)}"
            changes.append(make_impacted(
                ChangeType.ADDED, ChangeCategory.SERVICE, Severity.INFO,
                path,
                f"Service '{name}' added with {len(service.methods)} method(s)",
                IMPACT_SERVICE_ADDED, new_value=name,
            ))
        for name, old_service, new_service in match.matched:
            changes.extend(self.compare_service(
                f"/{qualify(old.package, name)}", old_service, new_service
            ))
        return changes

    def compare_service(
        self, path: str, old: ProtoService, new: ProtoService
    ) -> list[ImpactedChangeRecord]:
        changes: list[ImpactedChangeRecord] = []
        if not old.deprecated and new.deprecated:
            changes.append(make_impacted(
                ChangeType.DEPRECATED, ChangeCategory.SERVICE, Severity.WARNING,
                path, f"Service '{old.name}' deprecated", IMPACT_SERVICE_DEPRECATED,
                False, True,
            ))

        match = match_list(old.methods, new.methods, key=lambda m: m.name)
        for name, _ in match.removed:
            changes.append(make_impacted(
                ChangeType.REMOVED, ChangeCategory.RPC_METHOD, Severity.BREAKING,
                f"{path}/{name}", f"RPC method '{name}' removed",
                IMPACT_METHOD_REMOVED, old_value=name,
                migration_suggestion=f"Callers of '{name}' must move to a replacement",
            ))
        for name, _ in match.added:
            changes.append(make_impacted(
                ChangeType.ADDED, ChangeCategory.RPC_METHOD, Severity.INFO,
                f"{path}/{name}", f"RPC method '{name}' added",
                IMPACT_METHOD_ADDED, new_value=name,
            ))
        for name, old_method, new_method in match.matched:
            changes.extend(self.compare_method(f"{path}/{name}", old_method, new_method))
        return changes

    @staticmethod
    def compare_method(
        path: str, old: ProtoRpcMethod, new: ProtoRpcMethod
    ) -> list[ImpactedChangeRecord]:
        changes: list[ImpactedChangeRecord] = []
        if old.input_type != new.input_type:
            changes.append(make_impacted(
                ChangeType.MODIFIED, ChangeCategory.RPC_METHOD, Severity.BREAKING, path,
                f"Input type changed from {old.input_type} to {new.input_type}",
                IMPACT_METHOD_SIGNATURE, old.input_type, new.input_type,
                migration_suggestion="Add a new method with the new request type",
            ))
        if old.output_type != new.output_type:
            changes.append(make_impacted(
                ChangeType.MODIFIED, ChangeCategory.RPC_METHOD, Severity.BREAKING, path,
                f"Output type changed from {old.output_type} to {new.output_type}",
                IMPACT_METHOD_SIGNATURE, old.output_type, new.output_type,
                migration_suggestion="Add a new method with the new response type",
            ))
        if old.stream_type != new.stream_type:
            changes.append(make_impacted(
                ChangeType.MODIFIED, ChangeCategory.STREAMING_TYPE, Severity.BREAKING, path,
                f"Streaming changed from {old.stream_type.value} "
                f"to {new.stream_type.value}",
                IMPACT_STREAMING_CHANGED, old.stream_type.value, new.stream_type.value,
                migration_suggestion="Streaming cardinality is part of the call contract",
            ))
        if not old.deprecated and new.deprecated:
            changes.append(make_impacted(
                ChangeType.DEPRECATED, ChangeCategory.RPC_METHOD, Severity.WARNING,
                path, f"RPC method '{old.name}' deprecated", IMPACT_METHOD_DEPRECATED,
                False, True,
            ))
        return changes

    # -- internal: consumers ---------------------------------------------------

    @staticmethod
    def _message_consumers(proto: ProtoFile) -> dict[str, list[str]]:
        consumers: dict[str, list[str]] = {}
        for service in proto.services:
            service_path = f"/{qualify(proto.package, service.name)}"
            for method in service.methods:
                method_path = f"{service_path}/{method.name}"
                for type_name in {method.input_type, method.output_type}:
                    full_name = _full_type_name(type_name, proto.package)
                    consumers.setdefault(full_name, []).append(method_path)
        return consumers

    def _attach_consumers(
        self, changes: list[ImpactedChangeRecord], old: ProtoFile
    ) -> list[ImpactedChangeRecord]:
        consumers = self._message_consumers(old)
        if not consumers:
            return changes
        # longest name first so nested messages win over their parents
        names = sorted(consumers, key=len, reverse=True)
        annotated: list[ImpactedChangeRecord] = []
        for change in changes:
            if change.severity == Severity.BREAKING:
                for name in names:
                    if change.path == name or change.path.startswith(f"{name}."):
                        change = change.model_copy(
                            update={"affected_consumers": sorted(consumers[name])}
                        )
                        break
            annotated.append(change)
        return annotated
