"""
REST endpoint comparator.

Endpoints are matched by ``METHOD path``; within a matched endpoint,
parameters are matched by name and responses by status code.  Inline
schema nodes and component schemas go through ``SchemaDiffEngine``.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional

from apidelta.canonical.rest import (
    Endpoint,
    Parameter,
    RequestBody,
    Response,
    RestApiSpec,
)
from apidelta.engines.keyed import match_by_key, match_list
from apidelta.engines.schema_diff import SchemaDiffEngine
from apidelta.models.changes import ChangeRecord, make_change
from apidelta.types import ChangeCategory, ChangeType, Severity

logger = logging.getLogger(__name__)


class RestComparator:
    """Compares two canonical ``RestApiSpec`` trees."""

    def __init__(self, schema_engine: Optional[SchemaDiffEngine] = None) -> None:
        self._schemas = schema_engine or SchemaDiffEngine()

    def compare(self, old: RestApiSpec, new: RestApiSpec) -> list[ChangeRecord]:
        changes: list[ChangeRecord] = []
        if old.title != new.title:
            changes.append(make_change(
                ChangeType.MODIFIED, ChangeCategory.METADATA, Severity.INFO,
                "info", "Title changed", old.title, new.title,
            ))
        changes.extend(self.compare_endpoints(old, new))
        changes.extend(self.compare_schemas(old.schemas, new.schemas))
        logger.debug(
            "REST comparison: %d change(s) over %d endpoint(s)",
            len(changes), len(new.endpoints),
        )
        return changes

    def compare_endpoints(
        self, old: RestApiSpec, new: RestApiSpec
    ) -> list[ChangeRecord]:
        changes: list[ChangeRecord] = []
        match = match_list(old.endpoints, new.endpoints, key=lambda e: e.key)
        for key, _ in match.removed:
            changes.append(make_change(
                ChangeType.REMOVED, ChangeCategory.ENDPOINT, Severity.BREAKING,
                key, f"Endpoint {key} removed", old_value=key,
            ))
        for key, _ in match.added:
            changes.append(make_change(
                ChangeType.ADDED, ChangeCategory.ENDPOINT, Severity.INFO,
                key, f"Endpoint {key} added", new_value=key,
            ))
        for key, old_endpoint, new_endpoint in match.matched:
            changes.extend(self.compare_endpoint(key, old_endpoint, new_endpoint))
        return changes

    def compare_endpoint(
        self, key: str, old: Endpoint, new: Endpoint
    ) -> list[ChangeRecord]:
        changes: list[ChangeRecord] = []
        if not old.deprecated and new.deprecated:
            changes.append(make_change(
                ChangeType.DEPRECATED, ChangeCategory.ENDPOINT, Severity.WARNING,
                key, f"Endpoint {key} deprecated", False, True,
            ))
        elif old.deprecated and not new.deprecated:
            changes.append(make_change(
                ChangeType.MODIFIED, ChangeCategory.ENDPOINT, Severity.INFO,
                key, f"Endpoint {key} no longer deprecated", True, False,
            ))
        changes.extend(self.compare_parameters(key, old, new))
        changes.extend(self.compare_request_body(key, old.request_body, new.request_body))
        changes.extend(self.compare_responses(key, old, new))
        return changes

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------

    def compare_parameters(
        self, key: str, old: Endpoint, new: Endpoint
    ) -> list[ChangeRecord]:
        changes: list[ChangeRecord] = []
        match = match_list(old.parameters, new.parameters, key=lambda p: p.name)
        for name, _ in match.removed:
            changes.append(make_change(
                ChangeType.REMOVED, ChangeCategory.PARAMETER, Severity.DANGEROUS,
                f"{key}.parameter:{name}", f"Parameter '{name}' removed",
                old_value=name,
            ))
        for name, param in match.added:
            changes.append(make_change(
                ChangeType.ADDED,
                ChangeCategory.PARAMETER,
                Severity.BREAKING if param.required else Severity.INFO,
                f"{key}.parameter:{name}",
                f"{'Required' if param.required else 'Optional'} parameter '{name}' added",
                new_value=name,
            ))
        for name, old_param, new_param in match.matched:
            changes.extend(self._compare_parameter(
                f"{key}.parameter:{name}", old_param, new_param
            ))
        return changes

    def _compare_parameter(
        self, path: str, old: Parameter, new: Parameter
    ) -> list[ChangeRecord]:
        changes: list[ChangeRecord] = []
        if old.type != new.type:
            changes.append(make_change(
                ChangeType.MODIFIED, ChangeCategory.PARAMETER, Severity.BREAKING,
                path, f"Parameter '{old.name}' type changed from '{old.type}' to '{new.type}'",
                old.type, new.type,
            ))
        if not old.required and new.required:
            changes.append(make_change(
                ChangeType.MODIFIED, ChangeCategory.PARAMETER, Severity.BREAKING,
                path, f"Parameter '{old.name}' became required", False, True,
            ))
        elif old.required and not new.required:
            changes.append(make_change(
                ChangeType.MODIFIED, ChangeCategory.PARAMETER, Severity.INFO,
                path, f"Parameter '{old.name}' became optional", True, False,
            ))
        if old.location != new.location:
            changes.append(make_change(
                ChangeType.MODIFIED, ChangeCategory.PARAMETER, Severity.BREAKING,
                path, f"Parameter '{old.name}' moved from {old.location} to {new.location}",
                old.location, new.location,
            ))
        if old.schema_node is not None or new.schema_node is not None:
            changes.extend(self._schemas.compare(
                f"{path}.schema", old.schema_node, new.schema_node
            ))
        return changes

    # ------------------------------------------------------------------
    # Request body
    # ------------------------------------------------------------------

    def compare_request_body(
        self,
        key: str,
        old: Optional[RequestBody],
        new: Optional[RequestBody],
    ) -> list[ChangeRecord]:
        path = f"{key}.requestBody"
        if old is None and new is None:
            return []
        if old is None:
            return [make_change(
                ChangeType.ADDED,
                ChangeCategory.REQUEST_BODY,
                Severity.BREAKING if new.required else Severity.INFO,
                path,
                f"{'Required' if new.required else 'Optional'} request body added",
            )]
        if new is None:
            return [make_change(
                ChangeType.REMOVED, ChangeCategory.REQUEST_BODY, Severity.DANGEROUS,
                path, "Request body removed",
            )]

        changes: list[ChangeRecord] = []
        if not old.required and new.required:
            changes.append(make_change(
                ChangeType.MODIFIED, ChangeCategory.REQUEST_BODY, Severity.BREAKING,
                path, "Request body became required", False, True,
            ))
        if old.schema_ref != new.schema_ref:
            changes.append(make_change(
                ChangeType.MODIFIED, ChangeCategory.REQUEST_BODY, Severity.DANGEROUS,
                path, f"Request body schema changed from '{old.schema_ref}' to '{new.schema_ref}'",
                old.schema_ref, new.schema_ref,
            ))
        if old.content_type != new.content_type:
            changes.append(make_change(
                ChangeType.MODIFIED, ChangeCategory.REQUEST_BODY, Severity.WARNING,
                path, f"Request content type changed from '{old.content_type}' "
                f"to '{new.content_type}'",
                old.content_type, new.content_type,
            ))
        if old.schema_node is not None or new.schema_node is not None:
            changes.extend(self._schemas.compare(
                f"{path}.schema", old.schema_node, new.schema_node
            ))
        return changes

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    def compare_responses(
        self, key: str, old: Endpoint, new: Endpoint
    ) -> list[ChangeRecord]:
        changes: list[ChangeRecord] = []
        match = match_list(old.responses, new.responses, key=lambda r: r.status_code)
        for code, _ in match.removed:
            changes.append(make_change(
                ChangeType.REMOVED, ChangeCategory.RESPONSE, Severity.DANGEROUS,
                f"{key}.response:{code}", f"Response {code} removed", old_value=code,
            ))
        for code, _ in match.added:
            changes.append(make_change(
                ChangeType.ADDED, ChangeCategory.RESPONSE, Severity.INFO,
                f"{key}.response:{code}", f"Response {code} added", new_value=code,
            ))
        for code, old_response, new_response in match.matched:
            changes.extend(self._compare_response(
                f"{key}.response:{code}", old_response, new_response
            ))
        return changes

    def _compare_response(
        self, path: str, old: Response, new: Response
    ) -> list[ChangeRecord]:
        changes: list[ChangeRecord] = []
        if old.schema_ref != new.schema_ref:
            changes.append(make_change(
                ChangeType.MODIFIED, ChangeCategory.RESPONSE, Severity.DANGEROUS,
                path, f"Response schema changed from '{old.schema_ref}' to '{new.schema_ref}'",
                old.schema_ref, new.schema_ref,
            ))
        if old.content_type != new.content_type:
            changes.append(make_change(
                ChangeType.MODIFIED, ChangeCategory.RESPONSE, Severity.WARNING,
                path, f"Response content type changed from '{old.content_type}' "
                f"to '{new.content_type}'",
                old.content_type, new.content_type,
            ))
        if old.schema_node is not None or new.schema_node is not None:
            changes.extend(self._schemas.compare(
                f"{path}.schema", old.schema_node, new.schema_node
            ))
        return changes

    # ------------------------------------------------------------------
    # Component schemas
    # ------------------------------------------------------------------

    def compare_schemas(self, old: Mapping, new: Mapping) -> list[ChangeRecord]:
        changes: list[ChangeRecord] = []
        match = match_by_key(old, new)
        for name, schema in match.removed:
            changes.extend(self._schemas.compare(f"schema:{name}", schema, None))
        for name, schema in match.added:
            changes.extend(self._schemas.compare(f"schema:{name}", None, schema))
        for name, old_schema, new_schema in match.matched:
            changes.extend(self._schemas.compare(f"schema:{name}", old_schema, new_schema))
        return changes
