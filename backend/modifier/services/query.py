"""
Modifier — Query Transformer
==============================

What:  Rewrites query parameters from a map of key → template.
How:   Every template renders against the pre-transform query, headers,
       method and path. A non-empty result replaces the key when it is
       already present, otherwise it is appended. The query string is then
       re-encoded, sorted by key.

Template example:
    "question_id": "[[ request.query.ask_id ]]_[[ context.unixtime ]]"
    ?ask_id=123  →  ?ask_id=123&question_id=123_1718000000
"""

import logging
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from modifier.exceptions import TemplateCompileError, TemplateRenderError
from modifier.services.context import TemplateContext
from modifier.services.environment import build_request_environment
from modifier.services.request import InboundRequest
from modifier.templating import CompiledTemplate, compile_template, strip_missing_values


class QueryModifier:
    """Applies configured query templates to a request's query string."""

    def __init__(
        self,
        transforms: Optional[Mapping[str, str]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._logger = logger or logging.getLogger(__name__)
        self._templates: Dict[str, CompiledTemplate] = {}

        for target_param, source in (transforms or {}).items():
            if not source:
                continue
            try:
                self._templates[target_param] = compile_template(f"query_{target_param}", source)
            except TemplateCompileError as e:
                self._logger.warning("Skipping query parameter %s: %s", target_param, e.message)

    @property
    def templates(self) -> Mapping[str, CompiledTemplate]:
        return MappingProxyType(self._templates)

    def modify_query(self, request: InboundRequest, context: TemplateContext) -> None:
        """Render every query template and rewrite the request's query string."""
        if not self._templates:
            return

        data = build_request_environment(request, context)
        items: List[Tuple[str, str]] = request.query_items()

        for target_param, template in self._templates.items():
            try:
                # The token can sit inside a larger literal, not just on its own
                result = strip_missing_values(template.render(data))
            except TemplateRenderError as e:
                self._logger.warning("Failed to execute query template for %s: %s", target_param, e.message)
                continue

            if not result:
                continue

            if any(key == target_param for key, _ in items):
                self._logger.debug("Overwriting existing query parameter %s", target_param)
                items = _replace(items, target_param, result)
            else:
                self._logger.debug("Setting new query parameter %s", target_param)
                items.append((target_param, result))

            self._logger.debug("Query parameter %s transformed to: %s", target_param, result)

        request.set_query(items)


def _replace(items: List[Tuple[str, str]], key: str, value: str) -> List[Tuple[str, str]]:
    """Collapse every occurrence of `key` into one entry holding `value`."""
    result: List[Tuple[str, str]] = []
    replaced = False
    for item_key, item_value in items:
        if item_key != key:
            result.append((item_key, item_value))
        elif not replaced:
            result.append((key, value))
            replaced = True
    return result
