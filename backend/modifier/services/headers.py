"""
Modifier — Header Transformer
===============================

What:  Rewrites request headers from a map of header name → template.
How:   1. Snapshot the original headers (case-insensitive, first value).
       2. Render every template against the ORIGINAL request, so a template
          can read the header it is about to overwrite and sibling
          templates never see each other's output.
       3. Install results: replace when the name existed originally,
          append otherwise. Empty results are dropped.

Failure policy:
    Headers are best-effort. A template that fails to compile or render
    is logged and skipped; the other headers still apply.

Template example:
    "Authorization": "[% if request.headers['x-api-key'] == 'sk-1' %]Bearer sk-1[% else %]Bearer default[% endif %]"
"""

import logging
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from modifier.exceptions import TemplateCompileError, TemplateRenderError
from modifier.services.context import TemplateContext
from modifier.services.environment import build_request_environment
from modifier.services.request import InboundRequest
from modifier.templating import (
    CompiledTemplate,
    compile_template,
    contains_template,
    strip_missing_values,
)


class HeaderModifier:
    """
    Applies configured header templates, plus single-header primitives
    (set/add/remove) usable on their own.
    """

    def __init__(
        self,
        config: Optional[Mapping[str, str]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._logger = logger or logging.getLogger(__name__)
        self._templates: Dict[str, CompiledTemplate] = {}

        for header_name, source in (config or {}).items():
            if not source:
                continue
            try:
                self._templates[header_name] = compile_template(f"header_{header_name}", source)
            except TemplateCompileError as e:
                self._logger.warning("Skipping header %s: %s", header_name, e.message)

    @property
    def templates(self) -> Mapping[str, CompiledTemplate]:
        return MappingProxyType(self._templates)

    def modify_headers(self, request: InboundRequest, context: TemplateContext) -> None:
        """Render every header template and install the results on `request`."""
        if not self._templates:
            return

        original: Dict[str, str] = {}
        for name, value in request.headers.items():
            original.setdefault(name.lower(), value)

        data = build_request_environment(request, context)

        rendered: Dict[str, str] = {}
        for header_name, template in self._templates.items():
            try:
                value = strip_missing_values(template.render(data)).strip()
            except TemplateRenderError as e:
                self._logger.warning("Error executing header template for %s: %s", header_name, e.message)
                continue
            if value:
                rendered[header_name] = value

        for header_name, value in rendered.items():
            previous = original.get(header_name.lower())
            try:
                if previous is not None:
                    request.headers[header_name] = value
                    self._logger.debug("Set header %s: %s (was: %s)", header_name, value, previous)
                else:
                    request.headers.append(header_name, value)
                    self._logger.debug("Added header %s: %s", header_name, value)
            except UnicodeEncodeError:
                self._logger.warning("Skipping header %s: value is not latin-1 encodable", header_name)

    # ── Single-header primitives ──────────────────────────────────────────

    def _resolve(self, request: InboundRequest, value: str, context: TemplateContext) -> str:
        if not contains_template(value):
            return value
        template = compile_template("dynamic", value)
        return strip_missing_values(template.render(build_request_environment(request, context)))

    def set_header(
        self,
        request: InboundRequest,
        header_name: str,
        value: str,
        context: TemplateContext,
    ) -> None:
        """
        Replace every value of `header_name` with `value` (a template or a
        literal). Empty values are ignored.

        Raises:
            TemplateCompileError / TemplateRenderError for a bad template.
        """
        if not value:
            return
        resolved = self._resolve(request, value, context)
        request.headers[header_name] = resolved
        self._logger.debug("Set header %s: %s", header_name, resolved)

    def add_header(
        self,
        request: InboundRequest,
        header_name: str,
        value: str,
        context: TemplateContext,
    ) -> None:
        """Append a value for `header_name`, keeping existing ones."""
        if not value:
            return
        resolved = self._resolve(request, value, context)
        request.headers.append(header_name, resolved)
        self._logger.debug("Added header %s: %s", header_name, resolved)

    def remove_header(self, request: InboundRequest, header_name: str) -> None:
        del request.headers[header_name]
        self._logger.debug("Removed header %s", header_name)
