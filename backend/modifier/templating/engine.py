"""
Modifier — Template Engine
============================

What:  Compiles configured template strings into reusable CompiledTemplate
       objects and renders them against an Environment data tree.
How:   Jinja2, in an immutable sandbox, with bracket delimiters so templates
       can be embedded in literal JSON without escaping braces:

           [[ expression ]]      output
           [% statement %]       if / for / set
           [# comment #]

Example:
    {"question": "[[ request.api.body.ask ]]", "ts": [[ context.unixtime ]]}

Concurrency:
    The jinja environment and every CompiledTemplate are built once at
    configuration time and only read afterwards. Rendering allocates its
    own state, so one template may render for many requests at once.
"""

from collections.abc import Mapping
from typing import Any, Optional

from jinja2 import Template, TemplateSyntaxError
from jinja2.sandbox import ImmutableSandboxedEnvironment

from modifier.exceptions import TemplateCompileError, TemplateRenderError
from modifier.templating.functions import FUNCTIONS
from modifier.templating.missing import MISSING_VALUE_TOKEN, MissingValue

VARIABLE_START = "[["
VARIABLE_END = "]]"
BLOCK_START = "[%"
BLOCK_END = "%]"
COMMENT_START = "[#"
COMMENT_END = "#]"


class TemplateEnvironment(ImmutableSandboxedEnvironment):
    """
    Sandboxed jinja environment with payload-first attribute lookup.

    For mappings, `a.key` resolves to `a["key"]` before trying Python
    attributes, so JSON fields named `items`, `keys` or `values` resolve to
    data rather than dict methods.
    """

    def getattr(self, obj: Any, attribute: str) -> Any:
        if isinstance(obj, Mapping):
            try:
                return obj[attribute]
            except (KeyError, TypeError):
                pass
        return super().getattr(obj, attribute)


def finalize_output(value: Any) -> Any:
    """
    Output conversion for `[[ ... ]]` expressions.

    null renders as the missing-value token (stripped later), booleans as
    JSON literals so templates embedded in JSON stay valid.
    """
    if value is None:
        return MISSING_VALUE_TOKEN
    if value is True:
        return "true"
    if value is False:
        return "false"
    return value


def create_environment() -> TemplateEnvironment:
    env = TemplateEnvironment(
        variable_start_string=VARIABLE_START,
        variable_end_string=VARIABLE_END,
        block_start_string=BLOCK_START,
        block_end_string=BLOCK_END,
        comment_start_string=COMMENT_START,
        comment_end_string=COMMENT_END,
        undefined=MissingValue,
        finalize=finalize_output,
        autoescape=False,
        keep_trailing_newline=True,
    )
    env.globals.update(FUNCTIONS)
    return env


# Shared by every compiled template in the process
template_environment = create_environment()


class CompiledTemplate:
    """A parsed template bound to the function library. Immutable."""

    __slots__ = ("name", "source", "_template")

    def __init__(self, name: str, source: str, template: Template):
        self.name = name
        self.source = source
        self._template = template

    def render(self, data: Mapping) -> str:
        """
        Execute the template against `data`.

        Raises:
            TemplateRenderError: any failure while executing, including
                errors raised by template functions.
        """
        try:
            return self._template.render(data)
        except Exception as e:
            raise TemplateRenderError(self.name, str(e), context={"source": self.source}) from e

    def __repr__(self) -> str:
        return f"CompiledTemplate(name={self.name!r})"


def compile_template(
    name: str,
    source: str,
    environment: Optional[TemplateEnvironment] = None,
) -> CompiledTemplate:
    """
    Parse `source` once for repeated rendering.

    Raises:
        TemplateCompileError: the source is not a valid template.
    """
    env = environment or template_environment
    try:
        template = env.from_string(source)
    except TemplateSyntaxError as e:
        raise TemplateCompileError(
            name, f"{e.message} (line {e.lineno})", context={"source": source}
        ) from e
    return CompiledTemplate(name, source, template)


def contains_template(text: str) -> bool:
    """True when `text` carries expression or statement markers."""
    return (VARIABLE_START in text and VARIABLE_END in text) or (
        BLOCK_START in text and BLOCK_END in text
    )
