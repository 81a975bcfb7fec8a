# Templating package init
"""
Modifier — Templating
=======================

What:  Template compilation, the missing-value sentinel, and the function
       library every template can call.
"""

from modifier.templating.engine import (
    CompiledTemplate,
    compile_template,
    contains_template,
    template_environment,
)
from modifier.templating.missing import (
    MISSING_VALUE_TOKEN,
    MissingValue,
    strip_missing_values,
)

__all__ = [
    "CompiledTemplate",
    "compile_template",
    "contains_template",
    "template_environment",
    "MISSING_VALUE_TOKEN",
    "MissingValue",
    "strip_missing_values",
]
