"""
Pushbook Templating Engine

Jinja2-based rendering for template tasks and 'when' conditions.
"""

import os
import re
from typing import Any, Callable, Dict, Mapping, Optional

from jinja2 import Environment, StrictUndefined, TemplateSyntaxError, UndefinedError

from pushbook.engine.errors import RenderError


# Signature of a pluggable 'when' evaluator: (condition, variables) -> bool
ConditionEvaluator = Callable[[str, Mapping[str, str]], bool]


def _filter_bool(value: Any) -> bool:
    """Convert value to boolean."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.lower() in ('true', 'yes', '1', 'on')
    return bool(value)


def _filter_regex_replace(value: str, pattern: str, replacement: str) -> str:
    """Regex replacement in string."""
    return re.sub(pattern, replacement, str(value))


CUSTOM_FILTERS: Dict[str, Callable[..., Any]] = {
    'bool': _filter_bool,
    'basename': lambda path: os.path.basename(str(path)),
    'dirname': lambda path: os.path.dirname(str(path)),
    'regex_replace': _filter_regex_replace,
}


class TemplateEngine:
    """
    Jinja2 templating engine.

    Provides:
    - Rendering of template files against a host's variables
    - 'when' condition evaluation (a Jinja2 expression without braces)

    Undefined variables are errors, not empty strings.
    """

    def __init__(self):
        self.env = Environment(
            undefined=StrictUndefined,
            # Don't auto-escape (we're not rendering HTML)
            autoescape=False,
            # Keep trailing newlines
            keep_trailing_newline=True,
        )

        for name, func in CUSTOM_FILTERS.items():
            self.env.filters[name] = func

    def render(
        self,
        template_str: str,
        variables: Mapping[str, Any],
        host: Optional[str] = None,
    ) -> str:
        """
        Render a template string with variables.

        Args:
            template_str: Template text
            variables: Variables available to the template
            host: Host name used in error messages

        Returns:
            Rendered string

        Raises:
            RenderError: If the template is invalid or uses an undefined variable
        """
        host = host or 'localhost'
        try:
            template = self.env.from_string(template_str)
            return template.render(dict(variables))
        except UndefinedError as e:
            raise RenderError(host, f"Undefined variable: {e}", template=template_str) from e
        except TemplateSyntaxError as e:
            raise RenderError(host, f"syntax error at line {e.lineno}: {e.message}", template=template_str) from e
        except Exception as e:
            raise RenderError(host, str(e), template=template_str) from e

    def evaluate_when(
        self,
        condition: str,
        variables: Mapping[str, Any],
        host: Optional[str] = None,
    ) -> bool:
        """
        Evaluate a 'when' condition.

        Args:
            condition: Jinja2 expression (without {{ }}), e.g.
                ``setup == "changed"`` or ``flag is defined``
            variables: Variables for evaluation

        Returns:
            Boolean result of the condition

        Raises:
            RenderError: If the condition is invalid
        """
        if not condition or not condition.strip():
            return True

        result = self.render("{{ " + condition.strip() + " }}", variables, host=host)
        return self._to_bool(result)

    def _to_bool(self, value: Any) -> bool:
        """Convert a rendered value to boolean."""
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            value_lower = value.lower().strip()
            if value_lower in ('true', 'yes', '1', 'on'):
                return True
            if value_lower in ('false', 'no', '0', 'off', '', 'none'):
                return False
            return bool(value.strip())
        return bool(value)


# Singleton instance for convenience
_engine: Optional[TemplateEngine] = None


def get_template_engine() -> TemplateEngine:
    """Get the singleton template engine instance."""
    global _engine
    if _engine is None:
        _engine = TemplateEngine()
    return _engine


def render(template_str: str, variables: Mapping[str, Any], host: Optional[str] = None) -> str:
    """Convenience function to render a template."""
    return get_template_engine().render(template_str, variables, host=host)


def evaluate_when(condition: str, variables: Mapping[str, Any]) -> bool:
    """Convenience function to evaluate a when condition."""
    return get_template_engine().evaluate_when(condition, variables)
