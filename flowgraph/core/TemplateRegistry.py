import copy
import logging
from typing import Any, Callable, Dict, List, NamedTuple, Optional

from flowgraph.core.Errors import TemplateNotFound

logger = logging.getLogger(__name__)


class NodeTemplate(NamedTuple):
    name: str
    content: Any
    props: Dict[str, Any]
    options: Dict[str, Any]


class TemplateRegistry:
    """Named node contents that nodes can reference instead of carrying markup."""

    def __init__(self) -> None:
        self._templates: Dict[str, NodeTemplate] = {}

    def register(self, name: str, content: Any, props: Optional[Dict[str, Any]] = None,
                 options: Optional[Dict[str, Any]] = None, replace: bool = False) -> NodeTemplate:
        if not isinstance(name, str) or not name:
            raise ValueError(f"Template name must be a non-empty string, got {name!r}")
        if name in self._templates and not replace:
            raise ValueError(f"Template '{name}' is already registered.")
        template = NodeTemplate(name, content, dict(props or {}), dict(options or {}))
        self._templates[name] = template
        logger.debug(f"Registered template '{name}'")
        return template

    def template(self, name: str, **kwargs) -> Callable[[Any], Any]:
        """Decorator form: the decorated object itself becomes the template content."""
        def decorator(content):
            self.register(name, content, **kwargs)
            return content
        return decorator

    def get(self, name: str) -> NodeTemplate:
        template = self._templates.get(name)
        if template is None:
            raise TemplateNotFound(name)
        return NodeTemplate(template.name, copy.deepcopy(template.content),
                            copy.deepcopy(template.props), copy.deepcopy(template.options))

    def names(self) -> List[str]:
        return list(self._templates)

    def __contains__(self, name) -> bool:
        return name in self._templates

    def __len__(self) -> int:
        return len(self._templates)
