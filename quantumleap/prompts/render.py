from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, List, Mapping, Set, Union

# {{ name }}, {{ a.b }}, {{#if name}} ... {{else}} ... {{/if}}
_TAG_RE = re.compile(r"\{\{\s*(.*?)\s*\}\}", re.DOTALL)
_PATH_RE = re.compile(r"^[A-Za-z_]\w*(\.[A-Za-z_]\w*)*$")


@dataclass
class _Var:
    path: str


@dataclass
class _If:
    path: str
    then: List["_Node"] = field(default_factory=list)
    otherwise: List["_Node"] = field(default_factory=list)


_Node = Union[str, _Var, _If]


class TemplateSyntaxError(ValueError):
    pass


def _check_path(path: str, *, template: str) -> str:
    if not _PATH_RE.match(path):
        raise TemplateSyntaxError(f"[{template}] invalid placeholder: {path!r}")
    return path


def _parse(text: str, *, template: str) -> List[_Node]:
    root: List[_Node] = []
    # Each frame: (node list being filled, enclosing if-node or None)
    stack: List[tuple[List[_Node], _If | None]] = [(root, None)]
    pos = 0

    for m in _TAG_RE.finditer(text):
        if m.start() > pos:
            stack[-1][0].append(text[pos : m.start()])
        pos = m.end()
        tag = m.group(1)

        if tag.startswith("#if"):
            node = _If(path=_check_path(tag[3:].strip(), template=template))
            stack[-1][0].append(node)
            stack.append((node.then, node))
        elif tag == "else":
            current = stack[-1][1]
            if current is None:
                raise TemplateSyntaxError(f"[{template}] {{{{else}}}} outside of #if")
            stack[-1] = (current.otherwise, current)
        elif tag == "/if":
            if len(stack) == 1:
                raise TemplateSyntaxError(f"[{template}] unmatched {{{{/if}}}}")
            stack.pop()
        else:
            stack[-1][0].append(_Var(_check_path(tag, template=template)))

    if pos < len(text):
        stack[-1][0].append(text[pos:])
    if len(stack) != 1:
        raise TemplateSyntaxError(f"[{template}] unclosed {{{{#if}}}} block")
    return root


def _resolve(variables: Mapping[str, Any], path: str) -> Any:
    head, *rest = path.split(".")
    if head not in variables:
        raise KeyError(path)
    value = variables[head]
    for part in rest:
        if value is None:
            return None
        if isinstance(value, Mapping):
            value = value.get(part)
        else:
            value = getattr(value, part, None)
    return value


def _is_present(value: Any) -> bool:
    if value is None or value is False:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) > 0
    return True


def format_value(value: Any) -> str:
    """Render a value for prompt text. Floats never use scientific notation."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return format(Decimal(repr(value)), "f")
    if isinstance(value, (list, tuple)):
        return ", ".join(format_value(v) for v in value)
    return str(value)


class PromptTemplate:
    """
    A prompt with named placeholders and conditional sections.

    Placeholders refer to template variables by name (dotted paths reach into
    nested objects). `{{#if name}}` blocks render only when the variable is
    present and non-empty.
    """

    def __init__(self, text: str, *, name: str = "prompt") -> None:
        self.name = name
        self.text = text
        self._nodes = _parse(text, template=name)

    @property
    def variables(self) -> Set[str]:
        found: Set[str] = set()

        def walk(nodes: List[_Node]) -> None:
            for n in nodes:
                if isinstance(n, _Var):
                    found.add(n.path.split(".")[0])
                elif isinstance(n, _If):
                    found.add(n.path.split(".")[0])
                    walk(n.then)
                    walk(n.otherwise)

        walk(self._nodes)
        return found

    def render(self, variables: Mapping[str, Any]) -> str:
        out: List[str] = []

        def emit(nodes: List[_Node]) -> None:
            for n in nodes:
                if isinstance(n, str):
                    out.append(n)
                elif isinstance(n, _Var):
                    out.append(format_value(_resolve(variables, n.path)))
                else:
                    try:
                        value = _resolve(variables, n.path)
                    except KeyError:
                        value = None
                    emit(n.then if _is_present(value) else n.otherwise)

        emit(self._nodes)
        return "".join(out)
