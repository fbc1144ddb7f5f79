from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence, Type

from pydantic import BaseModel, ConfigDict

from quantumleap.prompts.render import PromptTemplate


# NOTE:
# Shapes are strict: a value is accepted only when every required field is
# present with the declared type. Numbers are never parsed out of strings.


class Shape(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore")


class PriceRange(Shape):
    low: float
    high: float


class CandlestickPoint(Shape):
    time: str  # YYYY-MM-DD
    open: float
    high: float
    low: float
    close: float


@dataclass(frozen=True)
class FlowContract:
    """
    Everything needed to run one flow: input/output shapes, the prompt, the
    repair table and the tools the model may call.

    `prepare` maps the validated input to template variables; by default the
    input's own fields are used. Flows with `text_field` set receive plain text
    from the model and wrap it into that output field.
    """

    name: str
    input_model: Type[Shape]
    output_model: Type[Shape]
    template: PromptTemplate
    repairs: Sequence[Any] = ()
    tools: Sequence[str] = ()
    prepare: Optional[Callable[[Shape], Dict[str, Any]]] = None
    text_field: Optional[str] = None
    temperature: float = 0.7
    description: str = ""

    def template_vars(self, data: Shape) -> Dict[str, Any]:
        if self.prepare is not None:
            return self.prepare(data)
        return data.model_dump()

    def output_schema(self) -> Optional[Dict[str, Any]]:
        if self.text_field is not None:
            return None
        return self.output_model.model_json_schema()
