from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Type

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Tool:
    """
    A callable the model may invoke mid-generation.

    `fn` is a blocking function taking the validated input model and returning
    a JSON-serializable dict. It must report failures as values, never raise.
    """

    name: str
    description: str
    input_model: Type[BaseModel]
    fn: Callable[[Any], Dict[str, Any]]

    def parameters(self) -> Dict[str, Any]:
        return self.input_model.model_json_schema()

    async def call(self, arguments: Mapping[str, Any]) -> Dict[str, Any]:
        """Validate the model's arguments and run `fn` in a worker thread."""
        try:
            data = self.input_model.model_validate(dict(arguments))
        except PydanticValidationError as exc:
            log.warning(
                "Tool called with invalid arguments",
                extra={"tool": self.name, "errors": exc.errors()},
            )
            return {"error": f"Invalid arguments for tool {self.name}: {exc}"}
        return await asyncio.to_thread(self.fn, data)
