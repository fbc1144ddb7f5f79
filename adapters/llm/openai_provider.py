from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import Any, Dict, List, Optional, Sequence

import openai
from openai import AsyncOpenAI

from adapters.llm.base import LLMProvider
from quantumleap.errors import ErrorCode, GenerationError
from quantumleap.tools.base import Tool
from quantumleap.types import Generation

log = logging.getLogger(__name__)

MAX_TOOL_ROUNDS = 5

_TRANSIENT_ERRORS = (
    openai.APIConnectionError,
    openai.APITimeoutError,
    openai.RateLimitError,
    openai.InternalServerError,
)


def _resolve_api_config() -> tuple[str, str, str]:
    """Returns (api_key, base_url, model_id) according to env."""
    override_model = os.getenv("LLM_MODEL_ID")

    proxy_key = os.getenv("PROXY_API_KEY")
    proxy_url = os.getenv("PROXY_BASE_URL")
    if proxy_key and proxy_url:
        model = override_model or os.getenv("OPENAI_MODEL_ID") or "gpt-4o-mini"
        return proxy_key, proxy_url, model

    openai_key = os.getenv("OPENAI_API_KEY")
    if not openai_key:
        raise RuntimeError(
            "No API credentials found. Set either PROXY_API_KEY/PROXY_BASE_URL or OPENAI_API_KEY."
        )
    openai_url = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
    model = override_model or os.getenv("OPENAI_MODEL_ID") or "gpt-4o-mini"
    return openai_key, openai_url, model


def parse_json_object(content: str) -> Dict[str, Any]:
    """Parse a JSON object, falling back to the outermost {...} span."""
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError:
        start = content.find("{")
        end = content.rfind("}")
        if start == -1 or end == -1:
            raise ValueError(f"Invalid LLM JSON output: {content[:200]}")
        try:
            parsed = json.loads(content[start : end + 1])
        except json.JSONDecodeError:
            raise ValueError(f"Invalid LLM JSON output: {content[:200]}")
    if not isinstance(parsed, dict):
        raise ValueError(f"LLM JSON output is not an object: {content[:200]}")
    return parsed


def _tool_spec(tool: Tool) -> Dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": tool.name,
            "description": tool.description,
            "parameters": tool.parameters(),
        },
    }


class OpenAIProvider(LLMProvider):
    """OpenAI chat-completions provider with JSON-schema output and tool calls."""

    PROVIDER_ID = "openai"

    def __init__(self, *, model: Optional[str] = None) -> None:
        api_key, base_url, default_model = _resolve_api_config()
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url)
        self.model = model or default_model

    async def _create_chat_completion(self, **kwargs):
        """OpenAI SDK seam for stable unit testing."""
        return await self.client.chat.completions.create(**kwargs)

    async def _run_tool_calls(
        self, tool_calls: Sequence[Any], tools: Dict[str, Tool]
    ) -> List[Dict[str, Any]]:
        async def run_one(tc: Any) -> Dict[str, Any]:
            name = tc.function.name
            tool = tools.get(name)
            if tool is None:
                result: Dict[str, Any] = {"error": f"Unknown tool: {name}"}
            else:
                try:
                    args = json.loads(tc.function.arguments or "{}")
                except json.JSONDecodeError:
                    args = None
                if not isinstance(args, dict):
                    result = {"error": f"Tool arguments for {name} are not a JSON object"}
                else:
                    result = await tool.call(args)
            log.debug("Tool call finished", extra={"tool": name, "result": result})
            return {
                "role": "tool",
                "tool_call_id": tc.id,
                "content": json.dumps(result),
            }

        return list(await asyncio.gather(*(run_one(tc) for tc in tool_calls)))

    async def generate(
        self,
        *,
        prompt: str,
        output_schema: Optional[Dict[str, Any]] = None,
        tools: Sequence[Tool] = (),
        temperature: float = 0.7,
    ) -> Generation:
        messages: List[Dict[str, Any]] = [{"role": "user", "content": prompt}]
        kwargs: Dict[str, Any] = {"model": self.model, "temperature": temperature}
        if output_schema is not None:
            kwargs["response_format"] = {
                "type": "json_schema",
                "json_schema": {
                    "name": "flow_output",
                    "schema": output_schema,
                    "strict": False,
                },
            }
        by_name = {t.name: t for t in tools}
        if by_name:
            kwargs["tools"] = [_tool_spec(t) for t in tools]

        prompt_tokens = completion_tokens = 0
        n_tool_calls = 0
        content: Optional[str] = None

        for _ in range(MAX_TOOL_ROUNDS + 1):
            try:
                completion = await self._create_chat_completion(
                    messages=messages, **kwargs
                )
            except _TRANSIENT_ERRORS as exc:
                raise GenerationError(
                    f"LLM unavailable: {exc}", code=ErrorCode.LLM_UNAVAILABLE
                ) from exc
            except openai.OpenAIError as exc:
                raise GenerationError(f"LLM request failed: {exc}") from exc

            usage = getattr(completion, "usage", None)
            if usage:
                prompt_tokens += usage.prompt_tokens
                completion_tokens += usage.completion_tokens

            msg = completion.choices[0].message
            tool_calls = getattr(msg, "tool_calls", None) or []
            if not tool_calls:
                content = msg.content
                break

            n_tool_calls += len(tool_calls)
            messages.append(
                {
                    "role": "assistant",
                    "content": msg.content,
                    "tool_calls": [
                        {
                            "id": tc.id,
                            "type": "function",
                            "function": {
                                "name": tc.function.name,
                                "arguments": tc.function.arguments,
                            },
                        }
                        for tc in tool_calls
                    ],
                }
            )
            messages.extend(await self._run_tool_calls(tool_calls, by_name))
        else:
            raise GenerationError(
                f"Model kept calling tools after {MAX_TOOL_ROUNDS} rounds"
            )

        cost = self._estimate_cost(prompt_tokens, completion_tokens)

        text = (content or "").strip()
        if not text:
            value: Any = None
        elif output_schema is None:
            value = text
        else:
            try:
                value = parse_json_object(text)
            except ValueError as exc:
                raise GenerationError(str(exc)) from exc

        return Generation(
            value=value,
            token_in=prompt_tokens,
            token_out=completion_tokens,
            cost_usd=cost,
            tool_calls=n_tool_calls,
        )

    def _estimate_cost(self, prompt_tokens: int, completion_tokens: int) -> float:
        """Estimate cost in USD from token counts."""
        # Pricing per 1K tokens (adjust based on model)
        pricing = {
            "gpt-4": {"input": 0.03, "output": 0.06},
            "gpt-4-turbo": {"input": 0.01, "output": 0.03},
            "gpt-4o": {"input": 0.005, "output": 0.015},
            "gpt-4o-mini": {"input": 0.00015, "output": 0.0006},
            "gpt-3.5-turbo": {"input": 0.0005, "output": 0.0015},
        }

        model_pricing = pricing.get(self.model, pricing["gpt-4o-mini"])

        input_cost = (prompt_tokens / 1000) * model_pricing["input"]
        output_cost = (completion_tokens / 1000) * model_pricing["output"]

        return input_cost + output_cost
