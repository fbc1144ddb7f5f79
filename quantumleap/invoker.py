from __future__ import annotations

import logging
import time
from dataclasses import asdict
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from adapters.llm.base import LLMProvider
from adapters.metrics.base import Metrics
from adapters.metrics.noop import NoOpMetrics
from quantumleap.contracts import FlowContract, Shape
from quantumleap.errors import ErrorCode, FlowError, GenerationError, ValidationError
from quantumleap.registry import get_flow
from quantumleap.repair import REFERENCE_DATE, RepairContext, apply_rules
from quantumleap.tools.base import Tool
from quantumleap.types import FlowResult, Generation, StageTrace

log = logging.getLogger(__name__)


def _loc(err: Mapping[str, Any]) -> str:
    return ".".join(str(p) for p in err.get("loc", ())) or "<root>"


def _error_details(exc: PydanticValidationError) -> List[str]:
    return [f"{_loc(e)}: {e.get('msg', 'invalid')}" for e in exc.errors()]


class FlowInvoker:
    """
    Runs a flow end to end:
      validate → render → generate (+tool calls) → repair → verify.

    The model call is the only suspension point. No timeout is applied here;
    callers may wrap `invoke` in `asyncio.wait_for`.
    """

    def __init__(
        self,
        *,
        llm: LLMProvider,
        tools: Optional[Mapping[str, Tool]] = None,
        metrics: Optional[Metrics] = None,
        temperatures: Optional[Mapping[str, float]] = None,
        reference_date: date = REFERENCE_DATE,
    ) -> None:
        self.llm = llm
        self.tools: Dict[str, Tool] = dict(tools or {})
        self.metrics: Metrics = metrics or NoOpMetrics()
        self.temperatures: Dict[str, float] = dict(temperatures or {})
        self.reference_date = reference_date

    # ---------------------------- helpers ----------------------------
    @staticmethod
    def _ms(t0: float) -> float:
        return (time.perf_counter() - t0) * 1000.0

    def _trace(self, traces: List[Dict[str, Any]], trace: StageTrace) -> None:
        self.metrics.observe_stage_duration_ms(stage=trace.stage, dt_ms=trace.duration_ms)
        traces.append(asdict(trace))

    def _fail(self, stage: str, flow: str, exc: FlowError) -> FlowError:
        if exc.flow is None:
            exc.flow = flow
        self.metrics.inc_stage_error(stage=stage, error_code=exc.code.value)
        self.metrics.inc_flow_run(flow=flow, status="error")
        log.warning(
            "Flow failed",
            extra={"flow": flow, "stage": stage, "code": exc.code.value},
        )
        return exc

    def _tools_for(self, contract: FlowContract) -> List[Tool]:
        missing = [n for n in contract.tools if n not in self.tools]
        if missing:
            raise FlowError(
                f"Flow {contract.name!r} needs unregistered tools: {missing}",
                flow=contract.name,
            )
        return [self.tools[n] for n in contract.tools]

    # ---------------------------- stages ----------------------------
    def _validate(self, contract: FlowContract, raw: Any) -> Shape:
        if not isinstance(raw, Mapping):
            raise ValidationError(
                "Flow input must be a JSON object",
                details=[f"got {type(raw).__name__}"],
            )
        try:
            return contract.input_model.model_validate(dict(raw))
        except PydanticValidationError as exc:
            errors = exc.errors()
            field = _loc(errors[0]) if errors else None
            raise ValidationError(
                f"Invalid input for flow {contract.name!r}: {field}",
                field=field,
                details=_error_details(exc),
            ) from exc

    def _artifact(self, contract: FlowContract, gen: Generation) -> Dict[str, Any]:
        value = gen.value
        if value is None or (isinstance(value, str) and not value.strip()):
            raise GenerationError(
                "Model returned no output", code=ErrorCode.LLM_EMPTY_OUTPUT
            )
        if contract.text_field is not None:
            if not isinstance(value, str):
                raise GenerationError("Model returned non-text output for a text flow")
            return {contract.text_field: value.strip()}
        if not isinstance(value, dict):
            raise GenerationError(
                f"Model output is not an object (got {type(value).__name__})"
            )
        return value

    def _verify(self, contract: FlowContract, repaired: Dict[str, Any]) -> Shape:
        try:
            return contract.output_model.model_validate(repaired)
        except PydanticValidationError as exc:
            details = _error_details(exc)
            raise GenerationError(
                "Model output does not match the output shape after repair",
                details=details,
            ) from exc

    # ---------------------------- entry ----------------------------
    async def invoke(
        self, flow: Union[str, FlowContract], raw_input: Any
    ) -> FlowResult:
        contract = get_flow(flow) if isinstance(flow, str) else flow
        name = contract.name
        traces: List[Dict[str, Any]] = []

        # --- 1) validate input ---
        t0 = time.perf_counter()
        try:
            data = self._validate(contract, raw_input)
        except FlowError as exc:
            raise self._fail("validate", name, exc)
        self._trace(traces, StageTrace(stage="validate", duration_ms=self._ms(t0), summary="ok"))

        # --- 2) render prompt ---
        t0 = time.perf_counter()
        try:
            prompt = contract.template.render(contract.template_vars(data))
        except KeyError as exc:
            raise self._fail(
                "render",
                name,
                FlowError(f"Template {contract.template.name!r} has no variable {exc}"),
            ) from exc
        self._trace(
            traces,
            StageTrace(
                stage="render",
                duration_ms=self._ms(t0),
                summary="ok",
                notes={"prompt_chars": len(prompt)},
            ),
        )

        # --- 3) model call (single suspension point) ---
        t0 = time.perf_counter()
        try:
            tools = self._tools_for(contract)
            gen = await self.llm.generate(
                prompt=prompt,
                output_schema=contract.output_schema(),
                tools=tools,
                temperature=self.temperatures.get(name, contract.temperature),
            )
            artifact = self._artifact(contract, gen)
        except FlowError as exc:
            raise self._fail("generate", name, exc)
        except Exception as exc:
            log.exception("LLM provider crashed", extra={"flow": name})
            raise self._fail(
                "generate", name, GenerationError(f"LLM provider error: {exc}")
            ) from exc
        self.metrics.inc_tool_calls(flow=name, count=gen.tool_calls)
        self._trace(
            traces,
            StageTrace(
                stage="generate",
                duration_ms=self._ms(t0),
                summary="ok",
                token_in=gen.token_in,
                token_out=gen.token_out,
                cost_usd=gen.cost_usd,
                tool_calls=gen.tool_calls,
            ),
        )

        # --- 4) repair ---
        t0 = time.perf_counter()
        ctx = RepairContext(
            flow=name, inputs=data.model_dump(), reference_date=self.reference_date
        )
        repaired, applied = apply_rules(artifact, contract.repairs, ctx)
        for label in applied:
            self.metrics.inc_repair_applied(flow=name, rule=label)
        self._trace(
            traces,
            StageTrace(
                stage="repair",
                duration_ms=self._ms(t0),
                summary=f"{len(applied)} applied",
                repairs=applied,
            ),
        )

        # --- 5) verify output ---
        t0 = time.perf_counter()
        try:
            output = self._verify(contract, repaired)
        except FlowError as exc:
            raise self._fail("verify", name, exc)
        self._trace(traces, StageTrace(stage="verify", duration_ms=self._ms(t0), summary="ok"))

        self.metrics.inc_flow_run(flow=name, status="ok")
        log.info(
            "Flow completed",
            extra={"flow": name, "repairs": len(applied), "tool_calls": gen.tool_calls},
        )
        return FlowResult(flow=name, output=output, traces=traces, repairs=applied)
