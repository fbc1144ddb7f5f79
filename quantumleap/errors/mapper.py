from quantumleap.errors.codes import ErrorCode

ERROR_MAP = {
    ErrorCode.VALIDATION_ERROR: (422, False),
    ErrorCode.FLOW_NOT_FOUND: (404, False),
    ErrorCode.LLM_EMPTY_OUTPUT: (502, False),
    ErrorCode.LLM_BAD_OUTPUT: (502, False),
    ErrorCode.LLM_UNAVAILABLE: (503, True),
    ErrorCode.PIPELINE_CRASH: (500, False),
}


def map_error(code: ErrorCode | None) -> tuple[int, bool]:
    if code is None:
        return (500, False)
    return ERROR_MAP.get(code, (500, False))
