from enum import Enum


class ErrorCode(str, Enum):
    # --- Input ---
    VALIDATION_ERROR = "VALIDATION_ERROR"
    FLOW_NOT_FOUND = "FLOW_NOT_FOUND"

    # --- LLM ---
    LLM_EMPTY_OUTPUT = "LLM_EMPTY_OUTPUT"
    LLM_BAD_OUTPUT = "LLM_BAD_OUTPUT"
    LLM_UNAVAILABLE = "LLM_UNAVAILABLE"

    # --- Internal ---
    PIPELINE_CRASH = "PIPELINE_CRASH"
