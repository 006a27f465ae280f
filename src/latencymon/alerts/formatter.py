"""
Alert message templates and token substitution.

Templates are plain strings containing ``@token@`` placeholders. Only the
tokens listed below are substituted; anything else is passed through
unchanged.
"""

import traceback
from typing import TYPE_CHECKING, Optional

from ..models.duration import DurationRecord

if TYPE_CHECKING:
    from ..models.requirements import (
        CappedLatencyRequirement,
        LatencyRequirement,
        StatisticalLatencyRequirement,
    )

# Handler parameter keys holding the message templates
TOLERANCE_BREACH_MSG_PARAM = "tolerance.breach.msg"
CAP_BREACH_MSG_PARAM = "cap.breach.msg"
WORK_FAILURE_MSG_PARAM = "work.failure.msg"

# Substitution tokens
WORK_CATEGORY_TOKEN = "@work.category@"
THREAD_ID_TOKEN = "@threadId@"
DEVIATION_TOKEN = "@deviation@"
MEAN_TOKEN = "@mean@"
TOLERANCE_LEVEL_TOKEN = "@tolerance@"
EXPECTED_LATENCY_TOKEN = "@expected.latency@"
DURATION_TOKEN = "@duration@"
EXCEPTION_MESSAGE_TOKEN = "@exception.message@"
EXCEPTION_STACKTRACE_TOKEN = "@exception.stacktrace@"

DEFAULT_TOLERANCE_EXCEEDED_MESSAGE = (
    f"{THREAD_ID_TOKEN}: WorkCategory '{WORK_CATEGORY_TOKEN}' exceeded allowed tolerance "
    f"{TOLERANCE_LEVEL_TOKEN}%.\n\t\tMean {MEAN_TOKEN}, task deviation {DEVIATION_TOKEN}, "
    f"actual duration {DURATION_TOKEN}."
)
DEFAULT_CAP_EXCEEDED_MESSAGE = (
    f"{THREAD_ID_TOKEN}: WorkCategory '{WORK_CATEGORY_TOKEN}' exceeded specified latency "
    f"{EXPECTED_LATENCY_TOKEN}, actual duration {DURATION_TOKEN}."
)
DEFAULT_WORK_FAILURE_MESSAGE = (
    f"{THREAD_ID_TOKEN}: WorkCategory '{WORK_CATEGORY_TOKEN}' failed with error: "
    f"{EXCEPTION_MESSAGE_TOKEN}.\nStack Trace:\n{EXCEPTION_STACKTRACE_TOKEN}"
)

DEFAULT_MESSAGES = {
    TOLERANCE_BREACH_MSG_PARAM: DEFAULT_TOLERANCE_EXCEEDED_MESSAGE,
    CAP_BREACH_MSG_PARAM: DEFAULT_CAP_EXCEEDED_MESSAGE,
    WORK_FAILURE_MSG_PARAM: DEFAULT_WORK_FAILURE_MESSAGE,
}


def _format_number(value: float) -> str:
    return f"{value:g}"


def _exception_message(error: Optional[BaseException]) -> str:
    return "" if error is None else str(error)


def _exception_stacktrace(error: Optional[BaseException]) -> str:
    if error is None:
        return ""
    return "".join(traceback.format_exception(type(error), error, error.__traceback__))


def format_tolerance_exceeded_message(
    template: str,
    requirement: "StatisticalLatencyRequirement",
    record: DurationRecord,
    deviation: float,
    mean: float,
) -> str:
    result = template.replace(WORK_CATEGORY_TOKEN, requirement.work_category)
    result = result.replace(THREAD_ID_TOKEN, record.thread_id)
    result = result.replace(DEVIATION_TOKEN, _format_number(deviation))
    result = result.replace(MEAN_TOKEN, _format_number(mean))
    result = result.replace(TOLERANCE_LEVEL_TOKEN, _format_number(requirement.tolerance_percent))
    result = result.replace(DURATION_TOKEN, record.format_elapsed())
    return result


def format_cap_exceeded_message(
    template: str,
    requirement: "CappedLatencyRequirement",
    record: DurationRecord,
) -> str:
    result = template.replace(WORK_CATEGORY_TOKEN, requirement.work_category)
    result = result.replace(THREAD_ID_TOKEN, record.thread_id)
    result = result.replace(EXPECTED_LATENCY_TOKEN, str(requirement.expected_latency_ms))
    result = result.replace(DURATION_TOKEN, record.format_elapsed())
    return result


def format_work_failure_message(
    template: str,
    requirement: "LatencyRequirement",
    record: DurationRecord,
) -> str:
    result = template.replace(WORK_CATEGORY_TOKEN, requirement.work_category)
    result = result.replace(THREAD_ID_TOKEN, record.thread_id)
    result = result.replace(DURATION_TOKEN, record.format_elapsed())
    result = result.replace(EXCEPTION_MESSAGE_TOKEN, _exception_message(record.error))
    result = result.replace(EXCEPTION_STACKTRACE_TOKEN, _exception_stacktrace(record.error))
    return result
