"""
Error classification.

Decides whether an ExecutionOutcome is a success, a benign condition
described by an ErrorRule, or a reportable failure. Rules are plain data,
evaluated in order; the first match wins.
"""

from typing import Iterable, Sequence, Tuple

from .domain.operation import ErrorRule, ExecutionOutcome, OperationName, OperationResult


def failure_message(operation: OperationName, code: int) -> str:
    """Short error exposed to callers; stderr stays in the logs."""
    return f"Unexpected error [code={code}]: {operation.value}"


def first_match(outcome: ExecutionOutcome, rules: Iterable[ErrorRule]):
    for rule in rules:
        if rule.matches(outcome):
            return rule
    return None


def classify(
    outcome: ExecutionOutcome,
    rules: Sequence[ErrorRule],
    operation: OperationName,
    overrides: Sequence[ErrorRule] = ()
) -> OperationResult:
    """
    Classify one outcome.

    A zero exit code is a success carrying the raw stdout (normalization
    happens afterwards). Otherwise operation-specific ``overrides`` are
    checked before the process-wide ``rules``; with no match the result is a
    failure naming the operation and exit code.
    """
    if outcome.code == 0:
        return OperationResult.success(operation, outcome.stdout)

    rule = first_match(outcome, overrides) or first_match(outcome, rules)
    if rule is not None:
        return OperationResult.allowed(operation, rule, outcome.code)

    return OperationResult.failure(operation, failure_message(operation, outcome.code), outcome.code)


def classify_credentials(
    outcome: ExecutionOutcome,
    threshold: int = 1,
    help_text: str = ""
) -> OperationResult:
    """
    Classify an ``ssh -T`` check.

    Hosts such as GitHub answer an authenticated ``ssh -T`` with exit code 1
    ("no shell access"), so codes up to ``threshold`` count as success.
    """
    operation = OperationName.CHECK_CREDENTIALS
    if outcome.code <= threshold and outcome.code >= 0:
        return OperationResult.success(operation, outcome.stdout, code=outcome.code)

    message = failure_message(operation, outcome.code)
    if help_text:
        message = f"{message}\n{help_text}"
    return OperationResult.failure(operation, message, outcome.code)


def show_overrides(relative_file_path: str, commit: str) -> Tuple[ErrorRule, ...]:
    """A file missing at the requested revision reads as empty content."""
    return (
        ErrorRule.contains(
            "path-not-in-revision",
            f"fatal: Path '{relative_file_path}' does not exist in '{commit}'",
            payload="",
        ),
        ErrorRule.contains("exists-on-disk-only", "exists on disk, but not in", payload=""),
    )


def _grep_found_nothing(outcome: ExecutionOutcome) -> bool:
    return outcome.code == 1 and not outcome.stdout.strip() and not outcome.stderr.strip()


def diff_overrides() -> Tuple[ErrorRule, ...]:
    """``grep`` exits 1 when no changed file has the filtered extension."""
    return (ErrorRule("no-matching-files", _grep_found_nothing, payload={}),)
