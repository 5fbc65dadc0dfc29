"""
Execução sequencial de planos normalizados com resolução de bindings.
"""

from .bindings import (
    apply_bindings,
    apply_bindings_to_string,
    expand_path,
    format_command_for_log,
    learn_bindings_from_output,
    unresolved_keys,
)
from .executor import (
    CommandOutcome,
    Connection,
    ExecResult,
    ExecState,
    Executor,
    build_connection_info,
)
from .runners import (
    CommandRunner,
    ConditionChecker,
    RunnerConditionChecker,
    SessionRunner,
    SubprocessCommandRunner,
    ParamikoSessionRunner,
)

__all__ = [
    "apply_bindings",
    "apply_bindings_to_string",
    "expand_path",
    "format_command_for_log",
    "learn_bindings_from_output",
    "unresolved_keys",
    "CommandOutcome",
    "Connection",
    "ExecResult",
    "ExecState",
    "Executor",
    "build_connection_info",
    "CommandRunner",
    "ConditionChecker",
    "RunnerConditionChecker",
    "SessionRunner",
    "SubprocessCommandRunner",
    "ParamikoSessionRunner",
]
