# tests/core/pipeline/test_run_context_logging.py
"""
Testes de logging estruturado, coleta de warnings e encaminhamento ao `logf`.

Decisões arquiteturais:
    - Logs são eventos estruturados, não strings livres
    - `emit` encaminha mensagens printf-style ao `logf` injetado
    - Sem `logf`, `emit` não tem efeito
"""

from planguard.core.pipeline.context import new_run_context


def test_structured_log_event(dummy_ctx):
    dummy_ctx.log(step_id="dedup.exact", level="info", message="hello", removed=1)
    ev = dummy_ctx.events[-1]
    assert ev["run_id"] == dummy_ctx.run_id
    assert ev["step_id"] == "dedup.exact"
    assert ev["level"] == "info"
    assert ev["message"] == "hello"
    assert ev["removed"] == 1
    assert "timestamp" in ev


def test_warning_collection(dummy_ctx):
    dummy_ctx.add_warning(step_id="dedup.orphans", message="dropped chain")
    dummy_ctx.add_warning(step_id="dedup.orphans", message="second")
    assert dummy_ctx.warnings["dedup.orphans"] == ["dropped chain", "second"]


def test_emit_forwards_to_logf(dummy_ctx, log_lines):
    dummy_ctx.emit("[normalize] %s: removed %d command(s)", "exact duplicate", 2)
    assert log_lines == ["[normalize] exact duplicate: removed 2 command(s)"]


def test_emit_without_logf_is_noop(dummy_config):
    ctx = new_run_context(dummy_config)
    ctx.emit("ignored %s", "x")
    assert ctx.events == []
