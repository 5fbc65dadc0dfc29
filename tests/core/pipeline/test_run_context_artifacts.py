# tests/core/pipeline/test_run_context_artifacts.py
"""
Testes do armazenamento de artefatos e do sinal de cancelamento do RunContext.
"""

import pytest

from planguard.core.pipeline.context import RunContext, new_run_context


def test_artifact_set_get(dummy_ctx):
    dummy_ctx.set_artifact("plan", {"commands": []})
    assert dummy_ctx.has_artifact("plan")
    assert dummy_ctx.get_artifact("plan") == {"commands": []}


def test_artifact_missing_key_raises(dummy_ctx):
    with pytest.raises(KeyError):
        dummy_ctx.get_artifact("missing")


def test_context_isolation(dummy_config):
    """
    Verifica que contextos distintos não compartilham artefatos nem sinais.

    Invariantes:
        - Artefatos, eventos e cancelamento pertencem a uma única instância
    """
    a = new_run_context(dummy_config)
    b = new_run_context(dummy_config)

    a.set_artifact("plan", 1)
    a.cancel()

    assert not b.has_artifact("plan")
    assert a.cancelled is True
    assert b.cancelled is False
    assert a.run_id != b.run_id


def test_new_run_context_uses_given_run_id(dummy_config):
    ctx = new_run_context(dummy_config, run_id="fixed")
    assert isinstance(ctx, RunContext)
    assert ctx.run_id == "fixed"
    assert ctx.created_at.tzinfo is not None
