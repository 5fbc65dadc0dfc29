# tests/core/pipeline/test_registry_unique_step_id.py
"""
Testes de unicidade de `step.id` no StepRegistry.

Invariantes:
    - Ids duplicados são rejeitados no momento do registro
    - A ordem de registro é preservada por `list()`
"""

import pytest

from planguard.core.pipeline.registry import DuplicateStepIdError, StepRegistry


def test_registry_rejects_duplicate_step_id(DummyStep):
    reg = StepRegistry()
    reg.add(DummyStep(step_id="dedup.exact"))
    with pytest.raises(DuplicateStepIdError):
        reg.add(DummyStep(step_id="dedup.exact"))


def test_registry_accepts_unique_ids(DummyStep):
    reg = StepRegistry()
    reg.add(DummyStep(step_id="dedup.exact"))
    reg.add(DummyStep(step_id="dedup.semantic"))

    assert len(reg) == 2
    assert [s.id for s in reg.list()] == ["dedup.exact", "dedup.semantic"]
    assert reg.get("dedup.semantic").id == "dedup.semantic"


def test_registry_rejects_blank_id(DummyStep):
    with pytest.raises(ValueError):
        StepRegistry().add(DummyStep(step_id="  "))


def test_registry_holds_default_passes():
    from planguard.normalize.steps import PASS_ORDER, default_steps

    reg = StepRegistry()
    for step in default_steps():
        reg.add(step)
    assert [s.id for s in reg.list()] == list(PASS_ORDER)
