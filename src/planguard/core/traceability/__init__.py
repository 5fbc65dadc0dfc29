"""
Rastreabilidade do planguard (Manifest v1).

O Manifest registra, para cada normalização ou execução, os hashes das
entradas, o estado de cada passe/comando e um Event Log ordenado.
"""

from .manifest import (
    PlanguardManifest,
    create_manifest,
    add_event,
    step_started,
    step_finished,
    step_failed,
    save_manifest,
    load_manifest,
)

__all__ = [
    "PlanguardManifest",
    "create_manifest",
    "add_event",
    "step_started",
    "step_finished",
    "step_failed",
    "save_manifest",
    "load_manifest",
]
