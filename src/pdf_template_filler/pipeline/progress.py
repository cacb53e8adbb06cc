# SPDX-License-Identifier: Apache-2.0
"""Stage reporting for the generation pipeline."""

from __future__ import annotations

import logging
from typing import Literal, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

GenerationStage = Literal["zones", "flow", "assemble"]

# Stages in execution order
STAGES: tuple[GenerationStage, ...] = ("zones", "flow", "assemble")


@runtime_checkable
class ProgressCallback(Protocol):
    """Called when a generation stage starts.

    Args:
        stage: Stage name, one of STAGES.
        current: Zero-based position of the stage in STAGES.
        total: Number of stages.
        message: Human-readable description.
    """

    def __call__(
        self,
        stage: GenerationStage,
        current: int,
        total: int,
        message: str = "",
    ) -> None: ...


def log_progress(stage: GenerationStage, current: int, total: int, message: str = "") -> None:
    """ProgressCallback that writes stage changes to the log."""
    logger.info("[%d/%d] %s: %s", current + 1, total, stage, message)
