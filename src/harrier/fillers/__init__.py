from __future__ import annotations

from harrier.config import Settings
from harrier.fillers.ashby import AshbyFiller
from harrier.fillers.base import FormFiller
from harrier.fillers.generic import GenericFiller
from harrier.fillers.greenhouse import GreenhouseFiller
from harrier.fillers.lever import LeverFiller
from harrier.fillers.workable import WorkableFiller

FILLERS: dict[str, type[FormFiller]] = {
    "ashby": AshbyFiller,
    "greenhouse": GreenhouseFiller,
    "lever": LeverFiller,
    "workable": WorkableFiller,
    "generic": GenericFiller,
}


def get_filler(platform: str, settings: Settings | None = None) -> FormFiller:
    return FILLERS.get(platform, GenericFiller)(settings)


__all__ = [
    "AshbyFiller",
    "FormFiller",
    "GenericFiller",
    "GreenhouseFiller",
    "LeverFiller",
    "WorkableFiller",
    "get_filler",
]
