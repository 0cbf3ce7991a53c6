from __future__ import annotations

from harrier.fillers.base import FormFiller


class GenericFiller(FormFiller):
    """Merged selector table plus the shared question set."""

    platform = "generic"
