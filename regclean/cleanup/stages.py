"""Named, ordered cleanup stages and the loop that runs them over a tree."""

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

import structlog

from regclean.utils.dom import Element

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Stage:
    name: str
    run: Callable[[Element], None]


def stage(run: Callable[[Element], None], name: Optional[str] = None) -> Stage:
    """Wraps a mutator as a Stage, named after the function unless `name` is given."""
    return Stage(name or getattr(run, "__name__", repr(run)), run)


def stage_names(stages: Sequence[Stage]) -> List[str]:
    return [s.name for s in stages]


def run_stages(root: Element, stages: Sequence[Stage], pipeline: str) -> Element:
    """Runs every stage over `root` in order. Stages mutate the tree in place."""
    for s in stages:
        logger.debug(f"{pipeline}: {s.name}")
        s.run(root)
    return root
