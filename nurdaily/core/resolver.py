"""
Ordered fallback chains. Each stage either resolves a key or returns None to
hand over to the next stage; the ordering lives in the stage list.
"""
import logging
from abc import ABC, abstractmethod
from collections import namedtuple
from typing import Any, List, Optional

from nurdaily.core.errors import ResolutionError

logger = logging.getLogger(__name__)

StageOutcome = namedtuple(
    "StageOutcome",
    [
        "value",      # resolved value
        "source",     # name of the stage that produced it
        "cacheable",  # whether the caller should persist it
    ],
    defaults=(None, None, True),
)


class ResolverStage(ABC):
    """One tier of a fallback chain."""

    name = "stage"

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def attempt(self, key: Any) -> Optional[StageOutcome]:
        """Resolve key, or return None to fall through.

        May raise ResolutionError; the chain treats that like None.
        """
        pass


class ResolutionChain:
    """Runs stages in order and returns the first outcome."""

    def __init__(self, name: str, stages: List[ResolverStage]):
        if not stages:
            raise ValueError(f"Chain {name} needs at least one stage")
        self.name = name
        self.stages = list(stages)
        self.logger = logging.getLogger(f"ResolutionChain.{name}")

    @property
    def stage_names(self) -> List[str]:
        return [stage.name for stage in self.stages]

    def resolve(self, key: Any) -> StageOutcome:
        for stage in self.stages:
            try:
                outcome = stage.attempt(key)
            except ResolutionError as e:
                self.logger.warning(f"Stage {stage.name} failed for {key}: {e.__class__.__name__}: {e}")
                continue
            if outcome is not None:
                self.logger.debug(f"Resolved {key} via {outcome.source or stage.name}")
                return outcome
            self.logger.debug(f"Stage {stage.name} passed on {key}")
        raise ResolutionError(f"No stage of {self.name} resolved {key}")
