"""
Service layer: daily inspiration resolution.

Stages: today's cache, then optionally one structured Gemini request, then
the per-half providers where each half falls back to its fixed passage on
its own. "Today" comes from today_provider at call time, so a process that
runs past midnight resolves the new day.
"""
import logging
from datetime import date
from typing import Callable, List, Optional

from nurdaily.core.errors import ResolutionError
from nurdaily.core.resolver import ResolutionChain, ResolverStage, StageOutcome

from .cache import InspirationCache
from .inspiration_base import GeminiInspirationBackend, PassageSource
from .models import FALLBACK_AYAH, FALLBACK_HADITH, DailyInspiration, Passage

logger = logging.getLogger(__name__)

FALLBACK_SOURCE = "fallback"


class InspirationCacheStage(ResolverStage):
    name = "cache"

    def __init__(self, cache: InspirationCache):
        super().__init__()
        self.cache = cache

    def attempt(self, day: date) -> Optional[StageOutcome]:
        cached = self.cache.get(day)
        if cached is None:
            return None
        return StageOutcome(cached, self.name, False)


class GeminiInspirationStage(ResolverStage):
    name = "gemini"

    def __init__(self, backend: GeminiInspirationBackend):
        super().__init__()
        self.backend = backend

    def attempt(self, day: date) -> Optional[StageOutcome]:
        return StageOutcome(self.backend.fetch(day), self.name, True)


class ProviderInspirationStage(ResolverStage):
    """Ayah and hadith fetched independently; a failed half gets its fixed passage.

    Always resolves. Cacheable only when at least one half came from a provider.
    """

    name = "providers"

    def __init__(self, ayah_sources: List[PassageSource], hadith_sources: List[PassageSource]):
        super().__init__()
        self.ayah_sources = list(ayah_sources)
        self.hadith_sources = list(hadith_sources)

    def _first_passage(self, sources: List[PassageSource], day: date, fallback: Passage):
        for source in sources:
            try:
                return source.fetch(day), source.name
            except ResolutionError as e:
                self.logger.warning(f"{source.kind} source {source.name} failed for {day}: {e.__class__.__name__}: {e}")
        return fallback, FALLBACK_SOURCE

    def attempt(self, day: date) -> Optional[StageOutcome]:
        ayah, ayah_source = self._first_passage(self.ayah_sources, day, FALLBACK_AYAH)
        hadith, hadith_source = self._first_passage(self.hadith_sources, day, FALLBACK_HADITH)
        remote = ayah_source != FALLBACK_SOURCE or hadith_source != FALLBACK_SOURCE
        return StageOutcome(
            DailyInspiration(ayah=ayah, hadith=hadith),
            f"{ayah_source}+{hadith_source}",
            remote,
        )


class InspirationResolver:
    """Resolves today's DailyInspiration, at most one fetch per calendar day."""

    def __init__(
        self,
        cache: InspirationCache,
        gemini: Optional[GeminiInspirationBackend] = None,
        ayah_sources: Optional[List[PassageSource]] = None,
        hadith_sources: Optional[List[PassageSource]] = None,
        today_provider: Optional[Callable[[], date]] = None,
    ):
        self.cache = cache
        self.today_provider = today_provider or date.today
        self.logger = logging.getLogger(self.__class__.__name__)
        stages: List[ResolverStage] = [InspirationCacheStage(cache)]
        if gemini is not None:
            stages.append(GeminiInspirationStage(gemini))
        stages.append(ProviderInspirationStage(ayah_sources or [], hadith_sources or []))
        self.chain = ResolutionChain("inspiration", stages)

    def today(self) -> date:
        return self.today_provider()

    def resolve(self, day: Optional[date] = None) -> StageOutcome:
        """Run the chain without writing to the cache."""
        return self.chain.resolve(day or self.today())

    def persist(self, day: date, outcome: StageOutcome) -> None:
        if outcome.cacheable:
            self.cache.put(day, outcome.value)

    def lookup(self, day: Optional[date] = None) -> StageOutcome:
        day = day or self.today()
        outcome = self.resolve(day)
        self.persist(day, outcome)
        self.logger.debug(f"Inspiration for {day} from {outcome.source}")
        return outcome

    def get_inspiration(self, day: Optional[date] = None) -> DailyInspiration:
        return self.lookup(day).value
