"""
Service layer: Hijri date resolution.

Stages, in order: cache, configured remote backends, local Umm al-Qura
conversion, static placeholder. resolve() never touches the cache for
writing; persist() does.
"""
import logging
import re
from typing import List, Optional

from nurdaily.core.dates import DateLike, to_date
from nurdaily.core.resolver import ResolutionChain, ResolverStage, StageOutcome

from .cache import HijriDateCache, looks_gregorian
from .hijri_base import HijriBackend, UmmAlQuraCalculator

logger = logging.getLogger(__name__)

PLACEHOLDER = "Hijri date unavailable"

# Hijri era years for any plausible Gregorian input
HIJRI_YEAR = re.compile(r"\b1[3-5]\d{2}\b")


def is_plausible_hijri(text: str) -> bool:
    return bool(text) and bool(HIJRI_YEAR.search(text)) and not looks_gregorian(text)


class HijriCacheStage(ResolverStage):
    name = "cache"

    def __init__(self, cache: HijriDateCache):
        super().__init__()
        self.cache = cache

    def attempt(self, day) -> Optional[StageOutcome]:
        value = self.cache.get(day)
        if value is None:
            return None
        return StageOutcome(value, self.name, False)


class RemoteHijriStage(ResolverStage):
    def __init__(self, backend: HijriBackend):
        super().__init__()
        self.backend = backend
        self.name = backend.name

    def attempt(self, day) -> Optional[StageOutcome]:
        value = self.backend.fetch_hijri(day)
        if not is_plausible_hijri(value):
            self.logger.warning(f"Discarding implausible Hijri date from {self.name}: {value!r}")
            return None
        return StageOutcome(value, self.name, True)


class LocalHijriStage(ResolverStage):
    name = "umm_al_qura"

    def __init__(self, calculator: Optional[UmmAlQuraCalculator] = None):
        super().__init__()
        self.calculator = calculator or UmmAlQuraCalculator()

    def attempt(self, day) -> Optional[StageOutcome]:
        try:
            value = self.calculator.format(day)
        except (OverflowError, ValueError) as e:
            self.logger.warning(f"Local Hijri conversion failed for {day}: {e}")
            return None
        return StageOutcome(value, self.name, True)


class StaticHijriStage(ResolverStage):
    """Terminal stage. Not cached, so the next access tries again."""

    name = "static"

    def attempt(self, day) -> Optional[StageOutcome]:
        return StageOutcome(PLACEHOLDER, self.name, False)


class HijriResolver:
    """Resolves the Hijri date for a Gregorian day."""

    def __init__(
        self,
        cache: HijriDateCache,
        backends: Optional[List[HijriBackend]] = None,
        calculator: Optional[UmmAlQuraCalculator] = None,
    ):
        self.cache = cache
        self.logger = logging.getLogger(self.__class__.__name__)
        stages: List[ResolverStage] = [HijriCacheStage(cache)]
        stages += [RemoteHijriStage(backend) for backend in backends or []]
        stages += [LocalHijriStage(calculator), StaticHijriStage()]
        self.chain = ResolutionChain("hijri", stages)

    def resolve(self, day: DateLike) -> StageOutcome:
        """Run the chain without writing to the cache."""
        return self.chain.resolve(to_date(day))

    def persist(self, day: DateLike, outcome: StageOutcome) -> None:
        if outcome.cacheable:
            self.cache.put(day, outcome.value)

    def lookup(self, day: DateLike) -> StageOutcome:
        """Resolve and cache."""
        outcome = self.resolve(day)
        self.persist(day, outcome)
        self.logger.debug(f"Hijri date for {to_date(day)}: {outcome.value} ({outcome.source})")
        return outcome

    def get_hijri_date(self, day: DateLike) -> str:
        return self.lookup(day).value

    def cached(self, day: DateLike) -> str:
        """Cached value or empty string; never resolves"""
        return self.cache.get(day) or ""
