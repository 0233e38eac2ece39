from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Dict, List, Optional, Tuple
import logging
import random

from pydantic import ValidationError

from nurdaily.core.errors import MalformedResponse
from nurdaily.core.gemini_client import GeminiClient
from nurdaily.core.http import get_json

from .models import DailyInspiration, Passage


def _day_seeded(day: date, low: int, high: int) -> int:
    """Same pick for the whole day, different pick the next day"""
    return random.Random(day.toordinal()).randint(low, high)


class PassageSource(ABC):
    """Base class for providers of one half of the inspiration"""

    name = "source"
    kind = "passage"  # "ayah" or "hadith"

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.timeout = config.get("timeout", 10)
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def fetch(self, day: date) -> Passage:
        """Return the passage for a day
        Raises:
            ResolutionError subclass on any failure; one attempt, no retry
        """
        pass


class AlQuranCloudSource(PassageSource):
    """Ayah with Urdu translation from api.alquran.cloud"""

    name = "alquran_cloud"
    kind = "ayah"
    BASE_URL = "https://api.alquran.cloud/v1"
    TOTAL_AYAT = 6236
    EDITIONS = "quran-uthmani,ur.jalandhry"

    def fetch(self, day: date) -> Passage:
        number = _day_seeded(day, 1, self.TOTAL_AYAT)
        base = str(self.config.get("base_url") or self.BASE_URL).rstrip("/")
        url = f"{base}/ayah/{number}/editions/{self.EDITIONS}"
        self.logger.info(f"Fetching ayah {number} for {day}")
        payload = get_json(url, timeout=self.timeout)

        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, list) or len(data) < 2:
            raise MalformedResponse(f"Expected two editions for ayah {number}")
        arabic_data, urdu_data = data[0], data[1]
        try:
            surah = arabic_data["surah"]
            ref = f"Surah {surah['englishName']} ({surah['number']}:{arabic_data['numberInSurah']})"
            return Passage(arabic=arabic_data["text"], urdu=urdu_data["text"], ref=ref)
        except (KeyError, TypeError, ValidationError) as e:
            raise MalformedResponse(f"Unexpected ayah payload: {e}") from e


class HadithApiSource(PassageSource):
    """Hadith with Urdu translation from hadithapi.com, one hadith per page"""

    name = "hadith_api"
    kind = "hadith"
    BASE_URL = "https://hadithapi.com/api"

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self.api_key = config.get("api_key")
        self.book = config.get("book", "sahih-bukhari")
        self.max_page = int(config.get("max_page", 7000))

    def fetch(self, day: date) -> Passage:
        page = _day_seeded(day, 1, self.max_page)
        base = str(self.config.get("base_url") or self.BASE_URL).rstrip("/")
        params = {"apiKey": self.api_key, "book": self.book, "paginate": 1, "page": page}
        self.logger.info(f"Fetching hadith page {page} of {self.book} for {day}")
        payload = get_json(f"{base}/hadiths", params=params, timeout=self.timeout)

        try:
            entries = payload["hadiths"]["data"]
            chosen = entries[0]
            book = chosen.get("book") or {}
            book_name = book.get("bookName") or self.book
            ref = f"{book_name} - {chosen['hadithNumber']}"
            return Passage(arabic=chosen["hadithArabic"] or "", urdu=chosen["hadithUrdu"] or "", ref=ref)
        except (KeyError, IndexError, TypeError, AttributeError, ValidationError) as e:
            raise MalformedResponse(f"Unexpected hadith payload: {e}") from e


class GeminiInspirationBackend:
    """Both halves in one structured Gemini request"""

    name = "gemini"

    PROMPT = (
        "Provide one daily Islamic inspiration containing one Quranic Ayah and one authentic "
        "Hadith (Sahih Bukhari, Sahih Muslim, etc.).\n"
        "Requirements:\n"
        "1. Both must include the original Arabic text.\n"
        "2. Both must include a high-quality, professional Urdu translation.\n"
        "3. Both must include an authentic reference (e.g., \"Surah Al-Baqarah 2:183\" or "
        "\"Sahih Bukhari 5027\").\n"
        "Return the result strictly in JSON format with keys: ayah (object with keys: arabic, "
        "urdu, ref) and hadith (object with keys: arabic, urdu, ref).\n"
        "Date: {day}"
    )

    def __init__(self, client: GeminiClient):
        self.client = client
        self.logger = logging.getLogger(self.__class__.__name__)

    def fetch(self, day: date) -> DailyInspiration:
        self.logger.info(f"Asking Gemini for the inspiration of {day}")
        document = self.client.generate_json(self.PROMPT.format(day=day.isoformat()))
        try:
            return DailyInspiration.model_validate(document)
        except ValidationError as e:
            raise MalformedResponse(f"Gemini inspiration failed validation: {e.error_count()} error(s)") from e


def create_sources(
    config_data: Dict[str, Any],
) -> Tuple[Optional[GeminiInspirationBackend], List[PassageSource], List[PassageSource]]:
    """Build (gemini backend, ayah sources, hadith sources) from config"""
    logger = logging.getLogger(__name__)
    inspiration_config = config_data.get("inspiration") or {}
    timeout = inspiration_config.get("timeout", 10)

    backend = inspiration_config.get("backend", "providers")
    if backend == "offline":
        return None, [], []

    gemini = None
    if backend == "gemini":
        client = GeminiClient.from_config(config_data, timeout=timeout)
        if client is None:
            logger.warning("Inspiration backend 'gemini' configured without gemini.api_key, using providers")
        else:
            gemini = GeminiInspirationBackend(client)

    quran_config = dict(config_data.get("quran_api") or {})
    quran_config.setdefault("timeout", timeout)
    ayah_sources: List[PassageSource] = [AlQuranCloudSource(quran_config)]

    hadith_config = dict(config_data.get("hadith_api") or {})
    hadith_config.setdefault("timeout", timeout)
    hadith_sources: List[PassageSource] = []
    api_key = hadith_config.get("api_key")
    if api_key and not str(api_key).startswith("$"):
        hadith_sources.append(HadithApiSource(hadith_config))
    else:
        logger.info("No hadith_api.api_key configured, hadith will use the built-in passage")

    return gemini, ayah_sources, hadith_sources
