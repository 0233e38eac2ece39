from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Dict, List, Optional
import logging

from hijridate import Gregorian

from nurdaily.core.errors import MalformedResponse
from nurdaily.core.gemini_client import GeminiClient
from nurdaily.core.http import get_json


def format_hijri(day: int, month_name: str, year: int) -> str:
    return f"{int(day)} {month_name} {int(year)} AH"


class HijriBackend(ABC):
    """Base class for remote Hijri date sources"""

    name = "backend"

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.timeout = config.get("timeout", 8)
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def fetch_hijri(self, day: date) -> str:
        """Return the Hijri date for a Gregorian day
        Args:
            day: Gregorian calendar day
        Raises:
            ResolutionError subclass on any failure; one attempt, no retry
        """
        pass


class AladhanHijriBackend(HijriBackend):
    """Hijri date via api.aladhan.com gToH"""

    name = "aladhan"
    BASE_URL = "https://api.aladhan.com/v1/gToH"

    def fetch_hijri(self, day: date) -> str:
        url = f"{self.config.get('base_url', self.BASE_URL)}/{day.strftime('%d-%m-%Y')}"
        self.logger.info(f"Fetching Hijri date for {day} from {url}")
        data = get_json(url, timeout=self.timeout)
        try:
            hijri = data["data"]["hijri"]
            return format_hijri(hijri["day"], hijri["month"]["en"], hijri["year"])
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedResponse(f"Unexpected gToH payload: {e}") from e


class GeminiHijriBackend(HijriBackend):
    """Asks Gemini for the Umm al-Qura date, formatted like the local calculator"""

    name = "gemini"

    PROMPT = (
        "Convert the Gregorian date {day} to the Umm al-Qura Hijri calendar. "
        "Reply with only the Hijri date in English, formatted exactly as "
        "'<day> <month name> <year> AH', for example '1 Ramadan 1445 AH'."
    )

    def __init__(self, config: Dict[str, Any], client: GeminiClient):
        super().__init__(config)
        self.client = client

    def fetch_hijri(self, day: date) -> str:
        self.logger.info(f"Asking Gemini for Hijri date of {day}")
        text = self.client.generate_text(self.PROMPT.format(day=day.isoformat()))
        line = text.splitlines()[0].strip().strip("'\"").strip()
        if not line:
            raise MalformedResponse("Gemini returned an empty Hijri date")
        return line


class UmmAlQuraCalculator:
    """Offline Gregorian to Umm al-Qura conversion"""

    def format(self, day: date) -> str:
        """Raises OverflowError outside the calendar's supported range."""
        hijri = Gregorian(day.year, day.month, day.day).to_hijri()
        return format_hijri(hijri.day, hijri.month_name(), hijri.year)


def create_backends(config_data: Dict[str, Any]) -> List[HijriBackend]:
    """Build the remote backends listed in hijri.backends, in order"""
    logger = logging.getLogger(__name__)
    hijri_config = config_data.get("hijri") or {}
    names = hijri_config.get("backends", ["aladhan"]) or []
    backend_config = {"timeout": hijri_config.get("timeout", 8)}

    backends: List[HijriBackend] = []
    for name in names:
        backend: Optional[HijriBackend] = None
        if name == "aladhan":
            backend = AladhanHijriBackend(backend_config)
        elif name == "gemini":
            client = GeminiClient.from_config(config_data, timeout=backend_config["timeout"])
            if client is None:
                logger.warning("Hijri backend 'gemini' configured without gemini.api_key, skipping")
                continue
            backend = GeminiHijriBackend(backend_config, client)
        else:
            logger.error(f"Unknown Hijri backend: {name}")
            continue
        backends.append(backend)
    return backends
