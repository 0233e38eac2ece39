"""
Pydantic models for the daily inspiration (one ayah and one hadith), plus
the fixed passages shown when no source answers.
"""
from pydantic import BaseModel, ConfigDict, field_validator


class Passage(BaseModel):
    """Arabic text, Urdu translation and a human-readable reference."""

    model_config = ConfigDict(frozen=True)

    arabic: str
    urdu: str
    ref: str

    @field_validator("arabic", "urdu", "ref")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class DailyInspiration(BaseModel):
    model_config = ConfigDict(frozen=True)

    ayah: Passage
    hadith: Passage

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")


FALLBACK_AYAH = Passage(
    arabic="إِنَّ مَعَ الْعُسْرِ يُسْرًا",
    urdu="بیشک ہر مشکل کے ساتھ آسانی ہے۔",
    ref="Surah Ash-Sharh (94:6)",
)

FALLBACK_HADITH = Passage(
    arabic="خَيْرُكُمْ مَنْ تَعَلَّمَ الْقُرْآنَ وَعَلَّمَهُ",
    urdu="تم میں سے بہترین وہ ہے جس نے قرآن سیکھا اور دوسروں کو سکھایا۔",
    ref="Sahih Bukhari - 5027",
)

FALLBACK_INSPIRATION = DailyInspiration(ayah=FALLBACK_AYAH, hadith=FALLBACK_HADITH)
