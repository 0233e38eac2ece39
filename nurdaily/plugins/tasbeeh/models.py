"""
Tasbeeh session records and the dhikr catalogue.
"""
from collections import namedtuple
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

Dhikr = namedtuple("Dhikr", ["label", "arabic", "translation"])

DHIKR_OPTIONS = [
    Dhikr("SubhanAllah", "سُبْحَانَ ٱللَّٰهِ", "پاک ہے اللہ"),
    Dhikr("Alhamdulillah", "ٱلْحَمْدُ لِلَّٰهِ", "تمام تعریفیں اللہ کے لیے ہیں"),
    Dhikr("AllahuAkbar", "ٱللَّٰهُ أَكْبَرُ", "اللہ سب سے بڑا ہے"),
    Dhikr("Darood Pak", "اللَّهُمَّ صَلِّ عَلَى مُحَمَّدٍ", "اے اللہ! محمد (ص) پر درود بھیج"),
    Dhikr("Astaghfirullah", "أَسْتَغْفِرُ ٱللَّٰهَ", "میں اللہ سے معافی مانگتا ہوں"),
    Dhikr("La Ilaha Illallah", "لَا إِلَٰهَ إِلَّا ٱللَّٰهُ", "اللہ کے سوا کوئی معبود نہیں"),
    Dhikr("SubhanAllah wa Bi-hamdihi", "سُبْحَانَ ٱللَّٰهِ وَبِحَمْدِهِ", "اللہ پاک ہے اور اپنی تعریفوں کے ساتھ"),
    Dhikr("4th Kalma", "لَا إِلَهَ إِلَّا اللَّهُ وَحْدَهُ لَا شَرِيكَ لَهُ", "اللہ کے سوا کوئی معبود نہیں، وہ اکیلا ہے"),
]

DAROOD_LABEL = "Darood Pak"

# 0 means free-running: no target, logged on reset
TARGET_OPTIONS = [33, 100, 313, 1000, 0]


def find_dhikr(label: str) -> Optional[Dhikr]:
    for dhikr in DHIKR_OPTIONS:
        if dhikr.label == label:
            return dhikr
    return None


class TasbeehSession(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    label: str
    count: int = Field(ge=0)
    timestamp: str  # display string
    iso_date: Optional[str] = Field(None, alias="isoDate")

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")
