"""Daily ayah and hadith."""
