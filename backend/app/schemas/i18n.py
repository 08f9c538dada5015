from pydantic import BaseModel

LANGUAGES = ("en", "pt", "ru")
DEFAULT_LANGUAGE = "en"


class MultilingualText(BaseModel):
    """Translated text; an untranslated language is an empty string, never missing."""
    en: str = ""
    pt: str = ""
    ru: str = ""

    @classmethod
    def from_db(cls, raw: dict | None) -> "MultilingualText":
        raw = raw or {}
        return cls(**{lang: str(raw.get(lang) or "") for lang in LANGUAGES})

    def get(self, lang: str) -> str:
        if lang == "pt":
            return self.pt
        if lang == "ru":
            return self.ru
        return self.en


def localize(text: MultilingualText | dict | None, lang: str = DEFAULT_LANGUAGE) -> str:
    """Text in `lang`, falling back to English when that translation is empty."""
    if not isinstance(text, MultilingualText):
        text = MultilingualText.from_db(text)
    return text.get(lang) or text.en
