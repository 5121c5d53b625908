"""
Supported response languages.

Read-only table built once at import. Lookups never fail: unknown values
resolve to English.
"""
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Tuple


@dataclass(frozen=True)
class Language:
    value: str   # stable identifier sent by clients ("hindi")
    code: str    # locale code for speech/localization ("hi")
    name: str    # display name injected into prompts ("Hindi")
    label: str   # native label shown in the UI


LANGUAGES: Tuple[Language, ...] = (
    Language("english", "en", "English", "English"),
    Language("hindi", "hi", "Hindi", "हिन्दी (Hindi)"),
    Language("tamil", "ta", "Tamil", "தமிழ் (Tamil)"),
    Language("telugu", "te", "Telugu", "తెలుగు (Telugu)"),
    Language("kannada", "kn", "Kannada", "ಕನ್ನಡ (Kannada)"),
    Language("bengali", "bn", "Bengali", "বাংলা (Bengali)"),
    Language("marathi", "mr", "Marathi", "मराठी (Marathi)"),
    Language("gujarati", "gu", "Gujarati", "ગુજરાતી (Gujarati)"),
    Language("malayalam", "ml", "Malayalam", "മലയാളം (Malayalam)"),
    Language("punjabi", "pa", "Punjabi", "ਪੰਜਾਬੀ (Punjabi)"),
    Language("odia", "or", "Odia", "ଓଡ଼ିଆ (Odia)"),
)

DEFAULT_LANGUAGE = LANGUAGES[0]

# value and code both resolve ("hindi" / "hi")
_LOOKUP: Mapping[str, Language] = MappingProxyType({
    **{lang.code: lang for lang in LANGUAGES},
    **{lang.value: lang for lang in LANGUAGES},
})


def resolve_language(value: Optional[str]) -> Language:
    """Return the Language for a client value or code, English when unknown."""
    if not value:
        return DEFAULT_LANGUAGE
    return _LOOKUP.get(value.strip().lower(), DEFAULT_LANGUAGE)


def is_supported_language(value: Optional[str]) -> bool:
    return bool(value) and value.strip().lower() in _LOOKUP
