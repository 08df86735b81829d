"""
Language code mappings and utilities.

Target languages are BCP 47 tags (en, zh-CN, pt-BR). Numeral conversion and
prompt building only care about the base language, so most helpers here
reduce a tag to its lower-cased primary subtag.
"""

from typing import Optional

# ISO 639-1 language codes (2-letter)
ISO_639_1 = {
    'af': 'Afrikaans',
    'am': 'Amharic',
    'ar': 'Arabic',
    'bg': 'Bulgarian',
    'bn': 'Bengali',
    'cs': 'Czech',
    'da': 'Danish',
    'de': 'German',
    'el': 'Greek',
    'en': 'English',
    'es': 'Spanish',
    'fa': 'Persian',
    'fi': 'Finnish',
    'fr': 'French',
    'gu': 'Gujarati',
    'he': 'Hebrew',
    'hi': 'Hindi',
    'hu': 'Hungarian',
    'id': 'Indonesian',
    'it': 'Italian',
    'ja': 'Japanese',
    'kn': 'Kannada',
    'ko': 'Korean',
    'ml': 'Malayalam',
    'mr': 'Marathi',
    'ms': 'Malay',
    'my': 'Burmese',
    'ne': 'Nepali',
    'nl': 'Dutch',
    'no': 'Norwegian',
    'or': 'Odia',
    'pa': 'Punjabi',
    'pl': 'Polish',
    'pt': 'Portuguese',
    'ro': 'Romanian',
    'ru': 'Russian',
    'sv': 'Swedish',
    'sw': 'Swahili',
    'ta': 'Tamil',
    'te': 'Telugu',
    'th': 'Thai',
    'tr': 'Turkish',
    'uk': 'Ukrainian',
    'ur': 'Urdu',
    'vi': 'Vietnamese',
    'zh': 'Chinese',
}

# BCP 47 language-region codes (common variants)
BCP_47_VARIANTS = {
    'en-US': 'English (United States)',
    'en-GB': 'English (United Kingdom)',
    'zh-CN': 'Chinese (Simplified, China)',
    'zh-TW': 'Chinese (Traditional, Taiwan)',
    'es-ES': 'Spanish (Spain)',
    'es-MX': 'Spanish (Mexico)',
    'pt-BR': 'Portuguese (Brazil)',
    'pt-PT': 'Portuguese (Portugal)',
    'fr-FR': 'French (France)',
    'fr-CA': 'French (Canada)',
    'de-DE': 'German (Germany)',
    'ar-SA': 'Arabic (Saudi Arabia)',
    'ar-EG': 'Arabic (Egypt)',
    'hi-IN': 'Hindi (India)',
    'bn-BD': 'Bengali (Bangladesh)',
    'ja-JP': 'Japanese (Japan)',
}

ALL_LANGUAGE_CODES = {**ISO_639_1, **BCP_47_VARIANTS}


def extract_base_language(code: str) -> str:
    """
    Extract the lower-cased base language from a tag.

    Examples:
        >>> extract_base_language('zh-CN')
        'zh'
        >>> extract_base_language('HI_in')
        'hi'
    """
    if not code:
        return ''
    return code.replace('_', '-').split('-')[0].lower()


def get_language_name(code: str) -> Optional[str]:
    """
    Get the display name for a tag, falling back to its base language.

    Examples:
        >>> get_language_name('pt-BR')
        'Portuguese (Brazil)'
        >>> get_language_name('es-CL')
        'Spanish'
    """
    if code in ALL_LANGUAGE_CODES:
        return ALL_LANGUAGE_CODES[code]
    return ISO_639_1.get(extract_base_language(code))


def is_valid_language_code(code: str) -> bool:
    """A tag is accepted when its base language is known."""
    if not isinstance(code, str) or not code.strip():
        return False
    return extract_base_language(code) in ISO_639_1


def languages_match(code1: str, code2: str, strict: bool = False) -> bool:
    """
    Check if two language codes match.

    Args:
        code1: First language code
        code2: Second language code
        strict: If True, must match exactly. If False, base language match is ok.
    """
    if strict:
        return code1 == code2

    return extract_base_language(code1) == extract_base_language(code2)
