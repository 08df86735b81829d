"""
Global default rule set.

Evaluated after every tenant's own rules. Keys, key patterns and value
patterns cover technical fields that must never reach a translation
provider: identifiers, timestamps, URLs, codes, prices, colours and units.
"""

from typing import List

from doctranslator.rules.models import MatchType, RuleAction, RuleSet, TranslationRule

GLOBAL_TENANT = "global"

NON_TRANSLATABLE_KEYS = [
    'id', 'uuid', 'key', 'hash', 'token', 'api_key', 'secret',
    'url', 'uri', 'link', 'href', 'src', 'slug', 'permalink', 'old_urls',
    'created_at', 'updated_at', 'timestamp', 'date_created', 'date_modified',
    'version', 'build', 'revision', 'commit', 'checksum',
    'lat', 'lng', 'latitude', 'longitude', 'coordinates', 'location_id',
    'timezone', 'tz', 'utc_offset', 'locale_code', 'language_code',
    'currency_code', 'country_code', 'region_code', 'area_code',
    'phone', 'email', 'username', 'user_id', 'account_id', 'session_id',
]

KEY_PATTERNS = [
    (r'^_.*$', "private fields"),
    (r'.*_id$', "identifier fields"),
    (r'.*_key$', "key fields"),
    (r'.*_code$', "code fields"),
    (r'.*_token$', "token fields"),
    (r'.*_hash$', "hash fields"),
    (r'.*_url$', "url fields"),
    (r'.*_at$', "timestamp fields"),
    (r'^[A-Z_]+$', "constants"),
    (r'^\d+$', "numeric keys"),
    (r'^[a-f0-9-]{36}$', "uuid keys"),
    (r'(?i)^[a-zA-Z0-9_-]+\.(jpg|jpeg|png|gif|pdf|doc|docx|zip)$', "file names"),
]

VALUE_PATTERNS = [
    (r'(?i)^(https?|ftp)://', "urls"),
    (r'(?i)^www\.\S+$', "bare web addresses"),
    (r'^[\w.+-]+@[\w.-]+\.\w+$', "email addresses"),
    (r'^\+?[\d\s\-\(\)]{7,}$', "phone numbers"),
    (r'^[A-Z]{2,3}[-_][A-Z0-9]{2,}$', "country and language codes"),
    (r'^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}', "iso timestamps"),
    (r'^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$', "uuids"),
    (r'^#[0-9a-fA-F]{3,6}$', "hex colours"),
    (r'^rgba?\(\d+,\s*\d+,\s*\d+(,\s*[\d.]+)?\)$', "rgb colours"),
    (r'^\d+px$', "css pixels"),
    (r'^\d+(\.\d+)?(em|rem|vh|vw|%)$', "css units"),
    (r'^[¥$€£₹]\d+[\d,\-+/\s]*[¥$€£₹]?$|^\d+[\d,\-+/\s]*[¥$€£₹]$', "prices"),
    (r'^\d+[\d,.\-+\s]*$', "numbers"),
    (r'^\d{1,2}[-/]\d{1,2}[-/]\d{2,4}$|^\d{4}-\d{4}$', "dates"),
    (r'(?i)^(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\s*-\s*(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*$', "month ranges"),
    (r'(?i)^\d{1,2}:\d{2}(\s*(am|pm))?$|^\d+\s*(am|pm|minutes?|hours?|mins?|hrs?)$', "times and durations"),
    (r'(?i)^-?\d+\.\d+[,\s]+-?\d+\.\d+$|^utc[+\-]\d+$', "coordinates and offsets"),
    (r'^[A-Z]{2,}\d+$|^[A-Z]+[-_][A-Z0-9]+$', "codes"),
]

CONTENT_TYPE_RULES = {
    'ecommerce': {
        'keys': ['sku', 'barcode', 'gtin', 'upc', 'model_number', 'part_number'],
        'patterns': [r'^[A-Z0-9]{4,}$'],
    },
    'cms': {
        'keys': ['post_id', 'category_id', 'tag_id', 'author_id', 'template'],
        'patterns': [r'^[a-z0-9]+(-[a-z0-9]+)+$'],
    },
    'api': {
        'keys': ['endpoint', 'method', 'status_code', 'response_time'],
        'patterns': [r'^[A-Z_]+$'],
    },
}


def build_default_rules() -> List[TranslationRule]:
    """Build the ordered global rule list."""
    rules = []
    for key in NON_TRANSLATABLE_KEYS:
        rules.append(TranslationRule(
            match_type=MatchType.KEY_EXACT,
            pattern=key,
            action=RuleAction.EXCLUDE,
            id=f"global.key.{key}",
        ))
    for index, (pattern, description) in enumerate(KEY_PATTERNS):
        rules.append(TranslationRule(
            match_type=MatchType.KEY_PATTERN,
            pattern=pattern,
            action=RuleAction.EXCLUDE,
            id=f"global.key_pattern.{index}",
            description=description,
        ))
    for index, (pattern, description) in enumerate(VALUE_PATTERNS):
        rules.append(TranslationRule(
            match_type=MatchType.VALUE_PATTERN,
            pattern=pattern,
            action=RuleAction.EXCLUDE,
            id=f"global.value_pattern.{index}",
            description=description,
        ))
    for content_type, type_rules in CONTENT_TYPE_RULES.items():
        for key in type_rules['keys']:
            rules.append(TranslationRule(
                match_type=MatchType.CONTENT_TYPE,
                pattern=key,
                content_type=content_type,
                target="key",
                id=f"global.{content_type}.key.{key}",
            ))
        for index, pattern in enumerate(type_rules['patterns']):
            rules.append(TranslationRule(
                match_type=MatchType.CONTENT_TYPE,
                pattern=pattern,
                content_type=content_type,
                target="value",
                id=f"global.{content_type}.pattern.{index}",
            ))
    return rules


def default_rule_set() -> RuleSet:
    return RuleSet(tenant_id=GLOBAL_TENANT, rules=build_default_rules())
