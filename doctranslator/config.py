import copy
import json
from typing import Dict, Any

from doctranslator.core import database as db
from doctranslator.core.schema import initialize_database
from doctranslator.logger import get_logger, _clear_log_mode_cache

logger = get_logger(__name__)

# Translation configuration constants
DEFAULT_SOURCE_LANGUAGE = "en"
DEFAULT_MAX_CONCURRENCY = 10
DEFAULT_MIN_LENGTH = 2
DEFAULT_MAX_LENGTH = 500
DEFAULT_SYSTEM_MESSAGE = "You are a professional translator. Return only the translated text."

# Provider configuration constants
BUILTIN_PROVIDERS = ["openai", "deepseek", "gemini", "huggingface"]

PROVIDER_DEFAULTS = {
    "max_retries": 3,
    "timeout": 30
}

PLACEHOLDER_API_KEY = "YOUR_API_KEY_HERE"

# Default prompts
DEFAULT_PROMPTS = {
    "text_translation_prompt": {
        "version": "1.0",
        "description": "Single string translation prompt",
        "prompt": """Translate the following text from {source_language_name} ({source_language_code}) to {target_language_name} ({target_language_code}).
Maintain the original tone and style. Return ONLY the translated text, without quotes, explanations or markdown.

Text to translate:
{text}"""
    },
    "token_preservation_instruction": {
        "version": "1.0",
        "description": "Appended to the system message when the text carries placeholder tokens",
        "prompt": """The text contains placeholder tokens of the form TOKEN_0, TOKEN_1, ...
CRITICAL REQUIREMENTS:
- Copy every token EXACTLY as it appears (same letters, digits and underscore)
- Do not translate, reorder the characters of, merge or drop any token
- Tokens may move to wherever the target grammar needs them"""
    },
}

# Default configuration templates
DEFAULT_CONFIG = {
    "ai_provider": "openai",
    "openai": {
        "api_key": PLACEHOLDER_API_KEY,
        "models": ["gpt-4o-mini", "gpt-4o"],  # First is default
        "max_retries": 3,
        "timeout": 30,
        "api_url": "https://api.openai.com/v1/chat/completions"
    },
    "deepseek": {
        "api_key": PLACEHOLDER_API_KEY,
        "models": ["deepseek-chat"],
        "max_retries": 3,
        "timeout": 30,
        "api_url": "https://api.deepseek.com/chat/completions"
    },
    "gemini": {
        "api_key": PLACEHOLDER_API_KEY,
        "models": ["gemini-2.5-flash"],
        "max_retries": 3,
        "timeout": 30,
        "api_url": "https://generativelanguage.googleapis.com/v1beta/models"
    },
    "huggingface": {
        "api_key": PLACEHOLDER_API_KEY,
        "models": [],
        "max_retries": 3,
        "timeout": 30,
        "api_url": "http://localhost:8000"
    },
    "translation": {
        "source_language": DEFAULT_SOURCE_LANGUAGE,
        "max_concurrency": DEFAULT_MAX_CONCURRENCY,
        "min_length": DEFAULT_MIN_LENGTH,
        "max_length": DEFAULT_MAX_LENGTH,
        "system_message": DEFAULT_SYSTEM_MESSAGE,
    },
    "auto_detection": {
        "enabled": True,
        "min_frequency": 5,
        "confidence_threshold": 0.8,
        "max_patterns": 1000,
    },
    "numerals": {
        "enabled": True,
    },
    "log_mode": "off"
}


def initialize_app():
    """
    Initialize the application.
    Creates the database and stores the default configuration if none exists yet.
    """
    logger.info("Initializing application...")

    initialize_database()
    logger.info("Database initialized")

    existing_config = db.get_app_config('config')
    if not existing_config:
        logger.info("No config in database, initializing default config")
        save_config(DEFAULT_CONFIG)
    else:
        logger.debug("Config already exists in database")

    logger.info("Application initialization complete")


def _merge_defaults(config: Dict[str, Any]) -> Dict[str, Any]:
    """Fill sections and keys missing from a stored config with defaults."""
    merged = copy.deepcopy(DEFAULT_CONFIG)
    for key, value in config.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key].update(value)
        else:
            merged[key] = value
    return merged


def load_config() -> Dict[str, Any]:
    """Load the configuration from database."""
    try:
        config_json = db.get_app_config('config')
    except Exception as e:
        logger.error(f"Failed to load config from database: {e}")
        logger.warning("Using default configuration")
        return copy.deepcopy(DEFAULT_CONFIG)

    if not config_json:
        logger.debug("No config in database, using defaults")
        return copy.deepcopy(DEFAULT_CONFIG)

    try:
        config = json.loads(config_json)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse config from database: {e}")
        logger.warning("Using default configuration")
        return copy.deepcopy(DEFAULT_CONFIG)

    logger.debug("Configuration loaded from database")
    return _merge_defaults(config)


def save_config(config: Dict[str, Any]):
    """Save the configuration to database."""
    try:
        config_json = json.dumps(config, ensure_ascii=False)
        db.set_app_config('config', config_json)
        logger.info("Configuration saved to database")
    except Exception as e:
        logger.error(f"Failed to save config to database: {e}")
        raise
    _clear_log_mode_cache()


def get_prompt(prompt_name: str = "text_translation_prompt") -> Dict[str, Any]:
    """Get a specific prompt by name.

    Prompts are hardcoded in the codebase and never saved to the database.
    """
    return DEFAULT_PROMPTS.get(prompt_name, DEFAULT_PROMPTS["text_translation_prompt"])
