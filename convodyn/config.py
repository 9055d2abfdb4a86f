"""
Configuration module for convodyn
Loads environment variables and provides default settings
"""

import os
from typing import Dict, Any, List
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Language model API configuration (OpenAI-compatible chat completions)
LLM_API_KEY = os.getenv("LLM_API_KEY", os.getenv("OPENAI_API_KEY", ""))
LLM_API_BASE = os.getenv("LLM_API_BASE", "https://api.openai.com/v1")
STRATEGY_MODEL = os.getenv("STRATEGY_MODEL", "gpt-4o-mini")

# Inference settings (analysis task: low temperature, bounded output)
STRATEGY_TEMPERATURE = float(os.getenv("STRATEGY_TEMPERATURE", "0.3"))
STRATEGY_MAX_TOKENS = int(os.getenv("STRATEGY_MAX_TOKENS", "300"))
STRATEGY_TIMEOUT = float(os.getenv("STRATEGY_TIMEOUT", "15"))

# Threads shorter than this never reach the model
MIN_MESSAGES_FOR_STRATEGY = int(os.getenv("MIN_MESSAGES_FOR_STRATEGY", "3"))

# Sentinel passed to the prompt when no relationship context is given
DEFAULT_CONTEXT = os.getenv("DEFAULT_CONTEXT", "unknown")

# ============================================================================
# Transcript format
# ============================================================================

# Speaker tags accepted by the parser (compared case-insensitively)
SELF_TAGS: List[str] = ["you", "me", "self"]
OTHER_TAGS: List[str] = ["them", "other"]

# Tags used when a transcript is rendered back to text
SELF_RENDER_TAG = "You"
OTHER_RENDER_TAG = "Them"

# ============================================================================
# Tone cues
# ============================================================================

# Laughter patterns
LAUGHTER_PATTERNS = ["lol", "lmao", "haha", "hehe", "lmfao", "rofl", "😂", "🤣", "💀"]

# Softening / joking markers (signal playful tone rather than dryness)
SOFTENING_MARKERS = [
    "jk", "just kidding", "kidding", "lol", "haha", "lowkey", "tbh", "ngl",
    "mhm", "suuure", "sure sure", "rightttt", "if you say so", ";)", ":p",
]

# A letter repeated this many times in a row marks a stretched word ("heyyy")
STRETCH_MIN_REPEAT = 3

# Words per message at or above which a reply counts as substantive
SUBSTANTIVE_MIN_WORDS = 8

# ============================================================================
# Relationship context guidance (passed into the strategy prompt)
# ============================================================================

CONTEXT_GUIDANCE: Dict[str, str] = {
    "crush": "Someone the user has romantic interest in. Playful intrigue is welcome; over-eagerness is not.",
    "friend": "A close friend. Casual and comfortable; nobody needs to impress anyone.",
    "work": "A work colleague. Professional but personable; escalation and teasing are rarely appropriate.",
    "family": "A family member. Warm and respectful; strategy is about tone, not pursuit.",
    "ex": "An ex. Measured and unbothered; avoid signalling bitterness or eagerness.",
    "newmatch": "A new dating app match. Early stage; curiosity and confidence beat long messages.",
}


def get_config_summary() -> Dict[str, Any]:
    """Return a summary of current configuration."""
    return {
        "model": {
            "name": STRATEGY_MODEL,
            "api_base": LLM_API_BASE,
            "api_key_set": bool(LLM_API_KEY),
        },
        "inference": {
            "temperature": STRATEGY_TEMPERATURE,
            "max_tokens": STRATEGY_MAX_TOKENS,
            "timeout": STRATEGY_TIMEOUT,
            "min_messages": MIN_MESSAGES_FOR_STRATEGY,
        },
        "context": {
            "default": DEFAULT_CONTEXT,
            "known": sorted(CONTEXT_GUIDANCE),
        },
    }


def validate_config() -> tuple[bool, str]:
    """Validate configuration. Returns (is_valid, message)."""
    if not LLM_API_KEY:
        return False, "LLM_API_KEY not set in .env file (required for strategy inference)"

    if not 0.0 <= STRATEGY_TEMPERATURE <= 1.0:
        return False, f"STRATEGY_TEMPERATURE={STRATEGY_TEMPERATURE} outside [0, 1]"

    if STRATEGY_TIMEOUT <= 0:
        return False, "STRATEGY_TIMEOUT must be positive"

    if MIN_MESSAGES_FOR_STRATEGY < 1:
        return False, "MIN_MESSAGES_FOR_STRATEGY must be at least 1"

    return True, "Configuration valid"


if __name__ == "__main__":
    # Print config summary for debugging
    import json
    print("convodyn configuration:")
    print(json.dumps(get_config_summary(), indent=2))
    print()
    valid, msg = validate_config()
    print(f"Validation: {msg}")
