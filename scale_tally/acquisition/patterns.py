"""Regex patterns for weight extraction from scale frames.

The indicator has no single stable frame format across its operating
modes. Patterns are ordered most specific first; the first match whose
value is in range wins.

Observed frames:
    "  12.50 kg\\r\\n"   continuous mode with unit
    "0012.50="          print-button mode, '=' terminated
    " L001.250"         vendor bare format with mode flag
"""

import re
from typing import Dict, List

# Control bytes dropped before matching (TAB, LF and CR excluded; spaces kept)
CONTROL_CHARS = re.compile(r'[\x00-\x08\x0B\x0C\x0E-\x1F]')

# Bytes that mark a frame as complete
FRAME_DELIMITERS = ('\r', '\n', '=')

WEIGHT_PATTERNS = [
    # Decimal number with optional unit token: "12.50 kg", "0012.50"
    r'([+-]?\d+\.?\d*)\s*(kg|g|lb|oz)?',
    # Mode flag plus 3-7 digit fixed-point number: "L001.250"
    r'[LK ]?(\d{3,7}\.?\d*)',
    # Any bare decimal number
    r'(\d+\.?\d+)',
]

# Token form produced by the engine: "12.5 kg"
TOKEN_PATTERN = r'([+-]?\s*\d+\.?\d*)\s*([a-zA-Z]+)?'


def compile_patterns() -> Dict[str, List[re.Pattern]]:
    """
    Compile all regex patterns for efficient reuse.

    Returns:
        Dictionary mapping pattern groups to compiled regex patterns
    """
    compiled = {}

    compiled['weight'] = [re.compile(p, re.IGNORECASE) for p in WEIGHT_PATTERNS]
    compiled['token'] = [re.compile(TOKEN_PATTERN)]

    return compiled


# Precompile patterns for performance
COMPILED_PATTERNS = compile_patterns()
