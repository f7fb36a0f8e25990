"""
Text Cleaning Module for bank email bodies.

Handles:
1. HTML → Plain Text conversion
2. Noise removal (disclaimers, footers, unsubscribe blocks)
3. Token safety (trimming before the body goes into a prompt)
"""

import re
from bs4 import BeautifulSoup

# Maximum body chars per email inside a batch prompt (1 token ≈ 4 chars)
MAX_CHARS = 3000

# Keywords to preserve when trimming
PRESERVE_KEYWORDS = [
    'rs', 'inr', '₹', 'amount', 'debited', 'credited', 'balance',
    'utr', 'reference', 'upi', 'statement', 'password', 'card', 'a/c'
]

DISCLAIMER_PATTERNS = [
    r'this\s*(e-?mail|message)\s*(is\s*)?(intended|confidential).*',
    r'disclaimer.*$',
    r'if\s*you\s*are\s*not\s*the\s*intended\s*recipient.*',
    r'this\s*is\s*a(n)?\s*(system|auto(matically)?)[\s-]*generated.*',
    r'please\s*do\s*not\s*reply.*',
]

NOISE_PATTERNS = [
    r'\[image:.*?\]',
    r'\[cid:.*?\]',
    r'<https?://[^\s]+>',  # Angle-bracket URLs
    r'unsubscribe.*$',
    r'never\s*share\s*your\s*(otp|pin|password).*$',
]


def html_to_text(raw_html: str) -> str:
    """
    Convert HTML email content to clean plain text.

    Args:
        raw_html: Raw HTML string from email body

    Returns:
        Plain text with normalized whitespace
    """
    if not raw_html:
        return ""

    soup = BeautifulSoup(raw_html, "html.parser")

    # Remove script, style, and head tags
    for tag in soup(['script', 'style', 'head', 'meta', 'link']):
        tag.decompose()

    # Convert <br>, </p> and table rows to newlines
    for br in soup.find_all('br'):
        br.replace_with('\n')
    for block in soup.find_all(['p', 'tr', 'div']):
        block.insert_after('\n')

    text = soup.get_text(separator=' ')

    # Normalize whitespace
    text = re.sub(r'[ \t\xa0]+', ' ', text)
    text = re.sub(r'\n\s*\n', '\n\n', text)
    text = re.sub(r'\n{3,}', '\n\n', text)

    return text.strip()


def looks_like_html(text: str) -> bool:
    return bool(text) and bool(re.search(r'<(html|body|div|table|p|br)\b', text, re.IGNORECASE))


def remove_noise(text: str) -> str:
    """Drop bank disclaimers, footers and other boilerplate lines."""
    if not text:
        return ""

    cleaned_lines = []
    for line in text.split('\n'):
        line_lower = line.lower().strip()

        if any(re.search(pattern, line_lower) for pattern in DISCLAIMER_PATTERNS):
            continue
        if any(re.search(pattern, line_lower) for pattern in NOISE_PATTERNS):
            continue

        cleaned_lines.append(line)

    result = '\n'.join(cleaned_lines)
    result = re.sub(r'\n{3,}', '\n\n', result)
    result = re.sub(r'[ \t]+', ' ', result)

    return result.strip()


def trim_to_token_limit(text: str, max_chars: int = MAX_CHARS) -> str:
    """
    Trim text to stay within a char budget while keeping money lines.

    Lines mentioning amounts, balances, references or passwords go
    first; the rest fills whatever budget remains.
    """
    if len(text) <= max_chars:
        return text

    important_lines = []
    other_lines = []

    for line in text.split('\n'):
        line_lower = line.lower()
        if any(kw in line_lower for kw in PRESERVE_KEYWORDS):
            important_lines.append(line)
        else:
            other_lines.append(line)

    important_text = '\n'.join(important_lines)
    remaining_chars = max_chars - len(important_text) - 2

    if remaining_chars > 0:
        other_text = '\n'.join(other_lines)[:remaining_chars]
        result = important_text + '\n\n' + other_text
    else:
        result = important_text[:max_chars]

    return result.strip()


def clean_body(raw: str, max_chars: int = MAX_CHARS) -> str:
    """
    Full body cleanup: HTML → text, noise removal, trimming.

    Plain-text bodies skip the HTML step.
    """
    if not raw:
        return ""
    text = html_to_text(raw) if looks_like_html(raw) else raw
    return trim_to_token_limit(remove_noise(text), max_chars=max_chars)
