"""Keyword extraction used to look up cached answers."""

import re
from collections import Counter

# Brazilian Portuguese stop words ignored when extracting keywords
STOP_WORDS = frozenset(
    [
        "a", "ao", "aos", "aquela", "aquelas", "aquele", "aqueles", "aquilo", "as", "até",
        "com", "como", "da", "das", "de", "dela", "delas", "dele", "deles", "depois",
        "do", "dos", "e", "ela", "elas", "ele", "eles", "em", "entre", "era",
        "eram", "éramos", "essa", "essas", "esse", "esses", "esta", "estas", "este",
        "estou", "eu", "foi", "fomos", "for", "foram", "fosse", "fossem", "fui",
        "há", "isso", "isto", "já", "lhe", "lhes", "me", "mesmo", "meu", "meus",
        "minha", "minhas", "muito", "muitos", "na", "não", "nas", "nem", "no", "nos",
        "nós", "nossa", "nossas", "nosso", "nossos", "num", "numa", "o", "os", "ou",
        "para", "pela", "pelas", "pelo", "pelos", "por", "qual", "quando", "que",
        "quem", "se", "seja", "sejam", "sejamos", "sem", "será", "serão", "serei",
        "seremos", "seria", "seriam", "seríamos", "seu", "seus", "só", "somos", "sou",
        "sua", "suas", "também", "te", "tem", "tém", "temos", "tenho", "teu", "teus",
        "tu", "tua", "tuas", "um", "uma", "umas", "uns", "você", "vocês", "vos",
    ]
)

_PUNCTUATION_RE = re.compile(r"[.,/#!$%^&*;:{}=\-_`~()?]")
_WHITESPACE_RE = re.compile(r"\s+")


def extract_keywords(text: str, max_keywords: int = 10) -> list[str]:
    """Extract the most frequent content words from a text.

    Args:
        text: The text to analyze.
        max_keywords: Maximum number of keywords to return.

    Returns:
        Keywords ordered by descending frequency. Words with the same
        frequency keep the order in which they first appear.
    """
    if not text or not isinstance(text, str):
        return []

    normalized = _PUNCTUATION_RE.sub("", text.lower())
    normalized = _WHITESPACE_RE.sub(" ", normalized).strip()

    words = [
        word
        for word in normalized.split(" ")
        if len(word) > 2 and word not in STOP_WORDS
    ]

    return [word for word, _ in Counter(words).most_common(max_keywords)]
