# app/services/intent_matcher.py
"""
Keyword intent matching for the chat bot.

Two policies are supported:

* ``overlap``   - tokenize and stem the message and every keyword. An intent scores the
                  number of message tokens found among its stemmed keywords divided by
                  its keyword count; the best score at or above the threshold wins.
* ``substring`` - the first intent (by priority) with any keyword appearing as a
                  case-insensitive substring of the message.

Intents are passed in already ordered by descending priority; for ``overlap`` an equal
score never displaces an earlier intent, so priority breaks ties.

Nothing in here touches the database, intents may be ORM rows or any object exposing
``keywords``.
"""
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, List, Optional, Sequence, Tuple

from nltk.stem.porter import PorterStemmer
from nltk.tokenize import RegexpTokenizer

POLICY_OVERLAP = "overlap"
POLICY_SUBSTRING = "substring"
POLICIES = (POLICY_OVERLAP, POLICY_SUBSTRING)

DEFAULT_THRESHOLD = 0.3

_tokenizer = RegexpTokenizer(r"\w+")
_stemmer = PorterStemmer()


@dataclass
class IntentMatch:
    intent: object
    score: float


@lru_cache(maxsize=4096)
def _stem(token: str) -> str:
    return _stemmer.stem(token)


def tokenize(text: str) -> List[str]:
    """Lower-case, split on non-word characters and stem."""
    if not text:
        return []
    return [_stem(t) for t in _tokenizer.tokenize(text.lower())]


def _keyword_stems(keywords: Iterable[str]) -> List[Tuple[str, ...]]:
    return [tuple(tokenize(kw)) for kw in keywords or []]


def overlap_score(message_tokens: Sequence[str], keywords: Iterable[str]) -> float:
    """
    Message tokens found among the stemmed keywords, over the keyword count.

    Every matching token counts, so a repeated word counts twice, and duplicate keywords
    (book, booking) still count towards the denominator. A multi-word keyword
    ("good morning") adds one hit when all of its stems are present.
    """
    stems = _keyword_stems(keywords)
    if not stems:
        return 0.0
    single = {kw[0] for kw in stems if len(kw) == 1}
    hits = sum(1 for t in message_tokens if t in single)
    tokens = set(message_tokens)
    hits += sum(1 for kw in stems if len(kw) > 1 and all(s in tokens for s in kw))
    return hits / len(stems)


def substring_match(text: str, keywords: Iterable[str]) -> bool:
    lowered = (text or "").lower()
    return any(k and k.lower() in lowered for k in keywords or [])


def match_intent(
    text: str,
    intents: Sequence,
    policy: str = POLICY_OVERLAP,
    threshold: float = DEFAULT_THRESHOLD,
) -> Optional[IntentMatch]:
    if not text or not text.strip():
        return None

    if policy == POLICY_SUBSTRING:
        for intent in intents:
            if substring_match(text, intent.keywords):
                return IntentMatch(intent=intent, score=1.0)
        return None

    if policy != POLICY_OVERLAP:
        raise ValueError(f"Unknown intent match policy: {policy}")

    tokens = tokenize(text)
    best = None
    for intent in intents:
        score = overlap_score(tokens, intent.keywords)
        if score >= threshold and (best is None or score > best.score):
            best = IntentMatch(intent=intent, score=score)
    return best
