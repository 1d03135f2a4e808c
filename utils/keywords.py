"""
Keyword loading and relevance matching for the Tender Portal Monitor.

A tender is relevant when any configured keyword appears, as a
case-insensitive substring, in its title, description or keyword list.
There is no ranking or stemming: "metro" matches "Metro Rail" and
"metropolitan" alike.

Keywords come from the ``keywords.terms`` list in config.yaml and,
optionally, a plain-text file with one keyword per line:

```
# KMRL related
metro
railway
kochi
```

Exclusions work the other way round: a text containing an exclusion
term is never relevant, even when it also contains a keyword.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)


class KeywordMatcher:
    """Case-insensitive OR-of-substrings matcher for tender text."""

    def __init__(
        self,
        keywords: Optional[Iterable[str]] = None,
        keywords_file: Optional[str] = None,
        exclusions: Optional[Iterable[str]] = None,
    ):
        """
        Initialize keyword matcher.

        Args:
            keywords: Keywords given inline (e.g. from config)
            keywords_file: Optional file with additional keywords, one per line
            exclusions: Terms that veto a match
        """
        self.keywords_file = keywords_file

        terms = list(keywords or [])
        if keywords_file:
            terms.extend(load_keywords(keywords_file))

        # Preserve first-seen order so get_first_match is deterministic
        self.keywords: List[str] = _unique_lowered(terms)
        self.exclusions: List[str] = _unique_lowered(exclusions or [])

        logger.info(
            f"Keyword matcher ready: {len(self.keywords)} keywords, "
            f"{len(self.exclusions)} exclusions"
        )

    def _is_excluded(self, lowered: str) -> bool:
        return any(exc in lowered for exc in self.exclusions)

    def matches(self, text: Optional[str]) -> bool:
        """
        Check if text contains any keyword and no exclusion.

        Args:
            text: Text to check

        Returns:
            True if the text is relevant
        """
        return self.get_matching_keyword(text) is not None

    def get_matching_keyword(self, text: Optional[str]) -> Optional[str]:
        """
        Get the first configured keyword found in text.

        Args:
            text: Text to search

        Returns:
            Matching keyword (lowercase) or None
        """
        if not text:
            return None

        lowered = text.lower()
        if self._is_excluded(lowered):
            return None

        for keyword in self.keywords:
            if keyword in lowered:
                return keyword

        return None

    def matches_any_field(self, fields: List[Optional[str]]) -> bool:
        """Check if the concatenation of the given fields is relevant."""
        return self.get_first_match(fields) is not None

    def get_first_match(self, fields: List[Optional[str]]) -> Optional[str]:
        """
        Get the first keyword found in the concatenated fields.

        Fields are joined with spaces before matching, so an exclusion in
        any field vetoes the whole record.

        Args:
            fields: List of text fields to check

        Returns:
            First matching keyword or None
        """
        text = " ".join(f for f in fields if f)
        return self.get_matching_keyword(text)


def _unique_lowered(terms: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for term in terms:
        term = (term or "").strip().lower()
        if term and term not in seen:
            seen.add(term)
            result.append(term)
    return result


def load_keywords(filepath: str) -> List[str]:
    """
    Load keywords from a file, skipping blank lines and # comments.

    Args:
        filepath: Path to keywords file

    Returns:
        List of keywords (empty if the file does not exist)
    """
    keywords = []
    path = Path(filepath)

    if not path.exists():
        logger.warning(f"Keywords file not found: {filepath}")
        return keywords

    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#"):
                keywords.append(line)

    return keywords
