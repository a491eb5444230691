"""
Pydantic schemas for evidence sources and prior fact checks.
"""

from typing import Dict, Optional

from pydantic import BaseModel


class Source(BaseModel):
    """A single piece of evidence shown alongside a verdict."""
    title: str = ""
    snippet: str = ""
    url: str = ""


class PriorFactCheck(BaseModel):
    """A human fact check returned by the Google Fact Check Tools API."""
    text: Optional[str] = None
    claimant: Optional[str] = None
    publisher: Optional[str] = None
    rating: Optional[str] = None
    title: Optional[str] = None
    url: Optional[str] = None

    def to_source(self, max_snippet_length: int = 200) -> Dict[str, str]:
        """Map this fact check to the {title, snippet, url} source shape."""
        snippet = f"{self.rating or 'Rating unavailable'} - {self.title or self.text or ''}"
        return {
            "title": self.publisher or "Google Fact Check",
            "snippet": snippet[:max_snippet_length],
            "url": self.url or "https://toolbox.google.com/factcheck",
        }

    def to_prompt_context(self, index: int) -> str:
        """Format this fact check as a numbered block for the engine prompt."""
        return (
            f"{index}. Source: {self.publisher or 'Unknown'}\n"
            f"   Rating: {self.rating or 'N/A'}\n"
            f"   Review: {self.title or 'No title'}\n"
            f"   URL: {self.url or 'No URL'}"
        )
