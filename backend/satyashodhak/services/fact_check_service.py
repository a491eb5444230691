"""
Google Fact Check Tools API client.
Looks up prior human fact checks for a free-text claim.
"""

import http.client
import json
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

from satyashodhak.config import get_settings
from satyashodhak.schemas.fact_check import PriorFactCheck
from satyashodhak.utils.logger import get_logger

logger = get_logger(__name__)


class FactCheckSearchError(Exception):
    """Exception raised when the fact check search fails."""
    pass


class FactCheckService:
    """Service for searching published fact checks."""

    def __init__(self, api_key: Optional[str] = None) -> None:
        """Initialize the fact check service."""
        self.settings = get_settings()
        self.api_key = self.settings.fact_check_api_key if api_key is None else api_key
        self.host = "factchecktools.googleapis.com"
        self.search_endpoint = "/v1alpha1/claims:search"

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def search(self, query: str) -> Dict[str, Any]:
        """
        Perform a claim search against the Fact Check Tools API.

        Args:
            query: Free-text claim to search for

        Returns:
            Raw decoded API response

        Raises:
            FactCheckSearchError: If the request fails or returns a non-2xx status
        """
        query_params = {
            "query": query,
            "key": self.api_key,
            "pageSize": self.settings.fact_check_page_size,
        }
        if self.settings.fact_check_language_code:
            query_params["languageCode"] = self.settings.fact_check_language_code
        params = urlencode(query_params)

        conn = None
        try:
            conn = http.client.HTTPSConnection(self.host, timeout=15)
            conn.request("GET", f"{self.search_endpoint}?{params}")
            response = conn.getresponse()
            data = response.read()

            if not 200 <= response.status < 300:
                raise FactCheckSearchError(
                    f"Fact Check API returned status {response.status}: {response.reason}"
                )

            return json.loads(data.decode("utf-8")) if data else {}

        except FactCheckSearchError:
            raise
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise FactCheckSearchError(f"Failed to parse Fact Check API response: {e}")
        except Exception as e:
            raise FactCheckSearchError(f"Fact Check API request failed: {e}")
        finally:
            if conn is not None:
                conn.close()

    def search_claims(self, query: str) -> List[PriorFactCheck]:
        """
        Find prior fact checks for a claim.

        Returns an empty list without calling the API when no key is configured.

        Raises:
            FactCheckSearchError: If the search fails
        """
        if not self.enabled:
            logger.debug("Fact check API key not configured, skipping search")
            return []

        logger.info("Searching prior fact checks", query_length=len(query))
        result = self.search(query)
        fact_checks = self.extract_fact_checks(result)
        logger.info("Fact check search completed", results=len(fact_checks))
        return fact_checks

    @staticmethod
    def extract_fact_checks(search_results: Dict[str, Any]) -> List[PriorFactCheck]:
        """
        Flatten API claims into PriorFactCheck records.

        Only the first claimReview of each claim is used.
        """
        fact_checks = []
        for claim in search_results.get("claims", []) or []:
            if not isinstance(claim, dict):
                continue
            reviews = claim.get("claimReview") or [{}]
            review = reviews[0] if isinstance(reviews[0], dict) else {}
            publisher = review.get("publisher") or {}

            fact_checks.append(PriorFactCheck(
                text=claim.get("text"),
                claimant=claim.get("claimant"),
                publisher=publisher.get("name") if isinstance(publisher, dict) else None,
                rating=review.get("textualRating"),
                title=review.get("title"),
                url=review.get("url"),
            ))

        return fact_checks
