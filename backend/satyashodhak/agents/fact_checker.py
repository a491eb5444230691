"""
AI agent that produces a verdict for a single claim.
Builds the fact-checking prompt, calls Claude once and parses its JSON answer.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from satyashodhak.agents.base_agent import BaseAgent
from satyashodhak.config import get_settings
from satyashodhak.schemas.fact_check import PriorFactCheck
from satyashodhak.utils.logger import get_logger
from satyashodhak.utils.normalization import (
    SourcesOk,
    Verdict,
    coerce_confidence,
    coerce_verdict,
    normalize_sources,
)

logger = get_logger(__name__)
settings = get_settings()

SYSTEM_INSTRUCTION = """You are an expert fact-checker. Analyze claims objectively using evidence-based reasoning.

YOUR TASK:
1. Evaluate the claim's truthfulness and provide a structured analysis
2. Generate a detailed fact description with the following sections:
   - Key Points: 2-3 bullet points summarizing the most important facts
   - Context: Background information to understand the claim
   - Analysis: Detailed examination of the evidence
   - Verdict: Clear conclusion with reasoning
3. Provide a verdict: TRUE, FALSE, MISLEADING, PARTIALLY_TRUE, or INCONCLUSIVE
4. Assign a confidence score (0-100)
5. List credible sources that support your analysis

GUIDELINES:
- Be thorough but concise
- Consider context, nuance, and available evidence
- Use markdown formatting for better readability
- Cite sources using [number] notation
- If the claim is ambiguous, explain why and what would be needed for a definitive answer"""

OUTPUT_FORMAT = """Analyze this claim and provide a structured response in this exact JSON format:
{
  "verdict": "TRUE|FALSE|MISLEADING|PARTIALLY_TRUE|INCONCLUSIVE",
  "confidence": <number 0-100>,
  "explanation": "## Key Points\\n- Point 1\\n- Point 2\\n\\n## Context\\n[Provide background information]\\n\\n## Analysis\\n[Detailed examination of evidence]\\n\\n## Verdict\\n[Clear conclusion with reasoning]",
  "sources": [
    {
      "title": "<source title>",
      "snippet": "<relevant excerpt>",
      "url": "<source URL>"
    }
  ]
}"""

_FENCED_JSON = re.compile(r"```json\s*\n(.*?)\n?```", re.DOTALL | re.IGNORECASE)
_FENCED_ANY = re.compile(r"```(?:[a-zA-Z]*\n)?(.*?)```", re.DOTALL)


@dataclass
class EngineVerdict:
    """Verdict fields as produced by the reasoning engine."""
    verdict: str
    confidence: int
    explanation: str
    sources: List[Dict[str, str]] = field(default_factory=list)


class FactCheckerAgent(BaseAgent):
    """
    AI agent that judges one claim.

    Prior fact checks from the evidence source are passed in as context; the
    agent itself makes exactly one Claude call per claim.
    """

    def process(self, claim: str, prior_checks: Sequence[PriorFactCheck] = ()) -> EngineVerdict:
        """
        Produce a verdict for the claim.

        Args:
            claim: The claim text to verify
            prior_checks: Published fact checks to use as hints

        Returns:
            EngineVerdict, degraded to INCONCLUSIVE when the answer cannot be parsed

        Raises:
            RateLimitedError, QuotaExhaustedError, EngineRequestFailedError
        """
        logger.info(f"[{self.agent_name}] Starting claim verification",
                    claim_length=len(claim),
                    prior_checks=len(prior_checks))

        prompt = self.build_prompt(claim, prior_checks)
        response = self._call_claude(prompt)

        verdict, degraded = self.parse_response(response)
        if degraded:
            logger.warning(f"[{self.agent_name}] Could not parse engine response, degrading to INCONCLUSIVE",
                           response_preview=self._truncate_for_log(response, 100))
        else:
            logger.info(f"[{self.agent_name}] Verdict: {verdict.verdict} (confidence: {verdict.confidence})",
                        sources=len(verdict.sources))

        return verdict

    def build_prompt(self, claim: str, prior_checks: Sequence[PriorFactCheck] = ()) -> str:
        """
        Build the single prompt sent to the engine.

        Args:
            claim: The claim text to verify
            prior_checks: Published fact checks; only the first few are embedded

        Returns:
            Prompt text
        """
        context = ""
        hints = list(prior_checks)[:settings.evidence_context_limit]
        if hints:
            blocks = "\n\n".join(check.to_prompt_context(i) for i, check in enumerate(hints, 1))
            context = f"EXISTING FACT CHECKS (for reference):\n\nExisting Fact-Check Results:\n{blocks}\n\n"

        return f'{SYSTEM_INSTRUCTION}\n\n{context}{OUTPUT_FORMAT}\n\nClaim to verify: "{claim}"'

    def parse_response(self, response: str) -> Tuple[EngineVerdict, bool]:
        """
        Parse the engine answer into an EngineVerdict.

        Args:
            response: Raw engine text, possibly wrapping JSON in a fenced block

        Returns:
            Tuple of (verdict, degraded). When no JSON object can be extracted
            the verdict is INCONCLUSIVE at 50 with the raw text as explanation.
        """
        data = self._extract_json_object(response)
        if data is None:
            return EngineVerdict(
                verdict=Verdict.INCONCLUSIVE.value,
                confidence=50,
                explanation=response,
                sources=[],
            ), True

        sources_result = normalize_sources(data.get("sources", []))
        explanation = data.get("explanation")

        return EngineVerdict(
            verdict=coerce_verdict(data.get("verdict", Verdict.INCONCLUSIVE.value)),
            confidence=coerce_confidence(data.get("confidence")),
            explanation="" if explanation is None else str(explanation),
            sources=list(sources_result.sources) if isinstance(sources_result, SourcesOk) else [],
        ), False

    def _extract_json_object(self, response: str) -> Optional[Dict[str, Any]]:
        """Try fenced ```json, any fenced block, the whole text, then the outermost braces."""
        candidates = []
        match = _FENCED_JSON.search(response)
        if match:
            candidates.append(match.group(1))
        match = _FENCED_ANY.search(response)
        if match:
            candidates.append(match.group(1))
        candidates.append(response)

        start, end = response.find("{"), response.rfind("}")
        if 0 <= start < end:
            candidates.append(response[start:end + 1])

        for candidate in candidates:
            try:
                parsed = json.loads(candidate.strip())
            except (TypeError, ValueError):
                continue
            if isinstance(parsed, dict):
                return parsed

        return None
