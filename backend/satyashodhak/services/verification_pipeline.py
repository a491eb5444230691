"""
Claim verification pipeline.

Validates the claim, gathers prior fact checks, asks the reasoning engine for
a verdict, merges the evidence into the verdict's sources, resolves the
caller and persists exactly one row (insert or in-place re-verification).
"""

import uuid
from typing import List, Optional

from sqlalchemy.orm import Session

from satyashodhak.agents.fact_checker import FactCheckerAgent
from satyashodhak.config import get_settings
from satyashodhak.exceptions import (
    EmptyClaimError,
    EngineNotConfiguredError,
    PersistenceFailedError,
    SatyaShodhakError,
    VerificationFailedError,
)
from satyashodhak.schemas.fact_check import PriorFactCheck
from satyashodhak.schemas.verification import (
    VerificationPayload,
    VerifyClaimRequest,
    VerifyClaimResponse,
)
from satyashodhak.services.auth_service import AuthService
from satyashodhak.services.fact_check_service import FactCheckSearchError, FactCheckService
from satyashodhak.services.results_service import ResultsService, fallback_source
from satyashodhak.utils.logger import get_logger

logger = get_logger(__name__)
settings = get_settings()


class VerificationPipeline:
    """
    Orchestrates one claim verification.

    Collaborators can be injected; otherwise they are built from settings
    when first needed, so an empty claim never touches any of them.
    """

    def __init__(self, db: Session, agent: Optional[FactCheckerAgent] = None,
                 fact_check_service: Optional[FactCheckService] = None,
                 auth_service: Optional[AuthService] = None,
                 results_service: Optional[ResultsService] = None) -> None:
        self.db: Session = db
        self._agent = agent
        self._fact_check_service = fact_check_service
        self.auth_service = auth_service or AuthService(db)
        self.results_service = results_service or ResultsService(db)

    @property
    def agent(self) -> FactCheckerAgent:
        if self._agent is None:
            if not settings.anthropic_api_key:
                raise EngineNotConfiguredError()
            self._agent = FactCheckerAgent()
        return self._agent

    @property
    def fact_check_service(self) -> FactCheckService:
        if self._fact_check_service is None:
            self._fact_check_service = FactCheckService()
        return self._fact_check_service

    def verify(self, request: VerifyClaimRequest, authorization: Optional[str]) -> VerifyClaimResponse:
        """
        Verify a claim and persist the verdict.

        Args:
            request: Claim text and optional re-verification target
            authorization: Raw Authorization header of the caller

        Returns:
            VerifyClaimResponse with the verdict payload

        Raises:
            EmptyClaimError: Claim empty after trimming, raised before any outbound call
            EngineNotConfiguredError, RateLimitedError, QuotaExhaustedError,
            EngineRequestFailedError: Reasoning engine problems
            AuthenticationRequiredError, AuthenticationInvalidError: Caller not resolved
            ResultNotFoundError: Re-verification target not owned by the caller
            PersistenceFailedError: Write failed and persistence is not best-effort
            VerificationFailedError: Anything else
        """
        claim = request.claim or ""
        if not claim.strip():
            raise EmptyClaimError()

        try:
            return self._run(claim, request, authorization)
        except SatyaShodhakError:
            raise
        except Exception as e:
            logger.error("Verification error", error=str(e), error_type=type(e).__name__)
            raise VerificationFailedError()

    def _run(self, claim: str, request: VerifyClaimRequest, authorization: Optional[str]) -> VerifyClaimResponse:
        agent = self.agent

        logger.info("Starting verification", claim_length=len(claim),
                    is_reverification=request.is_reverification)

        prior_checks = self.gather_prior_fact_checks(claim)
        engine_verdict = agent.process(claim, prior_checks)

        sources = self.merge_sources(engine_verdict.sources, prior_checks)

        user = self.auth_service.resolve_bearer(authorization)

        payload = VerificationPayload(
            claim=claim,
            verdict=engine_verdict.verdict,
            confidence=engine_verdict.confidence,
            explanation=engine_verdict.explanation,
            sources=sources,
        )
        payload.id = self._persist(payload, request, user.id)

        logger.info("Verification completed",
                    result_id=payload.id,
                    verdict=payload.verdict,
                    confidence=payload.confidence,
                    sources=len(payload.sources))

        return VerifyClaimResponse(success=True, result=payload)

    def gather_prior_fact_checks(self, claim: str) -> List[PriorFactCheck]:
        """
        Query the evidence source. Failures are logged and treated as no results.
        """
        try:
            return self.fact_check_service.search_claims(claim)
        except FactCheckSearchError as e:
            logger.warning("Fact check search failed, continuing without prior fact checks", error=str(e))
        except Exception as e:
            logger.error("Unexpected fact check search error", error=str(e))
        return []

    def merge_sources(self, engine_sources: List[dict], prior_checks: List[PriorFactCheck]) -> List[dict]:
        """
        Append evidence sources to the engine's sources.

        Adds up to evidence_source_limit prior fact checks, then a single
        fallback source when the list is still empty.
        """
        sources = list(engine_sources or [])
        sources.extend(
            check.to_source(settings.source_snippet_max_length)
            for check in prior_checks[:settings.evidence_source_limit]
        )
        if not sources:
            sources.append(fallback_source())
        return sources

    def _persist(self, payload: VerificationPayload, request: VerifyClaimRequest,
                 user_id: uuid.UUID) -> Optional[uuid.UUID]:
        sources = [source.model_dump() for source in payload.sources]

        try:
            if request.is_reverification and request.original_result_id:
                result = self.results_service.update_verdict(
                    result_id=request.original_result_id,
                    user_id=user_id,
                    verdict=payload.verdict,
                    confidence=payload.confidence,
                    explanation=payload.explanation,
                    sources=sources,
                )
            else:
                result = self.results_service.insert_result(
                    user_id=user_id,
                    claim=payload.claim,
                    verdict=payload.verdict,
                    confidence=payload.confidence,
                    explanation=payload.explanation,
                    sources=sources,
                )
        except PersistenceFailedError as e:
            if not settings.best_effort_persistence:
                raise
            logger.error("Persisting verification failed, returning unsaved result", error=str(e))
            return None

        return result.id
