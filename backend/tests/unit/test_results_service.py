"""
Tests for the ResultsService class.
"""

import uuid

import pytest
from sqlalchemy.orm import Session

from satyashodhak.exceptions import (
    EmptyClaimError,
    InvalidInputError,
    PermissionDeniedError,
    ResultNotFoundError,
)
from satyashodhak.models.comment import Comment
from satyashodhak.models.verification import VerificationResult, VerificationVote
from satyashodhak.schemas.verification import SaveResultRequest
from satyashodhak.services.results_service import ResultsService, ensure_sources, escape_like


class TestResultsService:
    """Test the ResultsService class."""

    @pytest.fixture
    def service(self, test_db: Session) -> ResultsService:
        return ResultsService(test_db)

    @pytest.fixture
    def owner(self, make_user):
        return make_user(full_name="Owner")[0]

    @pytest.fixture
    def stranger(self, make_user):
        return make_user()[0]

    @pytest.fixture
    def result(self, service: ResultsService, owner) -> VerificationResult:
        return service.insert_result(
            user_id=owner.id,
            claim="Drinking water cures COVID",
            verdict="FALSE",
            confidence=95,
            explanation="No evidence.",
            sources=[{"title": "WHO", "snippet": "Myth busters", "url": "https://who.int"}],
        )

    def test_insert_result_defaults(self, result: VerificationResult) -> None:
        assert result.is_saved is False
        assert result.is_public is False
        assert result.upvotes == 0
        assert result.tags == []
        assert result.created_at is not None

    def test_insert_result_normalizes_fields(self, service: ResultsService, owner) -> None:
        """Test that loose values are canonicalized before storage."""
        result = service.insert_result(
            user_id=owner.id, claim="c", verdict="partially true", confidence="250",
            explanation=None, sources="not json",
        )

        assert result.verdict == "PARTIALLY_TRUE"
        assert result.confidence == 100
        assert result.explanation == ""
        assert [s["title"] for s in result.sources] == ["AI Analysis"]

    def test_ensure_sources_keeps_valid_entries(self) -> None:
        assert ensure_sources([{"title": "AP"}]) == [{"title": "AP", "snippet": "", "url": ""}]

    def test_save_existing_result_public(self, service: ResultsService, owner, result) -> None:
        """Test saving with make_public shares the result."""
        response = service.save_result(owner, SaveResultRequest(result_id=result.id, make_public=True))

        assert response.is_saved is True
        assert response.is_public is True
        assert response.verdict_label == "FALSE"
        assert response.share_text == (
            'SatyaShodhak Verification: "Drinking water cures COVID" - Verdict: FALSE (95% confidence)'
        )

    def test_save_unpersisted_payload(self, service: ResultsService, owner, test_db: Session) -> None:
        """Test saving a verdict that was never stored inserts a saved row."""
        response = service.save_result(owner, SaveResultRequest(
            claim="  Moon landing was faked ", verdict="FALSE", confidence=98,
            explanation="It happened.", sources=[], make_public=False,
        ))

        row = test_db.get(VerificationResult, response.id)
        assert row.claim == "Moon landing was faked"
        assert row.is_saved is True
        assert row.is_public is False
        assert [s["title"] for s in row.sources] == ["AI Analysis"]

    def test_save_payload_requires_claim_and_verdict(self, service: ResultsService, owner) -> None:
        with pytest.raises(EmptyClaimError):
            service.save_result(owner, SaveResultRequest(claim=" ", verdict="TRUE"))
        with pytest.raises(InvalidInputError):
            service.save_result(owner, SaveResultRequest(claim="c"))

    def test_visibility_round_trip_and_idempotence(self, service: ResultsService, owner, result,
                                                   test_db: Session) -> None:
        """Test toggling visibility and repeating the same toggle."""
        service.save_result(owner, SaveResultRequest(result_id=result.id))

        assert service.set_visibility(owner, result.id, True).is_public is True
        assert service.set_visibility(owner, result.id, True).is_public is True
        response = service.set_visibility(owner, result.id, False)

        assert response.is_public is False
        assert response.is_saved is True
        assert response.verdict == "FALSE"
        assert response.confidence == 95
        assert test_db.get(VerificationResult, result.id).claim == "Drinking water cures COVID"

    def test_set_visibility_marks_unsaved_result_saved(self, service: ResultsService, owner, result) -> None:
        response = service.set_visibility(owner, result.id, True)

        assert response.is_saved is True
        assert response.is_public is True

    def test_unsave_hides_result_but_keeps_history(self, service: ResultsService, owner, result) -> None:
        service.save_result(owner, SaveResultRequest(result_id=result.id, make_public=True))

        response = service.unsave_result(owner, result.id)

        assert response.is_saved is False
        assert response.is_public is False
        history, total = service.list_history(owner)
        assert total == 1
        assert service.list_saved(owner) == ([], 0)
        assert service.list_public(None) == ([], 0)

    def test_only_owner_can_modify(self, service: ResultsService, owner, stranger, result) -> None:
        """Test ownership checks for private and public results."""
        with pytest.raises(ResultNotFoundError):
            service.set_visibility(stranger, result.id, True)

        service.set_visibility(owner, result.id, True)

        with pytest.raises(PermissionDeniedError):
            service.set_visibility(stranger, result.id, False)
        with pytest.raises(PermissionDeniedError):
            service.delete_result(stranger, result.id)

    def test_unknown_result(self, service: ResultsService, owner) -> None:
        with pytest.raises(ResultNotFoundError):
            service.unsave_result(owner, uuid.uuid4())

    def test_get_result_visibility(self, service: ResultsService, owner, stranger, result) -> None:
        assert service.get_result(result.id, owner).id == result.id
        with pytest.raises(ResultNotFoundError):
            service.get_result(result.id, stranger)
        with pytest.raises(ResultNotFoundError):
            service.get_result(result.id, None)

        service.set_visibility(owner, result.id, True)

        assert service.get_result(result.id, None).is_public is True

    def test_delete_cascades_votes_and_comments(self, service: ResultsService, owner, result,
                                                test_db: Session) -> None:
        """Test that deleting a result removes its votes and comments."""
        test_db.add(VerificationVote(verification_id=result.id, user_id=owner.id, vote=1))
        test_db.add(Comment(claim_id=result.id, user_id=owner.id, content="Nice", user_name="Owner"))
        test_db.commit()

        service.delete_result(owner, result.id)

        assert test_db.query(VerificationResult).count() == 0
        assert test_db.query(VerificationVote).count() == 0
        assert test_db.query(Comment).count() == 0

    def test_list_public_search_and_pagination(self, service: ResultsService, owner, stranger) -> None:
        """Test Explore filtering by claim text."""
        for claim in ["Coffee causes cancer", "Coffee improves memory", "Tea is healthy"]:
            row = service.insert_result(user_id=owner.id, claim=claim, verdict="MISLEADING",
                                        confidence=60, explanation="", sources=[])
            service.set_visibility(owner, row.id, True)
        service.insert_result(user_id=owner.id, claim="Private coffee claim", verdict="TRUE",
                              confidence=60, explanation="", sources=[])

        results, total = service.list_public(stranger, search="COFFEE")
        assert total == 2
        assert {r.claim for r in results} == {"Coffee causes cancer", "Coffee improves memory"}

        page, total = service.list_public(None, skip=2, limit=2)
        assert total == 3
        assert len(page) == 1

    def test_response_counts_and_user_vote(self, service: ResultsService, owner, result,
                                           test_db: Session) -> None:
        test_db.add(VerificationVote(verification_id=result.id, user_id=owner.id, vote=-1))
        test_db.add(Comment(claim_id=result.id, user_id=owner.id, content="a", user_name="Owner"))
        test_db.add(Comment(claim_id=result.id, user_id=owner.id, content="b", user_name="Owner"))
        test_db.commit()

        response = service.get_result(result.id, owner)
        history, _ = service.list_history(owner)

        assert response.user_vote == -1
        assert response.comments_count == 2
        assert history[0].user_vote == -1
        assert history[0].comments_count == 2

    def test_unknown_verdict_displays_unknown(self, service: ResultsService, owner) -> None:
        row = service.insert_result(user_id=owner.id, claim="c", verdict="Pants on Fire",
                                    confidence=10, explanation="", sources=[])

        response = service.get_result(row.id, owner)

        assert response.verdict == "Pants on Fire"
        assert response.verdict_label == "Unknown"

    def test_list_public_search_treats_wildcards_literally(self, service: ResultsService, owner) -> None:
        """Test that % and _ in a search match only themselves."""
        for claim in ["Inflation hit 100% last year", "Tea is healthy", "snake_case is faster"]:
            row = service.insert_result(user_id=owner.id, claim=claim, verdict="FALSE",
                                        confidence=60, explanation="", sources=[])
            service.set_visibility(owner, row.id, True)

        percent, total = service.list_public(None, search="%")
        assert total == 1
        assert percent[0].claim == "Inflation hit 100% last year"

        underscore, total = service.list_public(None, search="_")
        assert total == 1
        assert underscore[0].claim == "snake_case is faster"

    def test_escape_like(self) -> None:
        assert escape_like("50%_off\\") == "50\\%\\_off\\\\"
