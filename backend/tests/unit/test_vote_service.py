"""
Tests for vote toggling on results and comments.
"""

import uuid

import pytest
from sqlalchemy.orm import Session

from satyashodhak.exceptions import CommentNotFoundError, InvalidInputError, ResultNotFoundError
from satyashodhak.models.comment import Comment
from satyashodhak.models.verification import VerificationResult, VerificationVote
from satyashodhak.services.results_service import ResultsService
from satyashodhak.services.vote_service import VoteService, resolve_vote


class TestResolveVote:
    """Test the toggle rule."""

    @pytest.mark.parametrize("existing, desired, expected", [
        (None, 1, 1),
        (None, -1, -1),
        (None, 0, 0),
        (1, 1, 0),
        (-1, -1, 0),
        (1, -1, -1),
        (-1, 1, 1),
        (1, 0, 0),
    ])
    def test_resolve_vote(self, existing, desired: int, expected: int) -> None:
        assert resolve_vote(existing, desired) == expected

    def test_rejects_out_of_range(self) -> None:
        with pytest.raises(InvalidInputError):
            resolve_vote(None, 2)


class TestVoteService:
    """Test the VoteService class."""

    @pytest.fixture
    def service(self, test_db: Session) -> VoteService:
        return VoteService(test_db)

    @pytest.fixture
    def owner(self, make_user):
        return make_user()[0]

    @pytest.fixture
    def voter(self, make_user):
        return make_user()[0]

    @pytest.fixture
    def public_result(self, test_db: Session, owner) -> VerificationResult:
        results = ResultsService(test_db)
        row = results.insert_result(user_id=owner.id, claim="c", verdict="TRUE", confidence=80,
                                    explanation="", sources=[])
        results.set_visibility(owner, row.id, True)
        return row

    def _vote_row(self, test_db: Session, result_id, user_id):
        return (test_db.query(VerificationVote)
                .filter_by(verification_id=result_id, user_id=user_id)
                .one_or_none())

    def test_upvote_twice_removes_vote(self, service: VoteService, test_db: Session,
                                       voter, public_result) -> None:
        """Test that repeating a vote toggles it off."""
        first = service.vote_on_result(public_result.id, voter, 1)
        assert (first.upvotes, first.downvotes, first.user_vote) == (1, 0, 1)
        assert self._vote_row(test_db, public_result.id, voter.id).vote == 1

        second = service.vote_on_result(public_result.id, voter, 1)
        assert (second.upvotes, second.downvotes, second.user_vote) == (0, 0, None)
        assert self._vote_row(test_db, public_result.id, voter.id) is None

    def test_switch_vote_direction(self, service: VoteService, test_db: Session, voter, public_result) -> None:
        service.vote_on_result(public_result.id, voter, 1)

        response = service.vote_on_result(public_result.id, voter, -1)

        assert (response.upvotes, response.downvotes, response.user_vote) == (0, 1, -1)
        assert test_db.query(VerificationVote).count() == 1

    def test_zero_clears_vote(self, service: VoteService, voter, public_result) -> None:
        service.vote_on_result(public_result.id, voter, -1)

        response = service.vote_on_result(public_result.id, voter, 0)

        assert (response.upvotes, response.downvotes, response.user_vote) == (0, 0, None)

    def test_two_users_upvote(self, service: VoteService, owner, voter, public_result) -> None:
        """Test votes from different users accumulate."""
        service.vote_on_result(public_result.id, owner, 1)
        response = service.vote_on_result(public_result.id, voter, 1)

        assert response.upvotes == 2
        assert response.downvotes == 0

    def test_counters_never_go_negative(self, service: VoteService, test_db: Session,
                                        voter, public_result) -> None:
        """Test removing a vote from a counter that is already zero."""
        test_db.add(VerificationVote(verification_id=public_result.id, user_id=voter.id, vote=1))
        test_db.commit()

        response = service.vote_on_result(public_result.id, voter, 1)

        assert response.upvotes == 0
        assert response.user_vote is None

    def test_private_result_of_other_user(self, service: VoteService, test_db: Session, owner, voter) -> None:
        row = ResultsService(test_db).insert_result(user_id=owner.id, claim="c", verdict="TRUE",
                                                    confidence=80, explanation="", sources=[])

        with pytest.raises(ResultNotFoundError):
            service.vote_on_result(row.id, voter, 1)

        assert service.vote_on_result(row.id, owner, 1).upvotes == 1

    def test_vote_on_comment(self, service: VoteService, test_db: Session, owner, voter, public_result) -> None:
        comment = Comment(claim_id=public_result.id, user_id=owner.id, content="Agreed", user_name="Owner")
        test_db.add(comment)
        test_db.commit()

        assert service.vote_on_comment(comment.id, voter, -1).downvotes == 1
        assert service.vote_on_comment(comment.id, owner, -1).downvotes == 2
        response = service.vote_on_comment(comment.id, voter, -1)

        assert (response.upvotes, response.downvotes, response.user_vote) == (0, 1, None)

    def test_vote_on_missing_comment(self, service: VoteService, voter) -> None:
        with pytest.raises(CommentNotFoundError):
            service.vote_on_comment(uuid.uuid4(), voter, 1)

    def test_comment_under_private_result_of_other_user(self, service: VoteService, test_db: Session,
                                                         owner, voter) -> None:
        """Test comments on a private result cannot be voted on by others."""
        row = ResultsService(test_db).insert_result(user_id=owner.id, claim="c", verdict="TRUE",
                                                    confidence=80, explanation="", sources=[])
        comment = Comment(claim_id=row.id, user_id=owner.id, content="Note to self", user_name="Owner")
        test_db.add(comment)
        test_db.commit()

        with pytest.raises(ResultNotFoundError):
            service.vote_on_comment(comment.id, voter, 1)

        test_db.expire_all()
        assert test_db.get(Comment, comment.id).upvotes == 0
        assert service.vote_on_comment(comment.id, owner, 1).upvotes == 1
