import pytest

from conference import allocation
from conference.exceptions import AlreadySubmitted, ConflictOfInterest, NotAMember, NotFound, ValidationError
from conference.models import Conference, Notification, ReviewAssignment

pytestmark = pytest.mark.django_db

def _assigned_reviewers(paper):
    return set(ReviewAssignment.objects.filter(paper=paper).values_list('reviewer_id', flat=True))

class TestManualAssignment:
    def test_author_cannot_be_assigned(self, paper, author, add_member, conference):
        add_member(author, conference, 'reviewer')
        with pytest.raises(ConflictOfInterest):
            allocation.assign(paper.pk, author.pk)
        assert not ReviewAssignment.objects.filter(paper=paper).exists()

    def test_conflicted_reviewer_cannot_be_assigned(self, paper, reviewers, conflict):
        conflict(paper, reviewers[0])
        with pytest.raises(ConflictOfInterest):
            allocation.assign(paper.pk, reviewers[0].pk)

    def test_conflict_bidder_cannot_be_assigned(self, paper, reviewers, bid):
        bid(paper, reviewers[0], 'conflict')
        with pytest.raises(ConflictOfInterest):
            allocation.assign(paper.pk, reviewers[0].pk)

    def test_non_member_cannot_be_assigned(self, paper, make_user):
        with pytest.raises(NotAMember):
            allocation.assign(paper.pk, make_user().pk)

    def test_assign_is_idempotent_and_starts_review(self, paper, reviewers):
        first = allocation.assign(paper.pk, reviewers[0].pk)
        second = allocation.assign(paper.pk, reviewers[0].pk)

        assert first['created'] is True
        assert second['created'] is False
        assert first['id'] == second['id']
        assert first['status'] == 'not_started'
        assert ReviewAssignment.objects.filter(paper=paper).count() == 1
        paper.refresh_from_db()
        assert paper.status == 'under_review'
        assert Notification.objects.filter(recipient=reviewers[0], notification_type='paper_assignment').count() == 1

    def test_unassign(self, paper, reviewers):
        assignment = allocation.assign(paper.pk, reviewers[0].pk)
        allocation.unassign(assignment['id'])
        assert not ReviewAssignment.objects.filter(pk=assignment['id']).exists()

    def test_unassign_submitted_review_is_refused(self, paper, reviewers, make_review):
        assignment, _ = make_review(paper, reviewers[0], score=5, confidence=3)
        with pytest.raises(AlreadySubmitted):
            allocation.unassign(assignment.pk)
        assert ReviewAssignment.objects.filter(pk=assignment.pk).exists()

    def test_unassign_unknown(self):
        with pytest.raises(NotFound):
            allocation.unassign(31337)

class TestAutoAssign:
    def test_fills_every_paper_and_balances_load(self, conference, make_paper, author, reviewers):
        papers = [make_paper(conference, authors=[author]) for _ in range(3)]

        result = allocation.auto_assign(conference.pk, 2)

        assert result['assigned_count'] == 6
        assert result['shortfalls'] == []
        for paper in papers:
            assert len(_assigned_reviewers(paper)) == 2
        assert result['reviewer_loads'] == {r.pk: 2 for r in reviewers}

    def test_never_assigns_authors_or_conflicts(self, conference, make_user, add_member, make_paper, reviewers, conflict, bid):
        extra = make_user()
        add_member(extra, conference, 'reviewer')
        paper = make_paper(conference, authors=[reviewers[0]])
        conflict(paper, reviewers[1])
        bid(paper, reviewers[2], 'conflict')

        result = allocation.auto_assign(conference.pk, 2)

        assert _assigned_reviewers(paper) == {extra.pk}
        assert result['assigned_count'] == 1
        assert result['shortfalls'] == [{
            'paper_id': paper.pk,
            'title': paper.title,
            'target': 2,
            'assigned': 1,
            'missing': 1,
            'reason': 'not enough eligible reviewers',
        }]

    def test_prefers_stronger_bids(self, paper, reviewers, bid):
        low, neutral, high = reviewers
        bid(paper, low, 'low')
        bid(paper, high, 'high')

        allocation.auto_assign(paper.conference_id, 1)
        assert _assigned_reviewers(paper) == {high.pk}

        allocation.auto_assign(paper.conference_id, 2)
        assert _assigned_reviewers(paper) == {high.pk, neutral.pk}

    def test_high_and_medium_bidders_fill_the_target(self, paper, reviewers, bid):
        high, medium, no_bid = reviewers
        bid(paper, high, 'high')
        bid(paper, medium, 'medium')

        result = allocation.auto_assign(paper.conference_id, 2)

        assert _assigned_reviewers(paper) == {high.pk, medium.pk}
        assert no_bid.pk not in _assigned_reviewers(paper)
        assert result['assigned_count'] == 2
        assert result['shortfalls'] == []

    def test_lower_load_wins_over_bid(self, conference, make_paper, author, reviewers, bid):
        busy = reviewers[0]
        earlier = make_paper(conference, authors=[author])
        paper = make_paper(conference, authors=[author])
        allocation.assign(earlier.pk, busy.pk)
        bid(paper, busy, 'high')

        allocation.auto_assign(conference.pk, 1)

        assert _assigned_reviewers(earlier) == {busy.pk}
        assert _assigned_reviewers(paper) == {reviewers[1].pk}

    def test_scarce_papers_are_served_first(self, make_user, add_member, make_paper, conflict):
        conference = Conference.objects.create(name='Small', acronym='SM')
        first, second = make_user(), make_user()
        add_member(first, conference, 'reviewer')
        add_member(second, conference, 'reviewer')
        open_paper = make_paper(conference)
        scarce_paper = make_paper(conference)
        conflict(scarce_paper, second)

        allocation.auto_assign(conference.pk, 1)

        assert _assigned_reviewers(scarce_paper) == {first.pk}
        assert _assigned_reviewers(open_paper) == {second.pk}

    def test_existing_assignments_count_towards_target(self, paper, reviewers):
        allocation.assign(paper.pk, reviewers[2].pk)

        result = allocation.auto_assign(paper.conference_id, 2)
        assert result['assigned_count'] == 1
        assert len(_assigned_reviewers(paper)) == 2

        rerun = allocation.auto_assign(paper.conference_id, 2)
        assert rerun['assigned_count'] == 0
        assert rerun['shortfalls'] == []

    def test_defaults_to_conference_setting(self, paper, reviewers):
        result = allocation.auto_assign(paper.conference_id)
        assert result['assigned_count'] == paper.conference.reviewers_per_paper

    @pytest.mark.parametrize('target', [0, -1, 'many'])
    def test_invalid_target(self, conference, target):
        with pytest.raises(ValidationError):
            allocation.auto_assign(conference.pk, target)

    def test_unknown_conference(self):
        with pytest.raises(NotFound):
            allocation.auto_assign(55555, 2)

def test_assignment_stats(conference, paper, reviewers, make_review):
    make_review(paper, reviewers[0], score=6, confidence=3)
    allocation.assign(paper.pk, reviewers[1].pk)

    stats = allocation.get_conference_assignment_stats(conference.pk)

    assert stats['papers'][0]['assigned'] == 2
    assert stats['papers'][0]['submitted'] == 1
    assert stats['papers'][0]['missing'] == 0
    by_reviewer = {row['reviewer_id']: row for row in stats['reviewers']}
    assert by_reviewer[reviewers[0].pk]['pending'] == 0
    assert by_reviewer[reviewers[1].pk]['pending'] == 1
    assert stats['summary']['total_assignments'] == 2

def test_my_assignments_hide_authors(paper, reviewers):
    allocation.assign(paper.pk, reviewers[0].pk)
    rows = allocation.get_my_assignments(reviewers[0].pk)
    assert [row['paper']['id'] for row in rows] == [paper.pk]
    assert 'authors' not in rows[0]['paper']
