import pytest

from conference import camera_ready, decisions, papers
from conference.exceptions import (
    ConflictOfInterest, NoReviewsSubmitted, NotAuthorized, NotFound, ValidationError,
)
from conference.models import Decision, Notification

pytestmark = pytest.mark.django_db

@pytest.fixture
def reviewed_paper(paper, reviewers, make_review):
    make_review(paper, reviewers[0], score=7, confidence=4,
                comments_to_author='Good motivation.', comments_to_chair='Leaning accept.')
    make_review(paper, reviewers[1], score=8, confidence=3, comments_to_author='')
    make_review(paper, reviewers[2], score=9, confidence=None, submitted=False)
    return paper

class TestMakeDecision:
    def test_requires_a_complete_review(self, paper, chair, reviewers, make_review):
        make_review(paper, reviewers[0], score=6, confidence=None, submitted=False)
        with pytest.raises(NoReviewsSubmitted):
            decisions.make_decision(paper.pk, chair.pk, 'accept')
        assert not Decision.objects.filter(paper=paper).exists()
        paper.refresh_from_db()
        assert paper.status == 'submitted'

    def test_snapshots_averages_of_complete_reviews(self, reviewed_paper, chair, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            result = decisions.make_decision(reviewed_paper.pk, chair.pk, 'accept', 'Strong paper')

        decision = Decision.objects.get(paper=reviewed_paper)
        assert decision.average_score == 7.5
        assert decision.average_confidence == 3.5
        assert decision.review_count == 2
        assert decision.decided_by == chair
        reviewed_paper.refresh_from_db()
        assert reviewed_paper.status == 'accepted'
        assert result['stage'] == 'decided'
        assert result['decided_by']['id'] == chair.pk
        assert result['timeline'][-1]['type'] == 'decision'

    def test_redeciding_overwrites(self, reviewed_paper, chair):
        decisions.make_decision(reviewed_paper.pk, chair.pk, 'accept')
        decisions.make_decision(reviewed_paper.pk, chair.pk, 'reject', 'Changed my mind')

        assert Decision.objects.filter(paper=reviewed_paper).count() == 1
        assert Decision.objects.get(paper=reviewed_paper).final_decision == 'reject'
        reviewed_paper.refresh_from_db()
        assert reviewed_paper.status == 'rejected'

    def test_redeciding_by_another_chair_records_the_new_decider(self, reviewed_paper, chair, make_user, add_member, conference):
        other_chair = make_user('chair2')
        add_member(other_chair, conference, 'chair')

        decisions.make_decision(reviewed_paper.pk, chair.pk, 'accept')
        decisions.make_decision(reviewed_paper.pk, other_chair.pk, 'reject')

        decision = Decision.objects.get(paper=reviewed_paper)
        assert decision.final_decision == 'reject'
        assert decision.decided_by == other_chair
        assert Decision.objects.filter(paper=reviewed_paper).count() == 1

    def test_only_chairs_and_admins_decide(self, reviewed_paper, reviewers, site_admin):
        with pytest.raises(NotAuthorized):
            decisions.make_decision(reviewed_paper.pk, reviewers[0].pk, 'accept')
        assert decisions.make_decision(reviewed_paper.pk, site_admin.pk, 'accept')['decision']['final_decision'] == 'accept'

    def test_chair_cannot_decide_own_paper(self, reviewed_paper, author, add_member, conference):
        add_member(author, conference, 'chair')
        with pytest.raises(ConflictOfInterest):
            decisions.make_decision(reviewed_paper.pk, author.pk, 'accept')

    def test_invalid_inputs(self, reviewed_paper, chair):
        with pytest.raises(ValidationError):
            decisions.make_decision(reviewed_paper.pk, chair.pk, 'maybe')
        with pytest.raises(NotFound):
            decisions.make_decision(999999, chair.pk, 'accept')
        with pytest.raises(NotFound):
            decisions.make_decision(reviewed_paper.pk, 999999, 'accept')

    def test_authors_are_notified_after_commit(self, reviewed_paper, author, chair, mailoutbox,
                                               django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            decisions.make_decision(reviewed_paper.pk, chair.pk, 'accept')

        assert len(callbacks) == 1
        notification = Notification.objects.get(recipient=author, notification_type='paper_decision')
        assert 'accepted' in notification.message
        assert len(mailoutbox) == 1
        assert mailoutbox[0].to == [author.email]

    def test_mail_failure_does_not_undo_decision(self, reviewed_paper, author, chair, monkeypatch,
                                                 django_capture_on_commit_callbacks):
        def broken_send_mail(*args, **kwargs):
            raise ConnectionRefusedError('smtp down')
        monkeypatch.setattr('conference.signals.send_mail', broken_send_mail)

        with django_capture_on_commit_callbacks(execute=True):
            decisions.make_decision(reviewed_paper.pk, chair.pk, 'reject')

        assert Decision.objects.filter(paper=reviewed_paper, final_decision='reject').exists()
        assert Notification.objects.filter(recipient=author, notification_type='paper_decision').exists()

class TestDecisionInfo:
    def test_author_before_decision_sees_no_reviews(self, reviewed_paper, author):
        info = decisions.get_paper_decision_info(reviewed_paper.pk, author.pk)
        assert info['has_decision'] is False
        assert info['decision'] is None
        assert info['stage'] == 'under_review'
        assert info['reviews'] == []
        assert info['review_stats']['scores'] == []
        assert info['review_stats']['review_count'] == 3
        assert info['is_author'] is True
        assert info['can_see_full_details'] is False

    def test_author_after_decision_sees_only_comments(self, reviewed_paper, author, chair):
        decisions.make_decision(reviewed_paper.pk, chair.pk, 'accept', 'Chair notes')

        info = decisions.get_paper_decision_info(reviewed_paper.pk, author.pk)

        assert info['reviews'] == [{'comments_to_author': 'Good motivation.', 'reviewer_id': 'anonymous'}]
        assert info['decision']['final_decision'] == 'accept'
        assert info['decision']['comment'] is None
        assert info['decision']['average_score'] is None
        assert info['review_stats']['average_score'] == 0
        review_events = [e for e in info['timeline'] if e['type'] == 'review_submitted']
        assert len(review_events) == 2
        assert all(e['metadata'] == {} for e in review_events)

    def test_chair_sees_everything(self, reviewed_paper, chair):
        decisions.make_decision(reviewed_paper.pk, chair.pk, 'accept', 'Chair notes')
        info = decisions.get_paper_decision_info(reviewed_paper.pk, chair.pk)

        assert info['can_see_full_details'] is True
        assert info['decision']['comment'] == 'Chair notes'
        assert info['review_stats']['average_score'] == 7.5
        assert {r['comments_to_chair'] for r in info['reviews']} >= {'Leaning accept.'}

    def test_outsider_is_refused(self, reviewed_paper, make_user):
        with pytest.raises(NotAuthorized):
            decisions.get_paper_decision_info(reviewed_paper.pk, make_user().pk)

    def test_author_of_another_paper_is_refused(self, reviewed_paper, make_user, add_member, make_paper, conference):
        rival = make_user('rival')
        add_member(rival, conference, 'author')
        make_paper(conference, authors=[rival])

        with pytest.raises(NotAuthorized):
            decisions.get_paper_decision_info(reviewed_paper.pk, rival.pk)
        with pytest.raises(NotAuthorized):
            papers.get_paper_view(reviewed_paper.pk, rival.pk)

    def test_conflicted_reviewer_is_refused(self, reviewed_paper, make_user, add_member, conference, conflict):
        reviewer = make_user()
        add_member(reviewer, conference, 'reviewer')
        assert decisions.get_paper_decision_info(reviewed_paper.pk, reviewer.pk)['can_see_full_details'] is False

        conflict(reviewed_paper, reviewer)
        with pytest.raises(NotAuthorized):
            decisions.get_paper_decision_info(reviewed_paper.pk, reviewer.pk)

    def test_peer_does_not_see_draft_scores(self, reviewed_paper, reviewers):
        info = decisions.get_paper_decision_info(reviewed_paper.pk, reviewers[0].pk)

        scores = info['review_stats']['scores']
        assert [s['score'] for s in scores] == [7, 8, None]
        assert all(s['score'] != 9 for s in scores)
        assert info['review_stats']['average_score'] == 7.5

    def test_decisions_by_conference(self, reviewed_paper, make_paper, conference, author, chair):
        make_paper(conference, authors=[author])
        decisions.make_decision(reviewed_paper.pk, chair.pk, 'accept')

        result = decisions.get_decisions_by_conference(conference.pk)
        assert result['summary'] == {'accepted': 1, 'rejected': 0, 'undecided': 1}
        assert result['decisions'][0]['decided_by']['id'] == chair.pk

class TestPaperView:
    def test_peer_reviewer_view_is_anonymized(self, reviewed_paper, reviewers):
        view = papers.get_paper_view(reviewed_paper.pk, reviewers[0].pk)
        assert view['viewer_role'] == 'assigned_reviewer'
        assert view['authors'] == []
        reviewer_ids = [a['reviewer_id'] for a in view['assignments']]
        assert reviewer_ids == [reviewers[0].pk, 'anonymous', 'anonymous']

    def test_author_view_before_decision(self, reviewed_paper, author):
        view = papers.get_paper_view(reviewed_paper.pk, author.pk)
        assert view['viewer_role'] == 'author'
        assert view['assignments'] == []
        assert view['bids'] == []

class TestCameraReady:
    def test_upload_requires_acceptance(self, reviewed_paper, author):
        with pytest.raises(ValidationError):
            camera_ready.upload_camera_ready(reviewed_paper.pk, author.pk, 'final.pdf', 'papers/final.pdf')

    def test_approval_moves_paper_to_camera_ready(self, reviewed_paper, author, chair):
        decisions.make_decision(reviewed_paper.pk, chair.pk, 'accept')
        camera_ready.upload_camera_ready(reviewed_paper.pk, author.pk, 'final.pdf', 'papers/final.pdf')
        assert decisions.determine_stage(reviewed_paper) == 'decided'

        approved = camera_ready.approve_camera_ready(reviewed_paper.pk, chair.pk)

        assert approved['status'] == 'approved'
        reviewed_paper.refresh_from_db()
        assert reviewed_paper.status == 'camera_ready'
        assert decisions.determine_stage(reviewed_paper) == 'camera_ready'

    def test_reject_needs_comment_and_chair(self, reviewed_paper, author, chair):
        decisions.make_decision(reviewed_paper.pk, chair.pk, 'accept')
        camera_ready.upload_camera_ready(reviewed_paper.pk, author.pk, 'final.pdf', 'papers/final.pdf')

        with pytest.raises(NotAuthorized):
            camera_ready.reject_camera_ready(reviewed_paper.pk, author.pk, 'Fix fonts')
        with pytest.raises(ValidationError):
            camera_ready.reject_camera_ready(reviewed_paper.pk, chair.pk, '')

        rejected = camera_ready.reject_camera_ready(reviewed_paper.pk, chair.pk, 'Fix fonts')
        assert rejected['status'] == 'rejected'
        assert decisions.determine_stage(reviewed_paper) == 'decided'
