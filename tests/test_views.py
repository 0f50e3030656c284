import json
from io import BytesIO

import pytest
from django.urls import reverse
from openpyxl import load_workbook

from conference import allocation
from conference.models import Review, ReviewAssignment, ReviewerBid

pytestmark = pytest.mark.django_db

def post_json(client, url, data):
    return client.post(url, data=json.dumps(data), content_type='application/json')

def test_login_required(client, paper):
    response = client.get(reverse('dashboard:paper_detail', args=[paper.pk]))
    assert response.status_code == 302
    assert '/admin/login/' in response['Location']

class TestBidEndpoint:
    def test_submit_and_read_bid(self, client, paper, reviewers):
        client.force_login(reviewers[0])
        url = reverse('dashboard:paper_bid', args=[paper.pk])

        response = post_json(client, url, {'bid': 'high'})
        assert response.status_code == 200
        assert response.json()['success'] is True
        assert response.json()['bid']['bid'] == 'high'

        response = client.get(url)
        assert response.json()['bid']['bid'] == 'high'

    def test_form_encoded_body(self, client, paper, reviewers):
        client.force_login(reviewers[0])
        response = client.post(reverse('dashboard:paper_bid', args=[paper.pk]), {'bid': 'medium'})
        assert response.status_code == 200
        assert ReviewerBid.objects.get(paper=paper, reviewer=reviewers[0]).bid == 'medium'

    def test_author_bid_maps_to_conflict_of_interest(self, client, paper, author, add_member, conference):
        add_member(author, conference, 'reviewer')
        client.force_login(author)
        response = post_json(client, reverse('dashboard:paper_bid', args=[paper.pk]), {'bid': 'high'})
        assert response.status_code == 409
        assert response.json() == {
            'success': False,
            'error': 'conflict_of_interest',
            'message': 'Authors cannot bid on their own paper.',
        }

    def test_invalid_value_maps_to_validation_error(self, client, paper, reviewers):
        client.force_login(reviewers[0])
        response = post_json(client, reverse('dashboard:paper_bid', args=[paper.pk]), {'bid': 'maybe'})
        assert response.status_code == 400
        assert response.json()['error'] == 'validation_error'

    def test_malformed_json(self, client, paper, reviewers):
        client.force_login(reviewers[0])
        response = client.post(reverse('dashboard:paper_bid', args=[paper.pk]), data='{nope', content_type='application/json')
        assert response.status_code == 400
        assert response.json()['error'] == 'validation_error'

    def test_unknown_paper(self, client, reviewers):
        client.force_login(reviewers[0])
        response = post_json(client, reverse('dashboard:paper_bid', args=[123456]), {'bid': 'high'})
        assert response.status_code == 404
        assert response.json()['error'] == 'not_found'

    def test_non_member(self, client, paper, make_user):
        client.force_login(make_user())
        response = post_json(client, reverse('dashboard:paper_bid', args=[paper.pk]), {'bid': 'high'})
        assert response.status_code == 403
        assert response.json()['error'] == 'not_a_member'

def test_conflict_then_bid_is_refused(client, paper, reviewers):
    client.force_login(reviewers[0])
    response = client.post(reverse('dashboard:declare_conflict', args=[paper.pk]))
    assert response.status_code == 200
    assert response.json()['conflict']['user_id'] == reviewers[0].pk

    response = post_json(client, reverse('dashboard:paper_bid', args=[paper.pk]), {'bid': 'high'})
    assert response.status_code == 409

class TestAssignmentEndpoints:
    def test_auto_assign_requires_chair(self, client, conference, paper, reviewers):
        client.force_login(reviewers[0])
        response = post_json(client, reverse('dashboard:auto_assign', args=[conference.pk]), {})
        assert response.status_code == 403
        assert response.json()['error'] == 'not_authorized'
        assert not ReviewAssignment.objects.exists()

    def test_auto_assign(self, client, conference, paper, chair, reviewers):
        client.force_login(chair)
        response = post_json(client, reverse('dashboard:auto_assign', args=[conference.pk]), {'reviewers_per_paper': 1})
        assert response.status_code == 200
        body = response.json()
        assert body['success'] is True
        assert body['assigned_count'] == 1
        assert body['shortfalls'] == []

    def test_manual_assign_and_delete(self, client, paper, chair, reviewers):
        client.force_login(chair)
        url = reverse('dashboard:paper_assignments', args=[paper.pk])

        response = post_json(client, url, {'reviewer_id': reviewers[1].pk})
        assert response.status_code == 201
        assignment_id = response.json()['assignment']['id']

        response = post_json(client, url, {'reviewer_id': reviewers[1].pk})
        assert response.status_code == 200

        listing = client.get(url).json()['assignments']
        assert [row['reviewer_id'] for row in listing] == [reviewers[1].pk]

        response = client.post(reverse('dashboard:delete_assignment', args=[assignment_id]))
        assert response.status_code == 200
        assert not ReviewAssignment.objects.filter(pk=assignment_id).exists()

    def test_assigning_the_author_is_refused(self, client, paper, chair, author):
        client.force_login(chair)
        response = post_json(client, reverse('dashboard:paper_assignments', args=[paper.pk]), {'reviewer_id': author.pk})
        assert response.status_code == 409

    def test_deleting_submitted_assignment(self, client, paper, chair, reviewers, make_review):
        assignment, _ = make_review(paper, reviewers[0], score=4, confidence=2)
        client.force_login(chair)
        response = client.post(reverse('dashboard:delete_assignment', args=[assignment.pk]))
        assert response.status_code == 409
        assert response.json()['error'] == 'already_submitted'

    def test_excel_export(self, client, conference, paper, chair, reviewers):
        allocation.assign(paper.pk, reviewers[0].pk)
        client.force_login(chair)

        response = client.get(reverse('dashboard:export_assignments_excel', args=[conference.pk]))

        assert response.status_code == 200
        assert response['Content-Type'] == 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
        workbook = load_workbook(BytesIO(response.content))
        assert workbook.sheetnames == ['Papers', 'Reviewers']
        papers_sheet = workbook['Papers']
        assert papers_sheet['A1'].value == 'Paper ID'
        assert papers_sheet['B2'].value == paper.title
        assert papers_sheet['D2'].value == 1
        assert workbook['Reviewers']['B2'].value == reviewers[0].email

class TestReviewAndDecisionEndpoints:
    def test_review_flow(self, client, paper, chair, author, reviewers):
        assignment = allocation.assign(paper.pk, reviewers[0].pk)
        client.force_login(reviewers[0])

        response = post_json(client, reverse('dashboard:review_save_draft', args=[assignment['id']]), {'score': 11})
        assert response.status_code == 400

        response = post_json(client, reverse('dashboard:review_submit', args=[assignment['id']]), {
            'score': 8, 'confidence': 4, 'comments_to_author': 'Well written.', 'comments_to_chair': 'Accept.',
        })
        assert response.status_code == 200
        assert response.json()['review']['status'] == 'submitted'

        response = post_json(client, reverse('dashboard:review_submit', args=[assignment['id']]), {'score': 1, 'confidence': 1})
        assert response.status_code == 409
        assert response.json()['error'] == 'already_submitted'

        client.force_login(chair)
        response = post_json(client, reverse('dashboard:paper_decision', args=[paper.pk]), {'final_decision': 'accept'})
        assert response.status_code == 200
        assert response.json()['stage'] == 'decided'

        client.force_login(author)
        body = client.get(reverse('dashboard:paper_decision', args=[paper.pk])).json()
        assert body['is_author'] is True
        assert body['reviews'] == [{'comments_to_author': 'Well written.', 'reviewer_id': 'anonymous'}]
        assert body['decision']['comment'] is None

    def test_draft_text_can_be_cleared(self, client, paper, reviewers):
        assignment = allocation.assign(paper.pk, reviewers[0].pk)
        client.force_login(reviewers[0])
        url = reverse('dashboard:review_save_draft', args=[assignment['id']])

        post_json(client, url, {'score': 6, 'comments_to_author': 'Typo on page 3.', 'summary': 'Keeps'})
        response = post_json(client, url, {'score': '', 'comments_to_author': ''})

        assert response.status_code == 200
        review = Review.objects.get(assignment_id=assignment['id'])
        assert review.comments_to_author == ''
        assert review.summary == 'Keeps'
        assert review.score == 6

    def test_decision_without_reviews(self, client, paper, chair):
        client.force_login(chair)
        response = post_json(client, reverse('dashboard:paper_decision', args=[paper.pk]), {'final_decision': 'reject'})
        assert response.status_code == 409
        assert response.json()['error'] == 'no_reviews_submitted'

    def test_author_cannot_read_review(self, client, paper, author, reviewers):
        assignment = allocation.assign(paper.pk, reviewers[0].pk)
        client.force_login(author)
        response = client.get(reverse('dashboard:review_detail', args=[assignment['id']]))
        assert response.status_code == 409
        assert response.json()['error'] == 'conflict_of_interest'

def test_health_check(client):
    response = client.get('/health/')
    assert response.status_code == 200
    assert response.json() == {'status': 'ok', 'database': True}
