import itertools

import pytest
from django.utils import timezone

from accounts.models import User
from conference.models import (
    Conference, Paper, PaperAuthor, Review, ReviewAssignment, ReviewerBid, ReviewerConflict, UserConferenceRole,
)

_counter = itertools.count(1)

@pytest.fixture
def make_user(db):
    def _make_user(username=None, **kwargs):
        n = next(_counter)
        username = username or f'user{n}'
        kwargs.setdefault('email', f'{username}@example.org')
        kwargs.setdefault('first_name', username.capitalize())
        kwargs.setdefault('last_name', 'Tester')
        return User.objects.create_user(username=username, password='pass1234', **kwargs)
    return _make_user

@pytest.fixture
def conference(db):
    return Conference.objects.create(name='Test Conference', acronym='TC', reviewers_per_paper=2)

@pytest.fixture
def add_member():
    def _add_member(user, conference, role='reviewer'):
        return UserConferenceRole.objects.create(user=user, conference=conference, role=role)
    return _add_member

@pytest.fixture
def make_paper(db):
    def _make_paper(conference, authors=(), title=None):
        paper = Paper.objects.create(conference=conference, title=title or f'Paper {next(_counter)}')
        for order, author in enumerate(authors):
            PaperAuthor.objects.create(paper=paper, user=author, order=order, is_corresponding=order == 0)
        return paper
    return _make_paper

@pytest.fixture
def chair(make_user, add_member, conference):
    user = make_user('chair')
    add_member(user, conference, 'chair')
    return user

@pytest.fixture
def author(make_user, add_member, conference):
    user = make_user('author')
    add_member(user, conference, 'author')
    return user

@pytest.fixture
def reviewers(make_user, add_member, conference):
    users = [make_user(f'reviewer{i}') for i in range(1, 4)]
    for user in users:
        add_member(user, conference, 'reviewer')
    return users

@pytest.fixture
def paper(make_paper, conference, author):
    return make_paper(conference, authors=[author], title='Double-blind paper')

@pytest.fixture
def site_admin(make_user):
    return make_user('root', is_superuser=True, is_staff=True)

@pytest.fixture
def make_review():
    """Assignment plus review row written directly, bypassing the services."""
    def _make_review(paper, reviewer, score=None, confidence=None, submitted=True, **fields):
        assignment = ReviewAssignment.objects.create(
            paper=paper, reviewer=reviewer, status='submitted' if submitted else 'draft'
        )
        review = Review.objects.create(
            assignment=assignment,
            score=score,
            confidence=confidence,
            submitted_at=timezone.now() if submitted else None,
            **fields,
        )
        return assignment, review
    return _make_review

@pytest.fixture
def bid():
    def _bid(paper, reviewer, value):
        return ReviewerBid.objects.create(paper=paper, reviewer=reviewer, bid=value)
    return _bid

@pytest.fixture
def conflict():
    def _conflict(paper, user):
        return ReviewerConflict.objects.create(paper=paper, user=user)
    return _conflict
