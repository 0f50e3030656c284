import logging

from django.db import transaction

from .models import ReviewerConflict
from .roles import get_paper, get_user

logger = logging.getLogger(__name__)

def declare_conflict(paper_id, user_id):
    """
    Record that ``user_id`` must not review ``paper_id``.

    Idempotent: declaring the same pair twice returns the existing row. A bid
    the user already placed on the paper is not deleted, it simply stops
    counting for every reader (see ``ReviewerBid.objects.live()``).
    """
    with transaction.atomic():
        paper = get_paper(paper_id, for_update=True)
        user = get_user(user_id)
        conflict, created = ReviewerConflict.objects.get_or_create(paper=paper, user=user)
    if created:
        logger.info(f"Conflict declared: user {user.pk} on paper {paper.pk}")
    return conflict

def retract_conflict(paper_id, user_id):
    """Remove a declared conflict. Returns True when a row was deleted."""
    with transaction.atomic():
        paper = get_paper(paper_id, for_update=True)
        deleted, _ = ReviewerConflict.objects.filter(paper=paper, user_id=user_id).delete()
    if deleted:
        logger.info(f"Conflict retracted: user {user_id} on paper {paper.pk}")
    return bool(deleted)

def has_conflict(paper_id, user_id):
    return ReviewerConflict.objects.filter(paper_id=paper_id, user_id=user_id).exists()

def conflicted_user_ids(paper_id):
    return set(ReviewerConflict.objects.filter(paper_id=paper_id).values_list('user_id', flat=True))

def get_conflicts_for_paper(paper_id):
    paper = get_paper(paper_id)
    conflicts = ReviewerConflict.objects.filter(paper=paper).select_related('user').order_by('created_at', 'id')
    return [
        {
            'id': conflict.pk,
            'paper_id': paper.pk,
            'user_id': conflict.user_id,
            'user_name': conflict.user.get_full_name() or conflict.user.username,
            'user_email': conflict.user.email,
            'created_at': conflict.created_at,
        }
        for conflict in conflicts
    ]
