import logging

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from .exceptions import AlreadySubmitted, ConflictOfInterest, NotAuthorized, NotFound, ValidationError
from .models import Review, ReviewAssignment
from .roles import conference_roles, get_user, is_author

logger = logging.getLogger(__name__)

REVIEW_FIELDS = ('score', 'confidence', 'summary', 'strengths', 'weaknesses', 'comments_to_author', 'comments_to_chair')

def _load_assignment(assignment_id, for_update=False):
    qs = ReviewAssignment.objects.select_related('paper', 'paper__conference', 'paper__track', 'reviewer')
    if for_update:
        qs = qs.select_for_update(of=('self',))
    try:
        return qs.get(pk=assignment_id)
    except ReviewAssignment.DoesNotExist:
        raise NotFound('Assignment not found.')

def _check_access(assignment, user, write=False):
    """Authors never reach a review of their own paper, not even as chair."""
    if is_author(user.pk, assignment.paper_id) and not user.is_admin:
        raise ConflictOfInterest('Authors cannot access reviews of their own papers.')
    if user.is_admin or assignment.reviewer_id == user.pk:
        return
    if not write and 'chair' in conference_roles(user.pk, assignment.paper.conference_id):
        return
    raise NotAuthorized('This review belongs to another reviewer.')

def _validate_range(name, value, bounds):
    if value is None:
        return None
    try:
        value = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{name.capitalize()} must be a whole number.')
    low, high = bounds
    if not low <= value <= high:
        raise ValidationError(f'{name.capitalize()} must be between {low} and {high}.')
    return value

def _clean(data):
    cleaned = {field: data.get(field) for field in REVIEW_FIELDS if data.get(field) is not None}
    if 'score' in cleaned:
        cleaned['score'] = _validate_range('score', cleaned['score'], settings.REVIEW_SCORE_RANGE)
    if 'confidence' in cleaned:
        cleaned['confidence'] = _validate_range('confidence', cleaned['confidence'], settings.REVIEW_CONFIDENCE_RANGE)
    return cleaned

def _review_dict(assignment, review, include_authors):
    paper = assignment.paper
    data = {
        'id': review.pk if review else None,
        'assignment_id': assignment.pk,
        'status': assignment.status,
        'due_date': assignment.due_date,
        'submitted_at': review.submitted_at if review else None,
        'paper': {
            'id': paper.pk,
            'paper_id': paper.paper_id,
            'title': paper.title,
            'abstract': paper.abstract,
            'track': paper.track.name if paper.track else None,
            'conference_id': paper.conference_id,
            'conference_name': paper.conference.name,
            'files': [
                {'id': f.pk, 'file_name': f.file_name, 'mime_type': f.mime_type, 'created_at': f.created_at}
                for f in paper.files.all()
            ],
        },
    }
    for field in REVIEW_FIELDS:
        data[field] = getattr(review, field) if review else None
    if include_authors:
        data['paper']['authors'] = [
            {'user_id': a.user_id, 'name': a.user.get_full_name() or a.user.username}
            for a in paper.authors.select_related('user')
        ]
    return data

def get_review(assignment_id, user_id):
    """
    Review form data of one assignment.

    Open to the assigned reviewer, chairs of the conference and admins. Author
    names are only included when the conference is not double-blind or the
    reader is a chair/admin.
    """
    user = get_user(user_id)
    assignment = _load_assignment(assignment_id)
    _check_access(assignment, user)
    review = Review.objects.filter(assignment=assignment).first()
    reader_is_chair = user.is_admin or 'chair' in conference_roles(user.pk, assignment.paper.conference_id)
    include_authors = reader_is_chair or not assignment.paper.conference.blind_review
    return _review_dict(assignment, review, include_authors)

def save_draft(assignment_id, user_id, data):
    """Create or update the review and mark the assignment as a draft."""
    user = get_user(user_id)
    cleaned = _clean(data)
    with transaction.atomic():
        assignment = _load_assignment(assignment_id, for_update=True)
        _check_access(assignment, user, write=True)
        if assignment.status == 'submitted':
            raise AlreadySubmitted()
        review, _ = Review.objects.get_or_create(assignment=assignment)
        for field, value in cleaned.items():
            setattr(review, field, value)
        review.save()
        assignment.status = 'draft'
        assignment.save(update_fields=['status'])
    logger.info(f"Review draft saved for assignment {assignment.pk} by user {user.pk}")
    return _review_dict(assignment, review, include_authors=False)

def submit_review(assignment_id, user_id, data):
    """
    Submit the review of an assignment. A submitted review can no longer be
    changed through this module.

    Raises:
        ValidationError: score or confidence missing or out of range, or the
            due date has passed (admins are exempt from the due date).
        AlreadySubmitted: the review was submitted before.
    """
    user = get_user(user_id)
    cleaned = _clean(data)
    with transaction.atomic():
        assignment = _load_assignment(assignment_id, for_update=True)
        _check_access(assignment, user, write=True)
        if assignment.status == 'submitted':
            raise AlreadySubmitted()
        now = timezone.now()
        if assignment.due_date and now > assignment.due_date and not user.is_admin:
            raise ValidationError('The review deadline has passed.')

        review, _ = Review.objects.get_or_create(assignment=assignment)
        for field, value in cleaned.items():
            setattr(review, field, value)
        if review.score is None or review.confidence is None:
            raise ValidationError('Score and confidence are required to submit a review.')
        review.submitted_at = now
        review.save()
        assignment.status = 'submitted'
        assignment.save(update_fields=['status'])
    logger.info(f"Review submitted for assignment {assignment.pk} (paper {assignment.paper_id}) by user {user.pk}")
    return _review_dict(assignment, review, include_authors=False)
