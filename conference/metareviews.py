"""
Meta-reviews: one summary per paper, written by a meta-reviewer or chair
for the chairs. Authors never reach the meta-review of their own paper and
no reviewer sees it; reads go through ``visibility.project_metareview``.
"""
import logging

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from . import visibility
from .exceptions import AlreadySubmitted, ConflictOfInterest, NotAuthorized, NotFound, ValidationError
from .models import Metareview, Notification, UserConferenceRole
from .roles import conference_roles, get_paper, get_user, is_author, person_dict, require_chair

logger = logging.getLogger(__name__)

METAREVIEW_FIELDS = (
    'summary', 'strengths', 'weaknesses', 'recommendation', 'confidence', 'review_consensus', 'disagreement_note',
)
REQUIRED_ON_SUBMIT = ('summary', 'strengths', 'weaknesses', 'recommendation', 'confidence')
RECOMMENDATIONS = tuple(value for value, _ in Metareview.RECOMMENDATION_CHOICES)

def metareview_dict(metareview):
    if metareview is None:
        return None
    paper = metareview.paper
    return {
        'id': metareview.pk,
        'paper': {'id': paper.pk, 'paper_id': paper.paper_id, 'title': paper.title, 'status': paper.status},
        'meta_reviewer': person_dict(metareview.meta_reviewer),
        'summary': metareview.summary,
        'strengths': metareview.strengths,
        'weaknesses': metareview.weaknesses,
        'recommendation': metareview.recommendation,
        'confidence': metareview.confidence,
        'review_consensus': metareview.review_consensus,
        'disagreement_note': metareview.disagreement_note,
        'submitted_at': metareview.submitted_at,
        'created_at': metareview.created_at,
        'updated_at': metareview.updated_at,
    }

def _clean(data):
    cleaned = {field: data[field] for field in METAREVIEW_FIELDS if data.get(field) is not None}
    if cleaned.get('recommendation') and cleaned['recommendation'] not in RECOMMENDATIONS:
        raise ValidationError(f"Recommendation must be one of: {', '.join(RECOMMENDATIONS)}.")
    if 'confidence' in cleaned:
        low, high = settings.REVIEW_CONFIDENCE_RANGE
        try:
            cleaned['confidence'] = int(cleaned['confidence'])
        except (TypeError, ValueError):
            raise ValidationError('Confidence must be a whole number.')
        if not low <= cleaned['confidence'] <= high:
            raise ValidationError(f'Confidence must be between {low} and {high}.')
    if 'review_consensus' in cleaned:
        cleaned['review_consensus'] = bool(cleaned['review_consensus'])
    return cleaned

def _metareview_role(user, paper):
    """Visibility role of ``user`` for meta-review data of ``paper``, or None."""
    if user.is_admin:
        return visibility.ADMIN
    if is_author(user.pk, paper.pk):
        raise ConflictOfInterest('Authors cannot access the meta-review of their own paper.')
    roles = conference_roles(user.pk, paper.conference_id)
    if 'chair' in roles:
        return visibility.CHAIR
    if 'meta_reviewer' in roles:
        return visibility.META_REVIEWER
    return None

def _load(metareview_id, for_update=False):
    qs = Metareview.objects.select_related('paper', 'paper__conference', 'meta_reviewer')
    if for_update:
        qs = qs.select_for_update(of=('self',))
    try:
        return qs.get(pk=metareview_id)
    except Metareview.DoesNotExist:
        raise NotFound('Meta-review not found.')

def _check_editor(metareview, user):
    if not user.is_admin and is_author(user.pk, metareview.paper_id):
        raise ConflictOfInterest('Authors cannot access the meta-review of their own paper.')
    if user.is_admin or metareview.meta_reviewer_id == user.pk:
        return
    if 'chair' in conference_roles(user.pk, metareview.paper.conference_id):
        return
    raise NotAuthorized('Only the meta-reviewer or a chair can change this meta-review.')

def create_metareview(paper_id, user_id, data):
    """
    Start the meta-review of a paper. Fields may be filled in later through
    ``update_metareview``; all of them are required to submit.

    Raises:
        ConflictOfInterest: the user wrote the paper.
        NotAuthorized: the user is neither meta-reviewer nor chair of the conference.
        ValidationError: a meta-review already exists, or a field is invalid.
    """
    cleaned = _clean(data)
    with transaction.atomic():
        paper = get_paper(paper_id, for_update=True)
        user = get_user(user_id)
        role = _metareview_role(user, paper)
        if role is None:
            raise NotAuthorized('Only meta-reviewers or chairs of this conference can write meta-reviews.')
        if Metareview.objects.filter(paper=paper).exists():
            raise ValidationError('A meta-review already exists for this paper.')
        metareview = Metareview.objects.create(paper=paper, meta_reviewer=user, **cleaned)
    logger.info(f"Meta-review {metareview.pk} started for paper {paper.pk} by user {user.pk}")
    return metareview_dict(metareview)

def update_metareview(metareview_id, user_id, data):
    cleaned = _clean(data)
    user = get_user(user_id)
    with transaction.atomic():
        metareview = _load(metareview_id, for_update=True)
        _check_editor(metareview, user)
        for field, value in cleaned.items():
            setattr(metareview, field, value)
        metareview.save()
    logger.info(f"Meta-review {metareview.pk} updated by user {user.pk}")
    return metareview_dict(metareview)

def submit_metareview(metareview_id, user_id):
    """Stamp ``submitted_at`` and tell the chairs. Only the meta-reviewer submits."""
    user = get_user(user_id)
    with transaction.atomic():
        metareview = _load(metareview_id, for_update=True)
        if metareview.meta_reviewer_id != user.pk:
            raise NotAuthorized('Only the meta-reviewer can submit this meta-review.')
        if metareview.submitted_at:
            raise AlreadySubmitted('The meta-review has already been submitted.')
        missing = [field for field in REQUIRED_ON_SUBMIT if getattr(metareview, field) in (None, '')]
        if missing:
            raise ValidationError(f"Fill in {', '.join(missing)} before submitting.")
        metareview.submitted_at = timezone.now()
        metareview.save(update_fields=['submitted_at', 'updated_at'])

        paper = metareview.paper
        chairs = UserConferenceRole.objects.filter(conference_id=paper.conference_id, role='chair').select_related('user')
        for membership in chairs:
            Notification.objects.create(
                recipient=membership.user,
                notification_type='metareview',
                title=f'Meta-review submitted for "{paper.title}"',
                message=f'{user.get_full_name() or user.username} submitted the meta-review of "{paper.title}".',
                related_paper=paper,
                related_conference=paper.conference,
            )
    logger.info(f"Meta-review {metareview.pk} submitted for paper {metareview.paper_id} by user {user.pk}")
    return metareview_dict(metareview)

def delete_metareview(metareview_id, user_id):
    user = get_user(user_id)
    with transaction.atomic():
        metareview = _load(metareview_id, for_update=True)
        _check_editor(metareview, user)
        if metareview.submitted_at:
            raise AlreadySubmitted('A submitted meta-review cannot be deleted.')
        data = metareview_dict(metareview)
        metareview.delete()
    logger.info(f"Meta-review {metareview_id} deleted by user {user.pk}")
    return data

def get_metareview(paper_id, user_id):
    """Meta-review of a paper, or None when none was started yet."""
    paper = get_paper(paper_id)
    user = get_user(user_id)
    role = _metareview_role(user, paper)
    if role is None:
        raise NotAuthorized('Only meta-reviewers or chairs of this conference can read meta-reviews.')
    metareview = Metareview.objects.select_related('paper', 'meta_reviewer').filter(paper=paper).first()
    return visibility.project_metareview(metareview_dict(metareview), role)

def get_metareviews_by_conference(conference_id, user_id):
    require_chair(user_id, conference_id)
    rows = (
        Metareview.objects.filter(paper__conference_id=conference_id)
        .select_related('paper', 'meta_reviewer')
        .order_by(F('submitted_at').desc(nulls_last=True), '-id')
    )
    return [metareview_dict(row) for row in rows]

def get_my_metareviews(user_id, conference_id=None):
    rows = Metareview.objects.filter(meta_reviewer_id=user_id).select_related('paper', 'meta_reviewer')
    if conference_id is not None:
        rows = rows.filter(paper__conference_id=conference_id)
    return [metareview_dict(row) for row in rows]
