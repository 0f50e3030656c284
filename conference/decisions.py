"""
Paper stage, review statistics, timeline and accept/reject decisions.

The stage of a paper is never stored; it is derived on every read from the
decision, the approved camera-ready files and the submitted reviews.
"""
import logging

from django.db import transaction
from django.utils import timezone

from . import visibility
from .exceptions import ConflictOfInterest, NoReviewsSubmitted, NotAuthorized, ValidationError
from .metareviews import metareview_dict
from .models import CameraReadyFile, Decision, Metareview, Paper, ReviewAssignment
from .roles import get_conference, get_paper, get_user, is_author, person_dict, require_chair, viewer_role_for
from .signals import decision_made

logger = logging.getLogger(__name__)

VALID_DECISIONS = ('accept', 'reject')

SUBMITTED = 'submitted'
UNDER_REVIEW = 'under_review'
DECIDED = 'decided'
CAMERA_READY = 'camera_ready'

def derive_stage(final_decision, has_approved_camera_ready, has_submitted_review):
    """
    Args:
        final_decision (str | None): 'accept', 'reject' or None when undecided.
        has_approved_camera_ready (bool): an approved camera-ready file exists.
        has_submitted_review (bool): at least one review has a submission time.

    Returns:
        str: one of submitted, under_review, decided, camera_ready.
    """
    if final_decision == 'accept' and has_approved_camera_ready:
        return CAMERA_READY
    if final_decision is not None:
        return DECIDED
    if has_submitted_review:
        return UNDER_REVIEW
    return SUBMITTED

def _decision_for(paper):
    return Decision.objects.filter(paper=paper).select_related('decided_by').first()

def _metareview_for(paper):
    return Metareview.objects.filter(paper=paper).select_related('paper', 'meta_reviewer').first()

def determine_stage(paper):
    decision = _decision_for(paper)
    return derive_stage(
        decision.final_decision if decision else None,
        CameraReadyFile.objects.filter(paper=paper, status='approved').exists(),
        ReviewAssignment.objects.filter(paper=paper, review__submitted_at__isnull=False).exists(),
    )

def assignment_rows(paper):
    """Assignments of a paper with their reviews, as plain dicts."""
    rows = []
    assignments = ReviewAssignment.objects.filter(paper=paper).select_related('reviewer', 'review')
    for assignment in assignments:
        review = getattr(assignment, 'review', None)
        rows.append({
            'id': assignment.pk,
            'paper_id': assignment.paper_id,
            'reviewer_id': assignment.reviewer_id,
            'reviewer': person_dict(assignment.reviewer),
            'status': assignment.status,
            'due_date': assignment.due_date,
            'created_at': assignment.created_at,
            'review': {
                'id': review.pk,
                'score': review.score,
                'confidence': review.confidence,
                'summary': review.summary,
                'strengths': review.strengths,
                'weaknesses': review.weaknesses,
                'comments_to_author': review.comments_to_author,
                'comments_to_chair': review.comments_to_chair,
                'submitted_at': review.submitted_at,
            } if review else None,
        })
    return rows

def build_review_stats(rows):
    """
    Score summary over assignment rows. Only complete reviews (score and
    confidence both present) count towards the averages.
    """
    completed = [
        row['review'] for row in rows
        if row['review'] and row['review']['score'] is not None and row['review']['confidence'] is not None
    ]
    count = len(completed)
    average_score = sum(r['score'] for r in completed) / count if count else 0
    average_confidence = sum(r['confidence'] for r in completed) / count if count else 0

    scores = []
    for row in rows:
        reviewer = row['reviewer'] or {}
        review = row['review'] or {}
        scores.append({
            'reviewer_id': row['reviewer_id'],
            'reviewer_name': f"{reviewer.get('first_name', '')} {reviewer.get('last_name', '')}".strip(),
            'reviewer_email': reviewer.get('email'),
            'score': review.get('score'),
            'confidence': review.get('confidence'),
            'submitted_at': review.get('submitted_at'),
        })

    return {
        'scores': scores,
        'average_score': round(average_score, 2),
        'average_confidence': round(average_confidence, 2),
        'review_count': len(rows),
        'completed_review_count': count,
        'pending_review_count': len(rows) - count,
    }

def build_timeline(paper, rows=None, decision=None):
    """Dated events in the life of a paper, oldest first."""
    if rows is None:
        rows = assignment_rows(paper)
    events = [{
        'type': 'submitted',
        'timestamp': paper.submitted_at,
        'description': 'Paper submitted',
        'metadata': {},
    }]
    for f in paper.files.all():
        events.append({
            'type': 'file_uploaded',
            'timestamp': f.created_at,
            'description': f'File uploaded: {f.file_name}',
            'metadata': {'file_name': f.file_name},
        })
    for row in rows:
        review = row['review']
        if review and review['submitted_at']:
            reviewer = row['reviewer']
            name = f"{reviewer['first_name']} {reviewer['last_name']}".strip() or reviewer['email']
            events.append({
                'type': 'review_submitted',
                'timestamp': review['submitted_at'],
                'description': f'Review submitted by {name}',
                'metadata': {'reviewer_id': row['reviewer_id'], 'reviewer_name': name},
            })
    if decision is not None:
        events.append({
            'type': 'decision',
            'timestamp': decision.decided_at,
            'description': f"Paper {'accepted' if decision.final_decision == 'accept' else 'rejected'}",
            'metadata': {'final_decision': decision.final_decision},
        })
    for crf in paper.camera_ready_files.all():
        events.append({
            'type': 'camera_ready_uploaded',
            'timestamp': crf.uploaded_at,
            'description': f'Camera-ready file uploaded: {crf.file_name}',
            'metadata': {'file_name': crf.file_name, 'status': crf.status},
        })
        if crf.status == 'approved' and crf.decided_at:
            events.append({
                'type': 'camera_ready_approved',
                'timestamp': crf.decided_at,
                'description': f'Camera-ready file approved: {crf.file_name}',
                'metadata': {'file_name': crf.file_name},
            })
    # sorted() is stable, so events sharing a timestamp keep the order above
    return sorted(events, key=lambda e: e['timestamp'])

def _decision_dict(decision):
    if decision is None:
        return None
    return {
        'id': decision.pk,
        'paper_id': decision.paper_id,
        'final_decision': decision.final_decision,
        'comment': decision.comment,
        'average_score': decision.average_score,
        'average_confidence': decision.average_confidence,
        'review_count': decision.review_count,
        'decided_at': decision.decided_at,
        'decided_by': person_dict(decision.decided_by),
    }

def _paper_summary(paper):
    return {
        'id': paper.pk,
        'paper_id': paper.paper_id,
        'title': paper.title,
        'status': paper.status,
        'submitted_at': paper.submitted_at,
        'conference': {'id': paper.conference.pk, 'name': paper.conference.name},
    }

def make_decision(paper_id, user_id, final_decision, comment=None):
    """
    Accept or reject a paper.

    The decision snapshots the averages of the complete reviews at the time it
    is made. Deciding again overwrites the previous decision and its audit
    fields. Authors are notified through ``decision_made`` after commit.

    Raises:
        ValidationError: ``final_decision`` is not accept/reject.
        NotFound: unknown paper or user.
        NotAuthorized: the user is neither admin nor chair of the conference.
        ConflictOfInterest: a chair tries to decide on their own paper.
        NoReviewsSubmitted: the paper has no complete review yet.
    """
    if final_decision not in VALID_DECISIONS:
        raise ValidationError(f"Decision must be one of: {', '.join(VALID_DECISIONS)}.")

    with transaction.atomic():
        paper = get_paper(paper_id, for_update=True)
        user = get_user(user_id)
        try:
            require_chair(user.pk, paper.conference_id)
        except NotAuthorized:
            logger.warning(f"Refused decision on paper {paper.pk}: user {user.pk} is not a chair")
            raise
        if is_author(user.pk, paper.pk) and not user.is_admin:
            logger.warning(f"Refused decision on paper {paper.pk}: user {user.pk} is an author")
            raise ConflictOfInterest('You cannot decide on your own paper.')

        rows = assignment_rows(paper)
        stats = build_review_stats(rows)
        if stats['completed_review_count'] == 0:
            raise NoReviewsSubmitted()

        decision, created = Decision.objects.update_or_create(
            paper=paper,
            defaults={
                'final_decision': final_decision,
                'comment': comment,
                'average_score': stats['average_score'],
                'average_confidence': stats['average_confidence'],
                'review_count': stats['completed_review_count'],
                'decided_at': timezone.now(),
                'decided_by': user,
            },
        )
        paper.status = 'accepted' if final_decision == 'accept' else 'rejected'
        paper.save(update_fields=['status'])
        transaction.on_commit(
            lambda: decision_made.send(sender=Decision, decision=decision, created=created)
        )

    logger.info(f"Decision recorded: paper {paper.pk} -> {final_decision} by user {user.pk}")
    return {
        'paper': _paper_summary(paper),
        'decision': _decision_dict(decision),
        'stage': determine_stage(paper),
        'timeline': build_timeline(paper, rows, decision),
        'review_stats': stats,
        'decided_by': person_dict(user),
    }

def get_paper_decision_info(paper_id, requester_id):
    """
    Decision page data for a paper, with or without a decision, redacted for
    the requester.

    Raises:
        NotFound: unknown paper or user.
        NotAuthorized: the requester is not an admin, an author of the
            paper or a conference reviewer without a conflict on it.
    """
    paper = get_paper(paper_id)
    user = get_user(requester_id)
    viewer_role = viewer_role_for(user, paper)
    if viewer_role is None:
        raise NotAuthorized('You do not have access to this paper.')

    decision = _decision_for(paper)
    rows = assignment_rows(paper)
    stage = determine_stage(paper)
    raw = {'assignments': rows, 'bids': []}

    return {
        'paper': _paper_summary(paper),
        'decision': visibility.project_decision(_decision_dict(decision), viewer_role),
        'has_decision': decision is not None,
        'stage': stage,
        'timeline': visibility.project_timeline(build_timeline(paper, rows, decision), viewer_role),
        'review_stats': visibility.project_review_stats(build_review_stats(rows), viewer_role, user.pk),
        'reviews': visibility.project_paper(raw, viewer_role, stage, user.pk)['reviews'],
        'metareview': visibility.project_metareview(metareview_dict(_metareview_for(paper)), viewer_role),
        'is_author': viewer_role == visibility.AUTHOR,
        'can_see_full_details': visibility.can_see_full_details(viewer_role),
    }

def get_decisions_by_conference(conference_id):
    """All decisions of a conference with who made them and when."""
    conference = get_conference(conference_id)
    decisions = (
        Decision.objects.filter(paper__conference=conference)
        .select_related('paper', 'decided_by')
        .order_by('-decided_at', '-id')
    )
    rows = []
    for decision in decisions:
        data = _decision_dict(decision)
        data['paper'] = {
            'id': decision.paper.pk,
            'paper_id': decision.paper.paper_id,
            'title': decision.paper.title,
            'status': decision.paper.status,
        }
        rows.append(data)
    undecided = Paper.objects.filter(conference=conference, decision__isnull=True).count()
    return {
        'conference_id': conference.pk,
        'decisions': rows,
        'summary': {
            'accepted': sum(1 for r in rows if r['final_decision'] == 'accept'),
            'rejected': sum(1 for r in rows if r['final_decision'] == 'reject'),
            'undecided': undecided,
        },
    }
