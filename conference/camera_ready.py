import logging

from django.db import transaction
from django.utils import timezone

from .exceptions import NotAuthorized, NotFound, ValidationError
from .models import CameraReadyFile, Decision, Notification, PaperAuthor
from .roles import get_paper, get_user, is_author, is_chair_or_admin, require_chair

logger = logging.getLogger(__name__)

def _file_dict(crf):
    return {
        'id': crf.pk,
        'paper_id': crf.paper_id,
        'file_name': crf.file_name,
        'file_key': crf.file_key,
        'status': crf.status,
        'comment': crf.comment,
        'uploaded_at': crf.uploaded_at,
        'decided_at': crf.decided_at,
    }

def _notify_authors(paper, title, message):
    for author in PaperAuthor.objects.filter(paper=paper).select_related('user'):
        Notification.objects.create(
            recipient=author.user,
            notification_type='camera_ready',
            title=title,
            message=message,
            related_paper=paper,
            related_conference=paper.conference,
        )

def upload_camera_ready(paper_id, user_id, file_name, file_key):
    """
    Register a camera-ready file already stored under ``file_key``.

    Only authors of the paper (or chairs/admins on their behalf) can upload,
    and only once the paper has been accepted.
    """
    with transaction.atomic():
        paper = get_paper(paper_id, for_update=True)
        user = get_user(user_id)
        if not is_author(user.pk, paper.pk) and not is_chair_or_admin(user, paper.conference_id):
            raise NotAuthorized('Only authors or conference chairs can upload camera-ready files.')
        if not Decision.objects.filter(paper=paper, final_decision='accept').exists():
            raise ValidationError('Camera-ready files can only be uploaded for accepted papers.')
        crf = CameraReadyFile.objects.create(paper=paper, file_name=file_name, file_key=file_key)
    logger.info(f"Camera-ready file {crf.pk} uploaded for paper {paper.pk} by user {user.pk}")
    return _file_dict(crf)

def _latest_file(paper):
    crf = CameraReadyFile.objects.filter(paper=paper).order_by('-uploaded_at', '-id').first()
    if crf is None:
        raise NotFound('No camera-ready files uploaded for this paper.')
    return crf

def approve_camera_ready(paper_id, user_id):
    """Approve the most recent camera-ready file; the paper becomes camera_ready."""
    with transaction.atomic():
        paper = get_paper(paper_id, for_update=True)
        require_chair(user_id, paper.conference_id)
        crf = _latest_file(paper)
        crf.status = 'approved'
        crf.decided_at = timezone.now()
        crf.save(update_fields=['status', 'decided_at'])
        paper.status = 'camera_ready'
        paper.save(update_fields=['status'])
        _notify_authors(
            paper,
            f'Camera-ready approved for "{paper.title}"',
            f'The camera-ready version of "{paper.title}" has been approved.',
        )
    logger.info(f"Camera-ready file {crf.pk} approved for paper {paper.pk} by user {user_id}")
    return _file_dict(crf)

def reject_camera_ready(paper_id, user_id, comment):
    """Send the most recent camera-ready file back to the authors with a comment."""
    if not comment:
        raise ValidationError('A comment is required when rejecting a camera-ready file.')
    with transaction.atomic():
        paper = get_paper(paper_id, for_update=True)
        require_chair(user_id, paper.conference_id)
        crf = _latest_file(paper)
        crf.status = 'rejected'
        crf.comment = comment
        crf.decided_at = timezone.now()
        crf.save(update_fields=['status', 'comment', 'decided_at'])
        _notify_authors(
            paper,
            f'Camera-ready needs revision for "{paper.title}"',
            f'The camera-ready version of "{paper.title}" needs revision: {comment}',
        )
    logger.info(f"Camera-ready file {crf.pk} rejected for paper {paper.pk} by user {user_id}")
    return _file_dict(crf)
