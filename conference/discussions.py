"""
Per-paper discussion thread between meta-reviewers and chairs. The thread is
created on first access; chairs can close and reopen it.
"""
import logging

from django.db import transaction
from django.db.models import Count
from django.utils import timezone

from .exceptions import ConflictOfInterest, NotAuthorized, NotFound, ValidationError
from .models import Discussion, DiscussionMessage
from .roles import get_paper, get_user, has_metareview_role, is_author, is_chair_or_admin, person_dict, require_chair

logger = logging.getLogger(__name__)

def _message_dict(message):
    return {
        'id': message.pk,
        'user': person_dict(message.user),
        'message': message.message,
        'is_internal': message.is_internal,
        'created_at': message.created_at,
    }

def _discussion_dict(discussion, messages=None):
    data = {
        'id': discussion.pk,
        'paper_id': discussion.paper_id,
        'status': discussion.status,
        'closed_at': discussion.closed_at,
        'closed_by': person_dict(discussion.closed_by),
        'created_at': discussion.created_at,
        'updated_at': discussion.updated_at,
    }
    if messages is not None:
        data['messages'] = [_message_dict(m) for m in messages]
    return data

def _check_participant(user, paper):
    if user.is_admin:
        return
    if is_author(user.pk, paper.pk):
        raise ConflictOfInterest('Authors cannot take part in the discussion of their own paper.')
    if not has_metareview_role(user.pk, paper.conference_id):
        raise NotAuthorized('Only meta-reviewers or chairs of this conference can join the discussion.')

def _load(discussion_id, for_update=False):
    qs = Discussion.objects.select_related('paper', 'paper__conference', 'closed_by')
    if for_update:
        qs = qs.select_for_update(of=('self',))
    try:
        return qs.get(pk=discussion_id)
    except Discussion.DoesNotExist:
        raise NotFound('Discussion not found.')

def get_discussion(paper_id, user_id):
    """Discussion of a paper with all its messages, oldest first."""
    paper = get_paper(paper_id)
    user = get_user(user_id)
    _check_participant(user, paper)
    discussion, created = Discussion.objects.get_or_create(paper=paper)
    if created:
        logger.info(f"Discussion {discussion.pk} opened for paper {paper.pk}")
    messages = discussion.messages.select_related('user')
    return _discussion_dict(discussion, messages)

def add_message(discussion_id, user_id, message, is_internal=True):
    if not message or not message.strip():
        raise ValidationError('Message cannot be empty.')
    user = get_user(user_id)
    with transaction.atomic():
        discussion = _load(discussion_id, for_update=True)
        _check_participant(user, discussion.paper)
        if discussion.status == 'closed':
            raise ValidationError('Cannot add messages to a closed discussion.')
        row = DiscussionMessage.objects.create(
            discussion=discussion, user=user, message=message, is_internal=is_internal,
        )
        discussion.save(update_fields=['updated_at'])
    logger.info(f"Message {row.pk} posted to discussion {discussion.pk} by user {user.pk}")
    return _message_dict(row)

def close_discussion(discussion_id, user_id):
    with transaction.atomic():
        discussion = _load(discussion_id, for_update=True)
        user = require_chair(user_id, discussion.paper.conference_id)
        if discussion.status == 'closed':
            raise ValidationError('Discussion is already closed.')
        discussion.status = 'closed'
        discussion.closed_at = timezone.now()
        discussion.closed_by = user
        discussion.save(update_fields=['status', 'closed_at', 'closed_by', 'updated_at'])
    logger.info(f"Discussion {discussion.pk} closed by user {user.pk}")
    return _discussion_dict(discussion)

def reopen_discussion(discussion_id, user_id):
    with transaction.atomic():
        discussion = _load(discussion_id, for_update=True)
        user = require_chair(user_id, discussion.paper.conference_id)
        if discussion.status == 'open':
            raise ValidationError('Discussion is already open.')
        discussion.status = 'open'
        discussion.closed_at = None
        discussion.closed_by = None
        discussion.save(update_fields=['status', 'closed_at', 'closed_by', 'updated_at'])
    logger.info(f"Discussion {discussion.pk} reopened by user {user.pk}")
    return _discussion_dict(discussion)

def get_discussions_by_conference(conference_id, user_id):
    """Chair overview: every discussion with its message count and latest message."""
    require_chair(user_id, conference_id)
    discussions = (
        Discussion.objects.filter(paper__conference_id=conference_id)
        .select_related('paper', 'closed_by')
        .annotate(message_count=Count('messages'))
        .order_by('-updated_at', '-id')
    )
    rows = []
    for discussion in discussions:
        data = _discussion_dict(discussion)
        data['paper'] = {'id': discussion.paper.pk, 'title': discussion.paper.title, 'status': discussion.paper.status}
        data['message_count'] = discussion.message_count
        latest = discussion.messages.select_related('user').order_by('-created_at', '-id').first()
        data['latest_message'] = _message_dict(latest) if latest else None
        rows.append(data)
    return rows

def delete_message(message_id, user_id):
    """Only the message's writer or a chair can delete it."""
    user = get_user(user_id)
    try:
        message = DiscussionMessage.objects.select_related('discussion__paper').get(pk=message_id)
    except DiscussionMessage.DoesNotExist:
        raise NotFound('Message not found.')
    if message.user_id != user.pk and not is_chair_or_admin(user, message.discussion.paper.conference_id):
        raise NotAuthorized('Only the writer of a message or a chair can delete it.')
    data = _message_dict(message)
    message.delete()
    logger.info(f"Message {message_id} deleted by user {user.pk}")
    return data
