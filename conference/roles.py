"""
Role lookups. Roles are always re-derived from UserConferenceRole rows and
paper authorship, never taken from the client.
"""
from accounts.models import User
from .exceptions import NotAuthorized, NotFound
from .models import (
    Conference, Paper, PaperAuthor, ReviewAssignment, ReviewerConflict, UserConferenceRole,
    METAREVIEW_ROLES, REVIEWING_ROLES,
)
from . import visibility

def get_user(user_id):
    try:
        return User.objects.get(pk=user_id)
    except User.DoesNotExist:
        raise NotFound('User not found.')

def get_conference(conference_id):
    try:
        return Conference.objects.get(pk=conference_id)
    except Conference.DoesNotExist:
        raise NotFound('Conference not found.')

def get_paper(paper_id, for_update=False):
    qs = Paper.objects.select_related('conference')
    if for_update:
        qs = qs.select_for_update()
    try:
        return qs.get(pk=paper_id)
    except Paper.DoesNotExist:
        raise NotFound('Paper not found.')

def conference_roles(user_id, conference_id):
    return set(
        UserConferenceRole.objects.filter(user_id=user_id, conference_id=conference_id)
        .values_list('role', flat=True)
    )

def is_author(user_id, paper_id):
    return PaperAuthor.objects.filter(paper_id=paper_id, user_id=user_id).exists()

def has_reviewing_role(user_id, conference_id):
    return UserConferenceRole.objects.filter(
        user_id=user_id, conference_id=conference_id, role__in=REVIEWING_ROLES
    ).exists()

def has_metareview_role(user_id, conference_id):
    return UserConferenceRole.objects.filter(
        user_id=user_id, conference_id=conference_id, role__in=METAREVIEW_ROLES
    ).exists()

def is_chair_or_admin(user, conference_id):
    if user.is_admin:
        return True
    return 'chair' in conference_roles(user.pk, conference_id)

def require_chair(user_id, conference_id):
    """Raise NotAuthorized unless the user is an admin or chairs the conference."""
    user = get_user(user_id)
    if not is_chair_or_admin(user, conference_id):
        raise NotAuthorized('Only the chair of this conference can do this.')
    return user

def viewer_role_for(user, paper):
    """
    Relationship of ``user`` to ``paper`` for the visibility filter.

    Authorship wins over chairing so a chair never sees the reviews of a paper
    they wrote. Returns None when the user holds no reviewing role in the
    conference, or declared a conflict with the paper without being assigned
    to it.
    """
    if user.is_admin:
        return visibility.ADMIN
    if is_author(user.pk, paper.pk):
        return visibility.AUTHOR
    roles = conference_roles(user.pk, paper.conference_id)
    if 'chair' in roles:
        return visibility.CHAIR
    if ReviewAssignment.objects.filter(paper=paper, reviewer=user).exists():
        return visibility.ASSIGNED_REVIEWER
    if not roles & set(REVIEWING_ROLES):
        return None
    if ReviewerConflict.objects.filter(paper=paper, user=user).exists():
        return None
    return visibility.REVIEWER

def person_dict(user):
    if user is None:
        return None
    return {
        'id': user.pk,
        'email': user.email,
        'first_name': user.first_name,
        'last_name': user.last_name,
    }
