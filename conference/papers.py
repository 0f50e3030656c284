from . import visibility
from .decisions import assignment_rows, determine_stage
from .exceptions import NotAuthorized
from .models import ReviewerBid
from .roles import get_paper, get_user, viewer_role_for

def build_paper_aggregate(paper):
    """Everything known about a paper, unredacted."""
    bids = ReviewerBid.objects.live().filter(paper=paper).select_related('reviewer').order_by('id')
    return {
        'id': paper.pk,
        'paper_id': paper.paper_id,
        'title': paper.title,
        'abstract': paper.abstract,
        'keywords': paper.keywords,
        'status': paper.status,
        'submitted_at': paper.submitted_at,
        'conference': {'id': paper.conference.pk, 'name': paper.conference.name},
        'track': paper.track.name if paper.track else None,
        'blind_review': paper.conference.blind_review,
        'authors': [
            {
                'user_id': a.user_id,
                'name': a.user.get_full_name() or a.user.username,
                'email': a.user.email,
                'order': a.order,
                'is_corresponding': a.is_corresponding,
            }
            for a in paper.authors.select_related('user')
        ],
        'files': [
            {'id': f.pk, 'file_name': f.file_name, 'mime_type': f.mime_type, 'created_at': f.created_at}
            for f in paper.files.all()
        ],
        'assignments': assignment_rows(paper),
        'bids': [
            {
                'id': bid.pk,
                'reviewer_id': bid.reviewer_id,
                'reviewer': {
                    'id': bid.reviewer.pk,
                    'email': bid.reviewer.email,
                    'first_name': bid.reviewer.first_name,
                    'last_name': bid.reviewer.last_name,
                },
                'bid': bid.bid,
                'updated_at': bid.updated_at,
            }
            for bid in bids
        ],
    }

def get_paper_view(paper_id, requester_id):
    """Paper detail as the requester is allowed to see it."""
    paper = get_paper(paper_id)
    user = get_user(requester_id)
    viewer_role = viewer_role_for(user, paper)
    if viewer_role is None:
        raise NotAuthorized('You do not have access to this paper.')
    stage = determine_stage(paper)
    view = visibility.project_paper(build_paper_aggregate(paper), viewer_role, stage, user.pk)
    view['stage'] = stage
    view['viewer_role'] = viewer_role
    return view
