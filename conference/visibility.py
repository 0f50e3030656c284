"""
Double-blind projection of paper, review, bid and decision data.

Everything here is a pure function over plain dicts: it takes the raw
aggregate built by the read paths, the requester's relationship to the paper
and the paper's derived stage, and returns a redacted copy. Nothing in this
module touches the database, so each read path builds its aggregate first and
then passes it through the matching ``project_*`` function.

Rules:

* chair/admin see everything;
* authors see nothing about reviews or bids before a decision, and afterwards
  only the ``comments_to_author`` text of submitted reviews, with the reviewer
  replaced by the anonymous placeholder;
* peer reviewers see assignments, reviews and bids with identities replaced
  by the placeholder, except for their own rows, and never another
  reviewer's ``comments_to_chair`` or unsubmitted draft (its scores
  included). Members without a reviewing role get no view at all. When
  the conference runs blind review the author list is withheld from them too.
"""
import copy

from django.conf import settings

ADMIN = 'admin'
CHAIR = 'chair'
AUTHOR = 'author'
ASSIGNED_REVIEWER = 'assigned_reviewer'
REVIEWER = 'reviewer'
META_REVIEWER = 'meta_reviewer'

VIEWER_ROLES = (ADMIN, CHAIR, AUTHOR, ASSIGNED_REVIEWER, REVIEWER)
FULL_VIEW_ROLES = frozenset({ADMIN, CHAIR})
METAREVIEW_VIEW_ROLES = frozenset({ADMIN, CHAIR, META_REVIEWER})
DECIDED_STAGES = frozenset({'decided', 'camera_ready'})

def anonymous_id():
    return getattr(settings, 'ANONYMOUS_REVIEWER_ID', 'anonymous')

def can_see_full_details(viewer_role):
    return viewer_role in FULL_VIEW_ROLES

def _anonymous_reviewer():
    return {'id': anonymous_id()}

def _is_own(row, viewer_id):
    return viewer_id is not None and row.get('reviewer_id') == viewer_id

def _author_assignment(assignment):
    review = assignment.get('review') or {}
    return {
        'reviewer_id': anonymous_id(),
        'reviewer': _anonymous_reviewer(),
        'review': {'comments_to_author': review.get('comments_to_author')},
    }

def _visible_to_author(assignment):
    review = assignment.get('review')
    if not review or not review.get('submitted_at'):
        return False
    return bool(review.get('comments_to_author'))

def _peer_assignment(assignment, viewer_id):
    row = copy.deepcopy(assignment)
    if _is_own(assignment, viewer_id):
        return row
    row['reviewer_id'] = anonymous_id()
    row['reviewer'] = _anonymous_reviewer()
    if row.get('review'):
        if not row['review'].get('submitted_at'):
            # another reviewer's draft
            row['review'] = None
        else:
            row['review'].pop('comments_to_chair', None)
    return row

def _peer_bid(bid, viewer_id):
    row = copy.deepcopy(bid)
    if not _is_own(bid, viewer_id):
        row['reviewer_id'] = anonymous_id()
        row['reviewer'] = _anonymous_reviewer()
    return row

def _reviews_from(assignments):
    reviews = []
    for assignment in assignments:
        if assignment.get('review'):
            review = dict(assignment['review'])
            review['reviewer_id'] = assignment['reviewer_id']
            reviews.append(review)
    return reviews

def project_paper(raw, viewer_role, stage, viewer_id=None):
    """
    Redact a paper aggregate for one requester.

    Args:
        raw (dict): paper aggregate with ``assignments`` (each carrying
            ``reviewer_id``, ``reviewer`` and an optional ``review`` dict) and
            ``bids`` (each carrying ``reviewer_id`` and ``reviewer``).
        viewer_role (str): one of VIEWER_ROLES.
        stage (str): derived paper stage.
        viewer_id: primary key of the requester, used to keep their own rows.

    Returns:
        dict: a new aggregate; ``raw`` is left untouched. A ``reviews`` list
        is derived from the projected assignments.
    """
    view = copy.deepcopy(raw)
    assignments = raw.get('assignments', [])
    bids = raw.get('bids', [])

    if viewer_role in FULL_VIEW_ROLES:
        pass
    elif viewer_role == AUTHOR:
        if stage in DECIDED_STAGES:
            view['assignments'] = [_author_assignment(a) for a in assignments if _visible_to_author(a)]
        else:
            view['assignments'] = []
        view['bids'] = []
    else:
        view['assignments'] = [_peer_assignment(a, viewer_id) for a in assignments]
        view['bids'] = [_peer_bid(b, viewer_id) for b in bids]
        if raw.get('blind_review') and 'authors' in view:
            view['authors'] = []

    view['reviews'] = _reviews_from(view.get('assignments', []))
    return view

def _average(values):
    return round(sum(values) / len(values), 2) if values else 0

def project_review_stats(stats, viewer_role, viewer_id=None):
    """
    Authors get counts only. Peers get scores without identities, minus the
    scores of other reviewers' unsubmitted drafts; their averages are taken
    over what is left.
    """
    view = copy.deepcopy(stats)
    if viewer_role in FULL_VIEW_ROLES:
        return view
    if viewer_role == AUTHOR:
        view['scores'] = []
        view['average_score'] = 0
        view['average_confidence'] = 0
        return view
    for row in view['scores']:
        if _is_own(row, viewer_id):
            continue
        row['reviewer_id'] = anonymous_id()
        row['reviewer_name'] = None
        row['reviewer_email'] = None
        if not row.get('submitted_at'):
            row['score'] = None
            row['confidence'] = None
    complete = [r for r in view['scores'] if r['score'] is not None and r['confidence'] is not None]
    view['average_score'] = _average([r['score'] for r in complete])
    view['average_confidence'] = _average([r['confidence'] for r in complete])
    return view

def project_timeline(events, viewer_role):
    """Drop reviewer identity from review events for anyone but chairs."""
    if viewer_role in FULL_VIEW_ROLES:
        return copy.deepcopy(events)
    projected = []
    for event in events:
        event = copy.deepcopy(event)
        if event['type'] == 'review_submitted':
            event['description'] = 'Review submitted'
            event['metadata'] = {}
        projected.append(event)
    return projected

def project_decision(decision, viewer_role):
    """Authors learn the outcome, not the chair's comment or score snapshot."""
    if decision is None:
        return None
    view = copy.deepcopy(decision)
    if viewer_role == AUTHOR:
        view['comment'] = None
        view['average_score'] = None
        view['average_confidence'] = None
        view['review_count'] = None
        view.pop('decided_by', None)
    return view

def project_metareview(metareview, viewer_role):
    """Meta-reviews are for chairs, admins and meta-reviewers only."""
    if metareview is None or viewer_role not in METAREVIEW_VIEW_ROLES:
        return None
    return copy.deepcopy(metareview)
