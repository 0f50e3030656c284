import logging

from django.db import transaction

from .exceptions import ConflictOfInterest, NotAMember, ValidationError
from .models import Paper, ReviewerBid, ReviewerConflict
from .roles import get_conference, get_paper, get_user, has_reviewing_role, is_author

logger = logging.getLogger(__name__)

BID_VALUES = tuple(value for value, _ in ReviewerBid.BID_CHOICES)

def _bid_dict(bid):
    return {
        'id': bid.pk,
        'paper_id': bid.paper_id,
        'reviewer_id': bid.reviewer_id,
        'bid': bid.bid,
        'created_at': bid.created_at,
        'updated_at': bid.updated_at,
    }

def submit_bid(paper_id, reviewer_id, bid):
    """
    Create or replace the bid of ``reviewer_id`` on ``paper_id``.

    The paper row stays locked from the authorship check to the write, so a
    concurrent author change or conflict declaration cannot slip in between.

    Raises:
        ValidationError: unknown bid value.
        NotFound: unknown paper or user.
        ConflictOfInterest: the reviewer authored the paper or declared a conflict.
        NotAMember: the reviewer holds no reviewing role in the conference.
    """
    if bid not in BID_VALUES:
        raise ValidationError(f"Bid must be one of: {', '.join(BID_VALUES)}.")

    with transaction.atomic():
        paper = get_paper(paper_id, for_update=True)
        reviewer = get_user(reviewer_id)
        if not paper.conference.paper_bidding_enabled:
            raise ValidationError('Bidding is closed for this conference.')
        if is_author(reviewer.pk, paper.pk):
            logger.warning(f"Refused bid: user {reviewer.pk} is an author of paper {paper.pk}")
            raise ConflictOfInterest('Authors cannot bid on their own paper.')
        if not has_reviewing_role(reviewer.pk, paper.conference_id):
            logger.warning(f"Refused bid: user {reviewer.pk} is not a reviewer in conference {paper.conference_id}")
            raise NotAMember('Only reviewers of this conference can bid.')
        if ReviewerConflict.objects.filter(paper=paper, user=reviewer).exists():
            logger.warning(f"Refused bid: user {reviewer.pk} declared a conflict on paper {paper.pk}")
            raise ConflictOfInterest('You declared a conflict of interest with this paper.')
        row, created = ReviewerBid.objects.update_or_create(
            paper=paper, reviewer=reviewer, defaults={'bid': bid}
        )
    logger.info(f"Bid {'placed' if created else 'updated'}: user {reviewer.pk} -> paper {paper.pk} ({bid})")
    return _bid_dict(row)

def get_bid(paper_id, reviewer_id):
    """Current live bid of the reviewer on the paper, or None."""
    get_paper(paper_id)
    row = ReviewerBid.objects.live().filter(paper_id=paper_id, reviewer_id=reviewer_id).first()
    return _bid_dict(row) if row else None

def get_my_bids(reviewer_id):
    rows = (
        ReviewerBid.objects.live()
        .filter(reviewer_id=reviewer_id)
        .select_related('paper', 'paper__conference')
        .order_by('-updated_at', '-id')
    )
    bids = []
    for row in rows:
        data = _bid_dict(row)
        data['paper'] = {
            'id': row.paper.pk,
            'title': row.paper.title,
            'conference_id': row.paper.conference_id,
            'conference_name': row.paper.conference.name,
        }
        bids.append(data)
    return bids

def get_papers_for_bidding(conference_id, reviewer_id):
    """
    Papers of the conference a reviewer may bid on, with their current bid.

    Papers the reviewer authored are left out; papers they declared a conflict
    with are listed with ``has_conflict`` set so the UI can show why no bid
    is possible.
    """
    conference = get_conference(conference_id)
    if not has_reviewing_role(reviewer_id, conference.pk):
        raise NotAMember('Only reviewers of this conference can bid.')

    papers = (
        Paper.objects.filter(conference=conference)
        .exclude(authors__user_id=reviewer_id)
        .select_related('track')
        .order_by('id')
    )
    bids = {
        row.paper_id: row.bid
        for row in ReviewerBid.objects.live().filter(paper__conference=conference, reviewer_id=reviewer_id)
    }
    conflicts = set(
        ReviewerConflict.objects.filter(paper__conference=conference, user_id=reviewer_id)
        .values_list('paper_id', flat=True)
    )
    return [
        {
            'id': paper.pk,
            'paper_id': paper.paper_id,
            'title': paper.title,
            'abstract': paper.abstract,
            'keywords': paper.keywords,
            'track': paper.track.name if paper.track else None,
            'my_bid': bids.get(paper.pk),
            'has_conflict': paper.pk in conflicts,
        }
        for paper in papers
    ]

def get_conference_bidding_matrix(conference_id):
    """Chair overview of every live bid in a conference."""
    conference = get_conference(conference_id)
    papers = list(Paper.objects.filter(conference=conference).order_by('id'))
    rows = (
        ReviewerBid.objects.live()
        .filter(paper__conference=conference)
        .select_related('reviewer')
        .order_by('paper_id', 'reviewer_id')
    )

    by_paper = {paper.pk: [] for paper in papers}
    by_reviewer = {}
    totals = {value: 0 for value in BID_VALUES}
    for row in rows:
        by_paper[row.paper_id].append({
            'reviewer_id': row.reviewer_id,
            'reviewer_name': row.reviewer.get_full_name() or row.reviewer.username,
            'bid': row.bid,
        })
        counts = by_reviewer.setdefault(row.reviewer_id, {
            'reviewer_id': row.reviewer_id,
            'reviewer_name': row.reviewer.get_full_name() or row.reviewer.username,
            'high': 0, 'medium': 0, 'low': 0, 'conflict': 0, 'total': 0,
        })
        counts[row.bid] += 1
        counts['total'] += 1
        totals[row.bid] += 1

    return {
        'conference_id': conference.pk,
        'papers': [
            {
                'id': paper.pk,
                'paper_id': paper.paper_id,
                'title': paper.title,
                'bids': by_paper[paper.pk],
            }
            for paper in papers
        ],
        'reviewers': sorted(by_reviewer.values(), key=lambda r: r['reviewer_id']),
        'summary': {
            'total_papers': len(papers),
            'papers_without_bids': sum(1 for bids in by_paper.values() if not bids),
            'total_bids': sum(totals.values()),
            **totals,
        },
    }
