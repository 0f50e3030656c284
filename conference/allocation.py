"""
Reviewer allocation.

Manual and automatic assignment share one guarded write path,
``_create_assignment``: it locks the paper row, re-checks eligibility and
creates the (paper, reviewer) row with ``get_or_create`` so concurrent callers
end up with a single assignment.

The automatic policy is greedy and deterministic:

* eligible reviewers of a paper are the conference members holding a reviewing
  role, minus its authors, minus declared conflicts, minus reviewers who bid
  ``conflict``, minus reviewers already assigned to it;
* papers with the fewest eligible reviewers are served first (ties by pk);
* for each paper, candidates are taken by lowest current load in the
  conference, then strongest bid (high > medium > no bid > low), then earliest
  membership, then user pk.
"""
import logging
from collections import Counter, defaultdict

from django.conf import settings
from django.db import transaction
from django.db.models import Count, Min, Q

from .exceptions import AlreadySubmitted, ConflictOfInterest, NotAMember, NotFound, ReviewWorkflowError, ValidationError
from .models import (
    Notification, Paper, PaperAuthor, ReviewAssignment, ReviewerBid, ReviewerConflict,
    UserConferenceRole, REVIEWING_ROLES,
)
from .roles import get_conference, get_paper, get_user, has_reviewing_role, is_author

logger = logging.getLogger(__name__)

BID_RANK = {'high': 3, 'medium': 2, None: 1, 'low': 0}

def _check_eligibility(paper, reviewer):
    if is_author(reviewer.pk, paper.pk):
        raise ConflictOfInterest('Authors cannot review their own paper.')
    if not has_reviewing_role(reviewer.pk, paper.conference_id):
        raise NotAMember('Only reviewers of this conference can be assigned.')
    if ReviewerConflict.objects.filter(paper=paper, user=reviewer).exists():
        raise ConflictOfInterest('The reviewer declared a conflict of interest with this paper.')
    if ReviewerBid.objects.filter(paper=paper, reviewer=reviewer, bid='conflict').exists():
        raise ConflictOfInterest('The reviewer bid "conflict" on this paper.')

def _create_assignment(paper_id, reviewer_id, due_date=None):
    with transaction.atomic():
        paper = get_paper(paper_id, for_update=True)
        reviewer = get_user(reviewer_id)
        _check_eligibility(paper, reviewer)
        assignment, created = ReviewAssignment.objects.get_or_create(
            paper=paper,
            reviewer=reviewer,
            defaults={
                'status': 'not_started',
                'due_date': due_date or paper.conference.review_deadline,
            },
        )
        if created:
            if paper.status == 'submitted':
                paper.status = 'under_review'
                paper.save(update_fields=['status'])
            Notification.objects.create(
                recipient=reviewer,
                notification_type='paper_assignment',
                title='Paper Assignment',
                message=f'You have been assigned to review the paper "{paper.title}" for {paper.conference.name}.',
                related_paper=paper,
                related_conference=paper.conference,
            )
    return assignment, created

def _assignment_dict(assignment):
    return {
        'id': assignment.pk,
        'paper_id': assignment.paper_id,
        'reviewer_id': assignment.reviewer_id,
        'status': assignment.status,
        'due_date': assignment.due_date,
        'created_at': assignment.created_at,
    }

def assign(paper_id, reviewer_id, due_date=None):
    """
    Assign one reviewer to one paper.

    Assigning a pair that is already assigned returns the existing row.

    Raises:
        NotFound: unknown paper or user.
        ConflictOfInterest: the reviewer is an author, declared a conflict or
            bid ``conflict``.
        NotAMember: the reviewer holds no reviewing role in the conference.
    """
    try:
        assignment, created = _create_assignment(paper_id, reviewer_id, due_date)
    except (ConflictOfInterest, NotAMember) as exc:
        logger.warning(f"Refused assignment of user {reviewer_id} to paper {paper_id}: {exc.message}")
        raise
    if created:
        logger.info(f"Assigned reviewer {reviewer_id} to paper {paper_id}")
    data = _assignment_dict(assignment)
    data['created'] = created
    return data

def unassign(assignment_id):
    """Delete an assignment whose review has not been submitted yet."""
    with transaction.atomic():
        try:
            assignment = ReviewAssignment.objects.select_for_update().get(pk=assignment_id)
        except ReviewAssignment.DoesNotExist:
            raise NotFound('Assignment not found.')
        if assignment.status == 'submitted':
            raise AlreadySubmitted('Cannot remove an assignment whose review was submitted.')
        data = _assignment_dict(assignment)
        assignment.delete()
    logger.info(f"Removed assignment {assignment_id} (reviewer {data['reviewer_id']}, paper {data['paper_id']})")
    return data

def _normalise_target(target_per_paper, conference):
    if target_per_paper is None:
        target_per_paper = conference.reviewers_per_paper or settings.DEFAULT_REVIEWERS_PER_PAPER
    try:
        target = int(target_per_paper)
    except (TypeError, ValueError):
        raise ValidationError('Reviewers per paper must be a whole number.')
    if target < 1:
        raise ValidationError('Reviewers per paper must be at least 1.')
    return target

def auto_assign(conference_id, target_per_paper=None):
    """
    Fill every paper of a conference up to ``target_per_paper`` reviewers.

    Papers that cannot reach the target are reported in ``shortfalls``; the
    run itself never fails because of one paper.

    Returns:
        dict: ``assigned_count``, ``shortfalls``, ``assigned`` (new
        paper/reviewer pairs) and ``reviewer_loads`` (assignments per reviewer
        in the conference after the run).
    """
    conference = get_conference(conference_id)
    target = _normalise_target(target_per_paper, conference)

    members = dict(
        UserConferenceRole.objects.filter(conference=conference, role__in=REVIEWING_ROLES)
        .values_list('user_id')
        .annotate(joined=Min('joined_at'))
    )
    papers = list(Paper.objects.filter(conference=conference).order_by('id'))

    authors = defaultdict(set)
    for paper_id, user_id in PaperAuthor.objects.filter(paper__conference=conference).values_list('paper_id', 'user_id'):
        authors[paper_id].add(user_id)
    conflicts = defaultdict(set)
    for paper_id, user_id in ReviewerConflict.objects.filter(paper__conference=conference).values_list('paper_id', 'user_id'):
        conflicts[paper_id].add(user_id)
    bids = {
        (paper_id, reviewer_id): bid
        for paper_id, reviewer_id, bid in ReviewerBid.objects.live()
        .filter(paper__conference=conference)
        .values_list('paper_id', 'reviewer_id', 'bid')
    }
    assigned = defaultdict(set)
    loads = Counter()
    for paper_id, reviewer_id in ReviewAssignment.objects.filter(paper__conference=conference).values_list('paper_id', 'reviewer_id'):
        assigned[paper_id].add(reviewer_id)
        loads[reviewer_id] += 1

    def eligible(paper):
        return [
            user_id for user_id in members
            if user_id not in authors[paper.pk]
            and user_id not in conflicts[paper.pk]
            and bids.get((paper.pk, user_id)) != 'conflict'
            and user_id not in assigned[paper.pk]
        ]

    candidates = {paper.pk: eligible(paper) for paper in papers}
    papers.sort(key=lambda p: (len(candidates[p.pk]), p.pk))

    new_pairs = []
    shortfalls = []
    for paper in papers:
        existing = len(assigned[paper.pk])
        needed = target - existing
        if needed <= 0:
            continue

        ranked = sorted(
            candidates[paper.pk],
            key=lambda u: (loads[u], -BID_RANK.get(bids.get((paper.pk, u)), 1), members[u], u),
        )
        picked = 0
        skipped = 0
        for user_id in ranked:
            if picked == needed:
                break
            try:
                assignment, created = _create_assignment(paper.pk, user_id, conference.review_deadline)
            except ReviewWorkflowError as exc:
                skipped += 1
                logger.warning(f"Auto-assign skipped user {user_id} for paper {paper.pk}: {exc.message}")
                continue
            picked += 1
            assigned[paper.pk].add(user_id)
            if created:
                loads[user_id] += 1
                new_pairs.append({'paper_id': paper.pk, 'reviewer_id': user_id, 'assignment_id': assignment.pk})

        if picked < needed:
            shortfalls.append({
                'paper_id': paper.pk,
                'title': paper.title,
                'target': target,
                'assigned': existing + picked,
                'missing': needed - picked,
                'reason': 'eligibility changed during assignment' if skipped else 'not enough eligible reviewers',
            })

    logger.info(
        f"Auto-assign for conference {conference.pk}: {len(new_pairs)} assignments created, "
        f"{len(shortfalls)} papers short of {target} reviewers"
    )
    return {
        'assigned_count': len(new_pairs),
        'shortfalls': shortfalls,
        'assigned': new_pairs,
        'reviewer_loads': {user_id: loads[user_id] for user_id in sorted(members)},
    }

def get_assignments_for_paper(paper_id):
    paper = get_paper(paper_id)
    assignments = paper.assignments.select_related('reviewer', 'review')
    rows = []
    for assignment in assignments:
        data = _assignment_dict(assignment)
        data['reviewer_name'] = assignment.reviewer.get_full_name() or assignment.reviewer.username
        data['reviewer_email'] = assignment.reviewer.email
        review = getattr(assignment, 'review', None)
        data['submitted_at'] = review.submitted_at if review else None
        rows.append(data)
    return rows

def get_my_assignments(reviewer_id):
    """Assignments of one reviewer with enough paper detail to start reviewing."""
    assignments = (
        ReviewAssignment.objects.filter(reviewer_id=reviewer_id)
        .select_related('paper', 'paper__conference', 'paper__track')
    )
    rows = []
    for assignment in assignments:
        data = _assignment_dict(assignment)
        paper = assignment.paper
        data['paper'] = {
            'id': paper.pk,
            'paper_id': paper.paper_id,
            'title': paper.title,
            'abstract': paper.abstract,
            'keywords': paper.keywords,
            'track': paper.track.name if paper.track else None,
            'conference_id': paper.conference_id,
            'conference_name': paper.conference.name,
        }
        rows.append(data)
    return rows

def get_conference_assignment_stats(conference_id):
    conference = get_conference(conference_id)
    target = conference.reviewers_per_paper
    papers = (
        Paper.objects.filter(conference=conference)
        .annotate(
            assigned=Count('assignments', distinct=True),
            submitted=Count('assignments', filter=Q(assignments__status='submitted'), distinct=True),
        )
        .order_by('id')
    )
    reviewers = (
        ReviewAssignment.objects.filter(paper__conference=conference)
        .values('reviewer_id', 'reviewer__first_name', 'reviewer__last_name', 'reviewer__username', 'reviewer__email')
        .annotate(
            assigned=Count('id'),
            submitted=Count('id', filter=Q(status='submitted')),
        )
        .order_by('reviewer_id')
    )

    paper_rows = [
        {
            'id': paper.pk,
            'paper_id': paper.paper_id,
            'title': paper.title,
            'status': paper.status,
            'assigned': paper.assigned,
            'submitted': paper.submitted,
            'target': target,
            'missing': max(target - paper.assigned, 0),
        }
        for paper in papers
    ]
    reviewer_rows = []
    for row in reviewers:
        name = f"{row['reviewer__first_name']} {row['reviewer__last_name']}".strip() or row['reviewer__username']
        reviewer_rows.append({
            'reviewer_id': row['reviewer_id'],
            'reviewer_name': name,
            'reviewer_email': row['reviewer__email'],
            'assigned': row['assigned'],
            'submitted': row['submitted'],
            'pending': row['assigned'] - row['submitted'],
        })

    return {
        'conference_id': conference.pk,
        'target_per_paper': target,
        'papers': paper_rows,
        'reviewers': reviewer_rows,
        'summary': {
            'total_papers': len(paper_rows),
            'total_assignments': sum(p['assigned'] for p in paper_rows),
            'submitted_reviews': sum(p['submitted'] for p in paper_rows),
            'papers_below_target': sum(1 for p in paper_rows if p['missing']),
            'active_reviewers': len(reviewer_rows),
        },
    }
