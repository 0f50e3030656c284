import json
import logging
from functools import wraps

from django.contrib.auth.decorators import login_required
from django.http import HttpResponse, JsonResponse
from django.utils.encoding import smart_str
from django.views.decorators.http import require_GET, require_http_methods, require_POST
from openpyxl import Workbook
from openpyxl.styles import Font

from conference import allocation, bidding, camera_ready, conflicts, decisions, discussions, metareviews, papers, reviews
from conference.exceptions import ReviewWorkflowError, ValidationError
from conference.forms import (
    AssignForm, AutoAssignForm, BidForm, CameraReadyForm, DecisionForm, DiscussionMessageForm, MetareviewForm,
    RejectCameraReadyForm, ReviewForm,
)
from conference.models import ReviewAssignment
from conference.roles import get_conference, get_paper, require_chair

logger = logging.getLogger(__name__)

def api_view(view_func):
    """Turn workflow errors raised by the services into structured JSON failures."""
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        try:
            return view_func(request, *args, **kwargs)
        except ReviewWorkflowError as exc:
            logger.warning(
                f'{request.method} {request.path} refused for user {request.user.pk}: {exc.code} ({exc.message})'
            )
            return JsonResponse(exc.as_dict(), status=exc.status)
    return wrapper

def _payload(request):
    if request.content_type == 'application/json':
        try:
            data = json.loads(request.body or b'{}')
        except ValueError:
            raise ValidationError('Request body is not valid JSON.')
        if not isinstance(data, dict):
            raise ValidationError('Request body must be a JSON object.')
        return data
    return request.POST

def _bound_form(form_class, request):
    form = form_class(_payload(request))
    if not form.is_valid():
        raise ValidationError(
            '; '.join(f"{field}: {' '.join(errors)}" for field, errors in form.errors.items())
        )
    return form

def _ok(**data):
    return JsonResponse({'success': True, **data})

# Bidding

@login_required
@require_http_methods(['GET', 'POST'])
@api_view
def paper_bid(request, paper_id):
    if request.method == 'GET':
        return _ok(bid=bidding.get_bid(paper_id, request.user.pk))
    form = _bound_form(BidForm, request)
    bid = bidding.submit_bid(paper_id, request.user.pk, form.cleaned_data['bid'])
    return _ok(bid=bid)

@login_required
@require_GET
@api_view
def my_bids(request):
    return _ok(bids=bidding.get_my_bids(request.user.pk))

@login_required
@require_GET
@api_view
def papers_for_bidding(request, conf_id):
    return _ok(papers=bidding.get_papers_for_bidding(conf_id, request.user.pk))

@login_required
@require_GET
@api_view
def bidding_matrix(request, conf_id):
    get_conference(conf_id)
    require_chair(request.user.pk, conf_id)
    return _ok(**bidding.get_conference_bidding_matrix(conf_id))

# Conflicts

@login_required
@require_POST
@api_view
def declare_conflict(request, paper_id):
    conflict = conflicts.declare_conflict(paper_id, request.user.pk)
    return _ok(conflict={'id': conflict.pk, 'paper_id': conflict.paper_id, 'user_id': conflict.user_id, 'created_at': conflict.created_at})

@login_required
@require_POST
@api_view
def retract_conflict(request, paper_id):
    return _ok(retracted=conflicts.retract_conflict(paper_id, request.user.pk))

# Assignments

@login_required
@require_POST
@api_view
def auto_assign(request, conf_id):
    get_conference(conf_id)
    require_chair(request.user.pk, conf_id)
    form = _bound_form(AutoAssignForm, request)
    result = allocation.auto_assign(conf_id, form.cleaned_data.get('reviewers_per_paper'))
    return _ok(**result)

@login_required
@require_GET
@api_view
def assignment_stats(request, conf_id):
    get_conference(conf_id)
    require_chair(request.user.pk, conf_id)
    return _ok(**allocation.get_conference_assignment_stats(conf_id))

@login_required
@require_GET
@api_view
def export_assignments_excel(request, conf_id):
    """
    Export reviewer allocation of a conference as an Excel (.xlsx) file:
    one sheet per paper, one per reviewer.
    """
    conference = get_conference(conf_id)
    require_chair(request.user.pk, conf_id)
    stats = allocation.get_conference_assignment_stats(conf_id)

    wb = Workbook()
    ws = wb.active
    ws.title = 'Papers'
    ws.append(['Paper ID', 'Title', 'Status', 'Assigned', 'Submitted', 'Target', 'Missing'])
    for row in stats['papers']:
        ws.append([
            smart_str(row['paper_id'] or row['id']), smart_str(row['title']), row['status'],
            row['assigned'], row['submitted'], row['target'], row['missing'],
        ])

    ws = wb.create_sheet('Reviewers')
    ws.append(['Reviewer', 'Email', 'Assigned', 'Submitted', 'Pending'])
    for row in stats['reviewers']:
        ws.append([smart_str(row['reviewer_name']), row['reviewer_email'], row['assigned'], row['submitted'], row['pending']])

    for sheet in wb.worksheets:
        for cell in sheet[1]:
            cell.font = Font(bold=True)

    response = HttpResponse(content_type='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet')
    response['Content-Disposition'] = f'attachment; filename="{conference.acronym or conference.pk}_assignments.xlsx"'
    wb.save(response)
    return response

@login_required
@require_http_methods(['GET', 'POST'])
@api_view
def paper_assignments(request, paper_id):
    paper = get_paper(paper_id)
    require_chair(request.user.pk, paper.conference_id)
    if request.method == 'GET':
        return _ok(assignments=allocation.get_assignments_for_paper(paper_id))
    form = _bound_form(AssignForm, request)
    assignment = allocation.assign(paper_id, form.cleaned_data['reviewer_id'], form.cleaned_data.get('due_date'))
    return JsonResponse({'success': True, 'assignment': assignment}, status=201 if assignment['created'] else 200)

@login_required
@require_POST
@api_view
def delete_assignment(request, assignment_id):
    assignment = ReviewAssignment.objects.filter(pk=assignment_id).select_related('paper').first()
    if assignment is not None:
        require_chair(request.user.pk, assignment.paper.conference_id)
    return _ok(assignment=allocation.unassign(assignment_id))

@login_required
@require_GET
@api_view
def my_assignments(request):
    return _ok(assignments=allocation.get_my_assignments(request.user.pk))

# Reviews

@login_required
@require_GET
@api_view
def review_detail(request, assignment_id):
    return _ok(review=reviews.get_review(assignment_id, request.user.pk))

@login_required
@require_POST
@api_view
def review_save_draft(request, assignment_id):
    form = _bound_form(ReviewForm, request)
    return _ok(review=reviews.save_draft(assignment_id, request.user.pk, form.review_data()))

@login_required
@require_POST
@api_view
def review_submit(request, assignment_id):
    form = _bound_form(ReviewForm, request)
    return _ok(review=reviews.submit_review(assignment_id, request.user.pk, form.review_data()))

# Papers and decisions

@login_required
@require_GET
@api_view
def paper_detail(request, paper_id):
    return _ok(paper=papers.get_paper_view(paper_id, request.user.pk))

@login_required
@require_http_methods(['GET', 'POST'])
@api_view
def paper_decision(request, paper_id):
    if request.method == 'GET':
        return _ok(**decisions.get_paper_decision_info(paper_id, request.user.pk))
    form = _bound_form(DecisionForm, request)
    result = decisions.make_decision(
        paper_id,
        request.user.pk,
        form.cleaned_data['final_decision'],
        form.cleaned_data.get('comment') or None,
    )
    return _ok(**result)

@login_required
@require_GET
@api_view
def conference_decisions(request, conf_id):
    get_conference(conf_id)
    require_chair(request.user.pk, conf_id)
    return _ok(**decisions.get_decisions_by_conference(conf_id))

# Camera-ready

@login_required
@require_POST
@api_view
def camera_ready_upload(request, paper_id):
    form = _bound_form(CameraReadyForm, request)
    crf = camera_ready.upload_camera_ready(
        paper_id, request.user.pk, form.cleaned_data['file_name'], form.cleaned_data['file_key']
    )
    return JsonResponse({'success': True, 'camera_ready': crf}, status=201)

@login_required
@require_POST
@api_view
def camera_ready_approve(request, paper_id):
    return _ok(camera_ready=camera_ready.approve_camera_ready(paper_id, request.user.pk))

@login_required
@require_POST
@api_view
def camera_ready_reject(request, paper_id):
    form = _bound_form(RejectCameraReadyForm, request)
    return _ok(camera_ready=camera_ready.reject_camera_ready(paper_id, request.user.pk, form.cleaned_data['comment']))

# Meta-reviews

@login_required
@require_http_methods(['GET', 'POST'])
@api_view
def paper_metareview(request, paper_id):
    if request.method == 'GET':
        return _ok(metareview=metareviews.get_metareview(paper_id, request.user.pk))
    form = _bound_form(MetareviewForm, request)
    metareview = metareviews.create_metareview(paper_id, request.user.pk, form.metareview_data())
    return JsonResponse({'success': True, 'metareview': metareview}, status=201)

@login_required
@require_POST
@api_view
def metareview_update(request, metareview_id):
    form = _bound_form(MetareviewForm, request)
    return _ok(metareview=metareviews.update_metareview(metareview_id, request.user.pk, form.metareview_data()))

@login_required
@require_POST
@api_view
def metareview_submit(request, metareview_id):
    return _ok(metareview=metareviews.submit_metareview(metareview_id, request.user.pk))

@login_required
@require_POST
@api_view
def metareview_delete(request, metareview_id):
    return _ok(metareview=metareviews.delete_metareview(metareview_id, request.user.pk))

@login_required
@require_GET
@api_view
def my_metareviews(request):
    conf_id = request.GET.get('conference')
    if conf_id is not None and not conf_id.isdigit():
        raise ValidationError('conference must be a conference id.')
    conf_id = int(conf_id) if conf_id else None
    return _ok(metareviews=metareviews.get_my_metareviews(request.user.pk, conf_id))

@login_required
@require_GET
@api_view
def conference_metareviews(request, conf_id):
    get_conference(conf_id)
    return _ok(metareviews=metareviews.get_metareviews_by_conference(conf_id, request.user.pk))

# Discussions

@login_required
@require_GET
@api_view
def paper_discussion(request, paper_id):
    return _ok(discussion=discussions.get_discussion(paper_id, request.user.pk))

@login_required
@require_POST
@api_view
def discussion_message(request, discussion_id):
    form = _bound_form(DiscussionMessageForm, request)
    message = discussions.add_message(discussion_id, request.user.pk, form.cleaned_data['message'], form.internal())
    return JsonResponse({'success': True, 'message': message}, status=201)

@login_required
@require_POST
@api_view
def discussion_close(request, discussion_id):
    return _ok(discussion=discussions.close_discussion(discussion_id, request.user.pk))

@login_required
@require_POST
@api_view
def discussion_reopen(request, discussion_id):
    return _ok(discussion=discussions.reopen_discussion(discussion_id, request.user.pk))

@login_required
@require_POST
@api_view
def discussion_message_delete(request, message_id):
    return _ok(message=discussions.delete_message(message_id, request.user.pk))

@login_required
@require_GET
@api_view
def conference_discussions(request, conf_id):
    get_conference(conf_id)
    return _ok(discussions=discussions.get_discussions_by_conference(conf_id, request.user.pk))
