from django.urls import path
from . import views

app_name = 'dashboard'

urlpatterns = [
    # Bidding
    path('papers/<int:paper_id>/bid/', views.paper_bid, name='paper_bid'),
    path('bids/mine/', views.my_bids, name='my_bids'),
    path('conferences/<int:conf_id>/bidding/', views.papers_for_bidding, name='papers_for_bidding'),
    path('conferences/<int:conf_id>/bidding-matrix/', views.bidding_matrix, name='bidding_matrix'),

    # Conflicts
    path('papers/<int:paper_id>/conflict/', views.declare_conflict, name='declare_conflict'),
    path('papers/<int:paper_id>/conflict/retract/', views.retract_conflict, name='retract_conflict'),

    # Assignments
    path('conferences/<int:conf_id>/auto-assign/', views.auto_assign, name='auto_assign'),
    path('conferences/<int:conf_id>/assignments/', views.assignment_stats, name='assignment_stats'),
    path('conferences/<int:conf_id>/assignments/export/', views.export_assignments_excel, name='export_assignments_excel'),
    path('papers/<int:paper_id>/assignments/', views.paper_assignments, name='paper_assignments'),
    path('assignments/<int:assignment_id>/delete/', views.delete_assignment, name='delete_assignment'),
    path('assignments/mine/', views.my_assignments, name='my_assignments'),

    # Reviews
    path('assignments/<int:assignment_id>/review/', views.review_detail, name='review_detail'),
    path('assignments/<int:assignment_id>/review/draft/', views.review_save_draft, name='review_save_draft'),
    path('assignments/<int:assignment_id>/review/submit/', views.review_submit, name='review_submit'),

    # Papers and decisions
    path('papers/<int:paper_id>/', views.paper_detail, name='paper_detail'),
    path('papers/<int:paper_id>/decision/', views.paper_decision, name='paper_decision'),
    path('conferences/<int:conf_id>/decisions/', views.conference_decisions, name='conference_decisions'),

    # Camera-ready
    path('papers/<int:paper_id>/camera-ready/', views.camera_ready_upload, name='camera_ready_upload'),
    path('papers/<int:paper_id>/camera-ready/approve/', views.camera_ready_approve, name='camera_ready_approve'),
    path('papers/<int:paper_id>/camera-ready/reject/', views.camera_ready_reject, name='camera_ready_reject'),

    # Meta-reviews
    path('papers/<int:paper_id>/metareview/', views.paper_metareview, name='paper_metareview'),
    path('metareviews/<int:metareview_id>/update/', views.metareview_update, name='metareview_update'),
    path('metareviews/<int:metareview_id>/submit/', views.metareview_submit, name='metareview_submit'),
    path('metareviews/<int:metareview_id>/delete/', views.metareview_delete, name='metareview_delete'),
    path('metareviews/mine/', views.my_metareviews, name='my_metareviews'),
    path('conferences/<int:conf_id>/metareviews/', views.conference_metareviews, name='conference_metareviews'),

    # Discussions
    path('papers/<int:paper_id>/discussion/', views.paper_discussion, name='paper_discussion'),
    path('discussions/<int:discussion_id>/messages/', views.discussion_message, name='discussion_message'),
    path('discussions/<int:discussion_id>/close/', views.discussion_close, name='discussion_close'),
    path('discussions/<int:discussion_id>/reopen/', views.discussion_reopen, name='discussion_reopen'),
    path('discussion-messages/<int:message_id>/delete/', views.discussion_message_delete, name='discussion_message_delete'),
    path('conferences/<int:conf_id>/discussions/', views.conference_discussions, name='conference_discussions'),
]
