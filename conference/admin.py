from django.contrib import admin
from django.contrib.admin import SimpleListFilter
from django.utils.html import format_html
from django.utils.safestring import mark_safe
from .models import (
    Conference, Track, UserConferenceRole, Paper, PaperAuthor, PaperFile, CameraReadyFile,
    ReviewerConflict, ReviewerBid, ReviewAssignment, Review, Decision, Notification,
    Metareview, Discussion, DiscussionMessage,
)
from .allocation import auto_assign
from .decisions import determine_stage
from .exceptions import ReviewWorkflowError

class PaperStageFilter(SimpleListFilter):
    title = 'Decision'
    parameter_name = 'decided'

    def lookups(self, request, model_admin):
        return (
            ('yes', 'Decided'),
            ('no', 'Undecided'),
        )

    def queryset(self, request, queryset):
        if self.value() == 'yes':
            return queryset.filter(decision__isnull=False)
        elif self.value() == 'no':
            return queryset.filter(decision__isnull=True)

class ConferenceAdmin(admin.ModelAdmin):
    list_display = ('name', 'acronym', 'status_display', 'reviewers_per_paper', 'review_deadline', 'conference_actions')
    list_filter = ('status', 'blind_review', 'paper_bidding_enabled')
    search_fields = ('name', 'acronym')
    list_per_page = 25
    readonly_fields = ('created_at',)
    actions = ['auto_assign_reviewers']

    fieldsets = (
        ('Basic Information', {
            'fields': ('name', 'acronym', 'status', 'start_date', 'end_date'),
            'classes': ('wide',)
        }),
        ('Reviewing Settings', {
            'fields': ('blind_review', 'reviewers_per_paper', 'review_deadline', 'paper_bidding_enabled'),
            'classes': ('wide',)
        }),
        ('Timestamps', {
            'fields': ('created_at',),
            'classes': ('collapse',)
        }),
    )

    def status_display(self, obj):
        status_colors = {
            'upcoming': '#007bff',
            'live': '#28a745',
            'completed': '#6c757d',
        }
        color = status_colors.get(obj.status, '#6c757d')
        return format_html(
            '<span style="color: {}; font-weight: 600; padding: 4px 8px; border-radius: 4px; background: rgba(0,0,0,0.05);">'
            '{}'
            '</span>',
            color, obj.get_status_display()
        )
    status_display.short_description = 'Status'

    def conference_actions(self, obj):
        actions = []
        actions.append(f'<a href="/admin/conference/paper/?conference__id__exact={obj.id}" style="color: #007bff; text-decoration: none; margin-right: 10px;">Papers</a>')
        actions.append(f'<a href="/admin/conference/userconferencerole/?conference__id__exact={obj.id}" style="color: #007bff; text-decoration: none; margin-right: 10px;">Members</a>')
        actions.append(f'<a href="/dashboard/conferences/{obj.id}/assignments/export/" style="color: #28a745; text-decoration: none;">Assignments (.xlsx)</a>')
        return mark_safe(''.join(actions))
    conference_actions.short_description = 'Actions'

    def auto_assign_reviewers(self, request, queryset):
        for conference in queryset:
            try:
                result = auto_assign(conference.pk)
            except ReviewWorkflowError as exc:
                self.message_user(request, f'{conference.name}: {exc.message}', level='error')
                continue
            self.message_user(
                request,
                f"{conference.name}: {result['assigned_count']} assignments created, "
                f"{len(result['shortfalls'])} papers below target."
            )
    auto_assign_reviewers.short_description = "Auto-assign reviewers to selected conferences"

class UserConferenceRoleAdmin(admin.ModelAdmin):
    list_display = ('user', 'conference', 'role', 'track', 'joined_at')
    list_filter = ('role', 'conference')
    search_fields = ('user__username', 'user__email', 'conference__name')

class PaperAuthorInline(admin.TabularInline):
    model = PaperAuthor
    extra = 0

class PaperFileInline(admin.TabularInline):
    model = PaperFile
    extra = 0

class PaperAdmin(admin.ModelAdmin):
    list_display = ('paper_id', 'title', 'conference', 'status', 'stage_display', 'assignment_count')
    list_filter = ('status', PaperStageFilter, 'conference')
    search_fields = ('paper_id', 'title', 'keywords')
    readonly_fields = ('paper_id', 'submitted_at')
    inlines = [PaperAuthorInline, PaperFileInline]

    def stage_display(self, obj):
        return determine_stage(obj).replace('_', ' ').title()
    stage_display.short_description = 'Stage'

    def assignment_count(self, obj):
        return obj.assignments.count()
    assignment_count.short_description = 'Reviewers'

class ReviewAssignmentAdmin(admin.ModelAdmin):
    list_display = ('paper', 'reviewer', 'status', 'due_date', 'created_at')
    list_filter = ('status', 'paper__conference')
    search_fields = ('paper__title', 'reviewer__username', 'reviewer__email')

class ReviewAdmin(admin.ModelAdmin):
    list_display = ('assignment', 'score', 'confidence', 'submitted_at')
    list_filter = ('assignment__paper__conference',)
    readonly_fields = ('created_at', 'updated_at')

class ReviewerBidAdmin(admin.ModelAdmin):
    list_display = ('paper', 'reviewer', 'bid', 'updated_at')
    list_filter = ('bid', 'paper__conference')

class DecisionAdmin(admin.ModelAdmin):
    list_display = ('paper', 'final_decision', 'average_score', 'review_count', 'decided_by', 'decided_at')
    list_filter = ('final_decision', 'paper__conference')
    readonly_fields = ('average_score', 'average_confidence', 'review_count', 'decided_at', 'decided_by')

class CameraReadyFileAdmin(admin.ModelAdmin):
    list_display = ('paper', 'file_name', 'status', 'uploaded_at', 'decided_at')
    list_filter = ('status',)

class NotificationAdmin(admin.ModelAdmin):
    list_display = ('recipient', 'notification_type', 'title', 'is_read', 'created_at')
    list_filter = ('notification_type', 'is_read')

class MetareviewAdmin(admin.ModelAdmin):
    list_display = ('paper', 'meta_reviewer', 'recommendation', 'confidence', 'review_consensus', 'submitted_at')
    list_filter = ('recommendation', 'review_consensus', 'paper__conference')
    search_fields = ('paper__title', 'meta_reviewer__username', 'meta_reviewer__email')
    readonly_fields = ('created_at', 'updated_at')

class DiscussionMessageInline(admin.TabularInline):
    model = DiscussionMessage
    extra = 0
    readonly_fields = ('user', 'created_at')

class DiscussionAdmin(admin.ModelAdmin):
    list_display = ('paper', 'status_display', 'message_count', 'updated_at')
    list_filter = ('status', 'paper__conference')
    inlines = [DiscussionMessageInline]

    def status_display(self, obj):
        color = '#28a745' if obj.status == 'open' else '#6c757d'
        return format_html('<span style="color: {}; font-weight: bold;">{}</span>', color, obj.get_status_display())
    status_display.short_description = 'Status'

    def message_count(self, obj):
        return obj.messages.count()
    message_count.short_description = 'Messages'

admin.site.register(Conference, ConferenceAdmin)
admin.site.register(Track)
admin.site.register(UserConferenceRole, UserConferenceRoleAdmin)
admin.site.register(Paper, PaperAdmin)
admin.site.register(PaperAuthor)
admin.site.register(ReviewAssignment, ReviewAssignmentAdmin)
admin.site.register(Review, ReviewAdmin)
admin.site.register(ReviewerBid, ReviewerBidAdmin)
admin.site.register(ReviewerConflict)
admin.site.register(Decision, DecisionAdmin)
admin.site.register(CameraReadyFile, CameraReadyFileAdmin)
admin.site.register(Notification, NotificationAdmin)
admin.site.register(Metareview, MetareviewAdmin)
admin.site.register(Discussion, DiscussionAdmin)
