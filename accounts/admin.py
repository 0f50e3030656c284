from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from django.utils.html import format_html_join
from .models import User

class CustomUserAdmin(UserAdmin):
    list_display = ('username', 'email', 'first_name', 'last_name', 'affiliation', 'is_active', 'is_superuser', 'date_joined', 'user_actions')
    list_filter = ('is_active', 'is_staff', 'is_superuser', 'date_joined')
    search_fields = ('username', 'email', 'first_name', 'last_name', 'affiliation')
    ordering = ('-date_joined',)
    list_per_page = 25

    fieldsets = (
        (None, {'fields': ('username', 'password')}),
        ('Personal info', {'fields': ('first_name', 'last_name', 'email', 'affiliation')}),
        ('Permissions', {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
        }),
        ('Important dates', {'fields': ('last_login', 'date_joined')}),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('username', 'email', 'first_name', 'last_name', 'password1', 'password2'),
        }),
    )

    readonly_fields = ('date_joined', 'last_login')

    def user_actions(self, obj):
        from conference.models import PaperAuthor, ReviewAssignment, UserConferenceRole
        actions = []
        role_count = UserConferenceRole.objects.filter(user=obj).count()
        if role_count:
            actions.append((f'/admin/conference/userconferencerole/?user__id__exact={obj.id}', f'Roles ({role_count})'))
        paper_count = PaperAuthor.objects.filter(user=obj).count()
        if paper_count:
            actions.append((f'/admin/conference/paperauthor/?user__id__exact={obj.id}', f'Papers ({paper_count})'))
        assignment_count = ReviewAssignment.objects.filter(reviewer=obj).count()
        if assignment_count:
            actions.append((f'/admin/conference/reviewassignment/?reviewer__id__exact={obj.id}', f'Assignments ({assignment_count})'))
        return format_html_join(' ', '<a href="{}" style="margin-right: 10px;">{}</a>', actions)
    user_actions.short_description = 'Actions'

admin.site.register(User, CustomUserAdmin)
