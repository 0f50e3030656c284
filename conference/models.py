from django.conf import settings
from django.db import models
from django.db.models import Exists, OuterRef
from accounts.models import User

ROLE_CHOICES = [
    ('chair', 'Chair'),
    ('author', 'Author'),
    ('reviewer', 'Reviewer'),
    ('pc_member', 'PC Member'),
    ('subreviewer', 'Subreviewer'),
    ('meta_reviewer', 'Meta-reviewer'),
]

# Roles that may bid on and be assigned to papers.
REVIEWING_ROLES = ('chair', 'reviewer', 'pc_member')

# Roles that may write meta-reviews and take part in the reviewer discussion.
METAREVIEW_ROLES = ('chair', 'meta_reviewer')

class Conference(models.Model):
    name = models.CharField(max_length=255)
    acronym = models.CharField(max_length=50, blank=True)
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=[('upcoming', 'Upcoming'), ('live', 'Live'), ('completed', 'Completed')], default='upcoming')
    created_at = models.DateTimeField(auto_now_add=True)

    # Reviewing Settings
    blind_review = models.BooleanField(default=True)
    reviewers_per_paper = models.PositiveIntegerField(default=3)
    review_deadline = models.DateTimeField(null=True, blank=True, help_text="Default due date for new review assignments")
    paper_bidding_enabled = models.BooleanField(default=True, help_text="Enable paper bidding for reviewers")

    def __str__(self):
        return self.name

class UserConferenceRole(models.Model):
    """One row per (user, conference, role); a user may hold several roles at once."""
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='conference_roles')
    conference = models.ForeignKey(Conference, on_delete=models.CASCADE, related_name='members')
    role = models.CharField(max_length=15, choices=ROLE_CHOICES)
    track = models.ForeignKey('Track', on_delete=models.SET_NULL, null=True, blank=True, related_name='user_roles')
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('user', 'conference', 'role')

    def __str__(self):
        return f"{self.user} - {self.role} @ {self.conference}"

class Track(models.Model):
    track_id = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=100)
    conference = models.ForeignKey('Conference', on_delete=models.CASCADE, related_name='tracks')

    def __str__(self):
        return f"{self.name} ({self.track_id})"

class Paper(models.Model):
    STATUS_CHOICES = [
        ('submitted', 'Submitted'),
        ('under_review', 'Under Review'),
        ('accepted', 'Accepted'),
        ('rejected', 'Rejected'),
        ('camera_ready', 'Camera Ready Approved'),
    ]

    title = models.CharField(max_length=255)
    abstract = models.TextField(blank=True)
    conference = models.ForeignKey(Conference, on_delete=models.CASCADE, related_name='papers')
    track = models.ForeignKey(Track, on_delete=models.SET_NULL, null=True, blank=True, related_name='papers')
    submitted_at = models.DateTimeField(auto_now_add=True)
    paper_id = models.CharField(max_length=20, unique=True, blank=True, null=True, help_text="Unique Paper ID for search/reference")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='submitted')
    keywords = models.CharField(max_length=255, blank=True, help_text="Comma-separated keywords")

    class Meta:
        ordering = ['id']

    def __str__(self):
        return self.title

    def author_ids(self):
        return set(self.authors.values_list('user_id', flat=True))

    def save(self, *args, **kwargs):
        if not self.paper_id:
            acronym = (self.conference.acronym or 'CONF').upper()
            year = self.conference.start_date.year if self.conference.start_date else 0
            yy = str(year)[-2:] if year else 'XX'
            serial = Paper.objects.filter(conference=self.conference).count() + 1
            candidate = f"{acronym}{yy}{serial:02d}"
            while Paper.objects.filter(paper_id=candidate).exists():
                serial += 1
                candidate = f"{acronym}{yy}{serial:02d}"
            self.paper_id = candidate
        super().save(*args, **kwargs)

class PaperAuthor(models.Model):
    paper = models.ForeignKey(Paper, on_delete=models.CASCADE, related_name='authors')
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='authorships')
    order = models.PositiveIntegerField(default=0)
    is_corresponding = models.BooleanField(default=False)

    class Meta:
        unique_together = ('paper', 'user')
        ordering = ['order', 'id']

    def __str__(self):
        return f"{self.user} ({'Corresponding' if self.is_corresponding else 'Author'}) on {self.paper}"

class PaperFile(models.Model):
    """Metadata of a submission file; the bytes live in external storage."""
    paper = models.ForeignKey(Paper, on_delete=models.CASCADE, related_name='files')
    file_name = models.CharField(max_length=255)
    file_key = models.CharField(max_length=512)
    mime_type = models.CharField(max_length=100, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at', 'id']

    def __str__(self):
        return self.file_name

class CameraReadyFile(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('approved', 'Approved'),
        ('rejected', 'Rejected'),
    ]

    paper = models.ForeignKey(Paper, on_delete=models.CASCADE, related_name='camera_ready_files')
    file_name = models.CharField(max_length=255)
    file_key = models.CharField(max_length=512)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='pending')
    comment = models.TextField(blank=True)
    uploaded_at = models.DateTimeField(auto_now_add=True)
    decided_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['uploaded_at', 'id']

    def __str__(self):
        return f"{self.file_name} ({self.status})"

class ReviewerConflict(models.Model):
    paper = models.ForeignKey(Paper, on_delete=models.CASCADE, related_name='conflicts')
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='declared_conflicts')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('paper', 'user')

    def __str__(self):
        return f"{self.user} conflicts with {self.paper}"

class BidQuerySet(models.QuerySet):
    def live(self):
        """Bids not voided by a conflict declared for the same pair."""
        return self.exclude(
            Exists(ReviewerConflict.objects.filter(paper=OuterRef('paper'), user=OuterRef('reviewer')))
        )

class ReviewerBid(models.Model):
    BID_CHOICES = [
        ('high', 'High'),
        ('medium', 'Medium'),
        ('low', 'Low'),
        ('conflict', 'Conflict'),
    ]

    paper = models.ForeignKey(Paper, on_delete=models.CASCADE, related_name='bids')
    reviewer = models.ForeignKey(User, on_delete=models.CASCADE, related_name='bids')
    bid = models.CharField(max_length=10, choices=BID_CHOICES)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = BidQuerySet.as_manager()

    class Meta:
        unique_together = ('paper', 'reviewer')

    def __str__(self):
        return f"{self.reviewer} bids {self.bid} on {self.paper}"

class ReviewAssignment(models.Model):
    STATUS_CHOICES = [
        ('not_started', 'Not Started'),
        ('draft', 'Draft'),
        ('submitted', 'Submitted'),
    ]

    paper = models.ForeignKey(Paper, on_delete=models.PROTECT, related_name='assignments')
    reviewer = models.ForeignKey(User, on_delete=models.CASCADE, related_name='review_assignments')
    status = models.CharField(max_length=12, choices=STATUS_CHOICES, default='not_started')
    due_date = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('paper', 'reviewer')
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"{self.reviewer} reviews {self.paper} ({self.status})"

class Review(models.Model):
    assignment = models.OneToOneField(ReviewAssignment, on_delete=models.CASCADE, related_name='review')
    score = models.IntegerField(null=True, blank=True)
    confidence = models.IntegerField(null=True, blank=True)
    summary = models.TextField(blank=True, null=True)
    strengths = models.TextField(blank=True, null=True)
    weaknesses = models.TextField(blank=True, null=True)
    comments_to_author = models.TextField(blank=True, null=True)
    comments_to_chair = models.TextField(blank=True, null=True, help_text="Confidential remarks, visible to chairs only")
    submitted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Review of {self.assignment.paper} by {self.assignment.reviewer}"

    @property
    def is_complete(self):
        return self.score is not None and self.confidence is not None

class Decision(models.Model):
    DECISION_CHOICES = [('accept', 'Accept'), ('reject', 'Reject')]

    paper = models.OneToOneField(Paper, on_delete=models.CASCADE, related_name='decision')
    final_decision = models.CharField(max_length=10, choices=DECISION_CHOICES)
    comment = models.TextField(blank=True, null=True)
    average_score = models.FloatField(null=True, blank=True)
    average_confidence = models.FloatField(null=True, blank=True)
    review_count = models.PositiveIntegerField(null=True, blank=True)
    decided_at = models.DateTimeField()
    decided_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='decisions_made')

    def __str__(self):
        return f"{self.paper}: {self.final_decision}"

class Notification(models.Model):
    NOTIFICATION_TYPES = [
        ('paper_assignment', 'Paper Assignment'),
        ('paper_review', 'Paper Review'),
        ('paper_decision', 'Paper Decision'),
        ('camera_ready', 'Camera Ready'),
        ('metareview', 'Meta-review'),
    ]

    recipient = models.ForeignKey(User, on_delete=models.CASCADE, related_name='notifications')
    notification_type = models.CharField(max_length=20, choices=NOTIFICATION_TYPES)
    title = models.CharField(max_length=255)
    message = models.TextField()
    related_conference = models.ForeignKey(Conference, on_delete=models.CASCADE, null=True, blank=True)
    related_paper = models.ForeignKey(Paper, on_delete=models.CASCADE, null=True, blank=True)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.recipient.username} - {self.title}"

class Metareview(models.Model):
    """Summary of all reviews of a paper, written for the chairs."""
    RECOMMENDATION_CHOICES = [
        ('accept', 'Accept'),
        ('reject', 'Reject'),
        ('borderline', 'Borderline'),
    ]

    paper = models.OneToOneField(Paper, on_delete=models.CASCADE, related_name='metareview')
    meta_reviewer = models.ForeignKey(User, on_delete=models.CASCADE, related_name='metareviews')
    summary = models.TextField(blank=True)
    strengths = models.TextField(blank=True)
    weaknesses = models.TextField(blank=True)
    recommendation = models.CharField(max_length=10, choices=RECOMMENDATION_CHOICES, blank=True)
    confidence = models.IntegerField(null=True, blank=True)
    review_consensus = models.BooleanField(default=True)
    disagreement_note = models.TextField(blank=True)
    submitted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"Meta-review of {self.paper} by {self.meta_reviewer}"

class Discussion(models.Model):
    STATUS_CHOICES = [
        ('open', 'Open'),
        ('closed', 'Closed'),
    ]

    paper = models.OneToOneField(Paper, on_delete=models.CASCADE, related_name='discussion')
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='open')
    closed_at = models.DateTimeField(null=True, blank=True)
    closed_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='closed_discussions')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Discussion on {self.paper} ({self.status})"

class DiscussionMessage(models.Model):
    discussion = models.ForeignKey(Discussion, on_delete=models.CASCADE, related_name='messages')
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='discussion_messages')
    message = models.TextField()
    is_internal = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"{self.user} on {self.discussion.paper}"
