from django import forms
from django.conf import settings
from .models import Decision, Metareview, ReviewerBid

SCORE_MIN, SCORE_MAX = settings.REVIEW_SCORE_RANGE
CONFIDENCE_MIN, CONFIDENCE_MAX = settings.REVIEW_CONFIDENCE_RANGE

class BidForm(forms.Form):
    bid = forms.ChoiceField(choices=ReviewerBid.BID_CHOICES)

class AssignForm(forms.Form):
    reviewer_id = forms.IntegerField(min_value=1)
    due_date = forms.DateTimeField(required=False)

class AutoAssignForm(forms.Form):
    reviewers_per_paper = forms.IntegerField(
        min_value=1,
        required=False,
        help_text='Defaults to the conference setting',
    )

class ReviewForm(forms.Form):
    score = forms.IntegerField(min_value=SCORE_MIN, max_value=SCORE_MAX, required=False)
    confidence = forms.IntegerField(min_value=CONFIDENCE_MIN, max_value=CONFIDENCE_MAX, required=False)
    summary = forms.CharField(required=False)
    strengths = forms.CharField(required=False)
    weaknesses = forms.CharField(required=False)
    comments_to_author = forms.CharField(required=False)
    comments_to_chair = forms.CharField(required=False)

    def review_data(self):
        """
        Only the fields the client actually sent. An empty text field clears
        it; an empty score or confidence is left as it was.
        """
        return {
            name: value for name, value in self.cleaned_data.items()
            if name in self.data and value is not None
        }

class DecisionForm(forms.Form):
    final_decision = forms.ChoiceField(choices=Decision.DECISION_CHOICES)
    comment = forms.CharField(required=False, widget=forms.Textarea(attrs={'rows': 4}))

class CameraReadyForm(forms.Form):
    file_name = forms.CharField(max_length=255)
    file_key = forms.CharField(max_length=512)

class RejectCameraReadyForm(forms.Form):
    comment = forms.CharField(widget=forms.Textarea(attrs={'rows': 3}))

class MetareviewForm(forms.Form):
    summary = forms.CharField(required=False)
    strengths = forms.CharField(required=False)
    weaknesses = forms.CharField(required=False)
    recommendation = forms.ChoiceField(choices=[('', '---')] + Metareview.RECOMMENDATION_CHOICES, required=False)
    confidence = forms.IntegerField(min_value=CONFIDENCE_MIN, max_value=CONFIDENCE_MAX, required=False)
    review_consensus = forms.BooleanField(required=False)
    disagreement_note = forms.CharField(required=False)

    def metareview_data(self):
        return {
            name: value for name, value in self.cleaned_data.items()
            if name in self.data and value is not None
        }

class DiscussionMessageForm(forms.Form):
    message = forms.CharField(widget=forms.Textarea(attrs={'rows': 3}))
    is_internal = forms.BooleanField(required=False)

    def internal(self):
        """Messages are internal unless the client says otherwise."""
        if 'is_internal' not in self.data:
            return True
        return self.cleaned_data['is_internal']
