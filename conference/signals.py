import logging

from django.conf import settings
from django.core.mail import send_mail
from django.dispatch import Signal, receiver

from .models import Notification, PaperAuthor

logger = logging.getLogger(__name__)

# Sent once the transaction recording a decision has committed.
# Arguments: decision, created.
decision_made = Signal()

@receiver(decision_made)
def notify_authors_of_decision(sender, decision, created, **kwargs):
    """
    Store an in-app notification for every author of the decided paper and
    e-mail them. Mail delivery is best effort: a failure is logged and the
    decision stands.
    """
    paper = decision.paper
    outcome = 'accepted' if decision.final_decision == 'accept' else 'rejected'
    title = f'Decision for "{paper.title}"'
    message = (
        f'Your paper "{paper.title}" submitted to {paper.conference.name} has been {outcome}. '
        f'Sign in to view the reviews.'
    )

    for author in PaperAuthor.objects.filter(paper=paper).select_related('user'):
        Notification.objects.create(
            recipient=author.user,
            notification_type='paper_decision',
            title=title,
            message=message,
            related_paper=paper,
            related_conference=paper.conference,
        )
        if not author.user.email:
            continue
        try:
            send_mail(
                title,
                message,
                settings.DEFAULT_FROM_EMAIL,
                [author.user.email],
                fail_silently=False,
            )
        except Exception:
            logger.exception(f"Failed to e-mail decision on paper {paper.pk} to user {author.user_id}")

    logger.info(f"Decision on paper {paper.pk} ({outcome}) announced to its authors")
