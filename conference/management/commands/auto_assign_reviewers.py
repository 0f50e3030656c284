from django.core.management.base import BaseCommand, CommandError
from conference.allocation import auto_assign
from conference.exceptions import ReviewWorkflowError

class Command(BaseCommand):
    help = 'Assign reviewers to every paper of a conference, respecting authorship, conflicts, bids and load.'

    def add_arguments(self, parser):
        parser.add_argument('conference_id', type=int, help='Conference to allocate reviewers for')
        parser.add_argument(
            '--per-paper',
            type=int,
            dest='per_paper',
            default=None,
            help='Reviewers per paper (defaults to the conference setting)',
        )

    def handle(self, *args, **options):
        try:
            result = auto_assign(options['conference_id'], options['per_paper'])
        except ReviewWorkflowError as exc:
            raise CommandError(exc.message)

        self.stdout.write(self.style.SUCCESS(f"Created {result['assigned_count']} assignments."))
        for shortfall in result['shortfalls']:
            self.stdout.write(self.style.WARNING(
                f"Paper {shortfall['paper_id']} \"{shortfall['title']}\": "
                f"{shortfall['assigned']}/{shortfall['target']} reviewers ({shortfall['reason']})"
            ))
        if not result['shortfalls']:
            self.stdout.write(self.style.SUCCESS('Every paper reached its reviewer target.'))
