"""
Failure kinds raised by the review workflow services.

Every service raises these from inside the transaction that guards its write,
so a failed check never leaves a partial change behind. The dashboard views
turn them into ``{"success": false, "error": <code>}`` responses.
"""

class ReviewWorkflowError(Exception):
    code = 'error'
    status = 400
    default_message = 'The request could not be completed.'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def as_dict(self):
        return {'success': False, 'error': self.code, 'message': self.message}

class NotFound(ReviewWorkflowError):
    code = 'not_found'
    status = 404
    default_message = 'Not found.'

class NotAuthorized(ReviewWorkflowError):
    code = 'not_authorized'
    status = 403
    default_message = 'You are not allowed to perform this action.'

class ConflictOfInterest(ReviewWorkflowError):
    code = 'conflict_of_interest'
    status = 409
    default_message = 'Conflict of interest.'

class NotAMember(ReviewWorkflowError):
    code = 'not_a_member'
    status = 403
    default_message = 'You must be a reviewer in this conference.'

class AlreadySubmitted(ReviewWorkflowError):
    code = 'already_submitted'
    status = 409
    default_message = 'The review has already been submitted.'

class NoReviewsSubmitted(ReviewWorkflowError):
    code = 'no_reviews_submitted'
    status = 409
    default_message = 'No reviews submitted for this paper.'

class ValidationError(ReviewWorkflowError):
    code = 'validation_error'
    status = 400
    default_message = 'Invalid input.'
