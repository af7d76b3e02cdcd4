from typing import Optional


class ResponseError(Exception):
    """Base class for failures reported back to the caller."""

    status_code = 400
    detail = "Invalid request"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail or self.detail)
        if detail:
            self.detail = detail


class SurveyNotFound(ResponseError):
    status_code = 404
    detail = "Survey not found"


class SurveyInactive(ResponseError):
    status_code = 400
    detail = "Survey is not accepting responses"


class SubmissionNotFound(ResponseError):
    status_code = 404
    detail = "Response not found"


class NothingToUpdate(ResponseError):
    status_code = 400
    detail = "Nothing to update. Please provide a response or name."


class AddressMismatch(ResponseError):
    status_code = 403
    detail = "Not allowed to update this response"
