"""Exception hierarchy for the demand sheet pipeline.

Collaborator wrappers translate library errors (Google API call errors,
HTTP errors from the Sheets API, malformed responses) into these types so
the submission orchestrator can handle every fatal failure at one boundary.
"""


class DemandOCRError(Exception):
    """Base class for all errors raised by the service."""


class ConfigurationError(DemandOCRError):
    """A required setting for a collaborator is missing or invalid."""


class SubmissionValidationError(DemandOCRError):
    """The inbound submission is missing a required field or is malformed."""


class StagingError(DemandOCRError):
    """Writing the input bytes to the blob store failed."""


class OCRServiceError(DemandOCRError):
    """Document AI could not be reached or failed to process the document."""


class SinkError(DemandOCRError):
    """Appending rows to the spreadsheet failed."""
