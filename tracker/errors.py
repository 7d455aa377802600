class TrackerError(Exception):
    """Base class for errors raised by the tracker core."""


class ValidationError(TrackerError):
    """Malformed input. Nothing was written."""

    def __init__(self, message, field=None):
        super().__init__(message)
        self.field = field


class InvalidStatus(ValidationError):
    def __init__(self, status):
        super().__init__(f"Unrecognized status '{status}'", field="status")
        self.status = status


class DuplicateOpportunity(ValidationError):
    def __init__(self, existing_id):
        super().__init__("An opportunity with this URL already exists", field="source_url")
        self.existing_id = existing_id


class OpportunityNotFound(TrackerError):
    """Raised for missing opportunities and for ones the caller does not own."""

    def __init__(self, opportunity_id):
        super().__init__("Opportunity not found")
        self.opportunity_id = opportunity_id


class ExtractionError(TrackerError):
    pass


class DocumentNotFound(TrackerError):
    def __init__(self, document_id):
        super().__init__("Document not found")
        self.document_id = document_id
