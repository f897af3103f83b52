"""Exception types for the newsletter queue."""


class NewsletterQueueError(Exception):
    """Base exception for all newsletter queue errors."""

    pass


class EnqueueError(NewsletterQueueError):
    """Raised when jobs for a campaign could not be inserted."""

    def __init__(self, campaign_id: str, message: str = None):
        self.campaign_id = campaign_id
        if message is None:
            message = f"Failed to enqueue jobs for campaign {campaign_id}"
        super().__init__(message)


class CampaignNotFoundError(NewsletterQueueError):
    """Raised when a campaign does not exist."""

    def __init__(self, campaign_id: str, message: str = None):
        self.campaign_id = campaign_id
        if message is None:
            message = f"Campaign {campaign_id} not found"
        super().__init__(message)


class CampaignStateError(NewsletterQueueError):
    """Raised when a campaign is not in a state that allows sending."""

    def __init__(self, campaign_id: str, status: str, message: str = None):
        self.campaign_id = campaign_id
        self.status = status
        if message is None:
            message = (
                f"Campaign {campaign_id} has status {status}; "
                f"only DRAFT or SCHEDULED campaigns can be sent"
            )
        super().__init__(message)


class NoRecipientsError(NewsletterQueueError):
    """Raised when a campaign has no eligible subscribers."""

    def __init__(self, campaign_id: str, message: str = None):
        self.campaign_id = campaign_id
        if message is None:
            message = f"No active subscribers found for campaign {campaign_id}"
        super().__init__(message)


class DataNotFoundError(NewsletterQueueError):
    """Raised when the campaign or subscriber of a job cannot be loaded."""

    def __init__(self, campaign_id: str, subscriber_id: str, message: str = None):
        self.campaign_id = campaign_id
        self.subscriber_id = subscriber_id
        if message is None:
            message = "Email data not found"
        super().__init__(message)


class DeliveryError(NewsletterQueueError):
    """Raised when the transport reports a failed send."""

    pass


class AuthTokenError(NewsletterQueueError):
    """Raised when authentication token is missing or invalid."""

    pass


class RemoteHttpError(NewsletterQueueError):
    """Raised when an HTTP request to a remote newsletter queue service fails."""

    def __init__(self, status_code: int, message: str, response_body: str = None):
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(f"HTTP {status_code}: {message}")
