"""Exception types shared by the ingestion pipeline, store and Steam client."""


class CSRankError(Exception):
    """Base class for all CSRank errors."""


class MalformedEventError(CSRankError):
    """Webhook body is not a JSON object carrying a string ``event`` field."""


class DocumentNotFoundError(CSRankError):
    """An update targeted a document that does not exist."""

    def __init__(self, collection: str, doc_id: str):
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"No document {collection}/{doc_id}")


class SteamAPIError(CSRankError):
    """The Steam Web API could not return a player profile."""
