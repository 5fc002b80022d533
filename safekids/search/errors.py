"""Error taxonomy for the AI-assisted search path.

The orchestrator branches on these kinds:
  - ModelError (any subclass) — retried once, then routed to fallback search
  - DatastoreError on the AI path — routed to fallback search
  - DatastoreError on the fallback path — terminal, raised as SearchUnavailableError
"""


class SearchError(Exception):
    """Base class for everything the search pipeline raises."""


class ModelError(SearchError):
    """The model call did not produce a usable ParsedQuery."""


class ModelUnavailableError(ModelError):
    """Network or transport failure talking to the model endpoint."""


class ModelTimeoutError(ModelError):
    """The model call hit its hard deadline and was aborted."""


class ModelStatusError(ModelError):
    """The model endpoint answered with a non-success HTTP status."""

    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(f"Model endpoint returned status {status_code}")


class ModelOutputError(ModelError):
    """The model answered, but its output is not parseable JSON."""


class QueryValidationError(ModelError):
    """Parsed model output violates the ParsedQuery contract."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class DatastoreError(SearchError):
    """The post store could not be queried."""


class SearchUnavailableError(SearchError):
    """Both the AI-assisted path and the fallback search failed."""
