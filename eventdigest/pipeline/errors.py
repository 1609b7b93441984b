"""Exception taxonomy for the scrape pipeline."""


class ScrapeError(Exception):
    """Base class for failures that abort a whole scrape run."""


class BrowserInitError(ScrapeError):
    """The browser could not be launched or its context/page created."""


class NavigationError(ScrapeError):
    """The listing page failed to load within the navigation timeout."""


class ExtractionError(Exception):
    """A single card could not be turned into an event record."""


class ExtractionRateLimitError(ExtractionError):
    """The LLM provider rejected the request with a rate-limit signal."""


class ExtractionParseError(ExtractionError):
    """The LLM response was not a JSON object after fence stripping."""


class ExtractionOtherError(ExtractionError):
    """The LLM call failed for a reason other than rate limiting (timeout, API error)."""
