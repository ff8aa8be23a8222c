import requests

from ..cli_logger import logger
from ..errors import OperationCancelled, RemoteUnavailable

# Status codes worth another attempt; every other 4xx is permanent.
TRANSIENT_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})


def get_once(url, settings, stream=False):
    """A single GET of ``url``. Failures are raised as :class:`RemoteUnavailable`."""
    try:
        response = requests.get(url, timeout=settings.timeout, stream=stream)
        response.raise_for_status()
        return response
    except requests.exceptions.HTTPError as e:
        status_code = e.response.status_code if e.response is not None else None
        raise RemoteUnavailable(
            f"Error fetching {url}: HTTP {status_code}",
            url=url,
            status_code=status_code,
            transient=status_code is None or status_code in TRANSIENT_STATUS_CODES,
        ) from e
    except requests.exceptions.RequestException as e:
        raise RemoteUnavailable(f"Error fetching {url}: {e}", url=url) from e


def with_retries(url, settings, operation):
    """Run ``operation()`` with the bounded retry and cancellation from ``settings``.

    Transient :class:`RemoteUnavailable` failures (connection errors,
    timeouts, 5xx, 429) are retried ``settings.retries`` times with
    exponential backoff before being raised. Permanent failures raise at once.
    """
    attempts = settings.retries + 1
    for attempt in range(attempts):
        if settings.cancel_event.is_set():
            raise OperationCancelled(url)
        try:
            return operation()
        except RemoteUnavailable as e:
            if not e.transient or attempt == attempts - 1:
                raise
            delay = settings.backoff * (2 ** attempt)
            logger.warning(f"{e}. Retrying in {delay:.1f}s ({attempt + 1}/{settings.retries})...")
            # wait() returns True as soon as the event is set
            if settings.cancel_event.wait(delay):
                raise OperationCancelled(url) from e


def get(url, settings, stream=False):
    """GET ``url`` with the timeout, bounded retry and cancellation from ``settings``."""
    return with_retries(url, settings, lambda: get_once(url, settings, stream))


def get_text(url, settings):
    return get(url, settings).text
