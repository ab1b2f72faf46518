"""HTTP access to the TransferWise ``/v1/rates`` endpoint.

:class:`RateFetcher` performs exactly one authenticated ``GET`` per call to
:meth:`RateFetcher.fetch` and returns the raw response body.  It does not
parse the body; that is the job of :mod:`transferwise_rates.bank`.
"""

from __future__ import annotations

import logging
import ssl
from typing import Optional, Tuple, Union
from urllib.parse import urlencode, urlunsplit

import requests
from requests.adapters import HTTPAdapter

from .exceptions import MissingCredential, TransportFailure
from .settings import DEFAULT_SOURCE

logger = logging.getLogger(__name__)

SERVICE_HOST = "api.transferwise.com"
SANDBOX_SERVICE_HOST = "api.sandbox.transferwise.tech"
SERVICE_PATH = "/v1/rates"

# Returned in place of a body when a transport failure is swallowed.  It is
# not valid JSON, so the caller treats it like any other unparseable payload.
EMPTY_PAYLOAD = ""


class TLSAdapter(HTTPAdapter):
    """Transport adapter pinning every connection to one TLS version."""

    def __init__(self, tls_version: ssl.TLSVersion, **kwargs) -> None:
        self.tls_version = tls_version
        super().__init__(**kwargs)

    def init_poolmanager(self, *args, **kwargs):
        context = ssl.create_default_context()
        context.minimum_version = self.tls_version
        context.maximum_version = self.tls_version
        kwargs["ssl_context"] = context
        return super().init_poolmanager(*args, **kwargs)


class RateFetcher:
    """Fetch raw rate payloads from TransferWise.

    Parameters
    ----------
    access_key : str, optional
        API token sent as ``Authorization: Bearer <access_key>``.  It is only
        checked when a request is about to be made.
    source : str, optional
        Base currency passed as the ``source`` query parameter.
    use_sandbox : bool, optional
        Use the sandbox host instead of the live one.
    tls_version : ssl.TLSVersion, optional
        TLS version every connection is pinned to.  Defaults to TLS 1.2.
    raise_on_failure : bool, optional
        When true (the default) transport errors raise
        :class:`~transferwise_rates.exceptions.TransportFailure`.  When false
        they are logged and :data:`EMPTY_PAYLOAD` is returned instead.
    timeout : float or tuple, optional
        Passed directly to :meth:`requests.Session.get`.
    session : requests.Session, optional
        Session used for the requests.  A new one is created (and the TLS
        adapter mounted on it) if omitted.
    """

    def __init__(
        self,
        access_key: Optional[str] = None,
        *,
        source: str = DEFAULT_SOURCE,
        use_sandbox: bool = False,
        tls_version: ssl.TLSVersion = ssl.TLSVersion.TLSv1_2,
        raise_on_failure: bool = True,
        timeout: Union[float, Tuple[float, float]] = 5,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.access_key = access_key
        self.source = source
        self.use_sandbox = use_sandbox
        self.tls_version = tls_version
        self.raise_on_failure = raise_on_failure
        self.timeout = timeout
        if session is None:
            session = requests.Session()
            session.mount("https://", TLSAdapter(tls_version))
        self.session = session

    @property
    def service_host(self) -> str:
        return SANDBOX_SERVICE_HOST if self.use_sandbox else SERVICE_HOST

    @property
    def source_url(self) -> str:
        """Full URL of the rates endpoint for the configured source.

        Raises
        ------
        MissingCredential
            If no access key is configured.
        """
        if not self.access_key:
            raise MissingCredential()
        query = urlencode({"source": self.source})
        return urlunsplit(("https", self.service_host, SERVICE_PATH, query, ""))

    def fetch(self) -> str:
        """Retrieve the raw rates payload.

        Returns
        -------
        str
            The response body, or :data:`EMPTY_PAYLOAD` if the request failed
            and ``raise_on_failure`` is false.

        Raises
        ------
        MissingCredential
            If no access key is configured.  Nothing is sent in that case.
        TransportFailure
            If the request fails and ``raise_on_failure`` is true.
        """
        url = self.source_url
        logger.debug("Requesting rates from %s", url)
        try:
            response = self.session.get(
                url,
                headers={"Authorization": f"Bearer {self.access_key}"},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            if self.raise_on_failure:
                raise TransportFailure(f"Failed to fetch rates from {url}: {exc}") from exc
            logger.warning("Rates request to %s failed: %s", url, exc)
            return EMPTY_PAYLOAD
        return response.text

    def close(self) -> None:
        self.session.close()
