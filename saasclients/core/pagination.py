"""
Pagination styles.

Vendors disagree on how to say "there is more":

    Style            Providers                   Signal
    ---------------  --------------------------  -----------------------------------
    Link header      GitHub, Shopify, Okta       Link: <url>; rel="next"
    Next URL         DocuSign, ShipBob           nextUri in body / next-page header
    Token            Zoom, Google, Slack         next_page_token / nextPageToken /
                                                 response_metadata.next_cursor
    Starting after   Stripe                      has_more + id of last item
    Offset           Mailchimp, SendGrid         offset/count, total_items
    Page number      ShipBob-style APIs          page/per_page

A Paginator turns one page (request + response) into the request for the
next page, or None when the collection is exhausted. The client drives the
loop (see ApiClient.iter_pages) and adds the global guards: max pages,
repeated request, empty page.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .base import ApiResponse


def dig(data: Any, path: str | None) -> Any:
    """
    Follow a dotted path into nested dicts.

    Example:
        dig({"response_metadata": {"next_cursor": "x"}}, "response_metadata.next_cursor")
        # -> "x"
    """
    if not path:
        return data

    current = data
    for part in path.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(part)
    return current


@dataclass(frozen=True, slots=True)
class PageRequest:
    """Everything needed to fetch one page: a path (or absolute URL) and query params."""

    path: str
    params: dict[str, Any] = field(default_factory=dict)

    def with_params(self, **updates: Any) -> PageRequest:
        """Same path, params merged with updates."""
        return PageRequest(path=self.path, params={**self.params, **updates})

    def fingerprint(self) -> tuple[str, tuple[tuple[str, str], ...]]:
        """Hashable identity used to detect repeated requests."""
        return (
            self.path,
            tuple(sorted((k, str(v)) for k, v in self.params.items())),
        )


@dataclass
class Paginator(ABC):
    """
    Base class for pagination strategies.

    Attributes:
        items_path: Dotted path to the list of items in the response body.
                    None means the body itself is the list.
    """

    items_path: str | None = None

    def initial_params(self) -> dict[str, Any]:
        """Query params that must be sent with the first request."""
        return {}

    def extract_items(self, body: Any) -> list[Any]:
        """Pull the list of items out of a response body."""
        data = dig(body, self.items_path)
        if data is None:
            return []
        if isinstance(data, list):
            return data
        return [data]

    @abstractmethod
    def next_request(
        self,
        request: PageRequest,
        response: ApiResponse[Any],
        items: list[Any],
    ) -> PageRequest | None:
        """
        Build the request for the next page.

        Args:
            request: The request that produced this page
            response: Parsed response (status, headers, body, next link)
            items: Items extracted from this page

        Returns:
            Next PageRequest, or None when there are no more pages
        """
        ...


@dataclass
class LinkHeaderPaginator(Paginator):
    """Follow RFC 8288 Link headers with rel="next" (GitHub, Shopify, Okta)."""

    def next_request(self, request, response, items):
        if not response.next_link:
            return None
        # The next URL already carries every query param.
        return PageRequest(path=response.next_link)


@dataclass
class NextUrlPaginator(Paginator):
    """
    Follow a next-page URL found in the body or in a response header.

    Relative URLs are resolved against the client's host.

    Example:
        NextUrlPaginator(items_path="envelopes", body_path="nextUri")  # DocuSign
        NextUrlPaginator(header="next-page")                           # ShipBob
    """

    body_path: str | None = None
    header: str | None = None

    def next_request(self, request, response, items):
        next_url = None
        if self.body_path:
            next_url = dig(response.body, self.body_path)
        if not next_url and self.header:
            next_url = response.headers.get(self.header.lower())

        if not next_url:
            return None
        return PageRequest(path=str(next_url))


@dataclass
class TokenPaginator(Paginator):
    """
    Send back an opaque token taken from the previous body.

    Example:
        TokenPaginator(items_path="users", token_path="next_page_token",
                       param="next_page_token")                     # Zoom
        TokenPaginator(items_path="users", token_path="nextPageToken",
                       param="pageToken")                           # Google
        TokenPaginator(items_path="channels",
                       token_path="response_metadata.next_cursor",
                       param="cursor")                              # Slack
    """

    token_path: str = "next_page_token"
    param: str = "next_page_token"

    def next_request(self, request, response, items):
        token = dig(response.body, self.token_path)
        if not token:
            return None

        # Some APIs hand back the same token forever on the last page.
        if token == request.params.get(self.param):
            return None

        return request.with_params(**{self.param: token})


@dataclass
class StartingAfterPaginator(Paginator):
    """Stripe-style pagination: while has_more, send starting_after=<last id>."""

    items_path: str | None = "data"
    has_more_path: str = "has_more"
    param: str = "starting_after"
    id_field: str = "id"

    def next_request(self, request, response, items):
        if not dig(response.body, self.has_more_path) or not items:
            return None

        last = items[-1]
        last_id = last.get(self.id_field) if isinstance(last, Mapping) else None
        if not last_id or last_id == request.params.get(self.param):
            return None

        return request.with_params(**{self.param: last_id})


@dataclass
class OffsetPaginator(Paginator):
    """
    Offset/limit pagination (Mailchimp offset/count, SendGrid offset/limit).

    Stops on a short page, or once offset reaches the reported total.
    """

    offset_param: str = "offset"
    limit_param: str = "limit"
    page_size: int = 100
    total_path: str | None = None

    def initial_params(self) -> dict[str, Any]:
        return {self.offset_param: 0, self.limit_param: self.page_size}

    def next_request(self, request, response, items):
        if len(items) < self.page_size:
            return None

        offset = int(request.params.get(self.offset_param, 0)) + len(items)

        if self.total_path:
            total = dig(response.body, self.total_path)
            if total is not None and offset >= int(total):
                return None

        return request.with_params(**{self.offset_param: offset})


@dataclass
class PageNumberPaginator(Paginator):
    """Page-number pagination: page=1,2,3... until a short page."""

    page_param: str = "page"
    size_param: str = "per_page"
    page_size: int = 50
    first_page: int = 1

    def initial_params(self) -> dict[str, Any]:
        return {self.page_param: self.first_page, self.size_param: self.page_size}

    def next_request(self, request, response, items):
        if len(items) < self.page_size:
            return None

        page = int(request.params.get(self.page_param, self.first_page))
        return request.with_params(**{self.page_param: page + 1})
