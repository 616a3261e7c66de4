"""HTTP binding over httpx requests and responses.

Binary mode carries attributes as ``ce-<name>`` headers with
``datacontenttype`` in ``Content-Type``; structured mode is recognized by a
``Content-Type`` naming a registered event format.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

import httpx
import structlog
from tenacity import retry, retry_if_exception_type

from cloudevents_core.binding import (
    Attribute,
    BinaryWriter,
    Encoding,
    Kind,
    Message,
    StructuredWriter,
    Transformer,
    Version,
    WriteContext,
    write,
)
from cloudevents_core.binding.spec import with_prefix
from cloudevents_core.errors import NotBinaryError, NotStructuredError
from cloudevents_core.formats import Format, lookup
from cloudevents_core.retry import RetryParams
from cloudevents_core.types import Value, format_value

logger = structlog.get_logger()

PREFIX = "ce-"
CONTENT_TYPE = "content-type"
VERSIONS = with_prefix(PREFIX)


def _header_name(attribute: Attribute) -> str:
    if attribute.kind is Kind.DATA_CONTENT_TYPE:
        return CONTENT_TYPE
    return PREFIX + attribute.name


class HTTPMessage:
    """An HTTP request or response body plus headers, read as a Message."""

    def __init__(
        self,
        headers: httpx.Headers,
        body: bytes,
        on_finish: Callable[[BaseException | None], None] | None = None,
    ) -> None:
        self.headers = headers
        self.body = body
        self._on_finish = on_finish
        self.format: Format | None = None
        self.version: Version | None = None
        content_type = headers.get(CONTENT_TYPE, "")
        if content_type:
            self.format = lookup(content_type)
        if self.format is None:
            self.version = VERSIONS.find_version(headers.get)

    def read_encoding(self) -> Encoding:
        if self.version is not None:
            return Encoding.BINARY
        if self.format is not None:
            return Encoding.STRUCTURED
        return Encoding.UNKNOWN

    def read_structured(self, writer: StructuredWriter) -> None:
        if self.format is None:
            raise NotStructuredError()
        writer.set_structured_event(self.format, self.body)

    def read_binary(self, writer: BinaryWriter) -> None:
        if self.version is None:
            raise NotBinaryError()
        spec_attr = self.version.attribute_from_kind(Kind.SPEC_VERSION)
        writer.set_attribute(spec_attr, self.version.spec_version)
        for name, value in self.headers.multi_items():
            attr = self.version.attribute(name)
            if attr is not None:
                if attr.kind is not Kind.SPEC_VERSION:
                    writer.set_attribute(attr, value)
            elif name.lower().startswith(PREFIX):
                writer.set_extension(name[len(PREFIX) :].lower(), value)
        content_type = self.headers.get(CONTENT_TYPE)
        if content_type:
            attr = self.version.attribute_from_kind(Kind.DATA_CONTENT_TYPE)
            writer.set_attribute(attr, content_type)
        if self.body:
            writer.set_data(self.body)

    def get_attribute(self, kind: Kind) -> tuple[Attribute | None, Value | None]:
        if self.version is None:
            return None, None
        attr = self.version.attribute_from_kind(kind)
        return attr, self.headers.get(_header_name(attr))

    def get_extension(self, name: str) -> Value | None:
        return self.headers.get(PREFIX + name)

    def finish(self, err: BaseException | None = None) -> None:
        if self._on_finish is not None:
            self._on_finish(err)


def from_request(request: httpx.Request) -> HTTPMessage:
    return HTTPMessage(request.headers, request.read())


def from_response(response: httpx.Response) -> HTTPMessage:
    return HTTPMessage(response.headers, response.read(), on_finish=_close(response))


def _close(response: httpx.Response) -> Callable[[BaseException | None], None]:
    def finish(err: BaseException | None) -> None:
        response.close()

    return finish


class HTTPWriter:
    """Structured and binary writer filling HTTP headers and body."""

    def __init__(self, headers: httpx.Headers | None = None) -> None:
        self.headers = headers if headers is not None else httpx.Headers()
        self.content = b""

    def set_structured_event(self, fmt: Format, data: bytes) -> None:
        self.headers[CONTENT_TYPE] = fmt.media_type
        self.content = bytes(data)

    def start(self) -> None:
        return None

    def set_attribute(self, attribute: Attribute, value: Any) -> None:
        name = _header_name(attribute)
        if value is None:
            self.headers.pop(name, None)
            return
        self.headers[name] = format_value(value)

    def set_extension(self, name: str, value: Any) -> None:
        key = PREFIX + name
        if value is None:
            self.headers.pop(key, None)
            return
        self.headers[key] = format_value(value)

    def set_data(self, data: bytes) -> None:
        self.content = bytes(data)

    def end(self) -> None:
        return None

    def build_request(self, method: str, url: str | httpx.URL) -> httpx.Request:
        return httpx.Request(method, url, headers=self.headers, content=self.content)

    def build_response(self, status_code: int = 200) -> httpx.Response:
        return httpx.Response(status_code, headers=self.headers, content=self.content)


def new_request(
    ctx: WriteContext | None,
    message: Message,
    method: str,
    url: str | httpx.URL,
    transformers: Iterable[Transformer] | None = None,
) -> httpx.Request:
    """Encode *message* into an httpx request for *url*."""
    writer = HTTPWriter()
    write(ctx, message, writer, writer, transformers)
    return writer.build_request(method, url)


def new_response(
    ctx: WriteContext | None,
    message: Message,
    status_code: int = 200,
    transformers: Iterable[Transformer] | None = None,
) -> httpx.Response:
    writer = HTTPWriter()
    write(ctx, message, writer, writer, transformers)
    return writer.build_response(status_code)


def send(
    client: httpx.Client, request: httpx.Request, params: RetryParams
) -> httpx.Response:
    """Send *request*, retrying transport and 5xx failures per *params*."""

    @retry(
        **params.tenacity_kwargs(),
        retry=retry_if_exception_type((httpx.TransportError, httpx.HTTPStatusError)),
        reraise=True,
    )
    def _send() -> httpx.Response:
        response = client.send(request)
        if response.is_server_error:
            response.raise_for_status()
        return response

    response = _send()
    logger.debug("http.sent", url=str(request.url), status_code=response.status_code)
    return response


async def send_async(
    client: httpx.AsyncClient, request: httpx.Request, params: RetryParams
) -> httpx.Response:
    """Async variant of ``send``."""

    @retry(
        **params.tenacity_kwargs(),
        retry=retry_if_exception_type((httpx.TransportError, httpx.HTTPStatusError)),
        reraise=True,
    )
    async def _send() -> httpx.Response:
        response = await client.send(request)
        if response.is_server_error:
            response.raise_for_status()
        return response

    response = await _send()
    logger.debug("http.sent", url=str(request.url), status_code=response.status_code)
    return response
