"""
Extraction pipeline: one ping0.cc result page in, one InfoRecord out.

The pipeline rejects the service's error page before touching any field
(the error page shares the layout of a result page and would otherwise
yield a partial record), extracts every field in record order, and
requires the IP address to be present.
"""

from typing import Optional, Union

from bs4 import BeautifulSoup

from .audit_logger import AuditLogger
from .enums import ErrorCode, LogLevel
from .exceptions import ErrorPageError, MissingAddressError, ParseFailureError
from .field_extractor import FieldExtractor, ParsedDocument
from .models import InfoRecord
from .pattern_cache import PatternCache
from .text_normalizer import normalize_text

ERROR_MARKER = "系统发生错误"  # "a system error occurred"
TITLE_ERROR_MARKERS = (ERROR_MARKER, "Error")
ERROR_MESSAGE_SELECTOR = ".error-message"
PREVIEW_LENGTH = 200

# Extraction order; matches InfoRecord field order minus the attribution
FIELD_ORDER = (
    "ip",
    "ip_location",
    "asn",
    "asn_owner",
    "asn_type",
    "organization",
    "org_type",
    "longitude",
    "latitude",
    "ip_type",
    "risk_value",
    "native_ip",
    "country_flag",
)


def decode_document(document: Union[str, bytes]) -> str:
    """
    Return the document as text.

    Raises:
        ParseFailureError: If the document is empty or not valid UTF-8
    """
    if isinstance(document, bytes):
        try:
            document = document.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParseFailureError(
                code=ErrorCode.PARSE_FAILURE.value,
                message=f"Document is not valid UTF-8: {e}",
                details={"length": len(document)},
            )
    if not document or not document.strip():
        raise ParseFailureError(
            code=ErrorCode.PARSE_FAILURE.value,
            message="HTML content is empty",
        )
    return document


def parse_document(text: str) -> BeautifulSoup:
    """
    Parse HTML text with lxml.

    Raises:
        ParseFailureError: If the parser fails or produces no elements
    """
    try:
        soup = BeautifulSoup(text, "lxml")
    except Exception as e:
        raise ParseFailureError(
            code=ErrorCode.PARSE_FAILURE.value,
            message=f"Failed to parse HTML: {e}",
        ) from e
    if soup.find() is None:
        raise ParseFailureError(
            code=ErrorCode.PARSE_FAILURE.value,
            message="Failed to parse HTML: no elements found",
        )
    return soup


def _preview(text: str) -> str:
    if len(text) > PREVIEW_LENGTH:
        return text[:PREVIEW_LENGTH] + "..."
    return text


class ExtractionPipeline:
    """
    Converts a final ping0.cc page into an InfoRecord.

    Stateless across calls: every call parses its own document, so a single
    pipeline can serve concurrent requests.
    """

    def __init__(
        self,
        extractor: Optional[FieldExtractor] = None,
        pattern_cache: Optional[PatternCache] = None,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        """
        Initialize the pipeline.

        Args:
            extractor: Field extractor; built on pattern_cache if omitted
            pattern_cache: Optional shared compiled-pattern cache
            logger: Optional audit logger
        """
        self._extractor = extractor or FieldExtractor(pattern_cache)
        self._logger = logger

    def extract(self, document: Union[str, bytes]) -> InfoRecord:
        """
        Extract the IP record from a result page.

        Args:
            document: Raw HTML as text or UTF-8 bytes

        Returns:
            InfoRecord with a non-empty ip field

        Raises:
            ParseFailureError: Empty, undecodable, or unparseable document
            ErrorPageError: The service returned its error page
            MissingAddressError: No IP address could be extracted
        """
        text = decode_document(document)

        if ERROR_MARKER in text:
            self._raise_error_page(text)

        soup = parse_document(text)
        parsed = ParsedDocument.from_soup(soup)

        title = normalize_text(parsed.title)
        if any(marker in title for marker in TITLE_ERROR_MARKERS):
            raise ErrorPageError(
                code=ErrorCode.ERROR_PAGE.value,
                message=f"Site returned an error page: {title}",
                details={"title": title},
            )

        values: dict[str, str] = {}
        for name in FIELD_ORDER:
            result = self._extractor.extract_field(parsed, name)
            values[name] = result.value
            if result:
                self._log(
                    LogLevel.DEBUG,
                    f"Extracted {name}",
                    {"field": name, "value": result.value, "source": result.source.value},
                )
            if name == "ip" and not result:
                self._log(
                    LogLevel.DEBUG,
                    "No IP address found",
                    {"preview": _preview(text)},
                )
                raise MissingAddressError(
                    code=ErrorCode.MISSING_ADDRESS.value,
                    message="Could not extract IP information from page, possibly an error page",
                    details={"title": title},
                )

        return InfoRecord(**values)

    def _raise_error_page(self, text: str) -> None:
        detail = ""
        try:
            soup = BeautifulSoup(text, "lxml")
            element = soup.select_one(ERROR_MESSAGE_SELECTOR)
            if element is not None:
                detail = normalize_text(element.get_text(" "))
        except Exception as e:
            self._log(LogLevel.DEBUG, "Could not read error message", {"error": str(e)})

        raise ErrorPageError(
            code=ErrorCode.ERROR_PAGE.value,
            message=f"Site returned an error: {detail or ERROR_MARKER}",
            details={"error_message": detail},
        )

    def _log(self, level: LogLevel, message: str, data: Optional[dict] = None) -> None:
        if self._logger:
            self._logger.log(level, "ExtractionPipeline", message, data)
