"""
Field extraction for ping0.cc result pages.

Each field of the IP record is looked up with an ordered list of strategies:
the global variables the page assigns in its inline scripts come first, the
rendered DOM second. The first strategy that yields a non-empty normalized
value wins.

Selectors mirror the page layout as of the last calibration:

    <div class="line loc"><div class="content"><img src=".../us.png"> ...</div></div>
    <div class="line asn"><div class="content"><a>AS13335</a></div></div>
    <div class="line asnname"><div class="content">Cloudflare — ...
        <span class="label">IDC</span></div></div>
"""

import ipaddress
import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Callable, Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Comment, Tag

from .enums import ExtractionSource
from .pattern_cache import PatternCache
from .text_normalizer import normalize_text

TAG_SEPARATOR = "; "
OWNER_DELIMITER = "—"
REPORT_LINK_TEXT = "错误提交"  # "report an error" link inside the location line
LONGITUDE_LABEL = "经度"
LATITUDE_LABEL = "纬度"

IP_VARIABLE = "window.ip"
LOCATION_VARIABLE = "window.loc"
LONGITUDE_VARIABLE = "window.longitude"
LATITUDE_VARIABLE = "window.latitude"

LOCATION_SELECTOR = ".line.loc .content"
FLAG_SELECTOR = ".line.loc .content img"
ASN_SELECTOR = ".line.asn .content a"
ASN_NAME_SELECTOR = ".line.asnname .content"
ORG_NAME_SELECTOR = ".line.orgname .content"
IP_TYPE_SELECTOR = ".line.line-iptype .content .label"
RISK_SELECTOR = ".line.line-risk .content .riskbar .riskcurrent"
NATIVE_IP_SELECTOR = ".line.line-nativeip .content .label"
LABEL_CLASS = "label"


@dataclass(frozen=True)
class FieldValue:
    """An extracted value and the strategy that produced it."""

    value: str = ""
    source: Optional[ExtractionSource] = None

    def __bool__(self) -> bool:
        return bool(self.value)


EMPTY = FieldValue()


@dataclass
class ParsedDocument:
    """A parsed page plus the pieces every strategy needs."""

    soup: BeautifulSoup
    title: str
    scripts: list[str]

    @classmethod
    def from_soup(cls, soup: BeautifulSoup) -> "ParsedDocument":
        title_tag = soup.find("title")
        title = title_tag.get_text() if title_tag else ""
        scripts = [script.get_text() for script in soup.find_all("script")]
        return cls(soup=soup, title=title, scripts=scripts)


def script_variable_pattern(name: str) -> str:
    """Regex source matching `name = "value"` or `name = 'value'`."""
    return (
        r"(?<![\w.$])" + re.escape(name)
        + r"\s*=(?!=)\s*(['\"])(.*?)\1"
    )


def find_script_variable(
    scripts: list[str],
    name: str,
    cache: Optional[PatternCache] = None,
) -> Optional[str]:
    """
    Return the raw value of the first assignment to `name` in document order.

    Args:
        scripts: Inline script bodies in document order
        name: Dotted variable name, e.g. 'window.ip'
        cache: Optional compiled-pattern cache

    Returns:
        The quoted value as written, or None if no script assigns it
    """
    source = script_variable_pattern(name)
    pattern = cache.get(source) if cache is not None else re.compile(source)
    for body in scripts:
        if name not in body:
            continue
        match = pattern.search(body)
        if match:
            return match.group(2)
    return None


def _has_class(element: Tag, class_name: str) -> bool:
    return class_name in (element.get("class") or [])


def _inside_class(node, container: Tag, class_name: str) -> bool:
    for parent in node.parents:
        if parent is container:
            return False
        if _has_class(parent, class_name):
            return True
    return False


def text_excluding(container: Tag, class_name: str) -> str:
    """Text of `container` without the text of descendants carrying `class_name`."""
    parts = []
    for node in container.find_all(string=True):
        if isinstance(node, Comment):
            continue
        if _inside_class(node, container, class_name):
            continue
        parts.append(str(node))
    return " ".join(parts)


def collect_tags(elements: list[Tag]) -> str:
    """Join the normalized texts of tag elements in document order."""
    values = [normalize_text(element.get_text(" ")) for element in elements]
    return TAG_SEPARATOR.join(value for value in values if value)


class FieldExtractor:
    """
    Looks up individual record fields in a parsed ping0.cc page.

    Holds no per-document state; the only shared object is the compiled
    pattern cache, which is safe to share between threads.
    """

    def __init__(self, pattern_cache: Optional[PatternCache] = None) -> None:
        self._patterns = pattern_cache or PatternCache()
        self._extractors: dict[str, Callable[[ParsedDocument], FieldValue]] = {
            "ip": self.extract_ip,
            "ip_location": self.extract_location,
            "asn": self.extract_asn,
            "asn_owner": self.extract_asn_owner,
            "asn_type": self.extract_asn_type,
            "organization": self.extract_organization,
            "org_type": self.extract_org_type,
            "longitude": self.extract_longitude,
            "latitude": self.extract_latitude,
            "ip_type": self.extract_ip_type,
            "risk_value": self.extract_risk_value,
            "native_ip": self.extract_native_ip,
            "country_flag": self.extract_country_flag,
        }

    @property
    def fields(self) -> list[str]:
        return list(self._extractors)

    def extract_field(self, document: ParsedDocument, name: str) -> FieldValue:
        """
        Extract one field by record name.

        Raises:
            KeyError: If the field name is not part of the record schema
        """
        return self._extractors[name](document)

    def first_of(self, *strategies: Callable[[], FieldValue]) -> FieldValue:
        """Run strategies in order and return the first non-empty value."""
        for strategy in strategies:
            result = strategy()
            if result:
                return result
        return EMPTY

    # Strategies

    def from_script(self, document: ParsedDocument, name: str) -> FieldValue:
        raw = find_script_variable(document.scripts, name, self._patterns)
        value = normalize_text(raw or "")
        return FieldValue(value, ExtractionSource.SCRIPT) if value else EMPTY

    def from_selector(self, document: ParsedDocument, selector: str) -> FieldValue:
        for element in document.soup.select(selector):
            value = normalize_text(element.get_text(" "))
            if value:
                return FieldValue(value, ExtractionSource.SELECTOR)
        return EMPTY

    def from_title(self, document: ParsedDocument) -> FieldValue:
        candidate = normalize_text(document.title.split("-")[0])
        try:
            ipaddress.ip_address(candidate)
        except ValueError:
            return EMPTY
        return FieldValue(candidate, ExtractionSource.TITLE)

    # Fields

    def extract_ip(self, document: ParsedDocument) -> FieldValue:
        return self.first_of(
            lambda: self.from_script(document, IP_VARIABLE),
            lambda: self.from_title(document),
        )

    def extract_location(self, document: ParsedDocument) -> FieldValue:
        return self.first_of(
            lambda: self.from_script(document, LOCATION_VARIABLE),
            lambda: self._location_from_dom(document),
        )

    def _location_from_dom(self, document: ParsedDocument) -> FieldValue:
        for element in document.soup.select(LOCATION_SELECTOR):
            text = element.get_text(" ").replace(REPORT_LINK_TEXT, "")
            value = normalize_text(text)
            if value:
                return FieldValue(value, ExtractionSource.SELECTOR)
        return EMPTY

    def extract_country_flag(self, document: ParsedDocument) -> FieldValue:
        for image in document.soup.select(FLAG_SELECTOR):
            src = image.get("src")
            if not src:
                continue
            stem = PurePosixPath(urlparse(src).path).stem
            if stem:
                return FieldValue(stem, ExtractionSource.SELECTOR)
        return EMPTY

    def extract_asn(self, document: ParsedDocument) -> FieldValue:
        return self.from_selector(document, ASN_SELECTOR)

    def _owner_name(self, document: ParsedDocument, selector: str) -> FieldValue:
        for element in document.soup.select(selector):
            value = normalize_text(text_excluding(element, LABEL_CLASS))
            value = value.split(OWNER_DELIMITER, 1)[0].strip()
            if value:
                return FieldValue(value, ExtractionSource.SELECTOR)
        return EMPTY

    def _owner_tags(self, document: ParsedDocument, selector: str) -> FieldValue:
        for element in document.soup.select(selector):
            value = collect_tags(element.find_all(class_=LABEL_CLASS))
            if value:
                return FieldValue(value, ExtractionSource.SELECTOR)
        return EMPTY

    def extract_asn_owner(self, document: ParsedDocument) -> FieldValue:
        return self._owner_name(document, ASN_NAME_SELECTOR)

    def extract_asn_type(self, document: ParsedDocument) -> FieldValue:
        return self._owner_tags(document, ASN_NAME_SELECTOR)

    def extract_organization(self, document: ParsedDocument) -> FieldValue:
        return self._owner_name(document, ORG_NAME_SELECTOR)

    def extract_org_type(self, document: ParsedDocument) -> FieldValue:
        return self._owner_tags(document, ORG_NAME_SELECTOR)

    def _labelled_line(self, document: ParsedDocument, label: str) -> FieldValue:
        for line in document.soup.select(".line"):
            name = line.select_one(".name")
            if name is None or normalize_text(name.get_text()) != label:
                continue
            content = line.select_one(".content")
            value = normalize_text(content.get_text(" ")) if content else ""
            if value:
                return FieldValue(value, ExtractionSource.SELECTOR)
        return EMPTY

    def extract_longitude(self, document: ParsedDocument) -> FieldValue:
        return self.first_of(
            lambda: self.from_script(document, LONGITUDE_VARIABLE),
            lambda: self._labelled_line(document, LONGITUDE_LABEL),
        )

    def extract_latitude(self, document: ParsedDocument) -> FieldValue:
        return self.first_of(
            lambda: self.from_script(document, LATITUDE_VARIABLE),
            lambda: self._labelled_line(document, LATITUDE_LABEL),
        )

    def extract_ip_type(self, document: ParsedDocument) -> FieldValue:
        value = collect_tags(document.soup.select(IP_TYPE_SELECTOR))
        return FieldValue(value, ExtractionSource.SELECTOR) if value else EMPTY

    def extract_risk_value(self, document: ParsedDocument) -> FieldValue:
        for element in document.soup.select(RISK_SELECTOR):
            score = element.select_one(".value")
            label = element.select_one(".lab")
            score_text = normalize_text(score.get_text()) if score else ""
            label_text = normalize_text(label.get_text()) if label else ""
            if score_text and label_text:
                return FieldValue(f"{score_text} {label_text}", ExtractionSource.SELECTOR)
        return EMPTY

    def extract_native_ip(self, document: ParsedDocument) -> FieldValue:
        return self.from_selector(document, NATIVE_IP_SELECTOR)
