"""
HTML builders shaped like ping0.cc pages, plus a fake ping0.cc request
handler for httpx.MockTransport, shared by the tests.
"""

from typing import Optional, Sequence

import httpx


def _script(assignments: dict) -> str:
    lines = [f"window.{name} = '{value}';" for name, value in assignments.items()]
    return "<script>\n" + "\n".join(lines) + "\n</script>"


def _labels(values: Sequence[str]) -> str:
    return "".join(f'<span class="label">{value}</span>' for value in values)


def build_result_page(
    ip: Optional[str] = "1.1.1.1",
    title: Optional[str] = None,
    script_vars: Optional[dict] = None,
    location: Optional[str] = "美国 加利福尼亚州 洛杉矶",
    flag: Optional[str] = "us",
    asn: Optional[str] = "AS13335",
    asn_owner: Optional[str] = "Cloudflare, Inc.",
    asn_owner_note: str = "美国 Cloudflare 公司",
    asn_types: Sequence[str] = ("IDC",),
    organization: Optional[str] = "APNIC and Cloudflare DNS Resolver project",
    org_note: str = "",
    org_types: Sequence[str] = ("IDC",),
    longitude: Optional[str] = "-118.2437",
    latitude: Optional[str] = "34.0522",
    ip_types: Sequence[str] = ("IDC机房IP",),
    risk: Optional[tuple] = ("15%", "纯净"),
    native_ip: Optional[str] = "原生IP",
    extra_head: str = "",
) -> str:
    """
    Build a result page.

    `ip` goes into the window.ip script variable (None omits it); anything in
    script_vars is added to the same script block. Passing None for a DOM
    field leaves its line out.
    """
    assignments = {}
    if ip is not None:
        assignments["ip"] = ip
    assignments.update(script_vars or {})

    head = []
    if title is not None:
        head.append(f"<title>{title}</title>")
    if assignments:
        head.append(_script(assignments))
    head.append(extra_head)

    body = []
    if location is not None or flag is not None:
        image = f'<img src="/static/flags/{flag}.png" alt="">' if flag else ""
        body.append(
            '<div class="line loc"><div class="name">IP 位置</div>'
            f'<div class="content">{image} {location or ""} '
            '<a class="report" href="#">错误提交</a></div></div>'
        )
    if asn is not None:
        body.append(
            '<div class="line asn"><div class="name">ASN</div>'
            f'<div class="content"><a href="/as/{asn}">{asn}</a></div></div>'
        )
    if asn_owner is not None:
        note = f" — {asn_owner_note}" if asn_owner_note else ""
        body.append(
            '<div class="line asnname"><div class="name">ASN 所有者</div>'
            f'<div class="content">{asn_owner}{note} {_labels(asn_types)}</div></div>'
        )
    if organization is not None:
        note = f" — {org_note}" if org_note else ""
        body.append(
            '<div class="line orgname"><div class="name">企业</div>'
            f'<div class="content">{organization}{note} {_labels(org_types)}</div></div>'
        )
    if longitude is not None:
        body.append(
            '<div class="line"><div class="name">经度</div>'
            f'<div class="content">{longitude}</div></div>'
        )
    if latitude is not None:
        body.append(
            '<div class="line"><div class="name">纬度</div>'
            f'<div class="content">{latitude}</div></div>'
        )
    body.append(
        '<div class="line line-iptype"><div class="name">IP类型</div>'
        f'<div class="content">{_labels(ip_types)}</div></div>'
    )
    if risk is not None:
        body.append(
            '<div class="line line-risk"><div class="name">风控值</div>'
            '<div class="content"><div class="riskbar"><div class="riskcurrent">'
            f'<span class="value">{risk[0]}</span><span class="lab">{risk[1]}</span>'
            '</div></div></div></div>'
        )
    if native_ip is not None:
        body.append(
            '<div class="line line-nativeip"><div class="name">原生 IP</div>'
            f'<div class="content"><span class="label">{native_ip}</span></div></div>'
        )

    return (
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\">"
        + "".join(head)
        + "</head><body><div class=\"info\">"
        + "\n".join(body)
        + "</div></body></html>"
    )


def build_initial_page(
    x1: Optional[str] = "3ef12496741412ab807c60c346ded5e7",
    difficulty: Optional[str] = "3ef",
    js_src: Optional[str] = "/js/main.js?v=20240301",
    quote: str = "'",
) -> str:
    """Build the landing page carrying the challenge."""
    lines = []
    if x1 is not None:
        lines.append(f"window.x1 = {quote}{x1}{quote};")
    if difficulty is not None:
        lines.append(f"window.difficulty = {quote}{difficulty}{quote};")
    script_tag = f'<script src="{js_src}"></script>' if js_src else ""
    return (
        "<html><head><title>ping0.cc</title>"
        "<script>" + "\n".join(lines) + "</script>"
        + script_tag
        + "</head><body><div id=\"app\">Loading...</div></body></html>"
    )


def build_error_page(message: Optional[str] = "请求过于频繁") -> str:
    """Build the service's error page."""
    detail = f'<div class="error-message">{message}</div>' if message else ""
    return (
        "<html><head><title>ping0.cc</title></head><body>"
        "<h1>系统发生错误</h1>" + detail + "</body></html>"
    )


class FakePing0:
    """Serves the challenge page until the solved cookies come back."""

    def __init__(
        self,
        initial_page: Optional[str] = None,
        final_page: Optional[str] = None,
        final_status: int = 200,
    ) -> None:
        self.initial_page = initial_page or build_initial_page()
        self.final_page = final_page
        self.final_status = final_status
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if "js1key=" not in request.headers.get("cookie", ""):
            return httpx.Response(
                200,
                text=self.initial_page,
                headers={"Set-Cookie": "session=abc123; Path=/"},
            )
        page = self.final_page
        if page is None:
            path = request.url.path
            ip = path.rsplit("/", 1)[-1] if path.startswith("/ip/") else "203.0.113.7"
            page = build_result_page(ip=ip)
        return httpx.Response(self.final_status, text=page)
