import re
from dataclasses import asdict, dataclass

_VERSION_PATTERNS = {
    "Edge": r"edg(?:e|a|ios)?/([\d.]+)",
    "Opera": r"(?:opr|opera)/([\d.]+)",
    "Samsung Internet": r"samsungbrowser/([\d.]+)",
    "Firefox": r"(?:firefox|fxios)/([\d.]+)",
    "Chrome": r"(?:chrome|crios)/([\d.]+)",
    "Chromium": r"chromium/([\d.]+)",
    "Safari": r"version/([\d.]+)",
}

_BOT_MARKERS = ("bot", "crawler", "spider", "slurp", "headless")


@dataclass
class UserAgentInfo:
    browser: str | None = None
    browser_ver: str | None = None
    os: str | None = None
    os_ver: str | None = None
    device: str | None = None

    def as_dict(self) -> dict:
        return asdict(self)


def _search(pattern: str, text: str) -> str | None:
    match = re.search(pattern, text)
    return match.group(1) if match else None


def _browser(ua: str) -> str:
    if "edg" in ua:
        return "Edge"
    if "opr/" in ua or "opera" in ua:
        return "Opera"
    if "samsungbrowser" in ua:
        return "Samsung Internet"
    if ("firefox" in ua or "fxios" in ua) and "seamonkey" not in ua:
        return "Firefox"
    if "chromium" in ua:
        return "Chromium"
    if "chrome" in ua or "crios" in ua:
        return "Chrome"
    if "safari" in ua:
        return "Safari"
    return "Other"


def _os(ua: str) -> tuple[str, str | None]:
    if "windows" in ua:
        return "Windows", _search(r"windows nt ([\d.]+)", ua)
    if "iphone" in ua or "ipad" in ua or "ipod" in ua:
        version = _search(r"os ([\d_]+) like mac os x", ua)
        return "iOS", version.replace("_", ".") if version else None
    if "mac os x" in ua or "macintosh" in ua:
        version = _search(r"mac os x ([\d_.]+)", ua)
        return "macOS", version.replace("_", ".") if version else None
    if "android" in ua:
        return "Android", _search(r"android ([\d.]+)", ua)
    if "cros" in ua:
        return "Chrome OS", None
    if "linux" in ua:
        return "Linux", None
    return "Other", None


def _device(ua: str) -> str:
    if any(marker in ua for marker in _BOT_MARKERS):
        return "bot"
    if "ipad" in ua or "tablet" in ua or ("android" in ua and "mobile" not in ua):
        return "tablet"
    if "mobi" in ua or "iphone" in ua or "ipod" in ua:
        return "mobile"
    return "desktop"


def parse_user_agent(ua: str | None) -> UserAgentInfo:
    """
    Coarse browser, OS and device classification of a User-Agent header.
    Good enough for dashboard breakdowns, not for feature detection.
    """
    if not ua:
        return UserAgentInfo()

    lowered = ua.lower()
    browser = _browser(lowered)
    os_name, os_ver = _os(lowered)
    pattern = _VERSION_PATTERNS.get(browser)

    return UserAgentInfo(
        browser=browser,
        browser_ver=_search(pattern, lowered) if pattern else None,
        os=os_name,
        os_ver=os_ver,
        device=_device(lowered),
    )
