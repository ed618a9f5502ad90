import pytest

from backend.plugins.analytics.events.user_agent import UserAgentInfo, parse_user_agent

CHROME_WINDOWS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/129.0.0.0 Safari/537.36"
)
SAFARI_IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_6 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.6 Mobile/15E148 Safari/604.1"
)
FIREFOX_MAC = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:131.0) Gecko/20100101 Firefox/131.0"
CHROME_ANDROID_PHONE = (
    "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/129.0.0.0 Mobile Safari/537.36"
)
EDGE_WINDOWS = CHROME_WINDOWS + " Edg/129.0.2792.79"
IPAD = (
    "Mozilla/5.0 (iPad; CPU OS 16_4 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/16.4 Mobile/15E148 Safari/604.1"
)
GOOGLEBOT = "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)"


@pytest.mark.parametrize(
    "ua, expected",
    [
        (CHROME_WINDOWS, UserAgentInfo("Chrome", "129.0.0.0", "Windows", "10.0", "desktop")),
        (SAFARI_IPHONE, UserAgentInfo("Safari", "17.6", "iOS", "17.6", "mobile")),
        (FIREFOX_MAC, UserAgentInfo("Firefox", "131.0", "macOS", "10.15", "desktop")),
        (CHROME_ANDROID_PHONE, UserAgentInfo("Chrome", "129.0.0.0", "Android", "14", "mobile")),
        (EDGE_WINDOWS, UserAgentInfo("Edge", "129.0.2792.79", "Windows", "10.0", "desktop")),
        (IPAD, UserAgentInfo("Safari", "16.4", "iOS", "16.4", "tablet")),
        (GOOGLEBOT, UserAgentInfo("Other", None, "Other", None, "bot")),
    ],
)
def test_parse_user_agent(ua, expected):
    assert parse_user_agent(ua) == expected


@pytest.mark.parametrize("ua", [None, ""])
def test_missing_user_agent_gives_empty_info(ua):
    assert parse_user_agent(ua) == UserAgentInfo()
