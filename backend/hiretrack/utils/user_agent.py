from user_agents import parse as parse_user_agent

# Matched in order against the parsed browser family ("Chrome Mobile iOS" -> chrome).
_BROWSER_FAMILIES = ("edge", "opera", "firefox", "chrome", "safari")


def detect_device_type(user_agent: str | None) -> str:
    if not user_agent:
        return "unknown"
    ua = parse_user_agent(user_agent)
    # Tablets first: many tablet agents also carry a "Mobile" token.
    if ua.is_tablet:
        return "tablet"
    if ua.is_mobile:
        return "mobile"
    return "desktop"


def detect_browser(user_agent: str | None) -> str:
    if not user_agent:
        return "unknown"
    family = parse_user_agent(user_agent).browser.family.lower()
    for name in _BROWSER_FAMILIES:
        if name in family:
            return name
    return "other"
