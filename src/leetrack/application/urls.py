"""URL matching for judge requests and problem pages."""

import re
from urllib.parse import urlparse

# Problem page in the active tab, on either the .com or .cn site.
PROBLEM_URL_PATTERN = re.compile(r"^https://.+\.(com|cn)/problems/([a-zA-Z0-9-]+)/.*")

# Verdict check issued by the judge page after a submit; fires several times
# per submission while the judge redirects.
SUBMISSION_CHECK_PATTERN = re.compile(
    r"^https://([a-z0-9-]+\.)*leetcode\.(com|cn)/submissions/detail/[^/]+/check/?$"
)

SUBMIT_PATTERN = re.compile(
    r"^https://([a-z0-9-]+\.)*leetcode\.(com|cn)/problems/[^/]+/submit/?$"
)


def get_title_slug(url: str | None) -> str:
    """Extract the problem slug from a problem page URL, or "" if there is none."""
    if not url:
        return ""
    match = PROBLEM_URL_PATTERN.match(url)
    return match.group(2) if match else ""


def is_submission_check(url: str) -> bool:
    return bool(SUBMISSION_CHECK_PATTERN.match(url))


def is_submit(url: str) -> bool:
    return bool(SUBMIT_PATTERN.match(url))


def is_judge_origin(initiator: str | None, judge_domains: list[str] | tuple[str, ...]) -> bool:
    """
    True when `initiator` (an origin such as "https://leetcode.com") belongs
    to one of the judge domains or a subdomain of one.
    """
    if not initiator:
        return False
    host = urlparse(initiator).hostname or ""
    host = host.lower()
    return any(host == d or host.endswith(f".{d}") for d in judge_domains)
