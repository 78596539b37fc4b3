"""HTML pages for each unsubscribe outcome."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import urlencode

from jinja2 import Environment, FileSystemLoader, select_autoescape

from unsubscribe_service.core.config import settings
from unsubscribe_service.schemas.unsubscribe import UnsubscribeOutcome, UnsubscribeResult

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "pages"


@dataclass(frozen=True)
class PageSpec:
    template: str
    status_code: int
    title: str | None = None
    message: str | None = None


PAGES: dict[UnsubscribeOutcome, PageSpec] = {
    UnsubscribeOutcome.NO_TOKEN: PageSpec(
        "error.html", 400, "Invalid Request", "No unsubscribe token provided."
    ),
    UnsubscribeOutcome.INVALID: PageSpec(
        "error.html", 400, "Invalid Token", "The unsubscribe link is invalid or has expired."
    ),
    UnsubscribeOutcome.EXPIRED: PageSpec(
        "error.html", 400, "Invalid Token", "The unsubscribe link is invalid or has expired."
    ),
    UnsubscribeOutcome.USER_NOT_FOUND: PageSpec(
        "error.html", 404, "User Not Found", "We could not find your account."
    ),
    UnsubscribeOutcome.ALREADY_UNSUBSCRIBED: PageSpec("unsubscribed.html", 200),
    UnsubscribeOutcome.AWAITING_CONFIRMATION: PageSpec("confirm.html", 200),
    UnsubscribeOutcome.DECLINED: PageSpec("still_subscribed.html", 200),
    UnsubscribeOutcome.CONFIRMED: PageSpec("unsubscribed.html", 200),
    UnsubscribeOutcome.RATE_LIMITED: PageSpec(
        "rate_limited.html", 429, "Too Many Requests", "Please wait a moment before trying again."
    ),
    UnsubscribeOutcome.STORAGE_FAILURE: PageSpec(
        "error.html",
        500,
        "Server Error",
        "An error occurred while processing your request. Please try again later.",
    ),
}


class PageRenderer:
    """Renders an ``UnsubscribeResult`` into an HTML body and status code."""

    def __init__(
        self,
        *,
        resubscribe_url: str | None = None,
        support_email: str | None = None,
        template_dir: Path = TEMPLATE_DIR,
    ) -> None:
        self.resubscribe_url = resubscribe_url or settings.resubscribe_url
        self.support_email = support_email or settings.support_email
        self._env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=select_autoescape(["html"]),
        )

    def render(self, result: UnsubscribeResult) -> tuple[str, int]:
        page = PAGES[result.outcome]
        context: dict[str, Any] = {
            "title": page.title,
            "message": result.detail or page.message,
            "email": result.email,
            "already_unsubscribed": result.outcome is UnsubscribeOutcome.ALREADY_UNSUBSCRIBED,
            "resubscribe_url": self.resubscribe_url,
            "support_email": self.support_email,
        }
        if result.outcome is UnsubscribeOutcome.AWAITING_CONFIRMATION and result.token:
            context["confirm_yes_url"] = _confirm_url(result.token, "yes")
            context["confirm_no_url"] = _confirm_url(result.token, "no")

        html = self._env.get_template(page.template).render(**context)
        return html, page.status_code


def _confirm_url(token: str, answer: str) -> str:
    return "/unsubscribe?" + urlencode({"token": token, "confirm": answer})
