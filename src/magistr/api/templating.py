"""HTML pages and static assets of the quote board.

Pages are Jinja2 templates under `templates/`, rendered with autoescaping
since quote text comes straight from the submission form. Templates can
call `random_statement()`, `current_date()` and `random_number(low, high)`.
"""

from __future__ import annotations

import random
from datetime import datetime
from pathlib import Path

from fastapi import Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from magistr.api.errors import ApiError

API_DIR = Path(__file__).parent
TEMPLATES_DIR = API_DIR / "templates"
STATIC_DIR = API_DIR / "static"

# Prefilled in the submission form's date field
DATE_FORMAT = "%d/%m/%Y"

STATEMENTS = (
    "Treds",
    "Hold kæft!",
    "Goddag.",
    "Grønne svin på et skod beat",
    "dddddd",
    "<robutler> Goddag og farvel.",
    "ja",
    "60",
    ":D",
    "Godt.",
    "100",
)


def random_statement() -> str:
    return random.choice(STATEMENTS)  # nosec B311


def current_date(fmt: str = DATE_FORMAT) -> str:
    return datetime.now().strftime(fmt)


def random_number(low: int, high: int) -> int:
    """Uniform integer in [low, high], both ends included."""
    return random.randint(low, high)  # nosec B311


templates = Jinja2Templates(directory=TEMPLATES_DIR)
templates.env.globals.update(
    random_statement=random_statement,
    current_date=current_date,
    random_number=random_number,
)


def render(request: Request, name: str, status_code: int = 200, **context) -> HTMLResponse:
    return templates.TemplateResponse(request, name, context, status_code=status_code)


def render_error(request: Request, error: ApiError) -> HTMLResponse:
    """The bare site layout with the error text, under the error's status."""
    return render(
        request,
        "base.html",
        status_code=error.status_code,
        title=error.code,
        message=error.text,
    )
