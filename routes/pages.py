import logging
import os
from typing import Any, Dict

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse, HTMLResponse
from jinja2 import Environment, FileSystemLoader, select_autoescape

from core.config import Settings, get_settings

logger = logging.getLogger("checkout")

router = APIRouter(tags=["pages"])

# Jinja2 environment for server-rendered pages
_templates_env = Environment(
    loader=FileSystemLoader(searchpath=os.path.join(os.path.dirname(os.path.dirname(__file__)), "templates")),
    autoescape=select_autoescape(["html", "xml"]),
)


def render_template(template_path: str, context: Dict[str, Any]) -> str:
    """Render a template from templates/ directory with provided context."""
    template = _templates_env.get_template(template_path)
    return template.render(**context)


def _page(path: str) -> FileResponse:
    page = os.path.abspath(path)
    if not os.path.isfile(page):
        logger.error(f"Page not found on disk: {page}")
        raise FileNotFoundError(f"{os.path.basename(page)} not found at {page}")
    return FileResponse(page, media_type="text/html")


@router.get("/", include_in_schema=False)
def index(settings: Settings = Depends(get_settings)):
    return _page(settings.INDEX_PAGE)


@router.get("/sdk-lite.html", include_in_schema=False)
def sdk_lite(settings: Settings = Depends(get_settings)):
    return _page(settings.SDK_LITE_PAGE)


@router.get("/payment-success", response_class=HTMLResponse)
def payment_success(provider: str = "", settings: Settings = Depends(get_settings)):
    return render_template("payment_success.html", {"store_name": settings.STORE_NAME, "provider": provider})
