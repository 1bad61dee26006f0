"""
Public website routes.
Read-only content for the home, about and portfolio pages, plus the contact form.
Reads go through the query cache; when the backend cannot be read, pages get
placeholder content instead of an error.
"""
from fastapi import APIRouter, HTTPException, Request, Response, status
from typing import List, Optional
import logging

from interior_cms.cache import Entity, Keys, query_cache, read_cached
from interior_cms.errors import BackendError, ConfigurationError
from interior_cms.fallbacks import SAMPLE_CATEGORY_NAMES, SAMPLE_PORTFOLIOS, find_sample_portfolio
from interior_cms.schemas import (
    AboutSection,
    FooterSettings,
    HeroSlideResponse,
    InquiryCreate,
    InquiryResponse,
    LogoSettings,
    PortfolioResponse,
)
from interior_cms.services.about_content import about_content_api, group_by_section
from interior_cms.services.category import category_api
from interior_cms.services.hero_slide import hero_slide_api
from interior_cms.services.inquiry import inquiry_api
from interior_cms.services.portfolio import portfolio_api
from interior_cms.services.site_settings import FOOTER_DEFAULTS, settings_with_defaults, site_settings_api
from interior_cms.utils.rate_limit import RATE_LIMITS, limiter

logger = logging.getLogger(__name__)

router = APIRouter()

CONTACT_ERROR_MESSAGE = "문의 전송 중 오류가 발생했습니다. 다시 시도해주세요."
CONTACT_SUCCESS_MESSAGE = "문의가 접수되었습니다. 빠른 시일 내에 연락드리겠습니다."


@router.get("/portfolios", response_model=List[PortfolioResponse])
def get_published_portfolios(response: Response, category: Optional[str] = None):
    """
    Get published portfolios, newest first.

    Args:
        category: Optional category name to filter by (gallery tabs)

    Returns:
        list[PortfolioResponse]: Published portfolios, or sample portfolios if the backend could not be read
    """
    try:
        portfolios = read_cached(Keys.PUBLISHED_PORTFOLIOS, portfolio_api.get_published, response)
    except BackendError as e:
        logger.warning(f"Serving sample portfolios, backend read failed: {e.message}")
        portfolios = SAMPLE_PORTFOLIOS

    if category:
        portfolios = [p for p in portfolios if p.get("category") == category]

    return [PortfolioResponse.model_validate(p) for p in portfolios]


@router.get("/portfolios/{portfolio_id}", response_model=PortfolioResponse)
def get_portfolio(portfolio_id: str, response: Response):
    """
    Get a single published portfolio.

    Raises:
        HTTPException: 404 if the portfolio does not exist or is not published
    """
    try:
        portfolio = read_cached(
            Keys.portfolio_detail(portfolio_id),
            lambda: portfolio_api.get_by_id(portfolio_id),
            response,
        )
    except BackendError as e:
        portfolio = find_sample_portfolio(portfolio_id)
        if portfolio is None:
            raise
        logger.warning(f"Serving sample portfolio {portfolio_id}, backend read failed: {e.message}")

    if not portfolio or not portfolio.get("is_published"):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "Portfolio not found", "detail": f"Portfolio {portfolio_id} does not exist"}
        )

    return PortfolioResponse.model_validate(portfolio)


@router.get("/hero-slides", response_model=List[HeroSlideResponse])
def get_active_hero_slides(response: Response):
    """Active hero slides in display order."""
    try:
        slides = read_cached(Keys.ACTIVE_HERO_SLIDES, hero_slide_api.get_active, response)
    except BackendError as e:
        logger.warning(f"No hero slides available, backend read failed: {e.message}")
        slides = []

    return [HeroSlideResponse.model_validate(s) for s in slides]


@router.get("/categories", response_model=List[str])
def get_category_names(response: Response):
    """
    Category names for the portfolio gallery filter.
    Falls back to the built-in names when none are stored.
    """
    try:
        categories = read_cached(Keys.ALL_CATEGORIES, category_api.get_all, response)
    except BackendError as e:
        logger.warning(f"Serving default categories, backend read failed: {e.message}")
        categories = []

    return [c["name"] for c in categories] or list(SAMPLE_CATEGORY_NAMES)


@router.get("/about-content", response_model=List[AboutSection])
def get_about_content(response: Response, section: Optional[str] = None):
    """
    About page content grouped by section.

    Args:
        section: Optional section tag; only that section is returned
    """
    try:
        if section:
            rows = read_cached(
                Keys.about_section(section),
                lambda: about_content_api.get_by_section(section),
                response,
            )
        else:
            rows = read_cached(Keys.ALL_ABOUT_CONTENT, about_content_api.get_all, response)
    except BackendError as e:
        logger.warning(f"No about content available, backend read failed: {e.message}")
        rows = []

    return [
        AboutSection(section=name, items=items)
        for name, items in group_by_section(rows).items()
    ]


@router.get("/site-settings/logo", response_model=LogoSettings)
def get_logo(response: Response):
    try:
        logo_url = read_cached(Keys.LOGO, site_settings_api.get_logo_url, response)
    except BackendError as e:
        logger.warning(f"Logo unavailable, backend read failed: {e.message}")
        logo_url = None

    return LogoSettings(logo_url=logo_url)


@router.get("/site-settings/footer", response_model=FooterSettings)
def get_footer(response: Response):
    """Footer fields, with defaults for anything not saved yet."""
    try:
        rows = read_cached(Keys.ALL_SITE_SETTINGS, site_settings_api.get_all, response)
    except BackendError as e:
        logger.warning(f"Serving default footer, backend read failed: {e.message}")
        rows = []

    return FooterSettings.from_settings(settings_with_defaults(rows, FOOTER_DEFAULTS))


@router.post("/inquiries", status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMITS["contact"])
def submit_inquiry(request: Request, inquiry: InquiryCreate):
    """
    Contact form submission.
    The inquiry is always stored unread.

    Returns:
        dict: Confirmation message and the stored inquiry

    Raises:
        HTTPException: 503 if the backend is not configured, 502 if the backend rejects the inquiry
    """
    try:
        created = inquiry_api.create(inquiry.model_dump())
    except ConfigurationError as e:
        logger.error(f"Contact form submitted while backend is not configured: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": CONTACT_ERROR_MESSAGE, "detail": e.message}
        )
    except BackendError as e:
        logger.error(f"Error saving inquiry: {e.message}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"error": CONTACT_ERROR_MESSAGE}
        )

    query_cache.invalidate(Entity.INQUIRIES)
    logger.info(f"New inquiry received: id={created.get('id')}")

    return {
        "message": CONTACT_SUCCESS_MESSAGE,
        "inquiry": InquiryResponse.model_validate(created),
    }
