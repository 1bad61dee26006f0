"""
CMS API routes for the admin panel.
Every endpoint requires an admin token (see utils/jwt_auth.py).

Each successful mutation invalidates the cached reads of the entity it
touched, covering both the admin lists and the public pages. Backend
failures propagate to the application-level exception handlers.
"""
from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, Response, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel
from typing import List
import logging

from interior_cms.cache import Entity, Keys, query_cache, read_cached
from interior_cms.config import settings
from interior_cms.errors import BackendError
from interior_cms.schemas import (
    AboutContentCreate,
    AboutContentResponse,
    AboutContentUpdate,
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    DashboardResponse,
    FooterSettings,
    HeroSlideCreate,
    HeroSlideResponse,
    HeroSlideUpdate,
    InquiryResponse,
    LogoSettings,
    PortfolioCreate,
    PortfolioResponse,
    PortfolioUpdate,
    SiteSettingResponse,
    SiteSettingValue,
    UploadResponse,
)
from interior_cms.services import storage
from interior_cms.services.about_content import about_content_api
from interior_cms.services.category import category_api
from interior_cms.services.hero_slide import hero_slide_api
from interior_cms.services.inquiry import inquiry_api
from interior_cms.services.portfolio import portfolio_api
from interior_cms.services.resource import ResourceApi
from interior_cms.services.site_settings import FOOTER_DEFAULTS, settings_with_defaults, site_settings_api
from interior_cms.utils.image_converter import convert_to_webp
from interior_cms.utils.jwt_auth import verify_cms_token
from interior_cms.utils.rate_limit import RATE_LIMITS, limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cms", tags=["CMS"], dependencies=[Depends(verify_cms_token)])

RECENT_ITEMS_LIMIT = 5


def _changes(update: BaseModel) -> dict:
    """Fields the client actually sent; an empty update is rejected."""
    changes = update.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "No fields to update", "detail": "At least one field is required"}
        )
    return changes


def _not_found(kind: str, row_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"error": f"{kind} not found", "detail": f"{kind} ID {row_id} does not exist"}
    )


def _apply_update(api: ResourceApi, kind: str, row_id: str, update: BaseModel) -> dict:
    """
    Send a partial update. An update that matches no row is a 404.
    """
    try:
        return api.update(row_id, _changes(update))
    except BackendError as e:
        if e.is_not_found:
            raise _not_found(kind, row_id)
        raise


# Dashboard

@router.get("/dashboard", response_model=DashboardResponse)
def get_dashboard(response: Response):
    """
    Summary counts and recent items for the admin dashboard.
    """
    portfolios = read_cached(Keys.ALL_PORTFOLIOS, portfolio_api.get_all, response)
    inquiries = read_cached(Keys.ALL_INQUIRIES, inquiry_api.get_all, response)

    published_count = sum(1 for p in portfolios if p.get("is_published"))

    return DashboardResponse(
        published_count=published_count,
        draft_count=len(portfolios) - published_count,
        total_inquiries=len(inquiries),
        unread_count=sum(1 for i in inquiries if not i.get("is_read")),
        recent_portfolios=[PortfolioResponse.model_validate(p) for p in portfolios[:RECENT_ITEMS_LIMIT]],
        recent_inquiries=[InquiryResponse.model_validate(i) for i in inquiries[:RECENT_ITEMS_LIMIT]],
    )


# Portfolios

@router.get("/portfolios", response_model=List[PortfolioResponse])
def list_portfolios(response: Response):
    """All portfolios, published or not, newest first."""
    portfolios = read_cached(Keys.ALL_PORTFOLIOS, portfolio_api.get_all, response)
    return [PortfolioResponse.model_validate(p) for p in portfolios]


@router.get("/portfolios/{portfolio_id}", response_model=PortfolioResponse)
def get_portfolio(portfolio_id: str, response: Response):
    portfolio = read_cached(
        Keys.portfolio_detail(portfolio_id),
        lambda: portfolio_api.get_by_id(portfolio_id),
        response,
    )
    if not portfolio:
        raise _not_found("Portfolio", portfolio_id)
    return PortfolioResponse.model_validate(portfolio)


@router.post("/portfolios", response_model=PortfolioResponse, status_code=status.HTTP_201_CREATED)
def create_portfolio(portfolio: PortfolioCreate):
    created = portfolio_api.create(portfolio.model_dump())
    query_cache.invalidate(Entity.PORTFOLIOS)
    return PortfolioResponse.model_validate(created)


@router.put("/portfolios/{portfolio_id}", response_model=PortfolioResponse)
def update_portfolio(portfolio_id: str, portfolio_update: PortfolioUpdate):
    """
    Update only the fields present in the request body.
    """
    updated = _apply_update(portfolio_api, "Portfolio", portfolio_id, portfolio_update)
    query_cache.invalidate(Entity.PORTFOLIOS)
    return PortfolioResponse.model_validate(updated)


@router.delete("/portfolios/{portfolio_id}")
def delete_portfolio(portfolio_id: str):
    portfolio_api.delete(portfolio_id)
    query_cache.invalidate(Entity.PORTFOLIOS)
    return {"message": "Portfolio deleted successfully", "id": portfolio_id}


# Hero slides

@router.get("/hero-slides", response_model=List[HeroSlideResponse])
def list_hero_slides(response: Response):
    """All hero slides, active or not, in display order."""
    slides = read_cached(Keys.ALL_HERO_SLIDES, hero_slide_api.get_all, response)
    return [HeroSlideResponse.model_validate(s) for s in slides]


@router.post("/hero-slides", response_model=HeroSlideResponse, status_code=status.HTTP_201_CREATED)
def create_hero_slide(slide: HeroSlideCreate):
    created = hero_slide_api.create(slide.model_dump())
    query_cache.invalidate(Entity.HERO_SLIDES)
    return HeroSlideResponse.model_validate(created)


@router.put("/hero-slides/{slide_id}", response_model=HeroSlideResponse)
def update_hero_slide(slide_id: str, slide_update: HeroSlideUpdate):
    updated = _apply_update(hero_slide_api, "Hero slide", slide_id, slide_update)
    query_cache.invalidate(Entity.HERO_SLIDES)
    return HeroSlideResponse.model_validate(updated)


@router.delete("/hero-slides/{slide_id}")
def delete_hero_slide(slide_id: str):
    hero_slide_api.delete(slide_id)
    query_cache.invalidate(Entity.HERO_SLIDES)
    return {"message": "Hero slide deleted successfully", "id": slide_id}


# Inquiries

@router.get("/inquiries", response_model=List[InquiryResponse])
def list_inquiries(response: Response):
    inquiries = read_cached(Keys.ALL_INQUIRIES, inquiry_api.get_all, response)
    return [InquiryResponse.model_validate(i) for i in inquiries]


@router.get("/inquiries/{inquiry_id}", response_model=InquiryResponse)
def open_inquiry(inquiry_id: str):
    """
    Open an inquiry in the detail view.
    An unread inquiry is marked read once, and the inquiry list is invalidated
    so its status reflects the change on the next read.

    Raises:
        HTTPException: 404 if the inquiry does not exist
    """
    inquiry = inquiry_api.get_by_id(inquiry_id)
    if not inquiry:
        raise _not_found("Inquiry", inquiry_id)

    if not inquiry.get("is_read"):
        inquiry_api.mark_as_read(inquiry_id)
        query_cache.invalidate(Entity.INQUIRIES)
        inquiry = {**inquiry, "is_read": True}

    return InquiryResponse.model_validate(inquiry)


@router.put("/inquiries/{inquiry_id}/read")
def mark_inquiry_read(inquiry_id: str):
    inquiry_api.mark_as_read(inquiry_id)
    query_cache.invalidate(Entity.INQUIRIES)
    return {"message": "Inquiry marked as read", "id": inquiry_id}


@router.delete("/inquiries/{inquiry_id}")
def delete_inquiry(inquiry_id: str):
    inquiry_api.delete(inquiry_id)
    query_cache.invalidate(Entity.INQUIRIES)
    return {"message": "Inquiry deleted successfully", "id": inquiry_id}


# Categories

@router.get("/categories", response_model=List[CategoryResponse])
def list_categories(response: Response):
    categories = read_cached(Keys.ALL_CATEGORIES, category_api.get_all, response)
    return [CategoryResponse.model_validate(c) for c in categories]


@router.post("/categories", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(category: CategoryCreate):
    created = category_api.create(category.model_dump())
    query_cache.invalidate(Entity.CATEGORIES)
    return CategoryResponse.model_validate(created)


@router.put("/categories/{category_id}", response_model=CategoryResponse)
def update_category(category_id: str, category_update: CategoryUpdate):
    updated = _apply_update(category_api, "Category", category_id, category_update)
    query_cache.invalidate(Entity.CATEGORIES)
    return CategoryResponse.model_validate(updated)


@router.delete("/categories/{category_id}")
def delete_category(category_id: str):
    """
    Delete a category. Portfolios keep their category text.
    """
    category_api.delete(category_id)
    query_cache.invalidate(Entity.CATEGORIES)
    return {"message": "Category deleted successfully", "id": category_id}


# About content

@router.get("/about-content", response_model=List[AboutContentResponse])
def list_about_content(response: Response):
    rows = read_cached(Keys.ALL_ABOUT_CONTENT, about_content_api.get_all, response)
    return [AboutContentResponse.model_validate(r) for r in rows]


@router.post("/about-content", response_model=AboutContentResponse, status_code=status.HTTP_201_CREATED)
def create_about_content(content: AboutContentCreate):
    created = about_content_api.create(content.model_dump())
    query_cache.invalidate(Entity.ABOUT_CONTENT)
    return AboutContentResponse.model_validate(created)


@router.put("/about-content/{content_id}", response_model=AboutContentResponse)
def update_about_content(content_id: str, content_update: AboutContentUpdate):
    updated = _apply_update(about_content_api, "Content", content_id, content_update)
    query_cache.invalidate(Entity.ABOUT_CONTENT)
    return AboutContentResponse.model_validate(updated)


@router.delete("/about-content/{content_id}")
def delete_about_content(content_id: str):
    about_content_api.delete(content_id)
    query_cache.invalidate(Entity.ABOUT_CONTENT)
    return {"message": "Content deleted successfully", "id": content_id}


# Site settings

@router.get("/site-settings", response_model=List[SiteSettingResponse])
def list_site_settings(response: Response):
    rows = read_cached(Keys.ALL_SITE_SETTINGS, site_settings_api.get_all, response)
    return [SiteSettingResponse.model_validate(r) for r in rows]


@router.put("/site-settings/logo", response_model=LogoSettings)
def save_logo(logo: LogoSettings):
    """
    Save the logo URL. An empty or null URL removes the logo.
    """
    site_settings_api.set_logo_url(logo.logo_url or "")
    query_cache.invalidate(Entity.SITE_SETTINGS)
    return LogoSettings(logo_url=logo.logo_url or None)


@router.get("/site-settings/footer", response_model=FooterSettings)
def get_footer_settings(response: Response):
    rows = read_cached(Keys.ALL_SITE_SETTINGS, site_settings_api.get_all, response)
    return FooterSettings.from_settings(settings_with_defaults(rows, FOOTER_DEFAULTS))


@router.put("/site-settings/footer", response_model=FooterSettings)
def save_footer_settings(footer: FooterSettings):
    """
    Save every footer field. Fields are written one key at a time; if one
    write fails, earlier keys stay saved, the cache is left as it was and
    the error is returned.
    """
    for key, value in footer.to_settings().items():
        site_settings_api.upsert(key, value)
    query_cache.invalidate(Entity.SITE_SETTINGS)
    return footer


@router.put("/site-settings/{key}", response_model=SiteSettingResponse)
def save_site_setting(key: str, setting: SiteSettingValue):
    saved = site_settings_api.upsert(key, setting.value)
    query_cache.invalidate(Entity.SITE_SETTINGS)
    return SiteSettingResponse.model_validate(saved)


# Uploads

@router.post("/uploads", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMITS["upload"])
async def upload_images(
    request: Request,
    files: List[UploadFile] = File(...),
    folder: str = Form("portfolio"),
):
    """
    Upload one or more images to the storage bucket.
    File type and size are not validated.

    Args:
        files: Image files (form field "files", repeatable)
        folder: Bucket folder, e.g. "portfolio", "hero", "logo"

    Returns:
        UploadResponse: Public URLs in the order the files were sent
    """
    urls = []
    for upload in files:
        content = await upload.read()
        filename = upload.filename or "image"
        content_type = upload.content_type

        if settings.CONVERT_UPLOADS_TO_WEBP:
            converted, is_webp = await convert_to_webp(content)
            if is_webp and len(converted) < len(content):
                content = converted
                filename = f"{filename.rsplit('.', 1)[0]}.webp"
                content_type = "image/webp"
            else:
                logger.debug(f"Keeping original format for {filename}")

        url = await run_in_threadpool(
            storage.upload_image, content, filename, folder, content_type
        )
        urls.append(url)

    logger.info(f"Uploaded {len(urls)} image(s) to folder '{folder}'")
    return UploadResponse(urls=urls, folder=folder)
