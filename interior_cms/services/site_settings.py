"""
Key/value site settings (logo, footer text and other named values).
Absent keys are not errors; callers supply their own defaults.
"""
from typing import Dict, List, Optional
import logging

from interior_cms.services.resource import ResourceApi, Row, utc_now_iso

logger = logging.getLogger(__name__)

LOGO_URL_KEY = "logo_url"

# Footer setting keys and the values shown until an admin saves their own
FOOTER_DEFAULTS: Dict[str, str] = {
    "footer_company_name": "정감공간",
    "footer_company_description": "주식회사 정감공간\n감성적인 공간 인테리어 디자인 전문\n사업자등록번호: 000-00-00000",
    "footer_email": "info@jeongdam.co.kr",
    "footer_phone": "02-0000-0000",
    "footer_address": "서울특별시 강남구",
    "footer_copyright": "주식회사 정감공간",
}


class SiteSettingsApi(ResourceApi):
    table = "site_settings"

    def get_by_key(self, key: str) -> Optional[Row]:
        return self._select_one("key", key)

    def upsert(self, key: str, value: str) -> Row:
        """Insert or replace the setting named `key`, stamping updated_at."""
        client = self._write_client()
        rows = self._execute(
            client.table(self.table).upsert(
                {"key": key, "value": value, "updated_at": utc_now_iso()},
                on_conflict="key",
            )
        )
        row = self._single_row(rows, "upsert")
        logger.info(f"Saved site setting '{key}'")
        return row

    def get_logo_url(self) -> Optional[str]:
        row = self.get_by_key(LOGO_URL_KEY)
        if not row:
            return None
        return row.get("value") or None

    def set_logo_url(self, url: str) -> Row:
        return self.upsert(LOGO_URL_KEY, url)


def settings_with_defaults(rows: List[Row], defaults: Dict[str, str]) -> Dict[str, str]:
    """
    Resolve `defaults` against stored rows.
    A stored empty value falls back to the default, like an absent key.
    """
    stored = {row["key"]: row.get("value") for row in rows}
    return {key: stored.get(key) or default for key, default in defaults.items()}


site_settings_api = SiteSettingsApi()
