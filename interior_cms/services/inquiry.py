"""
Contact-form inquiries.
"""
import logging

from interior_cms.services.resource import ResourceApi, Row

logger = logging.getLogger(__name__)


class InquiryApi(ResourceApi):
    table = "inquiries"
    order_by = "created_at"
    order_desc = True

    def create(self, payload: Row) -> Row:
        # New inquiries always start unread, whatever the caller sent
        return self._insert({**payload, "is_read": False})

    def mark_as_read(self, row_id: str) -> None:
        client = self._read_client()
        if client is None:
            logger.debug(f"Supabase not configured, skipping mark_as_read for inquiry {row_id}")
            return
        self._execute(client.table(self.table).update({"is_read": True}).eq("id", row_id))
        logger.info(f"Marked inquiry as read: id={row_id}")


inquiry_api = InquiryApi()
